"""
Tests for settings sources.
"""

from pathlib import Path

from filebox.config import Settings


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("ROOT_PATH", raising=False)
        settings = Settings(_env_file=None)

        assert settings.root_path == Path("files")
        assert settings.upload.chunk_size == 1024 * 1024
        assert settings.archive.seven_zip_binary == "7z"

    def test_nested_env_override(self, monkeypatch):
        monkeypatch.setenv("ARCHIVE__SEVEN_ZIP_BINARY", "7zz")
        monkeypatch.setenv("AUDIT__ENABLED", "false")

        settings = Settings(_env_file=None)

        assert settings.archive.seven_zip_binary == "7zz"
        assert settings.audit.enabled is False

    def test_init_args_win_over_env(self, monkeypatch):
        monkeypatch.setenv("ROOT_PATH", "/from/env")

        settings = Settings(_env_file=None, root_path=Path("/from/init"))

        assert settings.root_path == Path("/from/init")
