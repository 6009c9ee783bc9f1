"""
Tests for sandbox path resolution and name validation.
"""

import os

import pytest

from filebox.exceptions import AccessDeniedError, InvalidInputError
from filebox.files.paths import (
    is_descendant,
    join_entry_path,
    normalize_entry_path,
    parent_entry_path,
    validate_entry_name,
)


class TestPathResolver:
    """Test mapping of client paths onto the sandbox root."""

    def test_root_variants_resolve_to_root(self, resolver):
        for path in ("", "/", ".", "//", "/./"):
            assert resolver.resolve(path) == resolver.root

    def test_nested_path(self, resolver):
        assert resolver.resolve("/docs/a.txt") == resolver.root / "docs" / "a.txt"
        assert resolver.resolve("docs/a.txt") == resolver.root / "docs" / "a.txt"

    def test_backslashes_are_separators(self, resolver):
        assert resolver.resolve("\\docs\\a.txt") == resolver.root / "docs" / "a.txt"

    def test_dotdot_inside_sandbox_is_allowed(self, resolver):
        assert resolver.resolve("/docs/../music") == resolver.root / "music"

    @pytest.mark.parametrize(
        "path",
        ["../etc/passwd", "/../etc/passwd", "/docs/../../secret", "..", "a/../../.."],
    )
    def test_escaping_paths_are_denied(self, resolver, path):
        with pytest.raises(AccessDeniedError) as exc_info:
            resolver.resolve(path)
        assert exc_info.value.code == "ACCESS_DENIED"
        assert exc_info.value.status_code == 403

    def test_sibling_with_common_prefix_is_denied(self, tmp_path, resolver):
        # "<root>-other" shares a string prefix with the root
        (tmp_path / "sandbox-other").mkdir()
        with pytest.raises(AccessDeniedError):
            resolver.resolve("../sandbox-other/file")

    def test_symlink_pointing_outside_is_denied(self, tmp_path, sandbox, resolver):
        outside = tmp_path / "outside"
        outside.mkdir()
        (outside / "secret.txt").write_text("secret")
        os.symlink(outside, sandbox / "link")

        with pytest.raises(AccessDeniedError):
            resolver.resolve("/link/secret.txt")

    def test_symlink_inside_sandbox_is_allowed(self, sandbox, resolver):
        (sandbox / "real").mkdir()
        os.symlink(sandbox / "real", sandbox / "alias")
        assert resolver.resolve("/alias") == resolver.root / "alias"

    def test_nul_byte_is_invalid(self, resolver):
        with pytest.raises(InvalidInputError):
            resolver.resolve("/docs/a\0.txt")

    def test_to_entry_path(self, resolver):
        assert resolver.to_entry_path(resolver.root) == "/"
        assert resolver.to_entry_path(resolver.root / "docs" / "a.txt") == "/docs/a.txt"


class TestEntryPathHelpers:
    """Test the pure client path helpers."""

    def test_normalize(self):
        assert normalize_entry_path("") == "/"
        assert normalize_entry_path("docs/") == "/docs"
        assert normalize_entry_path("//docs//a.txt") == "/docs/a.txt"
        assert normalize_entry_path("/docs/./a.txt") == "/docs/a.txt"

    def test_join(self):
        assert join_entry_path("/", "a.txt") == "/a.txt"
        assert join_entry_path("/docs/", "a.txt") == "/docs/a.txt"

    def test_parent(self):
        assert parent_entry_path("/docs/a.txt") == "/docs"
        assert parent_entry_path("/docs") == "/"
        assert parent_entry_path("/") == "/"

    def test_is_descendant(self):
        assert is_descendant("/docs/a.txt", "/docs")
        assert not is_descendant("/docs", "/docs")
        assert not is_descendant("/docs2/a.txt", "/docs")
        assert is_descendant("/docs", "/")
        assert not is_descendant("/", "/")


class TestValidateEntryName:
    @pytest.mark.parametrize("name", ["a.txt", "My Folder", ".hidden", "a..b"])
    def test_valid_names(self, name):
        assert validate_entry_name(name) == name

    @pytest.mark.parametrize("name", ["", "   ", ".", "..", "a/b", "a\\b", "a\0b"])
    def test_invalid_names(self, name):
        with pytest.raises(InvalidInputError):
            validate_entry_name(name)
