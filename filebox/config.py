import os
from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

_CONFIG_PATH = os.getenv("FILEBOX_CONFIG", "config.toml")
_ENV_PATH = os.getenv("FILEBOX_ENV", ".env")


class AuditSettings(BaseModel):
    enabled: bool = True
    log_file: str = "operations.log"
    log_request_body: bool = True
    max_body_size: int = 10240  # 10KB


class UploadSettings(BaseModel):
    chunk_size: int = 1024 * 1024


class ArchiveSettings(BaseModel):
    seven_zip_binary: str = "7z"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_nested_delimiter="__",
        toml_file=_CONFIG_PATH,
        env_file=_ENV_PATH,
    )

    root_path: Path = Field(default=Path("files"))
    tree_root_name: str = "My Files"

    host: str = "0.0.0.0"
    port: int = 8000
    logs_dir: Path = Field(default=Path("logs"))

    audit: AuditSettings = Field(default_factory=AuditSettings)
    upload: UploadSettings = Field(default_factory=UploadSettings)
    archive: ArchiveSettings = Field(default_factory=ArchiveSettings)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Source order: init args > OS env > .env > config.toml > secrets
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            TomlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


settings = Settings()
