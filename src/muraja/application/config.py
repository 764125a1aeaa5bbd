from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from muraja.domain.constants import (
    DEFAULT_DUE_LIMIT,
    DEFAULT_MAX_REVIEW_ATTEMPTS,
    MAX_DUE_LIMIT,
)


def config_file_path() -> Path:
    return Path.home() / ".config/muraja/config.toml"


def default_database_path() -> Path:
    return (Path.home() / ".local/share/muraja/muraja.db").resolve()


class AppConfig(BaseSettings):
    """
    Configuration model for muraja.
    Supports loading from:
    1. Config file (~/.config/muraja/config.toml)
    2. Environment variables (MURAJA_*)
    3. Manual overrides (CLI / API)
    """

    model_config = SettingsConfigDict(
        env_prefix="MURAJA_",
        extra="ignore",
    )

    # Storage
    backend: Literal["memory", "sqlite"] = "sqlite"
    database_path: Path = Field(default_factory=default_database_path)

    # Scheduling
    default_due_limit: int = Field(default=DEFAULT_DUE_LIMIT, ge=1)
    max_due_limit: int = Field(default=MAX_DUE_LIMIT, ge=1)
    max_review_attempts: int = Field(default=DEFAULT_MAX_REVIEW_ATTEMPTS, ge=1)

    # Server
    host: str = "127.0.0.1"
    port: int = 8787
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        from pydantic_settings import TomlConfigSettingsSource

        # Earlier sources win: overrides, then env, then the TOML file
        toml_file = config_file_path()
        if toml_file.exists():
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (init_settings, env_settings)

    @field_validator("database_path", mode="before")
    @classmethod
    def resolve_database_path(cls, v: Any) -> Path:
        return Path(v).expanduser().resolve()

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.upper()
        return v


def resolve_config(overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/muraja/config.toml (if exists)
    3. Environment variables (MURAJA_*)
    4. overrides (passed from Typer or the server), None values ignored
    """
    cleaned = {k: v for k, v in (overrides or {}).items() if v is not None}
    config = AppConfig(**cleaned)

    if config.default_due_limit > config.max_due_limit:
        config.default_due_limit = config.max_due_limit

    return config
