"""Configuration loader for persistkit using Pydantic settings."""

from __future__ import annotations

import os
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import AliasChoices, Field, model_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

ENV_VAR_NAME = "PERSISTKIT_ENV"
DEFAULT_ENV = "local"
PROJECT_ROOT = Path(__file__).resolve().parents[3]
CONFIG_DIR = PROJECT_ROOT / "config"
DEFAULT_CONFIG_FILE = CONFIG_DIR / "settings.default.toml"
LOCAL_CONFIG_FILE = CONFIG_DIR / "settings.local.toml"
SETTINGS_FILE_ENV_VAR = "PERSISTKIT_SETTINGS_FILE"


def _resolve_env(explicit_env: str | None = None) -> str:
    """Return the active environment name.

    Args:
        explicit_env: Environment value supplied directly by the caller.

    Returns:
        A stripped environment name, falling back to ``DEFAULT_ENV``.
    """

    env = explicit_env or os.getenv(ENV_VAR_NAME) or DEFAULT_ENV
    return env.strip()


def _env_file_candidates(env: str) -> list[Path]:
    """List candidate ``.env`` files used during settings resolution.

    Args:
        env: Active environment name (for example, ``local`` or ``staging``).

    Returns:
        Ordered list of paths that should be considered when loading
        environment variables from disk.
    """

    return [
        PROJECT_ROOT / ".env",
        PROJECT_ROOT / f".env.{env}",
        PROJECT_ROOT / ".env.local",
    ]


def _resolve_config_path(raw_path: str | None) -> Path | None:
    """Return an absolute config path from user input."""

    if not raw_path:
        return None
    candidate = Path(raw_path).expanduser()
    if not candidate.is_absolute():
        candidate = (PROJECT_ROOT / candidate).resolve()
    return candidate


def _config_file_priority(include_missing: bool = False) -> tuple[Path, ...]:
    """Return config files in descending precedence order."""

    ordered: list[Path] = []
    env_override = _resolve_config_path(os.getenv(SETTINGS_FILE_ENV_VAR))
    if env_override:
        ordered.append(env_override)
    ordered.append(LOCAL_CONFIG_FILE)
    ordered.append(DEFAULT_CONFIG_FILE)
    if include_missing:
        return tuple(ordered)
    return tuple(path for path in ordered if path.exists())


class TomlConfigSettingsSource(PydanticBaseSettingsSource):
    """Pydantic settings source that loads values from a TOML file."""

    def __init__(self, settings_cls: type[BaseSettings], path: Path) -> None:
        super().__init__(settings_cls)
        self.path = path
        self._data: dict[str, Any] | None = None

    def _load(self) -> dict[str, Any]:
        if self._data is not None:
            return self._data
        if not self.path.exists():
            self._data = {}
            return self._data
        try:
            with self.path.open("rb") as handle:
                self._data = tomllib.load(handle)
        except tomllib.TOMLDecodeError as exc:  # pragma: no cover - invalid files surface immediately
            raise ValueError(f"Invalid TOML syntax in {self.path}") from exc
        return self._data

    def __call__(self) -> dict[str, Any]:  # pragma: no cover - trivial wrapper
        return self._load()

    def get_field_value(self, field_name: str, field):  # pragma: no cover - passthrough helper
        data = self._load()
        return data.get(field_name), field_name in data


class RuntimeSettings(BaseSettings):
    """Process-level runtime controls."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    log_level: str = Field(
        default="INFO",
        validation_alias=AliasChoices("LOG_LEVEL", "RUNTIME__LOG_LEVEL"),
    )


class StorageSettings(BaseSettings):
    """Storage target selection, bound from the ``[storage]`` section.

    ``connection_string`` takes precedence over ``connection_string_name``,
    which is looked up in :attr:`Settings.connection_strings`.
    """

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    kind: str = Field(
        default="File",
        validation_alias=AliasChoices("STORAGE_KIND", "STORAGE__KIND"),
    )
    provider: str = Field(
        default="Json",
        validation_alias=AliasChoices("STORAGE_PROVIDER", "STORAGE__PROVIDER"),
    )
    connection_string: str | None = Field(
        default=None,
        validation_alias=AliasChoices("STORAGE_CONNECTION_STRING", "STORAGE__CONNECTION_STRING"),
    )
    connection_string_name: str | None = Field(
        default=None,
        validation_alias=AliasChoices("STORAGE_CONNECTION_STRING_NAME", "STORAGE__CONNECTION_STRING_NAME"),
    )
    file_path: Path | None = Field(
        default=None,
        validation_alias=AliasChoices("STORAGE_FILE_PATH", "STORAGE__FILE_PATH"),
    )


class PluginSettings(BaseSettings):
    """Where provider and context registrars are discovered."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    file_pattern: str = Field(
        default="persistkit.persistence.file.providers.*",
        validation_alias=AliasChoices("PLUGINS_FILE_PATTERN", "PLUGINS__FILE_PATTERN"),
    )
    database_pattern: str = Field(
        default="persistkit.persistence.database.providers.*",
        validation_alias=AliasChoices("PLUGINS_DATABASE_PATTERN", "PLUGINS__DATABASE_PATTERN"),
    )
    context_module: str = Field(
        default="persistkit.catalog.context",
        validation_alias=AliasChoices("PLUGINS_CONTEXT_MODULE", "PLUGINS__CONTEXT_MODULE"),
    )
    file_entry_point_group: str = Field(
        default="persistkit.file_providers",
        validation_alias=AliasChoices("PLUGINS_FILE_ENTRY_POINT_GROUP", "PLUGINS__FILE_ENTRY_POINT_GROUP"),
    )
    database_entry_point_group: str = Field(
        default="persistkit.database_providers",
        validation_alias=AliasChoices("PLUGINS_DATABASE_ENTRY_POINT_GROUP", "PLUGINS__DATABASE_ENTRY_POINT_GROUP"),
    )


class ObservabilitySettings(BaseSettings):
    """Logging and metrics configuration."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    structured_logging: bool = Field(
        default=False,
        validation_alias=AliasChoices("OBS_STRUCTURED_LOGGING", "OBSERVABILITY__STRUCTURED_LOGGING"),
    )
    statsd_host: str | None = Field(
        default=None,
        validation_alias=AliasChoices("OBS_STATSD_HOST", "OBSERVABILITY__STATSD_HOST"),
    )
    statsd_port: int = Field(
        default=8125,
        validation_alias=AliasChoices("OBS_STATSD_PORT", "OBSERVABILITY__STATSD_PORT"),
    )
    statsd_prefix: str = Field(
        default="persistkit",
        validation_alias=AliasChoices("OBS_STATSD_PREFIX", "OBSERVABILITY__STATSD_PREFIX"),
    )


class Settings(BaseSettings):
    """Top-level configuration model with nested sections for each subsystem."""

    env: str = Field(
        default_factory=lambda: _resolve_env(),
        validation_alias=AliasChoices("ENV", "ENVIRONMENT", "RUNTIME__ENV"),
    )
    project_root: Path = Field(default=PROJECT_ROOT)
    data_dir: Path = Field(
        default_factory=lambda: PROJECT_ROOT / "Data",
        validation_alias=AliasChoices("DATA_DIR", "RUNTIME__DATA_DIR"),
    )
    runtime: RuntimeSettings = Field(default_factory=RuntimeSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    connection_strings: dict[str, str] = Field(default_factory=dict)
    plugins: PluginSettings = Field(default_factory=PluginSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)
    env_files: tuple[Path, ...] = Field(default_factory=tuple, exclude=True)
    config_files: tuple[Path, ...] = Field(default_factory=tuple, exclude=True)

    model_config = SettingsConfigDict(
        env_prefix="PERSISTKIT_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        """Extend settings sources with TOML-based config files."""

        config_sources = [TomlConfigSettingsSource(settings_cls, path) for path in _config_file_priority()]
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            *config_sources,
            file_secret_settings,
        )

    @model_validator(mode="after")
    def _resolve_paths(self) -> "Settings":
        """Normalize relative paths once the model is initialised."""

        if not self.data_dir.is_absolute():
            object.__setattr__(self, "data_dir", (self.project_root / self.data_dir).resolve())

        file_path = self.storage.file_path
        if file_path is not None and not file_path.is_absolute():
            resolved = (self.project_root / file_path).resolve()
            object.__setattr__(self, "storage", self.storage.model_copy(update={"file_path": resolved}))

        return self

    @property
    def log_level(self) -> str:
        """str: Effective logging level for the running process."""

        return self.runtime.log_level

    @property
    def storage_kind(self) -> str:
        """str: Configured storage kind (``File`` or ``Database``)."""

        return self.storage.kind

    @property
    def storage_provider(self) -> str:
        """str: Configured provider name within the storage kind."""

        return self.storage.provider

    def connection_string_for(self, name: str) -> str | None:
        """Return the named connection string, matching names case-insensitively."""

        wanted = name.strip().lower()
        for key, value in self.connection_strings.items():
            if key.lower() == wanted:
                return value
        return None


def _load_settings(env: str | None = None) -> Settings:
    """Load settings with optional environment override.

    Args:
        env: Environment name supplied programmatically.

    Returns:
        Fully parsed :class:`Settings` instance with env files applied.
    """

    resolved_env = _resolve_env(env)
    candidate_files = [path for path in _env_file_candidates(resolved_env) if path.exists()]
    config_files = _config_file_priority()
    return Settings(
        _env_file=[str(path) for path in candidate_files],
        _env_file_encoding="utf-8",
        env=resolved_env,
        env_files=tuple(candidate_files),
        config_files=config_files,
    )


@lru_cache(maxsize=1)
def get_settings(env: str | None = None) -> Settings:
    """Return cached settings for the requested environment."""

    return _load_settings(env)


def reload_settings(env: str | None = None) -> Settings:
    """Clear the cached settings and reload from disk."""

    get_settings.cache_clear()
    return get_settings(env)


__all__ = [
    "Settings",
    "StorageSettings",
    "PluginSettings",
    "get_settings",
    "reload_settings",
    "PROJECT_ROOT",
    "ENV_VAR_NAME",
]
