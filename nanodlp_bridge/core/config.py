"""Application configuration management."""
import json
import os
import tempfile
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BASE_URL = "http://localhost"
DEFAULT_REQUEST_TIMEOUT = 5.0
DEFAULT_PLATES_CACHE_TTL = 120.0
DEFAULT_THUMBNAIL_CACHE_TTL = 30.0
DEFAULT_THUMBNAIL_PLACEHOLDER_TTL = 5.0
CONFIG_PATH_ENV = "NANODLP_CONFIG"


class PrinterConfig(BaseModel):
    """Connection and cache tuning for the NanoDLP controller."""

    base_url: str = Field(DEFAULT_BASE_URL, description="Base URL of the NanoDLP web API")
    request_timeout: float = Field(
        DEFAULT_REQUEST_TIMEOUT,
        description="Seconds before any single device request is abandoned",
    )
    status_poll_interval: float = Field(2.0, description="Seconds between two background status polls")
    status_retry_delay: float = Field(0.2, description="Delay before the single /status retry")
    plates_cache_ttl: float = Field(DEFAULT_PLATES_CACHE_TTL, description="Plate list cache TTL in seconds")
    thumbnail_cache_ttl: float = Field(
        DEFAULT_THUMBNAIL_CACHE_TTL,
        description="TTL for successfully downloaded thumbnails",
    )
    thumbnail_placeholder_ttl: float = Field(
        DEFAULT_THUMBNAIL_PLACEHOLDER_TTL,
        description="TTL for placeholder thumbnails (missing plate, no preview, failed fetch)",
    )
    plate_resolve_startup_grace: float = Field(
        2.0,
        description="Seconds after startup during which PlateID resolution is skipped",
    )


class AppConfig(BaseModel):
    """Application-level configuration model."""
    model_config = {"extra": "ignore"}

    host: str = Field("0.0.0.0", description="Application bind address")
    port: int = Field(5000, description="Application bind port")
    log_level: str = Field("INFO", description="Root logging level")
    cors_origins: list[str] = Field(
        default_factory=lambda: ["*"],
        description="Origins allowed to call the API from a browser",
    )


class ConfigFile(BaseModel):
    """Root configuration file structure."""

    app_settings: AppConfig = Field(default_factory=AppConfig)
    printer: PrinterConfig = Field(default_factory=PrinterConfig)


class Settings(BaseSettings):
    """Resolved settings; ``NANODLP_*`` environment variables win over app.json."""

    model_config = SettingsConfigDict(env_prefix="NANODLP_", extra="ignore")

    host: str = "0.0.0.0"
    port: int = 5000
    log_level: str = "INFO"
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    base_url: str = DEFAULT_BASE_URL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    status_poll_interval: float = 2.0
    status_retry_delay: float = 0.2
    plates_cache_ttl: float = DEFAULT_PLATES_CACHE_TTL
    thumbnail_cache_ttl: float = DEFAULT_THUMBNAIL_CACHE_TTL
    thumbnail_placeholder_ttl: float = DEFAULT_THUMBNAIL_PLACEHOLDER_TTL
    plate_resolve_startup_grace: float = 2.0

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return env_settings, init_settings

    @property
    def api_base(self) -> str:
        return self.base_url.rstrip("/")


def _get_config_file_path() -> Path:
    """Return app.json, honouring the NANODLP_CONFIG override."""
    override = os.environ.get(CONFIG_PATH_ENV)
    if override:
        return Path(override)
    project_root = Path(__file__).parent.parent.parent
    return project_root / "app.json"


def _persist_config(config: ConfigFile, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            delete=False,
            dir=path.parent,
            suffix=".tmp",
        ) as tmp_file:
            json.dump(config.model_dump(mode="json"), tmp_file, indent=2, ensure_ascii=False)
            tmp_name = Path(tmp_file.name)
        os.replace(tmp_name, path)
    except Exception as exc:  # noqa: BLE001
        raise RuntimeError(f"Failed to persist configuration to {path}: {exc}") from exc


def _ensure_config_file() -> Path:
    path = _get_config_file_path()
    if not path.exists():
        _persist_config(ConfigFile(), path)
    return path


def load_config_file() -> ConfigFile:
    """Load and parse app.json, writing defaults on first run."""
    config_path = _ensure_config_file()
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            config_data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {config_path}: {e}") from e
    return ConfigFile(**config_data)


def settings_from_config(config: ConfigFile) -> Settings:
    """Flatten a config file into runtime settings."""
    return Settings(
        **config.app_settings.model_dump(),
        **config.printer.model_dump(),
    )


@lru_cache(maxsize=None)
def get_settings() -> Settings:
    """Return a cached Settings instance (blocking, use at startup only)."""
    return settings_from_config(load_config_file())
