"""
Configuration management for the activity status service.

Uses Pydantic for validation and pydantic-settings for environment variable support.
"""

from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StoreConfig(BaseSettings):
    """Key-value store configuration.

    For the in-memory backend nothing else is needed. For SQLite:
        - Set `backend` to "sqlite"
        - Set `path` to a file path or a full sqlite:// URL
        - Environment variables: STORE_BACKEND, STORE_PATH
    """

    model_config = SettingsConfigDict(env_prefix="STORE_")

    backend: str = Field(default="memory", description="Store backend: memory, sqlite")
    path: str = Field(default="data/activity_status.db", description="Database file path (SQLite)")
    echo: bool = Field(default=False, description="Echo SQL statements")
    pool_size: int = Field(default=5, ge=1, le=100, description="Connection pool size")
    max_overflow: int = Field(default=10, ge=0, description="Max overflow connections")

    @field_validator("backend")
    @classmethod
    def validate_backend(cls, v: str) -> str:
        """Validate store backend."""
        v = v.lower().strip()
        valid_backends = ["memory", "sqlite"]
        if v not in valid_backends:
            raise ValueError(f"Invalid store backend: {v!r}. Must be one of {valid_backends}")
        return v


class FetcherConfig(BaseSettings):
    """Outbound HTTP fetcher configuration."""

    model_config = SettingsConfigDict(env_prefix="FETCHER_")

    # HTTP settings
    timeout_seconds: float = Field(default=15.0, gt=0, le=300, description="Request timeout")
    user_agent: str = Field(
        default="Quarterly-Systems-Status/1.0",
        description="User-Agent header"
    )

    # Retry settings
    max_retries: int = Field(default=1, ge=0, le=10)
    retry_delay_seconds: float = Field(default=1.0, ge=0)

    # Follow redirects
    follow_redirects: bool = Field(default=True)
    max_redirects: int = Field(default=5, ge=0, le=20)

    # GitHub events API
    github_token: Optional[str] = Field(
        default=None,
        description="GitHub token; enables the public events API source when set"
    )
    github_user: str = Field(default="kmikeym", description="GitHub user whose events are polled")
    github_api_url: str = Field(default="https://api.github.com", description="GitHub REST API base URL")


class RefreshConfig(BaseSettings):
    """Status refresh pipeline configuration."""

    model_config = SettingsConfigDict(env_prefix="REFRESH_")

    freshness_window_seconds: int = Field(
        default=600, ge=0,
        description="Cached status younger than this is served without refreshing"
    )
    status_ttl_seconds: int = Field(
        default=1800, ge=1,
        description="Store TTL for the status view entry"
    )
    status_activity_limit: int = Field(default=20, ge=1, description="Activities kept in the status view")

    # Per-source limits
    items_per_feed: int = Field(default=3, ge=1, description="Items taken from each polled feed")
    feed_item_limit: int = Field(default=5, ge=1, description="Items parsed from each RSS document")
    commit_activity_limit: int = Field(default=10, ge=1, description="Cap on commit activities per refresh")
    event_limit: int = Field(default=5, ge=1, description="Events inspected from the GitHub events API")

    # Fan-out
    max_workers: int = Field(default=4, ge=1, le=32, description="Concurrent source fetches")
    source_timeout_seconds: float = Field(
        default=45.0, gt=0,
        description="Upper bound on the whole fan-out phase"
    )

    dedupe_within_batch: bool = Field(
        default=True,
        description="Also reject candidates whose id repeats within the same refresh"
    )


class LocationConfig(BaseSettings):
    """Default location and reverse geocoding settings."""

    model_config = SettingsConfigDict(env_prefix="LOCATION_")

    default_name: str = Field(default="Los Angeles, CA", description="Default location name")
    default_latitude: float = Field(default=34.0522, ge=-90, le=90)
    default_longitude: float = Field(default=-118.2437, ge=-180, le=180)

    # Reverse geocoding of submitted coordinates
    reverse_geocode: bool = Field(
        default=True,
        description="Resolve neighborhood and city from submitted coordinates"
    )
    geocoder_url: str = Field(
        default="https://nominatim.openstreetmap.org/reverse",
        description="Nominatim-compatible reverse geocoding endpoint"
    )

    @property
    def default_coordinates(self) -> list[float]:
        """Default coordinates as a [lat, lng] pair."""
        return [self.default_latitude, self.default_longitude]


class SourcesConfig(BaseSettings):
    """Polled source list configuration."""

    model_config = SettingsConfigDict(env_prefix="SOURCES_")

    file: Optional[str] = Field(
        default=None,
        description="YAML file listing feed sources (built-in list when unset)"
    )


class ServiceHealthConfig(BaseSettings):
    """Static health block published with every status view."""

    model_config = SettingsConfigDict(env_prefix="SERVICES_")

    entries: dict[str, dict[str, str]] = Field(
        default_factory=lambda: {
            "vibecode": {"status": "operational", "uptime": "99.9%", "responseTime": "142ms"},
            "office": {"status": "operational", "uptime": "99.8%", "responseTime": "89ms"},
            "main": {"status": "operational", "uptime": "99.9%", "responseTime": "76ms"},
        },
        description="Service name to {status, uptime, responseTime}"
    )


class SchedulerConfig(BaseSettings):
    """Periodic refresh scheduler configuration."""

    model_config = SettingsConfigDict(env_prefix="SCHEDULER_")

    enabled: bool = Field(default=True, description="Enable scheduler")
    timezone: str = Field(default="UTC", description="Scheduler timezone")
    interval_minutes: int = Field(default=15, ge=1, description="Refresh interval")
    run_on_start: bool = Field(default=False, description="Run one refresh when the scheduler starts")

    # Job execution settings
    max_workers: int = Field(default=1, ge=1, le=20, description="Maximum concurrent workers")
    misfire_grace_time: int = Field(default=300, ge=0, description="Misfire grace time in seconds")
    coalesce: bool = Field(default=True, description="Coalesce misfired jobs")


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(
        default="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        description="Log format"
    )

    # File logging
    file_enabled: bool = Field(default=True, description="Enable file logging")
    file_path: str = Field(default="logs/activity_status.log", description="Log file path")
    rotation: str = Field(default="50 MB", description="Log rotation size")
    retention: str = Field(default="14 days", description="Log retention period")

    # Console logging
    console_enabled: bool = Field(default=True, description="Enable console logging")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]
        v = v.upper()
        if v not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v


class WebConfig(BaseSettings):
    """HTTP API configuration."""

    model_config = SettingsConfigDict(env_prefix="WEB_")

    host: str = Field(default="127.0.0.1", description="Web server host")
    port: int = Field(default=8787, ge=1, le=65535, description="Web server port")
    debug: bool = Field(default=False, description="Debug mode")
    allowed_origins: list[str] = Field(
        default_factory=lambda: [
            "https://quarterly.systems",
            "https://www.quarterly.systems",
            "https://quarterly-systems-landing.pages.dev",
            "http://localhost:4321",
            "http://localhost:3000",
        ],
        description="CORS allowlist; the first entry is the fallback origin"
    )
    expose_error_details: bool = Field(
        default=True,
        description="Return exception messages in 500 responses"
    )

    @field_validator("allowed_origins")
    @classmethod
    def validate_origins(cls, v: list[str]) -> list[str]:
        """Require at least one allowed origin."""
        if not v:
            raise ValueError("allowed_origins must contain at least one origin")
        return v


class Config(BaseSettings):
    """Main application configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="STATUS_",
        case_sensitive=False,
    )

    # Application
    version: str = Field(default="0.1.0", description="Application version")
    app_name: str = Field(default="Activity Status", description="Application name")
    debug: bool = Field(default=False, description="Debug mode")

    # Sub-configurations
    store: StoreConfig = Field(default_factory=StoreConfig)
    fetcher: FetcherConfig = Field(default_factory=FetcherConfig)
    refresh: RefreshConfig = Field(default_factory=RefreshConfig)
    location: LocationConfig = Field(default_factory=LocationConfig)
    sources: SourcesConfig = Field(default_factory=SourcesConfig)
    services: ServiceHealthConfig = Field(default_factory=ServiceHealthConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    web: WebConfig = Field(default_factory=WebConfig)


# Global configuration instance
_config: Optional[Config] = None

_NESTED_CONFIGS = {
    "store": StoreConfig,
    "fetcher": FetcherConfig,
    "refresh": RefreshConfig,
    "location": LocationConfig,
    "sources": SourcesConfig,
    "services": ServiceHealthConfig,
    "scheduler": SchedulerConfig,
    "logging": LoggingConfig,
    "web": WebConfig,
}


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def set_config(config: Optional[Config]) -> None:
    """Replace the global configuration instance (None resets it)."""
    global _config
    _config = config


def load_config_from_yaml(yaml_path: str) -> Config:
    """Load configuration from a YAML file.

    Note: Values loaded from YAML take precedence over environment variables.
    Sections missing from the file are still read from the environment.

    Args:
        yaml_path: Path to the YAML configuration file.

    Returns:
        Config instance loaded from the file.
    """
    import yaml

    yaml_file = Path(yaml_path)
    if not yaml_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {yaml_path}")

    with yaml_file.open("r", encoding="utf-8") as f:
        config_dict = yaml.safe_load(f) or {}

    main_config = {}
    nested_configs = {}

    for key, value in config_dict.items():
        if key in _NESTED_CONFIGS:
            nested_configs[key] = value or {}
        else:
            main_config[key] = value

    for key, config_class in _NESTED_CONFIGS.items():
        if key in nested_configs:
            nested_configs[key] = config_class(**nested_configs[key])
        else:
            nested_configs[key] = config_class()

    main_config.update(nested_configs)
    return Config(**main_config)


def reload_config() -> Config:
    """Reload configuration from environment and YAML files."""
    global _config
    _config = None

    config_yaml = Path("config/config.yaml")
    if config_yaml.exists():
        _config = load_config_from_yaml(str(config_yaml))
    else:
        _config = Config()

    return _config
