"""Configuration management for the application status reporter."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import tomllib


class LoggingConfig(BaseModel):
    """Logging configuration settings."""

    # Logging severity threshold (INFO/DEBUG/etc.).
    level: str = Field(default="INFO", description="Logging level")
    # Emit JSON if True; otherwise emit a human-readable format.
    json_format: bool = Field(default=True, description="Emit JSON logs")
    # Optional file path for log output; if None, logs go to stdout.
    log_file: str | None = Field(default=None, description="Optional log file path")
    # Maximum size (bytes) before log rotation.
    max_bytes: int = Field(default=1_000_000, description="Max log file size before rotation")
    # Number of backup files to retain.
    backup_count: int = Field(default=3, description="Number of rotated log files to keep")


class StatusSettings(BaseSettings):
    """Configuration settings loaded from env or optional TOML."""

    # Environment keys use APPSTATUS_ prefix and "__" nesting.
    model_config = SettingsConfigDict(env_prefix="APPSTATUS_", env_nested_delimiter="__", extra="ignore")

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    # Period of the composite status report.
    status_update_interval_s: float = Field(
        default=300.0, gt=0, allow_inf_nan=False, description="Status report interval (seconds)"
    )
    # Period of the timezone report; zero or negative disables it.
    timezone_update_interval_s: float = Field(
        default=86_400.0, allow_inf_nan=False, description="Timezone report interval (seconds)"
    )
    # SNTP server host (optionally host:port); None disables reference time.
    time_sync_server: str | None = Field(default=None, description="SNTP server address")
    # Upper bound on one SNTP exchange.
    time_sync_timeout_s: float = Field(
        default=5.0, gt=0, allow_inf_nan=False, description="SNTP request timeout (seconds)"
    )
    # Report the local network address with the server status.
    include_ip_address: bool = Field(default=False, description="Include local IP address in server status")
    # Run the first status tick at start instead of after one interval.
    run_on_start: bool = Field(default=False, description="Run first status report immediately")

    @field_validator("time_sync_server")
    @classmethod
    def _blank_server_disables(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value.strip()

    @classmethod
    def from_toml(cls, path: str | Path) -> "StatusSettings":
        data = tomllib.loads(Path(path).read_text())
        return cls.model_validate(data)
