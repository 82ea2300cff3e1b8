"""Configuration management using pydantic settings."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


class StorageConfig(BaseModel):
    """Storage configuration."""

    path: Path = Field(default=Path("tradelog.db"))


class JournalConfig(BaseModel):
    """Journal defaults."""

    default_initial_capital: float = Field(default=0.0, ge=0.0)


class AuditConfig(BaseModel):
    """AI audit selection and nudge configuration."""

    max_trades: int = Field(
        default=200,
        ge=1,
        description="Maximum number of trades sent to a single audit",
    )
    default_last_n: int = Field(default=20, ge=1)

    # Consecutive losing trades before an audit is suggested
    streak_threshold: int = Field(default=3, ge=1)

    # Suggest an audit every N logged trades
    milestone_every: int = Field(default=10, ge=1)

    # Number of new trades a dismissed streak nudge stays quiet for
    dismiss_window: int = Field(default=10, ge=1)


class ExportConfig(BaseModel):
    """Spreadsheet export configuration."""

    decimal_separator: str = Field(default=",", min_length=1, max_length=1)
    thousands_separator: str = Field(default=".", min_length=1, max_length=1)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    log_dir: Path = Field(default=Path("logs"))
    json_format: bool = Field(default=True)


class Settings(BaseSettings):
    """Application settings."""

    storage: StorageConfig = Field(default_factory=StorageConfig)
    journal: JournalConfig = Field(default_factory=JournalConfig)
    audit: AuditConfig = Field(default_factory=AuditConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {
        "env_prefix": "TRADELOG_",
        "env_nested_delimiter": "__",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


def load_settings() -> Settings:
    """Load settings from environment variables."""
    return Settings()
