"""
Environment-driven settings for the venue inventory service.

Each concern reads its own prefix (`STORAGE_`, `LEDGER_`, `PROCUREMENT_`,
`API_`); top-level values such as `LOG_LEVEL` have no prefix.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Where the ledger database lives and how connections are tuned."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    data_dir: Path = Path("data")
    db_name: str = "venue_inventory.db"
    pool_size: int = Field(default=5, ge=1)
    busy_timeout: int = Field(default=30000, ge=0)  # ms

    @model_validator(mode="after")
    def create_data_dir(self) -> "StorageSettings":
        self.data_dir.mkdir(parents=True, exist_ok=True)
        return self

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name


class LedgerSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="LEDGER_")

    default_consumption_method: Literal["FIFO", "LIFO"] = "FIFO"
    expiry_warning_days: int = Field(default=7, ge=0, le=365)
    expiry_sweep_limit: int = Field(default=500, gt=0)  # records per sweep run

    # Saves that lose a version race are retried this many times in total
    conflict_max_attempts: int = Field(default=3, ge=1)
    conflict_retry_delay: float = Field(default=0.05, ge=0)  # seconds
    conflict_retry_max_delay: float = Field(default=1.0, ge=0)


class ProcurementSettings(BaseSettings):
    """Purchase order numbering and money defaults."""

    model_config = SettingsConfigDict(env_prefix="PROCUREMENT_")

    default_tax_rate: float = Field(default=0.16, ge=0, le=1)
    default_currency: str = "MXN"
    purchase_order_prefix: str = "PO"
    purchase_order_digits: int = Field(default=6, ge=1, le=12)

    @field_validator("default_currency", "purchase_order_prefix")
    @classmethod
    def upper_code(cls, v: str) -> str:
        v = v.strip().upper()
        if not v:
            raise ValueError("must not be blank")
        return v


class APISettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    cors_origins: list[str] = ["*"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Venue Inventory Engine"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["auto", "console", "json"] = "auto"

    storage: StorageSettings = Field(default_factory=StorageSettings)
    ledger: LedgerSettings = Field(default_factory=LedgerSettings)
    procurement: ProcurementSettings = Field(default_factory=ProcurementSettings)
    api: APISettings = Field(default_factory=APISettings)


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return the process-wide settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
