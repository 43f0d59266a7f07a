"""Configuration management for Flex Shipping Ledger."""

from __future__ import annotations

import json
import logging
from decimal import Decimal
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    config_dir = Path.home() / ".flex-shipping-ledger"
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_data_dir() -> Path:
    """Get the data directory path."""
    data_dir = get_config_dir() / "data"
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir


def get_db_path() -> Path:
    """Get the SQLite database file path."""
    return get_data_dir() / "ledger.db"


class RateTierConfig(BaseModel):
    """Default volume tier."""

    min_shipments: int
    max_shipments: int | None = None
    same_day_rate: Decimal
    next_day_rate: Decimal


def _default_tiers() -> list[RateTierConfig]:
    return [
        RateTierConfig(min_shipments=100, max_shipments=200, same_day_rate=Decimal("3290"), next_day_rate=Decimal("3990")),
        RateTierConfig(min_shipments=201, max_shipments=400, same_day_rate=Decimal("2790"), next_day_rate=Decimal("3290")),
        RateTierConfig(min_shipments=401, max_shipments=600, same_day_rate=Decimal("2590"), next_day_rate=Decimal("3090")),
        RateTierConfig(min_shipments=601, max_shipments=800, same_day_rate=Decimal("2490"), next_day_rate=Decimal("2990")),
        RateTierConfig(min_shipments=801, max_shipments=1000, same_day_rate=Decimal("2390"), next_day_rate=Decimal("2890")),
        RateTierConfig(min_shipments=1001, max_shipments=None, same_day_rate=Decimal("2290"), next_day_rate=Decimal("2790")),
    ]


class RatesConfig(BaseModel):
    """Courier rate defaults used when a seller has no stored configuration."""

    tiers: list[RateTierConfig] = Field(default_factory=_default_tiers)
    special_zone_surcharge: Decimal = Decimal("1000")
    oversize_surcharge: Decimal = Decimal("0")
    default_service_type: str = "same_day"


class MarketplaceConfig(BaseModel):
    """Marketplace API configuration."""

    base_url: str = "https://api.mercadolibre.com"
    access_token: str = ""
    flex_logistic_type: str = "self_service"
    request_timeout_seconds: int = 30
    page_size: int = 50
    mock_mode: bool = False


class SyncConfig(BaseModel):
    """Monthly sync configuration."""

    timeout_seconds: int = 600  # A full month can take several minutes


class WebConfig(BaseModel):
    """HTTP API configuration."""

    host: str = "127.0.0.1"
    port: int = 5050


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=str(get_config_dir() / ".env"),
        env_file_encoding="utf-8",
        env_prefix="FLEX_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Reconciliation
    tax_rate: Decimal = Decimal("0.19")  # Chilean IVA
    currency_precision: int = Field(default=0, ge=0, le=2)  # CLP has no subunit; money columns keep 2 decimals

    rates: RatesConfig = Field(default_factory=RatesConfig)
    marketplace: MarketplaceConfig = Field(default_factory=MarketplaceConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    web: WebConfig = Field(default_factory=WebConfig)

    # Empty means SQLite under the data dir
    database_url: str = ""

    log_level: str = "INFO"

    def save(self) -> None:
        """Save settings to the config file."""
        config_path = get_config_dir() / "settings.json"
        data = self.model_dump(mode="json")
        # Convert Decimal to string for JSON serialization
        data = self._convert_decimals(data)
        with open(config_path, "w") as f:
            json.dump(data, f, indent=2)

    def _convert_decimals(self, obj: Any) -> Any:
        """Recursively convert Decimal to string for JSON serialization."""
        if isinstance(obj, Decimal):
            return str(obj)
        elif isinstance(obj, dict):
            return {k: self._convert_decimals(v) for k, v in obj.items()}
        elif isinstance(obj, list):
            return [self._convert_decimals(item) for item in obj]
        return obj

    @classmethod
    def load(cls) -> "Settings":
        """Load settings from the config file or create defaults."""
        config_path = get_config_dir() / "settings.json"

        settings = cls()

        if config_path.exists():
            try:
                with open(config_path) as f:
                    data = json.load(f)
                settings = cls.model_validate(data)
            except (OSError, ValueError) as e:
                logger.warning(f"Ignoring unreadable settings file {config_path}: {e}")

        return settings


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def reload_settings() -> Settings:
    """Reload settings from disk."""
    global _settings
    _settings = Settings.load()
    return _settings
