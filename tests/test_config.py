"""Tests for settings."""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import patch

from src.core.config import Settings, reload_settings
from src.core.tiers import default_configuration, validate_tier_list


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self):
        settings = Settings()
        assert settings.tax_rate == Decimal("0.19")
        assert settings.currency_precision == 0
        assert settings.sync.timeout_seconds == 600
        assert settings.marketplace.flex_logistic_type == "self_service"
        assert len(settings.rates.tiers) == 6

    def test_default_tiers_partition_volume(self):
        validate_tier_list(default_configuration(1, Settings().rates).tiers)

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("FLEX_TAX_RATE", "0.21")
        monkeypatch.setenv("FLEX_MARKETPLACE__MOCK_MODE", "true")
        monkeypatch.setenv("FLEX_SYNC__TIMEOUT_SECONDS", "120")
        settings = Settings()
        assert settings.tax_rate == Decimal("0.21")
        assert settings.marketplace.mock_mode is True
        assert settings.sync.timeout_seconds == 120

    def test_save_and_load(self, tmp_path):
        with patch("src.core.config.get_config_dir", return_value=tmp_path):
            settings = Settings()
            settings.tax_rate = Decimal("0.10")
            settings.rates.special_zone_surcharge = Decimal("1200")
            settings.save()

            assert (tmp_path / "settings.json").exists()
            loaded = Settings.load()

        assert loaded.tax_rate == Decimal("0.10")
        assert loaded.rates.special_zone_surcharge == Decimal("1200")
        assert loaded.rates.tiers[-1].max_shipments is None

    def test_load_ignores_corrupt_file(self, tmp_path):
        (tmp_path / "settings.json").write_text("{not json")
        with patch("src.core.config.get_config_dir", return_value=tmp_path):
            loaded = Settings.load()
        assert loaded.tax_rate == Decimal("0.19")

    def test_reload_settings(self, tmp_path):
        with patch("src.core.config.get_config_dir", return_value=tmp_path):
            Settings(tax_rate=Decimal("0.05")).save()
            assert reload_settings().tax_rate == Decimal("0.05")
            (tmp_path / "settings.json").unlink()
            assert reload_settings().tax_rate == Decimal("0.19")
