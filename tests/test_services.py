"""Tests for the rate configuration and monthly cost services."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from src.core.errors import InvalidAmountError, NotFoundError, TierGapError, ValidationError
from src.core.models import ABSENT, Found, RateTier, ServiceType, ShipmentDay
from src.core.months import current_year_month
from src.core.services import MonthlyCostService, RateConfigurationService
from src.db.repository import Repository


class TestRateConfigurationService:
    """Tests for RateConfigurationService."""

    def test_save_validates_tiers(self, settings, repo, tiers) -> None:
        service = RateConfigurationService(settings, repo)
        with pytest.raises(TierGapError):
            service.save(7, tiers[:-1], Decimal("1000"))
        assert service.get(7) is ABSENT

    def test_save_rejects_negative_surcharge(self, settings, repo, tiers) -> None:
        service = RateConfigurationService(settings, repo)
        with pytest.raises(ValidationError):
            service.save(7, tiers, Decimal("-1"))
        with pytest.raises(ValidationError):
            service.save(7, tiers, Decimal("0"), oversize_surcharge=Decimal("-5"))

    def test_save_parses_service_type(self, settings, repo, tiers) -> None:
        service = RateConfigurationService(settings, repo)
        saved = service.save(7, tiers, Decimal("1000"), default_service_type="next_day_v_region")
        assert saved.default_service_type == ServiceType.NEXT_DAY

        with pytest.raises(ValidationError):
            service.save(7, tiers, Decimal("1000"), default_service_type="overnight")

    def test_save_and_get(self, settings, repo, tiers) -> None:
        service = RateConfigurationService(settings, repo)
        service.save(7, tiers, Decimal("1000"), special_zone_location_ids=["TUxDQ0xBUzM3NTc"])
        lookup = service.get(7)
        assert isinstance(lookup, Found)
        assert lookup.value.special_zone_location_ids == frozenset({"TUxDQ0xBUzM3NTc"})

    def test_set_active_missing(self, settings, repo) -> None:
        with pytest.raises(NotFoundError):
            RateConfigurationService(settings, repo).set_active(7, False)

    def test_current_rate_uses_stored_tiers(self, settings, repo, order_source) -> None:
        order_source.counts[(7, "2025-03")] = 150
        orders = order_source
        service = RateConfigurationService(settings, repo, orders)
        service.save(
            7,
            [
                RateTier(1, 100, Decimal("5000"), Decimal("6000")),
                RateTier(101, None, Decimal("4000"), Decimal("4500")),
            ],
            Decimal("0"),
        )
        result = service.current_rate(7, "2025-03")
        assert result.shipments_count == 150
        assert result.same_day_rate == Decimal("4000")

    def test_current_rate_falls_back_to_defaults(self, settings, repo, order_source) -> None:
        order_source.counts[(7, "2025-03")] = 350
        orders = order_source
        result = RateConfigurationService(settings, repo, orders).current_rate(7, "2025-03")
        assert result.current_tier.min_shipments == 201
        assert result.same_day_rate == Decimal("2790")
        assert result.next_day_rate == Decimal("3290")

    def test_inactive_configuration_is_ignored(self, settings, repo, order_source) -> None:
        order_source.counts[(7, "2025-03")] = 150
        orders = order_source
        service = RateConfigurationService(settings, repo, orders)
        service.save(7, [RateTier(1, None, Decimal("9999"), Decimal("9999"))], Decimal("0"))
        service.set_active(7, False)
        assert service.current_rate(7, "2025-03").same_day_rate == Decimal("3290")

    def test_current_rate_counts_fresh_each_call(self, settings, repo, order_source) -> None:
        order_source.counts[(7, "2025-03")] = 150
        orders = order_source
        service = RateConfigurationService(settings, repo, orders)
        assert service.current_rate(7, "2025-03").current_tier.min_shipments == 100
        orders.counts[(7, "2025-03")] = 450
        assert service.current_rate(7, "2025-03").current_tier.min_shipments == 401
        assert orders.calls == [(7, "2025-03"), (7, "2025-03")]

    def test_current_rate_defaults_to_current_month(self, settings, repo, order_source) -> None:
        result = RateConfigurationService(settings, repo, order_source).current_rate(7)
        assert result.year_month == current_year_month()
        assert result.current_tier is None

    def test_shipments_count_from_synced_days(self, settings, repo) -> None:
        repo.replace_shipment_days(7, "2025-03", [ShipmentDay(date(2025, 3, 1), 40), ShipmentDay(date(2025, 3, 2), 2)])
        data = RateConfigurationService(settings, repo).shipments_count(7, "2025-03")
        assert data == {"seller_id": 7, "year_month": "2025-03", "unique_shipments": 42}

    def test_invalid_month(self, settings, repo) -> None:
        with pytest.raises(ValidationError):
            RateConfigurationService(settings, repo).current_rate(7, "March")


class TestMonthlyCostService:
    """Tests for MonthlyCostService."""

    def test_upsert_derives_fields(self, settings, repo, order_source) -> None:
        order_source.counts[(7, "2025-03")] = 300
        orders = order_source
        cost = MonthlyCostService(settings, repo, orders).upsert(7, "2025-03", Decimal("150000"), "Invoice 1234")
        assert cost.net_cost == Decimal("126050")
        assert cost.tax_amount == Decimal("23950")
        assert cost.orders_count == 300
        assert cost.cost_per_order == Decimal("420")
        assert cost.notes == "Invoice 1234"

    def test_upsert_refetches_orders(self, settings, repo, order_source) -> None:
        order_source.counts[(7, "2025-03")] = 300
        orders = order_source
        service = MonthlyCostService(settings, repo, orders)
        service.upsert(7, "2025-03", Decimal("150000"))

        orders.counts[(7, "2025-03")] = 310
        cost = service.upsert(7, "2025-03", Decimal("150000"))

        assert cost.orders_count == 310
        assert cost.cost_per_order == Decimal("407")
        assert len(orders.calls) == 2
        assert len(service.list_costs(7)) == 1

    def test_upsert_without_orders(self, settings, repo, order_source) -> None:
        cost = MonthlyCostService(settings, repo, order_source).upsert(7, "2025-03", Decimal("150000"))
        assert cost.orders_count == 0
        assert cost.cost_per_order == Decimal("0")

    def test_upsert_clears_notes(self, settings, repo, order_source) -> None:
        service = MonthlyCostService(settings, repo, order_source)
        service.upsert(7, "2025-03", Decimal("150000"), "note")
        assert service.upsert(7, "2025-03", Decimal("150000"), "").notes is None

    def test_upsert_invalid_total_stores_nothing(self, settings, repo, order_source) -> None:
        service = MonthlyCostService(settings, repo, order_source)
        with pytest.raises(ValidationError):
            service.upsert(7, "2025-03", Decimal("0"))
        assert service.get(7, "2025-03") is ABSENT

    def test_upsert_rejects_total_finer_than_currency(self, settings, repo, order_source) -> None:
        service = MonthlyCostService(settings, repo, order_source)
        with pytest.raises(InvalidAmountError):
            service.upsert(7, "2025-03", Decimal("100.5"))
        assert service.get(7, "2025-03") is ABSENT

    def test_saved_amounts_read_back_unchanged(self, settings, repo, order_source) -> None:
        settings.currency_precision = 2
        order_source.counts[(7, "2025-03")] = 3
        service = MonthlyCostService(settings, repo, order_source)
        saved = service.upsert(7, "2025-03", Decimal("100.50"))
        stored = MonthlyCostService(settings, Repository(precision=2), order_source).get(7, "2025-03").value

        assert saved.net_cost + saved.tax_amount == Decimal("100.50")
        for field in ("total_cost", "net_cost", "tax_amount", "cost_per_order"):
            assert getattr(stored, field) == getattr(saved, field), field
        assert stored.tax_amount == Decimal("16.05")

    def test_uses_configured_tax_rate(self, settings, repo, order_source) -> None:
        settings.tax_rate = Decimal("0")
        cost = MonthlyCostService(settings, repo, order_source).upsert(7, "2025-03", Decimal("150000"))
        assert cost.net_cost == Decimal("150000")
        assert cost.tax_amount == Decimal("0")

    def test_delete(self, settings, repo, order_source) -> None:
        service = MonthlyCostService(settings, repo, order_source)
        service.upsert(7, "2025-03", Decimal("150000"))
        service.delete(7, "2025-03")
        assert service.get(7, "2025-03") is ABSENT
        with pytest.raises(NotFoundError):
            service.delete(7, "2025-03")

    def test_default_order_source_is_repository(self, settings, repo) -> None:
        repo.replace_shipment_days(7, "2025-03", [ShipmentDay(date(2025, 3, 1), 25)])
        cost = MonthlyCostService(settings, repo).upsert(7, "2025-03", Decimal("119000"))
        assert cost.orders_count == 25
        assert cost.cost_per_order == Decimal("4000")
