"""Pytest configuration and fixtures."""

from __future__ import annotations

from collections.abc import Generator
from datetime import date
from decimal import Decimal
from pathlib import Path
from unittest.mock import patch

import pytest

import src.db.session as session_module
from src.core.config import Settings
from src.core.models import RateConfiguration, RateTier, ServiceType, ShipmentDay
from src.db.repository import Repository


class FakeOrderSource:
    """Order source backed by a dict of ``(seller_id, year_month) -> count``."""

    def __init__(self, counts: dict[tuple[int, str], int] | None = None) -> None:
        self.counts = counts or {}
        self.calls: list[tuple[int, str]] = []

    def count_orders(self, seller_id: int, year_month: str) -> int:
        self.calls.append((seller_id, year_month))
        return self.counts.get((seller_id, year_month), 0)

    def order_details(self, seller_id: int, year_month: str) -> list[ShipmentDay]:
        return []


class FakeMarketplaceClient:
    """Marketplace client returning fixed counts per day."""

    def __init__(self, per_day: int = 10, fail_on: date | None = None, exc: Exception | None = None) -> None:
        self.per_day = per_day
        self.fail_on = fail_on
        self.exc = exc
        self.requested: list[tuple[int, date, float | None]] = []
        self.deadlines: list[float | None] = []

    def count_flex_shipments(
        self, seller_id: int, day: date, timeout: float | None = None, deadline: float | None = None
    ) -> int:
        self.requested.append((seller_id, day, timeout))
        self.deadlines.append(deadline)
        if self.fail_on is not None and day == self.fail_on:
            raise self.exc
        return self.per_day


@pytest.fixture
def settings() -> Settings:
    """Create default settings for testing."""
    s = Settings()
    s.marketplace.mock_mode = True
    s.database_url = ""
    return s


@pytest.fixture
def tiers() -> tuple[RateTier, ...]:
    """The reference courier tier table."""
    return (
        RateTier(100, 200, Decimal("3290"), Decimal("3990")),
        RateTier(201, 400, Decimal("2790"), Decimal("3290")),
        RateTier(401, 600, Decimal("2590"), Decimal("3090")),
        RateTier(601, 800, Decimal("2490"), Decimal("2990")),
        RateTier(801, 1000, Decimal("2390"), Decimal("2890")),
        RateTier(1001, None, Decimal("2290"), Decimal("2790")),
    )


@pytest.fixture
def rate_config(tiers: tuple[RateTier, ...]) -> RateConfiguration:
    return RateConfiguration(
        seller_id=7,
        tiers=tiers,
        special_zone_surcharge=Decimal("1000"),
        oversize_surcharge=Decimal("1500"),
        default_service_type=ServiceType.SAME_DAY,
        special_zone_location_ids=frozenset({"TUxDQ0xBUzM3NTc", "TUxDQ0NPTDE5OTk"}),
    )


@pytest.fixture
def database(tmp_path: Path) -> Generator[Path, None, None]:
    """Point the session layer at a fresh SQLite file."""
    db_path = tmp_path / "ledger.db"
    with patch("src.db.session.get_db_path", return_value=db_path), \
            patch("src.db.session.get_settings", return_value=Settings(database_url="")):
        session_module._engine = None
        session_module._session_factory = None
        session_module.init_database(use_migrations=False)
        try:
            yield db_path
        finally:
            session_module.close_database()


@pytest.fixture
def repo(database: Path) -> Repository:
    return Repository(precision=0)


@pytest.fixture
def order_source() -> FakeOrderSource:
    return FakeOrderSource()


@pytest.fixture
def fake_client() -> FakeMarketplaceClient:
    return FakeMarketplaceClient()
