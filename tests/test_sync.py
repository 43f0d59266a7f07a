"""Tests for month synchronisation."""

from __future__ import annotations

import threading
from datetime import date
from unittest.mock import MagicMock, patch

import pytest
import requests

from src.api.marketplace import MarketplaceClient
from src.core.errors import SyncCancelledError, SyncTimeoutError, ValidationError
from src.core.models import ShipmentDay, SyncStatus
from src.core.sync import MonthSync

TODAY = date(2025, 5, 15)


class SteppingClock:
    """Monotonic clock advancing a fixed step on every read."""

    def __init__(self, step: float = 1.0) -> None:
        self.now = 0.0
        self.step = step

    def __call__(self) -> float:
        current = self.now
        self.now += self.step
        return current


class CancelAfter:
    """Client wrapper that sets a cancel event after ``n`` days."""

    def __init__(self, client, event: threading.Event, n: int) -> None:
        self.client = client
        self.event = event
        self.n = n

    def count_flex_shipments(self, seller_id, day, timeout=None, deadline=None):
        result = self.client.count_flex_shipments(seller_id, day, timeout=timeout, deadline=deadline)
        if len(self.client.requested) >= self.n:
            self.event.set()
        return result


class TestMonthSync:
    """Tests for MonthSync."""

    def test_complete_month(self, settings, repo, fake_client) -> None:
        result = MonthSync(settings, repo, fake_client).run(7, "2025-04", today=TODAY)

        assert result.status == SyncStatus.COMPLETE
        assert result.committed
        assert result.days_processed == 30
        assert result.total_synced == 300
        assert result.message == "Synced 300 shipments over 30 days"
        assert repo.count_orders(7, "2025-04") == 300
        assert repo.order_details(7, "2025-04")[0] == ShipmentDay(date(2025, 4, 1), 10)

    def test_current_month_stops_today(self, settings, repo, fake_client) -> None:
        result = MonthSync(settings, repo, fake_client).run(7, "2025-05", today=TODAY)
        assert result.days_processed == 15
        assert fake_client.requested[-1][1] == TODAY

    def test_resync_replaces_days(self, settings, repo, fake_client) -> None:
        sync = MonthSync(settings, repo, fake_client)
        sync.run(7, "2025-04", today=TODAY)
        fake_client.per_day = 1
        sync.run(7, "2025-04", today=TODAY)
        assert repo.count_orders(7, "2025-04") == 30

    def test_timeout_commits_nothing(self, settings, repo, fake_client) -> None:
        repo.replace_shipment_days(7, "2025-04", [ShipmentDay(date(2025, 4, 1), 99)])
        sync = MonthSync(settings, repo, fake_client, clock=SteppingClock(1.0))

        result = sync.run(7, "2025-04", timeout=3.5, today=TODAY)

        assert result.status == SyncStatus.TIMED_OUT
        assert not result.committed
        assert result.days_processed == 3
        assert "nothing was saved" in result.message
        assert repo.count_orders(7, "2025-04") == 99
        with pytest.raises(SyncTimeoutError):
            result.raise_for_status()

    def test_request_timeout_bounded_by_deadline(self, settings, repo, fake_client) -> None:
        settings.marketplace.request_timeout_seconds = 30
        sync = MonthSync(settings, repo, fake_client, clock=SteppingClock(1.0))
        sync.run(7, "2025-04", timeout=3.5, today=TODAY)
        timeouts = [t for _, _, t in fake_client.requested]
        assert timeouts == [2.5, 1.5, 0.5]
        assert fake_client.deadlines == [3.5, 3.5, 3.5]

    def test_paginated_day_stops_at_deadline(self, settings, repo) -> None:
        """A single busy day cannot run past the sync deadline."""
        clock = SteppingClock(1.0)
        settings.marketplace.mock_mode = False
        settings.marketplace.page_size = 1
        client = MarketplaceClient(settings, clock=clock)
        page = MagicMock(status_code=200, headers={})
        page.json.return_value = {"results": [{"shipping": {"id": 1}}], "paging": {"total": 10}}

        with patch.object(client.session, "get", return_value=page) as mock_get:
            result = MonthSync(settings, repo, client, clock=clock).run(7, "2025-04", timeout=5, today=TODAY)

        assert result.status == SyncStatus.TIMED_OUT
        assert not result.committed
        timeouts = [c.kwargs["timeout"] for c in mock_get.call_args_list]
        assert timeouts == [3.0, 2.0, 1.0]
        assert mock_get.call_count == 3

    def test_request_timeout_capped_by_settings(self, settings, repo, fake_client) -> None:
        settings.marketplace.request_timeout_seconds = 5
        MonthSync(settings, repo, fake_client, clock=lambda: 0.0).run(7, "2025-04", timeout=600, today=TODAY)
        assert {t for _, _, t in fake_client.requested} == {5}

    def test_http_timeout(self, settings, repo, fake_client) -> None:
        fake_client.fail_on = date(2025, 4, 10)
        fake_client.exc = requests.Timeout("read timed out")

        result = MonthSync(settings, repo, fake_client).run(7, "2025-04", today=TODAY)

        assert result.status == SyncStatus.TIMED_OUT
        assert result.days_processed == 9
        assert repo.count_orders(7, "2025-04") == 0

    def test_other_errors_propagate(self, settings, repo, fake_client) -> None:
        fake_client.fail_on = date(2025, 4, 2)
        fake_client.exc = requests.HTTPError("500 Server Error")
        with pytest.raises(requests.HTTPError):
            MonthSync(settings, repo, fake_client).run(7, "2025-04", today=TODAY)
        assert repo.count_orders(7, "2025-04") == 0

    def test_cancel(self, settings, repo, fake_client) -> None:
        event = threading.Event()
        client = CancelAfter(fake_client, event, 5)

        result = MonthSync(settings, repo, client).run(7, "2025-04", cancel_event=event, today=TODAY)

        assert result.status == SyncStatus.CANCELLED
        assert result.days_processed == 5
        assert not result.committed
        assert repo.count_orders(7, "2025-04") == 0
        with pytest.raises(SyncCancelledError):
            result.raise_for_status()

    def test_cancelled_before_start(self, settings, repo, fake_client) -> None:
        event = threading.Event()
        event.set()
        result = MonthSync(settings, repo, fake_client).run(7, "2025-04", cancel_event=event, today=TODAY)
        assert result.status == SyncStatus.CANCELLED
        assert fake_client.requested == []

    def test_future_month(self, settings, repo, fake_client) -> None:
        with pytest.raises(ValidationError):
            MonthSync(settings, repo, fake_client).run(7, "2025-06", today=TODAY)

    @pytest.mark.parametrize("timeout", [0, -1])
    def test_invalid_timeout(self, settings, repo, fake_client, timeout) -> None:
        with pytest.raises(ValidationError):
            MonthSync(settings, repo, fake_client).run(7, "2025-04", timeout=timeout, today=TODAY)

    def test_uses_settings_timeout(self, settings, repo, fake_client) -> None:
        settings.sync.timeout_seconds = 2
        sync = MonthSync(settings, repo, fake_client, clock=SteppingClock(1.0))
        assert sync.run(7, "2025-04", today=TODAY).days_processed == 1
