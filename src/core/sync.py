"""Monthly Flex shipment synchronisation."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from datetime import date
from typing import TYPE_CHECKING

import requests

from .errors import ValidationError
from .models import ShipmentDay, SyncMonthResult, SyncStatus
from .months import month_bounds, month_days

if TYPE_CHECKING:
    from src.api.marketplace import MarketplaceClient
    from src.db.repository import Repository

    from .config import Settings

logger = logging.getLogger(__name__)


class MonthSync:
    """Counts a month of Flex shipments day by day and stores them atomically.

    The sync runs under a deadline and can be cancelled through a
    ``threading.Event``. Shipment days are only written once every day of the
    month has been counted; a timed out or cancelled run stores nothing and
    returns the partial breakdown for reporting.

    The deadline is passed on to the client so that paginated days stop in
    time as well; ``clock`` must be the clock the client measures on.
    """

    def __init__(
        self,
        settings: Settings,
        repo: Repository,
        client: MarketplaceClient,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings
        self.repo = repo
        self.client = client
        self.clock = clock

    def run(
        self,
        seller_id: int,
        year_month: str,
        timeout: float | None = None,
        cancel_event: threading.Event | None = None,
        today: date | None = None,
    ) -> SyncMonthResult:
        """Sync one month for a seller."""
        today = today or date.today()
        first_day, _ = month_bounds(year_month)
        if first_day > today:
            raise ValidationError(f"Cannot sync {year_month}: month has not started")

        timeout = timeout if timeout is not None else self.settings.sync.timeout_seconds
        if timeout <= 0:
            raise ValidationError(f"Sync timeout must be positive, got {timeout}")
        deadline = self.clock() + timeout

        days = month_days(year_month, until=today)
        details: list[ShipmentDay] = []
        logger.info(f"Syncing {year_month} for seller {seller_id} ({len(days)} days, timeout {timeout}s)")

        for day in days:
            if cancel_event is not None and cancel_event.is_set():
                return self._abandon(seller_id, year_month, SyncStatus.CANCELLED, details)

            remaining = deadline - self.clock()
            if remaining <= 0:
                return self._abandon(seller_id, year_month, SyncStatus.TIMED_OUT, details)

            request_timeout = min(remaining, self.settings.marketplace.request_timeout_seconds)
            try:
                synced = self.client.count_flex_shipments(
                    seller_id, day, timeout=request_timeout, deadline=deadline
                )
            except requests.Timeout:
                logger.warning(f"Marketplace request for {day} timed out")
                return self._abandon(seller_id, year_month, SyncStatus.TIMED_OUT, details)

            details.append(ShipmentDay(day=day, synced=synced))

        self.repo.replace_shipment_days(seller_id, year_month, details)
        result = SyncMonthResult(
            seller_id=seller_id,
            year_month=year_month,
            status=SyncStatus.COMPLETE,
            details=details,
            committed=True,
        )
        result.message = f"Synced {result.total_synced} shipments over {result.days_processed} days"
        logger.info(f"Seller {seller_id} {year_month}: {result.message}")
        return result

    def _abandon(
        self,
        seller_id: int,
        year_month: str,
        status: SyncStatus,
        details: list[ShipmentDay],
    ) -> SyncMonthResult:
        if status == SyncStatus.TIMED_OUT:
            message = (
                f"Sync of {year_month} ran out of time after {len(details)} days; "
                "nothing was saved. Try again with a longer timeout or a quieter month."
            )
        else:
            message = f"Sync of {year_month} was cancelled after {len(details)} days; nothing was saved."
        logger.warning(f"Seller {seller_id}: {message}")
        return SyncMonthResult(
            seller_id=seller_id,
            year_month=year_month,
            status=status,
            details=details,
            committed=False,
            message=message,
        )
