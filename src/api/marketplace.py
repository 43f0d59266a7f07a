"""Marketplace orders API client used to count Flex shipments."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import date, datetime, time as dt_time
from typing import Any

import requests

from src.core.config import Settings

logger = logging.getLogger(__name__)


class MarketplaceRateLimitError(Exception):
    """Raised when the marketplace API rate limit is hit."""

    def __init__(self, message: str, retry_after: int | None = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class MarketplaceClient:
    """Counts unique Flex shipments per seller and day."""

    ORDERS_SEARCH_PATH = "/orders/search"

    def __init__(self, settings: Settings, clock: Callable[[], float] = time.monotonic) -> None:
        """Initialize the marketplace client.

        ``clock`` is the monotonic clock that request deadlines are measured on.
        """
        self.settings = settings
        self.clock = clock
        self.config = settings.marketplace
        self.mock_mode = settings.marketplace.mock_mode

        # Session with keep-alive
        self.session = requests.Session()
        self.session.headers.update({
            "Accept": "application/json",
            "Connection": "keep-alive",
        })
        if self.config.access_token:
            self.session.headers["Authorization"] = f"Bearer {self.config.access_token}"

    def _make_request(
        self,
        path: str,
        params: dict[str, Any],
        timeout: float | None = None,
    ) -> dict:
        """Make a GET request to the marketplace API."""
        if self.mock_mode:
            return self._mock_response(path, params)

        url = f"{self.config.base_url.rstrip('/')}{path}"
        start_time = time.time()
        response = self.session.get(
            url,
            params=params,
            timeout=timeout or self.config.request_timeout_seconds,
        )
        duration_ms = int((time.time() - start_time) * 1000)
        logger.debug(f"GET {path} -> {response.status_code} in {duration_ms}ms")

        if response.status_code == 429:
            retry_after = int(response.headers.get("Retry-After", "60"))
            raise MarketplaceRateLimitError(
                f"Rate limited. Retry after {retry_after}s", retry_after=retry_after
            )

        response.raise_for_status()
        return response.json()

    def _mock_response(self, path: str, params: dict[str, Any]) -> dict:
        """Generate a mock response for testing."""
        from src.utils.mock_data import get_mock_orders_response
        return get_mock_orders_response(params)

    def _page_timeout(self, timeout: float | None, deadline: float | None) -> float:
        """Per-request timeout, shrunk to whatever is left before ``deadline``."""
        timeout = timeout or self.config.request_timeout_seconds
        if deadline is None:
            return timeout
        remaining = deadline - self.clock()
        if remaining <= 0:
            raise requests.Timeout("Deadline reached before the next orders page")
        return min(timeout, remaining)

    def fetch_orders(
        self,
        seller_id: int,
        day: date,
        timeout: float | None = None,
        deadline: float | None = None,
    ) -> list[dict]:
        """Fetch every order a seller received on one day, following pagination.

        ``timeout`` bounds each request. ``deadline`` (on ``self.clock``) bounds
        the whole day: each page gets only the time left, and
        ``requests.Timeout`` is raised once none is left.
        """
        start = datetime.combine(day, dt_time.min)
        end = datetime.combine(day, dt_time.max).replace(microsecond=0)
        offset = 0
        orders: list[dict] = []

        while True:
            params = {
                "seller": seller_id,
                "order.date_created.from": f"{start.isoformat()}.000-00:00",
                "order.date_created.to": f"{end.isoformat()}.999-00:00",
                "offset": offset,
                "limit": self.config.page_size,
            }
            page_timeout = self._page_timeout(timeout, deadline)
            data = self._make_request(self.ORDERS_SEARCH_PATH, params, timeout=page_timeout)
            page = data.get("results", [])
            orders.extend(page)

            total = data.get("paging", {}).get("total", len(orders))
            offset += len(page)
            if not page or offset >= total:
                break

        return orders

    def count_flex_shipments(
        self,
        seller_id: int,
        day: date,
        timeout: float | None = None,
        deadline: float | None = None,
    ) -> int:
        """Count unique Flex shipments for a seller on one day.

        Orders sharing a shipment (carts) are counted once.
        """
        orders = self.fetch_orders(seller_id, day, timeout=timeout, deadline=deadline)
        shipment_ids = set()
        for order in orders:
            shipping = order.get("shipping") or {}
            if shipping.get("logistic_type") != self.config.flex_logistic_type:
                continue
            if order.get("status") == "cancelled":
                continue
            shipment_id = shipping.get("id")
            if shipment_id is not None:
                shipment_ids.add(shipment_id)
        return len(shipment_ids)
