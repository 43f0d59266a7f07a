"""Mock data generators for running without marketplace credentials."""

from __future__ import annotations

import random
from typing import Any

LOGISTIC_TYPES = ["self_service", "self_service", "self_service", "cross_docking", "fulfillment"]


def get_mock_orders_response(params: dict[str, Any]) -> dict:
    """Generate a mock orders search page for one seller and day."""
    seller_id = params.get("seller", 0)
    day = str(params.get("order.date_created.from", ""))[:10]
    offset = int(params.get("offset", 0))
    limit = int(params.get("limit", 50))

    orders = _generate_mock_orders(seller_id, day)
    return {
        "query": str(seller_id),
        "results": orders[offset:offset + limit],
        "paging": {"total": len(orders), "offset": offset, "limit": limit},
    }


def _generate_mock_orders(seller_id: Any, day: str) -> list[dict]:
    """Orders are stable for a given seller and day."""
    rng = random.Random(f"{seller_id}:{day}")
    order_count = rng.randint(0, 60)

    orders = []
    shipment_id = rng.randint(40_000_000_000, 49_000_000_000)
    for i in range(order_count):
        # Roughly one order in eight joins the previous order's cart
        if i == 0 or rng.random() > 0.125:
            shipment_id += rng.randint(1, 500)
            logistic_type = rng.choice(LOGISTIC_TYPES)

        orders.append({
            "id": 2_000_000_000_000 + rng.randint(0, 999_999_999),
            "status": "cancelled" if rng.random() < 0.05 else "paid",
            "date_created": f"{day}T{rng.randint(0, 23):02d}:{rng.randint(0, 59):02d}:00.000-04:00",
            "shipping": {"id": shipment_id, "logistic_type": logistic_type},
        })
    return orders
