"""Export functionality for Flex Shipping Ledger."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any

import pandas as pd

from src.core.models import MonthlyCost
from src.core.reconciler import ledger_totals


class Exporter:
    """Exports ledger data to CSV."""

    COST_COLUMNS = [
        "Month",
        "Net Cost",
        "Tax",
        "Total Cost",
        "Flex Orders",
        "Cost per Order",
        "Notes",
    ]

    @staticmethod
    def monthly_costs_to_dict(costs: list[MonthlyCost], include_totals: bool = True) -> list[dict[str, Any]]:
        """Convert monthly costs to rows, oldest month first."""
        rows = []
        for c in sorted(costs, key=lambda c: c.year_month):
            rows.append({
                "Month": c.year_month,
                "Net Cost": str(c.net_cost),
                "Tax": str(c.tax_amount),
                "Total Cost": str(c.total_cost),
                "Flex Orders": c.orders_count,
                "Cost per Order": str(c.cost_per_order),
                "Notes": c.notes or "",
            })

        if include_totals and rows:
            totals = ledger_totals(costs)
            rows.append({
                "Month": "Total",
                "Net Cost": str(totals.net_cost),
                "Tax": str(totals.tax_amount),
                "Total Cost": str(totals.total_cost),
                "Flex Orders": totals.orders_count,
                "Cost per Order": "",
                "Notes": "",
            })

        return rows

    @staticmethod
    def monthly_costs_to_dataframe(costs: list[MonthlyCost]) -> pd.DataFrame:
        rows = Exporter.monthly_costs_to_dict(costs)
        return pd.DataFrame(rows, columns=Exporter.COST_COLUMNS)

    @staticmethod
    def monthly_costs_to_csv(costs: list[MonthlyCost]) -> str:
        """Render monthly costs as CSV text."""
        return Exporter.monthly_costs_to_dataframe(costs).to_csv(index=False)

    @staticmethod
    def export_monthly_costs(costs: list[MonthlyCost], output_path: Path | str) -> Path:
        """Write monthly costs to a CSV file."""
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        Exporter.monthly_costs_to_dataframe(costs).to_csv(output_path, index=False, encoding="utf-8")
        return output_path

    @staticmethod
    def generate_filename(seller_id: int, prefix: str = "flex_costs") -> str:
        """Generate a timestamped filename."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return f"{prefix}_{seller_id}_{timestamp}.csv"
