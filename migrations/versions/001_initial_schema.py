"""Initial schema

Revision ID: 001
Revises:
Create Date: 2025-06-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Rate configurations table
    op.create_table(
        "rate_configurations",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("seller_id", sa.Integer(), nullable=False),
        sa.Column("rate_tiers_json", sa.Text(), default="[]"),
        sa.Column("special_zone_surcharge", sa.Numeric(12, 2), default=0),
        sa.Column("oversize_surcharge", sa.Numeric(12, 2), default=0),
        sa.Column("default_service_type", sa.String(20), default="same_day"),
        sa.Column("special_zone_location_ids_json", sa.Text(), default="[]"),
        sa.Column("is_active", sa.Boolean(), default=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("seller_id"),
    )
    op.create_index("ix_rate_configurations_is_active", "rate_configurations", ["is_active"])

    # Monthly costs table
    op.create_table(
        "monthly_costs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("seller_id", sa.Integer(), nullable=False),
        sa.Column("year_month", sa.String(7), nullable=False),
        sa.Column("total_cost", sa.Numeric(14, 2), nullable=False),
        sa.Column("net_cost", sa.Numeric(14, 2), default=0),
        sa.Column("tax_amount", sa.Numeric(14, 2), default=0),
        sa.Column("orders_count", sa.Integer(), default=0),
        sa.Column("cost_per_order", sa.Numeric(14, 2), default=0),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("seller_id", "year_month", name="uq_monthly_cost_seller_month"),
    )
    op.create_index("ix_monthly_costs_seller_id", "monthly_costs", ["seller_id"])

    # Shipment days table
    op.create_table(
        "shipment_days",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("seller_id", sa.Integer(), nullable=False),
        sa.Column("year_month", sa.String(7), nullable=False),
        sa.Column("ship_date", sa.Date(), nullable=False),
        sa.Column("shipments_count", sa.Integer(), default=0),
        sa.Column("synced_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("seller_id", "ship_date", name="uq_shipment_day_seller_date"),
    )
    op.create_index("ix_shipment_days_seller_month", "shipment_days", ["seller_id", "year_month"])


def downgrade() -> None:
    op.drop_index("ix_shipment_days_seller_month", table_name="shipment_days")
    op.drop_table("shipment_days")

    op.drop_index("ix_monthly_costs_seller_id", table_name="monthly_costs")
    op.drop_table("monthly_costs")

    op.drop_index("ix_rate_configurations_is_active", table_name="rate_configurations")
    op.drop_table("rate_configurations")
