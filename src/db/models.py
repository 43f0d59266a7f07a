"""SQLAlchemy database models for Flex Shipping Ledger."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


class RateConfigurationDB(Base):
    """Courier rate configuration, one row per seller."""

    __tablename__ = "rate_configurations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    seller_id: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)

    # Tier list JSON, replaced as a whole on every save
    rate_tiers_json: Mapped[str] = mapped_column(Text, default="[]")

    special_zone_surcharge: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"))
    oversize_surcharge: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"))
    default_service_type: Mapped[str] = mapped_column(String(20), default="same_day")

    # Location id list JSON
    special_zone_location_ids_json: Mapped[str] = mapped_column(Text, default="[]")

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, onupdate=datetime.now)


class MonthlyCostDB(Base):
    """Monthly Flex courier cost for a seller."""

    __tablename__ = "monthly_costs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    seller_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    year_month: Mapped[str] = mapped_column(String(7), nullable=False)

    total_cost: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    net_cost: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0"))
    tax_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0"))
    orders_count: Mapped[int] = mapped_column(Integer, default=0)
    cost_per_order: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0"))
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, onupdate=datetime.now)

    __table_args__ = (UniqueConstraint("seller_id", "year_month", name="uq_monthly_cost_seller_month"),)


class ShipmentDayDB(Base):
    """Unique Flex shipments synced for a seller and day."""

    __tablename__ = "shipment_days"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    seller_id: Mapped[int] = mapped_column(Integer, nullable=False)
    year_month: Mapped[str] = mapped_column(String(7), nullable=False)
    ship_date: Mapped[date] = mapped_column(Date, nullable=False)
    shipments_count: Mapped[int] = mapped_column(Integer, default=0)

    synced_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)

    __table_args__ = (
        UniqueConstraint("seller_id", "ship_date", name="uq_shipment_day_seller_date"),
        Index("ix_shipment_days_seller_month", "seller_id", "year_month"),
    )
