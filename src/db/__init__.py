"""Database layer for Flex Shipping Ledger."""

from .models import Base, MonthlyCostDB, RateConfigurationDB, ShipmentDayDB
from .repository import Repository
from .session import get_engine, get_session, init_database, session_scope

__all__ = [
    "Base",
    "RateConfigurationDB",
    "MonthlyCostDB",
    "ShipmentDayDB",
    "Repository",
    "get_engine",
    "get_session",
    "init_database",
    "session_scope",
]
