#!/usr/bin/env python3
"""Sync one month of Flex shipments for a seller and print the resulting rate.

Usage: python scripts/sync_month.py SELLER_ID [YYYY-MM] [TIMEOUT_SECONDS]
"""

import sys
sys.path.insert(0, '.')

from src.api.marketplace import MarketplaceClient
from src.core.config import get_settings
from src.core.months import current_year_month
from src.core.services import RateConfigurationService
from src.core.sync import MonthSync
from src.db.repository import Repository
from src.db.session import init_database


def main() -> int:
    if len(sys.argv) < 2:
        print(__doc__)
        return 2

    seller_id = int(sys.argv[1])
    year_month = sys.argv[2] if len(sys.argv) > 2 else current_year_month()
    timeout = float(sys.argv[3]) if len(sys.argv) > 3 else None

    settings = get_settings()
    init_database()
    repo = Repository()

    result = MonthSync(settings, repo, MarketplaceClient(settings)).run(
        seller_id, year_month, timeout=timeout
    )
    for day in result.details:
        print(f"  {day.day.isoformat()}: {day.synced}")
    print(result.message)

    if not result.is_complete:
        return 1

    rate = RateConfigurationService(settings, repo).current_rate(seller_id, year_month)
    tier = rate.current_tier.label if rate.current_tier else "no tier yet"
    print(f"{rate.shipments_count} shipments -> {tier}")
    print(f"  same day: ${rate.same_day_rate}  next day: ${rate.next_day_rate}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
