"""Volume-tiered courier rate resolution for Flex Shipping Ledger."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from decimal import Decimal
from typing import TYPE_CHECKING

from .errors import TierGapError, TierOverlapError, TierValidationError, ValidationError
from .models import CurrentRateResult, RateConfiguration, RateTier, ServiceType
from .months import validate_year_month

if TYPE_CHECKING:
    from .config import RatesConfig


def validate_tier_list(tiers: Sequence[RateTier]) -> None:
    """Reject tier lists that do not partition the volume axis.

    Tiers must be sorted by ``min_shipments``, each starting exactly one
    shipment after the previous upper bound, and only the last tier may be
    unbounded.

    Raises:
        TierOverlapError: two tiers cover the same volume (includes unsorted
            lists and an unbounded tier that is not last).
        TierGapError: some volume is not covered by any tier.
        TierValidationError: a single tier is malformed or the list is empty.
    """
    if not tiers:
        raise TierValidationError("At least one rate tier is required")

    for index, tier in enumerate(tiers):
        if tier.min_shipments < 1:
            raise TierValidationError(
                f"Tier {index + 1}: min_shipments must be at least 1", tier_index=index
            )
        if tier.max_shipments is not None and tier.max_shipments < tier.min_shipments:
            raise TierValidationError(
                f"Tier {index + 1}: max_shipments ({tier.max_shipments}) is below "
                f"min_shipments ({tier.min_shipments})",
                tier_index=index,
            )
        rates = (tier.same_day_rate, tier.next_day_rate)
        if any(not r.is_finite() or r < 0 for r in rates):
            raise TierValidationError(
                f"Tier {index + 1}: rates must be finite and not negative", tier_index=index
            )

    for index in range(1, len(tiers)):
        previous, tier = tiers[index - 1], tiers[index]
        if previous.max_shipments is None:
            raise TierOverlapError(
                f"Tier {index}: only the last tier may be unbounded", tier_index=index - 1
            )
        expected_min = previous.max_shipments + 1
        if tier.min_shipments < expected_min:
            raise TierOverlapError(
                f"Tier {index + 1} ({tier.label}) overlaps tier {index} ({previous.label})",
                tier_index=index,
            )
        if tier.min_shipments > expected_min:
            raise TierGapError(
                f"Gap between tier {index} ({previous.label}) and tier {index + 1} "
                f"({tier.label}): {expected_min}-{tier.min_shipments - 1} not covered",
                tier_index=index,
            )

    if tiers[-1].max_shipments is not None:
        raise TierGapError(
            f"Last tier ({tiers[-1].label}) must be unbounded", tier_index=len(tiers) - 1
        )


def find_tier(tiers: Iterable[RateTier], shipments_count: int) -> RateTier | None:
    """First tier in ascending ``min_shipments`` order containing the count."""
    for tier in sorted(tiers, key=lambda t: t.min_shipments):
        if tier.contains(shipments_count):
            return tier
    return None


def resolve_rate(
    config: RateConfiguration, shipments_count: int, year_month: str
) -> CurrentRateResult:
    """Resolve the tier and rates that apply to a month's shipment volume.

    A volume below every tier yields no tier and zero rates. Surcharges are
    not included; see :func:`quote_shipment`.
    """
    if shipments_count < 0:
        raise ValidationError(f"shipments_count must not be negative, got {shipments_count}")
    validate_year_month(year_month)

    tier = find_tier(config.tiers, shipments_count)
    if tier is None:
        return CurrentRateResult(
            shipments_count=shipments_count,
            current_tier=None,
            same_day_rate=Decimal("0"),
            next_day_rate=Decimal("0"),
            year_month=year_month,
        )

    return CurrentRateResult(
        shipments_count=shipments_count,
        current_tier=tier,
        same_day_rate=tier.same_day_rate,
        next_day_rate=tier.next_day_rate,
        year_month=year_month,
    )


def quote_shipment(
    config: RateConfiguration,
    rate: CurrentRateResult,
    service_type: ServiceType | None = None,
    location_id: str | None = None,
    oversize: bool = False,
) -> Decimal:
    """Price one shipment: tier rate plus any applicable surcharges."""
    if rate.current_tier is None:
        raise ValidationError(
            f"No tier applies to {rate.shipments_count} shipments in {rate.year_month}"
        )

    service = service_type or config.default_service_type
    price = rate.current_tier.rate_for(service)

    if location_id is not None and location_id in config.special_zone_location_ids:
        price += config.special_zone_surcharge
    if oversize:
        price += config.oversize_surcharge

    return price


def default_configuration(seller_id: int, rates: RatesConfig) -> RateConfiguration:
    """Build an unsaved configuration from the settings defaults."""
    return RateConfiguration(
        seller_id=seller_id,
        tiers=tuple(
            RateTier(
                min_shipments=t.min_shipments,
                max_shipments=t.max_shipments,
                same_day_rate=t.same_day_rate,
                next_day_rate=t.next_day_rate,
            )
            for t in rates.tiers
        ),
        special_zone_surcharge=rates.special_zone_surcharge,
        oversize_surcharge=rates.oversize_surcharge,
        default_service_type=ServiceType.from_string(rates.default_service_type),
    )
