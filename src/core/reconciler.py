"""Monthly Flex cost reconciliation."""

from __future__ import annotations

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal

from .errors import InvalidAmountError, ValidationError
from .models import LedgerTotals, MonthlyCost, Reconciliation


def quantize_amount(amount: Decimal, precision: int = 0) -> Decimal:
    """Round half-up to the smallest currency unit (``precision`` decimals)."""
    quantum = Decimal(1).scaleb(-precision)
    return amount.quantize(quantum, rounding=ROUND_HALF_UP)


def reconcile(
    total_with_tax: Decimal,
    tax_rate: Decimal,
    orders_count: int,
    precision: int = 0,
) -> Reconciliation:
    """Split a tax-inclusive total into net, tax and cost per order.

    The net is rounded first and the tax is its exact complement, so
    ``net + tax == total_with_tax`` always holds. Totals finer than the
    currency precision are rejected. A month without orders has a cost per
    order of zero.
    """
    total_with_tax = Decimal(total_with_tax)
    tax_rate = Decimal(tax_rate)

    if not total_with_tax.is_finite() or total_with_tax <= 0:
        raise InvalidAmountError(f"Total with tax must be positive, got {total_with_tax}")
    if not Decimal("0") <= tax_rate < Decimal("1"):
        raise ValidationError(f"Tax rate must be in [0, 1), got {tax_rate}")
    if orders_count < 0:
        raise ValidationError(f"orders_count must not be negative, got {orders_count}")
    if precision < 0:
        raise ValidationError(f"precision must not be negative, got {precision}")
    if total_with_tax != quantize_amount(total_with_tax, precision):
        raise InvalidAmountError(
            f"Total with tax {total_with_tax} has more than {precision} decimal places"
        )
    total_with_tax = quantize_amount(total_with_tax, precision)

    net = quantize_amount(total_with_tax / (1 + tax_rate), precision)
    tax = total_with_tax - net

    if orders_count > 0:
        per_order = quantize_amount(net / orders_count, precision)
    else:
        per_order = quantize_amount(Decimal("0"), precision)

    return Reconciliation(net=net, tax=tax, per_order=per_order)


def build_monthly_cost(
    seller_id: int,
    year_month: str,
    total_with_tax: Decimal,
    orders_count: int,
    tax_rate: Decimal,
    precision: int = 0,
    notes: str | None = None,
) -> MonthlyCost:
    """Derive every field of a monthly cost record from scratch."""
    result = reconcile(total_with_tax, tax_rate, orders_count, precision)
    return MonthlyCost(
        seller_id=seller_id,
        year_month=year_month,
        total_cost=result.net + result.tax,
        net_cost=result.net,
        tax_amount=result.tax,
        orders_count=orders_count,
        cost_per_order=result.per_order,
        notes=notes,
    )


def ledger_totals(costs: Iterable[MonthlyCost]) -> LedgerTotals:
    """Sum a seller's monthly costs."""
    net = tax = total = Decimal("0")
    orders = 0
    for cost in costs:
        net += cost.net_cost
        tax += cost.tax_amount
        total += cost.total_cost
        orders += cost.orders_count
    return LedgerTotals(net_cost=net, tax_amount=tax, total_cost=total, orders_count=orders)
