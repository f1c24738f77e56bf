"""Document totals and currency round-off.

Folds computed line items into document totals and rounds the grand
total to whole currency units for display and persistence.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from .calculator import money2
from .models import ZERO, AggregateTotals, LineItemResult, RoundOffResult, to_decimal

logger = logging.getLogger(__name__)

UNIT = Decimal('1')


def reduce_totals(results: Iterable[LineItemResult],
                  tax_enabled: bool = True) -> AggregateTotals:
    """Sum the computed rows of a document.

    Rows whose quantity or unit price is not positive are skipped. The
    per-row values being summed are already rounded to 2 places, so the
    totals match what the rows display; each sum is rounded once more.

    Args:
        results: Computed line items, in any order.
        tax_enabled: Whether GST applies; controls with_tax_total.

    Returns:
        AggregateTotals over the included rows.
    """
    count = 0
    quantity = discount = taxable = cgst = sgst = final = ZERO

    for result in results:
        if not result.included:
            continue
        count += 1
        quantity += result.quantity
        discount += result.discount_amount
        taxable += result.taxable_amount
        cgst += result.cgst_amount
        sgst += result.sgst_amount
        final += result.final_amount

    final_total = money2(final)
    return AggregateTotals(
        item_count=count,
        total_quantity=money2(quantity),
        total_discount=money2(discount),
        total_taxable_amount=money2(taxable),
        total_cgst=money2(cgst),
        total_sgst=money2(sgst),
        total_tax=money2(cgst + sgst),
        final_total=final_total,
        with_tax_total=final_total if tax_enabled else ZERO,
        without_tax_total=money2(taxable),
    )


def apply_round_off(base_total, enabled: bool) -> RoundOffResult:
    """Round a grand total to the nearest whole currency unit.

    Halves round away from zero (1049.50 becomes 1050). When rounding is
    disabled, or the total is zero, the base total is returned untouched.
    """
    base_total = to_decimal(base_total)
    if not enabled or base_total == 0:
        return RoundOffResult(base_total=base_total, rounded_total=base_total)

    rounded = base_total.quantize(UNIT, rounding=ROUND_HALF_UP)
    delta = rounded - base_total
    return RoundOffResult(
        base_total=base_total,
        rounded_total=rounded,
        round_off_value=delta,
        applied=delta != 0,
    )


def apply_manual_round_off(base_total, enabled: bool, round_off=0) -> Decimal:
    """Add a user-entered round-off amount to the base total when enabled."""
    base_total = to_decimal(base_total)
    if not enabled:
        return base_total
    return base_total + to_decimal(round_off)


def select_base_total(totals: AggregateTotals, tax_enabled: bool = True) -> Decimal:
    """Pick the total the round-off applies to.

    GST documents round the tax-inclusive total, others the subtotal;
    either falls back to final_total when empty.
    """
    if tax_enabled:
        return totals.with_tax_total or totals.final_total
    return totals.without_tax_total or totals.final_total


def payment_breakdown(totals: AggregateTotals, tax_enabled: bool = True,
                      round_off_enabled: bool = False) -> dict:
    """Build the figures shown on the payment summary card."""
    round_off = apply_round_off(select_base_total(totals, tax_enabled),
                                round_off_enabled)
    return {
        'base_amount': totals.subtotal,
        'tax_amount': totals.total_tax,
        'total_amount': round_off.base_total,
        'round_off_amount': round_off.round_off_value,
        'final_total': round_off.rounded_total,
        'round_off': round_off,
    }


def round_off_display(result: RoundOffResult, tax_enabled: bool = True) -> dict:
    # Labels for the totals card
    return {
        'show_breakdown': result.applied,
        'base_total_label': 'Total (Inc. GST)' if tax_enabled else 'Subtotal',
        'base_total_amount': result.base_total,
        'round_off_amount': result.round_off_value,
        'round_off_sign': '+' if result.round_off_value > 0 else '',
        'final_total_amount': result.rounded_total,
        'message': None if result.applied else 'Already rounded',
    }
