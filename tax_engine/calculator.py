"""Line-item tax calculation.

Turns one editable invoice row into its discount, taxable amount,
CGST/SGST split and payable amount. The same function backs sales
invoices, purchase bills and quotations.
"""

import logging
from dataclasses import replace
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

from . import config
from .models import (
    ZERO,
    ChangedField,
    LineItemInput,
    LineItemResult,
    TaxMode,
    to_decimal,
)

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')
HUNDRED = Decimal('100')

# Edits after which the discount is re-derived from the percentage.
_PERCENT_DRIVEN = frozenset({
    None,
    ChangedField.DISCOUNT_PERCENT,
    ChangedField.QUANTITY,
    ChangedField.UNIT_PRICE,
})


def money2(value) -> Decimal:
    """Round to 2 decimal places, half away from zero."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def resolve_tax_mode(item: LineItemInput,
                     default_tax_mode: Optional[TaxMode] = None) -> TaxMode:
    if item.tax_mode is not None:
        return item.tax_mode
    return TaxMode.parse(default_tax_mode) or config.DEFAULT_TAX_MODE


def resolve_discount(gross: Decimal, item: LineItemInput,
                     changed_field: Optional[ChangedField] = None) -> Decimal:
    """Pick the discount for a row based on which field was last edited.

    Percentage edits, quantity/price edits and fresh calculations derive
    the amount from the percentage; any other edit keeps the absolute
    amount the user typed.
    """
    if changed_field in _PERCENT_DRIVEN:
        discount = gross * item.discount_percent / HUNDRED
    else:
        discount = item.discount_amount
    return max(ZERO, discount)


def compute_line_item(item: LineItemInput,
                      default_tax_mode: Optional[TaxMode] = None,
                      changed_field: Optional[ChangedField] = None,
                      tax_enabled: bool = True) -> LineItemResult:
    """Compute the amounts for a single line item.

    Args:
        item: The row as currently entered.
        default_tax_mode: Document-level mode used when the row has none.
        changed_field: Field the triggering edit came from, if any.
        tax_enabled: Whether GST applies to the document at all.

    Returns:
        A LineItemResult with every amount rounded to 2 places. Rows with
        a non-positive quantity or unit price come back zeroed.
    """
    changed_field = ChangedField(changed_field) if changed_field else None
    mode = resolve_tax_mode(item, default_tax_mode)

    if item.quantity <= 0 or item.unit_price <= 0:
        logger.debug(
            f"Zeroing row: quantity={item.quantity}, unit_price={item.unit_price}"
        )
        return LineItemResult(
            quantity=item.quantity,
            unit_price=item.unit_price,
            tax_mode=mode,
            discount_percent=money2(item.discount_percent),
        )

    gross = item.quantity * item.unit_price
    discount = resolve_discount(gross, item, changed_field)
    base = max(ZERO, gross - discount)

    rate = item.tax_rate if item.tax_rate is not None else config.DEFAULT_RATE

    if not tax_enabled or rate <= 0:
        taxable = base
        tax = ZERO
        final = base
    elif mode is TaxMode.WITH_TAX:
        # Price already includes tax: back it out of the discounted base
        taxable = base / (1 + rate / HUNDRED)
        tax = base - taxable
        final = base
    else:
        taxable = base
        tax = taxable * rate / HUNDRED
        final = taxable + tax

    half = tax / 2
    result = LineItemResult(
        quantity=item.quantity,
        unit_price=item.unit_price,
        tax_mode=mode,
        discount_percent=money2(item.discount_percent),
        discount_amount=money2(discount),
        taxable_amount=money2(taxable),
        cgst_amount=money2(half),
        sgst_amount=money2(half),
        igst_amount=money2(tax),
        final_amount=money2(final),
    )
    logger.debug(
        f"Computed row ({mode.value}, rate {rate}%): "
        f"taxable={result.taxable_amount}, tax={result.total_tax}, "
        f"amount={result.final_amount}"
    )
    return result


def compute_line_items(items: Iterable[LineItemInput],
                       default_tax_mode: Optional[TaxMode] = None,
                       changed: Optional[tuple[int, ChangedField]] = None,
                       tax_enabled: bool = True) -> list[LineItemResult]:
    """Recalculate a whole table of rows.

    Args:
        items: Rows in table order.
        default_tax_mode: Document-level tax mode.
        changed: Optional (row index, field) of the edit that triggered the
            recalculation. Only that row uses the edit's discount tie-break;
            every other row is recomputed as on reload.
        tax_enabled: Whether GST applies to the document.

    Returns:
        One LineItemResult per row, in the same order.
    """
    changed_index, changed_field = changed if changed else (None, None)
    return [
        compute_line_item(
            item,
            default_tax_mode=default_tax_mode,
            changed_field=changed_field if index == changed_index else None,
            tax_enabled=tax_enabled,
        )
        for index, item in enumerate(items)
    ]


def change_tax_mode(items: Iterable[LineItemInput], mode: TaxMode,
                    tax_enabled: bool = True
                    ) -> tuple[list[LineItemInput], list[LineItemResult]]:
    """Switch every row to ``mode`` and recalculate.

    The switch counts as a tax-mode edit on each row, so absolute
    discounts the user typed are kept rather than re-derived.

    Returns:
        The updated rows and their computed results.
    """
    mode = TaxMode.parse(mode)
    updated = [replace(item, tax_mode=mode) for item in items]
    results = [
        compute_line_item(item, mode, ChangedField.TAX_MODE, tax_enabled)
        for item in updated
    ]
    logger.debug(f"Switched {len(updated)} rows to {mode.value}")
    return updated, results
