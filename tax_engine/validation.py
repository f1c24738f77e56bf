"""Advisory checks run on invoice rows before a document is saved.

These never block a calculation; they only report what a user should
fix before submitting.
"""

from typing import Iterable

from .models import LineItemInput, ValidationReport


def validate_items(items: Iterable[LineItemInput],
                   tax_enabled: bool = True) -> ValidationReport:
    """Check each row and collect row-numbered error messages.

    The HSN, quantity and price checks only apply to named rows so that
    blank trailing rows report just the missing name. The stock check
    applies to every catalogue-linked row.
    """
    report = ValidationReport()
    for index, item in enumerate(items, start=1):
        prefix = f"Row {index}"
        if not item.name:
            report.errors.append(f"{prefix}: Item name is required")
        else:
            if tax_enabled and not item.hsn_code:
                report.errors.append(
                    f"{prefix}: HSN code is required for GST transactions"
                )
            if item.quantity <= 0:
                report.errors.append(
                    f"{prefix}: Quantity must be greater than 0"
                )
            if item.unit_price <= 0:
                report.errors.append(
                    f"{prefix}: Price per unit must be greater than 0"
                )
        if (item.item_ref and item.current_stock is not None
                and item.quantity > item.current_stock):
            report.errors.append(
                f"{prefix}: Quantity ({item.quantity}) exceeds available "
                f"stock ({item.current_stock})"
            )
    return report
