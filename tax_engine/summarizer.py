"""Invoice summarization module.

This module runs the full calculation pipeline for a document
(rows, totals, round-off) and renders the result for persistence
or display.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from . import config
from .calculator import compute_line_items, money2
from .models import (
    AggregateTotals,
    ChangedField,
    DocumentKind,
    InvoiceDocument,
    LineItemResult,
    RoundOffResult,
)
from .totals import apply_round_off, reduce_totals, select_base_total
from .validation import validate_items

logger = logging.getLogger(__name__)


def format_currency(amount, symbol: str = '₹') -> str:
    """Format an amount with Indian digit grouping (1,23,45,678.90)."""
    value = money2(amount)
    sign = '-' if value < 0 else ''
    whole, _, fraction = f"{abs(value):.2f}".partition('.')
    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ','.join(groups + [tail])
    return f"{sign}{symbol}{whole}.{fraction}"


@dataclass
class InvoiceSummary:
    """Calculated view of one document.

    Attributes:
        number: Document number
        kind: Sales, purchase or quotation
        party_name: Customer or supplier
        date: Document date
        line_items: Computed rows, one per input row
        totals: Sums over the included rows
        round_off: Grand-total round-off outcome
        validation_errors: Advisory problems to fix before saving
    """
    number: str
    kind: DocumentKind
    party_name: str
    date: str
    line_items: list[LineItemResult] = field(default_factory=list)
    totals: AggregateTotals = field(default_factory=AggregateTotals)
    round_off: Optional[RoundOffResult] = None
    validation_errors: list[str] = field(default_factory=list)

    @property
    def grand_total(self) -> Decimal:
        if self.round_off is None:
            return self.totals.final_total
        return self.round_off.rounded_total

    def to_dict(self) -> dict:
        """Convert summary to dictionary format.

        Returns:
            Dictionary representation with amounts as strings.
        """
        totals = self.totals
        round_off = self.round_off
        return {
            'invoiceNumber': self.number,
            'documentType': self.kind.value,
            'partyName': self.party_name,
            'date': self.date,
            'items': [item.to_dict() for item in self.line_items],
            'totals': {
                'itemCount': totals.item_count,
                'totalQuantity': str(totals.total_quantity),
                'totalDiscountAmount': str(totals.total_discount),
                'subtotal': str(totals.subtotal),
                'totalCGST': str(totals.total_cgst),
                'totalSGST': str(totals.total_sgst),
                'totalTax': str(totals.total_tax),
                'finalTotal': str(totals.final_total),
                'withTaxTotal': str(totals.with_tax_total),
                'withoutTaxTotal': str(totals.without_tax_total),
            },
            'roundOff': str(round_off.round_off_value) if round_off else '0',
            'roundOffApplied': bool(round_off and round_off.applied),
            'grandTotal': str(self.grand_total),
            'validationErrors': list(self.validation_errors),
        }


class InvoiceSummarizer:
    """Calculates and summarizes invoice documents.

    The same pipeline serves sales invoices, purchase bills and
    quotations; only the labels differ.
    """

    def summarize(self, document: InvoiceDocument,
                  changed: Optional[tuple[int, ChangedField]] = None
                  ) -> InvoiceSummary:
        """Run the calculation pipeline for a document.

        Args:
            document: The document to calculate.
            changed: Optional (row index, field) of the edit that
                triggered this recalculation.

        Returns:
            An InvoiceSummary with computed rows, totals and round-off.
        """
        line_items = compute_line_items(
            document.items,
            default_tax_mode=document.default_tax_mode,
            changed=changed,
            tax_enabled=document.tax_enabled,
        )
        totals = reduce_totals(line_items, tax_enabled=document.tax_enabled)
        round_off_enabled = document.round_off_enabled
        if round_off_enabled is None:
            round_off_enabled = config.ROUND_OFF_ENABLED
        round_off = apply_round_off(
            select_base_total(totals, document.tax_enabled),
            round_off_enabled,
        )
        report = validate_items(document.items, document.tax_enabled)

        logger.info(
            f"Calculated {document.kind.value} {document.number}: "
            f"{totals.item_count}/{len(line_items)} rows, "
            f"total {round_off.rounded_total}"
        )

        return InvoiceSummary(
            number=document.number,
            kind=document.kind,
            party_name=document.party_name,
            date=document.date,
            line_items=line_items,
            totals=totals,
            round_off=round_off,
            validation_errors=report.errors,
        )

    def summarize_multiple(self, documents: list[InvoiceDocument]) -> dict:
        """Summarize multiple documents and combine their totals.

        Args:
            documents: List of InvoiceDocument objects.

        Returns:
            Dictionary with individual summaries and combined totals.
        """
        summaries = [self.summarize(document) for document in documents]

        combined_total = sum(
            (s.grand_total for s in summaries),
            Decimal('0')
        )
        combined_tax = sum(
            (s.totals.total_tax for s in summaries),
            Decimal('0')
        )

        return {
            'document_count': len(documents),
            'total_line_items': sum(s.totals.item_count for s in summaries),
            'combined_tax': str(money2(combined_tax)),
            'combined_total': str(money2(combined_total)),
            'individual_summaries': [s.to_dict() for s in summaries],
        }

    def get_formatted_summary(self, document: InvoiceDocument) -> str:
        """Generate a formatted text summary of the document.

        Args:
            document: The document to summarize.

        Returns:
            Formatted string representation of the document totals.
        """
        summary = self.summarize(document)
        totals = summary.totals
        title = {
            DocumentKind.SALES: 'Sales Invoice',
            DocumentKind.PURCHASE: 'Purchase Bill',
            DocumentKind.QUOTATION: 'Quotation',
        }[summary.kind]

        lines = [
            f"{title}: {summary.number}",
            '=' * 50,
            f"Party: {summary.party_name}",
            f"Date: {summary.date}",
            '',
            'Line Items:',
            '-' * 50,
        ]

        for index, (item, result) in enumerate(
                zip(document.items, summary.line_items), start=1):
            if not result.included:
                continue
            lines.append(
                f"  {index}. {item.name or 'Item'}: {result.quantity} x "
                f"{format_currency(result.unit_price)} = "
                f"{format_currency(result.final_amount)}"
            )

        lines.append('')
        lines.append('-' * 50)
        lines.append(f"Subtotal: {format_currency(totals.subtotal)}")
        if totals.total_discount:
            lines.append(f"Discount: {format_currency(totals.total_discount)}")
        if document.tax_enabled and totals.total_tax:
            lines.append(f"CGST: {format_currency(totals.total_cgst)}")
            lines.append(f"SGST: {format_currency(totals.total_sgst)}")

        round_off = summary.round_off
        if round_off.applied:
            sign = '+' if round_off.round_off_value > 0 else ''
            lines.append(
                f"Round Off: {sign}{format_currency(round_off.round_off_value)}"
            )
        lines.append(f"Total: {format_currency(summary.grand_total)}")

        if summary.validation_errors:
            lines.append('')
            lines.extend(f"⚠️  {error}" for error in summary.validation_errors)

        return "\n".join(lines)
