"""Data models for invoice tax calculation.

This module defines the data structures used to represent
line-item inputs, computed line items, document totals,
and the currency round-off applied to a grand total.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Optional

ZERO = Decimal('0')
DEFAULT_TAX_RATE = Decimal('18')


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def to_decimal(value) -> Decimal:
    """Coerce a number-like value into a Decimal.

    Floats go through ``str`` so that 0.1 becomes Decimal('0.1')
    rather than its binary expansion. ``None`` and blank strings
    read as zero.
    """
    if _is_blank(value):
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


class TaxMode(str, Enum):
    """Whether a unit price already includes tax."""

    WITH_TAX = 'with-tax'
    WITHOUT_TAX = 'without-tax'

    @classmethod
    def parse(cls, value) -> Optional['TaxMode']:
        if value is None or value == '':
            return None
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().lower())


class ChangedField(str, Enum):
    """The line-item field an edit originated from."""

    QUANTITY = 'quantity'
    UNIT_PRICE = 'pricePerUnit'
    DISCOUNT_PERCENT = 'discountPercent'
    DISCOUNT_AMOUNT = 'discountAmount'
    TAX_RATE = 'taxRate'
    TAX_MODE = 'taxMode'


class DocumentKind(str, Enum):
    SALES = 'sales'
    PURCHASE = 'purchase'
    QUOTATION = 'quotation'


@dataclass
class LineItemInput:
    """Represents one editable row of an invoice table.

    Attributes:
        quantity: Number of units (must be > 0 to count)
        unit_price: Price per unit (must be > 0 to count)
        discount_percent: Discount as a percentage of the gross amount
        discount_amount: Discount as an absolute amount
        tax_rate: Tax percentage; None means the default rate
        tax_mode: Per-row tax mode; None falls back to the document default
        name: Item name as typed or picked from the catalogue
        hsn_code: HSN/SAC code required on GST documents
        unit: Unit of measure (PCS, KG, ...)
        item_ref: Catalogue reference when the row is linked to stock
        current_stock: Available stock for catalogue-linked rows
    """
    quantity: Decimal = ZERO
    unit_price: Decimal = ZERO
    discount_percent: Decimal = ZERO
    discount_amount: Decimal = ZERO
    tax_rate: Optional[Decimal] = None
    tax_mode: Optional[TaxMode] = None
    name: str = ''
    hsn_code: str = ''
    unit: str = 'PCS'
    item_ref: Optional[str] = None
    current_stock: Optional[Decimal] = None

    def __post_init__(self):
        """Ensure all numeric fields are Decimal type."""
        self.quantity = to_decimal(self.quantity)
        self.unit_price = to_decimal(self.unit_price)
        self.discount_percent = to_decimal(self.discount_percent)
        self.discount_amount = to_decimal(self.discount_amount)
        # A blank rate means "not entered", not 0%
        self.tax_rate = (None if _is_blank(self.tax_rate)
                         else to_decimal(self.tax_rate))
        self.current_stock = (None if _is_blank(self.current_stock)
                              else to_decimal(self.current_stock))
        self.tax_mode = TaxMode.parse(self.tax_mode)


@dataclass(frozen=True)
class LineItemResult:
    """Computed amounts for a single line item.

    Every monetary field is already rounded to two decimal places.
    cgst_amount and sgst_amount are the two equal halves of the tax;
    igst_amount is the same tax left undivided.
    """
    quantity: Decimal
    unit_price: Decimal
    tax_mode: TaxMode
    discount_percent: Decimal = ZERO
    discount_amount: Decimal = ZERO
    taxable_amount: Decimal = ZERO
    cgst_amount: Decimal = ZERO
    sgst_amount: Decimal = ZERO
    igst_amount: Decimal = ZERO
    final_amount: Decimal = ZERO

    @property
    def total_tax(self) -> Decimal:
        return self.cgst_amount + self.sgst_amount

    @property
    def included(self) -> bool:
        """True when the row contributes to document totals."""
        return self.quantity > 0 and self.unit_price > 0

    @property
    def is_zero(self) -> bool:
        return not self.included

    def to_dict(self) -> dict:
        """Convert to the camelCase record stored on documents."""
        return {
            'quantity': str(self.quantity),
            'pricePerUnit': str(self.unit_price),
            'taxMode': self.tax_mode.value,
            'priceIncludesTax': self.tax_mode is TaxMode.WITH_TAX,
            'discountPercent': str(self.discount_percent),
            'discountAmount': str(self.discount_amount),
            'taxableAmount': str(self.taxable_amount),
            'cgstAmount': str(self.cgst_amount),
            'sgstAmount': str(self.sgst_amount),
            'igst': str(self.igst_amount),
            'totalTaxAmount': str(self.total_tax),
            'amount': str(self.final_amount),
        }


@dataclass(frozen=True)
class AggregateTotals:
    """Sums over the included line items of a document.

    Attributes:
        item_count: Number of rows that contributed
        total_quantity: Sum of quantities
        total_discount: Sum of resolved discounts
        total_taxable_amount: Sum of taxable amounts (the subtotal)
        total_cgst: Sum of CGST halves
        total_sgst: Sum of SGST halves
        total_tax: total_cgst + total_sgst
        final_total: Sum of final line amounts
        with_tax_total: final_total when tax is enabled, else 0
        without_tax_total: Same as total_taxable_amount
    """
    item_count: int = 0
    total_quantity: Decimal = ZERO
    total_discount: Decimal = ZERO
    total_taxable_amount: Decimal = ZERO
    total_cgst: Decimal = ZERO
    total_sgst: Decimal = ZERO
    total_tax: Decimal = ZERO
    final_total: Decimal = ZERO
    with_tax_total: Decimal = ZERO
    without_tax_total: Decimal = ZERO

    @property
    def subtotal(self) -> Decimal:
        return self.total_taxable_amount


@dataclass(frozen=True)
class RoundOffResult:
    """Outcome of rounding a grand total to whole currency units."""
    base_total: Decimal
    rounded_total: Decimal
    round_off_value: Decimal = ZERO
    applied: bool = False


@dataclass
class InvoiceDocument:
    """A sales invoice, purchase bill or quotation awaiting calculation.

    Attributes:
        number: Invoice/bill/quotation number
        kind: Which form the document belongs to
        party_name: Customer or supplier name
        date: Document date
        items: Rows in table order
        tax_enabled: Whether GST applies to the document
        default_tax_mode: Mode applied to rows that carry none
        round_off_enabled: Whether the grand total is rounded; None uses
            the configured default
    """
    number: str
    kind: DocumentKind = DocumentKind.SALES
    party_name: str = ''
    date: str = ''
    items: list[LineItemInput] = field(default_factory=list)
    tax_enabled: bool = True
    default_tax_mode: Optional[TaxMode] = None
    round_off_enabled: Optional[bool] = None

    def __post_init__(self):
        self.kind = DocumentKind(self.kind)
        self.default_tax_mode = TaxMode.parse(self.default_tax_mode)


@dataclass
class ValidationReport:
    """Advisory problems found in a table of line items."""
    errors: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors
