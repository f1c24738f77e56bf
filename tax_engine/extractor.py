"""Rebuild calculation inputs from stored documents.

Sales invoices, purchase bills and quotations are persisted with
camelCase line-item records. This module turns those records back
into LineItemInput rows so a document can be recalculated on edit.
"""

import json
import logging
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from .models import DocumentKind, InvoiceDocument, LineItemInput, TaxMode

logger = logging.getLogger(__name__)

_CURRENCY_PREFIX = re.compile(r'^\s*(?:rs\.?|inr)\s*', re.IGNORECASE)


class LineItemExtractor:
    """Extracts calculation inputs from persisted invoice data.

    This class provides methods to parse stored documents from
    dictionaries, JSON strings and JSON files.
    """

    def extract_from_dict(self, data: dict[str, Any]) -> InvoiceDocument:
        """Extract a document from its stored dictionary form.

        Args:
            data: Dictionary containing document data with keys:
                - invoiceNumber (or number): Document number
                - documentType: Optional 'sales', 'purchase' or 'quotation'
                - partyName: Optional customer/supplier name
                - invoiceDate (or date): Optional document date
                - items: List of line item records
                - gstEnabled: Optional, defaults to True
                - globalTaxMode: Optional 'with-tax' or 'without-tax'
                - roundOffEnabled: Optional; absent means the configured default

        Returns:
            An InvoiceDocument ready for calculation.

        Raises:
            ValueError: If required fields are missing or invalid.
        """
        number = data.get('invoiceNumber') or data.get('number')
        if not number:
            raise ValueError("invoiceNumber is required")

        try:
            kind = DocumentKind(data.get('documentType') or DocumentKind.SALES)
        except ValueError as e:
            raise ValueError(
                f"Unknown documentType: {data.get('documentType')}"
            ) from e

        return InvoiceDocument(
            number=str(number),
            kind=kind,
            party_name=data.get('partyName', ''),
            date=data.get('invoiceDate') or data.get('date', ''),
            items=self.extract_items(data.get('items', [])),
            tax_enabled=bool(data.get('gstEnabled', True)),
            default_tax_mode=self._parse_tax_mode(data.get('globalTaxMode')),
            round_off_enabled=self._parse_flag(data.get('roundOffEnabled')),
        )

    def extract_from_json(self, json_str: str) -> InvoiceDocument:
        """Extract a document from a JSON string.

        Raises:
            ValueError: If JSON is invalid or data is missing.
        """
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON: {e}") from e

        return self.extract_from_dict(data)

    def extract_from_json_file(self, file_path: str) -> InvoiceDocument:
        """Extract a document from a JSON file.

        Raises:
            ValueError: If the file contains invalid data.
            FileNotFoundError: If file does not exist.
        """
        with open(file_path, 'r', encoding='utf-8') as f:
            return self.extract_from_json(f.read())

    def extract_items(self, items_data: list[dict]) -> list[LineItemInput]:
        """Extract line item rows from stored records.

        Args:
            items_data: List of line item dictionaries.

        Returns:
            List of LineItemInput objects, in the stored order.
        """
        return [self.extract_item(item) for item in items_data]

    def extract_item(self, item: dict[str, Any]) -> LineItemInput:
        """Extract one row from its stored record.

        ``priceIncludesTax`` takes precedence over ``taxMode`` when both
        are stored. A missing or empty tax rate reads as the default.
        """
        if 'priceIncludesTax' in item and item['priceIncludesTax'] is not None:
            tax_mode = (TaxMode.WITH_TAX if item['priceIncludesTax']
                        else TaxMode.WITHOUT_TAX)
        else:
            tax_mode = self._parse_tax_mode(item.get('taxMode'))

        raw_rate = item.get('taxRate')
        if raw_rate in (None, ''):
            raw_rate = item.get('gstRate')
        tax_rate = None if raw_rate in (None, '') else self._parse_amount(raw_rate)

        price = item.get('pricePerUnit', item.get('unitPrice', 0))
        stock = item.get('currentStock')
        item_ref = item.get('itemRef')

        return LineItemInput(
            quantity=self._parse_amount(item.get('quantity', 0)),
            unit_price=self._parse_amount(price),
            discount_percent=self._parse_amount(item.get('discountPercent', 0)),
            discount_amount=self._parse_amount(item.get('discountAmount', 0)),
            tax_rate=tax_rate,
            tax_mode=tax_mode,
            name=item.get('itemName', ''),
            hsn_code=item.get('hsnCode', ''),
            unit=item.get('unit') or 'PCS',
            item_ref=str(item_ref) if item_ref else None,
            current_stock=None if stock is None else self._parse_amount(stock),
        )

    @staticmethod
    def _parse_tax_mode(value: Any) -> Optional[TaxMode]:
        try:
            return TaxMode.parse(value)
        except ValueError:
            logger.warning(f"Ignoring unknown tax mode: {value!r}")
            return None

    @staticmethod
    def _parse_flag(value: Any) -> Optional[bool]:
        """Read a stored boolean, keeping None when it was never stored."""
        if value is None:
            return None
        if isinstance(value, str):
            return value.strip().lower() in ('1', 'true', 'yes', 'on')
        return bool(value)

    @staticmethod
    def _parse_amount(value: Any) -> Decimal:
        """Parse a value into a Decimal amount.

        Handles strings with currency symbols, commas, etc.

        Args:
            value: The value to parse (string, int, float, or Decimal).

        Returns:
            Decimal representation of the value.

        Raises:
            ValueError: If value cannot be parsed.
        """
        if value is None:
            return Decimal('0')

        if isinstance(value, Decimal):
            return value

        if isinstance(value, bool):
            raise ValueError(f"Unsupported type for amount: {type(value)}")

        if isinstance(value, (int, float)):
            return Decimal(str(value))

        if isinstance(value, str):
            # Remove currency prefixes, symbols, commas, and whitespace
            cleaned = _CURRENCY_PREFIX.sub('', value)
            cleaned = re.sub(r'[^\d.-]', '', cleaned)
            if not cleaned:
                return Decimal('0')
            try:
                return Decimal(cleaned)
            except InvalidOperation as e:
                raise ValueError(f"Cannot parse amount: {value}") from e

        raise ValueError(f"Unsupported type for amount: {type(value)}")
