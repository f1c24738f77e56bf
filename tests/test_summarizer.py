"""Tests for document summarization."""

from decimal import Decimal

import pytest

from tax_engine import config
from tax_engine.extractor import LineItemExtractor
from tax_engine.models import (
    ChangedField,
    DocumentKind,
    InvoiceDocument,
    LineItemInput,
    TaxMode,
)
from tax_engine.summarizer import InvoiceSummarizer, InvoiceSummary, format_currency


@pytest.fixture(autouse=True)
def default_settings(monkeypatch):
    monkeypatch.setattr(config, 'DEFAULT_RATE', Decimal('18'))
    monkeypatch.setattr(config, 'DEFAULT_TAX_MODE', TaxMode.WITHOUT_TAX)
    monkeypatch.setattr(config, 'ROUND_OFF_ENABLED', False)


class TestFormatCurrency:
    """Tests for Indian currency formatting."""

    @pytest.mark.parametrize('amount,expected', [
        (Decimal('0'), '₹0.00'),
        (Decimal('999.5'), '₹999.50'),
        (Decimal('1000'), '₹1,000.00'),
        (Decimal('123456.789'), '₹1,23,456.79'),
        (Decimal('12345678'), '₹1,23,45,678.00'),
        (Decimal('-0.49'), '-₹0.49'),
    ])
    def test_format(self, amount, expected):
        assert format_currency(amount) == expected

    def test_custom_symbol(self):
        assert format_currency(Decimal('1500'), symbol='Rs. ') == 'Rs. 1,500.00'


class TestInvoiceSummarizer:
    """Tests for InvoiceSummarizer class."""

    @pytest.fixture
    def summarizer(self):
        """Create an InvoiceSummarizer instance."""
        return InvoiceSummarizer()

    @pytest.fixture
    def sample_document(self):
        """Create a sample sales invoice for testing."""
        items = [
            LineItemInput(name="Steel Bolt", hsn_code="7318", quantity=2,
                          unit_price=100, discount_percent=10, tax_rate=18),
            LineItemInput(name="Washer", hsn_code="7318", quantity=1,
                          unit_price=118, tax_rate=18,
                          tax_mode=TaxMode.WITH_TAX),
            LineItemInput(),
        ]
        return InvoiceDocument(
            number="INV-001",
            kind=DocumentKind.SALES,
            party_name="Sharma Traders",
            date="2024-01-15",
            items=items,
            round_off_enabled=True,
        )

    def test_summarize_basic(self, summarizer, sample_document):
        """Test basic summarization."""
        summary = summarizer.summarize(sample_document)

        assert isinstance(summary, InvoiceSummary)
        assert summary.number == "INV-001"
        assert summary.kind is DocumentKind.SALES
        assert summary.party_name == "Sharma Traders"
        assert len(summary.line_items) == 3

    def test_summarize_totals(self, summarizer, sample_document):
        """Test totals and round-off of the sample invoice."""
        summary = summarizer.summarize(sample_document)

        assert summary.totals.item_count == 2
        assert summary.totals.subtotal == Decimal('280.00')
        assert summary.totals.total_tax == Decimal('50.40')
        assert summary.totals.final_total == Decimal('330.40')
        assert summary.round_off.applied is True
        assert summary.round_off.round_off_value == Decimal('-0.40')
        assert summary.grand_total == Decimal('330')

    def test_blank_row_is_reported(self, summarizer, sample_document):
        """Test that the trailing blank row shows up as advisory only."""
        summary = summarizer.summarize(sample_document)

        assert summary.validation_errors == ["Row 3: Item name is required"]
        assert summary.line_items[2].final_amount == Decimal('0')

    def test_round_off_disabled(self, summarizer, sample_document):
        sample_document.round_off_enabled = False

        summary = summarizer.summarize(sample_document)

        assert summary.round_off.applied is False
        assert summary.grand_total == Decimal('330.40')

    def test_round_off_from_config(self, summarizer, sample_document, monkeypatch):
        """Test that the configured default enables round-off."""
        monkeypatch.setattr(config, 'ROUND_OFF_ENABLED', True)
        sample_document.round_off_enabled = None

        summary = summarizer.summarize(sample_document)

        assert summary.grand_total == Decimal('330')

    def test_stored_flag_beats_config(self, summarizer, monkeypatch):
        """Test that a document saved without round-off stays unrounded."""
        monkeypatch.setattr(config, 'ROUND_OFF_ENABLED', True)
        document = LineItemExtractor().extract_from_dict({
            "invoiceNumber": "INV-450",
            "gstEnabled": False,
            "roundOffEnabled": False,
            "items": [
                {"itemName": "Cable", "quantity": 1, "pricePerUnit": "450.49"},
            ],
        })

        summary = summarizer.summarize(document)

        assert summary.round_off.applied is False
        assert summary.round_off.round_off_value == Decimal('0')
        assert summary.grand_total == Decimal('450.49')

    def test_changed_row(self, summarizer):
        """Test that an edit's tie-break reaches the edited row."""
        document = InvoiceDocument(
            number="Q-3",
            kind=DocumentKind.QUOTATION,
            tax_enabled=False,
            items=[
                LineItemInput(name="Paint", quantity=2, unit_price=100,
                              discount_percent=10, discount_amount=50),
            ],
        )

        recalculated = summarizer.summarize(document)
        edited = summarizer.summarize(
            document, changed=(0, ChangedField.DISCOUNT_AMOUNT)
        )

        assert recalculated.totals.final_total == Decimal('180.00')
        assert edited.totals.final_total == Decimal('150.00')

    def test_without_gst_uses_subtotal(self, summarizer):
        """Test that non-GST documents round the subtotal."""
        document = InvoiceDocument(
            number="PB-1",
            kind=DocumentKind.PURCHASE,
            tax_enabled=False,
            round_off_enabled=True,
            items=[LineItemInput(name="Paper", quantity=3, unit_price='33.33')],
        )

        summary = summarizer.summarize(document)

        assert summary.totals.with_tax_total == Decimal('0')
        assert summary.round_off.base_total == Decimal('99.99')
        assert summary.grand_total == Decimal('100')

    def test_to_dict(self, summarizer, sample_document):
        """Test conversion to the stored format."""
        result = summarizer.summarize(sample_document).to_dict()

        assert result['invoiceNumber'] == "INV-001"
        assert result['documentType'] == "sales"
        assert result['totals']['subtotal'] == "280.00"
        assert result['totals']['totalCGST'] == "25.20"
        assert result['totals']['finalTotal'] == "330.40"
        assert result['roundOff'] == "-0.40"
        assert result['roundOffApplied'] is True
        assert result['grandTotal'] == "330"
        assert result['items'][0]['amount'] == "212.40"
        assert len(result['items']) == 3

    def test_summarize_multiple(self, summarizer, sample_document):
        """Test combining several documents."""
        other = InvoiceDocument(
            number="INV-002",
            tax_enabled=False,
            items=[LineItemInput(name="Service", quantity=1, unit_price='49.50')],
        )

        result = summarizer.summarize_multiple([sample_document, other])

        assert result['document_count'] == 2
        assert result['total_line_items'] == 3
        assert result['combined_tax'] == "50.40"
        # 330 (rounded) + 49.50
        assert result['combined_total'] == "379.50"
        assert len(result['individual_summaries']) == 2

    def test_formatted_summary(self, summarizer, sample_document):
        """Test formatted text output."""
        text = summarizer.get_formatted_summary(sample_document)

        assert "Sales Invoice: INV-001" in text
        assert "Party: Sharma Traders" in text
        assert "1. Steel Bolt: 2 x ₹100.00 = ₹212.40" in text
        assert "2. Washer: 1 x ₹118.00 = ₹118.00" in text
        assert "Subtotal: ₹280.00" in text
        assert "Discount: ₹20.00" in text
        assert "CGST: ₹25.20" in text
        assert "SGST: ₹25.20" in text
        assert "Round Off: -₹0.40" in text
        assert "Total: ₹330.00" in text
        assert "Row 3: Item name is required" in text

    def test_formatted_summary_purchase_title(self, summarizer):
        document = InvoiceDocument(
            number="PB-5",
            kind=DocumentKind.PURCHASE,
            tax_enabled=False,
            items=[LineItemInput(name="Ink", quantity=1, unit_price=10)],
        )

        text = summarizer.get_formatted_summary(document)

        assert text.startswith("Purchase Bill: PB-5")
        assert "CGST" not in text
        assert "Round Off" not in text
