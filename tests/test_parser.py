"""End-to-end tests for the invoice parsing pipeline."""

from datetime import date

import pytest

from src.extraction.invoice import Invoice, RegionType
from src.extraction.parser import InvoiceParser, ParseState, default_strategies
from src.extraction.strategies.vendor import VendorStrategy
from src.layout.geometry import Fragment, Rect
from src.profiles.registry import ProfileRegistry
from src.utils.exceptions import EmptyInputError, InvoiceEngineError


class FixedTotalProfile:
    """Profile that overrides the total with a constant."""

    name = "Fixed"
    amount_region: Rect | None = None

    def matches(self, text: str) -> bool:
        return "sabit" in text

    def apply(self, invoice: Invoice, raw_text: str, fragments: list[Fragment]) -> None:
        invoice.total_amount = 236.0
        invoice.tax_amount = 0.0
        invoice.subtotal = 0.0


class TestFullInvoice:
    """Vendor block, item table and payable total on one page."""

    def test_rows(self, parser: InvoiceParser, full_invoice_fragments) -> None:
        assert len(parser.analyzer.cluster_rows(full_invoice_fragments)) == 5

    def test_fields(self, parser: InvoiceParser, full_invoice_fragments, today) -> None:
        invoice = parser.parse(full_invoice_fragments, today=today)
        assert invoice.vendor_name == "ABC FIRMA A.Ş."
        assert invoice.vendor_tax_id == "1234567890"
        assert [(item.name, item.total) for item in invoice.items] == [("Kalem 1", 50.0)]
        assert invoice.total_amount == 59.0
        assert invoice.subtotal == 50.0
        assert invoice.tax_amount == 9.0
        assert invoice.invoice_date == today
        assert invoice.field_confidence["total_amount"] == 0.9
        assert invoice.confidence == 0.8
        assert invoice.metadata["profile"] == "Default"

    def test_raw_text_ignored_with_fragments(
        self, parser: InvoiceParser, full_invoice_fragments, today
    ) -> None:
        invoice = parser.parse(
            full_invoice_fragments, raw_text="ÖDENECEK TUTAR 999,00", today=today
        )
        assert invoice.total_amount == 59.0

    def test_no_debug_regions_by_default(
        self, parser: InvoiceParser, full_invoice_fragments, today
    ) -> None:
        assert parser.parse(full_invoice_fragments, today=today).debug_regions == []

    def test_debug_regions(self, parser: InvoiceParser, full_invoice_fragments, today) -> None:
        invoice = parser.parse(full_invoice_fragments, include_debug_regions=True, today=today)
        types = {region.region_type for region in invoice.debug_regions}
        assert {RegionType.VENDOR, RegionType.TABLE, RegionType.TOTAL} <= types

    def test_repeatable(self, parser: InvoiceParser, full_invoice_fragments, today) -> None:
        first = parser.parse(full_invoice_fragments, today=today)
        second = parser.parse(full_invoice_fragments, today=today)
        assert first.to_dict() == second.to_dict()


class TestEmptyInput:
    """Nothing to parse is the one rejected input."""

    def test_no_fragments_no_text(self, parser: InvoiceParser) -> None:
        with pytest.raises(EmptyInputError):
            parser.parse([], None)

    def test_blank_text(self, parser: InvoiceParser) -> None:
        with pytest.raises(InvoiceEngineError):
            parser.parse(None, "   \n ")


class TestBodyOnly:
    """Amounts without any total label fall back to the largest one."""

    def test_last_resort_total(self, parser: InvoiceParser, body_only_fragments, today) -> None:
        invoice = parser.parse(body_only_fragments, today=today)
        assert invoice.total_amount == 45.0
        assert invoice.subtotal == 38.14
        assert invoice.tax_amount == 6.86
        assert invoice.items == []
        assert invoice.vendor_name == ""
        assert invoice.field_confidence["total_amount"] == 0.5
        assert invoice.confidence == 0.5


class TestDetailedInvoice:
    """E-Arşiv layout with every field present."""

    def test_fields(self, parser: InvoiceParser, detailed_invoice_fragments, today) -> None:
        invoice = parser.parse(detailed_invoice_fragments, today=today)
        assert invoice.vendor_name == "XYZ TİCARET LTD. ŞTİ."
        assert invoice.vendor_tax_id == "1234567890"
        assert invoice.invoice_number == "GIB2024000000123"
        assert invoice.invoice_date == date(2024, 3, 15)
        assert invoice.ettn == "1a2b3c4d-5e6f-7a8b-9c0d-1e2f3a4b5c6d"
        assert [item.total for item in invoice.items] == [60.0, 40.0]
        assert invoice.total_amount == 120.0
        assert invoice.subtotal == 100.0
        assert invoice.tax_amount == 20.0
        assert invoice.confidence == 1.0


class TestRawTextPath:
    """Plain text without positions."""

    def test_raw_text(self, parser: InvoiceParser, today) -> None:
        text = (
            "Bereket Gıda Ltd. Şti.\n"
            "VKN: 1234567890\n"
            "Fatura Tarihi: 02.05.2024\n"
            "Ürün Adı Tutar\n"
            "Elma 30,00\n"
            "Armut 20,00\n"
            "Ara Toplam 50,00\n"
            "KDV %18 9,00\n"
            "Ödenecek Tutar 59,00\n"
        )
        invoice = parser.parse(raw_text=text, today=today)
        assert invoice.vendor_name == "Bereket Gıda Ltd. Şti."
        assert invoice.vendor_tax_id == "1234567890"
        assert invoice.invoice_date == date(2024, 5, 2)
        assert [item.name for item in invoice.items] == ["Elma", "Armut"]
        assert invoice.total_amount == 59.0
        assert invoice.subtotal == 50.0
        assert invoice.tax_amount == 9.0
        assert invoice.field_confidence["total_amount"] == 0.7

    def test_a101_profile(self, parser: InvoiceParser, today) -> None:
        text = "A101 YENİ MAĞAZACILIK A.Ş.\nBelge A123456789012345\nÖDENECEK TUTAR 59,90"
        invoice = parser.parse(raw_text=text, today=today)
        assert invoice.metadata["profile"] == "A101"
        assert invoice.vendor_name == "A101 Yeni Mağazacılık A.Ş."
        assert invoice.invoice_number == "A123456789012345"
        assert invoice.total_amount == 59.9

    def test_trendyol_direct(self, parser: InvoiceParser, today) -> None:
        text = (
            "DSM Grup Danışmanlık İletişim ve Satış Ticaret A.Ş.\n"
            "VKN: 3130557669\n"
            "Sipariş No: TYF12345678901234\n"
            "Vergiler Dahil Toplam 236,00\n"
            "Ödenecek Tutar 240,00\n"
        )
        invoice = parser.parse(raw_text=text, today=today)
        assert invoice.metadata["profile"] == "Trendyol"
        assert invoice.metadata["vendor_type"] == "Trendyol_Direct"
        assert invoice.vendor_name == "Trendyol (DSM Grup)"
        assert invoice.invoice_number == "TYF12345678901234"
        assert invoice.total_amount == 236.0


class TestPipelineConfiguration:
    """Custom registries and strategy lists."""

    def test_default_strategy_order(self) -> None:
        assert [s.name for s in default_strategies()] == [
            "vendor",
            "details",
            "items",
            "financial",
        ]

    def test_profile_override_is_reconciled(self, today) -> None:
        parser = InvoiceParser(registry=ProfileRegistry([FixedTotalProfile()]))
        invoice = parser.parse(raw_text="Sabit Fiyat Mağazası\nToplam 59,00", today=today)
        assert invoice.metadata["profile"] == "Fixed"
        assert invoice.total_amount == 236.0
        assert invoice.subtotal == 200.0
        assert invoice.tax_amount == 36.0

    def test_custom_strategies(self, full_invoice_fragments, today) -> None:
        parser = InvoiceParser(strategies=[VendorStrategy()])
        invoice = parser.parse(full_invoice_fragments, today=today)
        assert invoice.vendor_name == "ABC FIRMA A.Ş."
        assert invoice.total_amount == 0.0
        assert invoice.items == []

    def test_states(self) -> None:
        assert ParseState.REJECTED.value == "rejected"
        assert list(ParseState)[0] == ParseState.EMPTY
