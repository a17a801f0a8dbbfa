"""Tests for text folding, compiled patterns and value normalizers."""

import re
from datetime import date

import pytest

from src.extraction.normalizers import (
    TaxIdMatch,
    clean_ettn,
    contains_date,
    detect_tax_rate,
    extract_ettn,
    extract_invoice_number,
    extract_tax_id,
    find_all_amounts,
    find_amount,
    format_ettn,
    is_phone_number,
    is_valid_tckn,
    is_valid_vkn,
    normalize_amount,
    parse_date,
)
from src.extraction.patterns import (
    PATTERNS,
    STRICT_TOTAL_ANCHORS,
    TABLE_HEADERS,
    _compile_all,
    contains_any,
    fold_text,
)
from src.utils.config import DateConfig
from src.utils.exceptions import PatternCompilationError

ETTN = "1a2b3c4d-5e6f-7a8b-9c0d-1e2f3a4b5c6d"


class TestFolding:
    """Tests for Turkish case folding and keyword lookup."""

    @pytest.mark.parametrize("text", ["Mal Hizmet", "MAL HİZMET", "mal hızmet"])
    def test_fold_variants_agree(self, text: str) -> None:
        assert fold_text(text) == "MAL HIZMET"

    def test_fold_strips_diacritics(self) -> None:
        assert fold_text("Ödenecek Tutar") == "ODENECEK TUTAR"
        assert fold_text("ŞTİ. Çağrı") == "STI. CAGRI"

    def test_contains_any(self) -> None:
        assert contains_any(fold_text("Ödenecek Tutar: 59,00"), STRICT_TOTAL_ANCHORS)
        assert contains_any(fold_text("Malın Cinsi"), TABLE_HEADERS)
        assert not contains_any(fold_text("Kargo"), STRICT_TOTAL_ANCHORS)


class TestPatterns:
    """Tests for the compiled pattern table."""

    def test_all_patterns_compiled(self) -> None:
        assert PATTERNS
        assert all(isinstance(p, re.Pattern) for p in PATTERNS.values())

    def test_table_is_read_only(self) -> None:
        with pytest.raises(TypeError):
            PATTERNS["amount"] = re.compile("x")  # type: ignore[index]

    def test_malformed_pattern_raises(self) -> None:
        with pytest.raises(PatternCompilationError) as exc_info:
            _compile_all({"broken": "(unclosed"})
        assert "broken" in str(exc_info.value)
        assert exc_info.value.details["pattern"] == "(unclosed"


class TestNormalizeAmount:
    """Tests for amount string normalization."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("1.234,56", 1234.56),
            ("1,234.56", 1234.56),
            ("809,96", 809.96),
            ("809,96 TL", 809.96),
            ("59.00", 59.0),
            ("1.234", 1234.0),
            ("1.234.567", 1234567.0),
            ("150", 150.0),
        ],
    )
    def test_formats(self, text: str, expected: float) -> None:
        assert normalize_amount(text) == pytest.approx(expected)

    def test_no_digits(self) -> None:
        assert normalize_amount("TL") is None
        assert normalize_amount("") is None


class TestFindAmounts:
    """Tests for amount discovery in free text."""

    def test_skips_dates(self) -> None:
        assert find_all_amounts("Tarih 15.03.2024 Tutar 1.234,56") == [
            pytest.approx(1234.56)
        ]

    def test_year_is_not_an_amount(self) -> None:
        assert find_all_amounts("2024") == []

    def test_skips_percentages(self) -> None:
        assert find_all_amounts("KDV %20 20,00") == [pytest.approx(20.0)]

    def test_skips_long_identifiers(self) -> None:
        assert find_all_amounts("Sipariş 12345678901") == []

    def test_rightmost_amount(self) -> None:
        assert find_amount("Ara Toplam 10,00 Toplam 59,00") == pytest.approx(59.0)

    def test_no_amount(self) -> None:
        assert find_amount("Teşekkür ederiz") is None


class TestParseDate:
    """Tests for date parsing and future-year repair."""

    def setup_method(self) -> None:
        self.today = date(2024, 6, 1)

    @pytest.mark.parametrize("text", ["15.03.2024", "15/03/2024", "15-03-2024"])
    def test_separators(self, text: str) -> None:
        assert parse_date(text, self.today) == date(2024, 3, 15)

    def test_first_valid_date(self) -> None:
        assert parse_date("31.02.2024 sonra 01.04.2024", self.today) == date(2024, 4, 1)

    def test_future_year_repaired(self) -> None:
        assert parse_date("15.03.2029", self.today) == date(2025, 3, 15)

    def test_within_window_kept(self) -> None:
        assert parse_date("15.03.2025", self.today) == date(2025, 3, 15)

    def test_custom_correction(self) -> None:
        config = DateConfig(year_shift_correction=5)
        assert parse_date("15.03.2029", self.today, config) == date(2024, 3, 15)

    def test_no_date(self) -> None:
        assert parse_date("Fatura", self.today) is None

    def test_contains_date(self) -> None:
        assert contains_date("Tarih: 01.01.2024")
        assert not contains_date("Tarih: yok")


class TestEttn:
    """Tests for ETTN extraction and cleanup."""

    def test_format(self) -> None:
        assert format_ettn("1A2B3C4D5E6F7A8B9C0D1E2F3A4B5C6D") == ETTN

    def test_clean_fixes_ocr_confusions(self) -> None:
        assert clean_ettn("la2b3c4d-5e6f-7a8b-9cOd-1e2f3a4b5c6d") == ETTN

    def test_clean_rejects_wrong_length(self) -> None:
        assert clean_ettn("1a2b3c4d-5e6f") == ""

    def test_labeled(self) -> None:
        assert extract_ettn(f"ETTN: {ETTN.upper()}") == ETTN

    def test_unlabeled(self) -> None:
        assert extract_ettn(f"Belge\n{ETTN}\nTeşekkürler") == ETTN

    def test_reassembles_split_groups(self) -> None:
        assert extract_ettn("ETTN : 1a2b3c4d -  5e6f : 7a8b  9c0d - 1e2f3a4b5c6d") == ETTN

    def test_missing(self) -> None:
        assert extract_ettn("Fatura No: GIB2024000000123") == ""


class TestInvoiceNumber:
    """Tests for invoice number formats."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("Fatura No: GIB2024000000123", "GIB2024000000123"),
            ("Fatura No: A123456789012345", "A123456789012345"),
            ("Sipariş TYF12345678901234", "TYF12345678901234"),
            ("Belge ABC1234567890123", "ABC1234567890123"),
            ("fatura no: gıb2024000000123", "GIB2024000000123"),
        ],
    )
    def test_formats(self, text: str, expected: str) -> None:
        assert extract_invoice_number(text) == expected

    def test_labeled_fallback(self) -> None:
        assert extract_invoice_number("Fatura No: 12345-X") == "12345-X"

    def test_missing(self) -> None:
        assert extract_invoice_number("Teşekkür ederiz") == ""


class TestTaxId:
    """Tests for VKN/TCKN checksums and extraction."""

    @pytest.mark.parametrize("value", ["1234567890", "3130557669"])
    def test_valid_vkn(self, value: str) -> None:
        assert is_valid_vkn(value)

    @pytest.mark.parametrize("value", ["1234567891", "123456789", "12345678ab"])
    def test_invalid_vkn(self, value: str) -> None:
        assert not is_valid_vkn(value)

    def test_tckn(self) -> None:
        assert is_valid_tckn("10000000146")
        assert not is_valid_tckn("10000000147")
        assert not is_valid_tckn("00000000146")

    def test_labeled_vkn(self) -> None:
        assert extract_tax_id("Vergi No: 1234567890") == TaxIdMatch("1234567890", "labeled")

    def test_labeled_tckn(self) -> None:
        match = extract_tax_id("T.C. Kimlik No: 10000000146")
        assert match == TaxIdMatch("10000000146", "labeled")

    def test_checksum_candidate_preferred(self) -> None:
        match = extract_tax_id("Ref 1234567891 Firma 3130557669")
        assert match == TaxIdMatch("3130557669", "checksum")

    def test_invalid_candidate_kept(self) -> None:
        assert extract_tax_id("Ref 1234567891") == TaxIdMatch("1234567891", "candidate")

    def test_phone_numbers_skipped(self) -> None:
        assert extract_tax_id("Gsm 05321234567") is None

    def test_nothing_found(self) -> None:
        assert extract_tax_id("Firma") is None


class TestTaxRate:
    """Tests for VAT rate detection."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("KDV %18", 0.18),
            ("Hesaplanan KDV (%20)", 0.20),
            ("%8 KDV", 0.08),
            ("18% KDV", 0.18),
            ("KDV %10", 0.10),
            ("KDV %1", 0.01),
        ],
    )
    def test_detects(self, text: str, expected: float) -> None:
        assert detect_tax_rate(text) == pytest.approx(expected)

    def test_default(self) -> None:
        assert detect_tax_rate("Toplam 59,00") == 0.18
        assert detect_tax_rate("Toplam 59,00", default=0.20) == 0.20


class TestPhoneNumber:
    """Tests for phone number detection."""

    @pytest.mark.parametrize("text", ["+90 532 123 45 67", "0532 123 45 67", "Tel: 212"])
    def test_phone(self, text: str) -> None:
        assert is_phone_number(text)

    def test_not_phone(self) -> None:
        assert not is_phone_number("1234567890")
