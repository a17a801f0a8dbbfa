"""Shared test fixtures for the invoice layout engine test suite."""

from datetime import date
from pathlib import Path
from typing import Callable

import pytest

from src.extraction.parser import InvoiceParser
from src.layout.geometry import Fragment, Rect

FragmentFactory = Callable[..., Fragment]


def _fragment(
    text: str,
    x: float,
    y: float,
    width: float = 0.2,
    height: float = 0.02,
    confidence: float = 0.95,
) -> Fragment:
    return Fragment(text=text, rect=Rect(x, y, width, height), confidence=confidence)


@pytest.fixture
def make_fragment() -> FragmentFactory:
    """Factory for fragments from a top-left rectangle."""
    return _fragment


@pytest.fixture
def today() -> date:
    """Fixed reference day for date-dependent assertions."""
    return date(2024, 6, 1)


@pytest.fixture
def parser() -> InvoiceParser:
    """Parser with default configuration and profiles."""
    return InvoiceParser()


@pytest.fixture
def full_invoice_fragments() -> list[Fragment]:
    """Vendor block, a one-row item table and a payable total."""
    return [
        _fragment("ABC FIRMA A.Ş.", 0.05, 0.04, width=0.3),
        _fragment("VKN: 1234567890", 0.05, 0.09, width=0.3),
        _fragment("MAL HİZMET", 0.10, 0.34),
        _fragment("TUTAR", 0.80, 0.34, width=0.1),
        _fragment("Kalem 1", 0.10, 0.44),
        _fragment("50,00", 0.80, 0.44, width=0.1),
        _fragment("ÖDENECEK TUTAR", 0.50, 0.84, width=0.25),
        _fragment("59,00", 0.80, 0.84, width=0.1),
    ]


@pytest.fixture
def body_only_fragments() -> list[Fragment]:
    """Two amounts in the body and no total label anywhere."""
    return [
        _fragment("Kargo", 0.10, 0.40),
        _fragment("12,00", 0.80, 0.40, width=0.1),
        _fragment("Ürün", 0.10, 0.50),
        _fragment("45,00", 0.80, 0.50, width=0.1),
    ]


@pytest.fixture
def detailed_invoice_fragments() -> list[Fragment]:
    """E-Arşiv invoice with header-right details and a full footer."""
    return [
        _fragment("XYZ TİCARET LTD. ŞTİ.", 0.05, 0.04, width=0.35),
        _fragment("Vergi No: 1234567890", 0.05, 0.09, width=0.3),
        _fragment("Tel: 0212 555 12 34", 0.05, 0.14, width=0.3),
        _fragment("SAYIN Ahmet Yılmaz", 0.05, 0.24, width=0.3),
        _fragment("Fatura No: GIB2024000000123", 0.60, 0.04, width=0.35),
        _fragment("Fatura Tarihi: 15.03.2024", 0.60, 0.09, width=0.35),
        _fragment("Sipariş Tarihi: 10.03.2024", 0.60, 0.14, width=0.35),
        _fragment(
            "ETTN: 1a2b3c4d-5e6f-7a8b-9c0d-1e2f3a4b5c6d", 0.55, 0.19, width=0.42
        ),
        _fragment("Mal Hizmet", 0.10, 0.34),
        _fragment("Tutar", 0.80, 0.34, width=0.1),
        _fragment("Kalem A", 0.10, 0.40),
        _fragment("60,00", 0.80, 0.40, width=0.1),
        _fragment("Kalem B", 0.10, 0.46),
        _fragment("40,00", 0.80, 0.46, width=0.1),
        _fragment("Mal Hizmet Toplam Tutarı", 0.40, 0.74, width=0.3),
        _fragment("100,00", 0.80, 0.74, width=0.1),
        _fragment("Hesaplanan KDV (%20)", 0.40, 0.79, width=0.3),
        _fragment("20,00", 0.80, 0.79, width=0.1),
        _fragment("Ödenecek Tutar", 0.40, 0.84, width=0.3),
        _fragment("120,00", 0.80, 0.84, width=0.1),
    ]


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def config_dir(project_root: Path) -> Path:
    """Return the configs directory path."""
    return project_root / "configs"
