"""Keyword lists and regular expressions for Turkish e-invoices.

Keywords are matched against folded text (see :func:`fold_text`), so
they are folded once here and callers never need to care about
``İ``/``ı`` or other diacritics. Regular expressions are compiled once
at import into a read-only mapping; a malformed pattern raises
:class:`PatternCompilationError` while the module loads.
"""

import re
from types import MappingProxyType

from src.utils.exceptions import PatternCompilationError

_PRE_FOLD = str.maketrans({"ı": "i", "İ": "I"})
_POST_FOLD = str.maketrans("ŞĞÜÖÇ", "SGUOC")


def fold_text(text: str) -> str:
    """Upper-case ``text`` and strip Turkish diacritics.

    ``"Mal Hizmet"``, ``"MAL HİZMET"`` and ``"mal hızmet"`` all fold
    to ``"MAL HIZMET"``.
    """
    return text.translate(_PRE_FOLD).upper().translate(_POST_FOLD)


def _fold_all(*keywords: str) -> tuple[str, ...]:
    return tuple(dict.fromkeys(fold_text(k) for k in keywords))


def contains_any(folded: str, keywords: tuple[str, ...]) -> bool:
    """True if any pre-folded keyword occurs in already-folded text."""
    return any(k in folded for k in keywords)


# Vendor block
BUYER_KEYWORDS = _fold_all("SAYIN", "MÜŞTERİ", "ALICI", "MUSTERI", "SAYIM")
MERCHANT_BLACKLIST = _fold_all(
    "BELGE NO", "SİPARİŞ", "TARİH", "IRSALIYE", "SAYFA", "FATURA",
    "MÜŞTERİ", "VKN:", "VERGİ", "WEB", "ADRES",
)
COMPANY_SUFFIXES = _fold_all(
    "A.Ş", "A.S", "LTD", "LIMITED", "LİMİTED", "TİC", "TIC", "SAN",
    "ANONİM", "ŞTİ", "ŞİRKETİ", "MAĞAZACILIK",
)
MARKETPLACE_PHRASES = _fold_all("PAZARYERİ: TRENDYOL", "ÖDEME ARACISI: TRENDYOL")

# Issuers identified by tax id alone: tax id -> (display name, vendor type)
KNOWN_ISSUERS: MappingProxyType = MappingProxyType(
    {"3130557669": ("Trendyol (DSM Grup)", "Trendyol_Direct")}
)

# Invoice details
DATE_TARGETS = _fold_all("FATURA TARİHİ", "DÜZENLEME TARİHİ", "DÜZENLEME ZAMANI")
DATE_BLACKLIST = _fold_all("SİPARİŞ", "SIPARIS", "ÖDEME", "VADE", "TESLİMAT")
INVOICE_NUMBER_LABELS = _fold_all("FATURA NO", "FATURA NUMARASI")

# Line items
TABLE_HEADERS = _fold_all("MAL HİZMET", "ÜRÜN ADI", "CİNSİ", "AÇIKLAMA", "MALIN CİNSİ")
TABLE_FOOTERS = _fold_all("TOPLAM", "ÖDENECEK", "YALNIZ", "GENEL TOPLAM", "ARA TOPLAM")

# Financial block
STRICT_TOTAL_ANCHORS = _fold_all(
    "ÖDENECEK TUTAR", "VERGİLER DAHİL TOPLAM", "GENEL TOPLAM", "TOPLAM TUTAR"
)
LOOSE_TOTAL_ANCHOR = fold_text("TOPLAM")
LOOSE_TOTAL_EXCLUDES = _fold_all("ARA", "KDV")
AMOUNT_BLACKLIST = _fold_all(
    "HARİÇ", "HARIC", "MATRAH", "NET", "KDV'SİZ", "KDVSİZ", "MAL HİZMET"
)
SUBTOTAL_LABELS = _fold_all(
    "ARA TOPLAM", "MATRAH", "KDV HARİÇ", "VERGİ HARİÇ", "MAL HİZMET TOPLAM"
)
TAX_LABELS = _fold_all(
    "HESAPLANAN KDV", "TOPLAM KDV", "KDV TUTARI",
    "HESAPLANAN KATMA DEĞER VERGİSİ", "KDV (%", "KDV %",
)
DIRECT_TOTAL_ANCHOR = fold_text("VERGİLER DAHİL TOPLAM")
DIRECT_TOTAL_SKIP = fold_text("TOPLAM BİRİM FİYAT")
PAYABLE_ANCHOR = fold_text("ÖDENECEK TUTAR")

CURRENCY_TOKENS = ("TL", "TRY", "₺", "Adet", "ADET")

TAX_RATES = (20, 18, 10, 8, 1)


def _tax_rate_patterns() -> dict[str, str]:
    patterns: dict[str, str] = {}
    for rate in TAX_RATES:
        patterns[f"tax_rate_{rate}"] = (
            rf"KDV\s*(?:ORANI)?\s*[:(]?\s*%\s*{rate}(?![\d.,])"
            rf"|KDV\s*(?:ORANI)?\s*[:(]?\s*(?<![\d.,]){rate}\s*%"
            rf"|%\s*{rate}(?![\d.,])[^\n]*KDV"
            rf"|(?<![\d.,%]){rate}\s*%[^\n]*KDV"
        )
    return patterns


_PATTERN_SOURCES: dict[str, str] = {
    # "1.234,56", "1,234.56", "809,96", "59.00", "150"
    "amount": (
        r"(?<![\d.,])"
        r"(?:\d{1,3}(?:\.\d{3})+(?:,\d{1,2})?"
        r"|\d{1,3}(?:,\d{3})+(?:\.\d{1,2})?"
        r"|\d+(?:[.,]\d{1,2})?)"
        r"(?![\d])"
    ),
    "date": r"\b(\d{1,2})[./-](\d{1,2})[./-](\d{4})\b",
    "percentage": r"%\s*\d+(?:[.,]\d+)?|\d+(?:[.,]\d+)?\s*%",
    "ettn": (
        r"(?<![A-Za-z0-9])"
        r"[a-fA-F0-9lOI]{8}[- ]?[a-fA-F0-9lOI]{4}[- ]?[a-fA-F0-9lOI]{4}"
        r"[- ]?[a-fA-F0-9lOI]{4}[- ]?[a-fA-F0-9lOI]{12}"
        r"(?![A-Za-z0-9])"
    ),
    "ettn_label": r"(?i)ETTN\s*[:.]?\s*(.+)",
    "ettn_group_split": r"[\s\-:]+",
    "invoice_standard": r"\b[A-Z0-9]{3}20\d{2}\d{9}\b",
    "invoice_a101": r"\bA\d{15}\b",
    "invoice_marketplace": r"\b(?:FA|TYF)\d{14}\b",
    "invoice_short": r"\b[A-Z]{3}\d{13}\b",
    "invoice_labeled": r"FATURA\s*(?:NO|NUMARASI)\s*[:#]?\s*([A-Z0-9][A-Z0-9\-/]{4,})",
    "vkn_labeled": r"(?:VKN|VERGI\s*(?:KIMLIK\s*)?NO)\s*[:.]?\s*(\d{10})(?!\d)",
    "tckn_labeled": r"(?:TCKN|T\.?\s*C\.?\s*KIMLIK\s*NO)\s*[:.]?\s*(\d{11})(?!\d)",
    "tax_id_candidate": r"(?<!\d)(\d{10}|\d{11})(?!\d)",
    "trendyol_order": r"\b(?:TYF|FA)\d{14}\b",
    **_tax_rate_patterns(),
}

# Patterns searched in priority order for issuer invoice numbers
INVOICE_NUMBER_PATTERNS = (
    "invoice_standard",
    "invoice_a101",
    "invoice_marketplace",
    "invoice_short",
)


def _compile_all(sources: dict[str, str]) -> MappingProxyType:
    compiled: dict[str, re.Pattern[str]] = {}
    for name, source in sources.items():
        try:
            compiled[name] = re.compile(source)
        except re.error as exc:
            raise PatternCompilationError(name, source, str(exc)) from exc
    return MappingProxyType(compiled)


PATTERNS: MappingProxyType = _compile_all(_PATTERN_SOURCES)
