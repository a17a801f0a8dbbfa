"""Value normalization for amounts, dates and document identifiers.

Every function here is pure: it takes text and returns a value or an
empty default. Unparseable candidates are skipped locally and never
raise, so a single noisy fragment cannot abort a parse.
"""

from datetime import date
from typing import NamedTuple

from src.utils.config import DateConfig
from src.utils.logger import get_logger

from .patterns import PATTERNS, INVOICE_NUMBER_PATTERNS, TAX_RATES, fold_text

logger = get_logger(__name__)

_ETTN_FIXES = str.maketrans({"l": "1", "I": "1", "O": "0", "o": "0"})
_ETTN_GROUPS = (8, 4, 4, 4, 12)
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")
_MAX_BARE_DIGITS = 7


class TaxIdMatch(NamedTuple):
    """A tax identifier and how it was found.

    ``method`` is ``"labeled"``, ``"checksum"`` or ``"candidate"``.
    """

    value: str
    method: str


# ---------------------------------------------------------------------------
# Amounts
# ---------------------------------------------------------------------------


def normalize_amount(text: str) -> float | None:
    """Parse a Turkish or international amount string.

    The rightmost separator is the decimal mark when both ``.`` and
    ``,`` are present. A lone separator followed by exactly three digits
    (or repeated) is digit grouping.

    Args:
        text: Raw token such as ``"1.234,56"``, ``"809,96 TL"`` or
            ``"59.00"``.

    Returns:
        The value, or ``None`` if no number can be read.
    """
    cleaned = "".join(c for c in text if c.isdigit() or c in ".,")
    if not any(c.isdigit() for c in cleaned):
        return None

    last_dot, last_comma = cleaned.rfind("."), cleaned.rfind(",")
    if last_dot >= 0 and last_comma >= 0:
        decimal_mark = "," if last_comma > last_dot else "."
        grouping = "." if decimal_mark == "," else ","
        cleaned = cleaned.replace(grouping, "").replace(decimal_mark, ".")
    elif last_dot >= 0 or last_comma >= 0:
        separator = "," if last_comma >= 0 else "."
        tail = cleaned.rpartition(separator)[2]
        if cleaned.count(separator) > 1 or len(tail) == 3:
            cleaned = cleaned.replace(separator, "")
        else:
            cleaned = cleaned.replace(separator, ".")

    try:
        return float(cleaned)
    except ValueError:
        return None


def find_all_amounts(text: str) -> list[float]:
    """All amounts in ``text``, left to right.

    Dates and percentages are removed first. Four-digit years
    (2000-2099) and bare digit runs longer than seven digits are
    identifiers, not amounts.
    """
    scrubbed = PATTERNS["date"].sub(" ", text)
    scrubbed = PATTERNS["percentage"].sub(" ", scrubbed)

    amounts: list[float] = []
    for match in PATTERNS["amount"].finditer(scrubbed):
        token = match.group(0)
        if token.isdigit():
            if len(token) > _MAX_BARE_DIGITS:
                continue
            if len(token) == 4 and 2000 <= int(token) <= 2099:
                continue
        value = normalize_amount(token)
        if value is not None:
            amounts.append(value)
    return amounts


def find_amount(text: str) -> float | None:
    """Rightmost amount in ``text``; labels precede values on invoices."""
    amounts = find_all_amounts(text)
    return amounts[-1] if amounts else None


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------


def _add_years(day: date, years: int) -> date:
    try:
        return day.replace(year=day.year + years)
    except ValueError:
        # 29 February in a non-leap target year
        return day.replace(year=day.year + years, day=28)


def parse_date(
    text: str,
    today: date | None = None,
    config: DateConfig | None = None,
) -> date | None:
    """First valid ``dd.mm.yyyy`` date in ``text``, with year repair.

    A date further in the future than the plausibility window is taken
    as a misread year and shifted back by ``year_shift_correction``.

    Args:
        text: Text to search. ``.``, ``/`` and ``-`` separators are
            accepted.
        today: Reference day; defaults to ``date.today()``.
        config: Plausibility window and correction.

    Returns:
        The parsed date, or ``None`` when nothing parses.
    """
    today = today or date.today()
    config = config or DateConfig()
    latest = _add_years(today, config.future_window_years)

    for match in PATTERNS["date"].finditer(text):
        day, month, year = (int(g) for g in match.groups())
        try:
            parsed = date(year, month, day)
        except ValueError:
            continue

        if parsed > latest:
            try:
                repaired = date(year - config.year_shift_correction, month, day)
            except ValueError:
                repaired = date(year - config.year_shift_correction, month, 28)
            logger.debug("Repaired future date %s -> %s", parsed, repaired)
            return repaired
        return parsed
    return None


def contains_date(text: str) -> bool:
    return PATTERNS["date"].search(text) is not None


# ---------------------------------------------------------------------------
# ETTN (transaction UUID)
# ---------------------------------------------------------------------------


def format_ettn(hex32: str) -> str:
    """Lay out 32 hex characters as a lowercase 8-4-4-4-12 UUID."""
    hex32 = hex32.lower()
    parts, start = [], 0
    for size in _ETTN_GROUPS:
        parts.append(hex32[start : start + size])
        start += size
    return "-".join(parts)


def clean_ettn(raw: str) -> str:
    """Canonical ETTN from a noisy token, or ``""``.

    Separators are dropped and common OCR confusions corrected
    (``l``/``I`` to ``1``, ``O``/``o`` to ``0``).
    """
    compact = "".join(c for c in raw if c not in " -:\t")
    corrected = compact.translate(_ETTN_FIXES)
    if len(corrected) == 32 and all(c in _HEX_DIGITS for c in corrected):
        return format_ettn(corrected)
    return ""


def _reassemble_ettn(text: str) -> str:
    groups = [
        g.translate(_ETTN_FIXES)
        for g in PATTERNS["ettn_group_split"].split(text)
        if g
    ]
    width = len(_ETTN_GROUPS)
    for start in range(len(groups) - width + 1):
        window = groups[start : start + width]
        if all(
            len(g) == size and all(c in _HEX_DIGITS for c in g)
            for g, size in zip(window, _ETTN_GROUPS)
        ):
            return format_ettn("".join(window))
    return ""


def extract_ettn(text: str) -> str:
    """Find the e-invoice transaction UUID.

    Labeled lines are tried first, then a separator-tolerant pattern
    over the whole text, then reassembly of five adjacent hex groups
    broken up by OCR.

    Args:
        text: Case-preserved page text.

    Returns:
        Canonical lowercase UUID, or ``""``.
    """
    for line in text.splitlines():
        labeled = PATTERNS["ettn_label"].search(line)
        if not labeled:
            continue
        candidate = labeled.group(1)
        match = PATTERNS["ettn"].search(candidate)
        value = clean_ettn(match.group(0)) if match else ""
        value = value or _reassemble_ettn(candidate)
        if value:
            return value

    for match in PATTERNS["ettn"].finditer(text):
        value = clean_ettn(match.group(0))
        if value:
            return value

    return _reassemble_ettn(text)


# ---------------------------------------------------------------------------
# Invoice number
# ---------------------------------------------------------------------------


def extract_invoice_number(text: str) -> str:
    """Invoice number by issuer format priority, then after a label.

    Formats: standard e-Arsiv (``XXX20YY`` + 9 digits), A101
    (``A`` + 15 digits), marketplace (``FA``/``TYF`` + 14 digits),
    short (``XXX`` + 13 digits); finally whatever follows
    ``FATURA NO``.
    """
    folded = fold_text(text)
    for name in INVOICE_NUMBER_PATTERNS:
        match = PATTERNS[name].search(folded)
        if match:
            return match.group(0)
    labeled = PATTERNS["invoice_labeled"].search(folded)
    return labeled.group(1) if labeled else ""


# ---------------------------------------------------------------------------
# Tax identifiers
# ---------------------------------------------------------------------------


def is_valid_vkn(value: str) -> bool:
    """Checksum test for a 10-digit corporate tax number (VKN)."""
    if len(value) != 10 or not value.isdigit():
        return False
    digits = [int(c) for c in value]
    total = 0
    for i in range(9):
        tmp = (digits[i] + 9 - i) % 10
        weighted = (tmp * 2 ** (9 - i)) % 9
        if tmp != 0 and weighted == 0:
            weighted = 9
        total += weighted
    return (10 - total % 10) % 10 == digits[9]


def is_valid_tckn(value: str) -> bool:
    """Checksum test for an 11-digit personal identity number (TCKN)."""
    if len(value) != 11 or not value.isdigit() or value[0] == "0":
        return False
    d = [int(c) for c in value]
    odd = d[0] + d[2] + d[4] + d[6] + d[8]
    even = d[1] + d[3] + d[5] + d[7]
    if (odd * 7 - even) % 10 != d[9]:
        return False
    return sum(d[:10]) % 10 == d[10]


def is_valid_tax_id(value: str) -> bool:
    return is_valid_vkn(value) if len(value) == 10 else is_valid_tckn(value)


def extract_tax_id(text: str) -> TaxIdMatch | None:
    """Find a VKN or TCKN.

    A labeled number wins. Otherwise standalone 10/11-digit sequences
    that are not phone numbers are candidates; a checksum-valid
    candidate is preferred, but failing the checksum does not reject
    the only candidate.

    Args:
        text: Text to search.

    Returns:
        The match and its method, or ``None``.
    """
    folded = fold_text(text)
    for name in ("vkn_labeled", "tckn_labeled"):
        labeled = PATTERNS[name].search(folded)
        if labeled:
            return TaxIdMatch(labeled.group(1), "labeled")

    candidates = [
        m.group(1)
        for m in PATTERNS["tax_id_candidate"].finditer(folded)
        if not is_phone_number(m.group(1))
    ]
    if not candidates:
        return None
    for candidate in candidates:
        if is_valid_tax_id(candidate):
            return TaxIdMatch(candidate, "checksum")
    return TaxIdMatch(candidates[0], "candidate")


# ---------------------------------------------------------------------------
# Misc
# ---------------------------------------------------------------------------


def detect_tax_rate(text: str, default: float = 0.18) -> float:
    """VAT rate named in the text (1, 8, 10, 18 or 20 percent).

    Recognizes ``KDV %18``, ``KDV (%20)``, ``%18 KDV``, ``18% KDV`` and
    similar; higher rates are checked first.
    """
    folded = fold_text(text)
    for rate in TAX_RATES:
        if PATTERNS[f"tax_rate_{rate}"].search(folded):
            return rate / 100
    return default


def is_phone_number(text: str) -> bool:
    compact = text.replace(" ", "")
    return (
        compact.startswith("+9")
        or compact.startswith("05")
        or "TEL" in fold_text(compact)
    )
