"""Vendor profile capability interface."""

from typing import Protocol

from src.extraction.invoice import Invoice
from src.layout.geometry import Fragment, Rect


class VendorProfile(Protocol):
    """Issuer-specific refinements layered on generic extraction.

    Profiles are stateless. ``matches`` receives the page text folded
    to ASCII lowercase (``"Yeni Mağazacılık"`` becomes
    ``"yeni magazacilik"``). ``amount_region`` is an optional
    normalized rectangle where the issuer prints the payable total.
    """

    name: str
    amount_region: Rect | None

    def matches(self, text: str) -> bool: ...

    def apply(self, invoice: Invoice, raw_text: str, fragments: list[Fragment]) -> None: ...
