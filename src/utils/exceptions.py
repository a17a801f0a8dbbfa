"""Exceptions raised by the invoice layout engine.

Hierarchy::

    InvoiceEngineError
    ├── EmptyInputError          (no fragments and no raw text)
    └── PatternCompilationError  (malformed constant pattern, import time)

Missing fields are never errors; they keep their defaults and lower the
confidence score instead.
"""


class InvoiceEngineError(Exception):
    """Base class for engine errors.

    Attributes:
        message: Human-readable error message.
        details: Extra context for logs and API responses.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class EmptyInputError(InvoiceEngineError):
    """Both the fragment list and the raw-text fallback are empty."""

    def __init__(self) -> None:
        super().__init__("No text fragments or raw text to parse")


class PatternCompilationError(InvoiceEngineError):
    """A constant regular expression failed to compile."""

    def __init__(self, name: str, pattern: str, reason: str) -> None:
        super().__init__(
            f"Invalid pattern '{name}'",
            {"pattern": pattern, "reason": reason},
        )
