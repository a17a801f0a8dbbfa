"""Arithmetic reconciliation of total, tax and subtotal.

Invariant: ``subtotal + tax == total`` within ``heal_tolerance`` and
``tax <= max_tax_rate * subtotal``. :func:`heal` derives a missing
figure or corrects the inconsistent one so that the invariant holds
whenever a total is known. Every branch works on values rounded to
cents, which keeps the operation idempotent:
``heal(heal(x)) == heal(x)``.
"""

from dataclasses import dataclass

from src.utils.config import FinancialConfig
from src.utils.logger import get_logger

logger = get_logger(__name__)

_CENT = 0.02


@dataclass(frozen=True)
class FinancialFigures:
    total: float = 0.0
    tax: float = 0.0
    subtotal: float = 0.0


def _cents(value: float) -> float:
    return round(max(0.0, value), 2)


def is_settled(figures: FinancialFigures, config: FinancialConfig | None = None) -> bool:
    """True when the figures satisfy the reconciliation invariant."""
    config = config or FinancialConfig()
    return (
        figures.subtotal > 0
        and figures.tax >= 0
        and abs(figures.subtotal + figures.tax - figures.total) <= config.heal_tolerance
        and figures.tax <= config.max_tax_rate * figures.subtotal + _CENT
    )


def split_total(total: float, rate: float) -> FinancialFigures:
    """Split a tax-inclusive total at ``rate``."""
    subtotal = round(total / (1 + rate), 2)
    return FinancialFigures(total, round(total - subtotal, 2), subtotal)


def heal(
    figures: FinancialFigures,
    tax_rate: float | None = None,
    config: FinancialConfig | None = None,
) -> FinancialFigures:
    """Complete or correct the financial figures.

    Args:
        figures: Extracted total, tax and subtotal; zero means missing.
        tax_rate: Detected VAT rate as a fraction. Rates outside
            ``(0, max_tax_rate]`` fall back to ``default_tax_rate``.
        config: Tolerances and rate bounds.

    Returns:
        Reconciled figures. Without any known value the input is
        returned unchanged.
    """
    config = config or FinancialConfig()
    rate = tax_rate if tax_rate and 0 < tax_rate <= config.max_tax_rate else None
    rate = rate or config.default_tax_rate

    total, tax, subtotal = _cents(figures.total), _cents(figures.tax), _cents(figures.subtotal)
    if total == 0 and tax == 0 and subtotal == 0:
        return FinancialFigures()

    # Derive a single missing figure from the other two
    if total == 0 and subtotal > 0 and tax > 0:
        total = round(subtotal + tax, 2)
        logger.debug("Derived total %.2f from subtotal and tax", total)
    elif subtotal == 0 and total > 0 and tax > 0:
        subtotal = round(total - tax, 2)
        logger.debug("Derived subtotal %.2f from total and tax", subtotal)
    elif tax == 0 and total > 0 and subtotal > 0 and abs(total - subtotal) > 0.005:
        tax = round(total - subtotal, 2)
        logger.debug("Derived tax %.2f from total and subtotal", tax)
    elif total == 0 and subtotal > 0:
        tax = round(subtotal * rate, 2)
        total = round(subtotal + tax, 2)
        logger.debug("Derived tax and total from subtotal at rate %.2f", rate)
    elif total == 0 and tax > 0:
        subtotal = round(tax / rate, 2)
        total = round(subtotal + tax, 2)
        logger.debug("Derived subtotal and total from tax at rate %.2f", rate)

    if subtotal <= 0 or tax < 0:
        logger.debug("Splitting total %.2f at rate %.2f", total, rate)
        return split_total(total, rate)

    # Tax above the legal maximum is a misread; recompute it
    if tax > config.max_tax_rate * subtotal + _CENT:
        tax = round(subtotal * rate, 2)
        logger.debug("Runaway tax replaced with %.2f", tax)

    current = FinancialFigures(total, tax, subtotal)
    if abs(subtotal + tax - total) > config.heal_tolerance:
        current = _reconcile(current, rate, config)

    if total > 0 and not is_settled(current, config):
        logger.debug("Figures still inconsistent; splitting total %.2f", total)
        return split_total(total, rate)
    return current


def _reconcile(
    figures: FinancialFigures, rate: float, config: FinancialConfig
) -> FinancialFigures:
    """Keep the total and correct either tax or subtotal.

    The candidate must satisfy the invariant; between two valid ones the
    one whose tax sits closer to ``subtotal * rate`` wins, subtotal
    correction on a tie.
    """
    total = figures.total
    tax_fix = FinancialFigures(total, round(total - figures.subtotal, 2), figures.subtotal)
    subtotal_fix = FinancialFigures(total, figures.tax, round(total - figures.tax, 2))

    valid = [c for c in (subtotal_fix, tax_fix) if is_settled(c, config)]
    if not valid:
        return split_total(total, rate)

    chosen = min(valid, key=lambda c: abs(c.tax - c.subtotal * rate))
    logger.debug(
        "Reconciled %s by correcting %s",
        figures,
        "subtotal" if chosen is subtotal_fix else "tax",
    )
    return chosen
