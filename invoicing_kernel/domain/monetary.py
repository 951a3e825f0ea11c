"""
Monetary -- shared rounding and tolerance rules.

Responsibility:
    One place for the numeric conventions every monetary figure follows:
    3 decimal places, half-up rounding, and a single comparison tolerance.

Architecture position:
    Kernel > Domain -- pure functions, zero I/O. Used by ``Money``, the
    totals engine and the reconciliation engine.

Invariants enforced:
    - Reported amounts are quantized to ``MONEY_QUANTUM`` with ROUND_HALF_UP.
    - Every "equal within tolerance" check uses ``MONEY_TOLERANCE``.
    - Floats never reach arithmetic: inputs are converted through ``str``.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

MONEY_PLACES = 3
MONEY_QUANTUM = Decimal("0.001")
MONEY_TOLERANCE = Decimal("0.001")

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def to_decimal(value: Any) -> Decimal:
    """Convert ``value`` to Decimal without going through binary floats.

    ``None`` and empty strings become zero.

    Raises:
        ValueError: If the value is not numeric.
    """
    if isinstance(value, Decimal):
        return value
    if value is None or value == "":
        return ZERO
    if isinstance(value, bool):
        raise ValueError(f"Invalid numeric value: {value!r}")
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"Invalid numeric value: {value!r}") from exc
    if not result.is_finite():
        raise ValueError(f"Invalid numeric value: {value!r}")
    return result


def round_money(value: Decimal | int | str) -> Decimal:
    """Round to 3 places, half away from zero."""
    return to_decimal(value).quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def clamp_non_negative(value: Decimal) -> Decimal:
    return value if value > ZERO else ZERO


def clamp_percent(value: Decimal) -> Decimal:
    """Clamp a percentage into [0, 100]."""
    if value < ZERO:
        return ZERO
    if value > HUNDRED:
        return HUNDRED
    return value


def percent_to_rate(pct: Decimal) -> Decimal:
    """19 -> 0.19"""
    return pct / HUNDRED


def amounts_equal(left: Decimal, right: Decimal) -> bool:
    """True when the rounded amounts differ by at most ``MONEY_TOLERANCE``."""
    return abs(round_money(left) - round_money(right)) <= MONEY_TOLERANCE


def format_amount(value: Decimal) -> str:
    """Render an amount the way error messages show it: ``30.000``."""
    return f"{round_money(value):.{MONEY_PLACES}f}"
