"""
Pure domain layer.

Value objects, rounding rules, classifications and the clock. No ORM, no
database, no I/O (except SystemClock).
"""

from invoicing_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from invoicing_kernel.domain.currency import CurrencyInfo, CurrencyRegistry
from invoicing_kernel.domain.documents import (
    DocumentKind,
    DocumentStatus,
    PaymentMethod,
    SettlementStatus,
)
from invoicing_kernel.domain.monetary import (
    MONEY_PLACES,
    MONEY_QUANTUM,
    MONEY_TOLERANCE,
    amounts_equal,
    round_money,
    to_decimal,
)
from invoicing_kernel.domain.values import Currency, Money

__all__ = [
    # Value objects
    "Currency",
    "Money",
    # Rounding
    "MONEY_PLACES",
    "MONEY_QUANTUM",
    "MONEY_TOLERANCE",
    "amounts_equal",
    "round_money",
    "to_decimal",
    # Classifications
    "DocumentKind",
    "DocumentStatus",
    "PaymentMethod",
    "SettlementStatus",
    # Clock
    "Clock",
    "SystemClock",
    "DeterministicClock",
    # Currency
    "CurrencyRegistry",
    "CurrencyInfo",
]
