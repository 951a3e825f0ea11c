"""
Reconciliation Domain Objects.

Immutable value objects for payment ledger entries, unpaid-document views,
settlement states, and the typed outcomes of payment validation. Pure
domain objects with no I/O dependencies.

Validation errors are values, not exceptions: each carries a
machine-readable ``code``, the numbers that caused it, and a ``message``
embedding those numbers at 3-place precision.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import ClassVar, Union
from uuid import UUID, uuid4

from invoicing_kernel.domain.documents import PaymentMethod, SettlementStatus
from invoicing_kernel.domain.monetary import format_amount
from invoicing_kernel.domain.values import Money
from invoicing_kernel.logging_config import get_logger

logger = get_logger("engines.reconciliation.domain")


@dataclass(frozen=True, slots=True)
class PaymentLedgerEntry:
    """
    One payment applied to one finalized document.

    Append-only: entries are never edited. Use ``create()``; it rejects
    negative amounts.
    """

    entry_id: UUID
    document_id: str
    amount_applied: Money
    date_applied: date
    method: PaymentMethod
    used_advance_balance: bool = False

    @classmethod
    def create(
        cls,
        document_id: str,
        amount_applied: Money,
        date_applied: date,
        method: PaymentMethod | str,
        used_advance_balance: bool = False,
        entry_id: UUID | None = None,
    ) -> PaymentLedgerEntry:
        """
        Build a ledger entry.

        Raises:
            ValueError: If ``amount_applied`` is negative or ``document_id``
                is empty.
        """
        if not document_id:
            raise ValueError("Ledger entry requires a document_id")
        if amount_applied.is_negative:
            logger.warning("ledger_entry_negative_amount_rejected", extra={
                "document_id": document_id,
                "amount": str(amount_applied.amount),
            })
            raise ValueError(
                f"Ledger entry amount cannot be negative: {amount_applied}"
            )
        return cls(
            entry_id=entry_id or uuid4(),
            document_id=document_id,
            amount_applied=amount_applied.round(),
            date_applied=date_applied,
            method=PaymentMethod(method),
            used_advance_balance=used_advance_balance,
        )


@dataclass(frozen=True, slots=True)
class UnpaidDocument:
    """One row of the unpaid-documents view for a customer."""

    document_id: str
    customer_id: str
    grand_total: Money
    amount_paid: Money
    remaining_balance: Money


@dataclass(frozen=True, slots=True)
class SettlementState:
    """How much of a document has been settled."""

    document_id: str
    status: SettlementStatus
    grand_total: Money
    amount_paid: Money
    remaining_balance: Money

    @property
    def is_paid(self) -> bool:
        return self.status == SettlementStatus.PAID

    @property
    def is_partially_paid(self) -> bool:
        return self.status == SettlementStatus.PARTIAL


@dataclass(frozen=True, slots=True)
class AdvanceRequest:
    """Whether the payment should consume the customer's advance balance."""

    use_advance: bool = False
    available_balance: Money | None = None

    @classmethod
    def none(cls) -> AdvanceRequest:
        return cls(use_advance=False)

    @classmethod
    def from_balance(cls, available_balance: Money) -> AdvanceRequest:
        return cls(use_advance=True, available_balance=available_balance)


@dataclass(frozen=True, slots=True)
class NormalizedPayment:
    """A payment accepted by validation, ready to be appended to the ledger."""

    amount_applied: Money
    used_advance_balance: bool
    advance_consumed: Money


# Validation errors


@dataclass(frozen=True, slots=True)
class AmountMustBePositive:
    code: ClassVar[str] = "AMOUNT_MUST_BE_POSITIVE"

    proposed_amount: Money

    @property
    def message(self) -> str:
        return (
            f"Payment amount must be greater than zero "
            f"(got {format_amount(self.proposed_amount.amount)})"
        )


@dataclass(frozen=True, slots=True)
class ExceedsRemainingBalance:
    code: ClassVar[str] = "EXCEEDS_REMAINING_BALANCE"

    proposed_amount: Money
    remaining_balance: Money

    @property
    def message(self) -> str:
        return (
            f"Payment amount {format_amount(self.proposed_amount.amount)} exceeds "
            f"the remaining balance {format_amount(self.remaining_balance.amount)}"
        )


@dataclass(frozen=True, slots=True)
class InsufficientAdvanceBalance:
    code: ClassVar[str] = "INSUFFICIENT_ADVANCE_BALANCE"

    available_balance: Money
    remaining_balance: Money

    @property
    def message(self) -> str:
        return (
            f"No advance balance can be applied: available "
            f"{format_amount(self.available_balance.amount)}, remaining "
            f"{format_amount(self.remaining_balance.amount)}"
        )


@dataclass(frozen=True, slots=True)
class AmountMismatchWithAdvance:
    code: ClassVar[str] = "AMOUNT_MISMATCH_WITH_ADVANCE"

    proposed_amount: Money
    expected_amount: Money

    @property
    def message(self) -> str:
        return (
            f"When paying from the advance balance the amount must be "
            f"{format_amount(self.expected_amount.amount)} "
            f"(got {format_amount(self.proposed_amount.amount)})"
        )


PaymentValidationError = Union[
    AmountMustBePositive,
    ExceedsRemainingBalance,
    InsufficientAdvanceBalance,
    AmountMismatchWithAdvance,
]


@dataclass(frozen=True, slots=True)
class PaymentValidationResult:
    """Either an accepted ``payment`` or a typed ``error``, never both."""

    payment: NormalizedPayment | None = None
    error: PaymentValidationError | None = None

    def __post_init__(self) -> None:
        if (self.payment is None) == (self.error is None):
            raise ValueError("PaymentValidationResult needs exactly one of payment or error")

    @property
    def is_valid(self) -> bool:
        return self.payment is not None

    @classmethod
    def accepted(cls, payment: NormalizedPayment) -> PaymentValidationResult:
        return cls(payment=payment)

    @classmethod
    def rejected(cls, error: PaymentValidationError) -> PaymentValidationResult:
        return cls(error=error)
