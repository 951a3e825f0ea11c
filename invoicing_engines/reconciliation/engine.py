"""
ReconciliationEngine -- remaining balance, payment validation, advance consumption.

Responsibility:
    Decide how much of a finalized document is still owed and whether a
    proposed payment may be appended to its ledger.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Consumes a document's
    grand total as a plain value; never recomputes totals from lines.

Invariants enforced:
    - Remaining balance never goes below zero.
    - Every comparison uses MONEY_TOLERANCE on 3-place rounded amounts.
    - A payment funded from the advance balance is exactly
      min(available advance, remaining balance).

Failure modes:
    - Business rejections are returned as typed values in a
      PaymentValidationResult; nothing is raised for them.
    - CurrencyMismatchError if amounts in different currencies are mixed.
"""

from __future__ import annotations

from collections.abc import Iterable

from invoicing_engines.reconciliation.domain import (
    AdvanceRequest,
    AmountMismatchWithAdvance,
    AmountMustBePositive,
    ExceedsRemainingBalance,
    InsufficientAdvanceBalance,
    NormalizedPayment,
    PaymentLedgerEntry,
    PaymentValidationResult,
    SettlementState,
    UnpaidDocument,
)
from invoicing_engines.tracer import traced_engine
from invoicing_kernel.domain.documents import SettlementStatus
from invoicing_kernel.domain.monetary import MONEY_TOLERANCE, amounts_equal
from invoicing_kernel.domain.values import Currency, Money
from invoicing_kernel.logging_config import get_logger

logger = get_logger("engines.reconciliation")


def _floor_zero(amount: Money) -> Money:
    if amount.is_negative:
        return Money.zero(amount.currency)
    return amount


class ReconciliationEngine:
    """
    Payment reconciliation rules.

    Stateless and thread-safe; one instance may be shared.
    """

    def total_applied(
        self,
        ledger_entries: Iterable[PaymentLedgerEntry],
        currency: Currency | str,
        document_id: str | None = None,
    ) -> Money:
        """Sum of ``amount_applied``, optionally restricted to one document."""
        return self._sum_applied(ledger_entries, currency, document_id).round()

    def remaining_balance(
        self,
        grand_total: Money,
        ledger_entries: Iterable[PaymentLedgerEntry],
        document_id: str | None = None,
    ) -> Money:
        """
        ``max(0, grand_total - sum(amount_applied))``, rounded once to 3 places.

        When ``document_id`` is given, entries of other documents are ignored.
        """
        applied = self._sum_applied(ledger_entries, grand_total.currency, document_id)
        return _floor_zero(grand_total - applied).round()

    @staticmethod
    def _sum_applied(
        ledger_entries: Iterable[PaymentLedgerEntry],
        currency: Currency | str,
        document_id: str | None,
    ) -> Money:
        # full precision; callers round the figure they report
        total = Money.zero(currency)
        for entry in ledger_entries:
            if document_id is not None and entry.document_id != document_id:
                continue
            total = total + entry.amount_applied
        return total

    def remaining_from_unpaid_view(
        self,
        document_id: str,
        unpaid_documents: Iterable[UnpaidDocument],
        currency: Currency | str,
    ) -> Money:
        """
        Remaining balance of ``document_id`` as reported by the unpaid view.

        A document absent from the view is fully paid: the result is zero.
        """
        for row in unpaid_documents:
            if row.document_id == document_id:
                return _floor_zero(row.remaining_balance.round())

        logger.debug("document_absent_from_unpaid_view", extra={
            "document_id": document_id,
        })
        return Money.zero(currency)

    def advance_to_apply(self, available_balance: Money, remaining_balance: Money) -> Money:
        """The exact amount an advance-funded payment must carry."""
        available = _floor_zero(available_balance.round())
        remaining = _floor_zero(remaining_balance.round())
        return available if available <= remaining else remaining

    @traced_engine(
        "reconciliation.validate_payment",
        "1.0",
        fingerprint_fields=("proposed_amount", "remaining_balance", "advance"),
    )
    def validate_payment(
        self,
        proposed_amount: Money,
        remaining_balance: Money,
        advance: AdvanceRequest | None = None,
    ) -> PaymentValidationResult:
        """
        Validate a proposed payment against a document's remaining balance.

        Rules, first failure wins:
            1. the amount must be positive
            2. it may not exceed the remaining balance
            3. with the advance balance: something must be applicable, and
               the amount must equal the applicable advance within tolerance

        Returns:
            PaymentValidationResult holding a NormalizedPayment or an error.
        """
        advance = advance or AdvanceRequest.none()
        proposed = proposed_amount.round()
        remaining = remaining_balance.round()

        if not proposed.is_positive:
            return self._rejected(AmountMustBePositive(proposed_amount=proposed_amount))

        if proposed > remaining:
            return self._rejected(
                ExceedsRemainingBalance(
                    proposed_amount=proposed_amount,
                    remaining_balance=remaining_balance,
                )
            )

        if advance.use_advance:
            available = advance.available_balance or Money.zero(remaining.currency)
            expected = self.advance_to_apply(available, remaining)
            if not expected.is_positive:
                return self._rejected(
                    InsufficientAdvanceBalance(
                        available_balance=available,
                        remaining_balance=remaining_balance,
                    )
                )
            if not amounts_equal(proposed.amount, expected.amount):
                return self._rejected(
                    AmountMismatchWithAdvance(
                        proposed_amount=proposed_amount,
                        expected_amount=expected,
                    )
                )
            payment = NormalizedPayment(
                amount_applied=expected,
                used_advance_balance=True,
                advance_consumed=expected,
            )
        else:
            payment = NormalizedPayment(
                amount_applied=proposed,
                used_advance_balance=False,
                advance_consumed=Money.zero(proposed.currency),
            )

        logger.info("payment_validation_accepted", extra={
            "amount_applied": str(payment.amount_applied.amount),
            "remaining_balance": str(remaining.amount),
            "used_advance_balance": payment.used_advance_balance,
        })
        return PaymentValidationResult.accepted(payment)

    def settlement_state(
        self,
        document_id: str,
        grand_total: Money,
        ledger_entries: Iterable[PaymentLedgerEntry],
    ) -> SettlementState:
        """Classify a document as unpaid, partially paid, or paid."""
        entries = list(ledger_entries)
        total = grand_total.round()
        paid = self.total_applied(entries, total.currency, document_id)
        remaining = self.remaining_balance(grand_total, entries, document_id)

        if paid.amount >= total.amount - MONEY_TOLERANCE:
            status = SettlementStatus.PAID
        elif paid.is_positive:
            status = SettlementStatus.PARTIAL
        else:
            status = SettlementStatus.UNPAID

        return SettlementState(
            document_id=document_id,
            status=status,
            grand_total=total,
            amount_paid=paid,
            remaining_balance=remaining,
        )

    @staticmethod
    def _rejected(error) -> PaymentValidationResult:
        logger.info("payment_validation_rejected", extra={
            "reason_code": error.code,
            "reason": error.message,
        })
        return PaymentValidationResult.rejected(error)
