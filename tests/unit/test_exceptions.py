"""Unit tests for the typed exception hierarchy."""

from decimal import Decimal

import pytest

from invoicing_engines.reconciliation import ExceedsRemainingBalance
from invoicing_kernel.domain.values import Money
from invoicing_kernel.exceptions import (
    ConcurrencyError,
    ConfigNotFoundError,
    CurrencyMismatchError,
    DocumentAlreadyFinalizedError,
    DocumentError,
    DocumentNotFoundError,
    DocumentNotPayableError,
    ImmutabilityViolationError,
    InsufficientAdvanceError,
    InvalidCurrencyError,
    InvoicingKernelError,
    OptimisticLockError,
    PaymentError,
    PaymentRejectedError,
)


class TestHierarchy:

    @pytest.mark.parametrize("exc_type,base", [
        (DocumentNotFoundError, DocumentError),
        (DocumentNotPayableError, DocumentError),
        (DocumentAlreadyFinalizedError, DocumentError),
        (PaymentRejectedError, PaymentError),
        (InsufficientAdvanceError, PaymentError),
        (ImmutabilityViolationError, PaymentError),
        (OptimisticLockError, ConcurrencyError),
    ])
    def test_subclassing(self, exc_type, base):
        assert issubclass(exc_type, base)
        assert issubclass(exc_type, InvoicingKernelError)

    def test_codes_are_unique(self):
        types = [
            DocumentNotFoundError, DocumentNotPayableError, DocumentAlreadyFinalizedError,
            PaymentRejectedError, InsufficientAdvanceError, ImmutabilityViolationError,
            OptimisticLockError, InvalidCurrencyError, CurrencyMismatchError,
            ConfigNotFoundError,
        ]
        codes = [t.code for t in types]
        assert len(set(codes)) == len(codes)


class TestStructuredAttributes:

    def test_document_not_payable(self):
        exc = DocumentNotPayableError("INV-1", "converted", "pay the official invoice")
        assert exc.document_id == "INV-1"
        assert exc.status == "converted"
        assert "pay the official invoice" in str(exc)

    def test_payment_rejected_wraps_validation_error(self):
        error = ExceedsRemainingBalance(
            proposed_amount=Money.of("150", "TND"),
            remaining_balance=Money.of("100", "TND"),
        )
        exc = PaymentRejectedError("INV-2", error)
        assert exc.error is error
        assert exc.reason_code == "EXCEEDS_REMAINING_BALANCE"
        assert "150.000" in str(exc)
        assert "100.000" in str(exc)

    def test_insufficient_advance_keeps_amounts_as_strings(self):
        exc = InsufficientAdvanceError("CUST-1", Decimal("10.000"), Decimal("30.000"))
        assert exc.available == "10.000"
        assert exc.requested == "30.000"

    def test_optimistic_lock(self):
        exc = OptimisticLockError("PayableDocument", "INV-3", Decimal("0.000"), Decimal("60.000"))
        assert exc.code == "OPTIMISTIC_LOCK_CONFLICT"
        assert exc.expected == "0.000"
        assert exc.actual == "60.000"

    def test_optimistic_lock_without_values(self):
        exc = OptimisticLockError("PayableDocument", "INV-3")
        assert exc.expected is None
        assert exc.actual is None

    def test_config_not_found(self):
        exc = ConfigNotFoundError("FR", "/tmp/sets")
        assert exc.jurisdiction == "FR"
        assert "FR" in str(exc)
