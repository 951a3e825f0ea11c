"""
Typed exception hierarchy for the invoicing kernel.

Every error has its own class, a machine-readable ``code`` class attribute,
and carries the values that caused it as attributes. Callers catch by type
and read structured fields; they never parse messages.

    InvoicingKernelError (base)
    |
    +-- DocumentError
    |   +-- DocumentNotFoundError
    |   +-- DocumentNotPayableError
    |   +-- DocumentAlreadyFinalizedError
    |
    +-- PaymentError
    |   +-- PaymentRejectedError
    |   +-- InsufficientAdvanceError
    |   +-- ImmutabilityViolationError
    |
    +-- ConcurrencyError
    |   +-- OptimisticLockError
    |
    +-- CurrencyError
    |   +-- InvalidCurrencyError
    |   +-- CurrencyMismatchError
    |
    +-- ConfigError
        +-- ConfigNotFoundError

Category    | Code                        | When raised
------------|-----------------------------|------------------------------------------
Document    | DOCUMENT_NOT_FOUND          | Unknown document id
            | DOCUMENT_NOT_PAYABLE        | Converted/cancelled document or total <= 0
            | DOCUMENT_ALREADY_FINALIZED  | Second finalization of the same document
Payment     | PAYMENT_REJECTED            | ReconciliationEngine refused the payment
            | INSUFFICIENT_ADVANCE        | Advance account would go negative
            | IMMUTABILITY_VIOLATION      | Update or delete of a ledger row
Concurrency | OPTIMISTIC_LOCK_CONFLICT    | Ledger changed between validation and commit
Currency    | INVALID_CURRENCY            | Not a known currency code
            | CURRENCY_MISMATCH           | Mixed currencies in one operation
Config      | CONFIG_NOT_FOUND            | No configuration set for a jurisdiction

Validation outcomes of ``ReconciliationEngine.validate_payment`` are values,
not exceptions (see ``invoicing_engines.reconciliation.domain``).
``PaymentRejectedError`` is how the payment workflow surfaces them.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any


class InvoicingKernelError(Exception):
    """
    Base exception for all invoicing kernel errors.

    All subclasses define a ``code`` class attribute.
    """

    code: str = "INVOICING_KERNEL_ERROR"


# Document-related exceptions


class DocumentError(InvoicingKernelError):
    """Base exception for document-related errors."""

    code: str = "DOCUMENT_ERROR"


class DocumentNotFoundError(DocumentError):
    """Document id is unknown to the collaborator that was asked."""

    code: str = "DOCUMENT_NOT_FOUND"

    def __init__(self, document_id: str):
        self.document_id = document_id
        super().__init__(f"Document not found: {document_id}")


class DocumentNotPayableError(DocumentError):
    """Payments cannot be recorded against this document."""

    code: str = "DOCUMENT_NOT_PAYABLE"

    def __init__(self, document_id: str, status: str, reason: str):
        self.document_id = document_id
        self.status = status
        self.reason = reason
        super().__init__(
            f"Document {document_id} ({status}) cannot receive payments: {reason}"
        )


class DocumentAlreadyFinalizedError(DocumentError):
    """A totals snapshot already exists for this document."""

    code: str = "DOCUMENT_ALREADY_FINALIZED"

    def __init__(self, document_id: str):
        self.document_id = document_id
        super().__init__(f"Document {document_id} is already finalized")


# Payment-related exceptions


class PaymentError(InvoicingKernelError):
    """Base exception for payment-related errors."""

    code: str = "PAYMENT_ERROR"


class PaymentRejectedError(PaymentError):
    """
    A proposed payment failed validation.

    ``error`` is the typed validation value returned by the reconciliation
    engine; ``reason_code`` is its code.
    """

    code: str = "PAYMENT_REJECTED"

    def __init__(self, document_id: str, error: Any):
        self.document_id = document_id
        self.error = error
        self.reason_code = error.code
        super().__init__(f"Payment rejected for document {document_id}: {error.message}")


class InsufficientAdvanceError(PaymentError):
    """Consuming the requested advance would make the customer's balance negative."""

    code: str = "INSUFFICIENT_ADVANCE"

    def __init__(self, customer_id: str, available: Decimal, requested: Decimal):
        self.customer_id = customer_id
        self.available = str(available)
        self.requested = str(requested)
        super().__init__(
            f"Customer {customer_id} advance balance {available} "
            f"is lower than the requested {requested}"
        )


class ImmutabilityViolationError(PaymentError):
    """Attempted to modify or delete an append-only ledger row."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )


# Concurrency-related exceptions


class ConcurrencyError(InvoicingKernelError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class OptimisticLockError(ConcurrencyError):
    """The ledger changed between validation and commit."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"

    def __init__(self, entity_type: str, entity_id: str, expected: Any = None, actual: Any = None):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.expected = None if expected is None else str(expected)
        self.actual = None if actual is None else str(actual)
        super().__init__(
            f"Optimistic lock conflict on {entity_type} {entity_id}: "
            f"expected {self.expected}, found {self.actual}"
        )


# Currency-related exceptions


class CurrencyError(InvoicingKernelError):
    """Base exception for currency-related errors."""

    code: str = "CURRENCY_ERROR"


class InvalidCurrencyError(CurrencyError, ValueError):
    """Currency code is not in the registry."""

    code: str = "INVALID_CURRENCY"

    def __init__(self, currency: str):
        self.currency = currency
        super().__init__(f"Invalid currency code: {currency!r}")


class CurrencyMismatchError(CurrencyError, ValueError):
    """Two amounts in different currencies were combined."""

    code: str = "CURRENCY_MISMATCH"

    def __init__(self, left: str, right: str, operation: str):
        self.left = left
        self.right = right
        self.operation = operation
        super().__init__(f"Cannot {operation} amounts in {left} and {right}")


# Configuration-related exceptions


class ConfigError(InvoicingKernelError):
    """Base exception for configuration errors."""

    code: str = "CONFIG_ERROR"


class ConfigNotFoundError(ConfigError):
    """No configuration set matches the requested jurisdiction."""

    code: str = "CONFIG_NOT_FOUND"

    def __init__(self, jurisdiction: str, config_dir: str):
        self.jurisdiction = jurisdiction
        self.config_dir = config_dir
        super().__init__(
            f"No configuration set for jurisdiction {jurisdiction!r} in {config_dir}"
        )
