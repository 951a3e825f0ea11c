"""
Reconciliation - remaining balances and payment validation.

Pure domain types and the stateless ReconciliationEngine. Orchestration
(locking, persistence) lives in invoicing_services.payment_workflow.
"""

from invoicing_engines.reconciliation.domain import (
    AdvanceRequest,
    AmountMismatchWithAdvance,
    AmountMustBePositive,
    ExceedsRemainingBalance,
    InsufficientAdvanceBalance,
    NormalizedPayment,
    PaymentLedgerEntry,
    PaymentValidationError,
    PaymentValidationResult,
    SettlementState,
    UnpaidDocument,
)
from invoicing_engines.reconciliation.engine import ReconciliationEngine

__all__ = [
    "AdvanceRequest",
    "AmountMismatchWithAdvance",
    "AmountMustBePositive",
    "ExceedsRemainingBalance",
    "InsufficientAdvanceBalance",
    "NormalizedPayment",
    "PaymentLedgerEntry",
    "PaymentValidationError",
    "PaymentValidationResult",
    "ReconciliationEngine",
    "SettlementState",
    "UnpaidDocument",
]
