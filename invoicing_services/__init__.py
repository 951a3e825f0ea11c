"""
invoicing_services -- orchestration over the invoicing engines.

Usage:
    from invoicing_services import PaymentWorkflow, PaymentRequest, SqlPaymentLedger
"""

from invoicing_services.collaborators import (
    AdvanceBalanceQuery,
    DocumentLineSource,
    DocumentSource,
    FinalizedDocumentRegistry,
    PaymentSink,
    UnpaidDocumentsQuery,
)
from invoicing_services.payment_workflow import (
    DocumentLockRegistry,
    PaymentEntryContext,
    PaymentReceipt,
    PaymentRequest,
    PaymentWorkflow,
)
from invoicing_services.sql_ledger import SqlPaymentLedger
from invoicing_services.totals_service import DocumentTotalsService

__all__ = [
    "AdvanceBalanceQuery",
    "DocumentLineSource",
    "DocumentSource",
    "FinalizedDocumentRegistry",
    "PaymentSink",
    "UnpaidDocumentsQuery",
    "DocumentLockRegistry",
    "PaymentEntryContext",
    "PaymentReceipt",
    "PaymentRequest",
    "PaymentWorkflow",
    "SqlPaymentLedger",
    "DocumentTotalsService",
]
