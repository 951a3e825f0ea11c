"""ORM models for finalized documents, the payment ledger and advance accounts."""

from invoicing_kernel.db.immutability import register_immutability_listeners
from invoicing_kernel.models.payment import (
    CustomerAdvanceAccount,
    PayableDocument,
    PaymentLedgerRow,
)

register_immutability_listeners()

__all__ = [
    "CustomerAdvanceAccount",
    "PayableDocument",
    "PaymentLedgerRow",
]
