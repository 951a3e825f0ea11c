"""Document and payment classifications shared by engines, services and models."""

from enum import Enum


class DocumentKind(str, Enum):
    """Commercial document types. The totals cascade is the same for all."""

    QUOTE = "quote"
    SALES_INVOICE = "sales_invoice"
    INTERNAL_INVOICE = "internal_invoice"
    PURCHASE_INVOICE = "purchase_invoice"
    DELIVERY_NOTE = "delivery_note"


class DocumentStatus(str, Enum):
    """Status of a finalized document.

    Only FINALIZED documents accept ledger entries. CONVERTED marks an
    internal invoice replaced by an official invoice.
    """

    FINALIZED = "finalized"
    CONVERTED = "converted"
    CANCELLED = "cancelled"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CHEQUE = "cheque"
    BANK_TRANSFER = "bank_transfer"
    CARD = "card"
    BILL_OF_EXCHANGE = "bill_of_exchange"
    ADVANCE = "advance"


class SettlementStatus(str, Enum):
    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"
