"""
Module: invoicing_kernel.models.payment
Responsibility: ORM persistence for finalized documents, the append-only
    payment ledger, and customer advance accounts.
Architecture position: Kernel > Models.  May import from db/ and domain/
    only.  MUST NOT import from engines, services or config.

Invariants enforced:
    - One PayableDocument row per external document id (uq_payable_document).
    - PaymentLedgerRow is append-only (see db/immutability.py).
    - CustomerAdvanceAccount.balance never goes below zero; enforced by the
      SQL ledger before flushing and by a CHECK constraint.

Failure modes:
    - IntegrityError on duplicate document id or duplicate advance account.
    - ImmutabilityViolationError on update/delete of a ledger row.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from invoicing_kernel.db.base import Base, UUIDString
from invoicing_kernel.domain.documents import DocumentKind, DocumentStatus, PaymentMethod


class PayableDocument(Base):
    """
    Snapshot of a finalized document that payments are recorded against.

    Contract:
        grand_total is the rounded TTC of the breakdown taken at
        finalization; it is never recomputed from lines afterwards.
    """

    __tablename__ = "payable_documents"

    __table_args__ = (
        UniqueConstraint("document_id", name="uq_payable_document"),
        Index("idx_payable_customer_status", "customer_id", "status"),
    )

    # External document number/identifier
    document_id: Mapped[str] = mapped_column(String(100), nullable=False)

    customer_id: Mapped[str] = mapped_column(String(100), nullable=False)

    kind: Mapped[DocumentKind] = mapped_column(String(30), nullable=False)

    status: Mapped[DocumentStatus] = mapped_column(
        String(20),
        nullable=False,
        default=DocumentStatus.FINALIZED,
    )

    grand_total: Mapped[Decimal] = mapped_column(nullable=False)

    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    finalized_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<PayableDocument {self.document_id} {self.status} {self.grand_total} {self.currency}>"


class PaymentLedgerRow(Base):
    """
    One applied payment.

    The row id is the ledger entry id. Rows are never updated or deleted.
    """

    __tablename__ = "payment_ledger"

    __table_args__ = (
        Index("idx_payment_ledger_document", "payable_document_id"),
        CheckConstraint("amount_applied > 0", name="ck_payment_amount_positive"),
    )

    payable_document_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("payable_documents.id"),
        nullable=False,
    )

    # Denormalized for reads that do not join
    document_id: Mapped[str] = mapped_column(String(100), nullable=False)

    amount_applied: Mapped[Decimal] = mapped_column(nullable=False)

    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    date_applied: Mapped[date] = mapped_column(Date, nullable=False)

    method: Mapped[PaymentMethod] = mapped_column(String(30), nullable=False)

    used_advance_balance: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    recorded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )


class CustomerAdvanceAccount(Base):
    """Unapplied money a customer has on account, per currency."""

    __tablename__ = "customer_advance_accounts"

    __table_args__ = (
        UniqueConstraint("customer_id", "currency", name="uq_advance_account"),
        CheckConstraint("balance >= 0", name="ck_advance_balance_non_negative"),
    )

    customer_id: Mapped[str] = mapped_column(String(100), nullable=False)

    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    balance: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    def __repr__(self) -> str:
        return f"<CustomerAdvanceAccount {self.customer_id} {self.balance} {self.currency}>"
