"""
invoicing_services.sql_ledger -- SQLAlchemy payment ledger and document registry.

Responsibility:
    Implements the collaborator Protocols (unpaid-documents query,
    advance-balance query, payment sink, finalized-document registry) on the
    ORM models in ``invoicing_kernel.models``.

Architecture position:
    Services -- the one place in the services layer that owns sessions.
    Remaining balances are computed with ReconciliationEngine so the SQL
    view and the workflow agree to the last mill.

Invariants enforced:
    - submit() locks the document row (SELECT ... FOR UPDATE), re-reads the
      ledger total, and writes only if it still equals ``expected_paid``.
    - Only FINALIZED documents with a positive grand total accept entries.
    - Advance accounts never go negative.
    - Cancelled and converted documents never appear as unpaid.

Failure modes:
    - DocumentNotFoundError, DocumentNotPayableError,
      DocumentAlreadyFinalizedError.
    - OptimisticLockError when the ledger changed after validation.
    - InsufficientAdvanceError when the advance account cannot cover the
      consumed amount.
    - CurrencyMismatchError when the payment currency differs from the
      document currency.

Usage:
    factory = sessionmaker(bind=build_engine("sqlite:///ledger.db"))
    ledger = SqlPaymentLedger(factory)
    workflow = PaymentWorkflow(ledger, ledger, ledger)
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence
from datetime import date
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session, sessionmaker

from invoicing_engines.reconciliation import (
    NormalizedPayment,
    PaymentLedgerEntry,
    ReconciliationEngine,
    UnpaidDocument,
)
from invoicing_engines.totals import TotalsBreakdown
from invoicing_kernel.db.engine import session_scope
from invoicing_kernel.domain.documents import DocumentKind, DocumentStatus, PaymentMethod
from invoicing_kernel.domain.monetary import ZERO, amounts_equal, round_money
from invoicing_kernel.domain.values import Money
from invoicing_kernel.exceptions import (
    CurrencyMismatchError,
    DocumentAlreadyFinalizedError,
    DocumentNotFoundError,
    DocumentNotPayableError,
    InsufficientAdvanceError,
    OptimisticLockError,
)
from invoicing_kernel.logging_config import get_logger
from invoicing_kernel.models import CustomerAdvanceAccount, PayableDocument, PaymentLedgerRow

logger = get_logger("services.sql_ledger")


def _to_entry(row: PaymentLedgerRow) -> PaymentLedgerEntry:
    return PaymentLedgerEntry(
        entry_id=row.id,
        document_id=row.document_id,
        amount_applied=Money.of(row.amount_applied, row.currency).round(),
        date_applied=row.date_applied,
        method=PaymentMethod(row.method),
        used_advance_balance=row.used_advance_balance,
    )


class SqlPaymentLedger:
    """
    Payment ledger backed by SQLAlchemy.

    Each public method runs in its own transaction opened from
    ``session_factory``; instances are safe to share between threads.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        engine: ReconciliationEngine | None = None,
    ):
        self._session_factory = session_factory
        self._engine = engine or ReconciliationEngine()

    # ------------------------------------------------------------------
    # FinalizedDocumentRegistry
    # ------------------------------------------------------------------

    def register_finalized(
        self,
        document_id: str,
        customer_id: str,
        kind: DocumentKind,
        breakdown: TotalsBreakdown,
    ) -> None:
        with session_scope(self._session_factory) as session:
            existing = session.execute(
                select(PayableDocument.id).where(PayableDocument.document_id == document_id)
            ).scalar_one_or_none()
            if existing is not None:
                raise DocumentAlreadyFinalizedError(document_id)

            session.add(PayableDocument(
                document_id=document_id,
                customer_id=customer_id,
                kind=DocumentKind(kind).value,
                status=DocumentStatus.FINALIZED.value,
                grand_total=breakdown.grand_total_ttc.amount,
                currency=breakdown.currency,
            ))

        logger.info("document_registered", extra={
            "document_id": document_id,
            "customer_id": customer_id,
            "kind": DocumentKind(kind).value,
            "grand_total": str(breakdown.grand_total_ttc.amount),
            "currency": breakdown.currency,
        })

    def update_status(self, document_id: str, status: DocumentStatus) -> None:
        """Mark a finalized document as converted or cancelled (or back to finalized)."""
        status = DocumentStatus(status)
        with session_scope(self._session_factory) as session:
            doc = self._lock_document(session, document_id)
            previous = doc.status
            doc.status = status.value

        logger.info("document_status_changed", extra={
            "document_id": document_id,
            "from_status": str(previous),
            "to_status": status.value,
        })

    # ------------------------------------------------------------------
    # UnpaidDocumentsQuery
    # ------------------------------------------------------------------

    def unpaid_documents(self, customer_id: str) -> list[UnpaidDocument]:
        with session_scope(self._session_factory) as session:
            docs = session.execute(
                select(PayableDocument)
                .where(
                    PayableDocument.customer_id == customer_id,
                    PayableDocument.status == DocumentStatus.FINALIZED.value,
                )
                .order_by(PayableDocument.finalized_at, PayableDocument.document_id)
            ).scalars().all()

            entries_by_doc: dict[str, list[PaymentLedgerEntry]] = defaultdict(list)
            if docs:
                rows = session.execute(
                    select(PaymentLedgerRow).where(
                        PaymentLedgerRow.payable_document_id.in_([d.id for d in docs])
                    )
                ).scalars().all()
                for row in rows:
                    entries_by_doc[row.document_id].append(_to_entry(row))

            result: list[UnpaidDocument] = []
            for doc in docs:
                total = Money.of(doc.grand_total, doc.currency).round()
                entries = entries_by_doc[doc.document_id]
                remaining = self._engine.remaining_balance(total, entries)
                if not remaining.is_positive:
                    continue
                result.append(UnpaidDocument(
                    document_id=doc.document_id,
                    customer_id=doc.customer_id,
                    grand_total=total,
                    amount_paid=self._engine.total_applied(entries, total.currency),
                    remaining_balance=remaining,
                ))
            return result

    # ------------------------------------------------------------------
    # AdvanceBalanceQuery
    # ------------------------------------------------------------------

    def advance_balance(self, customer_id: str, currency: str) -> Money:
        with session_scope(self._session_factory) as session:
            balance = session.execute(
                select(CustomerAdvanceAccount.balance).where(
                    CustomerAdvanceAccount.customer_id == customer_id,
                    CustomerAdvanceAccount.currency == currency,
                )
            ).scalar_one_or_none()
        return Money.of(balance if balance is not None else ZERO, currency).round()

    def credit_advance(self, customer_id: str, amount: Money) -> Money:
        """
        Increase a customer's advance balance.

        Raises:
            ValueError: If ``amount`` is not positive.
        """
        if not amount.round().is_positive:
            raise ValueError(f"Advance credit must be positive: {amount}")

        currency = amount.currency.code
        with session_scope(self._session_factory) as session:
            account = self._lock_advance_account(session, customer_id, currency)
            if account is None:
                account = CustomerAdvanceAccount(
                    customer_id=customer_id,
                    currency=currency,
                    balance=ZERO,
                )
                session.add(account)
            account.balance = round_money(account.balance + amount.amount)
            new_balance = account.balance

        logger.info("advance_credited", extra={
            "customer_id": customer_id,
            "amount": str(amount.amount),
            "balance": str(new_balance),
            "currency": currency,
        })
        return Money.of(new_balance, currency)

    # ------------------------------------------------------------------
    # PaymentSink
    # ------------------------------------------------------------------

    def submit(
        self,
        document_id: str,
        customer_id: str,
        payment: NormalizedPayment,
        method: PaymentMethod,
        date_applied: date,
        expected_paid: Money,
    ) -> PaymentLedgerEntry:
        with session_scope(self._session_factory) as session:
            doc = self._lock_document(session, document_id)
            self._check_payable(doc, customer_id)

            amount = payment.amount_applied.round()
            if amount.currency.code != doc.currency:
                raise CurrencyMismatchError(doc.currency, amount.currency.code, "apply payment")

            current_paid = self._ledger_total(session, doc)
            if not amounts_equal(current_paid, expected_paid.amount):
                logger.warning("payment_optimistic_check_failed", extra={
                    "document_id": document_id,
                    "expected_paid": str(expected_paid.amount),
                    "actual_paid": str(current_paid),
                })
                raise OptimisticLockError(
                    "PayableDocument", document_id, expected_paid.amount, current_paid,
                )

            if payment.used_advance_balance:
                self._consume_advance(session, customer_id, payment.advance_consumed.round())

            row = PaymentLedgerRow(
                payable_document_id=doc.id,
                document_id=document_id,
                amount_applied=amount.amount,
                currency=doc.currency,
                date_applied=date_applied,
                method=PaymentMethod(method).value,
                used_advance_balance=payment.used_advance_balance,
            )
            session.add(row)
            session.flush()
            entry = _to_entry(row)

        logger.info("payment_recorded", extra={
            "document_id": document_id,
            "customer_id": customer_id,
            "entry_id": str(entry.entry_id),
            "amount_applied": str(entry.amount_applied.amount),
            "method": entry.method.value,
            "used_advance_balance": entry.used_advance_balance,
        })
        return entry

    def ledger_entries(self, document_id: str) -> list[PaymentLedgerEntry]:
        with session_scope(self._session_factory) as session:
            rows = session.execute(
                select(PaymentLedgerRow)
                .where(PaymentLedgerRow.document_id == document_id)
                .order_by(PaymentLedgerRow.date_applied, PaymentLedgerRow.recorded_at)
            ).scalars().all()
            return [_to_entry(row) for row in rows]

    def document_status(self, document_id: str) -> DocumentStatus:
        with session_scope(self._session_factory) as session:
            status = session.execute(
                select(PayableDocument.status).where(PayableDocument.document_id == document_id)
            ).scalar_one_or_none()
        if status is None:
            raise DocumentNotFoundError(document_id)
        return DocumentStatus(status)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _lock_document(session: Session, document_id: str) -> PayableDocument:
        doc = session.execute(
            select(PayableDocument)
            .where(PayableDocument.document_id == document_id)
            .with_for_update()
        ).scalar_one_or_none()
        if doc is None:
            raise DocumentNotFoundError(document_id)
        return doc

    @staticmethod
    def _lock_advance_account(
        session: Session, customer_id: str, currency: str,
    ) -> CustomerAdvanceAccount | None:
        return session.execute(
            select(CustomerAdvanceAccount)
            .where(
                CustomerAdvanceAccount.customer_id == customer_id,
                CustomerAdvanceAccount.currency == currency,
            )
            .with_for_update()
        ).scalar_one_or_none()

    @staticmethod
    def _check_payable(doc: PayableDocument, customer_id: str) -> None:
        status = DocumentStatus(doc.status)
        if doc.customer_id != customer_id:
            raise DocumentNotPayableError(
                doc.document_id, status.value, "document belongs to another customer",
            )
        if status == DocumentStatus.CONVERTED:
            raise DocumentNotPayableError(
                doc.document_id, status.value,
                "internal invoice was converted; pay the official invoice instead",
            )
        if status != DocumentStatus.FINALIZED:
            raise DocumentNotPayableError(doc.document_id, status.value, "document is not open for payment")
        if round_money(doc.grand_total) <= ZERO:
            raise DocumentNotPayableError(doc.document_id, status.value, "grand total is not positive")

    @staticmethod
    def _ledger_total(session: Session, doc: PayableDocument) -> Decimal:
        total = session.execute(
            select(func.coalesce(func.sum(PaymentLedgerRow.amount_applied), 0))
            .where(PaymentLedgerRow.payable_document_id == doc.id)
        ).scalar_one()
        return round_money(total)

    def _consume_advance(self, session: Session, customer_id: str, consumed: Money) -> None:
        account = self._lock_advance_account(session, customer_id, consumed.currency.code)
        available = round_money(account.balance) if account is not None else ZERO
        if account is None or available < consumed.amount:
            raise InsufficientAdvanceError(customer_id, available, consumed.amount)
        account.balance = available - consumed.amount
