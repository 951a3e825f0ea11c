"""
invoicing_services.payment_workflow -- Record payments against finalized documents.

Responsibility:
    Thin orchestration around ReconciliationEngine:
    fetch remaining -> open entry -> validate and apply -> persist -> refresh.

Architecture position:
    Services -- stateful orchestration over engines + kernel.  Talks to
    storage only through the collaborator Protocols.

Invariants enforced:
    - Per document, read-remaining -> validate -> append runs under one
      in-process lock, so two submissions in this process cannot both pass
      validation against the same remaining balance.
    - The sink receives the ledger total observed at validation time and
      rejects the write if another process changed it meanwhile.
    - Advance-funded payments are recorded with the ``advance`` method and
      exactly the amount the engine computed.

Failure modes:
    - PaymentRejectedError: validation failed; ``.error`` holds the typed
      validation value and ``.reason_code`` its code.
    - OptimisticLockError / InsufficientAdvanceError / DocumentNotPayableError
      propagated from the sink.

Usage:
    workflow = PaymentWorkflow(ledger, ledger, ledger, clock=DeterministicClock())
    ctx = workflow.open_entry("CUST-1", "INV-001", "TND")
    receipt = workflow.submit(PaymentRequest(
        customer_id="CUST-1",
        document_id="INV-001",
        amount=ctx.suggested_amount,
    ))
"""

from __future__ import annotations

import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date

from invoicing_engines.reconciliation import (
    AdvanceRequest,
    PaymentLedgerEntry,
    ReconciliationEngine,
    UnpaidDocument,
)
from invoicing_kernel.domain.clock import Clock, SystemClock
from invoicing_kernel.domain.documents import PaymentMethod
from invoicing_kernel.domain.values import Money
from invoicing_kernel.exceptions import PaymentRejectedError
from invoicing_kernel.logging_config import LogContext, get_logger
from invoicing_services.collaborators import (
    AdvanceBalanceQuery,
    PaymentSink,
    UnpaidDocumentsQuery,
)

logger = get_logger("services.payment_workflow")


@dataclass
class _LockEntry:
    lock: threading.Lock = field(default_factory=threading.Lock)
    users: int = 0


class DocumentLockRegistry:
    """
    One ``threading.Lock`` per document id, kept only while in use.

    Every caller of ``lock_for`` counts as a user from the moment it asks
    until it releases, waiting included. The last user out drops the entry,
    so the registry holds only documents with a submission in flight.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, _LockEntry] = {}

    @contextmanager
    def lock_for(self, document_id: str) -> Iterator[None]:
        with self._guard:
            entry = self._locks.get(document_id)
            if entry is None:
                entry = self._locks[document_id] = _LockEntry()
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._locks[document_id]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


@dataclass(frozen=True)
class PaymentEntryContext:
    """What a payment entry surface shows when it opens for a document."""

    customer_id: str
    document_id: str
    remaining_balance: Money
    amount_paid: Money
    advance_balance: Money
    suggested_amount: Money
    advance_prefill: Money

    @property
    def is_settled(self) -> bool:
        return not self.remaining_balance.is_positive

    @property
    def can_use_advance(self) -> bool:
        return self.advance_prefill.is_positive


@dataclass(frozen=True)
class PaymentRequest:
    customer_id: str
    document_id: str
    amount: Money
    method: PaymentMethod = PaymentMethod.CASH
    use_advance: bool = False
    date_applied: date | None = None


@dataclass(frozen=True)
class PaymentReceipt:
    """The appended entry plus the balances read back after the write."""

    entry: PaymentLedgerEntry
    remaining_balance: Money
    advance_balance: Money


class PaymentWorkflow:
    """
    Payment entry orchestration.

    Contract:
        ``open_entry`` is read-only.  ``submit`` either appends exactly one
        ledger entry or raises.

    Non-goals:
        - Does NOT increase advance balances (outside this workflow).
        - Does NOT allocate one payment across several documents.
    """

    def __init__(
        self,
        unpaid_documents: UnpaidDocumentsQuery,
        advance_balances: AdvanceBalanceQuery,
        sink: PaymentSink,
        clock: Clock | None = None,
        engine: ReconciliationEngine | None = None,
        locks: DocumentLockRegistry | None = None,
    ):
        self._unpaid = unpaid_documents
        self._advances = advance_balances
        self._sink = sink
        self._clock = clock or SystemClock()
        self._engine = engine or ReconciliationEngine()
        self._locks = locks if locks is not None else DocumentLockRegistry()

    def open_entry(self, customer_id: str, document_id: str, currency: str) -> PaymentEntryContext:
        """Read the balances an entry surface needs for ``document_id``."""
        with LogContext.bind(customer_id=customer_id, document_id=document_id):
            row, remaining = self._read_remaining(customer_id, document_id, currency)
            advance = self._advances.advance_balance(customer_id, currency)
            prefill = self._engine.advance_to_apply(advance, remaining)

            logger.info("payment_entry_opened", extra={
                "remaining_balance": str(remaining.amount),
                "advance_balance": str(advance.amount),
                "in_unpaid_view": row is not None,
            })

            return PaymentEntryContext(
                customer_id=customer_id,
                document_id=document_id,
                remaining_balance=remaining,
                amount_paid=row.amount_paid if row is not None else Money.zero(currency),
                advance_balance=advance,
                suggested_amount=remaining,
                advance_prefill=prefill,
            )

    def submit(self, request: PaymentRequest) -> PaymentReceipt:
        """
        Validate ``request`` against fresh balances and append it.

        Raises:
            PaymentRejectedError: If the reconciliation rules reject it.
        """
        currency = request.amount.currency.code

        with LogContext.bind(customer_id=request.customer_id, document_id=request.document_id):
            t0 = time.monotonic()
            logger.info("payment_submission_started", extra={
                "amount": str(request.amount.amount),
                "currency": currency,
                "method": request.method.value,
                "use_advance": request.use_advance,
            })

            with self._locks.lock_for(request.document_id):
                row, remaining = self._read_remaining(
                    request.customer_id, request.document_id, currency,
                )
                advance = AdvanceRequest.none()
                if request.use_advance:
                    advance = AdvanceRequest.from_balance(
                        self._advances.advance_balance(request.customer_id, currency)
                    )

                result = self._engine.validate_payment(request.amount, remaining, advance)
                if not result.is_valid:
                    logger.warning("payment_submission_rejected", extra={
                        "reason_code": result.error.code,
                        "remaining_balance": str(remaining.amount),
                    })
                    raise PaymentRejectedError(request.document_id, result.error)

                payment = result.payment
                method = PaymentMethod.ADVANCE if payment.used_advance_balance else request.method
                expected_paid = row.amount_paid if row is not None else Money.zero(currency)

                entry = self._sink.submit(
                    document_id=request.document_id,
                    customer_id=request.customer_id,
                    payment=payment,
                    method=method,
                    date_applied=request.date_applied or self._clock.today(),
                    expected_paid=expected_paid,
                )

                _, remaining_after = self._read_remaining(
                    request.customer_id, request.document_id, currency,
                )
                advance_after = self._advances.advance_balance(request.customer_id, currency)

            duration_ms = round((time.monotonic() - t0) * 1000, 2)
            logger.info("payment_submission_completed", extra={
                "entry_id": str(entry.entry_id),
                "amount_applied": str(entry.amount_applied.amount),
                "method": entry.method.value,
                "remaining_balance": str(remaining_after.amount),
                "duration_ms": duration_ms,
            })

            return PaymentReceipt(
                entry=entry,
                remaining_balance=remaining_after,
                advance_balance=advance_after,
            )

    def _read_remaining(
        self,
        customer_id: str,
        document_id: str,
        currency: str,
    ) -> tuple[UnpaidDocument | None, Money]:
        rows = list(self._unpaid.unpaid_documents(customer_id))
        row = next((r for r in rows if r.document_id == document_id), None)
        remaining = self._engine.remaining_from_unpaid_view(document_id, rows, currency)
        return row, remaining
