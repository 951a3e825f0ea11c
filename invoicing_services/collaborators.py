"""
Collaborator contracts consumed by the invoicing services.

The services depend on these Protocols, never on a storage technology.
``invoicing_services.sql_ledger.SqlPaymentLedger`` implements all of them;
tests use in-memory fakes.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from typing import Protocol, runtime_checkable

from invoicing_engines.reconciliation import (
    NormalizedPayment,
    PaymentLedgerEntry,
    UnpaidDocument,
)
from invoicing_engines.totals import DocumentLine, DocumentTotalsConfig, TotalsBreakdown
from invoicing_kernel.domain.documents import DocumentKind, PaymentMethod
from invoicing_kernel.domain.values import Money


@dataclass(frozen=True)
class DocumentSource:
    """Everything needed to compute a document's totals."""

    document_id: str
    customer_id: str
    kind: DocumentKind
    lines: tuple[DocumentLine, ...]
    config: DocumentTotalsConfig


@runtime_checkable
class UnpaidDocumentsQuery(Protocol):
    def unpaid_documents(self, customer_id: str) -> Sequence[UnpaidDocument]:
        """Finalized, non-cancelled documents of ``customer_id`` with a positive remaining balance."""
        ...


@runtime_checkable
class AdvanceBalanceQuery(Protocol):
    def advance_balance(self, customer_id: str, currency: str) -> Money:
        """Net on-account balance of ``customer_id``; zero when none."""
        ...


@runtime_checkable
class PaymentSink(Protocol):
    def submit(
        self,
        document_id: str,
        customer_id: str,
        payment: NormalizedPayment,
        method: PaymentMethod,
        date_applied: date,
        expected_paid: Money,
    ) -> PaymentLedgerEntry:
        """
        Append ``payment`` to the ledger of ``document_id`` atomically.

        ``expected_paid`` is the ledger total observed when the payment was
        validated; implementations reject the write if it has changed.
        """
        ...


@runtime_checkable
class DocumentLineSource(Protocol):
    def load(self, document_id: str) -> DocumentSource:
        """Raises DocumentNotFoundError for unknown ids."""
        ...


@runtime_checkable
class FinalizedDocumentRegistry(Protocol):
    def register_finalized(
        self,
        document_id: str,
        customer_id: str,
        kind: DocumentKind,
        breakdown: TotalsBreakdown,
    ) -> None:
        """Store the finalized grand total that payments will be reconciled against."""
        ...
