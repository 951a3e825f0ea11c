"""
Pytest fixtures for the invoicing test suite.

Provides:
- Structured logging configured once per session, plus a log capture fixture
- SQLite-backed SqlPaymentLedger instances (in-memory or file-based)
- Builders for lines, configs and finalized documents
- In-memory collaborator fakes for workflow tests

Environment Variables:
- DATABASE_URL: optional PostgreSQL URL; when set, SQL tests run against it
  instead of SQLite.
"""

import json
import logging
import os
from collections import defaultdict
from datetime import date, datetime, timezone
from decimal import Decimal
from io import StringIO

import pytest
from sqlalchemy.orm import sessionmaker

from invoicing_engines.reconciliation import (
    PaymentLedgerEntry,
    ReconciliationEngine,
    UnpaidDocument,
)
from invoicing_engines.totals import DocumentLine, DocumentTotalsConfig, compute_totals
from invoicing_kernel.db.engine import build_engine, create_tables, drop_tables
from invoicing_kernel.domain.clock import DeterministicClock
from invoicing_kernel.domain.documents import DocumentKind
from invoicing_kernel.domain.values import Money
from invoicing_kernel.exceptions import DocumentNotFoundError, OptimisticLockError
from invoicing_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from invoicing_services.collaborators import DocumentSource
from invoicing_services.sql_ledger import SqlPaymentLedger


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture invoicing_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            compute_totals(lines, config)
            logs = captured_logs()
            assert any(r["message"] == "totals_computation_completed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("invoicing_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Builders
# =============================================================================


def tnd(amount) -> Money:
    return Money.of(str(amount), "TND")


@pytest.fixture
def clock():
    return DeterministicClock(datetime(2025, 3, 15, 9, 30, tzinfo=timezone.utc))


@pytest.fixture
def standard_lines() -> list[DocumentLine]:
    """Two lines: 2 x 50 at 19 %, and 1 x 200 with 5 % discount at 19 %."""
    return [
        DocumentLine("Consulting", quantity=2, unit_price_ht=50, line_discount_pct=0, vat_pct=19),
        DocumentLine("Licence", quantity=1, unit_price_ht=200, line_discount_pct=5, vat_pct=19),
    ]


@pytest.fixture
def stamped_config() -> DocumentTotalsConfig:
    return DocumentTotalsConfig.create(stamp_duty_enabled=True, stamp_duty_amount=1)


# =============================================================================
# SQL ledger fixtures
# =============================================================================


def _database_url(tmp_path) -> str:
    return os.environ.get("DATABASE_URL") or f"sqlite:///{tmp_path / 'ledger.db'}"


@pytest.fixture
def db_engine(tmp_path):
    """File-backed SQLite engine (or DATABASE_URL) with fresh tables."""
    engine = build_engine(_database_url(tmp_path))
    drop_tables(engine)
    create_tables(engine)
    yield engine
    drop_tables(engine)
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(bind=db_engine, expire_on_commit=False)


@pytest.fixture
def ledger(session_factory) -> SqlPaymentLedger:
    return SqlPaymentLedger(session_factory)


@pytest.fixture
def finalize_document(ledger):
    """
    Register a finalized document whose grand total comes from the engine.

    Usage::

        breakdown = finalize_document("INV-1", "CUST-1", lines, config)
    """

    def _finalize(
        document_id: str,
        customer_id: str,
        lines: list[DocumentLine],
        config: DocumentTotalsConfig,
        kind: DocumentKind = DocumentKind.SALES_INVOICE,
    ):
        breakdown = compute_totals(lines, config)
        ledger.register_finalized(document_id, customer_id, kind, breakdown)
        return breakdown

    return _finalize


# =============================================================================
# In-memory collaborators
# =============================================================================


class InMemoryLedger:
    """
    Dict-backed implementation of every collaborator Protocol.

    Mirrors SqlPaymentLedger semantics closely enough for workflow tests:
    unpaid view excludes settled documents, and submit performs the
    optimistic ledger-total check.
    """

    def __init__(self):
        self.totals: dict[str, Money] = {}
        self.customers: dict[str, str] = {}
        self.entries: dict[str, list[PaymentLedgerEntry]] = defaultdict(list)
        self.advances: dict[tuple[str, str], Decimal] = {}
        self.sources: dict[str, DocumentSource] = {}
        self.registered: list[tuple] = []
        self.submissions = 0
        self._engine = ReconciliationEngine()

    # setup helpers

    def add_document(self, document_id: str, customer_id: str, grand_total: Money) -> None:
        self.totals[document_id] = grand_total
        self.customers[document_id] = customer_id

    def set_advance(self, customer_id: str, amount: Money) -> None:
        self.advances[(customer_id, amount.currency.code)] = amount.amount

    def add_source(self, source: DocumentSource) -> None:
        self.sources[source.document_id] = source

    # UnpaidDocumentsQuery

    def unpaid_documents(self, customer_id: str) -> list[UnpaidDocument]:
        rows = []
        for document_id, total in self.totals.items():
            if self.customers[document_id] != customer_id:
                continue
            entries = self.entries[document_id]
            remaining = self._engine.remaining_balance(total, entries)
            if remaining.is_positive:
                rows.append(UnpaidDocument(
                    document_id=document_id,
                    customer_id=customer_id,
                    grand_total=total,
                    amount_paid=self._engine.total_applied(entries, total.currency),
                    remaining_balance=remaining,
                ))
        return rows

    # AdvanceBalanceQuery

    def advance_balance(self, customer_id: str, currency: str) -> Money:
        return Money.of(self.advances.get((customer_id, currency), Decimal("0")), currency)

    # PaymentSink

    def submit(self, document_id, customer_id, payment, method, date_applied, expected_paid):
        self.submissions += 1
        current = self._engine.total_applied(
            self.entries[document_id], payment.amount_applied.currency,
        )
        if current != expected_paid:
            raise OptimisticLockError("document", document_id, expected_paid.amount, current.amount)
        if payment.used_advance_balance:
            key = (customer_id, payment.advance_consumed.currency.code)
            self.advances[key] = self.advances.get(key, Decimal("0")) - payment.advance_consumed.amount
        entry = PaymentLedgerEntry.create(
            document_id=document_id,
            amount_applied=payment.amount_applied,
            date_applied=date_applied,
            method=method,
            used_advance_balance=payment.used_advance_balance,
        )
        self.entries[document_id].append(entry)
        return entry

    # DocumentLineSource

    def load(self, document_id: str) -> DocumentSource:
        try:
            return self.sources[document_id]
        except KeyError:
            raise DocumentNotFoundError(document_id) from None

    # FinalizedDocumentRegistry

    def register_finalized(self, document_id, customer_id, kind, breakdown) -> None:
        self.registered.append((document_id, customer_id, kind, breakdown))
        self.add_document(document_id, customer_id, breakdown.grand_total_ttc)


@pytest.fixture
def memory_ledger() -> InMemoryLedger:
    return InMemoryLedger()


@pytest.fixture
def payment_date() -> date:
    return date(2025, 3, 15)
