"""
Module: invoicing_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import invoicing_kernel (domain values, logging).
    MUST NOT import invoicing_services or invoicing_config.

Invariants enforced:
    - Purity: engines never read the clock; dates are passed in.
    - Decimal-only arithmetic; floats are converted through ``str``.
    - Determinism: identical inputs always produce identical outputs.

Usage:
    from invoicing_engines import TotalsEngine, ReconciliationEngine
"""

from invoicing_engines.reconciliation import (
    AdvanceRequest,
    AmountMismatchWithAdvance,
    AmountMustBePositive,
    ExceedsRemainingBalance,
    InsufficientAdvanceBalance,
    NormalizedPayment,
    PaymentLedgerEntry,
    PaymentValidationError,
    PaymentValidationResult,
    ReconciliationEngine,
    SettlementState,
    UnpaidDocument,
)
from invoicing_engines.totals import (
    DocumentLine,
    DocumentTotalsConfig,
    FodecSetting,
    LineTotals,
    StampDutySetting,
    TotalsBreakdown,
    TotalsEngine,
    VatSummaryLine,
    WithholdingScope,
    WithholdingSetting,
    compute_totals,
)
from invoicing_engines.tracer import compute_input_fingerprint, traced_engine

__all__ = [
    # Totals
    "DocumentLine",
    "DocumentTotalsConfig",
    "FodecSetting",
    "LineTotals",
    "StampDutySetting",
    "TotalsBreakdown",
    "TotalsEngine",
    "VatSummaryLine",
    "WithholdingScope",
    "WithholdingSetting",
    "compute_totals",
    # Reconciliation
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
    # Tracing
    "compute_input_fingerprint",
    "traced_engine",
]
