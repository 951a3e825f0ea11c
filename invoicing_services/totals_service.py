"""
invoicing_services.totals_service -- Recompute and finalize document totals.

Responsibility:
    Load a document's lines and config, run the TotalsEngine, and at
    finalization hand the snapshot to the registry payments reconcile
    against.

Architecture position:
    Services -- orchestration over TotalsEngine and the collaborator
    Protocols.  No storage code here.

Failure modes:
    - DocumentNotFoundError from the line source.
    - DocumentAlreadyFinalizedError from the registry.
"""

from __future__ import annotations

import time

from invoicing_engines.totals import TotalsBreakdown, TotalsEngine
from invoicing_kernel.logging_config import LogContext, get_logger
from invoicing_services.collaborators import DocumentLineSource, FinalizedDocumentRegistry

logger = get_logger("services.totals")


class DocumentTotalsService:
    """Preview totals while drafting; snapshot them at finalization."""

    def __init__(
        self,
        line_source: DocumentLineSource,
        registry: FinalizedDocumentRegistry | None = None,
        engine: TotalsEngine | None = None,
    ):
        self._source = line_source
        self._registry = registry
        self._engine = engine or TotalsEngine()

    def preview(self, document_id: str) -> TotalsBreakdown:
        """Recompute the breakdown from the current lines. Nothing is stored."""
        source = self._source.load(document_id)
        return self._engine.compute(source.lines, source.config)

    def finalize(self, document_id: str) -> TotalsBreakdown:
        """Compute the breakdown and register it as the document's payable total."""
        source = self._source.load(document_id)

        with LogContext.bind(document_id=document_id, customer_id=source.customer_id):
            t0 = time.monotonic()
            breakdown = self._engine.compute(source.lines, source.config)

            if self._registry is not None:
                self._registry.register_finalized(
                    document_id=document_id,
                    customer_id=source.customer_id,
                    kind=source.kind,
                    breakdown=breakdown,
                )

            duration_ms = round((time.monotonic() - t0) * 1000, 2)
            logger.info("document_finalized", extra={
                "kind": source.kind.value,
                "grand_total_ttc": str(breakdown.grand_total_ttc.amount),
                "currency": breakdown.currency,
                "registered": self._registry is not None,
                "duration_ms": duration_ms,
            })
            return breakdown
