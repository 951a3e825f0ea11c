"""
ORM-level append-only enforcement for the payment ledger.

SQLAlchemy fires mapper events before UPDATE/DELETE statements reach the
database. The listeners below reject any change to an existing
PaymentLedgerRow, so corrections have to be new rows.

Usage:
    register_immutability_listeners()   # once at startup, idempotent
    unregister_immutability_listeners() # tests only
"""

from sqlalchemy import event

from invoicing_kernel.exceptions import ImmutabilityViolationError
from invoicing_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


def _check_ledger_row_update(mapper, connection, target):
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": "PaymentLedgerRow",
            "entity_id": str(target.id),
            "operation": "UPDATE",
        },
    )
    raise ImmutabilityViolationError(
        entity_type="PaymentLedgerRow",
        entity_id=str(target.id),
        reason="Ledger entries are append-only and cannot be modified",
    )


def _check_ledger_row_delete(mapper, connection, target):
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": "PaymentLedgerRow",
            "entity_id": str(target.id),
            "operation": "DELETE",
        },
    )
    raise ImmutabilityViolationError(
        entity_type="PaymentLedgerRow",
        entity_id=str(target.id),
        reason="Ledger entries are append-only and cannot be deleted",
    )


_LISTENERS = (
    ("before_update", _check_ledger_row_update),
    ("before_delete", _check_ledger_row_delete),
)


def register_immutability_listeners() -> None:
    from invoicing_kernel.models.payment import PaymentLedgerRow

    for name, fn in _LISTENERS:
        if not event.contains(PaymentLedgerRow, name, fn):
            event.listen(PaymentLedgerRow, name, fn)


def unregister_immutability_listeners() -> None:
    from invoicing_kernel.models.payment import PaymentLedgerRow

    for name, fn in _LISTENERS:
        if event.contains(PaymentLedgerRow, name, fn):
            event.remove(PaymentLedgerRow, name, fn)
