"""
Module: invoicing_kernel.db.base
Responsibility: Declarative base class for the ORM models.  Provides the UUID
    primary key convention and the type annotation map that fixes column types
    for Decimal, datetime and UUID across the schema.
Architecture position: Kernel > DB.  Lowest-level import target for models;
    MUST NOT import from models/ or outer layers.

Invariants enforced:
    - Decimal maps to Numeric(38, 9).  Amounts are never stored as float.
    - Every row has a uuid4 primary key stored as String(36).
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID as PyUUID, uuid4

from sqlalchemy import DateTime, Numeric, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """UUID stored as String(36) so the schema runs on PostgreSQL and SQLite."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None:
            return str(value)
        return None

    def process_result_value(self, value, dialect):
        if value is not None:
            return PyUUID(value)
        return None


class Base(DeclarativeBase):
    """Declarative base for all invoicing models."""

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(38, 9),
        datetime: DateTime(timezone=True),
        PyUUID: UUIDString(),
    }

    id: Mapped[PyUUID] = mapped_column(
        UUIDString(),
        primary_key=True,
        default=uuid4,
    )


UUID = PyUUID
