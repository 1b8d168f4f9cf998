"""SQLAlchemy declarative base and common column mixins for Intentforge.

Rows store whole pydantic documents in a JSON column; the few scalar columns
next to it (status, project_id, timestamps) exist for listing and ordering.
Identifiers and timestamps are supplied by the application, so rows written
by the SQL store match the in-memory store exactly.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# JSONB on PostgreSQL, plain JSON elsewhere
DocumentType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """SQLAlchemy 2.0 declarative base for all Intentforge models."""

    pass


class TimestampMixin:
    """Mixin providing id (UUID string), created_at, and updated_at columns.

    This mixin should be listed before Base in the class hierarchy
    to ensure the columns are included in the model's table definition.
    """

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class DocumentMixin:
    """Mixin providing the serialized pydantic document column."""

    document: Mapped[dict[str, Any]] = mapped_column(DocumentType, nullable=False)
