"""SQLAlchemy models for Intentforge."""

from __future__ import annotations

from intentforge.database.models.base import Base, DocumentMixin, TimestampMixin
from intentforge.database.models.records import ConversationRow, ProjectRow

__all__ = [
    "Base",
    "ConversationRow",
    "DocumentMixin",
    "ProjectRow",
    "TimestampMixin",
]
