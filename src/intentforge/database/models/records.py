"""Project and conversation tables.

Each row carries the full serialized descriptor in ``document``.
"""

from __future__ import annotations

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from intentforge.database.models.base import Base, DocumentMixin, TimestampMixin


class ProjectRow(TimestampMixin, DocumentMixin, Base):
    """A generated project.

    Attributes:
        id: Project UUID (from TimestampMixin).
        name: Project name, duplicated from the document for listing.
        status: Lifecycle status value, duplicated from the document.
        document: Serialized ProjectDescriptor.
    """

    __tablename__ = "projects"

    name: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(32), nullable=False, index=True)


class ConversationRow(TimestampMixin, DocumentMixin, Base):
    """The requirements conversation of a project (one per project).

    Attributes:
        id: Conversation UUID (from TimestampMixin).
        project_id: Owning project.
        document: Serialized ConversationRecord.
    """

    __tablename__ = "conversations"

    project_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
