"""Project and conversation query functions for Intentforge.

Provides async functions for upserting, reading, listing and deleting the
document rows using the SQLAlchemy 2.0 select() API. Functions take an
AsyncSession; transaction scope is the caller's.
"""

from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from intentforge.database.models.records import ConversationRow, ProjectRow
from intentforge.models.conversation import ConversationRecord
from intentforge.models.project import ProjectDescriptor

logger = structlog.get_logger(__name__)


def _document(model: ProjectDescriptor | ConversationRecord) -> dict[str, Any]:
    return model.model_dump(mode="json")


async def upsert_project(session: AsyncSession, project: ProjectDescriptor) -> ProjectRow:
    """Insert or replace a project row.

    Args:
        session: Active async database session.
        project: Descriptor to persist.

    Returns:
        The ProjectRow instance.
    """
    row = await session.get(ProjectRow, project.id)
    if row is None:
        row = ProjectRow(
            id=project.id,
            name=project.name,
            status=project.status.value,
            document=_document(project),
            created_at=project.created_at,
            updated_at=project.updated_at,
        )
        session.add(row)
    else:
        row.name = project.name
        row.status = project.status.value
        row.document = _document(project)
        row.updated_at = project.updated_at

    await session.flush()
    logger.debug("project_row_saved", project_id=project.id, status=project.status.value)
    return row


async def get_project(session: AsyncSession, project_id: str) -> ProjectDescriptor | None:
    row = await session.get(ProjectRow, project_id)
    if row is None:
        return None
    return ProjectDescriptor.model_validate(row.document)


async def list_projects(session: AsyncSession) -> list[ProjectDescriptor]:
    """All projects, newest first."""
    stmt = select(ProjectRow).order_by(ProjectRow.created_at.desc(), ProjectRow.id)
    result = await session.execute(stmt)
    return [ProjectDescriptor.model_validate(row.document) for row in result.scalars().all()]


async def delete_project(session: AsyncSession, project_id: str) -> bool:
    """Delete a project row.

    Returns:
        True if a row was deleted.
    """
    result = await session.execute(delete(ProjectRow).where(ProjectRow.id == project_id))
    deleted = result.rowcount > 0
    if deleted:
        logger.info("project_row_deleted", project_id=project_id)
    return deleted


async def upsert_conversation(
    session: AsyncSession, conversation: ConversationRecord
) -> ConversationRow:
    stmt = select(ConversationRow).where(ConversationRow.project_id == conversation.project_id)
    row = (await session.execute(stmt)).scalar_one_or_none()
    if row is None:
        row = ConversationRow(
            id=conversation.id,
            project_id=conversation.project_id,
            document=_document(conversation),
            created_at=conversation.created_at,
            updated_at=conversation.updated_at,
        )
        session.add(row)
    else:
        row.document = _document(conversation)
        row.updated_at = conversation.updated_at

    await session.flush()
    return row


async def get_conversation(session: AsyncSession, project_id: str) -> ConversationRecord | None:
    """Conversation of a project, looked up by project id."""
    stmt = select(ConversationRow).where(ConversationRow.project_id == project_id)
    row = (await session.execute(stmt)).scalar_one_or_none()
    if row is None:
        return None
    return ConversationRecord.model_validate(row.document)


async def delete_conversation(session: AsyncSession, project_id: str) -> bool:
    result = await session.execute(
        delete(ConversationRow).where(ConversationRow.project_id == project_id)
    )
    return result.rowcount > 0
