"""Record stores for projects and conversations.

ProjectLifecycle persists through the RecordStore protocol. Two
implementations are provided:

- InMemoryRecordStore: dictionaries of deep copies; the default for
  development and tests
- SqlRecordStore: SQLAlchemy async engine with JSON document columns

Both hand out copies, so mutating a returned descriptor never changes the
stored record until it is put back.
"""

from __future__ import annotations

from typing import Protocol

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from intentforge.config import DatabaseConfig
from intentforge.database import queries
from intentforge.database.connection import get_engine, get_session_factory
from intentforge.database.models import Base
from intentforge.logging import get_logger
from intentforge.models.conversation import ConversationRecord
from intentforge.models.project import ProjectDescriptor


class RecordStore(Protocol):
    """Persistence for project descriptors and their conversations."""

    async def initialize(self) -> None: ...

    async def close(self) -> None: ...

    async def ping(self) -> None: ...

    async def get_project(self, project_id: str) -> ProjectDescriptor | None: ...

    async def put_project(self, project: ProjectDescriptor) -> None: ...

    async def delete_project(self, project_id: str) -> bool: ...

    async def list_projects(self) -> list[ProjectDescriptor]: ...

    async def get_conversation(self, project_id: str) -> ConversationRecord | None: ...

    async def put_conversation(self, conversation: ConversationRecord) -> None: ...

    async def delete_conversation(self, project_id: str) -> bool: ...


class InMemoryRecordStore:
    """Process-local store; contents are lost on restart."""

    def __init__(self) -> None:
        self._projects: dict[str, ProjectDescriptor] = {}
        self._conversations: dict[str, ConversationRecord] = {}

    async def initialize(self) -> None:
        return None

    async def close(self) -> None:
        return None

    async def ping(self) -> None:
        return None

    async def get_project(self, project_id: str) -> ProjectDescriptor | None:
        project = self._projects.get(project_id)
        return project.model_copy(deep=True) if project is not None else None

    async def put_project(self, project: ProjectDescriptor) -> None:
        self._projects[project.id] = project.model_copy(deep=True)

    async def delete_project(self, project_id: str) -> bool:
        return self._projects.pop(project_id, None) is not None

    async def list_projects(self) -> list[ProjectDescriptor]:
        """All projects, newest first."""
        projects = sorted(self._projects.values(), key=lambda p: p.created_at, reverse=True)
        return [p.model_copy(deep=True) for p in projects]

    async def get_conversation(self, project_id: str) -> ConversationRecord | None:
        conversation = self._conversations.get(project_id)
        return conversation.model_copy(deep=True) if conversation is not None else None

    async def put_conversation(self, conversation: ConversationRecord) -> None:
        self._conversations[conversation.project_id] = conversation.model_copy(deep=True)

    async def delete_conversation(self, project_id: str) -> bool:
        return self._conversations.pop(project_id, None) is not None


class SqlRecordStore:
    """SQLAlchemy-backed store.

    Attributes:
        engine: Async engine the store owns and disposes on close
    """

    def __init__(
        self,
        engine: AsyncEngine,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
    ) -> None:
        self.engine = engine
        self.session_factory = session_factory or get_session_factory(engine)
        self.logger = get_logger(__name__)

    @classmethod
    def from_config(cls, config: DatabaseConfig) -> SqlRecordStore:
        return cls(get_engine(config))

    async def initialize(self) -> None:
        """Create tables that do not exist yet."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        self.logger.info("record_store_initialized", url=self.engine.url.render_as_string())

    async def close(self) -> None:
        await self.engine.dispose()

    async def ping(self) -> None:
        """Run a trivial query; raises if the database is unreachable."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def get_project(self, project_id: str) -> ProjectDescriptor | None:
        async with self.session_factory() as session:
            return await queries.get_project(session, project_id)

    async def put_project(self, project: ProjectDescriptor) -> None:
        async with self.session_factory() as session, session.begin():
            await queries.upsert_project(session, project)

    async def delete_project(self, project_id: str) -> bool:
        async with self.session_factory() as session, session.begin():
            return await queries.delete_project(session, project_id)

    async def list_projects(self) -> list[ProjectDescriptor]:
        async with self.session_factory() as session:
            return await queries.list_projects(session)

    async def get_conversation(self, project_id: str) -> ConversationRecord | None:
        async with self.session_factory() as session:
            return await queries.get_conversation(session, project_id)

    async def put_conversation(self, conversation: ConversationRecord) -> None:
        async with self.session_factory() as session, session.begin():
            await queries.upsert_conversation(session, conversation)

    async def delete_conversation(self, project_id: str) -> bool:
        async with self.session_factory() as session, session.begin():
            return await queries.delete_conversation(session, project_id)


def create_record_store(config: DatabaseConfig) -> RecordStore:
    """Build the store selected by ``config.backend``."""
    if config.backend == "sql":
        return SqlRecordStore.from_config(config)
    return InMemoryRecordStore()
