"""Database layer for Intentforge.

This module handles database connections, session management and the record
stores the lifecycle persists through.

Public API:
    get_engine: Create an AsyncEngine from DatabaseConfig.
    get_session_factory: Create an async_sessionmaker from an engine.
    Base: SQLAlchemy declarative base for all models.
    RecordStore: Store protocol; InMemoryRecordStore and SqlRecordStore implement it.
    create_record_store: Build the store selected by configuration.
"""

from intentforge.database.connection import get_engine, get_session_factory
from intentforge.database.models import Base, ConversationRow, ProjectRow, TimestampMixin
from intentforge.database.store import (
    InMemoryRecordStore,
    RecordStore,
    SqlRecordStore,
    create_record_store,
)

__all__ = [
    "get_engine",
    "get_session_factory",
    "Base",
    "ConversationRow",
    "ProjectRow",
    "TimestampMixin",
    "InMemoryRecordStore",
    "RecordStore",
    "SqlRecordStore",
    "create_record_store",
]
