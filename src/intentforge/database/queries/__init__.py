"""Query functions for Intentforge database rows."""

from __future__ import annotations

from intentforge.database.queries.records import (
    delete_conversation,
    delete_project,
    get_conversation,
    get_project,
    list_projects,
    upsert_conversation,
    upsert_project,
)

__all__ = [
    "delete_conversation",
    "delete_project",
    "get_conversation",
    "get_project",
    "list_projects",
    "upsert_conversation",
    "upsert_project",
]
