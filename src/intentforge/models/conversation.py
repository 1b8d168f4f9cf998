"""Conversation models: one conversation per project."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field

from intentforge.models.project import utcnow


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class ConversationStage(str, Enum):
    """Where the intent-gathering dialogue currently stands."""

    INITIAL = "initial"
    CLARIFYING = "clarifying"
    PLANNING = "planning"
    IMPLEMENTING = "implementing"
    COMPLETED = "completed"


class Message(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    role: MessageRole
    content: str
    timestamp: datetime = Field(default_factory=utcnow)
    metadata: dict[str, Any] | None = None


class ConversationContext(BaseModel):
    """Accumulated state of the dialogue.

    Attributes:
        stage: Current dialogue stage
        extracted_requirements: Keywords harvested so far (deduplicated, ordered)
        clarification_needed: Topics still awaiting an answer
        user_preferences: Free-form preference map
    """

    stage: ConversationStage = ConversationStage.INITIAL
    extracted_requirements: list[str] = Field(default_factory=list)
    clarification_needed: list[str] = Field(default_factory=list)
    user_preferences: dict[str, Any] = Field(default_factory=dict)


class ConversationRecord(BaseModel):
    """Ordered message history plus context for a project."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    project_id: str
    messages: list[Message] = Field(default_factory=list)
    context: ConversationContext = Field(default_factory=ConversationContext)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def texts(self, role: MessageRole | None = None) -> list[str]:
        """Message contents in order, optionally filtered by role."""
        return [m.content for m in self.messages if role is None or m.role == role]

    def touch(self) -> None:
        self.updated_at = utcnow()
