"""Conversation endpoints for Intentforge.

Routes:
    POST /conversations/message      - Send a user message, get the reply
    GET  /conversations/{project_id} - Full conversation of a project
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from intentforge.models.conversation import ConversationContext, ConversationRecord, Message
from intentforge.models.project import ProjectStatus
from intentforge.orchestrator.lifecycle import MESSAGE_MAX_LENGTH, ProjectLifecycle
from intentforge.web.dependencies import get_lifecycle


class MessageCreate(BaseModel):
    """Request schema for a user message.

    Attributes:
        project_id: Project the conversation belongs to
        message: User text (1-5000 characters)
    """

    project_id: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1, max_length=MESSAGE_MAX_LENGTH)


class TurnResponse(BaseModel):
    """Assistant reply and how it moved the conversation along.

    Attributes:
        project_id: Project id
        project_status: Status after the turn
        message: Assistant message
        requires_clarification: The assistant asked for more information
        clarification_questions: Numbered questions in the reply
        ready_to_generate: Generation can be requested
        context: Conversation context after the turn
    """

    project_id: str
    project_status: ProjectStatus
    message: Message
    requires_clarification: bool
    clarification_questions: list[str]
    ready_to_generate: bool
    context: ConversationContext


def create_conversations_router() -> APIRouter:
    router = APIRouter(prefix="/conversations", tags=["conversations"])

    @router.post("/message", response_model=TurnResponse)
    async def send_message(
        body: MessageCreate,
        lifecycle: ProjectLifecycle = Depends(get_lifecycle),
    ) -> TurnResponse:
        turn = await lifecycle.record_message(body.project_id, body.message)
        return TurnResponse(
            project_id=turn.project.id,
            project_status=turn.project.status,
            message=turn.message,
            requires_clarification=turn.requires_clarification,
            clarification_questions=turn.clarification_questions,
            ready_to_generate=turn.ready_to_generate,
            context=turn.conversation.context,
        )

    @router.get("/{project_id}", response_model=ConversationRecord)
    async def get_conversation(
        project_id: str,
        lifecycle: ProjectLifecycle = Depends(get_lifecycle),
    ) -> ConversationRecord:
        await lifecycle.get_project(project_id)
        return await lifecycle.get_conversation(project_id)

    return router
