"""Requirements conversation: prompt construction and reply parsing.

ConversationAgent asks a CompletionProvider for the next assistant reply
and interprets it with ``parse_response``: whether it asks for
clarification, which numbered questions it contains, whether it signals
readiness to generate, and how the conversation context moves on.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from intentforge.architecture.requirements import extract_keywords
from intentforge.intelligence.providers import CompletionProvider
from intentforge.logging import get_logger
from intentforge.models.conversation import (
    ConversationContext,
    ConversationRecord,
    ConversationStage,
    Message,
    MessageRole,
)

READY_MARKER = "READY_TO_GENERATE"

_QUESTION = re.compile(r"\d+\.\s+([^?\n]+\?)")
_CLARIFY_CUES = ("question", "clarify", "need to know")

# Question keywords -> clarification topic
_TOPICS: tuple[tuple[str, str], ...] = (
    ("tech stack", "tech_stack"),
    ("technology", "tech_stack"),
    ("authentication", "auth"),
    ("login", "auth"),
    ("scale", "scale"),
    ("users per day", "scale"),
    ("deploy", "deployment"),
    ("database", "database"),
)

SYSTEM_PROMPT_TEMPLATE = """You are an expert software architect and developer assistant. Your role is to help users define their software project requirements and guide them through the planning process.

Current conversation stage: {stage}
Extracted requirements so far: {requirements}

Your responsibilities:
1. Understand the user's intent by asking clarifying questions
2. Extract specific requirements from their descriptions
3. Identify technical constraints and preferences
4. Suggest appropriate technology stacks
5. Ensure all critical decisions are made before code generation

Guidelines:
- Ask focused, specific questions
- Avoid technical jargon unless the user demonstrates technical knowledge
- Suggest best practices and industry standards
- Be concise but thorough
- When you have enough information, summarize the plan and ask for confirmation

Important: Your responses should include clear indicators:
- If you need more information, explicitly state what clarification is needed
- When ready to generate code, clearly state "READY_TO_GENERATE" in your response
- Extract and list key requirements in your responses"""


def build_system_prompt(context: ConversationContext) -> str:
    return SYSTEM_PROMPT_TEMPLATE.format(
        stage=context.stage.value,
        requirements=", ".join(context.extracted_requirements) or "none",
    )


@dataclass
class ParsedReply:
    """Interpretation of one assistant reply.

    Attributes:
        content: Reply text
        requires_clarification: Reply asks the user for more information
        clarification_questions: Numbered questions found in the reply
        ready_to_generate: Reply signals that generation can start
        context: Conversation context after this reply
    """

    content: str
    requires_clarification: bool
    clarification_questions: list[str] = field(default_factory=list)
    ready_to_generate: bool = False
    context: ConversationContext = field(default_factory=ConversationContext)


def _merge(existing: list[str], new: list[str]) -> list[str]:
    return list(dict.fromkeys([*existing, *new]))


def clarification_topics(questions: list[str]) -> list[str]:
    """Map question texts to short topic names, keeping unmatched questions."""
    topics: list[str] = []
    for question in questions:
        lowered = question.lower()
        topic = next((name for cue, name in _TOPICS if cue in lowered), question)
        topics.append(topic)
    return list(dict.fromkeys(topics))


def parse_response(
    content: str, context: ConversationContext, user_text: str = ""
) -> ParsedReply:
    """Interpret an assistant reply against the current context.

    Args:
        content: Assistant reply text
        context: Context before the reply
        user_text: The user message the reply answers; its keywords are
            harvested together with the reply's

    Returns:
        ParsedReply with the updated context
    """
    lowered = content.lower()
    requires_clarification = any(cue in lowered for cue in _CLARIFY_CUES)
    ready_to_generate = READY_MARKER in content or ("ready" in lowered and "generate" in lowered)
    questions = [q.strip() for q in _QUESTION.findall(content)]

    if ready_to_generate:
        stage = ConversationStage.PLANNING
    elif requires_clarification:
        stage = ConversationStage.CLARIFYING
    else:
        stage = context.stage

    if ready_to_generate:
        clarification_needed: list[str] = []
    elif questions:
        clarification_needed = clarification_topics(questions)
    else:
        clarification_needed = list(context.clarification_needed)

    new_context = context.model_copy(
        update={
            "stage": stage,
            "extracted_requirements": _merge(
                context.extracted_requirements,
                extract_keywords(user_text) + extract_keywords(content),
            ),
            "clarification_needed": clarification_needed,
        },
        deep=True,
    )

    return ParsedReply(
        content=content,
        requires_clarification=requires_clarification,
        clarification_questions=questions,
        ready_to_generate=ready_to_generate,
        context=new_context,
    )


class ConversationAgent:
    """Produces the next assistant turn for a conversation."""

    def __init__(self, provider: CompletionProvider) -> None:
        self.provider = provider
        self.logger = get_logger(__name__)

    async def respond(self, conversation: ConversationRecord) -> tuple[Message, ParsedReply]:
        """Ask the provider for a reply to the conversation so far.

        The conversation is not modified; the caller appends the returned
        message and adopts the parsed context.

        Raises:
            AIProviderError: If the provider fails
        """
        user_texts = conversation.texts(MessageRole.USER)
        system_prompt = build_system_prompt(conversation.context)

        content = await self.provider.complete(system_prompt, conversation.messages)
        parsed = parse_response(
            content, conversation.context, user_texts[-1] if user_texts else ""
        )

        message = Message(
            role=MessageRole.ASSISTANT,
            content=content,
            metadata={
                "provider": self.provider.name,
                "requires_clarification": parsed.requires_clarification,
                "ready_to_generate": parsed.ready_to_generate,
            },
        )

        self.logger.info(
            "assistant_reply_generated",
            conversation_id=conversation.id,
            provider=self.provider.name,
            stage=parsed.context.stage.value,
            ready_to_generate=parsed.ready_to_generate,
            question_count=len(parsed.clarification_questions),
        )
        return message, parsed
