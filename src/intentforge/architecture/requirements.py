"""Requirement extraction from unstructured conversation text.

RequirementExtractor maps the project description plus every conversation
message to a RequirementsSet by running a fixed table of keyword predicates
over the combined, lower-cased text. Each predicate is independent; several
may fire. The functions here are pure and total over any input string.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

import structlog

from intentforge.models.project import ProjectType
from intentforge.models.requirements import DEFAULT_FEATURES, FeatureTag, RequirementsSet

logger = structlog.get_logger(__name__)


def _word(*stems: str) -> re.Pattern[str]:
    """Compile a pattern matching any stem at a word start."""
    return re.compile(r"\b(?:" + "|".join(re.escape(s) for s in stems) + r")")


def _exact(*words: str) -> re.Pattern[str]:
    """Compile a pattern matching any of the words as whole words."""
    return re.compile(r"\b(?:" + "|".join(re.escape(w) for w in words) + r")\b")


@dataclass(frozen=True)
class KeywordPredicate:
    """A feature predicate over lower-cased text.

    Attributes:
        tags: Tags added when the predicate fires
        any_of: Fires if any pattern matches
        all_of: Fires only if every pattern matches (checked when any_of is empty)
    """

    tags: tuple[FeatureTag, ...]
    any_of: tuple[re.Pattern[str], ...] = ()
    all_of: tuple[re.Pattern[str], ...] = ()

    def matches(self, text: str) -> bool:
        if self.any_of:
            return any(p.search(text) for p in self.any_of)
        return bool(self.all_of) and all(p.search(text) for p in self.all_of)


FEATURE_PREDICATES: tuple[KeywordPredicate, ...] = (
    KeywordPredicate(
        (FeatureTag.AUTHENTICATION,),
        any_of=(_word("auth", "login", "log in", "signup", "sign up", "sign in"),),
    ),
    KeywordPredicate(
        (FeatureTag.DRAG_AND_DROP,),
        all_of=(_word("drag"), _word("drop")),
    ),
    KeywordPredicate(
        (FeatureTag.DARK_MODE,),
        any_of=(_word("dark mode", "dark-mode", "dark theme", "night mode"),),
    ),
    KeywordPredicate(
        (FeatureTag.DASHBOARD,),
        any_of=(_word("dashboard", "admin panel"),),
    ),
    KeywordPredicate(
        (FeatureTag.CHARTS,),
        any_of=(_word("chart", "graph", "visualiz", "visualis"),),
    ),
    KeywordPredicate(
        (FeatureTag.FORMS,),
        any_of=(_word("form", "input"),),
    ),
    KeywordPredicate(
        (FeatureTag.DATA_DISPLAY,),
        any_of=(_word("table", "list", "display", "grid"),),
    ),
    KeywordPredicate(
        (FeatureTag.SEARCH_FILTER,),
        any_of=(_word("search", "filter"),),
    ),
    KeywordPredicate(
        (FeatureTag.NOTIFICATIONS,),
        any_of=(_word("notification", "notify", "toast", "alert"),),
    ),
    KeywordPredicate(
        (FeatureTag.API_BACKEND,),
        any_of=(_word("api", "backend", "server", "database"), _exact("rest", "restful")),
    ),
    KeywordPredicate(
        (FeatureTag.CRUD,),
        any_of=(_word("crud", "create", "edit", "delete", "manage"),),
    ),
    # Item-tracker apps imply editing, listing and entering items.
    KeywordPredicate(
        (FeatureTag.CRUD, FeatureTag.DATA_DISPLAY, FeatureTag.FORMS),
        any_of=(_exact("todo", "todos", "to-do", "tasks", "task list", "tracker"),),
    ),
    KeywordPredicate(
        (FeatureTag.RESPONSIVE,),
        any_of=(_word("responsive", "mobile"),),
    ),
)

TECH_PREDICATES: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("tailwindcss", _word("tailwind")),
    ("typescript", _word("typescript")),
    ("nextjs", _word("next.js", "nextjs", "next js")),
    ("vue", _exact("vue", "vue.js", "vuejs")),
    ("react", _word("react")),
    ("python", _word("python")),
    ("postgresql", _word("postgres")),
    ("mongodb", _word("mongo")),
    ("docker", _word("docker")),
)

# Harvested into ConversationContext.extracted_requirements.
KEYWORD_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\b(react|vue|angular|svelte|next\.?js|nuxt)\b"),
    re.compile(r"\b(node\.?js|python|django|flask|express|fastapi)\b"),
    re.compile(r"\b(mongodb|postgresql|mysql|sqlite|redis)\b"),
    re.compile(r"\b(api|rest|graphql|websocket)\b"),
    re.compile(r"\b(auth|authentication|login|signup|oauth)\b"),
    re.compile(r"\b(crud|database|storage|file upload)\b"),
    re.compile(r"\b(dashboard|admin panel|form|table|chart)\b"),
    re.compile(r"\b(responsive|mobile|desktop|pwa)\b"),
    re.compile(r"\b(typescript|javascript|go|rust)\b"),
)


def _combine(project_description: str, conversation_messages: Iterable[str]) -> str:
    return "\n".join([project_description, *conversation_messages]).lower()


class RequirementExtractor:
    """Pure mapping from conversation text to a RequirementsSet.

    Example:
        >>> extractor = RequirementExtractor()
        >>> reqs = extractor.extract("A todo app with authentication and dark mode", [])
        >>> sorted(t.value for t in reqs.features)
        ['authentication', 'crud', 'dark-mode', 'data-display', 'forms']
    """

    def __init__(
        self,
        feature_predicates: Sequence[KeywordPredicate] = FEATURE_PREDICATES,
        tech_predicates: Sequence[tuple[str, re.Pattern[str]]] = TECH_PREDICATES,
    ) -> None:
        self.feature_predicates = tuple(feature_predicates)
        self.tech_predicates = tuple(tech_predicates)

    def extract(
        self, project_description: str, conversation_messages: Sequence[str] = ()
    ) -> RequirementsSet:
        """Extract feature and tech-preference tags.

        Args:
            project_description: Free-text description given at creation
            conversation_messages: Message texts in conversation order

        Returns:
            RequirementsSet whose feature set is never empty
        """
        text = _combine(project_description, conversation_messages)

        features: set[FeatureTag] = set()
        for predicate in self.feature_predicates:
            if predicate.matches(text):
                features.update(predicate.tags)

        defaulted = not features
        if defaulted:
            features = set(DEFAULT_FEATURES)

        tech = {tag for tag, pattern in self.tech_predicates if pattern.search(text)}

        logger.debug(
            "requirements_extracted",
            features=sorted(f.value for f in features),
            tech_preferences=sorted(tech),
            defaulted=defaulted,
            text_length=len(text),
        )

        return RequirementsSet(features=frozenset(features), tech_preferences=frozenset(tech))


def extract_requirements(
    project_description: str, conversation_messages: Sequence[str] = ()
) -> RequirementsSet:
    """Module-level shortcut for RequirementExtractor().extract()."""
    return RequirementExtractor().extract(project_description, conversation_messages)


def extract_keywords(text: str) -> list[str]:
    """Harvest technical keywords from text.

    Returns:
        Lower-cased keywords, deduplicated, in first-seen order.
    """
    lowered = text.lower()
    seen: dict[str, None] = {}
    for pattern in KEYWORD_PATTERNS:
        for match in pattern.finditer(lowered):
            seen.setdefault(match.group(0), None)
    return list(seen)


def infer_project_type(description: str) -> ProjectType:
    """Infer the project type from its description.

    Checks run in priority order; a description that matches nothing is a
    React web app.
    """
    text = description.lower()

    def has(*words: str) -> bool:
        return _exact(*words).search(text) is not None

    if has("react", "web app", "webapp"):
        return ProjectType.REACT_WEB_APP
    if has("vue", "vue.js", "vuejs"):
        return ProjectType.VUE_WEB_APP
    if has("api", "backend", "server"):
        if has("python", "django", "flask", "fastapi"):
            return ProjectType.PYTHON_REST_API
        return ProjectType.NODE_REST_API
    if has("static", "landing page", "website"):
        return ProjectType.STATIC_WEBSITE
    if has("cli", "command line", "command-line", "tool"):
        return ProjectType.CLI_TOOL
    return ProjectType.REACT_WEB_APP
