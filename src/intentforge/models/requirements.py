"""Requirement vocabulary and the derived RequirementsSet."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FeatureTag(str, Enum):
    """Closed vocabulary of features the generator knows how to honour.

    Declaration order is the canonical order used wherever feature lists
    are rendered, so generated output never depends on set iteration order.
    """

    AUTHENTICATION = "authentication"
    DRAG_AND_DROP = "drag-and-drop"
    DARK_MODE = "dark-mode"
    DASHBOARD = "dashboard"
    CHARTS = "charts"
    FORMS = "forms"
    DATA_DISPLAY = "data-display"
    SEARCH_FILTER = "search-filter"
    NOTIFICATIONS = "notifications"
    API_BACKEND = "api-backend"
    CRUD = "crud"
    RESPONSIVE = "responsive"


DEFAULT_FEATURES: frozenset[FeatureTag] = frozenset(
    {FeatureTag.CRUD, FeatureTag.DATA_DISPLAY, FeatureTag.FORMS}
)

_FEATURE_ORDER = {tag: index for index, tag in enumerate(FeatureTag)}


class RequirementsSet(BaseModel):
    """Structured requirements extracted from conversation text.

    Attributes:
        features: Detected feature tags; never empty
        tech_preferences: Technology preference tags (tailwindcss, typescript, ...)
    """

    model_config = ConfigDict(frozen=True)

    features: frozenset[FeatureTag] = Field(default=DEFAULT_FEATURES)
    tech_preferences: frozenset[str] = Field(default_factory=frozenset)

    @field_validator("features")
    @classmethod
    def ensure_features(cls, v: frozenset[FeatureTag]) -> frozenset[FeatureTag]:
        """Seed the default feature set when nothing was detected."""
        if not v:
            return DEFAULT_FEATURES
        return v

    def has(self, *tags: FeatureTag) -> bool:
        """Return True if any of the given tags is present."""
        return any(tag in self.features for tag in tags)

    def sorted_features(self) -> list[FeatureTag]:
        """Features in vocabulary order."""
        return sorted(self.features, key=_FEATURE_ORDER.__getitem__)

    def sorted_tech_preferences(self) -> list[str]:
        return sorted(self.tech_preferences)

    def feature_values(self) -> list[str]:
        return [tag.value for tag in self.sorted_features()]
