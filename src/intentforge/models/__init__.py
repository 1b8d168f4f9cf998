"""Domain models shared by the pipeline components."""

from __future__ import annotations

from intentforge.models.architecture import (
    ArchitectureDescriptor,
    ComponentDefinition,
    ComponentKind,
    FileNode,
    FileNodeKind,
    TechStack,
)
from intentforge.models.conversation import (
    ConversationContext,
    ConversationRecord,
    ConversationStage,
    Message,
    MessageRole,
)
from intentforge.models.project import (
    BuildOutcome,
    CoverageMetrics,
    GeneratedFile,
    ProjectDescriptor,
    ProjectStatus,
    ProjectType,
    TestCaseResult,
    TestCaseStatus,
    TestOutcome,
    TestSuiteResult,
)
from intentforge.models.requirements import DEFAULT_FEATURES, FeatureTag, RequirementsSet

__all__ = [
    "ArchitectureDescriptor",
    "BuildOutcome",
    "ComponentDefinition",
    "ComponentKind",
    "ConversationContext",
    "ConversationRecord",
    "ConversationStage",
    "CoverageMetrics",
    "DEFAULT_FEATURES",
    "FeatureTag",
    "FileNode",
    "FileNodeKind",
    "GeneratedFile",
    "Message",
    "MessageRole",
    "ProjectDescriptor",
    "ProjectStatus",
    "ProjectType",
    "RequirementsSet",
    "TechStack",
    "TestCaseResult",
    "TestCaseStatus",
    "TestOutcome",
    "TestSuiteResult",
]
