"""Project domain models.

ProjectDescriptor is the single JSON document the lifecycle persists for a
project; generated files, the architecture and build/test outcomes are
embedded in it.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field

from intentforge.models.architecture import ArchitectureDescriptor


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProjectType(str, Enum):
    """Kind of project inferred from the description."""

    REACT_WEB_APP = "react-web-app"
    VUE_WEB_APP = "vue-web-app"
    NODE_REST_API = "node-rest-api"
    PYTHON_REST_API = "python-rest-api"
    STATIC_WEBSITE = "static-website"
    CLI_TOOL = "cli-tool"


class ProjectStatus(str, Enum):
    """Lifecycle status for a project.

    States:
        initializing: Project record created, no conversation yet.
        gathering_requirements: Conversation in progress.
        planning: Architecture synthesis running.
        generating: Files being generated and written.
        building: Dependency install and build running.
        testing: Test command running.
        ready: Files generated; build/test may be (re)run.
        failed: Last pipeline run failed; retry by re-issuing generate/build.
    """

    INITIALIZING = "initializing"
    GATHERING_REQUIREMENTS = "gathering_requirements"
    PLANNING = "planning"
    GENERATING = "generating"
    BUILDING = "building"
    TESTING = "testing"
    READY = "ready"
    FAILED = "failed"


class GeneratedFile(BaseModel):
    """A single generated source file.

    Path safety is enforced where files touch the disk (ProjectMaterializer),
    not here, so unsafe documents can still be loaded and rejected.

    Attributes:
        path: Relative POSIX path inside the project
        content: Full file text
        language: Language tag (typescript, json, markdown, ...)
        purpose: Human-readable purpose string
    """

    path: str = Field(..., min_length=1)
    content: str
    language: str
    purpose: str


class BuildOutcome(BaseModel):
    """Result of the install + build step."""

    success: bool
    logs: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    artifacts: list[str] = Field(default_factory=list)
    duration_seconds: float = Field(default=0.0, ge=0.0)
    timestamp: datetime = Field(default_factory=utcnow)


class TestCaseStatus(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


class TestCaseResult(BaseModel):
    name: str
    status: TestCaseStatus
    duration: float = 0.0
    error: str | None = None


class TestSuiteResult(BaseModel):
    name: str
    tests: list[TestCaseResult] = Field(default_factory=list)
    duration: float = 0.0


class CoverageMetrics(BaseModel):
    """Percent coverage per metric (0-100)."""

    lines: float = Field(ge=0.0, le=100.0)
    functions: float = Field(ge=0.0, le=100.0)
    branches: float = Field(ge=0.0, le=100.0)
    statements: float = Field(ge=0.0, le=100.0)


class TestOutcome(BaseModel):
    """Result of the test step."""

    success: bool
    total_tests: int = Field(default=0, ge=0)
    passed_tests: int = Field(default=0, ge=0)
    failed_tests: int = Field(default=0, ge=0)
    test_suites: list[TestSuiteResult] = Field(default_factory=list)
    coverage: CoverageMetrics | None = None
    logs: list[str] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=utcnow)


class ProjectDescriptor(BaseModel):
    """A project managed by the generation pipeline.

    Attributes:
        id: UUID string identifier
        name: Human-readable project name
        description: Free-text description supplied at creation
        type: Inferred project type
        status: Current lifecycle status
        requirements: Accumulated feature tags (values of FeatureTag)
        tech_preferences: Accumulated tech preference tags
        architecture: Architecture plan, None until synthesized
        files: Generated files, empty until generated
        build_output: Last build outcome
        test_results: Last test outcome
        error: Message of the failure that moved the project to failed
        created_at: Creation timestamp
        updated_at: Last modification timestamp
    """

    id: str = Field(default_factory=lambda: str(uuid4()))
    name: str
    description: str
    type: ProjectType = ProjectType.REACT_WEB_APP
    status: ProjectStatus = ProjectStatus.INITIALIZING
    requirements: list[str] = Field(default_factory=list)
    tech_preferences: list[str] = Field(default_factory=list)
    architecture: ArchitectureDescriptor | None = None
    files: list[GeneratedFile] = Field(default_factory=list)
    build_output: BuildOutcome | None = None
    test_results: TestOutcome | None = None
    error: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def touch(self) -> None:
        """Update mutation timestamp."""
        self.updated_at = utcnow()
