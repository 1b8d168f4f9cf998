"""Project endpoints for Intentforge.

This module provides REST API endpoints for the project lifecycle:
- Create, list, get and delete projects
- Start background generation and build runs
- Download the generated project as a zip or tar.gz archive

Every endpoint delegates to ProjectLifecycle; errors raised there are turned
into the JSON error envelope by the handlers in ``intentforge.web.errors``.

Example:
    >>> from fastapi import FastAPI
    >>> from intentforge.web.routes.projects import create_projects_router
    >>>
    >>> app = FastAPI()
    >>> app.include_router(create_projects_router())
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, Query, Response
from fastapi import status as http_status
from pydantic import BaseModel, Field

from intentforge.architecture.templates.base import slugify
from intentforge.logging import get_logger
from intentforge.models.conversation import ConversationRecord
from intentforge.models.project import ProjectDescriptor, ProjectStatus, ProjectType
from intentforge.orchestrator.lifecycle import (
    DESCRIPTION_MAX_LENGTH,
    DESCRIPTION_MIN_LENGTH,
    NAME_MAX_LENGTH,
    ProjectLifecycle,
)
from intentforge.pipeline.archive import ArchiveFormat
from intentforge.web.dependencies import get_lifecycle

logger = get_logger(__name__)


class AISettings(BaseModel):
    """Per-project AI settings.

    Attributes:
        provider: anthropic, openai, ollama or mock
        model: Model name for the provider
        temperature: Sampling temperature (0-2)
        max_tokens: Completion token limit
    """

    provider: str | None = None
    model: str | None = None
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    max_tokens: int | None = Field(default=None, ge=1)


class ProjectCreate(BaseModel):
    """Request schema for creating a new project.

    Attributes:
        name: Human-readable project name (1-100 characters)
        description: What to build (10-5000 characters)
        ai_config: Optional per-project AI settings
    """

    name: str = Field(..., min_length=1, max_length=NAME_MAX_LENGTH)
    description: str = Field(
        ..., min_length=DESCRIPTION_MIN_LENGTH, max_length=DESCRIPTION_MAX_LENGTH
    )
    ai_config: AISettings | None = None


class ProjectCreated(BaseModel):
    project: ProjectDescriptor
    conversation: ConversationRecord


class ProjectSummary(BaseModel):
    """Listing entry for a project.

    Attributes:
        id: Project id
        name: Project name
        type: Inferred project type
        status: Current lifecycle status
        file_count: Number of generated files
        error: Last failure message, if the project failed
        created_at: Creation timestamp
        updated_at: Last modification timestamp
    """

    id: str
    name: str
    type: ProjectType
    status: ProjectStatus
    file_count: int
    error: str | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_project(cls, project: ProjectDescriptor) -> ProjectSummary:
        return cls(
            id=project.id,
            name=project.name,
            type=project.type,
            status=project.status,
            file_count=len(project.files),
            error=project.error,
            created_at=project.created_at,
            updated_at=project.updated_at,
        )


class GenerateRequest(BaseModel):
    confirmed: bool = False


class BuildRequest(BaseModel):
    run_tests: bool = True


class JobAccepted(BaseModel):
    """Response for a started background run.

    Attributes:
        project_id: Project the run belongs to
        status: Status recorded when the run was accepted
        message: Human-readable summary
    """

    project_id: str
    status: ProjectStatus
    message: str


def create_projects_router() -> APIRouter:
    """Create projects router.

    Returns:
        Configured APIRouter with project endpoints.

    Routes:
        POST   /projects/                  - Create a project
        GET    /projects/                  - List projects, newest first
        GET    /projects/{id}              - Get a project
        DELETE /projects/{id}              - Delete a project and its files
        POST   /projects/{id}/generate     - Start generation (202)
        POST   /projects/{id}/build        - Start build and tests (202)
        GET    /projects/{id}/download     - Download archive
    """
    router = APIRouter(prefix="/projects", tags=["projects"])

    @router.post("/", response_model=ProjectCreated, status_code=http_status.HTTP_201_CREATED)
    async def create_project(
        body: ProjectCreate,
        lifecycle: ProjectLifecycle = Depends(get_lifecycle),
    ) -> ProjectCreated:
        ai_config: dict[str, Any] | None = (
            body.ai_config.model_dump(exclude_none=True) if body.ai_config else None
        )
        project, conversation = await lifecycle.create_project(
            body.name, body.description, ai_config
        )
        return ProjectCreated(project=project, conversation=conversation)

    @router.get("/", response_model=list[ProjectSummary])
    async def list_projects(
        lifecycle: ProjectLifecycle = Depends(get_lifecycle),
    ) -> list[ProjectSummary]:
        projects = await lifecycle.list_projects()
        return [ProjectSummary.from_project(p) for p in projects]

    @router.get("/{project_id}", response_model=ProjectDescriptor)
    async def get_project(
        project_id: str,
        lifecycle: ProjectLifecycle = Depends(get_lifecycle),
    ) -> ProjectDescriptor:
        return await lifecycle.get_project(project_id)

    @router.delete("/{project_id}", status_code=http_status.HTTP_204_NO_CONTENT)
    async def delete_project(
        project_id: str,
        lifecycle: ProjectLifecycle = Depends(get_lifecycle),
    ) -> Response:
        await lifecycle.delete_project(project_id)
        return Response(status_code=http_status.HTTP_204_NO_CONTENT)

    @router.post(
        "/{project_id}/generate",
        response_model=JobAccepted,
        status_code=http_status.HTTP_202_ACCEPTED,
    )
    async def generate_project(
        project_id: str,
        body: GenerateRequest,
        lifecycle: ProjectLifecycle = Depends(get_lifecycle),
    ) -> JobAccepted:
        project = await lifecycle.request_generation(project_id, body.confirmed)
        return JobAccepted(
            project_id=project.id,
            status=project.status,
            message="Generation started",
        )

    @router.post(
        "/{project_id}/build",
        response_model=JobAccepted,
        status_code=http_status.HTTP_202_ACCEPTED,
    )
    async def build_project(
        project_id: str,
        body: BuildRequest | None = None,
        lifecycle: ProjectLifecycle = Depends(get_lifecycle),
    ) -> JobAccepted:
        run_tests = body.run_tests if body is not None else None
        project = await lifecycle.request_build(project_id, run_tests=run_tests)
        return JobAccepted(project_id=project.id, status=project.status, message="Build started")

    @router.get("/{project_id}/download")
    async def download_project(
        project_id: str,
        format: ArchiveFormat = Query(default=ArchiveFormat.ZIP),  # noqa: A002
        lifecycle: ProjectLifecycle = Depends(get_lifecycle),
    ) -> Response:
        # Built per request; concurrent downloads never share a file on disk
        project, data = await lifecycle.archive_project(project_id, format)
        logger.info(
            "archive_downloaded", project_id=project_id, format=format.value, size_bytes=len(data)
        )
        filename = f"{slugify(project.name)}.{format.extension}"
        return Response(
            content=data,
            media_type=format.media_type,
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    return router
