"""Project lifecycle orchestration.

ProjectLifecycle is the single entry point for every project operation used
by the HTTP API and the CLI. It owns:

- the state machine: every status change goes through ProjectStateMachine
- per-project locking: every read-modify-write of a project's records runs
  under that project's lock
- the run gate: at most one background job (generate or build) per project
- ordering: records are persisted before the matching event is published

Example usage:
    >>> lifecycle = create_lifecycle(config, notifier=broadcaster)
    >>> project, conversation = await lifecycle.create_project("Todo", "A todo app with auth")
    >>> await lifecycle.record_message(project.id, "React please, with dark mode")
    >>> await lifecycle.record_message(project.id, "Yes, that's everything")
    >>> await lifecycle.request_generation(project.id, confirmed=True)
    >>> await lifecycle.wait_for_idle(project.id)
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from intentforge.architecture.architect import ArchitectureSynthesizer, build_file_tree
from intentforge.architecture.requirements import RequirementExtractor, infer_project_type
from intentforge.architecture.scaffolder import FileSynthesizer
from intentforge.config import AIConfig, IntentForgeConfig
from intentforge.database.store import RecordStore, create_record_store
from intentforge.errors import ConflictError, NotFoundError, ValidationError
from intentforge.intelligence.conversation import ConversationAgent
from intentforge.intelligence.providers import PROVIDER_NAMES, CompletionProvider, get_provider
from intentforge.logging import bind_project_context, get_logger
from intentforge.models.conversation import ConversationRecord, Message, MessageRole
from intentforge.models.project import GeneratedFile, ProjectDescriptor, ProjectStatus
from intentforge.orchestrator.jobs import JobRegistry, KeyedLocks
from intentforge.orchestrator.notifications import (
    NotificationSink,
    NullNotificationSink,
    ProjectEvent,
)
from intentforge.orchestrator.state_machine import (
    ACTIVE_STATUSES,
    CONVERSATION_STATUSES,
    ProjectStateMachine,
    can_build,
    can_generate,
    validate_transition,
)
from intentforge.pipeline.archive import ArchiveFormat, build_archive, write_archive
from intentforge.pipeline.build_runner import BuildRunner
from intentforge.pipeline.executor import CommandResult, create_executor
from intentforge.pipeline.materializer import ProjectMaterializer

NAME_MAX_LENGTH = 100
DESCRIPTION_MIN_LENGTH = 10
DESCRIPTION_MAX_LENGTH = 5000
MESSAGE_MAX_LENGTH = 5000

# Per-project AI settings a client may choose; credentials stay in config
AI_OVERRIDE_KEYS = frozenset({"provider", "model", "temperature", "max_tokens"})

ProviderFactory = Callable[[str, AIConfig], CompletionProvider]


@dataclass
class TurnResult:
    """Outcome of one conversation turn.

    Attributes:
        project: Project after the turn
        conversation: Conversation after the turn
        message: The assistant message appended by the turn
        requires_clarification: The assistant asked for more information
        clarification_questions: Numbered questions in the reply
        ready_to_generate: The assistant signalled readiness to generate
    """

    project: ProjectDescriptor
    conversation: ConversationRecord
    message: Message
    requires_clarification: bool
    clarification_questions: list[str]
    ready_to_generate: bool


def _require_length(value: str, field: str, minimum: int, maximum: int) -> str:
    text = value.strip()
    if not minimum <= len(text) <= maximum:
        raise ValidationError(
            f"{field} must be between {minimum} and {maximum} characters",
            field=field,
        )
    return text


def _validate_ai_overrides(ai_config: dict[str, Any] | None) -> dict[str, Any]:
    if not ai_config:
        return {}
    unknown = set(ai_config) - AI_OVERRIDE_KEYS
    if unknown:
        raise ValidationError(
            f"Unsupported AI settings: {', '.join(sorted(unknown))}", field="ai_config"
        )
    provider = ai_config.get("provider")
    if provider is not None and str(provider).lower() not in PROVIDER_NAMES:
        raise ValidationError(f"Unsupported AI provider: {provider}", field="ai_config.provider")
    temperature = ai_config.get("temperature")
    if temperature is not None and not 0.0 <= float(temperature) <= 2.0:
        raise ValidationError("temperature must be between 0 and 2", field="ai_config.temperature")
    max_tokens = ai_config.get("max_tokens")
    if max_tokens is not None and int(max_tokens) < 1:
        raise ValidationError("max_tokens must be positive", field="ai_config.max_tokens")
    return {k: v for k, v in ai_config.items() if v is not None}


class ProjectLifecycle:
    """Coordinates conversation, generation and build for every project."""

    def __init__(
        self,
        store: RecordStore,
        materializer: ProjectMaterializer,
        build_runner: BuildRunner,
        ai_config: AIConfig,
        archives_dir: Path,
        notifier: NotificationSink | None = None,
        jobs: JobRegistry | None = None,
        provider_factory: ProviderFactory = get_provider,
        run_tests: bool = True,
    ) -> None:
        self.store = store
        self.materializer = materializer
        self.build_runner = build_runner
        self.ai_config = ai_config
        self.archives_dir = Path(archives_dir)
        self.notifier: NotificationSink = notifier or NullNotificationSink()
        self.jobs = jobs or JobRegistry()
        self.provider_factory = provider_factory
        self.run_tests = run_tests

        self.extractor = RequirementExtractor()
        self.architect = ArchitectureSynthesizer()
        self.synthesizer = FileSynthesizer()
        self.state_machine = ProjectStateMachine()
        self.locks = KeyedLocks()
        self.logger = get_logger(__name__)

    # -- queries ---------------------------------------------------------

    async def get_project(self, project_id: str) -> ProjectDescriptor:
        project = await self.store.get_project(project_id)
        if project is None:
            raise NotFoundError("Project", project_id)
        return project

    async def get_conversation(self, project_id: str) -> ConversationRecord:
        conversation = await self.store.get_conversation(project_id)
        if conversation is None:
            raise NotFoundError("Conversation", project_id)
        return conversation

    async def list_projects(self) -> list[ProjectDescriptor]:
        return await self.store.list_projects()

    def is_busy(self, project_id: str) -> bool:
        return self.jobs.is_active(project_id)

    async def wait_for_idle(self, project_id: str) -> ProjectDescriptor:
        """Wait for the project's background job to finish, then reload it."""
        await self.jobs.wait(project_id)
        return await self.get_project(project_id)

    # -- conversation ----------------------------------------------------

    async def create_project(
        self, name: str, description: str, ai_config: dict[str, Any] | None = None
    ) -> tuple[ProjectDescriptor, ConversationRecord]:
        """Create a project and its empty conversation.

        Args:
            name: Project name (1-100 characters)
            description: What to build (10-5000 characters)
            ai_config: Optional per-project provider/model/temperature/max_tokens

        Raises:
            ValidationError: On out-of-range fields or unsupported AI settings
        """
        name = _require_length(name, "name", 1, NAME_MAX_LENGTH)
        description = _require_length(
            description, "description", DESCRIPTION_MIN_LENGTH, DESCRIPTION_MAX_LENGTH
        )
        overrides = _validate_ai_overrides(ai_config)

        project = ProjectDescriptor(
            name=name, description=description, type=infer_project_type(description)
        )
        conversation = ConversationRecord(project_id=project.id)
        if overrides:
            conversation.context.user_preferences["ai"] = overrides

        async with self.locks.hold(project.id):
            await self.store.put_project(project)
            await self.store.put_conversation(conversation)

        self.logger.info(
            "project_created",
            project_id=project.id,
            name=name,
            project_type=project.type.value,
        )
        await self._notify(project.id, ProjectEvent.STATUS_CHANGED, {"status": project.status.value})
        return project, conversation

    def _provider_for(self, conversation: ConversationRecord) -> CompletionProvider:
        overrides = dict(conversation.context.user_preferences.get("ai") or {})
        name = str(overrides.pop("provider", self.ai_config.provider))
        config = self.ai_config.model_copy(update=overrides) if overrides else self.ai_config
        return self.provider_factory(name, config)

    async def record_message(self, project_id: str, text: str) -> TurnResult:
        """Append a user message and the assistant's reply.

        The project moves to gathering_requirements only from initializing or
        gathering_requirements. If the provider fails, nothing is persisted.

        Raises:
            ValidationError: Empty or oversized message
            NotFoundError: Unknown project
            AIProviderError: Provider failure
        """
        text = _require_length(text, "message", 1, MESSAGE_MAX_LENGTH)

        async with self.locks.hold(project_id):
            project = await self.get_project(project_id)
            conversation = await self.store.get_conversation(project_id)
            if conversation is None:
                conversation = ConversationRecord(project_id=project_id)

            agent = ConversationAgent(self._provider_for(conversation))

            working = conversation.model_copy(deep=True)
            working.messages.append(Message(role=MessageRole.USER, content=text))
            reply, parsed = await agent.respond(working)

            working.messages.append(reply)
            working.context = parsed.context
            working.touch()
            await self.store.put_conversation(working)

            status_changed = False
            if project.status in CONVERSATION_STATUSES:
                requirements = self.extractor.extract(
                    project.description, working.texts(MessageRole.USER)
                )
                project.requirements = requirements.feature_values()
                project.tech_preferences = requirements.sorted_tech_preferences()
                status_changed = project.status != ProjectStatus.GATHERING_REQUIREMENTS
                self.state_machine.transition(project, ProjectStatus.GATHERING_REQUIREMENTS)
                await self.store.put_project(project)

        if status_changed:
            await self._notify(
                project_id, ProjectEvent.STATUS_CHANGED, {"status": project.status.value}
            )

        return TurnResult(
            project=project,
            conversation=working,
            message=reply,
            requires_clarification=parsed.requires_clarification,
            clarification_questions=parsed.clarification_questions,
            ready_to_generate=parsed.ready_to_generate,
        )

    # -- generation ------------------------------------------------------

    async def request_generation(self, project_id: str, confirmed: bool) -> ProjectDescriptor:
        """Start background generation.

        Returns once the project is in planning; the job continues in the
        background.

        Raises:
            ValidationError: If not confirmed
            NotFoundError: Unknown project
            ConflictError: Wrong status or a job is already running
        """
        if not confirmed:
            raise ValidationError("Generation must be confirmed", field="confirmed")

        async with self.locks.hold(project_id):
            project = await self.get_project(project_id)
            self._ensure_idle(project_id)
            if not can_generate(project):
                raise ConflictError(
                    f"Cannot generate a project in status {project.status.value}",
                    {"status": project.status.value},
                )
            self.state_machine.transition(project, ProjectStatus.PLANNING)
            await self.store.put_project(project)
            self.jobs.start(project_id, "generate", self._run_generation(project_id))

        await self._notify(project_id, ProjectEvent.STATUS_CHANGED, {"status": project.status.value})
        return project

    async def _run_generation(self, project_id: str) -> None:
        bind_project_context(project_id, job="generate")
        try:
            project = await self.get_project(project_id)
            conversation = await self.store.get_conversation(project_id)
            user_texts = conversation.texts(MessageRole.USER) if conversation else []

            requirements = self.extractor.extract(project.description, user_texts)
            architecture = self.architect.synthesize(project, requirements)

            async with self.locks.hold(project_id):
                project = await self.get_project(project_id)
                project.architecture = architecture
                project.requirements = requirements.feature_values()
                project.tech_preferences = requirements.sorted_tech_preferences()
                self.state_machine.transition(project, ProjectStatus.GENERATING)
                await self.store.put_project(project)
            await self._notify(
                project_id, ProjectEvent.STATUS_CHANGED, {"status": project.status.value}
            )

            files = self.synthesizer.generate(project, architecture, requirements)
            for file in files:
                await self._notify(
                    project_id,
                    ProjectEvent.FILE_GENERATED,
                    {"path": file.path, "language": file.language, "purpose": file.purpose},
                )

            await self._write_files(project_id, files)
            tree = build_file_tree(project.name, files)

            async with self.locks.hold(project_id):
                project = await self.get_project(project_id)
                project.files = files
                project.architecture = architecture.model_copy(update={"file_structure": tree})
                self.state_machine.transition(project, ProjectStatus.READY)
                await self.store.put_project(project)
            await self._notify(
                project_id,
                ProjectEvent.STATUS_CHANGED,
                {"status": project.status.value, "file_count": len(files)},
            )
        except asyncio.CancelledError:
            await self._fail(project_id, "cancelled")
            raise
        except Exception as e:
            self.logger.exception("generation_failed", project_id=project_id)
            await self._fail(project_id, str(e) or type(e).__name__)

    # -- build -----------------------------------------------------------

    async def request_build(
        self, project_id: str, run_tests: bool | None = None
    ) -> ProjectDescriptor:
        """Start a background build (and test) run.

        Valid from ready, or from failed when files exist.

        Raises:
            NotFoundError: Unknown project
            ConflictError: Wrong status, no files, or a job is already running
        """
        with_tests = self.run_tests if run_tests is None else run_tests

        async with self.locks.hold(project_id):
            project = await self.get_project(project_id)
            self._ensure_idle(project_id)
            if not can_build(project):
                raise ConflictError(
                    f"Cannot build a project in status {project.status.value}",
                    {"status": project.status.value, "has_files": bool(project.files)},
                )
            self.state_machine.transition(project, ProjectStatus.BUILDING)
            await self.store.put_project(project)
            self.jobs.start(project_id, "build", self._run_build(project_id, with_tests))

        await self._notify(project_id, ProjectEvent.STATUS_CHANGED, {"status": project.status.value})
        await self._notify(project_id, ProjectEvent.BUILD_STARTED, {"run_tests": with_tests})
        return project

    async def _run_build(self, project_id: str, run_tests: bool) -> None:
        bind_project_context(project_id, job="build")

        async def on_progress(step: str, result: CommandResult | None) -> None:
            if result is None:
                payload: dict[str, Any] = {"step": step, "state": "started"}
            else:
                payload = {
                    "step": step,
                    "state": "succeeded" if result.succeeded else "failed",
                    "duration_seconds": round(result.duration_seconds, 2),
                }
            await self._notify(project_id, ProjectEvent.BUILD_PROGRESS, payload)

        try:
            project = await self.get_project(project_id)
            if not self.materializer.project_dir(project_id).is_dir():
                await self._write_files(project_id, project.files)

            outcome = await self.build_runner.build(project_id, on_progress=on_progress)
            testing = outcome.success and run_tests

            async with self.locks.hold(project_id):
                project = await self.get_project(project_id)
                project.build_output = outcome
                target = ProjectStatus.TESTING if testing else ProjectStatus.READY
                self.state_machine.transition(project, target)
                await self.store.put_project(project)
            await self._notify(
                project_id,
                ProjectEvent.BUILD_COMPLETED,
                {
                    "success": outcome.success,
                    "errors": outcome.errors[:20],
                    "warning_count": len(outcome.warnings),
                    "duration_seconds": round(outcome.duration_seconds, 2),
                },
            )
            await self._notify(
                project_id, ProjectEvent.STATUS_CHANGED, {"status": project.status.value}
            )

            if not testing:
                return

            await self._notify(project_id, ProjectEvent.TEST_STARTED, {})
            results = await self.build_runner.test(project_id, on_progress=on_progress)

            async with self.locks.hold(project_id):
                project = await self.get_project(project_id)
                project.test_results = results
                self.state_machine.transition(project, ProjectStatus.READY)
                await self.store.put_project(project)
            await self._notify(
                project_id,
                ProjectEvent.TEST_COMPLETED,
                {
                    "success": results.success,
                    "total": results.total_tests,
                    "passed": results.passed_tests,
                    "failed": results.failed_tests,
                },
            )
            await self._notify(
                project_id, ProjectEvent.STATUS_CHANGED, {"status": project.status.value}
            )
        except asyncio.CancelledError:
            await self._fail(project_id, "cancelled")
            raise
        except Exception as e:
            self.logger.exception("build_failed", project_id=project_id)
            await self._fail(project_id, str(e) or type(e).__name__)

    # -- removal and export ----------------------------------------------

    async def delete_project(self, project_id: str) -> None:
        """Cancel any job, remove files and archives, and delete the records.

        Raises:
            NotFoundError: Unknown project
        """
        await self.get_project(project_id)
        await self.jobs.cancel(project_id)

        async with self.locks.hold(project_id):
            await asyncio.to_thread(self.materializer.remove, project_id)
            for fmt in ArchiveFormat:
                self._archive_path(project_id, fmt).unlink(missing_ok=True)
            await self.store.delete_conversation(project_id)
            await self.store.delete_project(project_id)

        self.locks.discard(project_id)
        self.logger.info("project_deleted", project_id=project_id)

    def _archive_path(self, project_id: str, fmt: ArchiveFormat) -> Path:
        # project_dir validates the id as a single safe path segment
        self.materializer.project_dir(project_id)
        return self.archives_dir / f"{project_id}.{fmt.extension}"

    async def _archive(
        self, project_id: str, fmt: ArchiveFormat
    ) -> tuple[ProjectDescriptor, bytes]:
        project = await self.get_project(project_id)
        if not project.files:
            raise ConflictError("Project has no generated files", {"status": project.status.value})
        return project, build_archive(project.files, fmt)

    async def archive_project(
        self, project_id: str, fmt: ArchiveFormat = ArchiveFormat.ZIP
    ) -> tuple[ProjectDescriptor, bytes]:
        """Build the project's archive in memory.

        Raises:
            NotFoundError: Unknown project
            ConflictError: The project has no generated files
        """
        async with self.locks.hold(project_id):
            return await self._archive(project_id, fmt)

    async def export_archive(
        self, project_id: str, fmt: ArchiveFormat = ArchiveFormat.ZIP
    ) -> Path:
        """Write the project's archive under archives_dir and return its path.

        Raises:
            NotFoundError: Unknown project
            ConflictError: The project has no generated files
        """
        async with self.locks.hold(project_id):
            project, data = await self._archive(project_id, fmt)
            path = self._archive_path(project_id, fmt)
            await asyncio.to_thread(write_archive, path, data)

        self.logger.info(
            "archive_exported",
            project_id=project_id,
            format=fmt.value,
            size_bytes=len(data),
            entries=len(project.files),
        )
        return path

    async def recover_interrupted(self) -> list[str]:
        """Fail projects left in an active status with no running job.

        A crash, or a job cancelled before its first step, leaves a project in
        planning, generating, building or testing. Failing it makes generate
        or build retryable.

        Returns:
            Ids of the recovered projects
        """
        recovered: list[str] = []
        for project in await self.store.list_projects():
            if project.status in ACTIVE_STATUSES and not self.jobs.is_active(project.id):
                await self._fail(project.id, "interrupted")
                recovered.append(project.id)

        if recovered:
            self.logger.warning(
                "interrupted_projects_recovered", count=len(recovered), project_ids=recovered
            )
        return recovered

    async def shutdown(self) -> None:
        """Drain background jobs, then fail what they left active and close the executor."""
        await self.jobs.shutdown()
        await self.recover_interrupted()
        await self.build_runner.executor.close()

    # -- helpers ---------------------------------------------------------

    async def _write_files(self, project_id: str, files: list[GeneratedFile]) -> None:
        """Materialize files in a worker thread.

        A thread cannot be interrupted, so a cancelled caller still waits for
        the write to finish before unwinding. Once a job is cancelled nothing
        more is written for it.
        """
        write = asyncio.ensure_future(
            asyncio.to_thread(self.materializer.write, project_id, files)
        )
        try:
            await asyncio.shield(write)
        except asyncio.CancelledError:
            try:
                await write
            except Exception as e:
                self.logger.warning("cancelled_write_failed", project_id=project_id, error=str(e))
            raise

    def _ensure_idle(self, project_id: str) -> None:
        if self.jobs.is_active(project_id):
            raise ConflictError(
                f"A {self.jobs.active_kind(project_id)} job is already running",
                {"project_id": project_id, "active_job": self.jobs.active_kind(project_id)},
            )

    async def _fail(self, project_id: str, message: str) -> None:
        """Record a failure; the project keeps its earlier architecture and files."""
        async with self.locks.hold(project_id):
            project = await self.store.get_project(project_id)
            if project is None:
                return
            if not validate_transition(project.status, ProjectStatus.FAILED):
                self.logger.warning(
                    "failure_not_recorded",
                    project_id=project_id,
                    status=project.status.value,
                    error=message,
                )
                return
            self.state_machine.transition(project, ProjectStatus.FAILED, error=message)
            await self.store.put_project(project)

        await self._notify(
            project_id, ProjectEvent.STATUS_CHANGED, {"status": project.status.value}
        )
        await self._notify(project_id, ProjectEvent.ERROR, {"message": message})

    async def _notify(self, project_id: str, event: ProjectEvent, payload: dict[str, Any]) -> None:
        """Publish an event; sink failures are logged, never propagated."""
        try:
            await self.notifier.publish(project_id, event, payload)
        except Exception as e:
            self.logger.warning(
                "notification_failed",
                project_id=project_id,
                event_type=event.value,
                error=str(e),
            )


def create_lifecycle(
    config: IntentForgeConfig,
    store: RecordStore | None = None,
    notifier: NotificationSink | None = None,
    provider_factory: ProviderFactory = get_provider,
) -> ProjectLifecycle:
    """Wire a ProjectLifecycle from configuration."""
    materializer = ProjectMaterializer(config.storage.projects_dir)
    executor = create_executor(config.build, config.docker)
    return ProjectLifecycle(
        store=store or create_record_store(config.database),
        materializer=materializer,
        build_runner=BuildRunner(executor, materializer, config.build),
        ai_config=config.ai,
        archives_dir=config.storage.archives_dir,
        notifier=notifier,
        provider_factory=provider_factory,
        run_tests=config.build.run_tests,
    )
