"""Project CLI commands.

``project new`` runs the whole pipeline in-process: create the project,
hold the requirements conversation, generate files and optionally build,
test and export them.
"""

from __future__ import annotations

import asyncio
import shutil
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Annotated, Optional, TypeVar

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from intentforge.errors import IntentForgeError
from intentforge.models.project import ProjectDescriptor, ProjectStatus
from intentforge.orchestrator.lifecycle import ProjectLifecycle
from intentforge.pipeline.archive import ArchiveFormat

T = TypeVar("T")

app = typer.Typer(help="Project commands")
console = Console()

DEFAULT_CONFIRMATION = "That covers everything, please go ahead."

STATUS_COLORS = {
    ProjectStatus.INITIALIZING: "dim",
    ProjectStatus.GATHERING_REQUIREMENTS: "cyan",
    ProjectStatus.PLANNING: "blue",
    ProjectStatus.GENERATING: "blue",
    ProjectStatus.BUILDING: "yellow",
    ProjectStatus.TESTING: "yellow",
    ProjectStatus.READY: "green",
    ProjectStatus.FAILED: "red",
}


def _status(project: ProjectDescriptor) -> str:
    color = STATUS_COLORS.get(project.status, "white")
    return f"[{color}]{project.status.value}[/{color}]"


def _run(operation: Callable[[ProjectLifecycle], Awaitable[T]], action: str) -> T:
    from intentforge.main import get_app_context

    try:
        return asyncio.run(get_app_context().run(operation))
    except IntentForgeError as e:
        console.print(f"[red]Error {action}:[/red] {e.message}")
        raise typer.Exit(code=1)


def _print_project(project: ProjectDescriptor) -> None:
    lines = [
        f"[bold]ID:[/bold] {project.id}",
        f"[bold]Name:[/bold] {project.name}",
        f"[bold]Type:[/bold] {project.type.value}",
        f"[bold]Status:[/bold] {_status(project)}",
        f"[bold]Files:[/bold] {len(project.files)}",
    ]
    if project.architecture is not None:
        stack = ", ".join(project.architecture.tech_stack.frontend)
        lines.append(f"[bold]Stack:[/bold] {stack}")
    if project.requirements:
        lines.append(f"[bold]Features:[/bold] {', '.join(project.requirements)}")
    if project.build_output is not None:
        result = "[green]passed[/green]" if project.build_output.success else "[red]failed[/red]"
        lines.append(f"[bold]Build:[/bold] {result}")
        for error in project.build_output.errors[:5]:
            lines.append(f"  [red]{error}[/red]")
    if project.test_results is not None:
        tests = project.test_results
        lines.append(
            f"[bold]Tests:[/bold] {tests.passed_tests}/{tests.total_tests} passed"
        )
    if project.error:
        lines.append(f"[bold]Error:[/bold] [red]{project.error}[/red]")
    console.print(Panel("\n".join(lines), title=project.name, border_style="cyan"))


@app.command()
def new(
    name: Annotated[str, typer.Argument(help="Project name")],
    description: Annotated[str, typer.Argument(help="What to build")],
    answers: Annotated[
        Optional[list[str]],
        typer.Option("--answer", "-a", help="Reply to the assistant (repeatable)"),
    ] = None,
    build: Annotated[
        bool, typer.Option("--build", "-b", help="Build and test after generating")
    ] = False,
    export: Annotated[
        Optional[Path],
        typer.Option("--export", "-e", help="Write a zip archive of the project to this path"),
    ] = None,
) -> None:
    """Create a project and run the pipeline end to end."""
    replies = [description, *(answers or [DEFAULT_CONFIRMATION])]

    async def _pipeline(lifecycle: ProjectLifecycle) -> ProjectDescriptor:
        project, _ = await lifecycle.create_project(name, description)
        console.print(f"[green]Project created:[/green] {project.id}")

        for text in replies:
            console.print(f"[bold]You:[/bold] {text}")
            turn = await lifecycle.record_message(project.id, text)
            console.print(Panel(turn.message.content, title="Assistant", border_style="magenta"))

        with console.status("Generating files..."):
            await lifecycle.request_generation(project.id, confirmed=True)
            project = await lifecycle.wait_for_idle(project.id)

        if build and project.status == ProjectStatus.READY:
            with console.status("Building..."):
                await lifecycle.request_build(project.id)
                project = await lifecycle.wait_for_idle(project.id)

        if export is not None and project.files:
            archive = await lifecycle.export_archive(project.id, ArchiveFormat.ZIP)
            shutil.copyfile(archive, export)
            console.print(f"[green]Archive written:[/green] {export}")

        return project

    project = _run(_pipeline, "running pipeline")
    _print_project(project)
    if project.status == ProjectStatus.FAILED:
        raise typer.Exit(code=1)


@app.command("list")
def list_projects() -> None:
    """List all projects, newest first."""
    projects = _run(lambda lifecycle: lifecycle.list_projects(), "listing projects")

    if not projects:
        console.print("[yellow]No projects found[/yellow]")
        return

    table = Table(title="Projects")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="bold")
    table.add_column("Type")
    table.add_column("Status")
    table.add_column("Files", justify="right")
    table.add_column("Created", style="dim")

    for p in projects:
        table.add_row(
            p.id,
            p.name,
            p.type.value,
            _status(p),
            str(len(p.files)),
            p.created_at.strftime("%Y-%m-%d %H:%M"),
        )

    console.print(table)


@app.command()
def show(
    project_id: Annotated[str, typer.Argument(help="Project ID")],
) -> None:
    """Show a project's details."""
    project = _run(lambda lifecycle: lifecycle.get_project(project_id), "loading project")
    _print_project(project)


@app.command()
def export(
    project_id: Annotated[str, typer.Argument(help="Project ID")],
    path: Annotated[Path, typer.Argument(help="Destination file")],
    format: Annotated[
        ArchiveFormat, typer.Option("--format", "-f", help="Archive format")
    ] = ArchiveFormat.ZIP,
) -> None:
    """Write a project's archive to PATH."""
    archive = _run(lambda lifecycle: lifecycle.export_archive(project_id, format), "exporting")
    shutil.copyfile(archive, path)
    console.print(f"[green]Archive written:[/green] {path}")


@app.command()
def delete(
    project_id: Annotated[str, typer.Argument(help="Project ID")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
) -> None:
    """Delete a project, its files and archives."""
    if not yes:
        typer.confirm(f"Delete project {project_id}?", abort=True)
    _run(lambda lifecycle: lifecycle.delete_project(project_id), "deleting project")
    console.print(f"[green]Project deleted:[/green] {project_id}")
