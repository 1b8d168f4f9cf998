"""Main CLI entry point for Intentforge.

This module provides the main Typer application: the ``serve`` command for
the HTTP API and the ``project`` sub-commands that drive the pipeline
in-process.

Usage:
    intentforge serve --port 8000
    intentforge project new "Todo" "A todo app with priorities" --answer "React" --build
    intentforge project list
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Annotated, Optional, TypeVar

import typer
from rich.console import Console

from intentforge.cli import project as project_cli
from intentforge.config import IntentForgeConfig, load_config
from intentforge.database.store import SqlRecordStore
from intentforge.logging import setup_logging
from intentforge.orchestrator.lifecycle import ProjectLifecycle, create_lifecycle

T = TypeVar("T")

app = typer.Typer(
    name="intentforge",
    help="Intentforge: conversational web application generator",
    no_args_is_help=True,
)

app.add_typer(project_cli.app, name="project", help="Create and manage projects")

console = Console()


class AppContext:
    """Application context shared across CLI commands.

    Attributes:
        config: Loaded Intentforge configuration
    """

    def __init__(self, config: IntentForgeConfig):
        self.config = config

    async def run(self, operation: Callable[[ProjectLifecycle], Awaitable[T]]) -> T:
        """Run ``operation`` against a lifecycle, then drain jobs and close the store.

        Commands run in separate processes, so the CLI always persists
        through the SQL store regardless of ``database.backend``.
        """
        store = SqlRecordStore.from_config(self.config.database)
        lifecycle = create_lifecycle(self.config, store=store)
        await store.initialize()
        try:
            return await operation(lifecycle)
        finally:
            await lifecycle.shutdown()
            await store.close()


# Global context holder
_app_context: AppContext | None = None


def get_app_context() -> AppContext:
    """Get the shared application context.

    Raises:
        RuntimeError: If context has not been initialized
    """
    if _app_context is None:
        raise RuntimeError("Application context not initialized. Call initialize_context first.")
    return _app_context


def initialize_context(config: IntentForgeConfig) -> AppContext:
    global _app_context
    _app_context = AppContext(config)
    return _app_context


@app.command()
def serve(
    host: Annotated[
        Optional[str],
        typer.Option("--host", "-h", help="Host to bind to (default from config)"),
    ] = None,
    port: Annotated[
        Optional[int],
        typer.Option("--port", "-p", help="Port to bind to (default from config)"),
    ] = None,
) -> None:
    """Start the Intentforge web server."""
    import uvicorn

    from intentforge.web.app import create_app

    config = get_app_context().config
    setup_logging(config.logging)

    bind_host = host or config.web.host
    bind_port = port or config.web.port

    console.print("[bold cyan]Starting Intentforge Web Server[/bold cyan]")
    console.print(f"[dim]Host:[/dim] {bind_host}")
    console.print(f"[dim]Port:[/dim] {bind_port}")
    console.print(f"[dim]AI provider:[/dim] {config.ai.provider}")
    console.print()

    uvicorn.run(
        create_app(config),
        host=bind_host,
        port=bind_port,
        log_level=config.logging.level.lower(),
    )


@app.callback()
def main_callback(
    config_path: Annotated[
        Optional[Path],
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file (TOML format)",
            exists=True,
            dir_okay=False,
            readable=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Configure global options and initialize application context."""
    try:
        config = load_config(config_path)
    except Exception as e:
        console.print(f"[red]Error loading configuration:[/red] {e}")
        raise typer.Exit(code=1)

    # Keep command output readable: console logs, warnings only unless verbose
    setup_logging(
        config.logging.model_copy(
            update={"format": "console", "level": "DEBUG" if verbose else "WARNING"}
        )
    )
    initialize_context(config)

    if verbose:
        console.print("[dim]Debug logging enabled[/dim]")


if __name__ == "__main__":
    app()
