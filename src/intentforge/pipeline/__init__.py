"""Filesystem and execution pipeline for generated projects.

- ProjectMaterializer: validated writes under the projects directory
- Executor implementations: host subprocess or throwaway Docker container
- BuildRunner: install/build/test with output parsing
- Archive builders: zip and tar.gz downloads
"""

from __future__ import annotations

from intentforge.pipeline.archive import ArchiveFormat, build_archive
from intentforge.pipeline.build_runner import BuildRunner
from intentforge.pipeline.executor import (
    CommandResult,
    DockerExecutor,
    Executor,
    LocalProcessExecutor,
    create_executor,
)
from intentforge.pipeline.materializer import ProjectMaterializer

__all__ = [
    "ArchiveFormat",
    "BuildRunner",
    "CommandResult",
    "DockerExecutor",
    "Executor",
    "LocalProcessExecutor",
    "ProjectMaterializer",
    "build_archive",
    "create_executor",
]
