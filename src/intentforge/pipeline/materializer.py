"""Writes generated files to the project directory.

Every project gets ``<projects_dir>/<project_id>``. A batch of files is fully
validated before the first byte is written, so a rejected batch leaves the
filesystem untouched.

Example usage:
    >>> materializer = ProjectMaterializer(Path("./storage/projects"))
    >>> root = materializer.write(project.id, project.files)
    >>> (root / "package.json").exists()
    True
"""

from __future__ import annotations

import re
import shutil
from collections.abc import Sequence
from pathlib import Path, PurePosixPath

from intentforge.errors import PathSafetyError
from intentforge.logging import get_logger
from intentforge.models.project import GeneratedFile

_SAFE_SEGMENT = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]*$")


class ProjectMaterializer:
    """Materializes generated files under a storage root.

    Attributes:
        projects_dir: Directory holding one subdirectory per project
    """

    def __init__(self, projects_dir: Path) -> None:
        self.projects_dir = Path(projects_dir)
        self.logger = get_logger(__name__)

    def project_dir(self, project_id: str) -> Path:
        """Directory for a project (not created).

        Raises:
            PathSafetyError: If the project id is not a single safe segment
        """
        if not _SAFE_SEGMENT.match(project_id):
            raise PathSafetyError(project_id, "invalid project id")
        return self.projects_dir / project_id

    def write(self, project_id: str, files: Sequence[GeneratedFile]) -> Path:
        """Validate and write a batch of files.

        Args:
            project_id: Project identifier
            files: Files with relative POSIX paths

        Returns:
            The project directory

        Raises:
            PathSafetyError: If any path is unsafe; nothing is written
        """
        root = self.project_dir(project_id)
        root.mkdir(parents=True, exist_ok=True)
        resolved_root = root.resolve()

        targets = self._validate(resolved_root, files)

        for target, file in zip(targets, files):
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(file.content, encoding="utf-8")

        self.logger.info(
            "files_materialized",
            project_id=project_id,
            root=str(resolved_root),
            file_count=len(files),
        )
        return root

    def _validate(self, resolved_root: Path, files: Sequence[GeneratedFile]) -> list[Path]:
        """Resolve every file path, rejecting the batch on the first unsafe one."""
        targets: list[Path] = []
        seen: set[str] = set()

        for file in files:
            raw = file.path
            if "\\" in raw or "\x00" in raw:
                self._reject(raw, "illegal character")
            relative = PurePosixPath(raw)
            if relative.is_absolute():
                self._reject(raw, "absolute path")
            if ".." in relative.parts:
                self._reject(raw, "parent directory reference")
            if not relative.parts or relative == PurePosixPath("."):
                self._reject(raw, "empty path")

            key = relative.as_posix()
            if key in seen:
                self._reject(raw, "duplicate path")
            seen.add(key)

            # resolve() follows symlinks already present under the root
            target = (resolved_root / relative).resolve()
            if target == resolved_root or not target.is_relative_to(resolved_root):
                self._reject(raw, "escapes project directory")
            targets.append(target)

        return targets

    def _reject(self, path: str, reason: str) -> None:
        self.logger.warning("unsafe_file_path_rejected", path=path, reason=reason)
        raise PathSafetyError(path, reason)

    def remove(self, project_id: str) -> bool:
        """Delete a project's directory tree.

        Returns:
            True if a directory was removed
        """
        root = self.project_dir(project_id)
        if not root.exists():
            return False
        shutil.rmtree(root)
        self.logger.info("project_directory_removed", project_id=project_id)
        return True
