"""File synthesis for generated projects.

FileSynthesizer renders the React template set against a project, its
architecture and its requirements and returns the generated file list. It
does not touch the disk; ProjectMaterializer does that.
"""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from intentforge.architecture.templates import (
    FileTemplate,
    TemplateContext,
    get_react_template,
)
from intentforge.models.architecture import ArchitectureDescriptor
from intentforge.models.project import GeneratedFile, ProjectDescriptor
from intentforge.models.requirements import RequirementsSet

logger = structlog.get_logger(__name__)


class FileSynthesizer:
    """Renders the generated project's files.

    Output is deterministic: identical inputs produce byte-identical files
    in the same order.

    Example:
        >>> synthesizer = FileSynthesizer()
        >>> files = synthesizer.generate(project, architecture, requirements)
        >>> files[0].path
        'package.json'
    """

    def __init__(self, templates: Sequence[FileTemplate] | None = None) -> None:
        self.templates = tuple(templates) if templates is not None else tuple(get_react_template())
        self.logger = logger.bind(component="FileSynthesizer")

        paths = [t.path for t in self.templates]
        if len(paths) != len(set(paths)):
            raise ValueError("Template paths must be unique")

    def generate(
        self,
        project: ProjectDescriptor,
        architecture: ArchitectureDescriptor,
        requirements: RequirementsSet,
    ) -> list[GeneratedFile]:
        """Generate the project's files.

        Args:
            project: Project descriptor supplying name and description
            architecture: Synthesized architecture (dependency manifest)
            requirements: Extracted requirements selecting optional files

        Returns:
            Generated files in emission order
        """
        ctx = TemplateContext(project=project, architecture=architecture, requirements=requirements)

        files = [
            GeneratedFile(
                path=template.path,
                content=template.render(ctx),
                language=template.language,
                purpose=template.purpose,
            )
            for template in self.templates
            if template.condition(ctx)
        ]

        self.logger.info(
            "files_synthesized",
            project_id=project.id,
            file_count=len(files),
            total_bytes=sum(len(f.content.encode("utf-8")) for f in files),
        )

        return files
