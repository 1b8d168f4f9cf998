"""Architecture pipeline for intentforge.

Turns conversation text into a generated project in three pure steps:

1. Requirement extraction (RequirementExtractor)
2. Architecture synthesis (ArchitectureSynthesizer, build_file_tree)
3. File synthesis (FileSynthesizer)

Example:
    ```python
    from intentforge.architecture import (
        ArchitectureSynthesizer,
        FileSynthesizer,
        RequirementExtractor,
    )

    requirements = RequirementExtractor().extract(project.description, messages)
    architecture = ArchitectureSynthesizer().synthesize(project, requirements)
    files = FileSynthesizer().generate(project, architecture, requirements)
    ```
"""

from __future__ import annotations

from intentforge.architecture.architect import ArchitectureSynthesizer, build_file_tree
from intentforge.architecture.requirements import (
    RequirementExtractor,
    extract_keywords,
    extract_requirements,
    infer_project_type,
)
from intentforge.architecture.scaffolder import FileSynthesizer

__all__ = [
    "ArchitectureSynthesizer",
    "FileSynthesizer",
    "RequirementExtractor",
    "build_file_tree",
    "extract_keywords",
    "extract_requirements",
    "infer_project_type",
]
