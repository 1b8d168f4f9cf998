"""File templates for generated React applications.

Each module contributes FileTemplate entries; ``get_react_template`` returns
them in emission order, which is also the order of the generated file list.
"""

from __future__ import annotations

from intentforge.architecture.templates.app import get_app_templates, get_hook_templates
from intentforge.architecture.templates.base import FileTemplate, TemplateContext
from intentforge.architecture.templates.components import (
    PRIORITY_ORDER,
    STATUS_ORDER,
    get_component_templates,
    get_types_template,
)
from intentforge.architecture.templates.server import get_server_templates
from intentforge.architecture.templates.tooling import (
    get_metadata_templates,
    get_tooling_templates,
)


def get_react_template() -> list[FileTemplate]:
    """Every React app template, always-emitted files first."""
    return [
        *get_tooling_templates(),
        *get_app_templates(),
        get_types_template(),
        *get_hook_templates(),
        *get_metadata_templates(),
        *get_component_templates(),
        *get_server_templates(),
    ]


__all__ = [
    "FileTemplate",
    "PRIORITY_ORDER",
    "STATUS_ORDER",
    "TemplateContext",
    "get_react_template",
]
