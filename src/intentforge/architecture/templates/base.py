"""Template primitives shared by the file templates.

Templates are plain strings with ``{{VARIABLE}}`` placeholders; there is no
expression language. Every project-supplied value is offered in one escaped
variant per output context (JSON/JS literal, HTML text, JSX text) and each
template picks the variant matching where the placeholder sits.
"""

from __future__ import annotations

import html
import json
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from functools import cached_property

from intentforge.models.architecture import ArchitectureDescriptor
from intentforge.models.project import ProjectDescriptor
from intentforge.models.requirements import FeatureTag, RequirementsSet

_PLACEHOLDER = re.compile(r"\{\{([A-Z_]+)\}\}")


def slugify(name: str) -> str:
    """Package-manifest-safe slug of a project name."""
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return slug or "generated-app"


def js_literal(value: str) -> str:
    """Quoted JS/JSON string literal, safe inside inline scripts."""
    return json.dumps(value).replace("</", "<\\/")


def html_text(value: str) -> str:
    return html.escape(value, quote=True)


def jsx_text(value: str) -> str:
    """Escape text placed between JSX tags."""
    return html.escape(value, quote=False).replace("{", "&#123;").replace("}", "&#125;")


def single_line(value: str) -> str:
    return " ".join(value.split())


@dataclass(frozen=True)
class TemplateContext:
    """Inputs every file template renders from."""

    project: ProjectDescriptor
    architecture: ArchitectureDescriptor
    requirements: RequirementsSet

    @property
    def has_items(self) -> bool:
        """Whether the item-management components are generated."""
        return self.requirements.has(FeatureTag.CRUD, FeatureTag.DATA_DISPLAY)

    @property
    def has_search(self) -> bool:
        return self.has_items and self.requirements.has(FeatureTag.SEARCH_FILTER)

    @property
    def has_notifications(self) -> bool:
        return self.has_items and "react-hot-toast" in self.architecture.dependencies

    @property
    def has_backend(self) -> bool:
        return self.requirements.has(FeatureTag.API_BACKEND)

    @property
    def slug(self) -> str:
        return slugify(self.project.name)

    @cached_property
    def variables(self) -> dict[str, str]:
        name = single_line(self.project.name)
        description = single_line(self.project.description)
        return {
            "PROJECT_NAME": name,
            "PROJECT_NAME_JS": js_literal(name),
            "PROJECT_NAME_HTML": html_text(name),
            "PROJECT_NAME_JSX": jsx_text(name),
            "PROJECT_DESCRIPTION": self.project.description.strip(),
            "PROJECT_DESCRIPTION_JS": js_literal(description),
            "PROJECT_DESCRIPTION_HTML": html_text(description),
            "PROJECT_DESCRIPTION_JSX": jsx_text(description),
            "PROJECT_SLUG": self.slug,
            "STORAGE_PREFIX": self.slug,
        }


def substitute(template: str, ctx: TemplateContext, **extra: str) -> str:
    """Replace ``{{VARIABLE}}`` placeholders with context values.

    Args:
        template: Template text
        ctx: Render context supplying the project variables
        **extra: Additional, already escaped, template-specific values

    Raises:
        KeyError: If the template references an unknown variable
    """
    variables = {**ctx.variables, **extra}
    return _PLACEHOLDER.sub(lambda m: variables[m.group(1)], template)


def always(ctx: TemplateContext) -> bool:
    return True


def with_items(ctx: TemplateContext) -> bool:
    return ctx.has_items


def with_backend(ctx: TemplateContext) -> bool:
    return ctx.has_backend


@dataclass(frozen=True)
class FileTemplate:
    """One generated file: where it goes and how to render it.

    Attributes:
        path: Relative POSIX path in the generated project
        language: Language tag of the output
        purpose: Human-readable purpose string
        render: Produces the file content from the context
        condition: Whether the file is emitted for the context
    """

    path: str
    language: str
    purpose: str
    render: Callable[[TemplateContext], str]
    condition: Callable[[TemplateContext], bool] = field(default=always)


def static(template: str) -> Callable[[TemplateContext], str]:
    """Render callable for a placeholder-only template string."""

    def _render(ctx: TemplateContext) -> str:
        return substitute(template, ctx)

    return _render
