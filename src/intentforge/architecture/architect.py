"""Architecture synthesis for generated projects.

ArchitectureSynthesizer turns a project descriptor and its RequirementsSet
into an ArchitectureDescriptor: components, a runtime dependency manifest,
a file tree and a technology stack summary. The mapping is table driven and
deterministic so that regeneration reproduces the same plan.

The file tree produced here is provisional (src/, public/, package.json).
Once files exist, ``build_file_tree`` derives the real tree from them and
the lifecycle stores that instead.
"""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from intentforge.models.architecture import (
    ArchitectureDescriptor,
    ComponentDefinition,
    ComponentKind,
    FileNode,
    FileNodeKind,
    TechStack,
)
from intentforge.models.project import GeneratedFile, ProjectDescriptor
from intentforge.models.requirements import FeatureTag, RequirementsSet

logger = structlog.get_logger(__name__)


# UI framework + DOM binding baseline every generated app starts from
FRONTEND_BASELINE: dict[str, str] = {
    "react": "^18.2.0",
    "react-dom": "^18.2.0",
}

BACKEND_DEPENDENCIES: dict[str, str] = {
    "cors": "^2.8.5",
    "express": "^4.18.2",
}

# Requirement -> packages added to the runtime manifest
FEATURE_PACKAGES: dict[FeatureTag, dict[str, str]] = {
    FeatureTag.DRAG_AND_DROP: {
        "@dnd-kit/core": "^6.1.0",
        "@dnd-kit/sortable": "^8.0.0",
    },
    FeatureTag.CHARTS: {"recharts": "^2.10.0"},
    FeatureTag.NOTIFICATIONS: {"react-hot-toast": "^2.4.1"},
}

FRONTEND_STACK: list[str] = ["react", "typescript", "vite", "tailwindcss"]
BACKEND_STACK: list[str] = ["node", "express"]
TESTING_STACK: list[str] = ["vitest"]
DEPLOYMENT_STACK: list[str] = ["docker"]

FRONTEND_FILES: list[str] = ["src/main.tsx", "src/App.tsx"]
BACKEND_FILES: list[str] = ["server/index.ts"]


class ArchitectureSynthesizer:
    """Derives an architecture plan from requirements.

    Example:
        >>> synthesizer = ArchitectureSynthesizer()
        >>> arch = synthesizer.synthesize(project, requirements)
        >>> [c.name for c in arch.components]
        ['Frontend']
    """

    def __init__(self) -> None:
        self.logger = logger.bind(component="ArchitectureSynthesizer")

    def synthesize(
        self, project: ProjectDescriptor, requirements: RequirementsSet
    ) -> ArchitectureDescriptor:
        """Synthesize the architecture for a project.

        Args:
            project: Project descriptor (name, description, type)
            requirements: Extracted requirements

        Returns:
            ArchitectureDescriptor with components, manifest, tree and stack
        """
        has_backend = requirements.has(FeatureTag.API_BACKEND)

        dependencies = self._build_dependencies(requirements)
        components = self._build_components(requirements)
        tech_stack = self._build_tech_stack(has_backend)

        architecture = ArchitectureDescriptor(
            overview=self._build_overview(project, requirements, has_backend),
            components=components,
            dependencies=dependencies,
            file_structure=self._skeleton_tree(project.name),
            tech_stack=tech_stack,
        )

        self.logger.info(
            "architecture_synthesized",
            project_id=project.id,
            components=[c.name for c in components],
            dependency_count=len(dependencies),
            backend=has_backend,
        )

        return architecture

    def _build_overview(
        self, project: ProjectDescriptor, requirements: RequirementsSet, has_backend: bool
    ) -> str:
        features = ", ".join(requirements.feature_values())
        layers = "React frontend with an Express API" if has_backend else "React single-page app"
        return (
            f"A {project.type.value} application ({layers}) built with modern best "
            f"practices. Features: {features}."
        )

    def _build_dependencies(self, requirements: RequirementsSet) -> dict[str, str]:
        """Build the runtime dependency manifest.

        Starts from the frontend baseline and merges the packages of every
        present feature in vocabulary order. Keys are unique by construction.
        """
        dependencies = dict(FRONTEND_BASELINE)
        for tag in requirements.sorted_features():
            dependencies.update(FEATURE_PACKAGES.get(tag, {}))
        if requirements.has(FeatureTag.API_BACKEND):
            dependencies.update(BACKEND_DEPENDENCIES)
        return dict(sorted(dependencies.items()))

    def _build_components(self, requirements: RequirementsSet) -> list[ComponentDefinition]:
        # Feature packages go to the manifest only
        components = [
            ComponentDefinition(
                name="Frontend",
                kind=ComponentKind.FRONTEND,
                description="User interface built with React",
                files=list(FRONTEND_FILES),
                dependencies=list(FRONTEND_BASELINE),
            )
        ]

        if requirements.has(FeatureTag.API_BACKEND):
            components.append(
                ComponentDefinition(
                    name="Backend",
                    kind=ComponentKind.BACKEND,
                    description="API server built with Express",
                    files=list(BACKEND_FILES),
                    dependencies=sorted(BACKEND_DEPENDENCIES),
                )
            )

        return components

    def _build_tech_stack(self, has_backend: bool) -> TechStack:
        return TechStack(
            frontend=list(FRONTEND_STACK),
            backend=list(BACKEND_STACK) if has_backend else [],
            database=[],
            testing=list(TESTING_STACK),
            deployment=list(DEPLOYMENT_STACK),
        )

    def _skeleton_tree(self, project_name: str) -> FileNode:
        return FileNode(
            name=project_name,
            kind=FileNodeKind.DIRECTORY,
            path="/",
            children=[
                FileNode(name="src", kind=FileNodeKind.DIRECTORY, path="/src"),
                FileNode(name="public", kind=FileNodeKind.DIRECTORY, path="/public"),
                FileNode(name="package.json", kind=FileNodeKind.FILE, path="/package.json"),
            ],
        )


def build_file_tree(root_name: str, files: Sequence[GeneratedFile]) -> FileNode:
    """Derive the file tree from the generated file list.

    Directories come before files at every level; both sorted by name.

    Args:
        root_name: Name of the root node (the project name)
        files: Generated files with relative POSIX paths

    Returns:
        Root FileNode with path "/"
    """
    root = FileNode(name=root_name, kind=FileNodeKind.DIRECTORY, path="/")
    directories: dict[str, FileNode] = {"": root}

    for file in files:
        parts = [p for p in file.path.split("/") if p]
        parent_key = ""
        for part in parts[:-1]:
            key = f"{parent_key}/{part}"
            if key not in directories:
                node = FileNode(name=part, kind=FileNodeKind.DIRECTORY, path=key)
                directories[parent_key].children.append(node)
                directories[key] = node
            parent_key = key
        directories[parent_key].children.append(
            FileNode(name=parts[-1], kind=FileNodeKind.FILE, path=f"{parent_key}/{parts[-1]}")
        )

    _sort_tree(root)
    return root


def _sort_tree(node: FileNode) -> None:
    node.children.sort(key=lambda n: (n.kind != FileNodeKind.DIRECTORY, n.name))
    for child in node.children:
        if child.kind == FileNodeKind.DIRECTORY:
            _sort_tree(child)
