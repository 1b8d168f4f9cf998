"""Architecture descriptor models.

These mirror the planning output handed from ArchitectureSynthesizer to
FileSynthesizer and persisted on the project document.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class ComponentKind(str, Enum):
    """Role of a component within the generated system."""

    FRONTEND = "frontend"
    BACKEND = "backend"
    DATABASE = "database"
    SERVICE = "service"
    UTILITY = "utility"


class FileNodeKind(str, Enum):
    FILE = "file"
    DIRECTORY = "directory"


class ComponentDefinition(BaseModel):
    """Definition of a generated system component.

    Attributes:
        name: Component name (e.g., "Frontend", "Backend")
        kind: Component role
        description: What this component does
        files: Relative paths of files owned by this component
        dependencies: Package names this component depends on
    """

    name: str = Field(..., description="Component name")
    kind: ComponentKind = Field(..., description="Component role")
    description: str = Field(..., description="Component description")
    files: list[str] = Field(default_factory=list, description="Owned file paths")
    dependencies: list[str] = Field(default_factory=list, description="Package dependencies")


class FileNode(BaseModel):
    """Node of the project file tree.

    Attributes:
        name: Base name of the file or directory
        kind: File or directory
        path: Path from the project root, starting with "/"
        children: Ordered child nodes (directories only)
    """

    name: str
    kind: FileNodeKind
    path: str
    children: list[FileNode] = Field(default_factory=list)


class TechStack(BaseModel):
    """Technology stack summary, one tag list per layer."""

    frontend: list[str] = Field(default_factory=list)
    backend: list[str] = Field(default_factory=list)
    database: list[str] = Field(default_factory=list)
    testing: list[str] = Field(default_factory=list)
    deployment: list[str] = Field(default_factory=list)


class ArchitectureDescriptor(BaseModel):
    """Complete architecture plan for a generated project.

    Attributes:
        overview: High-level description of the system
        components: Ordered list of system components
        dependencies: Runtime dependency manifest (package -> version range)
        file_structure: Root node of the file tree
        tech_stack: Technology stack summary
    """

    overview: str = Field(..., description="System overview")
    components: list[ComponentDefinition] = Field(default_factory=list)
    dependencies: dict[str, str] = Field(default_factory=dict)
    file_structure: FileNode = Field(..., description="Project file tree")
    tech_stack: TechStack = Field(default_factory=TechStack)

    def component(self, kind: ComponentKind) -> ComponentDefinition | None:
        """Return the first component of the given kind, if any."""
        for component in self.components:
            if component.kind == kind:
                return component
        return None


FileNode.model_rebuild()
