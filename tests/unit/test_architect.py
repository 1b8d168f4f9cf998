"""Unit tests for architecture synthesis and file tree derivation."""

from __future__ import annotations

from intentforge.architecture.architect import ArchitectureSynthesizer, build_file_tree
from intentforge.architecture.requirements import extract_requirements
from intentforge.models.architecture import ComponentKind, FileNodeKind
from intentforge.models.project import GeneratedFile, ProjectDescriptor
from intentforge.models.requirements import FeatureTag, RequirementsSet


def _project(description: str) -> ProjectDescriptor:
    return ProjectDescriptor(name="Tracker", description=description)


class TestArchitectureSynthesizer:
    """Test component, dependency and stack planning."""

    def test_frontend_only_without_api_backend(self) -> None:
        description = "A todo app with authentication and dark mode"
        arch = ArchitectureSynthesizer().synthesize(
            _project(description), extract_requirements(description)
        )

        assert [c.kind for c in arch.components] == [ComponentKind.FRONTEND]
        assert "express" not in arch.dependencies
        assert arch.tech_stack.backend == []

    def test_backend_component_with_api_backend(self) -> None:
        description = "A bookmark manager with a REST API backend"
        arch = ArchitectureSynthesizer().synthesize(
            _project(description), extract_requirements(description)
        )

        kinds = [c.kind for c in arch.components]
        assert kinds == [ComponentKind.FRONTEND, ComponentKind.BACKEND]
        backend = arch.components[1]
        assert backend.files == ["server/index.ts"]
        assert arch.dependencies["express"].startswith("^")
        assert "cors" in arch.dependencies
        assert arch.tech_stack.backend == ["node", "express"]
        assert "express" not in arch.components[0].dependencies

    def test_feature_packages(self) -> None:
        reqs = RequirementsSet(
            features=frozenset(
                {FeatureTag.CHARTS, FeatureTag.NOTIFICATIONS, FeatureTag.DRAG_AND_DROP}
            )
        )
        arch = ArchitectureSynthesizer().synthesize(_project("charts"), reqs)

        assert set(arch.dependencies) == {
            "react",
            "react-dom",
            "recharts",
            "react-hot-toast",
            "@dnd-kit/core",
            "@dnd-kit/sortable",
        }
        assert list(arch.dependencies) == sorted(arch.dependencies)
        assert arch.components[0].dependencies == ["react", "react-dom"]

    def test_deterministic(self) -> None:
        description = "Dashboard with charts, search and notifications"
        project = _project(description)
        reqs = extract_requirements(description)
        synthesizer = ArchitectureSynthesizer()

        assert synthesizer.synthesize(project, reqs) == synthesizer.synthesize(project, reqs)

    def test_overview_lists_features(self) -> None:
        reqs = RequirementsSet(features=frozenset({FeatureTag.DARK_MODE}))
        arch = ArchitectureSynthesizer().synthesize(_project("dark"), reqs)
        assert "dark-mode" in arch.overview
        assert "single-page" in arch.overview


class TestBuildFileTree:
    def _file(self, path: str) -> GeneratedFile:
        return GeneratedFile(path=path, content="", language="text", purpose="test")

    def test_tree_mirrors_files(self) -> None:
        files = [
            self._file("package.json"),
            self._file("src/App.tsx"),
            self._file("src/components/Header.tsx"),
            self._file(".gitignore"),
        ]
        root = build_file_tree("Tracker", files)

        assert root.name == "Tracker"
        assert root.path == "/"
        assert [c.name for c in root.children] == ["src", ".gitignore", "package.json"]

        src = root.children[0]
        assert src.kind == FileNodeKind.DIRECTORY
        assert src.path == "/src"
        assert [c.name for c in src.children] == ["components", "App.tsx"]
        header = src.children[0].children[0]
        assert header.path == "/src/components/Header.tsx"
        assert header.kind == FileNodeKind.FILE

    def test_every_file_appears_once(self) -> None:
        paths = ["a/b/c.ts", "a/b/d.ts", "a/e.ts", "f.ts"]
        root = build_file_tree("x", [self._file(p) for p in paths])

        found: list[str] = []

        def walk(node) -> None:  # type: ignore[no-untyped-def]
            for child in node.children:
                if child.kind == FileNodeKind.FILE:
                    found.append(child.path.lstrip("/"))
                else:
                    walk(child)

        walk(root)
        assert sorted(found) == sorted(paths)
