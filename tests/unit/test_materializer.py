"""Unit tests for ProjectMaterializer path safety."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from intentforge.errors import ErrorCode, PathSafetyError
from intentforge.models.project import GeneratedFile
from intentforge.pipeline.materializer import ProjectMaterializer


def _file(path: str, content: str = "x") -> GeneratedFile:
    return GeneratedFile(path=path, content=content, language="text", purpose="test")


@pytest.fixture
def materializer(tmp_path: Path) -> ProjectMaterializer:
    return ProjectMaterializer(tmp_path / "projects")


class TestWrite:
    def test_writes_nested_files(self, materializer: ProjectMaterializer) -> None:
        root = materializer.write("p1", [_file("package.json", "{}"), _file("src/a/b.ts", "b")])

        assert root == materializer.projects_dir / "p1"
        assert (root / "package.json").read_text() == "{}"
        assert (root / "src" / "a" / "b.ts").read_text() == "b"

    def test_overwrites_existing(self, materializer: ProjectMaterializer) -> None:
        materializer.write("p1", [_file("a.txt", "old")])
        root = materializer.write("p1", [_file("a.txt", "new")])
        assert (root / "a.txt").read_text() == "new"

    def test_utf8_content(self, materializer: ProjectMaterializer) -> None:
        root = materializer.write("p1", [_file("ü.md", "héllo ✓")])
        assert (root / "ü.md").read_text(encoding="utf-8") == "héllo ✓"


class TestPathSafety:
    @pytest.mark.parametrize(
        "path,reason",
        [
            ("../../etc/passwd", "parent directory reference"),
            ("src/../../escape.txt", "parent directory reference"),
            ("/etc/passwd", "absolute path"),
            ("src\\evil.ts", "illegal character"),
            ("bad\x00name", "illegal character"),
            (".", "empty path"),
        ],
    )
    def test_rejects_unsafe_paths(
        self, materializer: ProjectMaterializer, path: str, reason: str
    ) -> None:
        with pytest.raises(PathSafetyError) as exc_info:
            materializer.write("p1", [_file(path)])

        assert exc_info.value.reason == reason
        assert exc_info.value.code == ErrorCode.PATH_TRAVERSAL
        assert exc_info.value.status_code == 400

    def test_rejected_batch_writes_nothing(
        self, materializer: ProjectMaterializer, tmp_path: Path
    ) -> None:
        files = [_file("good.txt"), _file("src/ok.ts"), _file("../../etc/passwd")]

        with pytest.raises(PathSafetyError):
            materializer.write("p1", files)

        root = materializer.projects_dir / "p1"
        assert not (root / "good.txt").exists()
        assert not (root / "src").exists()
        assert not (tmp_path / "etc").exists()

    def test_duplicate_paths_rejected(self, materializer: ProjectMaterializer) -> None:
        with pytest.raises(PathSafetyError) as exc_info:
            materializer.write("p1", [_file("a.txt"), _file("./a.txt")])
        assert exc_info.value.reason == "duplicate path"

    def test_symlink_escape_rejected(
        self, materializer: ProjectMaterializer, tmp_path: Path
    ) -> None:
        outside = tmp_path / "outside"
        outside.mkdir()
        root = materializer.project_dir("p1")
        root.mkdir(parents=True)
        os.symlink(outside, root / "link")

        with pytest.raises(PathSafetyError) as exc_info:
            materializer.write("p1", [_file("link/payload.txt")])

        assert exc_info.value.reason == "escapes project directory"
        assert list(outside.iterdir()) == []

    @pytest.mark.parametrize("project_id", ["../x", "a/b", "", ".hidden", "a b"])
    def test_invalid_project_ids(self, materializer: ProjectMaterializer, project_id: str) -> None:
        with pytest.raises(PathSafetyError):
            materializer.project_dir(project_id)

    def test_uuid_project_id_accepted(self, materializer: ProjectMaterializer) -> None:
        project_id = "3f0c8f1e-7a4b-4c1d-9e2f-0123456789ab"
        assert materializer.project_dir(project_id).name == project_id


class TestRemove:
    def test_remove_existing(self, materializer: ProjectMaterializer) -> None:
        root = materializer.write("p1", [_file("a.txt")])
        assert materializer.remove("p1") is True
        assert not root.exists()

    def test_remove_missing(self, materializer: ProjectMaterializer) -> None:
        assert materializer.remove("nothing") is False
