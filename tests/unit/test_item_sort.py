"""Unit tests for the generated item-list ordering."""

from __future__ import annotations

import pytest

from intentforge.architecture.architect import ArchitectureSynthesizer
from intentforge.architecture.requirements import extract_requirements
from intentforge.architecture.scaffolder import FileSynthesizer
from intentforge.architecture.templates import PRIORITY_ORDER, STATUS_ORDER
from intentforge.architecture.templates.components import ITEM_LIST
from intentforge.models.project import ProjectDescriptor


def _rank(item: dict[str, str]) -> tuple[int, int]:
    """The comparator ItemList applies, over the rendered rank tables."""
    return STATUS_ORDER.index(item["status"]), PRIORITY_ORDER.index(item["priority"])


def _item(name: str, status: str, priority: str) -> dict[str, str]:
    return {"title": name, "status": status, "priority": priority}


class TestItemOrder:
    def test_orders(self) -> None:
        assert STATUS_ORDER == ("in-progress", "todo", "done")
        assert PRIORITY_ORDER == ("high", "medium", "low")

    def test_status_then_priority(self) -> None:
        items = [
            _item("a", "done", "high"),
            _item("b", "todo", "low"),
            _item("c", "in-progress", "low"),
            _item("d", "todo", "high"),
            _item("e", "in-progress", "high"),
        ]
        assert [i["title"] for i in sorted(items, key=_rank)] == ["e", "c", "d", "b", "a"]

    def test_unknown_status_has_no_rank(self) -> None:
        with pytest.raises(ValueError):
            _rank(_item("x", "archived", "high"))

    def test_rank_tables_rendered_into_types(self) -> None:
        project = ProjectDescriptor(name="Tracker", description="A todo tracker")
        reqs = extract_requirements(project.description)
        architecture = ArchitectureSynthesizer().synthesize(project, reqs)
        files = FileSynthesizer().generate(project, architecture, reqs)
        types = next(f.content for f in files if f.path == "src/types/index.ts")
        assert "{ 'in-progress': 0, 'todo': 1, 'done': 2 }" in types
        assert "{ 'high': 0, 'medium': 1, 'low': 2 }" in types
        assert "export type ItemStatus = 'in-progress' | 'todo' | 'done'" in types

    def test_generated_list_uses_rank_tables(self) -> None:
        assert "import { PRIORITY_ORDER, STATUS_ORDER } from '../types'" in ITEM_LIST
        assert "STATUS_ORDER[a.status] - STATUS_ORDER[b.status] ||" in ITEM_LIST
        assert "PRIORITY_ORDER[a.priority] - PRIORITY_ORDER[b.priority]" in ITEM_LIST
