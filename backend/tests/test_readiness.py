"""
Tests for readiness and blocking analysis.
"""

import uuid

import pytest

from app.models import Dependency, DependencyType, Task
from app.services.graph import DependencyGraph
from app.services.readiness import (
    blocked_tasks,
    blocking_dependencies,
    can_task_start,
    is_satisfied,
    tasks_ready_to_start,
)

PROJECT = uuid.UUID(int=1000)


def tid(name: str) -> uuid.UUID:
    return uuid.UUID(int=ord(name))


def task(name: str, progress: int = 0, completed: bool = False) -> Task:
    return Task(id=tid(name), title=name, project_id=PROJECT, progress=progress, completed=completed)


def edge(pred: str, succ: str, kind=DependencyType.FINISH_TO_START, **fields) -> Dependency:
    return Dependency(
        project_id=PROJECT,
        predecessor_id=tid(pred),
        successor_id=tid(succ),
        dependency_type=kind,
        **fields,
    )


def build(tasks: list[Task], *edges: Dependency) -> DependencyGraph:
    return DependencyGraph.from_records(PROJECT, [t.id for t in tasks], edges)


class TestIsSatisfied:

    @pytest.mark.parametrize("kind", [DependencyType.FINISH_TO_START, DependencyType.FINISH_TO_FINISH])
    def test_finish_kinds_need_completion(self, kind):
        e = edge("A", "B", kind)
        assert not is_satisfied(e, task("A"))
        assert not is_satisfied(e, task("A", progress=90))
        assert is_satisfied(e, task("A", progress=100, completed=True))

    @pytest.mark.parametrize("kind", [DependencyType.START_TO_START, DependencyType.START_TO_FINISH])
    def test_start_kinds_need_a_start(self, kind):
        e = edge("A", "B", kind)
        assert not is_satisfied(e, task("A"))
        assert is_satisfied(e, task("A", progress=10))
        assert is_satisfied(e, task("A", completed=True))

    def test_inactive_edge_is_always_satisfied(self):
        assert is_satisfied(edge("A", "B", active=False), task("A"))


class TestBlocking:

    def test_incomplete_predecessor_blocks(self):
        a, b = task("A"), task("B")
        ab = edge("A", "B")
        graph = build([a, b], ab)
        by_id = {a.id: a, b.id: b}

        assert blocking_dependencies(b, graph, by_id) == [ab]
        assert not can_task_start(b, graph, by_id)
        assert can_task_start(a, graph, by_id)

    def test_completed_task_cannot_start(self):
        a = task("A", progress=100, completed=True)
        graph = build([a])
        assert not can_task_start(a, graph, {a.id: a})

    def test_blocked_tasks_excludes_completed_tasks(self):
        a, b, c = task("A"), task("B"), task("C", completed=True)
        ab, ac = edge("A", "B"), edge("A", "C")
        graph = build([a, b, c], ab, ac)

        assert blocked_tasks([a, b, c], graph) == {tid("B"): [ab]}

    def test_only_unsatisfied_edges_are_reported(self):
        a, b, c = task("A", completed=True), task("B"), task("C")
        ac, bc = edge("A", "C"), edge("B", "C")
        graph = build([a, b, c], ac, bc)

        assert blocked_tasks([a, b, c], graph) == {tid("C"): [bc]}


class TestReadyToStart:

    def test_roots_are_ready_until_started(self):
        a, b, c = task("A"), task("B", progress=30), task("C")
        graph = build([a, b, c], edge("A", "C"))

        ready = tasks_ready_to_start([c, b, a], graph)

        assert [t.id for t in ready] == [tid("A")]

    def test_satisfied_successor_becomes_ready(self):
        a, b = task("A", progress=100, completed=True), task("B")
        graph = build([a, b], edge("A", "B"))

        assert [t.id for t in tasks_ready_to_start([a, b], graph)] == [tid("B")]

    def test_start_to_start_successor_ready_once_predecessor_starts(self):
        a, b = task("A", progress=5), task("B")
        graph = build([a, b], edge("A", "B", DependencyType.START_TO_START))

        assert [t.id for t in tasks_ready_to_start([a, b], graph)] == [tid("B")]
