"""
Tests for topological ordering and deadlines.
"""

import uuid

import pytest

from app.exceptions import DeadlineExceededError, GraphInconsistentError
from app.models import Dependency
from app.services.deadline import Deadline
from app.services.graph import DependencyGraph
from app.services.topology import topological_order

PROJECT = uuid.UUID(int=1000)


def tid(name: str) -> uuid.UUID:
    return uuid.UUID(int=ord(name))


def edge(pred: str, succ: str) -> Dependency:
    return Dependency(project_id=PROJECT, predecessor_id=tid(pred), successor_id=tid(succ))


def build(names: str, *edges: Dependency) -> DependencyGraph:
    return DependencyGraph.from_records(PROJECT, [tid(n) for n in names], edges)


def test_empty_graph():
    assert topological_order(build("")) == []


def test_every_edge_points_forward():
    edges = [edge("D", "B"), edge("B", "A"), edge("D", "C"), edge("C", "A")]
    order = topological_order(build("ABCD", *edges))

    position = {task_id: i for i, task_id in enumerate(order)}
    for e in edges:
        assert position[e.predecessor_id] < position[e.successor_id]


def test_ties_are_broken_by_ascending_id():
    # C and B both become ready after A; B has the smaller id
    order = topological_order(build("ABCD", edge("A", "C"), edge("A", "B")))
    assert order == [tid("A"), tid("B"), tid("C"), tid("D")]


def test_parallel_edges_release_successor_once_all_are_processed():
    order = topological_order(build("AB", edge("A", "B"), edge("A", "B")))
    assert order == [tid("A"), tid("B")]


def test_cycle_raises_with_unresolved_tasks():
    graph = build("ABCD", edge("A", "B"), edge("B", "C"), edge("C", "B"), edge("C", "D"))

    with pytest.raises(GraphInconsistentError) as exc_info:
        topological_order(graph)

    assert exc_info.value.unresolved_task_ids == [tid("B"), tid("C"), tid("D")]
    assert exc_info.value.status_code == 409


def test_expired_deadline_stops_the_sort():
    with pytest.raises(DeadlineExceededError):
        topological_order(build("AB", edge("A", "B")), Deadline(0))


def test_deadline_helpers():
    assert Deadline.from_timeout(None) is None
    deadline = Deadline.from_timeout(60)
    assert not deadline.expired()
    assert 0 < deadline.remaining() <= 60
