"""
Tests for schedule optimization advice.
"""

import uuid

import pytest

from app.config import Settings
from app.models import Dependency, DependencyType, Task
from app.services.critical_path import calculate_schedule
from app.services.graph import DependencyGraph
from app.services.optimizer import optimize_schedule, sequential_runs

PROJECT = uuid.UUID(int=1000)


def tid(name: str) -> uuid.UUID:
    return uuid.UUID(int=ord(name))


def edge(pred: str, succ: str, kind=DependencyType.FINISH_TO_START, lag: float = 0.0) -> Dependency:
    return Dependency(
        project_id=PROJECT,
        predecessor_id=tid(pred),
        successor_id=tid(succ),
        dependency_type=kind,
        lag_hours=lag,
    )


def optimize(durations: dict[str, float], *edges: Dependency, **overrides):
    settings = Settings(**overrides)
    graph = DependencyGraph.from_records(PROJECT, [tid(n) for n in durations], edges)
    tasks = {tid(n): Task(id=tid(n), title=n, project_id=PROJECT) for n in durations}
    hours = {tid(n): d for n, d in durations.items()}
    snapshot = calculate_schedule(graph, hours, settings.float_tolerance)
    return optimize_schedule(graph, tasks, hours, snapshot, settings)


def test_nothing_to_suggest():
    result = optimize({"A": 1, "B": 1}, edge("A", "B"))

    assert result.recommendations == ["No optimization opportunities found; the schedule is already tight"]
    assert result.potential_time_reduction == 0
    assert result.suggested_adjustments == {}


def test_feeder_with_float_and_long_critical_task():
    result = optimize(
        {"A": 2, "B": 3, "C": 1, "D": 2},
        edge("A", "B"), edge("A", "C"), edge("B", "D"), edge("C", "D"),
        long_task_hours=3,
    )

    assert any("Task 'C' has 2h of float" in r for r in result.recommendations)
    assert any("Critical task 'B' takes 3h" in r for r in result.recommendations)
    assert result.suggested_adjustments[tid("C")] == 2
    assert result.suggested_adjustments[tid("B")] == pytest.approx(0.75)
    assert result.compressed_task_ids == [tid("B")]
    assert result.baseline_duration == 7
    assert result.optimized_duration == pytest.approx(6.25)
    assert result.potential_time_reduction == pytest.approx(0.75)


def test_long_sequential_run():
    result = optimize(
        {"A": 10, "B": 10, "C": 10},
        edge("A", "B"), edge("B", "C"),
        long_chain_hours=30,
    )

    assert any("A -> B -> C" in r for r in result.recommendations)
    assert result.compressed_task_ids == [tid("A"), tid("B"), tid("C")]
    assert result.optimized_duration == pytest.approx(22.5)


def test_long_lag_on_critical_path():
    result = optimize({"A": 1, "B": 1}, edge("A", "B", lag=30))

    assert any("30h lag" in r for r in result.recommendations)
    assert result.baseline_duration == 32
    assert result.optimized_duration == 2
    assert result.potential_time_reduction == 30


def test_external_constraints():
    result = optimize({"A": 1, "B": 1}, edge("A", "B", lag=72))
    assert any("procurement" in r for r in result.recommendations)


def test_sequential_runs_split_on_overlapping_links():
    graph = DependencyGraph.from_records(
        PROJECT,
        [tid(n) for n in "ABCD"],
        [edge("A", "B"), edge("B", "C", DependencyType.START_TO_START), edge("C", "D")],
    )
    runs = sequential_runs([tid(n) for n in "ABCD"], graph)
    assert runs == [[tid("A"), tid("B")], [tid("C"), tid("D")]]


def test_feeder_two_steps_upstream_of_the_critical_path():
    # X -> Y -> C competes with A -> C; X never touches C directly
    result = optimize(
        {"X": 1, "Y": 1, "A": 10, "C": 10},
        edge("X", "Y"), edge("Y", "C"), edge("A", "C"),
    )

    assert result.suggested_adjustments[tid("X")] == 8
    assert result.suggested_adjustments[tid("Y")] == 8
    assert any("Task 'X' has 8h of float and feeds into critical task 'C'" in r for r in result.recommendations)


def test_float_task_off_every_critical_path_is_not_a_feeder():
    # D trails A on its own and leads nowhere
    result = optimize({"A": 4, "B": 4, "D": 1}, edge("A", "B"), edge("A", "D"))

    assert tid("D") not in result.suggested_adjustments
