"""
Tests for project risk assessment.
"""

import uuid

from app.models import Dependency
from app.services.critical_path import calculate_schedule
from app.services.graph import DependencyGraph
from app.services.risk import RiskLevel, assess_project_risk

PROJECT = uuid.UUID(int=1000)


def tid(name: str) -> uuid.UUID:
    return uuid.UUID(int=ord(name))


def edge(pred: str, succ: str, lag: float = 0.0) -> Dependency:
    return Dependency(project_id=PROJECT, predecessor_id=tid(pred), successor_id=tid(succ), lag_hours=lag)


def test_cycles_are_critical():
    assessment = assess_project_risk(
        task_count=2,
        cycles=[[tid("A"), tid("B")]],
        snapshot=None,
        blocked={},
        external_constraints=[],
    )

    assert assessment.overall_risk == RiskLevel.CRITICAL
    assert assessment.high_risk_task_ids == [tid("A"), tid("B")]
    assert assessment.metrics["cycle_count"] == 1


def test_quiet_project_is_low_risk():
    assessment = assess_project_risk(3, [], None, {}, [])

    assert assessment.overall_risk == RiskLevel.LOW
    assert assessment.risk_factors == []


def test_mostly_critical_project_with_external_constraint():
    ab = edge("A", "B", lag=48)
    graph = DependencyGraph.from_records(PROJECT, [tid("A"), tid("B")], [ab])
    snapshot = calculate_schedule(graph, {tid("A"): 1, tid("B"): 1}, 0.01)

    assessment = assess_project_risk(
        task_count=2,
        cycles=[],
        snapshot=snapshot,
        blocked={},
        external_constraints=[ab],
    )

    assert assessment.overall_risk == RiskLevel.MEDIUM
    assert len(assessment.risk_factors) == 2
    assert assessment.high_risk_task_ids == [tid("B")]
    assert assessment.metrics["project_duration"] == 50


def test_three_factors_are_high_risk():
    ab = edge("A", "B", lag=48)
    graph = DependencyGraph.from_records(PROJECT, [tid("A"), tid("B")], [ab])
    snapshot = calculate_schedule(graph, {tid("A"): 1, tid("B"): 1}, 0.01)

    assessment = assess_project_risk(2, [], snapshot, {tid("B"): [ab]}, [ab])

    assert assessment.overall_risk == RiskLevel.HIGH
    assert "High percentage of blocked tasks" in assessment.risk_factors
