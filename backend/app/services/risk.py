"""
Project schedule risk assessment.

Combines the cycle report, the CPM snapshot and the blocking analysis into a
coarse risk level with the factors that produced it.
"""

import enum
import uuid
from dataclasses import dataclass, field
from typing import Any

from app.models import Dependency
from app.services.critical_path import ScheduleSnapshot


class RiskLevel(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


@dataclass
class ProjectRiskAssessment:
    overall_risk: RiskLevel
    risk_factors: list[str]
    high_risk_task_ids: list[uuid.UUID]
    metrics: dict[str, Any] = field(default_factory=dict)


BLOCKED_RATIO_THRESHOLD = 0.3
CRITICAL_RATIO_THRESHOLD = 0.5


def assess_project_risk(
    task_count: int,
    cycles: list[list[uuid.UUID]],
    snapshot: ScheduleSnapshot | None,
    blocked: dict[uuid.UUID, list[Dependency]],
    external_constraints: list[Dependency],
) -> ProjectRiskAssessment:
    """
    Rate a project's schedule risk.

    A graph with cycles cannot be scheduled at all and is always CRITICAL
    (snapshot is None in that case). Otherwise three or more risk factors
    make it HIGH, one or two MEDIUM, none LOW.
    """
    risk_factors: list[str] = []
    high_risk: set[uuid.UUID] = set()
    metrics: dict[str, Any] = {
        "task_count": task_count,
        "cycle_count": len(cycles),
        "blocked_task_count": len(blocked),
        "external_constraint_count": len(external_constraints),
    }

    if cycles:
        risk_factors.append("Circular dependencies detected")
        for cycle in cycles:
            high_risk.update(cycle)

    if snapshot is not None:
        critical_count = len(snapshot.critical_task_ids)
        metrics["critical_path_length"] = critical_count
        metrics["project_duration"] = snapshot.total_duration

        if task_count and critical_count / task_count > CRITICAL_RATIO_THRESHOLD:
            risk_factors.append("Most tasks are on the critical path; little schedule flexibility")

        if len(blocked) > critical_count * BLOCKED_RATIO_THRESHOLD:
            risk_factors.append("High percentage of blocked tasks")

    if external_constraints:
        risk_factors.append("External dependencies with significant lead times")
        high_risk.update(edge.successor_id for edge in external_constraints)

    if cycles:
        overall = RiskLevel.CRITICAL
    elif len(risk_factors) >= 3:
        overall = RiskLevel.HIGH
    elif risk_factors:
        overall = RiskLevel.MEDIUM
    else:
        overall = RiskLevel.LOW

    return ProjectRiskAssessment(
        overall_risk=overall,
        risk_factors=risk_factors,
        high_risk_task_ids=sorted(high_risk),
        metrics=metrics,
    )
