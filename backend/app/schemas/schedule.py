import uuid
from typing import Any
from pydantic import BaseModel

from app.models import DependencyType
from app.schemas.dependency import DependencyRead
from app.services.risk import RiskLevel


class TaskAnalysisRead(BaseModel):
    """CPM results for one task, in hours from the project start."""
    task_id: uuid.UUID
    duration_hours: float
    earliest_start: float
    earliest_finish: float
    latest_start: float
    latest_finish: float
    total_float: float
    is_critical: bool

    model_config = {"from_attributes": True}


class CriticalPathRead(BaseModel):
    project_id: uuid.UUID
    total_duration: float
    critical_path: list[uuid.UUID]
    critical_paths: list[list[uuid.UUID]]
    critical_task_ids: list[uuid.UUID]
    critical_edge_ids: list[uuid.UUID]
    task_analyses: list[TaskAnalysisRead]

    model_config = {"from_attributes": True}


class ValidationRead(BaseModel):
    valid: bool
    issues: list[str]
    cycles: list[list[uuid.UUID]]

    model_config = {"from_attributes": True}


class BlockedTaskRead(BaseModel):
    task_id: uuid.UUID
    blocking_dependencies: list[DependencyRead]


class OptimizationRead(BaseModel):
    recommendations: list[str]
    suggested_adjustments: dict[uuid.UUID, float]
    potential_time_reduction: float
    baseline_duration: float
    optimized_duration: float
    compressed_task_ids: list[uuid.UUID]

    model_config = {"from_attributes": True}


class StatisticsRead(BaseModel):
    """Active dependency count per type; every type is listed."""
    project_id: uuid.UUID
    total: int
    by_type: dict[DependencyType, int]


class RiskRead(BaseModel):
    overall_risk: RiskLevel
    risk_factors: list[str]
    high_risk_task_ids: list[uuid.UUID]
    metrics: dict[str, Any]

    model_config = {"from_attributes": True}


class MarkersRead(BaseModel):
    project_id: uuid.UUID
    critical_dependencies: int
