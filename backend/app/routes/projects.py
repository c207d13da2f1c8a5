"""
Project-level schedule analysis routes for the Taskgraph API.
"""

import uuid
from fastapi import APIRouter, Depends

from app.deps import get_dependency_service
from app.models import Dependency, Task
from app.schemas import (
    BlockedTaskRead,
    CriticalPathRead,
    DependencyRead,
    MarkersRead,
    OptimizationRead,
    RiskRead,
    StatisticsRead,
    TaskRead,
    ValidationRead,
)
from app.services.dependency_service import DependencyService
from app.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.get("/{project_id}/critical-path", response_model=CriticalPathRead)
async def get_critical_path(
    project_id: uuid.UUID,
    service: DependencyService = Depends(get_dependency_service),
):
    """
    Run the Critical Path Method over the project's active dependencies.

    Returns 409 if the stored graph contains a cycle.
    """
    return await service.calculate_critical_path(project_id)


@router.post("/{project_id}/critical-path/markers", response_model=MarkersRead)
async def update_critical_path_markers(
    project_id: uuid.UUID,
    service: DependencyService = Depends(get_dependency_service),
) -> MarkersRead:
    """Persist the on_critical_path flag of every dependency in the project."""
    marked = await service.update_critical_path_markers(project_id)
    return MarkersRead(project_id=project_id, critical_dependencies=marked)


@router.get("/{project_id}/validation", response_model=ValidationRead)
async def validate_project(
    project_id: uuid.UUID,
    service: DependencyService = Depends(get_dependency_service),
):
    """Report cycles, orphaned, duplicate and self-referencing dependencies."""
    return await service.validate_dependency_graph(project_id)


@router.get("/{project_id}/blocked-tasks", response_model=list[BlockedTaskRead])
async def get_blocked_tasks(
    project_id: uuid.UUID,
    service: DependencyService = Depends(get_dependency_service),
) -> list[BlockedTaskRead]:
    """Unfinished tasks that cannot start yet, with the dependencies holding them."""
    blocked = await service.get_blocked_tasks(project_id)
    return [
        BlockedTaskRead(
            task_id=task_id,
            blocking_dependencies=[DependencyRead.model_validate(edge) for edge in edges],
        )
        for task_id, edges in blocked.items()
    ]


@router.get("/{project_id}/ready-tasks", response_model=list[TaskRead])
async def get_ready_tasks(
    project_id: uuid.UUID,
    service: DependencyService = Depends(get_dependency_service),
) -> list[Task]:
    """Tasks that have not started and whose dependencies are all satisfied."""
    return await service.get_tasks_ready_to_start(project_id)


@router.get("/{project_id}/optimization", response_model=OptimizationRead)
async def get_optimization(
    project_id: uuid.UUID,
    service: DependencyService = Depends(get_dependency_service),
):
    """Advisory suggestions for shortening the schedule. Nothing is changed."""
    return await service.optimize_schedule(project_id)


@router.get("/{project_id}/statistics", response_model=StatisticsRead)
async def get_statistics(
    project_id: uuid.UUID,
    service: DependencyService = Depends(get_dependency_service),
) -> StatisticsRead:
    """Count of active dependencies per type."""
    by_type = await service.get_dependency_statistics(project_id)
    return StatisticsRead(project_id=project_id, total=sum(by_type.values()), by_type=by_type)


@router.get("/{project_id}/risk", response_model=RiskRead)
async def get_risk(
    project_id: uuid.UUID,
    service: DependencyService = Depends(get_dependency_service),
):
    """Coarse schedule risk rating with the factors behind it."""
    return await service.assess_project_risk(project_id)


@router.get("/{project_id}/most-connected", response_model=list[TaskRead])
async def get_most_connected_tasks(
    project_id: uuid.UUID,
    limit: int = 5,
    service: DependencyService = Depends(get_dependency_service),
) -> list[Task]:
    """Tasks with the most active dependencies, busiest first."""
    return await service.get_most_connected_tasks(project_id, limit)


@router.get("/{project_id}/external-constraints", response_model=list[DependencyRead])
async def get_external_constraints(
    project_id: uuid.UUID,
    min_lag_hours: float | None = None,
    service: DependencyService = Depends(get_dependency_service),
) -> list[Dependency]:
    """Dependencies whose lag suggests an outside lead time."""
    return await service.identify_external_constraints(project_id, min_lag_hours)
