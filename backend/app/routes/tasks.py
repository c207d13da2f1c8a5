"""
Task-centric dependency routes for the Taskgraph API.

Tasks themselves are owned by the surrounding system; these routes only
read them and manage the dependencies that touch them.
"""

import uuid
from fastapi import APIRouter, Depends

from app.deps import get_dependency_service
from app.models import Dependency
from app.schemas import (
    BulkResult,
    DependencyPathRead,
    DependencyRead,
    TaskFloatRead,
    TaskStartRead,
)
from app.services.dependency_service import DependencyService
from app.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.get("/{task_id}/dependencies", response_model=list[DependencyRead])
async def get_task_dependencies(
    task_id: uuid.UUID,
    service: DependencyService = Depends(get_dependency_service),
) -> list[Dependency]:
    """Active dependencies the task waits on."""
    return await service.get_task_dependencies(task_id)


@router.get("/{task_id}/dependents", response_model=list[DependencyRead])
async def get_task_dependents(
    task_id: uuid.UUID,
    service: DependencyService = Depends(get_dependency_service),
) -> list[Dependency]:
    """Active dependencies that wait on the task."""
    return await service.get_task_dependents(task_id)


@router.get("/{task_id}/prerequisites", response_model=list[uuid.UUID])
async def get_all_prerequisites(
    task_id: uuid.UUID,
    service: DependencyService = Depends(get_dependency_service),
) -> list[uuid.UUID]:
    """Every task the task transitively depends on."""
    return await service.get_all_prerequisites(task_id)


@router.get("/{task_id}/all-dependents", response_model=list[uuid.UUID])
async def get_all_dependents(
    task_id: uuid.UUID,
    service: DependencyService = Depends(get_dependency_service),
) -> list[uuid.UUID]:
    """Every task transitively downstream of the task."""
    return await service.get_all_dependents(task_id)


@router.get("/{task_id}/float", response_model=TaskFloatRead)
async def get_task_float(
    task_id: uuid.UUID,
    service: DependencyService = Depends(get_dependency_service),
) -> TaskFloatRead:
    """Hours the task can slip without delaying the project."""
    total_float = await service.calculate_task_float(task_id)
    return TaskFloatRead(task_id=task_id, total_float=total_float)


@router.get("/{task_id}/can-start", response_model=TaskStartRead)
async def can_task_start(
    task_id: uuid.UUID,
    service: DependencyService = Depends(get_dependency_service),
) -> TaskStartRead:
    can_start = await service.can_task_start(task_id)
    return TaskStartRead(task_id=task_id, can_start=can_start)


@router.get("/{task_id}/blocking", response_model=list[DependencyRead])
async def get_blocking_dependencies(
    task_id: uuid.UUID,
    service: DependencyService = Depends(get_dependency_service),
) -> list[Dependency]:
    """Incoming dependencies not yet satisfied by their predecessor."""
    return await service.get_blocking_dependencies(task_id)


@router.get("/{task_id}/path/{to_task_id}", response_model=DependencyPathRead)
async def find_dependency_path(
    task_id: uuid.UUID,
    to_task_id: uuid.UUID,
    service: DependencyService = Depends(get_dependency_service),
) -> DependencyPathRead:
    """Shortest chain of dependents leading from the task to another task."""
    path = await service.find_shortest_dependency_path(task_id, to_task_id)
    return DependencyPathRead(from_task_id=task_id, to_task_id=to_task_id, path=path)


@router.post("/{task_id}/dependencies/deactivate", response_model=BulkResult)
async def deactivate_dependencies(
    task_id: uuid.UUID,
    service: DependencyService = Depends(get_dependency_service),
) -> BulkResult:
    """Soft-disable every active dependency touching the task."""
    count = await service.deactivate_dependencies_for_task(task_id)
    return BulkResult(affected=count)


@router.post("/{task_id}/dependencies/reactivate", response_model=BulkResult)
async def reactivate_dependencies(
    task_id: uuid.UUID,
    service: DependencyService = Depends(get_dependency_service),
) -> BulkResult:
    """Re-enable the task's inactive dependencies that are still valid."""
    count = await service.reactivate_dependencies_for_task(task_id)
    return BulkResult(affected=count)


@router.delete("/{task_id}/dependencies", response_model=BulkResult)
async def remove_all_dependencies(
    task_id: uuid.UUID,
    service: DependencyService = Depends(get_dependency_service),
) -> BulkResult:
    """Hard-delete every dependency touching the task, active or not."""
    count = await service.remove_all_dependencies_for_task(task_id)
    logger.info(f"Removed all {count} dependencies of task {task_id}")
    return BulkResult(affected=count)
