"""
Dependency routes for the Taskgraph API.
"""

import uuid
from fastapi import APIRouter, Depends, status

from app.deps import get_dependency_service
from app.models import Dependency
from app.schemas import (
    BulkResult,
    DependencyBulkCreate,
    DependencyBulkDelete,
    DependencyCreate,
    DependencyRead,
    DependencyTypeUpdate,
    DependencyUpdate,
)
from app.services.dependency_service import DependencyService, DependencySpec
from app.exceptions import NotFoundError
from app.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.post("/", response_model=DependencyRead, status_code=status.HTTP_201_CREATED)
async def create_dependency(
    dep_in: DependencyCreate,
    service: DependencyService = Depends(get_dependency_service),
) -> Dependency:
    """
    Create a new dependency (edge in the task DAG).

    Performs cycle detection before creating the dependency.
    If adding this edge would create a cycle, returns 400 Bad Request.
    """
    return await service.create_dependency(
        successor_id=dep_in.successor_id,
        predecessor_id=dep_in.predecessor_id,
        dependency_type=dep_in.dependency_type,
        lag_hours=dep_in.lag_hours,
        notes=dep_in.notes,
    )


@router.post("/bulk", response_model=list[DependencyRead], status_code=status.HTTP_201_CREATED)
async def create_dependencies(
    bulk_in: DependencyBulkCreate,
    service: DependencyService = Depends(get_dependency_service),
) -> list[Dependency]:
    """
    Create several dependencies at once.

    The batch is validated as a whole; if any entry is invalid nothing is
    created and a 422 lists every failing entry by index.
    """
    items = [
        DependencySpec(
            successor_id=item.successor_id,
            predecessor_id=item.predecessor_id,
            dependency_type=item.dependency_type,
            lag_hours=item.lag_hours,
            notes=item.notes,
        )
        for item in bulk_in.dependencies
    ]
    return await service.create_dependencies(items)


@router.get("/", response_model=list[DependencyRead])
async def list_dependencies(
    project_id: uuid.UUID,
    include_inactive: bool = False,
    service: DependencyService = Depends(get_dependency_service),
) -> list[Dependency]:
    """List a project's dependencies (active only unless include_inactive)."""
    dependencies = await service.get_project_dependencies(project_id, active_only=not include_inactive)
    logger.debug(f"Listed {len(dependencies)} dependencies for project={project_id}")
    return dependencies


@router.post("/bulk-delete", response_model=BulkResult)
async def delete_dependencies(
    bulk_in: DependencyBulkDelete,
    service: DependencyService = Depends(get_dependency_service),
) -> BulkResult:
    """Delete several dependencies; ids that no longer exist are ignored."""
    removed = await service.remove_dependencies(bulk_in.dependency_ids)
    return BulkResult(affected=removed)


@router.patch("/types", response_model=BulkResult)
async def update_dependency_types(
    types_in: DependencyTypeUpdate,
    service: DependencyService = Depends(get_dependency_service),
) -> BulkResult:
    """Change the type of several dependencies."""
    updated = await service.update_dependency_types(types_in.dependency_ids, types_in.dependency_type)
    return BulkResult(affected=updated)


@router.get("/{dependency_id}", response_model=DependencyRead)
async def get_dependency(
    dependency_id: uuid.UUID,
    service: DependencyService = Depends(get_dependency_service),
) -> Dependency:
    """Get a dependency by ID."""
    dependency = await service.find_dependency(dependency_id)
    if not dependency:
        raise NotFoundError("Dependency", str(dependency_id))
    return dependency


@router.patch("/{dependency_id}", response_model=DependencyRead)
async def update_dependency(
    dependency_id: uuid.UUID,
    dep_in: DependencyUpdate,
    service: DependencyService = Depends(get_dependency_service),
) -> Dependency:
    """
    Update a dependency's type, lag or notes.

    Omitted fields are kept; "notes": null clears the notes.
    """
    update_data = dep_in.model_dump(exclude_unset=True)
    logger.info(f"Updating dependency {dependency_id}: {update_data}")
    return await service.update_dependency(dependency_id, **update_data)


@router.delete("/{dependency_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_dependency(
    dependency_id: uuid.UUID,
    service: DependencyService = Depends(get_dependency_service),
) -> None:
    """
    Delete a dependency.

    Deleting a dependency that is already gone is not an error.
    """
    await service.remove_dependency(dependency_id)
