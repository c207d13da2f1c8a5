import uuid
from datetime import datetime
from pydantic import BaseModel, Field

from app.models import DependencyType


class DependencyCreate(BaseModel):
    """Schema for creating a new dependency."""
    predecessor_id: uuid.UUID  # The blocker task
    successor_id: uuid.UUID    # The blocked task
    dependency_type: DependencyType = DependencyType.FINISH_TO_START
    lag_hours: float | None = None  # May be negative (lead)
    notes: str | None = None


class DependencyUpdate(BaseModel):
    """Schema for updating a dependency. Endpoints cannot change."""
    dependency_type: DependencyType | None = None
    lag_hours: float | None = None
    notes: str | None = None


class DependencyRead(BaseModel):
    """Schema for reading a dependency."""
    id: uuid.UUID
    project_id: uuid.UUID
    predecessor_id: uuid.UUID
    successor_id: uuid.UUID
    dependency_type: DependencyType
    lag_hours: float
    active: bool
    notes: str | None
    on_critical_path: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class DependencyBulkCreate(BaseModel):
    """All-or-nothing batch of dependencies for one project."""
    dependencies: list[DependencyCreate] = Field(min_length=1)


class DependencyBulkDelete(BaseModel):
    dependency_ids: list[uuid.UUID]


class DependencyTypeUpdate(BaseModel):
    dependency_ids: list[uuid.UUID]
    dependency_type: DependencyType


class BulkResult(BaseModel):
    """Number of dependencies affected by a bulk or per-task operation."""
    affected: int
