import uuid
from datetime import date, datetime
from pydantic import BaseModel


class TaskRead(BaseModel):
    """Schema for reading a task as seen by the scheduling engine."""
    id: uuid.UUID
    title: str
    description: str | None
    estimated_duration_hours: float | None
    start_date: date | None
    end_date: date | None
    completed: bool
    progress: int
    project_id: uuid.UUID
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TaskFloatRead(BaseModel):
    task_id: uuid.UUID
    total_float: float


class TaskStartRead(BaseModel):
    task_id: uuid.UUID
    can_start: bool


class DependencyPathRead(BaseModel):
    """Shortest chain of dependents from one task to another (empty if none)."""
    from_task_id: uuid.UUID
    to_task_id: uuid.UUID
    path: list[uuid.UUID]
