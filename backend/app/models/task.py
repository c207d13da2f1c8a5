import uuid
from datetime import date, datetime
from sqlmodel import SQLModel, Field


class Task(SQLModel, table=True):
    """
    Task snapshot as seen by the scheduling engine.

    Tasks are owned by the surrounding project-management system; the engine
    only reads them. Key fields:
    - estimated_duration_hours: CPM duration (None = use the configured default)
    - completed / progress: drive readiness and blocking analysis
    """

    __tablename__ = "tasks"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    title: str = Field(index=True)
    description: str | None = Field(default=None)
    estimated_duration_hours: float | None = Field(default=None, ge=0)
    start_date: date | None = Field(default=None)
    end_date: date | None = Field(default=None)
    completed: bool = Field(default=False)
    progress: int = Field(default=0, ge=0, le=100)

    project_id: uuid.UUID = Field(foreign_key="projects.id", index=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def started(self) -> bool:
        return self.completed or self.progress > 0
