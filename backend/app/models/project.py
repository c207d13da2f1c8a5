import uuid
from datetime import datetime
from sqlmodel import SQLModel, Field


class Project(SQLModel, table=True):
    """
    Project model - groups tasks and their dependencies.

    graph_version is the optimistic concurrency guard for the dependency
    graph: every committed edge mutation increments it with a
    compare-and-swap, so two writers validating against the same version
    cannot both commit.
    """

    __tablename__ = "projects"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str = Field(index=True)
    description: str | None = Field(default=None)
    graph_version: int = Field(default=0)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
