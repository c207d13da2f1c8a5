import enum
import uuid
from datetime import datetime
from sqlmodel import SQLModel, Field


class DependencyType(str, enum.Enum):
    """
    How the predecessor's timing constrains the successor.

    The first word names the predecessor event, the second the successor
    event: FINISH_TO_START means "successor starts after predecessor finishes".
    """

    FINISH_TO_START = "FINISH_TO_START"
    START_TO_START = "START_TO_START"
    FINISH_TO_FINISH = "FINISH_TO_FINISH"
    START_TO_FINISH = "START_TO_FINISH"

    @property
    def predecessor_event(self) -> str:
        """'start' or 'finish': the predecessor event the constraint is measured from."""
        return "finish" if self in (DependencyType.FINISH_TO_START, DependencyType.FINISH_TO_FINISH) else "start"

    @property
    def successor_event(self) -> str:
        """'start' or 'finish': the successor event being constrained."""
        return "start" if self in (DependencyType.FINISH_TO_START, DependencyType.START_TO_START) else "finish"

    @property
    def short_name(self) -> str:
        return "".join(word[0] for word in self.value.split("_TO_"))


class Dependency(SQLModel, table=True):
    """
    Dependency model representing a directed edge in the task DAG.

    predecessor_id -> successor_id means the successor is constrained by the
    predecessor according to dependency_type, shifted by lag_hours
    (negative lag = overlap).

    Endpoints are plain id references. Inactive rows are kept for history and
    are ignored by every graph algorithm.
    """

    __tablename__ = "dependencies"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    project_id: uuid.UUID = Field(foreign_key="projects.id", index=True)
    predecessor_id: uuid.UUID = Field(foreign_key="tasks.id", index=True)
    successor_id: uuid.UUID = Field(foreign_key="tasks.id", index=True)

    dependency_type: DependencyType = Field(default=DependencyType.FINISH_TO_START)
    lag_hours: float = Field(default=0.0)
    active: bool = Field(default=True, index=True)
    notes: str | None = Field(default=None)

    # Output of the critical path calculator, never set by callers
    on_critical_path: bool = Field(default=False)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def pair(self) -> tuple[uuid.UUID, uuid.UUID]:
        return self.predecessor_id, self.successor_id
