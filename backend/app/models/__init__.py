from app.models.project import Project
from app.models.task import Task
from app.models.dependency import Dependency, DependencyType

__all__ = [
    "Project",
    "Task",
    "Dependency",
    "DependencyType",
]
