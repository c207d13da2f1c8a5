from app.schemas.task import TaskRead, TaskFloatRead, TaskStartRead, DependencyPathRead
from app.schemas.dependency import (
    DependencyCreate,
    DependencyUpdate,
    DependencyRead,
    DependencyBulkCreate,
    DependencyBulkDelete,
    DependencyTypeUpdate,
    BulkResult,
)
from app.schemas.schedule import (
    TaskAnalysisRead,
    CriticalPathRead,
    ValidationRead,
    BlockedTaskRead,
    OptimizationRead,
    StatisticsRead,
    RiskRead,
    MarkersRead,
)

__all__ = [
    "TaskRead",
    "TaskFloatRead",
    "TaskStartRead",
    "DependencyPathRead",
    "DependencyCreate",
    "DependencyUpdate",
    "DependencyRead",
    "DependencyBulkCreate",
    "DependencyBulkDelete",
    "DependencyTypeUpdate",
    "BulkResult",
    "TaskAnalysisRead",
    "CriticalPathRead",
    "ValidationRead",
    "BlockedTaskRead",
    "OptimizationRead",
    "StatisticsRead",
    "RiskRead",
    "MarkersRead",
]
