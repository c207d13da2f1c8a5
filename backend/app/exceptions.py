"""
Structured exceptions and error responses for Taskgraph.

Provides consistent error handling across the engine and the API with:
- Custom exception classes (one per failure kind)
- Structured error response format
- FastAPI exception handlers
"""

from typing import Any, Dict, Optional, List, Sequence
from fastapi import Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel


# =============================================================================
# Error Response Schema
# =============================================================================

class ErrorDetail(BaseModel):
    """Detail of a single error."""
    loc: Optional[List[Any]] = None  # Location of error (e.g., ["body", 2])
    msg: str
    type: str


class ErrorResponse(BaseModel):
    """Structured error response format."""
    error: str  # Error code (e.g., "not_found", "cycle_detected")
    message: str  # Human-readable message
    details: Optional[List[ErrorDetail]] = None


# =============================================================================
# Custom Exceptions
# =============================================================================

class TaskGraphException(Exception):
    """Base exception for all Taskgraph errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "internal_error",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[List[Dict[str, Any]]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class NotFoundError(TaskGraphException):
    """Referenced task, project or dependency does not exist."""

    def __init__(self, resource: str, resource_id: Any):
        super().__init__(
            message=f"{resource} with ID {resource_id} not found",
            error_code="not_found",
            status_code=status.HTTP_404_NOT_FOUND,
        )
        self.resource = resource
        self.resource_id = resource_id


class InvalidDependencyError(TaskGraphException):
    """The requested dependency is malformed for reasons other than a cycle."""

    def __init__(
        self,
        message: str,
        error_code: str = "invalid_dependency",
        status_code: int = status.HTTP_400_BAD_REQUEST,
    ):
        super().__init__(message=message, error_code=error_code, status_code=status_code)


class SelfDependencyError(InvalidDependencyError):
    """Task cannot depend on itself."""

    def __init__(self, task_id: Any):
        super().__init__(
            message="A task cannot depend on itself",
            error_code="self_dependency",
        )
        self.task_id = task_id


class CrossProjectDependencyError(InvalidDependencyError):
    """Cannot create dependency between tasks in different projects."""

    def __init__(self, predecessor_project: Any, successor_project: Any):
        super().__init__(
            message="Cannot create dependency between tasks in different projects",
            error_code="cross_project_dependency",
        )
        self.predecessor_project = predecessor_project
        self.successor_project = successor_project


class DuplicateDependencyError(InvalidDependencyError):
    """An active dependency already links the same ordered pair."""

    def __init__(self, predecessor_id: Any, successor_id: Any):
        super().__init__(
            message="This dependency already exists",
            error_code="duplicate_dependency",
            status_code=status.HTTP_409_CONFLICT,
        )
        self.predecessor_id = predecessor_id
        self.successor_id = successor_id


class CycleDetectedError(TaskGraphException):
    """Adding a dependency would create a cycle."""

    def __init__(
        self,
        predecessor_id: Any,
        successor_id: Any,
        cycle: Optional[Sequence[Any]] = None,
    ):
        path = [str(node) for node in cycle] if cycle else []
        msg = f"Dependency {predecessor_id} -> {successor_id} would create a cycle"
        if path:
            msg = f"{msg}: {' -> '.join(path)}"
        super().__init__(
            message="Adding this dependency would create a cycle in the task graph",
            error_code="cycle_detected",
            status_code=status.HTTP_400_BAD_REQUEST,
            details=[{
                "loc": ["body"],
                "msg": msg,
                "type": "cycle_error",
            }],
        )
        self.predecessor_id = predecessor_id
        self.successor_id = successor_id
        self.cycle = list(cycle) if cycle else []


class GraphInconsistentError(TaskGraphException):
    """The stored graph already contains a cycle, so it cannot be scheduled."""

    def __init__(self, unresolved_task_ids: Sequence[Any]):
        unresolved = sorted(unresolved_task_ids)
        super().__init__(
            message="Dependency graph contains a cycle and cannot be scheduled",
            error_code="graph_inconsistent",
            status_code=status.HTTP_409_CONFLICT,
            details=[{
                "loc": ["graph"],
                "msg": f"Task {task_id} is part of or downstream of a cycle",
                "type": "cycle_error",
            } for task_id in unresolved],
        )
        self.unresolved_task_ids = unresolved


class ValidationFailedError(TaskGraphException):
    """One or more items of a bulk request are invalid; nothing was written."""

    def __init__(self, message: str, details: Optional[List[Dict[str, Any]]] = None):
        super().__init__(
            message=message,
            error_code="validation_failed",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details=details,
        )


class ConcurrentModificationError(TaskGraphException):
    """Another writer changed the project's graph while this one was validating."""

    def __init__(self, project_id: Any, expected_version: int):
        super().__init__(
            message="The dependency graph was modified concurrently, retry the request",
            error_code="concurrent_modification",
            status_code=status.HTTP_409_CONFLICT,
        )
        self.project_id = project_id
        self.expected_version = expected_version


class DeadlineExceededError(TaskGraphException):
    """A graph traversal ran past its caller-supplied deadline."""

    def __init__(self, operation: str):
        super().__init__(
            message=f"{operation} exceeded its deadline",
            error_code="deadline_exceeded",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )
        self.operation = operation


# =============================================================================
# Exception Handlers
# =============================================================================

async def taskgraph_exception_handler(request: Request, exc: TaskGraphException) -> JSONResponse:
    """Handle TaskGraphException and return structured response."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.error_code,
            "message": exc.message,
            "details": exc.details,
        },
    )


def register_exception_handlers(app):
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(TaskGraphException, taskgraph_exception_handler)
