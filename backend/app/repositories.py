"""
Storage collaborators of the dependency engine.

TaskStore is the read-only task reference store; EdgeStore persists
dependency edges and guards each project's graph with a version counter.
The SQL implementations work on the application's AsyncSession.
"""

import uuid
from datetime import datetime
from typing import Protocol

from sqlalchemy import or_, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.exceptions import ConcurrentModificationError, NotFoundError
from app.models import Dependency, Project, Task
from app.logging_config import get_logger

logger = get_logger(__name__)


class TaskStore(Protocol):
    async def get_project(self, project_id: uuid.UUID) -> Project: ...

    async def get_task(self, task_id: uuid.UUID) -> Task: ...

    async def get_tasks_by_project(self, project_id: uuid.UUID) -> list[Task]: ...


class EdgeStore(Protocol):
    async def load_edges(self, project_id: uuid.UUID, active_only: bool = True) -> list[Dependency]: ...

    async def load_edges_for_task(self, task_id: uuid.UUID, active_only: bool = True) -> list[Dependency]: ...

    async def get_edge(self, edge_id: uuid.UUID) -> Dependency | None: ...

    async def save_edge(self, edge: Dependency) -> Dependency: ...

    async def delete_edge(self, edge_id: uuid.UUID) -> bool: ...

    async def get_graph_version(self, project_id: uuid.UUID) -> int: ...

    async def bump_graph_version(self, project_id: uuid.UUID, expected: int) -> int: ...

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...


class SqlTaskStore:
    """Task lookups against the tasks/projects tables."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_project(self, project_id: uuid.UUID) -> Project:
        project = await self.session.get(Project, project_id)
        if project is None:
            raise NotFoundError("Project", project_id)
        return project

    async def get_task(self, task_id: uuid.UUID) -> Task:
        task = await self.session.get(Task, task_id)
        if task is None:
            raise NotFoundError("Task", task_id)
        return task

    async def get_tasks_by_project(self, project_id: uuid.UUID) -> list[Task]:
        result = await self.session.execute(
            select(Task).where(Task.project_id == project_id).order_by(Task.id)
        )
        return list(result.scalars().all())


class SqlEdgeStore:
    """Dependency persistence plus the per-project graph version guard."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def load_edges(self, project_id: uuid.UUID, active_only: bool = True) -> list[Dependency]:
        query = select(Dependency).where(Dependency.project_id == project_id)
        if active_only:
            query = query.where(Dependency.active == True)  # noqa: E712
        result = await self.session.execute(query.order_by(Dependency.created_at, Dependency.id))
        return list(result.scalars().all())

    async def load_edges_for_task(self, task_id: uuid.UUID, active_only: bool = True) -> list[Dependency]:
        query = select(Dependency).where(
            or_(Dependency.predecessor_id == task_id, Dependency.successor_id == task_id)
        )
        if active_only:
            query = query.where(Dependency.active == True)  # noqa: E712
        result = await self.session.execute(query.order_by(Dependency.created_at, Dependency.id))
        return list(result.scalars().all())

    async def get_edge(self, edge_id: uuid.UUID) -> Dependency | None:
        return await self.session.get(Dependency, edge_id)

    async def save_edge(self, edge: Dependency) -> Dependency:
        edge.updated_at = datetime.utcnow()
        self.session.add(edge)
        await self.session.flush()
        return edge

    async def delete_edge(self, edge_id: uuid.UUID) -> bool:
        edge = await self.session.get(Dependency, edge_id)
        if edge is None:
            return False
        await self.session.delete(edge)
        await self.session.flush()
        return True

    async def get_graph_version(self, project_id: uuid.UUID) -> int:
        # Column select bypasses the identity map, so the value is never stale
        result = await self.session.execute(
            select(Project.graph_version).where(Project.id == project_id)
        )
        version = result.scalar_one_or_none()
        if version is None:
            raise NotFoundError("Project", project_id)
        return version

    async def bump_graph_version(self, project_id: uuid.UUID, expected: int) -> int:
        """Compare-and-swap the project's graph version from expected to expected + 1."""
        result = await self.session.execute(
            update(Project)
            .where(Project.id == project_id, Project.graph_version == expected)
            .values(graph_version=expected + 1, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            logger.warning(
                f"Graph version conflict on project {project_id}: expected {expected}"
            )
            raise ConcurrentModificationError(project_id, expected)
        return expected + 1

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()
