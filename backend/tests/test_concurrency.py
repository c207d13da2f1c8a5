"""
Concurrency tests: per-project locking and the graph version guard.

These tests verify that two writers racing on the same project can never
both commit edges that together form a cycle, and that a writer whose view
of the graph went stale is rejected instead of committing.
"""

import asyncio
import uuid

import pytest
from sqlmodel import select

from app.exceptions import ConcurrentModificationError, CycleDetectedError
from app.models import Dependency, Project
from app.services.dependency_service import DependencyService, ProjectLockRegistry


def tid(name: str) -> uuid.UUID:
    return uuid.UUID(int=ord(name))


async def stored_state(session_maker, project_id) -> tuple[list[Dependency], int]:
    async with session_maker() as session:
        result = await session.execute(select(Dependency))
        project = await session.get(Project, project_id)
        return list(result.scalars().all()), project.graph_version


def test_lock_registry_hands_out_one_lock_per_project():
    registry = ProjectLockRegistry()
    first, second = uuid.uuid4(), uuid.uuid4()

    lock = registry.lock_for(first)

    assert registry.lock_for(first) is lock
    assert registry.lock_for(second) is not lock


@pytest.mark.asyncio
async def test_racing_opposite_edges_only_one_commits(session_maker, locks, make_tasks, project):
    await make_tasks(A=1, B=1)

    async with session_maker() as first_session, session_maker() as second_session:
        first = DependencyService.from_session(first_session, locks=locks)
        second = DependencyService.from_session(second_session, locks=locks)

        results = await asyncio.gather(
            first.create_dependency(successor_id=tid("B"), predecessor_id=tid("A")),
            second.create_dependency(successor_id=tid("A"), predecessor_id=tid("B")),
            return_exceptions=True,
        )

    created = [r for r in results if isinstance(r, Dependency)]
    rejected = [r for r in results if isinstance(r, CycleDetectedError)]
    assert len(created) == 1
    assert len(rejected) == 1

    edges, version = await stored_state(session_maker, project.id)
    assert [e.id for e in edges] == [created[0].id]
    assert version == 1


@pytest.mark.asyncio
async def test_racing_writers_on_a_chain(session_maker, locks, make_tasks, project):
    """Concurrent writers add a chain and its closing edge; the graph stays acyclic."""
    await make_tasks(A=1, B=1, C=1, D=1)
    pairs = [("A", "B"), ("B", "C"), ("C", "D"), ("D", "A")]

    async def create(pred: str, succ: str):
        async with session_maker() as session:
            service = DependencyService.from_session(session, locks=locks)
            return await service.create_dependency(successor_id=tid(succ), predecessor_id=tid(pred))

    results = await asyncio.gather(*(create(p, s) for p, s in pairs), return_exceptions=True)

    assert sum(isinstance(r, Dependency) for r in results) == 3
    assert sum(isinstance(r, CycleDetectedError) for r in results) == 1

    async with session_maker() as session:
        service = DependencyService.from_session(session, locks=locks)
        assert (await service.validate_dependency_graph(project.id)).valid


@pytest.mark.asyncio
async def test_stale_graph_version_aborts_the_write(service, make_tasks, project, session_maker, monkeypatch):
    project_id = project.id  # Read before the rollback expires project
    await make_tasks(A=1, B=1)
    read_version = service.edges.get_graph_version

    async def racing_read(project_id):
        version = await read_version(project_id)
        # Another process commits a graph change right after this read
        async with session_maker() as other:
            stored = await other.get(Project, project_id)
            stored.graph_version += 1
            await other.commit()
        return version

    monkeypatch.setattr(service.edges, "get_graph_version", racing_read)

    with pytest.raises(ConcurrentModificationError):
        await service.create_dependency(successor_id=tid("B"), predecessor_id=tid("A"))

    edges, version = await stored_state(session_maker, project_id)
    assert edges == []
    assert version == 1


@pytest.mark.asyncio
async def test_cancelled_write_is_rolled_back(service, locks, make_tasks, project, monkeypatch):
    project_id = project.id
    await make_tasks(A=1, B=1)

    async def cancelled_bump(project_id, expected):
        # The request is cancelled after the edge was flushed
        raise asyncio.CancelledError()

    monkeypatch.setattr(service.edges, "bump_graph_version", cancelled_bump)

    with pytest.raises(asyncio.CancelledError):
        await service.create_dependency(successor_id=tid("B"), predecessor_id=tid("A"))

    # Same session: a flushed but un-rolled-back edge would still be visible here
    assert await service.edges.load_edges(project_id, active_only=False) == []
    assert not locks.lock_for(project_id).locked()
