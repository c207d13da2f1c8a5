"""
Dependency service - the public API of the scheduling engine.

Combines the graph, cycle detector, CPM calculator, readiness analyzer and
optimizer for single and bulk operations.

Write path for every mutation:
1. Take the project's in-process lock (one writer per project)
2. Read the project's graph_version
3. Load the current graph and validate against it
4. Persist, then compare-and-swap graph_version -> graph_version + 1
5. Commit, release the lock, then publish change events (fire-and-forget)

Any failure before the commit rolls the session back, so a rejected request
never leaves a partial write behind.
"""

import asyncio
import uuid
import weakref
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Awaitable, Callable, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, get_settings
from app.exceptions import (
    CrossProjectDependencyError,
    CycleDetectedError,
    DuplicateDependencyError,
    NotFoundError,
    SelfDependencyError,
    TaskGraphException,
    ValidationFailedError,
)
from app.models import Dependency, DependencyType, Task
from app.repositories import EdgeStore, SqlEdgeStore, SqlTaskStore, TaskStore
from app.services import optimizer, readiness, risk
from app.services.critical_path import ScheduleSnapshot, calculate_schedule
from app.services.cycles import find_batch_cycle, find_cycle_path, find_cycles
from app.services.deadline import Deadline
from app.services.graph import DependencyGraph
from app.logging_config import get_logger

logger = get_logger(__name__)

# Marks an update argument the caller did not send; None clears a nullable field
UNSET: Any = object()


@dataclass(frozen=True)
class DependencySpec:
    """One entry of a bulk create request."""
    successor_id: uuid.UUID
    predecessor_id: uuid.UUID
    dependency_type: DependencyType = DependencyType.FINISH_TO_START
    lag_hours: float | None = None
    notes: str | None = None


@dataclass(frozen=True)
class DependencyEvent:
    """Change notification handed to the outbound notifier after a commit."""
    edge_id: uuid.UUID
    project_id: uuid.UUID
    change: str  # created | updated | removed | deactivated | reactivated


Notifier = Callable[[DependencyEvent], Awaitable[None]]


@dataclass
class DependencyValidationResult:
    valid: bool
    issues: list[str]
    cycles: list[list[uuid.UUID]]


class ProjectLockRegistry:
    """
    One asyncio.Lock per project id.

    Locks live in a WeakValueDictionary: a lock disappears once no coroutine
    holds or waits on it, so the registry does not grow with the number of
    projects ever touched.
    """

    def __init__(self):
        self._locks: weakref.WeakValueDictionary[uuid.UUID, asyncio.Lock] = weakref.WeakValueDictionary()

    def lock_for(self, project_id: uuid.UUID) -> asyncio.Lock:
        lock = self._locks.get(project_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[project_id] = lock
        return lock


project_locks = ProjectLockRegistry()

# Strong references to in-flight notifications until they finish
_pending_notifications: set[asyncio.Task] = set()


class DependencyService:
    """Facade over the dependency engine for one unit of work (one session)."""

    def __init__(
        self,
        tasks: TaskStore,
        edges: EdgeStore,
        settings: Settings | None = None,
        locks: ProjectLockRegistry | None = None,
        notifier: Notifier | None = None,
    ):
        self.tasks = tasks
        self.edges = edges
        self.settings = settings or get_settings()
        self.locks = locks or project_locks
        self.notifier = notifier

    @classmethod
    def from_session(cls, session: AsyncSession, **kwargs) -> "DependencyService":
        return cls(SqlTaskStore(session), SqlEdgeStore(session), **kwargs)

    # =========================================================================
    # Internal helpers
    # =========================================================================

    def _deadline(self, deadline: Deadline | None = None) -> Deadline | None:
        if deadline is not None:
            return deadline
        return Deadline.from_timeout(self.settings.graph_timeout_seconds)

    def _duration(self, task: Task) -> float:
        if task.estimated_duration_hours is None:
            return self.settings.default_task_duration_hours
        return task.estimated_duration_hours

    def _durations(self, tasks: Sequence[Task]) -> dict[uuid.UUID, float]:
        return {task.id: self._duration(task) for task in tasks}

    async def _load_graph(
        self,
        project_id: uuid.UUID,
        include_inactive: bool = False,
    ) -> tuple[list[Task], DependencyGraph]:
        await self.tasks.get_project(project_id)
        tasks = await self.tasks.get_tasks_by_project(project_id)
        edges = await self.edges.load_edges(project_id, active_only=not include_inactive)
        graph = DependencyGraph.from_records(project_id, [task.id for task in tasks], edges)
        return tasks, graph

    async def _schedule(
        self,
        tasks: list[Task],
        graph: DependencyGraph,
        deadline: Deadline | None = None,
    ) -> ScheduleSnapshot:
        return calculate_schedule(
            graph,
            self._durations(tasks),
            self.settings.float_tolerance,
            self._deadline(deadline),
            self.settings.max_critical_paths,
        )

    @asynccontextmanager
    async def _mutation(self, project_id: uuid.UUID) -> AsyncIterator[list[DependencyEvent]]:
        """Serialize, version-guard and commit one mutation of a project's graph."""
        events: list[DependencyEvent] = []
        async with self.locks.lock_for(project_id):
            try:
                version = await self.edges.get_graph_version(project_id)
                yield events
                await self.edges.bump_graph_version(project_id, version)
                await self.edges.commit()
            except BaseException:
                # Cancellation included; flushed writes must not outlive the lock
                await self.edges.rollback()
                raise
        self._notify(events)

    def _notify(self, events: list[DependencyEvent]) -> None:
        if self.notifier is None:
            return
        for event in events:
            task = asyncio.create_task(self._deliver(event))
            _pending_notifications.add(task)
            task.add_done_callback(_pending_notifications.discard)

    async def _deliver(self, event: DependencyEvent) -> None:
        try:
            await self.notifier(event)
        except Exception:
            # Notifications must never fail the operation that produced them
            logger.warning(
                f"Failed to publish '{event.change}' event for dependency {event.edge_id}",
                exc_info=True,
            )

    @staticmethod
    def _check_endpoints(predecessor: Task, successor: Task) -> None:
        if predecessor.id == successor.id:
            logger.warning(f"Self-dependency rejected: {predecessor.id}")
            raise SelfDependencyError(predecessor.id)
        if predecessor.project_id != successor.project_id:
            logger.warning(
                f"Cross-project dependency rejected: "
                f"{predecessor.project_id} -> {successor.project_id}"
            )
            raise CrossProjectDependencyError(predecessor.project_id, successor.project_id)

    def _check_against_graph(
        self,
        graph: DependencyGraph,
        predecessor_id: uuid.UUID,
        successor_id: uuid.UUID,
        deadline: Deadline | None,
    ) -> None:
        if graph.active_edge_between(predecessor_id, successor_id) is not None:
            logger.warning(f"Duplicate dependency rejected: {predecessor_id} -> {successor_id}")
            raise DuplicateDependencyError(predecessor_id, successor_id)
        cycle = find_cycle_path(graph, predecessor_id, successor_id, deadline)
        if cycle is not None:
            logger.warning(
                f"Cycle detected: {predecessor_id} -> {successor_id} would create a cycle"
            )
            raise CycleDetectedError(predecessor_id, successor_id, cycle)

    @staticmethod
    def _diagnostic(index: int, exc: TaskGraphException) -> dict:
        msg = exc.details[0]["msg"] if exc.details else exc.message
        return {"loc": ["body", index], "msg": msg, "type": exc.error_code}

    # =========================================================================
    # Basic dependency management
    # =========================================================================

    async def create_dependency(
        self,
        successor_id: uuid.UUID,
        predecessor_id: uuid.UUID,
        dependency_type: DependencyType = DependencyType.FINISH_TO_START,
        lag_hours: float | None = None,
        notes: str | None = None,
    ) -> Dependency:
        """
        Create a dependency (edge in the task DAG).

        Validates that both tasks exist, are different and share a project,
        that no active edge already links them and that the edge would not
        close a cycle. Nothing is written when any check fails.
        """
        logger.info(f"Creating dependency: {predecessor_id} -> {successor_id} ({dependency_type.value})")

        successor = await self.tasks.get_task(successor_id)
        predecessor = await self.tasks.get_task(predecessor_id)
        self._check_endpoints(predecessor, successor)

        project_id = successor.project_id
        async with self._mutation(project_id) as events:
            _, graph = await self._load_graph(project_id)
            self._check_against_graph(graph, predecessor_id, successor_id, self._deadline())

            dependency = Dependency(
                project_id=project_id,
                predecessor_id=predecessor_id,
                successor_id=successor_id,
                dependency_type=dependency_type,
                lag_hours=lag_hours or 0.0,
                notes=notes,
            )
            await self.edges.save_edge(dependency)
            events.append(DependencyEvent(dependency.id, project_id, "created"))

        logger.info(
            f"Created dependency: {predecessor.title} -> {successor.title} "
            f"(project={project_id})"
        )
        return dependency

    async def create_dependencies(self, items: Sequence[DependencySpec]) -> list[Dependency]:
        """
        Create a batch of dependencies, all or nothing.

        The batch is validated as a whole: a cycle formed only by edges of
        the batch is rejected even though each edge alone would be fine.
        Raises ValidationFailedError with one diagnostic per failing entry.
        """
        if not items:
            return []

        logger.info(f"Creating {len(items)} dependencies in bulk")

        errors: list[dict] = []
        known: dict[uuid.UUID, Task] = {}
        candidates: list[tuple[int, DependencySpec, Task]] = []
        project_id: uuid.UUID | None = None

        for index, item in enumerate(items):
            try:
                for task_id in (item.successor_id, item.predecessor_id):
                    if task_id not in known:
                        known[task_id] = await self.tasks.get_task(task_id)
                successor = known[item.successor_id]
                self._check_endpoints(known[item.predecessor_id], successor)
                if project_id is not None and successor.project_id != project_id:
                    raise CrossProjectDependencyError(project_id, successor.project_id)
            except TaskGraphException as exc:
                errors.append(self._diagnostic(index, exc))
                continue
            project_id = successor.project_id
            candidates.append((index, item, successor))

        if project_id is None:
            raise ValidationFailedError(
                f"All {len(items)} dependencies are invalid; nothing was created",
                details=errors,
            )

        created: list[Dependency] = []
        async with self._mutation(project_id) as events:
            _, graph = await self._load_graph(project_id)

            pending: list[tuple[int, Dependency]] = []
            seen: set[tuple[uuid.UUID, uuid.UUID]] = set()
            for index, item, _ in candidates:
                pair = (item.predecessor_id, item.successor_id)
                if pair in seen or graph.active_edge_between(*pair) is not None:
                    errors.append(self._diagnostic(index, DuplicateDependencyError(*pair)))
                    continue
                seen.add(pair)
                pending.append((index, Dependency(
                    project_id=project_id,
                    predecessor_id=item.predecessor_id,
                    successor_id=item.successor_id,
                    dependency_type=item.dependency_type,
                    lag_hours=item.lag_hours or 0.0,
                    notes=item.notes,
                )))

            closing = find_batch_cycle(graph, [edge for _, edge in pending], self._deadline())
            if closing is not None:
                position, cycle = closing
                index, edge = pending[position]
                errors.append(self._diagnostic(
                    index,
                    CycleDetectedError(edge.predecessor_id, edge.successor_id, cycle),
                ))

            if errors:
                errors.sort(key=lambda detail: detail["loc"][1])
                logger.warning(f"Bulk dependency creation rejected: {len(errors)} invalid entries")
                raise ValidationFailedError(
                    f"{len(errors)} of {len(items)} dependencies are invalid; nothing was created",
                    details=errors,
                )

            for _, edge in pending:
                await self.edges.save_edge(edge)
                events.append(DependencyEvent(edge.id, project_id, "created"))
                created.append(edge)

        logger.info(f"Created {len(created)} dependencies in project {project_id}")
        return created

    async def update_dependency(
        self,
        dependency_id: uuid.UUID,
        dependency_type: DependencyType | None = None,
        lag_hours: float | None = None,
        notes: str | None = UNSET,
    ) -> Dependency:
        """
        Update kind, lag or notes. Endpoints never change, so no cycle check.

        None leaves the type and lag unchanged; notes are only touched when
        passed, and notes=None clears them.
        """
        dependency = await self.edges.get_edge(dependency_id)
        if dependency is None:
            raise NotFoundError("Dependency", dependency_id)

        async with self._mutation(dependency.project_id) as events:
            if dependency_type is not None:
                dependency.dependency_type = dependency_type
            if lag_hours is not None:
                dependency.lag_hours = lag_hours
            if notes is not UNSET:
                dependency.notes = notes
            await self.edges.save_edge(dependency)
            events.append(DependencyEvent(dependency.id, dependency.project_id, "updated"))

        logger.info(f"Updated dependency {dependency_id}")
        return dependency

    async def remove_dependency(self, dependency_id: uuid.UUID) -> bool:
        """Hard-delete a dependency. Returns False if it was already gone."""
        dependency = await self.edges.get_edge(dependency_id)
        if dependency is None:
            logger.debug(f"Dependency {dependency_id} already removed")
            return False

        project_id = dependency.project_id
        async with self._mutation(project_id) as events:
            removed = await self.edges.delete_edge(dependency_id)
            if removed:
                events.append(DependencyEvent(dependency_id, project_id, "removed"))

        if removed:
            logger.info(f"Removed dependency {dependency_id}")
        return removed

    async def remove_dependencies(self, dependency_ids: Sequence[uuid.UUID]) -> int:
        """Remove many dependencies; ids that are already gone are skipped."""
        removed = 0
        for dependency_id in dict.fromkeys(dependency_ids):
            if await self.remove_dependency(dependency_id):
                removed += 1
        logger.info(f"Bulk removal: {removed} of {len(dependency_ids)} dependencies removed")
        return removed

    async def remove_dependency_between(
        self,
        successor_id: uuid.UUID,
        predecessor_id: uuid.UUID,
    ) -> bool:
        successor = await self.tasks.get_task(successor_id)
        _, graph = await self._load_graph(successor.project_id)
        dependency = graph.active_edge_between(predecessor_id, successor_id)
        if dependency is None:
            return False
        return await self.remove_dependency(dependency.id)

    async def find_dependency(self, dependency_id: uuid.UUID) -> Dependency | None:
        return await self.edges.get_edge(dependency_id)

    # =========================================================================
    # Dependency analysis and querying
    # =========================================================================

    async def get_project_dependencies(
        self,
        project_id: uuid.UUID,
        active_only: bool = True,
    ) -> list[Dependency]:
        await self.tasks.get_project(project_id)
        return await self.edges.load_edges(project_id, active_only=active_only)

    async def get_task_dependencies(self, task_id: uuid.UUID) -> list[Dependency]:
        """Active edges the task depends on (task is the successor)."""
        await self.tasks.get_task(task_id)
        edges = await self.edges.load_edges_for_task(task_id)
        return [edge for edge in edges if edge.successor_id == task_id]

    async def get_task_dependents(self, task_id: uuid.UUID) -> list[Dependency]:
        """Active edges that depend on the task (task is the predecessor)."""
        await self.tasks.get_task(task_id)
        edges = await self.edges.load_edges_for_task(task_id)
        return [edge for edge in edges if edge.predecessor_id == task_id]

    async def get_all_prerequisites(self, task_id: uuid.UUID) -> list[uuid.UUID]:
        task = await self.tasks.get_task(task_id)
        _, graph = await self._load_graph(task.project_id)
        return sorted(graph.ancestors(task_id))

    async def get_all_dependents(self, task_id: uuid.UUID) -> list[uuid.UUID]:
        task = await self.tasks.get_task(task_id)
        _, graph = await self._load_graph(task.project_id)
        return sorted(graph.descendants(task_id))

    async def find_shortest_dependency_path(
        self,
        from_task_id: uuid.UUID,
        to_task_id: uuid.UUID,
    ) -> list[uuid.UUID]:
        from_task = await self.tasks.get_task(from_task_id)
        to_task = await self.tasks.get_task(to_task_id)
        if from_task.project_id != to_task.project_id:
            return []
        _, graph = await self._load_graph(from_task.project_id)
        return graph.shortest_path(from_task_id, to_task_id)

    async def can_task_start(self, task_id: uuid.UUID) -> bool:
        task = await self.tasks.get_task(task_id)
        tasks, graph = await self._load_graph(task.project_id)
        return readiness.can_task_start(task, graph, {t.id: t for t in tasks})

    async def get_blocking_dependencies(self, task_id: uuid.UUID) -> list[Dependency]:
        task = await self.tasks.get_task(task_id)
        tasks, graph = await self._load_graph(task.project_id)
        return readiness.blocking_dependencies(task, graph, {t.id: t for t in tasks})

    # =========================================================================
    # Cycle detection and validation
    # =========================================================================

    async def would_create_cycle(
        self,
        successor_id: uuid.UUID,
        predecessor_id: uuid.UUID,
    ) -> bool:
        successor = await self.tasks.get_task(successor_id)
        _, graph = await self._load_graph(successor.project_id)
        return find_cycle_path(graph, predecessor_id, successor_id, self._deadline()) is not None

    async def detect_cycles(
        self,
        project_id: uuid.UUID,
        deadline: Deadline | None = None,
    ) -> list[list[uuid.UUID]]:
        _, graph = await self._load_graph(project_id)
        return find_cycles(graph, self._deadline(deadline))

    async def validate_dependency_graph(
        self,
        project_id: uuid.UUID,
        deadline: Deadline | None = None,
    ) -> DependencyValidationResult:
        """
        Diagnose the stored graph of a project.

        Reports cycles, self-references, edges whose endpoints are not tasks
        of the project (orphaned or cross-project) and duplicate active
        edges. Intended for data imported around the normal write path.
        """
        await self.tasks.get_project(project_id)
        tasks = await self.tasks.get_tasks_by_project(project_id)
        edges = await self.edges.load_edges(project_id, active_only=True)
        task_ids = {task.id for task in tasks}

        issues: list[str] = []
        graph = DependencyGraph(project_id, task_ids)
        pair_counts: dict[tuple[uuid.UUID, uuid.UUID], int] = {}
        for edge in edges:
            if edge.predecessor_id == edge.successor_id:
                issues.append(f"Dependency {edge.id} makes task {edge.successor_id} depend on itself")
            if edge.predecessor_id not in task_ids or edge.successor_id not in task_ids:
                issues.append(f"Dependency {edge.id} references a task outside project {project_id}")
                continue
            pair_counts[edge.pair] = pair_counts.get(edge.pair, 0) + 1
            graph.add_edge(edge)

        for (predecessor_id, successor_id), count in sorted(pair_counts.items()):
            if count > 1:
                issues.append(
                    f"Found {count} active dependencies between {predecessor_id} and {successor_id}"
                )

        cycles = find_cycles(graph, self._deadline(deadline))
        if cycles:
            issues.insert(0, f"Found {len(cycles)} circular dependency cycle(s)")

        return DependencyValidationResult(valid=not issues, issues=issues, cycles=cycles)

    # =========================================================================
    # Critical path analysis
    # =========================================================================

    async def calculate_critical_path(
        self,
        project_id: uuid.UUID,
        deadline: Deadline | None = None,
    ) -> ScheduleSnapshot:
        """Full CPM analysis. Raises GraphInconsistentError on a cyclic graph."""
        tasks, graph = await self._load_graph(project_id)
        return await self._schedule(tasks, graph, deadline)

    async def calculate_task_float(
        self,
        task_id: uuid.UUID,
        deadline: Deadline | None = None,
    ) -> float:
        task = await self.tasks.get_task(task_id)
        snapshot = await self.calculate_critical_path(task.project_id, deadline)
        return snapshot.float_of(task_id)

    async def get_critical_path_dependencies(self, project_id: uuid.UUID) -> list[Dependency]:
        tasks, graph = await self._load_graph(project_id)
        snapshot = await self._schedule(tasks, graph)
        return [graph.get_edge(edge_id) for edge_id in snapshot.critical_edge_ids]

    async def update_critical_path_markers(self, project_id: uuid.UUID) -> int:
        """Persist on_critical_path for every edge of the project. Returns the critical count."""
        marked = 0
        async with self._mutation(project_id):
            tasks, graph = await self._load_graph(project_id, include_inactive=True)
            snapshot = await self._schedule(tasks, graph)
            critical = set(snapshot.critical_edge_ids)
            for edge in graph.all_edges(include_inactive=True):
                flag = edge.id in critical
                if edge.on_critical_path != flag:
                    edge.on_critical_path = flag
                    await self.edges.save_edge(edge)
                marked += flag
        logger.info(f"Marked {marked} critical dependencies in project {project_id}")
        return marked

    # =========================================================================
    # Project-level operations
    # =========================================================================

    async def get_dependency_statistics(self, project_id: uuid.UUID) -> dict[DependencyType, int]:
        """Count of active dependencies per type; every type is present."""
        edges = await self.get_project_dependencies(project_id, active_only=True)
        statistics = {dependency_type: 0 for dependency_type in DependencyType}
        for edge in edges:
            statistics[edge.dependency_type] += 1
        return statistics

    async def deactivate_dependencies_for_task(self, task_id: uuid.UUID) -> int:
        task = await self.tasks.get_task(task_id)
        async with self._mutation(task.project_id) as events:
            edges = await self.edges.load_edges_for_task(task_id, active_only=True)
            for edge in edges:
                edge.active = False
                edge.on_critical_path = False
                await self.edges.save_edge(edge)
                events.append(DependencyEvent(edge.id, task.project_id, "deactivated"))
        logger.info(f"Deactivated {len(edges)} dependencies of task {task_id}")
        return len(edges)

    async def reactivate_dependencies_for_task(self, task_id: uuid.UUID) -> int:
        """
        Reactivate a task's inactive dependencies.

        Each edge is checked like a new one; edges that would now duplicate an
        active edge, close a cycle or point outside the project stay inactive.
        """
        task = await self.tasks.get_task(task_id)
        restored = 0
        async with self._mutation(task.project_id) as events:
            tasks, graph = await self._load_graph(task.project_id)
            task_ids = {t.id for t in tasks}
            deadline = self._deadline()
            edges = await self.edges.load_edges_for_task(task_id, active_only=False)
            for edge in edges:
                if edge.active:
                    continue
                if edge.predecessor_id not in task_ids or edge.successor_id not in task_ids:
                    logger.warning(f"Leaving dependency {edge.id} inactive: endpoint outside project")
                    continue
                if graph.active_edge_between(*edge.pair) is not None:
                    logger.warning(f"Leaving dependency {edge.id} inactive: duplicate of an active edge")
                    continue
                if find_cycle_path(graph, edge.predecessor_id, edge.successor_id, deadline) is not None:
                    logger.warning(f"Leaving dependency {edge.id} inactive: would create a cycle")
                    continue
                edge.active = True
                await self.edges.save_edge(edge)
                graph.add_edge(edge)
                events.append(DependencyEvent(edge.id, task.project_id, "reactivated"))
                restored += 1
        logger.info(f"Reactivated {restored} dependencies of task {task_id}")
        return restored

    async def remove_all_dependencies_for_task(self, task_id: uuid.UUID) -> int:
        task = await self.tasks.get_task(task_id)
        removed = 0
        async with self._mutation(task.project_id) as events:
            edges = await self.edges.load_edges_for_task(task_id, active_only=False)
            for edge in edges:
                if await self.edges.delete_edge(edge.id):
                    events.append(DependencyEvent(edge.id, task.project_id, "removed"))
                    removed += 1
        logger.info(f"Removed {removed} dependencies of task {task_id}")
        return removed

    async def update_dependency_types(
        self,
        dependency_ids: Sequence[uuid.UUID],
        new_type: DependencyType,
    ) -> int:
        """Change the type of many dependencies; unknown ids are skipped."""
        updated = 0
        for dependency_id in dict.fromkeys(dependency_ids):
            if await self.edges.get_edge(dependency_id) is None:
                logger.debug(f"Skipping type update for missing dependency {dependency_id}")
                continue
            await self.update_dependency(dependency_id, dependency_type=new_type)
            updated += 1
        return updated

    # =========================================================================
    # Readiness, optimization and risk
    # =========================================================================

    async def get_blocked_tasks(self, project_id: uuid.UUID) -> dict[uuid.UUID, list[Dependency]]:
        tasks, graph = await self._load_graph(project_id)
        return readiness.blocked_tasks(tasks, graph)

    async def get_tasks_ready_to_start(self, project_id: uuid.UUID) -> list[Task]:
        tasks, graph = await self._load_graph(project_id)
        return readiness.tasks_ready_to_start(tasks, graph)

    async def identify_external_constraints(
        self,
        project_id: uuid.UUID,
        min_lag_hours: float | None = None,
    ) -> list[Dependency]:
        """Active dependencies whose lag suggests an outside lead time (e.g. shipping)."""
        if min_lag_hours is None:
            min_lag_hours = self.settings.external_constraint_lag_hours
        edges = await self.get_project_dependencies(project_id, active_only=True)
        return [edge for edge in edges if (edge.lag_hours or 0.0) >= min_lag_hours]

    async def get_most_connected_tasks(self, project_id: uuid.UUID, limit: int = 5) -> list[Task]:
        tasks, graph = await self._load_graph(project_id)
        connected = [task for task in tasks if graph.degree(task.id) > 0]
        connected.sort(key=lambda task: (-graph.degree(task.id), task.id))
        return connected[:limit]

    async def optimize_schedule(
        self,
        project_id: uuid.UUID,
        deadline: Deadline | None = None,
    ) -> optimizer.ScheduleOptimization:
        """Advisory only. Raises GraphInconsistentError on a cyclic graph."""
        deadline = self._deadline(deadline)
        tasks, graph = await self._load_graph(project_id)
        snapshot = await self._schedule(tasks, graph, deadline)
        return optimizer.optimize_schedule(
            graph,
            {task.id: task for task in tasks},
            self._durations(tasks),
            snapshot,
            self.settings,
            deadline,
        )

    async def assess_project_risk(
        self,
        project_id: uuid.UUID,
        deadline: Deadline | None = None,
    ) -> risk.ProjectRiskAssessment:
        deadline = self._deadline(deadline)
        tasks, graph = await self._load_graph(project_id)
        cycles = find_cycles(graph, deadline)
        # A cyclic graph has no schedule; the cycles alone make it CRITICAL
        snapshot = None if cycles else await self._schedule(tasks, graph, deadline)
        external = [
            edge for edge in graph.all_edges()
            if (edge.lag_hours or 0.0) >= self.settings.review_lag_hours
        ]
        return risk.assess_project_risk(
            task_count=len(tasks),
            cycles=cycles,
            snapshot=snapshot,
            blocked=readiness.blocked_tasks(tasks, graph),
            external_constraints=external,
        )
