"""
Readiness and blocking analysis.

Works from completion state only, not from CPM dates: a dependency whose
predecessor event is "finish" (FINISH_TO_START, FINISH_TO_FINISH) is
satisfied once the predecessor is completed; one whose predecessor event is
"start" (START_TO_START, START_TO_FINISH) is satisfied once the predecessor
has started (progress > 0 or completed).
"""

import uuid
from typing import Iterable, Mapping

from app.exceptions import NotFoundError
from app.models import Dependency, Task
from app.services.graph import DependencyGraph


def is_satisfied(edge: Dependency, predecessor: Task) -> bool:
    """Whether predecessor's current state meets edge's completion requirement."""
    if not edge.active:
        return True
    if edge.dependency_type.predecessor_event == "finish":
        return predecessor.completed
    return predecessor.started


def blocking_dependencies(
    task: Task,
    graph: DependencyGraph,
    tasks_by_id: Mapping[uuid.UUID, Task],
) -> list[Dependency]:
    """Incoming active edges whose predecessor does not yet satisfy them."""
    blocking = []
    for edge in graph.edges_to(task.id):
        predecessor = tasks_by_id.get(edge.predecessor_id)
        if predecessor is None:
            raise NotFoundError("Task", edge.predecessor_id)
        if not is_satisfied(edge, predecessor):
            blocking.append(edge)
    return blocking


def can_task_start(
    task: Task,
    graph: DependencyGraph,
    tasks_by_id: Mapping[uuid.UUID, Task],
) -> bool:
    if task.completed:
        return False
    return not blocking_dependencies(task, graph, tasks_by_id)


def blocked_tasks(
    tasks: Iterable[Task],
    graph: DependencyGraph,
) -> dict[uuid.UUID, list[Dependency]]:
    """
    Map every unfinished task that cannot start to the edges blocking it.

    Completed tasks are not startable but are not blocked either, so they
    never appear here.
    """
    tasks_by_id = {task.id: task for task in tasks}
    blocked: dict[uuid.UUID, list[Dependency]] = {}
    for task_id in sorted(tasks_by_id):
        task = tasks_by_id[task_id]
        if task.completed:
            continue
        blocking = blocking_dependencies(task, graph, tasks_by_id)
        if blocking:
            blocked[task_id] = blocking
    return blocked


def tasks_ready_to_start(
    tasks: Iterable[Task],
    graph: DependencyGraph,
) -> list[Task]:
    """Startable tasks that have not been started yet, in ascending id order."""
    tasks_by_id = {task.id: task for task in tasks}
    return [
        tasks_by_id[task_id]
        for task_id in sorted(tasks_by_id)
        if tasks_by_id[task_id].progress == 0
        and can_task_start(tasks_by_id[task_id], graph, tasks_by_id)
    ]
