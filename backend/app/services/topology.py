"""
Topological ordering of a project's tasks (Kahn's algorithm).

The order is the precondition for every CPM pass. Ties between tasks that
become ready at the same time are broken by ascending task id, so the same
graph always yields the same order.
"""

import heapq
import uuid

from app.exceptions import GraphInconsistentError
from app.services.deadline import Deadline, check_deadline
from app.services.graph import DependencyGraph
from app.logging_config import get_logger

logger = get_logger(__name__)


def topological_order(
    graph: DependencyGraph,
    deadline: Deadline | None = None,
) -> list[uuid.UUID]:
    """
    Return task ids so that every active edge points forward in the list.

    The in-degree check is repeated here even though writes are gated by the
    cycle detector: edges imported or migrated around the service can still
    leave a cycle behind. Raises GraphInconsistentError listing every task
    that could not be ordered.
    """
    digraph = graph.digraph
    # Parallel edges are counted individually and released individually
    in_degree = {task_id: digraph.in_degree(task_id) for task_id in digraph.nodes}

    ready = [task_id for task_id, degree in in_degree.items() if degree == 0]
    heapq.heapify(ready)

    order: list[uuid.UUID] = []
    while ready:
        check_deadline(deadline, "Topological sort")
        task_id = heapq.heappop(ready)
        order.append(task_id)
        for _, successor_id in digraph.out_edges(task_id):
            in_degree[successor_id] -= 1
            if in_degree[successor_id] == 0:
                heapq.heappush(ready, successor_id)

    if len(order) != len(in_degree):
        unresolved = [task_id for task_id, degree in in_degree.items() if degree > 0]
        logger.error(
            f"Cycle detected in graph of project {graph.project_id}: "
            f"{len(unresolved)} task(s) cannot be ordered"
        )
        raise GraphInconsistentError(unresolved)

    return order
