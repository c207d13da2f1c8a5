"""
Cycle detection for dependency validation.

Two questions are answered here:
- Would this candidate edge create a cycle? (cheap single-edge check, used on
  every write)
- Does the graph already contain cycles? (full three-colour DFS, used for
  diagnostics and validation reports)

Cycles are reported as ordered task-id sequences in which every task depends
on the one before it and the first task depends on the last one.
"""

import uuid
from collections import deque
from typing import Iterable

from app.models import Dependency
from app.services.deadline import Deadline, check_deadline
from app.services.graph import DependencyGraph
from app.logging_config import get_logger

logger = get_logger(__name__)

_WHITE, _GREY, _BLACK = 0, 1, 2


def find_cycle_path(
    graph: DependencyGraph,
    predecessor_id: uuid.UUID,
    successor_id: uuid.UUID,
    deadline: Deadline | None = None,
) -> list[uuid.UUID] | None:
    """
    Return the cycle that predecessor -> successor would close, or None.

    A cycle exists iff successor already reaches predecessor through existing
    edges. The search is a BFS from successor along outgoing edges that stops
    as soon as predecessor is reached, so the reported cycle is the shortest
    one through the candidate edge: [predecessor, successor, ..., x] where
    x -> predecessor is an existing edge.
    """
    if predecessor_id == successor_id:
        return [predecessor_id]
    if successor_id not in graph or predecessor_id not in graph:
        return None

    parents: dict[uuid.UUID, uuid.UUID | None] = {successor_id: None}
    queue = deque([successor_id])
    while queue:
        check_deadline(deadline, "Cycle check")
        node = queue.popleft()
        for child in graph.successors(node):
            if child in parents:
                continue
            parents[child] = node
            if child == predecessor_id:
                # Walk back successor ~> ... ~> node, then prepend predecessor
                chain = []
                step: uuid.UUID | None = node
                while step is not None:
                    chain.append(step)
                    step = parents[step]
                chain.reverse()
                return [predecessor_id, *chain]
            queue.append(child)
    return None


def would_create_cycle(
    graph: DependencyGraph,
    predecessor_id: uuid.UUID,
    successor_id: uuid.UUID,
    deadline: Deadline | None = None,
) -> bool:
    """True iff adding predecessor -> successor to graph creates a cycle."""
    return find_cycle_path(graph, predecessor_id, successor_id, deadline) is not None


def find_batch_cycle(
    graph: DependencyGraph,
    candidates: Iterable[Dependency],
    deadline: Deadline | None = None,
) -> tuple[int, list[uuid.UUID]] | None:
    """
    Check a batch of new edges as if they were all added together.

    Candidates are added one at a time to a scratch copy of the graph, so a
    cycle formed only by two new edges is caught by whichever edge closes it.
    Returns (index of the closing candidate, cycle) or None. The graph passed
    in is never modified.
    """
    scratch = graph.copy()
    for index, edge in enumerate(candidates):
        cycle = find_cycle_path(scratch, edge.predecessor_id, edge.successor_id, deadline)
        if cycle is not None:
            return index, cycle
        scratch.add_edge(edge)
    return None


def find_cycles(
    graph: DependencyGraph,
    deadline: Deadline | None = None,
) -> list[list[uuid.UUID]]:
    """
    Report every cycle reachable by a full DFS over the active edges.

    Three-colour marking: white = unvisited, grey = on the current DFS
    stack, black = finished. Each edge into a grey node is a back edge and
    yields one cycle, cut out of the DFS stack from the repeated node onward.
    Roots and children are visited in ascending id order so the report is
    deterministic. Independent cycles in disconnected parts of the graph are
    all reported.
    """
    color = {task_id: _WHITE for task_id in graph.task_ids}
    cycles: list[list[uuid.UUID]] = []

    for root in graph.task_ids:
        if color[root] != _WHITE:
            continue

        color[root] = _GREY
        path = [root]
        stack = [(root, iter(graph.successors(root)))]

        while stack:
            check_deadline(deadline, "Cycle scan")
            node, children = stack[-1]
            descended = False
            for child in children:
                state = color.get(child, _WHITE)
                if state == _WHITE:
                    color[child] = _GREY
                    path.append(child)
                    stack.append((child, iter(graph.successors(child))))
                    descended = True
                    break
                if state == _GREY:
                    cycles.append(path[path.index(child):])
            if not descended:
                stack.pop()
                path.pop()
                color[node] = _BLACK

    if cycles:
        logger.warning(f"Found {len(cycles)} cycle(s) in project {graph.project_id}")
    return cycles
