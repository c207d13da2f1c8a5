"""
Critical Path Method (CPM) implementation.

Calculates, in hours from the project epoch (0):
- Forward pass: Earliest Start (ES), Earliest Finish (EF)
- Backward pass: Latest Start (LS), Latest Finish (LF)
- Float: LS - ES (or LF - EF)
- Critical path: zero-float tasks joined by zero-slack edges

Each dependency type maps to one forward rule (the earliest start it allows
the successor) and one backward rule (the latest finish it allows the
predecessor). Lag is added on top of the rule and may be negative.
"""

import uuid
from dataclasses import dataclass, field
from typing import Callable, Mapping

from app.config import get_settings
from app.exceptions import NotFoundError
from app.models import Dependency, DependencyType
from app.services.deadline import Deadline, check_deadline
from app.services.graph import DependencyGraph
from app.services.topology import topological_order
from app.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class TaskAnalysis:
    """Analysis results for a single task."""
    task_id: uuid.UUID
    duration_hours: float
    # Forward pass results
    earliest_start: float
    earliest_finish: float
    # Backward pass results
    latest_start: float
    latest_finish: float
    # Float
    total_float: float  # Hours of float (0 = critical)
    is_critical: bool


@dataclass
class ScheduleSnapshot:
    """Complete CPM analysis for a project. Derived data, never persisted."""
    project_id: uuid.UUID | None
    total_duration: float
    task_analyses: list[TaskAnalysis]  # Topological order
    critical_path: list[uuid.UUID]  # Longest zero-float chain
    critical_paths: list[list[uuid.UUID]]  # Zero-float chains, capped
    critical_task_ids: list[uuid.UUID]
    critical_edge_ids: list[uuid.UUID]
    _by_task: dict[uuid.UUID, TaskAnalysis] = field(default_factory=dict, repr=False)

    def __post_init__(self):
        self._by_task = {analysis.task_id: analysis for analysis in self.task_analyses}

    def analysis_for(self, task_id: uuid.UUID) -> TaskAnalysis:
        try:
            return self._by_task[task_id]
        except KeyError:
            raise NotFoundError("Task", task_id) from None

    def float_of(self, task_id: uuid.UUID) -> float:
        return self.analysis_for(task_id).total_float

    @property
    def earliest_start(self) -> dict[uuid.UUID, float]:
        return {a.task_id: a.earliest_start for a in self.task_analyses}

    @property
    def earliest_finish(self) -> dict[uuid.UUID, float]:
        return {a.task_id: a.earliest_finish for a in self.task_analyses}

    @property
    def latest_start(self) -> dict[uuid.UUID, float]:
        return {a.task_id: a.latest_start for a in self.task_analyses}

    @property
    def latest_finish(self) -> dict[uuid.UUID, float]:
        return {a.task_id: a.latest_finish for a in self.task_analyses}

    @property
    def task_floats(self) -> dict[uuid.UUID, float]:
        return {a.task_id: a.total_float for a in self.task_analyses}


# (predecessor ES, predecessor EF, lag, successor duration) -> successor ES bound
ForwardRule = Callable[[float, float, float, float], float]
# (successor LS, successor LF, lag, predecessor duration) -> predecessor LF bound
BackwardRule = Callable[[float, float, float, float], float]

FORWARD_RULES: dict[DependencyType, ForwardRule] = {
    DependencyType.FINISH_TO_START: lambda es, ef, lag, dur: ef + lag,
    DependencyType.START_TO_START: lambda es, ef, lag, dur: es + lag,
    DependencyType.FINISH_TO_FINISH: lambda es, ef, lag, dur: ef + lag - dur,
    DependencyType.START_TO_FINISH: lambda es, ef, lag, dur: es + lag - dur,
}

BACKWARD_RULES: dict[DependencyType, BackwardRule] = {
    DependencyType.FINISH_TO_START: lambda ls, lf, lag, dur: ls - lag,
    DependencyType.START_TO_START: lambda ls, lf, lag, dur: ls - lag + dur,
    DependencyType.FINISH_TO_FINISH: lambda ls, lf, lag, dur: lf - lag,
    DependencyType.START_TO_FINISH: lambda ls, lf, lag, dur: lf - lag + dur,
}


def _round(value: float) -> float:
    # Sub-microhour noise from float arithmetic would break equality checks
    return round(value, 6)


def successor_start_bound(
    edge: Dependency,
    predecessor_es: float,
    predecessor_ef: float,
    successor_duration: float,
) -> float:
    """Earliest start this edge allows its successor."""
    rule = FORWARD_RULES[edge.dependency_type]
    return rule(predecessor_es, predecessor_ef, edge.lag_hours or 0.0, successor_duration)


def predecessor_finish_bound(
    edge: Dependency,
    successor_ls: float,
    successor_lf: float,
    predecessor_duration: float,
) -> float:
    """Latest finish this edge allows its predecessor."""
    rule = BACKWARD_RULES[edge.dependency_type]
    return rule(successor_ls, successor_lf, edge.lag_hours or 0.0, predecessor_duration)


def calculate_schedule(
    graph: DependencyGraph,
    durations: Mapping[uuid.UUID, float],
    tolerance: float | None = None,
    deadline: Deadline | None = None,
    max_chains: int | None = None,
) -> ScheduleSnapshot:
    """
    Run forward and backward CPM passes over the active edges of graph.

    Args:
        graph: The project's dependency graph
        durations: Duration in hours for every task in the graph
        tolerance: |float| at or below this counts as zero (settings default)
        deadline: Optional deadline polled between task visits
        max_chains: How many critical chains to list (settings default)

    Raises:
        GraphInconsistentError: the graph contains a cycle
        NotFoundError: an edge references a task with no known duration
    """
    if tolerance is None:
        tolerance = get_settings().float_tolerance
    if max_chains is None:
        max_chains = get_settings().max_critical_paths

    order = topological_order(graph, deadline)

    missing = [task_id for task_id in order if task_id not in durations]
    if missing:
        logger.error(f"Edges reference unknown tasks: {missing}")
        raise NotFoundError("Task", missing[0])

    es: dict[uuid.UUID, float] = {}
    ef: dict[uuid.UUID, float] = {}
    ls: dict[uuid.UUID, float] = {}
    lf: dict[uuid.UUID, float] = {}

    # =========================================================================
    # Forward Pass: Calculate ES and EF
    # =========================================================================
    for task_id in order:
        check_deadline(deadline, "Critical path forward pass")
        duration = durations[task_id]
        start = 0.0  # Project epoch; no task starts before it
        for edge in graph.edges_to(task_id):
            pred = edge.predecessor_id
            start = max(start, successor_start_bound(edge, es[pred], ef[pred], duration))
        es[task_id] = _round(start)
        ef[task_id] = _round(start + duration)

    total_duration = max(ef.values(), default=0.0)

    # =========================================================================
    # Backward Pass: Calculate LF and LS
    # =========================================================================
    for task_id in reversed(order):
        check_deadline(deadline, "Critical path backward pass")
        duration = durations[task_id]
        finish = total_duration
        for edge in graph.edges_from(task_id):
            succ = edge.successor_id
            finish = min(finish, predecessor_finish_bound(edge, ls[succ], lf[succ], duration))
        lf[task_id] = _round(finish)
        ls[task_id] = _round(finish - duration)

    # =========================================================================
    # Float, critical tasks and critical edges
    # =========================================================================
    task_analyses = []
    critical: set[uuid.UUID] = set()
    for task_id in order:
        total_float = _round(ls[task_id] - es[task_id])
        is_critical = abs(total_float) <= tolerance
        if is_critical:
            critical.add(task_id)
        task_analyses.append(TaskAnalysis(
            task_id=task_id,
            duration_hours=durations[task_id],
            earliest_start=es[task_id],
            earliest_finish=ef[task_id],
            latest_start=ls[task_id],
            latest_finish=lf[task_id],
            total_float=total_float,
            is_critical=is_critical,
        ))

    critical_edges: list[Dependency] = []
    for task_id in order:
        if task_id not in critical:
            continue
        for edge in graph.edges_from(task_id):
            succ = edge.successor_id
            if succ not in critical:
                continue
            # The edge must be the one that pins the successor's start
            bound = successor_start_bound(edge, es[task_id], ef[task_id], durations[succ])
            if abs(es[succ] - bound) <= tolerance:
                critical_edges.append(edge)

    primary = _longest_critical_chain(order, critical, critical_edges, durations)
    chains = _critical_chains(order, critical, critical_edges, max_chains, deadline)

    logger.debug(
        f"CPM for project {graph.project_id}: {len(order)} tasks, "
        f"duration={total_duration}h, critical={len(critical)}"
    )

    return ScheduleSnapshot(
        project_id=graph.project_id,
        total_duration=_round(total_duration),
        task_analyses=task_analyses,
        critical_path=primary,
        critical_paths=chains,
        critical_task_ids=[task_id for task_id in order if task_id in critical],
        critical_edge_ids=[edge.id for edge in critical_edges],
    )


def _longest_critical_chain(
    order: list[uuid.UUID],
    critical: set[uuid.UUID],
    critical_edges: list[Dependency],
    durations: Mapping[uuid.UUID, float],
) -> list[uuid.UUID]:
    """
    Longest-duration chain over the critical edges, in one topological sweep.

    The chain ends at a task with no critical successor, so zero-duration
    milestones stay on it. Remaining ties go to the smaller task id, both
    for the chain's end and for each step back along it.
    """
    incoming: dict[uuid.UUID, list[uuid.UUID]] = {task_id: [] for task_id in critical}
    has_outgoing: set[uuid.UUID] = set()
    for edge in critical_edges:
        incoming[edge.successor_id].append(edge.predecessor_id)
        has_outgoing.add(edge.predecessor_id)

    length: dict[uuid.UUID, float] = {}
    previous: dict[uuid.UUID, uuid.UUID | None] = {}
    for task_id in order:
        if task_id not in critical:
            continue
        best: uuid.UUID | None = None
        for pred in sorted(set(incoming[task_id])):
            if best is None or length[pred] > length[best]:
                best = pred
        previous[task_id] = best
        length[task_id] = durations[task_id] + (length[best] if best is not None else 0.0)

    if not length:
        return []
    end = min(
        (task_id for task_id in length if task_id not in has_outgoing),
        key=lambda task_id: (-length[task_id], task_id),
    )
    chain = [end]
    while previous[chain[-1]] is not None:
        chain.append(previous[chain[-1]])
    chain.reverse()
    return chain


def _critical_chains(
    order: list[uuid.UUID],
    critical: set[uuid.UUID],
    critical_edges: list[Dependency],
    limit: int,
    deadline: Deadline | None,
) -> list[list[uuid.UUID]]:
    """
    List up to limit chains of critical tasks joined by critical edges.

    A chain runs from a critical task with no critical incoming edge to one
    with no critical outgoing edge. A critical task with no critical edges
    at all is a chain of its own. Every critical task ends in a chain, so
    the depth-first walk reaches a new chain within one path length.
    """
    outgoing: dict[uuid.UUID, list[uuid.UUID]] = {task_id: [] for task_id in critical}
    has_incoming: set[uuid.UUID] = set()
    for edge in critical_edges:
        if edge.successor_id not in outgoing[edge.predecessor_id]:
            outgoing[edge.predecessor_id].append(edge.successor_id)
        has_incoming.add(edge.successor_id)
    for successors in outgoing.values():
        successors.sort()

    chains: list[list[uuid.UUID]] = []
    sources = [task_id for task_id in order if task_id in critical and task_id not in has_incoming]
    for source in sorted(sources):
        stack = [(source, [source])]
        while stack:
            if len(chains) >= limit:
                logger.debug(f"Critical chain listing stopped at {limit} chains")
                return chains
            check_deadline(deadline, "Critical chain enumeration")
            task_id, chain = stack.pop()
            successors = outgoing[task_id]
            if not successors:
                chains.append(chain)
                continue
            # Reversed so that the smallest id is expanded first
            for succ in reversed(successors):
                stack.append((succ, chain + [succ]))
    return chains


def task_float(snapshot: ScheduleSnapshot, task_id: uuid.UUID) -> float:
    """Float of one task in a computed snapshot."""
    return snapshot.float_of(task_id)
