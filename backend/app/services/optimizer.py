"""
Schedule optimization advice.

Looks at a computed CPM snapshot and proposes ways to shorten the project,
then estimates the gain by re-running the CPM passes on a hypothetical copy
of the schedule. Nothing here mutates tasks or dependencies.
"""

import uuid
from dataclasses import dataclass, field
from typing import Mapping

from app.config import Settings, get_settings
from app.models import Dependency, DependencyType, Task
from app.services.critical_path import ScheduleSnapshot, calculate_schedule
from app.services.deadline import Deadline
from app.services.graph import DependencyGraph
from app.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class ScheduleOptimization:
    """Advisory result of optimize_schedule."""
    recommendations: list[str]
    suggested_adjustments: dict[uuid.UUID, float]  # Task id -> shift magnitude in hours
    potential_time_reduction: float  # Hours, estimate only
    baseline_duration: float
    optimized_duration: float
    compressed_task_ids: list[uuid.UUID] = field(default_factory=list)


def _title(tasks_by_id: Mapping[uuid.UUID, Task], task_id: uuid.UUID) -> str:
    task = tasks_by_id.get(task_id)
    return task.title if task is not None else str(task_id)


def _fmt(hours: float) -> str:
    return f"{hours:g}h"


def _clone_edge(edge: Dependency, **changes) -> Dependency:
    """Transient copy of an edge for what-if runs; never added to a session."""
    values = {
        "id": edge.id,
        "project_id": edge.project_id,
        "predecessor_id": edge.predecessor_id,
        "successor_id": edge.successor_id,
        "dependency_type": edge.dependency_type,
        "lag_hours": edge.lag_hours,
        "active": edge.active,
    }
    values.update(changes)
    return Dependency(**values)


def sequential_runs(
    chain: list[uuid.UUID],
    graph: DependencyGraph,
) -> list[list[uuid.UUID]]:
    """
    Split a critical chain into runs of tasks linked finish-to-start.

    Within a run every task waits for the previous one to finish, which is
    where parallelizing pays off; links of other kinds already overlap.
    """
    runs: list[list[uuid.UUID]] = []
    current: list[uuid.UUID] = []
    for task_id in chain:
        if current:
            edge = graph.active_edge_between(current[-1], task_id)
            if edge is None or edge.dependency_type != DependencyType.FINISH_TO_START:
                runs.append(current)
                current = []
        current.append(task_id)
    if current:
        runs.append(current)
    return runs


def optimize_schedule(
    graph: DependencyGraph,
    tasks_by_id: Mapping[uuid.UUID, Task],
    durations: Mapping[uuid.UUID, float],
    snapshot: ScheduleSnapshot,
    settings: Settings | None = None,
    deadline: Deadline | None = None,
) -> ScheduleOptimization:
    """
    Produce recommendations for shortening the project.

    Heuristics:
    1. Tasks with float on a path into a critical task can be re-timed by up to
       their float, releasing people to the critical path.
    2. Long critical tasks are candidates for decomposition.
    3. Long runs of finish-to-start critical tasks are candidates for
       parallelization.
    4. Long lags on critical edges should be reviewed.
    5. Edges with very long lags are external constraints to start early.

    The potential reduction is measured by compressing the tasks from 2 and 3
    by settings.compression_ratio and dropping the lags from 4, then running
    CPM again.
    """
    settings = settings or get_settings()
    tolerance = settings.float_tolerance
    recommendations: list[str] = []
    adjustments: dict[uuid.UUID, float] = {}

    critical = set(snapshot.critical_task_ids)
    critical_edges = set(snapshot.critical_edge_ids)

    # 1. Float-carrying feeders of the critical path, direct or further upstream.
    # Task analyses are in topological order, so one reverse sweep finds the
    # first critical task each task leads into.
    feeds: dict[uuid.UUID, uuid.UUID] = {}
    for analysis in reversed(snapshot.task_analyses):
        for succ in sorted(graph.successors(analysis.task_id)):
            target = succ if succ in critical else feeds.get(succ)
            if target is not None:
                feeds[analysis.task_id] = target
                break

    for analysis in snapshot.task_analyses:
        if analysis.total_float <= tolerance or analysis.task_id not in feeds:
            continue
        fed = feeds[analysis.task_id]
        recommendations.append(
            f"Task '{_title(tasks_by_id, analysis.task_id)}' has {_fmt(analysis.total_float)} "
            f"of float and feeds into critical task '{_title(tasks_by_id, fed)}'; it can be "
            f"re-timed by up to {_fmt(analysis.total_float)} to free resources for the critical path"
        )
        adjustments[analysis.task_id] = analysis.total_float

    # 2. Long critical tasks
    compress: set[uuid.UUID] = set()
    for task_id in snapshot.critical_task_ids:
        duration = durations[task_id]
        if duration >= settings.long_task_hours:
            recommendations.append(
                f"Critical task '{_title(tasks_by_id, task_id)}' takes {_fmt(duration)}; "
                f"consider splitting it into smaller tasks that can run in parallel"
            )
            compress.add(task_id)

    # 3. Long sequential runs on critical chains
    seen_runs: set[tuple[uuid.UUID, ...]] = set()
    for chain in snapshot.critical_paths:
        for run in sequential_runs(chain, graph):
            key = tuple(run)
            if len(run) < 2 or key in seen_runs:
                continue
            seen_runs.add(key)
            run_hours = sum(durations[task_id] for task_id in run)
            if run_hours >= settings.long_chain_hours:
                names = " -> ".join(_title(tasks_by_id, task_id) for task_id in run)
                recommendations.append(
                    f"Critical tasks {names} run strictly one after another for "
                    f"{_fmt(run_hours)}; consider overlapping or parallelizing them"
                )
                compress.update(run)

    # 4. Long lags on the critical path
    relaxed_lags: set[uuid.UUID] = set()
    for edge in graph.all_edges():
        if edge.id in critical_edges and (edge.lag_hours or 0.0) > settings.review_lag_hours:
            recommendations.append(
                f"Review the {_fmt(edge.lag_hours)} lag between "
                f"'{_title(tasks_by_id, edge.predecessor_id)}' and "
                f"'{_title(tasks_by_id, edge.successor_id)}'; it delays the critical path"
            )
            relaxed_lags.add(edge.id)

    # 5. External constraints
    external = [
        edge for edge in graph.all_edges()
        if (edge.lag_hours or 0.0) >= settings.external_constraint_lag_hours
    ]
    if external:
        recommendations.append(
            f"Start procurement/ordering early for {len(external)} external dependencies"
        )

    # Estimate: re-run CPM on the hypothetical schedule
    hypothetical_durations = dict(durations)
    for task_id in compress:
        reduction = durations[task_id] * settings.compression_ratio
        hypothetical_durations[task_id] = durations[task_id] - reduction
        adjustments[task_id] = reduction

    hypothetical = DependencyGraph(graph.project_id, graph.task_ids)
    for edge in graph.all_edges():
        if edge.id in relaxed_lags:
            hypothetical.add_edge(_clone_edge(edge, lag_hours=0.0))
        else:
            hypothetical.add_edge(edge)

    optimized = calculate_schedule(
        hypothetical, hypothetical_durations, tolerance, deadline, settings.max_critical_paths
    )
    reduction = max(0.0, round(snapshot.total_duration - optimized.total_duration, 6))

    if not recommendations:
        recommendations.append("No optimization opportunities found; the schedule is already tight")

    logger.info(
        f"Schedule optimization for project {graph.project_id}: "
        f"{len(recommendations)} recommendation(s), potential reduction {reduction}h"
    )

    return ScheduleOptimization(
        recommendations=recommendations,
        suggested_adjustments=adjustments,
        potential_time_reduction=reduction,
        baseline_duration=snapshot.total_duration,
        optimized_duration=optimized.total_duration,
        compressed_task_ids=sorted(compress),
    )
