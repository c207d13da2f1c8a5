"""
Dependency graph for a single project, backed by NetworkX.

This module handles:
- The adjacency structure of active dependency edges (predecessor -> successor)
- Edge history (inactive edges are kept but never traversed)
- Traversal queries: direct/transitive neighbours and shortest dependency path

Acyclicity is NOT enforced here; callers validate with app.services.cycles
before calling add_edge.
"""

import uuid
from typing import Iterable

import networkx as nx

from app.exceptions import NotFoundError
from app.models import Dependency


class DependencyGraph:
    """
    Active dependency edges of one project keyed by task id.

    Nodes are task ids, edges go from predecessor -> successor and carry the
    Dependency record under the "dependency" attribute. A MultiDiGraph keyed
    by edge id is used so that duplicate rows imported around the normal
    write path stay visible to validation instead of overwriting each other.
    """

    def __init__(self, project_id: uuid.UUID | None = None, task_ids: Iterable[uuid.UUID] = ()):
        self.project_id = project_id
        self._digraph = nx.MultiDiGraph()
        self._digraph.add_nodes_from(task_ids)
        self._edges: dict[uuid.UUID, Dependency] = {}

    @classmethod
    def from_records(
        cls,
        project_id: uuid.UUID | None,
        task_ids: Iterable[uuid.UUID],
        edges: Iterable[Dependency],
    ) -> "DependencyGraph":
        graph = cls(project_id, task_ids)
        for edge in edges:
            graph.add_edge(edge)
        return graph

    def copy(self) -> "DependencyGraph":
        """Scratch copy sharing the edge records but not the adjacency."""
        clone = DependencyGraph(self.project_id)
        clone._digraph = self._digraph.copy()
        clone._edges = dict(self._edges)
        return clone

    # =========================================================================
    # Mutation
    # =========================================================================

    def add_task(self, task_id: uuid.UUID) -> None:
        self._digraph.add_node(task_id)

    def add_edge(self, edge: Dependency) -> None:
        self._edges[edge.id] = edge
        if edge.active:
            self._digraph.add_edge(
                edge.predecessor_id,
                edge.successor_id,
                key=edge.id,
                dependency=edge,
            )

    def remove_edge(self, edge_id: uuid.UUID) -> Dependency:
        edge = self._edges.pop(edge_id, None)
        if edge is None:
            raise NotFoundError("Dependency", edge_id)
        if self._digraph.has_edge(edge.predecessor_id, edge.successor_id, key=edge_id):
            self._digraph.remove_edge(edge.predecessor_id, edge.successor_id, key=edge_id)
        return edge

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def digraph(self) -> nx.MultiDiGraph:
        """Underlying NetworkX graph (active edges only). Treat as read-only."""
        return self._digraph

    @property
    def task_ids(self) -> list[uuid.UUID]:
        return sorted(self._digraph.nodes)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._digraph

    def __len__(self) -> int:
        return self._digraph.number_of_nodes()

    def get_edge(self, edge_id: uuid.UUID) -> Dependency | None:
        return self._edges.get(edge_id)

    def edges_from(self, task_id: uuid.UUID) -> list[Dependency]:
        """Active outgoing edges (task is the predecessor)."""
        if task_id not in self._digraph:
            return []
        edges = [data for _, _, data in self._digraph.out_edges(task_id, data="dependency")]
        return sorted(edges, key=lambda e: (e.successor_id, e.id))

    def edges_to(self, task_id: uuid.UUID) -> list[Dependency]:
        """Active incoming edges (task is the successor)."""
        if task_id not in self._digraph:
            return []
        edges = [data for _, _, data in self._digraph.in_edges(task_id, data="dependency")]
        return sorted(edges, key=lambda e: (e.predecessor_id, e.id))

    def all_edges(
        self,
        project_id: uuid.UUID | None = None,
        include_inactive: bool = False,
    ) -> list[Dependency]:
        edges = [
            edge for edge in self._edges.values()
            if (include_inactive or edge.active)
            and (project_id is None or edge.project_id == project_id)
        ]
        return sorted(edges, key=lambda e: (e.predecessor_id, e.successor_id, e.id))

    def active_edge_between(
        self,
        predecessor_id: uuid.UUID,
        successor_id: uuid.UUID,
    ) -> Dependency | None:
        if not self._digraph.has_edge(predecessor_id, successor_id):
            return None
        edges = self._digraph.get_edge_data(predecessor_id, successor_id)
        return min((data["dependency"] for data in edges.values()), key=lambda e: e.id)

    def predecessors(self, task_id: uuid.UUID) -> list[uuid.UUID]:
        if task_id not in self._digraph:
            return []
        return sorted(self._digraph.predecessors(task_id))

    def successors(self, task_id: uuid.UUID) -> list[uuid.UUID]:
        if task_id not in self._digraph:
            return []
        return sorted(self._digraph.successors(task_id))

    def ancestors(self, task_id: uuid.UUID) -> set[uuid.UUID]:
        """All transitive prerequisites of a task."""
        if task_id not in self._digraph:
            return set()
        return nx.ancestors(self._digraph, task_id)

    def descendants(self, task_id: uuid.UUID) -> set[uuid.UUID]:
        """All tasks downstream of a task."""
        if task_id not in self._digraph:
            return set()
        return nx.descendants(self._digraph, task_id)

    def shortest_path(self, from_id: uuid.UUID, to_id: uuid.UUID) -> list[uuid.UUID]:
        """
        Shortest chain of dependents leading from from_id to to_id.

        Returns [from_id] when both ids are the same task and an empty list
        when to_id is not downstream of from_id.
        """
        if from_id == to_id:
            return [from_id]
        if from_id not in self._digraph or to_id not in self._digraph:
            return []
        try:
            return nx.shortest_path(self._digraph, from_id, to_id)
        except nx.NetworkXNoPath:
            return []

    def degree(self, task_id: uuid.UUID) -> int:
        """Number of active edges touching a task."""
        if task_id not in self._digraph:
            return 0
        return self._digraph.degree(task_id)
