"""
Tests for cycle detection: single-edge checks, batch checks and full scans.
"""

import itertools
import random
import uuid

import networkx as nx
import pytest

from app.models import Dependency
from app.services.cycles import find_batch_cycle, find_cycle_path, find_cycles, would_create_cycle
from app.services.graph import DependencyGraph

PROJECT = uuid.UUID(int=1000)


def tid(name: str) -> uuid.UUID:
    return uuid.UUID(int=ord(name))


def edge(pred, succ, **fields) -> Dependency:
    pred = tid(pred) if isinstance(pred, str) else pred
    succ = tid(succ) if isinstance(succ, str) else succ
    return Dependency(project_id=PROJECT, predecessor_id=pred, successor_id=succ, **fields)


def build(names, *edges: Dependency) -> DependencyGraph:
    ids = [tid(n) if isinstance(n, str) else n for n in names]
    return DependencyGraph.from_records(PROJECT, ids, edges)


class TestFindCyclePath:

    def test_self_loop(self):
        graph = build("A")
        assert find_cycle_path(graph, tid("A"), tid("A")) == [tid("A")]

    def test_reverse_of_existing_edge(self):
        graph = build("AB", edge("A", "B"))
        assert find_cycle_path(graph, tid("B"), tid("A")) == [tid("B"), tid("A")]

    def test_transitive_cycle(self):
        graph = build("ABC", edge("A", "B"), edge("B", "C"))
        assert find_cycle_path(graph, tid("C"), tid("A")) == [tid("C"), tid("A"), tid("B")]

    def test_no_cycle(self):
        graph = build("ABC", edge("A", "B"), edge("B", "C"))
        assert find_cycle_path(graph, tid("A"), tid("C")) is None
        assert not would_create_cycle(graph, tid("A"), tid("C"))

    def test_inactive_edges_do_not_close_cycles(self):
        graph = build("AB", edge("A", "B", active=False))
        assert not would_create_cycle(graph, tid("B"), tid("A"))

    def test_reported_cycle_is_real(self):
        graph = build("ABCD", edge("A", "B"), edge("B", "C"), edge("C", "D"))
        cycle = find_cycle_path(graph, tid("D"), tid("B"))

        assert cycle == [tid("D"), tid("B"), tid("C")]
        # Every consecutive pair is an edge once the candidate is added
        closed = cycle + [cycle[0]]
        candidate = (tid("D"), tid("B"))
        for a, b in zip(closed, closed[1:]):
            assert (a, b) == candidate or graph.active_edge_between(a, b) is not None


class TestFindBatchCycle:

    def test_cycle_formed_only_by_new_edges(self):
        graph = build("XY")
        candidates = [edge("X", "Y"), edge("Y", "X")]

        index, cycle = find_batch_cycle(graph, candidates)

        assert index == 1
        assert cycle == [tid("Y"), tid("X")]
        # The graph passed in is untouched
        assert graph.all_edges() == []

    def test_acyclic_batch(self):
        graph = build("ABC", edge("A", "B"))
        assert find_batch_cycle(graph, [edge("B", "C"), edge("A", "C")]) is None

    def test_batch_edge_closing_cycle_with_existing_edges(self):
        graph = build("ABC", edge("A", "B"))
        result = find_batch_cycle(graph, [edge("B", "C"), edge("C", "A")])
        assert result == (1, [tid("C"), tid("A"), tid("B")])


class TestFindCycles:

    def test_dag_has_no_cycles(self):
        graph = build("ABCD", edge("A", "B"), edge("A", "C"), edge("B", "D"), edge("C", "D"))
        assert find_cycles(graph) == []

    def test_reports_independent_cycles(self):
        graph = build(
            "ABCDE",
            edge("A", "B"), edge("B", "A"),
            edge("C", "D"), edge("D", "E"), edge("E", "C"),
        )
        cycles = find_cycles(graph)

        assert [tid("A"), tid("B")] in cycles
        assert [tid("C"), tid("D"), tid("E")] in cycles
        assert len(cycles) == 2

    def test_stored_self_loop(self):
        graph = build("A", edge("A", "A"))
        assert find_cycles(graph) == [[tid("A")]]


def _random_dag(rng: random.Random, size: int, density: float) -> tuple[list[uuid.UUID], list[Dependency]]:
    nodes = [uuid.UUID(int=i + 1) for i in range(size)]
    order = nodes[:]
    rng.shuffle(order)
    edges = [
        edge(order[i], order[j])
        for i, j in itertools.combinations(range(size), 2)
        if rng.random() < density
    ]
    return nodes, edges


@pytest.mark.parametrize("seed", range(25))
def test_cycle_check_matches_brute_force(seed):
    """would_create_cycle agrees with a full acyclicity check on small random DAGs."""
    rng = random.Random(seed)
    nodes, edges = _random_dag(rng, size=rng.randint(2, 7), density=0.35)
    graph = build(nodes, *edges)

    reference = nx.DiGraph()
    reference.add_nodes_from(nodes)
    reference.add_edges_from(e.pair for e in edges)

    for pred, succ in itertools.permutations(nodes, 2):
        candidate = reference.copy()
        candidate.add_edge(pred, succ)
        expected = not nx.is_directed_acyclic_graph(candidate)
        assert would_create_cycle(graph, pred, succ) == expected, (pred, succ)


@pytest.mark.parametrize("seed", range(10))
def test_guarded_inserts_keep_graph_acyclic(seed):
    """Adding only edges that pass the check never produces a cycle."""
    rng = random.Random(seed)
    nodes = [uuid.UUID(int=i + 1) for i in range(8)]
    graph = build(nodes)

    for _ in range(60):
        pred, succ = rng.sample(nodes, 2)
        if graph.active_edge_between(pred, succ) is None and not would_create_cycle(graph, pred, succ):
            graph.add_edge(edge(pred, succ))

    assert nx.is_directed_acyclic_graph(nx.DiGraph(graph.digraph))
    assert find_cycles(graph) == []
