"""
Tests for HNSW search algorithm.

These tests verify that the searcher correctly finds nearest neighbors:
- Empty graph handling
- Single and multiple node searches
- Distance-based ranking
- k and ef_search parameter behavior
- Layer-local primitives shared with the builder
"""

import numpy as np
import pytest
from smallworld.errors import DimensionMismatchError
from smallworld.hnsw.distance import nearly_equal
from smallworld.hnsw.graph import HNSWGraph
from smallworld.hnsw.builder import HNSWBuilder
from smallworld.hnsw.queue import farther_first
from smallworld.hnsw.searcher import HNSWSearcher, greedy_closest, search_layer
from smallworld.metrics import brute_force_knn, compute_recall_at_k


def build(vectors, levels=None, M=4, seed=0):
    graph = HNSWGraph(dimension=len(vectors[0]), M=M)
    builder = HNSWBuilder(graph, rng=np.random.default_rng(seed))
    for i, vec in enumerate(vectors):
        builder.insert(vec, level=None if levels is None else levels[i])
    return graph


def test_search_empty_graph():
    """Searching an empty graph returns no results, not an error"""
    graph = HNSWGraph(dimension=2, M=4)
    searcher = HNSWSearcher(graph, ef_search=10)

    assert searcher.search([1.0, 0.0], k=5) == []


def test_search_single_node():
    graph = build([[1.0, 0.0]])
    searcher = HNSWSearcher(graph, ef_search=10)

    results = searcher.search([0.9, 0.1], k=5)

    assert len(results) == 1
    assert results[0][0] == 0


def test_search_tiny_graph(tiny_points):
    """(0.1, 0.1) is nearest (0,0); (10, 10) finds itself"""
    graph = build(tiny_points)
    searcher = HNSWSearcher(graph, ef_search=10)

    results = searcher.search([0.1, 0.1], k=1)
    assert len(results) == 1
    assert results[0][0] == 0
    assert nearly_equal(results[0][1], float(np.hypot(0.1, 0.1)))

    results = searcher.search([10.0, 10.0], k=1)
    assert results[0][0] == 3
    assert nearly_equal(results[0][1], 0.0)


def test_search_tiny_graph_with_layers(tiny_points):
    graph = build(tiny_points, levels=[1, 0, 2, 0])
    searcher = HNSWSearcher(graph, ef_search=1)

    assert searcher.search([0.1, 0.1], k=1)[0][0] == 0
    assert searcher.search([10.0, 10.0], k=1)[0][0] == 3


def test_search_returns_closest_nodes_in_order():
    graph = build([[1.0, 0.0], [0.0, 1.0], [0.9, 0.1]], levels=[0, 0, 0])
    searcher = HNSWSearcher(graph, ef_search=10)

    results = searcher.search([1.0, 0.0], k=3)

    assert [node_id for node_id, _ in results] == [0, 2, 1]
    distances = [dist for _, dist in results]
    assert distances == sorted(distances)


def test_search_respects_k_parameter():
    graph = build([[float(i), 0.0] for i in range(5)], levels=[0] * 5)
    searcher = HNSWSearcher(graph, ef_search=10)

    assert len(searcher.search([0.0, 0.0], k=3)) == 3
    assert len(searcher.search([0.0, 0.0], k=10)) == 5, "All nodes when k > size"


def test_search_k_larger_than_ef():
    """ef is raised to k so k results still come back"""
    graph = build([[float(i), 0.0] for i in range(20)])
    searcher = HNSWSearcher(graph, ef_search=2)

    results = searcher.search([0.0, 0.0], k=8)

    assert len(results) == 8
    assert [node_id for node_id, _ in results] == list(range(8))


def test_search_invalid_k():
    graph = build([[0.0, 0.0]])
    with pytest.raises(ValueError):
        HNSWSearcher(graph).search([0.0, 0.0], k=0)


def test_search_dimension_mismatch():
    graph = build([[0.0, 0.0]])
    with pytest.raises(DimensionMismatchError):
        HNSWSearcher(graph).search([0.0, 0.0, 0.0], k=1)


def test_search_is_deterministic():
    rng = np.random.default_rng(8)
    graph = build(rng.random((100, 5)), M=5)
    searcher = HNSWSearcher(graph, ef_search=20)
    query = rng.random(5)

    assert searcher.search(query, k=5) == searcher.search(query, k=5)


def test_override_ef_search_per_query():
    rng = np.random.default_rng(9)
    graph = build(rng.random((30, 2)))
    searcher = HNSWSearcher(graph, ef_search=5)

    results = searcher.search(rng.random(2), k=5, ef_search=30)
    assert len(results) == 5


def test_search_finds_exact_match():
    rng = np.random.default_rng(10)
    vectors = rng.random((40, 3))
    graph = build(vectors)
    searcher = HNSWSearcher(graph, ef_search=20)

    results = searcher.search(vectors[17], k=1)

    assert results[0][0] == 17
    assert results[0][1] < 1e-6


def test_search_recall_on_random_data(sample_vectors):
    """With a generous ef the approximate results match brute force closely"""
    graph = build(sample_vectors, M=8, seed=1)
    searcher = HNSWSearcher(graph, ef_search=64)

    rng = np.random.default_rng(99)
    recalls = []
    for query in rng.random((20, sample_vectors.shape[1])).astype(np.float32):
        found = [node_id for node_id, _ in searcher.search(query, k=10)]
        truth = [node_id for node_id, _ in brute_force_knn(sample_vectors, query, k=10)]
        recalls.append(compute_recall_at_k(found, truth, k=10))

    assert np.mean(recalls) >= 0.9


def test_greedy_closest_walks_to_local_minimum():
    graph = build([[float(i), 0.0] for i in range(6)], levels=[0] * 6)

    node_id, dist = greedy_closest(graph, [5.2, 0.0], entry_id=0, layer=0)

    assert node_id == 5
    assert nearly_equal(dist, 0.2)


def test_search_layer_returns_capped_max_queue():
    graph = build([[float(i), 0.0] for i in range(10)], levels=[0] * 10)

    results = search_layer(graph, [0.0, 0.0], entry_points=[9], ef=3, layer=0)

    assert results.comparator is farther_first
    assert len(results) == 3
    assert sorted(item.node_id for item in results.drain()) == [0, 1, 2]


def test_search_returns_unreachable_nodes_when_k_covers_them():
    """A node no friend list points at is still returned once k asks for it"""
    graph = HNSWGraph(dimension=2, M=4)
    graph.restore_node(0, [0.0, 0.0], [[1]])
    graph.restore_node(1, [1.0, 0.0], [[0]])
    graph.restore_node(2, [5.0, 5.0], [[]])
    graph.recount_in_links()
    graph.set_header(0, 0)
    searcher = HNSWSearcher(graph, ef_search=1)

    results = searcher.search([5.0, 5.0], k=3)

    assert [node_id for node_id, _ in results] == [2, 1, 0]
    assert results[0][1] == 0.0
