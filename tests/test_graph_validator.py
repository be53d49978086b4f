"""Unit tests for graph validation and connectivity checks."""

import numpy as np
import pytest
from smallworld.graph_validator import GraphValidator
from smallworld.hnsw.builder import HNSWBuilder
from smallworld.hnsw.graph import HNSWGraph


@pytest.fixture
def small_graph() -> HNSWGraph:
    graph = HNSWGraph(dimension=2, M=4)
    builder = HNSWBuilder(graph)
    for vec, level in [([0.0, 0.0], 1), ([1.0, 0.0], 0), ([0.0, 1.0], 1), ([5.0, 5.0], 0)]:
        builder.insert(vec, level=level)
    return graph


class TestValidate:
    """Structural invariant checks."""

    def test_empty_graph_is_valid(self):
        validator = GraphValidator(HNSWGraph(dimension=2))
        assert validator.validate() == []
        assert validator.is_valid()

    def test_built_graph_is_valid(self, small_graph):
        assert GraphValidator(small_graph).validate() == []

    def test_detects_dangling_entry_point(self, small_graph):
        small_graph.entry_point = 99
        problems = GraphValidator(small_graph).validate()
        assert any("Entry point 99" in p for p in problems)

    def test_detects_entry_below_max_level(self, small_graph):
        small_graph.entry_point = 1  # level 0 node
        problems = GraphValidator(small_graph).validate()
        assert any("Entry point level" in p for p in problems)

    def test_detects_overfull_friend_list(self, small_graph):
        small_graph.M_L = 1
        problems = GraphValidator(small_graph).validate()
        assert any("bound 1" in p for p in problems)

    def test_detects_missing_and_self_friends(self, small_graph):
        node = small_graph.get_node(1)
        node.set_neighbors(0, [1, 42])
        problems = GraphValidator(small_graph).validate()

        assert any("lists itself" in p for p in problems)
        assert any("missing node 42" in p for p in problems)

    def test_detects_friend_above_its_level(self, small_graph):
        small_graph.get_node(0).set_neighbors(1, [1])
        problems = GraphValidator(small_graph).validate()
        assert any("above its level" in p for p in problems)


class TestReachability:
    """Reachability from the entry point."""

    def test_empty_graph_reaches_nothing(self):
        validator = GraphValidator(HNSWGraph(dimension=2))
        assert validator.reachable_from_entry() == set()

    def test_all_nodes_reachable_at_layer_zero(self, small_graph):
        validator = GraphValidator(small_graph)
        assert validator.reachable_from_entry(0) == {0, 1, 2, 3}
        assert validator.is_connected(0)

    def test_upper_layer_only_has_upper_nodes(self, small_graph):
        validator = GraphValidator(small_graph)
        assert validator.reachable_from_entry(1) == {0, 2}
        assert validator.is_connected(1)

    def test_isolated_node_breaks_connectivity(self):
        graph = HNSWGraph(dimension=2, M=4)
        graph.restore_node(0, [0.0, 0.0], [[]])
        graph.restore_node(1, [1.0, 1.0], [[]])
        graph.set_header(0, 0)

        assert not GraphValidator(graph).is_connected()


class TestStatistics:
    """Degree statistics."""

    def test_empty_statistics(self):
        stats = GraphValidator(HNSWGraph(dimension=2)).get_graph_statistics()
        assert stats["node_count"] == 0
        assert stats["avg_degree"] == 0.0

    def test_statistics_on_built_graph(self, small_graph):
        stats = GraphValidator(small_graph).get_graph_statistics(layer=0)

        assert stats["node_count"] == 4
        # Four nodes, all connected to each other
        assert stats["edge_count"] == 12
        assert stats["min_degree"] == 3
        assert stats["max_degree"] == 3
        assert np.isclose(stats["avg_degree"], 3.0)


class TestInLinks:
    """In-link counts kept by the graph against its friend lists."""

    def test_built_graph_has_in_links(self, small_graph):
        for node in small_graph.nodes.values():
            assert sum(node.in_links) > 0

    def test_detects_stale_in_link_count(self, small_graph):
        small_graph.get_node(1).in_links[0] += 1
        problems = GraphValidator(small_graph).validate()
        assert any("Node 1 counts in-links" in p for p in problems)

    def test_set_neighbors_needs_a_recount(self, small_graph):
        small_graph.get_node(3).set_neighbors(0, [])
        assert not GraphValidator(small_graph).is_valid()

        small_graph.recount_in_links()
        assert GraphValidator(small_graph).is_valid()
