"""
HNSW search algorithm.

This module handles querying the HNSW graph to find approximate nearest neighbors.
The search algorithm:
1. Starts at the entry point (top layer)
2. Greedily navigates down through layers to get closer to the query
3. At layer 0, expands the search using ef_search parameter
4. Returns the k nearest neighbors

The ef_search parameter controls the accuracy-speed tradeoff:
- Higher ef_search = better recall, slower search
- Lower ef_search = faster search, lower recall

greedy_closest() and search_layer() are also used by the builder during insertion.
"""

import logging
from typing import List, Optional, Set, Tuple

from smallworld.hnsw.distance import VectorLike
from smallworld.hnsw.graph import HNSWGraph
from smallworld.hnsw.queue import CandidateQueue, closer_first, farther_first

logger = logging.getLogger(__name__)


def greedy_closest(
    graph: HNSWGraph, query: VectorLike, entry_id: int, layer: int
) -> Tuple[int, float]:
    """
    Walk a single layer toward the query, one strictly closer neighbor at a time.

    Args:
        graph: Graph to walk
        query: Query vector
        entry_id: Node to start from
        layer: Layer whose friend lists are followed

    Returns:
        (node_id, distance) of the local minimum reached
    """
    current_id = entry_id
    current_dist = graph.nodes[entry_id].distance_to(query)

    improved = True
    while improved:
        improved = False
        for neighbor_id in graph.nodes[current_id].get_neighbors(layer):
            dist = graph.nodes[neighbor_id].distance_to(query)
            if dist < current_dist:
                current_id = neighbor_id
                current_dist = dist
                improved = True

    return current_id, current_dist


def search_layer(
    graph: HNSWGraph,
    query: VectorLike,
    entry_points: List[int],
    ef: int,
    layer: int,
) -> CandidateQueue:
    """
    Best-first search for the ef nearest nodes at a single layer.

    Args:
        graph: Graph to search
        query: Query vector to search for
        entry_points: Starting node IDs for the search
        ef: Maximum size of the result set
        layer: Which layer to search on

    Returns:
        farther_first queue of at most ef results (worst result on top)
    """
    visited: Set[int] = set(entry_points)

    # Nodes still to expand, closest first
    frontier = CandidateQueue(closer_first)
    # Best nodes found so far, worst on top so it can be evicted
    results = CandidateQueue(farther_first)

    for node_id in entry_points:
        dist = graph.nodes[node_id].distance_to(query)
        frontier.insert(node_id, dist)
        results.insert(node_id, dist)

    while len(results) > ef:
        results.pop_top()

    while not frontier.is_empty():
        nearest = frontier.pop_top()
        worst = results.top()

        if nearest.dist > worst.dist and len(results) >= ef:
            break

        for neighbor_id in graph.nodes[nearest.node_id].get_neighbors(layer):
            if neighbor_id in visited:
                continue
            visited.add(neighbor_id)

            dist = graph.nodes[neighbor_id].distance_to(query)
            if len(results) < ef or dist < results.top().dist:
                frontier.insert(neighbor_id, dist)
                results.insert(neighbor_id, dist)
                if len(results) > ef:
                    results.pop_top()

    return results


class HNSWSearcher:
    """
    Handles search queries on the HNSW graph.

    This class provides the search functionality to find k nearest neighbors
    for a given query vector.
    """

    def __init__(self, graph: HNSWGraph, ef_search: int = 50) -> None:
        """
        Initialize searcher with a graph.

        Args:
            graph: The HNSWGraph to search in
            ef_search: Size of candidate list during search (higher = better recall)
        """
        self.graph = graph
        self.ef_search = ef_search

    def search(
        self, query: VectorLike, k: int, ef_search: Optional[int] = None
    ) -> List[Tuple[int, float]]:
        """
        Search for k nearest neighbors to the query vector.

        Args:
            query: Query vector to search for
            k: Number of nearest neighbors to return
            ef_search: Override default ef_search for this query

        Returns:
            List of min(k, graph size) (node_id, distance) tuples, sorted by
            distance (closest first)

        Raises:
            DimensionMismatchError: If the query length doesn't match the graph
            ValueError: If k < 1
        """
        self.graph.check_dimension(query)
        if k < 1:
            raise ValueError(f"k must be >= 1, got {k}")

        if self.graph.entry_point is None:
            return []

        ef = ef_search if ef_search is not None else self.ef_search
        ef = max(ef, k)

        # Descend through the upper layers keeping a single best node
        current_id = self.graph.entry_point
        for layer in range(self.graph.max_level, 0, -1):
            current_id, _ = greedy_closest(self.graph, query, current_id, layer)

        results = search_layer(
            self.graph, query, entry_points=[current_id], ef=ef, layer=0
        )

        # Layer 0 is directed, so a walk can come back short of k
        if len(results) < k and len(results) < self.graph.size():
            logger.debug(
                "Layer 0 walk reached %d of %d nodes, scanning the rest",
                len(results), self.graph.size(),
            )
            for node_id, node in self.graph.nodes.items():
                if node_id not in results:
                    results.insert(node_id, node.distance_to(query))

        # Drop the ef - k worst, then flip the rest into ascending order
        while len(results) > k:
            results.pop_top()
        ordered = results.take(len(results), closer_first)

        return [(item.node_id, item.dist) for item in ordered.drain()]
