"""
HNSW graph construction and insertion logic.

This module handles adding new nodes to the HNSW graph. The insertion algorithm:
1. Assigns a random layer to the new node (using geometric distribution)
2. Finds an entry point into that layer by greedy descent from the top
3. At each layer from the node's top layer down to 0, collects ef_construction
   candidates and connects the node to the nearest of them
4. Prunes any friend list that grows past the degree bound
5. Promotes the node to entry point if it reaches a new highest layer

The key insight: start search at the top (sparse) layer and progressively
zoom in through denser layers until reaching the target layer.
"""

import logging
from typing import Optional

import numpy as np

from smallworld.hnsw.distance import VectorLike
from smallworld.hnsw.graph import HNSWGraph
from smallworld.hnsw.searcher import greedy_closest, search_layer
from smallworld.hnsw.utils import assign_layer, select_neighbors_simple

logger = logging.getLogger(__name__)


class HNSWBuilder:
    """
    Handles insertion of nodes into the HNSW graph.

    This class encapsulates the logic for adding new vectors to the index,
    including neighbor search, connection creation, and pruning.
    """

    def __init__(
        self,
        graph: HNSWGraph,
        ef_construction: int = 200,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        """
        Initialize builder with a graph to operate on.

        Args:
            graph: The HNSWGraph to insert nodes into
            ef_construction: Candidate pool size per layer during insertion
            rng: Random generator for level assignment (default: global numpy RNG)
        """
        self.graph = graph
        self.ef_construction = ef_construction
        self.rng = rng

    def insert(self, vector: VectorLike, level: Optional[int] = None) -> int:
        """
        Insert a new vector into the graph.

        Args:
            vector: Vector data for the new node
            level: Top layer for the node (default: drawn at random)

        Returns:
            ID of the new node

        Raises:
            DimensionMismatchError: If the vector length doesn't match the graph
                (the graph is left unchanged)
            ValueError: If a forced level is negative (graph left unchanged)
        """
        graph = self.graph
        graph.check_dimension(vector)

        if level is None:
            level = assign_layer(level_multiplier=graph.level_multiplier, rng=self.rng)

        node_id = graph.add_node(vector, level)

        if graph.entry_point is None:
            graph.promote_entry_point(node_id)
            logger.debug("Inserted first node %d at level %d", node_id, level)
            return node_id

        query = graph.nodes[node_id].vector

        # Greedy descent through the layers above the new node
        current_id = graph.entry_point
        for layer in range(graph.max_level, level, -1):
            current_id, _ = greedy_closest(graph, query, current_id, layer)

        entry_points = [current_id]
        for layer in range(min(level, graph.max_level), -1, -1):
            candidates = search_layer(
                graph, query, entry_points, ef=self.ef_construction, layer=layer
            )
            pool = candidates.drain()

            neighbors = select_neighbors_simple(
                [item.node_id for item in pool],
                [item.dist for item in pool],
                graph.max_neighbors(layer),
            )
            for neighbor_id in neighbors:
                graph.add_edge(node_id, neighbor_id, layer)

            # This layer's candidates seed the search one layer down
            entry_points = [item.node_id for item in pool]

        if graph.promote_entry_point(node_id):
            logger.debug("Node %d is the new entry point (max level %d)", node_id, level)

        return node_id
