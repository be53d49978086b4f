"""
HNSWIndex: the graph, builder and searcher behind one object.

    index = HNSWIndex(dimension=2, seed=7)
    node_id = index.insert([0.0, 0.0])
    index.search([0.1, 0.1], k=1)   # [(node_id, 0.1414...)]

Callers that insert and search from several threads must serialize writers
themselves; a single call never shares its working queues.
"""

import logging
from typing import List, Optional, Tuple

import numpy as np

from smallworld.config import HNSWConfig, get_default_config
from smallworld.hnsw.builder import HNSWBuilder
from smallworld.hnsw.distance import VectorLike
from smallworld.hnsw.graph import HNSWGraph
from smallworld.hnsw.searcher import HNSWSearcher
from smallworld.persistence import GraphStore

logger = logging.getLogger(__name__)


class HNSWIndex:
    """In-memory approximate nearest-neighbor index over fixed-dimension vectors."""

    def __init__(
        self,
        dimension: int,
        config: Optional[HNSWConfig] = None,
        seed: Optional[int] = None,
    ) -> None:
        """
        Create an empty index.

        Args:
            dimension: Length every inserted and query vector must have
            config: Graph and search parameters (default: get_default_config())
            seed: Seed for level assignment; overrides config.seed
        """
        if config is None:
            config = get_default_config()
        self.config = config

        if seed is None:
            seed = config.seed

        self.graph = HNSWGraph(
            dimension=dimension,
            M=config.M,
            M_L=config.M_L,
            level_multiplier=config.level_multiplier,
        )
        self._builder = HNSWBuilder(
            self.graph,
            ef_construction=config.ef_construction,
            rng=np.random.default_rng(seed),
        )
        self._searcher = HNSWSearcher(self.graph, ef_search=config.ef_search)

    @property
    def dimension(self) -> int:
        return self.graph.dimension

    def insert(self, vector: VectorLike, level: Optional[int] = None) -> int:
        """
        Add a vector to the index.

        Args:
            vector: Vector of length 'dimension'
            level: Force the node's top layer (default: random)

        Returns:
            The new node's ID

        Raises:
            DimensionMismatchError: If the vector has the wrong length
            ValueError: If level is negative
        """
        return self._builder.insert(vector, level=level)

    def search(
        self, query: VectorLike, k: int, ef: Optional[int] = None
    ) -> List[Tuple[int, float]]:
        """
        Find the approximate k nearest neighbors of a query.

        Args:
            query: Query vector of length 'dimension'
            k: Number of results wanted
            ef: Search breadth (default: config.ef_search; raised to k if smaller)

        Returns:
            (node_id, distance) pairs, closest first. Empty for an empty index.

        Raises:
            DimensionMismatchError: If the query has the wrong length
        """
        return self._searcher.search(query, k=k, ef_search=ef)

    def get_vector(self, node_id: int) -> np.ndarray:
        """Return the stored (read-only) vector for a node."""
        node = self.graph.get_node(node_id)
        if node is None:
            raise KeyError(f"Node {node_id} not found")
        return node.vector

    def size(self) -> int:
        return self.graph.size()

    def __len__(self) -> int:
        return self.graph.size()

    def save(self, store: GraphStore) -> None:
        """Write every node and the graph header to a GraphStore."""
        for node_id, node in self.graph.nodes.items():
            store.save_node(node_id, node.vector.tolist(), node.friends)
        store.save_graph_header(self.graph.entry_point, self.graph.max_level)

        logger.info("Saved %d nodes (entry point %s)", self.size(), self.graph.entry_point)

    @classmethod
    def load(
        cls,
        store: GraphStore,
        dimension: int,
        config: Optional[HNSWConfig] = None,
        seed: Optional[int] = None,
    ) -> "HNSWIndex":
        """
        Rebuild an index from a GraphStore.

        Args:
            store: Store previously written by save()
            dimension: Vector dimensionality of the stored graph
            config: Parameters for further inserts and searches
            seed: Seed for levels of nodes inserted after loading

        Raises:
            DimensionMismatchError: If a stored vector has the wrong length
            GraphStoreError: If a listed node can't be read
        """
        index = cls(dimension, config=config, seed=seed)

        for node_id in store.node_ids():
            vector, friends = store.load_node(node_id)
            index.graph.restore_node(node_id, vector, friends)
        index.graph.recount_in_links()

        entry_point, max_level = store.load_graph_header()
        index.graph.set_header(entry_point, max_level)

        logger.info("Loaded %d nodes (entry point %s)", index.size(), entry_point)
        return index

    def __repr__(self) -> str:
        return f"HNSWIndex({self.graph!r})"
