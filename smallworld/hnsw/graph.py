"""
HNSW graph data structures.

This module defines the core data structures for storing the HNSW graph:
- HNSWNode: Represents a single node (vector) in the graph with its friend lists
- HNSWGraph: Container for the entire graph structure

The graph is hierarchical: nodes at layer 0 form a dense graph with all vectors,
while higher layers contain progressively fewer nodes for faster coarse-grained search.
Each node stores a friend list (neighbor IDs) for every layer it participates in.
"""

from typing import Dict, List, Optional, Sequence
import numpy as np
import numpy.typing as npt

from smallworld.errors import DimensionMismatchError
from smallworld.hnsw.distance import VectorLike, euclidean_distance
from smallworld.hnsw.utils import select_neighbors_simple

Vector = npt.NDArray[np.float64]

UNASSIGNED_LEVEL = -1


class HNSWNode:
    """
    Represents a single node in the HNSW graph.

    A node owns a read-only copy of its vector. It starts unplaced (level -1, no
    friend lists); assign_level() places it in layers 0 through 'level'.
    """

    def __init__(self, node_id: int, vector: VectorLike, level: int = UNASSIGNED_LEVEL) -> None:
        """
        Create a new HNSW node.

        Args:
            node_id: Unique identifier for this node
            vector: The vector data (copied, then frozen)
            level: Maximum layer this node appears in (-1 = not placed yet)
        """
        self.id = node_id
        self.vector: Vector = np.array(vector, dtype=np.float64)
        self.vector.flags.writeable = False
        self.level = UNASSIGNED_LEVEL

        # friends[layer] -> neighbor IDs at that layer
        self.friends: List[List[int]] = []
        # in_links[layer] -> how many friend lists name this node at that layer
        self.in_links: List[int] = []

        if level != UNASSIGNED_LEVEL:
            self.assign_level(level)

    def assign_level(self, level: int) -> None:
        """
        Place the node in layers 0..level with empty friend lists.

        Args:
            level: Top layer for this node (>= 0)
        """
        if self.level != UNASSIGNED_LEVEL:
            raise ValueError(f"Node {self.id} already has level {self.level}")
        if level < 0:
            raise ValueError(f"Level must be >= 0, got {level}")

        self.level = level
        self.friends = [[] for _ in range(level + 1)]
        self.in_links = [0] * (level + 1)

    def add_neighbor(self, neighbor_id: int, layer: int) -> bool:
        """
        Add a connection to another node at a specific layer.

        Args:
            neighbor_id: ID of the neighbor node to connect to
            layer: Which layer to add the connection at

        Returns:
            True if the edge is new, False if it was already there
        """
        if layer > self.level or layer < 0:
            raise ValueError(
                f"Cannot add neighbor at layer {layer} (node max level is {self.level})"
            )

        if neighbor_id in self.friends[layer]:
            return False

        self.friends[layer].append(neighbor_id)
        return True

    def get_neighbors(self, layer: int) -> List[int]:
        """
        Get all neighbors at a specific layer.

        Returns an empty list for layers the node does not appear in.
        """
        if layer > self.level or layer < 0:
            return []

        return self.friends[layer]

    def set_neighbors(self, layer: int, neighbor_ids: Sequence[int]) -> None:
        """Replace the friend list at a layer."""
        if layer > self.level or layer < 0:
            raise ValueError(
                f"Cannot set neighbors at layer {layer} (node max level is {self.level})"
            )

        self.friends[layer] = list(neighbor_ids)

    def distance_to(self, vector: VectorLike) -> float:
        """Euclidean distance from this node's vector to another vector."""
        return euclidean_distance(self.vector, vector)

    def distance_to_node(self, other: "HNSWNode") -> float:
        """Euclidean distance between this node and another node."""
        return euclidean_distance(self.vector, other.vector)

    def __repr__(self) -> str:
        """String representation for debugging."""
        return f"HNSWNode(id={self.id}, level={self.level}, dim={len(self.vector)})"


class HNSWGraph:
    """
    Container for the entire HNSW graph structure.

    Owns all nodes, tracks the entry point for searches and the highest layer
    ever assigned, and enforces the per-layer degree bound when edges are added.
    """

    def __init__(
        self,
        dimension: int,
        M: int = 16,
        M_L: Optional[int] = None,
        level_multiplier: Optional[float] = None,
    ) -> None:
        """
        Initialize an empty HNSW graph.

        Args:
            dimension: Dimensionality of vectors to store
            M: Maximum number of neighbors per node at layers > 0 (typical: 16-64)
            M_L: Maximum neighbors at layer 0 (default: 2*M for denser base layer)
            level_multiplier: Controls layer distribution (default: 1/ln(M) per HNSW paper)
        """
        if dimension < 1:
            raise ValueError(f"dimension must be >= 1, got {dimension}")
        if M < 2:
            raise ValueError(f"M must be >= 2, got {M}")

        self.dimension = dimension
        self.M = M
        self.M_L = M_L if M_L is not None else 2 * M  # Layer 0 has more connections

        # mL = 1/ln(M) gives P(layer >= l) = (1/M)^l
        if level_multiplier is None:
            self.level_multiplier = 1.0 / np.log(M)
        else:
            self.level_multiplier = level_multiplier

        self.nodes: Dict[int, HNSWNode] = {}

        # None while the graph is empty
        self.entry_point: Optional[int] = None
        self.max_level = UNASSIGNED_LEVEL

        self._next_id = 0

    def check_dimension(self, vector: VectorLike) -> None:
        """Raise DimensionMismatchError unless len(vector) matches the graph."""
        if len(vector) != self.dimension:
            raise DimensionMismatchError(expected=self.dimension, actual=len(vector))

    def add_node(self, vector: VectorLike, level: int, node_id: Optional[int] = None) -> int:
        """
        Add a new node to the graph structure (without connecting it yet).

        The node does not become the entry point here; promote_entry_point()
        is called once its edges are wired.

        Args:
            vector: Vector data for the node
            level: Maximum layer this node should appear in
            node_id: Optional explicit node ID to use (if None, auto-generates)

        Returns:
            The ID assigned to the new node

        Raises:
            DimensionMismatchError: If the vector length doesn't match the graph
            ValueError: If level is negative or node_id is taken
        """
        self.check_dimension(vector)
        if level < 0:
            raise ValueError(f"Level must be >= 0, got {level}")

        if node_id is None:
            node_id = self._next_id
        elif node_id in self.nodes:
            raise ValueError(f"Node ID {node_id} is already in use")

        # IDs are never reused, even when given explicitly
        self._next_id = max(self._next_id, node_id + 1)

        node = HNSWNode(node_id, vector, level)
        self.nodes[node_id] = node

        return node_id

    def promote_entry_point(self, node_id: int) -> bool:
        """
        Make node_id the entry point if the graph has none or it tops max_level.

        Returns:
            True if the entry point changed
        """
        node = self.nodes[node_id]

        if self.entry_point is None or node.level > self.max_level:
            self.entry_point = node_id
            self.max_level = node.level
            return True

        return False

    def get_node(self, node_id: int) -> Optional[HNSWNode]:
        """
        Retrieve a node by its ID.

        Returns:
            The HNSWNode, or None if not found
        """
        return self.nodes.get(node_id)

    def max_neighbors(self, layer: int) -> int:
        """Degree bound for a layer: M_L at layer 0, M above it."""
        return self.M_L if layer == 0 else self.M

    def add_edge(self, node1_id: int, node2_id: int, layer: int) -> None:
        """
        Create a bidirectional connection between two nodes at a specific layer.

        Either side that ends up over the layer's degree bound is pruned back,
        dropping its farthest neighbors.
        """
        node1 = self.nodes.get(node1_id)
        node2 = self.nodes.get(node2_id)

        if node1 is None or node2 is None:
            raise ValueError(f"Node not found: {node1_id} or {node2_id}")
        if node1_id == node2_id:
            raise ValueError(f"Cannot connect node {node1_id} to itself")

        if node1.add_neighbor(node2_id, layer):
            node2.in_links[layer] += 1
        if node2.add_neighbor(node1_id, layer):
            node1.in_links[layer] += 1

        self.prune_neighbors(node1_id, layer)
        self.prune_neighbors(node2_id, layer)

    def prune_neighbors(self, node_id: int, layer: int) -> None:
        """
        Trim a node's friend list at 'layer' down to the degree bound.

        Keeps the nearest neighbors by distance to the node's own vector, except
        that a neighbor whose only in-link is this list is swapped in for the
        farthest kept neighbor that other nodes still point at. Only this node's
        list changes; the dropped neighbors keep their edge back.
        """
        node = self.nodes[node_id]
        neighbors = node.get_neighbors(layer)
        bound = self.max_neighbors(layer)

        if len(neighbors) <= bound:
            return

        distances = [node.distance_to_node(self.nodes[n]) for n in neighbors]
        ranked = select_neighbors_simple(neighbors, distances, len(neighbors))
        kept, dropped = ranked[:bound], ranked[bound:]

        for i, dropped_id in enumerate(dropped):
            if self.nodes[dropped_id].in_links[layer] > 1:
                continue
            for j in range(len(kept) - 1, -1, -1):
                if self.nodes[kept[j]].in_links[layer] > 1:
                    kept[j], dropped[i] = dropped_id, kept[j]
                    break

        for dropped_id in dropped:
            self.nodes[dropped_id].in_links[layer] -= 1

        node.set_neighbors(layer, kept)

    def restore_node(self, node_id: int, vector: VectorLike, friends: Sequence[Sequence[int]]) -> None:
        """
        Re-create a node with its friend lists, as read back from storage.

        The node's level is len(friends) - 1. Call recount_in_links() once
        every node is restored.
        """
        self.add_node(vector, level=len(friends) - 1, node_id=node_id)
        node = self.nodes[node_id]
        for layer, neighbor_ids in enumerate(friends):
            node.set_neighbors(layer, neighbor_ids)

    def recount_in_links(self) -> None:
        """Rebuild every node's in-link counts from the friend lists."""
        for node in self.nodes.values():
            node.in_links = [0] * (node.level + 1)

        for node in self.nodes.values():
            for layer, friends in enumerate(node.friends):
                for friend_id in friends:
                    friend = self.nodes.get(friend_id)
                    if friend is not None and layer <= friend.level:
                        friend.in_links[layer] += 1

    def set_header(self, entry_point: Optional[int], max_level: int) -> None:
        """Set entry point and max level directly (used when loading)."""
        if entry_point is not None and entry_point not in self.nodes:
            raise ValueError(f"Entry point {entry_point} is not a node in the graph")

        self.entry_point = entry_point
        self.max_level = max_level if entry_point is not None else UNASSIGNED_LEVEL

    def get_max_level(self) -> int:
        """
        Get the maximum layer level in the graph.

        Returns:
            Maximum layer number, or -1 if graph is empty
        """
        return self.max_level

    def size(self) -> int:
        """Get the total number of nodes in the graph."""
        return len(self.nodes)

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.nodes

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"HNSWGraph(nodes={self.size()}, max_level={self.get_max_level()}, "
            f"M={self.M}, dim={self.dimension})"
        )
