"""Structural checks for HNSW graphs.

The builder is expected to keep a graph in a consistent state after every
insert. GraphValidator walks a graph and reports anything that breaks that:
a dangling entry point, an over-full friend list, an edge to a node that does
not exist at that layer, and so on. It also answers reachability questions.
"""

from typing import Dict, List, Set
from collections import deque

from smallworld.hnsw.graph import HNSWGraph


class GraphValidator:
    """Validates graph structure and connectivity properties."""

    def __init__(self, graph: HNSWGraph) -> None:
        """
        Args:
            graph: Graph to inspect (never modified)
        """
        self.graph = graph

    def validate(self) -> List[str]:
        """Check every structural invariant.

        Returns:
            Human-readable problems; empty when the graph is consistent
        """
        graph = self.graph
        problems: List[str] = []

        if not graph.nodes:
            if graph.entry_point is not None:
                problems.append(f"Empty graph has entry point {graph.entry_point}")
            return problems

        if graph.entry_point not in graph.nodes:
            problems.append(f"Entry point {graph.entry_point} is not a live node")
        elif graph.nodes[graph.entry_point].level != graph.max_level:
            problems.append(
                f"Entry point level {graph.nodes[graph.entry_point].level} "
                f"!= max level {graph.max_level}"
            )

        highest = max(node.level for node in graph.nodes.values())
        if highest != graph.max_level:
            problems.append(f"Max level {graph.max_level} != highest node level {highest}")

        for node_id, node in graph.nodes.items():
            if node.level < 0:
                problems.append(f"Node {node_id} has no level assigned")
                continue

            for layer, friends in enumerate(node.friends):
                bound = graph.max_neighbors(layer)
                if len(friends) > bound:
                    problems.append(
                        f"Node {node_id} has {len(friends)} friends at layer {layer} (bound {bound})"
                    )
                if len(set(friends)) != len(friends):
                    problems.append(f"Node {node_id} has duplicate friends at layer {layer}")

                for friend_id in friends:
                    if friend_id == node_id:
                        problems.append(f"Node {node_id} lists itself at layer {layer}")
                    elif friend_id not in graph.nodes:
                        problems.append(
                            f"Node {node_id} lists missing node {friend_id} at layer {layer}"
                        )
                    elif graph.nodes[friend_id].level < layer:
                        problems.append(
                            f"Node {node_id} lists node {friend_id} at layer {layer}, "
                            f"above its level {graph.nodes[friend_id].level}"
                        )

        problems.extend(self._check_in_links())
        return problems

    def _check_in_links(self) -> List[str]:
        """Compare each node's in-link counts with the friend lists pointing at it."""
        graph = self.graph
        counted: Dict[int, List[int]] = {
            node_id: [0] * (node.level + 1) for node_id, node in graph.nodes.items()
        }
        for node in graph.nodes.values():
            for layer, friends in enumerate(node.friends):
                for friend_id in friends:
                    if friend_id in counted and layer < len(counted[friend_id]):
                        counted[friend_id][layer] += 1

        return [
            f"Node {node_id} counts in-links {graph.nodes[node_id].in_links}, "
            f"friend lists give {expected}"
            for node_id, expected in counted.items()
            if graph.nodes[node_id].in_links != expected
        ]

    def is_valid(self) -> bool:
        """True when validate() finds nothing."""
        return not self.validate()

    def reachable_from_entry(self, layer: int = 0) -> Set[int]:
        """Nodes reachable from the entry point by following friend lists at a layer.

        Uses BFS over directed friend-list edges.
        """
        start = self.graph.entry_point
        if start is None:
            return set()

        visited: Set[int] = {start}
        queue: deque = deque([start])

        while queue:
            current = queue.popleft()
            for neighbor in self.graph.nodes[current].get_neighbors(layer):
                if neighbor not in visited and neighbor in self.graph.nodes:
                    visited.add(neighbor)
                    queue.append(neighbor)

        return visited

    def is_connected(self, layer: int = 0) -> bool:
        """True if every node at 'layer' is reachable from the entry point."""
        at_layer = {
            node_id for node_id, node in self.graph.nodes.items() if node.level >= layer
        }
        return at_layer <= self.reachable_from_entry(layer)

    def get_graph_statistics(self, layer: int = 0) -> Dict[str, float]:
        """Compute degree statistics for one layer.

        Returns:
            Dictionary with graph metrics (node_count, avg_degree, etc.)
        """
        degrees = [
            len(node.get_neighbors(layer))
            for node in self.graph.nodes.values()
            if node.level >= layer
        ]

        if not degrees:
            return {
                "node_count": 0,
                "edge_count": 0,
                "avg_degree": 0.0,
                "min_degree": 0,
                "max_degree": 0,
            }

        return {
            "node_count": len(degrees),
            # Directed friend-list entries
            "edge_count": sum(degrees),
            "avg_degree": sum(degrees) / len(degrees),
            "min_degree": min(degrees),
            "max_degree": max(degrees),
        }
