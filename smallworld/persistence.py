"""
Graph storage collaborators.

An HNSW index lives in memory. To survive a restart it hands its state to a
GraphStore, which only has to keep two kinds of record:
- per node: (vector, friend lists by layer)
- per graph: (entry point ID, max layer)

MemoryGraphStore keeps them in dicts. JsonGraphStore adds a JSON file behind
the same dicts.
"""

import json
import logging
import os
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence, Tuple

from smallworld.errors import GraphStoreError

logger = logging.getLogger(__name__)

FriendLists = List[List[int]]
GraphHeader = Tuple[Optional[int], int]


class GraphStore(ABC):
    """Interface an HNSWIndex saves to and loads from."""

    @abstractmethod
    def save_node(self, node_id: int, vector: Sequence[float], friends: Sequence[Sequence[int]]) -> None:
        """Store (or overwrite) one node's vector and friend lists."""

    @abstractmethod
    def save_graph_header(self, entry_point: Optional[int], max_level: int) -> None:
        """Store the graph's entry point and max layer."""

    @abstractmethod
    def load_node(self, node_id: int) -> Tuple[List[float], FriendLists]:
        """Return (vector, friend lists) for a node, or raise GraphStoreError."""

    @abstractmethod
    def load_graph_header(self) -> GraphHeader:
        """Return (entry point, max layer); (None, -1) for an empty graph."""

    @abstractmethod
    def node_ids(self) -> List[int]:
        """IDs of every stored node, ascending."""


class MemoryGraphStore(GraphStore):
    """GraphStore backed by plain dicts."""

    def __init__(self) -> None:
        self._nodes: Dict[int, Tuple[List[float], FriendLists]] = {}
        self._header: GraphHeader = (None, -1)

    def save_node(self, node_id: int, vector: Sequence[float], friends: Sequence[Sequence[int]]) -> None:
        self._nodes[int(node_id)] = (
            [float(x) for x in vector],
            [[int(n) for n in layer] for layer in friends],
        )

    def save_graph_header(self, entry_point: Optional[int], max_level: int) -> None:
        self._header = (entry_point, int(max_level))

    def load_node(self, node_id: int) -> Tuple[List[float], FriendLists]:
        try:
            vector, friends = self._nodes[node_id]
        except KeyError:
            raise GraphStoreError(f"Node {node_id} not found in store") from None

        return list(vector), [list(layer) for layer in friends]

    def load_graph_header(self) -> GraphHeader:
        return self._header

    def node_ids(self) -> List[int]:
        return sorted(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)


class JsonGraphStore(MemoryGraphStore):
    """
    MemoryGraphStore persisted to a JSON file.

    The file is read on construction if it exists, and written by flush().
    """

    def __init__(self, filepath: str) -> None:
        super().__init__()
        self.filepath = filepath

        if os.path.exists(filepath):
            self._read()

    def _read(self) -> None:
        with open(self.filepath, 'r') as f:
            try:
                document = json.load(f)
            except json.JSONDecodeError as exc:
                raise GraphStoreError(f"Corrupt graph file {self.filepath}: {exc}") from exc

        header = document.get("header", {})
        self._header = (header.get("entry_point"), int(header.get("max_level", -1)))

        for node_id, record in document.get("nodes", {}).items():
            self.save_node(int(node_id), record["vector"], record["friends"])

        logger.info("Read %d nodes from %s", len(self._nodes), self.filepath)

    def flush(self) -> None:
        """Write the current contents to the JSON file."""
        entry_point, max_level = self._header
        document = {
            "header": {"entry_point": entry_point, "max_level": max_level},
            "nodes": {
                str(node_id): {"vector": vector, "friends": friends}
                for node_id, (vector, friends) in sorted(self._nodes.items())
            },
        }

        with open(self.filepath, 'w') as f:
            json.dump(document, f)

        logger.info("Wrote %d nodes to %s", len(self._nodes), self.filepath)
