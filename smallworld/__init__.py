"""
smallworld - In-memory HNSW approximate nearest-neighbor search

A Hierarchical Navigable Small World graph over fixed-dimension vectors,
ranked by Euclidean distance.
"""

__version__ = "0.1.0"

from smallworld.config import (
    HNSWConfig,
    get_default_config,
    get_fast_config,
    get_high_recall_config,
)
from smallworld.errors import (
    HNSWError,
    DimensionMismatchError,
    EmptyQueueError,
    InsufficientItemsError,
    GraphStoreError,
)
from smallworld.hnsw.index import HNSWIndex
from smallworld.persistence import GraphStore, MemoryGraphStore, JsonGraphStore
from smallworld.vector_store import VectorStore

__all__ = [
    "VectorStore",
    "HNSWIndex",
    "HNSWConfig",
    "get_default_config",
    "get_fast_config",
    "get_high_recall_config",
    "HNSWError",
    "DimensionMismatchError",
    "EmptyQueueError",
    "InsufficientItemsError",
    "GraphStoreError",
    "GraphStore",
    "MemoryGraphStore",
    "JsonGraphStore",
]
