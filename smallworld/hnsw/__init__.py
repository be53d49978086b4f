"""
HNSW (Hierarchical Navigable Small World) implementation module.

This module contains the core HNSW algorithm components for building and searching
graph-based approximate nearest neighbor indexes.

Components:
- distance: Euclidean distance and tolerance-aware float equality
- queue: Candidate priority queue (min or max ordering, update in place)
- utils: Helper functions (layer assignment, neighbor selection)
- graph: Graph data structure
- builder: Insertion algorithm
- searcher: Search algorithm
- index: Graph, builder and searcher behind one object
"""

from smallworld.hnsw.distance import euclidean_distance, nearly_equal
from smallworld.hnsw.queue import CandidateItem, CandidateQueue, closer_first, farther_first
from smallworld.hnsw.graph import HNSWNode, HNSWGraph
from smallworld.hnsw.builder import HNSWBuilder
from smallworld.hnsw.searcher import HNSWSearcher
from smallworld.hnsw.index import HNSWIndex

__all__ = [
    "euclidean_distance",
    "nearly_equal",
    "CandidateItem",
    "CandidateQueue",
    "closer_first",
    "farther_first",
    "HNSWNode",
    "HNSWGraph",
    "HNSWBuilder",
    "HNSWSearcher",
    "HNSWIndex",
]
