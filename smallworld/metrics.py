"""
Metrics for evaluating HNSW search quality.

This module provides functions to:
- Compute recall@k (fraction of ground truth neighbors retrieved)
- Compute exact ground truth via brute force search
"""

import numpy as np
from typing import List, Tuple

from smallworld.errors import DimensionMismatchError


def compute_recall_at_k(
    retrieved_ids: List[int],
    ground_truth_ids: List[int],
    k: int = 10
) -> float:
    """
    Compute recall@k: fraction of ground truth neighbors retrieved.

    Args:
        retrieved_ids: IDs returned by search (ordered by relevance)
        ground_truth_ids: True k-nearest neighbor IDs
        k: Number of neighbors to consider

    Returns:
        Recall@k value between 0.0 (no correct neighbors) and 1.0 (all correct)

    Example:
        >>> retrieved = [1, 2, 3, 99, 98]
        >>> ground_truth = [1, 2, 3, 4, 5]
        >>> compute_recall_at_k(retrieved, ground_truth, k=5)
        0.6
    """
    retrieved_set = set(retrieved_ids[:k])
    ground_truth_set = set(ground_truth_ids[:k])

    correct_retrievals = len(retrieved_set & ground_truth_set)

    return correct_retrievals / k if k > 0 else 0.0


def brute_force_knn(
    vectors: np.ndarray,
    query: np.ndarray,
    k: int = 10
) -> List[Tuple[int, float]]:
    """
    Exact k nearest neighbors by Euclidean distance.

    Row i of 'vectors' is treated as node ID i, which matches the IDs an
    index assigns when the rows are inserted in order into an empty graph.

    Args:
        vectors: Array of shape (n, dimension)
        query: Array of shape (dimension,)
        k: Number of neighbors

    Returns:
        List of (row_index, distance), closest first
    """
    vectors = np.asarray(vectors, dtype=np.float64)
    query = np.asarray(query, dtype=np.float64)

    if vectors.shape[1] != len(query):
        raise DimensionMismatchError(expected=vectors.shape[1], actual=len(query))

    distances = np.linalg.norm(vectors - query, axis=1)
    order = np.argsort(distances, kind="stable")[:k]

    return [(int(i), float(distances[i])) for i in order]
