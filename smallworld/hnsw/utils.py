"""
Utility functions for HNSW graph construction.

This module provides helper functions used during HNSW index building:
- Layer assignment: Determines which layers a new node should appear in
- Neighbor selection: Chooses which edges to keep when a friend list overflows

The layer assignment uses a geometric distribution to create a hierarchical structure,
where most nodes are only in layer 0, and progressively fewer nodes appear in higher layers.
This hierarchy allows for efficient search by starting at sparse top layers and zooming in.
"""

from typing import List, Optional
import numpy as np


def assign_layer(
    M: Optional[int] = None,
    level_multiplier: Optional[float] = None,
    rng: Optional[np.random.Generator] = None,
) -> int:
    """
    Randomly assign a layer for a new node using geometric distribution per HNSW paper.

    Formula (Malkov & Yashunin 2016): layer = floor(-ln(uniform(0,1)) * mL)
    where mL = 1/ln(M) for optimal performance

    Args:
        M: Maximum connections per node (used to calculate level_multiplier if not provided)
           Default: 16 (recommended by HNSW paper)
        level_multiplier: Explicit level multiplier (overrides M if provided)
        rng: Optional numpy Generator for reproducible levels (default: global numpy RNG)

    Returns:
        Layer number (0 = bottom layer, higher = sparser upper layers)

    Example:
        >>> # For M=16: ~93.75% at layer 0, ~6.25% at layer 1, ~0.39% at layer 2
        >>> layers = [assign_layer(M=16) for _ in range(10000)]
        >>> layers.count(0) / 10000  # Should be ~0.9375 (93.75%)
    """
    if level_multiplier is None:
        if M is None:
            M = 16
        level_multiplier = 1.0 / np.log(M)

    # uniform() draws from [0, 1); flip it to (0, 1] so log() stays finite
    if rng is None:
        random_value = 1.0 - np.random.uniform(0, 1)
    else:
        random_value = 1.0 - rng.uniform(0, 1)

    return int(-np.log(random_value) * level_multiplier)


def select_neighbors_simple(
    candidates: List[int], distances: List[float], M: int
) -> List[int]:
    """
    Select M nearest neighbors from candidates based on distances.

    This is nearest-by-distance truncation: the M closest nodes are kept and the
    rest are dropped.

    Args:
        candidates: List of node IDs
        distances: List of distances (parallel to candidates, lower = closer)
        M: Maximum number of neighbors to select

    Returns:
        List of selected node IDs (up to M nodes, sorted by distance)

    Example:
        >>> candidates = [10, 20, 30, 40]
        >>> distances = [0.5, 0.2, 0.8, 0.3]
        >>> select_neighbors_simple(candidates, distances, M=2)
        [20, 40]
    """
    if len(candidates) == 0:
        return []

    paired = sorted(zip(candidates, distances), key=lambda x: x[1])

    return [node_id for node_id, _ in paired[:M]]
