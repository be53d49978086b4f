"""
Tests for HNSW utility functions.

These tests verify helper functions used in graph construction:
- Layer assignment (geometric distribution for hierarchical structure)
- Neighbor selection (nearest-by-distance truncation)
"""

import numpy as np
import pytest
from smallworld.hnsw.utils import assign_layer, select_neighbors_simple


def test_assign_layer_returns_non_negative():
    """Layer assignment should always return non-negative integers"""
    for _ in range(100):
        layer = assign_layer()
        assert isinstance(layer, int), "Layer should be an integer"
        assert layer >= 0, "Layer should be non-negative"


def test_assign_layer_distribution():
    """Most nodes should be at layer 0, fewer at higher layers (geometric distribution)"""
    rng = np.random.default_rng(42)
    layers = [assign_layer(M=4, rng=rng) for _ in range(2000)]

    layer_0_count = layers.count(0)
    layer_1_count = layers.count(1)
    layer_2_count = layers.count(2)

    assert layer_0_count > layer_1_count > layer_2_count
    # P(layer 0) = 1 - 1/M = 0.75
    assert 0.7 < layer_0_count / 2000 < 0.8


def test_assign_layer_with_custom_multiplier():
    """A zero-ish multiplier keeps everything at layer 0"""
    rng = np.random.default_rng(0)
    layers = [assign_layer(level_multiplier=1e-9, rng=rng) for _ in range(100)]
    assert set(layers) == {0}


def test_assign_layer_is_reproducible_with_seeded_rng():
    rng_a = np.random.default_rng(11)
    rng_b = np.random.default_rng(11)
    assert [assign_layer(M=2, rng=rng_a) for _ in range(50)] == [
        assign_layer(M=2, rng=rng_b) for _ in range(50)
    ]


def test_select_neighbors_simple():
    candidates = [10, 20, 30, 40]
    distances = [0.5, 0.2, 0.8, 0.3]

    assert select_neighbors_simple(candidates, distances, M=2) == [20, 40]


def test_select_neighbors_fewer_than_M():
    assert select_neighbors_simple([1, 2], [0.9, 0.1], M=5) == [2, 1]


def test_select_neighbors_empty():
    assert select_neighbors_simple([], [], M=3) == []
