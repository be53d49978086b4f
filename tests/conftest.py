"""
Pytest configuration and shared fixtures for smallworld tests
"""

import pytest
import numpy as np
from typing import List


@pytest.fixture
def sample_vectors() -> np.ndarray:
    """Generate sample vectors for testing."""
    rng = np.random.default_rng(42)
    return rng.random((200, 8)).astype(np.float32)


@pytest.fixture
def tiny_points() -> List[List[float]]:
    """Four 2D points: three near the origin and one far away."""
    return [[0.0, 0.0], [1.0, 0.0], [0.0, 1.0], [10.0, 10.0]]


@pytest.fixture
def dimension() -> int:
    """Standard vector dimension for testing."""
    return 8
