"""
Distance metric for vector comparisons.

The HNSW graph ranks candidates by Euclidean (L2) distance: the length of the
element-wise difference between two vectors. Smaller means more similar.

Floating point results are compared with nearly_equal() rather than ==, so that
tests and callers are not sensitive to rounding in the last few bits.
"""

from typing import Sequence, Union
import numpy as np
import numpy.typing as npt

from smallworld.errors import DimensionMismatchError

Vector = npt.NDArray[np.float64]
VectorLike = Union[Vector, Sequence[float]]

TOLERANCE = 1e-6

# Smallest normal float64, 2**-1022
MIN_NORMAL_FLOAT64 = float(np.finfo(np.float64).tiny)


def euclidean_distance(v1: VectorLike, v2: VectorLike) -> float:
    """
    Compute the Euclidean (L2) distance between two vectors.

    Args:
        v1: First vector (1D numpy array or sequence of floats)
        v2: Second vector, same length as v1

    Returns:
        sqrt(sum((v1[i] - v2[i]) ** 2)), always >= 0

    Raises:
        DimensionMismatchError: If the vectors have different lengths

    Example:
        >>> euclidean_distance([0.0, 0.0], [3.0, 4.0])
        5.0
    """
    if len(v1) != len(v2):
        raise DimensionMismatchError(expected=len(v1), actual=len(v2))

    a = np.asarray(v1, dtype=np.float64)
    b = np.asarray(v2, dtype=np.float64)

    return float(np.linalg.norm(a - b))


distance = euclidean_distance


def equal_within_abs(a: float, b: float, tol: float = TOLERANCE) -> bool:
    """True when a and b differ by no more than tol."""
    return a == b or abs(a - b) <= tol


def equal_within_rel(a: float, b: float, tol: float = TOLERANCE) -> bool:
    """
    True when |a - b| <= tol * max(|a|, |b|).

    Differences in the subnormal range are compared against tol scaled by the
    smallest normal float64 instead.
    """
    if a == b:
        return True

    delta = abs(a - b)
    if delta <= MIN_NORMAL_FLOAT64:
        return delta <= tol * MIN_NORMAL_FLOAT64

    # inf - inf is nan, and nan compares False here
    return delta / max(abs(a), abs(b)) <= tol


def nearly_equal(a: float, b: float) -> bool:
    """
    Tolerance-aware float equality (absolute or relative, 1e-6).

    Example:
        >>> nearly_equal(1.0, 1.0000001)
        True
        >>> nearly_equal(1.0, 1.1)
        False
    """
    return equal_within_abs(a, b) or equal_within_rel(a, b)


def normalize_vector(v: Vector) -> Vector:
    """
    Normalize a vector to unit length (L2 norm = 1).

    Args:
        v: Input vector (1D numpy array)

    Returns:
        Normalized vector, or v unchanged if it is the zero vector
    """
    norm = np.linalg.norm(v)

    if norm == 0.0:
        return v

    return v / norm
