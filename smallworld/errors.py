"""
Error types raised by smallworld.

The dimension error subclasses ValueError so callers that already catch
ValueError for bad input keep working.
"""


class HNSWError(Exception):
    """Base class for all smallworld errors."""


class DimensionMismatchError(HNSWError, ValueError):
    """A vector's length disagrees with the graph's dimensionality."""

    def __init__(self, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Vector dimension {actual} doesn't match expected dimension {expected}"
        )


class EmptyQueueError(HNSWError, IndexError):
    """Pop attempted on a queue that has no items."""


class InsufficientItemsError(EmptyQueueError):
    """take() asked for more items than the queue holds."""

    def __init__(self, available: int, requested: int) -> None:
        self.available = available
        self.requested = requested
        super().__init__(
            f"Queue only has {available} items, but {requested} were requested"
        )


class GraphStoreError(HNSWError):
    """A persistence collaborator could not provide the requested record."""
