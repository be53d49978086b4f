"""
Candidate priority queue used by HNSW insertion and search.

During a layer search we keep two working sets:
- a frontier of nodes still to expand, where the closest node should come out first
- a capped result set, where the farthest node should come out first so it can be
  evicted as soon as a better candidate shows up

Both are the same binary heap with a different ordering predicate. The heap also
keeps a mapping from node ID to its item, so a node that is found again is
re-prioritized in place instead of being pushed a second time.
"""

from typing import Callable, Dict, Iterable, List, Optional, Tuple

from smallworld.errors import EmptyQueueError, InsufficientItemsError


class CandidateItem:
    """
    A (node ID, distance) entry held by a CandidateQueue.

    'index' is the item's position in the queue's backing array. The queue
    rewrites it on every swap; it is -1 once the item has left the queue.
    """

    __slots__ = ("node_id", "dist", "index")

    def __init__(self, node_id: int, dist: float, index: int = -1) -> None:
        self.node_id = node_id
        self.dist = dist
        self.index = index

    def __repr__(self) -> str:
        return f"CandidateItem(node_id={self.node_id}, dist={self.dist:.6f}, index={self.index})"


# Returns True when the first item should sit above the second in the heap
Comparator = Callable[[CandidateItem, CandidateItem], bool]


def closer_first(a: CandidateItem, b: CandidateItem) -> bool:
    """Min ordering: the smallest distance is on top."""
    return a.dist < b.dist


def farther_first(a: CandidateItem, b: CandidateItem) -> bool:
    """Max ordering: the largest distance is on top."""
    return a.dist > b.dist


class CandidateQueue:
    """
    Array-backed binary heap over CandidateItems with O(1) lookup by node ID.

    The ordering comes from an injected comparator, so one implementation serves
    as both the min-queue (closer_first) and the max-queue (farther_first).
    """

    def __init__(self, comparator: Comparator = closer_first) -> None:
        """
        Create an empty queue.

        Args:
            comparator: Ordering predicate, closer_first or farther_first
        """
        self.comparator = comparator
        self._items: List[CandidateItem] = []
        self._by_id: Dict[int, CandidateItem] = {}

    @classmethod
    def from_items(
        cls, pairs: Iterable[Tuple[int, float]], comparator: Comparator = closer_first
    ) -> "CandidateQueue":
        """
        Build a queue from (node_id, dist) pairs in one heapify pass.

        A node ID that appears more than once keeps its last distance.
        """
        queue = cls(comparator)
        for node_id, dist in pairs:
            item = queue._by_id.get(node_id)
            if item is not None:
                item.dist = dist
                continue
            item = CandidateItem(node_id, dist, len(queue._items))
            queue._items.append(item)
            queue._by_id[node_id] = item

        for i in range(len(queue._items) // 2 - 1, -1, -1):
            queue._sift_down(i)

        return queue

    @classmethod
    def from_queue(cls, other: "CandidateQueue", comparator: Comparator) -> "CandidateQueue":
        """Copy another queue's contents under a (possibly different) ordering."""
        return cls.from_items(((item.node_id, item.dist) for item in other._items), comparator)

    def insert(self, node_id: int, dist: float) -> None:
        """
        Add a node, or re-prioritize it if it is already queued.

        Args:
            node_id: Graph node ID
            dist: Distance used as the rank key
        """
        item = self._by_id.get(node_id)
        if item is not None:
            self._update(item, dist)
            return

        item = CandidateItem(node_id, dist, len(self._items))
        self._items.append(item)
        self._by_id[node_id] = item
        self._sift_up(item.index)

    def _update(self, item: CandidateItem, dist: float) -> None:
        """Change an item's distance and restore heap order from its position."""
        item.dist = dist
        # At most one of these moves the item
        self._sift_up(item.index)
        self._sift_down(item.index)

    def pop_top(self) -> CandidateItem:
        """
        Remove and return the top-ranked item.

        Raises:
            EmptyQueueError: If the queue is empty
        """
        if not self._items:
            raise EmptyQueueError("No items to pop from an empty queue")

        last = len(self._items) - 1
        self._swap(0, last)
        item = self._items.pop()
        if self._items:
            self._sift_down(0)

        del self._by_id[item.node_id]
        item.index = -1
        return item

    def top(self) -> Optional[CandidateItem]:
        """Peek at the top-ranked item, or None if the queue is empty."""
        if not self._items:
            return None
        return self._items[0]

    def take(self, count: int, comparator: Comparator) -> "CandidateQueue":
        """
        Pop the top 'count' items into a new queue ordered by 'comparator'.

        Taking from a farther_first queue into a closer_first queue flips the
        selection into ascending distance order.

        Args:
            count: Number of items to move
            comparator: Ordering for the returned queue

        Returns:
            New queue holding the moved items

        Raises:
            InsufficientItemsError: If count exceeds the queue size (queue is left unchanged)
        """
        if count > len(self._items):
            raise InsufficientItemsError(available=len(self._items), requested=count)

        taken = CandidateQueue(comparator)
        for _ in range(count):
            item = self.pop_top()
            taken.insert(item.node_id, item.dist)

        return taken

    def drain(self) -> List[CandidateItem]:
        """Pop every item, returning them in queue order."""
        drained = []
        while self._items:
            drained.append(self.pop_top())
        return drained

    def get(self, node_id: int) -> Optional[CandidateItem]:
        """Return the queued item for node_id, or None."""
        return self._by_id.get(node_id)

    def is_empty(self) -> bool:
        return not self._items

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._by_id

    def __repr__(self) -> str:
        top = self.top()
        top_str = f"{top.node_id}@{top.dist:.6f}" if top is not None else "None"
        return f"CandidateQueue(size={len(self)}, order={self.comparator.__name__}, top={top_str})"

    # Heap maintenance

    def _ranks_above(self, i: int, j: int) -> bool:
        return self.comparator(self._items[i], self._items[j])

    def _swap(self, i: int, j: int) -> None:
        items = self._items
        items[i], items[j] = items[j], items[i]
        items[i].index = i
        items[j].index = j

    def _sift_up(self, i: int) -> None:
        while i > 0:
            parent = (i - 1) // 2
            if not self._ranks_above(i, parent):
                break
            self._swap(i, parent)
            i = parent

    def _sift_down(self, i: int) -> None:
        n = len(self._items)
        while True:
            best = i
            left = 2 * i + 1
            right = left + 1
            if left < n and self._ranks_above(left, best):
                best = left
            if right < n and self._ranks_above(right, best):
                best = right
            if best == i:
                return
            self._swap(i, best)
            i = best
