"""Bounded first-in first-out queue of processes."""

MAX_QUEUE_SIZE = 10


class ProcessQueue:
    """A fixed-capacity FIFO queue; extra processes are silently dropped."""

    def __init__(self, capacity: int = MAX_QUEUE_SIZE) -> None:
        self.capacity = capacity
        self._items: list = []

    def enqueue(self, proc) -> None:
        """Append ``proc`` unless it is None or the queue is full."""
        if proc is None or len(self._items) >= self.capacity:
            return
        self._items.append(proc)

    def dequeue(self):
        """Remove and return the oldest process, or None when empty."""
        if not self._items:
            return None
        return self._items.pop(0)

    def empty(self) -> bool:
        """Tell whether the queue holds no process."""
        return not self._items

    def remove(self, proc) -> None:
        """Remove ``proc`` (matched by identity); raise ValueError if absent."""
        for pos, item in enumerate(self._items):
            if item is proc:
                del self._items[pos]
                return
        raise ValueError("process not in queue")

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(list(self._items))