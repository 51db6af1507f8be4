"""Multi-level queue scheduler with per-priority time slots."""

import threading

from .program import MAX_PRIO
from .queue import ProcessQueue


class Scheduler:
    """Ready queues per priority, served lowest priority number first.

    Each priority level may hand out ``max_prio - prio`` processes in a row
    before lower levels get their turn.
    """

    def __init__(self, max_prio: int = MAX_PRIO) -> None:
        self.max_prio = max_prio
        self.ready_queue = ProcessQueue()
        self.run_queue = ProcessQueue()
        self.running_list = ProcessQueue()
        self.mlq_ready_queue = [ProcessQueue() for _ in range(max_prio)]
        self.slot = [max_prio - prio for prio in range(max_prio)]
        self._lock = threading.Lock()

    def queue_empty(self) -> bool:
        """Tell whether no process waits in any ready queue."""
        if any(not queue.empty() for queue in self.mlq_ready_queue):
            return False
        return self.ready_queue.empty() and self.run_queue.empty()

    def get_proc(self):
        """Take the next process to run, or None if none is waiting."""
        with self._lock:
            for prio, queue in enumerate(self.mlq_ready_queue):
                if queue.empty() or self.slot[prio] == 0:
                    self.slot[prio] = self.max_prio - prio
                    continue
                self.slot[prio] -= 1
                return queue.dequeue()
        return None

    def _enlist(self, proc) -> None:
        if not 0 <= proc.prio < self.max_prio:
            raise ValueError(f"priority {proc.prio} outside 0..{self.max_prio - 1}")
        proc.ready_queue = self.ready_queue
        proc.mlq_ready_queue = self.mlq_ready_queue
        proc.running_list = self.running_list
        with self._lock:
            self.running_list.enqueue(proc)
        with self._lock:
            self.mlq_ready_queue[proc.prio].enqueue(proc)

    def put_proc(self, proc) -> None:
        """Put a process that used up its time slot back in its ready queue."""
        if proc is not None:
            self._enlist(proc)

    def add_proc(self, proc) -> None:
        """Add a newly loaded process to its ready queue."""
        if proc is not None:
            self._enlist(proc)