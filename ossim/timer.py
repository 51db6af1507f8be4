"""Discrete time-slot clock that keeps a set of worker threads in lockstep."""

import threading


class TimerEvent:
    """A participant of the clock; it reports when its work for a slot is done."""

    def __init__(self) -> None:
        self.done = False
        self.fsh = False
        self._cond = threading.Condition()

    def next_slot(self) -> None:
        """Report this slot as done and block until the clock moves on."""
        with self._cond:
            self.done = True
            self._cond.notify_all()
            while self.done:
                self._cond.wait()

    def detach(self) -> None:
        """Leave the clock for good; it no longer waits for this participant."""
        with self._cond:
            self.fsh = True
            self._cond.notify_all()

    def _wait_slot_end(self) -> bool:
        """Wait until the participant is done or detached; tell if detached."""
        with self._cond:
            while not self.done and not self.fsh:
                self._cond.wait()
            return self.fsh

    def _release(self) -> None:
        with self._cond:
            self.done = False
            self._cond.notify_all()


class Timer:
    """Advances the time once every attached participant finished the slot."""

    def __init__(self) -> None:
        self._events: list = []
        self._time = 0
        self._started = False
        self._stopped = False
        self._thread = None

    def attach_event(self) -> TimerEvent:
        """Register a new participant; only allowed before the clock starts."""
        if self._started:
            raise RuntimeError("cannot attach an event to a running timer")
        event = TimerEvent()
        self._events.insert(0, event)
        return event

    def _routine(self) -> None:
        while not self._stopped:
            print(f"Time slot {self._time:3d}")
            finished = sum(event._wait_slot_end() for event in self._events)
            self._time += 1
            for event in self._events:
                event._release()
            if finished == len(self._events):
                break

    def start(self) -> None:
        """Start the clock thread."""
        if self._started:
            return
        self._started = True
        self._thread = threading.Thread(target=self._routine, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Ask the clock to stop and wait for its thread to end."""
        self._stopped = True
        if self._thread is not None:
            self._thread.join()
        self._events.clear()

    def current_time(self) -> int:
        """Return the number of slots that have elapsed."""
        return self._time