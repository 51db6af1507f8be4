import pytest

from ossim.queue import MAX_QUEUE_SIZE, ProcessQueue


def test_fifo_order():
    q = ProcessQueue()
    procs = [object() for _ in range(3)]
    for proc in procs:
        q.enqueue(proc)
    assert [q.dequeue() for _ in range(3)] == procs
    assert q.empty()


def test_dequeue_empty_returns_none():
    assert ProcessQueue().dequeue() is None


def test_capacity_limit_drops_extra():
    q = ProcessQueue()
    procs = [object() for _ in range(MAX_QUEUE_SIZE + 2)]
    for proc in procs:
        q.enqueue(proc)
    assert len(q) == MAX_QUEUE_SIZE
    assert list(q) == procs[:MAX_QUEUE_SIZE]


def test_none_is_ignored():
    q = ProcessQueue(capacity=2)
    q.enqueue(None)
    assert len(q) == 0
    assert q.empty()


def test_remove_by_identity():
    q = ProcessQueue()
    a, b, c = object(), object(), object()
    for proc in (a, b, c):
        q.enqueue(proc)
    q.remove(b)
    assert list(q) == [a, c]
    with pytest.raises(ValueError):
        q.remove(b)


def test_iteration_is_snapshot():
    q = ProcessQueue()
    a, b = object(), object()
    q.enqueue(a)
    q.enqueue(b)
    seen = []
    for proc in q:
        seen.append(proc)
        q.remove(proc)
    assert seen == [a, b]
    assert q.empty()