import threading

import pytest

from ossim.timer import Timer


def test_time_starts_at_zero():
    timer = Timer()
    assert timer.current_time() == 0


def test_attach_after_start_is_rejected():
    timer = Timer()
    event = timer.attach_event()
    timer.start()
    with pytest.raises(RuntimeError):
        timer.attach_event()
    event.detach()
    timer.stop()
    assert timer.current_time() >= 1


def test_single_event_advances_one_slot_per_call():
    timer = Timer()
    event = timer.attach_event()
    timer.start()
    seen = []
    for _ in range(5):
        event.next_slot()
        seen.append(timer.current_time())
    event.detach()
    timer.stop()
    assert seen == [1, 2, 3, 4, 5]
    assert timer.current_time() == seen[-1] + 1


def test_two_events_move_in_lockstep():
    timer = Timer()
    events = [timer.attach_event(), timer.attach_event()]
    timer.start()
    results = [[], []]

    def worker(index):
        for _ in range(4):
            events[index].next_slot()
            results[index].append(timer.current_time())
        events[index].detach()

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)
    timer.stop()
    final_time = timer.current_time()
    assert all(not thread.is_alive() for thread in threads)
    assert results[0] == [1, 2, 3, 4]
    assert results[1] == [1, 2, 3, 4]
    assert final_time == 5


def test_detached_event_no_longer_blocks_the_clock():
    timer = Timer()
    fast = timer.attach_event()
    slow = timer.attach_event()
    timer.start()
    fast.detach()
    seen = []
    for _ in range(3):
        slow.next_slot()
        seen.append(timer.current_time())
    slow.detach()
    timer.stop()
    assert seen == sorted(seen)
    assert len(set(seen)) == 3