from ossim import libmem
from ossim.memphy import MemPhy
from ossim.mm import MemoryMap
from ossim.program import Process
from ossim.scheduler import Scheduler
from ossim.sysmem import MemOp, Registers
from ossim.syscalls import (
    libsyscall,
    sys_killall,
    sys_listsyscall,
    sys_ni_syscall,
    syscall,
    syscall_table,
)


def _memory_process(path="input/proc/shell", prio=0, pid=1):
    proc = Process(pid=pid, priority=0, path=path, prio=prio)
    proc.mm = MemoryMap()
    proc.mram = MemPhy(1 << 14)
    proc.active_mswp = MemPhy(1 << 14)
    proc.mswp = [proc.active_mswp]
    return proc


def _store_name(proc, reg, name):
    libmem.liballoc(proc, 300, reg)
    for offset, char in enumerate(name):
        libmem.libwrite(proc, ord(char), reg, offset)
    libmem.libwrite(proc, -1, reg, len(name))


def test_table_lists_memmap():
    assert "17-sys_memmap" in syscall_table()


def test_table_is_sorted_by_number():
    numbers = [int(entry.split("-", 1)[0]) for entry in syscall_table()]
    assert numbers == sorted(numbers)


def test_listsyscall_prints_table(capsys):
    assert sys_listsyscall(None, Registers()) == 0
    assert capsys.readouterr().out.splitlines() == syscall_table()


def test_unknown_syscall_reports_error(capsys):
    regs = Registers()
    assert syscall(None, 999, regs) == 0
    assert regs.orig_ax == 999
    out = capsys.readouterr().out
    assert "ERROR: Called non-implemented system call (nr=999)" in out
    assert all(entry in out for entry in syscall_table())


def test_ni_syscall_uses_orig_ax(capsys):
    assert sys_ni_syscall(None, Registers(orig_ax=42)) == 0
    assert "(nr=42)" in capsys.readouterr().out


def test_libsyscall_memmap_write_reaches_ram():
    proc = _memory_process()
    assert libsyscall(proc, 17, MemOp.IO_WRITE, 300, 42) == 0
    assert proc.mram.read(300) == 42


def test_killall_removes_matching_processes(capsys):
    scheduler = Scheduler()
    caller = _memory_process()
    target = _memory_process(path="input/proc/p0", prio=3, pid=2)
    scheduler.add_proc(caller)
    scheduler.add_proc(target)
    _store_name(caller, 1, "p0")
    capsys.readouterr()

    count = sys_killall(caller, Registers(a1=1))

    assert count == 2
    assert target not in list(caller.running_list)
    assert target not in list(caller.mlq_ready_queue[3])
    assert caller in list(caller.running_list)
    out = capsys.readouterr().out
    assert '"input/proc/p0"' in out


def test_killall_without_match_keeps_queues():
    scheduler = Scheduler()
    caller = _memory_process()
    other = _memory_process(path="input/proc/p1", prio=1, pid=3)
    scheduler.add_proc(caller)
    scheduler.add_proc(other)
    _store_name(caller, 2, "zz")

    assert sys_killall(caller, Registers(a1=2)) == 0
    assert other in list(caller.running_list)
    assert other in list(caller.mlq_ready_queue[1])


def test_killall_through_dispatcher():
    scheduler = Scheduler()
    caller = _memory_process()
    target = _memory_process(path="input/proc/job", prio=0, pid=4)
    scheduler.add_proc(caller)
    scheduler.add_proc(target)
    _store_name(caller, 1, "job")

    assert libsyscall(caller, 101, 1, 0, 0) == 2
    assert len(caller.running_list) == 1