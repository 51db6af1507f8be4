"""System call table, dispatcher and the process-management system calls."""

import itertools

from .libmem import libread
from .sysmem import Registers, sys_memmap

_PROC_DIR = "input/proc/"
_NAME_LIMIT = 99
_END_MARK = 0xFFFFFFFF


def _print_table() -> None:
    for entry in syscall_table():
        print(entry)


def sys_ni_syscall(caller, regs: Registers) -> int:
    """Report a call to a system call number that has no handler."""
    print(f"ERROR: Called non-implemented system call (nr={regs.orig_ax})")
    print("Available system calls:")
    _print_table()
    return 0


def sys_listsyscall(caller, regs: Registers) -> int:
    """Print every entry of the system call table."""
    _print_table()
    return 0


def _read_name(caller, memrg: int) -> str:
    """Read a name stored byte by byte in region ``memrg``, ended by -1."""
    chars = []
    for offset in itertools.count():
        data = libread(caller, memrg, offset)
        if data == _END_MARK:
            break
        chars.append(chr(data & 0xFF))
        if len(chars) >= _NAME_LIMIT:
            break
    return "".join(chars)


def _remove_named(queue, path: str) -> int:
    victims = [
        proc for proc in reversed(list(queue))
        if proc is not None and proc.path == path
    ]
    for proc in victims:
        queue.remove(proc)
    return len(victims)


def sys_killall(caller, regs: Registers) -> int:
    """Remove every queued process whose program is named in region ``regs.a1``.

    Returns the number of removals, counting the running list and the
    ready queues separately.
    """
    memrg = regs.a1
    proc_name = _PROC_DIR + _read_name(caller, memrg)
    print(f'The procname retrieved from memregionid {memrg} is "{proc_name}"')

    terminated = 0
    if caller.running_list is not None:
        terminated += _remove_named(caller.running_list, proc_name)
    if caller.mlq_ready_queue is not None:
        terminated += sum(
            _remove_named(queue, proc_name) for queue in caller.mlq_ready_queue
        )
    elif caller.ready_queue is not None:
        terminated += _remove_named(caller.ready_queue, proc_name)

    print(f"Total of {terminated} processes named '{proc_name}' terminated")
    return terminated


_SYSCALLS = {
    0: ("sys_listsyscall", sys_listsyscall),
    17: ("sys_memmap", sys_memmap),
    101: ("sys_killall", sys_killall),
}


def syscall_table() -> list:
    """Return the table entries as ``"<nr>-<name>"`` strings, by number."""
    return [f"{nr}-{name}" for nr, (name, _) in sorted(_SYSCALLS.items())]


def syscall(caller, nr: int, regs: Registers) -> int:
    """Dispatch system call ``nr`` with the given registers."""
    regs.orig_ax = nr
    entry = _SYSCALLS.get(nr)
    if entry is None:
        return sys_ni_syscall(caller, regs)
    return entry[1](caller, regs)


def libsyscall(caller, syscall_idx: int, a1: int, a2: int, a3: int) -> int:
    """Issue system call ``syscall_idx`` with three argument registers."""
    return syscall(caller, syscall_idx, Registers(a1=a1, a2=a2, a3=a3))