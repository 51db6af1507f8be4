"""The memory-mapping system call used by the paging library."""

from contextlib import suppress
from dataclasses import dataclass
from enum import IntEnum

from .mm import MemoryManagementError, inc_vma_limit, mm_swap_page

_WORD = 0xFFFFFFFF


class MemOp(IntEnum):
    """Operations of the memory-mapping system call."""

    MAP = 1
    INC = 2
    SWP = 3
    IO_READ = 4
    IO_WRITE = 5


@dataclass
class Registers:
    """Argument registers passed to a system call."""

    a1: int = 0
    a2: int = 0
    a3: int = 0
    a4: int = 0
    a5: int = 0
    a6: int = 0
    orig_ax: int = 0
    flags: int = 0


def sys_memmap(caller, regs: Registers) -> int:
    """Carry out the memory operation selected by ``regs.a1``; return 0."""
    memop = regs.a1
    try:
        op = MemOp(memop)
    except ValueError:
        print(f"Memop code: {memop}")
        return 0

    if op is MemOp.INC:
        with suppress(MemoryManagementError):
            inc_vma_limit(caller, regs.a2, regs.a3)
    elif op is MemOp.SWP:
        print(f"Swap page {regs.a2} with {regs.a3}")
        with suppress(MemoryManagementError):
            mm_swap_page(caller, regs.a2, regs.a3)
    elif op is MemOp.IO_READ:
        print(f"Read from memphy {regs.a2}")
        regs.a3 = caller.mram.read(regs.a2) & _WORD
    elif op is MemOp.IO_WRITE:
        print(f"Write to memphy {regs.a2}")
        caller.mram.write(regs.a2, regs.a3)
    return 0