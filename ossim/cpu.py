"""The simulated CPU: executes one instruction of a process at a time."""

from .libmem import liballoc, libfree, libread, libwrite
from .program import Opcode
from .syscalls import libsyscall


def run(proc) -> bool:
    """Execute the instruction at ``proc.pc`` and advance the program counter.

    Returns False, doing nothing, when the program counter is past the end
    of the code; True once an instruction has been executed. Errors raised
    by the memory library propagate.
    """
    if proc.pc >= len(proc.code):
        return False

    ins = proc.code[proc.pc]
    proc.pc += 1

    if ins.opcode is Opcode.CALC:
        pass
    elif ins.opcode is Opcode.ALLOC:
        liballoc(proc, ins.arg_0, ins.arg_1)
    elif ins.opcode is Opcode.FREE:
        libfree(proc, ins.arg_0)
    elif ins.opcode is Opcode.READ:
        libread(proc, ins.arg_0, ins.arg_1)
    elif ins.opcode is Opcode.WRITE:
        libwrite(proc, ins.arg_0, ins.arg_1, ins.arg_2)
    elif ins.opcode is Opcode.SYSCALL:
        libsyscall(proc, ins.arg_0, ins.arg_1, ins.arg_2, ins.arg_3)
    else:
        raise ValueError(f"unknown opcode {ins.opcode!r}")
    return True