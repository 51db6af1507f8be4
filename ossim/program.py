"""Process descriptions: instructions, process control blocks and the loader."""

import itertools
import re
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path

ADDRESS_SIZE = 20
OFFSET_LEN = 10
FIRST_LV_LEN = 5
SECOND_LV_LEN = 5
NUM_PAGES = 1 << (ADDRESS_SIZE - OFFSET_LEN)
PAGE_SIZE = 1 << OFFSET_LEN
MAX_PRIO = 140
NUM_REGISTERS = 10

_WORD = 0xFFFFFFFF
_FIELD = re.compile(r"\s*(\S+)")
_INT = re.compile(r"[+-]?\d+")
_pids = itertools.count(1)


class ProgramError(Exception):
    """Raised when a process description cannot be read or parsed."""


class Opcode(IntEnum):
    """Instructions understood by the simulated CPU."""

    CALC = 0
    ALLOC = 1
    FREE = 2
    READ = 3
    WRITE = 4
    SYSCALL = 5


_OPCODES = {op.name.lower(): op for op in Opcode}
_ARITY = {
    Opcode.CALC: 0,
    Opcode.ALLOC: 2,
    Opcode.FREE: 1,
    Opcode.READ: 3,
    Opcode.WRITE: 3,
}


@dataclass
class Instruction:
    """One instruction with up to four unsigned 32-bit arguments."""

    opcode: Opcode
    arg_0: int = 0
    arg_1: int = 0
    arg_2: int = 0
    arg_3: int = 0


@dataclass(eq=False)
class Process:
    """Process control block of a simulated process."""

    pid: int
    priority: int
    path: str
    code: list = field(default_factory=list)
    regs: list = field(default_factory=lambda: [0] * NUM_REGISTERS)
    pc: int = 0
    bp: int = PAGE_SIZE
    prio: int = 0
    ready_queue: object = None
    running_list: object = None
    mlq_ready_queue: object = None
    mm: object = None
    mram: object = None
    mswp: object = None
    active_mswp: object = None
    active_mswp_id: int = 0


def parse_opcode(name: str) -> Opcode:
    """Return the opcode spelled ``name`` (lower case, exact)."""
    try:
        return _OPCODES[name]
    except KeyError:
        raise ProgramError(f"unknown opcode: {name}") from None


class _Scanner:
    """Whitespace-separated reader over a program text."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def word(self, what: str) -> str:
        match = _FIELD.match(self.text, self.pos)
        if match is None:
            raise ProgramError(f"unexpected end of program while reading {what}")
        self.pos = match.end()
        return match.group(1)

    def number(self, what: str) -> int:
        item = self.word(what)
        if not _INT.fullmatch(item):
            raise ProgramError(f"expected a number for {what}, got {item!r}")
        return int(item) & _WORD

    def rest_of_line(self) -> str:
        end = self.text.find("\n", self.pos)
        if end < 0:
            line, self.pos = self.text[self.pos:], len(self.text)
        else:
            line, self.pos = self.text[self.pos:end], end + 1
        return line


def _syscall_args(line: str) -> list:
    args = []
    for item in line.split()[:4]:
        if not _INT.fullmatch(item):
            break
        args.append(int(item) & _WORD)
    return args


def parse_program(text: str, path) -> Process:
    """Build a new process, with a fresh pid, from a program description."""
    scanner = _Scanner(text)
    priority = scanner.number("priority")
    size = scanner.number("code size")
    code = []
    for _ in range(size):
        opcode = parse_opcode(scanner.word("opcode"))
        if opcode is Opcode.SYSCALL:
            args = _syscall_args(scanner.rest_of_line())
        else:
            args = [scanner.number(f"{opcode.name.lower()} argument")
                    for _ in range(_ARITY[opcode])]
        code.append(Instruction(opcode, *args))
    return Process(pid=next(_pids), priority=priority, path=str(path), code=code)


def load(path) -> Process:
    """Read the program at ``path`` and return its new process."""
    try:
        text = Path(path).read_text()
    except OSError as exc:
        raise ProgramError(f"Cannot find process description at '{path}'") from exc
    return parse_program(text, path)