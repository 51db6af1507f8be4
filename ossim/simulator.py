"""The whole operating-system simulation: loader, CPUs, scheduler and clock."""

import sys
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import NamedTuple

from .bits import PAGING_MAX_MMSWP
from .cpu import run as run_instruction
from .memphy import MemPhy, MemPhyError
from .mm import MemoryManagementError, MemoryMap
from .program import MAX_PRIO, ProgramError, parse_program
from .scheduler import Scheduler
from .timer import Timer

_PROC_DIR = "input/proc/"
_INPUT_DIR = "input/"


class _LoadEntry(NamedTuple):
    start_time: int
    path: str
    prio: int


@dataclass
class Config:
    """Simulation settings: time slice, CPUs, memory sizes and processes."""

    time_slot: int
    num_cpus: int
    memramsz: int
    memswpsz: list = field(default_factory=lambda: [0] * PAGING_MAX_MMSWP)
    processes: list = field(default_factory=list)


class _Tokens:
    def __init__(self, text: str, path) -> None:
        self._tokens = iter(text.split())
        self._path = path

    def word(self, what: str) -> str:
        token = next(self._tokens, None)
        if token is None:
            raise ValueError(f"{self._path}: missing {what}")
        return token

    def number(self, what: str) -> int:
        token = self.word(what)
        try:
            return int(token)
        except ValueError:
            raise ValueError(f"{self._path}: expected a number for {what}, got {token!r}") from None


def read_config(path) -> Config:
    """Read a simulation configuration file."""
    try:
        text = Path(path).read_text()
    except OSError as exc:
        raise FileNotFoundError(f"Cannot find configure file at {path}") from exc
    tokens = _Tokens(text, path)
    time_slot = tokens.number("time slot")
    num_cpus = tokens.number("number of CPUs")
    num_processes = tokens.number("number of processes")
    memramsz = tokens.number("RAM size")
    memswpsz = [tokens.number(f"swap {sit} size") for sit in range(PAGING_MAX_MMSWP)]
    processes = []
    for _ in range(num_processes):
        start_time = tokens.number("start time")
        name = tokens.word("process name")
        prio = tokens.number("priority")
        processes.append(_LoadEntry(start_time, _PROC_DIR + name, prio))
    return Config(time_slot, num_cpus, memramsz, memswpsz, processes)


class Simulator:
    """Runs the configured processes on simulated CPUs until all finish."""

    def __init__(self, config: Config, base_dir=".") -> None:
        self.config = config
        self.base_dir = Path(base_dir)
        self.mram = MemPhy(config.memramsz, True)
        self.mswp = [MemPhy(size, True) for size in config.memswpsz]
        self.timer = None
        self.scheduler = None
        self._done = False
        self._errors: list = []
        self._finished: list = []
        self._finished_lock = threading.Lock()

    def _load(self, rel_path: str):
        try:
            text = (self.base_dir / rel_path).read_text()
        except OSError as exc:
            raise ProgramError(f"Cannot find process description at '{rel_path}'") from exc
        return parse_program(text, rel_path)

    def _load_routine(self, event) -> None:
        print("ld_routine")
        try:
            for entry in self.config.processes:
                proc = self._load(entry.path)
                proc.prio = entry.prio
                while self.timer.current_time() < entry.start_time:
                    event.next_slot()
                proc.mm = MemoryMap()
                proc.mram = self.mram
                proc.mswp = self.mswp
                proc.active_mswp = self.mswp[0]
                proc.active_mswp_id = 0
                print(f"\tLoaded a process at {entry.path}, PID: {proc.pid} PRIO: {entry.prio}")
                self.scheduler.add_proc(proc)
                event.next_slot()
        except Exception as exc:
            self._errors.append(exc)
        finally:
            self._done = True
            event.detach()

    def _finish(self, cpu_id: int, proc) -> None:
        print(f"\tCPU {cpu_id}: Processed {proc.pid:2d} has finished")
        with self._finished_lock:
            self._finished.append(proc)

    def _cpu_routine(self, cpu_id: int, event) -> None:
        scheduler = self.scheduler
        time_left = 0
        proc = None
        try:
            while True:
                if proc is None:
                    proc = scheduler.get_proc()
                elif proc.pc == len(proc.code):
                    self._finish(cpu_id, proc)
                    proc = scheduler.get_proc()
                    time_left = 0
                elif time_left == 0:
                    print(f"\tCPU {cpu_id}: Put process {proc.pid:2d} to run queue")
                    scheduler.put_proc(proc)
                    proc = scheduler.get_proc()

                if proc is None and self._done:
                    print(f"\tCPU {cpu_id} stopped")
                    break
                if proc is None:
                    event.next_slot()
                    continue
                if time_left == 0:
                    print(f"\tCPU {cpu_id}: Dispatched process {proc.pid:2d}")
                    time_left = self.config.time_slot

                try:
                    run_instruction(proc)
                except (MemoryManagementError, MemPhyError):
                    pass
                time_left -= 1
                event.next_slot()
        except Exception as exc:
            self._errors.append(exc)
        finally:
            event.detach()

    def run(self) -> list:
        """Run the simulation; return the finished processes in finishing order."""
        self.timer = Timer()
        self.scheduler = Scheduler(MAX_PRIO)
        self._done = False
        self._errors = []
        self._finished = []

        cpu_events = [self.timer.attach_event() for _ in range(self.config.num_cpus)]
        ld_event = self.timer.attach_event()
        self.timer.start()

        loader = threading.Thread(target=self._load_routine, args=(ld_event,))
        cpus = [
            threading.Thread(target=self._cpu_routine, args=(cpu_id, event))
            for cpu_id, event in enumerate(cpu_events)
        ]
        loader.start()
        for cpu in cpus:
            cpu.start()
        for cpu in cpus:
            cpu.join()
        loader.join()
        self.timer.stop()

        if self._errors:
            raise self._errors[0]
        return list(self._finished)


def main(argv=None) -> int:
    """Run the simulation described by ``input/<config>``."""
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) != 1:
        print("Usage: os [path to configure file]")
        return 1
    try:
        config = read_config(_INPUT_DIR + args[0])
        Simulator(config, ".").run()
    except (OSError, ValueError, ProgramError) as exc:
        print(exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())