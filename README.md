# ossim

`ossim` simulates a small operating system: a number of CPUs kept in
lockstep by a shared time-slot clock, a multi-level queue scheduler, a
loader that brings processes in at given time slots, and paged virtual
memory backed by a RAM device and swap devices. Processes are written in
a tiny instruction language; they can allocate, free, read and write
memory regions and issue system calls. The simulation reports what
happens on standard output.

It has no dependencies beyond the Python standard library (3.10 or
later).

## Installation

```
pip install .
```

## Running a simulation

```
ossim <config>
```

(`python -m ossim.simulator <config>` does the same.) The configuration
file is read from `input/<config>` relative to the current directory, and
the programs it names are read from `input/proc/<name>`. The command
returns 1 and prints a message when it is given no or too many
arguments, or when the configuration or a program cannot be read or
parsed.

### Configuration file

Whitespace-separated numbers and names:

```
<time slot> <number of CPUs> <number of processes>
<RAM size> <swap 0 size> <swap 1 size> <swap 2 size> <swap 3 size>
<start time> <program name> <priority>
...
```

One `<start time> <program name> <priority>` entry follows for each
process. A process is loaded once the clock reaches its start time and is
placed in the ready queue of its priority, which must lie in `0..139`.
Lower numbers are served first; priority level `p` may hand out
`140 - p` processes in a row before lower levels get a turn. Memory
sizes are in bytes; the devices are split into 256-byte frames, and the
first swap device is the one used for swapping.

### Program file

```
<priority> <number of instructions>
calc
alloc <size> <region>
free <region>
read <region> <offset> <destination>
write <value> <region> <offset>
syscall <number> <arg1> <arg2> <arg3>
```

Each instruction takes one time slot. A process that has used up its
time slice is put back into its ready queue. `read` fetches one byte at
`<offset>` within region `<region>`; the `<destination>` operand is
parsed but the value read is not stored anywhere. `syscall` reads up to
four numbers from the rest of its line. Errors raised by memory
instructions while a simulation runs are ignored and the process goes
on with its next instruction.

### System calls

| Number | Name            | Effect                                                     |
|--------|-----------------|------------------------------------------------------------|
| 0      | sys_listsyscall | prints the system call table                               |
| 17     | sys_memmap      | memory operation chosen by `a1` (see `ossim.sysmem.MemOp`) |
| 101    | sys_killall     | removes queued processes whose program name is stored in region `a1`, ended by the byte -1 |

Any other number prints an error and the table.

## Using the library

The pieces of the simulator can be used on their own:

- `ossim.program` — `parse_program`, `load`, `parse_opcode`, `Opcode`,
  `Instruction`, `Process`, `ProgramError`.
- `ossim.bits` — bit-field helpers and page-table-entry functions
  (`genmask`, `page_number`, `pte_set_fpn`, `pte_set_swap`, ...).
- `ossim.memphy` — `MemPhy`, a physical memory device with a free-frame
  list, and `MemPhyError`.
- `ossim.mm` — `MemoryMap`, `Region`, `VmArea`, `inc_vma_limit`,
  `vm_map_ram`, swapping helpers and `format_*` listings.
- `ossim.libmem` — `liballoc`, `libfree`, `libread`, `libwrite` and
  the paging helpers beneath them.
- `ossim.sysmem` — `sys_memmap`, `MemOp`, `Registers`.
- `ossim.syscalls` — `syscall`, `libsyscall`, `syscall_table`.
- `ossim.cpu` — `run`, which executes one instruction of a process.
- `ossim.scheduler` — `Scheduler`.
- `ossim.queue` — `ProcessQueue`, a FIFO queue of at most 10 processes.
- `ossim.timer` — `Timer` and `TimerEvent`.
- `ossim.simulator` — `read_config`, `Config`, `Simulator`, `main`.

```python
from ossim.simulator import Simulator, read_config

config = read_config("input/os_1_mlq_paging")
finished = Simulator(config, ".").run()
print([proc.pid for proc in finished])
```

`Simulator.run` returns the finished processes in the order they
finished. The second argument of `Simulator` is the directory that holds
`input/proc/`.

## Limitations

- Paging is the only memory model; there is no fixed-partition memory.
- Frames held by a finished process are not given back to the devices
  during a simulation (`ossim.libmem.free_pcb_memph` can be called to do
  so by hand).
- `sys_killall` removes processes from the queues only; a process that
  is running on a CPU at that moment carries on.

## Running the tests

Install the test extra with `pip install .[test]`, then run `pytest`.