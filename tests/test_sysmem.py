import pytest

from ossim.bits import PAGING_PAGESZ, pte_present
from ossim.memphy import MemPhy
from ossim.mm import MemoryMap
from ossim.program import Process
from ossim.sysmem import MemOp, Registers, sys_memmap


@pytest.fixture
def proc():
    return Process(
        pid=1,
        priority=0,
        path="p",
        mm=MemoryMap(),
        mram=MemPhy(1024),
        active_mswp=MemPhy(4096),
    )


def test_write_then_read_round_trip(proc):
    assert sys_memmap(proc, Registers(a1=MemOp.IO_WRITE, a2=10, a3=77)) == 0
    assert proc.mram.read(10) == 77
    regs = Registers(a1=MemOp.IO_READ, a2=10)
    assert sys_memmap(proc, regs) == 0
    assert regs.a3 == 77


def test_read_sign_extends_to_unsigned_word(proc):
    proc.mram.write(5, 255)
    regs = Registers(a1=MemOp.IO_READ, a2=5)
    sys_memmap(proc, regs)
    assert regs.a3 == 0xFFFFFFFF


def test_write_prints_address(proc, capsys):
    sys_memmap(proc, Registers(a1=MemOp.IO_WRITE, a2=10, a3=1))
    assert "Write to memphy 10" in capsys.readouterr().out


def test_inc_grows_area_and_maps_page(proc):
    sys_memmap(proc, Registers(a1=MemOp.INC, a2=0, a3=PAGING_PAGESZ))
    assert proc.mm.get_vma(0).vm_end == PAGING_PAGESZ
    assert pte_present(proc.mm.pgd[0])


def test_swap_copies_frame_to_swap(proc):
    for cell in range(PAGING_PAGESZ):
        proc.mram.write(PAGING_PAGESZ + cell, cell)
    sys_memmap(proc, Registers(a1=MemOp.SWP, a2=1, a3=2))
    copied = [proc.active_mswp.read(2 * PAGING_PAGESZ + c) for c in range(PAGING_PAGESZ)]
    original = [proc.mram.read(PAGING_PAGESZ + c) for c in range(PAGING_PAGESZ)]
    assert copied == original


def test_swap_with_negative_frame_is_ignored(proc):
    assert sys_memmap(proc, Registers(a1=MemOp.SWP, a2=-1, a3=0)) == 0
    assert not any(proc.active_mswp.storage)


def test_map_does_nothing(proc):
    assert sys_memmap(proc, Registers(a1=MemOp.MAP, a2=3, a3=9)) == 0
    assert not any(proc.mram.storage)


def test_unknown_operation_is_reported(proc, capsys):
    assert sys_memmap(proc, Registers(a1=9)) == 0
    assert "Memop code: 9" in capsys.readouterr().out