"""Paging-based memory library used by processes: alloc, free, read, write."""

import threading
from contextlib import suppress

from .bits import (
    PAGING_ADDR_PGN_LOBIT,
    PAGING_MAX_PGN,
    PAGING_PAGESZ,
    page_align,
    page_number,
    page_offset,
    pte_fpn,
    pte_present,
    pte_set_fpn,
    pte_set_swap,
    pte_swap_offset,
)
from .memphy import MemPhyError
from .mm import (
    MemoryManagementError,
    Region,
    format_page_table,
    inc_vma_limit,
    swap_copy_page,
)
from .sysmem import MemOp, Registers, sys_memmap

_mmvm_lock = threading.Lock()
_WORD = 0xFFFFFFFF


def _to_byte(value: int) -> int:
    return ((value & 0xFF) ^ 0x80) - 0x80


def _try_carve(mm, vmaid: int, size: int):
    try:
        return mm.get_free_region(vmaid, size)
    except MemoryManagementError:
        return None


def alloc(caller, vmaid: int, rgid: int, size: int) -> int:
    """Reserve ``size`` bytes for variable ``rgid`` and return its address."""
    with _mmvm_lock:
        mm = caller.mm
        symbol = mm.symbol_region(rgid)
        cur_vma = mm.get_vma(vmaid)
        total_free = sum(
            rg.size for rg in cur_vma.free_regions if rg.size >= PAGING_PAGESZ
        )

        found = _try_carve(mm, vmaid, size)
        if found is None:
            needed = size - total_free
            inc_sz = page_align(PAGING_PAGESZ) if needed <= 0 else page_align(needed)
            old_sbrk = cur_vma.sbrk
            with suppress(MemoryManagementError):
                inc_vma_limit(caller, vmaid, inc_sz)
            found = _try_carve(mm, vmaid, size)
            if found is None:
                symbol.start, symbol.end = old_sbrk, old_sbrk + size
                if old_sbrk + size < cur_vma.sbrk:
                    mm.enlist_free_region(Region(old_sbrk + size, cur_vma.sbrk))
                return old_sbrk

        symbol.start, symbol.end = found.start, found.start + size
        return found.start


def free(caller, vmaid: int, rgid: int) -> None:
    """Release the region of variable ``rgid`` into the free list."""
    with _mmvm_lock:
        symbol = caller.mm.symbol_region(rgid)
        if symbol.start == 0 and symbol.end == 0:
            raise MemoryManagementError(f"region {rgid} is not allocated")
        released = Region(symbol.start, symbol.end)
        symbol.start = symbol.end = 0
        with suppress(MemoryManagementError):
            caller.mm.enlist_free_region(released)


def pg_getpage(mm, pgn: int, caller) -> int:
    """Bring page ``pgn`` into RAM, swapping a victim out if needed; return its frame."""
    print(f"pg_getpage: pgn={pgn}")
    pte = mm.pgd[pgn]
    if not pte_present(pte):
        tgtfpn = pte_swap_offset(pte)
        vicpgn = mm.find_victim_page()
        try:
            swpfpn = caller.active_mswp.get_free_frame()
        except MemPhyError as exc:
            raise MemoryManagementError("no free frame in swap") from exc
        vicfpn = pte_fpn(mm.pgd[vicpgn])

        sys_memmap(caller, Registers(a1=MemOp.SWP, a2=vicfpn, a3=swpfpn))
        pgd = caller.mm.pgd
        pgd[vicpgn] = pte_set_swap(pgd[vicpgn], 0, swpfpn)

        swap_copy_page(caller.active_mswp, tgtfpn, caller.mram, vicfpn)
        pgd[pgn] = pte_set_swap(pgd[pgn], 0, swpfpn)
        pgd[pgn] = pte_set_fpn(pgd[pgn], vicfpn)
        caller.mm.enlist_page(pgn)
    return pte_fpn(mm.pgd[pgn])


def _physical_address(mm, addr: int, caller) -> int:
    fpn = pg_getpage(mm, page_number(addr), caller)
    return (fpn << PAGING_ADDR_PGN_LOBIT) + page_offset(addr)


def pg_getval(mm, addr: int, caller) -> int:
    """Return the signed byte at virtual address ``addr``."""
    regs = Registers(a1=MemOp.IO_READ, a2=_physical_address(mm, addr, caller))
    sys_memmap(caller, regs)
    return _to_byte(regs.a3)


def pg_setval(mm, addr: int, value: int, caller) -> None:
    """Store a byte at virtual address ``addr``."""
    phyaddr = _physical_address(mm, addr, caller)
    sys_memmap(caller, Registers(a1=MemOp.IO_WRITE, a2=phyaddr, a3=value & 0xFF))


def read(caller, vmaid: int, rgid: int, offset: int) -> int:
    """Return the signed byte at ``offset`` inside variable ``rgid``."""
    with _mmvm_lock:
        region = caller.mm.symbol_region(rgid)
        caller.mm.get_vma(vmaid)
        return pg_getval(caller.mm, region.start + offset, caller)


def write(caller, vmaid: int, rgid: int, offset: int, value: int) -> None:
    """Store a byte at ``offset`` inside variable ``rgid``."""
    with _mmvm_lock:
        region = caller.mm.symbol_region(rgid)
        caller.mm.get_vma(vmaid)
        pg_setval(caller.mm, region.start + offset, value, caller)


def liballoc(proc, size: int, reg_index: int) -> int:
    """Allocate ``size`` bytes in area 0 for register ``reg_index``; return the address."""
    addr = alloc(proc, 0, reg_index, size)
    print("===== PHYSICAL MEMORY AFTER ALLOCATION =====")
    print(f"PID={proc.pid} - Region={reg_index} - Address={addr:08x} - Size={size} byte")
    print(format_page_table(proc, 0, -1), end="")
    return addr


def libfree(proc, reg_index: int) -> None:
    """Free the region held by register ``reg_index`` in area 0."""
    free(proc, 0, reg_index)
    print("===== PHYSICAL MEMORY AFTER DEALLOCATION =====")
    print(f"PID={proc.pid} - Region={reg_index}")
    print(format_page_table(proc, 0, -1), end="")


def libread(proc, source: int, offset: int) -> int:
    """Read a byte from region ``source``; return it as an unsigned 32-bit word."""
    value = read(proc, 0, source, offset)
    print("===== PHYSICAL MEMORY AFTER READING =====")
    print(f"read region={source} offset={offset} value={value}")
    print(format_page_table(proc, 0, -1), end="")
    print(proc.mram.dump(), end="")
    return value & _WORD


def libwrite(proc, data: int, destination: int, offset: int) -> None:
    """Write the byte ``data`` into region ``destination`` at ``offset``."""
    value = _to_byte(data)
    write(proc, 0, destination, offset, value)
    print("===== PHYSICAL MEMORY AFTER WRITING =====")
    print(f"write region={destination} offset={offset} value={value}")
    print(format_page_table(proc, 0, -1), end="")
    print(proc.mram.dump(), end="")


def free_pcb_memph(caller) -> None:
    """Hand every frame named by the page table back to its device."""
    with _mmvm_lock:
        for pte in caller.mm.pgd[:PAGING_MAX_PGN]:
            if not pte_present(pte):
                caller.mram.put_free_frame(pte_fpn(pte))
            else:
                caller.active_mswp.put_free_frame(pte_swap_offset(pte))