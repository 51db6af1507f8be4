"""Virtual memory areas, free-region bookkeeping and page mapping."""

from collections import deque
from dataclasses import dataclass, field

from .bits import (
    PAGING_MAX_PGN,
    PAGING_MAX_SYMTBL_SZ,
    PAGING_PAGESZ,
    page_align,
    page_number,
    pte_fpn,
    pte_set_fpn,
)
from .memphy import MemPhy, MemPhyError

_RULE = "================================================================"


class MemoryManagementError(Exception):
    """Raised when a virtual memory operation cannot be carried out."""

    def __init__(self, message: str, out_of_memory: bool = False) -> None:
        super().__init__(message)
        self.out_of_memory = out_of_memory


@dataclass
class Region:
    """A range ``[start, end)`` of virtual addresses."""

    start: int = 0
    end: int = 0

    @property
    def size(self) -> int:
        return self.end - self.start


@dataclass
class VmArea:
    """A virtual memory area with its break pointer and free regions."""

    vm_id: int
    vm_start: int = 0
    vm_end: int = 0
    sbrk: int = 0
    free_regions: list = field(default_factory=list)


class MemoryMap:
    """Per-process memory map: page directory, areas, symbols and FIFO pages."""

    def __init__(self) -> None:
        self.pgd = [0] * PAGING_MAX_PGN
        vma0 = VmArea(vm_id=0)
        vma0.free_regions.append(Region(vma0.vm_start, vma0.vm_end))
        self.areas = [vma0]
        self.symbols = [Region() for _ in range(PAGING_MAX_SYMTBL_SZ)]
        self.fifo_pages: deque = deque()

    def get_vma(self, vmaid: int) -> VmArea:
        """Return the first area whose id is at least ``vmaid``."""
        for vma in self.areas:
            if vma.vm_id >= vmaid:
                return vma
        raise MemoryManagementError(f"no memory area with id {vmaid}")

    def symbol_region(self, rgid: int) -> Region:
        """Return the symbol-table region for variable ``rgid``."""
        if not 0 <= rgid < len(self.symbols):
            raise MemoryManagementError(f"region id {rgid} out of range")
        return self.symbols[rgid]

    def enlist_free_region(self, region: Region) -> None:
        """Insert ``region`` into the free list, sorted by end, and merge.

        Only regions of at least one page absorb their overlapping or
        adjacent neighbours.
        """
        if region.start >= region.end:
            raise MemoryManagementError(
                f"empty region [{region.start}, {region.end}) cannot be freed"
            )
        free = self.areas[0].free_regions
        position = next(
            (pos for pos, node in enumerate(free) if node.end >= region.end),
            len(free),
        )
        free.insert(position, region)

        merged = []
        remaining = list(free)
        while remaining:
            curr = remaining.pop(0)
            if curr.end - curr.start >= PAGING_PAGESZ:
                survivors = []
                for other in remaining:
                    if not (curr.end < other.start or curr.start > other.end):
                        curr.start = min(curr.start, other.start)
                        curr.end = max(curr.end, other.end)
                    else:
                        survivors.append(other)
                remaining = survivors
            merged.append(curr)
        free[:] = merged

    def get_free_region(self, vmaid: int, size: int) -> Region:
        """Carve ``size`` bytes from the first free region that fits."""
        free = self.get_vma(vmaid).free_regions
        if not free:
            raise MemoryManagementError("free region list is empty")
        for pos, node in enumerate(free):
            if node.start + size <= node.end:
                found = Region(node.start, node.start + size)
                if node.start + size < node.end:
                    node.start += size
                elif pos + 1 < len(free):
                    del free[pos]
                else:
                    node.start = node.end
                return found
        raise MemoryManagementError(f"no free region holds {size} bytes")

    def enlist_page(self, pgn: int) -> None:
        """Record ``pgn`` as the most recently mapped page."""
        self.fifo_pages.appendleft(pgn)

    def find_victim_page(self) -> int:
        """Remove and return the oldest mapped page."""
        if not self.fifo_pages:
            raise MemoryManagementError("no page available to evict")
        return self.fifo_pages.pop()

    def validate_overlap(self, vmaid: int, start: int, end: int) -> None:
        """Check that a planned range is valid and area ``vmaid`` overlaps no other."""
        if start >= end:
            raise MemoryManagementError(f"invalid range [{start}, {end})")
        current = self.get_vma(vmaid)
        for vma in self.areas:
            if vma is not current and (
                current.vm_start < vma.vm_end and current.vm_end > vma.vm_start
            ):
                raise MemoryManagementError(
                    f"area {current.vm_id} overlaps area {vma.vm_id}"
                )


def alloc_pages_range(caller, req_pgnum: int) -> list:
    """Take ``req_pgnum`` frames from RAM, most recently taken first."""
    frames: deque = deque()
    for taken in range(req_pgnum):
        try:
            fpn = caller.mram.get_free_frame()
        except MemPhyError as exc:
            raise MemoryManagementError(
                "not enough free frames in RAM", out_of_memory=taken > 0
            ) from exc
        frames.appendleft(fpn)
    return list(frames)


def vmap_page_range(caller, addr: int, pgnum: int, frames) -> Region:
    """Map ``pgnum`` pages starting at ``addr`` onto ``frames``."""
    if caller is None or caller.mm is None or not frames:
        raise MemoryManagementError("nothing to map")
    mm = caller.mm
    if not any(vma.vm_start <= addr < vma.vm_end for vma in mm.areas):
        raise MemoryManagementError(f"address {addr} is in no memory area")
    pgn = page_number(addr)
    frame_iter = iter(frames)
    for page in range(pgn, pgn + pgnum):
        fpn = next(frame_iter, None)
        if fpn is None:
            raise MemoryManagementError("fewer frames than pages to map")
        mm.pgd[page] = pte_set_fpn(mm.pgd[page], fpn)
        mm.enlist_page(page)
    return Region(addr, addr + pgnum * PAGING_PAGESZ)


def vm_map_ram(caller, astart: int, aend: int, mapstart: int, incpgnum: int) -> Region:
    """Allocate ``incpgnum`` frames and map them from ``mapstart``."""
    try:
        frames = alloc_pages_range(caller, incpgnum)
    except MemoryManagementError as exc:
        if exc.out_of_memory:
            print("OOM: vm_map_ram out of memory ")
        raise
    region = Region(mapstart, mapstart + incpgnum * PAGING_PAGESZ)
    try:
        vmap_page_range(caller, mapstart, incpgnum, frames)
    except MemoryManagementError:
        pass
    return region


def swap_copy_page(src: MemPhy, srcfpn: int, dst: MemPhy, dstfpn: int) -> None:
    """Copy one page from frame ``srcfpn`` of ``src`` to ``dstfpn`` of ``dst``."""
    src_base = srcfpn * PAGING_PAGESZ
    dst_base = dstfpn * PAGING_PAGESZ
    for cell in range(PAGING_PAGESZ):
        dst.write(dst_base + cell, src.read(src_base + cell))


def mm_swap_page(caller, vicfpn: int, swpfpn: int) -> None:
    """Copy RAM frame ``vicfpn`` into frame ``swpfpn`` of the active swap."""
    if caller is None or caller.mram is None or caller.active_mswp is None:
        raise MemoryManagementError("caller has no RAM or swap device")
    if vicfpn < 0 or swpfpn < 0:
        raise MemoryManagementError("frame numbers must not be negative")
    swap_copy_page(caller.mram, vicfpn, caller.active_mswp, swpfpn)


def inc_vma_limit(caller, vmaid: int, inc_sz: int) -> Region:
    """Grow area ``vmaid`` by ``inc_sz`` bytes and map the new pages to RAM."""
    mm = caller.mm
    inc_amt = page_align(inc_sz)
    incnumpage = inc_amt // PAGING_PAGESZ
    cur_vma = mm.get_vma(vmaid)
    area = Region(cur_vma.sbrk, cur_vma.sbrk + inc_sz)
    old_end = cur_vma.vm_end

    mm.validate_overlap(vmaid, area.start, area.end)

    cur_vma.vm_end += inc_sz
    cur_vma.sbrk += inc_sz
    if old_end < cur_vma.vm_end:
        mm.enlist_free_region(Region(old_end, cur_vma.vm_end))

    return vm_map_ram(caller, area.start, area.end, old_end, incnumpage)


def _format_list(title: str, lines: list) -> str:
    if not lines:
        return f"{title}: NULL list\n"
    return f"{title}: \n" + "".join(line + "\n" for line in lines) + "\n"


def format_frames(frames) -> str:
    """Describe a list of frame numbers."""
    return _format_list("print_list_fp", [f"fp[{fpn}]" for fpn in frames])


def format_regions(regions) -> str:
    """Describe a list of regions."""
    return _format_list(
        "print_list_rg", [f"rg[{rg.start}->{rg.end}]" for rg in regions]
    )


def format_areas(areas) -> str:
    """Describe a list of memory areas."""
    return _format_list(
        "print_list_vma", [f"va[{vma.vm_start}->{vma.vm_end}]" for vma in areas]
    )


def format_pages(pages) -> str:
    """Describe a list of page numbers."""
    return _format_list("print_list_pgn", [f"va[{pgn}]-" for pgn in pages])


def format_page_table(caller, start: int = 0, end: int = -1) -> str:
    """Describe the page table entries of ``caller`` covering ``[start, end)``.

    An ``end`` of -1 or None stands for the end of area 0.
    """
    mm = caller.mm
    if end is None or end == -1:
        end = mm.get_vma(0).vm_end
    pages = range(page_number(start), page_number(end))
    lines = [f"print_pgtbl: {start} - {end}"]
    lines.extend(f"{pgn * 4:08d}: {mm.pgd[pgn]:08x}" for pgn in pages)
    lines.extend(
        f"Page Number: {pgn} -> Frame Number: {pte_fpn(mm.pgd[pgn])}" for pgn in pages
    )
    lines.append(_RULE)
    return "\n".join(lines) + "\n"