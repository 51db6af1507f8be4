"""Bit-field helpers, paging constants and page-table-entry manipulation."""

BITS_PER_LONG = 32
BITS_PER_BYTE = 8
_WORD = (1 << BITS_PER_LONG) - 1


def _div_round_up(n: int, d: int) -> int:
    """Round ``n / d`` up, truncating toward zero like integer division in C."""
    total = n + d - 1
    quotient = abs(total) // d
    return quotient if total >= 0 else -quotient


def genmask(h: int, l: int) -> int:
    """Return a 32-bit mask with bits ``l`` through ``h`` (inclusive) set."""
    return ((_WORD << l) & _WORD) & (_WORD >> (BITS_PER_LONG - h - 1))


def nbits(n: int) -> int:
    """Return the index of the highest set bit among the low 32 bits of ``n``."""
    return max((n & _WORD).bit_length() - 1, 0)


def getval(value: int, mask: int, offset: int) -> int:
    """Extract the field selected by ``mask`` and shift it down by ``offset``."""
    return (value & mask) >> offset


def setval(value: int, field: int, mask: int, offset: int) -> int:
    """Return ``value`` with the ``mask`` field replaced by ``field << offset``."""
    return ((value & ~mask) | ((field << offset) & mask)) & _WORD


# CPU bus and memory sizes
PAGING_CPU_BUS_WIDTH = 22
PAGING_PAGESZ = 256
PAGING_MEMRAMSZ = 1 << 21
PAGING_MEMSWPSZ = 1 << 29
PAGING_SWPFPN_OFFSET = 5
PAGING_MAX_PGN = _div_round_up(1 << PAGING_CPU_BUS_WIDTH, PAGING_PAGESZ)
PAGING_SBRK_INIT_SZ = PAGING_PAGESZ
PAGING_MAX_MMSWP = 4
PAGING_MAX_SYMTBL_SZ = 30

# Page table entry flags
PAGING_PTE_PRESENT_MASK = 1 << 31
PAGING_PTE_SWAPPED_MASK = 1 << 30
PAGING_PTE_RESERVE_MASK = 1 << 29
PAGING_PTE_DIRTY_MASK = 1 << 28
PAGING_PTE_EMPTY01_MASK = 1 << 14
PAGING_PTE_EMPTY02_MASK = 1 << 13

# Page table entry fields
PAGING_PTE_USRNUM_LOBIT = 15
PAGING_PTE_USRNUM_HIBIT = 27
PAGING_PTE_FPN_LOBIT = 0
PAGING_PTE_FPN_HIBIT = 12
PAGING_PTE_SWPTYP_LOBIT = 0
PAGING_PTE_SWPTYP_HIBIT = 4
PAGING_PTE_SWPOFF_LOBIT = 5
PAGING_PTE_SWPOFF_HIBIT = 25

PAGING_PTE_USRNUM_MASK = genmask(PAGING_PTE_USRNUM_HIBIT, PAGING_PTE_USRNUM_LOBIT)
PAGING_PTE_FPN_MASK = genmask(PAGING_PTE_FPN_HIBIT, PAGING_PTE_FPN_LOBIT)
PAGING_PTE_SWPTYP_MASK = genmask(PAGING_PTE_SWPTYP_HIBIT, PAGING_PTE_SWPTYP_LOBIT)
PAGING_PTE_SWPOFF_MASK = genmask(PAGING_PTE_SWPOFF_HIBIT, PAGING_PTE_SWPOFF_LOBIT)

# Virtual address fields
PAGING_ADDR_OFFST_LOBIT = 0
PAGING_ADDR_OFFST_HIBIT = nbits(PAGING_PAGESZ) - 1
PAGING_ADDR_PGN_LOBIT = nbits(PAGING_PAGESZ)
PAGING_ADDR_PGN_HIBIT = PAGING_CPU_BUS_WIDTH - 1
PAGING_ADDR_FPN_LOBIT = nbits(PAGING_PAGESZ)
PAGING_ADDR_FPN_HIBIT = nbits(PAGING_MEMRAMSZ) - 1
PAGING_SWP_LOBIT = nbits(PAGING_PAGESZ)
PAGING_SWP_HIBIT = nbits(PAGING_MEMSWPSZ) - 1

PAGING_OFFST_MASK = genmask(PAGING_ADDR_OFFST_HIBIT, PAGING_ADDR_OFFST_LOBIT)
PAGING_PGN_MASK = genmask(PAGING_ADDR_PGN_HIBIT, PAGING_ADDR_PGN_LOBIT)
PAGING_FPN_MASK = genmask(PAGING_ADDR_FPN_HIBIT, PAGING_ADDR_FPN_LOBIT)
PAGING_SWP_MASK = genmask(PAGING_SWP_HIBIT, PAGING_SWP_LOBIT)


def page_align(size: int) -> int:
    """Round ``size`` up to a whole number of pages."""
    return _div_round_up(size, PAGING_PAGESZ) * PAGING_PAGESZ


def page_number(addr: int) -> int:
    """Return the page number of a virtual address."""
    return getval(addr, PAGING_PGN_MASK, PAGING_ADDR_PGN_LOBIT)


def page_offset(addr: int) -> int:
    """Return the offset of a virtual address within its page."""
    return getval(addr, PAGING_OFFST_MASK, PAGING_ADDR_OFFST_LOBIT)


def pte_present(pte: int) -> bool:
    """Tell whether the present bit of a page table entry is set."""
    return bool(pte & PAGING_PTE_PRESENT_MASK)


def pte_fpn(pte: int) -> int:
    """Return the frame number held in a page table entry."""
    return getval(pte, PAGING_PTE_FPN_MASK, PAGING_PTE_FPN_LOBIT)


def pte_swap_offset(pte: int) -> int:
    """Return the swap offset held in a page table entry."""
    return getval(pte, PAGING_PTE_SWPOFF_MASK, PAGING_SWPFPN_OFFSET)


def init_pte(pte: int, pre: int, fpn: int, drt: int, swp: int,
             swptyp: int, swpoff: int) -> int:
    """Return ``pte`` initialised as an online or swapped page.

    A present, non-swapped page with frame number 0 is rejected with
    ``ValueError``. A non-present request leaves the entry unchanged.
    """
    if not pre:
        return pte
    pte |= PAGING_PTE_PRESENT_MASK
    pte &= ~PAGING_PTE_DIRTY_MASK & _WORD
    if not swp:
        if fpn == 0:
            raise ValueError("an online page needs a non-zero frame number")
        pte &= ~PAGING_PTE_SWAPPED_MASK & _WORD
        return setval(pte, fpn, PAGING_PTE_FPN_MASK, PAGING_PTE_FPN_LOBIT)
    pte |= PAGING_PTE_SWAPPED_MASK
    pte = setval(pte, swptyp, PAGING_PTE_SWPTYP_MASK, PAGING_PTE_SWPTYP_LOBIT)
    return setval(pte, swpoff, PAGING_PTE_SWPOFF_MASK, PAGING_PTE_SWPOFF_LOBIT)


def pte_set_swap(pte: int, swptyp: int, swpoff: int) -> int:
    """Return ``pte`` marked as a swapped page with the given type and offset."""
    pte |= PAGING_PTE_PRESENT_MASK | PAGING_PTE_SWAPPED_MASK
    pte = setval(pte, swptyp, PAGING_PTE_SWPTYP_MASK, PAGING_PTE_SWPTYP_LOBIT)
    return setval(pte, swpoff, PAGING_PTE_SWPOFF_MASK, PAGING_PTE_SWPOFF_LOBIT)


def pte_set_fpn(pte: int, fpn: int) -> int:
    """Return ``pte`` marked as an online page mapped to frame ``fpn``."""
    pte |= PAGING_PTE_PRESENT_MASK
    pte &= ~PAGING_PTE_SWAPPED_MASK & _WORD
    return setval(pte, fpn, PAGING_PTE_FPN_MASK, PAGING_PTE_FPN_LOBIT)