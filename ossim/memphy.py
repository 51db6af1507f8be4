"""Physical memory devices: byte storage plus a list of free frames."""

from collections import deque

from .bits import PAGING_PAGESZ


class MemPhyError(Exception):
    """Raised when a physical memory device cannot serve a request."""


_DUMP_HEADER = "===== PHYSICAL MEMORY DUMP ====="
_DUMP_FOOTER = "===== PHYSICAL MEMORY END-DUMP ====="
_RULE = "================================================================"


class MemPhy:
    """A RAM or swap device holding signed bytes and a free-frame list."""

    def __init__(self, max_size: int, random_access: bool = True) -> None:
        self.max_size = max_size
        self.storage = bytearray(max(max_size, 0))
        self.random_access = bool(random_access)
        self.cursor = 0
        self.free_frames: deque[int] = deque()
        self.used_frames: deque[int] = deque()
        if max_size // PAGING_PAGESZ > 0:
            self.format(PAGING_PAGESZ)

    def move_cursor(self, offset: int) -> None:
        """Walk the cursor sequentially from 0 toward ``offset``."""
        steps = max(0, min(offset, self.max_size))
        self.cursor = steps % self.max_size if self.max_size > 0 else 0

    def _check_addr(self, addr: int) -> None:
        if not 0 <= addr < self.max_size:
            raise MemPhyError(f"address {addr} outside device of {self.max_size} bytes")

    def _require_sequential_mode(self) -> None:
        if not self.random_access:
            raise MemPhyError("not compatible mode for sequential access")

    def read(self, addr: int) -> int:
        """Return the signed byte stored at ``addr``."""
        self._check_addr(addr)
        if not self.random_access:
            self._require_sequential_mode()
            self.move_cursor(addr)
        byte = self.storage[addr]
        return byte - 256 if byte >= 128 else byte

    def write(self, addr: int, value: int) -> None:
        """Store the low eight bits of ``value`` at ``addr``."""
        self._check_addr(addr)
        if not self.random_access:
            self._require_sequential_mode()
            self.move_cursor(addr)
        self.storage[addr] = value & 0xFF

    def format(self, page_size: int) -> None:
        """Split the device into frames of ``page_size`` bytes, all free."""
        count = self.max_size // page_size if page_size > 0 else 0
        if count <= 0:
            raise MemPhyError("device too small to hold a single frame")
        self.free_frames = deque(range(count))

    def get_free_frame(self) -> int:
        """Take the frame at the head of the free list."""
        if not self.free_frames:
            raise MemPhyError("no free frame left")
        return self.free_frames.popleft()

    def put_free_frame(self, fpn: int) -> None:
        """Return frame ``fpn`` to the head of the free list."""
        self.free_frames.appendleft(fpn)

    def dump(self) -> str:
        """Return a listing of every non-zero byte on the device."""
        lines = [_DUMP_HEADER]
        for addr, byte in enumerate(self.storage):
            if byte:
                signed = byte - 256 if byte >= 128 else byte
                lines.append(f"BYTE {addr:08x}: {signed}")
        lines.append(_DUMP_FOOTER)
        lines.append(_RULE)
        return "\n".join(lines) + "\n"