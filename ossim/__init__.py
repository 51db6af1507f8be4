"""Operating-system simulator: scheduling, paged virtual memory, swapping and system calls."""

__version__ = "0.1.0"