"""Common utility functions."""

from typing import Iterator, Sequence, TypeVar

T = TypeVar("T")


def clamp(value: float, lower: float = 0.0, upper: float = 1.0) -> float:
    """Clamp a number into [lower, upper]."""
    return max(lower, min(upper, value))


def chunked(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    """Yield consecutive slices of at most `size` items."""
    if size < 1:
        raise ValueError(f"Chunk size must be positive, got {size}")
    for start in range(0, len(items), size):
        yield items[start:start + size]
