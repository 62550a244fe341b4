"""Index arithmetic for circular history buffers."""

from __future__ import annotations

from typing import Iterator


def wraparound_indices(start: int, count: int, length: int) -> Iterator[int]:
    """Yield ``count`` buffer indices beginning at logical position ``start``.

    Positions are taken modulo ``length`` in ascending order, so for a
    buffer whose newest slot is ``sequence % length`` the window
    ``wraparound_indices(last + 1, delta, length)`` visits the ``delta``
    samples written after ``last``, oldest first.

    Raises:
        ValueError: if ``length`` is not positive, or ``count`` is negative
            or larger than ``length`` (a slot would be visited twice)
    """
    if length <= 0:
        raise ValueError(f"buffer length must be positive, got {length}")
    if count < 0 or count > length:
        raise ValueError(f"count must be in [0, {length}], got {count}")

    first = start % length
    for offset in range(count):
        yield (first + offset) % length
