from __future__ import annotations

from collections.abc import Sequence
from typing import TypeVar

from launchwing.core.exceptions import InvalidArgument

T = TypeVar("T")


def chunk(items: Sequence[T], size: int) -> list[list[T]]:
    """Split *items* into contiguous batches of at most *size* elements.

    Order is preserved and no batch is empty; only the last batch may be
    shorter than *size*. An empty sequence yields ``[]``.

    Raises:
        InvalidArgument: If *size* is not an integer >= 1.
    """
    if isinstance(size, bool) or not isinstance(size, int) or size < 1:
        raise InvalidArgument(
            f"chunk size must be an integer >= 1, got {size!r}",
            code="invalid_argument",
            details={"size": size},
        )
    return [list(items[i : i + size]) for i in range(0, len(items), size)]
