"""
Shape and stride arithmetic for row-major (C-order) arrays.
"""

from __future__ import annotations

import operator
from typing import Iterable, Sequence, Tuple


def normalize_shape(shape) -> Tuple[int, ...]:
    """
    Validate and normalize a shape argument.

    Parameters
    ----------
    shape : int | Iterable[int]
        A single element count or a sequence of per-dimension extents.

    Returns
    -------
    Tuple[int, ...]
        Shape as a tuple of Python ints, rank >= 1.

    Raises
    ------
    TypeError
        If an extent is not an integer (bools are rejected too).
    ValueError
        If the shape is empty or an extent is negative.
    """
    if isinstance(shape, Iterable) and not isinstance(shape, (str, bytes)):
        dims = list(shape)
    else:
        dims = [shape]

    if not dims:
        raise ValueError("shape must have at least one dimension")

    out = []
    for d in dims:
        if isinstance(d, bool):
            raise TypeError(f"shape entries must be integers, got {d!r}")
        try:
            v = operator.index(d)
        except TypeError:
            raise TypeError(f"shape entries must be integers, got {d!r}") from None
        if v < 0:
            raise ValueError(f"shape entries must be >= 0, got {v}")
        out.append(int(v))
    return tuple(out)


def shape_size(shape: Sequence[int]) -> int:
    """Total element count of `shape` (product of its extents)."""
    n = 1
    for d in shape:
        n *= int(d)
    return n


def row_major_strides(shape: Sequence[int], itemsize: int) -> Tuple[int, ...]:
    """
    Byte strides of a C-contiguous array.

    The last dimension has stride `itemsize`; each earlier dimension's stride is
    the next stride times the next extent.

    Examples
    --------
    >>> row_major_strides((4, 3), 4)
    (12, 4)
    """
    strides = [0] * len(shape)
    stride = int(itemsize)
    for i in range(len(shape) - 1, -1, -1):
        strides[i] = stride
        stride *= int(shape[i])
    return tuple(strides)
