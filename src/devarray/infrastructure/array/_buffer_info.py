"""
Buffer description of a DeviceArray's host memory.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np


@dataclass(frozen=True)
class BufferInfo:
    """
    Same fields as a Python buffer export (`Py_buffer`).

    Attributes
    ----------
    ptr : int
        Host address of the first element.
    itemsize : int
        Size of one element in bytes.
    format : str
        struct-style format string (e.g. "f" for float32).
    ndim : int
        Number of dimensions.
    shape : Tuple[int, ...]
        Extent of each dimension.
    strides : Tuple[int, ...]
        Byte stride of each dimension.
    """

    ptr: int
    itemsize: int
    format: str
    ndim: int
    shape: Tuple[int, ...]
    strides: Tuple[int, ...]


def format_descriptor(dtype) -> str:
    """struct-style format string numpy exports for `dtype`."""
    return memoryview(np.empty(1, dtype=np.dtype(dtype))).format
