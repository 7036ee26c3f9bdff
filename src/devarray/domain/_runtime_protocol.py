"""
GPU runtime contract.

`GpuRuntimeLike` is the structural interface `DeviceArray` needs from a GPU
runtime: allocate, free and copy, each returning the raw status code. The
ctypes binding in `infrastructure.native_cuda.cudart_ctypes` satisfies it, and
so can any object with the same members (tests use an in-process fake).
"""

from __future__ import annotations

from enum import IntEnum
from typing import Protocol, Tuple, runtime_checkable


class MemcpyKind(IntEnum):
    """Copy direction, numerically identical to `cudaMemcpyKind`."""

    HOST_TO_HOST = 0
    HOST_TO_DEVICE = 1
    DEVICE_TO_HOST = 2
    DEVICE_TO_DEVICE = 3
    DEFAULT = 4


@runtime_checkable
class GpuRuntimeLike(Protocol):
    """
    Duck-typed GPU runtime.

    Addresses are plain Python ints; status codes are plain ints with zero
    meaning success.
    """

    def malloc(self, nbytes: int) -> Tuple[int, int]: ...
    def free(self, address: int) -> int: ...
    def memcpy(self, dst: int, src: int, nbytes: int, kind: MemcpyKind) -> int: ...
    def error_name(self, code: int) -> str: ...
    def error_string(self, code: int) -> str: ...
