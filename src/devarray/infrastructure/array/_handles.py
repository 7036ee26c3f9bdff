"""
Ownership-tagged memory handles.

A `DeviceArray` holds exactly one host handle and at most one device handle.
Ownership is carried by the handle's type rather than by loose flags:

- `OwnedHostBuffer`: host memory allocated by the array itself.
- `BorrowedHostBuffer`: a view of caller memory; never released here.
- `DeviceAllocation`: device memory allocated through the runtime. Always
  owned; there is no borrowed device handle.

Device memory lifetime
----------------------
`DeviceAllocation` frees its memory exactly once, either deterministically via
`release()` or through a `weakref.finalize` safety net when the handle is
garbage-collected. Moving an array hands the same handle object to the new
array and drops it from the old one, so only one array can ever trigger the
free.

Notes
-----
- No `__del__` is defined, to avoid garbage-collection pitfalls and interpreter
  shutdown ordering issues.
- The finalizer captures only the runtime and the address, never `self`.
"""

from __future__ import annotations

import weakref
from typing import Optional, Tuple

import numpy as np

from ...domain._status import SUCCESS


class HostBuffer:
    """
    Base host-memory handle.

    Attributes
    ----------
    array : np.ndarray
        C-contiguous view of the host memory with the array's shape.
    """

    owned: bool = False

    __slots__ = ("array",)

    def __init__(self, array: np.ndarray) -> None:
        self.array = array

    @property
    def address(self) -> int:
        return int(self.array.ctypes.data)

    @property
    def nbytes(self) -> int:
        return int(self.array.nbytes)

    def borrow(self) -> "BorrowedHostBuffer":
        """Return a non-owning handle over the same memory."""
        return BorrowedHostBuffer(self.array)


class OwnedHostBuffer(HostBuffer):
    """Host memory allocated for (and released with) the owning array."""

    owned = True

    __slots__ = ()

    @classmethod
    def allocate(cls, shape, dtype) -> "OwnedHostBuffer":
        # Uninitialized, like the device side.
        return cls(np.empty(shape, dtype=dtype))


class BorrowedHostBuffer(HostBuffer):
    """Caller-owned host memory. The caller keeps it alive."""

    owned = False

    __slots__ = ()


def _free_on_collect(runtime, address: int) -> None:
    # Best-effort: at interpreter shutdown modules may already be gone.
    try:
        runtime.free(address)
    except Exception:
        # Never raise in finalizers
        pass


class DeviceAllocation:
    """
    Owned block of device memory.

    Use `DeviceAllocation.allocate` to create one; it returns None together
    with the failing status if the runtime cannot allocate.

    Attributes
    ----------
    runtime : GpuRuntimeLike
        Runtime that allocated (and will free) the block.
    address : int
        Device address; 0 after release.
    nbytes : int
        Size of the block in bytes; 0 after release.
    """

    __slots__ = ("runtime", "address", "nbytes", "_finalizer", "__weakref__")

    def __init__(self, runtime, address: int, nbytes: int) -> None:
        self.runtime = runtime
        self.address = int(address)
        self.nbytes = int(nbytes)
        self._finalizer: Optional[weakref.finalize] = None
        if self.address != 0:
            self._finalizer = weakref.finalize(
                self, _free_on_collect, runtime, self.address
            )

    @classmethod
    def allocate(
        cls, runtime, nbytes: int
    ) -> Tuple[Optional["DeviceAllocation"], int]:
        """
        Allocate `nbytes` of device memory.

        Returns
        -------
        Tuple[DeviceAllocation | None, int]
            The handle (None on failure) and the runtime status.
        """
        address, st = runtime.malloc(int(nbytes))
        if st != SUCCESS:
            return None, int(st)
        return cls(runtime, address, nbytes), int(st)

    def release(self) -> int:
        """
        Free the device memory now.

        Returns
        -------
        int
            Status of the runtime free, or success if nothing was left to free.
        """
        if self._finalizer is None or not self._finalizer.detach():
            self.address = 0
            self.nbytes = 0
            return SUCCESS
        address = self.address
        self.address = 0
        self.nbytes = 0
        return int(self.runtime.free(address))

    def __repr__(self) -> str:
        return f"<DeviceAllocation 0x{self.address:x} nbytes={self.nbytes}>"
