"""
Opaque address handles handed to Python code.

`DeviceArray.host_data()` and `DeviceArray.device_data()` return a `Pointer`.
A host pointer may be viewed as a numpy array; a device pointer is only
meaningful to further runtime calls, and any attempt to read it from the host
raises `DevicePointerAccessError`.
"""

from __future__ import annotations

import ctypes
from typing import Optional

import numpy as np

from ...domain._errors import DevicePointerAccessError
from ...domain._shape import normalize_shape, shape_size


class _HostMemory:
    """Raw host memory exposed to numpy through the array interface."""

    def __init__(self, address: int, shape, dtype: np.dtype) -> None:
        self.__array_interface__ = {
            "shape": tuple(shape),
            "typestr": dtype.str,
            "data": (int(address), False),
            "version": 3,
        }


class Pointer:
    """
    Address plus a flag saying whether the host may dereference it.

    Parameters
    ----------
    address : int
        Raw address (0 for null).
    host_accessible : bool
        True for host memory, False for device memory.
    dtype : numpy dtype-like, optional
        Element type the address points to, if known.
    """

    __slots__ = ("_address", "_host_accessible", "_dtype")

    def __init__(self, address: int, host_accessible: bool = True, dtype=None) -> None:
        self._address = int(address or 0)
        self._host_accessible = bool(host_accessible)
        self._dtype = None if dtype is None else np.dtype(dtype)

    @classmethod
    def from_ctypes(cls, obj, dtype=None) -> "Pointer":
        """Build a host pointer from a ctypes array, pointer or c_void_p."""
        if isinstance(obj, ctypes.c_void_p):
            return cls(obj.value or 0, True, dtype)
        return cls(ctypes.cast(obj, ctypes.c_void_p).value or 0, True, dtype)

    def get(self) -> int:
        return self._address

    @property
    def address(self) -> int:
        return self._address

    @property
    def host_accessible(self) -> bool:
        return self._host_accessible

    @property
    def dtype(self) -> Optional[np.dtype]:
        return self._dtype

    def is_null(self) -> bool:
        return self._address == 0

    def as_array(self, shape, dtype=None) -> np.ndarray:
        """
        View host memory at this address as a C-contiguous numpy array.

        The returned array does not own the memory; the caller must keep the
        memory alive for as long as the view is used. An empty view keeps this
        address as its data pointer, except for a null pointer, which yields a
        fresh empty array.

        Raises
        ------
        DevicePointerAccessError
            If this is a device pointer.
        ValueError
            If the pointer is null, or no dtype is known.
        """
        if not self._host_accessible:
            raise DevicePointerAccessError(self._address)
        dt = np.dtype(dtype) if dtype is not None else self._dtype
        if dt is None:
            raise ValueError("as_array needs a dtype for an untyped pointer")
        dims = normalize_shape(shape)
        nbytes = shape_size(dims) * dt.itemsize
        if nbytes == 0:
            if self._address == 0:
                return np.empty(dims, dtype=dt)
            # Keep the caller address as the data pointer of the empty view.
            return np.asarray(_HostMemory(self._address, dims, dt))
        if self._address == 0:
            raise ValueError("cannot view a null pointer")
        raw = (ctypes.c_char * nbytes).from_address(self._address)
        return np.frombuffer(raw, dtype=dt).reshape(dims)

    def __int__(self) -> int:
        return self._address

    def __index__(self) -> int:
        return self._address

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Pointer):
            return (
                self._address == other._address
                and self._host_accessible == other._host_accessible
            )
        if isinstance(other, int):
            return self._address == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash((self._address, self._host_accessible))

    def __repr__(self) -> str:
        kind = "host" if self._host_accessible else "device"
        return f"<Pointer {kind} 0x{self._address:x}>"
