"""
Typed, shaped array with a host copy and an optional device copy.

`DeviceArray` owns (or borrows) one host buffer and may own one device
allocation holding the same logical data. Transfers between the two are
explicit and caller-driven:

    arr = DeviceArray_float32([4, 3])     # host memory only
    arr.host_array()[:] = 1.0
    arr.allocate()                        # device memory, contents undefined
    arr.to_device()                       # host -> device
    ...                                   # device-side work
    arr.to_host()                         # device -> host

Error model
-----------
Runtime status codes are recorded and exposed through `last_status()`; they
are never raised. An operation whose precondition is unmet (copying before
`allocate()`, allocating twice) is skipped and leaves the status unchanged.
Every mutating call returns an `OpResult` saying whether it completed or was
skipped.

Ownership
---------
- Arrays cannot be copied; `copy.copy`, `copy.deepcopy` and pickling raise
  `TypeError`.
- `move()` transfers both handles to a new array. The source keeps its
  descriptors but owns nothing afterwards, so releasing it frees nothing.
- Device memory is freed by `release()` / `close()` / leaving a `with` block,
  or by the allocation handle's finalizer when it is garbage-collected.
- Borrowed host memory (wrapped pointers, adopted buffers) is never freed.

Concurrency
-----------
No internal locking. Every runtime call is blocking. Do not use one array from
several threads at once.
"""

from __future__ import annotations

import logging
from typing import Any, ClassVar, Dict, Optional, Tuple

import numpy as np
from typing_extensions import Self

from ...domain._errors import DevicePointerAccessError
from ...domain._outcome import OpResult, Outcome
from ...domain._runtime_protocol import MemcpyKind
from ...domain._shape import normalize_shape, row_major_strides, shape_size
from ...domain._status import CudaStatus
from ._buffer_info import BufferInfo, format_descriptor
from ._handles import (
    BorrowedHostBuffer,
    DeviceAllocation,
    HostBuffer,
    OwnedHostBuffer,
)
from ._pointer import Pointer

logger = logging.getLogger(__name__)


def _default_runtime():
    from ..native_cuda.cudart_ctypes import get_runtime

    return get_runtime()


def _registered_dtype(dtype: Any) -> np.dtype:
    # Raises UnsupportedDTypeError for element types without a class.
    from ._registry import device_array_type

    return device_array_type(dtype).element_type


def _buffer_array(obj: Any) -> np.ndarray:
    """
    numpy view of a buffer-protocol object (or a `__array_interface__`
    exporter, which covers DeviceArray before Python 3.12).

    Raises
    ------
    TypeError
        If `obj` exports neither.
    ValueError
        If the memory is read-only or not C-contiguous.
    """
    try:
        view = memoryview(obj)
    except TypeError:
        if not hasattr(obj, "__array_interface__"):
            raise TypeError(
                f"cannot build a DeviceArray from {type(obj).__name__}: expected an "
                "element count, a shape, a pointer with a shape, or a buffer"
            ) from None
        arr = np.asarray(obj)
        readonly = not arr.flags.writeable
        contiguous = arr.flags.c_contiguous
    else:
        arr = np.asarray(view)
        readonly = view.readonly
        contiguous = view.c_contiguous

    if readonly:
        raise ValueError("cannot wrap a read-only buffer")
    if not contiguous:
        raise ValueError("cannot wrap a buffer that is not C-contiguous")
    return arr


class DeviceArray:
    """
    Host/device array of a single element type.

    Parameters
    ----------
    source : int | list[int] | tuple[int, ...] | Pointer | buffer
        - int: element count; allocates a 1-D host buffer.
        - list/tuple of ints: shape; allocates a host buffer, row-major.
        - Pointer or int address, with `shape`: wraps caller host memory.
        - any object exporting the buffer protocol (numpy array, bytearray,
          memoryview, ...): wraps its memory, taking shape and element type
          from the buffer.
    shape : int | list[int] | tuple[int, ...], optional
        Element count or shape of the memory behind a wrapped pointer.
        Required when `source` is a pointer, invalid otherwise.
    dtype : numpy dtype-like, optional
        Element type. Fixed by the registered per-type classes
        (`DeviceArray_float32`, ...); required on the generic class unless
        adopting a buffer.
    runtime : GpuRuntimeLike, optional
        Runtime used for device memory. Defaults to the process-wide runtime,
        resolved on first device operation.

    Raises
    ------
    TypeError
        On an unsupported `source`, a missing element type, or a buffer whose
        element type differs from the class element type.
    UnsupportedDTypeError
        On the generic class, for an element type with no registered class.
    ValueError
        On an invalid shape, a non C-contiguous or read-only buffer, or a null
        pointer wrapping non-empty memory.
    DevicePointerAccessError
        When asked to wrap a device pointer as host memory.
    """

    element_type: ClassVar[Optional[np.dtype]] = None
    label: ClassVar[str] = "generic"

    __slots__ = (
        "_dtype",
        "_shape",
        "_strides",
        "_size",
        "_host",
        "_device",
        "_runtime",
        "_status",
    )

    def __init__(
        self,
        source: Any,
        shape: Any = None,
        *,
        dtype: Any = None,
        runtime: Any = None,
    ) -> None:
        dt = self._resolve_dtype(dtype)

        if shape is not None:
            host = self._wrap_pointer(source, shape, dt)
        elif isinstance(source, Pointer):
            raise TypeError("wrapping a pointer requires a shape")
        elif isinstance(source, (int, np.integer)) and not isinstance(source, bool):
            host = self._allocate_host(source, dt)
        elif isinstance(source, (list, tuple)):
            host = self._allocate_host(source, dt)
        else:
            host = self._adopt_buffer(source, dt)

        self._setup(host, runtime)

    # ----------------------------
    # construction helpers
    # ----------------------------

    @classmethod
    def _resolve_dtype(cls, dtype: Any) -> Optional[np.dtype]:
        if cls.element_type is None:
            return None if dtype is None else _registered_dtype(dtype)
        if dtype is not None and np.dtype(dtype) != cls.element_type:
            raise TypeError(
                f"{cls.__name__} holds {cls.element_type}, not {np.dtype(dtype)}"
            )
        return cls.element_type

    @staticmethod
    def _require_dtype(dt: Optional[np.dtype]) -> np.dtype:
        if dt is None:
            raise TypeError(
                "DeviceArray needs an element type; pass dtype= or use a typed "
                "class such as DeviceArray_float32"
            )
        return dt

    @classmethod
    def _allocate_host(cls, shape: Any, dt: Optional[np.dtype]) -> HostBuffer:
        dims = normalize_shape(shape)
        return OwnedHostBuffer.allocate(dims, cls._require_dtype(dt))

    @classmethod
    def _wrap_pointer(cls, ptr: Any, shape: Any, dt: Optional[np.dtype]) -> HostBuffer:
        if isinstance(ptr, Pointer):
            if not ptr.host_accessible:
                raise DevicePointerAccessError(ptr.get())
            if dt is None and ptr.dtype is not None:
                dt = _registered_dtype(ptr.dtype)
        elif isinstance(ptr, (int, np.integer)) and not isinstance(ptr, bool):
            ptr = Pointer(int(ptr), True)
        else:
            raise TypeError(
                f"expected a Pointer or an integer address, got {type(ptr).__name__}"
            )
        dt = cls._require_dtype(dt)
        return BorrowedHostBuffer(ptr.as_array(normalize_shape(shape), dt))

    @classmethod
    def _adopt_buffer(cls, obj: Any, dt: Optional[np.dtype]) -> HostBuffer:
        arr = _buffer_array(obj)
        normalize_shape(arr.shape)
        if dt is None:
            _registered_dtype(arr.dtype)
        elif arr.dtype != dt:
            raise TypeError(
                f"buffer holds {arr.dtype}, but {cls.__name__} holds {dt}"
            )
        return BorrowedHostBuffer(arr)

    def _setup(self, host: HostBuffer, runtime: Any) -> None:
        arr = host.array
        self._dtype = arr.dtype
        self._shape = tuple(int(d) for d in arr.shape)
        self._size = shape_size(self._shape)
        self._strides = row_major_strides(self._shape, self._dtype.itemsize)
        self._host = host
        self._device: Optional[DeviceAllocation] = None
        self._runtime = runtime
        self._status = CudaStatus()

    @classmethod
    def from_count(cls, count: int, *, dtype: Any = None, runtime: Any = None) -> Self:
        """Allocate a 1-D host buffer of `count` elements."""
        return cls(int(count), dtype=dtype, runtime=runtime)

    @classmethod
    def from_shape(cls, shape, *, dtype: Any = None, runtime: Any = None) -> Self:
        """Allocate a row-major host buffer of the given shape."""
        return cls(list(normalize_shape(shape)), dtype=dtype, runtime=runtime)

    @classmethod
    def from_pointer(
        cls, ptr, shape, *, dtype: Any = None, runtime: Any = None
    ) -> Self:
        """Wrap caller-owned host memory; it is never freed by the array."""
        return cls(ptr, shape, dtype=dtype, runtime=runtime)

    @classmethod
    def from_buffer(cls, obj, *, runtime: Any = None) -> "DeviceArray":
        """
        Wrap the memory of a buffer-protocol object.

        On the generic `DeviceArray` the registered class matching the
        buffer's element type is chosen, e.g. a float64 numpy array yields a
        `DeviceArray_float64`.

        Raises
        ------
        UnsupportedDTypeError
            On the generic class, if no class is registered for the element
            type.
        """
        if cls.element_type is None:
            from ._registry import device_array_type

            return device_array_type(_buffer_array(obj).dtype)(obj, runtime=runtime)
        return cls(obj, runtime=runtime)

    # ----------------------------
    # ownership
    # ----------------------------

    def __copy__(self):
        raise TypeError(f"{type(self).__name__} cannot be copied; use move()")

    def __deepcopy__(self, memo):
        raise TypeError(f"{type(self).__name__} cannot be copied; use move()")

    def __reduce_ex__(self, protocol):
        raise TypeError(f"{type(self).__name__} cannot be pickled")

    def move(self) -> Self:
        """
        Transfer this array's memory to a new array.

        The new array takes the host and device handles and the last status.
        Afterwards this array reports `allocated() == False`, owns neither its
        host nor its device memory, and `release()` on it frees nothing.
        """
        new = type(self).__new__(type(self))
        new._dtype = self._dtype
        new._shape = self._shape
        new._size = self._size
        new._strides = self._strides
        new._host = self._host
        new._device = self._device
        new._runtime = self._runtime
        new._status = self._status

        self._host = self._host.borrow()
        self._device = None
        return new

    @classmethod
    def take(cls, other: "DeviceArray") -> Self:
        """Classmethod spelling of `other.move()`."""
        if not isinstance(other, cls):
            raise TypeError(
                f"{cls.__name__}.take expects a {cls.__name__}, "
                f"got {type(other).__name__}"
            )
        return other.move()

    # ----------------------------
    # device operations
    # ----------------------------

    def _get_runtime(self):
        if self._runtime is None:
            self._runtime = _default_runtime()
        return self._runtime

    def _skip(self, op: str) -> OpResult:
        logger.debug("%s skipped on %r", op, self)
        return OpResult(Outcome.SKIPPED, self._status)

    def _record(self, runtime, st: int) -> OpResult:
        self._status = CudaStatus(st, runtime)
        return OpResult(Outcome.COMPLETED, self._status)

    def allocate(self) -> OpResult:
        """
        Allocate `size * itemsize` bytes of device memory.

        Skipped if already allocated. Does not copy any data. If the runtime
        fails, the status is recorded and `allocated()` stays False.
        """
        if self._device is not None:
            return self._skip("allocate")
        rt = self._get_runtime()
        self._device, st = DeviceAllocation.allocate(rt, self.nbytes())
        return self._record(rt, st)

    def to_device(self) -> OpResult:
        """Copy host contents into the device allocation; skipped if unallocated."""
        dev = self._device
        if dev is None:
            return self._skip("to_device")
        st = dev.runtime.memcpy(
            dev.address, self._host.address, self.nbytes(), MemcpyKind.HOST_TO_DEVICE
        )
        return self._record(dev.runtime, st)

    def to_host(self) -> OpResult:
        """Copy device contents back into host memory; skipped if unallocated."""
        dev = self._device
        if dev is None:
            return self._skip("to_host")
        st = dev.runtime.memcpy(
            self._host.address, dev.address, self.nbytes(), MemcpyKind.DEVICE_TO_HOST
        )
        return self._record(dev.runtime, st)

    def release(self) -> OpResult:
        """Free the device allocation now; skipped if there is none."""
        dev = self._device
        if dev is None:
            return self._skip("release")
        self._device = None
        return self._record(dev.runtime, dev.release())

    def close(self) -> None:
        self.release()

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ----------------------------
    # descriptors
    # ----------------------------

    @property
    def dtype(self) -> np.dtype:
        return self._dtype

    def size(self) -> int:
        return self._size

    def shape(self) -> Tuple[int, ...]:
        return self._shape

    def strides(self) -> Tuple[int, ...]:
        return self._strides

    def ndim(self) -> int:
        return len(self._shape)

    def itemsize(self) -> int:
        return int(self._dtype.itemsize)

    def nbytes(self) -> int:
        return self._size * int(self._dtype.itemsize)

    def last_status(self) -> CudaStatus:
        return self._status

    def allocated(self) -> bool:
        return self._device is not None

    def host_owned(self) -> bool:
        return self._host.owned

    def device_owned(self) -> bool:
        # Device memory is never borrowed.
        return self._device is not None

    def host_data(self) -> Pointer:
        return Pointer(self._host.address, True, self._dtype)

    def device_data(self) -> Pointer:
        """Device address; null if unallocated. Not readable from the host."""
        address = self._device.address if self._device is not None else 0
        return Pointer(address, False, self._dtype)

    def host_array(self) -> np.ndarray:
        """numpy view of the host memory (no copy)."""
        return self._host.array

    # ----------------------------
    # interchange protocols
    # ----------------------------

    def buffer_info(self) -> BufferInfo:
        return BufferInfo(
            ptr=self._host.address,
            itemsize=self.itemsize(),
            format=format_descriptor(self._dtype),
            ndim=self.ndim(),
            shape=self._shape,
            strides=self._strides,
        )

    @property
    def __array_interface__(self) -> Dict[str, Any]:
        return {
            "shape": self._shape,
            "typestr": self._dtype.str,
            "descr": self._dtype.descr,
            "data": (self._host.address, False),
            "strides": self._strides,
            "version": 3,
        }

    @property
    def __cuda_array_interface__(self) -> Dict[str, Any]:
        if self._device is None:
            raise AttributeError("__cuda_array_interface__ requires allocate()")
        return {
            "shape": self._shape,
            "typestr": self._dtype.str,
            "descr": self._dtype.descr,
            "data": (self._device.address, False),
            "strides": None,
            "version": 3,
        }

    def __buffer__(self, flags: int) -> memoryview:
        """
        Buffer protocol export of the host memory.

        Only honored on Python 3.12+ (PEP 688). On older interpreters
        `memoryview(arr)` raises TypeError; use `numpy.asarray(arr)` or
        `arr.host_array()` instead. Adopting an array into another DeviceArray
        works on every version through `__array_interface__`.
        """
        return memoryview(self._host.array)

    def __repr__(self) -> str:
        state = "allocated" if self._device is not None else "host-only"
        return (
            f"{type(self).__name__}(shape={self._shape}, dtype={self._dtype}, {state})"
        )
