"""
ctypes bindings for the CUDA (or HIP) runtime API.

This module binds the handful of runtime entry points devarray needs directly
from the vendor runtime library (`cudart` / `amdhip64`):

    <prefix>Malloc / <prefix>Free
    <prefix>Memcpy / <prefix>Memset
    <prefix>GetErrorName / <prefix>GetErrorString
    <prefix>GetDeviceCount / <prefix>SetDevice / <prefix>GetDevice
    <prefix>DeviceSynchronize

where `<prefix>` is "cuda" or "hip". Both runtimes share signatures and the
numeric values of the statuses and memcpy kinds used here.

Design notes
------------
- Memory primitives (`malloc`, `free`, `memcpy`, `memset`) return the raw
  status code and never raise; `DeviceArray` records those codes for the
  caller to poll.
- Device-management helpers (`set_device`, `synchronize`, ...) raise
  `CudaRuntimeError` on a non-zero status.
- Device pointers are plain Python ints and are passed as `c_void_p`.
- Symbol binding (`argtypes` / `restype`) is lazy and idempotent.
"""

from __future__ import annotations

import ctypes
import logging
from ctypes import c_char_p, c_int, c_size_t, c_void_p
from typing import Optional, Tuple

from ...domain._errors import CudaRuntimeError
from ...domain._runtime_protocol import MemcpyKind
from ...domain._status import CudaStatus
from .._config import RuntimeConfig
from ._runtime_loader import load_gpu_runtime

logger = logging.getLogger(__name__)

DevPtr = int


class CudaRuntime:
    """
    Thin binding layer around a loaded GPU runtime library.

    Parameters
    ----------
    lib : ctypes.CDLL
        Loaded runtime library handle (or any object exposing the same
        function attributes).
    prefix : str
        Symbol prefix, "cuda" or "hip".

    Notes
    -----
    This class does not own any allocation; callers free what they allocate.
    """

    def __init__(self, lib, prefix: str = "cuda") -> None:
        self.lib = lib
        self.prefix = prefix
        self._memory_bound = False
        self._errors_bound = False
        self._device_bound = False

    def __repr__(self) -> str:
        return f"CudaRuntime(prefix={self.prefix!r}, lib={self.lib!r})"

    def _fn(self, name: str):
        return getattr(self.lib, self.prefix + name)

    # ----------------------------
    # binders
    # ----------------------------

    def _bind_memory(self) -> None:
        """Bind Malloc / Free / Memcpy / Memset (idempotent)."""
        if self._memory_bound:
            return

        fn = self._fn("Malloc")
        fn.argtypes = [ctypes.POINTER(c_void_p), c_size_t]
        fn.restype = c_int

        fn = self._fn("Free")
        fn.argtypes = [c_void_p]
        fn.restype = c_int

        # (dst, src, count, kind)
        fn = self._fn("Memcpy")
        fn.argtypes = [c_void_p, c_void_p, c_size_t, c_int]
        fn.restype = c_int

        fn = self._fn("Memset")
        fn.argtypes = [c_void_p, c_int, c_size_t]
        fn.restype = c_int

        self._memory_bound = True

    def _bind_errors(self) -> None:
        """Bind GetErrorName / GetErrorString when exported (idempotent)."""
        if self._errors_bound:
            return

        for name in ("GetErrorName", "GetErrorString"):
            if hasattr(self.lib, self.prefix + name):
                fn = self._fn(name)
                fn.argtypes = [c_int]
                fn.restype = c_char_p

        self._errors_bound = True

    def _bind_device(self) -> None:
        """Bind device-management entry points (idempotent)."""
        if self._device_bound:
            return

        fn = self._fn("GetDeviceCount")
        fn.argtypes = [ctypes.POINTER(c_int)]
        fn.restype = c_int

        fn = self._fn("SetDevice")
        fn.argtypes = [c_int]
        fn.restype = c_int

        fn = self._fn("GetDevice")
        fn.argtypes = [ctypes.POINTER(c_int)]
        fn.restype = c_int

        fn = self._fn("DeviceSynchronize")
        fn.argtypes = []
        fn.restype = c_int

        self._device_bound = True

    def _check(self, op: str, st: int) -> None:
        if st != 0:
            raise CudaRuntimeError(self.prefix + op, CudaStatus(st, self))

    # ----------------------------
    # memory primitives (status-returning)
    # ----------------------------

    def malloc(self, nbytes: int) -> Tuple[DevPtr, int]:
        """
        Allocate device memory.

        Returns
        -------
        Tuple[DevPtr, int]
            Device address (0 on failure) and the runtime status.
        """
        self._bind_memory()
        out = c_void_p(0)
        st = int(self._fn("Malloc")(ctypes.byref(out), c_size_t(int(nbytes))))
        addr = int(out.value or 0)
        if st != 0:
            logger.warning(
                "%sMalloc(%d) failed with status=%d", self.prefix, int(nbytes), st
            )
        else:
            logger.debug("%sMalloc(%d) -> 0x%x", self.prefix, int(nbytes), addr)
        return addr, st

    def free(self, address: DevPtr) -> int:
        """Free device memory. Freeing address 0 is a no-op in the runtime."""
        self._bind_memory()
        st = int(self._fn("Free")(c_void_p(int(address))))
        if st != 0:
            logger.warning(
                "%sFree(0x%x) failed with status=%d", self.prefix, int(address), st
            )
        else:
            logger.debug("%sFree(0x%x)", self.prefix, int(address))
        return st

    def memcpy(self, dst: int, src: int, nbytes: int, kind: MemcpyKind) -> int:
        """
        Blocking copy of `nbytes` from `src` to `dst`.

        Parameters
        ----------
        dst, src : int
            Host or device addresses, as indicated by `kind`.
        nbytes : int
            Number of bytes to copy.
        kind : MemcpyKind
            Copy direction.
        """
        self._bind_memory()
        st = int(
            self._fn("Memcpy")(
                c_void_p(int(dst)),
                c_void_p(int(src)),
                c_size_t(int(nbytes)),
                c_int(int(kind)),
            )
        )
        if st != 0:
            logger.warning(
                "%sMemcpy(%s, %d bytes) failed with status=%d",
                self.prefix,
                MemcpyKind(kind).name,
                int(nbytes),
                st,
            )
        return st

    def memset(self, address: DevPtr, value: int, nbytes: int) -> int:
        """Set `nbytes` of device memory at `address` to the byte `value`."""
        self._bind_memory()
        return int(
            self._fn("Memset")(
                c_void_p(int(address)), c_int(int(value)), c_size_t(int(nbytes))
            )
        )

    # ----------------------------
    # status descriptions
    # ----------------------------

    def _error_text(self, name: str, code: int) -> str:
        self._bind_errors()
        if not hasattr(self.lib, self.prefix + name):
            return ""
        raw = self._fn(name)(c_int(int(code)))
        if raw is None:
            return ""
        if isinstance(raw, bytes):
            return raw.decode("utf-8", errors="replace")
        return str(raw)

    def error_name(self, code: int) -> str:
        """Symbolic name of a status code ("" if the runtime cannot tell)."""
        return self._error_text("GetErrorName", code)

    def error_string(self, code: int) -> str:
        """Description of a status code ("" if the runtime cannot tell)."""
        return self._error_text("GetErrorString", code)

    def status(self, code: int) -> CudaStatus:
        """Wrap a raw code as a `CudaStatus` resolved through this runtime."""
        return CudaStatus(code, self)

    # ----------------------------
    # device management (raising)
    # ----------------------------

    def device_count(self) -> int:
        """Number of visible GPU devices."""
        self._bind_device()
        out = c_int(0)
        self._check("GetDeviceCount", int(self._fn("GetDeviceCount")(ctypes.byref(out))))
        return int(out.value)

    def set_device(self, device: int = 0) -> None:
        """Select the active device for the calling thread."""
        self._bind_device()
        self._check("SetDevice", int(self._fn("SetDevice")(c_int(int(device)))))

    def get_device(self) -> int:
        """Index of the active device."""
        self._bind_device()
        out = c_int(0)
        self._check("GetDevice", int(self._fn("GetDevice")(ctypes.byref(out))))
        return int(out.value)

    def synchronize(self) -> None:
        """Block until all work queued on the active device has finished."""
        self._bind_device()
        self._check("DeviceSynchronize", int(self._fn("DeviceSynchronize")()))


# ---------------------------------------------------------------------
# Process-wide default runtime
# ---------------------------------------------------------------------

_default_runtime: Optional[CudaRuntime] = None


def get_runtime() -> CudaRuntime:
    """
    Return the process-wide default runtime, loading it on first use.

    The library and symbol prefix come from `RuntimeConfig.from_env()`.

    Raises
    ------
    RuntimeLibraryNotFoundError
        If the runtime library cannot be loaded.
    """
    global _default_runtime
    if _default_runtime is None:
        config = RuntimeConfig.from_env()
        _default_runtime = CudaRuntime(load_gpu_runtime(config), config.symbol_prefix)
    return _default_runtime


def set_runtime(runtime) -> None:
    """
    Replace the process-wide default runtime.

    Passing None resets it so the next `get_runtime()` reloads from the
    environment.
    """
    global _default_runtime
    _default_runtime = runtime


# ---------------------------------------------------------------------
# Functional API
# ---------------------------------------------------------------------


def device_count(runtime: Optional[CudaRuntime] = None) -> int:
    """Number of visible GPU devices."""
    return (runtime or get_runtime()).device_count()


def set_device(device: int = 0, runtime: Optional[CudaRuntime] = None) -> None:
    """Select the active GPU device."""
    (runtime or get_runtime()).set_device(device)


def get_device(runtime: Optional[CudaRuntime] = None) -> int:
    """Index of the active GPU device."""
    return (runtime or get_runtime()).get_device()


def synchronize(runtime: Optional[CudaRuntime] = None) -> None:
    """Synchronize the active GPU device."""
    (runtime or get_runtime()).synchronize()
