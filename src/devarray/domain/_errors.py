"""
Exceptions raised by devarray.

Runtime status codes returned by array operations are recorded on the array
and never raised (see `DeviceArray.last_status`). The exceptions below cover
the remaining failure modes:

- the GPU runtime library cannot be located or loaded,
- a device-management helper received a non-zero status,
- an element type has no registered array class,
- host code tried to read through a device pointer.
"""

from __future__ import annotations


class DevArrayError(Exception):
    """Base class for all devarray exceptions."""


class CudaRuntimeError(DevArrayError, RuntimeError):
    """
    Raised when a device-management call returns a non-zero status.

    Attributes
    ----------
    op : str
        Name of the runtime entry point that failed (e.g. "cudaSetDevice").
    status : CudaStatus
        Status value returned by the runtime.
    """

    def __init__(self, op: str, status) -> None:
        """
        Initialize the CudaRuntimeError.

        Parameters
        ----------
        op : str
            Runtime entry point name.
        status : CudaStatus
            Status value returned by the runtime.
        """
        super().__init__(f"{op} failed with status={status!r}")
        self.op = op
        self.status = status


class RuntimeLibraryNotFoundError(DevArrayError, FileNotFoundError):
    """
    Raised when no GPU runtime shared library can be loaded.

    Attributes
    ----------
    candidates : tuple[str, ...]
        Library names or paths that were tried, in order.
    """

    def __init__(self, candidates, reason: str = "") -> None:
        self.candidates = tuple(str(c) for c in candidates)
        msg = "GPU runtime library not found; tried: " + ", ".join(self.candidates)
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)


class UnsupportedDTypeError(DevArrayError, TypeError):
    """Raised when an element type has no registered DeviceArray class."""

    def __init__(self, dtype) -> None:
        super().__init__(f"No DeviceArray type registered for element type {dtype!r}.")
        self.dtype = dtype


class DevicePointerAccessError(DevArrayError, ValueError):
    """Raised when a device pointer is dereferenced from host code."""

    def __init__(self, address: int) -> None:
        super().__init__(
            f"Pointer 0x{int(address):x} refers to device memory and cannot be "
            "accessed from the host."
        )
        self.address = int(address)
