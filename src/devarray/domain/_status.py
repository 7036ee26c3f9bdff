"""
Runtime status values.

`CudaStatus` wraps the integer returned by the GPU runtime (`cudaError_t` /
`hipError_t`). Arrays store the latest one and callers poll it; nothing in the
array path raises on a failing status.

Names and messages are resolved through the runtime that produced the code
when available (`cudaGetErrorName` / `cudaGetErrorString`), and otherwise
from a small table of codes shared by CUDA and HIP.
"""

from __future__ import annotations

from typing import Any, Optional

# Codes shared by cudaError_t and hipError_t.
_KNOWN_CODES = {
    0: ("cudaSuccess", "no error"),
    1: ("cudaErrorInvalidValue", "invalid argument"),
    2: ("cudaErrorMemoryAllocation", "out of memory"),
    3: ("cudaErrorInitializationError", "initialization error"),
    4: ("cudaErrorCudartUnloading", "driver shutting down"),
    17: ("cudaErrorInvalidDevicePointer", "invalid device pointer"),
    21: ("cudaErrorInvalidMemcpyDirection", "invalid copy direction for memcpy"),
    35: (
        "cudaErrorInsufficientDriver",
        "CUDA driver version is insufficient for CUDA runtime version",
    ),
    100: ("cudaErrorNoDevice", "no CUDA-capable device is detected"),
    101: ("cudaErrorInvalidDevice", "invalid device ordinal"),
    999: ("cudaErrorUnknown", "unknown error"),
}

SUCCESS = 0


class CudaStatus:
    """
    Immutable status code returned by the GPU runtime.

    Parameters
    ----------
    code : int
        Raw status value. Zero means success.
    runtime : object, optional
        Runtime that produced the code. When given, `name` and `message` are
        looked up through its `error_name` / `error_string` methods.

    Notes
    -----
    Compares equal to plain integers, so `arr.last_status() == 0` works.
    """

    __slots__ = ("_code", "_runtime")

    def __init__(self, code: int = SUCCESS, runtime: Optional[Any] = None) -> None:
        self._code = int(code)
        self._runtime = runtime

    @property
    def code(self) -> int:
        return self._code

    @property
    def ok(self) -> bool:
        """True if the runtime reported success."""
        return self._code == SUCCESS

    @property
    def name(self) -> str:
        """Symbolic name of the code, e.g. "cudaErrorMemoryAllocation"."""
        if self._runtime is not None:
            name = self._runtime.error_name(self._code)
            if name:
                return name
        known = _KNOWN_CODES.get(self._code)
        return known[0] if known is not None else f"cudaError({self._code})"

    @property
    def message(self) -> str:
        """Human-readable description of the code."""
        if self._runtime is not None:
            msg = self._runtime.error_string(self._code)
            if msg:
                return msg
        known = _KNOWN_CODES.get(self._code)
        return known[1] if known is not None else "unrecognized error code"

    def as_int(self) -> int:
        return self._code

    def __int__(self) -> int:
        return self._code

    def __index__(self) -> int:
        return self._code

    def __eq__(self, other: object) -> bool:
        if isinstance(other, CudaStatus):
            return self._code == other._code
        if isinstance(other, int):
            return self._code == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._code)

    def __str__(self) -> str:
        return f"{self.name}: {self.message}"

    def __repr__(self) -> str:
        return f"<CudaStatus {self._code} {self.name}>"
