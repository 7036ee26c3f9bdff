"""
devarray: GPU-resident arrays for Python.

Typed, shaped buffers with a host copy and an optional device copy, moved
between the two with explicit calls into the CUDA (or HIP) runtime.

    >>> import devarray
    >>> a = devarray.DeviceArray_float32([4, 3])
    >>> a.strides()
    (12, 4)
"""

from .domain import (
    DevArrayError,
    CudaRuntimeError,
    RuntimeLibraryNotFoundError,
    UnsupportedDTypeError,
    DevicePointerAccessError,
    CudaStatus,
    Outcome,
    OpResult,
    MemcpyKind,
)
from .infrastructure._config import RuntimeConfig
from .infrastructure.native_cuda import (
    CudaRuntime,
    load_gpu_runtime,
    get_runtime,
    set_runtime,
    device_count,
    set_device,
    get_device,
    synchronize,
)
from .infrastructure.array import (
    Pointer,
    BufferInfo,
    DeviceArray,
    generate_device_array,
    device_array_type,
    registered_labels,
)

# Publishes DeviceArray_bool, DeviceArray_int8, ..., DeviceArray_complex128.
_TYPED_CLASSES = generate_device_array(globals())

__version__ = "0.1.0"

__all__ = [
    "DevArrayError",
    "CudaRuntimeError",
    "RuntimeLibraryNotFoundError",
    "UnsupportedDTypeError",
    "DevicePointerAccessError",
    "CudaStatus",
    "Outcome",
    "OpResult",
    "MemcpyKind",
    "RuntimeConfig",
    "CudaRuntime",
    "load_gpu_runtime",
    "get_runtime",
    "set_runtime",
    "device_count",
    "set_device",
    "get_device",
    "synchronize",
    "Pointer",
    "BufferInfo",
    "DeviceArray",
    "generate_device_array",
    "device_array_type",
    "registered_labels",
    *sorted(_TYPED_CLASSES),
]
