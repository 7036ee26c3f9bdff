from ._errors import (
    DevArrayError,
    CudaRuntimeError,
    RuntimeLibraryNotFoundError,
    UnsupportedDTypeError,
    DevicePointerAccessError,
)
from ._status import CudaStatus
from ._outcome import Outcome, OpResult
from ._runtime_protocol import GpuRuntimeLike, MemcpyKind
from ._shape import normalize_shape, shape_size, row_major_strides

__all__ = [
    DevArrayError.__name__,
    CudaRuntimeError.__name__,
    RuntimeLibraryNotFoundError.__name__,
    UnsupportedDTypeError.__name__,
    DevicePointerAccessError.__name__,
    CudaStatus.__name__,
    Outcome.__name__,
    OpResult.__name__,
    GpuRuntimeLike.__name__,
    MemcpyKind.__name__,
    normalize_shape.__name__,
    shape_size.__name__,
    row_major_strides.__name__,
]
