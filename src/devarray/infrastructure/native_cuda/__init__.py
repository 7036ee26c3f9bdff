from ._runtime_loader import load_gpu_runtime, candidate_libraries
from .cudart_ctypes import (
    CudaRuntime,
    get_runtime,
    set_runtime,
    device_count,
    set_device,
    get_device,
    synchronize,
)

__all__ = [
    load_gpu_runtime.__name__,
    candidate_libraries.__name__,
    CudaRuntime.__name__,
    get_runtime.__name__,
    set_runtime.__name__,
    device_count.__name__,
    set_device.__name__,
    get_device.__name__,
    synchronize.__name__,
]
