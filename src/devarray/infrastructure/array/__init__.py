from ._pointer import Pointer
from ._buffer_info import BufferInfo
from ._handles import OwnedHostBuffer, BorrowedHostBuffer, DeviceAllocation
from ._device_array import DeviceArray
from ._registry import (
    ELEMENT_TYPES,
    generate_device_array,
    device_array_type,
    registered_labels,
)

__all__ = [
    Pointer.__name__,
    BufferInfo.__name__,
    OwnedHostBuffer.__name__,
    BorrowedHostBuffer.__name__,
    DeviceAllocation.__name__,
    DeviceArray.__name__,
    "ELEMENT_TYPES",
    generate_device_array.__name__,
    device_array_type.__name__,
    registered_labels.__name__,
]
