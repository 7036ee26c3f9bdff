"""
Element-type registry for DeviceArray.

One `DeviceArray` subclass is generated per supported element type, named
`DeviceArray_<label>` (e.g. `DeviceArray_float32`). The table below is the
single source of truth; `generate_device_array` publishes the classes into a
namespace (the package `__init__` does this for `devarray`).
"""

from __future__ import annotations

from typing import Any, Dict, MutableMapping, Optional, Type

import numpy as np

from ...domain._errors import UnsupportedDTypeError
from ._device_array import DeviceArray

# label -> element type
ELEMENT_TYPES: Dict[str, np.dtype] = {
    "bool": np.dtype(np.bool_),
    "int8": np.dtype(np.int8),
    "int16": np.dtype(np.int16),
    "int32": np.dtype(np.int32),
    "int64": np.dtype(np.int64),
    "uint8": np.dtype(np.uint8),
    "uint16": np.dtype(np.uint16),
    "uint32": np.dtype(np.uint32),
    "uint64": np.dtype(np.uint64),
    "float32": np.dtype(np.float32),
    "float64": np.dtype(np.float64),
    "complex64": np.dtype(np.complex64),
    "complex128": np.dtype(np.complex128),
}

_CLASSES: Dict[str, Type[DeviceArray]] = {}


def _make_class(label: str, dtype: np.dtype) -> Type[DeviceArray]:
    name = f"DeviceArray_{label}"
    cls = type(
        name,
        (DeviceArray,),
        {
            "__slots__": (),
            "__module__": "devarray",
            "__qualname__": name,
            "__doc__": f"DeviceArray of {dtype} elements.",
            "element_type": dtype,
            "label": label,
        },
    )
    return cls


def _ensure_classes() -> Dict[str, Type[DeviceArray]]:
    if not _CLASSES:
        for label, dtype in ELEMENT_TYPES.items():
            _CLASSES[label] = _make_class(label, dtype)
    return _CLASSES


def generate_device_array(
    namespace: Optional[MutableMapping[str, Any]] = None,
) -> Dict[str, Type[DeviceArray]]:
    """
    Create (once) and publish the per-type DeviceArray classes.

    Parameters
    ----------
    namespace : MutableMapping[str, Any], optional
        Mapping (e.g. a module's `globals()`) that receives
        `DeviceArray_<label>` entries.

    Returns
    -------
    Dict[str, Type[DeviceArray]]
        Classes keyed by class name.
    """
    classes = {cls.__name__: cls for cls in _ensure_classes().values()}
    if namespace is not None:
        namespace.update(classes)
    return classes


def device_array_type(key: Any) -> Type[DeviceArray]:
    """
    Registered class for an element type.

    Parameters
    ----------
    key : str | numpy dtype-like
        A label ("float32") or anything `numpy.dtype` accepts.

    Raises
    ------
    UnsupportedDTypeError
        If no class is registered for the element type.
    """
    classes = _ensure_classes()
    if isinstance(key, str) and key in classes:
        return classes[key]
    try:
        dt = np.dtype(key)
    except TypeError:
        raise UnsupportedDTypeError(key) from None
    for label, registered in ELEMENT_TYPES.items():
        if registered == dt:
            return classes[label]
    raise UnsupportedDTypeError(key)


def registered_labels() -> tuple:
    """Labels of all registered element types, in registration order."""
    return tuple(ELEMENT_TYPES)
