from __future__ import annotations

import sys
import unittest

import numpy as np

import devarray

from _fake_runtime import FakeRuntime


class TestBufferInfo(unittest.TestCase):
    def test_fields(self) -> None:
        a = devarray.DeviceArray_float32([4, 3])
        info = a.buffer_info()
        self.assertEqual(info.ptr, a.host_data().get())
        self.assertEqual(info.itemsize, 4)
        self.assertEqual(info.format, "f")
        self.assertEqual(info.ndim, 2)
        self.assertEqual(info.shape, (4, 3))
        self.assertEqual(info.strides, (12, 4))

    def test_formats(self) -> None:
        expected = {
            "bool": "?",
            "float64": "d",
            "complex64": "Zf",
            "uint8": "B",
            "int8": "b",
        }
        for label, fmt in expected.items():
            a = devarray.device_array_type(label)(2)
            with self.subTest(label=label):
                self.assertEqual(a.buffer_info().format, fmt)

    def test_format_matches_numpy_export(self) -> None:
        for label in devarray.registered_labels():
            a = devarray.device_array_type(label)(1)
            ref = memoryview(np.empty(1, dtype=label)).format
            with self.subTest(label=label):
                self.assertEqual(a.buffer_info().format, ref)


class TestArrayInterface(unittest.TestCase):
    def test_numpy_view_is_zero_copy(self) -> None:
        a = devarray.DeviceArray_int32([2, 3])
        a.host_array()[:] = np.arange(6).reshape(2, 3)
        v = np.asarray(a)
        self.assertEqual(v.shape, (2, 3))
        self.assertEqual(v.dtype, np.int32)
        self.assertEqual(v.ctypes.data, a.host_data().get())
        v[1, 2] = 42
        self.assertEqual(a.host_array()[1, 2], 42)

    def test_interface_fields(self) -> None:
        a = devarray.DeviceArray_float64([5, 2])
        iface = a.__array_interface__
        self.assertEqual(iface["version"], 3)
        self.assertEqual(iface["shape"], (5, 2))
        self.assertEqual(iface["strides"], (16, 8))
        self.assertEqual(iface["typestr"], np.dtype(np.float64).str)
        self.assertEqual(iface["data"], (a.host_data().get(), False))

    @unittest.skipUnless(sys.version_info >= (3, 12), "PEP 688 needs Python 3.12")
    def test_memoryview(self) -> None:
        a = devarray.DeviceArray_float32([4, 3])
        m = memoryview(a)
        self.assertEqual(m.shape, (4, 3))
        self.assertEqual(m.strides, (12, 4))
        self.assertEqual(m.format, "f")


class TestCudaArrayInterface(unittest.TestCase):
    def test_absent_until_allocated(self) -> None:
        a = devarray.DeviceArray_float32(4, runtime=FakeRuntime())
        self.assertFalse(hasattr(a, "__cuda_array_interface__"))

    def test_describes_device_memory(self) -> None:
        a = devarray.DeviceArray_float32([4, 3], runtime=FakeRuntime())
        a.allocate()
        iface = a.__cuda_array_interface__
        self.assertEqual(iface["version"], 3)
        self.assertEqual(iface["shape"], (4, 3))
        self.assertIsNone(iface["strides"])
        self.assertEqual(iface["data"], (a.device_data().get(), False))
        a.release()
        self.assertFalse(hasattr(a, "__cuda_array_interface__"))


class TestRepr(unittest.TestCase):
    def test_repr_shows_state(self) -> None:
        a = devarray.DeviceArray_float32([2, 2], runtime=FakeRuntime())
        self.assertIn("DeviceArray_float32", repr(a))
        self.assertIn("host-only", repr(a))
        a.allocate()
        self.assertIn("allocated", repr(a))


if __name__ == "__main__":
    unittest.main()
