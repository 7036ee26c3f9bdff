from __future__ import annotations

import copy
import ctypes
import gc
import pickle
import unittest

import numpy as np

import devarray
from devarray import DeviceArray

from _fake_runtime import FakeRuntime


class TestMove(unittest.TestCase):
    def setUp(self) -> None:
        self.rt = FakeRuntime()

    def test_move_transfers_pointers(self) -> None:
        a = devarray.DeviceArray_float32([4, 3], runtime=self.rt)
        a.allocate()
        host = a.host_data()
        dev = a.device_data()

        b = a.move()
        self.assertIsInstance(b, devarray.DeviceArray_float32)
        self.assertEqual(b.host_data(), host)
        self.assertEqual(b.device_data(), dev)
        self.assertTrue(b.allocated())
        self.assertTrue(b.host_owned())
        self.assertEqual(b.shape(), (4, 3))
        self.assertEqual(b.strides(), (12, 4))

        self.assertFalse(a.allocated())
        self.assertFalse(a.host_owned())
        self.assertFalse(a.device_owned())
        self.assertTrue(a.device_data().is_null())

    def test_moved_from_release_frees_nothing(self) -> None:
        a = devarray.DeviceArray_float64(8, runtime=self.rt)
        a.allocate()
        b = a.move()
        r = a.release()
        self.assertTrue(r.skipped)
        self.assertEqual(self.rt.freed, [])
        self.assertTrue(b.allocated())

    def test_no_double_free_after_move(self) -> None:
        a = devarray.DeviceArray_int32(4, runtime=self.rt)
        a.allocate()
        address = a.device_data().get()
        b = a.move()
        del a
        gc.collect()
        self.assertEqual(self.rt.freed, [])
        del b
        gc.collect()
        self.assertEqual(self.rt.freed, [address])

    def test_move_carries_last_status(self) -> None:
        self.rt.malloc_status = 2
        a = devarray.DeviceArray_float32(4, runtime=self.rt)
        a.allocate()
        b = a.move()
        self.assertEqual(b.last_status(), 2)

    def test_take(self) -> None:
        a = devarray.DeviceArray_uint8(3, runtime=self.rt)
        a.allocate()
        b = devarray.DeviceArray_uint8.take(a)
        self.assertTrue(b.allocated())
        self.assertFalse(a.allocated())

    def test_take_rejects_other_type(self) -> None:
        a = devarray.DeviceArray_uint8(3, runtime=self.rt)
        with self.assertRaises(TypeError):
            devarray.DeviceArray_float32.take(a)

    def test_moved_array_keeps_working(self) -> None:
        a = devarray.DeviceArray_int64(5, runtime=self.rt)
        a.host_array()[:] = [1, 2, 3, 4, 5]
        a.allocate()
        a.to_device()
        b = a.move()
        b.host_array()[:] = 0
        self.assertTrue(b.to_host().ok)
        np.testing.assert_array_equal(b.host_array(), [1, 2, 3, 4, 5])
        self.assertTrue(a.to_host().skipped)


class TestNoCopy(unittest.TestCase):
    def test_copy_forbidden(self) -> None:
        a = devarray.DeviceArray_float32(4)
        with self.assertRaises(TypeError):
            copy.copy(a)
        with self.assertRaises(TypeError):
            copy.deepcopy(a)

    def test_pickle_forbidden(self) -> None:
        a = devarray.DeviceArray_float32(4)
        with self.assertRaises(TypeError):
            pickle.dumps(a)


class TestRelease(unittest.TestCase):
    def setUp(self) -> None:
        self.rt = FakeRuntime()

    def test_release_frees_once(self) -> None:
        a = devarray.DeviceArray_float32(4, runtime=self.rt)
        a.allocate()
        address = a.device_data().get()
        r = a.release()
        self.assertTrue(r.ok)
        self.assertFalse(a.allocated())
        self.assertEqual(self.rt.freed, [address])
        self.assertTrue(a.release().skipped)
        del a
        gc.collect()
        self.assertEqual(self.rt.freed, [address])

    def test_release_without_allocation_is_noop(self) -> None:
        a = devarray.DeviceArray_float32(4, runtime=self.rt)
        self.assertTrue(a.release().skipped)
        self.assertEqual(self.rt.calls, [])

    def test_context_manager_releases(self) -> None:
        with devarray.DeviceArray_float64(2, runtime=self.rt) as a:
            a.allocate()
            address = a.device_data().get()
        self.assertFalse(a.allocated())
        self.assertEqual(self.rt.freed, [address])

    def test_garbage_collection_frees_device_memory(self) -> None:
        a = devarray.DeviceArray_float32(16, runtime=self.rt)
        a.allocate()
        address = a.device_data().get()
        del a
        gc.collect()
        self.assertEqual(self.rt.freed, [address])
        self.assertEqual(self.rt.blocks, {})

    def test_collecting_unallocated_array_calls_nothing(self) -> None:
        a = devarray.DeviceArray_float32(16, runtime=self.rt)
        del a
        gc.collect()
        self.assertEqual(self.rt.calls, [])

    def test_reallocate_after_release(self) -> None:
        a = devarray.DeviceArray_float32(4, runtime=self.rt)
        a.allocate()
        a.release()
        self.assertTrue(a.allocate().ok)
        self.assertTrue(a.allocated())
        self.assertEqual(len(self.rt.calls_named("malloc")), 2)


class TestBorrowedHostMemory(unittest.TestCase):
    def test_wrapped_pointer_survives_array(self) -> None:
        rt = FakeRuntime()
        raw = (ctypes.c_float * 4)(1.0, 2.0, 3.0, 4.0)
        a = devarray.DeviceArray_float32(ctypes.addressof(raw), [4], runtime=rt)
        self.assertFalse(a.host_owned())
        a.allocate()
        a.to_device()
        del a
        gc.collect()
        # Only the device block went back to the runtime.
        self.assertEqual(len(rt.freed), 1)
        self.assertEqual(list(raw), [1.0, 2.0, 3.0, 4.0])

    def test_adopted_buffer_survives_array(self) -> None:
        x = np.arange(6, dtype=np.int16)
        a = DeviceArray.from_buffer(x)
        self.assertFalse(a.host_owned())
        del a
        gc.collect()
        x[:] += 1
        np.testing.assert_array_equal(x, np.arange(1, 7, dtype=np.int16))


if __name__ == "__main__":
    unittest.main()
