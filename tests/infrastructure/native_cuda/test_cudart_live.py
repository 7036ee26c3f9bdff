from __future__ import annotations

import unittest

import numpy as np


def _cuda_available() -> bool:
    try:
        from devarray.infrastructure.native_cuda.cudart_ctypes import get_runtime

        return get_runtime().device_count() > 0
    except Exception:
        return False


@unittest.skipUnless(_cuda_available(), "GPU runtime not available")
class TestDeviceArrayOnGpu(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        import devarray

        cls.devarray = devarray
        devarray.set_device(0)

    def test_round_trip(self) -> None:
        x = (np.random.rand(64, 3) - 0.5).astype(np.float32)
        a = self.devarray.DeviceArray_float32(x.shape)
        a.host_array()[:] = x
        with a:
            self.assertTrue(a.allocate().ok)
            self.assertTrue(a.to_device().ok)
            a.host_array()[:] = 0
            self.assertTrue(a.to_host().ok)
            np.testing.assert_array_equal(a.host_array(), x)
            self.assertTrue(a.last_status().ok)

    def test_allocate_idempotent(self) -> None:
        a = self.devarray.DeviceArray_float64(128)
        a.allocate()
        first = a.device_data().get()
        self.assertTrue(a.allocate().skipped)
        self.assertEqual(a.device_data().get(), first)
        self.assertTrue(a.release().ok)

    def test_error_name_from_runtime(self) -> None:
        rt = self.devarray.get_runtime()
        self.assertTrue(rt.status(0).name.endswith("Success"))


if __name__ == "__main__":
    unittest.main()
