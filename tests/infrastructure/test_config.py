from __future__ import annotations

import unittest

from devarray import RuntimeConfig


class TestRuntimeConfig(unittest.TestCase):
    def test_defaults(self) -> None:
        cfg = RuntimeConfig.from_env({})
        self.assertEqual(cfg.backend, "cuda")
        self.assertEqual(cfg.symbol_prefix, "cuda")
        self.assertIsNone(cfg.library_path)
        self.assertIsNone(cfg.toolkit_root)

    def test_cuda_path(self) -> None:
        cfg = RuntimeConfig.from_env({"CUDA_PATH": "/opt/cuda", "HIP_PATH": "/opt/rocm"})
        self.assertEqual(cfg.toolkit_root, "/opt/cuda")

    def test_hip_backend(self) -> None:
        cfg = RuntimeConfig.from_env(
            {"DEVARRAY_BACKEND": " HIP ", "CUDA_PATH": "/opt/cuda", "HIP_PATH": "/opt/rocm"}
        )
        self.assertEqual(cfg.backend, "hip")
        self.assertEqual(cfg.symbol_prefix, "hip")
        self.assertEqual(cfg.toolkit_root, "/opt/rocm")

    def test_explicit_library_path(self) -> None:
        cfg = RuntimeConfig.from_env({"DEVARRAY_RUNTIME_PATH": "/x/libcudart.so"})
        self.assertEqual(cfg.library_path, "/x/libcudart.so")

    def test_empty_values_ignored(self) -> None:
        cfg = RuntimeConfig.from_env(
            {"DEVARRAY_BACKEND": "", "DEVARRAY_RUNTIME_PATH": "", "CUDA_PATH": ""}
        )
        self.assertEqual(cfg, RuntimeConfig())

    def test_invalid_backend(self) -> None:
        with self.assertRaises(ValueError):
            RuntimeConfig.from_env({"DEVARRAY_BACKEND": "opencl"})


if __name__ == "__main__":
    unittest.main()
