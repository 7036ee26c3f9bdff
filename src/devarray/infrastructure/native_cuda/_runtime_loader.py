"""
Cached loader for the GPU runtime shared library.

Resolves the CUDA runtime (`cudart`) or HIP runtime (`amdhip64`) for the
current platform and returns a `ctypes.CDLL` handle reused across the package.

Key behaviors
-------------
- Cached: `load_gpu_runtime()` is decorated with `lru_cache`, so each
  configuration loads its library once per process.
- Explicit path: `DEVARRAY_RUNTIME_PATH` short-circuits the search.
- Toolkit roots: on Windows `<CUDA_PATH>/bin` (or `<HIP_PATH>/bin`) is added as
  a DLL directory, falling back to prepending it onto PATH when
  `os.add_dll_directory` fails with WinError 206. On POSIX `<root>/lib64` and
  `<root>/lib` are tried before the bare sonames.
- Explicit failure: raises `RuntimeLibraryNotFoundError` when nothing loads.
"""

from __future__ import annotations

import ctypes
import ctypes.util
import logging
import os
import sys
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from ...domain._errors import RuntimeLibraryNotFoundError
from .._config import RuntimeConfig

logger = logging.getLogger(__name__)

_WINDOWS_NAMES = {
    "cuda": (
        "cudart64_12.dll",
        "cudart64_110.dll",
        "cudart64_102.dll",
        "cudart64_101.dll",
    ),
    "hip": ("amdhip64_6.dll", "amdhip64.dll"),
}

_POSIX_NAMES = {
    "cuda": ("libcudart.so", "libcudart.so.12", "libcudart.so.11.0"),
    "hip": ("libamdhip64.so", "libamdhip64.so.6", "libamdhip64.so.5"),
}

_FIND_LIBRARY_NAMES = {"cuda": "cudart", "hip": "amdhip64"}


def _add_dll_dir_or_path(dir_path: str) -> None:
    """
    Add a directory for DLL dependency resolution (Windows only).

    Uses `os.add_dll_directory(dir_path)`. Some Windows setups raise
    WinError 206 ("The filename or extension is too long"); in that case the
    directory is prepended onto `os.environ["PATH"]` for this process instead.

    Raises
    ------
    OSError
        Re-raised if `os.add_dll_directory` fails for reasons other than
        WinError 206.
    """
    if not dir_path or not os.path.isdir(dir_path):
        return
    if not hasattr(os, "add_dll_directory"):
        return

    try:
        os.add_dll_directory(dir_path)
    except OSError as e:
        if getattr(e, "winerror", None) == 206:
            cur = os.environ.get("PATH", "")
            parts = cur.split(os.pathsep) if cur else []
            if dir_path not in parts:
                os.environ["PATH"] = dir_path + os.pathsep + cur if cur else dir_path
        else:
            raise


def candidate_libraries(
    config: RuntimeConfig, platform: Optional[str] = None
) -> List[str]:
    """
    Library names/paths to try, in order, for `config`.

    Parameters
    ----------
    config : RuntimeConfig
        Backend and path configuration.
    platform : str, optional
        Overrides `sys.platform` (used by tests).
    """
    platform = sys.platform if platform is None else platform
    if config.library_path:
        return [config.library_path]

    out: List[str] = []
    if platform.startswith("win"):
        names = _WINDOWS_NAMES[config.backend]
        if config.toolkit_root:
            bin_dir = os.path.join(config.toolkit_root, "bin")
            out.extend(os.path.join(bin_dir, n) for n in names)
        out.extend(names)
    else:
        names = _POSIX_NAMES[config.backend]
        if config.toolkit_root:
            for sub in ("lib64", "lib"):
                out.extend(os.path.join(config.toolkit_root, sub, n) for n in names)
        out.extend(names)

    found = ctypes.util.find_library(_FIND_LIBRARY_NAMES[config.backend])
    if found and found not in out:
        out.append(found)
    return out


@lru_cache(maxsize=None)
def load_gpu_runtime(config: Optional[RuntimeConfig] = None) -> ctypes.CDLL:
    """
    Load and cache the GPU runtime shared library.

    Parameters
    ----------
    config : RuntimeConfig, optional
        Loading configuration. Defaults to `RuntimeConfig.from_env()`.

    Returns
    -------
    ctypes.CDLL
        Loaded runtime library handle.

    Raises
    ------
    RuntimeLibraryNotFoundError
        If an explicit path does not exist, or no candidate library loads.
    """
    if config is None:
        return load_gpu_runtime(RuntimeConfig.from_env())

    if config.library_path and not Path(config.library_path).exists():
        raise RuntimeLibraryNotFoundError(
            [config.library_path], reason="DEVARRAY_RUNTIME_PATH does not exist"
        )

    if sys.platform.startswith("win") and config.toolkit_root:
        _add_dll_dir_or_path(os.path.join(config.toolkit_root, "bin"))

    candidates = candidate_libraries(config)
    errors = []
    for name in candidates:
        try:
            lib = ctypes.CDLL(name)
        except OSError as e:
            logger.debug("Could not load %s: %s", name, e)
            errors.append(f"{name}: {e}")
            continue
        logger.info("Loaded %s runtime from %s", config.backend, name)
        return lib

    raise RuntimeLibraryNotFoundError(
        candidates, reason=errors[-1] if errors else ""
    )
