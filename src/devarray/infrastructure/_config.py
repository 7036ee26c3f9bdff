"""
Environment-driven configuration for the GPU runtime binding.

Environment variables
---------------------
DEVARRAY_BACKEND : str, optional
    "cuda" (default) or "hip". Selects the runtime library names and the
    symbol prefix ("cuda" -> cudaMalloc, "hip" -> hipMalloc).
DEVARRAY_RUNTIME_PATH : str, optional
    Explicit path to the runtime shared library. When set, no other
    candidates are tried.
CUDA_PATH / HIP_PATH : str, optional
    Toolkit root. `<root>/bin` is registered as a DLL directory on Windows,
    and `<root>/lib64` / `<root>/lib` are searched on POSIX.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

_BACKENDS = ("cuda", "hip")


@dataclass(frozen=True)
class RuntimeConfig:
    """
    Resolved runtime-loading configuration.

    Attributes
    ----------
    backend : str
        "cuda" or "hip".
    library_path : str or None
        Explicit library path, if configured.
    toolkit_root : str or None
        CUDA_PATH (cuda) or HIP_PATH (hip), if set.
    """

    backend: str = "cuda"
    library_path: Optional[str] = None
    toolkit_root: Optional[str] = None

    def __post_init__(self) -> None:
        if self.backend not in _BACKENDS:
            raise ValueError(
                f"Invalid backend {self.backend!r}. Expected one of {_BACKENDS}."
            )

    @property
    def symbol_prefix(self) -> str:
        """Prefix of the runtime's exported C symbols."""
        return self.backend

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "RuntimeConfig":
        """
        Build a configuration from environment variables.

        Parameters
        ----------
        environ : Mapping[str, str], optional
            Defaults to `os.environ`.
        """
        env = os.environ if environ is None else environ
        backend = (env.get("DEVARRAY_BACKEND", "") or "cuda").strip().lower()
        library_path = env.get("DEVARRAY_RUNTIME_PATH", "") or None
        root_var = "HIP_PATH" if backend == "hip" else "CUDA_PATH"
        toolkit_root = env.get(root_var, "") or None
        return cls(
            backend=backend, library_path=library_path, toolkit_root=toolkit_root
        )
