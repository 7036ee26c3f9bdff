"""
In-process stand-in for the GPU runtime.

"Device" blocks are ctypes buffers in host memory, so copies can be checked
byte for byte. Every call is recorded, frees are counted, and malloc can be
made to fail.
"""

from __future__ import annotations

import ctypes

from devarray.domain._runtime_protocol import MemcpyKind

_NAMES = {
    0: "cudaSuccess",
    1: "cudaErrorInvalidValue",
    2: "cudaErrorMemoryAllocation",
    17: "cudaErrorInvalidDevicePointer",
}


class FakeRuntime:
    def __init__(self) -> None:
        self.blocks: dict[int, ctypes.Array] = {}
        self.calls: list[tuple] = []
        self.freed: list[int] = []
        self.malloc_status = 0

    # GpuRuntimeLike

    def malloc(self, nbytes: int):
        self.calls.append(("malloc", nbytes))
        if self.malloc_status != 0:
            return 0, self.malloc_status
        buf = ctypes.create_string_buffer(max(int(nbytes), 1))
        addr = ctypes.addressof(buf)
        self.blocks[addr] = buf
        return addr, 0

    def free(self, address: int) -> int:
        self.calls.append(("free", address))
        if address == 0:
            return 0
        if address not in self.blocks:
            return 17
        del self.blocks[address]
        self.freed.append(address)
        return 0

    def memcpy(self, dst: int, src: int, nbytes: int, kind: MemcpyKind) -> int:
        self.calls.append(("memcpy", dst, src, nbytes, MemcpyKind(kind)))
        if kind == MemcpyKind.HOST_TO_DEVICE and dst not in self.blocks:
            return 17
        if kind == MemcpyKind.DEVICE_TO_HOST and src not in self.blocks:
            return 17
        if nbytes:
            ctypes.memmove(dst, src, nbytes)
        return 0

    def error_name(self, code: int) -> str:
        return _NAMES.get(code, "")

    def error_string(self, code: int) -> str:
        return ""

    # helpers

    def calls_named(self, name: str) -> list[tuple]:
        return [c for c in self.calls if c[0] == name]

    def device_bytes(self, address: int, nbytes: int) -> bytes:
        return self.blocks[address].raw[:nbytes]

    def write_device(self, address: int, data: bytes) -> None:
        ctypes.memmove(address, data, len(data))
