"""Byte-addressed little-endian memory of the execution target.

Memory map (addresses grow upward)::

    0                 null guard, never mapped
    data_base         static data: globals then pooled strings
    stack_limit       lowest address the stack may reach
    stack_top         initial stack pointer, one past the last byte
"""

from __future__ import annotations

import logging

from . import constants
from .errors import MemoryFault
from .types import align_up

logger = logging.getLogger(__name__)


class Memory:
    def __init__(
        self,
        static_data: bytes = b"",
        data_base: int = constants.DATA_BASE,
        stack_size: int = constants.DEFAULT_STACK_SIZE,
    ):
        self.data_base = data_base
        self.data_end = data_base + len(static_data)
        self.stack_limit = align_up(self.data_end, constants.STACK_ALIGNMENT)
        self.stack_top = self.stack_limit + align_up(
            stack_size, constants.STACK_ALIGNMENT
        )
        self._bytes = bytearray(self.stack_top)
        self._bytes[data_base : self.data_end] = static_data
        logger.debug(
            "Memory: data [0x%x, 0x%x) stack [0x%x, 0x%x)",
            data_base,
            self.data_end,
            self.stack_limit,
            self.stack_top,
        )

    def _check(self, address: int, size: int) -> None:
        if address < constants.NULL_GUARD_SIZE:
            raise MemoryFault(f"access of {size} byte(s) at {address:#x} (null page)")
        if address + size > self.stack_top:
            raise MemoryFault(
                f"access of {size} byte(s) at {address:#x} beyond mapped memory"
            )

    def read_bytes(self, address: int, size: int) -> bytes:
        self._check(address, size)
        return bytes(self._bytes[address : address + size])

    def write_bytes(self, address: int, data: bytes) -> None:
        self._check(address, len(data))
        self._bytes[address : address + len(data)] = data

    def read_int(self, address: int, size: int, signed: bool = True) -> int:
        return int.from_bytes(self.read_bytes(address, size), "little", signed=signed)

    def write_int(self, address: int, value: int, size: int) -> None:
        mask = (1 << (8 * size)) - 1
        self.write_bytes(address, (value & mask).to_bytes(size, "little"))

    def zero_fill(self, address: int, size: int) -> None:
        self.write_bytes(address, bytes(size))

    def read_cstring(self, address: int) -> bytes:
        """Bytes from *address* up to (not including) the next NUL."""
        self._check(address, 1)
        end = self._bytes.find(b"\x00", address)
        if end < 0:
            raise MemoryFault(f"unterminated string at {address:#x}")
        return bytes(self._bytes[address:end])
