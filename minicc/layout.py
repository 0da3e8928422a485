"""Stack frame and static data layout.

Frame picture for one activation (addresses grow upward, stack grows down)::

    | outgoing args of caller |  fp + linkage + i * slot   (LOAD_ARG i)
    +-------------------------+
    | return token            |  fp + pointer_size
    | saved frame pointer     |  fp
    +-------------------------+ <- fp
    | first declared slot     |  fp - size(first)
    | ...                     |
    | last declared slot      |
    +-------------------------+ <- sp after ENTER (fp - frame_size)

Slots are handed out in declaration order, each aligned to its type.
``frame_size`` is padded so that ``linkage + frame_size`` is a multiple of
the stack alignment, which keeps ``sp`` aligned at every call site.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from . import constants
from .errors import TypeMismatch
from .types import CType, TypeModel, align_up

logger = logging.getLogger(__name__)


class StorageClass(Enum):
    PARAMETER = "parameter"
    LOCAL = "local"
    GLOBAL = "global"
    TEMPORARY = "temporary"


@dataclass(frozen=True)
class FrameSlot:
    name: str
    offset: int
    size: int
    ctype: CType
    storage: StorageClass

    @property
    def end(self) -> int:
        return self.offset + self.size


@dataclass(frozen=True)
class FrameLayout:
    function_name: str
    slots: tuple[FrameSlot, ...]
    locals_size: int
    frame_size: int
    linkage_size: int

    def slot(self, name: str) -> FrameSlot:
        """Return the first slot declared under *name*."""
        for s in self.slots:
            if s.name == name:
                return s
        raise KeyError(name)

    def describe(self) -> str:
        lines = [
            f"frame {self.function_name}: locals={self.locals_size} "
            f"frame={self.frame_size} linkage={self.linkage_size}"
        ]
        for s in sorted(self.slots, key=lambda s: s.offset):
            lines.append(
                f"  [fp{s.offset:+d}..fp{s.end:+d})  {s.storage.value:<9} "
                f"{s.ctype} {s.name}"
            )
        return "\n".join(lines)


def outgoing_area_size(argc: int, type_model: TypeModel) -> int:
    """Bytes reserved below ``sp`` for one call site's arguments."""
    target = type_model.target
    return align_up(argc * target.arg_slot_size, target.stack_alignment)


class LayoutContext:
    """Per-function slot allocator. A fresh context is used for every function."""

    def __init__(self, function_name: str, type_model: TypeModel):
        self.function_name = function_name
        self.type_model = type_model
        self._cursor = 0
        self._slots: list[FrameSlot] = []
        self._temp_counter = 0
        self._finished = False

    def reserve(
        self, name: str, ctype: CType, storage: StorageClass, node=None
    ) -> FrameSlot:
        if self._finished:
            raise RuntimeError(f"layout of '{self.function_name}' is already final")
        size = self.type_model.size_of(ctype, node)
        if size <= 0:
            raise TypeMismatch(f"'{name}' has non-positive size {size}", node)
        alignment = self.type_model.align_of(ctype, node)
        self._cursor = align_up(self._cursor + size, alignment)
        slot = FrameSlot(
            name=name, offset=-self._cursor, size=size, ctype=ctype, storage=storage
        )
        self._slots.append(slot)
        logger.debug(
            "%s: slot %s %s at fp%+d (%d bytes)",
            self.function_name,
            storage.value,
            name,
            slot.offset,
            size,
        )
        return slot

    def reserve_temp(self, ctype: CType) -> FrameSlot:
        name = f"{constants.HIDDEN_SLOT_PREFIX}t{self._temp_counter}"
        self._temp_counter += 1
        return self.reserve(name, ctype, StorageClass.TEMPORARY)

    def finish(self) -> FrameLayout:
        target = self.type_model.target
        linkage = target.linkage_size
        frame_size = (
            align_up(self._cursor + linkage, target.stack_alignment) - linkage
        )
        self._finished = True
        return FrameLayout(
            function_name=self.function_name,
            slots=tuple(self._slots),
            locals_size=self._cursor,
            frame_size=frame_size,
            linkage_size=linkage,
        )


class StaticLayout:
    """Allocator for globals and pooled string literals in the data segment."""

    def __init__(self, type_model: TypeModel, base: int = constants.DATA_BASE):
        self.type_model = type_model
        self.base = base
        self._data = bytearray()
        self._strings: dict[bytes, int] = {}
        self.symbols: dict[str, int] = {}

    def allocate(self, name: str, ctype: CType, node=None) -> int:
        size = self.type_model.size_of(ctype, node)
        alignment = self.type_model.align_of(ctype, node)
        start = align_up(len(self._data), alignment)
        self._data.extend(b"\x00" * (start + size - len(self._data)))
        address = self.base + start
        self.symbols[name] = address
        logger.debug("static %s %s at 0x%x (%d bytes)", ctype, name, address, size)
        return address

    def intern_string(self, value: bytes) -> int:
        if value in self._strings:
            return self._strings[value]
        address = self.base + len(self._data)
        self._data.extend(value + b"\x00")
        self._strings[value] = address
        return address

    def write_int(self, address: int, value: int, size: int) -> None:
        start = address - self.base
        mask = (1 << (8 * size)) - 1
        self._data[start : start + size] = (value & mask).to_bytes(size, "little")

    def write_bytes(self, address: int, value: bytes) -> None:
        start = address - self.base
        self._data[start : start + len(value)] = value

    def image(self) -> bytes:
        return bytes(self._data)
