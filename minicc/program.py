"""Compiled program data types (pure data, no business logic)."""

from __future__ import annotations

from dataclasses import dataclass, field

from .cfg import CFG
from .ir import IRInstruction
from .layout import FrameLayout
from .symbols import FunctionSignature
from .targets import Target


@dataclass
class CompiledFunction:
    name: str
    signature: FunctionSignature
    layout: FrameLayout
    instructions: list[IRInstruction]
    cfg: CFG

    @property
    def entry_label(self) -> str:
        return self.cfg.entry


@dataclass
class StaticImage:
    base: int
    data: bytes
    symbols: dict[str, int] = field(default_factory=dict)


@dataclass
class CompiledProgram:
    target: Target
    functions: dict[str, CompiledFunction]
    externals: dict[str, FunctionSignature]
    statics: StaticImage

    def all_instructions(self) -> list[IRInstruction]:
        return [inst for fn in self.functions.values() for inst in fn.instructions]
