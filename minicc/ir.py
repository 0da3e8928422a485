"""IR Design — flattened three-address code over a byte-addressed machine."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel


class Opcode(str, Enum):
    # Value producers
    CONST = "CONST"
    FRAME_ADDR = "FRAME_ADDR"
    STATIC_ADDR = "STATIC_ADDR"
    LOAD = "LOAD"
    LOAD_ARG = "LOAD_ARG"
    BINOP = "BINOP"
    UNOP = "UNOP"
    # Memory writes
    STORE = "STORE"
    # Frame and calling convention
    ENTER = "ENTER"
    ARG_AREA = "ARG_AREA"
    STORE_ARG = "STORE_ARG"
    CALL_FUNCTION = "CALL_FUNCTION"
    CALL_VARIADIC = "CALL_VARIADIC"
    RELEASE_ARGS = "RELEASE_ARGS"
    # Control flow
    BRANCH_IF = "BRANCH_IF"
    BRANCH = "BRANCH"
    RETURN = "RETURN"
    # Labels (pseudo-instruction)
    LABEL = "LABEL"


TERMINATORS: frozenset[Opcode] = frozenset(
    {Opcode.BRANCH, Opcode.BRANCH_IF, Opcode.RETURN}
)


class SourceLocation(BaseModel, frozen=True):
    """1-based line, 0-based column span of the C construct an instruction came from."""

    start_line: int
    start_col: int
    end_line: int
    end_col: int

    def is_unknown(self) -> bool:
        # tree-sitter rows are shifted to 1-based, so line 0 never occurs
        return self.start_line == 0

    def __str__(self) -> str:
        if self.is_unknown():
            return "<unknown>"
        return f"{self.start_line}:{self.start_col}-{self.end_line}:{self.end_col}"


NO_SOURCE_LOCATION = SourceLocation(start_line=0, start_col=0, end_line=0, end_col=0)


class IRInstruction(BaseModel):
    """One TAC instruction.

    Operand conventions (registers are ``%N`` strings):

    - ``CONST``          ``[value]``
    - ``FRAME_ADDR``     ``[offset, slot_name]`` — frame pointer + offset
    - ``STATIC_ADDR``    ``[address, symbol]``
    - ``LOAD``           ``[addr_reg, size, signed]``
    - ``STORE``          ``[addr_reg, value_reg, size]``
    - ``LOAD_ARG``       ``[index]`` — incoming argument slot
    - ``BINOP``          ``[op, lhs_reg, rhs_reg]``
    - ``UNOP``           ``[op, operand_reg]``
    - ``ENTER``          ``[frame_size]``
    - ``ARG_AREA``       ``[area_size]``
    - ``STORE_ARG``      ``[index, value_reg]``
    - ``CALL_FUNCTION``  ``[name, argc]``
    - ``CALL_VARIADIC``  ``[name, argc]``
    - ``RELEASE_ARGS``   ``[area_size]``
    - ``BRANCH_IF``      ``[cond_reg]`` with ``label="true_label,false_label"``
    - ``BRANCH``         ``label=target``
    - ``RETURN``         ``[value_reg]`` or ``[]`` for void
    """

    opcode: Opcode
    result_reg: str | None = None
    operands: list[Any] = []
    label: str | None = None  # for LABEL / branch targets
    source_location: SourceLocation = NO_SOURCE_LOCATION

    def branch_targets(self) -> list[str]:
        if self.opcode == Opcode.BRANCH and self.label:
            return [self.label]
        if self.opcode == Opcode.BRANCH_IF and self.label:
            return [t.strip() for t in self.label.split(",")]
        return []

    def __str__(self) -> str:
        parts: list[str] = []
        if self.label and self.opcode == Opcode.LABEL:
            base = f"{self.label}:"
        else:
            if self.result_reg:
                parts.append(f"{self.result_reg} =")
            parts.append(self.opcode.value.lower())
            for op in self.operands:
                parts.append(str(op))
            if self.label and self.opcode != Opcode.LABEL:
                parts.append(self.label)
            base = " ".join(parts)
        if not self.source_location.is_unknown():
            return f"{base}  # {self.source_location}"
        return base
