"""BaseLowering — register/label allocation and instruction emission shared by all lowerers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from .. import ast_nodes as ast
from ..errors import TypeMismatch
from ..ir import NO_SOURCE_LOCATION, IRInstruction, Opcode
from ..layout import LayoutContext, StaticLayout
from ..operators import wrap_int32
from ..symbols import FunctionSignature, SymbolTable
from ..types import CType, TypeModel, decay

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Value:
    """An rvalue held in a register, with its (already decayed) C type."""

    reg: str | None
    ctype: CType
    is_null_constant: bool = False


class BaseLowering:
    """State of code generation for one program.

    Register and label counters run across the whole program, so every label
    is unique. Instruction buffers, the layout context and the loop stack are
    reset for each function.
    """

    def __init__(self, type_model: TypeModel, statics: StaticLayout):
        self.type_model = type_model
        self.statics = statics
        self.symbols = SymbolTable(statics)
        self._reg_counter: int = 0
        self._label_counter: int = 0
        self._instructions: list[IRInstruction] = []
        self._layout: LayoutContext | None = None
        self._function: FunctionSignature | None = None
        self._loop_stack: list[dict[str, str]] = []
        self._STMT_DISPATCH: dict[type, Callable] = {}
        self._EXPR_DISPATCH: dict[type, Callable] = {}

    # ── helpers ──────────────────────────────────────────────────

    def _fresh_reg(self) -> str:
        r = f"%{self._reg_counter}"
        self._reg_counter += 1
        return r

    def _fresh_label(self, prefix: str = "L") -> str:
        lbl = f"{prefix}_{self._label_counter}"
        self._label_counter += 1
        return lbl

    def _emit(
        self,
        opcode: Opcode,
        *,
        result_reg: str = "",
        operands: list[Any] = [],
        label: str = "",
        node: ast.Node | None = None,
    ) -> IRInstruction:
        inst = IRInstruction(
            opcode=opcode,
            result_reg=result_reg or None,
            operands=operands or [],
            label=label or None,
            source_location=node.location if node is not None else NO_SOURCE_LOCATION,
        )
        self._instructions.append(inst)
        return inst

    def _emit_value(self, opcode: Opcode, operands: list[Any], node=None) -> str:
        reg = self._fresh_reg()
        self._emit(opcode, result_reg=reg, operands=operands, node=node)
        return reg

    def _const(self, value: int, node=None) -> str:
        return self._emit_value(Opcode.CONST, [wrap_int32(value)], node)

    def _emit_label(self, label: str) -> None:
        self._emit(Opcode.LABEL, label=label)

    def _branch(self, label: str, node=None) -> None:
        self._emit(Opcode.BRANCH, label=label, node=node)

    def _branch_if(self, cond_reg: str, true_label: str, false_label: str, node=None):
        self._emit(
            Opcode.BRANCH_IF,
            operands=[cond_reg],
            label=f"{true_label},{false_label}",
            node=node,
        )

    # ── memory access ────────────────────────────────────────────

    def _load(self, addr_reg: str, ctype: CType, node=None) -> Value:
        """Read an object of *ctype*; arrays decay to their address instead."""
        if ctype.is_array:
            return Value(addr_reg, decay(ctype))
        if ctype.is_void:
            raise TypeMismatch("cannot read an object of type void", node)
        size = self.type_model.size_of(ctype, node)
        reg = self._emit_value(
            Opcode.LOAD, [addr_reg, size, self.type_model.is_signed(ctype)], node
        )
        return Value(reg, ctype)

    def _store(self, addr_reg: str, value_reg: str, ctype: CType, node=None) -> None:
        size = self.type_model.size_of(ctype, node)
        self._emit(Opcode.STORE, operands=[addr_reg, value_reg, size], node=node)

    def _frame_addr(self, offset: int, name: str, node=None) -> str:
        return self._emit_value(Opcode.FRAME_ADDR, [offset, name], node)

    def _static_addr(self, address: int, name: str, node=None) -> str:
        return self._emit_value(Opcode.STATIC_ADDR, [address, name], node)

    # ── loop context ─────────────────────────────────────────────

    def _push_loop(self, continue_label: str, end_label: str):
        self._loop_stack.append(
            {"continue_label": continue_label, "end_label": end_label}
        )

    def _pop_loop(self):
        self._loop_stack.pop()

    # ── dispatch ─────────────────────────────────────────────────

    def _lower_stmt(self, stmt: ast.Stmt) -> None:
        handler = self._STMT_DISPATCH.get(type(stmt))
        if handler is None:
            raise NotImplementedError(f"no lowering for {type(stmt).__name__}")
        handler(stmt)

    def _lower_expr(self, expr: ast.Expr) -> Value:
        """Lower *expr* as an rvalue; the result type is never an array."""
        handler = self._EXPR_DISPATCH.get(type(expr))
        if handler is None:
            raise NotImplementedError(f"no lowering for {type(expr).__name__}")
        value = handler(expr)
        if value.reg is None:
            raise TypeMismatch("void value used in an expression", expr)
        return value
