"""Call lowering — argument evaluation and the outgoing argument area."""

from __future__ import annotations

import logging

from .. import ast_nodes as ast
from ..errors import TypeMismatch, UnknownIdentifier
from ..ir import Opcode
from ..layout import outgoing_area_size
from ._base import BaseLowering, Value

logger = logging.getLogger(__name__)


class CallLowering(BaseLowering):
    """Emits the caller side of the calling convention.

    Arguments are evaluated left to right into registers before the area is
    opened, so nested calls never interleave with an open argument area::

        ARG_AREA size ; STORE_ARG 0 r0 ; ... ; CALL_* name argc ; RELEASE_ARGS size
    """

    def _lower_call(self, expr: ast.Call) -> Value:
        sig = self.symbols.lookup_function(expr.name, expr)
        if not sig.external and sig.name not in self.symbols.defined_functions:
            raise UnknownIdentifier(f"function '{sig.name}' is declared but never defined", expr)
        fixed = len(sig.param_types)
        argc = len(expr.args)
        if argc < fixed or (argc > fixed and not sig.variadic):
            expected = f"at least {fixed}" if sig.variadic else str(fixed)
            raise TypeMismatch(
                f"'{sig.name}' expects {expected} argument(s), got {argc}", expr
            )

        arg_regs: list[str] = []
        for index, arg in enumerate(expr.args):
            value = self._lower_expr(arg)
            if index < fixed:
                self._check_assignable(sig.param_types[index], value, arg)
            elif not (value.ctype.is_scalar_int or value.ctype.is_pointer):
                raise TypeMismatch(
                    f"cannot pass '{value.ctype}' as a variadic argument", arg
                )
            arg_regs.append(value.reg)

        area = outgoing_area_size(argc, self.type_model)
        self._emit(Opcode.ARG_AREA, operands=[area], node=expr)
        for index, reg in enumerate(arg_regs):
            self._emit(Opcode.STORE_ARG, operands=[index, reg], node=expr)

        opcode = Opcode.CALL_VARIADIC if sig.variadic else Opcode.CALL_FUNCTION
        result_reg = "" if sig.return_type.is_void else self._fresh_reg()
        self._emit(opcode, result_reg=result_reg, operands=[sig.name, argc], node=expr)
        self._emit(Opcode.RELEASE_ARGS, operands=[area], node=expr)
        return Value(result_reg or None, sig.return_type)
