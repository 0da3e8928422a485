"""Expression lowering — rvalues, addresses, pointer scaling and short-circuit merges."""

from __future__ import annotations

import logging

from .. import ast_nodes as ast
from ..errors import InvalidLvalue, TypeMismatch
from ..ir import Opcode
from ..types import (
    CHAR,
    INT,
    VOID,
    ArrayType,
    CType,
    PointerType,
    decay,
    is_assignable,
)
from ._base import BaseLowering, Value

logger = logging.getLogger(__name__)

COMPARISON_OPS = frozenset({"<", "<=", ">", ">=", "==", "!="})
ADDITIVE_OPS = frozenset({"+", "-"})


class ExpressionLowering(BaseLowering):
    """Lowers expressions into registers.

    Every rvalue has a non-array type: arrays decay to the address of their
    first element when read. Pointer arithmetic is scaled by the pointee
    size; ``&&``, ``||`` and ``?:`` merge their arms through a hidden frame
    slot so that each register is assigned exactly once.
    """

    # ── static typing ────────────────────────────────────────────

    def _static_type(self, expr: ast.Expr) -> CType:
        """Type of *expr* without emitting code; arrays are not decayed."""
        if isinstance(expr, (ast.IntLiteral, ast.Logical, ast.Unary)):
            return INT
        if isinstance(expr, (ast.SizeofType, ast.SizeofExpr)):
            return INT
        if isinstance(expr, ast.StringLiteral):
            return ArrayType(CHAR, len(expr.value) + 1)
        if isinstance(expr, ast.Identifier):
            return self.symbols.resolve(expr.name, expr).ctype
        if isinstance(expr, ast.Binary):
            return self._binary_type(
                expr.op,
                decay(self._static_type(expr.left)),
                decay(self._static_type(expr.right)),
                expr,
            )
        if isinstance(expr, ast.AddressOf):
            return PointerType(self._static_type(expr.operand))
        if isinstance(expr, ast.Deref):
            return self._pointee(decay(self._static_type(expr.operand)), expr)
        if isinstance(expr, ast.Index):
            base = decay(self._static_type(expr.base))
            if not base.is_pointer:
                base = decay(self._static_type(expr.index))
            return self._pointee(base, expr)
        if isinstance(expr, (ast.Assign, ast.CompoundAssign, ast.IncDec)):
            return self._static_type(expr.target)
        if isinstance(expr, ast.Call):
            return self.symbols.lookup_function(expr.name, expr).return_type
        if isinstance(expr, ast.Conditional):
            return self._conditional_type(expr)
        if isinstance(expr, ast.Comma):
            return decay(self._static_type(expr.right))
        if isinstance(expr, ast.Cast):
            return expr.ctype
        raise NotImplementedError(f"no static type for {type(expr).__name__}")

    def _binary_type(self, op: str, lt: CType, rt: CType, node) -> CType:
        if op in ADDITIVE_OPS:
            if lt.is_pointer and rt.is_scalar_int:
                return lt
            if op == "+" and lt.is_scalar_int and rt.is_pointer:
                return rt
            if op == "-" and lt.is_pointer and rt.is_pointer:
                return INT
        elif op in COMPARISON_OPS and (lt.is_pointer or rt.is_pointer):
            return INT
        if lt.is_scalar_int and rt.is_scalar_int:
            return INT
        raise TypeMismatch(f"invalid operands to '{op}' ('{lt}' and '{rt}')", node)

    def _conditional_type(self, expr: ast.Conditional) -> CType:
        tt = decay(self._static_type(expr.then))
        ot = decay(self._static_type(expr.otherwise))
        if tt.is_scalar_int and ot.is_scalar_int:
            return INT
        if tt.is_pointer and ot.is_pointer:
            if tt == ot or tt.pointee.is_void:
                return tt
            if ot.pointee.is_void:
                return ot
        if tt.is_pointer and _is_null_constant(expr.otherwise):
            return tt
        if ot.is_pointer and _is_null_constant(expr.then):
            return ot
        raise TypeMismatch(
            f"conditional arms have incompatible types '{tt}' and '{ot}'", expr
        )

    def _pointee(self, ctype: CType, node) -> CType:
        if not ctype.is_pointer:
            raise TypeMismatch(f"cannot dereference a value of type '{ctype}'", node)
        if ctype.pointee.is_void:
            raise TypeMismatch("cannot dereference 'void*'", node)
        return ctype.pointee

    # ── leaves ───────────────────────────────────────────────────

    def _lower_int_literal(self, expr: ast.IntLiteral) -> Value:
        return Value(self._const(expr.value, expr), INT, is_null_constant=expr.value == 0)

    def _lower_string_literal(self, expr: ast.StringLiteral) -> Value:
        address = self.statics.intern_string(expr.value)
        reg = self._static_addr(address, f".str@{address:#x}", expr)
        return Value(reg, PointerType(CHAR))

    def _lower_identifier(self, expr: ast.Identifier) -> Value:
        target = self._lower_address(expr)
        return self._load(target.reg, target.ctype, expr)

    # ── addresses ────────────────────────────────────────────────

    def _symbol_address(self, name: str, node) -> Value:
        symbol = self.symbols.resolve(name, node)
        if symbol.is_global:
            return Value(self._static_addr(symbol.location, name, node), symbol.ctype)
        return Value(self._frame_addr(symbol.location, name, node), symbol.ctype)

    def _lower_address(self, expr: ast.Expr) -> Value:
        """Lower an lvalue to the register holding its address.

        The returned ``ctype`` is the type of the designated object, not a
        pointer type.
        """
        if isinstance(expr, ast.Identifier):
            return self._symbol_address(expr.name, expr)
        if isinstance(expr, ast.Deref):
            ptr = self._lower_expr(expr.operand)
            return Value(ptr.reg, self._pointee(ptr.ctype, expr))
        if isinstance(expr, ast.Index):
            base = self._lower_expr(expr.base)
            index = self._lower_expr(expr.index)
            if index.ctype.is_pointer and base.ctype.is_scalar_int:
                base, index = index, base
            if not (base.ctype.is_pointer and index.ctype.is_scalar_int):
                raise TypeMismatch(
                    f"cannot subscript '{base.ctype}' with '{index.ctype}'", expr
                )
            element = self._pointee(base.ctype, expr)
            return Value(self._arith("+", base, index, expr).reg, element)
        raise InvalidLvalue(f"{type(expr).__name__} does not designate an object", expr)

    def _lvalue(self, expr: ast.Expr) -> Value:
        target = self._lower_address(expr)
        if target.ctype.is_array:
            raise InvalidLvalue(f"array of type '{target.ctype}' is not assignable", expr)
        return target

    def _lower_address_of(self, expr: ast.AddressOf) -> Value:
        target = self._lower_address(expr.operand)
        return Value(target.reg, PointerType(target.ctype))

    def _lower_deref(self, expr: ast.Deref) -> Value:
        target = self._lower_address(expr)
        return self._load(target.reg, target.ctype, expr)

    def _lower_index(self, expr: ast.Index) -> Value:
        target = self._lower_address(expr)
        return self._load(target.reg, target.ctype, expr)

    # ── arithmetic ───────────────────────────────────────────────

    def _binop(self, op: str, lhs: str, rhs: str, node=None) -> str:
        return self._emit_value(Opcode.BINOP, [op, lhs, rhs], node)

    def _unop(self, op: str, operand: str, node=None) -> str:
        return self._emit_value(Opcode.UNOP, [op, operand], node)

    def _scale(self, reg: str, pointer: CType, node) -> str:
        size = self.type_model.element_size(pointer, node)
        if size == 1:
            return reg
        return self._binop("*", reg, self._const(size, node), node)

    def _arith(self, op: str, lhs: Value, rhs: Value, node) -> Value:
        lt, rt = lhs.ctype, rhs.ctype
        if op in ADDITIVE_OPS:
            if lt.is_pointer and rt.is_scalar_int:
                return Value(self._binop(op, lhs.reg, self._scale(rhs.reg, lt, node), node), lt)
            if op == "+" and lt.is_scalar_int and rt.is_pointer:
                return Value(self._binop(op, self._scale(lhs.reg, rt, node), rhs.reg, node), rt)
            if op == "-" and lt.is_pointer and rt.is_pointer:
                if lt != rt:
                    raise TypeMismatch(
                        f"subtraction of incompatible pointers '{lt}' and '{rt}'", node
                    )
                diff = self._binop("-", lhs.reg, rhs.reg, node)
                size = self.type_model.element_size(lt, node)
                if size != 1:
                    diff = self._binop("/", diff, self._const(size, node), node)
                return Value(diff, INT)
        elif op in COMPARISON_OPS and (lt.is_pointer or rt.is_pointer):
            if not _comparable(lhs, rhs):
                raise TypeMismatch(f"comparison of '{lt}' with '{rt}'", node)
            return Value(self._binop(op, lhs.reg, rhs.reg, node), INT)
        if not (lt.is_scalar_int and rt.is_scalar_int):
            raise TypeMismatch(f"invalid operands to '{op}' ('{lt}' and '{rt}')", node)
        return Value(self._binop(op, lhs.reg, rhs.reg, node), INT)

    def _lower_binary(self, expr: ast.Binary) -> Value:
        lhs = self._lower_expr(expr.left)
        rhs = self._lower_expr(expr.right)
        return self._arith(expr.op, lhs, rhs, expr)

    def _lower_unary(self, expr: ast.Unary) -> Value:
        operand = self._lower_expr(expr.operand)
        if expr.op == "!":
            if not (operand.ctype.is_scalar_int or operand.ctype.is_pointer):
                raise TypeMismatch(f"invalid operand to '!' ('{operand.ctype}')", expr)
            return Value(self._unop("!", operand.reg, expr), INT)
        if not operand.ctype.is_scalar_int:
            raise TypeMismatch(
                f"invalid operand to unary '{expr.op}' ('{operand.ctype}')", expr
            )
        if expr.op == "+":
            return Value(operand.reg, INT)
        return Value(self._unop(expr.op, operand.reg, expr), INT)

    def _condition(self, expr: ast.Expr) -> str:
        value = self._lower_expr(expr)
        if not (value.ctype.is_scalar_int or value.ctype.is_pointer):
            raise TypeMismatch(f"'{value.ctype}' used as a condition", expr)
        return value.reg

    # ── assignment ───────────────────────────────────────────────

    def _check_assignable(self, ctype: CType, value: Value, node) -> None:
        if not is_assignable(ctype, value.ctype, value.is_null_constant):
            raise TypeMismatch(f"cannot assign '{value.ctype}' to '{ctype}'", node)

    def _stored_value(self, target: Value, value: Value, node) -> Value:
        """The value of an assignment expression: the stored value converted to the target type."""
        if target.ctype == CHAR:
            return Value(self._unop("sext8", value.reg, node), CHAR)
        return Value(value.reg, target.ctype)

    def _lower_assign(self, expr: ast.Assign) -> Value:
        target = self._lvalue(expr.target)
        value = self._lower_expr(expr.value)
        self._check_assignable(target.ctype, value, expr)
        self._store(target.reg, value.reg, target.ctype, expr)
        return self._stored_value(target, value, expr)

    def _lower_compound_assign(self, expr: ast.CompoundAssign) -> Value:
        target = self._lvalue(expr.target)
        old = self._load(target.reg, target.ctype, expr)
        value = self._arith(expr.op, old, self._lower_expr(expr.value), expr)
        self._check_assignable(target.ctype, value, expr)
        self._store(target.reg, value.reg, target.ctype, expr)
        return self._stored_value(target, value, expr)

    def _lower_incdec(self, expr: ast.IncDec) -> Value:
        target = self._lvalue(expr.target)
        if not (target.ctype.is_scalar_int or target.ctype.is_pointer):
            raise TypeMismatch(f"cannot apply '{expr.op}' to '{target.ctype}'", expr)
        old = self._load(target.reg, target.ctype, expr)
        one = Value(self._const(1, expr), INT)
        new = self._arith("+" if expr.op == "++" else "-", old, one, expr)
        self._store(target.reg, new.reg, target.ctype, expr)
        if expr.prefix:
            return self._stored_value(target, new, expr)
        return old

    # ── short-circuit and merges ─────────────────────────────────

    def _lower_logical(self, expr: ast.Logical) -> Value:
        slot = self._layout.reserve_temp(INT)
        rhs_label = self._fresh_label("logic_rhs")
        end_label = self._fresh_label("logic_end")

        lhs = self._condition(expr.left)
        short_circuit = 0 if expr.op == "&&" else 1
        self._store(
            self._frame_addr(slot.offset, slot.name), self._const(short_circuit), INT
        )
        if expr.op == "&&":
            self._branch_if(lhs, rhs_label, end_label, expr)
        else:
            self._branch_if(lhs, end_label, rhs_label, expr)

        self._emit_label(rhs_label)
        rhs = self._condition(expr.right)
        truth = self._binop("!=", rhs, self._const(0), expr)
        self._store(self._frame_addr(slot.offset, slot.name), truth, INT)
        self._branch(end_label)

        self._emit_label(end_label)
        return self._load(self._frame_addr(slot.offset, slot.name), INT, expr)

    def _lower_conditional(self, expr: ast.Conditional) -> Value:
        result_type = self._conditional_type(expr)
        slot = self._layout.reserve_temp(result_type)
        true_label = self._fresh_label("cond_true")
        false_label = self._fresh_label("cond_false")
        end_label = self._fresh_label("cond_end")

        self._branch_if(self._condition(expr.condition), true_label, false_label, expr)
        for label, arm in ((true_label, expr.then), (false_label, expr.otherwise)):
            self._emit_label(label)
            value = self._lower_expr(arm)
            self._check_assignable(result_type, value, arm)
            self._store(
                self._frame_addr(slot.offset, slot.name), value.reg, result_type, arm
            )
            self._branch(end_label)

        self._emit_label(end_label)
        return self._load(self._frame_addr(slot.offset, slot.name), result_type, expr)

    def _lower_comma(self, expr: ast.Comma) -> Value:
        self._lower_discarded(expr.left)
        return self._lower_expr(expr.right)

    def _lower_discarded(self, expr: ast.Expr) -> None:
        """Evaluate *expr* for its side effects only; void calls are allowed here."""
        if isinstance(expr, ast.Call):
            self._lower_call(expr)
        elif isinstance(expr, ast.Cast) and expr.ctype.is_void:
            self._lower_discarded(expr.operand)
        elif isinstance(expr, ast.Comma):
            self._lower_discarded(expr.left)
            self._lower_discarded(expr.right)
        else:
            self._lower_expr(expr)

    # ── casts and sizeof ─────────────────────────────────────────

    def _lower_cast(self, expr: ast.Cast) -> Value:
        target = expr.ctype
        if target.is_void:
            self._lower_discarded(expr.operand)
            return Value(None, VOID)
        if target.is_array:
            raise TypeMismatch(f"cast to array type '{target}'", expr)
        value = self._lower_expr(expr.operand)
        if not (value.ctype.is_scalar_int or value.ctype.is_pointer):
            raise TypeMismatch(f"cannot cast '{value.ctype}' to '{target}'", expr)
        reg = value.reg
        if target == CHAR:
            reg = self._unop("sext8", reg, expr)
        return Value(reg, target, is_null_constant=value.is_null_constant)

    def _lower_sizeof_type(self, expr: ast.SizeofType) -> Value:
        return Value(self._const(self.type_model.size_of(expr.ctype, expr), expr), INT)

    def _lower_sizeof_expr(self, expr: ast.SizeofExpr) -> Value:
        ctype = self._static_type(expr.operand)
        return Value(self._const(self.type_model.size_of(ctype, expr), expr), INT)


def _is_null_constant(expr: ast.Expr) -> bool:
    return isinstance(expr, ast.IntLiteral) and expr.value == 0


def _comparable(lhs: Value, rhs: Value) -> bool:
    lt, rt = lhs.ctype, rhs.ctype
    if lt.is_pointer and rt.is_pointer:
        return lt == rt or lt.pointee.is_void or rt.pointee.is_void
    if lt.is_pointer:
        return rhs.is_null_constant
    return lhs.is_null_constant
