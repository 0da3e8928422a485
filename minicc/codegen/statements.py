"""Statement lowering — declarations, control flow and returns."""

from __future__ import annotations

import logging

from .. import ast_nodes as ast
from ..errors import InvalidStatement, TypeMismatch
from ..ir import Opcode
from ..layout import StorageClass
from ..types import CHAR, INT, ArrayType
from ._base import BaseLowering, Value

logger = logging.getLogger(__name__)


class StatementLowering(BaseLowering):
    """Lowers statements of one function body."""

    def _lower_block(self, stmt: ast.Block) -> None:
        self.symbols.push_scope()
        self._lower_statements(stmt.statements)
        self.symbols.pop_scope()

    def _lower_statements(self, statements: list[ast.Stmt]) -> None:
        for s in statements:
            self._lower_stmt(s)

    def _lower_expr_stmt(self, stmt: ast.ExprStmt) -> None:
        if stmt.expr is not None:
            self._lower_discarded(stmt.expr)

    # ── declarations ─────────────────────────────────────────────

    def _lower_decl_stmt(self, stmt: ast.DeclStmt) -> None:
        for decl in stmt.decls:
            self._lower_var_decl(decl)

    def _lower_var_decl(self, decl: ast.VarDecl) -> None:
        ctype = decl.ctype
        if ctype.is_void:
            raise TypeMismatch(f"variable '{decl.name}' declared void", decl)
        if isinstance(ctype, ArrayType) and ctype.length == 0:
            raise TypeMismatch(f"array '{decl.name}' has no size", decl)
        symbol = self.symbols.declare(decl.name, ctype, StorageClass.LOCAL, decl)
        if decl.init is None:
            return
        if isinstance(ctype, ArrayType):
            self._init_array(symbol.location, decl, ctype)
            return
        init = decl.init
        if isinstance(init, ast.InitList):
            if len(init.values) != 1:
                raise TypeMismatch(
                    f"scalar '{decl.name}' needs exactly one initializer", init
                )
            init = init.values[0]
        value = self._lower_expr(init)
        self._check_assignable(ctype, value, decl)
        addr = self._frame_addr(symbol.location, decl.name, decl)
        self._store(addr, value.reg, ctype, decl)

    def _init_array(self, offset: int, decl: ast.VarDecl, ctype: ArrayType) -> None:
        """Store every element; elements past the initializer are zeroed."""
        element_size = self.type_model.size_of(ctype.element, decl)
        init = decl.init
        if isinstance(init, ast.StringLiteral):
            if ctype.element != CHAR:
                raise TypeMismatch(f"string initializer for '{ctype}'", decl)
            data = init.value
            if len(data) > ctype.length:
                raise TypeMismatch(
                    f"string of {len(data)} chars overflows '{decl.name}[{ctype.length}]'",
                    decl,
                )
            values = [Value(self._const(b, init), INT) for b in data]
        elif isinstance(init, ast.InitList):
            if len(init.values) > ctype.length:
                raise TypeMismatch(
                    f"{len(init.values)} initializers for '{decl.name}[{ctype.length}]'",
                    init,
                )
            values = [self._lower_expr(v) for v in init.values]
        else:
            raise TypeMismatch(f"array '{decl.name}' needs a brace initializer", decl)

        zero = None
        for index in range(ctype.length):
            if index < len(values):
                value = values[index]
                self._check_assignable(ctype.element, value, decl)
                reg = value.reg
            else:
                zero = zero or self._const(0, decl)
                reg = zero
            addr = self._frame_addr(
                offset + index * element_size, f"{decl.name}[{index}]", decl
            )
            self._store(addr, reg, ctype.element, decl)

    # ── control flow ─────────────────────────────────────────────

    def _lower_if_then(self, stmt: ast.IfThen) -> None:
        cond_reg = self._condition(stmt.condition)
        true_label = self._fresh_label("if_true")
        end_label = self._fresh_label("if_end")

        self._branch_if(cond_reg, true_label, end_label, stmt)
        self._emit_label(true_label)
        self._lower_stmt(stmt.then)
        self._branch(end_label)
        self._emit_label(end_label)

    def _lower_if_then_else(self, stmt: ast.IfThenElse) -> None:
        cond_reg = self._condition(stmt.condition)
        true_label = self._fresh_label("if_true")
        false_label = self._fresh_label("if_false")
        end_label = self._fresh_label("if_end")

        self._branch_if(cond_reg, true_label, false_label, stmt)
        self._emit_label(true_label)
        self._lower_stmt(stmt.then)
        self._branch(end_label)

        self._emit_label(false_label)
        self._lower_stmt(stmt.otherwise)
        self._branch(end_label)

        self._emit_label(end_label)

    def _lower_while(self, stmt: ast.While) -> None:
        loop_label = self._fresh_label("while_cond")
        body_label = self._fresh_label("while_body")
        end_label = self._fresh_label("while_end")

        self._branch(loop_label)
        self._emit_label(loop_label)
        self._branch_if(self._condition(stmt.condition), body_label, end_label, stmt)

        self._emit_label(body_label)
        self._push_loop(loop_label, end_label)
        self._lower_stmt(stmt.body)
        self._pop_loop()
        self._branch(loop_label)

        self._emit_label(end_label)

    def _lower_do_while(self, stmt: ast.DoWhile) -> None:
        body_label = self._fresh_label("do_body")
        cond_label = self._fresh_label("do_cond")
        end_label = self._fresh_label("do_end")

        self._branch(body_label)
        self._emit_label(body_label)
        self._push_loop(cond_label, end_label)
        self._lower_stmt(stmt.body)
        self._pop_loop()
        self._branch(cond_label)

        self._emit_label(cond_label)
        self._branch_if(self._condition(stmt.condition), body_label, end_label, stmt)

        self._emit_label(end_label)

    def _lower_for(self, stmt: ast.For) -> None:
        """Lower a C-style for(init; cond; update) loop; ``init`` gets its own scope."""
        self.symbols.push_scope()
        if stmt.init is not None:
            self._lower_stmt(stmt.init)

        loop_label = self._fresh_label("for_cond")
        body_label = self._fresh_label("for_body")
        update_label = self._fresh_label("for_update")
        end_label = self._fresh_label("for_end")

        self._branch(loop_label)
        self._emit_label(loop_label)
        if stmt.condition is not None:
            self._branch_if(
                self._condition(stmt.condition), body_label, end_label, stmt
            )
        else:
            self._branch(body_label)

        self._emit_label(body_label)
        self._push_loop(update_label, end_label)
        self._lower_stmt(stmt.body)
        self._pop_loop()
        self._branch(update_label)

        self._emit_label(update_label)
        if stmt.update is not None:
            self._lower_discarded(stmt.update)
        self._branch(loop_label)

        self._emit_label(end_label)
        self.symbols.pop_scope()

    def _lower_break(self, stmt: ast.Break) -> None:
        if not self._loop_stack:
            raise InvalidStatement("'break' outside of a loop", stmt)
        self._branch(self._loop_stack[-1]["end_label"], stmt)

    def _lower_continue(self, stmt: ast.Continue) -> None:
        if not self._loop_stack:
            raise InvalidStatement("'continue' outside of a loop", stmt)
        self._branch(self._loop_stack[-1]["continue_label"], stmt)

    def _lower_return(self, stmt: ast.Return) -> None:
        return_type = self._function.return_type
        if stmt.value is None:
            if not return_type.is_void:
                raise TypeMismatch(
                    f"'{self._function.name}' must return a value of type '{return_type}'",
                    stmt,
                )
            self._emit(Opcode.RETURN, node=stmt)
            return
        if return_type.is_void:
            raise TypeMismatch(
                f"void function '{self._function.name}' returns a value", stmt
            )
        value = self._lower_expr(stmt.value)
        self._check_assignable(return_type, value, stmt)
        reg = value.reg
        if return_type == CHAR:
            reg = self._unop("sext8", reg, stmt)
        self._emit(Opcode.RETURN, operands=[reg], node=stmt)
