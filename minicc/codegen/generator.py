"""ProgramGenerator — whole-program declaration pass and per-function lowering."""

from __future__ import annotations

import logging

from .. import ast_nodes as ast
from .. import constants
from ..builtins import Builtins
from ..cfg import build_cfg
from ..errors import ArithmeticFault, TypeMismatch
from ..ir import Opcode
from ..layout import LayoutContext, StaticLayout, StorageClass
from ..operators import Operators, sign_extend
from ..optimizer import fold_constants
from ..program import CompiledFunction, CompiledProgram, StaticImage
from ..symbols import FunctionSignature, Symbol
from ..targets import Target
from ..types import ArrayType, CType, TypeModel, decay, is_assignable
from .calls import CallLowering
from .expressions import ExpressionLowering
from .statements import StatementLowering

logger = logging.getLogger(__name__)


class ProgramGenerator(StatementLowering, ExpressionLowering, CallLowering):
    """Lowers a ``Program`` AST into per-function IR and a static data image.

    Generation runs in two passes. The declaration pass registers every
    function signature and global (allocating the globals' static storage),
    after which the global scope is frozen. Function bodies are then lowered
    one at a time, each with a fresh ``LayoutContext``.
    """

    def __init__(self, target: Target, opt_level: int = 0):
        type_model = TypeModel(target)
        super().__init__(type_model, StaticLayout(type_model))
        self.target = target
        self.opt_level = opt_level
        self._STMT_DISPATCH = {
            ast.Block: self._lower_block,
            ast.DeclStmt: self._lower_decl_stmt,
            ast.ExprStmt: self._lower_expr_stmt,
            ast.IfThen: self._lower_if_then,
            ast.IfThenElse: self._lower_if_then_else,
            ast.While: self._lower_while,
            ast.DoWhile: self._lower_do_while,
            ast.For: self._lower_for,
            ast.Return: self._lower_return,
            ast.Break: self._lower_break,
            ast.Continue: self._lower_continue,
        }
        self._EXPR_DISPATCH = {
            ast.IntLiteral: self._lower_int_literal,
            ast.StringLiteral: self._lower_string_literal,
            ast.Identifier: self._lower_identifier,
            ast.Binary: self._lower_binary,
            ast.Logical: self._lower_logical,
            ast.Unary: self._lower_unary,
            ast.AddressOf: self._lower_address_of,
            ast.Deref: self._lower_deref,
            ast.Index: self._lower_index,
            ast.Assign: self._lower_assign,
            ast.CompoundAssign: self._lower_compound_assign,
            ast.IncDec: self._lower_incdec,
            ast.Call: self._lower_call,
            ast.Conditional: self._lower_conditional,
            ast.Comma: self._lower_comma,
            ast.Cast: self._lower_cast,
            ast.SizeofType: self._lower_sizeof_type,
            ast.SizeofExpr: self._lower_sizeof_expr,
        }

    # ── entry point ──────────────────────────────────────────────

    def generate(self, program: ast.Program) -> CompiledProgram:
        for sig in Builtins.SIGNATURES.values():
            self.symbols.declare_function(sig)
        self._declare_items(program)

        functions: dict[str, CompiledFunction] = {}
        for item in program.items:
            if isinstance(item, ast.FunctionDef):
                functions[item.name] = self._lower_function(item)

        externals = {
            name: sig for name, sig in self.symbols.functions.items() if sig.external
        }
        logger.info(
            "Generated %d function(s), %d byte(s) of static data for %s",
            len(functions),
            len(self.statics.image()),
            self.target.value,
        )
        return CompiledProgram(
            target=self.target,
            functions=functions,
            externals=externals,
            statics=StaticImage(
                base=self.statics.base,
                data=self.statics.image(),
                symbols=dict(self.statics.symbols),
            ),
        )

    # ── declaration pass ─────────────────────────────────────────

    def _declare_items(self, program: ast.Program) -> None:
        for item in program.items:
            if isinstance(item, ast.FunctionDecl):
                self.symbols.declare_function(_signature(item, item.variadic), item)
            elif isinstance(item, ast.FunctionDef):
                self.symbols.declare_function(
                    _signature(item, False), item, definition=True
                )
            elif isinstance(item, ast.DeclStmt):
                for decl in item.decls:
                    self._declare_global(decl)
        self.symbols.freeze_globals()

    def _declare_global(self, decl: ast.VarDecl) -> None:
        ctype = decl.ctype
        if ctype.is_void:
            raise TypeMismatch(f"variable '{decl.name}' declared void", decl)
        if isinstance(ctype, ArrayType) and ctype.length == 0:
            raise TypeMismatch(f"array '{decl.name}' has no size", decl)
        symbol = self.symbols.declare_global(decl.name, ctype, decl)
        if decl.init is not None:
            self._initialize_global(symbol, decl)

    def _initialize_global(self, symbol: Symbol, decl: ast.VarDecl) -> None:
        """Write a constant initializer into the static image."""
        ctype = symbol.ctype
        init = decl.init
        if not isinstance(ctype, ArrayType):
            if isinstance(init, ast.InitList):
                if len(init.values) != 1:
                    raise TypeMismatch(
                        f"scalar '{decl.name}' needs exactly one initializer", init
                    )
                init = init.values[0]
            self._write_static(symbol.location, ctype, init)
            return

        element_size = self.type_model.size_of(ctype.element, decl)
        if isinstance(init, ast.StringLiteral) and ctype.element.is_scalar_int:
            if len(init.value) > ctype.length:
                raise TypeMismatch(
                    f"string of {len(init.value)} chars overflows '{decl.name}'", decl
                )
            if element_size != 1:
                raise TypeMismatch(f"string initializer for '{ctype}'", decl)
            self.statics.write_bytes(symbol.location, init.value)
            return
        if not isinstance(init, ast.InitList):
            raise TypeMismatch(f"array '{decl.name}' needs a brace initializer", decl)
        if len(init.values) > ctype.length:
            raise TypeMismatch(
                f"{len(init.values)} initializers for '{decl.name}[{ctype.length}]'",
                init,
            )
        for index, value in enumerate(init.values):
            self._write_static(
                symbol.location + index * element_size, ctype.element, value
            )

    def _write_static(self, address: int, ctype: CType, expr: ast.Expr) -> None:
        size = self.type_model.size_of(ctype, expr)
        if ctype.is_pointer:
            value, source_type = self._static_address(expr)
            if not is_assignable(ctype, source_type, value == 0):
                raise TypeMismatch(f"cannot initialize '{ctype}' with '{source_type}'", expr)
        else:
            value = self._fold_constant(expr)
        self.statics.write_int(address, value, size)

    def _static_address(self, expr: ast.Expr) -> tuple[int, CType]:
        """Address constants: string literals, ``&global``, global arrays and ``0``."""
        if isinstance(expr, ast.StringLiteral):
            return self.statics.intern_string(expr.value), decay(self._static_type(expr))
        if isinstance(expr, ast.AddressOf) and isinstance(expr.operand, ast.Identifier):
            symbol = self.symbols.resolve(expr.operand.name, expr.operand)
            return symbol.location, self._static_type(expr)
        if isinstance(expr, ast.Identifier):
            symbol = self.symbols.resolve(expr.name, expr)
            if symbol.ctype.is_array:
                return symbol.location, decay(symbol.ctype)
        if isinstance(expr, ast.Cast) and expr.ctype.is_pointer:
            return self._static_address(expr.operand)[0], expr.ctype
        return self._fold_constant(expr), self._static_type(expr)

    def _fold_constant(self, expr: ast.Expr) -> int:
        try:
            if isinstance(expr, ast.IntLiteral):
                return Operators.eval_unop("+", expr.value)
            if isinstance(expr, ast.Unary):
                return Operators.eval_unop(expr.op, self._fold_constant(expr.operand))
            if isinstance(expr, ast.Binary):
                return Operators.eval_binop(
                    expr.op,
                    self._fold_constant(expr.left),
                    self._fold_constant(expr.right),
                )
            if isinstance(expr, ast.Logical):
                lhs = self._fold_constant(expr.left) != 0
                if expr.op == "&&":
                    return int(lhs and self._fold_constant(expr.right) != 0)
                return int(lhs or self._fold_constant(expr.right) != 0)
            if isinstance(expr, ast.Conditional):
                chosen = expr.then if self._fold_constant(expr.condition) else expr.otherwise
                return self._fold_constant(chosen)
            if isinstance(expr, ast.Cast) and expr.ctype.is_scalar_int:
                value = self._fold_constant(expr.operand)
                return sign_extend(value, self.type_model.size_of(expr.ctype, expr))
            if isinstance(expr, (ast.SizeofType, ast.SizeofExpr)):
                ctype = (
                    expr.ctype
                    if isinstance(expr, ast.SizeofType)
                    else self._static_type(expr.operand)
                )
                return self.type_model.size_of(ctype, expr)
        except ArithmeticFault as e:
            raise TypeMismatch(f"constant expression: {e}", expr) from e
        raise TypeMismatch("initializer element is not a compile-time constant", expr)

    # ── functions ────────────────────────────────────────────────

    def _lower_function(self, fn: ast.FunctionDef) -> CompiledFunction:
        sig = self.symbols.functions[fn.name]
        self._function = sig
        self._instructions = []
        self._loop_stack = []
        self._layout = LayoutContext(fn.name, self.type_model)
        self.symbols.begin_function(self._layout)

        self._emit_label(self._fresh_label(f"{constants.FUNC_LABEL_PREFIX}{fn.name}"))
        enter = self._emit(Opcode.ENTER, operands=[0], node=fn)
        for index, param in enumerate(fn.params):
            symbol = self.symbols.declare(
                param.name, param.ctype, StorageClass.PARAMETER, param
            )
            arg_reg = self._emit_value(Opcode.LOAD_ARG, [index], param)
            addr = self._frame_addr(symbol.location, param.name, param)
            self._store(addr, arg_reg, param.ctype, param)

        # parameters and the body's outermost declarations share one scope
        self._lower_statements(fn.body.statements)

        if sig.return_type.is_void:
            self._emit(Opcode.RETURN, node=fn)
        else:
            self._emit(Opcode.RETURN, operands=[self._const(0)], node=fn)

        layout = self.symbols.end_function()
        enter.operands = [layout.frame_size]
        self._layout = None

        instructions = self._instructions
        if self.opt_level >= 1:
            instructions = fold_constants(instructions)
        logger.debug(
            "Lowered %s: %d instructions, frame %d bytes",
            fn.name,
            len(instructions),
            layout.frame_size,
        )
        return CompiledFunction(
            name=fn.name,
            signature=sig,
            layout=layout,
            instructions=instructions,
            cfg=build_cfg(instructions),
        )


def _signature(item: ast.FunctionDecl | ast.FunctionDef, variadic: bool) -> FunctionSignature:
    return FunctionSignature(
        name=item.name,
        return_type=item.return_type,
        param_types=tuple(p.ctype for p in item.params),
        variadic=variadic,
    )
