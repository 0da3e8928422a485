"""AST for the supported C subset.

The tree is produced by ``minicc.frontend.CFrontend`` from a tree-sitter
parse, or built by hand. Every node carries a ``node_id`` used to identify it
in diagnostics, and an optional source location.

Dangling-else resolution is encoded in the shape of the tree: an ``if``
without an ``else`` is an ``IfThen`` and an ``if`` with one is an
``IfThenElse``, so the else clause belongs to exactly one ``if``.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field

from .ir import NO_SOURCE_LOCATION, SourceLocation
from .types import CType

_node_ids = itertools.count(1)


@dataclass
class Node:
    node_id: int = field(
        default_factory=lambda: next(_node_ids), kw_only=True, compare=False
    )
    location: SourceLocation = field(
        default=NO_SOURCE_LOCATION, kw_only=True, compare=False, repr=False
    )


@dataclass
class SyntaxRef(Node):
    """Stands in for a syntax-tree node with no AST counterpart in diagnostics."""

    syntax_type: str


# ── Expressions ──────────────────────────────────────────────────


@dataclass
class Expr(Node):
    pass


@dataclass
class IntLiteral(Expr):
    value: int


@dataclass
class StringLiteral(Expr):
    value: bytes


@dataclass
class Identifier(Expr):
    name: str


@dataclass
class Binary(Expr):
    """Arithmetic, bitwise, shift, relational and equality operators."""

    op: str
    left: Expr
    right: Expr


@dataclass
class Logical(Expr):
    """Short-circuit ``&&`` / ``||``."""

    op: str
    left: Expr
    right: Expr


@dataclass
class Unary(Expr):
    """``-``, ``+``, ``~`` and ``!``."""

    op: str
    operand: Expr


@dataclass
class AddressOf(Expr):
    operand: Expr


@dataclass
class Deref(Expr):
    operand: Expr


@dataclass
class Index(Expr):
    base: Expr
    index: Expr


@dataclass
class Assign(Expr):
    target: Expr
    value: Expr


@dataclass
class CompoundAssign(Expr):
    """``target op= value``; ``op`` is the binary operator without ``=``."""

    op: str
    target: Expr
    value: Expr


@dataclass
class IncDec(Expr):
    op: str  # "++" or "--"
    target: Expr
    prefix: bool


@dataclass
class Call(Expr):
    name: str
    args: list[Expr] = field(default_factory=list)


@dataclass
class Conditional(Expr):
    condition: Expr
    then: Expr
    otherwise: Expr


@dataclass
class Comma(Expr):
    left: Expr
    right: Expr


@dataclass
class Cast(Expr):
    ctype: CType
    operand: Expr


@dataclass
class SizeofType(Expr):
    ctype: CType


@dataclass
class SizeofExpr(Expr):
    operand: Expr


# ── Statements ───────────────────────────────────────────────────


@dataclass
class Stmt(Node):
    pass


@dataclass
class InitList(Node):
    values: list[Expr] = field(default_factory=list)


@dataclass
class VarDecl(Stmt):
    name: str
    ctype: CType
    init: Expr | InitList | None = None


@dataclass
class DeclStmt(Stmt):
    """One declaration statement, possibly declaring several names."""

    decls: list[VarDecl] = field(default_factory=list)


@dataclass
class Block(Stmt):
    statements: list[Stmt] = field(default_factory=list)


@dataclass
class ExprStmt(Stmt):
    expr: Expr | None = None


@dataclass
class IfThen(Stmt):
    condition: Expr
    then: Stmt


@dataclass
class IfThenElse(Stmt):
    condition: Expr
    then: Stmt
    otherwise: Stmt


@dataclass
class While(Stmt):
    condition: Expr
    body: Stmt


@dataclass
class DoWhile(Stmt):
    body: Stmt
    condition: Expr


@dataclass
class For(Stmt):
    init: Stmt | None
    condition: Expr | None
    update: Expr | None
    body: Stmt


@dataclass
class Return(Stmt):
    value: Expr | None = None


@dataclass
class Break(Stmt):
    pass


@dataclass
class Continue(Stmt):
    pass


# ── Top level ────────────────────────────────────────────────────


@dataclass
class Param(Node):
    name: str
    ctype: CType


@dataclass
class FunctionDecl(Node):
    """A prototype: ``int printf(const char *fmt, ...);``."""

    name: str
    return_type: CType
    params: list[Param] = field(default_factory=list)
    variadic: bool = False


@dataclass
class FunctionDef(Node):
    name: str
    return_type: CType
    params: list[Param]
    body: Block


@dataclass
class Program(Node):
    items: list[FunctionDef | FunctionDecl | DeclStmt] = field(default_factory=list)
