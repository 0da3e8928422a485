"""Error taxonomy for compilation and execution."""

from __future__ import annotations

from typing import Any


class MiniCCError(Exception):
    """Root of every error raised by minicc."""


# ── Compile-time errors ──────────────────────────────────────────


class CompileError(MiniCCError):
    """A diagnostic tied to the AST node that caused it."""

    kind: str = "CompileError"

    def __init__(self, message: str, node: Any = None):
        self.message = message
        self.node = node
        super().__init__(self._render())

    def _render(self) -> str:
        if self.node is None:
            return f"{self.kind}: {self.message}"
        node_type = getattr(self.node, "syntax_type", None) or type(self.node).__name__
        where = f"{node_type}#{getattr(self.node, 'node_id', '?')}"
        location = getattr(self.node, "location", None)
        if location is not None and not location.is_unknown():
            where = f"{where} ({location})"
        return f"{self.kind} at {where}: {self.message}"


class DuplicateDeclaration(CompileError):
    kind = "DuplicateDeclaration"


class UnknownIdentifier(CompileError):
    kind = "UnknownIdentifier"


class InvalidLvalue(CompileError):
    kind = "InvalidLvalue"


class TypeMismatch(CompileError):
    kind = "TypeMismatch"


class InvalidStatement(CompileError):
    kind = "InvalidStatement"


class UnsupportedConstruct(CompileError):
    kind = "UnsupportedConstruct"


class ParseError(CompileError):
    kind = "ParseError"


# ── Runtime faults ───────────────────────────────────────────────


class RuntimeFault(MiniCCError):
    """Fatal condition raised while executing a compiled program."""


class StackOverflow(RuntimeFault):
    pass


class MisalignedStack(RuntimeFault):
    pass


class MemoryFault(RuntimeFault):
    pass


class ArithmeticFault(RuntimeFault):
    pass


class StepLimitExceeded(RuntimeFault):
    pass
