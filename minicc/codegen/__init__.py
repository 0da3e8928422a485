"""Code generation — AST to per-function IR plus a static data image."""

from __future__ import annotations

from .. import ast_nodes as ast
from ..program import CompiledProgram
from ..targets import Target, resolve_target
from ._base import Value  # noqa: F401
from .generator import ProgramGenerator


def generate_program(
    program: ast.Program, target: Target | str = Target.AMD64, opt_level: int = 0
) -> CompiledProgram:
    """Lower a whole ``Program``; raises ``CompileError`` on the first diagnostic."""
    return ProgramGenerator(resolve_target(target), opt_level).generate(program)
