"""Composable API functions for the compile/run pipelines.

Each function corresponds to a CLI workflow (--ir-only, --cfg-only, --layout)
but is callable programmatically without argparse.
"""

from __future__ import annotations

import logging

from . import constants
from .ir_stats import call_sites, count_opcodes
from .program import CompiledProgram
from .run import compile_program, run
from .run_types import RunResult
from .targets import Target

logger = logging.getLogger(__name__)


def compile_source(
    source: str,
    target: Target | str = constants.DEFAULT_TARGET,
    opt_level: int = 0,
) -> CompiledProgram:
    """Parse and compile C source to a ``CompiledProgram``.

    Args:
        source: The source code text.
        target: Target machine name or ``Target``.
        opt_level: Optimization level.

    Returns:
        The compiled program; ``CompileError`` is raised on invalid input.
    """
    logger.info("Compiling source (target=%s, -O%d)", target, opt_level)
    return compile_program(source, target, opt_level)


def dump_ir(
    source: str,
    target: Target | str = constants.DEFAULT_TARGET,
    opt_level: int = 0,
) -> str:
    """Compile source and return a human-readable IR dump, one function after another."""
    program = compile_source(source, target, opt_level)
    lines: list[str] = []
    for fn in program.functions.values():
        lines.append(f"; {fn.name}")
        lines.extend(f"  {inst}" for inst in fn.instructions)
    instructions = program.all_instructions()
    logger.info("IR opcode counts: %s", count_opcodes(instructions))
    logger.info("Call sites: %s", call_sites(instructions))
    return "\n".join(lines)


def dump_cfg(
    source: str,
    target: Target | str = constants.DEFAULT_TARGET,
    opt_level: int = 0,
) -> str:
    """Compile source and return the text form of every function's CFG."""
    program = compile_source(source, target, opt_level)
    return "\n".join(
        f"; {fn.name}\n{fn.cfg}" for fn in program.functions.values()
    )


def dump_layout(
    source: str,
    target: Target | str = constants.DEFAULT_TARGET,
) -> str:
    """Compile source and describe every frame layout and static symbol."""
    program = compile_source(source, target)
    lines = [fn.layout.describe() for fn in program.functions.values()]
    if program.statics.symbols:
        lines.append("statics:")
        lines.extend(
            f"  0x{address:x}  {name}"
            for name, address in sorted(
                program.statics.symbols.items(), key=lambda item: item[1]
            )
        )
    return "\n".join(lines)


def run_source(source: str, **kwargs) -> RunResult:
    """Compile and execute ``main``; keyword arguments are passed to ``run``."""
    return run(source, **kwargs)
