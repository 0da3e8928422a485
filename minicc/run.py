"""Orchestrator — compile and run() entry points."""

from __future__ import annotations

import logging
import time

from . import constants
from .codegen import generate_program
from .frontend import CFrontend
from .parser import Parser, TreeSitterParserFactory
from .program import CompiledProgram
from .run_types import PipelineStats, RunResult, VMConfig
from .targets import Target, resolve_target
from .vm import execute_program

logger = logging.getLogger(__name__)


def compile_program(
    source: str,
    target: Target | str = constants.DEFAULT_TARGET,
    opt_level: int = 0,
    stats: PipelineStats | None = None,
) -> CompiledProgram:
    """Parse → build AST → generate IR and CFGs.

    Args:
        source: C source text.
        target: Target machine, a ``Target`` or its name (``"native"`` allowed).
        opt_level: 0 for none, 1 or more for constant folding.
        stats: Optional ``PipelineStats`` to fill in with stage timings.
    """
    stats = stats if stats is not None else PipelineStats()
    resolved = resolve_target(target)
    data = source.encode("utf-8")
    stats.source_bytes = len(data)
    stats.source_lines = source.count("\n") + (
        1 if source and not source.endswith("\n") else 0
    )
    stats.target = resolved.value
    stats.opt_level = opt_level

    t0 = time.perf_counter()
    tree = Parser(TreeSitterParserFactory()).parse(data)
    t1 = time.perf_counter()
    stats.parse_time = t1 - t0
    ast_program = CFrontend().lower(tree, data)
    t2 = time.perf_counter()
    stats.lower_time = t2 - t1
    program = generate_program(ast_program, resolved, opt_level)
    stats.codegen_time = time.perf_counter() - t2

    stats.function_count = len(program.functions)
    stats.ir_instruction_count = len(program.all_instructions())
    stats.cfg_block_count = sum(len(fn.cfg.blocks) for fn in program.functions.values())
    stats.static_bytes = len(program.statics.data)
    logger.info(
        "Compiled %d function(s) to %d IR instructions in %.1fms",
        stats.function_count,
        stats.ir_instruction_count,
        (stats.parse_time + stats.lower_time + stats.codegen_time) * 1000,
    )
    return program


def run(
    source: str,
    target: Target | str = constants.DEFAULT_TARGET,
    opt_level: int = 0,
    max_steps: int = constants.DEFAULT_MAX_STEPS,
    max_call_depth: int = constants.DEFAULT_MAX_CALL_DEPTH,
    stack_size: int = constants.DEFAULT_STACK_SIZE,
    check_alignment: bool = True,
    verbose: bool = False,
) -> RunResult:
    """End-to-end: parse → lower → codegen → execute ``main``.

    Args:
        source: C source text.
        target: Target machine name or ``Target``.
        opt_level: Optimization level.
        max_steps: Maximum VM steps before ``StepLimitExceeded``.
        max_call_depth: Maximum live activations before ``StackOverflow``.
        stack_size: Bytes of stack memory.
        check_alignment: Verify stack alignment at every call site.
        verbose: Print IR, CFG, step-by-step execution and statistics.
    """
    pipeline_start = time.perf_counter()
    stats = PipelineStats()
    program = compile_program(source, target, opt_level, stats)

    if verbose:
        print("═══ IR ═══")
        for fn in program.functions.values():
            for inst in fn.instructions:
                print(f"  {inst}")
        print()
        print("═══ CFG ═══")
        for fn in program.functions.values():
            print(fn.cfg)

    config = VMConfig(
        max_steps=max_steps,
        max_call_depth=max_call_depth,
        stack_size=stack_size,
        check_alignment=check_alignment,
        verbose=verbose,
    )
    exec_start = time.perf_counter()
    vm, exec_stats = execute_program(program, config)
    stats.execution_time = time.perf_counter() - exec_start

    stats.execution_steps = exec_stats.steps
    stats.calls = exec_stats.calls
    stats.builtin_calls = exec_stats.builtin_calls
    stats.max_call_depth = exec_stats.max_call_depth
    stats.peak_stack_bytes = exec_stats.peak_stack_bytes
    stats.total_time = time.perf_counter() - pipeline_start

    if verbose:
        print()
        print(stats.report())

    return_value = vm.exit_value or 0
    return RunResult(
        output=vm.stdout,
        return_value=return_value,
        exit_code=return_value & constants.EXIT_CODE_MASK,
        stats=stats,
    )
