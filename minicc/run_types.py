"""Run pipeline data types (pure data, no business logic)."""

from __future__ import annotations

from dataclasses import dataclass, field

from . import constants


@dataclass(frozen=True)
class VMConfig:
    """Groups VM execution configuration."""

    max_steps: int = constants.DEFAULT_MAX_STEPS
    max_call_depth: int = constants.DEFAULT_MAX_CALL_DEPTH
    stack_size: int = constants.DEFAULT_STACK_SIZE
    check_alignment: bool = True
    verbose: bool = False


@dataclass
class ExecutionStats:
    """Returned execution metrics from execute_program."""

    steps: int = 0
    calls: int = 0
    builtin_calls: int = 0
    max_call_depth: int = 0
    peak_stack_bytes: int = 0
    output_bytes: int = 0


@dataclass
class PipelineStats:
    """Timing and size statistics for each pipeline stage."""

    source_bytes: int = 0
    source_lines: int = 0
    target: str = ""
    opt_level: int = 0

    # Stage timings (seconds)
    parse_time: float = 0.0
    lower_time: float = 0.0
    codegen_time: float = 0.0
    execution_time: float = 0.0
    total_time: float = 0.0

    # Output sizes
    function_count: int = 0
    ir_instruction_count: int = 0
    cfg_block_count: int = 0
    static_bytes: int = 0

    # Execution stats
    execution_steps: int = 0
    calls: int = 0
    builtin_calls: int = 0
    max_call_depth: int = 0
    peak_stack_bytes: int = 0

    def report(self) -> str:
        lines = [
            "═══ Pipeline Statistics ═══",
            f"  Source: {self.source_lines} lines, {self.source_bytes} bytes "
            f"(target {self.target}, -O{self.opt_level})",
            "",
            f"  {'Stage':<20} {'Time':>10}  {'Output':>30}",
            f"  {'─' * 20} {'─' * 10}  {'─' * 30}",
        ]

        stages = [
            ("Parse", self.parse_time, ""),
            ("Lower (frontend)", self.lower_time, f"{self.function_count} functions"),
            (
                "Codegen + CFG",
                self.codegen_time,
                f"{self.ir_instruction_count} IR, {self.cfg_block_count} blocks",
            ),
            (
                "Execute (VM)",
                self.execution_time,
                f"{self.execution_steps} steps, {self.calls} calls",
            ),
        ]
        for name, t, output in stages:
            time_str = f"{t * 1000:>8.1f}ms"
            lines.append(f"  {name:<20} {time_str:>10}  {output:>30}")

        lines.append(f"  {'─' * 20} {'─' * 10}  {'─' * 30}")
        lines.append(f"  {'Total':<20} {self.total_time * 1000:>8.1f}ms")
        lines.append("")
        lines.append(
            f"  Final state: {self.static_bytes} static bytes,"
            f" peak stack {self.peak_stack_bytes} bytes,"
            f" max depth {self.max_call_depth},"
            f" {self.builtin_calls} builtin calls"
        )
        return "\n".join(lines)


@dataclass
class RunResult:
    """Observable outcome of running a program."""

    output: str
    return_value: int
    exit_code: int
    stats: PipelineStats = field(default_factory=PipelineStats)
