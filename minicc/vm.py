"""Runtime execution target — executes compiled IR against byte-addressed memory."""

from __future__ import annotations

import logging
from typing import Callable

from . import constants
from .builtins import ArgumentArea, Builtins
from .errors import (
    MemoryFault,
    MisalignedStack,
    RuntimeFault,
    StackOverflow,
    StepLimitExceeded,
    UnknownIdentifier,
)
from .ir import IRInstruction, Opcode
from .memory import Memory
from .operators import Operators, wrap_int32
from .program import CompiledFunction, CompiledProgram
from .run_types import ExecutionStats, VMConfig
from .types import align_up
from .vm_types import Activation, VMState

logger = logging.getLogger(__name__)


class Machine:
    """Step-by-step interpreter for a ``CompiledProgram``.

    Every call site is checked independently: ``sp`` must be aligned to the
    target's stack alignment when control transfers, whether the callee is
    a compiled function or a built-in routine.
    """

    def __init__(self, program: CompiledProgram, config: VMConfig = VMConfig()):
        self.program = program
        self.config = config
        target = program.target
        self.pointer_size = target.pointer_size
        self.slot_size = target.arg_slot_size
        self.linkage_size = target.linkage_size
        self.alignment = target.stack_alignment
        memory = Memory(program.statics.data, program.statics.base, config.stack_size)
        self.state = VMState(memory=memory, sp=memory.stack_top)
        self.stats = ExecutionStats()
        self._function: CompiledFunction | None = None
        self._label = ""
        self._ip = 0
        self._lowest_sp = memory.stack_top
        self._DISPATCH: dict[Opcode, Callable[[IRInstruction], None]] = {
            Opcode.LABEL: self._exec_label,
            Opcode.CONST: self._exec_const,
            Opcode.FRAME_ADDR: self._exec_frame_addr,
            Opcode.STATIC_ADDR: self._exec_static_addr,
            Opcode.LOAD: self._exec_load,
            Opcode.STORE: self._exec_store,
            Opcode.LOAD_ARG: self._exec_load_arg,
            Opcode.BINOP: self._exec_binop,
            Opcode.UNOP: self._exec_unop,
            Opcode.ENTER: self._exec_enter,
            Opcode.ARG_AREA: self._exec_arg_area,
            Opcode.STORE_ARG: self._exec_store_arg,
            Opcode.CALL_FUNCTION: self._exec_call,
            Opcode.CALL_VARIADIC: self._exec_call,
            Opcode.RELEASE_ARGS: self._exec_release_args,
            Opcode.BRANCH: self._exec_branch,
            Opcode.BRANCH_IF: self._exec_branch_if,
            Opcode.RETURN: self._exec_return,
        }

    @property
    def memory(self) -> Memory:
        return self.state.memory

    # ── entry point ──────────────────────────────────────────────

    def run(self, entry_point: str = constants.ENTRY_FUNCTION) -> tuple[VMState, ExecutionStats]:
        """Call *entry_point* with zeroed arguments and run until it returns."""
        fn = self.program.functions.get(entry_point)
        if fn is None:
            raise UnknownIdentifier(f"program has no '{entry_point}' function")

        area = align_up(len(fn.signature.param_types) * self.slot_size, self.alignment)
        self._reserve(area, entry_point)
        self.memory.zero_fill(self.state.sp, area)
        self._push_activation(fn, result_reg=None, return_label=None, return_ip=None)

        while self.state.activations:
            if self.stats.steps >= self.config.max_steps:
                raise StepLimitExceeded(
                    f"execution exceeded {self.config.max_steps} steps"
                )
            block = self._function.cfg.blocks[self._label]
            if self._ip >= len(block.instructions):
                if not block.successors:
                    raise RuntimeFault(
                        f"control fell off the end of '{self._function.name}'"
                    )
                self._label = block.successors[0]
                self._ip = 0
                continue
            instruction = block.instructions[self._ip]
            if self.config.verbose:
                print(f"[step {self.stats.steps}] {self._label}:{self._ip}  {instruction}")
            try:
                self._DISPATCH[instruction.opcode](instruction)
            except RuntimeFault:
                logger.debug(
                    "Fault at %s:%d, state %s", self._label, self._ip, self.state.to_dict()
                )
                raise
            self.stats.steps += 1

        self.stats.peak_stack_bytes = self.memory.stack_top - self._lowest_sp
        self.stats.output_bytes = len(self.state.stdout.encode("utf-8"))
        logger.info(
            "Executed %d steps, %d call(s), max depth %d",
            self.stats.steps,
            self.stats.calls,
            self.stats.max_call_depth,
        )
        return self.state, self.stats

    # ── helpers ──────────────────────────────────────────────────

    def _regs(self) -> dict[str, int]:
        return self.state.current.registers

    def _read(self, reg: str) -> int:
        return self._regs()[reg]

    def _write(self, inst: IRInstruction, value: int) -> None:
        self._regs()[inst.result_reg] = value

    def _advance(self) -> None:
        self._ip += 1

    def _jump(self, label: str) -> None:
        self._label = label
        self._ip = 0

    def _reserve(self, size: int, what: str) -> None:
        new_sp = self.state.sp - size
        if new_sp < self.memory.stack_limit:
            raise StackOverflow(
                f"stack exhausted by '{what}' ({self.config.stack_size} byte stack)"
            )
        self.state.sp = new_sp
        self._lowest_sp = min(self._lowest_sp, new_sp)

    def _check_alignment(self, callee: str) -> None:
        if self.config.check_alignment and self.state.sp % self.alignment != 0:
            raise MisalignedStack(
                f"call to '{callee}' with sp={self.state.sp:#x}, "
                f"not {self.alignment}-byte aligned"
            )

    # ── calls and returns ────────────────────────────────────────

    def _push_activation(
        self,
        fn: CompiledFunction,
        result_reg: str | None,
        return_label: str | None,
        return_ip: int | None,
    ) -> None:
        self._check_alignment(fn.name)
        if self.state.depth >= self.config.max_call_depth:
            raise StackOverflow(
                f"call depth limit of {self.config.max_call_depth} exceeded "
                f"calling '{fn.name}'"
            )
        self._reserve(self.linkage_size, fn.name)
        saved_fp = self.state.current.frame_pointer if self.state.activations else 0
        token = self.state.fresh_token()
        self.memory.write_int(self.state.sp, saved_fp, self.pointer_size)
        self.memory.write_int(self.state.sp + self.pointer_size, token, self.pointer_size)
        self.state.activations.append(
            Activation(
                function_name=fn.name,
                frame_pointer=self.state.sp,
                saved_frame_pointer=saved_fp,
                return_token=token,
                return_label=return_label,
                return_ip=return_ip,
                result_reg=result_reg,
            )
        )
        self.stats.calls += 1
        self.stats.max_call_depth = max(self.stats.max_call_depth, self.state.depth)
        logger.debug(
            "call %s depth=%d fp=%#x", fn.name, self.state.depth, self.state.sp
        )
        self._function = fn
        self._jump(fn.entry_label)

    def _exec_call(self, inst: IRInstruction) -> None:
        name, argc = inst.operands
        fn = self.program.functions.get(name)
        if fn is not None:
            self._push_activation(
                fn,
                result_reg=inst.result_reg,
                return_label=self._label,
                return_ip=self._ip + 1,
            )
            return
        builtin = Builtins.TABLE.get(name)
        if builtin is None:
            raise RuntimeFault(f"call to unresolved function '{name}'")
        self._check_alignment(name)
        result = builtin(
            self.state,
            ArgumentArea(self.memory, self.state.sp, int(argc), self.slot_size),
        )
        self.stats.builtin_calls += 1
        logger.debug("builtin %s(argc=%s) -> %d", name, argc, result)
        if inst.result_reg:
            self._write(inst, wrap_int32(result))
        self._advance()

    def _exec_return(self, inst: IRInstruction) -> None:
        value = self._read(inst.operands[0]) if inst.operands else 0
        activation = self.state.current
        fp = activation.frame_pointer
        saved_fp = self.memory.read_int(fp, self.pointer_size, signed=False)
        token = self.memory.read_int(fp + self.pointer_size, self.pointer_size, signed=False)
        if saved_fp != activation.saved_frame_pointer or token != activation.return_token:
            raise MemoryFault(
                f"return linkage of '{activation.function_name}' was overwritten"
            )
        self.state.sp = fp + self.linkage_size
        self.state.activations.pop()
        logger.debug("return %s -> %d", activation.function_name, value)

        if not self.state.activations:
            self.state.exit_value = value
            return
        caller = self.state.current
        if activation.result_reg:
            caller.registers[activation.result_reg] = value
        self._function = self.program.functions[caller.function_name]
        self._label = activation.return_label
        self._ip = activation.return_ip

    # ── frame and argument area ──────────────────────────────────

    def _exec_enter(self, inst: IRInstruction) -> None:
        frame_size = int(inst.operands[0])
        self.state.sp = self.state.current.frame_pointer
        self._reserve(frame_size, self.state.current.function_name)
        self.memory.zero_fill(self.state.sp, frame_size)
        self._advance()

    def _exec_arg_area(self, inst: IRInstruction) -> None:
        self._reserve(int(inst.operands[0]), "argument area")
        self._advance()

    def _exec_store_arg(self, inst: IRInstruction) -> None:
        index, reg = inst.operands
        self.memory.write_int(
            self.state.sp + int(index) * self.slot_size, self._read(reg), self.slot_size
        )
        self._advance()

    def _exec_release_args(self, inst: IRInstruction) -> None:
        self.state.sp += int(inst.operands[0])
        self._advance()

    def _exec_load_arg(self, inst: IRInstruction) -> None:
        index = int(inst.operands[0])
        address = (
            self.state.current.frame_pointer
            + self.linkage_size
            + index * self.slot_size
        )
        self._write(inst, self.memory.read_int(address, self.slot_size, signed=True))
        self._advance()

    # ── values and memory ────────────────────────────────────────

    def _exec_label(self, inst: IRInstruction) -> None:
        self._advance()

    def _exec_const(self, inst: IRInstruction) -> None:
        self._write(inst, int(inst.operands[0]))
        self._advance()

    def _exec_frame_addr(self, inst: IRInstruction) -> None:
        self._write(inst, self.state.current.frame_pointer + int(inst.operands[0]))
        self._advance()

    def _exec_static_addr(self, inst: IRInstruction) -> None:
        self._write(inst, int(inst.operands[0]))
        self._advance()

    def _exec_load(self, inst: IRInstruction) -> None:
        addr_reg, size, signed = inst.operands
        self._write(
            inst, self.memory.read_int(self._read(addr_reg), int(size), bool(signed))
        )
        self._advance()

    def _exec_store(self, inst: IRInstruction) -> None:
        addr_reg, value_reg, size = inst.operands
        self.memory.write_int(self._read(addr_reg), self._read(value_reg), int(size))
        self._advance()

    def _exec_binop(self, inst: IRInstruction) -> None:
        op, lhs, rhs = inst.operands
        self._write(inst, Operators.eval_binop(op, self._read(lhs), self._read(rhs)))
        self._advance()

    def _exec_unop(self, inst: IRInstruction) -> None:
        op, operand = inst.operands
        self._write(inst, Operators.eval_unop(op, self._read(operand)))
        self._advance()

    # ── control flow ─────────────────────────────────────────────

    def _exec_branch(self, inst: IRInstruction) -> None:
        self._jump(inst.label)

    def _exec_branch_if(self, inst: IRInstruction) -> None:
        true_label, false_label = inst.branch_targets()
        self._jump(true_label if self._read(inst.operands[0]) != 0 else false_label)


def execute_program(
    program: CompiledProgram,
    config: VMConfig = VMConfig(),
    entry_point: str = constants.ENTRY_FUNCTION,
) -> tuple[VMState, ExecutionStats]:
    """Run *program* from its entry function and return the final state and metrics."""
    return Machine(program, config).run(entry_point)
