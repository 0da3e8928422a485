"""IR optimizer — constant folding over single-assignment registers."""

from __future__ import annotations

import logging

from .ir import IRInstruction, Opcode
from .operators import Operators

logger = logging.getLogger(__name__)


def fold_constants(instructions: list[IRInstruction]) -> list[IRInstruction]:
    """Fold ``BINOP``/``UNOP`` over constant registers and constant ``BRANCH_IF``.

    Every register is written by exactly one instruction, so a register
    defined by ``CONST`` holds that value wherever it is read. Division and
    remainder by a constant zero are left for the VM to fault on.
    """
    known: dict[str, int] = {}
    folded: list[IRInstruction] = []
    count = 0

    for inst in instructions:
        replacement = _fold(inst, known)
        if replacement is not inst:
            count += 1
        if replacement.opcode == Opcode.CONST and replacement.result_reg:
            known[replacement.result_reg] = int(replacement.operands[0])
        folded.append(replacement)

    logger.debug("Constant folding rewrote %d of %d instructions", count, len(instructions))
    return folded


def _fold(inst: IRInstruction, known: dict[str, int]) -> IRInstruction:
    if inst.opcode == Opcode.BINOP:
        op, lhs, rhs = inst.operands
        if lhs not in known or rhs not in known:
            return inst
        if op in Operators.DIVISION_OPS and known[rhs] == 0:
            return inst
        value = Operators.eval_binop(op, known[lhs], known[rhs])
        return _const(inst, value)
    if inst.opcode == Opcode.UNOP:
        op, operand = inst.operands
        if operand not in known:
            return inst
        return _const(inst, Operators.eval_unop(op, known[operand]))
    if inst.opcode == Opcode.BRANCH_IF:
        cond = inst.operands[0]
        if cond not in known:
            return inst
        true_label, false_label = inst.branch_targets()
        return IRInstruction(
            opcode=Opcode.BRANCH,
            label=true_label if known[cond] != 0 else false_label,
            source_location=inst.source_location,
        )
    return inst


def _const(inst: IRInstruction, value: int) -> IRInstruction:
    return IRInstruction(
        opcode=Opcode.CONST,
        result_reg=inst.result_reg,
        operands=[value],
        source_location=inst.source_location,
    )
