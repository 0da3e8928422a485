"""Pure functions for computing statistics over IR instruction lists."""

from __future__ import annotations

from collections import Counter

from .ir import IRInstruction, Opcode


def count_opcodes(instructions: list[IRInstruction]) -> dict[str, int]:
    """Return a frequency map of opcode names in the given instruction list.

    Args:
        instructions: A list of IR instructions.

    Returns:
        A dict mapping opcode name strings to their occurrence counts.
        Empty dict for an empty input list.
    """
    return dict(Counter(inst.opcode.value for inst in instructions))


def call_sites(instructions: list[IRInstruction]) -> list[str]:
    """Names of the callees of every call instruction, in program order."""
    return [
        inst.operands[0]
        for inst in instructions
        if inst.opcode in (Opcode.CALL_FUNCTION, Opcode.CALL_VARIADIC)
    ]
