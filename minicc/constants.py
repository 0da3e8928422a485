"""Named constants — eliminates magic strings and numbers across the codebase."""

from __future__ import annotations

INT_SIZE = 4
CHAR_SIZE = 1
INT_BITS = 32

STACK_ALIGNMENT = 16

FUNC_LABEL_PREFIX = "func_"
CFG_ENTRY_LABEL = "entry"
HIDDEN_SLOT_PREFIX = "."

ENTRY_FUNCTION = "main"
VARIADIC_ROUTINE = "printf"

# Memory map of the runtime target
NULL_GUARD_SIZE = 0x1000
DATA_BASE = NULL_GUARD_SIZE
DEFAULT_STACK_SIZE = 1 << 20

DEFAULT_MAX_STEPS = 5_000_000
DEFAULT_MAX_CALL_DEPTH = 1000

EXIT_CODE_MASK = 0xFF

DEFAULT_TARGET = "amd64"
