"""Operator evaluation with 32-bit two's-complement integer semantics.

Shared by the VM, the constant folder and static initializer evaluation so
that folded and executed results can never disagree.
"""

from __future__ import annotations

from typing import Any, Callable

from . import constants
from .errors import ArithmeticFault

_MASK = (1 << constants.INT_BITS) - 1
_SIGN = 1 << (constants.INT_BITS - 1)


def wrap_int32(value: int) -> int:
    value &= _MASK
    return value - (1 << constants.INT_BITS) if value & _SIGN else value


def sign_extend(value: int, size: int) -> int:
    """Truncate *value* to ``size`` bytes and sign-extend it back to an int."""
    bits = 8 * size
    value &= (1 << bits) - 1
    return value - (1 << bits) if value & (1 << (bits - 1)) else value


def _divide(a: int, b: int) -> int:
    if b == 0:
        raise ArithmeticFault("integer division by zero")
    quotient = abs(a) // abs(b)
    return quotient if (a < 0) == (b < 0) else -quotient


def _remainder(a: int, b: int) -> int:
    if b == 0:
        raise ArithmeticFault("integer remainder by zero")
    return a - _divide(a, b) * b


class Operators:
    """Binary and unary operators over signed 32-bit values.

    Results of comparisons are ``0`` or ``1``; shift counts are taken modulo
    the word size and ``>>`` is arithmetic.
    """

    BINOP_TABLE: dict[str, Callable[[int, int], int]] = {
        "+": lambda a, b: a + b,
        "-": lambda a, b: a - b,
        "*": lambda a, b: a * b,
        "/": _divide,
        "%": _remainder,
        "==": lambda a, b: int(a == b),
        "!=": lambda a, b: int(a != b),
        "<": lambda a, b: int(a < b),
        ">": lambda a, b: int(a > b),
        "<=": lambda a, b: int(a <= b),
        ">=": lambda a, b: int(a >= b),
        "&": lambda a, b: a & b,
        "|": lambda a, b: a | b,
        "^": lambda a, b: a ^ b,
        "<<": lambda a, b: a << (b & (constants.INT_BITS - 1)),
        ">>": lambda a, b: a >> (b & (constants.INT_BITS - 1)),
    }

    UNOP_TABLE: dict[str, Callable[[int], int]] = {
        "-": lambda a: -a,
        "+": lambda a: a,
        "~": lambda a: ~a,
        "!": lambda a: int(a == 0),
        "sext8": lambda a: sign_extend(a, constants.CHAR_SIZE),
    }

    DIVISION_OPS = frozenset({"/", "%"})

    @classmethod
    def eval_binop(cls, op: str, lhs: int, rhs: int) -> int:
        fn = cls.BINOP_TABLE.get(op)
        if fn is None:
            raise ValueError(f"Unknown binary operator: {op}")
        return wrap_int32(fn(wrap_int32(lhs), wrap_int32(rhs)))

    @classmethod
    def eval_unop(cls, op: str, operand: Any) -> int:
        fn = cls.UNOP_TABLE.get(op)
        if fn is None:
            raise ValueError(f"Unknown unary operator: {op}")
        return wrap_int32(fn(wrap_int32(operand)))
