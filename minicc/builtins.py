"""Built-in (external) routines callable from compiled programs."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable

from . import constants
from .memory import Memory
from .operators import sign_extend
from .symbols import FunctionSignature
from .types import CHAR, INT, PointerType
from .vm_types import VMState

logger = logging.getLogger(__name__)

_CONVERSION = re.compile(
    r"%(?P<flags>[-+ #0]*)(?P<width>\*|\d+)?(?:\.(?P<precision>\*|\d*))?"
    r"(?P<length>hh|h|ll|l|z|j|t)?(?P<conv>[diouxXcsp%])"
)

_LENGTH_SIZES = {"hh": 1, "h": 2, None: constants.INT_SIZE}


@dataclass
class ArgumentArea:
    """Reads the raw argument slots a caller stored below its stack pointer.

    Slots past ``argc`` are read as well, matching an unchecked variadic
    call: the routine sees whatever the stack holds there.
    """

    memory: Memory
    base: int
    argc: int
    slot_size: int
    cursor: int = 0

    def next_slot(self) -> int:
        if self.cursor >= self.argc:
            logger.debug("variadic read past the %d supplied argument(s)", self.argc)
        value = self.memory.read_int(
            self.base + self.cursor * self.slot_size, self.slot_size, signed=False
        )
        self.cursor += 1
        return value


def _integer_width(length: str | None, slot_size: int) -> int:
    return _LENGTH_SIZES.get(length, slot_size)


def _pad(body: str, flags: str, width: int | None) -> str:
    if width is None or len(body) >= width:
        return body
    if "-" in flags:
        return body.ljust(width)
    return body.rjust(width)


def _format_conversion(match: re.Match, args: ArgumentArea, memory: Memory) -> str:
    conv = match.group("conv")
    if conv == "%":
        return "%"
    flags = match.group("flags") or ""
    width: int | None = None
    raw_width = match.group("width")
    if raw_width == "*":
        width = sign_extend(args.next_slot(), constants.INT_SIZE)
        if width < 0:
            flags, width = flags + "-", -width
    elif raw_width:
        width = int(raw_width)
    precision: int | None = None
    raw_precision = match.group("precision")
    if raw_precision == "*":
        precision = sign_extend(args.next_slot(), constants.INT_SIZE)
        if precision < 0:
            precision = None
    elif raw_precision is not None:
        precision = int(raw_precision or "0")

    raw = args.next_slot()
    if conv == "s":
        if raw == 0:
            text = "(null)"
        else:
            data = memory.read_cstring(raw)
            text = (data[:precision] if precision is not None else data).decode(
                "utf-8", errors="replace"
            )
        return _pad(text, flags, width)
    if conv == "c":
        return _pad(bytes([raw & 0xFF]).decode("latin-1"), flags, width)
    if conv == "p":
        return _pad(f"0x{raw:x}" if raw else "(nil)", flags, width)

    size = _integer_width(match.group("length"), args.slot_size)
    if conv in "di":
        value = sign_extend(raw, size)
        py_conv = "d"
    else:
        value = raw & ((1 << (8 * size)) - 1)
        py_conv = "d" if conv == "u" else conv
        flags = flags.replace("+", "").replace(" ", "")
    alternate_octal = conv == "o" and "#" in flags
    if alternate_octal or value == 0:
        # C's "#o" prefixes a single 0, and "#x" prints a bare 0 for zero
        flags = flags.replace("#", "")
    if alternate_octal and value != 0:
        precision = max(precision or 0, len(format(value, "o")) + 1)
    if precision is not None:
        flags = flags.replace("0", "")
    directive = "%" + flags
    if width is not None:
        directive += str(width)
    if precision is not None:
        directive += f".{precision}"
    return (directive + py_conv) % value


def format_printf(fmt: bytes, args: ArgumentArea, memory: Memory) -> str:
    """Render a printf-style format against raw argument slots."""
    text = fmt.decode("utf-8", errors="replace")
    pieces: list[str] = []
    pos = 0
    for match in _CONVERSION.finditer(text):
        pieces.append(text[pos : match.start()])
        pieces.append(_format_conversion(match, args, memory))
        pos = match.end()
    pieces.append(text[pos:])
    return "".join(pieces)


def _builtin_printf(vm: VMState, args: ArgumentArea) -> int:
    fmt_addr = args.next_slot()
    if fmt_addr == 0:
        return -1
    out = format_printf(vm.memory.read_cstring(fmt_addr), args, vm.memory)
    vm.output.append(out)
    return len(out.encode("utf-8"))


class Builtins:
    """Table of built-in routines and the signatures the compiler knows them by."""

    TABLE: dict[str, Callable[[VMState, ArgumentArea], int]] = {
        constants.VARIADIC_ROUTINE: _builtin_printf,
    }

    SIGNATURES: dict[str, FunctionSignature] = {
        constants.VARIADIC_ROUTINE: FunctionSignature(
            name=constants.VARIADIC_ROUTINE,
            return_type=INT,
            param_types=(PointerType(CHAR),),
            variadic=True,
            external=True,
        ),
    }
