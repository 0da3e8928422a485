"""Tests for the printf built-in's formatting over raw argument slots."""

import pytest

from minicc.builtins import ArgumentArea, Builtins, format_printf
from minicc.memory import Memory


def _render(fmt: str, *values, data: bytes = b"", slot_size: int = 8) -> str:
    """Store *values* into consecutive slots and format *fmt* against them."""
    memory = Memory(data, stack_size=256)
    base = memory.stack_limit
    for index, value in enumerate(values):
        memory.write_int(base + index * slot_size, value, slot_size)
    args = ArgumentArea(memory, base, len(values), slot_size)
    return format_printf(fmt.encode("utf-8"), args, memory)


class TestIntegers:
    @pytest.mark.parametrize(
        "fmt,value,expected",
        [
            ("%d", 42, "42"),
            ("%d", -5, "-5"),
            ("%i", 7, "7"),
            ("%5d|", 42, "   42|"),
            ("%-5d|", 42, "42   |"),
            ("%05d", 42, "00042"),
            ("%+d", 5, "+5"),
            ("%.3d", 7, "007"),
            ("%u", -1, "4294967295"),
            ("%x", 255, "ff"),
            ("%X", 255, "FF"),
            ("%#x", 255, "0xff"),
            ("%#x", 0, "0"),
            ("%o", 8, "10"),
            ("%#o", 8, "010"),
            ("%hhd", 255, "-1"),
            ("%hd", 65535, "-1"),
        ],
    )
    def test_conversions(self, fmt, value, expected):
        assert _render(fmt, value) == expected

    def test_int_conversion_reads_low_bytes_of_slot(self):
        assert _render("%d", 0x1_0000_0005) == "5"

    def test_long_uses_whole_slot(self):
        assert _render("%ld", 0x1_0000_0000) == "4294967296"

    def test_star_width(self):
        assert _render("[%*d]", 4, 7) == "[   7]"
        assert _render("[%*d]", -4, 7) == "[7   ]"


class TestCharactersAndStrings:
    def test_char(self):
        assert _render("%c%c", 72, 105) == "Hi"

    def test_string_from_memory(self):
        assert _render("<%s>", 0x1000, data=b"hello\x00") == "<hello>"

    def test_string_precision_and_width(self):
        assert _render("<%.2s>", 0x1000, data=b"hello\x00") == "<he>"
        assert _render("<%-7s>", 0x1000, data=b"hello\x00") == "<hello  >"

    def test_null_string(self):
        assert _render("%s", 0) == "(null)"

    def test_pointer(self):
        assert _render("%p", 0x1010) == "0x1010"
        assert _render("%p", 0) == "(nil)"


class TestFormatText:
    def test_literal_percent(self):
        assert _render("100%%") == "100%"

    def test_plain_text_passes_through(self):
        assert _render("no conversions\n") == "no conversions\n"

    def test_multiple_conversions(self):
        assert _render("%d + %d = %d\n", 2, 3, 5) == "2 + 3 = 5\n"

    def test_four_byte_slots(self):
        assert _render("%d %d", -1, 9, slot_size=4) == "-1 9"

    def test_missing_argument_reads_stack(self):
        # unchecked: the slot past the supplied arguments is read as-is
        assert _render("%d %d", 1) == "1 0"


class TestBuiltinTable:
    def test_printf_registered(self):
        assert "printf" in Builtins.TABLE
        sig = Builtins.SIGNATURES["printf"]
        assert sig.variadic and sig.external
        assert len(sig.param_types) == 1
