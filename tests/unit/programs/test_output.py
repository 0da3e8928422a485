"""printf output, exit codes and stack discipline across many call sites."""

import pytest

from minicc.errors import StepLimitExceeded

CONSECUTIVE_PRINTF = """
int main() {
    int x = 7;
    printf("one %d\\n", x);
    int y = x * 3;
    printf("two %d %d\\n", x, y);
    printf("three\\n");
    int z = y - x;
    printf("four %d %d %d\\n", x, y, z);
    printf("five %d\\n", x + y + z);
    return 0;
}
"""

PRINTF_IN_CALLEES = """
void show(char *label, int value) {
    char pad = ' ';
    printf("%s%c=%c%d\\n", label, pad, pad, value);
}

int twice(int v) {
    show("in", v);
    return v * 2;
}

int main() {
    char tag = 'x';
    show("start", tag);
    show("result", twice(twice(3)));
    return 0;
}
"""

FORMATS = """
int main() {
    char *name = "minicc";
    int n = printf("[%5d|%-4d|%04d|%x|%X|%o|%c|%s|%%]\\n", 42, 7, 9, 255, 255, 8, 'z', name);
    printf("%d\\n", n);
    printf("%u\\n", -1);
    return 0;
}
"""

SPIN = """
int main() {
    while (1) { }
    return 0;
}
"""


class TestPrintf:
    def test_consecutive_calls(self, run_program, target):
        result = run_program(CONSECUTIVE_PRINTF, target=target)
        assert result.output == "one 7\ntwo 7 21\nthree\nfour 7 21 14\nfive 42\n"
        assert result.stats.builtin_calls == 5

    def test_calls_from_nested_frames(self, run_program, target):
        result = run_program(PRINTF_IN_CALLEES, target=target)
        assert result.output == (
            "start = 120\n" "in = 3\n" "in = 6\n" "result = 12\n"
        )

    def test_format_conversions_and_return_value(self, run_program):
        result = run_program(FORMATS)
        lines = result.output.splitlines()
        assert lines[0] == "[   42|7   |0009|ff|FF|10|z|minicc|%]"
        assert lines[1] == str(len(lines[0]) + 1)
        assert lines[2] == "4294967295"


class TestExitCodes:
    @pytest.mark.parametrize(
        "value,exit_code", [(0, 0), (119, 119), (300, 44), (-1, 255)]
    )
    def test_exit_code_is_low_byte(self, run_program, value, exit_code):
        result = run_program(f"int main() {{ return {value}; }}")
        assert result.return_value == value
        assert result.exit_code == exit_code

    def test_step_limit(self, run_program):
        with pytest.raises(StepLimitExceeded):
            run_program(SPIN, max_steps=1000)


class TestPrototype:
    def test_explicit_printf_prototype_accepted(self, run_program):
        source = """
        int printf(const char *fmt, ...);

        int main() {
            printf("%s-%d\\n", "ok", 1);
            return 0;
        }
        """
        assert run_program(source).output == "ok-1\n"
