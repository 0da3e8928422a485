"""Integer arithmetic: 32-bit wrap-around, truncating division, bitwise operators."""

import pytest

from minicc.errors import ArithmeticFault

BITWISE = """
int main() {
    int a = 12;
    int b = 10;
    printf("%d\\n%d\\n%d\\n%d\\n%d\\n%d\\n", a & b, a | b, a ^ b, ~a, a << 2, a >> 1);
    return 0;
}
"""

COMPOUND = """
int main() {
    int x = 10;
    x += 5;
    x *= 2;
    x /= 3;
    printf("x = %d\\n", x);
    x -= 4;
    x %= 4;
    x <<= 3;
    x |= 1;
    x ^= 3;
    x &= 14;
    x >>= 1;
    printf("x = %d\\n", x);
    return 0;
}
"""

DIVISION = """
int main() {
    printf("%d %d %d %d\\n", -7 / 2, -7 % 2, 7 / -2, 7 % -2);
    return 0;
}
"""

OVERFLOW = """
int main() {
    int big = 2147483647;
    int small = -2147483647 - 1;
    printf("%d %d %d\\n", big + 1, small - 1, big * 2);
    return 0;
}
"""

COMPARISONS = """
int main() {
    int a = 3;
    int b = 5;
    printf("%d%d%d%d%d%d %d %d\\n", a < b, a > b, a <= 3, a >= 4, a == 3, a != 3, !a, !0);
    return 0;
}
"""

INC_DEC = """
int main() {
    int i = 5;
    int a = i++;
    int b = ++i;
    int c = i--;
    int d = --i;
    printf("%d %d %d %d %d\\n", a, b, c, d, i);
    return 0;
}
"""

COMMA_AND_SIZEOF = """
int main() {
    int x = 0;
    int y = (x = 4, x + 1);
    int *p = &x;
    printf("%d %d %d %d %d\\n", x, y, (int)sizeof(int), (int)sizeof(char), (int)sizeof(p));
    return 0;
}
"""

DIVIDE_BY_ZERO = """
int divide(int a, int b) {
    return a / b;
}

int main() {
    int zero = 0;
    printf("before\\n");
    return divide(10, zero);
}
"""


class TestOperators:
    def test_bitwise(self, run_program, target):
        assert run_program(BITWISE, target=target).output == "8\n14\n6\n-13\n48\n6\n"

    def test_compound_assignment(self, run_program):
        # 10 -> 15 -> 30 -> 10 ; 6 -> 2 -> 16 -> 17 -> 18 -> 2 -> 1
        assert run_program(COMPOUND).output == "x = 10\nx = 1\n"

    def test_division_truncates_toward_zero(self, run_program):
        assert run_program(DIVISION).output == "-3 -1 -3 1\n"

    def test_wrap_around(self, run_program):
        assert run_program(OVERFLOW).output == "-2147483648 2147483647 -2\n"

    def test_comparisons_yield_zero_or_one(self, run_program):
        assert run_program(COMPARISONS).output == "101010 0 1\n"

    def test_increment_decrement(self, run_program):
        assert run_program(INC_DEC).output == "5 7 7 5 5\n"

    @pytest.mark.parametrize("target,pointer_size", [("i386", 4), ("amd64", 8)])
    def test_comma_and_sizeof(self, run_program, target, pointer_size):
        result = run_program(COMMA_AND_SIZEOF, target=target)
        assert result.output == f"4 5 4 1 {pointer_size}\n"

    def test_division_by_zero_faults(self, run_program):
        with pytest.raises(ArithmeticFault):
            run_program(DIVIDE_BY_ZERO)
