"""Recursive programs: call/return linkage, argument slots and stack depth."""

import pytest

from minicc.errors import StackOverflow

FIBONACCI = """
#include <stdio.h>

int fibonacci(int n) {
    if (n <= 1) {
        return n;
    }
    return fibonacci(n - 1) + fibonacci(n - 2);
}

int main() {
    for (int i = 0; i <= 10; i++) {
        printf("fibonacci(%d) = %d\\n", i, fibonacci(i));
    }
    return 0;
}
"""

FACTORIAL = """
int factorial(int n) {
    if (n <= 1)
        return 1;
    return n * factorial(n - 1);
}

int sum_recursive(int n) {
    if (n == 0) return 0;
    return n + sum_recursive(n - 1);
}

int main(void) {
    printf("factorial(5) = %d\\n", factorial(5));
    printf("sum_recursive(10) = %d\\n", sum_recursive(10));
    return 0;
}
"""

MUTUAL = """
int is_odd(int n);

int is_even(int n) {
    if (n == 0) return 1;
    return is_odd(n - 1);
}

int is_odd(int n) {
    if (n == 0) return 0;
    return is_even(n - 1);
}

int main() {
    printf("%d %d %d\\n", is_even(10), is_odd(7), is_even(3));
    return 0;
}
"""

RUNAWAY = """
int down(int n) {
    return down(n + 1);
}

int main() {
    return down(0);
}
"""

FIBONACCI_OUTPUT = "".join(
    f"fibonacci({i}) = {v}\n"
    for i, v in enumerate([0, 1, 1, 2, 3, 5, 8, 13, 21, 34, 55])
)


class TestRecursion:
    def test_fibonacci(self, run_program, target):
        result = run_program(FIBONACCI, target=target)
        assert result.output == FIBONACCI_OUTPUT
        assert result.exit_code == 0

    def test_fibonacci_optimized(self, run_program):
        assert run_program(FIBONACCI, opt_level=1).output == FIBONACCI_OUTPUT

    def test_factorial_and_sum(self, run_program, target):
        result = run_program(FACTORIAL, target=target)
        assert result.output == "factorial(5) = 120\nsum_recursive(10) = 55\n"

    def test_mutual_recursion_through_prototype(self, run_program):
        assert run_program(MUTUAL).output == "1 1 0\n"

    def test_call_statistics(self, run_program):
        result = run_program(FACTORIAL)
        # main + factorial(5..1) + sum_recursive(10..0)
        assert result.stats.calls == 1 + 5 + 11
        assert result.stats.builtin_calls == 2
        assert result.stats.max_call_depth == 12

    def test_unbounded_recursion_overflows(self, run_program):
        with pytest.raises(StackOverflow):
            run_program(RUNAWAY)

    def test_small_stack_overflows_first(self, run_program):
        with pytest.raises(StackOverflow, match="exhausted"):
            run_program(RUNAWAY, stack_size=4096, max_call_depth=100000)
