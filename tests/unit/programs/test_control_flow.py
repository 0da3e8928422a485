"""Branches, loops, short-circuit evaluation and the conditional operator."""

IF_ELSE = """
int braced(int x) {
    if (x == 0) {
        return 1;
    } else {
        return x * 2;
    }
}

int unbraced(int x) {
    if (x == 0) return 1;
    else return x * 2;
}

int no_else(int x) {
    if (x == 0) return 1;
    return x * 2;
}

int main() {
    printf("%d %d\\n", braced(0), braced(3));
    printf("%d %d\\n", unbraced(0), unbraced(3));
    printf("%d %d\\n", no_else(0), no_else(3));
    return 0;
}
"""

DANGLING_ELSE = """
int classify(int a, int b) {
    int r = 0;
    if (a)
        if (b) r = 1;
        else r = 2;
    return r;
}

int main() {
    printf("%d %d %d\\n", classify(1, 1), classify(1, 0), classify(0, 1));
    return 0;
}
"""

LOOPS = """
int main() {
    int sum = 0;
    int i = 0;
    while (i < 5) {
        sum += i;
        i++;
    }
    printf("while %d\\n", sum);

    int n = 0;
    do {
        n++;
    } while (n < 0);
    printf("do %d\\n", n);

    int total = 0;
    for (int j = 1; j <= 10; j++) {
        if (j % 2 == 0) continue;
        if (j > 7) break;
        total += j;
    }
    printf("for %d\\n", total);

    int count = 0;
    for (;;) {
        if (++count == 3) break;
    }
    printf("forever %d\\n", count);
    return 0;
}
"""

DO_WHILE_CONTINUE = """
int main() {
    int sum = 0;
    int i = 0;
    do {
        i++;
        if (i % 2 == 0) continue;
        if (i > 9) break;
        sum += i;
    } while (i < 20);
    printf("%d %d\\n", sum, i);
}
"""

NESTED_LOOPS = """
int main() {
    int pairs = 0;
    for (int i = 0; i < 4; i++) {
        for (int j = 0; j < 4; j++) {
            if (j == i) break;
            pairs++;
        }
    }
    printf("%d\\n", pairs);
    return 0;
}
"""

SHORT_CIRCUIT = """
int calls = 0;

int touch(int v) {
    calls++;
    return v;
}

int main() {
    int a = touch(0) && touch(1);
    int b = touch(1) || touch(0);
    int c = touch(1) && touch(2);
    int m = a > b ? a : b;
    printf("%d %d %d %d calls=%d\\n", a, b, c, m, calls);
}
"""

SCOPES = """
int main() {
    int x = 1;
    {
        int x = 2;
        printf("%d ", x);
    }
    printf("%d\\n", x);
    return 0;
}
"""


class TestBranches:
    def test_if_else_variants(self, run_program, target):
        assert run_program(IF_ELSE, target=target).output == "1 6\n1 6\n1 6\n"

    def test_dangling_else(self, run_program):
        assert run_program(DANGLING_ELSE).output == "1 2 0\n"

    def test_inner_scope_shadows(self, run_program):
        assert run_program(SCOPES).output == "2 1\n"


class TestLoops:
    def test_loop_forms(self, run_program, target):
        result = run_program(LOOPS, target=target)
        assert result.output == "while 10\ndo 1\nfor 16\nforever 3\n"

    def test_do_while_continue_goes_to_condition(self, run_program):
        assert run_program(DO_WHILE_CONTINUE).output == "25 11\n"

    def test_break_leaves_innermost_loop(self, run_program):
        assert run_program(NESTED_LOOPS).output == "6\n"


class TestShortCircuit:
    def test_right_operand_skipped(self, run_program):
        assert run_program(SHORT_CIRCUIT).output == "0 1 1 1 calls=4\n"

    def test_main_without_return_exits_zero(self, run_program):
        assert run_program(SHORT_CIRCUIT).exit_code == 0
