"""Tests for the composable API and the command line entry point."""

import pytest

from minicc import api
from minicc.cli import EXIT_COMPILE_ERROR, EXIT_RUNTIME_FAULT, main
from minicc.errors import UnknownIdentifier

SOURCE = """
int square(int x) { return x * x; }

int main() {
    int v = square(4);
    printf("%d\\n", v);
    return v;
}
"""


class TestDumps:
    def test_dump_ir_has_function_headers(self):
        text = api.dump_ir(SOURCE)
        assert "; square" in text
        assert "; main" in text
        assert "enter" in text
        assert "call_variadic printf 2" in text

    def test_dump_cfg(self):
        text = api.dump_cfg(SOURCE)
        assert "[func_square" in text
        assert "succs=" in text

    def test_dump_layout(self):
        text = api.dump_layout(SOURCE)
        assert "frame square:" in text
        assert "parameter" in text
        assert "frame main:" in text

    def test_dump_layout_lists_statics(self):
        text = api.dump_layout("int g; int main() { return g; }")
        assert "statics:" in text
        assert "0x1000  g" in text


class TestRunSource:
    def test_run_source(self):
        result = api.run_source(SOURCE)
        assert result.output == "16\n"
        assert result.return_value == 16
        assert result.exit_code == 16

    def test_run_source_passes_options(self):
        result = api.run_source(SOURCE, target="i386", opt_level=1)
        assert result.output == "16\n"
        assert result.stats.target == "i386"

    def test_compile_source_returns_program(self):
        program = api.compile_source(SOURCE)
        assert set(program.functions) == {"square", "main"}

    def test_program_without_main(self):
        with pytest.raises(UnknownIdentifier, match="main"):
            api.run_source("int f() { return 0; }")

    def test_pipeline_stats_report(self):
        report = api.run_source(SOURCE).stats.report()
        assert "Pipeline Statistics" in report
        assert "Execute (VM)" in report


class TestCli:
    def _write(self, tmp_path, source):
        path = tmp_path / "prog.c"
        path.write_text(source)
        return str(path)

    def test_runs_program_and_returns_exit_code(self, tmp_path, capsys):
        assert main([self._write(tmp_path, SOURCE)]) == 16
        assert capsys.readouterr().out == "16\n"

    def test_ir_only(self, tmp_path, capsys):
        assert main([self._write(tmp_path, SOURCE), "--ir-only"]) == 0
        out = capsys.readouterr().out
        assert "═══ IR ═══" in out
        assert "16" not in out.splitlines()

    def test_cfg_only(self, tmp_path, capsys):
        assert main([self._write(tmp_path, SOURCE), "--cfg-only", "-t", "arm64"]) == 0
        assert "═══ CFG ═══" in capsys.readouterr().out

    def test_layout(self, tmp_path, capsys):
        assert main([self._write(tmp_path, SOURCE), "--layout"]) == 0
        assert "frame main:" in capsys.readouterr().out

    def test_compile_error(self, tmp_path, capsys):
        path = self._write(tmp_path, "int main() { return y; }")
        assert main([path]) == EXIT_COMPILE_ERROR
        assert "UnknownIdentifier" in capsys.readouterr().err

    def test_runtime_fault(self, tmp_path, capsys):
        path = self._write(tmp_path, "int main() { int z = 0; return 1 / z; }")
        assert main([path]) == EXIT_RUNTIME_FAULT
        assert "ArithmeticFault" in capsys.readouterr().err

    def test_step_limit_option(self, tmp_path, capsys):
        path = self._write(tmp_path, "int main() { for (;;) { } }")
        assert main([path, "--max-steps", "500"]) == EXIT_RUNTIME_FAULT
        assert "StepLimitExceeded" in capsys.readouterr().err
