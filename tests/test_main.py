# tests/test_main.py
"""
Tests for the ``formallang`` command line: subcommands, output formats
and exit codes.
"""

import io
import json

import pytest

from formallang.main import (
    EXIT_BUDGET,
    EXIT_FAULT,
    EXIT_INFRA,
    EXIT_OK,
    EXIT_REJECTED,
    main,
)
from tests.conftest import (
    CONDITIONAL_FREE_SRC,
    COUNTER_SRC,
    INFINITE_LOOP_SRC,
    SCOPE_LEAK_SRC,
)


@pytest.fixture
def write(tmp_path):
    def _write(src, name="prog.fl"):
        path = tmp_path / name
        path.write_text(src, encoding="utf-8")
        return str(path)
    return _write


class TestCheckCommand:

    def test_accepted(self, write, capsys):
        assert main(["check", write(COUNTER_SRC)]) == EXIT_OK
        assert capsys.readouterr().out.strip() == "accepted; in scope: hi, lo, running"

    def test_rejected(self, write, capsys):
        path = write(SCOPE_LEAK_SRC)
        assert main(["check", path]) == EXIT_REJECTED
        out = capsys.readouterr().out.splitlines()
        assert out[0] == "rejected"
        assert out[1].startswith(path)
        assert "[FL-3000]" in out[1]
        assert out[2] == "    in: y"

    def test_json(self, write, capsys):
        assert main(["check", "--json", write(SCOPE_LEAK_SRC)]) == EXIT_REJECTED
        payload = json.loads(capsys.readouterr().out)
        assert payload["accepted"] is False
        assert payload["scope"] is None
        assert payload["diagnostics"][0]["name"] == "y"

    def test_stdin(self, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.StringIO("(decl x true)"))
        assert main(["check", "-"]) == EXIT_OK
        assert "in scope: x" in capsys.readouterr().out


class TestRunCommand:

    def test_completed(self, write, capsys):
        assert main(["run", write(COUNTER_SRC)]) == EXIT_OK
        out = capsys.readouterr().out.splitlines()
        assert out == [
            "hi @1 = true",
            "lo @0 = true",
            "running @2 = false",
            "next location: 6",
        ]

    def test_rejected(self, write, capsys):
        assert main(["run", write(SCOPE_LEAK_SRC)]) == EXIT_REJECTED
        assert capsys.readouterr().out.startswith("rejected")

    def test_fault(self, write, capsys):
        assert main(["run", write(CONDITIONAL_FREE_SRC)]) == EXIT_FAULT
        out = capsys.readouterr().out
        assert out.startswith("fault: ")
        assert "already been freed" in out

    def test_budget(self, write, capsys):
        code = main(["run", "--max-steps", "10", write(INFINITE_LOOP_SRC)])
        assert code == EXIT_BUDGET
        out = capsys.readouterr().out.splitlines()
        assert out[0] == "step budget exhausted after 10 steps"
        assert out[1] == "x @0 = true"

    def test_json(self, write, capsys):
        args = ["run", "--json", "--check-invariants", "--allocator", "max-scan",
                write(COUNTER_SRC)]
        assert main(args) == EXIT_OK
        payload = json.loads(capsys.readouterr().out)
        assert payload["outcome"] == "completed"
        assert payload["values"] == {"hi": True, "lo": True, "running": False}

    def test_json_fault(self, write, capsys):
        assert main(["run", "--json", write(CONDITIONAL_FREE_SRC)]) == EXIT_FAULT
        payload = json.loads(capsys.readouterr().out)
        assert payload["fault"]["kind"] == "already-freed"
        assert "state" not in payload

    def test_unknown_allocator_is_a_usage_error(self, write):
        with pytest.raises(SystemExit) as exc:
            main(["run", "--allocator", "arena", write(COUNTER_SRC)])
        assert exc.value.code == EXIT_INFRA


class TestDumpAstCommand:

    def test_flat(self, write, capsys):
        path = write("(decl x true)\n(free x)\n")
        assert main(["dump-ast", "--flat", path]) == EXIT_OK
        assert capsys.readouterr().out.strip() == "(seq (decl x true) (free x))"

    def test_indented(self, write, capsys):
        path = write("(if true (free x))")
        assert main(["dump-ast", "--indent", "4", path]) == EXIT_OK
        assert capsys.readouterr().out.splitlines() == ["(if true", "    (free x))"]


class TestInfrastructureErrors:

    def test_missing_file(self, tmp_path, capsys):
        assert main(["check", str(tmp_path / "nope.fl")]) == EXIT_INFRA
        assert "file not found" in capsys.readouterr().err

    def test_invalid_utf8(self, tmp_path, capsys):
        path = tmp_path / "binary.fl"
        path.write_bytes(b"(decl x \xff)")
        assert main(["check", str(path)]) == EXIT_INFRA
        assert "cannot read" in capsys.readouterr().err

    def test_directory_instead_of_file(self, tmp_path, capsys):
        assert main(["run", str(tmp_path)]) == EXIT_INFRA
        assert "cannot read" in capsys.readouterr().err

    def test_syntax_error(self, write, capsys):
        assert main(["run", write("(decl x")]) == EXIT_INFRA
        assert "FL-1000" in capsys.readouterr().err

    def test_no_command(self):
        with pytest.raises(SystemExit) as exc:
            main([])
        assert exc.value.code == EXIT_INFRA
