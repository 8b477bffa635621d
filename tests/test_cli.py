import io
import subprocess
import sys
from pathlib import Path

import pytest

from derstand_cli import main

HELLO = ("++++++++[>++++[>++>+++>+++>+<<<<-]>+>+>->>+[<]<-]>>.>---.+++++++..+++.>>.<-.<.+++."
         "------.--------.>>+.>++.")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("DERSTAND_TAPE_SIZE", "DERSTAND_SHOW_TIMING", "DERSTAND_TRACE_STEPS"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def program(tmp_path):
    def write(source):
        path = tmp_path / "prog.dst"
        path.write_text(source, encoding="utf-8")
        return str(path)
    return write


def feed_stdin(monkeypatch, data):
    """Replace stdin with a byte stream ending in EOF."""
    monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO(data)))


def test_run_file_with_timing(program, capsys):
    assert main([program(HELLO)]) == 0
    out = capsys.readouterr().out
    assert out.startswith("Hello World!\n")
    assert "Execution time:" in out


def test_run_file_without_timing(program, capsys):
    assert main([program(HELLO), "--no-timing"]) == 0
    assert capsys.readouterr().out == "Hello World!\n"


def test_timing_disabled_from_environment(program, capsys, monkeypatch):
    monkeypatch.setenv("DERSTAND_SHOW_TIMING", "0")
    assert main([program("++.")]) == 0
    assert capsys.readouterr().out == "\x02"


def test_missing_file(tmp_path, capsys):
    missing = str(tmp_path / "missing.dst")
    assert main([missing]) == 1
    assert f"File not found: {missing}" in capsys.readouterr().err


def test_compile_error(program, capsys):
    assert main([program("+[")]) == 1
    assert "Compilation error: Unmatched opening bracket at position 1" in capsys.readouterr().err


def test_input_from_stdin(program, capsys, monkeypatch):
    monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO(b"A")))
    assert main([program(",+."), "--no-timing"]) == 0
    assert capsys.readouterr().out == "B"


def test_disasm(program, capsys):
    assert main([program("+[-]"), "--disasm"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 4
    assert lines[1].endswith("-> 3")


def test_tape_size_flag(program, capsys):
    assert main([program("%$+.&."), "--tape-size", "1", "--no-timing"]) == 0
    assert capsys.readouterr().out == "\x01\x01"


def test_invalid_tape_size_flag(program, capsys):
    assert main([program("+"), "--tape-size", "0"]) == 1
    assert "--tape-size must be at least 1" in capsys.readouterr().err


def test_invalid_environment(program, capsys, monkeypatch):
    monkeypatch.setenv("DERSTAND_TAPE_SIZE", "lots")
    assert main([program("+")]) == 1
    assert "Configuration error" in capsys.readouterr().err


def test_trace(program, capsys):
    assert main([program("++."), "--trace"]) == 0
    out = capsys.readouterr().out
    assert "DERSTAND DEBUGGER" in out
    assert "FINAL RESULT" in out


def test_trace_compile_error(program, capsys):
    assert main([program("]"), "--trace"]) == 1
    assert "Compilation error" in capsys.readouterr().err


def test_repl_keeps_tape_between_lines(capsys, monkeypatch):
    feed_stdin(monkeypatch, b"+++\n\n.\n]\nquit\n+.\n")
    assert main(["--no-timing"]) == 0
    out = capsys.readouterr().out
    assert "Derstand Interpreter v0.1.0" in out
    assert "(no output)" in out
    assert "Output: \x03" in out
    assert "Compilation error: Unmatched closing bracket at position 0" in out
    # nothing after quit was run
    assert "Output: \x04" not in out


def test_repl_ends_on_eof_and_reports_timing(capsys, monkeypatch):
    feed_stdin(monkeypatch, b"++.")
    assert main([]) == 0
    out = capsys.readouterr().out
    assert "Output: \x02" in out
    assert "Execution time:" in out


def test_repl_input_reads_bytes_after_its_line(capsys, monkeypatch):
    feed_stdin(monkeypatch, b",.\nAquit\n")
    assert main(["--no-timing"]) == 0
    out = capsys.readouterr().out
    assert "Output: A" in out
    # "quit" was left on the stream and ended the shell
    assert "(no output)" not in out
    assert "Compilation error" not in out


def test_repl_input_past_end_reads_zero(capsys, monkeypatch):
    feed_stdin(monkeypatch, b"+,.\n")
    assert main(["--no-timing"]) == 0
    assert "Output: \x00" in capsys.readouterr().out


def test_repl_with_piped_stdin():
    cli = Path(__file__).resolve().parent.parent / "derstand_cli.py"
    result = subprocess.run(
        [sys.executable, str(cli), "--no-timing"],
        input=b",.\nAquit\n",
        capture_output=True,
        cwd=str(cli.parent),
        timeout=60,
    )
    assert result.returncode == 0
    assert b"Output: A" in result.stdout
    assert b"(no output)" not in result.stdout
