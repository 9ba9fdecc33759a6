import json
from pathlib import Path

from sicvm.cli import format_state, main


def _write_source(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "program.sic"
    path.write_text(text, encoding="utf-8")
    return path


def test_run_prints_registers_and_memory(tmp_path: Path, capsys):
    path = _write_source(tmp_path, "LDA #5\nADD #3\nSTA RESULT\nRESULT RESW 1\nBUF RESB 2\n")
    assert main([str(path)]) == 0
    out = capsys.readouterr().out
    assert "Registers" in out
    assert "A  8" in out
    assert "RESULT  8" in out
    assert "BUF     BYTE[0, 0]" in out


def test_json_output(tmp_path: Path, capsys):
    path = _write_source(tmp_path, "LDX #2\nSTX V\n")
    assert main([str(path), "--json"]) == 0
    state = json.loads(capsys.readouterr().out)
    assert state == {"registers": {"X": 2}, "memory": {"V": 2}}


def test_assembly_error_exits_nonzero(tmp_path: Path, capsys):
    path = _write_source(tmp_path, "LDA #1\nBAD LINE HAS FOUR\n")
    assert main([str(path)]) == 1
    assert "error: line 2: Malformed line" in capsys.readouterr().err


def test_step_limit_exits_nonzero(tmp_path: Path, capsys):
    path = _write_source(tmp_path, "LOOP LDA #1\nCOMP #1\nJEQ LOOP\n")
    assert main([str(path), "--max-steps", "50"]) == 1
    assert "Step limit of 50 reached" in capsys.readouterr().err


def test_simple_register_set_flag(tmp_path: Path, capsys):
    path = _write_source(tmp_path, "LDX #4\nSTX A\n")
    assert main([str(path), "--simple", "--json"]) == 0
    state = json.loads(capsys.readouterr().out)
    assert state["memory"] == {"A": 4}


def test_missing_file_exits_nonzero(tmp_path: Path, capsys):
    assert main([str(tmp_path / "nope.sic")]) == 1
    assert "cannot read" in capsys.readouterr().err


def test_format_state_handles_empty_state():
    assert format_state({"registers": {}, "memory": {}}) == "Registers\n  (none)\nMemory\n  (none)"
