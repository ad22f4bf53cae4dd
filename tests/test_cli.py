"""
bitkit CLI smoke tests — drive main() with an argv list.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

import bitkit
from bitcomp.cpu.alu import get_bool_byte, make_word, word_to_str
from bitcomp.mem.memory import Address, AddrSpace, Memory


@pytest.fixture
def image(tmp_path):
    """READ data[0]; ADD data[1]; WRITE data[15] with data = 2, 3."""
    mem = Memory()
    mem.set(Address(AddrSpace.CODE, 0), make_word(0, 0))
    mem.set(Address(AddrSpace.CODE, 1), make_word(2, 1))
    mem.set(Address(AddrSpace.CODE, 2), make_word(1, 15))
    mem.set(Address(AddrSpace.DATA, 0), get_bool_byte(2))
    mem.set(Address(AddrSpace.DATA, 1), get_bool_byte(3))
    return mem.save_image(tmp_path / "adder")


class TestRun:

    def test_run_prints_result(self, image, capsys):
        assert bitkit.main(["run", str(image)]) == 0
        out = capsys.readouterr().out
        assert f"{word_to_str(get_bool_byte(5))}    5" in out
        assert "[HALT] 3 steps" in out

    def test_run_trace(self, image, capsys):
        bitkit.main(["run", str(image), "--trace"])
        out = capsys.readouterr().out
        assert " 1: ADD" in out

    def test_run_timeout(self, tmp_path, capsys):
        path = Memory().save_image(tmp_path / "empty")
        bitkit.main(["run", str(path), "--max-steps", "7"])
        assert "[TIMEOUT] 7 steps" in capsys.readouterr().out

    def test_missing_image_exits_1(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc:
            bitkit.main(["run", str(tmp_path / "missing")])
        assert exc.value.code == 1
        assert "Error:" in capsys.readouterr().err


class TestInspect:

    def test_disasm(self, image, capsys):
        bitkit.main(["disasm", str(image)])
        lines = capsys.readouterr().out.splitlines()
        assert len(lines) == 3
        assert "return reg;" in lines[2]

    def test_info(self, image, capsys):
        bitkit.main(["info", str(image)])
        out = capsys.readouterr().out
        assert "3 of 15 CODE words" in out
        assert "Data in use:  0, 1" in out

    def test_key_error_inside_command_is_not_unknown_command(self, image, capsys,
                                                              monkeypatch):
        def failing(args):
            raise KeyError("missing")

        monkeypatch.setitem(bitkit.COMMANDS, "info", failing)
        with pytest.raises(SystemExit) as exc:
            bitkit.main(["info", str(image)])
        assert exc.value.code == 1
        err = capsys.readouterr().err
        assert "Error: 'missing'" in err
        assert "Unknown command" not in err

    def test_no_command_prints_help(self, capsys):
        with pytest.raises(SystemExit) as exc:
            bitkit.main([])
        assert exc.value.code == 0


class TestEdit:

    def test_insert_writes_output(self, image, tmp_path, capsys):
        out = tmp_path / "patched"
        assert bitkit.main(["insert", str(image), "--space", "data", "--at", "0",
                            "-o", str(out)]) == 0
        mem = Memory()
        mem.load_image(out)
        assert mem.words(AddrSpace.CODE)[:2] == [make_word(0, 1), make_word(2, 2)]

    def test_rejected_delete_returns_1(self, image, tmp_path, capsys):
        out = tmp_path / "patched"
        assert bitkit.main(["delete", str(image), "--space", "data", "--at", "1",
                            "-o", str(out)]) == 1
        assert "rejected" in capsys.readouterr().err


class TestLogging:

    def test_log_file_gets_debug_records(self, image, tmp_path):
        log_file = tmp_path / "logs" / "bitkit.log"
        bitkit.main(["--log-file", str(log_file), "run", str(image)])
        text = log_file.read_text(encoding="utf-8")
        assert "| INFO    | bitcomp.emu | run:" in text
        assert "| DEBUG   | bitcomp.emu | step:" in text
