"""Tests for state file load/save."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest
from acc8 import Acc8Emulator, Opcode, RunResult
from acc8.errors import StateFileError
from acc8.persistence import StateImage, format_state, parse_state, read_state_file
from acc8.state import MEMORY_SIZE, ProcessorState


def state_text(cycles="0", acc="0", pc="0", memory=None, breakpoints=()):
    """Build state file contents from its sections."""
    if memory is None:
        memory = ["0"] * MEMORY_SIZE
    lines = [cycles, acc, pc] + list(memory) + list(breakpoints)
    return "\n".join(lines) + "\n"


@pytest.fixture
def emu():
    return Acc8Emulator()


class TestParseState:
    """Test parsing of state file contents."""

    def test_minimal(self):
        image = parse_state(state_text(cycles="12", acc="5", pc="2"))
        assert image.total_cycles == 12
        assert image.state.acc == 5
        assert image.state.pc == 2
        assert image.state.memory == [0] * MEMORY_SIZE
        assert image.breakpoints == []

    def test_memory_and_breakpoints(self):
        memory = [str(i % 256) for i in range(MEMORY_SIZE)]
        image = parse_state(state_text(memory=memory, breakpoints=["2 loop", "8 done"]))
        assert image.state.memory[255] == 255
        assert [(bp.address, bp.name) for bp in image.breakpoints] == [(2, "loop"), (8, "done")]

    def test_whitespace_around_values(self):
        memory = ["  7  "] + ["0"] * (MEMORY_SIZE - 1)
        image = parse_state(state_text(acc=" 3", memory=memory))
        assert image.state.acc == 3
        assert image.state.memory[0] == 7

    def test_blank_breakpoint_lines_skipped(self):
        image = parse_state(state_text(breakpoints=["", "4 a", "   ", "6 b"]))
        assert len(image.breakpoints) == 2

    def test_no_trailing_newline(self):
        text = state_text(breakpoints=["4 a"]).rstrip("\n")
        assert len(parse_state(text).breakpoints) == 1

    def test_empty_file(self):
        with pytest.raises(StateFileError):
            parse_state("")

    @pytest.mark.parametrize("kwargs", [
        {"cycles": "-1"},
        {"cycles": "many"},
        {"cycles": ""},
        {"acc": "256"},
        {"acc": "-1"},
        {"acc": "5 extra"},
        {"pc": "256"},
        {"pc": "0x10"},
    ])
    def test_bad_header(self, kwargs):
        with pytest.raises(StateFileError):
            parse_state(state_text(**kwargs))

    def test_truncated_memory(self):
        with pytest.raises(StateFileError, match="memory cell 255"):
            parse_state(state_text(memory=["0"] * (MEMORY_SIZE - 1)))

    @pytest.mark.parametrize("cell", ["", "256", "-3", "1 2", "x", "1.5"])
    def test_bad_memory_cell(self, cell):
        memory = ["0"] * MEMORY_SIZE
        memory[100] = cell
        with pytest.raises(StateFileError) as excinfo:
            parse_state(state_text(memory=memory))
        assert excinfo.value.line_number == 3 + 100 + 1

    @pytest.mark.parametrize("line", [
        "4",
        "4 a b",
        "x name",
        "256 name",
        "-2 name",
    ])
    def test_bad_breakpoint_line(self, line):
        with pytest.raises(StateFileError):
            parse_state(state_text(breakpoints=[line]))

    def test_duplicate_breakpoint_address(self):
        with pytest.raises(StateFileError, match="rejected"):
            parse_state(state_text(breakpoints=["4 a", "4 b"]))

    def test_duplicate_breakpoint_name(self):
        with pytest.raises(StateFileError):
            parse_state(state_text(breakpoints=["4 a", "6 a"]))

    def test_breakpoint_capacity(self):
        with pytest.raises(StateFileError):
            parse_state(state_text(breakpoints=["0 a", "2 b"]), breakpoint_capacity=1)


class TestFormatState:
    """Test rendering of state file contents."""

    def test_layout(self):
        state = ProcessorState(acc=5, pc=2)
        state.memory[10] = 7
        image = StateImage(total_cycles=3, state=state)
        lines = format_state(image).splitlines()

        assert len(lines) == 3 + MEMORY_SIZE
        assert lines[:3] == ["3", "5", "2"]
        assert lines[3 + 10] == "7"

    def test_parse_inverts_format(self):
        text = state_text(cycles="9", acc="1", pc="4", breakpoints=["4 here"])
        assert format_state(parse_state(text)) == text


class TestLoadState:
    """Test Acc8Emulator.load_state."""

    def test_load(self, emu, tmp_path):
        memory = ["0"] * MEMORY_SIZE
        memory[0], memory[1], memory[10] = str(int(Opcode.LDR)), "10", "5"
        path = tmp_path / "state.txt"
        path.write_text(state_text(cycles="7", memory=memory, breakpoints=["2 after"]))

        assert emu.load_state(path) is True
        assert emu.cycles() == 7
        assert emu.read_mem(10) == 5
        assert emu.find_breakpoint("after").address == 2

        assert emu.run(5) is RunResult.BREAKPOINT
        assert emu.read_acc() == 5
        assert emu.cycles() == 8

    def test_load_accepts_str_path(self, emu, tmp_path):
        path = tmp_path / "state.txt"
        path.write_text(state_text())
        assert emu.load_state(str(path)) is True

    def test_missing_file(self, emu, tmp_path):
        assert emu.load_state(tmp_path / "missing.txt") is False
        assert isinstance(emu.last_error, StateFileError)

    def test_binary_file(self, emu, tmp_path):
        path = tmp_path / "state.bin"
        path.write_bytes(b"\xff\xfe\x00\x81")
        assert emu.load_state(path) is False

    def test_failed_load_clears_breakpoints(self, emu, tmp_path):
        """Breakpoints are cleared even when the load fails."""
        emu.insert_breakpoint(4, "old")
        emu.write_mem(0, 3)
        path = tmp_path / "bad.txt"
        path.write_text(state_text(acc="999"))

        assert emu.load_state(path) is False
        assert emu.num_breakpoints() == 0
        assert emu.read_mem(0) == 3

    def test_load_replaces_breakpoints(self, emu, tmp_path):
        emu.insert_breakpoint(4, "old")
        path = tmp_path / "state.txt"
        path.write_text(state_text(breakpoints=["6 new"]))

        assert emu.load_state(path) is True
        assert emu.find_breakpoint("old") is None
        assert emu.find_breakpoint(6).name == "new"

    def test_load_duplicate_breakpoint_fails(self, emu, tmp_path):
        path = tmp_path / "state.txt"
        path.write_text(state_text(breakpoints=["6 a", "6 b"]))
        assert emu.load_state(path) is False
        assert emu.num_breakpoints() == 0

    def test_load_truncated_memory_fails(self, emu, tmp_path):
        path = tmp_path / "state.txt"
        path.write_text(state_text(memory=["0"] * 10))
        assert emu.load_state(path) is False

    def test_emulator_usable_after_failed_load(self, emu, tmp_path):
        path = tmp_path / "bad.txt"
        path.write_text("nonsense\n")
        assert emu.load_state(path) is False
        assert emu.run(2) is RunResult.COMPLETED
        assert emu.insert_breakpoint(0, "ok") is True

    def test_load_odd_pc_then_fault(self, emu, tmp_path):
        """An odd PC is a valid file; running it faults."""
        path = tmp_path / "state.txt"
        path.write_text(state_text(pc="3"))
        assert emu.load_state(path) is True
        assert emu.run(1) is RunResult.FAULT


class TestSaveState:
    """Test Acc8Emulator.save_state and round trips."""

    def test_round_trip(self, tmp_path):
        emu = Acc8Emulator()
        emu.load_program("""
                LDR value
                STR 200
        loop:   JMP loop
        value:  DB 42
        """)
        emu.insert_breakpoint(4, "loop")
        emu.insert_breakpoint(100, "far")
        emu.run(10)

        path = tmp_path / "saved.txt"
        assert emu.save_state(path) is True

        restored = Acc8Emulator()
        assert restored.load_state(path) is True
        assert restored.read_acc() == emu.read_acc() == 42
        assert restored.read_pc() == emu.read_pc()
        assert restored.cycles() == emu.cycles()
        assert restored.state.memory == emu.state.memory
        assert restored.read_mem(200) == 42
        assert set(restored.breakpoints()) == set(emu.breakpoints())

    def test_save_writes_layout(self, emu, tmp_path):
        emu.insert_breakpoint(8, "done")
        path = tmp_path / "saved.txt"
        emu.save_state(path)

        lines = path.read_text().splitlines()
        assert len(lines) == 3 + MEMORY_SIZE + 1
        assert lines[-1] == "8 done"

    def test_save_unwritable(self, emu, tmp_path):
        assert emu.save_state(tmp_path / "no" / "such" / "dir.txt") is False
        assert emu.last_error is not None

    def test_read_state_file(self, emu, tmp_path):
        path = tmp_path / "saved.txt"
        emu.save_state(path)
        assert read_state_file(path).total_cycles == 0

    def test_non_ascii_name_round_trip(self, emu, tmp_path):
        assert emu.insert_breakpoint(4, "schleifeä") is True
        path = tmp_path / "saved.txt"
        assert emu.save_state(path) is True

        # Always UTF-8, independent of the locale
        assert path.read_bytes().splitlines()[-1] == "4 schleifeä".encode("utf-8")

        restored = Acc8Emulator()
        assert restored.load_state(path) is True
        assert restored.find_breakpoint("schleifeä").address == 4

    def test_unencodable_name_reports_failure(self, emu, tmp_path):
        assert emu.insert_breakpoint(4, "bad\ud800") is True
        assert emu.save_state(tmp_path / "saved.txt") is False
        assert isinstance(emu.last_error, StateFileError)

    def test_invalid_state_not_saved(self, emu, tmp_path):
        emu.state.acc = 300
        path = tmp_path / "saved.txt"
        assert emu.save_state(path) is False
        assert isinstance(emu.last_error, StateFileError)
        assert not path.exists()
