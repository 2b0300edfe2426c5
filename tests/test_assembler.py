"""Tests for the ACC8 assembler."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest
from acc8.assembler import (
    AssemblyError,
    SourceItem,
    assemble,
    parse_immediate,
    parse_program,
    resolve_operand,
)
from acc8.registry import Opcode
from acc8.state import MEMORY_SIZE


class TestImmediates:
    """Test numeric operand parsing."""

    @pytest.mark.parametrize("text,value", [
        ("10", 10),
        ("0x1F", 31),
        ("0xff", 255),
        ("0b101", 5),
        (" 7 ", 7),
    ])
    def test_parse_immediate(self, text, value):
        assert parse_immediate(text) == value

    def test_parse_immediate_invalid(self):
        with pytest.raises(ValueError):
            parse_immediate("ten")

    def test_resolve_label(self):
        assert resolve_operand("loop", {"loop": 6}) == 6

    def test_resolve_number_before_label(self):
        assert resolve_operand("4", {"4": 100}) == 4

    def test_resolve_unknown(self):
        with pytest.raises(KeyError):
            resolve_operand("nowhere", {})


class TestParseProgram:
    """Test item placement and labels."""

    def test_items_and_labels(self):
        items, labels = parse_program("""
            LDR x
        loop:
            ADD x
            JNE loop
        x:  DB 1
        """)
        assert [item.mnemonic for item in items] == ["LDR", "ADD", "JNE", "DB"]
        assert [item.address for item in items] == [0, 2, 4, 6]
        assert labels == {"loop": 2, "x": 6}

    def test_comments_and_blank_lines(self):
        items, _ = parse_program("""
            ; header comment
            # another comment

            LDR 1   ; trailing comment
        """)
        assert items == [SourceItem(5, 0, "LDR", "1")]

    def test_case_insensitive_mnemonics(self):
        items, _ = parse_program("ldr 1\nStr 2")
        assert [item.mnemonic for item in items] == ["LDR", "STR"]

    def test_org_moves_cursor(self):
        items, labels = parse_program("LDR 1\nORG 0x20\nhere: DB 3")
        assert items[1].address == 0x20
        assert labels["here"] == 0x20

    def test_unknown_mnemonic(self):
        with pytest.raises(AssemblyError) as excinfo:
            parse_program("LDR 1\nMOV 2")
        assert excinfo.value.line_number == 2

    def test_missing_operand(self):
        with pytest.raises(AssemblyError, match="operand"):
            parse_program("JMP")

    def test_duplicate_label(self):
        with pytest.raises(AssemblyError, match="Duplicate label"):
            parse_program("a: DB 1\na: DB 2")

    @pytest.mark.parametrize("org", ["256", "-1", "far"])
    def test_bad_org(self, org):
        with pytest.raises(AssemblyError):
            parse_program(f"ORG {org}")

    def test_overflow(self):
        with pytest.raises(AssemblyError, match="fit"):
            parse_program("ORG 255\nLDR 0")


class TestAssemble:
    """Test memory image generation."""

    def test_image_size(self):
        assert assemble("") == [0] * MEMORY_SIZE

    def test_encoding(self):
        image = assemble("LDR 10\nJNE 0\nORG 10\nDB 5")
        assert image[:4] == [int(Opcode.LDR), 10, int(Opcode.JNE), 0]
        assert image[10] == 5

    def test_forward_label(self):
        image = assemble("JMP end\nDB 9\nend: JMP end")
        assert image[:2] == [int(Opcode.JMP), 3]
        assert image[3:5] == [int(Opcode.JMP), 3]

    def test_unknown_label(self):
        with pytest.raises(AssemblyError, match="Unknown label"):
            assemble("JMP nowhere")

    def test_byte_out_of_range(self):
        with pytest.raises(AssemblyError, match="Byte"):
            assemble("DB 256")

    def test_address_out_of_range(self):
        with pytest.raises(AssemblyError, match="Address"):
            assemble("LDR 0x100")

    def test_assembly_error_is_value_error(self):
        with pytest.raises(ValueError):
            assemble("NOPE 1")
