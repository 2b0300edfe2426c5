"""Assembler: ACC8 assembly source to a memory image.

Syntax:
    - One instruction per line: ``MNEMONIC operand`` (case insensitive)
    - ``DB value`` emits one raw data byte
    - ``ORG address`` moves the output cursor
    - Labels: ``name:`` on its own line or before an instruction
    - Comments start with ``;`` or ``#``
    - Operands: decimal, ``0x`` hex, ``0b`` binary, or a label

Example:
        LDR count       ; ACC = count
    loop:
        ADD minus_one
        JNE loop
        JMP 0
    count:      DB 3
    minus_one:  DB 0xFF
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Tuple

from .registry import Opcode
from .state import ARCH_MAXVAL, INSTRUCTION_SIZE, MEMORY_SIZE

DIRECTIVES = {"DB", "ORG"}

_LABEL = re.compile(r'^([A-Za-z_][A-Za-z0-9_]*)\s*:\s*(.*)$')


class AssemblyError(ValueError):
    """Source could not be assembled."""

    def __init__(self, line_number: int, message: str):
        super().__init__(f"line {line_number}: {message}")
        self.line_number = line_number


@dataclass
class SourceItem:
    """One emitted item of a program.

    Attributes:
        line_number: 1-based source line
        address: Memory address the item is placed at
        mnemonic: Upper-case mnemonic or ``DB``
        operand: Operand text, not yet resolved
    """
    line_number: int
    address: int
    mnemonic: str
    operand: str

    @property
    def size(self) -> int:
        return 1 if self.mnemonic == "DB" else INSTRUCTION_SIZE


def parse_immediate(value: str) -> int:
    """Parse an immediate value (decimal, hex, or binary).

    Raises:
        ValueError: If value cannot be parsed
    """
    value = value.strip().upper()

    if value.startswith("0X"):
        return int(value, 16)

    if value.startswith("0B"):
        return int(value, 2)

    return int(value)


def resolve_operand(operand: str, labels: Dict[str, int]) -> int:
    """Resolve an operand to a number.

    Args:
        operand: Numeric literal or label name
        labels: Label-to-address mapping

    Returns:
        Operand value

    Raises:
        KeyError: If operand is neither a number nor a known label
    """
    try:
        return parse_immediate(operand)
    except ValueError:
        pass

    # Labels are case sensitive, unlike mnemonics
    if operand in labels:
        return labels[operand]

    raise KeyError(operand)


def parse_program(source: str) -> Tuple[List[SourceItem], Dict[str, int]]:
    """Parse assembly source into placed items and labels.

    Args:
        source: Assembly source code

    Returns:
        Tuple of (list of SourceItem, label-to-address dict)

    Raises:
        AssemblyError: On an unknown mnemonic, missing operand, duplicate
            label, bad ORG, or a program that overflows memory
    """
    items: List[SourceItem] = []
    labels: Dict[str, int] = {}
    cursor = 0

    for line_number, line in enumerate(source.split("\n"), start=1):
        line = re.sub(r'[;#].*$', '', line).strip()

        label_match = _LABEL.match(line)
        if label_match:
            label = label_match.group(1)
            if label in labels:
                raise AssemblyError(line_number, f"Duplicate label: {label}")
            labels[label] = cursor
            line = label_match.group(2).strip()

        if not line:
            continue

        parts = line.split(None, 1)
        mnemonic = parts[0].upper()
        if mnemonic not in Opcode.__members__ and mnemonic not in DIRECTIVES:
            raise AssemblyError(line_number, f"Unknown mnemonic: {parts[0]}")
        if len(parts) != 2:
            raise AssemblyError(line_number, f"{mnemonic} needs an operand")
        operand = parts[1].strip()

        if mnemonic == "ORG":
            try:
                cursor = parse_immediate(operand)
            except ValueError:
                raise AssemblyError(line_number, f"Invalid ORG address: {operand}") from None
            if not 0 <= cursor < MEMORY_SIZE:
                raise AssemblyError(line_number, f"ORG address out of range: {cursor}")
            continue

        item = SourceItem(line_number, cursor, mnemonic, operand)
        if cursor + item.size > MEMORY_SIZE:
            raise AssemblyError(line_number, "Program does not fit in memory")
        items.append(item)
        cursor += item.size

    return items, labels


def assemble(source: str) -> List[int]:
    """Assemble source into a full memory image.

    Args:
        source: Assembly source code

    Returns:
        List of MEMORY_SIZE cell values; unused cells are zero

    Raises:
        AssemblyError: If the source is invalid
    """
    items, labels = parse_program(source)
    image = [0] * MEMORY_SIZE

    for item in items:
        try:
            value = resolve_operand(item.operand, labels)
        except KeyError:
            raise AssemblyError(item.line_number, f"Unknown label: {item.operand}") from None

        if item.mnemonic == "DB":
            if not 0 <= value <= ARCH_MAXVAL:
                raise AssemblyError(item.line_number, f"Byte out of range: {value}")
            image[item.address] = value
        else:
            if not 0 <= value < MEMORY_SIZE:
                raise AssemblyError(item.line_number, f"Address out of range: {value}")
            image[item.address] = int(Opcode[item.mnemonic])
            image[item.address + 1] = value

    return image
