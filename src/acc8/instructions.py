"""Instruction: Decoded ACC8 instructions.

Raw memory holds instructions as two bytes, an opcode byte followed by an
operand byte. ``decode`` maps such a pair to an immutable Instruction, or
to None when the opcode byte is not one of the eight known values.

Execution is the same for every opcode:
    1. apply the opcode effect from the registry
    2. advance PC by INSTRUCTION_SIZE
    3. truncate ACC and PC to the architecture width
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from .registry import Opcode, get_registry
from .state import INSTRUCTION_SIZE, ProcessorState, mask


@dataclass(frozen=True)
class Instruction:
    """One decoded instruction.

    Attributes:
        opcode: Operation selector
        address: Operand address, masked to the address space
    """
    opcode: Opcode
    address: int

    def __post_init__(self):
        object.__setattr__(self, "opcode", Opcode(self.opcode))
        object.__setattr__(self, "address", mask(self.address))

    @property
    def name(self) -> str:
        return self.opcode.name

    def execute(self, state: ProcessorState) -> None:
        """Execute this instruction against a state, in place.

        Args:
            state: Processor state to mutate
        """
        get_registry().apply(self.opcode, state, self.address)
        state.pc += INSTRUCTION_SIZE
        state.truncate()

    def encode(self) -> Tuple[int, int]:
        """Return the raw (opcode, operand) byte pair."""
        return int(self.opcode), self.address

    def to_string(self) -> str:
        """Human-readable listing text, e.g. ``LDR: ACC <- [10]``."""
        return get_registry().render(self.opcode, self.address)

    def __str__(self) -> str:
        return self.to_string()


def decode(opcode: int, address: int) -> Optional[Instruction]:
    """Decode a raw instruction.

    Args:
        opcode: Raw opcode byte
        address: Raw operand byte

    Returns:
        The matching Instruction, or None for an unknown opcode
    """
    try:
        op = Opcode(opcode)
    except ValueError:
        return None
    return Instruction(op, address)
