"""ProcessorState: Register file and memory for the ACC8 machine.

This module defines the architecture constants and the single mutable
state value that every instruction operates on.

State Components:
    - ACC: Accumulator (the only general-purpose register)
    - PC: Program counter (byte address of the next instruction)
    - Memory: MEMORY_SIZE cells, each an ARCH_BITS-wide unsigned integer

The state is owned by exactly one emulator and mutated in place. Values
are truncated to the architecture width after every mutation; evenness of
the PC is a property of the fetch loop, not of the state.
"""

from dataclasses import dataclass, field
from typing import List, Tuple


# Architecture parameters
ARCH_BITS = 8
ARCH_BITMASK = (1 << ARCH_BITS) - 1
ARCH_MAXVAL = ARCH_BITMASK
MEMORY_SIZE = 1 << ARCH_BITS

# Every instruction is an opcode byte followed by an operand byte
INSTRUCTION_SIZE = 2
MAX_INSTRUCTIONS = MEMORY_SIZE // INSTRUCTION_SIZE


def mask(value: int) -> int:
    """Truncate a value to the architecture width."""
    return value & ARCH_BITMASK


@dataclass
class ProcessorState:
    """Mutable processor state.

    Attributes:
        acc: Accumulator, in [0, ARCH_MAXVAL]
        pc: Program counter, in [0, MEMORY_SIZE)
        memory: MEMORY_SIZE cells, each in [0, ARCH_MAXVAL]
    """
    acc: int = 0
    pc: int = 0
    memory: List[int] = field(default_factory=lambda: [0] * MEMORY_SIZE)

    def read(self, address: int) -> int:
        """Read one memory cell; the address is masked first."""
        return self.memory[mask(address)]

    def write(self, address: int, value: int) -> None:
        """Write one memory cell; both address and value are masked."""
        self.memory[mask(address)] = mask(value)

    def fetch(self) -> Tuple[int, int]:
        """Return the raw (opcode, operand) pair stored at PC."""
        return self.memory[self.pc], self.memory[self.pc + 1]

    def truncate(self) -> None:
        """Mask ACC and PC back into the architecture width."""
        self.acc = mask(self.acc)
        self.pc = mask(self.pc)

    def snapshot(self) -> dict:
        """Create a snapshot of the registers for tracing.

        Returns:
            Dictionary with ACC and PC values
        """
        return {
            "acc": self.acc,
            "pc": self.pc,
            # Memory excluded; a trace entry records the instruction instead
        }

    def validate(self) -> bool:
        """Validate state integrity.

        Checks:
            - ACC is within [0, ARCH_MAXVAL]
            - PC is within [0, MEMORY_SIZE)
            - Memory has exactly MEMORY_SIZE cells, each in range

        Returns:
            True if state is valid, False otherwise
        """
        if not isinstance(self.acc, int) or not 0 <= self.acc <= ARCH_MAXVAL:
            return False

        if not isinstance(self.pc, int) or not 0 <= self.pc < MEMORY_SIZE:
            return False

        if len(self.memory) != MEMORY_SIZE:
            return False

        for value in self.memory:
            if not isinstance(value, int) or not 0 <= value <= ARCH_MAXVAL:
                return False

        return True

    def copy(self) -> "ProcessorState":
        """Return an independent copy of this state."""
        return ProcessorState(acc=self.acc, pc=self.pc, memory=list(self.memory))

    def __str__(self) -> str:
        """Human-readable state representation."""
        return f"PC={self.pc} ACC={self.acc}"


def create_initial_state() -> ProcessorState:
    """Create a zeroed processor state.

    Returns:
        Fresh ProcessorState with ACC, PC and all memory cells at zero
    """
    return ProcessorState(acc=0, pc=0, memory=[0] * MEMORY_SIZE)
