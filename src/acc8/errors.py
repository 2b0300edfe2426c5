"""Exceptions raised inside the ACC8 core.

None of these cross the Acc8Emulator boundary: the emulator catches them,
records the instance in ``last_error`` and returns a status instead.
"""

from typing import Optional


class EmulatorError(Exception):
    """Base class for every fault the emulator can report."""


class AlignmentFault(EmulatorError):
    """PC was odd at fetch time."""

    def __init__(self, pc: int):
        super().__init__(f"Misaligned PC: {pc}")
        self.pc = pc


class DecodeFault(EmulatorError):
    """The opcode byte at PC is not one of the eight known opcodes."""

    def __init__(self, pc: int, opcode: int):
        super().__init__(f"Unknown opcode {opcode} at PC={pc}")
        self.pc = pc
        self.opcode = opcode


class BreakpointError(EmulatorError):
    pass


class BreakpointTableFull(BreakpointError):
    pass


class DuplicateBreakpoint(BreakpointError):
    pass


class BreakpointNotFound(BreakpointError):
    pass


class StateFileError(EmulatorError, ValueError):
    """A state file could not be parsed.

    Attributes:
        line_number: 1-based line where parsing stopped (None if unknown)
    """

    def __init__(self, message: str, line_number: Optional[int] = None):
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)
        self.line_number = line_number
