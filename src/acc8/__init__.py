"""ACC8: Emulator for a minimal single-accumulator machine.

The machine has one 8-bit accumulator, an 8-bit program counter, 256 bytes
of memory and eight two-byte instructions (ADD, AND, ORR, XOR, LDR, STR,
JMP, JNE).

Architecture:
    MEMORY -> FETCH -> DECODE -> EXECUTE -> STATE -> BREAKPOINT CHECK
               |         |         |
           [PC-based] [Opcode]  [Registry]

Modules:
    state: ProcessorState and architecture constants
    registry: Opcode effect primitives and listing templates
    instructions: Instruction value type and raw decoder
    breakpoints: Breakpoint table
    persistence: State file load/save
    assembler: Text assembler for programs
    emulator: Acc8Emulator orchestrator
"""

__version__ = "0.1.0"

from .state import ProcessorState
from .registry import Opcode, InstructionRegistry
from .instructions import Instruction, decode
from .breakpoints import Breakpoint, BreakpointTable
from .assembler import assemble, AssemblyError
from .emulator import Acc8Emulator, RunResult

__all__ = [
    "ProcessorState",
    "Opcode",
    "InstructionRegistry",
    "Instruction",
    "decode",
    "Breakpoint",
    "BreakpointTable",
    "assemble",
    "AssemblyError",
    "Acc8Emulator",
    "RunResult",
]
