"""Acc8Emulator: Fetch-decode-execute engine for the ACC8 machine.

This module implements the execution pipeline:
    MEMORY -> FETCH -> DECODE -> EXECUTE -> STATE -> BREAKPOINT CHECK

The emulator owns the processor state, the breakpoint table and the cycle
counter. Every public operation reports failure as a status (a RunResult or
a bool); the fault that caused it is kept in ``last_error``.
"""

import enum
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

from .assembler import assemble
from .breakpoints import Breakpoint, BreakpointTable, Key
from .errors import AlignmentFault, BreakpointError, DecodeFault, EmulatorError, StateFileError
from .instructions import Instruction, decode
from .persistence import StateImage, read_state_file, write_state_file
from .state import INSTRUCTION_SIZE, MAX_INSTRUCTIONS, MEMORY_SIZE, ProcessorState, create_initial_state

log = logging.getLogger(__name__)


class RunResult(enum.Enum):
    """Outcome of ``Acc8Emulator.run``.

    COMPLETED and BREAKPOINT are both successful runs and are truthy;
    FAULT is falsy.
    """
    COMPLETED = "completed"
    BREAKPOINT = "breakpoint"
    FAULT = "fault"

    def __bool__(self) -> bool:
        return self is not RunResult.FAULT


@dataclass
class ExecutionTraceEntry:
    """Single entry in the execution trace.

    Attributes:
        cycle: Cycle count after this step (unchanged for a faulted step)
        pc: Address the instruction was fetched from
        opcode: Raw opcode byte
        address: Raw operand byte
        text: Listing text, or None if the opcode did not decode
        pre_state: Register snapshot before execution
        post_state: Register snapshot after execution
        error: Error message if the step faulted
    """
    cycle: int
    pc: int
    opcode: int
    address: int
    text: Optional[str]
    pre_state: dict
    post_state: dict
    error: Optional[str] = None


@dataclass
class ProgramLine:
    """One two-byte word of a program listing."""
    offset: int
    opcode: int
    operand: int
    text: Optional[str] = None


class Acc8Emulator:
    """ACC8 machine emulator.

    Attributes:
        state: Current processor state
        total_cycles: Successfully executed instructions since load/reset
        trace_enabled: Whether executed steps are recorded
        trace: Execution trace entries
        last_error: Fault reported by the most recent failing operation
    """

    def __init__(self, trace: bool = False, breakpoint_capacity: int = MAX_INSTRUCTIONS):
        """Initialize the emulator with zeroed state and no breakpoints.

        Args:
            trace: Record an ExecutionTraceEntry for every step
            breakpoint_capacity: Maximum number of breakpoints
        """
        self.state: ProcessorState = create_initial_state()
        self.total_cycles = 0
        self.trace_enabled = trace
        self.trace: List[ExecutionTraceEntry] = []
        self.last_error: Optional[EmulatorError] = None
        self._breakpoints = BreakpointTable(capacity=breakpoint_capacity)

    # =========================================================================
    # Program loading
    # =========================================================================

    def reset(self) -> None:
        """Zero the state, the cycle counter and the trace; keep breakpoints."""
        self.state = create_initial_state()
        self.total_cycles = 0
        self.trace = []
        self.last_error = None

    def load_program(self, source: str) -> None:
        """Assemble a program and load it at address 0.

        Args:
            source: Assembly source code

        Raises:
            AssemblyError: If the source is invalid; state is left untouched
        """
        image = assemble(source)
        self.reset()
        self.state.memory = image

    def load_memory(self, values: Sequence[int], origin: int = 0) -> None:
        """Write raw cell values starting at ``origin``.

        Raises:
            ValueError: If the values do not fit in memory
        """
        if origin < 0 or origin + len(values) > MEMORY_SIZE:
            raise ValueError(f"{len(values)} cells at {origin} do not fit in memory")
        for offset, value in enumerate(values):
            self.state.write(origin + offset, value)

    def write_mem(self, address: int, value: int) -> None:
        self.state.write(address, value)

    # =========================================================================
    # Main emulation loop
    # =========================================================================

    def fetch(self) -> Tuple[int, int]:
        return self.state.fetch()

    def _step(self) -> Instruction:
        """Execute one instruction.

        Raises:
            AlignmentFault: If PC is odd
            DecodeFault: If the opcode byte is unknown
        """
        pc = self.state.pc
        if pc % INSTRUCTION_SIZE != 0:
            raise AlignmentFault(pc)

        opcode, address = self.fetch()
        instr = decode(opcode, address)
        if instr is None:
            raise DecodeFault(pc, opcode)

        pre_state = self.state.snapshot()
        instr.execute(self.state)
        self.total_cycles += 1
        log.debug("[%d] %d: %s -> %s", self.total_cycles, pc, instr, self.state)

        if self.trace_enabled:
            self.trace.append(ExecutionTraceEntry(
                cycle=self.total_cycles,
                pc=pc,
                opcode=opcode,
                address=address,
                text=instr.to_string(),
                pre_state=pre_state,
                post_state=self.state.snapshot(),
            ))
        return instr

    def _record_fault(self, error: EmulatorError) -> None:
        self.last_error = error
        log.warning("Execution fault: %s", error)
        if self.trace_enabled:
            pc = self.state.pc
            opcode, address = (0, 0) if pc % INSTRUCTION_SIZE else self.fetch()
            snapshot = self.state.snapshot()
            self.trace.append(ExecutionTraceEntry(
                cycle=self.total_cycles,
                pc=pc,
                opcode=opcode,
                address=address,
                text=None,
                pre_state=snapshot,
                post_state=snapshot,
                error=str(error),
            ))

    def run(self, steps: int) -> RunResult:
        """Execute up to ``steps`` instructions.

        The loop stops early on a fault, or after an instruction that
        leaves PC on a breakpoint. The breakpoint check follows execution,
        so a breakpoint at the starting PC does not stop the first step.

        Args:
            steps: Maximum number of instructions to execute

        Returns:
            COMPLETED after ``steps`` instructions (or for steps <= 0),
            BREAKPOINT if a breakpoint was reached, FAULT on an alignment
            or decode fault
        """
        self.last_error = None

        for _ in range(steps):
            try:
                self._step()
            except (AlignmentFault, DecodeFault) as e:
                self._record_fault(e)
                return RunResult.FAULT

            if self.is_breakpoint():
                log.info("Stopped at breakpoint %s (PC=%d)",
                         self._breakpoints.find(self.state.pc).name, self.state.pc)
                return RunResult.BREAKPOINT

        return RunResult.COMPLETED

    def step(self) -> RunResult:
        """Execute a single instruction."""
        return self.run(1)

    # =========================================================================
    # Breakpoint management
    # =========================================================================

    def insert_breakpoint(self, address: int, name: str) -> bool:
        """Add a breakpoint.

        Fails if the table is full, the address or the name is already
        used, or the name is empty or contains whitespace.

        Returns:
            True on success
        """
        self.last_error = None
        try:
            self._breakpoints.insert(address, name)
        except BreakpointError as e:
            self.last_error = e
            log.debug("Breakpoint not inserted: %s", e)
            return False
        except ValueError as e:
            self.last_error = BreakpointError(str(e))
            log.debug("Breakpoint not inserted: %s", e)
            return False
        return True

    def delete_breakpoint(self, key: Key) -> bool:
        """Remove the breakpoint with the given address (int) or name (str).

        Returns:
            True if a breakpoint was removed
        """
        self.last_error = None
        try:
            self._breakpoints.delete(key)
        except BreakpointError as e:
            self.last_error = e
            log.debug("Breakpoint not deleted: %s", e)
            return False
        return True

    def find_breakpoint(self, key: Key) -> Optional[Breakpoint]:
        return self._breakpoints.find(key)

    def num_breakpoints(self) -> int:
        return len(self._breakpoints)

    def breakpoints(self) -> List[Breakpoint]:
        """Get all breakpoints in insertion order."""
        return list(self._breakpoints)

    def is_breakpoint(self) -> bool:
        """Check whether the current PC is a breakpoint address."""
        return self.state.pc in self._breakpoints

    # =========================================================================
    # State accessors
    # =========================================================================

    def cycles(self) -> int:
        return self.total_cycles

    def read_acc(self) -> int:
        return self.state.acc

    def read_pc(self) -> int:
        return self.state.pc

    def read_mem(self, address: int) -> int:
        """Read a memory cell; the address is masked to the address space."""
        return self.state.read(address)

    def is_zero(self) -> bool:
        return self.state.acc == 0

    # =========================================================================
    # Listing, trace and summary
    # =========================================================================

    def list_program(self) -> List[ProgramLine]:
        """Disassemble memory, one entry per two-byte word.

        Words that do not decode, and all-zero words, carry no text.

        Returns:
            List of ProgramLine covering the whole memory
        """
        listing = []
        for offset in range(0, MEMORY_SIZE, INSTRUCTION_SIZE):
            opcode, operand = self.state.memory[offset], self.state.memory[offset + 1]
            instr = decode(opcode, operand)
            text = None
            if instr is not None and (opcode, operand) != (0, 0):
                text = instr.to_string()
            listing.append(ProgramLine(offset, opcode, operand, text))
        return listing

    def get_trace(self) -> List[ExecutionTraceEntry]:
        return list(self.trace)

    def get_summary(self) -> Dict:
        """Get execution summary.

        Returns:
            Dictionary with cycle count, registers, breakpoints and errors
        """
        return {
            "cycles": self.total_cycles,
            "acc": self.state.acc,
            "pc": self.state.pc,
            "breakpoints": [(bp.address, bp.name) for bp in self._breakpoints],
            "trace_length": len(self.trace),
            "last_error": str(self.last_error) if self.last_error else None,
        }

    # =========================================================================
    # State persistence
    # =========================================================================

    def load_state(self, path: Union[str, Path]) -> bool:
        """Load a full machine image from a state file.

        The breakpoint table is cleared before the file is read, even when
        loading then fails. State and cycles are replaced only when the
        whole file parsed.

        Args:
            path: State file to read

        Returns:
            True on success
        """
        self.last_error = None
        self._breakpoints.clear()

        try:
            image = read_state_file(path, self._breakpoints.capacity)
        except (OSError, UnicodeDecodeError) as e:
            self.last_error = StateFileError(f"cannot read {path}: {e}")
            log.warning("Failed to load state: %s", self.last_error)
            return False
        except StateFileError as e:
            self.last_error = e
            log.warning("Failed to load state from %s: %s", path, e)
            return False

        self.state = image.state
        self.total_cycles = image.total_cycles
        self.trace = []
        for bp in image.breakpoints:
            self._breakpoints.insert(bp.address, bp.name)

        log.info("Loaded state from %s (PC=%d, %d breakpoints)",
                 path, self.state.pc, len(self._breakpoints))
        return True

    def save_state(self, path: Union[str, Path]) -> bool:
        """Save the full machine image to a state file.

        A state that could not be loaded back (a register or memory cell
        assigned out of range from outside) is not written.

        Returns:
            True on success, False if the state is invalid or the file could
            not be written
        """
        self.last_error = None
        if not self.state.validate():
            self.last_error = StateFileError(f"refusing to save invalid state ({self.state})")
            log.warning("Failed to save state: %s", self.last_error)
            return False

        image = StateImage(
            total_cycles=self.total_cycles,
            state=self.state.copy(),
            breakpoints=list(self._breakpoints),
        )

        try:
            write_state_file(path, image)
        except (OSError, UnicodeError) as e:
            self.last_error = StateFileError(f"cannot write {path}: {e}")
            log.warning("Failed to save state: %s", self.last_error)
            return False
        return True
