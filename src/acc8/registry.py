"""InstructionRegistry: Opcode primitives for the ACC8 machine.

This module implements the registry pattern for the instruction set:
each opcode maps to one effect primitive and one listing template, and the
registry is frozen after initialization.

Registry Keys:
    ADD: ACC <- ACC + [addr]
    AND: ACC <- ACC & [addr]
    ORR: ACC <- ACC | [addr]
    XOR: ACC <- ACC ^ [addr]
    LDR: ACC <- [addr]
    STR: [addr] <- ACC
    JMP: PC <- addr
    JNE: PC <- addr if ACC != 0

Each primitive has the signature (ProcessorState, address) -> None and
only applies the opcode-specific effect. Advancing PC and truncating the
registers is done once, by Instruction.execute, for every opcode.
"""

from enum import IntEnum
from typing import Callable, Dict, Optional

from .state import INSTRUCTION_SIZE, ProcessorState


class Opcode(IntEnum):
    """Raw opcode byte values."""
    ADD = 0
    AND = 1
    ORR = 2
    XOR = 3
    LDR = 4
    STR = 5
    JMP = 6
    JNE = 7


# Jumps store (target - INSTRUCTION_SIZE) in PC; the uniform advance that
# follows every instruction then lands PC exactly on the target.
JUMP_ADVANCE_COMPENSATION = INSTRUCTION_SIZE

Effect = Callable[[ProcessorState, int], None]


class InstructionRegistry:
    """Frozen registry of opcode effects and listing templates.

    The registry refuses to freeze unless every Opcode member has both an
    effect and a template, so the tables cannot silently fall behind the
    enum.

    Attributes:
        _effects: Opcode -> effect primitive
        _templates: Opcode -> format string taking ``addr``
        _frozen: Whether the registry is locked against modifications
    """

    def __init__(self):
        self._effects: Dict[Opcode, Effect] = {}
        self._templates: Dict[Opcode, str] = {}
        self._frozen = False
        self._register_all_primitives()
        self.freeze()

    def _register_all_primitives(self) -> None:
        # Arithmetic and logic
        self.register(Opcode.ADD, self._op_add, "ADD: ACC <- ACC + [{addr}]")
        self.register(Opcode.AND, self._op_and, "AND: ACC <- ACC & [{addr}]")
        self.register(Opcode.ORR, self._op_orr, "ORR: ACC <- ACC | [{addr}]")
        self.register(Opcode.XOR, self._op_xor, "XOR: ACC <- ACC ^ [{addr}]")

        # Data movement
        self.register(Opcode.LDR, self._op_ldr, "LDR: ACC <- [{addr}]")
        self.register(Opcode.STR, self._op_str, "STR: ACC -> [{addr}]")

        # Control flow
        self.register(Opcode.JMP, self._op_jmp, "JMP: PC  <- {addr}")
        self.register(Opcode.JNE, self._op_jne, "JNE: PC  <- {addr} if ACC != 0")

    def register(self, opcode: Opcode, effect: Effect, template: str) -> None:
        """Register an opcode primitive.

        Args:
            opcode: Opcode the primitive implements
            effect: Function applying the opcode effect to a state
            template: Listing template, formatted with ``addr``

        Raises:
            RuntimeError: If registry is frozen
            ValueError: If opcode already registered
        """
        if self._frozen:
            raise RuntimeError("Cannot register primitives: registry is frozen")
        if opcode in self._effects:
            raise ValueError(f"Primitive already registered: {opcode.name}")
        self._effects[opcode] = effect
        self._templates[opcode] = template

    def freeze(self) -> None:
        """Freeze the registry to prevent further modifications.

        Raises:
            RuntimeError: If any opcode lacks a primitive
        """
        missing = [op.name for op in Opcode if op not in self._effects]
        if missing:
            raise RuntimeError(f"Opcodes without a primitive: {', '.join(missing)}")
        self._frozen = True

    def is_frozen(self) -> bool:
        return self._frozen

    def get_valid_opcodes(self) -> set:
        """Get set of all registered opcodes."""
        return set(self._effects.keys())

    def apply(self, opcode: Opcode, state: ProcessorState, address: int) -> None:
        """Apply the opcode-specific effect to a state.

        Args:
            opcode: Opcode to apply
            state: State to mutate
            address: Operand address (already masked)

        Raises:
            KeyError: If opcode not in registry
        """
        self._effects[opcode](state, address)

    def render(self, opcode: Opcode, address: int) -> str:
        """Render the listing text for an opcode and operand."""
        return self._templates[opcode].format(addr=address)

    # =========================================================================
    # Arithmetic and Logic Primitives
    # =========================================================================

    @staticmethod
    def _op_add(state: ProcessorState, address: int) -> None:
        # Overflow wraps when the caller truncates ACC
        state.acc += state.read(address)

    @staticmethod
    def _op_and(state: ProcessorState, address: int) -> None:
        state.acc &= state.read(address)

    @staticmethod
    def _op_orr(state: ProcessorState, address: int) -> None:
        state.acc |= state.read(address)

    @staticmethod
    def _op_xor(state: ProcessorState, address: int) -> None:
        state.acc ^= state.read(address)

    # =========================================================================
    # Data Movement Primitives
    # =========================================================================

    @staticmethod
    def _op_ldr(state: ProcessorState, address: int) -> None:
        state.acc = state.read(address)

    @staticmethod
    def _op_str(state: ProcessorState, address: int) -> None:
        state.write(address, state.acc)

    # =========================================================================
    # Control Flow Primitives
    # =========================================================================

    @staticmethod
    def _op_jmp(state: ProcessorState, address: int) -> None:
        """JMP addr - Unconditional jump.

        PC is set to ``address - JUMP_ADVANCE_COMPENSATION``; the advance
        applied after every instruction brings it to ``address``. For a
        target of 0 the intermediate value is negative and is brought back
        into range by the same advance.
        """
        state.pc = address - JUMP_ADVANCE_COMPENSATION

    @staticmethod
    def _op_jne(state: ProcessorState, address: int) -> None:
        """JNE addr - Jump if ACC is not zero, otherwise fall through.

        Uses the same compensation as JMP.
        """
        if state.acc != 0:
            state.pc = address - JUMP_ADVANCE_COMPENSATION


# Singleton registry instance
_registry: Optional[InstructionRegistry] = None


def get_registry() -> InstructionRegistry:
    """Get the singleton instruction registry.

    Returns:
        The frozen InstructionRegistry instance
    """
    global _registry
    if _registry is None:
        _registry = InstructionRegistry()
    return _registry
