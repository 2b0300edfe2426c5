"""Breakpoint table for the ACC8 emulator.

Breakpoints are (address, name) pairs. Both fields are unique within a
table, so a lookup by either key matches at most one entry. The table keeps
insertion order and deletes without reordering the remaining entries.
"""

from dataclasses import dataclass
from typing import Iterator, List, Optional, Union

from .errors import BreakpointNotFound, BreakpointTableFull, DuplicateBreakpoint
from .state import MAX_INSTRUCTIONS, mask

Key = Union[int, str]


@dataclass(frozen=True)
class Breakpoint:
    """A named execution breakpoint.

    Attributes:
        address: PC value that stops execution (masked on construction)
        name: Unique identifier
    """
    address: int
    name: str

    def __post_init__(self):
        object.__setattr__(self, "address", mask(self.address))

    def has(self, key: Key) -> bool:
        """Check whether this breakpoint matches an address or a name."""
        if isinstance(key, str):
            return self.name == key
        return self.address == mask(key)


class BreakpointTable:
    """Ordered, bounded collection of breakpoints.

    Attributes:
        capacity: Maximum number of entries
    """

    def __init__(self, capacity: int = MAX_INSTRUCTIONS):
        self.capacity = capacity
        self._entries: List[Breakpoint] = []

    def insert(self, address: int, name: str) -> Breakpoint:
        """Append a new breakpoint.

        Args:
            address: Breakpoint address
            name: Breakpoint name; must be non-empty and free of whitespace

        Returns:
            The inserted Breakpoint

        Raises:
            BreakpointTableFull: If the table is at capacity
            DuplicateBreakpoint: If the address or the name is already used
            ValueError: If the name is not a string, is empty, or contains
                whitespace
        """
        if len(self._entries) >= self.capacity:
            raise BreakpointTableFull(f"Breakpoint table full ({self.capacity} entries)")

        if self.find(address) is not None:
            raise DuplicateBreakpoint(f"Breakpoint already set at address {mask(address)}")

        # Checked before the name lookup: an int name would match an address
        if not isinstance(name, str) or not name or any(ch.isspace() for ch in name):
            raise ValueError(f"Invalid breakpoint name: {name!r}")

        if self.find(name) is not None:
            raise DuplicateBreakpoint(f"Breakpoint name already used: {name}")

        breakpoint_ = Breakpoint(address, name)
        self._entries.append(breakpoint_)
        return breakpoint_

    def index_of(self, key: Key) -> Optional[int]:
        """Return the position of the entry matching an address or a name."""
        for idx, entry in enumerate(self._entries):
            if entry.has(key):
                return idx
        return None

    def find(self, key: Key) -> Optional[Breakpoint]:
        """Find a breakpoint by address (int) or name (str).

        Returns:
            The matching Breakpoint, or None
        """
        idx = self.index_of(key)
        if idx is None:
            return None
        return self._entries[idx]

    def delete(self, key: Key) -> Breakpoint:
        """Remove the breakpoint matching an address or a name.

        Later entries keep their relative order.

        Returns:
            The removed Breakpoint

        Raises:
            BreakpointNotFound: If no entry matches
        """
        idx = self.index_of(key)
        if idx is None:
            raise BreakpointNotFound(f"No breakpoint matching {key!r}")
        return self._entries.pop(idx)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Breakpoint]:
        return iter(list(self._entries))

    def __contains__(self, address: object) -> bool:
        # Membership is by address only; this is the per-step check
        if not isinstance(address, int):
            return False
        return self.index_of(address) is not None
