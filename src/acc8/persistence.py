"""State files: load and save a full ACC8 machine image.

File layout, one value per line:
    1. total cycles (non-negative integer)
    2. ACC, in [0, ARCH_MAXVAL]
    3. PC, in [0, MEMORY_SIZE)
    4. MEMORY_SIZE lines, one memory cell each, in [0, ARCH_MAXVAL]
    5. zero or more ``<address> <name>`` breakpoint lines, until end of file

Example (memory section shortened):
    12
    5
    2
    4
    10
    ...
    2 loop
    8 done
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Optional, Tuple, Union

from .breakpoints import Breakpoint, BreakpointTable
from .errors import BreakpointError, StateFileError
from .state import ARCH_MAXVAL, MAX_INSTRUCTIONS, MEMORY_SIZE, ProcessorState

log = logging.getLogger(__name__)

PathLike = Union[str, Path]

_INTEGER = re.compile(r"^-?[0-9]+$")


@dataclass
class StateImage:
    """Everything a state file holds.

    Attributes:
        total_cycles: Executed instruction count
        state: Registers and memory
        breakpoints: Breakpoints in file order
    """
    total_cycles: int = 0
    state: ProcessorState = field(default_factory=ProcessorState)
    breakpoints: List[Breakpoint] = field(default_factory=list)


def _parse_int(text: str, line_number: int, what: str, low: int, high: Optional[int]) -> int:
    """Parse a whole-line integer and check it is within [low, high].

    A ``high`` of None leaves the value unbounded above.
    """
    text = text.strip()
    if not _INTEGER.match(text):
        raise StateFileError(f"{what}: expected an integer, got {text!r}", line_number)
    value = int(text)
    if value < low or (high is not None and value > high):
        raise StateFileError(f"{what}: {value} outside [{low}, {high}]", line_number)
    return value


def _next_line(lines: Iterator[Tuple[int, str]], what: str) -> Tuple[int, str]:
    try:
        return next(lines)
    except StopIteration:
        raise StateFileError(f"unexpected end of file, missing {what}") from None


def parse_state(text: str, breakpoint_capacity: int = MAX_INSTRUCTIONS) -> StateImage:
    """Parse the contents of a state file.

    Args:
        text: Full file contents
        breakpoint_capacity: Maximum number of breakpoints accepted

    Returns:
        Parsed StateImage

    Raises:
        StateFileError: On a missing field, malformed or out-of-range value,
            truncated memory section, or bad breakpoint line
    """
    lines = enumerate(text.splitlines(), start=1)

    number, line = _next_line(lines, "cycle count")
    total_cycles = _parse_int(line, number, "cycle count", 0, None)

    number, line = _next_line(lines, "accumulator")
    acc = _parse_int(line, number, "accumulator", 0, ARCH_MAXVAL)

    number, line = _next_line(lines, "program counter")
    pc = _parse_int(line, number, "program counter", 0, MEMORY_SIZE - 1)

    memory = []
    for offset in range(MEMORY_SIZE):
        number, line = _next_line(lines, f"memory cell {offset}")
        memory.append(_parse_int(line, number, f"memory cell {offset}", 0, ARCH_MAXVAL))

    # Re-inserting through the table applies the same uniqueness checks
    # as breakpoints created at runtime
    table = BreakpointTable(capacity=breakpoint_capacity)
    for number, line in lines:
        fields = line.split()
        if not fields:
            continue
        if len(fields) != 2:
            raise StateFileError(f"malformed breakpoint line: {line!r}", number)
        address = _parse_int(fields[0], number, "breakpoint address", 0, MEMORY_SIZE - 1)
        try:
            table.insert(address, fields[1])
        except (BreakpointError, ValueError) as e:
            raise StateFileError(f"breakpoint rejected: {e}", number) from e

    return StateImage(
        total_cycles=total_cycles,
        state=ProcessorState(acc=acc, pc=pc, memory=memory),
        breakpoints=list(table),
    )


def read_state_file(path: PathLike, breakpoint_capacity: int = MAX_INSTRUCTIONS) -> StateImage:
    """Read and parse a state file.

    Raises:
        OSError: If the file cannot be read
        UnicodeDecodeError: If the file is not UTF-8 text
        StateFileError: If the contents are malformed
    """
    log.debug("Reading state file %s", path)
    return parse_state(Path(path).read_text(encoding="utf-8"), breakpoint_capacity)


def format_state(image: StateImage) -> str:
    """Render a StateImage in the state file layout."""
    lines = [str(image.total_cycles), str(image.state.acc), str(image.state.pc)]
    lines.extend(str(value) for value in image.state.memory)
    lines.extend(f"{bp.address} {bp.name}" for bp in image.breakpoints)
    return "\n".join(lines) + "\n"


def write_state_file(path: PathLike, image: StateImage) -> None:
    """Write a state file.

    The file is always UTF-8, whatever the locale. A failed write may leave
    a truncated file behind.

    Raises:
        OSError: If the file cannot be opened or written
        UnicodeEncodeError: If a breakpoint name is not encodable
    """
    log.debug("Writing state file %s", path)
    with open(path, "w", encoding="utf-8") as f:
        f.write(format_state(image))
