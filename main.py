#!/usr/bin/env python3
"""ACC8 Command Line Interface.

Run programs and state files with the ACC8 emulator.

Usage:
    python main.py --program programs/countdown.asm --steps 100
    python main.py --state machine.txt --steps 10 --save machine.txt
"""

import argparse
import logging
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent / "src"))

from acc8 import Acc8Emulator, AssemblyError, RunResult


def parse_breakpoint(text: str):
    """Parse an ``ADDR:NAME`` breakpoint argument."""
    address, sep, name = text.partition(":")
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"expected ADDR:NAME, got {text!r}")
    try:
        return int(address, 0), name
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid breakpoint address: {address!r}")


def print_listing(emu: Acc8Emulator) -> None:
    for line in emu.list_program():
        if line.text is None:
            print(f"{line.offset}:\t{line.opcode}\t{line.operand}")
        else:
            print(f"{line.offset}:\t{line.opcode}\t{line.operand}\t:\t{line.text}")


def print_trace(emu: Acc8Emulator) -> None:
    """Print execution trace in human-readable format."""
    print("=" * 70)
    print("ACC8 EXECUTION TRACE")
    print("=" * 70)

    for entry in emu.get_trace():
        status = "OK" if not entry.error else f"ERROR: {entry.error}"
        print(f"\n[Cycle {entry.cycle}] {status}")
        print(f"  PC: {entry.pc}  Raw: {entry.opcode} {entry.address}")
        if entry.text:
            print(f"  Instruction: {entry.text}")

        pre_acc = entry.pre_state["acc"]
        post_acc = entry.post_state["acc"]
        if pre_acc != post_acc:
            print(f"  ACC: {pre_acc} → {post_acc}")

        post_pc = entry.post_state["pc"]
        if entry.pc != post_pc:
            print(f"  PC: {entry.pc} → {post_pc}")


def main():
    parser = argparse.ArgumentParser(
        description="ACC8: Single-accumulator machine emulator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Assemble and run a program for up to 100 steps
    python main.py --program programs/countdown.asm --steps 100

    # Resume a saved machine, stop at a breakpoint, save again
    python main.py --state machine.txt --break 8:done --steps 1000 --save machine.txt

    # Show the memory listing
    python main.py --state machine.txt --list
        """
    )

    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--state", "-s",
        type=str,
        help="State file to load"
    )
    source.add_argument(
        "--program", "-p",
        type=str,
        help="Path to assembly program file (.asm)"
    )
    source.add_argument(
        "--inline", "-i",
        type=str,
        help="Inline assembly (separate instructions with ;;)"
    )
    parser.add_argument(
        "--steps", "-n",
        type=int,
        default=0,
        help="Maximum number of instructions to execute. Default: 0"
    )
    parser.add_argument(
        "--break", "-b",
        dest="breakpoints",
        type=parse_breakpoint,
        action="append",
        default=[],
        metavar="ADDR:NAME",
        help="Add a breakpoint (repeatable)"
    )
    parser.add_argument(
        "--save",
        type=str,
        help="Write the final state to this file"
    )
    parser.add_argument(
        "--list", "-l",
        action="store_true",
        help="Print the memory listing after running"
    )
    parser.add_argument(
        "--trace", "-t",
        action="store_true",
        help="Print full execution trace"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Minimal output (final registers only)"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log every executed instruction"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s"
    )

    emu = Acc8Emulator(trace=args.trace)

    # Load machine
    if args.state:
        if not emu.load_state(args.state):
            print(f"Error: Could not load state: {emu.last_error}")
            return 1
    elif args.program or args.inline:
        if args.program:
            program_path = Path(args.program)
            if not program_path.exists():
                print(f"Error: Program file not found: {args.program}")
                return 1
            source_text = program_path.read_text()
        else:
            # ";" starts a comment, so inline instructions use ";;"
            source_text = args.inline.replace(";;", "\n")
        try:
            emu.load_program(source_text)
        except AssemblyError as e:
            print(f"Assembly error: {e}")
            return 1

    for address, name in args.breakpoints:
        if not emu.insert_breakpoint(address, name):
            print(f"Error: Could not set breakpoint {name} at {address}: {emu.last_error}")
            return 1

    # Run
    result = emu.run(args.steps)

    # Output
    if args.trace:
        print_trace(emu)
    if args.list:
        print_listing(emu)

    if args.quiet:
        print(f"ACC={emu.read_acc()} PC={emu.read_pc()}")
    else:
        summary = emu.get_summary()
        print(f"Result: {result.value}")
        print(f"Cycles: {summary['cycles']}")
        print(f"ACC: {summary['acc']}")
        print(f"PC: {summary['pc']}")
        if result is RunResult.BREAKPOINT:
            print(f"Breakpoint: {emu.find_breakpoint(emu.read_pc()).name}")
        if summary['last_error']:
            print(f"Error: {summary['last_error']}")

    if args.save and not emu.save_state(args.save):
        print(f"Error: Could not save state: {emu.last_error}")
        return 1

    return 0 if result else 1


if __name__ == "__main__":
    sys.exit(main())
