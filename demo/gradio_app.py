"""ACC8 Interactive Demo.

A Gradio web interface for running and inspecting ACC8 programs.

Usage:
    cd /path/to/acc8-emu
    python demo/gradio_app.py

Features:
    - Write or load assembly programs
    - Set named breakpoints
    - See step-by-step execution trace
    - Inspect the final registers and the memory listing
"""

import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import gradio as gr
from acc8 import Acc8Emulator, AssemblyError


# =============================================================================
# Example Programs
# =============================================================================

EXAMPLE_PROGRAMS = {
    "Countdown": """        LDR count
loop:   ADD minus_one   ; ACC - 1
        STR count
        JNE loop
done:   JMP done
count:      DB 3
minus_one:  DB 0xFF""",

    "Logic ops": """        LDR a
        ORR b
        AND mask
        XOR flip
        STR out
done:   JMP done
a:      DB 0xF0
b:      DB 0x0F
mask:   DB 0x3C
flip:   DB 0x66
out:    DB 0""",

    "Load one": """        LDR 10
        JMP 0
        ORG 10
        DB 5""",

    "Custom": ""
}


# =============================================================================
# Execution Functions
# =============================================================================

def parse_breakpoints(text: str) -> list:
    """Parse ``ADDR:NAME`` pairs, one per line."""
    result = []
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        address, _, name = line.partition(":")
        result.append((int(address, 0), name.strip()))
    return result


def run_program(program: str, breakpoints: str, steps: int) -> tuple:
    """Assemble and execute a program and return results.

    Args:
        program: Assembly source code
        breakpoints: ``ADDR:NAME`` lines
        steps: Maximum number of instructions to execute

    Returns:
        Tuple of (summary_text, trace_text, listing_text)
    """
    if not program.strip():
        return "Error: No program provided", "", ""

    emu = Acc8Emulator(trace=True)

    try:
        emu.load_program(program)
    except AssemblyError as e:
        return f"Assembly error: {e}", "", ""

    try:
        requested = parse_breakpoints(breakpoints)
    except ValueError as e:
        return f"Error: Bad breakpoint list: {e}", "", ""

    for address, name in requested:
        if not emu.insert_breakpoint(address, name):
            return f"Error: Breakpoint {name}@{address}: {emu.last_error}", "", ""

    result = emu.run(int(steps))

    # Format summary
    summary = emu.get_summary()
    summary_lines = [
        "EXECUTION SUMMARY",
        "=" * 40,
        f"Result: {result.value}",
        f"Cycles: {summary['cycles']}",
        f"ACC:    {summary['acc']}",
        f"PC:     {summary['pc']}",
    ]
    if summary['breakpoints']:
        summary_lines.append("\nBreakpoints:")
        for address, name in summary['breakpoints']:
            marker = " <-" if address == summary['pc'] else ""
            summary_lines.append(f"  {address:>3} {name}{marker}")
    if summary['last_error']:
        summary_lines.append(f"\nFault: {summary['last_error']}")

    summary_text = "\n".join(summary_lines)

    # Format trace
    trace = emu.get_trace()
    trace_lines = [
        "EXECUTION TRACE",
        "=" * 60,
    ]
    for entry in trace[:100]:  # Limit to 100 entries
        trace_lines.append(f"\n--- Cycle {entry.cycle} (PC={entry.pc}) ---")
        if entry.error:
            trace_lines.append(f"Fault:       {entry.error}")
            continue
        trace_lines.append(f"Instruction: {entry.text}")
        pre, post = entry.pre_state, entry.post_state
        if pre['acc'] != post['acc']:
            trace_lines.append(f"ACC:         {pre['acc']} -> {post['acc']}")

    if len(trace) > 100:
        trace_lines.append(f"\n... ({len(trace) - 100} more entries)")

    trace_text = "\n".join(trace_lines)

    # Format listing, skipping empty words
    listing_lines = [
        "MEMORY LISTING",
        "=" * 30,
    ]
    for line in emu.list_program():
        if line.text is not None:
            listing_lines.append(f"  {line.offset:>3}: {line.text}")
        elif (line.opcode, line.operand) != (0, 0):
            listing_lines.append(f"  {line.offset:>3}: {line.opcode:>3} {line.operand:>3}")

    listing_text = "\n".join(listing_lines)

    return summary_text, trace_text, listing_text


def load_example(example_name: str) -> str:
    """Load an example program."""
    return EXAMPLE_PROGRAMS.get(example_name, "")


# =============================================================================
# Gradio Interface
# =============================================================================

def create_demo():
    """Create and return the Gradio demo interface."""

    with gr.Blocks(title="ACC8 Demo", theme=gr.themes.Soft()) as demo:
        gr.Markdown("""
        # ACC8: Single-Accumulator Machine Emulator

        One 8-bit accumulator, 256 bytes of memory, eight two-byte instructions.

        **Pipeline**: `fetch -> decode -> execute -> breakpoint check`
        """)

        with gr.Row():
            with gr.Column(scale=2):
                # Program input
                gr.Markdown("### Assembly Program")

                example_dropdown = gr.Dropdown(
                    choices=list(EXAMPLE_PROGRAMS.keys()),
                    value="Countdown",
                    label="Load Example"
                )

                program_input = gr.Textbox(
                    value=EXAMPLE_PROGRAMS["Countdown"],
                    label="Source Code",
                    lines=15,
                    placeholder="Enter assembly code here..."
                )

                # Settings
                gr.Markdown("### Settings")

                breakpoints_input = gr.Textbox(
                    value="8:done",
                    label="Breakpoints (ADDR:NAME per line)",
                    lines=3
                )
                steps = gr.Slider(
                    minimum=0,
                    maximum=10000,
                    value=100,
                    step=1,
                    label="Max Steps"
                )

                run_button = gr.Button("Run Program", variant="primary")

            with gr.Column(scale=3):
                # Results
                with gr.Row():
                    summary_output = gr.Textbox(
                        label="Summary",
                        lines=10,
                        interactive=False
                    )
                    listing_output = gr.Textbox(
                        label="Listing",
                        lines=10,
                        interactive=False
                    )

                trace_output = gr.Textbox(
                    label="Execution Trace",
                    lines=20,
                    interactive=False
                )

        # ISA Reference
        with gr.Accordion("ISA Reference", open=False):
            gr.Markdown("""
            | Opcode | Instruction | Effect |
            |--------|-------------|--------|
            | 0 | `ADD addr` | ACC <- ACC + [addr] |
            | 1 | `AND addr` | ACC <- ACC & [addr] |
            | 2 | `ORR addr` | ACC <- ACC \\| [addr] |
            | 3 | `XOR addr` | ACC <- ACC ^ [addr] |
            | 4 | `LDR addr` | ACC <- [addr] |
            | 5 | `STR addr` | [addr] <- ACC |
            | 6 | `JMP addr` | PC <- addr |
            | 7 | `JNE addr` | PC <- addr if ACC != 0 |

            **Directives**: `DB value`, `ORG address`
            **Labels**: Use `name:` to define, reference by name as an operand
            """)

        # Event handlers
        example_dropdown.change(
            fn=load_example,
            inputs=[example_dropdown],
            outputs=[program_input]
        )

        run_button.click(
            fn=run_program,
            inputs=[program_input, breakpoints_input, steps],
            outputs=[summary_output, trace_output, listing_output]
        )

    return demo


# =============================================================================
# Main
# =============================================================================

if __name__ == "__main__":
    demo = create_demo()
    demo.launch(
        share=False,
        server_name="0.0.0.0",
        server_port=7861,
        show_error=True
    )
