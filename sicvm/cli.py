"""Command-line runner: assemble a source file, execute it, print the final state.

Usage:
    sicvm program.sic                 # tables on stdout
    sicvm program.sic --json          # machine-readable state
    sicvm program.sic --simple        # 3-register instruction set (X, T, S)
    sicvm program.sic --max-steps 1000 --verbose
    sicvm program.sic --gui           # show the final state in a window
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

from sicvm.emulator import execute
from sicvm.instructions import EmulationError
from sicvm.parser import AssemblyError, RegisterSet, parse_assembly


logger = logging.getLogger(__name__)


def _format_value(value: object) -> str:
    if isinstance(value, dict):
        values = ", ".join(str(item) for item in value["values"])
        return f"{value['width']}[{values}]"
    return str(value)


def format_state(state: Dict[str, Dict[str, object]]) -> str:
    lines: List[str] = []
    registers = state["registers"]
    lines.append("Registers")
    if registers:
        width = max(len(name) for name in registers)
        for name, value in registers.items():
            lines.append(f"  {name.ljust(width)}  {value}")
    else:
        lines.append("  (none)")
    memory = state["memory"]
    lines.append("Memory")
    if memory:
        width = max(len(name) for name in memory)
        for name, value in memory.items():
            lines.append(f"  {name.ljust(width)}  {_format_value(value)}")
    else:
        lines.append("  (none)")
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sicvm", description="Assemble and run a SIC-style assembly program")
    parser.add_argument("file", help="Path to the assembly source file")
    parser.add_argument("--simple", action="store_true", help="Use the simple register set (X, T, S)")
    parser.add_argument("--max-steps", type=int, default=None, help="Abort after this many instructions")
    parser.add_argument("--json", action="store_true", help="Print the final state as JSON")
    parser.add_argument("--gui", action="store_true", help="Show the final state in a window")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log every executed instruction")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    path = Path(args.file)
    try:
        source = path.read_text(encoding="utf-8")
    except OSError as exc:
        print(f"error: cannot read {path}: {exc.strerror}", file=sys.stderr)
        return 1

    register_set = RegisterSet.SIMPLE if args.simple else RegisterSet.EXTENDED
    try:
        program = parse_assembly(source, register_set)
        cpu = execute(program, max_steps=args.max_steps)
    except (AssemblyError, EmulationError) as exc:
        logger.debug("aborted: %r", exc)
        print(f"error: line {exc.line_no}: {exc.message}", file=sys.stderr)
        return 1

    state = cpu.snapshot()
    if args.json:
        print(json.dumps(state, indent=2))
    else:
        print(format_state(state))

    if args.gui:
        from sicvm_ui.state_window import show_state

        return show_state(state, title=path.name)
    return 0


if __name__ == "__main__":
    sys.exit(main())
