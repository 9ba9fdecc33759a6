from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, FrozenSet, List, Optional

from sicvm.cpu import WORD_MAX, WORD_MIN
from sicvm.instructions import OPERATION_TABLE, is_number_literal
from sicvm.model import ElementWidth, Instruction, MemoryCell, Operand, Program


__all__ = ["AssemblyError", "RegisterSet", "REGISTER_NAMES", "compile", "parse_assembly"]

logger = logging.getLogger(__name__)


class RegisterSet(Enum):
    SIMPLE = "simple"
    EXTENDED = "extended"


REGISTER_NAMES: Dict[RegisterSet, FrozenSet[str]] = {
    RegisterSet.SIMPLE: frozenset({"X", "T", "S"}),
    RegisterSet.EXTENDED: frozenset({"A", "X", "L", "B", "S", "T", "SW"}),
}

RESERVE_DIRECTIVES = {"RESW": ElementWidth.WORD, "RESB": ElementWidth.BYTE}
LITERAL_DIRECTIVES = {"WORD": ElementWidth.WORD, "BYTE": ElementWidth.BYTE}


class AssemblyError(Exception):
    def __init__(self, message: str, line_no: int, text: str) -> None:
        super().__init__(message)
        self.message = message
        self.line_no = line_no
        self.text = text

    def __str__(self) -> str:
        return f"line {self.line_no}: {self.message}"


def _parse_operand(token: str, registers: FrozenSet[str]) -> Operand:
    if token.startswith("#"):
        return Operand(type="imm", value=token[1:], text=token)
    upper = token.upper()
    if upper in registers:
        return Operand(type="reg", value=upper, text=token)
    return Operand(type="mem", value=token, text=token)


def _split_operands(field_text: str, registers: FrozenSet[str]) -> List[Operand]:
    return [_parse_operand(part, registers) for part in field_text.split(",") if part]


def _directive_number(op: Operand, line_no: int, raw_line: str) -> int:
    # Directive literals are plain numbers; a leading '#' is tolerated.
    if op.type == "reg" or not is_number_literal(op.value):
        raise AssemblyError(f"Invalid numeric literal: {op.text}", line_no, raw_line)
    return int(op.value)


def _parse_directive(
    directive: str,
    operands: List[Operand],
    line_no: int,
    raw_line: str,
) -> MemoryCell:
    if directive in RESERVE_DIRECTIVES:
        width = RESERVE_DIRECTIVES[directive]
        if len(operands) != 1:
            raise AssemblyError(f"{directive} expects one element count", line_no, raw_line)
        count = _directive_number(operands[0], line_no, raw_line)
        if count < 0:
            raise AssemblyError(f"Invalid element count: {count}", line_no, raw_line)
        values = [0] * count
    else:
        width = LITERAL_DIRECTIVES[directive]
        if not operands:
            raise AssemblyError(f"{directive} expects at least one value", line_no, raw_line)
        values = []
        for op in operands:
            value = _directive_number(op, line_no, raw_line)
            if value < WORD_MIN or value > WORD_MAX:
                raise AssemblyError(f"Value out of range: {op.text}", line_no, raw_line)
            values.append(value)
    if width is ElementWidth.WORD and len(values) == 1:
        return MemoryCell.integer(values[0])
    return MemoryCell.array(values, width)


def parse_assembly(text: str, register_set: RegisterSet = RegisterSet.EXTENDED) -> Program:
    """Assemble source text into a Program.

    Each non-blank line is ``[LABEL] OPERATION OPERANDS`` or a lone ``LABEL``.
    Labels bind to the index of the next emitted instruction; a label after the
    last instruction binds one past the end, so branching to it ends the run.
    Data directives allocate memory cells instead of instructions.
    """
    registers = REGISTER_NAMES[register_set]
    instructions: List[Instruction] = []
    labels: Dict[str, int] = {}
    memory: Dict[str, MemoryCell] = {}

    for idx, raw_line in enumerate(text.splitlines(), start=1):
        tokens = raw_line.split()
        if not tokens:
            continue

        label: Optional[str] = None
        if len(tokens) == 1:
            labels[tokens[0]] = len(instructions)
            continue
        if len(tokens) == 3:
            label, mnemonic, field_text = tokens
        elif len(tokens) == 2:
            mnemonic, field_text = tokens
        else:
            raise AssemblyError(f"Malformed line: expected 1 to 3 fields, found {len(tokens)}", idx, raw_line)

        mnemonic = mnemonic.upper()
        operands = _split_operands(field_text, registers)

        if mnemonic in RESERVE_DIRECTIVES or mnemonic in LITERAL_DIRECTIVES:
            if label is None:
                raise AssemblyError(f"{mnemonic} requires a label", idx, raw_line)
            memory[label] = _parse_directive(mnemonic, operands, idx, raw_line)
            continue

        if label is not None:
            labels[label] = len(instructions)

        operation = OPERATION_TABLE.get((mnemonic, len(operands)))
        if operation is None:
            raise AssemblyError(
                f"Incompatible operation and operand count: {mnemonic} with {len(operands)} operand(s)",
                idx,
                raw_line,
            )
        instructions.append(
            Instruction(
                line_no=idx,
                text=raw_line,
                mnemonic=mnemonic,
                operation=operation,
                operands=tuple(operands),
                label=label,
            )
        )

    logger.debug(
        "assembled %d instructions, %d labels, %d memory cells",
        len(instructions),
        len(labels),
        len(memory),
    )
    return Program(instructions=instructions, labels=labels, memory=memory)


# Public name for the assembler entry point; shadows the builtin inside this module only.
compile = parse_assembly
