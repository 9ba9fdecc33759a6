from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from sicvm.cpu import WORD_MAX, WORD_MIN, CPUState
from sicvm.model import CellKind, CompareFlag, Instruction, MemoryCell, Operand, Operation, Program


@dataclass
class ExecResult:
    next_ip: int | None = None


class EmulationError(Exception):
    def __init__(self, message: str, line_no: int, text: str) -> None:
        super().__init__(message)
        self.message = message
        self.line_no = line_no
        self.text = text

    def __str__(self) -> str:
        return f"line {self.line_no}: {self.message}"


Executor = Callable[[CPUState, Instruction, Program], ExecResult]

NUMBER_RE = re.compile(r"[+-]?[0-9]+")


ARITH_OPS = {"ADD": "ADD", "SUB": "SUB", "MUL": "MUL", "DIV": "DIV"}
ARITH_REGISTER_OPS = {"ADDR": "ADD", "SUBR": "SUB", "MULR": "MUL", "DIVR": "DIV"}
LOAD_REGISTERS = {"LDA": "A", "LDX": "X", "LDL": "L", "LDB": "B", "LDS": "S", "LDT": "T"}
STORE_REGISTERS = {"STA": "A", "STX": "X", "STL": "L", "STB": "B", "STS": "S", "STT": "T"}
BRANCH_CONDITIONS = {
    "J": None,
    "JEQ": CompareFlag.EQUAL,
    "JGT": CompareFlag.GREATER,
    "JLT": CompareFlag.LESS,
}


def _build_operation_table() -> Dict[Tuple[str, int], Operation]:
    table: Dict[Tuple[str, int], Operation] = {}
    for mnemonic in ARITH_OPS:
        table[(mnemonic, 1)] = Operation.ARITH
        table[(mnemonic, 2)] = Operation.ARITH_OFFSET
    for mnemonic in ARITH_REGISTER_OPS:
        table[(mnemonic, 2)] = Operation.ARITH_REGISTERS
    for mnemonic in LOAD_REGISTERS:
        table[(mnemonic, 1)] = Operation.LOAD
        table[(mnemonic, 2)] = Operation.LOAD_OFFSET
    for mnemonic in STORE_REGISTERS:
        table[(mnemonic, 1)] = Operation.STORE
        table[(mnemonic, 2)] = Operation.STORE_OFFSET
    table[("COMP", 1)] = Operation.COMPARE
    table[("COMPR", 2)] = Operation.COMPARE_REGISTERS
    for mnemonic in BRANCH_CONDITIONS:
        table[(mnemonic, 1)] = Operation.JUMP
    table[("RMO", 2)] = Operation.EXCHANGE
    return table


# (mnemonic, operand count) -> operation variant, consulted by the assembler.
OPERATION_TABLE: Dict[Tuple[str, int], Operation] = _build_operation_table()

OPERAND_COUNTS: Dict[Operation, int] = {
    Operation.ARITH: 1,
    Operation.ARITH_OFFSET: 2,
    Operation.ARITH_REGISTERS: 2,
    Operation.LOAD: 1,
    Operation.LOAD_OFFSET: 2,
    Operation.STORE: 1,
    Operation.STORE_OFFSET: 2,
    Operation.COMPARE: 1,
    Operation.COMPARE_REGISTERS: 2,
    Operation.JUMP: 1,
    Operation.EXCHANGE: 2,
}


def is_number_literal(text: str) -> bool:
    """ASCII decimal digits with an optional sign; no underscores or other scripts."""
    return NUMBER_RE.fullmatch(text) is not None


def _expect_operands(instr: Instruction) -> None:
    count = OPERAND_COUNTS[instr.operation]
    if len(instr.operands) != count:
        raise EmulationError(
            f"Expected {count} operands for {instr.mnemonic}, found {len(instr.operands)}",
            instr.line_no,
            instr.text,
        )


def _require_reg(op: Operand, instr: Instruction) -> str:
    if op.type != "reg":
        raise EmulationError(
            f"Unsupported operand for {instr.mnemonic}: {op.text} is not a register",
            instr.line_no,
            instr.text,
        )
    return op.value


def _parse_immediate(op: Operand, instr: Instruction) -> int:
    if not is_number_literal(op.value):
        raise EmulationError(f"'{op.value}' is not a valid immediate value", instr.line_no, instr.text)
    value = int(op.value)
    if value < WORD_MIN or value > WORD_MAX:
        raise EmulationError(f"'{op.value}' is not a valid immediate value", instr.line_no, instr.text)
    return value


def _lookup_cell(op: Operand, cpu: CPUState, instr: Instruction) -> MemoryCell:
    cell = cpu.memory.get(op.value)
    if cell is None:
        raise EmulationError(f"No memory location with name {op.value}", instr.line_no, instr.text)
    return cell


def _element_index(cell: MemoryCell, op: Operand, offset: int, instr: Instruction) -> int:
    if cell.kind is not CellKind.ARRAY:
        raise EmulationError(f"{op.value} is not an array and cannot be offset", instr.line_no, instr.text)
    index = cell.index_for(offset)
    if index is None:
        raise EmulationError(
            f"Offset {offset} is out of bounds for {op.value} ({cell.size} x {cell.width.name})",
            instr.line_no,
            instr.text,
        )
    return index


def _require_mem_for_offset(op: Operand, instr: Instruction) -> None:
    if op.type != "mem":
        raise EmulationError(
            f"Offset addressing requires a memory operand, found {op.text}",
            instr.line_no,
            instr.text,
        )


def _value_of(op: Operand, cpu: CPUState, instr: Instruction, offset: Optional[int] = None) -> int:
    if offset is not None:
        _require_mem_for_offset(op, instr)
        cell = _lookup_cell(op, cpu, instr)
        return cell.values[_element_index(cell, op, offset, instr)]
    if op.type == "reg":
        return cpu.get_reg(op.value)
    if op.type == "imm":
        return _parse_immediate(op, instr)
    cell = _lookup_cell(op, cpu, instr)
    if not cell.values:
        raise EmulationError(f"{op.value} has no elements", instr.line_no, instr.text)
    return cell.values[0]


def _set_value_of(
    op: Operand,
    cpu: CPUState,
    value: int,
    instr: Instruction,
    offset: Optional[int] = None,
) -> None:
    if op.type == "imm":
        raise EmulationError("Cannot save value to immediate", instr.line_no, instr.text)
    if offset is not None:
        _require_mem_for_offset(op, instr)
        cell = _lookup_cell(op, cpu, instr)
        cell.values[_element_index(cell, op, offset, instr)] = value
        return
    if op.type == "reg":
        cpu.set_reg(op.value, value)
        return
    # A bare write replaces whatever cell was there, arrays included.
    cpu.memory[op.value] = MemoryCell.integer(value)


def _apply_arith(kind: str, left: int, right: int, instr: Instruction) -> int:
    if kind == "ADD":
        return left + right
    if kind == "SUB":
        return left - right
    if kind == "MUL":
        return left * right
    if right == 0:
        raise EmulationError("Division by zero", instr.line_no, instr.text)
    # Truncate toward zero.
    quotient = abs(left) // abs(right)
    return quotient if (left < 0) == (right < 0) else -quotient


def exec_arith(cpu: CPUState, instr: Instruction, program: Program) -> ExecResult:
    _expect_operands(instr)
    value = _value_of(instr.operands[0], cpu, instr)
    cpu.set_acc(_apply_arith(ARITH_OPS[instr.mnemonic], cpu.get_acc(), value, instr))
    return ExecResult()


def exec_arith_offset(cpu: CPUState, instr: Instruction, program: Program) -> ExecResult:
    _expect_operands(instr)
    offset = _value_of(instr.operands[1], cpu, instr)
    value = _value_of(instr.operands[0], cpu, instr, offset=offset)
    cpu.set_acc(_apply_arith(ARITH_OPS[instr.mnemonic], cpu.get_acc(), value, instr))
    return ExecResult()


def exec_arith_registers(cpu: CPUState, instr: Instruction, program: Program) -> ExecResult:
    _expect_operands(instr)
    dest = _require_reg(instr.operands[1], instr)
    left = _value_of(instr.operands[0], cpu, instr)
    right = cpu.get_reg(dest)
    cpu.set_reg(dest, _apply_arith(ARITH_REGISTER_OPS[instr.mnemonic], left, right, instr))
    return ExecResult()


def exec_load(cpu: CPUState, instr: Instruction, program: Program) -> ExecResult:
    _expect_operands(instr)
    cpu.set_reg(LOAD_REGISTERS[instr.mnemonic], _value_of(instr.operands[0], cpu, instr))
    return ExecResult()


def exec_load_offset(cpu: CPUState, instr: Instruction, program: Program) -> ExecResult:
    _expect_operands(instr)
    offset = _value_of(instr.operands[1], cpu, instr)
    value = _value_of(instr.operands[0], cpu, instr, offset=offset)
    cpu.set_reg(LOAD_REGISTERS[instr.mnemonic], value)
    return ExecResult()


def exec_store(cpu: CPUState, instr: Instruction, program: Program) -> ExecResult:
    _expect_operands(instr)
    value = cpu.get_reg(STORE_REGISTERS[instr.mnemonic])
    _set_value_of(instr.operands[0], cpu, value, instr)
    return ExecResult()


def exec_store_offset(cpu: CPUState, instr: Instruction, program: Program) -> ExecResult:
    _expect_operands(instr)
    value = cpu.get_reg(STORE_REGISTERS[instr.mnemonic])
    offset = _value_of(instr.operands[1], cpu, instr)
    _set_value_of(instr.operands[0], cpu, value, instr, offset=offset)
    return ExecResult()


def exec_compare(cpu: CPUState, instr: Instruction, program: Program) -> ExecResult:
    _expect_operands(instr)
    cpu.compare(cpu.get_acc(), _value_of(instr.operands[0], cpu, instr))
    return ExecResult()


def exec_compare_registers(cpu: CPUState, instr: Instruction, program: Program) -> ExecResult:
    _expect_operands(instr)
    left = _value_of(instr.operands[0], cpu, instr)
    right = _value_of(instr.operands[1], cpu, instr)
    cpu.compare(left, right)
    return ExecResult()


def exec_jump(cpu: CPUState, instr: Instruction, program: Program) -> ExecResult:
    _expect_operands(instr)
    condition = BRANCH_CONDITIONS[instr.mnemonic]
    if condition is not None and cpu.compare_flag is not condition:
        return ExecResult()
    target = instr.operands[0]
    if target.type != "mem":
        return ExecResult()
    index = program.get_label(target.value)
    if index is None:
        raise EmulationError(f"Label '{target.value}' does not exist", instr.line_no, instr.text)
    return ExecResult(next_ip=index)


def exec_exchange(cpu: CPUState, instr: Instruction, program: Program) -> ExecResult:
    _expect_operands(instr)
    first = _require_reg(instr.operands[0], instr)
    second = _require_reg(instr.operands[1], instr)
    first_value = cpu.get_reg(first)
    cpu.set_reg(first, cpu.get_reg(second))
    cpu.set_reg(second, first_value)
    return ExecResult()


EXECUTORS: Dict[Operation, Executor] = {
    Operation.ARITH: exec_arith,
    Operation.ARITH_OFFSET: exec_arith_offset,
    Operation.ARITH_REGISTERS: exec_arith_registers,
    Operation.LOAD: exec_load,
    Operation.LOAD_OFFSET: exec_load_offset,
    Operation.STORE: exec_store,
    Operation.STORE_OFFSET: exec_store_offset,
    Operation.COMPARE: exec_compare,
    Operation.COMPARE_REGISTERS: exec_compare_registers,
    Operation.JUMP: exec_jump,
    Operation.EXCHANGE: exec_exchange,
}
