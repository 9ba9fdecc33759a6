from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple


class Operation(Enum):
    ARITH = "arith"
    ARITH_OFFSET = "arith_offset"
    ARITH_REGISTERS = "arith_registers"
    LOAD = "load"
    LOAD_OFFSET = "load_offset"
    STORE = "store"
    STORE_OFFSET = "store_offset"
    COMPARE = "compare"
    COMPARE_REGISTERS = "compare_registers"
    JUMP = "jump"
    EXCHANGE = "exchange"


class CompareFlag(Enum):
    UNSET = "unset"
    LESS = "less"
    EQUAL = "equal"
    GREATER = "greater"


class ElementWidth(Enum):
    BYTE = 1
    WORD = 3


class CellKind(Enum):
    INTEGER = "integer"
    ARRAY = "array"


@dataclass(frozen=True)
class Operand:
    type: str  # reg, imm, mem
    value: str
    text: str


@dataclass(frozen=True)
class Instruction:
    line_no: int
    text: str
    mnemonic: str
    operation: Operation
    operands: Tuple[Operand, ...]
    label: Optional[str] = None


@dataclass
class MemoryCell:
    kind: CellKind
    values: List[int]
    width: ElementWidth = ElementWidth.WORD

    @classmethod
    def integer(cls, value: int) -> "MemoryCell":
        return cls(CellKind.INTEGER, [value])

    @classmethod
    def array(cls, values: List[int], width: ElementWidth) -> "MemoryCell":
        return cls(CellKind.ARRAY, list(values), width)

    @property
    def size(self) -> int:
        return len(self.values)

    def index_for(self, offset: int) -> Optional[int]:
        """Element index addressed by a byte offset, or None when out of range."""
        if offset < 0 or offset >= self.size * self.width.value:
            return None
        return offset // self.width.value

    def export(self) -> int | Dict[str, object]:
        if self.kind is CellKind.INTEGER:
            return self.values[0]
        return {"width": self.width.name, "values": list(self.values)}


@dataclass
class Program:
    instructions: List[Instruction]
    labels: Dict[str, int]
    memory: Dict[str, MemoryCell] = field(default_factory=dict)
    registers: Dict[str, int] = field(default_factory=dict)

    def get_label(self, name: str) -> Optional[int]:
        return self.labels.get(name)

    def get_cell(self, name: str) -> Optional[MemoryCell]:
        return self.memory.get(name)
