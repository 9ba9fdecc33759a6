from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

from sicvm.model import CompareFlag, MemoryCell, Program


ACCUMULATOR = "A"
REGISTER_ORDER = ["A", "X", "L", "B", "S", "T", "SW"]

WORD_MIN = -0x8000
WORD_MAX = 0x7FFF


def clamp_s16(value: int) -> int:
    return ((value - WORD_MIN) & 0xFFFF) + WORD_MIN


@dataclass
class CPUState:
    registers: Dict[str, int] = field(default_factory=dict)
    memory: Dict[str, MemoryCell] = field(default_factory=dict)
    compare_flag: CompareFlag = CompareFlag.UNSET
    ip: int = 0

    @classmethod
    def for_program(cls, program: Program) -> "CPUState":
        # Shares the program's dicts so a run leaves its final state on the program.
        return cls(registers=program.registers, memory=program.memory)

    def get_reg(self, name: str) -> int:
        return self.registers.get(name.upper(), 0)

    def set_reg(self, name: str, value: int) -> None:
        self.registers[name.upper()] = clamp_s16(value)

    def get_acc(self) -> int:
        return self.get_reg(ACCUMULATOR)

    def set_acc(self, value: int) -> None:
        self.set_reg(ACCUMULATOR, value)

    def compare(self, left: int, right: int) -> None:
        if left < right:
            self.compare_flag = CompareFlag.LESS
        elif left > right:
            self.compare_flag = CompareFlag.GREATER
        else:
            self.compare_flag = CompareFlag.EQUAL

    def snapshot(self) -> Dict[str, Dict[str, object]]:
        order = {name: index for index, name in enumerate(REGISTER_ORDER)}
        registers = {
            name: self.registers[name]
            for name in sorted(self.registers, key=lambda reg: (order.get(reg, len(order)), reg))
        }
        memory = {name: cell.export() for name, cell in self.memory.items()}
        return {"registers": registers, "memory": memory}
