from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from sicvm.cpu import CPUState
from sicvm.instructions import EXECUTORS, EmulationError, ExecResult
from sicvm.model import Program


logger = logging.getLogger(__name__)


class StepLimitExceeded(EmulationError):
    pass


@dataclass
class StepOutcome:
    halted: bool = False
    line_no: Optional[int] = None


class Emulator:
    def __init__(self, cpu: CPUState, program: Program) -> None:
        self.cpu = cpu
        self.program = program
        self.steps = 0

    @property
    def halted(self) -> bool:
        return not 0 <= self.cpu.ip < len(self.program.instructions)

    def step(self) -> StepOutcome:
        if self.halted:
            return StepOutcome(halted=True)

        instr = self.program.instructions[self.cpu.ip]
        self.cpu.ip += 1
        logger.debug("line %d: %s", instr.line_no, instr.text.strip())

        result: ExecResult = EXECUTORS[instr.operation](self.cpu, instr, self.program)
        if result.next_ip is not None:
            self.cpu.ip = result.next_ip
        self.steps += 1
        return StepOutcome(halted=self.halted, line_no=instr.line_no)

    def run(self, max_steps: Optional[int] = None) -> int:
        """Run until the instruction pointer leaves the program.

        ``max_steps`` bounds the run from outside; exceeding it raises
        StepLimitExceeded. Returns the number of instructions executed.
        """
        while not self.halted:
            if max_steps is not None and self.steps >= max_steps:
                instr = self.program.instructions[self.cpu.ip]
                raise StepLimitExceeded(
                    f"Step limit of {max_steps} reached",
                    instr.line_no,
                    instr.text,
                )
            self.step()
        return self.steps


def execute(program: Program, max_steps: Optional[int] = None) -> CPUState:
    cpu = CPUState.for_program(program)
    Emulator(cpu, program).run(max_steps=max_steps)
    return cpu
