import pytest

from sicvm.emulator import execute
from sicvm.parser import parse_assembly


@pytest.fixture
def run_source():
    def _run(source: str, max_steps: int = 1000):
        program = parse_assembly(source)
        cpu = execute(program, max_steps=max_steps)
        return program, cpu

    return _run
