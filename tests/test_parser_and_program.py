import pytest

from sicvm.model import CellKind, ElementWidth, Operand, Operation
from sicvm.parser import AssemblyError, RegisterSet, compile, parse_assembly


def test_accumulator_program_assembles_to_three_instructions_and_one_cell():
    program = parse_assembly(
        """
A LDA #5
  ADD #3
  STA RESULT
RESULT RESW 1
        """
    )

    assert [instr.mnemonic for instr in program.instructions] == ["LDA", "ADD", "STA"]
    assert [instr.operation for instr in program.instructions] == [
        Operation.LOAD,
        Operation.ARITH,
        Operation.STORE,
    ]
    assert program.labels == {"A": 0}
    assert list(program.memory) == ["RESULT"]
    cell = program.memory["RESULT"]
    assert cell.kind is CellKind.INTEGER
    assert cell.values == [0]


def test_line_numbers_are_one_based_and_skip_blank_lines():
    program = parse_assembly("\n\n   LDA   #1\n\n  STA X\n")
    assert [instr.line_no for instr in program.instructions] == [3, 5]


def test_label_only_line_binds_to_next_instruction():
    program = parse_assembly("LDA #1\nLOOP\nADD #1\nJ LOOP\n")
    assert program.labels["LOOP"] == 1
    assert program.instructions[1].mnemonic == "ADD"


def test_duplicate_label_overwrites_earlier_entry():
    program = parse_assembly("TOP LDA #1\nTOP ADD #1\n")
    assert program.labels == {"TOP": 1}


def test_operand_classification():
    program = parse_assembly("ADDR x,T\nLDA #-4\nSTA total\n")
    assert program.instructions[0].operands == (
        Operand("reg", "X", "x"),
        Operand("reg", "T", "T"),
    )
    assert program.instructions[1].operands == (Operand("imm", "-4", "#-4"),)
    assert program.instructions[2].operands == (Operand("mem", "total", "total"),)


def test_simple_register_set_treats_accumulator_name_as_memory():
    extended = parse_assembly("RMO A,X\n")
    simple = parse_assembly("RMO A,X\n", RegisterSet.SIMPLE)
    assert extended.instructions[0].operands[0].type == "reg"
    assert simple.instructions[0].operands[0].type == "mem"
    assert simple.instructions[0].operands[1].type == "reg"


def test_empty_operand_segments_are_dropped():
    program = parse_assembly("LDA BUF,,X,\n")
    instr = program.instructions[0]
    assert instr.operation is Operation.LOAD_OFFSET
    assert len(instr.operands) == 2


@pytest.mark.parametrize(
    ("source", "operation"),
    [
        ("ADD #1", Operation.ARITH),
        ("ADD BUF,X", Operation.ARITH_OFFSET),
        ("ADDR X,T", Operation.ARITH_REGISTERS),
        ("ldx #2", Operation.LOAD),
        ("LDX BUF,T", Operation.LOAD_OFFSET),
        ("STT V", Operation.STORE),
        ("STA BUF,X", Operation.STORE_OFFSET),
        ("COMP #3", Operation.COMPARE),
        ("COMPR X,T", Operation.COMPARE_REGISTERS),
        ("JLT END", Operation.JUMP),
        ("RMO X,S", Operation.EXCHANGE),
    ],
)
def test_mnemonic_and_arity_select_operation(source, operation):
    program = parse_assembly(f"{source}\nEND LDA #0\n")
    assert program.instructions[0].operation is operation


def test_data_only_program_matches_declared_sizes():
    program = parse_assembly(
        """
BUF RESW 4
BYTES RESB 10
ONE RESW 1
TABLE WORD 1,2,3
CHARS BYTE 65,66
        """
    )

    assert program.instructions == []
    assert program.labels == {}
    sizes = {name: cell.size for name, cell in program.memory.items()}
    assert sizes == {"BUF": 4, "BYTES": 10, "ONE": 1, "TABLE": 3, "CHARS": 2}
    assert program.memory["BUF"].width is ElementWidth.WORD
    assert program.memory["BYTES"].width is ElementWidth.BYTE
    assert program.memory["BUF"].values == [0, 0, 0, 0]
    assert program.memory["TABLE"].values == [1, 2, 3]
    assert program.memory["CHARS"].kind is CellKind.ARRAY


def test_single_word_literal_is_a_scalar_and_byte_literal_is_an_array():
    program = parse_assembly("N WORD #7\nB BYTE 7\n")
    assert program.memory["N"].kind is CellKind.INTEGER
    assert program.memory["N"].values == [7]
    assert program.memory["B"].kind is CellKind.ARRAY


def test_compile_is_an_alias():
    assert compile is parse_assembly


@pytest.mark.parametrize(
    ("source", "line_no", "fragment"),
    [
        ("LDA #1\nA B C D\n", 2, "Malformed line"),
        ("START LDA ,\n", 1, "Incompatible operation and operand count"),
        ("LDA #1,X,T\n", 1, "Incompatible operation and operand count"),
        ("FOO #1\n", 1, "Incompatible operation and operand count"),
        ("COMPR X\n", 1, "Incompatible operation and operand count"),
        ("RESW 3\n", 1, "requires a label"),
        ("BUF RESW abc\n", 1, "Invalid numeric literal"),
        ("BUF RESB 1,2\n", 1, "expects one element count"),
        ("BUF WORD 1,x\n", 1, "Invalid numeric literal"),
        ("BUF WORD 40000\n", 1, "Value out of range"),
        ("N WORD 1_000\n", 1, "Invalid numeric literal"),
        ("N WORD \u0663\n", 1, "Invalid numeric literal"),
        ("N RESB \u0663\n", 1, "Invalid numeric literal"),
    ],
)
def test_assembly_errors_report_line_number(source, line_no, fragment):
    with pytest.raises(AssemblyError) as exc:
        parse_assembly(source)
    assert exc.value.line_no == line_no
    assert fragment in exc.value.message


def test_directive_labels_do_not_enter_label_table():
    program = parse_assembly("LDA V\nV WORD 3\n")
    assert "V" not in program.labels
    assert program.memory["V"].values == [3]


def test_trailing_label_binds_one_past_the_last_instruction():
    program = parse_assembly("LDA #1\nJ END\nLDA #2\nEND\n")
    assert program.labels["END"] == len(program.instructions) == 3


def test_instruction_text_is_the_raw_source_line():
    program = parse_assembly("  LDA   #1  \n")
    assert program.instructions[0].text == "  LDA   #1  "
