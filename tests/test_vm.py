"""
Virtual Machine Test Suite
==========================

Tests for the instruction set and the stack machine.

Test Organization
-----------------
- TestInstructions: opcode table, listing and stack effect
- TestStackPrimitives: push, pop, add
- TestRun: execution of instruction sequences
- TestStrictMode: insufficient operands as an error
- TestInstrumentation: hooks, snapshots and reset
"""

import pytest

from psvm.errors import InsufficientOperandsError, VMError
from psvm.vm.instructions import (
    OPCODE_TABLE,
    Add,
    Opcode,
    PrintStack,
    PushConstant,
    disassemble,
    format_instruction,
    stack_effect,
)
from psvm.vm.machine import VirtualMachine, VMState, wrap_int32


@pytest.fixture
def vm():
    """Machine that collects output instead of printing it."""
    lines = []
    machine = VirtualMachine(output=lines.append)
    machine.lines = lines
    return machine


# =============================================================================
# Instructions
# =============================================================================

class TestInstructions:
    """Tests for instruction definitions and listings."""

    def test_every_opcode_has_table_entry(self):
        for opcode in Opcode:
            assert OPCODE_TABLE[opcode].opcode == opcode

    def test_instruction_opcodes(self):
        assert PushConstant(1).opcode == Opcode.PUSH
        assert Add().opcode == Opcode.ADD
        assert PrintStack().opcode == Opcode.PRINT

    def test_instruction_equality(self):
        assert PushConstant(3) == PushConstant(3)
        assert PushConstant(3) != PushConstant(4)
        assert Add() == Add()
        assert Add() != PrintStack()

    def test_format_instruction(self):
        assert format_instruction(PushConstant(-2)) == "PUSH -2"
        assert format_instruction(Add()) == "ADD"
        assert format_instruction(PrintStack()) == "PRINT"

    def test_disassemble(self):
        listing = disassemble([PushConstant(2), PushConstant(3), Add(), PrintStack()])
        assert listing.splitlines() == [
            "0000  PUSH 2",
            "0001  PUSH 3",
            "0002  ADD",
            "0003  PRINT",
        ]

    def test_disassemble_empty(self):
        assert disassemble([]) == ""

    def test_stack_effect(self):
        assert stack_effect([]) == 0
        assert stack_effect([PushConstant(1), PushConstant(2), Add()]) == 1
        assert stack_effect([PushConstant(1), PrintStack()]) == 1


# =============================================================================
# Stack Primitives
# =============================================================================

class TestStackPrimitives:
    """Tests for push, pop and add."""

    def test_new_machine_has_empty_stack(self, vm):
        assert vm.stack == []

    def test_push_and_pop(self, vm):
        vm.push(1)
        vm.push(2)
        assert vm.pop() == 2
        assert vm.pop() == 1
        assert vm.pop() is None

    def test_add(self, vm):
        vm.push(2)
        vm.push(3)
        vm.add()
        assert vm.stack == [5]

    def test_add_only_consumes_top_two(self, vm):
        for value in (1, 2, 3):
            vm.push(value)
        vm.add()
        assert vm.stack == [1, 5]

    def test_add_on_empty_stack_is_noop(self, vm):
        vm.add()
        assert vm.stack == []

    def test_add_on_single_value_is_noop(self, vm):
        vm.push(7)
        vm.add()
        assert vm.stack == [7]

    def test_add_wraps_to_32_bits(self, vm):
        vm.push(2147483647)
        vm.push(1)
        vm.add()
        assert vm.stack == [-2147483648]

    def test_wrap_int32(self):
        assert wrap_int32(0) == 0
        assert wrap_int32(-1) == -1
        assert wrap_int32(2 ** 31) == -(2 ** 31)
        assert wrap_int32(-(2 ** 31) - 1) == 2 ** 31 - 1
        assert wrap_int32(2 ** 32 + 5) == 5

    def test_format_stack(self, vm):
        assert vm.format_stack() == "[]"
        vm.push(2)
        vm.push(3)
        assert vm.format_stack() == "[2, 3]"


# =============================================================================
# Execution
# =============================================================================

class TestRun:
    """Tests for running instruction sequences."""

    def test_push_add_print(self, vm):
        vm.run([PushConstant(2), PushConstant(3), Add(), PrintStack()])
        assert vm.lines == ["[5]"]
        assert vm.stack == [5]

    def test_print_does_not_pop(self, vm):
        vm.run([PushConstant(1), PrintStack(), PrintStack()])
        assert vm.lines == ["[1]", "[1]"]
        assert vm.stack == [1]

    def test_print_shows_whole_stack_bottom_first(self, vm):
        vm.run([PushConstant(2), PushConstant(3), PushConstant(5), PrintStack()])
        assert vm.lines == ["[2, 3, 5]"]

    def test_print_empty_stack(self, vm):
        vm.run([PrintStack()])
        assert vm.lines == ["[]"]

    def test_run_nothing(self, vm):
        assert vm.run([]) == []
        assert vm.lines == []
        assert vm.printed == []
        assert vm.executed == 0

    def test_run_returns_stack(self, vm):
        assert vm.run([PushConstant(4)]) == [4]

    def test_every_instruction_executes_once(self, vm):
        program = [Add(), PushConstant(1), Add(), PushConstant(2), Add(), PrintStack()]
        vm.run(program)
        assert vm.executed == len(program)
        assert vm.stack == [3]

    def test_printed_mirrors_output(self, vm):
        vm.run([PushConstant(9), PrintStack()])
        assert vm.printed == vm.lines == ["[9]"]

    def test_runs_accumulate_on_same_stack(self, vm):
        vm.run([PushConstant(1)])
        vm.run([PushConstant(2), Add()])
        assert vm.stack == [3]

    def test_accepts_any_iterable(self, vm):
        vm.run(iter([PushConstant(1), PushConstant(1), Add()]))
        assert vm.stack == [2]

    def test_rejects_foreign_objects(self, vm):
        with pytest.raises(TypeError):
            vm.run(["PUSH 1"])

    def test_default_output_is_stdout(self, capsys):
        VirtualMachine().run([PushConstant(2), PrintStack()])
        assert capsys.readouterr().out == "[2]\n"


# =============================================================================
# Strict Mode
# =============================================================================

class TestStrictMode:
    """Tests for insufficient operands on a strict machine."""

    def test_strict_add_raises(self):
        vm = VirtualMachine(output=lambda line: None, strict=True)
        with pytest.raises(InsufficientOperandsError) as exc_info:
            vm.run([PushConstant(1), Add()])
        error = exc_info.value
        assert error.required == 2
        assert error.available == 1
        assert error.index == 1
        assert "ADD at instruction 1 needs 2 operands" in str(error)

    def test_strict_leaves_stack_unchanged(self):
        vm = VirtualMachine(output=lambda line: None, strict=True)
        vm.push(5)
        with pytest.raises(VMError):
            vm.add()
        assert vm.stack == [5]

    def test_strict_allows_valid_programs(self):
        vm = VirtualMachine(output=lambda line: None, strict=True)
        vm.run([PushConstant(1), PushConstant(2), Add()])
        assert vm.stack == [3]


# =============================================================================
# Instrumentation
# =============================================================================

class TestInstrumentation:
    """Tests for hooks, snapshots and reset."""

    def test_on_instruction_sees_each_step(self, vm):
        seen = []
        vm.on_instruction = lambda index, instr: seen.append((index, instr, list(vm.stack)))
        vm.run([PushConstant(1), PushConstant(2), Add()])
        assert seen == [
            (0, PushConstant(1), []),
            (1, PushConstant(2), [1]),
            (2, Add(), [1, 2]),
        ]

    def test_snapshot_is_a_copy(self, vm):
        vm.run([PushConstant(1), PrintStack()])
        state = vm.snapshot()
        vm.push(2)
        assert state == VMState(stack=[1], executed=2, printed=["[1]"])

    def test_reset(self, vm):
        vm.run([PushConstant(1), PrintStack()])
        vm.reset()
        assert vm.stack == []
        assert vm.printed == []
        assert vm.executed == 0
