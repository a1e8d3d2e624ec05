"""
Code Generator Test Suite
=========================

Tests for lowering the AST to instructions.

Test Organization
-----------------
- TestExpressionLowering: literals, references and operators
- TestStatementLowering: bindings, output and bare expressions
- TestVariableResolution: the RESOLVE environment
- TestPlaceholderVariables: the PLACEHOLDER policy
- TestUnsupportedOperators: permissive and strict handling
"""

from dataclasses import dataclass

import pytest

from psvm.errors import UnknownVariableError, UnsupportedConstructError
from psvm.lang.ast import (
    BinaryOp,
    BinaryOperator,
    Binding,
    Expression,
    ExpressionStatement,
    IntLiteral,
    Output,
    ProgramNode,
    VariableRef,
)
from psvm.lang.codegen import (
    CodeGenerator,
    VariablePolicy,
    program_to_instructions,
)
from psvm.lang.parser import parse_program, split_lines
from psvm.vm.instructions import Add, PrintStack, PushConstant


def lower(source, **kwargs):
    return program_to_instructions(parse_program(source), **kwargs)


# =============================================================================
# Expressions
# =============================================================================

class TestExpressionLowering:
    """Tests for expression lowering rules."""

    def test_int_literal(self):
        assert CodeGenerator().generate(IntLiteral(7)) == [PushConstant(7)]

    def test_addition(self):
        expr = BinaryOp(IntLiteral(2), BinaryOperator.ADD, IntLiteral(3))
        assert CodeGenerator().generate(expr) == [
            PushConstant(2), PushConstant(3), Add(),
        ]

    def test_operands_before_operator_depth_first(self):
        """1 + (2 + 3) lowers left operand, then the whole right subtree."""
        assert lower("1 + 2 + 3") == [
            PushConstant(1),
            PushConstant(2),
            PushConstant(3),
            Add(),
            Add(),
        ]

    def test_unknown_node_type(self):
        @dataclass(frozen=True)
        class Mystery(Expression):
            pass

        with pytest.raises(TypeError, match="Mystery"):
            CodeGenerator().generate(Mystery())


# =============================================================================
# Statements
# =============================================================================

class TestStatementLowering:
    """Tests for statement lowering rules."""

    def test_empty_program(self):
        assert lower("") == []

    def test_bare_expression(self):
        assert lower("2 + 3") == [PushConstant(2), PushConstant(3), Add()]

    def test_print(self):
        assert lower("print 2 + 3") == [
            PushConstant(2), PushConstant(3), Add(), PrintStack(),
        ]

    def test_log_show_lowers_like_print(self):
        assert lower("logShow 4") == lower("print 4")

    def test_binding_lowers_its_value_only(self):
        assert lower("let x = 2 + 3") == [PushConstant(2), PushConstant(3), Add()]

    def test_statements_concatenate_in_order(self):
        assert lower("1\nprint 2\n3") == [
            PushConstant(1), PushConstant(2), PrintStack(), PushConstant(3),
        ]

    def test_compiling_twice_is_identical(self):
        program = parse_program("let x = 2\nlet y = x + 1\nprint y")
        generator = CodeGenerator()
        assert generator.generate(program) == generator.generate(program)

    def test_hand_built_program(self):
        program = ProgramNode((
            Binding("a", IntLiteral(1)),
            ExpressionStatement(VariableRef("a")),
            Output(IntLiteral(9)),
        ))
        assert program_to_instructions(program) == [
            PushConstant(1), PushConstant(1), PushConstant(9), PrintStack(),
        ]


# =============================================================================
# Variable Resolution
# =============================================================================

class TestVariableResolution:
    """Tests for the default RESOLVE policy."""

    def test_scenario_bindings_then_print(self):
        source = "let x = 2\nlet y = 3\nlet z = x + y\nprint z"
        assert lower(source) == [
            PushConstant(2),
            PushConstant(3),
            PushConstant(2),
            PushConstant(3),
            Add(),
            PushConstant(5),
            PrintStack(),
        ]

    def test_reference_pushes_bound_value(self):
        assert lower("let x = 40\nx + 2") == [
            PushConstant(40), PushConstant(40), PushConstant(2), Add(),
        ]

    def test_rebinding_replaces_value(self):
        assert lower("let x = 1\nlet x = x + 10\nprint x") == [
            PushConstant(1),
            PushConstant(1),
            PushConstant(10),
            Add(),
            PushConstant(11),
            PrintStack(),
        ]

    def test_unknown_variable(self):
        with pytest.raises(UnknownVariableError) as exc_info:
            lower("print y")
        assert exc_info.value.name == "y"

    def test_reference_before_binding(self):
        with pytest.raises(UnknownVariableError):
            lower("print x\nlet x = 1")

    def test_self_reference_in_first_binding(self):
        with pytest.raises(UnknownVariableError):
            lower("let x = x + 1")

    def test_unknown_variable_message_has_location(self):
        source = "let a = 1\nprint a + b"
        generator = CodeGenerator(source_lines=split_lines(source))
        with pytest.raises(UnknownVariableError) as exc_info:
            generator.generate(parse_program(source, filename="t.ps"))
        text = str(exc_info.value)
        assert text.startswith("t.ps:2:11: error: unknown variable 'b'")
        assert "    print a + b" in text
        assert "hint: bind it first with 'let b = ...'" in text

    def test_folded_values_wrap_to_32_bits(self):
        source = "let big = 2147483647\nlet over = big + 1\nprint over"
        assert lower(source)[-2:] == [PushConstant(-2147483648), PrintStack()]

    def test_environment_after_generate(self):
        generator = CodeGenerator()
        generator.generate(parse_program("let x = 2\nlet y = x + 3"))
        assert generator.environment == {"x": 2, "y": 5}

    def test_environment_starts_empty_each_time(self):
        generator = CodeGenerator()
        generator.generate(parse_program("let x = 2"))
        with pytest.raises(UnknownVariableError):
            generator.generate(parse_program("print x"))


# =============================================================================
# Placeholder Variables
# =============================================================================

class TestPlaceholderVariables:
    """Tests for VariablePolicy.PLACEHOLDER."""

    def test_scenario_bindings_then_print(self):
        source = "let x = 2\nlet y = 3\nlet z = x + y\nprint z"
        assert lower(source, variable_policy=VariablePolicy.PLACEHOLDER) == [
            PushConstant(2),
            PushConstant(3),
            PushConstant(0),
            PushConstant(0),
            Add(),
            PushConstant(0),
            PrintStack(),
        ]

    def test_unbound_reference_is_zero(self):
        instructions = lower("print nowhere", variable_policy=VariablePolicy.PLACEHOLDER)
        assert instructions == [PushConstant(0), PrintStack()]

    def test_bindings_not_tracked(self):
        generator = CodeGenerator(VariablePolicy.PLACEHOLDER)
        generator.generate(parse_program("let x = 2"))
        assert generator.environment == {}


# =============================================================================
# Unsupported Operators
# =============================================================================

class TestUnsupportedOperators:
    """Tests for '-', '*' and '/' which have no lowering."""

    @pytest.mark.parametrize("operator", [
        BinaryOperator.SUBTRACT,
        BinaryOperator.MULTIPLY,
        BinaryOperator.DIVIDE,
    ])
    def test_permissive_lowers_to_nothing(self, operator):
        program = ProgramNode((
            Output(BinaryOp(IntLiteral(6), operator, IntLiteral(2))),
        ))
        generator = CodeGenerator()
        assert generator.generate(program) == [PrintStack()]
        assert len(generator.warnings) == 1
        assert f"operator '{operator.symbol}' not yet supported" in generator.warnings[0]

    def test_nested_inside_addition(self):
        expr = BinaryOp(
            IntLiteral(1),
            BinaryOperator.ADD,
            BinaryOp(IntLiteral(4), BinaryOperator.MULTIPLY, IntLiteral(5)),
        )
        assert CodeGenerator().generate(expr) == [PushConstant(1), Add()]

    def test_strict_raises(self):
        program = ProgramNode((
            ExpressionStatement(
                BinaryOp(IntLiteral(6), BinaryOperator.SUBTRACT, IntLiteral(2))
            ),
        ))
        with pytest.raises(UnsupportedConstructError) as exc_info:
            CodeGenerator(strict=True).generate(program)
        assert exc_info.value.construct == "operator '-'"

    def test_reference_to_unsupported_binding(self):
        program = ProgramNode((
            Binding("q", BinaryOp(IntLiteral(6), BinaryOperator.DIVIDE, IntLiteral(2))),
            Output(VariableRef("q")),
        ))
        generator = CodeGenerator()
        with pytest.raises(UnsupportedConstructError, match="value of 'q'"):
            generator.generate(program)

    def test_warnings_cleared_between_runs(self):
        bad = ProgramNode((
            ExpressionStatement(
                BinaryOp(IntLiteral(1), BinaryOperator.MULTIPLY, IntLiteral(2))
            ),
        ))
        generator = CodeGenerator()
        generator.generate(bad)
        generator.generate(parse_program("print 1"))
        assert generator.warnings == []


# =============================================================================
# Long Chains
# =============================================================================

class TestLongChains:
    """Lowering and folding of long '+' chains."""

    OPERANDS = 5000

    def test_pushes_then_adds(self):
        instructions = lower(" + ".join(["1"] * self.OPERANDS))
        assert instructions[:self.OPERANDS] == [PushConstant(1)] * self.OPERANDS
        assert instructions[self.OPERANDS:] == [Add()] * (self.OPERANDS - 1)

    def test_operand_order_is_left_to_right(self):
        source = " + ".join(str(n) for n in range(self.OPERANDS))
        pushes = [instr.value for instr in lower(source) if isinstance(instr, PushConstant)]
        assert pushes == list(range(self.OPERANDS))

    def test_binding_folds_long_chain(self):
        generator = CodeGenerator()
        generator.generate(parse_program("let n = " + " + ".join(["2"] * self.OPERANDS)))
        assert generator.environment == {"n": 2 * self.OPERANDS}

    def test_first_unknown_name_is_reported(self):
        source = "print " + " + ".join(["1"] * 3000 + ["a", "b"])
        with pytest.raises(UnknownVariableError) as exc_info:
            lower(source)
        assert exc_info.value.name == "a"
