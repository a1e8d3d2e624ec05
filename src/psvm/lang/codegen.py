"""
Bytecode Code Generator
=======================

Lowers the AST into the flat instruction sequence executed by the
virtual machine. Lowering is structural recursion over the tree;
operands are always emitted before the instruction consuming them.

Lowering Rules
--------------
    IntLiteral(n)             -> PUSH n
    VariableRef(name)         -> PUSH value        (see Variable Policy)
    BinaryOp(l, +, r)         -> <l> <r> ADD
    BinaryOp(l, - * /, r)     -> nothing, plus a warning
                                 (UnsupportedConstructError when strict)
    Binding(name, e)          -> <e>
    Output(e)                 -> <e> PRINT
    ExpressionStatement(e)    -> <e>
    ProgramNode               -> statements concatenated in source order

A Binding leaves its value on the stack. Nothing pops it, so later
statements run on top of whatever earlier statements left behind and
PRINT shows all of it.

Variable Policy
---------------
RESOLVE (default):
    Statements are folded left to right with an environment mapping
    each bound name to the constant value of its right-hand side.
    A reference lowers to PUSH of that value. Referencing a name that
    has no earlier binding raises UnknownVariableError. Rebinding a
    name replaces its value for the statements that follow.

PLACEHOLDER:
    Every reference lowers to PUSH 0 and bindings are not tracked.

Each call to generate() starts from an empty environment.
"""

import logging
from enum import Enum
from typing import Optional

from psvm.errors import (
    ErrorCollector,
    UnknownVariableError,
    UnsupportedConstructError,
)
from psvm.lang.ast import (
    ASTNode,
    ASTVisitor,
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
from psvm.vm.instructions import Add, Instruction, PrintStack, PushConstant
from psvm.vm.machine import wrap_int32

logger = logging.getLogger(__name__)


class VariablePolicy(Enum):
    """How variable references are lowered."""
    RESOLVE = "resolve"
    PLACEHOLDER = "placeholder"


# Value of every reference under VariablePolicy.PLACEHOLDER
PLACEHOLDER_VALUE = 0


class CodeGenerator(ASTVisitor):
    """
    Lowers AST nodes to instructions.

    Example:
        generator = CodeGenerator()
        instructions = generator.generate(parse_program("print 2 + 3"))
        # [PushConstant(2), PushConstant(3), Add(), PrintStack()]

    Attributes:
        variable_policy: How variable references are lowered
        strict: Raise on unsupported operators instead of emitting nothing
        warnings: Warnings recorded by the last generate() call
    """

    def __init__(
        self,
        variable_policy: VariablePolicy = VariablePolicy.RESOLVE,
        strict: bool = False,
        source_lines: Optional[list[str]] = None,
    ):
        """
        Initialize the code generator.

        Args:
            variable_policy: RESOLVE or PLACEHOLDER
            strict: Raise UnsupportedConstructError for '-', '*' and '/'
            source_lines: Original source lines for error context
        """
        self.variable_policy = variable_policy
        self.strict = strict
        self.source_lines = source_lines or []

        # name -> constant value, or None when the bound expression
        # contains an operator that could not be lowered
        self._env: dict[str, Optional[int]] = {}
        self._errors = ErrorCollector()

    @property
    def warnings(self) -> list[str]:
        return list(self._errors.warnings)

    @property
    def environment(self) -> dict[str, Optional[int]]:
        """Bindings visible after the last generate() call."""
        return dict(self._env)

    def generate(self, node: ASTNode) -> list[Instruction]:
        """
        Lower a program (or any single node) to instructions.

        Args:
            node: Usually a ProgramNode; statements and expressions
                  are accepted too

        Returns:
            The instruction sequence

        Raises:
            UnknownVariableError: RESOLVE policy, reference before binding
            UnsupportedConstructError: strict mode, unsupported operator;
                or a reference to a binding whose value used one
        """
        self._env = {}
        self._errors.clear()
        instructions = self.visit(node)
        logger.debug(
            f"Generated {len(instructions)} instruction(s), "
            f"{self._errors.warning_count()} warning(s)"
        )
        return instructions

    # =========================================================================
    # Statements
    # =========================================================================

    def visit_ProgramNode(self, node: ProgramNode) -> list[Instruction]:
        code: list[Instruction] = []
        for stmt in node.statements:
            code.extend(self.visit(stmt))
        return code

    def visit_Binding(self, node: Binding) -> list[Instruction]:
        code = self.visit(node.value)
        if self.variable_policy is VariablePolicy.RESOLVE:
            self._env = {**self._env, node.name: self._evaluate(node.value)}
            logger.debug(f"Bound '{node.name}' = {self._env[node.name]}")
        return code

    def visit_Output(self, node: Output) -> list[Instruction]:
        return self.visit(node.value) + [PrintStack()]

    def visit_ExpressionStatement(self, node: ExpressionStatement) -> list[Instruction]:
        return self.visit(node.value)

    # =========================================================================
    # Expressions
    # =========================================================================

    def visit_IntLiteral(self, node: IntLiteral) -> list[Instruction]:
        return [PushConstant(node.value)]

    def visit_VariableRef(self, node: VariableRef) -> list[Instruction]:
        if self.variable_policy is VariablePolicy.PLACEHOLDER:
            return [PushConstant(PLACEHOLDER_VALUE)]

        if node.name not in self._env:
            raise UnknownVariableError(
                node.name,
                location=node.location,
                source_line=self._source_line(node),
            )

        value = self._env[node.name]
        if value is None:
            raise UnsupportedConstructError(
                f"value of '{node.name}'",
                location=node.location,
                hint=f"the binding of '{node.name}' uses an operator "
                     f"that cannot be compiled",
            )
        return [PushConstant(value)]

    def visit_BinaryOp(self, node: BinaryOp) -> list[Instruction]:
        # Work stack instead of recursion: long '+' chains nest as deep
        # as they are long.
        code: list[Instruction] = []
        pending: list = [node]
        while pending:
            item = pending.pop()
            if isinstance(item, Instruction):
                code.append(item)
            elif not isinstance(item, BinaryOp):
                code.extend(self.visit(item))
            elif item.operator is BinaryOperator.ADD:
                pending.extend([Add(), item.right, item.left])
            else:
                code.extend(self._unsupported_operator(item))
        return code

    def _unsupported_operator(self, node: BinaryOp) -> list[Instruction]:
        construct = f"operator '{node.operator.symbol}'"
        if self.strict:
            raise UnsupportedConstructError(
                construct,
                location=node.location,
                hint="only '+' can be compiled",
            )
        self._errors.add_warning(
            f"{construct} not yet supported, no code generated",
            node.location,
        )
        logger.warning(f"{construct} not yet supported, no code generated")
        return []

    # =========================================================================
    # Helpers
    # =========================================================================

    def _evaluate(self, expr: Expression) -> Optional[int]:
        """Constant value of an already lowered expression, if it has one."""
        # Wrapping addition is associative, so summing the leaves in any
        # order gives the value of the tree.
        total = 0
        pending = [expr]
        while pending:
            item = pending.pop()
            if isinstance(item, IntLiteral):
                total += item.value
            elif isinstance(item, VariableRef) and self._env.get(item.name) is not None:
                total += self._env[item.name]
            elif isinstance(item, BinaryOp) and item.operator is BinaryOperator.ADD:
                pending.extend([item.left, item.right])
            else:
                return None
        return wrap_int32(total)

    def _source_line(self, node: ASTNode) -> Optional[str]:
        if node.location is None:
            return None
        index = node.location.line - 1
        if 0 <= index < len(self.source_lines):
            return self.source_lines[index]
        return None


def program_to_instructions(
    program: ProgramNode,
    variable_policy: VariablePolicy = VariablePolicy.RESOLVE,
    strict: bool = False,
) -> list[Instruction]:
    """
    Lower a program with a fresh CodeGenerator.

    Raises:
        UnknownVariableError, UnsupportedConstructError: see CodeGenerator
    """
    return CodeGenerator(variable_policy, strict).generate(program)
