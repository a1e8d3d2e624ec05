"""
Abstract Syntax Tree (AST) Definitions
======================================

This module defines the AST node types produced by the parser and
consumed by the code generator.

Node Hierarchy
--------------
ASTNode (base)
├── ProgramNode - root node holding the statements in source order
├── Statements
│   ├── Binding - let name = expr
│   ├── Output - print expr / logShow expr
│   └── ExpressionStatement - bare expression
└── Expressions
    ├── IntLiteral - 32-bit signed integer constant
    ├── VariableRef - reference to a bound name
    └── BinaryOp - left operator right

Design Notes
------------
- All nodes are frozen dataclasses; the tree is never mutated after parsing
- Each node may store its source location for error reporting
- Locations are excluded from equality, so structurally equal trees
  compare equal regardless of where they were parsed from
- Ownership is strictly parent -> children, so trees are acyclic
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Optional, Union

from psvm.errors import SourceLocation


# =============================================================================
# AST Node Base Classes
# =============================================================================

@dataclass(frozen=True)
class ASTNode:
    """
    Base class for all AST nodes.

    Attributes:
        location: Source location where this node appears (keyword-only)
    """
    location: Optional[SourceLocation] = field(
        default=None, compare=False, repr=False, kw_only=True
    )


@dataclass(frozen=True)
class Expression(ASTNode):
    """Base class for value-producing nodes."""
    pass


@dataclass(frozen=True)
class Statement(ASTNode):
    """Base class for the statements of a program."""
    pass


# =============================================================================
# Operators
# =============================================================================

class BinaryOperator(Enum):
    """Binary operator types."""
    ADD = auto()        # +
    SUBTRACT = auto()   # -
    MULTIPLY = auto()   # *
    DIVIDE = auto()     # /

    @property
    def symbol(self) -> str:
        """Source spelling of the operator."""
        return _OPERATOR_SYMBOLS[self]


_OPERATOR_SYMBOLS = {
    BinaryOperator.ADD: "+",
    BinaryOperator.SUBTRACT: "-",
    BinaryOperator.MULTIPLY: "*",
    BinaryOperator.DIVIDE: "/",
}


# =============================================================================
# Expression Nodes
# =============================================================================

@dataclass(frozen=True)
class IntLiteral(Expression):
    """
    Integer constant.

    Attributes:
        value: The constant (fits a 32-bit signed integer)
    """
    value: int


@dataclass(frozen=True)
class VariableRef(Expression):
    """
    Reference to a previously bound name.

    Attributes:
        name: The variable name
    """
    name: str


@dataclass(frozen=True)
class BinaryOp(Expression):
    """
    Binary operation expression (left op right).

    Attributes:
        left: Left operand expression
        operator: The binary operator
        right: Right operand expression
    """
    left: Expression
    operator: BinaryOperator
    right: Expression


# =============================================================================
# Statement Nodes
# =============================================================================

@dataclass(frozen=True)
class Binding(Statement):
    """
    Variable binding: let name = value.

    Attributes:
        name: The name being bound or rebound
        value: The bound expression
    """
    name: str
    value: Expression


@dataclass(frozen=True)
class Output(Statement):
    """
    Output statement: print value, or its synonym logShow value.

    Attributes:
        value: The expression whose evaluation is followed by a print
    """
    value: Expression


@dataclass(frozen=True)
class ExpressionStatement(Statement):
    """
    Expression used as a statement (no output).

    Attributes:
        value: The expression evaluated for its effect on the stack
    """
    value: Expression


# =============================================================================
# Program Root Node
# =============================================================================

@dataclass(frozen=True)
class ProgramNode(ASTNode):
    """
    Root node of the AST.

    Attributes:
        statements: Statements in source order (execution order)
    """
    statements: tuple[Statement, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "statements", tuple(self.statements))

    def __len__(self) -> int:
        return len(self.statements)

    def __iter__(self):
        return iter(self.statements)


# =============================================================================
# AST Visitor Pattern
# =============================================================================

class ASTVisitor:
    """
    Base class for AST visitors.

    Dispatches on the node class name. Subclasses define a visit_*
    method for every node type they accept; any other node type
    raises TypeError.

    Usage:
        class BindingNames(ASTVisitor):
            def visit_ProgramNode(self, node):
                return [self.visit(stmt) for stmt in node.statements]

            def visit_Binding(self, node):
                return node.name

        BindingNames().visit(parse_program("let x = 1"))   # ["x"]
    """

    def visit(self, node: ASTNode) -> Any:
        """
        Visit a node by dispatching to the appropriate method.

        Args:
            node: The AST node to visit

        Returns:
            The result of the visit method (varies by node type)
        """
        method_name = f"visit_{node.__class__.__name__}"
        visitor = getattr(self, method_name, self.generic_visit)
        return visitor(node)

    def generic_visit(self, node: ASTNode) -> Any:
        """Called for node types without a visit_* method."""
        raise TypeError(
            f"{type(self).__name__} cannot handle {type(node).__name__}"
        )


# =============================================================================
# AST Pretty Printer
# =============================================================================

class ASTPrinter(ASTVisitor):
    """
    Pretty printer for AST debugging.

    Usage:
        printer = ASTPrinter()
        print(printer.print(program))

    Output for "let x = 1 + 2" then "print x":
        Program
          Let x = (1 + 2)
          Print x
    """

    def __init__(self):
        self.output: list[str] = []
        self.indent_level = 0

    def print(self, node: ASTNode) -> str:
        """Print the AST and return as string."""
        self.output = []
        self.indent_level = 0
        self.visit(node)
        return "\n".join(self.output)

    def _emit(self, text: str) -> None:
        indent = "  " * self.indent_level
        self.output.append(f"{indent}{text}")

    def visit_ProgramNode(self, node: ProgramNode):
        self._emit("Program")
        self.indent_level += 1
        for stmt in node.statements:
            self.visit(stmt)
        self.indent_level -= 1

    def visit_Binding(self, node: Binding):
        self._emit(f"Let {node.name} = {expression_to_string(node.value)}")

    def visit_Output(self, node: Output):
        self._emit(f"Print {expression_to_string(node.value)}")

    def visit_ExpressionStatement(self, node: ExpressionStatement):
        self._emit(f"Expr: {expression_to_string(node.value)}")


def expression_to_string(expr: Expression) -> str:
    """
    Render an expression with explicit parentheses around every
    binary operation, which makes the grouping visible: the source "a + b + c" renders
    as "(a + (b + c))".
    """
    parts: list[str] = []
    pending: list[Union[Expression, str]] = [expr]
    while pending:
        item = pending.pop()
        if isinstance(item, str):
            parts.append(item)
        elif isinstance(item, IntLiteral):
            parts.append(str(item.value))
        elif isinstance(item, VariableRef):
            parts.append(item.name)
        elif isinstance(item, BinaryOp):
            pending.extend([")", item.right, f" {item.operator.symbol} ", item.left, "("])
        else:
            parts.append(f"<{type(item).__name__}>")
    return "".join(parts)
