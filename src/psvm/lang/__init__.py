"""
psvm Language Front End
=======================

Parser, AST and code generator for the psvm statement language.

Pipeline
--------
    Source → LineParser → AST → CodeGenerator → Instructions

Language Summary
----------------
- One statement per line; blank lines are ignored
- ``let name = expr`` binds a name
- ``print expr`` and ``logShow expr`` evaluate and print the stack
- Any other line is a bare expression statement
- Expressions: 32-bit integer literals, names, and ``+``

Usage
-----
>>> from psvm.lang import parse_program, compile_source
>>> program = parse_program("print 2 + 3")
>>> compile_source("print 2 + 3")
[PushConstant(value=2), PushConstant(value=3), Add(), PrintStack()]
"""

from psvm.lang.ast import (
    ASTNode,
    ASTPrinter,
    ASTVisitor,
    BinaryOp,
    BinaryOperator,
    Binding,
    Expression,
    ExpressionStatement,
    IntLiteral,
    Output,
    ProgramNode,
    Statement,
    VariableRef,
    expression_to_string,
)
from psvm.lang.parser import (
    Keyword,
    LineParser,
    parse_expr,
    parse_keyword,
    parse_operator,
    parse_program,
    parse_stmt,
)
from psvm.lang.codegen import CodeGenerator, VariablePolicy, program_to_instructions
from psvm.lang.compiler import (
    Compiler,
    CompilerOptions,
    CompilerResult,
    compile_source,
    parse_simple_purs,
    run_source,
)

__all__ = [
    # AST Nodes
    "ASTNode",
    "ASTPrinter",
    "ASTVisitor",
    "BinaryOp",
    "BinaryOperator",
    "Binding",
    "Expression",
    "ExpressionStatement",
    "IntLiteral",
    "Output",
    "ProgramNode",
    "Statement",
    "VariableRef",
    "expression_to_string",
    # Parser
    "Keyword",
    "LineParser",
    "parse_expr",
    "parse_keyword",
    "parse_operator",
    "parse_program",
    "parse_stmt",
    # Code Generator
    "CodeGenerator",
    "VariablePolicy",
    "program_to_instructions",
    # Driver
    "Compiler",
    "CompilerOptions",
    "CompilerResult",
    "compile_source",
    "parse_simple_purs",
    "run_source",
]
