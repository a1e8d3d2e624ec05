"""
psvm - Tiny Language Front End and Stack Machine
================================================

This package compiles a tiny line-oriented language to a flat
instruction sequence and runs it on a stack virtual machine.

Main Components
---------------
- **lang**: parser, AST, code generator and compiler driver
    Turns source text into instructions

- **vm**: instruction set and virtual machine
    Executes instructions on a 32-bit operand stack

- **cli**: the ``psvm`` command

Quick Start
-----------
Compile and run a program:
    >>> from psvm import run_source
    >>> vm = run_source("let x = 2\\nlet y = 3\\nlet z = x + y\\nprint z")
    [2, 3, 5, 5]

Inspect the compiled code:
    >>> from psvm import compile_source, disassemble
    >>> print(disassemble(compile_source("print 2 + 3")))
    0000  PUSH 2
    0001  PUSH 3
    0002  ADD
    0003  PRINT

Or use the command-line tool:
    $ psvm program.ps
    $ psvm -S program.ps
    $ psvm -e "print 2 + 3"
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from psvm.errors import (
    PsvmError,
    SourceLocation,
    CompileError,
    InvalidSyntaxError,
    ParseFailure,
    UnknownVariableError,
    UnsupportedConstructError,
    VMError,
    InsufficientOperandsError,
)
from psvm.lang import (
    Compiler,
    CompilerOptions,
    CompilerResult,
    VariablePolicy,
    compile_source,
    parse_program,
    parse_simple_purs,
    run_source,
)
from psvm.vm import (
    Add,
    Instruction,
    PrintStack,
    PushConstant,
    VirtualMachine,
    disassemble,
)

__all__ = [
    "__version__",
    # Exception hierarchy
    "PsvmError",
    "SourceLocation",
    "CompileError",
    "InvalidSyntaxError",
    "ParseFailure",
    "UnknownVariableError",
    "UnsupportedConstructError",
    "VMError",
    "InsufficientOperandsError",
    # Compiler
    "Compiler",
    "CompilerOptions",
    "CompilerResult",
    "VariablePolicy",
    "compile_source",
    "parse_program",
    "parse_simple_purs",
    "run_source",
    # Virtual machine
    "Add",
    "Instruction",
    "PrintStack",
    "PushConstant",
    "VirtualMachine",
    "disassemble",
]
