"""
Compiler Driver
===============

Orchestrates the complete pipeline:

    Source → Parse → AST → Generate → Instructions → (VirtualMachine)

Usage
-----
Command line:
    $ psvm program.ps

Programmatic:
    >>> from psvm.lang import compile_source
    >>> compile_source("print 2 + 3")
    [PushConstant(value=2), PushConstant(value=3), Add(), PrintStack()]

    >>> from psvm.lang import run_source
    >>> vm = run_source("let x = 2\\nprint x + 3")
    [2, 5]

Error Handling
--------------
Parse errors for every invalid line are reported together in a
single ParseFailure. Code generation stops at its first error.
Warnings for placeholder lowering are returned in the result.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from psvm.errors import PsvmError
from psvm.lang.ast import ProgramNode
from psvm.lang.codegen import CodeGenerator, VariablePolicy
from psvm.lang.parser import LineParser
from psvm.vm.instructions import Instruction
from psvm.vm.machine import VirtualMachine

logger = logging.getLogger(__name__)


@dataclass
class CompilerOptions:
    """
    Compiler configuration options.

    Attributes:
        variable_policy: RESOLVE looks up bound values; PLACEHOLDER
                         lowers every reference to PUSH 0
        strict: Unsupported operators raise UnsupportedConstructError
                instead of lowering to no code
    """
    variable_policy: VariablePolicy = VariablePolicy.RESOLVE
    strict: bool = False


@dataclass
class CompilerResult:
    """
    Result of a compilation.

    Attributes:
        filename: Source filename
        success: True if compilation succeeded
        ast: Abstract syntax tree (if parsing succeeded)
        instructions: Generated instructions (if successful)
        warnings: Warning messages from code generation
    """
    filename: str = ""
    success: bool = False
    ast: Optional[ProgramNode] = None
    instructions: list[Instruction] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def statement_count(self) -> int:
        return len(self.ast.statements) if self.ast is not None else 0


class Compiler:
    """
    Compiler for psvm source text.

    Example:
        compiler = Compiler()
        result = compiler.compile_file("demo.ps")
        VirtualMachine().run(result.instructions)

    Attributes:
        options: Compiler configuration options
    """

    def __init__(self, options: Optional[CompilerOptions] = None):
        """
        Initialize the compiler.

        Args:
            options: Compiler configuration (uses defaults if None)
        """
        self.options = options or CompilerOptions()

    def compile_source(self, source: str, filename: str = "<input>") -> CompilerResult:
        """
        Compile source text to instructions.

        Args:
            source: Program text, one statement per line
            filename: Source filename for error messages

        Returns:
            CompilerResult with the AST, instructions and warnings

        Raises:
            PsvmError: If parsing or code generation fails
        """
        result = CompilerResult(filename=filename)

        # Stage 1: Parsing
        parser = LineParser(source, filename)
        ast = parser.parse()
        result.ast = ast

        # Stage 2: Code generation
        generator = CodeGenerator(
            variable_policy=self.options.variable_policy,
            strict=self.options.strict,
            source_lines=parser.lines,
        )
        result.instructions = generator.generate(ast)
        result.warnings = generator.warnings
        result.success = True

        logger.debug(
            f"Compiled {filename}: {result.statement_count} statement(s) -> "
            f"{len(result.instructions)} instruction(s)"
        )
        return result

    def compile_file(self, filepath: str) -> CompilerResult:
        """
        Compile a source file.

        Raises:
            PsvmError: If compilation fails
            FileNotFoundError: If the source file does not exist
        """
        path = Path(filepath)
        if not path.exists():
            raise FileNotFoundError(f"Source file not found: {filepath}")

        source = path.read_text(encoding="utf-8")
        return self.compile_source(source, str(filepath))


# =============================================================================
# Convenience Functions
# =============================================================================

def compile_source(
    source: str,
    filename: str = "<input>",
    variable_policy: VariablePolicy = VariablePolicy.RESOLVE,
    strict: bool = False,
) -> list[Instruction]:
    """
    Compile source text and return the instructions.

    Raises:
        PsvmError: If parsing or code generation fails
    """
    options = CompilerOptions(variable_policy=variable_policy, strict=strict)
    return Compiler(options).compile_source(source, filename).instructions


def run_source(
    source: str,
    vm: Optional[VirtualMachine] = None,
    variable_policy: VariablePolicy = VariablePolicy.RESOLVE,
    strict: bool = False,
) -> VirtualMachine:
    """
    Compile source text and run it.

    Args:
        source: Program text
        vm: Machine to run on (a fresh one if None)
        variable_policy: See CompilerOptions
        strict: Strict compilation and, for a fresh machine, strict execution

    Returns:
        The machine after the run, for inspecting stack and output

    Raises:
        PsvmError: If compilation or strict execution fails
    """
    instructions = compile_source(
        source, variable_policy=variable_policy, strict=strict
    )
    if vm is None:
        vm = VirtualMachine(strict=strict)
    vm.run(instructions)
    return vm


def parse_simple_purs(source: str) -> list[Instruction]:
    """
    Compile with default options, returning [] if the source is invalid.

    Errors are logged at debug level rather than raised.
    """
    try:
        return compile_source(source)
    except PsvmError as e:
        logger.debug(f"Source rejected: {e}")
        return []
