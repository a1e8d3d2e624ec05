"""
psvm Error Hierarchy
====================

This module defines the exception hierarchy for the psvm toolchain.
All exceptions inherit from PsvmError, allowing callers to catch every
toolchain error with a single except clause if desired.

Exception Hierarchy
-------------------
PsvmError (base)
├── CompileError (front end and code generation)
│   ├── InvalidSyntaxError - a line matches no statement or expression shape
│   │   └── ParseFailure - every invalid line of one parse, reported together
│   ├── UnknownVariableError - reference to a name that was never bound
│   └── UnsupportedConstructError - construct the code generator cannot lower
└── VMError (execution)
    └── InsufficientOperandsError - too few values on the operand stack

Error messages follow this format:
    filename:line:column: error: description
        source_line_text
        ^ (pointer to error location)
    hint: suggestion for fixing (when available)
"""

from dataclasses import dataclass
from typing import List, Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class PsvmError(Exception):
    """
    Base exception for all psvm errors.

    All exceptions in the toolchain inherit from this class, allowing
    callers to catch everything with a single except clause:

        try:
            run_source(text)
        except PsvmError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in source code for error reporting.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """
    filename: str
    line: int
    column: int

    def __str__(self) -> str:
        """Format as 'filename:line:column' for error messages."""
        return f"{self.filename}:{self.line}:{self.column}"


# =============================================================================
# Compile-Time Exceptions
# =============================================================================

class CompileError(PsvmError):
    """
    Base exception for parser and code generator errors.

    Attributes:
        message: The error description
        location: Where in the source the error occurred (optional)
        hint: A suggestion for fixing the error (optional)
        source_line: The actual source text at the error location (optional)
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """
        Format the error message with location, source context, and hint.

        Example output:
            demo.ps:3:13: error: invalid expression '2 +'
                let z = 2 +
                        ^
            hint: both sides of '+' need an operand
        """
        parts = []

        # Location prefix
        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        # Source context with caret pointer
        if self.source_line is not None and self.location is not None:
            parts.append(f"    {self.source_line}")
            if self.location.column > 0:
                padding = " " * (4 + self.location.column - 1)
                parts.append(f"{padding}^")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


class InvalidSyntaxError(CompileError):
    """
    Syntax error in program source.

    Raised when a non-blank line matches none of the statement shapes,
    or when an expression (or any sub-expression) fails to parse.

    Examples:
        let             # keyword without a binding
        let x = 1 = 2   # more than one '='
        print 2 +       # missing right operand
        x * 2           # '*' is not part of the expression grammar
    """
    pass


class ParseFailure(InvalidSyntaxError):
    """
    Aggregate syntax error covering every invalid line of a parse.

    The parser keeps going after a bad line so that all problems are
    reported at once. No partial program is ever returned; this error
    is raised instead. The message is the pre-formatted report from
    ErrorCollector.

    Attributes:
        errors: The individual InvalidSyntaxError instances, in line order
    """

    def __init__(self, errors: List[InvalidSyntaxError], report: str):
        self.errors = list(errors)
        first = self.errors[0] if self.errors else None
        super().__init__(
            report,
            location=first.location if first else None,
        )

    def _format_message(self) -> str:
        """Return message as-is - it's already a formatted aggregate report."""
        return self.message


class UnknownVariableError(CompileError):
    """
    Reference to a variable that has no earlier binding.

    Example:
        print y     # no 'let y = ...' before this line
    """

    def __init__(
        self,
        name: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.name = name
        super().__init__(
            f"unknown variable '{name}'",
            location=location,
            hint=f"bind it first with 'let {name} = ...'",
            source_line=source_line,
        )


class UnsupportedConstructError(CompileError):
    """
    Construct the code generator cannot lower.

    Only raised in strict mode. In the default permissive mode the
    code generator lowers such constructs to an empty instruction
    sequence and records a warning instead.

    Attributes:
        construct: Short name of the construct (e.g. "operator '-'")
    """

    def __init__(
        self,
        construct: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
    ):
        self.construct = construct
        super().__init__(
            f"{construct} is not supported",
            location=location,
            hint=hint,
        )


# =============================================================================
# Runtime Exceptions
# =============================================================================

class VMError(PsvmError):
    """Base exception for virtual machine execution errors."""
    pass


class InsufficientOperandsError(VMError):
    """
    An instruction needs more operands than the stack holds.

    Only raised by a strict VirtualMachine; the default machine treats
    this case as a silent no-op.

    Attributes:
        mnemonic: Mnemonic of the failing instruction
        required: Number of values the instruction needs
        available: Number of values on the stack
        index: Position of the instruction in the program (if known)
    """

    def __init__(
        self,
        mnemonic: str,
        required: int,
        available: int,
        index: Optional[int] = None,
    ):
        self.mnemonic = mnemonic
        self.required = required
        self.available = available
        self.index = index
        where = f" at instruction {index}" if index is not None else ""
        super().__init__(
            f"{mnemonic}{where} needs {required} operands, "
            f"stack holds {available}"
        )


# =============================================================================
# Error Collection for Multiple Error Reporting
# =============================================================================

class ErrorCollector:
    """
    Collects multiple errors for batch reporting.

    The parser uses this to keep going after an invalid line, collecting
    all errors before reporting them together. The code generator uses
    the warning list for placeholder lowerings.

    Example:
        collector = ErrorCollector()

        for number, line in enumerate(lines, start=1):
            try:
                parse_line(line)
            except InvalidSyntaxError as e:
                collector.add(e)

        if collector.has_errors():
            print(collector.report())
    """

    def __init__(self, max_errors: int = 100):
        """
        Initialize the error collector.

        Args:
            max_errors: Maximum errors to collect before stopping
        """
        self.errors: List[CompileError] = []
        self.warnings: List[str] = []
        self.max_errors = max_errors

    def add(self, error: CompileError) -> None:
        """Add an error to the collection."""
        self.errors.append(error)

    def add_warning(self, message: str, location: Optional[SourceLocation] = None) -> None:
        """Add a warning message."""
        if location:
            self.warnings.append(f"{location}: warning: {message}")
        else:
            self.warnings.append(f"warning: {message}")

    def has_errors(self) -> bool:
        """Return True if any errors have been collected."""
        return len(self.errors) > 0

    def should_stop(self) -> bool:
        """Return True if max_errors has been reached."""
        return len(self.errors) >= self.max_errors

    def error_count(self) -> int:
        """Return the number of collected errors."""
        return len(self.errors)

    def warning_count(self) -> int:
        """Return the number of collected warnings."""
        return len(self.warnings)

    def report(self) -> str:
        """Format all errors and warnings for display."""
        lines = []

        for error in self.errors:
            lines.append(str(error))
            lines.append("")  # Blank line between errors

        for warning in self.warnings:
            lines.append(warning)

        error_word = "error" if len(self.errors) == 1 else "errors"
        warning_word = "warning" if len(self.warnings) == 1 else "warnings"
        lines.append(
            f"\n{len(self.errors)} {error_word}, {len(self.warnings)} {warning_word}"
        )

        return "\n".join(lines)

    def clear(self) -> None:
        """Clear all collected errors and warnings."""
        self.errors.clear()
        self.warnings.clear()
