"""
Line-Oriented Statement Parser
==============================

This module turns program source into an Abstract Syntax Tree (AST).
Every non-blank line holds exactly one statement; blank lines are
skipped.

Grammar
-------
statement   ::= 'let' NAME '=' expr
              | ('print' | 'logShow') expr
              | expr
expr        ::= operand '+' expr          (split at the first '+')
              | INTEGER                   ([+-]?[0-9]+, 32-bit signed)
              | NAME                      ([A-Za-z0-9_]+, not a keyword)

Statement shapes are tried in the order above and the first one whose
keyword applies wins. Keywords are reserved and cannot be used as
variable names.

Associativity
-------------
Expressions are split at the *first* '+', so the right-hand side is
parsed again and chains nest to the right:

    a + b + c   parses as   a + (b + c)

Addition is the only operator in the expression grammar, so the
grouping does not change computed values.

Error Handling
--------------
Parsing is all-or-nothing: if any line is invalid no program is
returned. The parser keeps going after a bad line so that every
invalid line is reported in a single ParseFailure.

Example Usage
-------------
>>> from psvm.lang.parser import parse_program
>>> program = parse_program("let x = 2\\nprint x + 3")
>>> len(program.statements)
2
"""

import logging
import re
from enum import Enum, auto
from typing import Callable, Optional

from psvm.errors import (
    ErrorCollector,
    InvalidSyntaxError,
    ParseFailure,
    SourceLocation,
)
from psvm.lang.ast import (
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
)

logger = logging.getLogger(__name__)


# =============================================================================
# Lexical Constants
# =============================================================================

INT32_MIN = -(2 ** 31)
INT32_MAX = 2 ** 31 - 1

_INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")


class Keyword(Enum):
    """Reserved statement keywords."""
    LET = auto()
    PRINT = auto()
    LOGSHOW = auto()


KEYWORDS: dict[str, Keyword] = {
    "let": Keyword.LET,
    "print": Keyword.PRINT,
    "logShow": Keyword.LOGSHOW,
}

OPERATORS: dict[str, BinaryOperator] = {
    "+": BinaryOperator.ADD,
    "-": BinaryOperator.SUBTRACT,
    "*": BinaryOperator.MULTIPLY,
    "/": BinaryOperator.DIVIDE,
}


def parse_keyword(text: str) -> Optional[Keyword]:
    """Return the keyword spelled by text, or None (case-sensitive)."""
    return KEYWORDS.get(text)


def parse_operator(text: str) -> Optional[BinaryOperator]:
    """Return the binary operator spelled by text, or None."""
    return OPERATORS.get(text)


def is_identifier(text: str) -> bool:
    """True if text is a non-empty run of alphanumerics and underscores."""
    return bool(text) and all(c.isalnum() or c == "_" for c in text)


def split_lines(source: str) -> list[str]:
    """
    Split source into lines at '\\n', dropping one trailing '\\r' per line.

    Unlike str.splitlines(), form feeds, vertical tabs and Unicode line
    separators stay inside the line they appear in.
    """
    return [
        line[:-1] if line.endswith("\r") else line
        for line in source.split("\n")
    ]


# =============================================================================
# Parser
# =============================================================================

class LineParser:
    """
    Parser for line-oriented program source.

    Each line is handed to an ordered list of statement recognizers.
    A recognizer returns None when its keyword does not apply to the
    line, and raises InvalidSyntaxError when it applies but the rest
    of the line is malformed. The last recognizer (bare expression)
    accepts every line it sees.

    Attributes:
        source: The program text
        filename: Source filename for error reporting
    """

    def __init__(self, source: str, filename: str = "<input>"):
        """
        Initialize the parser.

        Args:
            source: Program source text
            filename: Source filename for error messages
        """
        self.source = source
        self.filename = filename
        self.lines = split_lines(source)

        self._errors = ErrorCollector()

        # Position of the line being parsed, for error locations
        self._line_number = 1
        self._line_text = source

        # First match wins
        self._recognizers: list[Callable[[str, int], Optional[Statement]]] = [
            self._parse_binding,
            self._parse_output,
            self._parse_expression_statement,
        ]

    def parse(self) -> ProgramNode:
        """
        Parse the whole source into a program.

        Returns:
            ProgramNode with one statement per non-blank line

        Raises:
            ParseFailure: If any line is invalid (lists every bad line)
        """
        self._errors.clear()
        statements = []

        for number, line in enumerate(self.lines, start=1):
            if not line.strip():
                continue
            try:
                statements.append(self.parse_line(line, number))
            except InvalidSyntaxError as e:
                self._errors.add(e)
                if self._errors.should_stop():
                    break

        if self._errors.has_errors():
            logger.debug(
                f"{self.filename}: {self._errors.error_count()} invalid line(s)"
            )
            raise ParseFailure(self._errors.errors, self._errors.report())

        logger.debug(f"{self.filename}: parsed {len(statements)} statement(s)")
        return ProgramNode(
            tuple(statements),
            location=SourceLocation(self.filename, 1, 1),
        )

    def parse_line(self, line: str, number: int = 1) -> Statement:
        """
        Parse a single non-blank line into a statement.

        Args:
            line: The raw line text
            number: Line number used in error locations

        Raises:
            InvalidSyntaxError: If the line is blank or malformed
        """
        self._line_number = number
        self._line_text = line

        text = line.strip()
        column = len(line) - len(line.lstrip())
        if not text:
            raise self._error("empty statement", column)

        for recognizer in self._recognizers:
            statement = recognizer(text, column)
            if statement is not None:
                return statement

        # Unreachable: the expression recognizer never declines a line
        raise self._error(f"unrecognized statement '{text}'", column)

    def parse_expression(self, text: str, offset: int = 0) -> Expression:
        """
        Parse an expression.

        Args:
            text: Expression text (surrounding whitespace is ignored)
            offset: 0-based column of text within the current line

        Raises:
            InvalidSyntaxError: If text or any sub-expression is invalid
        """
        # Splitting at the first '+' and parsing the rest again is the
        # same as splitting at every '+' and folding from the right.
        operands = []
        for piece in text.split("+"):
            operands.append(self._parse_operand(piece, offset))
            offset += len(piece) + 1

        expr = operands.pop()
        while operands:
            left = operands.pop()
            expr = BinaryOp(
                left, BinaryOperator.ADD, expr,
                location=left.location,
            )
        return expr

    def _parse_operand(self, text: str, offset: int) -> Expression:
        """Parse an integer literal or a variable name."""
        lead = len(text) - len(text.lstrip())
        body = text.strip()
        start = offset + lead

        if _INTEGER_PATTERN.fullmatch(body):
            value = int(body)
            if not INT32_MIN <= value <= INT32_MAX:
                raise self._error(
                    f"integer literal {body} does not fit in 32 bits",
                    start,
                    hint=f"use a value between {INT32_MIN} and {INT32_MAX}",
                )
            return IntLiteral(value, location=self._location(start))

        if is_identifier(body):
            if parse_keyword(body) is not None:
                raise self._error(
                    f"'{body}' is a reserved keyword",
                    start,
                    hint="keywords cannot be used as variable names",
                )
            return VariableRef(body, location=self._location(start))

        if not body:
            raise self._error(
                "missing operand",
                start,
                hint="both sides of '+' need an operand",
            )

        raise self._error(f"invalid expression '{body}'", start)

    # =========================================================================
    # Statement Recognizers
    # =========================================================================

    def _parse_binding(self, text: str, column: int) -> Optional[Statement]:
        """let NAME = expr"""
        keyword, rest, rest_column = self._split_keyword(text, column)
        if parse_keyword(keyword) is not Keyword.LET:
            return None

        hint = "write 'let name = expression'"
        if not rest:
            raise self._error("'let' needs a binding", column, hint=hint)

        parts = rest.split("=")
        if len(parts) != 2:
            raise self._error(
                f"expected exactly one '=' in binding, found {len(parts) - 1}",
                rest_column,
                hint=hint,
            )

        name = parts[0].strip()
        name_column = rest_column + len(parts[0]) - len(parts[0].lstrip())
        if not is_identifier(name):
            raise self._error(
                f"invalid variable name '{name}'", name_column, hint=hint
            )
        if parse_keyword(name) is not None:
            raise self._error(
                f"'{name}' is a reserved keyword",
                name_column,
                hint="keywords cannot be used as variable names",
            )

        value = self.parse_expression(parts[1], rest_column + len(parts[0]) + 1)
        return Binding(name, value, location=self._location(column))

    def _parse_output(self, text: str, column: int) -> Optional[Statement]:
        """print expr | logShow expr"""
        keyword, rest, rest_column = self._split_keyword(text, column)
        if parse_keyword(keyword) not in (Keyword.PRINT, Keyword.LOGSHOW):
            return None

        if not rest:
            raise self._error(
                f"'{keyword}' needs an expression",
                column + len(keyword),
                hint=f"write '{keyword} expression'",
            )

        value = self.parse_expression(rest, rest_column)
        return Output(value, location=self._location(column))

    def _parse_expression_statement(self, text: str, column: int) -> Optional[Statement]:
        """expr"""
        value = self.parse_expression(text, column)
        return ExpressionStatement(value, location=self._location(column))

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _split_keyword(text: str, column: int) -> tuple[str, str, int]:
        """
        Split a stripped line into its first word and the remainder.

        Returns:
            (first word, stripped remainder, 0-based column of remainder)
        """
        word = text.split(None, 1)[0]
        tail = text[len(word):]
        rest = tail.strip()
        rest_column = column + len(word) + (len(tail) - len(tail.lstrip()))
        return word, rest, rest_column

    def _location(self, offset: int) -> SourceLocation:
        return SourceLocation(self.filename, self._line_number, offset + 1)

    def _error(
        self, message: str, offset: int, hint: Optional[str] = None
    ) -> InvalidSyntaxError:
        return InvalidSyntaxError(
            message,
            location=self._location(offset),
            hint=hint,
            source_line=self._line_text,
        )


# =============================================================================
# Convenience Functions
# =============================================================================

def parse_program(source: str, filename: str = "<input>") -> ProgramNode:
    """
    Parse program source into an AST.

    Args:
        source: Program text, one statement per line
        filename: Source filename for error messages

    Returns:
        The root ProgramNode (empty for empty or blank source)

    Raises:
        ParseFailure: If any non-blank line is invalid
    """
    return LineParser(source, filename).parse()


def parse_stmt(line: str) -> Statement:
    """
    Parse one line into a statement.

    Raises:
        InvalidSyntaxError: If the line is blank or malformed
    """
    return LineParser(line).parse_line(line)


def parse_expr(text: str) -> Expression:
    """
    Parse an expression.

    Raises:
        InvalidSyntaxError: If the text is not a valid expression
    """
    return LineParser(text).parse_expression(text)
