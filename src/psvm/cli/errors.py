"""
CLI Error Reporting
===================

Maps exceptions raised while compiling or running a program to the
message shown on stderr and the process exit code.

    CompileError (syntax, unknown variable, unsupported construct)
        -> its own "file:line:col: error: ..." rendering, exit 1
    VMError (insufficient operands on a strict machine)
        -> "Runtime error: ...", exit 1
    OSError / UnicodeDecodeError while reading INPUT_FILE
        -> "Error: cannot read ...", exit 2
    anything else
        -> "Internal error: ...", exit 3 (traceback with -v)
"""

import sys
import traceback
from enum import IntEnum
from typing import NoReturn

import click

from psvm.errors import CompileError, PsvmError, VMError


class ExitCode(IntEnum):
    """Exit codes of the psvm command."""
    SUCCESS = 0
    BUILD_ERROR = 1      # Parse, compile, or runtime error
    INVALID_ARGS = 2     # Invalid arguments or unreadable input
    INTERNAL_ERROR = 3   # Unexpected internal error


def describe_error(error: Exception) -> tuple[str, ExitCode]:
    """Return the stderr message and exit code for error."""
    if isinstance(error, CompileError):
        return str(error), ExitCode.BUILD_ERROR
    if isinstance(error, VMError):
        return f"Runtime error: {error}", ExitCode.BUILD_ERROR
    if isinstance(error, PsvmError):
        return f"Error: {error}", ExitCode.BUILD_ERROR
    if isinstance(error, (OSError, UnicodeDecodeError)):
        return f"Error: cannot read input: {error}", ExitCode.INVALID_ARGS
    return f"Internal error: {error}", ExitCode.INTERNAL_ERROR


def handle_cli_exception(error: Exception, verbose: bool = False) -> NoReturn:
    """
    Report error on stderr and exit.

    Args:
        error: The exception raised by a compile or run stage
        verbose: Print the traceback for internal errors
    """
    message, code = describe_error(error)
    click.echo(message, err=True)
    if verbose and code is ExitCode.INTERNAL_ERROR:
        traceback.print_exc()
    sys.exit(code)
