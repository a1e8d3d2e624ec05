"""
psvm Command-Line Interface
===========================

This package provides the ``psvm`` command, which compiles and runs
programs, prints their AST, or lists their instructions.

The tool is a Click-based CLI application with consistent error
reporting and exit codes (see psvm.cli.errors).
"""

__all__ = ["psvm"]
