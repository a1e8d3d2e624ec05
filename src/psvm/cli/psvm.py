"""
psvm - Compile and Run Command-Line Interface
=============================================

This module implements the ``psvm`` command. It compiles a program and
runs it on the virtual machine, printing the stack at every print or
logShow statement.

Usage Examples
--------------
Run a program:
    $ psvm demo.ps

Run inline source:
    $ psvm -e "print 2 + 3"

List the compiled instructions:
    $ psvm -S demo.ps

Print the AST:
    $ psvm --ast demo.ps

Trace execution:
    $ psvm --trace demo.ps
"""

import logging
from pathlib import Path
from typing import Optional

import click

from psvm import __version__
from psvm.cli.errors import handle_cli_exception
from psvm.lang.ast import ASTPrinter
from psvm.lang.codegen import VariablePolicy
from psvm.lang.compiler import Compiler, CompilerOptions
from psvm.lang.parser import parse_program
from psvm.vm.instructions import Instruction, disassemble, format_instruction
from psvm.vm.machine import VirtualMachine

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if verbose else "%(message)s",
    )


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    required=False,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-e", "--eval", "eval_source",
    metavar="SOURCE",
    help="Program text to run instead of INPUT_FILE",
)
@click.option(
    "--ast",
    is_flag=True,
    help="Print AST and exit (for debugging)",
)
@click.option(
    "-S", "--disasm",
    is_flag=True,
    help="Print the instruction listing and exit",
)
@click.option(
    "--placeholder-vars",
    is_flag=True,
    help="Compile every variable reference to PUSH 0 instead of its value",
)
@click.option(
    "--strict",
    is_flag=True,
    help="Treat unsupported operators and missing operands as errors",
)
@click.option(
    "--trace",
    is_flag=True,
    help="Write each instruction and the stack to stderr before executing it",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="psvm")
def main(
    input_file: Optional[Path],
    eval_source: Optional[str],
    ast: bool,
    disasm: bool,
    placeholder_vars: bool,
    strict: bool,
    trace: bool,
    verbose: bool,
) -> None:
    """
    Compile and run a psvm program.

    INPUT_FILE is the program source, one statement per line.
    Use -e to pass the program on the command line instead.

    \b
    Examples:
        psvm demo.ps                 # Run, printing at each print
        psvm -e "print 2 + 3"        # Run inline source
        psvm -S demo.ps              # Instruction listing
        psvm --ast demo.ps           # AST dump
        psvm --placeholder-vars x.ps # Variables compile to 0

    \b
    Language:
        let name = expr      bind a name
        print expr           evaluate, then print the stack
        logShow expr         same as print
        expr                 evaluate only
    """
    if (input_file is None) == (eval_source is None):
        raise click.UsageError("give exactly one of INPUT_FILE or -e/--eval")

    setup_logging(verbose)

    options = CompilerOptions(
        variable_policy=(
            VariablePolicy.PLACEHOLDER if placeholder_vars else VariablePolicy.RESOLVE
        ),
        strict=strict,
    )
    logger.debug(f"Compiler options: {options}")

    try:
        if input_file is not None:
            source = input_file.read_text(encoding="utf-8")
            filename = str(input_file)
        else:
            source = eval_source
            filename = "<eval>"

        # AST dump mode: parsing only, names need not be bound
        if ast:
            click.echo(ASTPrinter().print(parse_program(source, filename)))
            return

        if verbose:
            click.echo(f"Compiling {filename}...", err=True)
            click.echo(f"Variables: {options.variable_policy.value}", err=True)

        result = Compiler(options).compile_source(source, filename)

        for warning in result.warnings:
            click.echo(warning, err=True)

        # Listing mode
        if disasm:
            listing = disassemble(result.instructions)
            if listing:
                click.echo(listing)
            return

        if verbose:
            click.echo(f"Parsed: {result.statement_count} statements", err=True)
            click.echo(
                f"Generated: {len(result.instructions)} instructions", err=True
            )

        vm = VirtualMachine(strict=strict)
        if trace:
            vm.on_instruction = _make_tracer(vm)
        vm.run(result.instructions)

        if verbose:
            click.echo(f"Final stack: {vm.format_stack()}", err=True)

    except Exception as e:
        handle_cli_exception(e, verbose=verbose)


def _make_tracer(vm: VirtualMachine):
    def trace(index: int, instruction: Instruction) -> None:
        click.echo(
            f"{index:04d}  {format_instruction(instruction):<16} {vm.format_stack()}",
            err=True,
        )
    return trace


if __name__ == "__main__":
    main()
