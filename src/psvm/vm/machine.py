"""
Stack Virtual Machine
=====================

Executes compiled instruction sequences on a single operand stack of
32-bit signed integers.

Execution Model:
- The stack starts empty when the machine is created (or reset)
- run() executes every instruction once, in order, then stops
- There is no halt or jump; execution is strictly linear
- PRINT emits the whole stack and leaves it untouched
- ADD wraps its result to 32 bits (two's complement)

Insufficient Operands:
    ADD with fewer than two values on the stack is a silent no-op by
    default. A machine created with strict=True raises
    InsufficientOperandsError instead. In both cases the stack is left
    unchanged.

Instrumentation:
    on_instruction(index, instruction) is called before each instruction
    executes, which the CLI uses for --trace.

Example:
    >>> vm = VirtualMachine()
    >>> stack = vm.run([PushConstant(2), PushConstant(3), Add(), PrintStack()])
    [5]
    >>> vm.stack
    [5]
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

import click

from psvm.errors import InsufficientOperandsError
from psvm.vm.instructions import (
    Add,
    Instruction,
    PrintStack,
    PushConstant,
    format_instruction,
)

logger = logging.getLogger(__name__)


def wrap_int32(value: int) -> int:
    """Wrap an integer to the 32-bit signed range."""
    return ((value + 0x80000000) & 0xFFFFFFFF) - 0x80000000


@dataclass
class VMState:
    """
    Snapshot of the machine state.

    Attributes:
        stack: Copy of the operand stack (bottom first)
        executed: Instructions executed since the last reset
        printed: Lines emitted by PRINT since the last reset
    """
    stack: list[int] = field(default_factory=list)
    executed: int = 0
    printed: list[str] = field(default_factory=list)


class VirtualMachine:
    """
    Operand-stack virtual machine.

    Attributes:
        stack: The operand stack, bottom first (top is stack[-1])
        printed: Every line emitted by PRINT, in order
        strict: Raise on insufficient operands instead of ignoring
    """

    def __init__(
        self,
        output: Optional[Callable[[str], None]] = None,
        strict: bool = False,
    ):
        """
        Initialize the machine with an empty stack.

        Args:
            output: Callable receiving each rendered stack line.
                    Defaults to click.echo (standard output).
            strict: Raise InsufficientOperandsError when ADD finds
                    fewer than two values
        """
        self.output = output if output is not None else click.echo
        self.strict = strict
        self.stack: list[int] = []
        self.printed: list[str] = []
        self.executed = 0

        # on_instruction(index, instruction): called before execution
        self.on_instruction: Optional[Callable[[int, Instruction], None]] = None

    # ========================================
    # Stack Primitives
    # ========================================

    def push(self, value: int) -> None:
        """Push a value onto the stack."""
        self.stack.append(wrap_int32(value))

    def pop(self) -> Optional[int]:
        """Pop the top value, or return None if the stack is empty."""
        if not self.stack:
            return None
        return self.stack.pop()

    def add(self, index: Optional[int] = None) -> None:
        """
        Pop b, then a, and push a + b.

        With fewer than two values the stack is left unchanged; strict
        machines raise InsufficientOperandsError.
        """
        if len(self.stack) < 2:
            if self.strict:
                raise InsufficientOperandsError(
                    "ADD", required=2, available=len(self.stack), index=index
                )
            logger.debug(
                f"ADD ignored: {len(self.stack)} value(s) on stack"
            )
            return
        b = self.stack.pop()
        a = self.stack.pop()
        self.push(a + b)

    def format_stack(self) -> str:
        """Render the stack bottom first, e.g. '[2, 3]'."""
        return repr(self.stack)

    def print_stack(self) -> None:
        """Emit the whole stack without changing it."""
        line = self.format_stack()
        self.printed.append(line)
        self.output(line)

    # ========================================
    # Execution
    # ========================================

    def step(self, instruction: Instruction, index: Optional[int] = None) -> None:
        """
        Execute a single instruction.

        Raises:
            TypeError: If the instruction is not part of the instruction set
            InsufficientOperandsError: Strict machine, ADD short of operands
        """
        if isinstance(instruction, PushConstant):
            self.push(instruction.value)
        elif isinstance(instruction, Add):
            self.add(index)
        elif isinstance(instruction, PrintStack):
            self.print_stack()
        else:
            raise TypeError(f"not an instruction: {instruction!r}")
        self.executed += 1

    def run(self, instructions: Iterable[Instruction]) -> list[int]:
        """
        Execute instructions in order until the last one.

        Args:
            instructions: The compiled program

        Returns:
            The stack after the run (the live list, not a copy)
        """
        for index, instruction in enumerate(instructions):
            if self.on_instruction is not None:
                self.on_instruction(index, instruction)
            logger.debug(
                f"{index:04d}  {format_instruction(instruction):<16} {self.stack}"
            )
            self.step(instruction, index)
        return self.stack

    def reset(self) -> None:
        """Clear the stack, printed output and instruction count."""
        self.stack.clear()
        self.printed.clear()
        self.executed = 0

    def snapshot(self) -> VMState:
        """Return a copy of the current state."""
        return VMState(
            stack=list(self.stack),
            executed=self.executed,
            printed=list(self.printed),
        )
