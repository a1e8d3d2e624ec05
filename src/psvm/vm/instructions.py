"""
Instruction Set
===============

Defines the instructions executed by the psvm stack machine and
produces human-readable listings of compiled programs.

The instruction set is closed and fixed. There are no jumps, no
variable slots and no calls; a program is a flat sequence executed
from first to last.

Instruction Summary:
    Opcode  Mnemonic  Operand  Stack effect
    ------  --------  -------  ------------------------------------
    $22     PUSH      value    ( -- value )
    $46     ADD                ( a b -- a+b )  no-op if depth < 2
    $6A     PRINT              ( -- )          emits the whole stack

Listing format (disassemble):
    0000  PUSH 2
    0001  PUSH 3
    0002  ADD
    0003  PRINT
"""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import ClassVar, Iterable


# =============================================================================
# Opcode Definitions
# =============================================================================

class Opcode(IntEnum):
    """Instruction opcodes."""
    PUSH = 0x22
    ADD = 0x46
    PRINT = 0x6A


class OpcodeCategory(Enum):
    """Categories of operations for documentation."""
    STACK = "stack"          # Push values
    OPERATOR = "operator"    # Arithmetic
    IO = "io"                # Output


@dataclass(frozen=True)
class OpcodeInfo:
    """Information about an opcode."""
    opcode: Opcode
    mnemonic: str
    operand_count: int      # Inline operands carried by the instruction
    pops: int               # Values consumed from the stack
    pushes: int             # Values produced onto the stack
    category: OpcodeCategory
    description: str


OPCODE_TABLE: dict[Opcode, OpcodeInfo] = {
    Opcode.PUSH: OpcodeInfo(
        Opcode.PUSH, "PUSH", 1, 0, 1, OpcodeCategory.STACK,
        "Push a 32-bit signed constant",
    ),
    Opcode.ADD: OpcodeInfo(
        Opcode.ADD, "ADD", 0, 2, 1, OpcodeCategory.OPERATOR,
        "Pop b then a, push a + b (no-op with fewer than two values)",
    ),
    Opcode.PRINT: OpcodeInfo(
        Opcode.PRINT, "PRINT", 0, 0, 0, OpcodeCategory.IO,
        "Emit the whole stack without popping",
    ),
}


# =============================================================================
# Instructions
# =============================================================================

@dataclass(frozen=True)
class Instruction:
    """Base class for all instructions."""
    opcode: ClassVar[Opcode]

    @property
    def info(self) -> OpcodeInfo:
        """Opcode table entry for this instruction."""
        return OPCODE_TABLE[self.opcode]

    @property
    def mnemonic(self) -> str:
        return self.info.mnemonic


@dataclass(frozen=True)
class PushConstant(Instruction):
    """Push a constant onto the operand stack."""
    opcode: ClassVar[Opcode] = Opcode.PUSH
    value: int


@dataclass(frozen=True)
class Add(Instruction):
    """Replace the top two stack values with their sum."""
    opcode: ClassVar[Opcode] = Opcode.ADD


@dataclass(frozen=True)
class PrintStack(Instruction):
    """Emit the current stack contents."""
    opcode: ClassVar[Opcode] = Opcode.PRINT


# =============================================================================
# Listing
# =============================================================================

def format_instruction(instruction: Instruction) -> str:
    """
    Format a single instruction in listing syntax.

    Examples:
        PushConstant(2) -> "PUSH 2"
        Add()           -> "ADD"
    """
    if isinstance(instruction, PushConstant):
        return f"{instruction.mnemonic} {instruction.value}"
    return instruction.mnemonic


def disassemble(instructions: Iterable[Instruction]) -> str:
    """
    Produce a numbered listing, one instruction per line.

    Args:
        instructions: The compiled program

    Returns:
        The listing text (empty string for an empty program)
    """
    return "\n".join(
        f"{index:04d}  {format_instruction(instr)}"
        for index, instr in enumerate(instructions)
    )


def stack_effect(instructions: Iterable[Instruction]) -> int:
    """
    Net change in stack depth after running a program, assuming every
    instruction finds enough operands.
    """
    depth = 0
    for instr in instructions:
        depth += instr.info.pushes - instr.info.pops
    return depth
