"""
psvm Virtual Machine
====================

Instruction set and stack machine.

>>> from psvm.vm import VirtualMachine, PushConstant, Add, PrintStack
>>> vm = VirtualMachine()
>>> vm.run([PushConstant(2), PushConstant(3), Add(), PrintStack()])
[5]
[5]
"""

from psvm.vm.instructions import (
    OPCODE_TABLE,
    Add,
    Instruction,
    Opcode,
    OpcodeCategory,
    OpcodeInfo,
    PrintStack,
    PushConstant,
    disassemble,
    format_instruction,
    stack_effect,
)
from psvm.vm.machine import VirtualMachine, VMState, wrap_int32

__all__ = [
    "OPCODE_TABLE",
    "Add",
    "Instruction",
    "Opcode",
    "OpcodeCategory",
    "OpcodeInfo",
    "PrintStack",
    "PushConstant",
    "disassemble",
    "format_instruction",
    "stack_effect",
    "VirtualMachine",
    "VMState",
    "wrap_int32",
]
