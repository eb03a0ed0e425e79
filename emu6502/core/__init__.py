# EMU6502 core
"""
The 6502 CPU core and its immediate collaborators.

Use :class:`M6502` with any :class:`IBus` implementation, or
:class:`Machine` for a CPU already wired to 64 KB of RAM.
"""

from emu6502.core.devices import FlatRam, IBus
from emu6502.core.m6502 import M6502, PendingInstruction
from emu6502.core.machine import Machine
from emu6502.core.opcodes import OPCODE_TABLE, OpcodeDescriptor, is_legal, lookup
from emu6502.core.registers import RegisterFile
from emu6502.core.types import AddressingMode, CpuState, Instruction, Interrupt, StatusFlag

__all__ = [
    "AddressingMode",
    "CpuState",
    "FlatRam",
    "IBus",
    "Instruction",
    "Interrupt",
    "M6502",
    "Machine",
    "OPCODE_TABLE",
    "OpcodeDescriptor",
    "PendingInstruction",
    "RegisterFile",
    "StatusFlag",
    "is_legal",
    "lookup",
]
