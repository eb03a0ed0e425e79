"""
The 256-entry 6502 opcode table.

Each opcode byte maps to an :class:`OpcodeDescriptor` naming the
instruction, its addressing mode and its base cycle count.  The 151
documented NMOS opcodes carry their canonical triples.  Every other byte
is filled with ``NOP / Implied / 2``.

The fill is a known deviation from silicon: undocumented opcodes on a real
NMOS 6502 load, store, combine ALU operations or jam the processor.  Here
they behave as one-byte, two-cycle NOPs, and the engine logs each one it
executes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, Tuple

from emu6502.core.types import AddressingMode, Instruction


@dataclass(frozen=True)
class OpcodeDescriptor:
    """Decoded form of one opcode byte."""

    instruction: Instruction
    mode: AddressingMode
    base_cycles: int

    @property
    def length(self) -> int:
        """Instruction length in bytes, opcode included."""
        return 1 + AddressingMode.operand_length(self.mode)

    def __str__(self) -> str:
        return f"{self.instruction.name} {self.mode.name} ({self.base_cycles})"


TABLE_SIZE: int = 256
LEGAL_OPCODE_COUNT: int = 151

FILL_DESCRIPTOR = OpcodeDescriptor(Instruction.NOP, AddressingMode.Implied, 2)

# Short aliases keep the matrix below readable.
_ACC = AddressingMode.Accumulator
_ABS = AddressingMode.Absolute
_ABX = AddressingMode.AbsoluteX
_ABY = AddressingMode.AbsoluteY
_IMM = AddressingMode.Immediate
_IMP = AddressingMode.Implied
_IND = AddressingMode.Indirect
_IDX = AddressingMode.IndirectX
_IDY = AddressingMode.IndirectY
_REL = AddressingMode.Relative
_ZPG = AddressingMode.ZeroPage
_ZPX = AddressingMode.ZeroPageX
_ZPY = AddressingMode.ZeroPageY

_I = Instruction

# fmt: off
_LEGAL: Dict[int, Tuple[Instruction, AddressingMode, int]] = {
    # -- Load / store ---------------------------------------------------
    0xA9: (_I.LDA, _IMM, 2), 0xA5: (_I.LDA, _ZPG, 3), 0xB5: (_I.LDA, _ZPX, 4), 0xAD: (_I.LDA, _ABS, 4),
    0xBD: (_I.LDA, _ABX, 4), 0xB9: (_I.LDA, _ABY, 4), 0xA1: (_I.LDA, _IDX, 6), 0xB1: (_I.LDA, _IDY, 5),
    0xA2: (_I.LDX, _IMM, 2), 0xA6: (_I.LDX, _ZPG, 3), 0xB6: (_I.LDX, _ZPY, 4), 0xAE: (_I.LDX, _ABS, 4),
    0xBE: (_I.LDX, _ABY, 4),
    0xA0: (_I.LDY, _IMM, 2), 0xA4: (_I.LDY, _ZPG, 3), 0xB4: (_I.LDY, _ZPX, 4), 0xAC: (_I.LDY, _ABS, 4),
    0xBC: (_I.LDY, _ABX, 4),
    0x85: (_I.STA, _ZPG, 3), 0x95: (_I.STA, _ZPX, 4), 0x8D: (_I.STA, _ABS, 4), 0x9D: (_I.STA, _ABX, 5),
    0x99: (_I.STA, _ABY, 5), 0x81: (_I.STA, _IDX, 6), 0x91: (_I.STA, _IDY, 6),
    0x86: (_I.STX, _ZPG, 3), 0x96: (_I.STX, _ZPY, 4), 0x8E: (_I.STX, _ABS, 4),
    0x84: (_I.STY, _ZPG, 3), 0x94: (_I.STY, _ZPX, 4), 0x8C: (_I.STY, _ABS, 4),

    # -- Transfers ------------------------------------------------------
    0xAA: (_I.TAX, _IMP, 2), 0xA8: (_I.TAY, _IMP, 2), 0xBA: (_I.TSX, _IMP, 2),
    0x8A: (_I.TXA, _IMP, 2), 0x9A: (_I.TXS, _IMP, 2), 0x98: (_I.TYA, _IMP, 2),

    # -- Stack ----------------------------------------------------------
    0x48: (_I.PHA, _IMP, 3), 0x08: (_I.PHP, _IMP, 3), 0x68: (_I.PLA, _IMP, 4), 0x28: (_I.PLP, _IMP, 4),

    # -- Arithmetic -----------------------------------------------------
    0x69: (_I.ADC, _IMM, 2), 0x65: (_I.ADC, _ZPG, 3), 0x75: (_I.ADC, _ZPX, 4), 0x6D: (_I.ADC, _ABS, 4),
    0x7D: (_I.ADC, _ABX, 4), 0x79: (_I.ADC, _ABY, 4), 0x61: (_I.ADC, _IDX, 6), 0x71: (_I.ADC, _IDY, 5),
    0xE9: (_I.SBC, _IMM, 2), 0xE5: (_I.SBC, _ZPG, 3), 0xF5: (_I.SBC, _ZPX, 4), 0xED: (_I.SBC, _ABS, 4),
    0xFD: (_I.SBC, _ABX, 4), 0xF9: (_I.SBC, _ABY, 4), 0xE1: (_I.SBC, _IDX, 6), 0xF1: (_I.SBC, _IDY, 5),

    # -- Compare --------------------------------------------------------
    0xC9: (_I.CMP, _IMM, 2), 0xC5: (_I.CMP, _ZPG, 3), 0xD5: (_I.CMP, _ZPX, 4), 0xCD: (_I.CMP, _ABS, 4),
    0xDD: (_I.CMP, _ABX, 4), 0xD9: (_I.CMP, _ABY, 4), 0xC1: (_I.CMP, _IDX, 6), 0xD1: (_I.CMP, _IDY, 5),
    0xE0: (_I.CPX, _IMM, 2), 0xE4: (_I.CPX, _ZPG, 3), 0xEC: (_I.CPX, _ABS, 4),
    0xC0: (_I.CPY, _IMM, 2), 0xC4: (_I.CPY, _ZPG, 3), 0xCC: (_I.CPY, _ABS, 4),

    # -- Logic ----------------------------------------------------------
    0x29: (_I.AND, _IMM, 2), 0x25: (_I.AND, _ZPG, 3), 0x35: (_I.AND, _ZPX, 4), 0x2D: (_I.AND, _ABS, 4),
    0x3D: (_I.AND, _ABX, 4), 0x39: (_I.AND, _ABY, 4), 0x21: (_I.AND, _IDX, 6), 0x31: (_I.AND, _IDY, 5),
    0x09: (_I.ORA, _IMM, 2), 0x05: (_I.ORA, _ZPG, 3), 0x15: (_I.ORA, _ZPX, 4), 0x0D: (_I.ORA, _ABS, 4),
    0x1D: (_I.ORA, _ABX, 4), 0x19: (_I.ORA, _ABY, 4), 0x01: (_I.ORA, _IDX, 6), 0x11: (_I.ORA, _IDY, 5),
    0x49: (_I.EOR, _IMM, 2), 0x45: (_I.EOR, _ZPG, 3), 0x55: (_I.EOR, _ZPX, 4), 0x4D: (_I.EOR, _ABS, 4),
    0x5D: (_I.EOR, _ABX, 4), 0x59: (_I.EOR, _ABY, 4), 0x41: (_I.EOR, _IDX, 6), 0x51: (_I.EOR, _IDY, 5),
    0x24: (_I.BIT, _ZPG, 3), 0x2C: (_I.BIT, _ABS, 4),

    # -- Shifts / rotates -----------------------------------------------
    0x0A: (_I.ASL, _ACC, 2), 0x06: (_I.ASL, _ZPG, 5), 0x16: (_I.ASL, _ZPX, 6), 0x0E: (_I.ASL, _ABS, 6),
    0x1E: (_I.ASL, _ABX, 7),
    0x4A: (_I.LSR, _ACC, 2), 0x46: (_I.LSR, _ZPG, 5), 0x56: (_I.LSR, _ZPX, 6), 0x4E: (_I.LSR, _ABS, 6),
    0x5E: (_I.LSR, _ABX, 7),
    0x2A: (_I.ROL, _ACC, 2), 0x26: (_I.ROL, _ZPG, 5), 0x36: (_I.ROL, _ZPX, 6), 0x2E: (_I.ROL, _ABS, 6),
    0x3E: (_I.ROL, _ABX, 7),
    0x6A: (_I.ROR, _ACC, 2), 0x66: (_I.ROR, _ZPG, 5), 0x76: (_I.ROR, _ZPX, 6), 0x6E: (_I.ROR, _ABS, 6),
    0x7E: (_I.ROR, _ABX, 7),

    # -- Increment / decrement ------------------------------------------
    0xE6: (_I.INC, _ZPG, 5), 0xF6: (_I.INC, _ZPX, 6), 0xEE: (_I.INC, _ABS, 6), 0xFE: (_I.INC, _ABX, 7),
    0xC6: (_I.DEC, _ZPG, 5), 0xD6: (_I.DEC, _ZPX, 6), 0xCE: (_I.DEC, _ABS, 6), 0xDE: (_I.DEC, _ABX, 7),
    0xE8: (_I.INX, _IMP, 2), 0xC8: (_I.INY, _IMP, 2), 0xCA: (_I.DEX, _IMP, 2), 0x88: (_I.DEY, _IMP, 2),

    # -- Jumps / calls --------------------------------------------------
    0x4C: (_I.JMP, _ABS, 3), 0x6C: (_I.JMP, _IND, 5), 0x20: (_I.JSR, _ABS, 6),
    0x60: (_I.RTS, _IMP, 6), 0x40: (_I.RTI, _IMP, 6), 0x00: (_I.BRK, _IMP, 7),

    # -- Branches -------------------------------------------------------
    0x90: (_I.BCC, _REL, 2), 0xB0: (_I.BCS, _REL, 2), 0xF0: (_I.BEQ, _REL, 2), 0x30: (_I.BMI, _REL, 2),
    0xD0: (_I.BNE, _REL, 2), 0x10: (_I.BPL, _REL, 2), 0x50: (_I.BVC, _REL, 2), 0x70: (_I.BVS, _REL, 2),

    # -- Status flags ---------------------------------------------------
    0x18: (_I.CLC, _IMP, 2), 0xD8: (_I.CLD, _IMP, 2), 0x58: (_I.CLI, _IMP, 2), 0xB8: (_I.CLV, _IMP, 2),
    0x38: (_I.SEC, _IMP, 2), 0xF8: (_I.SED, _IMP, 2), 0x78: (_I.SEI, _IMP, 2),

    # -- No operation ---------------------------------------------------
    0xEA: (_I.NOP, _IMP, 2),
}
# fmt: on


def _build_opcode_table() -> Tuple[OpcodeDescriptor, ...]:
    """Construct the 256-entry table, failing loudly on a malformed matrix."""
    if len(_LEGAL) != LEGAL_OPCODE_COUNT:
        raise RuntimeError(
            f"Opcode matrix defines {len(_LEGAL)} legal opcodes, expected {LEGAL_OPCODE_COUNT}"
        )
    table = [FILL_DESCRIPTOR] * TABLE_SIZE
    for op, (instruction, mode, cycles) in _LEGAL.items():
        if not 0 <= op < TABLE_SIZE:
            raise RuntimeError(f"Opcode ${op:X} outside the byte range")
        table[op] = OpcodeDescriptor(instruction, mode, cycles)
    missing = set(Instruction) - {d.instruction for d in table}
    if missing:
        raise RuntimeError(
            "Opcode matrix has no encoding for: " + ", ".join(sorted(i.name for i in missing))
        )
    return tuple(table)


OPCODE_TABLE: Tuple[OpcodeDescriptor, ...] = _build_opcode_table()
LEGAL_OPCODES: FrozenSet[int] = frozenset(_LEGAL)


def lookup(opcode: int) -> OpcodeDescriptor:
    """Return the descriptor for *opcode* (masked to a byte)."""
    return OPCODE_TABLE[opcode & 0xFF]


def is_legal(opcode: int) -> bool:
    """True for the 151 documented opcodes, False for fill entries."""
    return (opcode & 0xFF) in LEGAL_OPCODES
