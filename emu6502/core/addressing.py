"""
Addressing-mode resolution for the 6502.

:class:`AddressResolver` turns an addressing mode and the current program
counter into an :class:`Operand`.  It consumes the operand bytes that follow
the opcode (advancing PC past them) and reports whether index addition
crossed a page boundary.  All memory reads go through the bus.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Optional

from emu6502.core.devices import IBus
from emu6502.core.registers import RegisterFile
from emu6502.core.types import AddressingMode


@dataclass(frozen=True)
class Operand:
    """Where an instruction finds its operand.

    ``address`` is the effective address for memory modes, the address of
    the literal byte for Immediate, and the branch target for Relative.  It
    is ``None`` for Implied and Accumulator.
    """

    mode: AddressingMode
    address: Optional[int] = None
    page_crossed: bool = False

    @property
    def is_accumulator(self) -> bool:
        return self.mode == AddressingMode.Accumulator


ACCUMULATOR = Operand(AddressingMode.Accumulator)
IMPLIED = Operand(AddressingMode.Implied)


def _crossed(base: int, ea: int) -> bool:
    return (base & 0xFF00) != (ea & 0xFF00)


class AddressResolver:
    """Resolve operands against a bus and register file."""

    def __init__(self, bus: IBus, regs: RegisterFile) -> None:
        self.bus = bus
        self.regs = regs
        self._modes: Dict[AddressingMode, Callable[[], Operand]] = {
            AddressingMode.Accumulator: lambda: ACCUMULATOR,
            AddressingMode.Implied: lambda: IMPLIED,
            AddressingMode.Immediate: self.a_imm,
            AddressingMode.ZeroPage: self.a_zpg,
            AddressingMode.ZeroPageX: self.a_zpx,
            AddressingMode.ZeroPageY: self.a_zpy,
            AddressingMode.Absolute: self.a_abs,
            AddressingMode.AbsoluteX: self.a_abx,
            AddressingMode.AbsoluteY: self.a_aby,
            AddressingMode.Indirect: self.a_ind,
            AddressingMode.IndirectX: self.a_idx,
            AddressingMode.IndirectY: self.a_idy,
            AddressingMode.Relative: self.a_rel,
        }
        missing = set(AddressingMode) - set(self._modes)
        if missing:
            raise RuntimeError(
                "No resolver for addressing modes: " + ", ".join(sorted(m.name for m in missing))
            )

    def resolve(self, mode: AddressingMode) -> Operand:
        return self._modes[mode]()

    # ------------------------------------------------------------------
    # Instruction stream helpers
    # ------------------------------------------------------------------

    def _next_byte(self) -> int:
        regs = self.regs
        val = self.bus.read(regs.pc)
        regs.pc = (regs.pc + 1) & 0xFFFF
        return val

    def _next_word(self) -> int:
        lsb = self._next_byte()
        msb = self._next_byte()
        return lsb | (msb << 8)

    def _zp_word(self, zpa: int) -> int:
        """Read a pointer from page zero; the high byte wraps within the page."""
        lsb = self.bus.read(zpa & 0xFF)
        msb = self.bus.read((zpa + 1) & 0xFF)
        return lsb | (msb << 8)

    # ------------------------------------------------------------------
    # Addressing modes
    # ------------------------------------------------------------------

    def a_imm(self) -> Operand:
        ea = self.regs.pc
        self.regs.pc = (ea + 1) & 0xFFFF
        return Operand(AddressingMode.Immediate, ea)

    def a_zpg(self) -> Operand:
        return Operand(AddressingMode.ZeroPage, self._next_byte())

    def a_zpx(self) -> Operand:
        return Operand(AddressingMode.ZeroPageX, (self._next_byte() + self.regs.x) & 0xFF)

    def a_zpy(self) -> Operand:
        return Operand(AddressingMode.ZeroPageY, (self._next_byte() + self.regs.y) & 0xFF)

    def a_abs(self) -> Operand:
        return Operand(AddressingMode.Absolute, self._next_word())

    def a_abx(self) -> Operand:
        base = self._next_word()
        ea = (base + self.regs.x) & 0xFFFF
        return Operand(AddressingMode.AbsoluteX, ea, _crossed(base, ea))

    def a_aby(self) -> Operand:
        base = self._next_word()
        ea = (base + self.regs.y) & 0xFFFF
        return Operand(AddressingMode.AbsoluteY, ea, _crossed(base, ea))

    def a_ind(self) -> Operand:
        """JMP ($nnnn).

        Reproduces the NMOS page-boundary wrap bug: if the low byte of the
        pointer is 0xFF the high byte is fetched from $xx00 instead of the
        start of the next page.
        """
        ptr = self._next_word()
        lsb = self.bus.read(ptr)
        msb = self.bus.read((ptr & 0xFF00) | ((ptr + 1) & 0xFF))
        return Operand(AddressingMode.Indirect, lsb | (msb << 8))

    def a_idx(self) -> Operand:
        """($zz,X): X is added to the pointer before dereferencing."""
        zpa = (self._next_byte() + self.regs.x) & 0xFF
        return Operand(AddressingMode.IndirectX, self._zp_word(zpa))

    def a_idy(self) -> Operand:
        """($zz),Y: Y is added to the dereferenced base with full carry."""
        base = self._zp_word(self._next_byte())
        ea = (base + self.regs.y) & 0xFFFF
        return Operand(AddressingMode.IndirectY, ea, _crossed(base, ea))

    def a_rel(self) -> Operand:
        """Branch target: signed offset added to PC after the operand byte."""
        bo = self._next_byte()
        if bo & 0x80:
            bo -= 256  # sign-extend
        pc = self.regs.pc
        target = (pc + bo) & 0xFFFF
        return Operand(AddressingMode.Relative, target, _crossed(pc, target))
