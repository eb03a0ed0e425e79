"""
Instruction executor for the NMOS 6502.

Given an :class:`~emu6502.core.types.Instruction` and a resolved
:class:`~emu6502.core.addressing.Operand`, performs the data movement,
arithmetic or control transfer and updates the status flags.  Returns the
number of cycles owed on top of the opcode's base count (page-crossing reads
and taken branches).

Key NMOS-specific behaviours:

* Decimal-mode ADC sets N/V from the intermediate BCD result and Z from the
  binary result.  Decimal-mode SBC derives all flags from the binary result.
* BRK pushes PC+2 and P with the B flag set, then vectors through $FFFE.
* JSR pushes the address of its *last* operand byte (PC-1), and RTS
  compensates by pulling and adding one.
* The B flag only exists in pushed copies of P: PHP and BRK push it set,
  hardware interrupts push it clear, PLP and RTI discard it.
"""

from __future__ import annotations

from typing import Callable, Dict, Optional

from emu6502.core.addressing import Operand
from emu6502.core.devices import IBus
from emu6502.core.registers import RegisterFile
from emu6502.core.types import Instruction, Interrupt, StatusFlag

STACK_PAGE: int = 0x0100

_B_U = int(StatusFlag.B | StatusFlag.U)
_U = int(StatusFlag.U)
_NOT_B = ~int(StatusFlag.B) & 0xFF


class InstructionExecutor:
    """Executes decoded instructions against a register file and bus."""

    def __init__(self, bus: IBus, regs: RegisterFile) -> None:
        self.bus = bus
        self.regs = regs
        self._handlers: Dict[Instruction, Callable[[Operand], Optional[int]]] = self._build_dispatch()

    def execute(self, instruction: Instruction, op: Operand) -> int:
        """Run *instruction* and return its extra cycle cost."""
        extra = self._handlers[instruction](op) or 0
        if op.page_crossed and Instruction.pays_page_penalty(instruction):
            extra += 1
        return extra

    def _build_dispatch(self) -> Dict[Instruction, Callable[[Operand], Optional[int]]]:
        I = Instruction
        r = self.regs
        t: Dict[Instruction, Callable[[Operand], Optional[int]]] = {
            I.ADC: lambda op: self.i_adc(self._load(op)),
            I.SBC: lambda op: self.i_sbc(self._load(op)),
            I.AND: lambda op: self.i_and(self._load(op)),
            I.ORA: lambda op: self.i_ora(self._load(op)),
            I.EOR: lambda op: self.i_eor(self._load(op)),
            I.BIT: lambda op: self.i_bit(self._load(op)),
            I.CMP: lambda op: self._compare(r.a, self._load(op)),
            I.CPX: lambda op: self._compare(r.x, self._load(op)),
            I.CPY: lambda op: self._compare(r.y, self._load(op)),
            I.ASL: lambda op: self._modify(op, self.i_asl),
            I.LSR: lambda op: self._modify(op, self.i_lsr),
            I.ROL: lambda op: self._modify(op, self.i_rol),
            I.ROR: lambda op: self._modify(op, self.i_ror),
            I.INC: lambda op: self._modify(op, self.i_inc),
            I.DEC: lambda op: self._modify(op, self.i_dec),
            I.INX: self.i_inx,
            I.INY: self.i_iny,
            I.DEX: self.i_dex,
            I.DEY: self.i_dey,
            I.LDA: lambda op: self.i_lda(self._load(op)),
            I.LDX: lambda op: self.i_ldx(self._load(op)),
            I.LDY: lambda op: self.i_ldy(self._load(op)),
            I.STA: lambda op: self.bus.write(op.address, r.a),
            I.STX: lambda op: self.bus.write(op.address, r.x),
            I.STY: lambda op: self.bus.write(op.address, r.y),
            I.TAX: self.i_tax,
            I.TAY: self.i_tay,
            I.TSX: self.i_tsx,
            I.TXA: self.i_txa,
            I.TXS: self.i_txs,
            I.TYA: self.i_tya,
            I.PHA: self.i_pha,
            I.PHP: self.i_php,
            I.PLA: self.i_pla,
            I.PLP: self.i_plp,
            I.BCC: lambda op: self.br(not r.fC, op),
            I.BCS: lambda op: self.br(r.fC, op),
            I.BEQ: lambda op: self.br(r.fZ, op),
            I.BNE: lambda op: self.br(not r.fZ, op),
            I.BMI: lambda op: self.br(r.fN, op),
            I.BPL: lambda op: self.br(not r.fN, op),
            I.BVS: lambda op: self.br(r.fV, op),
            I.BVC: lambda op: self.br(not r.fV, op),
            I.JMP: self.i_jmp,
            I.JSR: self.i_jsr,
            I.RTS: self.i_rts,
            I.RTI: self.i_rti,
            I.BRK: self.i_brk,
            I.CLC: lambda op: r.set_flag(StatusFlag.C, False),
            I.SEC: lambda op: r.set_flag(StatusFlag.C, True),
            I.CLD: lambda op: r.set_flag(StatusFlag.D, False),
            I.SED: lambda op: r.set_flag(StatusFlag.D, True),
            I.CLI: lambda op: r.set_flag(StatusFlag.I, False),
            I.SEI: lambda op: r.set_flag(StatusFlag.I, True),
            I.CLV: lambda op: r.set_flag(StatusFlag.V, False),
            I.NOP: lambda op: None,
        }
        missing = set(Instruction) - set(t)
        if missing:
            raise RuntimeError(
                "No handler for instructions: " + ", ".join(sorted(i.name for i in missing))
            )
        return t

    # ------------------------------------------------------------------
    # Operand access
    # ------------------------------------------------------------------

    def _load(self, op: Operand) -> int:
        if op.is_accumulator:
            return self.regs.a
        return self.bus.read(op.address)

    def _modify(self, op: Operand, fn: Callable[[int], int]) -> None:
        """Read-modify-write on A or memory with a single bus write."""
        if op.is_accumulator:
            self.regs.a = fn(self.regs.a)
        else:
            self.bus.write(op.address, fn(self.bus.read(op.address)))

    # ------------------------------------------------------------------
    # Stack operations
    # ------------------------------------------------------------------

    def push(self, data: int) -> None:
        """Push a byte onto the stack."""
        r = self.regs
        self.bus.write(STACK_PAGE + r.s, data & 0xFF)
        r.s = (r.s - 1) & 0xFF

    def pull(self) -> int:
        """Pull a byte from the stack."""
        r = self.regs
        r.s = (r.s + 1) & 0xFF
        return self.bus.read(STACK_PAGE + r.s)

    def push_word(self, value: int) -> None:
        self.push((value >> 8) & 0xFF)
        self.push(value & 0xFF)

    def pull_word(self) -> int:
        lo = self.pull()
        hi = self.pull()
        return lo | (hi << 8)

    def read_vector(self, vector: int) -> int:
        return self.bus.read(vector) | (self.bus.read((vector + 1) & 0xFFFF) << 8)

    def interrupt(self, vector: int, brk: bool = False) -> None:
        """Push PC and P, set I and load PC from *vector*.

        Shared by BRK and the IRQ/NMI sequences; only BRK pushes B set.
        """
        r = self.regs
        self.push_word(r.pc)
        self.push((r.p | _B_U) if brk else ((r.p & _NOT_B) | _U))
        r.fI = True
        r.pc = self.read_vector(vector)

    # ------------------------------------------------------------------
    # Arithmetic
    # ------------------------------------------------------------------

    def i_adc(self, val: int) -> None:
        """Add with carry.  Handles NMOS decimal-mode quirks."""
        r = self.regs
        c = 1 if r.fC else 0
        if r.fD:
            # BCD addition (NMOS 6502 behaviour)
            al = (r.a & 0x0F) + (val & 0x0F) + c
            if al >= 0x0A:
                al = ((al + 0x06) & 0x0F) + 0x10
            s = (r.a & 0xF0) + (val & 0xF0) + al
            # N and V from intermediate BCD result
            r.fN = bool(s & 0x80)
            r.fV = bool(~(r.a ^ val) & (r.a ^ s) & 0x80)
            if s >= 0xA0:
                s += 0x60
            r.fC = s >= 0x100
            # Z from binary result (NMOS quirk)
            r.fZ = ((r.a + val + c) & 0xFF) == 0
            r.a = s & 0xFF
        else:
            s = r.a + val + c
            r.fV = bool(~(r.a ^ val) & (r.a ^ s) & 0x80)
            r.fC = s > 0xFF
            r.a = s & 0xFF
            r.set_nz(r.a)

    def i_sbc(self, val: int) -> None:
        """Subtract with carry (borrow).  Handles NMOS decimal-mode quirks."""
        r = self.regs
        borrow = 0 if r.fC else 1
        diff = r.a - val - borrow
        r.fV = bool(((r.a ^ val) & (r.a ^ diff)) & 0x80)
        r.fC = diff >= 0
        r.set_nz(diff & 0xFF)
        if r.fD:
            # All flags come from the binary result on NMOS; only A is corrected.
            al = (r.a & 0x0F) - (val & 0x0F) - borrow
            if al < 0:
                al = ((al - 0x06) & 0x0F) - 0x10
            s = (r.a & 0xF0) - (val & 0xF0) + al
            if s < 0:
                s -= 0x60
            r.a = s & 0xFF
        else:
            r.a = diff & 0xFF

    def _compare(self, reg: int, val: int) -> None:
        result = reg - val
        self.regs.fC = result >= 0
        self.regs.set_nz(result & 0xFF)

    # ------------------------------------------------------------------
    # Logic
    # ------------------------------------------------------------------

    def i_and(self, val: int) -> None:
        self.regs.a &= val
        self.regs.set_nz(self.regs.a)

    def i_ora(self, val: int) -> None:
        self.regs.a |= val
        self.regs.set_nz(self.regs.a)

    def i_eor(self, val: int) -> None:
        self.regs.a ^= val
        self.regs.set_nz(self.regs.a)

    def i_bit(self, val: int) -> None:
        r = self.regs
        r.fN = bool(val & 0x80)
        r.fV = bool(val & 0x40)
        r.fZ = (r.a & val) == 0

    # ------------------------------------------------------------------
    # Shifts / rotates / inc / dec  (operate on a byte, return the result)
    # ------------------------------------------------------------------

    def i_asl(self, val: int) -> int:
        self.regs.fC = bool(val & 0x80)
        result = (val << 1) & 0xFF
        self.regs.set_nz(result)
        return result

    def i_lsr(self, val: int) -> int:
        self.regs.fC = bool(val & 0x01)
        result = (val >> 1) & 0x7F
        self.regs.set_nz(result)
        return result

    def i_rol(self, val: int) -> int:
        c = 1 if self.regs.fC else 0
        self.regs.fC = bool(val & 0x80)
        result = ((val << 1) | c) & 0xFF
        self.regs.set_nz(result)
        return result

    def i_ror(self, val: int) -> int:
        c = 0x80 if self.regs.fC else 0
        self.regs.fC = bool(val & 0x01)
        result = ((val >> 1) | c) & 0xFF
        self.regs.set_nz(result)
        return result

    def i_inc(self, val: int) -> int:
        result = (val + 1) & 0xFF
        self.regs.set_nz(result)
        return result

    def i_dec(self, val: int) -> int:
        result = (val - 1) & 0xFF
        self.regs.set_nz(result)
        return result

    def i_inx(self, op: Operand) -> None:
        self.regs.x = self.i_inc(self.regs.x)

    def i_iny(self, op: Operand) -> None:
        self.regs.y = self.i_inc(self.regs.y)

    def i_dex(self, op: Operand) -> None:
        self.regs.x = self.i_dec(self.regs.x)

    def i_dey(self, op: Operand) -> None:
        self.regs.y = self.i_dec(self.regs.y)

    # ------------------------------------------------------------------
    # Load / transfer
    # ------------------------------------------------------------------

    def i_lda(self, val: int) -> None:
        self.regs.a = val & 0xFF
        self.regs.set_nz(self.regs.a)

    def i_ldx(self, val: int) -> None:
        self.regs.x = val & 0xFF
        self.regs.set_nz(self.regs.x)

    def i_ldy(self, val: int) -> None:
        self.regs.y = val & 0xFF
        self.regs.set_nz(self.regs.y)

    def i_tax(self, op: Operand) -> None:
        self.regs.x = self.regs.a
        self.regs.set_nz(self.regs.x)

    def i_tay(self, op: Operand) -> None:
        self.regs.y = self.regs.a
        self.regs.set_nz(self.regs.y)

    def i_tsx(self, op: Operand) -> None:
        self.regs.x = self.regs.s
        self.regs.set_nz(self.regs.x)

    def i_txa(self, op: Operand) -> None:
        self.regs.a = self.regs.x
        self.regs.set_nz(self.regs.a)

    def i_txs(self, op: Operand) -> None:
        self.regs.s = self.regs.x  # No flags affected

    def i_tya(self, op: Operand) -> None:
        self.regs.a = self.regs.y
        self.regs.set_nz(self.regs.a)

    # ------------------------------------------------------------------
    # Stack instructions
    # ------------------------------------------------------------------

    def i_pha(self, op: Operand) -> None:
        self.push(self.regs.a)

    def i_php(self, op: Operand) -> None:
        self.push(self.regs.p | _B_U)

    def i_pla(self, op: Operand) -> None:
        self.regs.a = self.pull()
        self.regs.set_nz(self.regs.a)

    def i_plp(self, op: Operand) -> None:
        self.regs.p = (self.pull() & _NOT_B) | _U

    # ------------------------------------------------------------------
    # Control flow
    # ------------------------------------------------------------------

    def br(self, cond: bool, op: Operand) -> int:
        """Conditional branch.  Adds 1 cycle if taken (same page) or
        2 cycles if taken across a page boundary."""
        if not cond:
            return 0
        self.regs.pc = op.address
        return 2 if op.page_crossed else 1

    def i_jmp(self, op: Operand) -> None:
        self.regs.pc = op.address

    def i_jsr(self, op: Operand) -> None:
        self.push_word((self.regs.pc - 1) & 0xFFFF)
        self.regs.pc = op.address

    def i_rts(self, op: Operand) -> None:
        self.regs.pc = (self.pull_word() + 1) & 0xFFFF

    def i_rti(self, op: Operand) -> None:
        self.regs.p = (self.pull() & _NOT_B) | _U
        self.regs.pc = self.pull_word()

    def i_brk(self, op: Operand) -> None:
        """BRK -- software interrupt; skips the padding byte."""
        self.regs.pc = (self.regs.pc + 1) & 0xFFFF
        self.interrupt(Interrupt.IRQ.vector, brk=True)
