"""
Register file of the 6502.

Holds A, X, Y, S, PC and P.  Pure data: the execution engine owns one
instance and only the instruction executor and the interrupt sequences
write to it.
"""

from __future__ import annotations

from emu6502.core.types import StatusFlag


class RegisterFile:
    """The six architectural registers.

    ``p`` is kept as a raw byte with the bit layout of :class:`StatusFlag`.
    Flag properties (``fC`` .. ``fN``) read and write single bits of it.
    """

    # Power-up values after the reset sequence has run.
    POWER_UP_S: int = 0xFD
    POWER_UP_P: int = StatusFlag.U | StatusFlag.I

    def __init__(self) -> None:
        self.a: int = 0x00      # 8-bit accumulator
        self.x: int = 0x00      # 8-bit index register X
        self.y: int = 0x00      # 8-bit index register Y
        self.s: int = 0x00      # 8-bit stack pointer
        self.pc: int = 0x0000   # 16-bit program counter
        self.p: int = 0x00      # 8-bit processor status

    def power_up(self) -> None:
        """Load the documented post-reset register values (PC excluded)."""
        self.a = 0x00
        self.x = 0x00
        self.y = 0x00
        self.s = self.POWER_UP_S
        self.p = int(self.POWER_UP_P)

    # ------------------------------------------------------------------
    # Flag access
    # ------------------------------------------------------------------

    def get_flag(self, flag: StatusFlag) -> bool:
        return bool(self.p & flag)

    def set_flag(self, flag: StatusFlag, value: bool) -> None:
        mask = int(flag)
        if value:
            self.p |= mask
        else:
            self.p &= ~mask & 0xFF

    def set_nz(self, val: int) -> None:
        """Set the N and Z flags from an 8-bit value."""
        self.set_flag(StatusFlag.N, bool(val & 0x80))
        self.set_flag(StatusFlag.Z, (val & 0xFF) == 0)

    @property
    def fC(self) -> bool:
        return bool(self.p & StatusFlag.C)

    @fC.setter
    def fC(self, value: bool) -> None:
        self.set_flag(StatusFlag.C, value)

    @property
    def fZ(self) -> bool:
        return bool(self.p & StatusFlag.Z)

    @fZ.setter
    def fZ(self, value: bool) -> None:
        self.set_flag(StatusFlag.Z, value)

    @property
    def fI(self) -> bool:
        return bool(self.p & StatusFlag.I)

    @fI.setter
    def fI(self, value: bool) -> None:
        self.set_flag(StatusFlag.I, value)

    @property
    def fD(self) -> bool:
        return bool(self.p & StatusFlag.D)

    @fD.setter
    def fD(self, value: bool) -> None:
        self.set_flag(StatusFlag.D, value)

    @property
    def fV(self) -> bool:
        return bool(self.p & StatusFlag.V)

    @fV.setter
    def fV(self, value: bool) -> None:
        self.set_flag(StatusFlag.V, value)

    @property
    def fN(self) -> bool:
        return bool(self.p & StatusFlag.N)

    @fN.setter
    def fN(self, value: bool) -> None:
        self.set_flag(StatusFlag.N, value)

    # ------------------------------------------------------------------
    # Snapshot helpers
    # ------------------------------------------------------------------

    def snapshot(self) -> dict:
        return {"a": self.a, "x": self.x, "y": self.y, "s": self.s, "pc": self.pc, "p": self.p}

    def restore(self, snap: dict) -> None:
        self.a = snap["a"] & 0xFF
        self.x = snap["x"] & 0xFF
        self.y = snap["y"] & 0xFF
        self.s = snap["s"] & 0xFF
        self.pc = snap["pc"] & 0xFFFF
        self.p = snap["p"] & 0xFF

    def __repr__(self) -> str:
        return (
            f"RegisterFile(PC=${self.pc:04X} A=${self.a:02X} X=${self.x:02X} "
            f"Y=${self.y:02X} S=${self.s:02X} P=${self.p:02X})"
        )
