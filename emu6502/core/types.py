"""
Core enumerations and type definitions for EMU6502.

AddressingMode and Instruction are closed sets fixed by the 6502
architecture; StatusFlag mirrors the bit layout of the P register.
"""

from enum import Enum, IntEnum, IntFlag


class AddressingMode(IntEnum):
    Accumulator = 0
    Absolute = 1
    AbsoluteX = 2
    AbsoluteY = 3
    Immediate = 4
    Implied = 5
    Indirect = 6
    IndirectX = 7
    IndirectY = 8
    Relative = 9
    ZeroPage = 10
    ZeroPageX = 11
    ZeroPageY = 12

    @staticmethod
    def operand_length(mode):
        """Number of operand bytes following the opcode."""
        if mode in (AddressingMode.Accumulator, AddressingMode.Implied):
            return 0
        if mode in (
            AddressingMode.Absolute, AddressingMode.AbsoluteX, AddressingMode.AbsoluteY,
            AddressingMode.Indirect,
        ):
            return 2
        return 1


class Instruction(IntEnum):
    ADC = 0
    AND = 1
    ASL = 2
    BCC = 3
    BCS = 4
    BEQ = 5
    BIT = 6
    BMI = 7
    BNE = 8
    BPL = 9
    BRK = 10
    BVC = 11
    BVS = 12
    CLC = 13
    CLD = 14
    CLI = 15
    CLV = 16
    CMP = 17
    CPX = 18
    CPY = 19
    DEC = 20
    DEX = 21
    DEY = 22
    EOR = 23
    INC = 24
    INX = 25
    INY = 26
    JMP = 27
    JSR = 28
    LDA = 29
    LDX = 30
    LDY = 31
    LSR = 32
    NOP = 33
    ORA = 34
    PHA = 35
    PHP = 36
    PLA = 37
    PLP = 38
    ROL = 39
    ROR = 40
    RTI = 41
    RTS = 42
    SBC = 43
    SEC = 44
    SED = 45
    SEI = 46
    STA = 47
    STX = 48
    STY = 49
    TAX = 50
    TAY = 51
    TSX = 52
    TXA = 53
    TXS = 54
    TYA = 55

    @staticmethod
    def is_branch(ins):
        return ins in (
            Instruction.BCC, Instruction.BCS, Instruction.BEQ, Instruction.BMI,
            Instruction.BNE, Instruction.BPL, Instruction.BVC, Instruction.BVS,
        )

    @staticmethod
    def pays_page_penalty(ins):
        """Read instructions that take one more cycle when indexing crosses a page.

        Stores and read-modify-write forms always spend the indexing cycle,
        so it is already part of their base count.
        """
        return ins in (
            Instruction.ADC, Instruction.AND, Instruction.CMP, Instruction.EOR,
            Instruction.LDA, Instruction.LDX, Instruction.LDY, Instruction.ORA,
            Instruction.SBC,
        )


class StatusFlag(IntFlag):
    C = 1 << 0  # Carry
    Z = 1 << 1  # Zero
    I = 1 << 2  # Interrupt disable
    D = 1 << 3  # Decimal
    B = 1 << 4  # Break (only exists in pushed copies)
    U = 1 << 5  # Unused, reads as 1 when pushed
    V = 1 << 6  # Overflow
    N = 1 << 7  # Negative


class Interrupt(Enum):
    """Interrupt kinds with their vector address and cycle cost."""

    Reset = (0xFFFC, 1)  # serviced within the tick that sees the request
    NMI = (0xFFFA, 7)
    IRQ = (0xFFFE, 7)

    @property
    def vector(self) -> int:
        return self.value[0]

    @property
    def cycles(self) -> int:
        return self.value[1]


class CpuState(IntEnum):
    Idle = 0
    Executing = 1
    InterruptPending = 2
