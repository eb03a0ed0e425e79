"""
Shared fixtures for the EMU6502 test suite.
"""

import pytest

from emu6502.core import IBus, M6502

PROGRAM_START = 0x8000


class MockBus(IBus):
    """
    Simple mock bus for CPU testing.

    Provides 64KB of flat memory with no I/O behavior.
    Tracks all reads and writes for verification.
    """

    def __init__(self):
        self._memory = bytearray(0x10000)
        self.reads: list[tuple[int, int]] = []  # (address, value)
        self.writes: list[tuple[int, int]] = []  # (address, value)

    def read(self, address: int) -> int:
        address &= 0xFFFF
        value = self._memory[address]
        self.reads.append((address, value))
        return value

    def write(self, address: int, value: int) -> None:
        address &= 0xFFFF
        value &= 0xFF
        self._memory[address] = value
        self.writes.append((address, value))

    def peek(self, address: int) -> int:
        """Read without recording."""
        return self._memory[address & 0xFFFF]

    def poke(self, address: int, value: int) -> None:
        """Write without recording."""
        self._memory[address & 0xFFFF] = value & 0xFF

    def load_program(self, address: int, data: bytes) -> None:
        for i, b in enumerate(data):
            self._memory[(address + i) & 0xFFFF] = b

    def set_vector(self, vector: int, target: int) -> None:
        self.poke(vector, target & 0xFF)
        self.poke(vector + 1, target >> 8)

    def clear_history(self) -> None:
        self.reads.clear()
        self.writes.clear()


@pytest.fixture
def bus():
    return MockBus()


@pytest.fixture
def cpu(bus):
    """CPU that has completed its reset sequence with PC at $8000."""
    bus.set_vector(0xFFFC, PROGRAM_START)
    cpu = M6502(bus)
    cpu.request_reset()
    cpu.step()
    bus.clear_history()
    return cpu


def run(cpu, bus, program: bytes, address: int = PROGRAM_START) -> int:
    """Load *program* at *address*, point PC at it and run one instruction.

    Returns the cycles the instruction took.
    """
    bus.load_program(address, program)
    cpu.regs.pc = address
    bus.clear_history()
    return cpu.step()
