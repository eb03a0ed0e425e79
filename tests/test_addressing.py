"""
Addressing-mode resolver tests.

Each mode is checked for its effective address, the number of operand bytes
it consumes (PC advance) and its page-crossing report.
"""

import pytest

from emu6502.core.addressing import AddressResolver
from emu6502.core.registers import RegisterFile
from emu6502.core.types import AddressingMode

from conftest import MockBus

START = 0x0400


@pytest.fixture
def regs():
    r = RegisterFile()
    r.pc = START
    return r


@pytest.fixture
def resolver(bus, regs):
    return AddressResolver(bus, regs)


def _operands(bus, *data):
    bus.load_program(START, bytes(data))


class TestImpliedAndAccumulator:

    def test_implied_consumes_nothing(self, resolver, regs):
        op = resolver.resolve(AddressingMode.Implied)
        assert op.address is None
        assert not op.is_accumulator
        assert regs.pc == START

    def test_accumulator_is_flagged(self, resolver, regs, bus):
        op = resolver.resolve(AddressingMode.Accumulator)
        assert op.is_accumulator
        assert op.address is None
        assert regs.pc == START
        assert bus.reads == []


class TestSingleByteModes:

    def test_immediate_points_at_literal(self, resolver, regs, bus):
        _operands(bus, 0x42)
        op = resolver.resolve(AddressingMode.Immediate)
        assert op.address == START
        assert regs.pc == START + 1
        assert bus.peek(op.address) == 0x42

    def test_zero_page(self, resolver, regs, bus):
        _operands(bus, 0x80)
        op = resolver.resolve(AddressingMode.ZeroPage)
        assert op.address == 0x0080
        assert regs.pc == START + 1

    def test_zero_page_x_wraps_within_page_zero(self, resolver, regs, bus):
        _operands(bus, 0xF0)
        regs.x = 0x20
        op = resolver.resolve(AddressingMode.ZeroPageX)
        assert op.address == 0x0010

    def test_zero_page_y_wraps_within_page_zero(self, resolver, regs, bus):
        _operands(bus, 0xFF)
        regs.y = 0x01
        op = resolver.resolve(AddressingMode.ZeroPageY)
        assert op.address == 0x0000

    def test_relative_forward(self, resolver, regs, bus):
        _operands(bus, 0x10)
        op = resolver.resolve(AddressingMode.Relative)
        assert regs.pc == START + 1
        assert op.address == START + 1 + 0x10
        assert not op.page_crossed

    def test_relative_backward_is_signed(self, resolver, regs, bus):
        _operands(bus, 0xFE)  # -2
        op = resolver.resolve(AddressingMode.Relative)
        assert op.address == START - 1

    def test_relative_reports_page_cross(self, resolver, regs, bus):
        _operands(bus, 0x80)  # -128 from $0401 -> $0381
        op = resolver.resolve(AddressingMode.Relative)
        assert op.address == 0x0381
        assert op.page_crossed


class TestAbsoluteModes:

    @pytest.mark.parametrize("target", [0x0000, 0x1234, 0x80FF, 0xFFFF])
    def test_absolute_round_trip(self, resolver, regs, bus, target):
        _operands(bus, *target.to_bytes(2, "little"))
        op = resolver.resolve(AddressingMode.Absolute)
        assert op.address == target
        assert regs.pc == START + 2

    def test_absolute_x_without_cross(self, resolver, regs, bus):
        _operands(bus, 0x00, 0x20)
        regs.x = 0x10
        op = resolver.resolve(AddressingMode.AbsoluteX)
        assert op.address == 0x2010
        assert not op.page_crossed

    def test_absolute_x_with_cross(self, resolver, regs, bus):
        _operands(bus, 0xF0, 0x20)
        regs.x = 0x20
        op = resolver.resolve(AddressingMode.AbsoluteX)
        assert op.address == 0x2110
        assert op.page_crossed

    def test_absolute_y_carries_past_ffff(self, resolver, regs, bus):
        _operands(bus, 0xFF, 0xFF)
        regs.y = 0x02
        op = resolver.resolve(AddressingMode.AbsoluteY)
        assert op.address == 0x0001
        assert op.page_crossed

    def test_zero_index_never_crosses(self, resolver, regs, bus):
        _operands(bus, 0xFF, 0x20)
        regs.y = 0
        op = resolver.resolve(AddressingMode.AbsoluteY)
        assert op.address == 0x20FF
        assert not op.page_crossed


class TestIndirectModes:

    def test_indirect(self, resolver, regs, bus):
        _operands(bus, 0x00, 0x30)
        bus.poke(0x3000, 0x34)
        bus.poke(0x3001, 0x12)
        op = resolver.resolve(AddressingMode.Indirect)
        assert op.address == 0x1234
        assert regs.pc == START + 2

    def test_indirect_page_wrap_bug(self, resolver, regs, bus):
        _operands(bus, 0xFF, 0x30)
        bus.poke(0x30FF, 0x34)
        bus.poke(0x3000, 0x12)   # high byte comes from here
        bus.poke(0x3100, 0x56)   # not from here
        op = resolver.resolve(AddressingMode.Indirect)
        assert op.address == 0x1234

    def test_indirect_x_pre_indexes(self, resolver, regs, bus):
        _operands(bus, 0x20)
        regs.x = 0x04
        bus.poke(0x24, 0x78)
        bus.poke(0x25, 0x56)
        op = resolver.resolve(AddressingMode.IndirectX)
        assert op.address == 0x5678
        assert regs.pc == START + 1

    def test_indirect_x_pointer_wraps_in_page_zero(self, resolver, regs, bus):
        _operands(bus, 0xFE)
        regs.x = 0x01
        bus.poke(0xFF, 0x78)
        bus.poke(0x00, 0x56)
        op = resolver.resolve(AddressingMode.IndirectX)
        assert op.address == 0x5678

    def test_indirect_y_post_indexes(self, resolver, regs, bus):
        _operands(bus, 0x40)
        regs.y = 0x10
        bus.poke(0x40, 0x00)
        bus.poke(0x41, 0x20)
        op = resolver.resolve(AddressingMode.IndirectY)
        assert op.address == 0x2010
        assert not op.page_crossed

    def test_indirect_y_page_cross(self, resolver, regs, bus):
        _operands(bus, 0x40)
        regs.y = 0x10
        bus.poke(0x40, 0xF8)
        bus.poke(0x41, 0x20)
        op = resolver.resolve(AddressingMode.IndirectY)
        assert op.address == 0x2108
        assert op.page_crossed


class TestOperandLength:

    @pytest.mark.parametrize("mode", list(AddressingMode))
    def test_pc_advance_matches_operand_length(self, mode):
        bus = MockBus()
        regs = RegisterFile()
        regs.pc = START
        AddressResolver(bus, regs).resolve(mode)
        assert regs.pc == START + AddressingMode.operand_length(mode)
