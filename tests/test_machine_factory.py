"""
MachineFactory tests: entry-point policy and image placement.
"""

import pytest

from emu6502.shell.services.machine_factory import MachineFactory
from emu6502.shell.services.program_loader import ProgramLoader


def _rom_with_vector(target):
    rom = bytearray([0xEA] * 0x1000)
    rom[0xFFC] = target & 0xFF
    rom[0xFFD] = target >> 8
    return bytes(rom)


class TestEntryPoint:

    def test_image_vector_is_used(self, tmp_path):
        path = tmp_path / "rom.bin"
        path.write_bytes(_rom_with_vector(0xF123))
        machine = MachineFactory.create(str(path))
        assert machine.cpu.program_counter == 0xF123

    def test_entry_overrides_image_vector(self, tmp_path):
        path = tmp_path / "rom.bin"
        path.write_bytes(_rom_with_vector(0xF123))
        machine = MachineFactory.create(str(path), entry=0xF800)
        assert machine.cpu.program_counter == 0xF800
        assert machine.mem.read_word(0xFFFC) == 0xF800

    def test_falls_back_to_load_address(self, tmp_path):
        path = tmp_path / "demo.prg"
        path.write_bytes(b"\x00\x06\xA9\x42")
        machine = MachineFactory.create(str(path))
        assert machine.cpu.program_counter == 0x0600
        machine.step()
        assert machine.cpu.accumulator == 0x42

    def test_load_address_override(self, tmp_path):
        path = tmp_path / "demo.bin"
        path.write_bytes(b"\xE8")
        machine = MachineFactory.create(str(path), load_address=0x0300)
        assert machine.mem.read(0x0300) == 0xE8
        assert machine.cpu.program_counter == 0x0300


class TestFromImage:

    def test_machine_has_been_reset(self):
        image = ProgramLoader.parse(b"\xEA", "x.bin", load_address=0x0200)
        machine = MachineFactory.from_image(image)
        assert machine.cpu.clock == 1
        assert machine.cpu.stack_pointer == 0xFD

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            MachineFactory.create(str(tmp_path / "missing.bin"))
