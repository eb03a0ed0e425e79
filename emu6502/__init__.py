"""EMU6502 -- cycle-counting NMOS 6502 emulator."""

__version__ = "1.0.0"
