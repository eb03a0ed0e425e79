"""
Bus abstractions for EMU6502.

IBus is the contract the CPU core consumes: a byte read and a byte write for
every 16-bit address.  FlatRam is the plain 64 KB implementation hosts use
when they have no memory map of their own.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

import numpy as np


class IBus(ABC):
    """Abstract byte-addressable bus seen by the CPU.

    Implementations must be total over 0x0000..0xFFFF: every address reads
    as some byte and accepts writes (a region may ignore them).
    """

    @abstractmethod
    def read(self, address: int) -> int:
        """Read a byte from the given address.

        Args:
            address: A 16-bit bus address.

        Returns:
            An integer in the range 0..255.
        """
        ...

    @abstractmethod
    def write(self, address: int, value: int) -> None:
        """Write a byte to the given address.

        Args:
            address: A 16-bit bus address.
            value: The byte value to write (0..255).
        """
        ...

    def reset(self) -> None:
        """Reset the bus to its power-on state.  Override in subclass."""
        pass

    def __getitem__(self, address: int) -> int:
        return self.read(address)

    def __setitem__(self, address: int, value: int) -> None:
        self.write(address, value)


class FlatRam(IBus):
    """64 KB of RAM covering the whole address space.

    Addresses are masked to 16 bits and values to 8 bits, so the bus is
    total by construction.  Storage is a ``numpy.uint8`` array, which makes
    block loads and snapshots single slice operations.
    """

    RAM_SIZE: int = 0x10000

    def __init__(self, fill: int = 0x00) -> None:
        self._fill: int = fill & 0xFF
        self._data: np.ndarray = np.full(self.RAM_SIZE, self._fill, dtype=np.uint8)

    def reset(self) -> None:
        """Refill the RAM with its power-on byte."""
        self._data.fill(self._fill)

    def read(self, address: int) -> int:
        return int(self._data[address & 0xFFFF])

    def write(self, address: int, value: int) -> None:
        self._data[address & 0xFFFF] = value & 0xFF

    def read_word(self, address: int) -> int:
        """Little-endian 16-bit read; the high byte address wraps at $FFFF."""
        return self.read(address) | (self.read((address + 1) & 0xFFFF) << 8)

    def write_word(self, address: int, value: int) -> None:
        self.write(address, value & 0xFF)
        self.write((address + 1) & 0xFFFF, (value >> 8) & 0xFF)

    def load(self, address: int, data: bytes) -> None:
        """Copy *data* into RAM starting at *address*.

        Raises:
            ValueError: If *address* is outside the address space or *data*
                        does not fit between *address* and $FFFF.
        """
        if not 0 <= address < self.RAM_SIZE:
            raise ValueError(f"Load address ${address:X} outside the address space")
        if address + len(data) > self.RAM_SIZE:
            raise ValueError(
                f"Image of {len(data)} bytes does not fit at ${address:04X} "
                f"({self.RAM_SIZE - address} bytes available)"
            )
        self._data[address:address + len(data)] = np.frombuffer(bytes(data), dtype=np.uint8)

    def dump(self, address: int, length: int) -> bytes:
        """Return *length* bytes starting at *address* (wrapping at $FFFF)."""
        idx = (np.arange(length) + address) & 0xFFFF
        return self._data[idx].tobytes()

    # ------------------------------------------------------------------
    # Serialisation helpers (for save-state support)
    # ------------------------------------------------------------------

    def get_snapshot(self) -> bytes:
        """Return an immutable copy of the RAM contents."""
        return self._data.tobytes()

    def restore_snapshot(self, data: bytes) -> None:
        """Restore RAM contents from a previous snapshot.

        Raises:
            ValueError: If *data* is not the expected length.
        """
        if len(data) != self.RAM_SIZE:
            raise ValueError(
                f"Snapshot size mismatch: expected {self.RAM_SIZE}, got {len(data)}"
            )
        self._data[:] = np.frombuffer(data, dtype=np.uint8)

    def __repr__(self) -> str:
        return f"FlatRam(size={self.RAM_SIZE})"
