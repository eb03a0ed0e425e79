"""
Program image loading for EMU6502.

Responsibilities:
  - Read program images from disk.
  - Recognise the two supported layouts: raw binaries, and ``.prg`` files
    whose first two bytes are the little-endian load address.
  - Work out where an image goes in memory and whether it brings its own
    reset vector.
"""

from __future__ import annotations

import os
import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional

ADDRESS_SPACE: int = 0x10000
RESET_VECTOR: int = 0xFFFC

_PRG_HEADER_SIZE: int = 2

# Extensions carrying a load-address header
_EXT_PRG: frozenset[str] = frozenset({".prg"})


class ImageFormat(IntEnum):
    Raw = 0
    Prg = 1


@dataclass(frozen=True)
class ProgramImage:
    """A program ready to be placed on the bus."""

    data: bytes
    load_address: int
    image_format: ImageFormat

    @property
    def end_address(self) -> int:
        """One past the last byte the image occupies."""
        return self.load_address + len(self.data)

    @property
    def covers_reset_vector(self) -> bool:
        """True when the image itself supplies $FFFC/$FFFD."""
        return self.load_address <= RESET_VECTOR and self.end_address >= RESET_VECTOR + 2

    def reset_vector(self) -> Optional[int]:
        """The reset target stored in the image, if it covers the vector."""
        if not self.covers_reset_vector:
            return None
        return struct.unpack_from("<H", self.data, RESET_VECTOR - self.load_address)[0]


class ProgramLoader:
    """Static utility for reading program images and inferring placement."""

    @staticmethod
    def read(path: str, load_address: Optional[int] = None) -> ProgramImage:
        """Read the image at *path*.

        Parameters:
            path: Image file.  ``.prg`` files are parsed for their header.
            load_address: Overrides the inferred load address.  For a
                          ``.prg`` the header is still stripped.

        Raises:
            FileNotFoundError: If *path* does not exist.
            ValueError: If the image is empty, truncated, or does not fit in
                        the 64 KB address space at its load address.
        """
        with open(path, "rb") as fh:
            raw = fh.read()
        return ProgramLoader.parse(raw, path, load_address)

    @staticmethod
    def parse(raw: bytes, path: str = "", load_address: Optional[int] = None) -> ProgramImage:
        """Build a :class:`ProgramImage` from file contents (see :meth:`read`)."""
        ext = os.path.splitext(path)[1].lower()
        if ext in _EXT_PRG:
            if len(raw) <= _PRG_HEADER_SIZE:
                raise ValueError(f"PRG image too short: {len(raw)} bytes")
            header_address = struct.unpack_from("<H", raw, 0)[0]
            data = raw[_PRG_HEADER_SIZE:]
            address = header_address if load_address is None else load_address
            image_format = ImageFormat.Prg
        else:
            if not raw:
                raise ValueError("Program image is empty")
            data = raw
            address = ProgramLoader.infer_load_address(len(raw)) if load_address is None else load_address
            image_format = ImageFormat.Raw

        if not 0 <= address < ADDRESS_SPACE:
            raise ValueError(f"Load address ${address:X} outside the address space")
        if address + len(data) > ADDRESS_SPACE:
            raise ValueError(
                f"Image of {len(data)} bytes does not fit at ${address:04X} "
                f"({ADDRESS_SPACE - address} bytes available)"
            )
        return ProgramImage(bytes(data), address, image_format)

    @staticmethod
    def infer_load_address(size: int) -> int:
        """Pick a load address for a headerless image.

        A full 64 KB dump loads at $0000.  Anything else is treated as a ROM
        and right-aligned against $FFFF so that it supplies the vectors, the
        usual layout for 6502 ROM images.
        """
        if size >= ADDRESS_SPACE:
            return 0x0000
        return ADDRESS_SPACE - size

    @staticmethod
    def describe(image: ProgramImage, path: str) -> dict[str, str]:
        """Return a human-readable description of an image."""
        vector = image.reset_vector()
        return {
            "file": os.path.basename(path),
            "format": image.image_format.name,
            "size": str(len(image.data)),
            "load_address": f"${image.load_address:04X}",
            "end_address": f"${image.end_address - 1:04X}",
            "reset_vector": f"${vector:04X}" if vector is not None else "(not in image)",
        }
