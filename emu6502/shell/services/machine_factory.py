"""
Machine creation factory for EMU6502.

Creates a ready-to-run :class:`~emu6502.core.machine.Machine` from a program
image path, with optional overrides for the load address and entry point.

Typical usage::

    machine = MachineFactory.create("rom.bin")
    machine = MachineFactory.create("demo.bin", load_address=0x0600, entry=0x0600)
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from emu6502.core.logger import DEFAULT_LOGGER, ILogger
from emu6502.core.machine import Machine
from emu6502.shell.services.program_loader import RESET_VECTOR, ProgramImage, ProgramLoader

logger = logging.getLogger(__name__)


class MachineFactory:
    """Create an emulated 6502 machine from a program image."""

    @staticmethod
    def create(
        image_path: str,
        load_address: Optional[int] = None,
        entry: Optional[int] = None,
        cpu_logger: ILogger = DEFAULT_LOGGER,
    ) -> Machine:
        """Build a machine, load the image and run the reset sequence.

        Parameters
        ----------
        image_path:
            Filesystem path to the program image (``.bin``, ``.prg``).
        load_address:
            Where to place the image.  ``None`` infers it from the format.
        entry:
            Start address.  Written to the reset vector, overriding any
            vector the image supplies.  ``None`` keeps the image's vector,
            or falls back to the load address when the image has none.
        cpu_logger:
            Core logger handed to the CPU.

        Returns
        -------
        Machine
            A machine whose CPU has completed its reset sequence.

        Raises
        ------
        FileNotFoundError
            If *image_path* does not exist.
        ValueError
            If the image cannot be placed in the address space.
        """
        image_path = os.path.expanduser(image_path)
        logger.info("Loading image: %s", image_path)
        image = ProgramLoader.read(image_path, load_address)
        logger.info(
            "Image: %s, %d bytes at $%04X", image.image_format.name, len(image.data), image.load_address
        )
        return MachineFactory.from_image(image, entry, cpu_logger)

    @staticmethod
    def from_image(
        image: ProgramImage,
        entry: Optional[int] = None,
        cpu_logger: ILogger = DEFAULT_LOGGER,
    ) -> Machine:
        """Build a machine around an already parsed image."""
        machine = Machine(logger=cpu_logger)
        machine.load(image.load_address, image.data)

        if entry is not None:
            machine.set_vector(RESET_VECTOR, entry)
            logger.info("Entry point: $%04X (override)", entry)
        elif image.covers_reset_vector:
            logger.info("Entry point: $%04X (image reset vector)", image.reset_vector())
        else:
            machine.set_vector(RESET_VECTOR, image.load_address)
            logger.info("Entry point: $%04X (load address)", image.load_address)

        machine.reset()
        logger.info("Machine created: %r", machine)
        return machine
