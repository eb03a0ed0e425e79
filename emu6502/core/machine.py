"""
Machine -- one 6502 wired to one bus.

The CPU core only knows how to tick.  :class:`Machine` is the thin host
around it: it owns a bus (a :class:`~emu6502.core.devices.FlatRam` unless
one is supplied), loads program bytes, and drives the CPU either by a cycle
budget, one instruction at a time, or until the program traps in a
self-loop (the convention used by 6502 functional test suites to signal
success or failure).
"""

from __future__ import annotations

from typing import Optional

from emu6502.core.devices import FlatRam, IBus
from emu6502.core.logger import DEFAULT_LOGGER, ILogger
from emu6502.core.m6502 import M6502

ADDRESS_SPACE: int = 0x10000


class Machine:
    """A CPU plus its bus.

    Parameters
    ----------
    bus:
        The bus to attach.  ``None`` creates a fresh 64 KB :class:`FlatRam`.
    logger:
        Passed to the CPU core.
    """

    def __init__(self, bus: Optional[IBus] = None, logger: ILogger = DEFAULT_LOGGER) -> None:
        self.mem: IBus = bus if bus is not None else FlatRam()
        self.cpu: M6502 = M6502(self.mem, logger)
        self.machine_halt: bool = False
        self.trap_address: Optional[int] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Request a CPU reset and clock the tick that services it."""
        self.machine_halt = False
        self.trap_address = None
        self.cpu.request_reset()
        self.cpu.step()

    def load(self, address: int, data: bytes) -> None:
        """Write *data* to the bus starting at *address*.

        Raises:
            ValueError: If *address* is outside the address space or *data*
                        does not fit between *address* and $FFFF.
        """
        if not 0 <= address < ADDRESS_SPACE:
            raise ValueError(f"Load address ${address:X} outside the address space")
        if address + len(data) > ADDRESS_SPACE:
            raise ValueError(
                f"Image of {len(data)} bytes does not fit at ${address:04X} "
                f"({ADDRESS_SPACE - address} bytes available)"
            )
        if isinstance(self.mem, FlatRam):
            self.mem.load(address, data)
            return
        for i, b in enumerate(data):
            self.mem.write(address + i, b)

    def set_vector(self, vector: int, target: int) -> None:
        """Store *target* little-endian at *vector* (e.g. $FFFC for reset)."""
        self.mem.write(vector, target & 0xFF)
        self.mem.write((vector + 1) & 0xFFFF, (target >> 8) & 0xFF)

    # ------------------------------------------------------------------
    # Running
    # ------------------------------------------------------------------

    def step(self) -> int:
        """Run one instruction (or interrupt sequence); return its cycles."""
        return self.cpu.step()

    def run(self, cycles: int) -> int:
        """Tick the CPU exactly *cycles* times.

        Returns the number of cycles actually run, which is less than
        *cycles* only when :attr:`machine_halt` was set.
        """
        if cycles < 0:
            raise ValueError(f"Cycle count must be non-negative, got {cycles}")
        cpu = self.cpu
        done = 0
        while done < cycles and not self.machine_halt:
            cpu.tick()
            done += 1
        return done

    def run_until_trap(self, max_cycles: int) -> Optional[int]:
        """Run whole instructions until one leaves PC where it started.

        A ``JMP *`` or a taken branch to itself is a trap.  The budget is
        checked between instructions, so the last instruction always runs to
        completion and the run may overshoot *max_cycles* by up to that
        instruction's remaining cycles.

        Returns
        -------
        int or None
            The trap address, or ``None`` if the budget ran out first.
        """
        cpu = self.cpu
        spent = 0
        while spent < max_cycles and not self.machine_halt:
            start = cpu.program_counter
            spent += cpu.step()
            if cpu.program_counter == start:
                self.trap_address = start
                self.machine_halt = True
                return start
        return None

    # ------------------------------------------------------------------
    # Serialisation helpers (save-state support)
    # ------------------------------------------------------------------

    def get_snapshot(self) -> dict:
        snap = {
            "machine_halt": self.machine_halt,
            "cpu": self.cpu.get_snapshot(),
        }
        if isinstance(self.mem, FlatRam):
            snap["ram"] = self.mem.get_snapshot()
        return snap

    def restore_snapshot(self, snapshot: dict) -> None:
        self.machine_halt = snapshot.get("machine_halt", False)
        self.cpu.restore_snapshot(snapshot["cpu"])
        if "ram" in snapshot and isinstance(self.mem, FlatRam):
            self.mem.restore_snapshot(snapshot["ram"])

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(cpu={self.cpu!r}, mem={self.mem!r})"
