"""
MOS 6502 execution engine for EMU6502.

The engine is a small state machine driven one clock cycle at a time by
:meth:`M6502.tick`:

* **Idle** -- no instruction in flight.  The next tick services a pending
  interrupt or fetches, decodes and executes the opcode at PC, latches its
  total cycle cost and consumes the first of those cycles.
* **Executing** -- the remaining cycles of the last instruction (or
  interrupt sequence) are drained, one per tick.
* **InterruptPending** -- a reset, NMI or unmasked IRQ is waiting for the
  next instruction boundary.

Instructions take effect in full on their first cycle; the countdown only
keeps the observable timing.  Interrupts are sampled at instruction
boundaries only.  Reset is the exception: it is unconditional, abandons
whatever instruction is in flight and leaves the engine Idle, so the tick
after it fetches from the reset vector.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from emu6502.core.addressing import AddressResolver
from emu6502.core.devices import IBus
from emu6502.core.executor import InstructionExecutor
from emu6502.core.logger import DEFAULT_LOGGER, LOG_INFO, LOG_TRACE, LOG_WARN, ILogger
from emu6502.core.opcodes import OpcodeDescriptor, is_legal, lookup
from emu6502.core.registers import RegisterFile
from emu6502.core.types import CpuState, Interrupt, StatusFlag


@dataclass
class PendingInstruction:
    """The instruction (or interrupt sequence) currently being clocked out."""

    address: int
    cycles_remaining: int
    opcode: Optional[int] = None
    descriptor: Optional[OpcodeDescriptor] = None
    interrupt: Optional[Interrupt] = None

    def __str__(self) -> str:
        what = self.interrupt.name if self.interrupt is not None else str(self.descriptor)
        return f"${self.address:04X} {what} [{self.cycles_remaining} left]"


class M6502:
    """NMOS 6502 CPU core.

    Parameters
    ----------
    bus:
        The memory bus, exclusively owned by this CPU.  Must answer reads
        and accept writes for every address 0x0000..0xFFFF.
    logger:
        Receives diagnostics: undefined opcodes at :data:`LOG_WARN`,
        serviced interrupts at :data:`LOG_INFO`, every executed instruction
        at :data:`LOG_TRACE`.
    """

    # ------------------------------------------------------------------
    # Interrupt vectors
    # ------------------------------------------------------------------
    NMI_VEC: int = Interrupt.NMI.vector
    RST_VEC: int = Interrupt.Reset.vector
    IRQ_VEC: int = Interrupt.IRQ.vector

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def __init__(self, bus: IBus, logger: ILogger = DEFAULT_LOGGER) -> None:
        self.bus: IBus = bus
        self.logger: ILogger = logger
        self.regs: RegisterFile = RegisterFile()
        self._resolver = AddressResolver(bus, self.regs)
        self._executor = InstructionExecutor(bus, self.regs)

        # Timing
        self.clock: int = 0
        self.instructions_executed: int = 0
        self._pending: Optional[PendingInstruction] = None

        # Interrupt request lines; repeated requests coalesce.
        self.reset_interrupt_request: bool = False
        self.nmi_interrupt_request: bool = False
        self.irq_interrupt_request: bool = False

    # ------------------------------------------------------------------
    # Host-facing requests
    # ------------------------------------------------------------------

    def request_reset(self) -> None:
        self.reset_interrupt_request = True

    def request_nmi(self) -> None:
        self.nmi_interrupt_request = True

    def request_irq(self) -> None:
        """Assert IRQ.  The request stays pending while I is set."""
        self.irq_interrupt_request = True

    # ------------------------------------------------------------------
    # Clocking
    # ------------------------------------------------------------------

    def tick(self) -> None:
        """Advance the CPU by one clock cycle."""
        self.clock += 1
        if self.reset_interrupt_request:
            self._begin_reset()
            return
        if self._pending is None:
            self._begin_next()

        pending = self._pending
        pending.cycles_remaining -= 1
        if pending.cycles_remaining == 0:
            self._pending = None

    def step(self) -> int:
        """Tick until the current (or next) instruction completes.

        Returns the number of cycles spent.
        """
        ticks = 1
        self.tick()
        while self._pending is not None:
            self.tick()
            ticks += 1
        return ticks

    def _begin_next(self) -> None:
        if self.nmi_interrupt_request:
            self.nmi_interrupt_request = False
            self._begin_interrupt(Interrupt.NMI)
        elif self.irq_interrupt_request and not self.regs.fI:
            self.irq_interrupt_request = False
            self._begin_interrupt(Interrupt.IRQ)
        else:
            self._fetch_and_execute()

    def _fetch_and_execute(self) -> None:
        regs = self.regs
        address = regs.pc
        opcode = self.bus.read(address)
        regs.pc = (address + 1) & 0xFFFF
        desc = lookup(opcode)

        if not is_legal(opcode):
            self.logger.log(
                LOG_WARN,
                f"Undefined opcode ${opcode:02X} at ${address:04X} executed as NOP  "
                f"A={regs.a:02X} X={regs.x:02X} Y={regs.y:02X} S={regs.s:02X} P={regs.p:02X}",
            )

        operand = self._resolver.resolve(desc.mode)
        extra = self._executor.execute(desc.instruction, operand)
        self.instructions_executed += 1
        self._pending = PendingInstruction(address, desc.base_cycles + extra, opcode, desc)

        if self.logger.enabled(LOG_TRACE):
            self.logger.log(
                LOG_TRACE,
                f"${address:04X} {opcode:02X} {desc.instruction.name:<3} {desc.mode.name:<11} "
                f"+{extra}  {regs!r}",
            )

    def _begin_interrupt(self, kind: Interrupt) -> None:
        address = self.regs.pc
        self._executor.interrupt(kind.vector)
        self._pending = PendingInstruction(address, kind.cycles, interrupt=kind)
        self.logger.log(LOG_INFO, f"{kind.name} at ${address:04X} -> ${self.regs.pc:04X}")

    def _begin_reset(self) -> None:
        self.reset_interrupt_request = False
        self.nmi_interrupt_request = False
        self.irq_interrupt_request = False
        regs = self.regs
        regs.power_up()
        regs.pc = self._executor.read_vector(self.RST_VEC)
        self._pending = None
        self.logger.log(LOG_INFO, f"Reset -> ${regs.pc:04X}")

    # ------------------------------------------------------------------
    # Read-only inspection
    # ------------------------------------------------------------------

    @property
    def accumulator(self) -> int:
        return self.regs.a

    @property
    def index_x(self) -> int:
        return self.regs.x

    @property
    def index_y(self) -> int:
        return self.regs.y

    @property
    def stack_pointer(self) -> int:
        return self.regs.s

    @property
    def program_counter(self) -> int:
        return self.regs.pc

    @property
    def status(self) -> int:
        return self.regs.p

    def get_flag(self, flag: StatusFlag) -> bool:
        return self.regs.get_flag(flag)

    @property
    def pending(self) -> Optional[PendingInstruction]:
        return self._pending

    @property
    def cycles_remaining(self) -> int:
        return 0 if self._pending is None else self._pending.cycles_remaining

    @property
    def state(self) -> CpuState:
        if self._pending is not None:
            return CpuState.Executing
        if (
            self.reset_interrupt_request
            or self.nmi_interrupt_request
            or (self.irq_interrupt_request and not self.regs.fI)
        ):
            return CpuState.InterruptPending
        return CpuState.Idle

    # ------------------------------------------------------------------
    # Snapshot helpers
    # ------------------------------------------------------------------

    def get_snapshot(self) -> dict:
        """Return a serialisable snapshot of CPU state."""
        pending = self._pending
        return {
            **self.regs.snapshot(),
            "clock": self.clock,
            "instructions_executed": self.instructions_executed,
            "reset_interrupt_request": self.reset_interrupt_request,
            "nmi_interrupt_request": self.nmi_interrupt_request,
            "irq_interrupt_request": self.irq_interrupt_request,
            "pending": None if pending is None else {
                "address": pending.address,
                "cycles_remaining": pending.cycles_remaining,
                "opcode": pending.opcode,
                "interrupt": None if pending.interrupt is None else pending.interrupt.name,
            },
        }

    def restore_snapshot(self, snap: dict) -> None:
        """Restore CPU state from a previous snapshot.

        Raises:
            ValueError: If the snapshot is missing a field.
        """
        try:
            self.regs.restore(snap)
            self.clock = snap["clock"]
            self.instructions_executed = snap["instructions_executed"]
            self.reset_interrupt_request = snap["reset_interrupt_request"]
            self.nmi_interrupt_request = snap["nmi_interrupt_request"]
            self.irq_interrupt_request = snap["irq_interrupt_request"]
            p = snap["pending"]
        except KeyError as exc:
            raise ValueError(f"Incomplete CPU snapshot: missing {exc}") from exc

        if p is None:
            self._pending = None
        elif p["interrupt"] is not None:
            self._pending = PendingInstruction(
                p["address"], p["cycles_remaining"], interrupt=Interrupt[p["interrupt"]]
            )
        else:
            self._pending = PendingInstruction(
                p["address"], p["cycles_remaining"], p["opcode"], lookup(p["opcode"])
            )

    def __repr__(self) -> str:
        return f"M6502({self.regs!r}, clock={self.clock}, state={self.state.name})"
