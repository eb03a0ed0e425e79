"""
EMU6502 -- cycle-counting NMOS 6502 emulator.

Command-line entry point.  Loads a program image onto a flat 64 KB bus,
runs the CPU for a cycle budget (or until the program traps in a
self-loop) and prints the final register state.

Usage examples::

    # Run a full 64 KB memory image until it traps
    emu6502 6502_functional_test.bin --load-address 0 --entry 0x400 --stop-on-trap

    # Run a small program for 1000 cycles
    emu6502 demo.bin -l 0x0600 -e 0x0600 --cycles 1000

    # Show image metadata without running
    emu6502 demo.prg --info
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional

from emu6502.core.logger import LOG_INFO, LOG_TRACE, LOG_WARN, ConsoleLogger
from emu6502.core.machine import Machine
from emu6502.core.types import StatusFlag
from emu6502.shell.services.machine_factory import MachineFactory
from emu6502.shell.services.program_loader import ProgramLoader

# Core logger level per -v count
_CPU_LOG_LEVELS = (LOG_WARN, LOG_INFO, LOG_TRACE)

# ---------------------------------------------------------------------------
# CLI definition
# ---------------------------------------------------------------------------

def _address(text: str) -> int:
    """Parse ``0x1234``, ``$1234`` or decimal into a 16-bit address."""
    try:
        value = int(text[1:], 16) if text.startswith("$") else int(text, 0)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid address: {text!r}")
    if not 0 <= value <= 0xFFFF:
        raise argparse.ArgumentTypeError(f"address out of range: {text!r}")
    return value


def _build_parser() -> argparse.ArgumentParser:
    """Construct the argument parser."""
    parser = argparse.ArgumentParser(
        prog="emu6502",
        description=(
            "EMU6502 -- cycle-counting NMOS 6502 emulator.  "
            "Load a program image and run it on a flat 64 KB bus."
        ),
    )

    parser.add_argument(
        "image",
        help="Path to the program image (.bin raw, .prg with load-address header)",
    )

    parser.add_argument(
        "--load-address", "-l",
        type=_address,
        default=None,
        metavar="ADDR",
        help=(
            "Where to place the image.  Default: from the .prg header, $0000 "
            "for a 64 KB image, otherwise right-aligned against $FFFF."
        ),
    )
    parser.add_argument(
        "--entry", "-e",
        type=_address,
        default=None,
        metavar="ADDR",
        help="Start address; written to the reset vector.  Default: the image's vector.",
    )

    parser.add_argument(
        "--cycles", "-c",
        type=int,
        default=1_000_000,
        help="Clock cycles to run.  Default: 1000000.",
    )
    parser.add_argument(
        "--stop-on-trap",
        action="store_true",
        default=False,
        help="Stop early when an instruction jumps or branches to itself.",
    )

    parser.add_argument(
        "--info",
        action="store_true",
        default=False,
        help="Print image metadata and exit without running.",
    )

    parser.add_argument(
        "--verbose", "-v",
        action="count",
        default=0,
        help="Increase log verbosity (-v for INFO, -vv for DEBUG with an instruction trace).",
    )

    return parser


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------

def _configure_logging(verbosity: int) -> None:
    """Set up the root logger based on requested verbosity."""
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------

def _print_image_info(image_path: str, load_address: Optional[int]) -> None:
    image = ProgramLoader.read(image_path, load_address)
    info = ProgramLoader.describe(image, image_path)

    print("EMU6502 Image Information")
    print("=" * 40)
    for key, value in info.items():
        label = key.replace("_", " ").title()
        print(f"  {label:20s}: {value}")
    print("=" * 40)


def _flags_string(status: int) -> str:
    return "".join(
        f.name if status & f else f.name.lower()
        for f in (StatusFlag.N, StatusFlag.V, StatusFlag.U, StatusFlag.B,
                  StatusFlag.D, StatusFlag.I, StatusFlag.Z, StatusFlag.C)
    )


def _print_summary(machine: Machine, cycles: int) -> None:
    cpu = machine.cpu
    print(
        f"PC=${cpu.program_counter:04X} A=${cpu.accumulator:02X} X=${cpu.index_x:02X} "
        f"Y=${cpu.index_y:02X} S=${cpu.stack_pointer:02X} "
        f"P=${cpu.status:02X} [{_flags_string(cpu.status)}]"
    )
    print(f"Cycles: {cycles}  Instructions: {cpu.instructions_executed}")
    if machine.trap_address is not None:
        print(f"Trapped at ${machine.trap_address:04X}")


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main(argv: Optional[list[str]] = None) -> int:
    """Application entry point.

    Parameters
    ----------
    argv:
        Command-line arguments.  ``None`` to use ``sys.argv``.

    Returns
    -------
    int
        Exit code (0 on success).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)
    logger = logging.getLogger("emu6502.main")

    if args.cycles < 0:
        print(f"Error: cycle count must be non-negative: {args.cycles}", file=sys.stderr)
        return 1

    # Info-only mode.
    if args.info:
        try:
            _print_image_info(args.image, args.load_address)
        except FileNotFoundError:
            print(f"Error: image file not found: {args.image}", file=sys.stderr)
            return 1
        except ValueError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 1
        return 0

    cpu_logger = ConsoleLogger(_CPU_LOG_LEVELS[min(args.verbose, 2)])

    # Create the emulated machine.
    try:
        machine = MachineFactory.create(
            args.image,
            load_address=args.load_address,
            entry=args.entry,
            cpu_logger=cpu_logger,
        )
    except FileNotFoundError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except Exception as exc:
        logger.exception("Failed to create machine")
        print(f"Error creating machine: {exc}", file=sys.stderr)
        return 1

    logger.info("Starting emulation ...")
    start = machine.cpu.clock
    try:
        if args.stop_on_trap:
            machine.run_until_trap(args.cycles)
        else:
            machine.run(args.cycles)
    except KeyboardInterrupt:
        pass
    except Exception as exc:
        logger.exception("Fatal error during emulation")
        print(f"Fatal error: {exc}", file=sys.stderr)
        return 1

    _print_summary(machine, machine.cpu.clock - start)
    logger.info("Exited cleanly")
    return 0


if __name__ == "__main__":
    sys.exit(main())
