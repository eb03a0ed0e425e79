#!/usr/bin/env python3
"""
EMU6502 -- run from a source checkout.

Equivalent to the installed ``emu6502`` console script::

    python main.py program.bin --load-address 0x0600 --cycles 1000
"""

from __future__ import annotations

import os
import sys

# ---------------------------------------------------------------------------
# Ensure the project root is on sys.path so that ``emu6502`` can be imported
# regardless of how the script is invoked.
# ---------------------------------------------------------------------------
_PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
if _PROJECT_ROOT not in sys.path:
    sys.path.insert(0, _PROJECT_ROOT)

from emu6502.main import main

if __name__ == "__main__":
    sys.exit(main())
