"""
Logging infrastructure for the EMU6502 core.

The emulation objects take an ILogger so hosts can route core diagnostics
(undefined opcodes, serviced interrupts) without the core depending on any
particular output.
"""

from abc import ABC, abstractmethod

# Levels understood by the core; higher is chattier.
LOG_WARN = 1
LOG_INFO = 2
LOG_TRACE = 3


class ILogger(ABC):
    """Logging interface with level-based filtering."""

    @property
    @abstractmethod
    def level(self) -> int: ...

    @level.setter
    @abstractmethod
    def level(self, value: int): ...

    @abstractmethod
    def log(self, level: int, message: str): ...

    def enabled(self, level: int) -> bool:
        return level <= self.level


class NullLogger(ILogger):
    """No-op logger implementation."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._level = 0
        return cls._instance

    @property
    def level(self) -> int:
        return self._level

    @level.setter
    def level(self, value: int):
        self._level = value

    def log(self, level: int, message: str):
        pass


class ConsoleLogger(ILogger):
    """Logger that prints to console."""

    def __init__(self, level: int = LOG_WARN):
        self._level = level

    @property
    def level(self) -> int:
        return self._level

    @level.setter
    def level(self, value: int):
        self._level = value

    def log(self, level: int, message: str):
        if level <= self._level:
            print(f"[EMU6502:{level}] {message}")


# Default logger instance
DEFAULT_LOGGER: ILogger = NullLogger()
