from abc import ABC, abstractmethod
from enum import Enum, auto

class TargetFormat(Enum):
    """
    Represents a format to translate graph objects to.
    """

    PYTHON = auto()
    """Python expression text, as used by the generated simulator."""

    VERILOG = auto()
    """Verilog-2001 expression text, as used by the structural backend."""


class Translatable(ABC):
    """
    Mixin to define common methods for translating to other representations.

    Implementations receive the names of their operands through the `names` keyword
    argument, which maps a `Signal` to the identifier or literal standing in for it.
    """

    @abstractmethod
    def to_target_format(self, tgt: TargetFormat, **kwargs):
        raise NotImplementedError()

    def to_python_str(self, names):
        return self.to_target_format(TargetFormat.PYTHON, names=names)

    def to_verilog_str(self, names):
        return self.to_target_format(TargetFormat.VERILOG, names=names)


def mask(width: int) -> int:
    """All-ones value of the given bit width."""
    return (1 << width) - 1


def fits(value: int, width: int) -> bool:
    return 0 <= value <= mask(width)


class Namespace:
    """Hands out unique identifiers for generated code."""

    def __init__(self, reserved=()):
        self.used = set(reserved)

    def claim(self, base: str) -> str:
        """Returns `base`, or `base` with a numeric suffix if it has already been handed out."""
        name = base
        n = 1
        while name in self.used:
            name = f"{base}_{n}"
            n += 1
        self.used.add(name)
        return name
