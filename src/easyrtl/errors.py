"""
Exception hierarchy for design construction, validation, and code generation.

Every error carries optional context about where it happened: the module name, the
port/element name, and a description of the implicated signal. All three show up in
the error message when present.
"""

from typing import List, Optional

class EasyRtlError(Exception):
    def __init__(
        self,
        msg: str,
        *,
        module: Optional[str]=None,
        name: Optional[str]=None,
        signal: Optional[str]=None,
    ):
        self.msg = msg
        self.module = module
        self.name = name
        self.signal = signal
        super().__init__(self._format())

    def _format(self):
        context = []
        if self.module is not None:
            context.append(f"module \"{self.module}\"")
        if self.name is not None:
            context.append(f"name \"{self.name}\"")
        if self.signal is not None:
            context.append(f"signal {self.signal}")
        if len(context) == 0:
            return self.msg
        return f"{self.msg} ({', '.join(context)})"


# === CONSTRUCTION ERRORS ===

class ConstructionError(EasyRtlError):
    """Raised immediately by the builder call that made the design ill-formed."""


class DuplicateNameError(ConstructionError):
    pass


class InvalidNameError(ConstructionError):
    pass


class ScopeError(ConstructionError):
    """A signal was combined with, or bound to, a signal from a different module."""


class WidthError(ConstructionError):
    """A zero/negative width, an out-of-range bit index, or a literal that does not fit."""


class MultipleDriverError(ConstructionError):
    """Something that accepts exactly one driver (register next value, instance input,
    memory initial contents) was driven twice."""


# === VALIDATION ERRORS ===

class ValidationError(EasyRtlError):
    """Raised when a module graph is finalized, before any code is generated."""


class WidthMismatchError(ConstructionError, ValidationError):
    """
    Operand widths disagree. Usually raised at construction, but widths are re-checked
    during validation as well, hence the two base classes.
    """


class UndrivenError(ValidationError):
    pass


class RecursiveInstanceError(ValidationError):
    pass


class CombinationalLoopError(ValidationError):
    def __init__(self, msg: str, cycle: List[str], **kwargs):
        self.cycle = cycle
        super().__init__(msg, **kwargs)

    def _format(self):
        return super()._format() + ": " + " -> ".join(self.cycle)


# === INTERNAL ERRORS ===

class InternalError(EasyRtlError):
    """A backend hit a condition that validation should have ruled out."""
