from typing import Dict, List, TYPE_CHECKING

from easyrtl.errors import ConstructionError, DuplicateNameError
from easyrtl.graph.names import check_name

if TYPE_CHECKING:
    from easyrtl.graph.module import Module
    from easyrtl.graph.signal import Signal

class Context:
    """
    Owns every module and signal of one design.

    The context is append-only: signals are handed out indices into `signals` as they
    are created, and nothing is ever removed. `revision` is bumped on every mutation of
    anything the context owns, which lets cached validation results detect staleness.
    """

    def __init__(self):
        self.modules: Dict[str, "Module"] = {}
        self.signals: List["Signal"] = []
        self.revision = 0

    def module(self, name: str) -> "Module":
        from easyrtl.graph.module import Module
        check_name(name, "module")
        if name in self.modules:
            raise DuplicateNameError("a module with this name already exists", name=name)
        m = Module(name, self)
        self.modules[name] = m
        self.touch()
        return m

    def lookup(self, name: str) -> "Module":
        if name not in self.modules:
            raise ConstructionError("no module with this name exists in the context", name=name)
        return self.modules[name]

    def touch(self):
        self.revision += 1

    def alloc(self, cls, module, **fields) -> "Signal":
        """Creates a signal of type `cls` and appends it to the arena."""
        sig = cls(module=module, index=len(self.signals), **fields)
        self.signals.append(sig)
        self.touch()
        return sig
