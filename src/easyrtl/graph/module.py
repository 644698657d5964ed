from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union, TYPE_CHECKING

from easyrtl.errors import DuplicateNameError, ScopeError, WidthError
from easyrtl.graph.instance import Instance
from easyrtl.graph.names import check_name
from easyrtl.graph.signal import Constant, Input, Signal, check_literal
from easyrtl.graph.state_elements import Mem, Register

if TYPE_CHECKING:
    from easyrtl.graph.context import Context

@dataclass(eq=False, repr=False)
class Module:
    """
    A named, reusable hardware component.

    Inputs, outputs, registers, memories, and instances share a single namespace within
    the module, and are kept in declaration order (which is also the order in which the
    code generators emit them).
    """

    name: str
    context: "Context"
    inputs: Dict[str, Input]                = field(default_factory=dict)
    outputs: Dict[str, Signal]              = field(default_factory=dict)
    """Maps output port names to the signal driving them."""
    registers: Dict[str, Register]          = field(default_factory=dict)
    mems: Dict[str, Mem]                    = field(default_factory=dict)
    instances: Dict[str, Instance]          = field(default_factory=dict)
    _validation_cache: Optional[Tuple[int, Any]] = field(default=None, init=False)
    """(context revision, `ValidatedDesign`) of the last successful validation."""

    def __repr__(self):
        return f"<Module {self.name}>"

    def _declare(self, name, kind):
        check_name(name, kind)
        for namespace in (self.inputs, self.outputs, self.registers, self.mems, self.instances):
            if name in namespace:
                raise DuplicateNameError(f"cannot declare {kind}: name is already in use", module=self.name, name=name)

    def _check_width(self, width, name):
        if not isinstance(width, int) or isinstance(width, bool) or width < 1:
            raise WidthError(f"width must be a positive integer, got {width!r}", module=self.name, name=name)

    # === PORTS ===

    def input(self, name: str, width: int) -> Input:
        self._declare(name, "input")
        self._check_width(width, name)
        sig = self.context.alloc(Input, self, width=width, name=name)
        self.inputs[name] = sig
        return sig

    def output(self, name: str, sig: Signal) -> Signal:
        self._declare(name, "output")
        if not isinstance(sig, Signal):
            raise TypeError(f"outputs must be driven by a Signal, got {sig!r}")
        if sig.module is not self:
            raise ScopeError(
                "outputs must be driven by a signal of the same module",
                module=self.name,
                name=name,
                signal=f"{sig.describe()} from module \"{sig.module.name}\"",
            )
        self.outputs[name] = sig
        self.context.touch()
        return sig

    # === CONSTANTS ===

    def lit(self, value: int, width: int) -> Constant:
        check_literal(self, value, width)
        return self.context.alloc(Constant, self, width=width, value=int(value))

    def high(self) -> Constant:
        return self.lit(1, 1)

    def low(self) -> Constant:
        return self.lit(0, 1)

    # === STATE ELEMENTS ===

    def reg(self, name: str, width: int, default: int=0) -> Register:
        self._declare(name, "register")
        self._check_width(width, name)
        r = Register(self, name, width, int(default))
        self.registers[name] = r
        return r

    def mem(self, name: str, element_width: int, depth: int) -> Mem:
        self._declare(name, "mem")
        m = Mem(self, name, element_width, depth)
        self.mems[name] = m
        self.context.touch()
        return m

    # === HIERARCHY ===

    def instance(self, name: str, module: Union["Module", str]) -> Instance:
        self._declare(name, "instance")
        if isinstance(module, str):
            module = self.context.lookup(module)
        if module.context is not self.context:
            raise ScopeError("cannot instantiate a module from a different context", module=self.name, name=name)
        inst = Instance(self, name, module)
        self.instances[name] = inst
        self.context.touch()
        return inst

    def _get_submodules(self, submodule_list: List["Module"], visited: set):
        """
        Appends every module instantiated below this one to `submodule_list`, children
        before parents. Assumes the hierarchy is not recursive.
        """
        for inst in self.instances.values():
            sub = inst.module
            if sub in visited:
                continue
            visited.add(sub)
            sub._get_submodules(submodule_list, visited)
            submodule_list.append(sub)
