from dataclasses import dataclass, field
from typing import List, Optional, TYPE_CHECKING

from easyrtl.common import fits
from easyrtl.errors import MultipleDriverError, ScopeError, WidthError, WidthMismatchError
from easyrtl.graph.signal import MemReadPortValue, RegisterValue, Signal

if TYPE_CHECKING:
    from easyrtl.graph.module import Module

@dataclass(eq=False, repr=False)
class Register:
    """
    A clocked state element.

    `value` is the register's current value. It has no structural predecessor: the
    feedback edge to the next value lives on the register itself (`next`), so that
    registers break combinational cycles.
    """

    module: "Module"
    name: str
    width: int
    default: int
    value: RegisterValue = field(init=False)
    next: Optional[Signal] = field(default=None, init=False)

    def __post_init__(self):
        if not fits(self.default, self.width):
            raise WidthError(
                f"default value {self.default} does not fit in {self.width} bits",
                module=self.module.name,
                name=self.name,
            )
        self.value = self.module.context.alloc(RegisterValue, self.module, width=self.width, register=self)

    def drive_next(self, n: Signal):
        if self.next is not None:
            raise MultipleDriverError("register next value was already driven", module=self.module.name, name=self.name)
        n = self.value._coerce(n)
        if n.width != self.width:
            raise WidthMismatchError(
                f"cannot drive {self.width}-bit register with a {n.width}-bit signal",
                module=self.module.name,
                name=self.name,
                signal=n.describe(),
            )
        self.next = n
        self.module.context.touch()


@dataclass(eq=False, repr=False)
class ReadPort:
    mem: "Mem"
    index: int
    address: Signal
    enable: Optional[Signal]
    """`None` if the port is always enabled."""
    value: MemReadPortValue = field(init=False)

    def __post_init__(self):
        m = self.mem.module
        self.value = m.context.alloc(MemReadPortValue, m, width=self.mem.element_width, port=self)


@dataclass(eq=False, repr=False)
class WritePort:
    mem: "Mem"
    index: int
    address: Signal
    value: Signal
    enable: Signal


@dataclass(eq=False, repr=False)
class Mem:
    """
    A synchronous memory with any number of read and write ports.

    Read ports behave like registers: on a clock edge where the port is enabled, its value
    becomes the element at the port's address, *before* that edge's writes are applied.
    Writes take effect at the clock edge. If several write ports hit the same address on
    the same edge, the one declared last wins.
    """

    module: "Module"
    name: str
    element_width: int
    depth: int
    address_width: int = field(init=False)
    initial: Optional[List[int]] = field(default=None, init=False)
    read_ports: List[ReadPort] = field(default_factory=list, init=False)
    write_ports: List[WritePort] = field(default_factory=list, init=False)

    def __post_init__(self):
        if not isinstance(self.element_width, int) or isinstance(self.element_width, bool) or self.element_width < 1:
            raise WidthError(f"element width must be at least 1, got {self.element_width}", module=self.module.name, name=self.name)
        if not isinstance(self.depth, int) or isinstance(self.depth, bool) or self.depth < 2 or self.depth & (self.depth - 1) != 0:
            raise WidthError(f"depth must be a power of two that is at least 2, got {self.depth}", module=self.module.name, name=self.name)
        self.address_width = self.depth.bit_length() - 1

    def _check_port_signal(self, sig, width, what):
        if not isinstance(sig, Signal):
            raise TypeError(f"{what} must be a Signal, got {sig!r}")
        if sig.module is not self.module:
            raise ScopeError(
                f"{what} must belong to the memory's module",
                module=self.module.name,
                name=self.name,
                signal=f"{sig.describe()} from module \"{sig.module.name}\"",
            )
        if sig.width != width:
            raise WidthMismatchError(
                f"{what} must be {width} bit(s) wide, but was {sig.width}",
                module=self.module.name,
                name=self.name,
                signal=sig.describe(),
            )

    def initial_contents(self, values):
        """
        Sets the contents the memory starts out with. `values` can be any iterable of ints
        (including a numpy array) with exactly `depth` elements.
        """
        if self.initial is not None:
            raise MultipleDriverError("memory initial contents were already specified", module=self.module.name, name=self.name)
        values = [int(v) for v in values]
        if len(values) != self.depth:
            raise WidthError(f"expected {self.depth} initial values, got {len(values)}", module=self.module.name, name=self.name)
        for i, v in enumerate(values):
            if not fits(v, self.element_width):
                raise WidthError(
                    f"initial value {v} at address {i} does not fit in {self.element_width} bits",
                    module=self.module.name,
                    name=self.name,
                )
        self.initial = values
        self.module.context.touch()

    def read_port(self, address: Signal, enable: Optional[Signal]=None) -> MemReadPortValue:
        self._check_port_signal(address, self.address_width, "read address")
        if enable is not None:
            self._check_port_signal(enable, 1, "read enable")
        port = ReadPort(self, len(self.read_ports), address, enable)
        self.read_ports.append(port)
        return port.value

    def write_port(self, address: Signal, value: Signal, enable: Signal):
        self._check_port_signal(address, self.address_width, "write address")
        self._check_port_signal(value, self.element_width, "write value")
        self._check_port_signal(enable, 1, "write enable")
        self.write_ports.append(WritePort(self, len(self.write_ports), address, value, enable))
        self.module.context.touch()
