from dataclasses import dataclass, field
from typing import Dict, TYPE_CHECKING

from easyrtl.errors import ConstructionError, MultipleDriverError, ScopeError, WidthMismatchError
from easyrtl.graph.signal import InstanceOutput, Signal

if TYPE_CHECKING:
    from easyrtl.graph.module import Module

@dataclass(eq=False, repr=False)
class Instance:
    """
    A placement of `module` inside `parent`.

    Input bindings are represented in the `inputs` field, which maps the child module's
    input names to signals of the parent. Outputs are exposed to the parent through
    `output()`; each output port maps to a single `InstanceOutput` signal of the parent.
    """

    parent: "Module"
    name: str
    module: "Module"
    inputs: Dict[str, Signal] = field(default_factory=dict, init=False)
    _outputs: Dict[str, InstanceOutput] = field(default_factory=dict, init=False)

    def drive_input(self, name: str, sig: Signal):
        if name not in self.module.inputs:
            raise ConstructionError(
                f"module \"{self.module.name}\" has no input with this name",
                module=self.parent.name,
                name=f"{self.name}.{name}",
            )
        if name in self.inputs:
            raise MultipleDriverError("instance input was already driven", module=self.parent.name, name=f"{self.name}.{name}")
        if not isinstance(sig, Signal):
            raise TypeError(f"instance inputs must be driven by a Signal, got {sig!r}")
        if sig.module is not self.parent:
            raise ScopeError(
                "instance inputs must be driven by signals of the instantiating module",
                module=self.parent.name,
                name=f"{self.name}.{name}",
                signal=f"{sig.describe()} from module \"{sig.module.name}\"",
            )
        expected = self.module.inputs[name].width
        if sig.width != expected:
            raise WidthMismatchError(
                f"cannot drive {expected}-bit input with a {sig.width}-bit signal",
                module=self.parent.name,
                name=f"{self.name}.{name}",
                signal=sig.describe(),
            )
        self.inputs[name] = sig
        self.parent.context.touch()

    def output(self, name: str) -> InstanceOutput:
        if name in self._outputs:
            return self._outputs[name]
        if name not in self.module.outputs:
            raise ConstructionError(
                f"module \"{self.module.name}\" has no output with this name",
                module=self.parent.name,
                name=f"{self.name}.{name}",
            )
        width = self.module.outputs[name].width
        sig = self.parent.context.alloc(InstanceOutput, self.parent, width=width, instance=self, port_name=name)
        self._outputs[name] = sig
        return sig
