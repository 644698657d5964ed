"""
Validation of module graphs.

`validate()` checks a module and everything instantiated below it, and computes the
evaluation orders that both code generators walk. The result is cached on the module
until anything in its context changes.
"""

from dataclasses import dataclass, field
import logging
from typing import Callable, Dict, Hashable, Iterable, List, Optional, Tuple

from easyrtl.errors import (
    CombinationalLoopError,
    RecursiveInstanceError,
    ScopeError,
    UndrivenError,
    WidthMismatchError,
)
from easyrtl.graph.instance import Instance
from easyrtl.graph.module import Module
from easyrtl.graph.signal import Input, InstanceOutput, Signal

logger = logging.getLogger(__name__)

@dataclass(eq=False, repr=False)
class Scope:
    """
    One node of the elaborated instance tree: a module, together with the path of
    instance names that leads to it from the top module.
    """

    module: Module
    path: Tuple[str, ...]
    """Starts with the name of the top module, followed by instance names."""
    parent: Optional["Scope"] = None
    instance: Optional[Instance] = None
    """The instance (within `parent.module`) that created this scope."""
    children: Dict[str, "Scope"] = field(default_factory=dict)

    def __repr__(self):
        return f"<Scope {self.path_str}>"

    @property
    def path_str(self):
        return ".".join(self.path)

    def walk(self) -> Iterable["Scope"]:
        """Yields this scope and all scopes below it, parents first."""
        yield self
        for child in self.children.values():
            yield from child.walk()

    def qualify(self, sig: Signal) -> str:
        return f"{self.path_str}: {sig.describe()}"


ElabNode = Tuple[Scope, Signal]

@dataclass
class ValidatedDesign:
    top: Module
    modules: List[Module]
    """Every distinct module in the hierarchy, children before parents (`top` is last)."""
    module_orders: Dict[Module, List[Signal]]
    """Per-module evaluation order of every signal needed by that module."""
    root: Scope
    order: List[ElabNode]
    """Evaluation order over the elaborated hierarchy."""

    @property
    def scopes(self) -> List[Scope]:
        return list(self.root.walk())


_VISITING = 1
_DONE = 2

def _topo_order(
    sinks: Iterable[Hashable],
    deps: Callable[[Hashable], List[Hashable]],
    on_cycle: Callable[[List[Hashable]], None],
) -> List[Hashable]:
    """
    Depth-first postorder traversal from `sinks`. Every node appears after all of its
    dependencies. If a dependency cycle is found, `on_cycle` is called with the nodes on
    it, in dataflow order (each node drives the next), and is expected to raise.
    """
    state = {}
    order = []
    for sink in sinks:
        if sink in state:
            continue
        state[sink] = _VISITING
        stack = [(sink, iter(deps(sink)))]
        while stack:
            node, it = stack[-1]
            for d in it:
                s = state.get(d)
                if s is None:
                    state[d] = _VISITING
                    stack.append((d, iter(deps(d))))
                    break
                if s == _VISITING:
                    start = [n for n, _ in stack].index(d)
                    on_cycle(list(reversed([n for n, _ in stack[start:]])))
            else:
                stack.pop()
                state[node] = _DONE
                order.append(node)
    return order


def _module_sinks(module: Module) -> List[Signal]:
    sinks = list(module.outputs.values())
    for reg in module.registers.values():
        if reg.next is not None:
            sinks.append(reg.next)
    for mem in module.mems.values():
        for rp in mem.read_ports:
            sinks.append(rp.address)
            if rp.enable is not None:
                sinks.append(rp.enable)
        for wp in mem.write_ports:
            sinks.extend([wp.address, wp.value, wp.enable])
    for inst in module.instances.values():
        sinks.extend(inst.inputs.values())
    return sinks


def _check_recursion(top: Module):
    def visit(module, stack):
        for inst in module.instances.values():
            if inst.module in stack:
                raise RecursiveInstanceError(
                    f"Cannot generate code for module \"{top.name}\" because module \"{inst.module.name}\" "
                    f"has a recursive definition formed by an instance of itself",
                    module=module.name,
                    name=inst.name,
                )
            visit(inst.module, stack + [inst.module])
    visit(top, [top])


def _check_drivers(top: Module, module: Module):
    for reg in module.registers.values():
        if reg.next is None:
            raise UndrivenError(
                f"Register in hierarchy of \"{top.name}\" has no next value driver",
                module=module.name,
                name=reg.name,
            )
    for inst in module.instances.values():
        for in_name in inst.module.inputs:
            if in_name not in inst.inputs:
                raise UndrivenError(
                    f"Instance input in hierarchy of \"{top.name}\" is not driven",
                    module=module.name,
                    name=f"{inst.name}.{in_name}",
                )
    for mem in module.mems.values():
        if len(mem.read_ports) == 0:
            raise UndrivenError(
                f"Mem in hierarchy of \"{top.name}\" has no read ports",
                module=module.name,
                name=mem.name,
            )
        if mem.initial is None and len(mem.write_ports) == 0:
            raise UndrivenError(
                f"Mem in hierarchy of \"{top.name}\" has no initial contents or write port",
                module=module.name,
                name=mem.name,
            )


def _check_signal(module: Module, sig: Signal):
    for child in sig._children:
        if child.module is not module:
            raise ScopeError(
                "Attempted to combine signals from different modules",
                module=module.name,
                signal=f"{child.describe()} from module \"{child.module.name}\"",
            )
    if sig.width < 1 or sig._expected_width() != sig.width:
        raise WidthMismatchError(
            "operand widths are inconsistent with the result width",
            module=module.name,
            signal=sig.describe(),
        )


def _loop_error(top: Module, nodes: List[ElabNode]):
    scope, sig = nodes[0]
    name = None
    if isinstance(sig, Input):
        name = sig.name
    elif isinstance(sig, InstanceOutput):
        name = f"{sig.instance.name}.{sig.port_name}"
    cycle = [s.qualify(n) for s, n in nodes]
    cycle.append(cycle[0])
    raise CombinationalLoopError(
        f"Combinational loop detected in hierarchy of \"{top.name}\"",
        cycle,
        module=scope.module.name,
        name=name,
        signal=sig.describe(),
    )


def _validate_module(top: Module, module: Module) -> List[Signal]:
    _check_drivers(top, module)
    def on_cycle(nodes):
        root = Scope(module, (module.name,))
        _loop_error(top, [(root, n) for n in nodes])
    order = _topo_order(_module_sinks(module), lambda s: s._children, on_cycle)
    for sig in order:
        _check_signal(module, sig)
    if len(module.outputs) == 0:
        logger.warning("module %s has no outputs", module.name)
    return order


def _elaborate(scope: Scope):
    for inst in scope.module.instances.values():
        child = Scope(inst.module, scope.path + (inst.name,), parent=scope, instance=inst)
        scope.children[inst.name] = child
        _elaborate(child)


def _elab_deps(node: ElabNode) -> List[ElabNode]:
    scope, sig = node
    if isinstance(sig, Input):
        if scope.parent is None:
            return []
        return [(scope.parent, scope.instance.inputs[sig.name])]
    if isinstance(sig, InstanceOutput):
        child = scope.children[sig.instance.name]
        return [(child, child.module.outputs[sig.port_name])]
    return [(scope, c) for c in sig._children]


def _elab_sinks(root: Scope) -> List[ElabNode]:
    sinks = [(root, s) for s in root.module.outputs.values()]
    for scope in root.walk():
        for sig in _module_sinks(scope.module):
            sinks.append((scope, sig))
    return sinks


def validate(top: Module) -> ValidatedDesign:
    """
    Validates `top` and every module it instantiates, returning the evaluation orders used
    for code generation. Raises a `ValidationError` on failure.
    """
    cached = top._validation_cache
    if cached is not None and cached[0] == top.context.revision:
        return cached[1]
    _check_recursion(top)
    modules = []
    top._get_submodules(modules, set())
    modules.append(top)
    module_orders = {m: _validate_module(top, m) for m in modules}
    root = Scope(top, (top.name,))
    _elaborate(root)
    order = _topo_order(_elab_sinks(root), _elab_deps, lambda nodes: _loop_error(top, nodes))
    design = ValidatedDesign(top, modules, module_orders, root, order)
    logger.debug(
        "validated %s: %d module(s), %d elaborated signal(s) in evaluation order",
        top.name, len(modules), len(order),
    )
    top._validation_cache = (top.context.revision, design)
    return design
