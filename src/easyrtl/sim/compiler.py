"""
Translation of a validated design into the source of a Python simulator class.

The design is flattened: every scope of the elaborated hierarchy gets its own copy of
its module's state, and instance boundaries disappear by aliasing child inputs to the
parent's bindings and parent instance outputs to the child's output drivers.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from easyrtl.code_writer import CodeWriter
from easyrtl.common import Namespace, mask
from easyrtl.errors import InternalError
from easyrtl.graph.signal import Constant, Input, InstanceOutput, MemReadPortValue, RegisterValue, Signal
from easyrtl.graph.state_elements import Mem, Register
from easyrtl.validation import Scope, ValidatedDesign

SIM_METHOD_NAMES = frozenset(["reset", "prop", "posedge_clk", "step", "update_trace", "INPUTS", "OUTPUTS"])

# Names that generated expressions rely on, which locals must not shadow
_RESERVED_LOCALS = frozenset(["self", "trace", "time_stamp"])

# Number of memory elements per line of initial contents
_MEM_VALUES_PER_LINE = 8


@dataclass
class _RegNames:
    value: str
    next: str


@dataclass
class _MemNames:
    array: str
    read_ports: List[Tuple[str, str]] = field(default_factory=list)
    """(value, next value) member names for each read port."""
    write_ports: List[str] = field(default_factory=list)
    """Member holding each write port's pending (address, value) pair, or None."""


@dataclass
class _TracedSignal:
    name: str
    width: int
    var_type: str
    value_expr: str
    id_member: str = ""


class SimCompiler:
    def __init__(self, design: ValidatedDesign, hierarchical_names: bool, trace: bool):
        self.design = design
        self.hierarchical_names = hierarchical_names
        self.trace = trace
        self.members = Namespace()
        self.locals = Namespace(_RESERVED_LOCALS)
        self.regs: Dict[Tuple[Scope, Register], _RegNames] = {}
        self.mems: Dict[Tuple[Scope, Mem], _MemNames] = {}
        self.refs: Dict[Tuple[Scope, Signal], str] = {}
        self.prop_lines: List[str] = []
        self.traced: Dict[Scope, List[_TracedSignal]] = {}
        self._temp_count = 0
        self._trace_count = 0
        self.port_members: List[str] = []
        """Members holding child port values, for tracing."""

    # === NAMING ===

    def _hier_name(self, scope: Scope, name: str) -> str:
        return "__".join(scope.path[1:] + (name,))

    def _state_member(self, prefix: str, index: int, scope: Scope, name: str) -> str:
        if self.hierarchical_names:
            return self.members.claim(f"_{prefix}_{self._hier_name(scope, name)}")
        return self.members.claim(f"_{prefix}{index}")

    def _temp(self, scope: Scope, sig: Signal) -> str:
        n = self._temp_count
        self._temp_count += 1
        if not self.hierarchical_names:
            return self.locals.claim(f"t{n}")
        if isinstance(sig, Input):
            base = sig.name
        elif isinstance(sig, RegisterValue):
            base = sig.register.name
        elif isinstance(sig, MemReadPortValue):
            base = f"{sig.port.mem.name}_rp{sig.port.index}"
        else:
            base = f"t{n}"
        return self.locals.claim(self._hier_name(scope, base))

    # === COMPILATION ===

    def gather_state(self):
        n_regs = 0
        n_mems = 0
        for scope in self.design.root.walk():
            for reg in scope.module.registers.values():
                value = self._state_member("reg", n_regs, scope, reg.name)
                self.regs[(scope, reg)] = _RegNames(value, self.members.claim(value + "_next"))
                n_regs += 1
            for mem in scope.module.mems.values():
                names = _MemNames(self._state_member("mem", n_mems, scope, mem.name))
                for rp in mem.read_ports:
                    rp_name = self.members.claim(f"{names.array}_rp{rp.index}")
                    names.read_ports.append((rp_name, self.members.claim(rp_name + "_next")))
                for wp in mem.write_ports:
                    names.write_ports.append(self.members.claim(f"{names.array}_wp{wp.index}"))
                self.mems[(scope, mem)] = names
                n_mems += 1

    def ref(self, scope: Scope, sig: Signal) -> str:
        try:
            return self.refs[(scope, sig)]
        except KeyError:
            raise InternalError(
                "signal was referenced before it was evaluated",
                module=scope.module.name,
                signal=scope.qualify(sig),
            )

    def _emit(self, line: str):
        self.prop_lines.append(line)

    def compile_signal(self, scope: Scope, sig: Signal) -> str:
        if isinstance(sig, Constant):
            return sig.to_python_str(None)
        if isinstance(sig, Input):
            if scope.parent is not None:
                return self.ref(scope.parent, scope.instance.inputs[sig.name])
            t = self._temp(scope, sig)
            self._emit(f"{t} = self.{sig.name} & {mask(sig.width):#x}")
            return t
        if isinstance(sig, InstanceOutput):
            child = scope.children[sig.instance.name]
            return self.ref(child, child.module.outputs[sig.port_name])
        t = self._temp(scope, sig)
        if isinstance(sig, RegisterValue):
            self._emit(f"{t} = self.{self.regs[(scope, sig.register)].value}")
        elif isinstance(sig, MemReadPortValue):
            port = sig.port
            self._emit(f"{t} = self.{self.mems[(scope, port.mem)].read_ports[port.index][0]}")
        else:
            self._emit(f"{t} = " + sig.to_python_str(lambda s: self.ref(scope, s)))
        return t

    def compile_state_updates(self):
        """Computes next values and pending writes from the evaluated signals."""
        for (scope, reg), names in self.regs.items():
            self._emit(f"self.{names.next} = {self.ref(scope, reg.next)}")
        for (scope, mem), names in self.mems.items():
            for rp, (value, next_value) in zip(mem.read_ports, names.read_ports):
                read = f"self.{names.array}[{self.ref(scope, rp.address)}]"
                if rp.enable is None:
                    self._emit(f"self.{next_value} = {read}")
                else:
                    self._emit(f"self.{next_value} = {read} if {self.ref(scope, rp.enable)} else self.{value}")
            for wp, pending in zip(mem.write_ports, names.write_ports):
                addr = self.ref(scope, wp.address)
                data = self.ref(scope, wp.value)
                self._emit(f"self.{pending} = ({addr}, {data}) if {self.ref(scope, wp.enable)} else None")

    def gather_traced(self):
        for scope in self.design.root.walk():
            traced = []
            module = scope.module
            if scope.parent is None:
                for name, sig in module.inputs.items():
                    traced.append(_TracedSignal(name, sig.width, "wire", f"self.{name} & {mask(sig.width):#x}"))
                for name, sig in module.outputs.items():
                    traced.append(_TracedSignal(name, sig.width, "wire", f"self.{name}"))
            else:
                # child ports only exist as locals of prop(), so stash them in members
                ports = [(name, self.ref(scope.parent, scope.instance.inputs[name])) for name in module.inputs]
                ports += [(name, self.ref(scope, sig)) for name, sig in module.outputs.items()]
                widths = {name: sig.width for name, sig in list(module.inputs.items()) + list(module.outputs.items())}
                for name, ref in ports:
                    member = self.members.claim("_tv_" + self._hier_name(scope, name))
                    self._emit(f"self.{member} = {ref}")
                    self.port_members.append(member)
                    traced.append(_TracedSignal(name, widths[name], "wire", f"self.{member}"))
            for reg in module.registers.values():
                traced.append(_TracedSignal(reg.name, reg.width, "reg", f"self.{self.regs[(scope, reg)].value}"))
            for sig in traced:
                sig.id_member = self.members.claim(f"_tr{self._trace_count}")
                self._trace_count += 1
            self.traced[scope] = traced

    def compile(self):
        self.gather_state()
        for scope, sig in self.design.order:
            self.refs[(scope, sig)] = self.compile_signal(scope, sig)
        root = self.design.root
        for name, sig in root.module.outputs.items():
            self._emit(f"self.{name} = {self.ref(root, sig)}")
        self.compile_state_updates()
        if self.trace:
            self.gather_traced()

    # === EMISSION ===

    def _emit_mem_contents(self, w: CodeWriter, names: _MemNames, mem: Mem):
        if mem.initial is None:
            w(f"self.{names.array} = [0] * {mem.depth}")
            return
        w(f"self.{names.array} = [")
        with w.indent():
            for i in range(0, mem.depth, _MEM_VALUES_PER_LINE):
                chunk = mem.initial[i:i + _MEM_VALUES_PER_LINE]
                w(" ".join(f"{v:#x}," for v in chunk))
        w("]")

    def _emit_trace_registration(self, w: CodeWriter, scope: Scope):
        name = scope.module.name if scope.parent is None else scope.instance.name
        w(f"trace.push_module(\"{name}\")")
        for sig in self.traced[scope]:
            w(f"self.{sig.id_member} = trace.add_signal(\"{sig.name}\", {sig.width}, \"{sig.var_type}\")")
        for child in scope.children.values():
            self._emit_trace_registration(w, child)
        w("trace.pop_module()")

    def emit_init(self, w: CodeWriter):
        top = self.design.top
        if self.trace:
            w("def __init__(self, trace):")
        else:
            w("def __init__(self):")
        with w.indent():
            if len(top.inputs) > 0:
                w("# Inputs")
                for name, sig in top.inputs.items():
                    w(f"self.{name} = 0 # {sig.width} bit(s)")
            if len(top.outputs) > 0:
                w("# Outputs")
                for name, sig in top.outputs.items():
                    w(f"self.{name} = 0 # {sig.width} bit(s)")
            if len(self.regs) > 0:
                w("# Regs")
                for (scope, reg), names in self.regs.items():
                    w(f"self.{names.value} = 0 # {scope.path_str}.{reg.name}, {reg.width} bit(s)")
                    w(f"self.{names.next} = 0")
            if len(self.mems) > 0:
                w("# Mems")
                for (scope, mem), names in self.mems.items():
                    w(f"# {scope.path_str}.{mem.name}, {mem.depth} x {mem.element_width} bit(s)")
                    self._emit_mem_contents(w, names, mem)
                    for value, next_value in names.read_ports:
                        w(f"self.{value} = 0")
                        w(f"self.{next_value} = 0")
                    for pending in names.write_ports:
                        w(f"self.{pending} = None")
            for member in self.port_members:
                w(f"self.{member} = 0")
            if self.trace:
                w("self._trace = trace")
                self._emit_trace_registration(w, self.design.root)
            w("self.reset()")
        w()

    def emit_reset(self, w: CodeWriter):
        w("def reset(self):")
        with w.indent():
            empty = True
            for (_, reg), names in self.regs.items():
                w(f"self.{names.value} = {reg.default:#x}")
                w(f"self.{names.next} = {reg.default:#x}")
                empty = False
            for names in self.mems.values():
                for value, next_value in names.read_ports:
                    w(f"self.{value} = 0")
                    w(f"self.{next_value} = 0")
                    empty = False
                for pending in names.write_ports:
                    w(f"self.{pending} = None")
            if empty:
                w("pass")
        w()

    def emit_prop(self, w: CodeWriter):
        w("def prop(self):")
        with w.indent():
            for line in self.prop_lines:
                w(line)
            if len(self.prop_lines) == 0:
                w("pass")
        w()

    def emit_posedge_clk(self, w: CodeWriter):
        w("def posedge_clk(self):")
        with w.indent():
            empty = True
            for names in self.regs.values():
                w(f"self.{names.value} = self.{names.next}")
                empty = False
            # reads see the contents from before this edge's writes
            for names in self.mems.values():
                for value, next_value in names.read_ports:
                    w(f"self.{value} = self.{next_value}")
                    empty = False
            for names in self.mems.values():
                for pending in names.write_ports:
                    w(f"if self.{pending} is not None:")
                    with w.indent():
                        w(f"self.{names.array}[self.{pending}[0]] = self.{pending}[1]")
                    empty = False
            if empty:
                w("pass")
        w()

    def emit_step(self, w: CodeWriter):
        w("def step(self):")
        with w.indent():
            w("self.prop()")
            w("self.posedge_clk()")

    def emit_update_trace(self, w: CodeWriter):
        w()
        w("def update_trace(self, time_stamp):")
        with w.indent():
            w("self._trace.update_time_stamp(time_stamp)")
            for traced in self.traced.values():
                for sig in traced:
                    w(f"self._trace.update_signal(self.{sig.id_member}, {sig.value_expr})")

    def emit_class(self, w: CodeWriter, class_name: str):
        top = self.design.top
        w(f"class {class_name}:")
        with w.indent():
            w(f"\"\"\"Simulator for module \"{top.name}\".\"\"\"")
            w()
            w("INPUTS = (" + "".join(f"\"{name}\", " for name in top.inputs) + ")")
            w("OUTPUTS = (" + "".join(f"\"{name}\", " for name in top.outputs) + ")")
            w()
            self.emit_init(w)
            self.emit_reset(w)
            self.emit_prop(w)
            self.emit_posedge_clk(w)
            self.emit_step(w)
            if self.trace:
                self.emit_update_trace(w)
