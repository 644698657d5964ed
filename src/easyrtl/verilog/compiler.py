"""
Translation of a single validated module into a Verilog-2001 module.
"""

from typing import Dict, List

from easyrtl.code_writer import CodeWriter
from easyrtl.common import Namespace
from easyrtl.errors import InternalError
from easyrtl.graph.module import Module
from easyrtl.graph.signal import Input, InstanceOutput, MemReadPortValue, RegisterValue, Signal
from easyrtl.graph.state_elements import Mem

def width_str(width: int) -> str:
    if width == 1:
        return ""
    return f"[{width - 1}:0] "


def literal(value: int, width: int) -> str:
    return "{}'h{:x}".format(width, value)


class ModuleCompiler:
    """
    Emits one Verilog module. Every combinational signal gets its own wire, so that each
    assignment contains exactly one operator and Verilog's context-dependent expression
    widths never change the result.
    """

    def __init__(self, module: Module, order: List[Signal]):
        self.module = module
        self.order = order
        self.names = Namespace()
        self.refs: Dict[Signal, str] = {}
        self.temps: List[Signal] = []
        self.instance_wires: Dict[str, Dict[str, str]] = {}
        self.read_port_regs: Dict[str, List[str]] = {}

    def ref(self, sig: Signal) -> str:
        try:
            return self.refs[sig]
        except KeyError:
            raise InternalError("signal was referenced before it was declared", module=self.module.name, signal=sig.describe())

    def gather_names(self):
        m = self.module
        for name, sig in m.inputs.items():
            self.refs[sig] = self.names.claim(name)
        for name in m.outputs:
            self.names.claim(name)
        for name, reg in m.registers.items():
            self.refs[reg.value] = self.names.claim(name)
        for name, mem in m.mems.items():
            self.names.claim(name)
            self.read_port_regs[name] = [
                self.names.claim(f"_{name}_rp{rp.index}") for rp in mem.read_ports
            ]
        for inst_name, inst in m.instances.items():
            self.names.claim(inst_name)
            self.instance_wires[inst_name] = {
                port: self.names.claim(f"_{inst_name}__{port}") for port in inst.module.outputs
            }
        for sig in self.order:
            if isinstance(sig, MemReadPortValue):
                port = sig.port
                self.refs[sig] = self.read_port_regs[port.mem.name][port.index]
            elif isinstance(sig, InstanceOutput):
                self.refs[sig] = self.instance_wires[sig.instance.name][sig.port_name]
            elif not isinstance(sig, (Input, RegisterValue)):
                self.refs[sig] = self.names.claim(f"_t{len(self.temps)}")
                self.temps.append(sig)

    # === EMISSION ===

    def emit_header(self, w: CodeWriter):
        m = self.module
        ports = ["input wire reset_n", "input wire clk"]
        for name, sig in m.inputs.items():
            ports.append(f"input wire {width_str(sig.width)}{name}")
        for name, sig in m.outputs.items():
            ports.append(f"output wire {width_str(sig.width)}{name}")
        w(f"module {m.name}(")
        with w.indent():
            for i, port in enumerate(ports):
                w(port + ("," if i < len(ports) - 1 else ""))
        w(");")
        w()

    def emit_declarations(self, w: CodeWriter):
        m = self.module
        for name, reg in m.registers.items():
            w(f"reg {width_str(reg.width)}{name};")
        for name, mem in m.mems.items():
            w(f"reg {width_str(mem.element_width)}{name} [0:{mem.depth - 1}];")
            for rp_name in self.read_port_regs[name]:
                w(f"reg {width_str(mem.element_width)}{rp_name};")
        for inst_name, inst in m.instances.items():
            for port, wire in self.instance_wires[inst_name].items():
                w(f"wire {width_str(inst.module.outputs[port].width)}{wire};")
        for sig in self.temps:
            w(f"wire {width_str(sig.width)}{self.refs[sig]};")
        if len(m.registers) + len(m.mems) + len(m.instances) + len(self.temps) > 0:
            w()

    def emit_assignments(self, w: CodeWriter):
        for sig in self.temps:
            w(f"assign {self.refs[sig]} = {sig.to_verilog_str(self.ref)};")
        for name, sig in self.module.outputs.items():
            w(f"assign {name} = {self.ref(sig)};")
        w()

    def _emit_reset_block(self, w: CodeWriter, target: str, reset_value: str, enable, value: str):
        w("always @(posedge clk, negedge reset_n) begin")
        with w.indent():
            w("if (~reset_n) begin")
            with w.indent():
                w(f"{target} <= {reset_value};")
            w("end")
            if enable is None:
                w("else begin")
            else:
                w(f"else if ({self.ref(enable)}) begin")
            with w.indent():
                w(f"{target} <= {value};")
            w("end")
        w("end")
        w()

    def emit_registers(self, w: CodeWriter):
        for name, reg in self.module.registers.items():
            self._emit_reset_block(w, name, literal(reg.default, reg.width), None, self.ref(reg.next))

    def _emit_mem_init(self, w: CodeWriter, name: str, mem: Mem):
        if mem.initial is None:
            counter = self.names.claim(f"_{name}_i")
            w(f"integer {counter};")
            w("initial begin")
            with w.indent():
                w(f"for ({counter} = 0; {counter} < {mem.depth}; {counter} = {counter} + 1) begin")
                with w.indent():
                    w(f"{name}[{counter}] = {literal(0, mem.element_width)};")
                w("end")
            w("end")
        else:
            w("initial begin")
            with w.indent():
                for addr, value in enumerate(mem.initial):
                    w(f"{name}[{addr}] = {literal(value, mem.element_width)};")
            w("end")
        w()

    def emit_mems(self, w: CodeWriter):
        for name, mem in self.module.mems.items():
            self._emit_mem_init(w, name, mem)
            for rp, rp_name in zip(mem.read_ports, self.read_port_regs[name]):
                read = f"{name}[{self.ref(rp.address)}]"
                self._emit_reset_block(w, rp_name, literal(0, mem.element_width), rp.enable, read)
            if len(mem.write_ports) > 0:
                # later ports overwrite earlier ones when addresses collide
                w("always @(posedge clk) begin")
                with w.indent():
                    for wp in mem.write_ports:
                        w(f"if ({self.ref(wp.enable)}) begin")
                        with w.indent():
                            w(f"{name}[{self.ref(wp.address)}] <= {self.ref(wp.value)};")
                        w("end")
                w("end")
                w()

    def emit_instances(self, w: CodeWriter):
        for inst_name, inst in self.module.instances.items():
            conns = [".reset_n(reset_n)", ".clk(clk)"]
            for port in inst.module.inputs:
                conns.append(f".{port}({self.ref(inst.inputs[port])})")
            for port, wire in self.instance_wires[inst_name].items():
                conns.append(f".{port}({wire})")
            w(f"{inst.module.name} {inst_name}(")
            with w.indent():
                for i, conn in enumerate(conns):
                    w(conn + ("," if i < len(conns) - 1 else ""))
            w(");")
            w()

    def emit(self, w: CodeWriter):
        self.gather_names()
        self.emit_header(w)
        with w.indent():
            self.emit_declarations(w)
            self.emit_assignments(w)
            self.emit_registers(w)
            self.emit_mems(w)
            self.emit_instances(w)
        w("endmodule")
        w()
