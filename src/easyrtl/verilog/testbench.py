"""
Testbench generation for running generated Verilog under Icarus Verilog, so that its
behavior can be compared against the generated Python simulator.

The testbench pulses `reset_n`, then for each input vector: applies the inputs, waits for
combinational logic to settle, prints every output of the design under test on one line,
and pulses the clock. This mirrors calling `prop()`, reading the outputs, and calling
`posedge_clk()` on a generated simulator.
"""

import logging
import os
import subprocess
import tempfile
from typing import Dict, Iterator, List, Mapping, Sequence

from easyrtl.code_writer import CodeWriter
from easyrtl.common import Namespace
from easyrtl.graph.module import Module
from .compiler import literal, width_str

logger = logging.getLogger(__name__)

TESTBENCH_NAME = "easyrtl_tb"

def generate_testbench(module: Module, vectors: Sequence[Mapping[str, int]], tb_name: str=TESTBENCH_NAME) -> Iterator[str]:
    """
    Generates a testbench instantiating `module` that applies `vectors` (maps from input
    names to values; missing inputs keep their previous value) one step at a time.
    """
    names = Namespace(["reset_n", "clk"] + list(module.inputs) + list(module.outputs))
    dut = names.claim("dut")
    w = CodeWriter()
    w(f"module {tb_name};")
    with w.indent():
        w("reg reset_n;")
        w("reg clk;")
        for name, sig in module.inputs.items():
            w(f"reg {width_str(sig.width)}{name};")
        for name, sig in module.outputs.items():
            w(f"wire {width_str(sig.width)}{name};")
        w()
        conns = [".reset_n(reset_n)", ".clk(clk)"] + [f".{name}({name})" for name in list(module.inputs) + list(module.outputs)]
        w(f"{module.name} {dut}(")
        with w.indent():
            for i, conn in enumerate(conns):
                w(conn + ("," if i < len(conns) - 1 else ""))
        w(");")
        w()
        w("initial begin")
        with w.indent():
            w("clk = 0;")
            for name, sig in module.inputs.items():
                w(f"{name} = {literal(0, sig.width)};")
            w("reset_n = 1;")
            w("#1;")
            w("reset_n = 0;")
            w("#1;")
            w("reset_n = 1;")
            w("#1;")
            fmt = " ".join(["%0d"] * len(module.outputs))
            args = ", ".join(module.outputs)
            for step, vector in enumerate(vectors):
                w(f"// step {step}")
                for name, value in vector.items():
                    w(f"{name} = {literal(value, module.inputs[name].width)};")
                w("#1;")
                if len(module.outputs) > 0:
                    w(f"$display(\"{fmt}\", {args});")
                w("clk = 1;")
                w("#1;")
                w("clk = 0;")
            w("$finish;")
        w("end")
    w("endmodule")
    return w.lines()


def parse_testbench_output(module: Module, output: str) -> List[Dict[str, int]]:
    """Turns the lines printed by a testbench into one dict of output values per step."""
    names = list(module.outputs)
    results = []
    for line in output.splitlines():
        fields = line.split()
        # skips simulator chatter such as the $finish notice
        if len(fields) == 0 or len(fields) != len(names) or not all(f.isdigit() for f in fields):
            continue
        results.append({name: int(value) for name, value in zip(names, fields)})
    return results


def run_icarus(sources: Sequence[str], top: str=TESTBENCH_NAME) -> str:
    """
    Compiles the given Verilog source texts with `iverilog` and runs the result with `vvp`,
    returning whatever the simulation printed.

    Raises `subprocess.CalledProcessError` if compilation or simulation fails.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        paths = []
        for i, source in enumerate(sources):
            path = os.path.join(tmpdir, f"source{i}.v")
            with open(path, "w") as f:
                f.write(source)
            paths.append(path)
        out_path = os.path.join(tmpdir, "sim.vvp")
        logger.debug("running iverilog on %d file(s), top %s", len(paths), top)
        subprocess.run(["iverilog", "-g2005", "-s", top, "-o", out_path] + paths, check=True, capture_output=True, text=True)
        proc = subprocess.run(["vvp", "-n", out_path], check=True, capture_output=True, text=True)
        return proc.stdout
