"""
A small lookup table followed by a scratchpad, compared against Icarus Verilog on random
inputs when `iverilog` is available.
"""

import shutil

import numpy as np

from easyrtl import Context, compile_simulator, generate_structural
from easyrtl.testcase import RandomStimulus, run_vectors
from easyrtl.verilog.testbench import generate_testbench, parse_testbench_output, run_icarus

def build():
    ctx = Context()

    rom = ctx.module("Squares")
    addr = rom.input("addr", 4)
    table = rom.mem("table_data", 8, 16)
    table.initial_contents(np.arange(16) ** 2)
    rom.output("square", table.read_port(addr))

    top = ctx.module("Scratchpad")
    index = top.input("index", 4)
    we = top.input("we", 1)
    waddr = top.input("waddr", 3)
    pad = top.mem("pad", 8, 8)
    squares = top.instance("squares", rom)
    squares.drive_input("addr", index)
    pad.write_port(waddr, squares.output("square"), we)
    top.output("stored", pad.read_port(index.bits(2, 0), ~we))
    return top


def main():
    top = build()
    vectors = RandomStimulus(top, seed=0).vectors(50)
    expected = run_vectors(compile_simulator(top)(), vectors)
    if shutil.which("iverilog") is None:
        print("iverilog not found, showing simulator results only")
        for step, out in enumerate(expected):
            print(step, out["stored"])
        return
    sources = ["".join(generate_structural(top)), "".join(generate_testbench(top, vectors))]
    actual = parse_testbench_output(top, run_icarus(sources))
    mismatches = [step for step, (a, e) in enumerate(zip(actual, expected)) if a != e]
    print(f"{len(vectors)} steps, {len(mismatches)} mismatch(es)")


if __name__ == "__main__":
    main()
