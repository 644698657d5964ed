"""
A free-running counter with a synchronous clear, simulated for a few cycles with a VCD
trace of every signal.
"""

import argparse

from easyrtl import Context, SimOptions, compile_simulator, generate_structural
from easyrtl.runtime import VcdTrace
from easyrtl.sugar import if_

def build(width=8):
    m = Context().module("Counter")
    clear = m.input("clear", 1)
    count = m.reg("count", width)
    count.drive_next(if_(clear, 0).else_((count.value + 1).bits(width - 1, 0)))
    m.output("value", count.value)
    m.output("wrapped", count.value.andr())
    return m


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--cycles", type=int, default=300)
    parser.add_argument("--vcd", default="counter.vcd")
    parser.add_argument("--verilog", default="counter.v")
    args = parser.parse_args()

    top = build()
    with open(args.verilog, "w") as f:
        f.writelines(generate_structural(top))
    Counter = compile_simulator(top, SimOptions(trace=True))
    with open(args.vcd, "w") as f, VcdTrace(f) as trace:
        sim = Counter(trace)
        for cycle in range(args.cycles):
            sim.clear = int(cycle == 100)
            sim.prop()
            sim.update_trace(cycle)
            sim.posedge_clk()
    print(f"wrote {args.verilog} and {args.vcd}")


if __name__ == "__main__":
    main()
