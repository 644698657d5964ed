"""
Tests trace instrumentation of generated simulators.
"""

from easyrtl import *
from easyrtl.runtime import MemoryTrace, VcdTrace
from easyrtl.verilog import VcdWrapper

def counter(ctx):
    m = ctx.module("Counter")
    count = m.reg("count", 4)
    count.drive_next((count.value + 1).bits(3, 0))
    m.output("value", count.value)
    return m


def counter_pair():
    ctx = Context()
    counter(ctx)
    top = ctx.module("Top")
    en = top.input("en", 1)
    c = top.instance("c", "Counter")
    top.output("gated", en.mux(c.output("value"), 0))
    return top


class TestTracing:
    def test_memory_trace(self):
        trace = MemoryTrace()
        sim = compile_simulator(counter(Context()), SimOptions(trace=True))(trace)
        assert trace.names == ["Counter.value", "Counter.count"]
        assert trace.widths["Counter.count"] == 4
        for ts in range(20):
            sim.prop()
            sim.update_trace(ts)
            sim.posedge_clk()
        assert trace.value_at("Counter.value", 0) == 0
        assert trace.value_at("Counter.value", 7) == 7
        assert trace.value_at("Counter.value", 18) == 2
        # only changes are kept
        assert len(trace.values["Counter.value"]) == 20

    def test_nested_scopes(self):
        trace = MemoryTrace()
        sim = compile_simulator(counter_pair(), SimOptions(trace=True))(trace)
        assert trace.names == ["Top.en", "Top.gated", "Top.c.value", "Top.c.count"]
        sim.en = 0
        for ts in range(3):
            sim.prop()
            sim.update_trace(ts)
            sim.posedge_clk()
        sim.en = 1
        sim.prop()
        sim.update_trace(3)
        assert trace.values["Top.gated"] == [(0, 0), (3, 3)]
        assert trace.value_at("Top.c.value", 2) == 2

    def test_hierarchical_trace(self):
        trace = MemoryTrace()
        options = SimOptions(trace=True, naming=NamingStyle.HIERARCHICAL)
        sim = compile_simulator(counter_pair(), options)(trace)
        sim.en = 1
        for ts in range(5):
            sim.prop()
            sim.update_trace(ts)
            sim.posedge_clk()
        assert trace.value_at("Top.gated", 4) == 4

    def test_vcd_trace(self, tmp_path):
        path = tmp_path / "counter.vcd"
        with open(path, "w") as f:
            with VcdTrace(f) as trace:
                sim = compile_simulator(counter(Context()), SimOptions(trace=True))(trace)
                for ts in range(20):
                    sim.prop()
                    sim.update_trace(ts)
                    sim.posedge_clk()
        r = VcdWrapper(path)
        assert "Counter.value" in r.var_names
        assert r.get_value_at("Counter.value", 0) == 0
        assert r.get_value_at("Counter.count", 5) == 5
        assert r.get_value_at("Counter.value", 17) == 1
        assert r.get_value_at_or_none("Counter.missing", 3) is None
