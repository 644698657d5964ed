"""
Tests structural Verilog generation.
"""

import textwrap

import pytest

from easyrtl import *

def inverter(ctx):
    m = ctx.module("Inverter")
    i = m.input("i", 1)
    m.output("o", ~i)
    return m


class TestStructural:
    def test_inverter(self):
        text = "".join(generate_structural(inverter(Context())))
        assert textwrap.dedent("""\
            module Inverter(
                input wire reset_n,
                input wire clk,
                input wire i,
                output wire o
            );

                wire _t0;

                assign _t0 = ~i;
                assign o = _t0;

            endmodule
            """) in text

    def test_register(self):
        m = Context().module("Counter")
        count = m.reg("count", 4, default=2)
        count.drive_next((count.value + 1).bits(3, 0))
        m.output("value", count.value)
        text = "".join(generate_structural(m))
        assert "reg [3:0] count;" in text
        assert "always @(posedge clk, negedge reset_n) begin" in text
        assert "count <= 4'h2;" in text
        assert "wire [4:0] _t1;" in text
        assert "assign _t0 = 4'h1;" in text
        assert "assign _t1 = count + _t0;" in text
        assert "assign _t2 = _t1[3:0];" in text
        assert "count <= _t2;" in text
        assert "assign value = count;" in text

    def test_one_operator_per_assignment(self):
        m = Context().module("Ops")
        a = m.input("a", 8)
        b = m.input("b", 8)
        m.output("o", ((a + b).bits(7, 0) ^ b).sext(12).shr_arithmetic(2))
        text = "".join(generate_structural(m))
        assert "assign _t0 = a + b;" in text
        assert "assign _t1 = _t0[7:0];" in text
        assert "assign _t2 = _t1 ^ b;" in text
        assert "assign _t3 = {{4{_t2[7]}}, _t2};" in text
        assert "assign _t5 = $signed(_t3) >>> _t4;" in text

    def test_mem(self):
        m = Context().module("Ram")
        mem = m.mem("data", 8, 4)
        addr = m.input("addr", 2)
        en = m.input("en", 1)
        mem.write_port(addr, m.input("wdata", 8), en)
        m.output("rdata", mem.read_port(addr, en))
        text = "".join(generate_structural(m))
        assert "reg [7:0] data [0:3];" in text
        assert "reg [7:0] _data_rp0;" in text
        assert "for (_data_i = 0; _data_i < 4; _data_i = _data_i + 1) begin" in text
        assert "else if (en) begin" in text
        assert "_data_rp0 <= data[addr];" in text
        assert "data[addr] <= wdata;" in text
        assert "assign rdata = _data_rp0;" in text

    def test_mem_initial_contents(self):
        m = Context().module("Rom")
        mem = m.mem("lut", 4, 2)
        mem.initial_contents([3, 12])
        m.output("o", mem.read_port(m.input("addr", 1)))
        text = "".join(generate_structural(m))
        assert "lut[0] = 4'h3;" in text
        assert "lut[1] = 4'hc;" in text
        assert "_lut_rp0 <= lut[addr];" in text

    def test_hierarchy(self):
        """Each module is emitted once, children before parents."""
        ctx = Context()
        inverter(ctx)
        top = ctx.module("Top")
        x = top.input("x", 1)
        inv1 = top.instance("inv1", "Inverter")
        inv2 = top.instance("inv2", "Inverter")
        inv1.drive_input("i", x)
        inv2.drive_input("i", inv1.output("o"))
        top.output("y", inv2.output("o"))
        text = "".join(generate_structural(top))
        assert text.count("module Inverter(") == 1
        assert text.index("module Inverter(") < text.index("module Top(")
        assert "wire _inv1__o;" in text
        assert "\n".join([
            "    Inverter inv2(",
            "        .reset_n(reset_n),",
            "        .clk(clk),",
            "        .i(_inv1__o),",
            "        .o(_inv2__o)",
            "    );",
        ]) in text
        assert "assign y = _inv2__o;" in text

    def test_errors_before_output(self):
        ctx = Context()
        inverter(ctx)
        top = ctx.module("Top")
        top.output("y", top.instance("inv", "Inverter").output("o"))
        with pytest.raises(UndrivenError):
            generate_structural(top)
