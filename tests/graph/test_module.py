"""
Tests module declarations, naming rules, and instance bindings.
"""

import pytest

from easyrtl import *

def inverter(ctx):
    m = ctx.module("Inverter")
    i = m.input("i", 1)
    m.output("o", ~i)
    return m


class TestModuleNames:
    def test_duplicate_module(self):
        ctx = Context()
        ctx.module("Top")
        with pytest.raises(DuplicateNameError):
            ctx.module("Top")

    def test_lookup(self):
        ctx = Context()
        m = ctx.module("Top")
        assert ctx.lookup("Top") is m
        with pytest.raises(ConstructionError):
            ctx.lookup("Missing")

    def test_shared_namespace(self):
        """
        Ports, registers, memories, and instances of a module cannot share names.
        """
        ctx = Context()
        inverter(ctx)
        m = ctx.module("Top")
        a = m.input("a", 1)
        with pytest.raises(DuplicateNameError):
            m.input("a", 2)
        with pytest.raises(DuplicateNameError):
            m.output("a", a)
        with pytest.raises(DuplicateNameError):
            m.reg("a", 1)
        with pytest.raises(DuplicateNameError):
            m.mem("a", 8, 4)
        with pytest.raises(DuplicateNameError):
            m.instance("a", "Inverter")

    def test_invalid_names(self):
        m = Context().module("Top")
        for name in ["", "1a", "a b", "_hidden", "class", "wire", "always", "clk", "reset_n"]:
            with pytest.raises(InvalidNameError):
                m.input(name, 1)
        with pytest.raises(InvalidNameError):
            Context().module("module")

    @pytest.mark.parametrize("name", [
        "pmos", "cmos", "rcmos", "rnmos", "rpmos", "bufif0", "bufif1", "notif0", "notif1",
        "tranif0", "tranif1", "rtran", "rtranif0", "rtranif1", "uwire", "incdir", "showcancelled",
    ])
    def test_verilog_keywords(self, name):
        """Every Verilog-2005 reserved word is rejected, for every kind of element."""
        ctx = Context()
        m = ctx.module("Top")
        with pytest.raises(InvalidNameError):
            m.input(name, 1)
        with pytest.raises(InvalidNameError):
            m.reg(name, 1)
        with pytest.raises(InvalidNameError):
            m.mem(name, 8, 4)
        with pytest.raises(InvalidNameError):
            m.instance(name, m)
        with pytest.raises(InvalidNameError):
            ctx.module(name)

    def test_invalid_widths(self):
        m = Context().module("Top")
        with pytest.raises(WidthError):
            m.input("a", 0)
        with pytest.raises(WidthError):
            m.reg("r", -3)
        with pytest.raises(WidthError):
            m.input("b", True)

    def test_declaration_order(self):
        m = Context().module("Top")
        m.input("z", 1)
        m.input("a", 1)
        m.input("m", 1)
        assert list(m.inputs) == ["z", "a", "m"]


class TestInstances:
    def test_bind_and_read(self):
        ctx = Context()
        inverter(ctx)
        top = ctx.module("Top")
        x = top.input("x", 1)
        inv = top.instance("inv", "Inverter")
        inv.drive_input("i", x)
        o = inv.output("o")
        assert o.width == 1
        assert o.module is top
        assert inv.output("o") is o
        top.output("y", o)

    def test_unknown_ports(self):
        ctx = Context()
        inverter(ctx)
        top = ctx.module("Top")
        x = top.input("x", 1)
        inv = top.instance("inv", "Inverter")
        with pytest.raises(ConstructionError):
            inv.drive_input("nope", x)
        with pytest.raises(ConstructionError):
            inv.output("nope")

    def test_bind_twice(self):
        ctx = Context()
        inverter(ctx)
        top = ctx.module("Top")
        x = top.input("x", 1)
        inv = top.instance("inv", "Inverter")
        inv.drive_input("i", x)
        with pytest.raises(MultipleDriverError):
            inv.drive_input("i", x)

    def test_bind_width_mismatch(self):
        ctx = Context()
        inverter(ctx)
        top = ctx.module("Top")
        x = top.input("x", 2)
        inv = top.instance("inv", "Inverter")
        with pytest.raises(WidthMismatchError):
            inv.drive_input("i", x)

    def test_bind_from_wrong_module(self):
        """Instance inputs must be driven from the instantiating module."""
        ctx = Context()
        child = inverter(ctx)
        top = ctx.module("Top")
        inv = top.instance("inv", child)
        with pytest.raises(ScopeError):
            inv.drive_input("i", child.inputs["i"])

    def test_instance_from_other_context(self):
        other = inverter(Context())
        top = Context().module("Top")
        with pytest.raises(ScopeError):
            top.instance("inv", other)

    def test_submodules(self):
        ctx = Context()
        inv_mod = inverter(ctx)
        mid = ctx.module("Mid")
        a = mid.input("a", 1)
        i1 = mid.instance("inv1", inv_mod)
        i1.drive_input("i", a)
        i2 = mid.instance("inv2", inv_mod)
        i2.drive_input("i", i1.output("o"))
        mid.output("b", i2.output("o"))
        top = ctx.module("Top")
        x = top.input("x", 1)
        m = top.instance("mid", mid)
        m.drive_input("a", x)
        top.output("y", m.output("b"))

        submodules = []
        top._get_submodules(submodules, set())
        assert submodules == [inv_mod, mid]
