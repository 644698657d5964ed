"""
Tests width rules and construction-time checks of signal operators.
"""

import pytest

from easyrtl import *

def new_module(name="Top"):
    return Context().module(name)


class TestSignalWidths:
    def test_arith_widths(self):
        m = new_module()
        a = m.input("a", 4)
        b = m.input("b", 6)
        assert (a + b).width == 7
        assert (a - b).width == 6
        assert (a * b).width == 10
        assert a.mul_signed(b).width == 10
        assert (-a).width == 4

    def test_int_coercion(self):
        """
        Int operands of arithmetic are sized to fit, while bitwise operands take the width
        of the signal they are combined with.
        """
        m = new_module()
        a = m.input("a", 4)
        assert (a + 1).width == 5
        assert (a + 100).width == 8
        assert (1 + a).width == 5
        assert (a & 3).width == 4
        assert (3 | a).width == 4
        with pytest.raises(WidthError):
            a & 100

    def test_bitwise_requires_equal_widths(self):
        m = new_module()
        a = m.input("a", 4)
        b = m.input("b", 5)
        with pytest.raises(WidthMismatchError):
            a & b
        with pytest.raises(WidthMismatchError):
            a ^ b
        # mismatches are also validation errors
        with pytest.raises(ValidationError):
            a | b

    def test_shifts(self):
        m = new_module()
        a = m.input("a", 8)
        s = m.input("s", 3)
        assert (a << s).width == 8
        assert (a >> 20).width == 8
        assert a.shr_arithmetic(s).width == 8
        assert (a >> 20).rhs.width == 5

    def test_comparisons(self):
        m = new_module()
        a = m.input("a", 4)
        b = m.input("b", 4)
        for c in [a.op_eq(b), a.op_ne(b), a < b, a <= b, a > b, a >= b, a.lt_signed(b), a.ge_signed(3)]:
            assert c.width == 1
        with pytest.raises(WidthMismatchError):
            a.op_eq(m.input("c", 5))

    def test_signed_comparison_of_single_bit(self):
        m = new_module()
        a = m.input("a", 1)
        b = m.input("b", 1)
        with pytest.raises(WidthError):
            a.lt_signed(b)

    def test_bit_selection(self):
        m = new_module()
        a = m.input("a", 8)
        assert a[3].width == 1
        assert a[7:4].width == 4
        assert a.bits(5, 0).width == 6
        with pytest.raises(WidthError):
            a[8]
        with pytest.raises(WidthError):
            a.bits(2, 3)
        with pytest.raises(WidthError):
            a[3:0:1]

    def test_concat_and_repeat(self):
        m = new_module()
        a = m.input("a", 3)
        b = m.input("b", 5)
        c = concat(a, b, m.lit(1, 2))
        assert c.width == 10
        # first operand ends up most significant
        assert c.lhs.lhs is a
        assert a.repeat(4).width == 12
        with pytest.raises(WidthError):
            a.repeat(0)

    def test_extensions(self):
        m = new_module()
        a = m.input("a", 3)
        assert a.zext(8).width == 8
        assert a.sext(3).width == 3
        with pytest.raises(WidthError):
            a.zext(2)

    def test_reductions(self):
        m = new_module()
        a = m.input("a", 7)
        assert a.andr().width == 1
        assert a.orr().width == 1
        assert a.xorr().width == 1

    def test_mux(self):
        m = new_module()
        c = m.input("c", 1)
        a = m.input("a", 4)
        b = m.input("b", 4)
        assert mux(c, a, b).width == 4
        assert c.mux(a, 2).width == 4
        assert c.mux(2, b).when_true.width == 4
        with pytest.raises(WidthMismatchError):
            a.mux(a, b)
        with pytest.raises(WidthMismatchError):
            c.mux(a, m.input("d", 3))
        with pytest.raises(TypeError):
            c.mux(1, 2)


class TestSignalChecks:
    def test_literals(self):
        m = new_module()
        assert m.lit(255, 8).width == 8
        assert m.high().value == 1
        assert m.low().value == 0
        with pytest.raises(WidthError):
            m.lit(256, 8)
        with pytest.raises(WidthError):
            m.lit(-1, 8)
        with pytest.raises(WidthError):
            m.lit(0, 0)

    def test_cross_module_combination(self):
        ctx = Context()
        m1 = ctx.module("A")
        m2 = ctx.module("B")
        a = m1.input("a", 4)
        b = m2.input("b", 4)
        with pytest.raises(ScopeError):
            a + b
        with pytest.raises(ScopeError):
            concat(a, b)
        with pytest.raises(ScopeError):
            m1.output("o", b)

    def test_no_python_truthiness(self):
        m = new_module()
        a = m.input("a", 1)
        with pytest.raises(TypeError):
            if a:
                pass

    def test_signals_are_hashable_by_identity(self):
        m = new_module()
        a = m.input("a", 4)
        s1 = a + 1
        s2 = a + 1
        assert s1 is not s2
        assert len({s1, s2, a}) == 3

    def test_arena_indices(self):
        ctx = Context()
        m = ctx.module("Top")
        a = m.input("a", 2)
        b = ~a
        assert ctx.signals[a.index] is a
        assert ctx.signals[b.index] is b
        assert b.index > a.index

    def test_variants_must_describe_themselves(self):
        class Unnamed(Signal):
            def to_target_format(self, tgt, **kwargs):
                return ""

        m = new_module()
        with pytest.raises(TypeError):
            Unnamed(module=m, index=0, width=1)
