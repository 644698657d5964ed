import pytest

from easyrtl import *
from easyrtl.sugar import if_

class TestSugar:
    def test_if_else_lowers_to_mux(self):
        m = Context().module("Top")
        a = m.input("a", 1)
        x = m.input("x", 4)
        y = m.input("y", 4)
        result = if_(a, x).else_(y)
        assert isinstance(result, Mux)
        assert result.cond is a
        assert result.when_true is x
        assert result.when_false is y

    def test_else_if_chain(self):
        """Earlier conditions take priority."""
        m = Context().module("Top")
        a = m.input("a", 1)
        b = m.input("b", 1)
        x = m.input("x", 4)
        y = m.input("y", 4)
        result = if_(a, x).else_if(b, y).else_(0)
        assert result.cond is a
        assert result.when_true is x
        inner = result.when_false
        assert inner.cond is b
        assert inner.when_true is y
        assert inner.when_false.value == 0

    def test_tuples(self):
        m = Context().module("Top")
        a = m.input("a", 1)
        x = m.input("x", 4)
        y = m.input("y", 2)
        hi, lo = if_(a, (x, y)).else_((0, 1))
        assert hi.width == 4
        assert lo.width == 2
        with pytest.raises(TypeError):
            if_(a, (x, y)).else_(x)
        with pytest.raises(TypeError):
            if_(a, (x, y)).else_((x,))
