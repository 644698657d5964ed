"""
Conditional-expression shorthand, lowered onto the `mux` primitive.

    result = if_(a.op_eq(0), x).else_if(b, y).else_(z)

is exactly `a.op_eq(0).mux(x, b.mux(y, z))`. Branch values may also be tuples of signals
(of matching widths), in which case a tuple of signals is produced.
"""

from typing import List, Tuple, Union

from easyrtl.graph.signal import Signal

Value = Union[Signal, int, Tuple[Union[Signal, int], ...]]

class If:
    def __init__(self, cond: Signal, when_true: Value):
        self._arms: List[Tuple[Signal, Value]] = [(cond, when_true)]

    def else_if(self, cond: Signal, when_true: Value) -> "If":
        self._arms.append((cond, when_true))
        return self

    def else_(self, when_false: Value):
        result = when_false
        for cond, when_true in reversed(self._arms):
            result = _select(cond, when_true, result)
        return result


def _select(cond: Signal, when_true: Value, when_false: Value):
    if isinstance(when_true, tuple) or isinstance(when_false, tuple):
        if not (isinstance(when_true, tuple) and isinstance(when_false, tuple)) or len(when_true) != len(when_false):
            raise TypeError("tuple branches must all have the same number of elements")
        return tuple(cond.mux(t, f) for t, f in zip(when_true, when_false))
    return cond.mux(when_true, when_false)


def if_(cond: Signal, when_true: Value) -> If:
    return If(cond, when_true)
