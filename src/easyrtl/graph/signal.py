from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, List, Tuple, Union, TYPE_CHECKING

from easyrtl.common import TargetFormat, Translatable, fits, mask
from easyrtl.errors import InternalError, ScopeError, WidthError, WidthMismatchError

if TYPE_CHECKING:
    from easyrtl.graph.instance import Instance
    from easyrtl.graph.module import Module
    from easyrtl.graph.state_elements import ReadPort, Register

class Kind(Enum):
    # unary
    Not             = auto()
    Neg             = auto()
    Extract         = auto()
    Repeat          = auto()
    ZeroExtend      = auto()
    SignExtend      = auto()
    ReduceAnd       = auto()
    ReduceOr        = auto()
    ReduceXor       = auto()
    # binary
    Add             = auto() # Result has an extra carry bit
    Sub             = auto() # Wraps on underflow
    Mul             = auto()
    MulSigned       = auto()
    And             = auto()
    Or              = auto()
    Xor             = auto()
    Shl             = auto()
    Shr             = auto() # Shift right (logical)
    ShrArithmetic   = auto() # Shift right (arithmetic)
    Concat          = auto() # Left operand is most significant
    # comparisons
    Eq              = auto()
    Ne              = auto()
    Lt              = auto() # Unsigned less than
    Le              = auto() # Unsigned less than/equal
    Gt              = auto() # Unsigned greater than
    Ge              = auto() # Unsigned greater than/equal
    LtSigned        = auto()
    LeSigned        = auto()
    GtSigned        = auto()
    GeSigned        = auto()

    @property
    def is_signed(self):
        return self in (Kind.MulSigned, Kind.LtSigned, Kind.LeSigned, Kind.GtSigned, Kind.GeSigned)


_VERILOG_UNOPS = {
    Kind.Not: "~",
    Kind.Neg: "-",
    Kind.ReduceAnd: "&",
    Kind.ReduceOr: "|",
    Kind.ReduceXor: "^",
}

_BINOP_SYMBOLS = {
    Kind.Add: "+",
    Kind.Sub: "-",
    Kind.Mul: "*",
    Kind.MulSigned: "*",
    Kind.And: "&",
    Kind.Or: "|",
    Kind.Xor: "^",
    Kind.Shl: "<<",
    Kind.Shr: ">>",
}

_COMPARISON_SYMBOLS = {
    Kind.Eq: "==",
    Kind.Ne: "!=",
    Kind.Lt: "<",
    Kind.Le: "<=",
    Kind.Gt: ">",
    Kind.Ge: ">=",
    Kind.LtSigned: "<",
    Kind.LeSigned: "<=",
    Kind.GtSigned: ">",
    Kind.GeSigned: ">=",
}

NameFn = Callable[["Signal"], str]
"""Maps an operand signal to the identifier (or literal) that refers to it in generated code."""


# Python renderings never call builtins, since the generated class can be named after one
def _py_signed(expr: str, width: int) -> str:
    """Python expression reinterpreting the unsigned `width`-bit `expr` as two's complement."""
    sign_bit = 1 << (width - 1)
    return f"(({expr} ^ {sign_bit:#x}) - {sign_bit:#x})"


def _verilog_msb(expr: str, width: int) -> str:
    # bit-selects of scalar nets are not legal everywhere
    if width == 1:
        return expr
    return f"{expr}[{width - 1}]"


# === BEGIN SIGNALS ===

@dataclass(frozen=True, eq=False, repr=False)
class Signal(Translatable, ABC):
    """
    A fixed-width node in a module's expression graph.

    Operator overrides build new signals; plain ints are turned into constants of a
    suitable width. Equality is identity, so that signals can be used as dict keys:
    use `op_eq`/`op_ne` to build equality comparisons.
    """

    module: "Module"
    index: int
    width: int

    @property
    def _children(self) -> List["Signal"]:
        return []

    def _expected_width(self) -> int:
        """Recomputes the width from the operands (used by validation)."""
        return self.width

    @abstractmethod
    def describe(self) -> str:
        raise NotImplementedError()

    def __repr__(self):
        return f"<{self.describe()} in {self.module.name}: bv{self.width}>"

    def __bool__(self):
        raise TypeError(f"{self.describe()} cannot be used as a Python boolean (did you mean to use mux?)")

    # === TYPE CHECKING ===

    def _check_scope(self, other: "Signal"):
        if other.module is not self.module:
            raise ScopeError(
                "Attempted to combine signals from different modules",
                module=self.module.name,
                signal=f"{other.describe()} from module \"{other.module.name}\""
            )

    def _check_same_width(self, other: "Signal", op: str):
        if self.width != other.width:
            raise WidthMismatchError(
                f"{op} requires operands of equal width, but got {self.width} and {other.width}",
                module=self.module.name,
                signal=self.describe(),
            )

    def _coerce(self, other, width=None) -> "Signal":
        """
        Checks that `other` can be combined with this signal. If `other` is an int, it is
        wrapped in a constant of `width` bits (by default, the width of this signal).
        """
        if isinstance(other, bool):
            other = int(other)
        if isinstance(other, int):
            return self.module.lit(other, self.width if width is None else width)
        if not isinstance(other, Signal):
            raise TypeError(f"cannot combine {self!r} with {other!r}")
        self._check_scope(other)
        return other

    def _coerce_arith(self, other) -> "Signal":
        # arithmetic operands may differ in width, so size literals to fit
        if isinstance(other, int) and other >= 0:
            return self._coerce(other, max(self.width, other.bit_length()))
        return self._coerce(other)

    def _coerce_shamt(self, other) -> "Signal":
        if isinstance(other, int) and other >= 0:
            return self._coerce(other, max(1, other.bit_length()))
        return self._coerce(other)

    # === OPERATORS ===

    def __invert__(self):
        return _unary(Kind.Not, self, self.width)

    def __neg__(self):
        return _unary(Kind.Neg, self, self.width)

    def __add__(self, other):
        other = self._coerce_arith(other)
        return _binary(Kind.Add, self, other, max(self.width, other.width) + 1)

    def __radd__(self, other):
        return self._coerce_arith(other) + self

    def __sub__(self, other):
        other = self._coerce_arith(other)
        return _binary(Kind.Sub, self, other, max(self.width, other.width))

    def __rsub__(self, other):
        return self._coerce_arith(other) - self

    def __mul__(self, other):
        other = self._coerce_arith(other)
        return _binary(Kind.Mul, self, other, self.width + other.width)

    def __rmul__(self, other):
        return self._coerce_arith(other) * self

    def mul_signed(self, other):
        other = self._coerce_arith(other)
        return _binary(Kind.MulSigned, self, other, self.width + other.width)

    def _bitwise(self, kind, other, reverse=False):
        other = self._coerce(other)
        self._check_same_width(other, kind.name)
        if reverse:
            return _binary(kind, other, self, self.width)
        return _binary(kind, self, other, self.width)

    def __and__(self, other):
        return self._bitwise(Kind.And, other)

    def __rand__(self, other):
        return self._bitwise(Kind.And, other, reverse=True)

    def __or__(self, other):
        return self._bitwise(Kind.Or, other)

    def __ror__(self, other):
        return self._bitwise(Kind.Or, other, reverse=True)

    def __xor__(self, other):
        return self._bitwise(Kind.Xor, other)

    def __rxor__(self, other):
        return self._bitwise(Kind.Xor, other, reverse=True)

    def __lshift__(self, other):
        return _binary(Kind.Shl, self, self._coerce_shamt(other), self.width)

    def __rshift__(self, other):
        return _binary(Kind.Shr, self, self._coerce_shamt(other), self.width)

    def shr_arithmetic(self, other):
        return _binary(Kind.ShrArithmetic, self, self._coerce_shamt(other), self.width)

    def _compare(self, kind, other):
        other = self._coerce(other)
        self._check_same_width(other, kind.name)
        if kind.is_signed and self.width == 1:
            raise WidthError(
                "signed comparisons require operands wider than 1 bit",
                module=self.module.name,
                signal=self.describe(),
            )
        return _comparison(kind, self, other)

    def op_eq(self, other):
        return self._compare(Kind.Eq, other)

    def op_ne(self, other):
        return self._compare(Kind.Ne, other)

    def __lt__(self, other):
        return self._compare(Kind.Lt, other)

    def __le__(self, other):
        return self._compare(Kind.Le, other)

    def __gt__(self, other):
        return self._compare(Kind.Gt, other)

    def __ge__(self, other):
        return self._compare(Kind.Ge, other)

    def lt_signed(self, other):
        return self._compare(Kind.LtSigned, other)

    def le_signed(self, other):
        return self._compare(Kind.LeSigned, other)

    def gt_signed(self, other):
        return self._compare(Kind.GtSigned, other)

    def ge_signed(self, other):
        return self._compare(Kind.GeSigned, other)

    # === BIT MANIPULATION ===

    def __getitem__(self, key):
        """
        `s[i]` selects a single bit; `s[hi:lo]` selects an inclusive range of bits, with the
        high index first (as in Verilog).
        """
        if isinstance(key, int):
            return self.bit(key)
        if isinstance(key, slice):
            if key.step is not None or not isinstance(key.start, int) or not isinstance(key.stop, int):
                raise WidthError(f"invalid bit range {key}", module=self.module.name, signal=self.describe())
            return self.bits(key.start, key.stop)
        raise TypeError(f"cannot index a signal with {key!r}")

    def bit(self, index: int):
        return self.bits(index, index)

    def bits(self, high: int, low: int):
        if low < 0 or high < low or high >= self.width:
            raise WidthError(
                f"cannot select bits [{high}:{low}] from a {self.width}-bit signal",
                module=self.module.name,
                signal=self.describe(),
            )
        return _unary(Kind.Extract, self, high - low + 1, (high, low))

    def repeat(self, count: int):
        if count < 1:
            raise WidthError(f"repeat count must be at least 1, got {count}", module=self.module.name, signal=self.describe())
        return _unary(Kind.Repeat, self, self.width * count, (count,))

    def zext(self, width: int):
        """Zero-extends this signal to `width` bits."""
        if width < self.width:
            raise WidthError(f"cannot zero-extend a {self.width}-bit signal to {width} bits", module=self.module.name, signal=self.describe())
        return _unary(Kind.ZeroExtend, self, width)

    def sext(self, width: int):
        """Sign-extends this signal to `width` bits."""
        if width < self.width:
            raise WidthError(f"cannot sign-extend a {self.width}-bit signal to {width} bits", module=self.module.name, signal=self.describe())
        return _unary(Kind.SignExtend, self, width)

    def andr(self):
        return _unary(Kind.ReduceAnd, self, 1)

    def orr(self):
        return _unary(Kind.ReduceOr, self, 1)

    def xorr(self):
        return _unary(Kind.ReduceXor, self, 1)

    def concat(self, *others):
        t = self
        for o in others:
            o = self._coerce(o)
            t = _binary(Kind.Concat, t, o, t.width + o.width)
        return t

    def mux(self, when_true, when_false):
        """Selects `when_true` if this 1-bit signal is set, and `when_false` otherwise."""
        if self.width != 1:
            raise WidthMismatchError(
                f"mux condition must be 1 bit wide, but was {self.width} bits",
                module=self.module.name,
                signal=self.describe(),
            )
        if isinstance(when_true, Signal):
            when_false = self._coerce(when_false, when_true.width)
            when_true = self._coerce(when_true)
        elif isinstance(when_false, Signal):
            when_true = self._coerce(when_true, when_false.width)
            when_false = self._coerce(when_false)
        else:
            raise TypeError("at least one mux operand must be a Signal")
        when_true._check_same_width(when_false, "mux")
        return self.module.context.alloc(
            Mux, self.module, width=when_true.width, cond=self, when_true=when_true, when_false=when_false,
        )


@dataclass(frozen=True, eq=False, repr=False)
class Input(Signal):
    name: str

    def describe(self):
        return f"input \"{self.name}\""

    def to_target_format(self, tgt: TargetFormat, **kwargs):
        raise InternalError("inputs are referenced by name, not translated", signal=self.describe())


@dataclass(frozen=True, eq=False, repr=False)
class Constant(Signal):
    value: int

    def describe(self):
        return f"constant {self.value:#x}"

    def to_target_format(self, tgt: TargetFormat, **kwargs):
        if tgt == TargetFormat.PYTHON:
            return f"{self.value:#x}"
        elif tgt == TargetFormat.VERILOG:
            return "{}'h{:x}".format(self.width, self.value)
        raise NotImplementedError("cannot convert Constant to " + str(tgt))


@dataclass(frozen=True, eq=False, repr=False)
class UnaryOp(Signal):
    kind: Kind
    operand: Signal
    params: Tuple[int, ...] = ()

    @property
    def _children(self):
        return [self.operand]

    def _expected_width(self):
        w = self.operand.width
        if self.kind in (Kind.Not, Kind.Neg):
            return w
        if self.kind == Kind.Extract:
            high, low = self.params
            return high - low + 1
        if self.kind == Kind.Repeat:
            return w * self.params[0]
        if self.kind in (Kind.ZeroExtend, Kind.SignExtend):
            return max(w, self.width)
        return 1

    def describe(self):
        return f"{self.kind.name} #{self.index}"

    def to_target_format(self, tgt: TargetFormat, **kwargs):
        names: NameFn = kwargs["names"]
        a = names(self.operand)
        a_w = self.operand.width
        m = mask(self.width)
        if tgt == TargetFormat.PYTHON:
            if self.kind == Kind.Not:
                return f"~{a} & {m:#x}"
            if self.kind == Kind.Neg:
                return f"-{a} & {m:#x}"
            if self.kind == Kind.Extract:
                low = self.params[1]
                if low == 0:
                    return f"{a} & {m:#x}"
                return f"({a} >> {low}) & {m:#x}"
            if self.kind == Kind.Repeat:
                # multiplying by 0b...0001_0001 places a copy of the operand in each slot
                spread = sum(1 << (i * a_w) for i in range(self.params[0]))
                return f"{a} * {spread:#x}"
            if self.kind == Kind.ZeroExtend:
                return a
            if self.kind == Kind.SignExtend:
                return f"{_py_signed(a, a_w)} & {m:#x}"
            if self.kind == Kind.ReduceAnd:
                return f"({a} == {mask(a_w):#x}) * 1"
            if self.kind == Kind.ReduceOr:
                return f"({a} != 0) * 1"
            if self.kind == Kind.ReduceXor:
                return f"\"{{:b}}\".format({a}).count(\"1\") & 1"
            raise NotImplementedError(self.kind)
        elif tgt == TargetFormat.VERILOG:
            if self.kind in _VERILOG_UNOPS:
                return _VERILOG_UNOPS[self.kind] + a
            if self.kind == Kind.Extract:
                high, low = self.params
                if a_w == 1:
                    return a
                if high == low:
                    return f"{a}[{high}]"
                return f"{a}[{high}:{low}]"
            if self.kind == Kind.Repeat:
                return "{" + str(self.params[0]) + "{" + a + "}}"
            if self.kind in (Kind.ZeroExtend, Kind.SignExtend):
                extra = self.width - a_w
                if extra == 0:
                    return a
                fill = "1'b0" if self.kind == Kind.ZeroExtend else _verilog_msb(a, a_w)
                return "{{" + str(extra) + "{" + fill + "}}, " + a + "}"
            raise NotImplementedError(self.kind)
        raise NotImplementedError("cannot convert UnaryOp to " + str(tgt))


@dataclass(frozen=True, eq=False, repr=False)
class BinaryOp(Signal):
    kind: Kind
    lhs: Signal
    rhs: Signal

    @property
    def _children(self):
        return [self.lhs, self.rhs]

    def _expected_width(self):
        l_w, r_w = self.lhs.width, self.rhs.width
        if self.kind == Kind.Add:
            return max(l_w, r_w) + 1
        if self.kind == Kind.Sub:
            return max(l_w, r_w)
        if self.kind in (Kind.Mul, Kind.MulSigned, Kind.Concat):
            return l_w + r_w
        if self.kind in (Kind.And, Kind.Or, Kind.Xor) and l_w != r_w:
            # operands must agree; no width would be correct
            return -1
        return l_w

    def describe(self):
        return f"{self.kind.name} #{self.index}"

    def to_target_format(self, tgt: TargetFormat, **kwargs):
        names: NameFn = kwargs["names"]
        a = names(self.lhs)
        b = names(self.rhs)
        m = mask(self.width)
        if tgt == TargetFormat.PYTHON:
            if self.kind in (Kind.Add, Kind.Mul, Kind.And, Kind.Or, Kind.Xor, Kind.Shr):
                return f"{a} {_BINOP_SYMBOLS[self.kind]} {b}"
            if self.kind == Kind.Sub:
                return f"({a} - {b}) & {m:#x}"
            if self.kind == Kind.MulSigned:
                return f"({_py_signed(a, self.lhs.width)} * {_py_signed(b, self.rhs.width)}) & {m:#x}"
            if self.kind == Kind.Shl:
                # guard against materializing huge intermediates for wide shift amounts
                return f"({a} << {b}) & {m:#x} if {b} < {self.width} else 0"
            if self.kind == Kind.ShrArithmetic:
                return f"({_py_signed(a, self.lhs.width)} >> {b}) & {m:#x}"
            if self.kind == Kind.Concat:
                return f"({a} << {self.rhs.width}) | {b}"
            raise NotImplementedError(self.kind)
        elif tgt == TargetFormat.VERILOG:
            if self.kind == Kind.MulSigned:
                return f"$signed({a}) * $signed({b})"
            if self.kind in _BINOP_SYMBOLS:
                return f"{a} {_BINOP_SYMBOLS[self.kind]} {b}"
            if self.kind == Kind.ShrArithmetic:
                return f"$signed({a}) >>> {b}"
            if self.kind == Kind.Concat:
                return "{" + a + ", " + b + "}"
            raise NotImplementedError(self.kind)
        raise NotImplementedError("cannot convert BinaryOp to " + str(tgt))


@dataclass(frozen=True, eq=False, repr=False)
class Comparison(Signal):
    kind: Kind
    lhs: Signal
    rhs: Signal

    @property
    def _children(self):
        return [self.lhs, self.rhs]

    def _expected_width(self):
        if self.lhs.width != self.rhs.width:
            return -1
        return 1

    def describe(self):
        return f"{self.kind.name} #{self.index}"

    def to_target_format(self, tgt: TargetFormat, **kwargs):
        names: NameFn = kwargs["names"]
        a = names(self.lhs)
        b = names(self.rhs)
        op = _COMPARISON_SYMBOLS[self.kind]
        if tgt == TargetFormat.PYTHON:
            if self.kind.is_signed:
                a = _py_signed(a, self.lhs.width)
                b = _py_signed(b, self.rhs.width)
            return f"({a} {op} {b}) * 1"
        elif tgt == TargetFormat.VERILOG:
            if self.kind.is_signed:
                return f"$signed({a}) {op} $signed({b})"
            return f"{a} {op} {b}"
        raise NotImplementedError("cannot convert Comparison to " + str(tgt))


@dataclass(frozen=True, eq=False, repr=False)
class Mux(Signal):
    cond: Signal
    when_true: Signal
    when_false: Signal

    @property
    def _children(self):
        return [self.cond, self.when_true, self.when_false]

    def _expected_width(self):
        if self.cond.width != 1 or self.when_true.width != self.when_false.width:
            return -1
        return self.when_true.width

    def describe(self):
        return f"Mux #{self.index}"

    def to_target_format(self, tgt: TargetFormat, **kwargs):
        names: NameFn = kwargs["names"]
        c = names(self.cond)
        t = names(self.when_true)
        f = names(self.when_false)
        if tgt == TargetFormat.PYTHON:
            return f"{t} if {c} else {f}"
        elif tgt == TargetFormat.VERILOG:
            return f"{c} ? {t} : {f}"
        raise NotImplementedError("cannot convert Mux to " + str(tgt))


class _StateRead(Signal):
    """Signals whose values are read from committed state; they have no predecessors."""

    def to_target_format(self, tgt: TargetFormat, **kwargs):
        raise InternalError("state values are referenced by name, not translated", signal=self.describe())


@dataclass(frozen=True, eq=False, repr=False)
class RegisterValue(_StateRead):
    register: "Register"

    def describe(self):
        return f"register \"{self.register.name}\""


@dataclass(frozen=True, eq=False, repr=False)
class MemReadPortValue(_StateRead):
    port: "ReadPort"

    def describe(self):
        return f"read port {self.port.index} of mem \"{self.port.mem.name}\""


@dataclass(frozen=True, eq=False, repr=False)
class InstanceOutput(Signal):
    instance: "Instance"
    port_name: str

    def describe(self):
        return f"output \"{self.port_name}\" of instance \"{self.instance.name}\""

    def to_target_format(self, tgt: TargetFormat, **kwargs):
        raise InternalError("instance outputs are referenced by name, not translated", signal=self.describe())

# === END SIGNALS ===


def _unary(kind, operand, width, params=()):
    return operand.module.context.alloc(UnaryOp, operand.module, width=width, kind=kind, operand=operand, params=params)


def _binary(kind, lhs, rhs, width):
    return lhs.module.context.alloc(BinaryOp, lhs.module, width=width, kind=kind, lhs=lhs, rhs=rhs)


def _comparison(kind, lhs, rhs):
    return lhs.module.context.alloc(Comparison, lhs.module, width=1, kind=kind, lhs=lhs, rhs=rhs)


def concat(first: Signal, *rest: Union[Signal, int]) -> Signal:
    """Concatenates signals, with `first` ending up as the most significant bits."""
    return first.concat(*rest)


def mux(cond: Signal, when_true, when_false) -> Signal:
    return cond.mux(when_true, when_false)


def check_literal(module: "Module", value: int, width: int):
    if not isinstance(width, int) or width < 1:
        raise WidthError(f"literal width must be at least 1, got {width}", module=module.name)
    if not fits(value, width):
        raise WidthError(f"literal {value} does not fit in {width} bits", module=module.name)
