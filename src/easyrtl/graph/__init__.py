"""
The design graph: contexts, modules, signals, and state elements.
"""

from .context import Context
from .instance import Instance
from .module import Module
from .signal import (
    Kind,
    Signal,
    Input,
    Constant,
    UnaryOp,
    BinaryOp,
    Comparison,
    Mux,
    RegisterValue,
    MemReadPortValue,
    InstanceOutput,
    concat,
    mux,
)
from .state_elements import Register, Mem, ReadPort, WritePort
