"""
Python simulator generation.

The generated simulator is a plain Python class with one attribute per input and output
port of the top module, and the following methods:

- `reset()` loads register default values and clears memory read ports.
- `prop()` evaluates all combinational logic from the current inputs and committed state,
  updates the outputs, and computes (without committing) every register's next value and
  every memory read and write.
- `posedge_clk()` commits the values computed by the last `prop()` call.
- `step()` is `prop()` followed by `posedge_clk()`. Outputs keep the values computed by
  `prop()`, i.e. the values from before the clock edge.

When generated with tracing enabled, the constructor takes a `easyrtl.runtime.tracing.Trace`
and the class gets an `update_trace(time_stamp)` method that records the current value of
every port and register.
"""

from dataclasses import dataclass
from enum import Enum, auto
import logging
from typing import Iterator, Optional

from easyrtl.code_writer import CodeWriter
from easyrtl.errors import InvalidNameError
from easyrtl.graph.module import Module
from easyrtl.validation import validate
from .compiler import SIM_METHOD_NAMES, SimCompiler

logger = logging.getLogger(__name__)

class NamingStyle(Enum):
    """
    Configuration for how generated state members and temporaries are named.
    """

    INDEXED = auto()
    """
    State is named by kind and position (`_reg0`, `_mem1_rp0`), and temporaries are
    numbered (`t3`). Produces the most compact code.
    """

    HIERARCHICAL = auto()
    """
    State and temporaries are named after the elements they hold, qualified by the instance
    path (`_reg_core__pc`, `core__t3`). Easier to read when debugging generated code.
    """


@dataclass(frozen=True)
class SimOptions:
    trace: bool = False
    """Whether to emit trace instrumentation (see module docstring)."""
    naming: NamingStyle = NamingStyle.INDEXED
    class_name: Optional[str] = None
    """Name of the generated class; defaults to the name of the module."""


def generate_simulator(module: Module, options: Optional[SimOptions]=None) -> Iterator[str]:
    """
    Generates Python source for a cycle-accurate simulator of `module`. Returns an iterator
    over the lines of the source, each terminated by a newline.

    The module is validated first, so errors are raised before any output is produced.
    """
    if options is None:
        options = SimOptions()
    design = validate(module)
    for name in list(module.inputs) + list(module.outputs):
        if name in SIM_METHOD_NAMES:
            raise InvalidNameError("port name clashes with a method of the generated simulator", module=module.name, name=name)
    class_name = options.class_name if options.class_name is not None else module.name
    c = SimCompiler(design, options.naming == NamingStyle.HIERARCHICAL, options.trace)
    c.compile()
    w = CodeWriter()
    w(f"# Simulator for module \"{module.name}\", generated by easyrtl")
    w()
    c.emit_class(w, class_name)
    logger.debug("generated simulator %s (%d prop statement(s))", class_name, len(c.prop_lines))
    return w.lines()


def compile_simulator(module: Module, options: Optional[SimOptions]=None):
    """
    Generates a simulator for `module` and loads it, returning the simulator class.
    """
    if options is None:
        options = SimOptions()
    source = "".join(generate_simulator(module, options))
    class_name = options.class_name if options.class_name is not None else module.name
    code = compile(source, f"<easyrtl simulator {class_name}>", "exec")
    code_locals = {}
    exec(code, {}, code_locals)
    return code_locals[class_name]
