"""
Structural Verilog generation, plus helpers for checking generated Verilog with external
tools (pyverilog for parsing, Icarus Verilog for simulation) and reading VCD dumps.

Every generated module gets two implicit ports, `reset_n` (active-low, asynchronous) and
`clk`, which are threaded through the whole instance hierarchy. Registers and memory read
ports reset to their default values while `reset_n` is low. Memory contents are loaded by
an `initial` block and are not affected by reset.
"""

import logging
from typing import Iterator

from easyrtl.code_writer import CodeWriter
from easyrtl.graph.module import Module
from easyrtl.validation import validate
from .compiler import ModuleCompiler
from .vcd_wrapper import VcdWrapper

logger = logging.getLogger(__name__)

def generate_structural(module: Module) -> Iterator[str]:
    """
    Generates Verilog for `module` and every module instantiated below it (each distinct
    module is emitted once, dependencies first). Returns an iterator over the lines of the
    output, each terminated by a newline.

    The module is validated first, so errors are raised before any output is produced.
    """
    design = validate(module)
    w = CodeWriter()
    w(f"// Generated by easyrtl from module \"{module.name}\"")
    w()
    for m in design.modules:
        ModuleCompiler(m, design.module_orders[m]).emit(w)
        logger.debug("generated verilog module %s", m.name)
    return w.lines()
