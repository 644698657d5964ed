"""
Parses generated Verilog back with pyverilog, as a check that the output is well-formed.

pyverilog preprocesses its input with Icarus Verilog (`iverilog -E`), which must be
installed for these functions to work.
"""

import os
import tempfile
from typing import Dict, List

from pyverilog.vparser.parser import parse
from pyverilog.vparser.ast import ModuleDef

def parse_structural(verilog_text: str) -> Dict[str, List[str]]:
    """
    Parses `verilog_text`, returning a map from each module name to its port names (in
    declaration order).

    Raises a pyverilog `ParseError` if the text is not valid Verilog.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        path = os.path.join(tmpdir, "design.v")
        with open(path, "w") as f:
            f.write(verilog_text)
        ast, _directives = parse([path], outputdir=tmpdir, debug=False)
    modules = {}
    for definition in ast.description.definitions:
        if not isinstance(definition, ModuleDef):
            continue
        ports = []
        for port in definition.portlist.ports:
            # ANSI-style declarations are Ioports wrapping an Input/Output
            decl = getattr(port, "first", port)
            ports.append(decl.name)
        modules[definition.name] = ports
    return modules
