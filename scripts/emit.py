#!/usr/bin/env python3
"""
Generates a simulator or Verilog for a design.

The design is given as `package.module:function`, where calling `function()` returns the
top `easyrtl.Module`. The module must be importable, for example:

    PYTHONPATH=examples scripts/emit.py counter:build --target verilog -o counter.v
"""

import argparse
import importlib
import logging
import sys

from easyrtl import NamingStyle, SimOptions, generate_simulator, generate_structural

def load_design(factory_path):
    module_name, _, func_name = factory_path.partition(":")
    if not func_name:
        raise ValueError(f"design must be given as package.module:function, got {factory_path}")
    return getattr(importlib.import_module(module_name), func_name)()


def main():
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("design", help="factory returning the top module, as package.module:function")
    parser.add_argument("--target", choices=["sim", "verilog"], default="verilog")
    parser.add_argument("--trace", action="store_true", help="emit trace instrumentation (sim only)")
    parser.add_argument("--naming", choices=[s.name.lower() for s in NamingStyle], default="indexed")
    parser.add_argument("-o", "--output", help="output file (default: stdout)")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    top = load_design(args.design)
    if args.target == "sim":
        options = SimOptions(trace=args.trace, naming=NamingStyle[args.naming.upper()])
        lines = generate_simulator(top, options)
    else:
        lines = generate_structural(top)
    if args.output is None:
        sys.stdout.writelines(lines)
    else:
        with open(args.output, "w") as f:
            f.writelines(lines)


if __name__ == "__main__":
    main()
