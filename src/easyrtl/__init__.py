"""
easyrtl: describe synchronous digital circuits in Python, then generate a cycle-accurate
Python simulator and structural Verilog from the same validated description.
"""

from .errors import *
from .graph import *
from .sim import NamingStyle, SimOptions, compile_simulator, generate_simulator
from .validation import ValidatedDesign, validate
from .verilog import generate_structural
