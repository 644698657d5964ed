"""
Trace sinks for generated simulators.

A simulator generated with tracing enabled declares its signals once, at construction,
by calling `push_module`/`add_signal`/`pop_module` on its trace, and then reports values
through `update_time_stamp`/`update_signal` every time its `update_trace` method runs.
"""

from abc import ABC, abstractmethod
import logging
from typing import Dict, List, Tuple

from vcd import VCDWriter

logger = logging.getLogger(__name__)

class Trace(ABC):
    @abstractmethod
    def push_module(self, name: str):
        raise NotImplementedError()

    @abstractmethod
    def pop_module(self):
        raise NotImplementedError()

    @abstractmethod
    def add_signal(self, name: str, width: int, var_type: str):
        """
        Declares a signal within the current module and returns an id for it.
        `var_type` is either "wire" (ports) or "reg" (registers).
        """
        raise NotImplementedError()

    @abstractmethod
    def update_time_stamp(self, time_stamp: int):
        raise NotImplementedError()

    @abstractmethod
    def update_signal(self, signal_id, value: int):
        raise NotImplementedError()


class MemoryTrace(Trace):
    """
    Records every update in memory. Handy for tests and for comparing runs.

    `values` maps a signal's fully qualified name (modules joined by '.') to a list of
    (time_stamp, value) pairs, with consecutive duplicate values removed.
    """

    def __init__(self):
        self._scope: List[str] = []
        self.names: List[str] = []
        self.widths: Dict[str, int] = {}
        self.values: Dict[str, List[Tuple[int, int]]] = {}
        self._time_stamp = 0

    def push_module(self, name):
        self._scope.append(name)

    def pop_module(self):
        self._scope.pop()

    def add_signal(self, name, width, var_type):
        full_name = ".".join(self._scope + [name])
        self.names.append(full_name)
        self.widths[full_name] = width
        self.values[full_name] = []
        return len(self.names) - 1

    def update_time_stamp(self, time_stamp):
        self._time_stamp = time_stamp

    def update_signal(self, signal_id, value):
        changes = self.values[self.names[signal_id]]
        if len(changes) == 0 or changes[-1][1] != value:
            changes.append((self._time_stamp, value))

    def value_at(self, name: str, time_stamp: int):
        """Returns the value of `name` as of `time_stamp`, or None if it had none yet."""
        curr_val = None
        for ts, new_val in self.values[name]:
            if ts > time_stamp:
                break
            curr_val = new_val
        return curr_val


class VcdTrace(Trace):
    """
    Writes a VCD file using pyvcd. Each call to `update_time_stamp` advances the dump's
    time; use the simulation step number as the time stamp to get one time unit per step.

    All signals must be declared (i.e. the simulator must be constructed) before the first
    value is recorded. Call `close()` (or use the trace as a context manager) to flush.
    """

    def __init__(self, fp, timescale="1 ns"):
        self._writer = VCDWriter(fp, timescale=timescale)
        self._scope: List[str] = []
        self._vars = []
        self._time_stamp = 0

    def push_module(self, name):
        self._scope.append(name)

    def pop_module(self):
        self._scope.pop()

    def add_signal(self, name, width, var_type):
        var = self._writer.register_var(".".join(self._scope), name, var_type, size=width)
        self._vars.append(var)
        logger.debug("tracing %s.%s (%d bit(s))", ".".join(self._scope), name, width)
        return len(self._vars) - 1

    def update_time_stamp(self, time_stamp):
        self._time_stamp = time_stamp

    def update_signal(self, signal_id, value):
        self._writer.change(self._vars[signal_id], self._time_stamp, value)

    def close(self):
        self._writer.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
