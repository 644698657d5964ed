from collections import defaultdict
from typing import Optional

from vcd.reader import tokenize, TokenKind

class VcdWrapper:
    """
    Reads signal values out of a VCD file.

    For dumps of clocked designs (e.g. from running generated Verilog under Icarus), pass
    the fully qualified name of the clock: cycle N is then sampled at the Nth rising edge.
    For traces written by a generated simulator through `easyrtl.runtime.VcdTrace`, pass
    `clock_name=None`: every time stamp is one step.
    """

    def __init__(self, vcd_path, clock_name: Optional[str]=None):
        self.timescale = None
        # maps variable fully qualified name to variable id
        var_dict = {}
        # maps variable ids to lists of (timestamp, new_value) pairs
        ts_change_dict = defaultdict(list)
        curr_ts = 0
        with open(vcd_path, "rb") as vcd_f:
            toks = tokenize(vcd_f)
            curr_scope = []
            for tok in toks:
                if tok.kind is TokenKind.TIMESCALE:
                    self.timescale = (tok.timescale.magnitude.value, tok.timescale.unit.value)
                elif tok.kind is TokenKind.SCOPE:
                    curr_scope.append(tok.scope.ident)
                elif tok.kind is TokenKind.UPSCOPE:
                    curr_scope.pop()
                elif tok.kind is TokenKind.VAR:
                    var_dict[".".join(curr_scope + [tok.var.reference])] = tok.var.id_code
                elif tok.kind is TokenKind.CHANGE_TIME:
                    curr_ts = tok.time_change
                elif tok.kind is TokenKind.CHANGE_SCALAR:
                    # x/z are read as 0
                    ts_change_dict[tok.scalar_change.id_code].append((curr_ts, 1 if tok.scalar_change.value == "1" else 0))
                elif tok.kind is TokenKind.CHANGE_VECTOR:
                    value = tok.vector_change.value
                    ts_change_dict[tok.vector_change.id_code].append((curr_ts, value if isinstance(value, int) else 0))
        self.var_dict = var_dict
        self.ts_change_dict = ts_change_dict
        if clock_name is None:
            self.clock_start = 0
            self.clock_pd = 1
            return
        if clock_name not in var_dict:
            raise KeyError("Clock signal '" + clock_name + "' not found in VCD file (did you mean to specify it as argument to the constructor?)")
        # identify clock period
        self.clock_start = None
        self.clock_pd = None
        # sample for high, low, high pattern
        clock_started = False
        went_low = False
        for ts, new_val in ts_change_dict[var_dict[clock_name]]:
            if not clock_started and new_val == 1:
                self.clock_start = ts
                clock_started = True
            if clock_started and new_val == 0:
                went_low = True
            if clock_started and went_low and new_val == 1:
                self.clock_pd = ts - self.clock_start
                break
        if self.clock_pd is None:
            raise ValueError("Clock signal '" + clock_name + "' has fewer than two rising edges")

    @property
    def var_names(self):
        return list(self.var_dict)

    def get_value_at_or_none(self, var_name, cycle):
        """
        Attempts to get the value of VAR_NAME on cycle CYCLE from the VCD.

        Returns None if the variable is not present.
        """
        if var_name not in self.var_dict:
            return None
        return self.get_value_at(var_name, cycle)

    def get_value_at(self, var_name, cycle):
        """
        Attempts to get the value of VAR_NAME on cycle CYCLE from the VCD.

        Raises KeyError if the variable is not present.
        """
        if var_name not in self.var_dict:
            if len(self.var_dict) < 5:
                e_msg = "Could not find variable " + var_name + " in VCD file (possible values: " + str(self.var_dict) + ")"
            else:
                e_msg = "Could not find variable " + var_name + " in VCD file"
            raise KeyError(e_msg)
        var_id = self.var_dict[var_name]
        changes = self.ts_change_dict[var_id]
        goal_ts = cycle * self.clock_pd + self.clock_start
        curr_val = None
        for ts, new_val in changes:
            if ts > goal_ts:
                break
            curr_val = new_val
        return curr_val
