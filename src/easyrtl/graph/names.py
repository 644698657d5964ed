import keyword

from easyrtl.errors import InvalidNameError

# Reserved words of Verilog-2005 (IEEE 1364-2005, Annex B)
VERILOG_KEYWORDS = frozenset("""
    always and assign automatic begin buf bufif0 bufif1 case casex casez cell cmos config
    deassign default defparam design disable edge else end endcase endconfig endfunction
    endgenerate endmodule endprimitive endspecify endtable endtask event for force forever
    fork function generate genvar highz0 highz1 if ifnone incdir include initial inout
    input instance integer join large liblist library localparam macromodule medium
    module nand negedge nmos nor noshowcancelled not notif0 notif1 or output parameter
    pmos posedge primitive pull0 pull1 pulldown pullup pulsestyle_ondetect
    pulsestyle_onevent rcmos real realtime reg release repeat rnmos rpmos rtran rtranif0
    rtranif1 scalared showcancelled signed small specify specparam strong0 strong1
    supply0 supply1 table task time tran tranif0 tranif1 tri tri0 tri1 triand trior
    trireg unsigned use uwire vectored wait wand weak0 weak1 while wire wor xnor xor
""".split())

RESERVED_PORT_NAMES = frozenset(["clk", "reset_n"])

def check_name(name, kind: str):
    """
    Checks that `name` can be used verbatim as an identifier in both generated Python and
    generated Verilog. Leading underscores are reserved for generated identifiers.
    """
    if not isinstance(name, str) or not name.isidentifier():
        raise InvalidNameError(f"{kind} name must be a valid identifier", name=str(name))
    if name.startswith("_"):
        raise InvalidNameError(f"{kind} name cannot start with an underscore", name=name)
    if keyword.iskeyword(name) or name in VERILOG_KEYWORDS:
        raise InvalidNameError(f"{kind} name is a reserved word", name=name)
    if name in RESERVED_PORT_NAMES:
        raise InvalidNameError(f"{kind} name is reserved for the implicit clock/reset ports", name=name)
