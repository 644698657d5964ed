from .tracing import Trace, MemoryTrace, VcdTrace
