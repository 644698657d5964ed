"""
Random input stimulus for generated simulators and testbenches.
"""

import logging
from typing import Dict, Iterator, List, Mapping, Optional, Sequence

import numpy as np

from easyrtl.common import mask
from easyrtl.graph.module import Module

logger = logging.getLogger(__name__)

InputVector = Dict[str, int]

class RandomStimulus:
    """
    Draws uniformly distributed values for every input of a module.

    Values of arbitrary width are assembled from 32-bit chunks, since numpy integer types
    top out at 64 bits.
    """

    __test__ = False # Prevent pytest from trying to collect this

    CHUNK_BITS = 32

    def __init__(self, module: Module, seed: Optional[int]=None, fixed: Optional[Mapping[str, int]]=None):
        """
        `fixed` pins some inputs to constant values instead of drawing them.
        """
        self.module = module
        self.rng = np.random.default_rng(seed)
        self.fixed = dict(fixed) if fixed is not None else {}
        for name in self.fixed:
            if name not in module.inputs:
                raise KeyError(f"module {module.name} has no input {name}")
        logger.debug("stimulus for %s with seed %s", module.name, seed)

    def sample_value(self, width: int) -> int:
        n_chunks = (width + self.CHUNK_BITS - 1) // self.CHUNK_BITS
        chunks = self.rng.integers(0, 1 << self.CHUNK_BITS, size=n_chunks, dtype=np.uint64)
        value = 0
        for chunk in chunks:
            value = (value << self.CHUNK_BITS) | int(chunk)
        return value & mask(width)

    def sample(self) -> InputVector:
        return {
            name: self.fixed[name] if name in self.fixed else self.sample_value(sig.width)
            for name, sig in self.module.inputs.items()
        }

    def vectors(self, count: int) -> List[InputVector]:
        return [self.sample() for _ in range(count)]

    def __iter__(self) -> Iterator[InputVector]:
        while True:
            yield self.sample()


def run_vectors(sim, vectors: Sequence[Mapping[str, int]]) -> List[Dict[str, int]]:
    """
    Drives a generated simulator instance with one input vector per step, returning the
    outputs observed at each step (before that step's clock edge).
    """
    results = []
    for vector in vectors:
        for name, value in vector.items():
            if name not in sim.INPUTS:
                raise KeyError(f"simulator has no input {name}")
            setattr(sim, name, value)
        sim.prop()
        results.append({name: getattr(sim, name) for name in sim.OUTPUTS})
        sim.posedge_clk()
    return results
