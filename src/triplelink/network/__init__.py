"""Gene graph construction from correlation matrices."""

from triplelink.network.builder import (
    HIGH_BAND,
    MED_BAND,
    LOW_BAND,
    SigmaBands,
    GraphBuilder,
    build_graph,
)

__all__ = [
    'HIGH_BAND',
    'MED_BAND',
    'LOW_BAND',
    'SigmaBands',
    'GraphBuilder',
    'build_graph',
]
