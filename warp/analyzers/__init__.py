"""
Warp Analyzers
===============

Transform and analysis algorithms over a capture sequence:

- ``timescale``   -- Anchored timestamp compression / stretching
- ``density``     -- Stride dilution and interpolated augmentation
- ``disorder``    -- Chronological-order audit
- ``comparator``  -- Content-hash multiset difference
"""

from warp.analyzers.comparator import DifferentialComparator
from warp.analyzers.density import DensityTransformer
from warp.analyzers.disorder import DisorderDetector
from warp.analyzers.timescale import TimeScaler

__all__ = [
    "DifferentialComparator",
    "DensityTransformer",
    "DisorderDetector",
    "TimeScaler",
]
