"""
Warp -- Packet-Stream Processing Engine
========================================

Tool of the PcapForge toolkit for manufacturing and validating
synthetic traffic traces.

Warp loads a classic pcap capture into memory and runs exactly one
deterministic pass over it: timestamp rescaling, density adjustment
(dilution or augmentation), chronological-order auditing, or a
content-hash differential comparison against a second capture.

Modules:
    - ``warp.core.engine``         -- Load / transform / write driver
    - ``warp.core.models``         -- Pydantic data models
    - ``warp.core.errors``         -- Error kinds
    - ``warp.collectors``          -- Capture-file codec (struct + Scapy)
    - ``warp.analyzers``           -- Transform and analysis algorithms
    - ``warp.output``              -- Console and report output
    - ``warp.cli``                 -- Click CLI entry point
"""

__version__ = "1.0.0"
__tool__ = "warp"
__description__ = "Packet-Stream Processing Engine"

__all__ = [
    "WarpEngine",
]


def __getattr__(name: str):
    if name == "WarpEngine":
        from warp.core.engine import WarpEngine

        return WarpEngine
    raise AttributeError(f"module 'warp' has no attribute {name!r}")
