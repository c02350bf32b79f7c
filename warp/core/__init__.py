"""
Warp Core Module
=================

Contains the engine driver, the data models and the error kinds.
"""

from warp.core.engine import WarpEngine
from warp.core.errors import (
    EmptyCaptureError,
    InvalidFactorError,
    LoadError,
    WarpError,
    WriteError,
)
from warp.core.models import (
    CaptureMetadata,
    CaptureSequence,
    ComparisonReport,
    DiffEntry,
    DisorderReport,
    DisorderViolation,
    PacketRecord,
    TimePrecision,
    TransformSummary,
)

__all__ = [
    "WarpEngine",
    "EmptyCaptureError",
    "InvalidFactorError",
    "LoadError",
    "WarpError",
    "WriteError",
    "CaptureMetadata",
    "CaptureSequence",
    "ComparisonReport",
    "DiffEntry",
    "DisorderReport",
    "DisorderViolation",
    "PacketRecord",
    "TimePrecision",
    "TransformSummary",
]
