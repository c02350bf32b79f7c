"""
PcapForge Data Models
======================

Pydantic v2 models shared across all PcapForge toolkit modules.

Every engine operation returns a :class:`RunResult`: a uniform envelope
carrying the operation name, its target file(s), timing, a human-readable
summary, and the JSON-ready report produced by the operation itself.
Renderers and the CLI only ever consume this envelope.

References:
    - Pydantic v2 documentation. https://docs.pydantic.dev/latest/
"""

from __future__ import annotations

import datetime as _dt
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> _dt.datetime:
    return _dt.datetime.now(_dt.timezone.utc)


class RunResult(BaseModel):
    """Outcome of a single engine operation.

    Attributes:
        operation:  Name of the operation (``"compare"``, ``"dilute"``, ...).
        target:     Input file or files the operation was applied to.
        start_time: Operation start timestamp (UTC).
        end_time:   Operation end timestamp (UTC), set by :meth:`finalize`.
        summary:    Human-readable one-line result summary.
        metadata:   Free-form operation parameters (factor, output path, ...).
        raw_data:   JSON-ready report payload produced by the operation.
    """

    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
        extra="ignore",
    )

    operation: str = Field(
        ...,
        min_length=1,
        description="Name of the engine operation",
    )
    target: str = Field(
        default="",
        description="Input file(s) the operation was applied to",
    )
    start_time: _dt.datetime = Field(
        default_factory=_utcnow,
        description="Operation start timestamp (UTC)",
    )
    end_time: Optional[_dt.datetime] = Field(
        default=None,
        description="Operation end timestamp (UTC)",
    )
    summary: str = Field(
        default="",
        description="Human-readable result summary",
    )
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Operation parameters and context",
    )
    raw_data: dict[str, Any] = Field(
        default_factory=dict,
        description="JSON-ready report payload",
    )

    # ------------------------------------------------------------------ #
    #  Derived properties
    # ------------------------------------------------------------------ #

    @property
    def duration_seconds(self) -> float | None:
        """Elapsed run time in seconds, or ``None`` if *end_time* is unset."""
        if self.end_time is None or self.start_time is None:
            return None
        return (self.end_time - self.start_time).total_seconds()

    # ------------------------------------------------------------------ #
    #  Mutating helpers
    # ------------------------------------------------------------------ #

    def finalize(self, summary: str | None = None) -> RunResult:
        """Mark the run as complete by setting *end_time* and *summary*.

        Returns:
            ``self`` for fluent chaining.
        """
        self.end_time = _utcnow()
        if summary is not None:
            self.summary = summary
        elif not self.summary:
            self.summary = f"{self.operation} complete."
        return self
