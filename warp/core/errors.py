"""
Warp Error Kinds
=================

Every failure Warp surfaces derives from :class:`WarpError` and carries
the operation that failed and, where one applies, the offending
parameter and its value.  All errors are deterministic and derived from
the input; none of them is transient, so callers never retry.

Hierarchy::

    WarpError
    ├── InvalidFactorError   -- scaling / sampling factor out of domain
    ├── EmptyCaptureError    -- caller required a non-empty capture
    ├── LoadError            -- capture file could not be read
    └── WriteError           -- capture file could not be written
"""

from __future__ import annotations

from typing import Any


class WarpError(Exception):
    """Base class for all Warp errors.

    Args:
        message:   Human-readable description of the failure.
        operation: Name of the operation that failed (``"dilute"``, ``"load"``, ...).
        parameter: Name of the offending parameter, if any.
        value:     Offending value, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str,
        parameter: str | None = None,
        value: Any = None,
    ) -> None:
        self.message = message
        self.operation = operation
        self.parameter = parameter
        self.value = value
        super().__init__(str(self))

    def __str__(self) -> str:
        text = f"{self.operation}: {self.message}"
        if self.parameter is not None:
            text = f"{text} ({self.parameter}={self.value!r})"
        return text


class InvalidFactorError(WarpError):
    """A scaling or sampling factor is non-positive or out of domain."""


class EmptyCaptureError(WarpError):
    """The caller required a non-empty capture and got an empty one."""


class LoadError(WarpError):
    """A capture file could not be opened or decoded."""


class WriteError(WarpError):
    """A capture sequence could not be serialised to disk."""
