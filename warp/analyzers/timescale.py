"""
Warp Time Transform
====================

Rescales the timeline of a capture by a positive real factor while
keeping its start instant fixed.

For a capture whose first packet is stamped ``t0``::

    compress (factor f):  t' = t0 + (t - t0) / f
    stretch  (factor s):  t' = t0 + (t - t0) * s

``f > 1`` accelerates the trace, ``0 < f < 1`` slows it down; a stretch
by ``s`` is the same as a compression by ``1 / s``, computed without
forming the reciprocal.  Every packet's offset is derived from ``t0``
independently, in exact decimal arithmetic, so no rounding error
accumulates along long traces.  Scaling by a positive constant is order
preserving; packet count and payloads are untouched.

References:
    - IEEE 754-2008 / General Decimal Arithmetic Specification
      (Cowlishaw, IBM). https://speleotrove.com/decimal/
"""

from __future__ import annotations

from decimal import Decimal, localcontext
from typing import Any, Callable

from shared.logger import ForgeLogger

from warp.core.errors import InvalidFactorError
from warp.core.models import TIMESTAMP_PRECISION, CaptureSequence, to_timestamp

logger = ForgeLogger("warp.timescale")


def coerce_real_factor(value: Any, operation: str) -> Decimal:
    """Validate a real scaling factor and return it as a :class:`Decimal`.

    Raises:
        InvalidFactorError: If *value* is not a finite number greater
            than zero.
    """
    try:
        factor = to_timestamp(value)
    except ValueError as exc:
        raise InvalidFactorError(
            "Factor must be a finite real number",
            operation=operation,
            parameter="factor",
            value=value,
        ) from exc

    if factor <= 0:
        raise InvalidFactorError(
            "Factor must be greater than zero",
            operation=operation,
            parameter="factor",
            value=value,
        )
    return factor


class TimeScaler:
    """Anchored timestamp rescaling of a :class:`CaptureSequence`.

    Usage::

        scaler = TimeScaler()
        faster = scaler.compress(sequence, 2)      # twice as fast
        slower = scaler.stretch(sequence, "1.5")   # 50 % slower
    """

    def __init__(self, log: ForgeLogger | None = None) -> None:
        self._log = log if log is not None else logger

    def compress(self, sequence: CaptureSequence, factor: Any) -> CaptureSequence:
        """Divide every packet's offset from the first timestamp by *factor*."""
        f = coerce_real_factor(factor, "time-compress")
        return self._apply(sequence, "time-compress", f, lambda offset: offset / f)

    def stretch(self, sequence: CaptureSequence, factor: Any) -> CaptureSequence:
        """Multiply every packet's offset from the first timestamp by *factor*."""
        s = coerce_real_factor(factor, "time-stretch")
        return self._apply(sequence, "time-stretch", s, lambda offset: offset * s)

    # Generic entry point: ``rescale(seq, f)`` is ``compress(seq, f)``.
    rescale = compress

    def _apply(
        self,
        sequence: CaptureSequence,
        operation: str,
        factor: Decimal,
        scale: Callable[[Decimal], Decimal],
    ) -> CaptureSequence:
        if len(sequence) == 0:
            self._log.debug(f"{operation}: empty capture, nothing to rescale")
            return sequence

        t0 = sequence.get(0).timestamp
        with localcontext() as ctx:
            ctx.prec = TIMESTAMP_PRECISION
            records = [
                record.with_timestamp(t0 + scale(record.timestamp - t0))
                for record in sequence
            ]

        result = sequence.replace(records)
        self._log.info(
            f"{operation}: factor={factor}, packets={len(result)}, "
            f"span {sequence.span}s -> {result.span}s"
        )
        return result
