"""
Warp Density Transform
=======================

Changes the packet count of a capture while preserving the shape of its
time distribution.

Dilution (factor ``k``):
    Deterministic stride sampling.  The packet at stream position ``i``
    is kept iff ``i mod k == 0``; kept packets retain their timestamps,
    so spacing between survivors naturally widens ``k``-fold.  Output
    length is ``ceil(n / k)``.

Augmentation (factor ``m``):
    Every packet is emitted ``m`` times.  The first copy keeps the
    original timestamp; copy ``j`` (``1 <= j < m``) is placed at
    ``t_i + interval * j / m`` where ``interval`` is the gap to the next
    original packet.  The last packet reuses the preceding gap, and a
    single-packet capture reuses its own timestamp.  Output length is
    ``m * n``; copies share their source's ``original_index``.
"""

from __future__ import annotations

from decimal import Decimal, localcontext
from typing import Any

from shared.logger import ForgeLogger

from warp.core.errors import InvalidFactorError
from warp.core.models import TIMESTAMP_PRECISION, CaptureSequence, PacketRecord

logger = ForgeLogger("warp.density")


def coerce_int_factor(value: Any, operation: str) -> int:
    """Validate an integer sampling factor (``>= 1``).

    Booleans and floats are rejected even when integral.

    Raises:
        InvalidFactorError: On a non-integer or a value below one.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidFactorError(
            "Factor must be an integer",
            operation=operation,
            parameter="factor",
            value=value,
        )
    if value < 1:
        raise InvalidFactorError(
            "Factor must be at least 1",
            operation=operation,
            parameter="factor",
            value=value,
        )
    return value


class DensityTransformer:
    """Dilutes or augments a :class:`CaptureSequence`.

    Usage::

        density = DensityTransformer()
        sparse = density.dilute(sequence, 4)    # keep every 4th packet
        dense = density.augment(sequence, 3)    # three copies per packet
    """

    def __init__(self, log: ForgeLogger | None = None) -> None:
        self._log = log if log is not None else logger

    # ------------------------------------------------------------------ #
    #  Dilution
    # ------------------------------------------------------------------ #

    def dilute(self, sequence: CaptureSequence, factor: Any) -> CaptureSequence:
        """Keep every *factor*-th packet, starting with the first.

        Args:
            sequence: Source capture.
            factor:   Stride ``k >= 1``; ``1`` returns the input unchanged.

        Returns:
            A new sequence of ``ceil(len(sequence) / k)`` packets.
        """
        k = coerce_int_factor(factor, "dilute")
        if k == 1:
            self._log.debug("dilute: factor 1 is the identity")
            return sequence

        result = sequence.replace(sequence[::k])
        self._log.info(
            f"dilute: factor={k}, packets {len(sequence)} -> {len(result)}"
        )
        return result

    # ------------------------------------------------------------------ #
    #  Augmentation
    # ------------------------------------------------------------------ #

    def augment(self, sequence: CaptureSequence, factor: Any) -> CaptureSequence:
        """Emit *factor* time-interpolated copies of every packet.

        Args:
            sequence: Source capture.
            factor:   Copies per packet ``m >= 1``; ``1`` returns the
                      input unchanged.

        Returns:
            A new sequence of ``m * len(sequence)`` packets.
        """
        m = coerce_int_factor(factor, "augment")
        if m == 1:
            self._log.debug("augment: factor 1 is the identity")
            return sequence

        records: list[PacketRecord] = []
        count = len(sequence)
        with localcontext() as ctx:
            ctx.prec = TIMESTAMP_PRECISION
            for position, record in enumerate(sequence):
                interval = self._interval(sequence, position, count)
                records.append(record)
                for step in range(1, m):
                    offset = interval * step / m
                    records.append(record.with_timestamp(record.timestamp + offset))

        result = sequence.replace(records)
        self._log.info(
            f"augment: factor={m}, packets {count} -> {len(result)}"
        )
        return result

    @staticmethod
    def _interval(sequence: CaptureSequence, position: int, count: int) -> Decimal:
        """Gap used to space the copies of the packet at *position*."""
        if count == 1:
            return Decimal(0)
        if position + 1 < count:
            return sequence.get(position + 1).timestamp - sequence.get(position).timestamp
        return sequence.get(position).timestamp - sequence.get(position - 1).timestamp
