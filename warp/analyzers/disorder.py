"""
Warp Disorder Detector
=======================

Audits the chronological order of a single capture.

One linear pass compares each packet's timestamp with its immediate
predecessor's.  A strict decrease is a violation; equal timestamps are
not.  For every violation the offending packet's ``original_index``,
both timestamps and the size of the backwards jump are recorded.  The
scan is read-only; the sequence is never reordered.

References:
    - Paxson, V. (1997). Measurements and Analysis of End-to-End
      Internet Dynamics. PhD thesis, UC Berkeley (packet reordering).
"""

from __future__ import annotations

from decimal import localcontext

from shared.logger import ForgeLogger

from warp.core.models import (
    TIMESTAMP_PRECISION,
    CaptureSequence,
    DisorderReport,
    DisorderViolation,
)

logger = ForgeLogger("warp.disorder")


class DisorderDetector:
    """Reports timestamp-ordering violations within one capture.

    Usage::

        report = DisorderDetector().detect(sequence)
        if not report.is_ordered:
            print(report.violation_count, "packets out of order")
    """

    def __init__(self, log: ForgeLogger | None = None) -> None:
        self._log = log if log is not None else logger

    def detect(self, sequence: CaptureSequence) -> DisorderReport:
        """Scan *sequence* and collect every strict timestamp decrease.

        Args:
            sequence: Capture to audit; not modified.

        Returns:
            A :class:`DisorderReport`; empty and single-packet captures
            always yield zero violations.
        """
        violations: list[DisorderViolation] = []
        previous = None

        with localcontext() as ctx:
            ctx.prec = TIMESTAMP_PRECISION
            for position, record in enumerate(sequence):
                if previous is not None and record.timestamp < previous.timestamp:
                    violation = DisorderViolation(
                        position=position,
                        original_index=record.original_index,
                        timestamp=record.timestamp,
                        previous_timestamp=previous.timestamp,
                        magnitude=previous.timestamp - record.timestamp,
                    )
                    violations.append(violation)
                    self._log.debug(
                        f"Packet #{record.original_index} is out of order: "
                        f"{record.timestamp} < {previous.timestamp} "
                        f"(-{violation.magnitude}s)"
                    )
                previous = record

        report = DisorderReport(total_packets=len(sequence), violations=violations)
        if violations:
            self._log.warning(
                f"Disorder detection: {report.violation_count} of "
                f"{report.total_packets} packets out of order "
                f"(largest jump back {report.max_magnitude}s)"
            )
        else:
            self._log.info(
                f"Disorder detection: {report.total_packets} packets in order"
            )
        return report
