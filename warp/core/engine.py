"""
Warp Engine -- Packet-Stream Processing Driver
===============================================

Synchronous driver tying the capture codec to the algorithmic
components.  Every public method is one offline batch run:

    1. Validate the operation parameters (before any I/O).
    2. Load the capture(s) fully into memory through the codec.
    3. Invoke exactly one component: Time Transform, Density Transform,
       Disorder Detector or Differential Comparator.
    4. Write the transformed capture back through the codec, or reduce
       the run to a JSON-ready report.

Each run returns a :class:`~shared.models.RunResult` envelope whose
``raw_data`` holds the report under one of the keys ``"transform"``,
``"disorder"`` or ``"comparison"``.  Codec errors propagate unchanged;
there is no partial success.

The engine never reads process-wide logging state: the caller injects a
:class:`~shared.logger.ForgeLogger`, which is handed on to the codec and
to every analyzer.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Optional

from shared.config import ForgeConfig
from shared.logger import ForgeLogger
from shared.models import RunResult

from warp.analyzers.comparator import DifferentialComparator
from warp.analyzers.density import DensityTransformer, coerce_int_factor
from warp.analyzers.disorder import DisorderDetector
from warp.analyzers.timescale import TimeScaler, coerce_real_factor
from warp.collectors.pcap_codec import PcapCodec, describe_metadata
from warp.core.models import CaptureSequence, TransformSummary

logger = ForgeLogger("warp.engine")

TRANSFORM_KEY = "transform"
DISORDER_KEY = "disorder"
COMPARISON_KEY = "comparison"


class WarpEngine:
    """Load / transform / write driver for Warp operations.

    Usage::

        engine = WarpEngine(config=ForgeConfig.load())
        engine.time_compress("in.pcap", "fast.pcap", 2)
        result = engine.compare("in.pcap", "replayed.pcap")
        print(result.summary)
    """

    def __init__(
        self,
        config: Optional[ForgeConfig] = None,
        log: ForgeLogger | None = None,
    ) -> None:
        """Initialise the engine.

        Args:
            config: ForgeConfig instance. If None, defaults are used.
            log: Logger injected into every component. If None, the
                module logger is used.
        """
        self.config = config or ForgeConfig()
        self._log = log if log is not None else logger

        self.codec = PcapCodec(log=self._log)
        self.time_scaler = TimeScaler(log=self._log)
        self.density = DensityTransformer(log=self._log)
        self.disorder_detector = DisorderDetector(log=self._log)

    # ================================================================== #
    #  Time Transform
    # ================================================================== #

    def time_compress(
        self, input_path: str | Path, output_path: str | Path, factor: Any
    ) -> RunResult:
        """Accelerate a capture: offsets from the first packet divided by *factor*."""
        coerce_real_factor(factor, "time-compress")
        return self._transform(
            "time-compress", input_path, output_path, factor,
            self.time_scaler.compress,
        )

    def time_stretch(
        self, input_path: str | Path, output_path: str | Path, factor: Any
    ) -> RunResult:
        """Slow a capture down: offsets from the first packet multiplied by *factor*."""
        coerce_real_factor(factor, "time-stretch")
        return self._transform(
            "time-stretch", input_path, output_path, factor,
            self.time_scaler.stretch,
        )

    # ================================================================== #
    #  Density Transform
    # ================================================================== #

    def dilute(
        self, input_path: str | Path, output_path: str | Path, factor: Any
    ) -> RunResult:
        """Keep every *factor*-th packet."""
        coerce_int_factor(factor, "dilute")
        return self._transform(
            "dilute", input_path, output_path, factor, self.density.dilute,
        )

    def augment(
        self, input_path: str | Path, output_path: str | Path, factor: Any
    ) -> RunResult:
        """Emit *factor* time-interpolated copies of every packet."""
        coerce_int_factor(factor, "augment")
        return self._transform(
            "augment", input_path, output_path, factor, self.density.augment,
        )

    # ================================================================== #
    #  Analyses
    # ================================================================== #

    def detect_disorder(self, input_path: str | Path) -> RunResult:
        """Audit the chronological order of one capture.

        Returns:
            RunResult whose ``raw_data["disorder"]`` is a dumped
            :class:`~warp.core.models.DisorderReport`.
        """
        result = RunResult(operation="disorder-detect", target=str(input_path))

        with self._log.operation("disorder-detect"):
            sequence = self._load(input_path)
            report = self.disorder_detector.detect(sequence)

        result.metadata = {"capture": describe_metadata(sequence.metadata)}
        result.raw_data = {DISORDER_KEY: report.model_dump(mode="json")}

        if report.is_ordered:
            summary = f"No disorder: {report.total_packets} packets in order"
        else:
            summary = (
                f"Disorder found: {report.violation_count} of "
                f"{report.total_packets} packets out of order"
            )
        return result.finalize(summary)

    def compare(
        self,
        reference_path: str | Path,
        candidate_path: str | Path,
        ignore_timestamp: bool | None = None,
    ) -> RunResult:
        """Multiset-compare a candidate capture against a reference.

        Args:
            reference_path:   Baseline capture.
            candidate_path:   Capture checked against the baseline.
            ignore_timestamp: Hash payloads only.  ``None`` takes the
                configured default (``[warp] ignore_timestamp``).

        Returns:
            RunResult whose ``raw_data["comparison"]`` is a dumped
            :class:`~warp.core.models.ComparisonReport`.
        """
        if ignore_timestamp is None:
            ignore_timestamp = self.config.warp.ignore_timestamp

        result = RunResult(
            operation="compare",
            target=str(reference_path),
            metadata={
                "reference": str(reference_path),
                "candidate": str(candidate_path),
                "ignore_timestamp": ignore_timestamp,
            },
        )

        with self._log.operation("compare"):
            reference = self._load(reference_path)
            candidate = self._load(candidate_path)
            comparator = DifferentialComparator(
                ignore_timestamp=ignore_timestamp, log=self._log
            )
            report = comparator.compare(reference, candidate)

        result.raw_data = {COMPARISON_KEY: report.model_dump(mode="json")}

        if report.identical:
            summary = (
                f"Captures identical: base={report.reference_count}, "
                f"candidate={report.candidate_count}"
            )
        else:
            summary = (
                f"Differences found: {report.missing_count} missing, "
                f"{report.extra_count} extra "
                f"(base={report.reference_count}, "
                f"candidate={report.candidate_count})"
            )
        return result.finalize(summary)

    # ================================================================== #
    #  Internal helpers
    # ================================================================== #

    def _load(self, input_path: str | Path) -> CaptureSequence:
        with self._log.timed(f"load {input_path}"):
            return self.codec.load(input_path)

    def _transform(
        self,
        operation: str,
        input_path: str | Path,
        output_path: str | Path,
        factor: Any,
        apply: Callable[[CaptureSequence, Any], CaptureSequence],
    ) -> RunResult:
        """Load, apply one transform, write; summarise the run."""
        result = RunResult(
            operation=operation,
            target=str(input_path),
            metadata={"factor": str(factor), "output": str(output_path)},
        )

        with self._log.operation(operation):
            sequence = self._load(input_path)
            transformed = apply(sequence, factor)
            written = self.codec.write(transformed, output_path)

        summary = TransformSummary(
            operation=operation,
            factor=factor if isinstance(factor, int) else coerce_real_factor(factor, operation),
            input_count=len(sequence),
            output_count=len(transformed),
            input_span=sequence.span,
            output_span=transformed.span,
            output_path=str(written),
        )
        result.metadata["capture"] = describe_metadata(sequence.metadata)
        result.raw_data = {TRANSFORM_KEY: summary.model_dump(mode="json")}

        return result.finalize(
            f"{operation} x{factor}: {summary.input_count} -> "
            f"{summary.output_count} packets written to {written}"
        )
