"""
Warp Console Output
====================

Rich-based console presentation layer for Warp run results.
Renders transform summaries, disorder audits and capture comparisons as
panels and tables using the ForgeConsole abstraction.

References:
    - Rich library: https://github.com/Textualize/rich
    - PcapForge Console: shared.console.ForgeConsole
"""

from __future__ import annotations

from typing import Any

from rich.markup import escape
from rich.panel import Panel

from shared.console import ForgeConsole
from shared.models import RunResult

from warp.core.engine import COMPARISON_KEY, DISORDER_KEY, TRANSFORM_KEY
from warp.core.models import ComparisonReport, DiffEntry, DisorderReport


class WarpConsoleOutput:
    """Console output renderer for Warp run results.

    Usage::

        output = WarpConsoleOutput(display_limit=20)
        output.display(run_result)
    """

    def __init__(
        self,
        console: ForgeConsole | None = None,
        display_limit: int = 50,
    ) -> None:
        """Initialise the console output renderer.

        Args:
            console: ForgeConsole instance. Creates a new one if None.
            display_limit: Maximum rows shown per packet table.
        """
        self.console = console or ForgeConsole()
        self.display_limit = max(display_limit, 0)

    # ================================================================== #
    #  Full Display
    # ================================================================== #

    def display(self, result: RunResult) -> None:
        """Display a Warp run result of any kind."""
        self.console.print(
            Panel(
                "[bright_cyan]WARP[/bright_cyan] -- "
                "[bright_magenta]Packet-Stream Processing Engine[/bright_magenta]\n"
                f"[dim]{result.operation}: {escape(result.target)}[/dim]",
                border_style="bright_cyan",
            )
        )
        self.console.blank()

        raw = result.raw_data
        if TRANSFORM_KEY in raw:
            self.display_transform_raw(raw[TRANSFORM_KEY])
        if DISORDER_KEY in raw:
            self.display_disorder(DisorderReport.model_validate(raw[DISORDER_KEY]))
        if COMPARISON_KEY in raw:
            self.display_comparison(
                ComparisonReport.model_validate(raw[COMPARISON_KEY]),
                reference=result.metadata.get("reference", ""),
                candidate=result.metadata.get("candidate", ""),
            )

        self.console.blank()
        self.console.divider()
        duration = result.duration_seconds
        self.console.info(
            f"{result.summary}"
            + (f" (duration: {duration:.2f}s)" if duration is not None else "")
        )

    # ================================================================== #
    #  Transform
    # ================================================================== #

    def display_transform_raw(self, summary: dict[str, Any]) -> None:
        """Display a dumped :class:`~warp.core.models.TransformSummary`."""
        self.console.section("Transform")
        self.console.key_values(
            "Transform Summary",
            [
                ("Operation", summary.get("operation", "")),
                ("Factor", summary.get("factor", "")),
                ("Packets in", summary.get("input_count", 0)),
                ("Packets out", summary.get("output_count", 0)),
                ("Span in", f"{summary.get('input_span', '0')}s"),
                ("Span out", f"{summary.get('output_span', '0')}s"),
                ("Output", summary.get("output_path") or "-"),
            ],
        )
        self.console.success(
            f"Wrote {summary.get('output_count', 0)} packets"
        )

    # ================================================================== #
    #  Disorder
    # ================================================================== #

    def display_disorder(self, report: DisorderReport) -> None:
        """Display the violations of a chronological-order audit."""
        self.console.section("Disorder Detection")
        self.console.key_values(
            "Disorder Summary",
            [
                ("Packets scanned", report.total_packets),
                ("Violations", report.violation_count),
                ("Largest jump back", f"{report.max_magnitude}s" if report.max_magnitude is not None else "-"),
            ],
        )

        if report.is_ordered:
            self.console.success("All packets are in chronological order")
            return

        shown = report.violations[: self.display_limit]
        self.console.table(
            "Out-of-Order Packets",
            ["Index", "Position", "Timestamp", "Previous", "Jump Back (s)"],
            [
                (
                    v.original_index,
                    v.position,
                    v.timestamp,
                    v.previous_timestamp,
                    v.magnitude,
                )
                for v in shown
            ],
            caption=self._omitted_caption(report.violation_count, len(shown)),
            styles=["bright_white", "dim", "bright_cyan", "dim", "bold yellow"],
            justify=["right", "right", "right", "right", "right"],
        )
        self.console.warning(
            f"{report.violation_count} of {report.total_packets} packets "
            f"are out of order"
        )

    # ================================================================== #
    #  Comparison
    # ================================================================== #

    def display_comparison(
        self,
        report: ComparisonReport,
        reference: str = "",
        candidate: str = "",
    ) -> None:
        """Display the missing / extra lists of a capture comparison."""
        self.console.section("Comparison")
        self.console.key_values(
            "Comparison Summary",
            [
                ("Reference", f"{reference} ({report.reference_count} packets)"),
                ("Candidate", f"{candidate} ({report.candidate_count} packets)"),
                ("Hash mode", "payload only" if report.ignore_timestamp else "timestamp + payload"),
                ("Matched", report.matched_count),
                ("Missing", report.missing_count),
                ("Extra", report.extra_count),
            ],
        )

        if report.missing:
            self._diff_table("Missing from Candidate", report.missing)
        if report.extra:
            self._diff_table("Extra in Candidate", report.extra)

        if report.identical:
            self.console.success("Captures are identical")
        else:
            self.console.warning(
                f"Differences found: {report.missing_count} missing, "
                f"{report.extra_count} extra"
            )

    def _diff_table(self, title: str, entries: list[DiffEntry]) -> None:
        shown = entries[: self.display_limit]
        self.console.table(
            title,
            ["Index", "Length", "Timestamp", "Hash"],
            [
                (e.original_index, e.payload_length, e.timestamp, e.content_hash)
                for e in shown
            ],
            caption=self._omitted_caption(len(entries), len(shown)),
            styles=["bright_white", "bright_cyan", "dim", "bright_magenta"],
            justify=["right", "right", "right", "left"],
        )

    @staticmethod
    def _omitted_caption(total: int, shown: int) -> str | None:
        if total <= shown:
            return None
        return f"{total - shown} more not shown"
