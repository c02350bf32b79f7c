"""
Warp Report Generator
======================

Generates HTML and JSON reports from Warp run results.
HTML reports are standalone files with embedded CSS for portability.
JSON reports carry the complete missing / extra / violation lists for
machine consumption.

References:
    - PcapForge Shared Models: shared.models.RunResult
"""

from __future__ import annotations

import html
import json
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any

from shared.logger import ForgeLogger
from shared.models import RunResult

from warp.core.engine import COMPARISON_KEY, DISORDER_KEY, TRANSFORM_KEY

logger = ForgeLogger("warp.report")


class _WarpJSONEncoder(json.JSONEncoder):
    """Custom JSON encoder for Warp data types."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, Decimal):
            return str(obj)
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, bytes):
            return obj.hex()
        return super().default(obj)


class WarpReportGenerator:
    """Generates HTML and JSON reports from Warp run results.

    Usage::

        generator = WarpReportGenerator()
        generator.generate_html(result, "report.html")
        generator.generate_json(result, "report.json")
    """

    def __init__(self, log: ForgeLogger | None = None) -> None:
        self._log = log if log is not None else logger

    # ================================================================== #
    #  JSON Report
    # ================================================================== #

    def build_json(self, result: RunResult) -> dict[str, Any]:
        """Assemble the JSON report document for *result*."""
        return {
            "report_type": f"warp_{result.operation.replace('-', '_')}",
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "operation": result.operation,
            "target": result.target,
            "started_at": result.start_time.isoformat() if result.start_time else None,
            "completed_at": result.end_time.isoformat() if result.end_time else None,
            "duration_seconds": result.duration_seconds,
            "summary": result.summary,
            "metadata": result.metadata,
            "results": result.raw_data,
        }

    def generate_json(self, result: RunResult, output_path: str | Path) -> str:
        """Generate a JSON report from a run result.

        Args:
            result: RunResult from the Warp engine.
            output_path: Output file path for the JSON report.

        Returns:
            Absolute path to the generated report.
        """
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w", encoding="utf-8") as fh:
            json.dump(
                self.build_json(result), fh,
                cls=_WarpJSONEncoder, indent=2, ensure_ascii=False,
            )

        self._log.info(f"JSON report generated: {path.resolve()}")
        return str(path.resolve())

    # ================================================================== #
    #  HTML Report
    # ================================================================== #

    def generate_html(self, result: RunResult, output_path: str | Path) -> str:
        """Generate a standalone HTML report from a run result.

        Produces a self-contained HTML file with embedded CSS styling.

        Args:
            result: RunResult from the Warp engine.
            output_path: Output file path for the HTML report.

        Returns:
            Absolute path to the generated report.
        """
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w", encoding="utf-8") as fh:
            fh.write(self._build_html(result))

        self._log.info(f"HTML report generated: {path.resolve()}")
        return str(path.resolve())

    def _build_html(self, result: RunResult) -> str:
        """Build the complete HTML document."""
        raw = result.raw_data
        sections = "".join(
            (
                self._build_transform_html(raw.get(TRANSFORM_KEY, {})),
                self._build_disorder_html(raw.get(DISORDER_KEY, {})),
                self._build_comparison_html(raw.get(COMPARISON_KEY, {}), result.metadata),
            )
        )
        duration = result.duration_seconds
        duration_text = f"{duration:.2f}s" if duration is not None else "-"

        return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Warp {_esc(result.operation)} Report</title>
    <style>
        :root {{
            --bg-primary: #0d1117;
            --bg-secondary: #161b22;
            --bg-tertiary: #21262d;
            --text-primary: #c9d1d9;
            --text-secondary: #8b949e;
            --accent-cyan: #58a6ff;
            --accent-magenta: #bc8cff;
            --accent-green: #3fb950;
            --accent-yellow: #d29922;
            --border: #30363d;
        }}

        * {{ margin: 0; padding: 0; box-sizing: border-box; }}

        body {{
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Helvetica, Arial, sans-serif;
            background: var(--bg-primary);
            color: var(--text-primary);
            line-height: 1.6;
            padding: 2rem;
        }}

        .container {{ max-width: 1200px; margin: 0 auto; }}

        h1 {{
            color: var(--accent-cyan);
            font-size: 2rem;
            margin-bottom: 0.5rem;
            border-bottom: 2px solid var(--accent-magenta);
            padding-bottom: 0.5rem;
        }}

        h2 {{
            color: var(--accent-magenta);
            font-size: 1.4rem;
            margin: 2rem 0 1rem;
            border-bottom: 1px solid var(--border);
            padding-bottom: 0.3rem;
        }}

        .subtitle {{ color: var(--text-secondary); font-style: italic; margin-bottom: 1rem; }}

        .summary-grid {{
            display: grid;
            grid-template-columns: repeat(auto-fit, minmax(180px, 1fr));
            gap: 1rem;
            margin: 1rem 0;
        }}

        .summary-card {{
            background: var(--bg-secondary);
            border: 1px solid var(--border);
            border-radius: 6px;
            padding: 1rem;
            text-align: center;
        }}

        .summary-card .value {{ font-size: 1.8rem; font-weight: bold; color: var(--accent-cyan); }}
        .summary-card .label {{ color: var(--text-secondary); font-size: 0.85rem; }}

        table {{
            width: 100%;
            border-collapse: collapse;
            margin: 1rem 0;
            background: var(--bg-secondary);
        }}

        th {{
            background: var(--bg-tertiary);
            color: var(--accent-magenta);
            padding: 0.75rem 1rem;
            text-align: left;
            border-bottom: 2px solid var(--border);
        }}

        td {{ padding: 0.5rem 1rem; border-bottom: 1px solid var(--border); }}
        td.num {{ text-align: right; font-variant-numeric: tabular-nums; }}

        .panel {{
            background: var(--bg-secondary);
            border: 1px solid var(--border);
            border-radius: 6px;
            padding: 1rem;
            margin: 1rem 0;
        }}

        .panel.ok {{ border-left: 4px solid var(--accent-green); }}
        .panel.warning {{ border-left: 4px solid var(--accent-yellow); }}
        .panel.info {{ border-left: 4px solid var(--accent-cyan); }}

        footer {{
            margin-top: 3rem;
            padding-top: 1rem;
            border-top: 1px solid var(--border);
            color: var(--text-secondary);
            font-size: 0.85rem;
            text-align: center;
        }}

        code {{ background: var(--bg-tertiary); padding: 2px 6px; border-radius: 3px; font-size: 0.9em; }}
    </style>
</head>
<body>
    <div class="container">
        <h1>WARP {_esc(result.operation)} Report</h1>
        <p class="subtitle">
            PcapForge Packet-Stream Processing Engine --
            Generated: {datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M:%S UTC')}
        </p>

        <div class="panel info">
            <strong>Target:</strong> <code>{_esc(result.target)}</code><br>
            <strong>Duration:</strong> {duration_text}<br>
            <strong>Summary:</strong> {_esc(result.summary)}
        </div>

        {sections}

        <footer>
            <p>PcapForge WARP -- Packet-Stream Processing Engine</p>
        </footer>
    </div>
</body>
</html>"""

    # ------------------------------------------------------------------ #
    #  Section Builders
    # ------------------------------------------------------------------ #

    def _build_transform_html(self, data: dict[str, Any]) -> str:
        """Build the transform summary section HTML."""
        if not data:
            return ""

        return f"""<h2>Transform</h2>
        <div class="summary-grid">
            {_card(data.get('factor', ''), 'Factor')}
            {_card(data.get('input_count', 0), 'Packets In')}
            {_card(data.get('output_count', 0), 'Packets Out')}
            {_card(f"{data.get('input_span', '0')}s", 'Span In')}
            {_card(f"{data.get('output_span', '0')}s", 'Span Out')}
        </div>
        <div class="panel ok">
            <strong>Output:</strong> <code>{_esc(data.get('output_path') or '-')}</code>
        </div>"""

    def _build_disorder_html(self, data: dict[str, Any]) -> str:
        """Build the disorder section HTML."""
        if not data:
            return ""

        violations = data.get("violations", [])
        rows = ""
        for v in violations:
            rows += f"""<tr>
                <td class="num">{v.get('original_index')}</td>
                <td class="num">{v.get('position')}</td>
                <td class="num">{_esc(v.get('timestamp'))}</td>
                <td class="num">{_esc(v.get('previous_timestamp'))}</td>
                <td class="num">{_esc(v.get('magnitude'))}</td>
            </tr>"""

        if violations:
            verdict = (
                f'<div class="panel warning">{len(violations)} packets are out of order</div>'
                f"""<table>
            <thead><tr>
                <th>Index</th><th>Position</th><th>Timestamp</th>
                <th>Previous</th><th>Jump Back (s)</th>
            </tr></thead>
            <tbody>{rows}</tbody>
        </table>"""
            )
        else:
            verdict = '<div class="panel ok">All packets are in chronological order</div>'

        return f"""<h2>Disorder Detection</h2>
        <div class="summary-grid">
            {_card(data.get('total_packets', 0), 'Packets Scanned')}
            {_card(len(violations), 'Violations')}
        </div>
        {verdict}"""

    def _build_comparison_html(
        self, data: dict[str, Any], metadata: dict[str, Any]
    ) -> str:
        """Build the comparison section HTML."""
        if not data:
            return ""

        missing = data.get("missing", [])
        extra = data.get("extra", [])
        if not missing and not extra:
            verdict = '<div class="panel ok">Captures are identical</div>'
        else:
            verdict = (
                f'<div class="panel warning">Differences found: '
                f"{len(missing)} missing, {len(extra)} extra</div>"
            )
        mode = "payload only" if data.get("ignore_timestamp") else "timestamp + payload"

        return f"""<h2>Comparison</h2>
        <div class="panel info">
            <strong>Reference:</strong> <code>{_esc(metadata.get('reference', ''))}</code><br>
            <strong>Candidate:</strong> <code>{_esc(metadata.get('candidate', ''))}</code><br>
            <strong>Hash mode:</strong> {mode}
        </div>
        <div class="summary-grid">
            {_card(data.get('reference_count', 0), 'Reference Packets')}
            {_card(data.get('candidate_count', 0), 'Candidate Packets')}
            {_card(data.get('matched_count', 0), 'Matched')}
            {_card(len(missing), 'Missing')}
            {_card(len(extra), 'Extra')}
        </div>
        {verdict}
        {self._build_diff_table_html("Missing from Candidate", missing)}
        {self._build_diff_table_html("Extra in Candidate", extra)}"""

    @staticmethod
    def _build_diff_table_html(title: str, entries: list[dict[str, Any]]) -> str:
        if not entries:
            return ""

        rows = ""
        for e in entries:
            rows += f"""<tr>
                <td class="num">{e.get('original_index')}</td>
                <td class="num">{e.get('payload_length')}</td>
                <td class="num">{_esc(e.get('timestamp'))}</td>
                <td><code>{_esc(e.get('content_hash'))}</code></td>
            </tr>"""

        return f"""<h3>{title} ({len(entries)})</h3>
        <table>
            <thead><tr>
                <th>Index</th><th>Length</th><th>Timestamp</th><th>Hash</th>
            </tr></thead>
            <tbody>{rows}</tbody>
        </table>"""


# ---------------------------------------------------------------------------
#  Utility
# ---------------------------------------------------------------------------


def _esc(value: Any) -> str:
    return html.escape("" if value is None else str(value))


def _card(value: Any, label: str) -> str:
    return (
        f'<div class="summary-card"><div class="value">{_esc(value)}</div>'
        f'<div class="label">{label}</div></div>'
    )
