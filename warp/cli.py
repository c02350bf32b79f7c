"""
Warp CLI -- Packet-Stream Processing Engine Command-Line Interface
===================================================================

Click-based CLI for the Warp engine.  Each subcommand is one offline
run over one capture (two for ``compare``).

Usage:
    warp time-compress in.pcap fast.pcap -f 2         # twice as fast
    warp time-stretch in.pcap slow.pcap -f 1.5        # 50 % slower
    warp dilute in.pcap sparse.pcap -f 4              # every 4th packet
    warp augment in.pcap dense.pcap -f 3              # 3 copies per packet
    warp disorder-detect in.pcap --format html -o disorder.html
    warp --log-level debug compare ref.pcap replay.pcap --ignore-timestamp

References:
    - Click Documentation: https://click.palletsprojects.com/
    - PcapForge Shared Config: shared.config.ForgeConfig
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

import click

from shared.config import REPORT_FORMATS, ForgeConfig
from shared.console import ForgeConsole
from shared.logger import LEVEL_NAMES, ForgeLogger
from shared.models import RunResult

from warp import __version__
from warp.core.engine import WarpEngine
from warp.core.errors import WarpError
from warp.output.console import WarpConsoleOutput
from warp.output.report import WarpReportGenerator


@dataclass
class _CliState:
    """Objects shared by every subcommand of one invocation."""

    console: ForgeConsole
    config: ForgeConfig
    log: ForgeLogger
    engine: WarpEngine


@click.group(
    name="warp",
    help=(
        "WARP -- Packet-Stream Processing Engine\n\n"
        "Rescales, dilutes, augments, audits and compares classic pcap "
        "captures for replay, load and regression testing."
    ),
)
@click.option(
    "--log-level",
    type=click.Choice(LEVEL_NAMES, case_sensitive=False),
    default=None,
    help="Log verbosity (default: [global] log_level from config, INFO).",
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Also write logs to this rotating file.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to custom config.toml file.",
)
@click.version_option(__version__, prog_name="warp")
@click.pass_context
def cli(
    ctx: click.Context,
    log_level: Optional[str],
    log_file: Optional[str],
    config_path: Optional[str],
) -> None:
    """WARP Packet-Stream Processing Engine entry point."""
    console = ForgeConsole()

    try:
        config = ForgeConfig.load(config_path)
    except (FileNotFoundError, ValueError) as exc:
        console.error(str(exc))
        sys.exit(1)

    settings = config.global_settings
    log = ForgeLogger(
        "warp",
        log_level=log_level or settings.log_level,
        log_file=log_file or settings.log_file or None,
        json_logs=settings.log_json,
    )

    ctx.obj = _CliState(
        console=console,
        config=config,
        log=log,
        engine=WarpEngine(config=config, log=log),
    )


# ====================================================================== #
#  Transforms
# ====================================================================== #


def _transform_command(name: str, factor_type: type, factor_help: str):
    """Build a ``NAME INPUT OUTPUT -f FACTOR`` subcommand."""

    def decorator(func: Callable[[WarpEngine, str, str, object], RunResult]):
        @cli.command(name=name, help=func.__doc__)
        @click.argument("input_path", metavar="INPUT", type=click.Path(dir_okay=False))
        @click.argument("output_path", metavar="OUTPUT", type=click.Path(dir_okay=False))
        @click.option("-f", "--factor", type=factor_type, required=True, help=factor_help)
        @click.pass_obj
        def command(state: _CliState, input_path: str, output_path: str, factor: object) -> None:
            result = _execute(
                state,
                lambda: func(state.engine, input_path, output_path, factor),
                f"{name}: {input_path} -> {output_path}",
            )
            WarpConsoleOutput(
                state.console, display_limit=state.config.warp.display_limit
            ).display(result)

        return command

    return decorator


@_transform_command("time-compress", float, "Compression factor f > 0 (f > 1 speeds up).")
def time_compress(engine: WarpEngine, input_path: str, output_path: str, factor: object) -> RunResult:
    """Divide every packet's offset from the first timestamp by FACTOR."""
    return engine.time_compress(input_path, output_path, factor)


@_transform_command("time-stretch", float, "Stretch factor s > 0 (s > 1 slows down).")
def time_stretch(engine: WarpEngine, input_path: str, output_path: str, factor: object) -> RunResult:
    """Multiply every packet's offset from the first timestamp by FACTOR."""
    return engine.time_stretch(input_path, output_path, factor)


@_transform_command("dilute", int, "Keep every FACTOR-th packet (integer >= 1).")
def dilute(engine: WarpEngine, input_path: str, output_path: str, factor: object) -> RunResult:
    """Keep every FACTOR-th packet, starting with the first."""
    return engine.dilute(input_path, output_path, factor)


@_transform_command("augment", int, "Copies emitted per packet (integer >= 1).")
def augment(engine: WarpEngine, input_path: str, output_path: str, factor: object) -> RunResult:
    """Emit FACTOR time-interpolated copies of every packet."""
    return engine.augment(input_path, output_path, factor)


# ====================================================================== #
#  Analyses
# ====================================================================== #

_format_option = click.option(
    "--format",
    "output_format",
    type=click.Choice(REPORT_FORMATS, case_sensitive=False),
    default=None,
    help="Output format (default: [warp] report_format from config).",
)
_output_option = click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False),
    default=None,
    help="Output file path for the HTML / JSON report.",
)


@cli.command(name="disorder-detect")
@click.argument("input_path", metavar="INPUT", type=click.Path(dir_okay=False))
@_format_option
@_output_option
@click.pass_obj
def disorder_detect(
    state: _CliState,
    input_path: str,
    output_format: Optional[str],
    output: Optional[str],
) -> None:
    """Report packets whose timestamp is earlier than their predecessor's."""
    result = _execute(
        state,
        lambda: state.engine.detect_disorder(input_path),
        f"Auditing {input_path}...",
    )
    _output_results(state, result, output_format, output)


@cli.command(name="compare")
@click.argument("reference", type=click.Path(dir_okay=False))
@click.argument("candidate", type=click.Path(dir_okay=False))
@click.option(
    "--ignore-timestamp/--strict",
    "ignore_timestamp",
    default=None,
    help="Hash payloads only (default: [warp] ignore_timestamp, strict).",
)
@_format_option
@_output_option
@click.pass_obj
def compare(
    state: _CliState,
    reference: str,
    candidate: str,
    ignore_timestamp: Optional[bool],
    output_format: Optional[str],
    output: Optional[str],
) -> None:
    """Report packets missing from or extra in CANDIDATE versus REFERENCE."""
    result = _execute(
        state,
        lambda: state.engine.compare(reference, candidate, ignore_timestamp),
        f"Comparing {candidate} against {reference}...",
    )
    _output_results(state, result, output_format, output)


# ====================================================================== #
#  Helpers
# ====================================================================== #


def _execute(
    state: _CliState,
    action: Callable[[], RunResult],
    message: str,
) -> RunResult:
    """Run one engine call, mapping failures to exit statuses."""
    console = state.console
    try:
        with console.status(message):
            return action()
    except WarpError as exc:
        state.log.debug(f"{type(exc).__name__}: {exc}")
        console.error(str(exc))
        sys.exit(1)
    except OSError as exc:
        console.error(f"OS error: {exc}")
        sys.exit(1)
    except KeyboardInterrupt:
        console.warning("Interrupted by user")
        sys.exit(130)


def _output_results(
    state: _CliState,
    result: RunResult,
    output_format: Optional[str],
    output_path: Optional[str],
) -> None:
    """Render *result* to the console and / or report files."""
    console = state.console
    fmt = (output_format or state.config.warp.report_format).lower()
    output_dir = state.config.global_settings.output_dir

    if fmt in ("console", "all"):
        WarpConsoleOutput(
            console, display_limit=state.config.warp.display_limit
        ).display(result)

    report_gen = WarpReportGenerator(log=state.log)
    try:
        if fmt in ("html", "all"):
            html_path = _report_path(output_path, "html", fmt, result, output_dir)
            console.success(f"HTML report: {report_gen.generate_html(result, html_path)}")
        if fmt in ("json", "all"):
            json_path = _report_path(output_path, "json", fmt, result, output_dir)
            console.success(f"JSON report: {report_gen.generate_json(result, json_path)}")
    except OSError as exc:
        console.error(f"Cannot write report: {exc}")
        sys.exit(1)

    if fmt in ("json", "html"):
        console.blank()
        console.info(result.summary)


def _report_path(
    output_path: Optional[str],
    ext: str,
    fmt: str,
    result: RunResult,
    output_dir: str,
) -> str:
    """Resolve the report file path for one format."""
    if output_path:
        # With --format all one -o path serves both reports.
        return str(Path(output_path).with_suffix(f".{ext}")) if fmt == "all" else output_path
    return _default_output_path(result.operation, ext, output_dir)


def _default_output_path(operation: str, ext: str, output_dir: str = "output") -> str:
    """Generate a default output file path with timestamp."""
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)
    return str(directory / f"warp_{operation.replace('-', '_')}_{timestamp}.{ext}")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
