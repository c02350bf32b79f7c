"""
PcapForge Console Interface
============================

Rich-powered console abstraction providing a unified presentation layer
for every PcapForge module.

The class wraps :class:`rich.console.Console` and adds convenience methods
for section headers, status-coloured messages, key/value panels, tables,
and status spinners -- all with consistent styling.

References:
    - Rich library: https://github.com/Textualize/rich
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Generator, Sequence

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.theme import Theme

# ---------------------------------------------------------------------------
# Theme -- consistent palette across all PcapForge output
# ---------------------------------------------------------------------------
_FORGE_THEME = Theme(
    {
        "forge.section": "bold bright_magenta",
        "forge.success": "bold green",
        "forge.warning": "bold yellow",
        "forge.error": "bold red",
        "forge.info": "bold bright_blue",
        "forge.dim": "dim white",
        "forge.key": "bright_white",
    }
)


class ForgeConsole:
    """Unified console interface for all PcapForge modules.

    Usage::

        con = ForgeConsole()
        con.section("Comparison")
        con.success("Captures are identical")
    """

    # ------------------------------------------------------------------ #
    #  Construction
    # ------------------------------------------------------------------ #

    def __init__(
        self,
        *,
        quiet: bool = False,
        record: bool = False,
        width: int | None = None,
    ) -> None:
        """Initialise the console.

        Args:
            quiet:  Suppress all output (useful in library / test mode).
            record: Enable Rich recording for HTML / text export.
            width:  Fixed console width; ``None`` lets Rich detect it.
        """
        self._console = Console(
            theme=_FORGE_THEME,
            quiet=quiet,
            record=record,
            highlight=False,
            width=width,
        )

    @property
    def rich(self) -> Console:
        """Direct access to the underlying Rich Console instance."""
        return self._console

    # ------------------------------------------------------------------ #
    #  Section header
    # ------------------------------------------------------------------ #

    def section(self, title: str) -> None:
        """Print a prominent section header."""
        self._console.rule(
            f"  {title}  ",
            style="forge.section",
            characters="─",
        )
        self._console.print()

    # ------------------------------------------------------------------ #
    #  Message helpers
    # ------------------------------------------------------------------ #

    def success(self, message: str) -> None:
        """Print a success message."""
        self._console.print(
            f"[forge.success][✔] SUCCESS:[/forge.success] {escape(message)}"
        )

    def warning(self, message: str) -> None:
        """Print a warning message."""
        self._console.print(
            f"[forge.warning][⚠] WARNING:[/forge.warning] {escape(message)}"
        )

    def error(self, message: str) -> None:
        """Print an error message."""
        self._console.print(
            f"[forge.error][✘] ERROR:[/forge.error] {escape(message)}"
        )

    def info(self, message: str) -> None:
        """Print an informational message."""
        self._console.print(
            f"[forge.info][ℹ] INFO:[/forge.info] {escape(message)}"
        )

    # ------------------------------------------------------------------ #
    #  Panels and tables
    # ------------------------------------------------------------------ #

    def key_values(
        self,
        title: str,
        pairs: Sequence[tuple[str, Any]],
        *,
        border_style: str = "bright_cyan",
    ) -> None:
        """Render ``label: value`` lines inside a titled panel."""
        body = "\n".join(
            f"[forge.key]{label}:[/forge.key] {escape(str(value))}"
            for label, value in pairs
        )
        self._console.print(Panel(body, title=title, border_style=border_style))

    def table(
        self,
        title: str,
        columns: Sequence[str],
        rows: Sequence[Sequence[Any]],
        *,
        caption: str | None = None,
        styles: Sequence[str] | None = None,
        justify: Sequence[str] | None = None,
    ) -> None:
        """Render a styled Rich table.

        Args:
            title:    Table title.
            columns:  Column header labels.
            rows:     Iterable of row tuples; each element is stringified.
            caption:  Optional footer caption.
            styles:   Optional per-column Rich style strings.
            justify:  Optional per-column justification ("left"/"right").
        """
        tbl = Table(
            title=title,
            caption=caption,
            border_style="bright_cyan",
            header_style="bold bright_magenta",
            show_lines=False,
            padding=(0, 1),
        )
        for idx, col_name in enumerate(columns):
            style = styles[idx] if styles and idx < len(styles) else ""
            just = justify[idx] if justify and idx < len(justify) else "left"
            tbl.add_column(col_name, style=style, justify=just)  # type: ignore[arg-type]

        for row in rows:
            tbl.add_row(*(escape(str(cell)) for cell in row))

        self._console.print(tbl)

    # ------------------------------------------------------------------ #
    #  Status spinner
    # ------------------------------------------------------------------ #

    @contextmanager
    def status(
        self, message: str = "Working..."
    ) -> Generator[Any, None, None]:
        """Context-manager showing a spinner with a status message.

        Example::

            with con.status("Comparing captures..."):
                result = engine.compare(reference, candidate)
        """
        with self._console.status(
            f"[forge.info]{escape(message)}[/forge.info]",
            spinner="dots",
            spinner_style="bright_cyan",
        ) as status_obj:
            yield status_obj

    # ------------------------------------------------------------------ #
    #  Utility
    # ------------------------------------------------------------------ #

    def print(self, *args: Any, **kwargs: Any) -> None:
        """Proxy to :meth:`rich.console.Console.print`."""
        self._console.print(*args, **kwargs)

    def blank(self, count: int = 1) -> None:
        """Print *count* blank lines."""
        for _ in range(count):
            self._console.print()

    def divider(self, style: str = "dim") -> None:
        """Print a thin horizontal rule."""
        self._console.rule(style=style)

    def export_text(self) -> str:
        """Export recorded console output as plain text (requires ``record=True``)."""
        return self._console.export_text()
