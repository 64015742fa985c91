"""Console rendering helpers for the command line."""

from __future__ import annotations

from rich.panel import Panel
from rich.text import Text

from tableprint.errors import MalformedInputError, PrintJobError, PrinterTimeoutError
from tableprint.models import PrintJobResult


def badge_style(kind: str) -> str:
    """Return a consistent badge style for job outcomes."""
    if kind == "error":
        return "bold #ffffff on #b23a48"
    if kind == "fallback":
        return "bold #0b1f0f on #e0b34a"
    return "bold #0b1f0f on #5fbf72"


def format_job_result(result: PrintJobResult) -> Text:
    """Render a job outcome with a colored status tag."""
    text = Text()
    if result.fallback_path is not None:
        text.append(" SAVED ", style=badge_style("fallback"))
        text.append(f" {result.job_id} -> {result.fallback_path}")
    else:
        text.append(" PRINTED ", style=badge_style("ok"))
        text.append(f" {result.job_id} ({result.printed_count})")
    return text


def format_job_error(exc: PrintJobError) -> Text:
    """Render a failure, telling unreachable printers apart from bad input."""
    if isinstance(exc, MalformedInputError):
        label = "BAD INPUT"
    elif isinstance(exc, PrinterTimeoutError):
        label = "TIMEOUT"
    else:
        label = "UNREACHABLE"
    text = Text()
    text.append(f" {label} ", style=badge_style("error"))
    text.append(f" {exc}")
    if exc.fallback_path is not None:
        text.append(f"\nfallback: {exc.fallback_path}", style="dim")
    return text


def preview_panel(body: str, title: str) -> Panel:
    """Plain-text job rendering framed for the terminal."""
    return Panel(Text(body), title=title, expand=False)
