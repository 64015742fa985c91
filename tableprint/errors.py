"""Print job failures surfaced to callers."""

from __future__ import annotations

from pathlib import Path


class PrintJobError(RuntimeError):
    """A print job did not reach the printer.

    ``fallback_path`` points at the plain-text copy written for manual
    recovery, when one could be written.
    """

    def __init__(self, message: str, fallback_path: Path | None = None) -> None:
        super().__init__(message)
        self.fallback_path = fallback_path


class PrinterUnreachableError(PrintJobError):
    """Connection refused, reset, or failed mid-write."""


class PrinterTimeoutError(PrinterUnreachableError):
    """The printer did not close the connection within the timeout."""


class MalformedInputError(PrintJobError, ValueError):
    """The job input is not an order/reservation record."""
