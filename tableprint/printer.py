"""Print service: assembles documents, sends them, and falls back to disk."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping
from uuid import uuid4

from tableprint.config import PrinterConfig
from tableprint.dates import DateFormatter
from tableprint.documents import (
    build_daily_document,
    build_order_document,
    build_place_cards,
    qr_payload,
)
from tableprint.errors import MalformedInputError, PrintJobError, PrinterUnreachableError
from tableprint.fallback import format_daily_text, format_order_text, format_place_cards_text, write_fallback
from tableprint.models import PrintableOrder, PrintableReservation, PrintJobResult, RasterBitmap
from tableprint.raster import load_logo
from tableprint.transport import probe_printer, send_to_printer

logger = logging.getLogger(__name__)


def _job_id(kind: str) -> str:
    return f"{kind}_{time.time_ns() // 1_000_000}_{uuid4().hex[:6]}"


def coerce_reservations(rows: Any) -> list[PrintableReservation]:
    """
    Turn caller rows into reservation records.

    A row that is not a mapping degrades to an empty record (printed with
    placeholders) instead of failing the whole batch.
    """
    if rows is None or isinstance(rows, (str, bytes)) or not hasattr(rows, "__iter__"):
        raise MalformedInputError("reservation rows must be a list")
    reservations: list[PrintableReservation] = []
    for index, row in enumerate(rows):
        if isinstance(row, PrintableReservation):
            reservations.append(row)
            continue
        try:
            reservations.append(PrintableReservation.from_row(row))
        except MalformedInputError as exc:
            logger.warning("Reservation row %d unusable, printing placeholders: %s", index, exc)
            reservations.append(PrintableReservation())
    return reservations


def coerce_order(order: Any) -> PrintableOrder:
    if isinstance(order, PrintableOrder):
        return order
    return PrintableOrder.from_row(order)


class ReceiptPrinter:
    """
    Print jobs against one configured network printer.

    Configuration and the cached logo raster are read-only after
    construction, so overlapping jobs need no locking; each job opens its
    own connection.
    """

    def __init__(self, config: PrinterConfig, logo: RasterBitmap | None = None) -> None:
        self.config = config
        self.logo = logo
        self.formatter = DateFormatter.from_config(config)

    @classmethod
    def from_config(cls, config: PrinterConfig) -> "ReceiptPrinter":
        """Build the service and rasterize the logo once."""
        return cls(config, load_logo(config.logo_path, config.max_dots))

    async def print_daily_reservations(
        self,
        date: object,
        rows: Iterable[Any],
        operator: str | None = None,
    ) -> PrintJobResult:
        """Print the daily reservation sheet."""
        cfg = self.config
        try:
            reservations = coerce_reservations(rows)
        except MalformedInputError as exc:
            self._reject("daily", date, rows, exc)
            raise
        job_id = _job_id("daily")
        logger.info(
            "Daily print begin job=%s date=%s rows=%d host=%s:%s cols=%d codepage=%s tz=%s utc=%s grouped=%s",
            job_id,
            date,
            len(reservations),
            cfg.host,
            cfg.port,
            cfg.columns,
            cfg.codepage,
            cfg.display_timezone,
            cfg.db_time_is_utc,
            cfg.daily_grouped,
        )
        buffers = build_daily_document(cfg, self.formatter, date, reservations, operator)
        return await self._dispatch(
            job_id,
            len(reservations),
            buffers,
            prefix="daily",
            entity_id=date,
            render_text=lambda: format_daily_text(
                reservations,
                self.formatter,
                date,
                cfg.daily_title,
                operator,
                cfg.daily_grouped,
                cfg.columns,
            ),
        )

    async def print_place_cards(
        self,
        rows: Iterable[Any],
        qr_base_url: str | None = None,
        date: object = None,
    ) -> PrintJobResult:
        """Print one cut place card per reservation as a single job."""
        cfg = self.config
        try:
            reservations = coerce_reservations(rows)
        except MalformedInputError as exc:
            self._reject("placecards", date, rows, exc)
            raise
        job_id = _job_id("placecards")
        base_url = qr_base_url or cfg.qr_base_url
        logger.info(
            "Place cards begin job=%s date=%s rows=%d host=%s:%s cols=%d logo=%s qr=%s",
            job_id,
            date,
            len(reservations),
            cfg.host,
            cfg.port,
            cfg.columns,
            self.logo is not None,
            base_url or "-",
        )
        buffers = build_place_cards(cfg, self.formatter, reservations, self.logo, base_url)
        return await self._dispatch(
            job_id,
            len(reservations),
            buffers,
            prefix="placecards",
            entity_id=date or job_id,
            render_text=lambda: format_place_cards_text(
                reservations,
                self.formatter,
                [qr_payload(base_url, row, cfg.qr_per_table) for row in reservations],
                cfg.columns,
            ),
        )

    async def print_order(self, order: Any) -> PrintJobResult:
        """Print an order receipt."""
        cfg = self.config
        try:
            printable = coerce_order(order)
        except MalformedInputError as exc:
            self._reject("receipt", order.get("id") if isinstance(order, Mapping) else None, order, exc)
            raise

        job_id = _job_id("order")
        logger.info(
            "Order print begin job=%s order=%s items=%d host=%s:%s cut=%s header_lines=%d",
            job_id,
            printable.id,
            len(printable.items),
            cfg.host,
            cfg.port,
            cfg.cut_enabled,
            len(cfg.header_lines),
        )
        buffers = build_order_document(cfg, self.formatter, printable)
        return await self._dispatch(
            job_id,
            len(printable.items),
            buffers,
            prefix="receipt",
            entity_id=printable.id,
            render_text=lambda: format_order_text(
                printable,
                self.formatter,
                cfg.header_lines,
                cfg.footer,
                cfg.columns,
            ),
        )

    async def check_printer_connection(self) -> tuple[bool, str]:
        """Check whether the printer accepts connections."""
        cfg = self.config
        if not cfg.enabled:
            return (False, "Printing disabled")
        try:
            await probe_printer(cfg.host, cfg.port, cfg.timeout)
        except PrintJobError as exc:
            return (False, f"Printer unavailable: {exc}")
        return (True, "Printer ready")

    async def _dispatch(
        self,
        job_id: str,
        count: int,
        buffers: list[bytes],
        prefix: str,
        entity_id: object,
        render_text: Callable[[], str],
    ) -> PrintJobResult:
        cfg = self.config
        if not cfg.enabled:
            logger.warning("Printing disabled, job %s diverted to fallback", job_id)
            path = self._fallback(prefix, entity_id, render_text, "printing disabled")
            return PrintJobResult(job_id=job_id, printed_count=0, fallback_path=path)

        try:
            sent = await send_to_printer(buffers, cfg.host, cfg.port, cfg.timeout)
        except PrinterUnreachableError as exc:
            exc.fallback_path = self._fallback(prefix, entity_id, render_text, exc)
            logger.error("Print job %s failed on %s:%s: %s", job_id, cfg.host, cfg.port, exc)
            raise

        logger.info("Print job %s sent: %d records, %d bytes", job_id, count, sent)
        return PrintJobResult(job_id=job_id, printed_count=count)

    def _reject(self, prefix: str, entity_id: object, raw: object, exc: MalformedInputError) -> None:
        exc.fallback_path = write_fallback(self.config.receipts_dir, prefix, entity_id, repr(raw), exc)
        logger.error("Print input rejected (%s): %s", prefix, exc)

    def _fallback(self, prefix: str, entity_id: object, render_text: Callable[[], str], reason: object) -> Path | None:
        return write_fallback(self.config.receipts_dir, prefix, entity_id, render_text, reason)
