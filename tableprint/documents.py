"""Document assemblers: records in, ordered ESC/POS buffers out.

Builders never raise on missing optional fields; absent values print as
placeholders or their line is left out.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Sequence

from tableprint import commands as cmd
from tableprint.config import PrinterConfig
from tableprint.constant import (
    ADAPTIVE_NAME_HEIGHT,
    DEFAULT_OPERATOR,
    FLAT_PARTY_WIDTH,
    FLAT_TABLE_WIDTH,
    FLAT_TIME_WIDTH,
    QR_CAPTION,
)
from tableprint.dates import DateFormatter
from tableprint.layout import (
    adaptive_single_line_name,
    group_by_time_of_day,
    pad_between,
    pad_right,
    rule,
    sort_by_table,
    table_sort_key,
    wrap,
    wrap_between,
)
from tableprint.models import PrintableOrder, PrintableReservation, RasterBitmap

_FAR_FUTURE = datetime.max.replace(tzinfo=timezone.utc)


def _money(value: object) -> str:
    return f"€ {value:.2f}"


def _fit(text: str, width: int) -> list[str]:
    """Keep a line as laid out when it fits, word-wrap it otherwise."""
    if len(text) <= width:
        return [text]
    return wrap(text, width)


class _Lines:
    """Collects buffers, encoding text lines with the configured codepage."""

    def __init__(self, config: PrinterConfig) -> None:
        self.codepage = config.codepage
        self.buffers: list[bytes] = []

    def raw(self, *chunks: bytes) -> None:
        self.buffers.extend(chunks)

    def text(self, *values: str) -> None:
        self.buffers.extend(cmd.line(value, self.codepage) for value in values)


def _document_start(config: PrinterConfig) -> _Lines:
    out = _Lines(config)
    out.raw(cmd.init(), cmd.select_codepage(config.codepage))
    return out


def _document_end(out: _Lines, config: PrinterConfig) -> list[bytes]:
    if config.cut_enabled:
        out.raw(cmd.cut())
    return out.buffers


def sort_by_start(rows: Iterable[PrintableReservation], formatter: DateFormatter) -> list[PrintableReservation]:
    """Ascending start instant; unparseable times last, ties by table."""

    def start_key(row: PrintableReservation) -> tuple[datetime, tuple[int, int, str]]:
        return (formatter.parse(row.start_at) or _FAR_FUTURE, table_sort_key(row))

    return sorted(rows, key=start_key)


def _reservation_detail(out: _Lines, row: PrintableReservation, left: str, columns: int) -> None:
    """Name, phone and notes under a fixed left column, then a spacer line."""
    indent = " " * len(left)
    name_width = columns - len(left)
    name_rows = wrap(row.display_name, name_width)
    out.text(left + pad_right(name_rows[0] if name_rows else "", name_width))
    out.text(*(indent + extra for extra in name_rows[1:]))
    if row.phone:
        out.text(*(indent + part for part in _fit(row.phone, name_width)))
    if row.notes:
        out.text(*(indent + part for part in wrap(f"NOTE: {row.notes}", name_width)))
    out.text(" " * columns)


def _daily_grouped(out: _Lines, config: PrinterConfig, formatter: DateFormatter, rows: Sequence[PrintableReservation]) -> None:
    columns = config.columns
    groups = group_by_time_of_day(rows, lambda row: formatter.format_time(row.start_at))
    for label, members in groups.items():
        out.raw(
            cmd.align("center"),
            cmd.font_size(config.group_title_width, config.group_title_height),
            cmd.bold(True),
        )
        out.text(label)
        out.raw(cmd.bold(False), cmd.font_size(1, 1))
        out.text(rule(columns))

        for row in sort_by_table(members):
            left = f"{pad_right(row.table_label, FLAT_TABLE_WIDTH)} {pad_right(row.party_label, FLAT_PARTY_WIDTH)} "
            out.raw(cmd.align("left"))
            _reservation_detail(out, row, left, columns)

        out.text(rule(columns))


def _daily_flat(out: _Lines, config: PrinterConfig, formatter: DateFormatter, rows: Sequence[PrintableReservation]) -> None:
    columns = config.columns
    name_width = columns - FLAT_TIME_WIDTH - FLAT_TABLE_WIDTH - FLAT_PARTY_WIDTH - 3
    out.raw(cmd.align("left"), cmd.bold(True))
    out.text(
        " ".join(
            (
                pad_right("ORA", FLAT_TIME_WIDTH),
                pad_right("TAV", FLAT_TABLE_WIDTH),
                pad_right("PAX", FLAT_PARTY_WIDTH),
                pad_right("NOME", name_width),
            )
        )
    )
    out.raw(cmd.bold(False))
    out.text(rule(columns))

    for row in sort_by_start(rows, formatter):
        left = (
            f"{pad_right(formatter.format_time(row.start_at), FLAT_TIME_WIDTH)} "
            f"{pad_right(row.table_label, FLAT_TABLE_WIDTH)} "
            f"{pad_right(row.party_label, FLAT_PARTY_WIDTH)} "
        )
        _reservation_detail(out, row, left, columns)


def build_daily_document(
    config: PrinterConfig,
    formatter: DateFormatter,
    date: object,
    rows: Iterable[PrintableReservation],
    operator: str | None = None,
) -> list[bytes]:
    """Daily reservation sheet, grouped by start time or as a flat table."""
    rows = list(rows)
    columns = config.columns

    out = _document_start(config)
    out.raw(cmd.align("center"), cmd.bold(True), cmd.double_size(True))
    out.text(*_fit(config.daily_title, columns // 2))
    out.raw(cmd.double_size(False), cmd.bold(False))
    out.text(formatter.format_day(date).upper(), rule(columns))

    if config.daily_grouped:
        _daily_grouped(out, config, formatter, rows)
    else:
        _daily_flat(out, config, formatter, rows)

    out.raw(cmd.align("center"))
    out.text(*_fit(f"Operatore: {operator or DEFAULT_OPERATOR}", columns), "", "")
    return _document_end(out, config)


def qr_payload(base_url: str | None, reservation: PrintableReservation, per_table: bool = True) -> str | None:
    """
    Text encoded in a place card QR code.

    ``<base>/table/<ref>`` when per-table links are on and the reservation
    has a table, ``<base>/`` otherwise, ``None`` without a base URL.
    """
    base = (base_url or "").strip().rstrip("/")
    if not base:
        return None
    ref = reservation.table_ref
    if per_table and ref:
        return f"{base}/table/{ref}"
    return f"{base}/"


def _logo_block(logo: RasterBitmap) -> tuple[bytes, ...]:
    return (cmd.align("center"), cmd.raster_transfer(logo), cmd.LF)


def build_place_card(
    config: PrinterConfig,
    formatter: DateFormatter,
    reservation: PrintableReservation,
    logo: RasterBitmap | None = None,
    qr_url: str | None = None,
) -> list[bytes]:
    """One independently cut place card."""
    out = _document_start(config)
    out.raw(cmd.align("center"))

    if config.top_padding > 0:
        out.raw(cmd.feed(config.top_padding))
    if logo is not None:
        out.raw(*_logo_block(logo))

    out.raw(cmd.font_size(2, 1), cmd.bold(True))
    out.text(*_fit(f"TAVOLO {reservation.table_label}", config.columns // 2))
    out.raw(cmd.bold(False), cmd.font_size(1, 1))

    name_width, shown = adaptive_single_line_name(reservation.card_name, config.columns)
    out.raw(cmd.font_size(name_width, ADAPTIVE_NAME_HEIGHT), cmd.bold(True), cmd.align("center"))
    out.text(shown)
    out.raw(cmd.bold(False), cmd.font_size(1, 1))

    time_label = formatter.format_time(reservation.start_at)
    date_label = formatter.format_date_human(reservation.start_at)
    out.raw(cmd.bold(True))
    out.text(*_fit(f"{time_label}  •  {date_label}", config.columns))
    out.raw(cmd.bold(False))
    out.text(*_fit(f"SALA:  {reservation.room_label}   •   COPERTI: {reservation.party_label}", config.columns), "")

    if qr_url:
        out.text(QR_CAPTION)
        if config.qr_caption_gap > 0:
            out.raw(cmd.feed(config.qr_caption_gap))
        out.raw(
            cmd.align("center"),
            cmd.qr_module_size(config.qr_module_size),
            cmd.qr_error_correction(config.qr_ecc),
            cmd.qr_store_data(qr_url, config.codepage),
            cmd.qr_print(),
        )
        out.text("")

    if config.bottom_padding > 0:
        out.raw(cmd.feed(config.bottom_padding))
    return _document_end(out, config)


def build_place_cards(
    config: PrinterConfig,
    formatter: DateFormatter,
    reservations: Iterable[PrintableReservation],
    logo: RasterBitmap | None = None,
    qr_base_url: str | None = None,
) -> list[bytes]:
    """Concatenate one card per reservation, in input order, into one payload."""
    base_url = qr_base_url or config.qr_base_url
    buffers: list[bytes] = []
    for reservation in reservations:
        qr_url = qr_payload(base_url, reservation, config.qr_per_table)
        buffers.extend(build_place_card(config, formatter, reservation, logo, qr_url))
    return buffers


def build_order_document(config: PrinterConfig, formatter: DateFormatter, order: PrintableOrder) -> list[bytes]:
    """Order receipt: header, customer block, item rows, total and footer."""
    columns = config.columns
    out = _document_start(config)

    if config.header_lines:
        out.raw(cmd.align("center"), cmd.bold(True))
        out.text(*_fit(config.header_lines[0], columns))
        out.raw(cmd.bold(False))
        for header in config.header_lines[1:]:
            out.text(*_fit(header, columns))

    out.raw(cmd.align("left"))
    out.text(rule(columns))
    if order.id:
        out.text(*wrap_between("Ordine #", order.id, columns))
    if order.created_at:
        out.text(pad_between("Data", formatter.format_date_time(order.created_at), columns))
    if order.customer_name:
        out.text(*_fit(f"Cliente: {order.customer_name}", columns))
    if order.phone:
        out.text(*_fit(f"Telefono: {order.phone}", columns))
    if order.delivery_address:
        out.text(*wrap(f"Indirizzo: {order.delivery_address}", columns))
    out.text(rule(columns))

    for item in order.items:
        out.text(*wrap_between(f"{item.quantity}x {item.name}", _money(item.line_total), columns))
        if item.note:
            out.text(*("  " + part for part in wrap(f"Note: {item.note}", columns - 2)))
        if item.ingredients:
            out.text(*("  " + part for part in wrap(f"+ {item.ingredients}", columns - 2)))

    out.text(rule(columns))
    out.raw(cmd.bold(True))
    out.text(pad_between("TOTALE", _money(order.total), columns))
    out.raw(cmd.bold(False))

    if config.footer:
        out.raw(cmd.align("center"))
        out.text("", *wrap(config.footer, columns))
    out.raw(cmd.feed(2))
    return _document_end(out, config)
