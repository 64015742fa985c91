"""Plain-text copies of print jobs written to disk when printing fails."""

from __future__ import annotations

import logging
import re
import time
from pathlib import Path
from typing import Callable, Iterable
from uuid import uuid4

from tableprint.constant import DEFAULT_OPERATOR, FLAT_PARTY_WIDTH, FLAT_TABLE_WIDTH, FLAT_TIME_WIDTH
from tableprint.dates import DateFormatter
from tableprint.documents import sort_by_start
from tableprint.layout import group_by_time_of_day, pad_between, pad_right, rule, sort_by_table, wrap, wrap_between
from tableprint.models import PrintableOrder, PrintableReservation

logger = logging.getLogger(__name__)

_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9_.-]+")


def format_order_text(order: PrintableOrder, formatter: DateFormatter, header_lines: Iterable[str] = (), footer: str = "", width: int = 42) -> str:
    """Human-readable receipt for an order."""
    lines: list[str] = list(header_lines)
    lines.append(rule(width))
    if order.id:
        lines.append(pad_between("Ordine #", order.id, width))
    if order.created_at:
        lines.append(pad_between("Data", formatter.format_date_time(order.created_at), width))
    if order.customer_name:
        lines.append(f"Cliente: {order.customer_name}")
    if order.phone:
        lines.append(f"Telefono: {order.phone}")
    if order.delivery_address:
        lines.append(f"Indirizzo: {order.delivery_address}")
    lines.append(rule(width))

    for item in order.items:
        lines.extend(wrap_between(f"{item.quantity}x {item.name}", f"€ {item.line_total:.2f}", width))
        if item.note:
            lines.append(f"  Note: {item.note}")
        if item.ingredients:
            lines.append(f"  + {item.ingredients}")

    lines.append(rule(width))
    lines.append(pad_between("TOTALE", f"€ {order.total:.2f}", width))
    if footer:
        lines.extend(("", footer))
    lines.extend(("", ""))
    return "\n".join(lines)


def _reservation_lines(row: PrintableReservation, left: str, width: int) -> list[str]:
    indent = " " * len(left)
    name_rows = wrap(row.display_name, width - len(left)) or [""]
    lines = [left + name_rows[0]]
    lines.extend(indent + extra for extra in name_rows[1:])
    if row.phone:
        lines.append(indent + row.phone)
    if row.notes:
        lines.extend(indent + part for part in wrap(f"NOTE: {row.notes}", width - len(left)))
    return lines


def format_daily_text(
    rows: Iterable[PrintableReservation],
    formatter: DateFormatter,
    date: object,
    title: str,
    operator: str | None = None,
    grouped: bool = True,
    width: int = 48,
) -> str:
    """Daily reservation list in the same shape as the printed sheet."""
    rows = list(rows)
    lines = [title, formatter.format_day(date).upper(), rule(width)]

    if grouped:
        groups = group_by_time_of_day(rows, lambda row: formatter.format_time(row.start_at))
        for label, members in groups.items():
            lines.extend((label, rule(width)))
            for row in sort_by_table(members):
                left = f"{pad_right(row.table_label, FLAT_TABLE_WIDTH)} {pad_right(row.party_label, FLAT_PARTY_WIDTH)} "
                lines.extend(_reservation_lines(row, left, width))
            lines.append(rule(width))
    else:
        lines.append(f"{pad_right('ORA', FLAT_TIME_WIDTH)} {pad_right('TAV', FLAT_TABLE_WIDTH)} {pad_right('PAX', FLAT_PARTY_WIDTH)} NOME")
        lines.append(rule(width))
        for row in sort_by_start(rows, formatter):
            left = (
                f"{pad_right(formatter.format_time(row.start_at), FLAT_TIME_WIDTH)} "
                f"{pad_right(row.table_label, FLAT_TABLE_WIDTH)} "
                f"{pad_right(row.party_label, FLAT_PARTY_WIDTH)} "
            )
            lines.extend(_reservation_lines(row, left, width))

    lines.extend(("", f"Operatore: {operator or DEFAULT_OPERATOR}", ""))
    return "\n".join(lines)


def format_place_cards_text(rows: Iterable[PrintableReservation], formatter: DateFormatter, qr_urls: Iterable[str | None] = (), width: int = 48) -> str:
    """One text block per place card, separated by a rule."""
    urls = list(qr_urls)
    blocks: list[str] = []
    for index, row in enumerate(rows):
        block = [
            f"TAVOLO {row.table_label}",
            row.card_name.upper(),
            f"{formatter.format_time(row.start_at)} - {formatter.format_date_human(row.start_at)}",
            f"SALA: {row.room_label} - COPERTI: {row.party_label}",
        ]
        if index < len(urls) and urls[index]:
            block.append(f"QR: {urls[index]}")
        blocks.append("\n".join(block))
    return f"\n{rule(width)}\n".join(blocks) + "\n"


def write_fallback(
    directory: str | Path,
    prefix: str,
    entity_id: object,
    text: str | Callable[[], str],
    reason: object,
) -> Path | None:
    """
    Persist ``text`` to a unique file under ``directory``.

    ``text`` may be a callable that renders the body. Never raises: a failed
    render or write is logged and ``None`` returned. Characters UTF-8 cannot
    hold are written as ``?``.
    """
    safe_id = _UNSAFE_NAME_CHARS.sub("_", str(entity_id or "na")).strip("_") or "na"
    stamp = time.time_ns() // 1_000_000
    try:
        body = text() if callable(text) else text
        target_dir = Path(directory)
        target_dir.mkdir(parents=True, exist_ok=True)
        path = target_dir / f"{prefix}-{safe_id}-{stamp}-{uuid4().hex[:8]}.txt"
        path.write_text(body, encoding="utf-8", errors="replace")
    except (OSError, ValueError) as exc:
        logger.error("Print fallback could not be written to %s: %s (print failure: %s)", directory, exc, reason)
        return None
    logger.warning("Print fallback written to %s (%s)", path, reason)
    return path
