"""Command-line entry point: print or preview jobs from JSON files."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Sequence

from dotenv import load_dotenv
from rich.console import Console

from tableprint.config import PrinterConfig
from tableprint.documents import qr_payload
from tableprint.errors import MalformedInputError, PrintJobError
from tableprint.fallback import format_daily_text, format_order_text, format_place_cards_text
from tableprint.logs import configure_logging
from tableprint.printer import ReceiptPrinter, coerce_order, coerce_reservations
from tableprint.rendering import format_job_error, format_job_result, preview_panel


def _load_json(path: str) -> Any:
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise MalformedInputError(f"cannot read {path}: {exc}") from exc


def _rows(payload: Any) -> Any:
    if isinstance(payload, dict) and "rows" in payload:
        return payload["rows"]
    return payload


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tableprint", description="Thermal printing for reservations and orders.")
    parser.add_argument("--env-file", default=None, help="Load printer settings from a .env file first")
    parser.add_argument("--log-level", default=None, help="Logging level (default: LOG_LEVEL or INFO)")
    sub = parser.add_subparsers(dest="command", required=True)

    daily = sub.add_parser("daily", help="Print the daily reservation sheet")
    daily.add_argument("file", help="JSON list of reservation rows")
    daily.add_argument("--date", required=True, help="Service day, YYYY-MM-DD")
    daily.add_argument("--operator", default=None, help="Operator e-mail printed at the bottom")
    daily.add_argument("--preview", action="store_true", help="Show the text rendering instead of printing")

    cards = sub.add_parser("placecards", help="Print one place card per reservation")
    cards.add_argument("file", help="JSON list of reservation rows")
    cards.add_argument("--date", default=None)
    cards.add_argument("--qr-base-url", default=None, help="Overrides QR_BASE_URL")
    cards.add_argument("--preview", action="store_true", help="Show the text rendering instead of printing")

    order = sub.add_parser("order", help="Print an order receipt")
    order.add_argument("file", help="JSON order object with items")
    order.add_argument("--preview", action="store_true", help="Show the text rendering instead of printing")

    sub.add_parser("check", help="Check the printer connection")
    return parser


def _preview(args: argparse.Namespace, service: ReceiptPrinter) -> tuple[str, str]:
    cfg = service.config
    payload = _load_json(args.file)
    if args.command == "daily":
        rows = coerce_reservations(_rows(payload))
        body = format_daily_text(rows, service.formatter, args.date, cfg.daily_title, args.operator, cfg.daily_grouped, cfg.columns)
        return body, f"daily {args.date}"
    if args.command == "placecards":
        rows = coerce_reservations(_rows(payload))
        base_url = args.qr_base_url or cfg.qr_base_url
        urls = [qr_payload(base_url, row, cfg.qr_per_table) for row in rows]
        return format_place_cards_text(rows, service.formatter, urls, cfg.columns), "place cards"
    printable = coerce_order(payload)
    body = format_order_text(printable, service.formatter, cfg.header_lines, cfg.footer, cfg.columns)
    return body, f"order {printable.id or '-'}"


async def _run(args: argparse.Namespace, service: ReceiptPrinter, console: Console) -> int:
    if args.command == "check":
        ok, message = await service.check_printer_connection()
        console.print(message, style="green" if ok else "red")
        return 0 if ok else 1

    if args.preview:
        body, title = _preview(args, service)
        console.print(preview_panel(body, title))
        return 0

    payload = _load_json(args.file)
    if args.command == "daily":
        result = await service.print_daily_reservations(args.date, _rows(payload), args.operator)
    elif args.command == "placecards":
        result = await service.print_place_cards(_rows(payload), args.qr_base_url, args.date)
    else:
        result = await service.print_order(payload)
    console.print(format_job_result(result))
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.env_file:
        load_dotenv(args.env_file)  # existing environment variables win
    configure_logging(args.log_level)
    console = Console()

    service = ReceiptPrinter.from_config(PrinterConfig.from_env())
    try:
        return asyncio.run(_run(args, service, console))
    except PrintJobError as exc:
        console.print(format_job_error(exc))
        return 2


if __name__ == "__main__":
    sys.exit(main())
