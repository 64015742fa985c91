"""Plain data records consumed by the printing pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Mapping, Union

from tableprint.constant import FIELD_PLACEHOLDER, GUEST_PLACEHOLDER, NAME_PLACEHOLDER
from tableprint.errors import MalformedInputError

Timestamp = Union[str, datetime, None]


def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _int_or_none(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    # Drivers may hand back 4.0 for an integer column.
    if not number.is_finite() or number != number.to_integral_value():
        return None
    return int(number)


def _ref(value: Any) -> int | str | None:
    number = _int_or_none(value)
    return number if number is not None else _text(value)


def _decimal(value: Any) -> Decimal:
    if value is None or value == "":
        return Decimal("0")
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return Decimal("0")


def _first(row: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = row.get(key)
        if value is not None and value != "":
            return value
    return None


def _require_mapping(row: Any, kind: str) -> Mapping[str, Any]:
    if not isinstance(row, Mapping):
        raise MalformedInputError(f"{kind} must be a mapping, got {type(row).__name__}")
    return row


@dataclass(frozen=True)
class PrintableLineItem:
    """One order line."""

    quantity: int
    name: str
    unit_price: Decimal = Decimal("0")
    note: str | None = None
    ingredients: str | None = None

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    @classmethod
    def from_row(cls, row: Any) -> "PrintableLineItem":
        row = _require_mapping(row, "order item")
        quantity = _int_or_none(_first(row, "qty", "quantity")) or 1
        return cls(
            quantity=max(1, quantity),
            name=_text(_first(row, "product_name", "name")) or "Item",
            unit_price=_decimal(row.get("price")),
            note=_text(_first(row, "notes", "note")),
            ingredients=_text(row.get("ingredients")),
        )


@dataclass(frozen=True)
class PrintableOrder:
    """Immutable snapshot of an order and its lines."""

    id: str | None
    created_at: Timestamp = None
    customer_first: str | None = None
    customer_last: str | None = None
    phone: str | None = None
    delivery_address: str | None = None
    total: Decimal = Decimal("0")
    items: tuple[PrintableLineItem, ...] = ()

    @property
    def customer_name(self) -> str:
        return " ".join(part for part in (self.customer_first, self.customer_last) if part)

    @classmethod
    def from_row(cls, row: Any) -> "PrintableOrder":
        row = _require_mapping(row, "order")
        raw_items = row.get("items") or ()
        if isinstance(raw_items, (str, bytes)) or not hasattr(raw_items, "__iter__"):
            raise MalformedInputError("order items must be a list")
        created_at = row.get("created_at")
        return cls(
            id=_text(row.get("id")),
            created_at=created_at if isinstance(created_at, datetime) else _text(created_at),
            customer_first=_text(row.get("customer_first")),
            customer_last=_text(row.get("customer_last")),
            phone=_text(row.get("phone")),
            delivery_address=_text(row.get("delivery_address")),
            total=_decimal(row.get("total")),
            items=tuple(PrintableLineItem.from_row(item) for item in raw_items),
        )


@dataclass(frozen=True)
class PrintableReservation:
    """Immutable snapshot of a reservation joined with table and room."""

    id: str | None = None
    start_at: Timestamp = None
    table_number: int | str | None = None
    table_id: int | str | None = None
    room_name: str | None = None
    room_id: int | str | None = None
    party_size: int | None = None
    customer_first: str | None = None
    customer_last: str | None = None
    phone: str | None = None
    notes: str | None = None

    @property
    def table_label(self) -> str:
        """Printed table: number, else id, else a dash."""
        for value in (self.table_number, self.table_id):
            if value not in (None, "", 0):
                return str(value)
        return FIELD_PLACEHOLDER

    @property
    def table_ref(self) -> str | None:
        """Stable table reference for links: id, else number."""
        for value in (self.table_id, self.table_number):
            if value not in (None, ""):
                return str(value)
        return None

    @property
    def room_label(self) -> str:
        for value in (self.room_name, self.room_id):
            if value not in (None, ""):
                return str(value)
        return FIELD_PLACEHOLDER

    @property
    def party_label(self) -> str:
        return str(self.party_size) if self.party_size else FIELD_PLACEHOLDER

    @property
    def display_name(self) -> str:
        """First name then last name, as listed on the daily sheet."""
        name = " ".join(part for part in (self.customer_first, self.customer_last) if part)
        return name or NAME_PLACEHOLDER

    @property
    def card_name(self) -> str:
        """Last name then first name, as shown on a place card."""
        name = " ".join(part for part in (self.customer_last, self.customer_first) if part)
        return name or GUEST_PLACEHOLDER

    @classmethod
    def from_row(cls, row: Any) -> "PrintableReservation":
        row = _require_mapping(row, "reservation")
        start_at = row.get("start_at")
        return cls(
            id=_text(row.get("id")),
            start_at=start_at if isinstance(start_at, datetime) else _text(start_at),
            table_number=_ref(row.get("table_number")),
            table_id=_ref(row.get("table_id")),
            room_name=_text(_first(row, "room_name", "room")),
            room_id=_ref(row.get("room_id")),
            party_size=_int_or_none(row.get("party_size")),
            customer_first=_text(row.get("customer_first")),
            customer_last=_text(row.get("customer_last")),
            phone=_text(row.get("phone")),
            notes=_text(row.get("notes")),
        )


@dataclass(frozen=True)
class RasterBitmap:
    """Packed 1-bit raster, rows MSB-first, padding bits clear."""

    width: int
    height: int
    data: bytes = field(repr=False)

    @property
    def row_bytes(self) -> int:
        return (self.width + 7) // 8


@dataclass(frozen=True)
class PrintJobResult:
    """Outcome of a print job returned to the caller."""

    job_id: str
    printed_count: int
    fallback_path: Path | None = None

    def as_dict(self) -> dict[str, Any]:
        return {"job_id": self.job_id, "printed_count": self.printed_count}
