"""Timestamp parsing and rendering in the business timezone.

Database rows carry naive ``YYYY-MM-DD HH:MM:SS`` strings whose zone is a
deployment setting, while the print server may run in yet another zone.
Everything printed is rendered in the configured display timezone.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, timezone, tzinfo
from zoneinfo import ZoneInfo

from tableprint.config import PrinterConfig
from tableprint.constant import FIELD_PLACEHOLDER, TIME_PLACEHOLDER, WEEKDAY_NAMES

_ZONE_SUFFIX = re.compile(r"(Z|[+-]\d{2}:?\d{2})$", re.IGNORECASE)


def _normalise_offset(raw: str) -> str:
    """Rewrite zone suffixes into the form ``fromisoformat`` accepts."""
    match = _ZONE_SUFFIX.search(raw)
    if not match:
        return raw
    suffix = match.group(1)
    if suffix.upper() == "Z":
        suffix = "+00:00"
    elif ":" not in suffix:
        suffix = f"{suffix[:3]}:{suffix[3:]}"
    return raw[: match.start()] + suffix


def has_zone_designator(raw: str) -> bool:
    """True for ``...Z`` or ``...+HH:MM`` timestamps; bare dates never match."""
    text = raw.strip()
    return ":" in text and _ZONE_SUFFIX.search(text) is not None


def parse_timestamp(raw: object, db_time_is_utc: bool = False) -> datetime | None:
    """
    Parse a database timestamp into an aware datetime.

    Zoned strings are taken as is; naive ones are read as UTC or as the
    server's local time depending on ``db_time_is_utc``. Returns ``None``
    for empty or unparseable input.
    """
    if isinstance(raw, datetime):
        parsed = raw
    elif isinstance(raw, date):
        parsed = datetime(raw.year, raw.month, raw.day)
    else:
        text = ("" if raw is None else str(raw)).strip()
        if not text:
            return None
        if has_zone_designator(text):
            text = _normalise_offset(text)
        try:
            parsed = datetime.fromisoformat(text.replace(" ", "T", 1))
        except ValueError:
            return None

    if parsed.tzinfo is not None:
        return parsed
    if db_time_is_utc:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone()


@dataclass(frozen=True)
class DateFormatter:
    """Renders instants in one display timezone, whatever the host zone is."""

    display_tz: tzinfo
    db_time_is_utc: bool = False

    @classmethod
    def from_config(cls, config: PrinterConfig) -> "DateFormatter":
        return cls(display_tz=config.tzinfo, db_time_is_utc=config.db_time_is_utc)

    @classmethod
    def for_zone(cls, name: str, db_time_is_utc: bool = False) -> "DateFormatter":
        return cls(display_tz=ZoneInfo(name), db_time_is_utc=db_time_is_utc)

    def parse(self, raw: object) -> datetime | None:
        return parse_timestamp(raw, self.db_time_is_utc)

    def localize(self, raw: object) -> datetime | None:
        instant = self.parse(raw)
        return instant.astimezone(self.display_tz) if instant is not None else None

    def format_time(self, raw: object) -> str:
        """``HH:MM`` in the display timezone."""
        local = self.localize(raw)
        return local.strftime("%H:%M") if local is not None else TIME_PLACEHOLDER

    def format_date_human(self, raw: object) -> str:
        """``<weekday>, DD/MM/YYYY`` in the display timezone."""
        local = self.localize(raw)
        if local is None:
            return FIELD_PLACEHOLDER
        return _human_day(local.date())

    def format_date_time(self, raw: object) -> str:
        local = self.localize(raw)
        return local.strftime("%d/%m/%Y %H:%M") if local is not None else FIELD_PLACEHOLDER

    def format_day(self, day: object) -> str:
        """Render a calendar day (``YYYY-MM-DD`` or ``date``) without shifting it."""
        if isinstance(day, datetime):
            return self.format_date_human(day)
        if isinstance(day, date):
            return _human_day(day)
        text = ("" if day is None else str(day)).strip()
        try:
            return _human_day(date.fromisoformat(text[:10]))
        except ValueError:
            return self.format_date_human(text)


def _human_day(day: date) -> str:
    return f"{WEEKDAY_NAMES[day.weekday()]}, {day:%d/%m/%Y}"
