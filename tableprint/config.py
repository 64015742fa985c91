"""Runtime configuration defaults for rendering and printing."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from tableprint.constant import DAILY_TITLE, DEFAULT_CODEPAGE, DEFAULT_QR_ECC, QR_ECC_LEVELS

logger = logging.getLogger(__name__)

PRINTER_HOST = "127.0.0.1"
PRINTER_PORT = 9100
PRINTER_TIMEOUT_SECONDS = 8.0
PRINTER_WIDTH_MM = 80
PRINTER_LOGO_PATH = "assets/logo.png"
RECEIPTS_DIR = "receipts"
DISPLAY_TIMEZONE = "Europe/Rome"

# Paper at or above this width is an 80mm roll (48 columns, 576 dots).
WIDE_PAPER_MIN_MM = 70
WIDE_COLUMNS = 48
NARROW_COLUMNS = 32
WIDE_MAX_DOTS = 576
NARROW_MAX_DOTS = 384

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def columns_for_width(width_mm: float) -> int:
    """Characters per line at font A for the given paper width."""
    return WIDE_COLUMNS if width_mm >= WIDE_PAPER_MIN_MM else NARROW_COLUMNS


def max_dots_for_width(width_mm: float) -> int:
    """Printable dots per raster line for the given paper width."""
    return WIDE_MAX_DOTS if width_mm >= WIDE_PAPER_MIN_MM else NARROW_MAX_DOTS


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def _env_str(environ: Mapping[str, str], *names: str, default: str = "") -> str:
    for name in names:
        raw = environ.get(name)
        if raw is not None and raw.strip():
            return raw.strip()
    return default


def _env_int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(float(raw))
    except (ValueError, OverflowError):
        logger.warning("Ignoring non-numeric %s=%r, using %s", name, raw, default)
        return default


def _env_float(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r, using %s", name, raw, default)
        return default


def _env_bool(environ: Mapping[str, str], name: str, default: bool) -> bool:
    raw = environ.get(name, "").strip().lower()
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    return default


def _resolve_timezone(name: str) -> str:
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown display timezone %r, using %s", name, DISPLAY_TIMEZONE)
        return DISPLAY_TIMEZONE
    return name


@dataclass(frozen=True)
class PrinterConfig:
    """Immutable printer settings, built once at process start."""

    enabled: bool = True
    host: str = PRINTER_HOST
    port: int = PRINTER_PORT
    timeout: float = PRINTER_TIMEOUT_SECONDS
    width_mm: float = PRINTER_WIDTH_MM
    codepage: str = DEFAULT_CODEPAGE
    cut_enabled: bool = True
    header_lines: tuple[str, ...] = ()
    footer: str = ""
    daily_title: str = DAILY_TITLE
    display_timezone: str = DISPLAY_TIMEZONE
    db_time_is_utc: bool = False
    daily_grouped: bool = True
    group_title_width: int = 2
    group_title_height: int = 2
    qr_module_size: int = 5
    qr_ecc: str = DEFAULT_QR_ECC
    qr_caption_gap: int = 1
    qr_per_table: bool = True
    qr_base_url: str = ""
    top_padding: int = 2
    bottom_padding: int = 4
    logo_path: str = PRINTER_LOGO_PATH
    receipts_dir: str = RECEIPTS_DIR

    @property
    def columns(self) -> int:
        return columns_for_width(self.width_mm)

    @property
    def max_dots(self) -> int:
        return max_dots_for_width(self.width_mm)

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.display_timezone)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "PrinterConfig":
        """
        Build settings from environment variables.

        Malformed values never fail startup: numbers fall back to their
        defaults and ranged values are clamped.
        """
        env = os.environ if environ is None else environ

        width_mm = _env_float(env, "PRINTER_WIDTH_MM", PRINTER_WIDTH_MM)
        if width_mm <= 0:
            width_mm = PRINTER_WIDTH_MM

        qr_ecc = _env_str(env, "PRINTER_QR_ECC", default=DEFAULT_QR_ECC).upper()
        if qr_ecc not in QR_ECC_LEVELS:
            qr_ecc = DEFAULT_QR_ECC

        header = env.get("PRINTER_HEADER", "")
        header_lines = tuple(part.strip() for part in header.split("|") if part.strip())

        return cls(
            enabled=_env_bool(env, "PRINTER_ENABLED", True),
            host=_env_str(env, "PRINTER_IP", "PRINTER_HOST", default=PRINTER_HOST),
            port=_clamp(_env_int(env, "PRINTER_PORT", PRINTER_PORT), 1, 65535),
            timeout=max(0.1, _env_float(env, "PRINTER_TIMEOUT_SECONDS", PRINTER_TIMEOUT_SECONDS)),
            width_mm=width_mm,
            codepage=_env_str(env, "PRINTER_CODEPAGE", default=DEFAULT_CODEPAGE).lower(),
            cut_enabled=_env_bool(env, "PRINTER_CUT", True),
            header_lines=header_lines,
            footer=env.get("PRINTER_FOOTER", "").strip(),
            daily_title=_env_str(env, "PRINTER_TITLE", default=DAILY_TITLE),
            display_timezone=_resolve_timezone(_env_str(env, "BIZ_TZ", default=DISPLAY_TIMEZONE)),
            db_time_is_utc=_env_bool(env, "DB_TIME_IS_UTC", False),
            daily_grouped=_env_bool(env, "PRINTER_DAILY_GROUPED", True),
            group_title_width=_clamp(_env_int(env, "PRINTER_GROUP_TITLE_W", 2), 1, 8),
            group_title_height=_clamp(_env_int(env, "PRINTER_GROUP_TITLE_H", 2), 1, 8),
            qr_module_size=_clamp(_env_int(env, "PRINTER_QR_SIZE", 5), 1, 16),
            qr_ecc=qr_ecc,
            qr_caption_gap=_clamp(_env_int(env, "PRINTER_QR_CAPTION_GAP_LINES", 1), 0, 255),
            qr_per_table=_env_bool(env, "PRINTER_QR_PER_TABLE", True),
            qr_base_url=_env_str(env, "QR_BASE_URL"),
            top_padding=_clamp(_env_int(env, "PRINTER_TOP_PAD_LINES", 2), 0, 255),
            bottom_padding=_clamp(_env_int(env, "PRINTER_BOTTOM_PAD_LINES", 4), 0, 255),
            logo_path=_env_str(env, "PRINTER_LOGO_PATH", default=PRINTER_LOGO_PATH),
            receipts_dir=_env_str(env, "PRINTER_RECEIPTS_DIR", default=RECEIPTS_DIR),
        )
