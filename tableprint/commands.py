"""ESC/POS command constructors and codepage text encoding.

Every function here is a pure function of its arguments and returns the
exact bytes sent to the printer, so documents can be asserted byte for byte
without a socket.
"""

from __future__ import annotations

import codecs

from escpos.constants import CODEPAGE_CHANGE, CTL_LF, ESC, GS, HW_INIT, PAPER_FULL_CUT

from tableprint.constant import (
    CODEPAGE_TABLES,
    DEFAULT_CODEPAGE,
    DEFAULT_QR_ECC,
    GLYPH_FALLBACKS,
    QR_ECC_LEVELS,
)
from tableprint.models import RasterBitmap

LF = CTL_LF

_ALIGNMENTS = {"left": 0, "center": 1, "right": 2}

# GS ( k header shared by the QR Code (cn = 49) functions.
_QR_PREFIX = GS + b"(k"
_QR_CN = 0x31

_ENCODE_ERRORS = "tableprint.glyph_fallback"


def _glyph_fallback(error: UnicodeError) -> tuple[str, int]:
    if not isinstance(error, UnicodeEncodeError):
        raise error
    chunk = error.object[error.start : error.end]
    return "".join(GLYPH_FALLBACKS.get(char, "?") for char in chunk), error.end


codecs.register_error(_ENCODE_ERRORS, _glyph_fallback)


def _clamp(value: object, low: int, high: int, default: int) -> int:
    try:
        number = int(value)  # type: ignore[call-overload]
    except (TypeError, ValueError):
        number = default
    return max(low, min(high, number))


def _u16le(value: int) -> bytes:
    return bytes((value & 0xFF, (value >> 8) & 0xFF))


def resolve_codepage(name: str | None) -> str:
    """Return a Python codec name for the configured codepage."""
    candidate = (name or DEFAULT_CODEPAGE).strip().lower()
    try:
        codecs.lookup(candidate)
    except LookupError:
        return DEFAULT_CODEPAGE
    return candidate


def encode(text: object, codepage: str = DEFAULT_CODEPAGE) -> bytes:
    """Encode text for a single-byte printer codepage; never raises."""
    value = "" if text is None else str(text)
    return value.replace("\r", "").encode(resolve_codepage(codepage), errors=_ENCODE_ERRORS)


def line(text: object = "", codepage: str = DEFAULT_CODEPAGE) -> bytes:
    return encode(text, codepage) + LF


def init() -> bytes:
    return HW_INIT


def align(mode: str = "left") -> bytes:
    return ESC + b"a" + bytes((_ALIGNMENTS.get(mode, 0),))


def bold(on: bool = True) -> bytes:
    return ESC + b"E" + (b"\x01" if on else b"\x00")


def double_size(on: bool = True) -> bytes:
    return GS + b"!" + (b"\x11" if on else b"\x00")


def font_size(width: int = 1, height: int = 1) -> bytes:
    """Character magnification, 1..8 in each direction (GS ! n)."""
    w = _clamp(width, 1, 8, 1)
    h = _clamp(height, 1, 8, 1)
    return GS + b"!" + bytes((((w - 1) << 4) | (h - 1),))


def feed(lines: int = 0) -> bytes:
    return ESC + b"d" + bytes((_clamp(lines, 0, 255, 0),))


def cut() -> bytes:
    return PAPER_FULL_CUT


def select_codepage(name: str | None) -> bytes:
    """ESC t n for a codepage name; unknown names select cp858."""
    table = CODEPAGE_TABLES.get((name or "").strip().lower(), CODEPAGE_TABLES[DEFAULT_CODEPAGE])
    return CODEPAGE_CHANGE + bytes((table,))


def qr_store_data(payload: str, codepage: str = DEFAULT_CODEPAGE) -> bytes:
    """Store QR data in the symbol save area (fn 80)."""
    data = encode(payload, codepage)
    return _QR_PREFIX + _u16le(len(data) + 3) + bytes((_QR_CN, 0x50, 0x30)) + data


def qr_module_size(size: int = 6) -> bytes:
    return _QR_PREFIX + bytes((0x03, 0x00, _QR_CN, 0x43, _clamp(size, 1, 16, 6)))


def qr_error_correction(level: str = DEFAULT_QR_ECC) -> bytes:
    key = (level or "").strip().upper()
    value = QR_ECC_LEVELS.get(key, QR_ECC_LEVELS[DEFAULT_QR_ECC])
    return _QR_PREFIX + bytes((0x03, 0x00, _QR_CN, 0x45, value))


def qr_print() -> bytes:
    return _QR_PREFIX + bytes((0x03, 0x00, _QR_CN, 0x51, 0x30))


def raster_transfer(bitmap: RasterBitmap) -> bytes:
    """GS v 0 in normal density with row byte-width and row count."""
    header = GS + b"v0" + b"\x00" + _u16le(bitmap.row_bytes) + _u16le(bitmap.height)
    return header + bitmap.data
