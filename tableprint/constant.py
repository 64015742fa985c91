"""Static protocol tables and printed labels."""

from __future__ import annotations

# ESC t n table numbers for the codepages the printers ship with.
CODEPAGE_TABLES: dict[str, int] = {
    "cp437": 0,
    "cp850": 2,
    "cp858": 19,
    "cp852": 18,
    "cp1252": 16,
}

DEFAULT_CODEPAGE = "cp858"

# Same-width ASCII stand-ins for glyphs a codepage may be missing.
GLYPH_FALLBACKS: dict[str, str] = {
    "…": ".",
    "•": "*",
    "—": "-",
    "–": "-",
    "‘": "'",
    "’": "'",
    "“": '"',
    "”": '"',
    "€": "E",
}

# GS ( k <fn 69> levels.
QR_ECC_LEVELS: dict[str, int] = {
    "L": 48,
    "M": 49,
    "Q": 50,
    "H": 51,
}

DEFAULT_QR_ECC = "H"

# Font width multipliers tried for a place card name, widest first.
ADAPTIVE_NAME_WIDTHS: tuple[int, ...] = (3, 2, 1)
ADAPTIVE_NAME_HEIGHT = 2

ELLIPSIS = "…"

LOGO_WIDTH_RATIO = 0.85
LOGO_THRESHOLD = 190
RASTER_THRESHOLD = 200

WEEKDAY_NAMES: tuple[str, ...] = (
    "lunedì",
    "martedì",
    "mercoledì",
    "giovedì",
    "venerdì",
    "sabato",
    "domenica",
)

DAILY_TITLE = "PRENOTAZIONI"
DEFAULT_OPERATOR = "sistema"
GUEST_PLACEHOLDER = "OSPITE"
NAME_PLACEHOLDER = "—"
FIELD_PLACEHOLDER = "-"
TIME_PLACEHOLDER = "--:--"
QR_CAPTION = "Scansiona il QR del locale"

# Flat daily layout column budget: ORA, TAV, PAX, NOME takes the rest.
FLAT_TIME_WIDTH = 5
FLAT_TABLE_WIDTH = 4
FLAT_PARTY_WIDTH = 3
