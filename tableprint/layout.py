"""Column-based text layout for fixed-pitch receipt fonts."""

from __future__ import annotations

from typing import Callable, Iterable, Sequence, TypeVar

from tableprint.constant import ADAPTIVE_NAME_WIDTHS, ELLIPSIS

T = TypeVar("T")

# Sorts after every valid clock label.
_UNPARSEABLE_CLOCK = (99, 99)


def wrap(text: object, width: int) -> list[str]:
    """
    Greedy word wrap.

    Words are never split: a single word longer than ``width`` is emitted on
    its own line as is.
    """
    words = ("" if text is None else str(text)).split()
    rows: list[str] = []
    current = ""
    for word in words:
        if not current:
            current = word
        elif len(current) + 1 + len(word) <= width:
            current = f"{current} {word}"
        else:
            rows.append(current)
            current = word
    if current:
        rows.append(current)
    return rows


def pad_right(value: object, width: int) -> str:
    """Left-justify to ``width``; longer values are kept whole."""
    return ("" if value is None else str(value)).ljust(width)


def pad_between(left: object, right: object, width: int) -> str:
    left_text = "" if left is None else str(left)
    right_text = "" if right is None else str(right)
    gap = max(1, width - len(left_text) - len(right_text))
    return f"{left_text}{' ' * gap}{right_text}"


def wrap_between(left: object, right: object, width: int) -> list[str]:
    """
    ``pad_between`` for a left text that may need several rows.

    The left text wraps in the space the right text leaves free; the right
    text sits on the first row, continuation rows follow underneath.
    """
    right_text = "" if right is None else str(right)
    rows = wrap(left, max(1, width - len(right_text) - 1)) or [""]
    return [pad_between(rows[0], right_text, width), *rows[1:]]


def rule(width: int, char: str = "-") -> str:
    return char * max(0, width)


def adaptive_single_line_name(
    name: object,
    max_columns: int,
    widths: Sequence[int] = ADAPTIVE_NAME_WIDTHS,
) -> tuple[int, str]:
    """
    Pick the widest font multiplier that keeps ``name`` on one line.

    Returns ``(font_width, text)``; when nothing fits even at the narrowest
    width the text is cut and ends with an ellipsis.
    """
    text = ("" if name is None else str(name)).strip().upper()
    columns = max(1, int(max_columns))
    candidates = [w for w in widths if w >= 1] or [1]

    chosen = candidates[-1]
    for width in candidates:
        if len(text) <= columns // width:
            chosen = width
            break

    budget = columns // chosen
    if len(text) > budget:
        text = text[: max(0, budget - 1)] + ELLIPSIS
    return chosen, text


def _clock_key(label: str) -> tuple[int, int]:
    try:
        hour, minute = (int(part) for part in label.split(":", 1))
    except ValueError:
        return _UNPARSEABLE_CLOCK
    return hour, minute


def group_by_time_of_day(rows: Iterable[T], label: Callable[[T], str]) -> dict[str, list[T]]:
    """
    Bucket rows by their rendered ``HH:MM`` label.

    Keys come back ordered by the parsed (hour, minute), rows keep their
    input order within a bucket.
    """
    groups: dict[str, list[T]] = {}
    for row in rows:
        groups.setdefault(label(row), []).append(row)
    return {key: groups[key] for key in sorted(groups, key=_clock_key)}


def table_sort_key(row: object) -> tuple[int, int, str]:
    """Order by table number, then table id; numbers before free text."""
    value = getattr(row, "table_number", None)
    if value in (None, ""):
        value = getattr(row, "table_id", None)
    if value in (None, ""):
        return (0, 0, "")
    try:
        return (0, int(value), "")
    except (TypeError, ValueError):
        return (1, 0, str(value))


def sort_by_table(rows: Iterable[T]) -> list[T]:
    return sorted(rows, key=table_sort_key)
