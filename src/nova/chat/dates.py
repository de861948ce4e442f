"""Date parsing into the ``dd-mm-yyyy`` form the price source expects."""

from __future__ import annotations

import re
from datetime import date, timedelta

from nova.errors import InvalidInputError

MONTHS: dict[str, int] = {
    "january": 1,
    "february": 2,
    "march": 3,
    "april": 4,
    "may": 5,
    "june": 6,
    "july": 7,
    "august": 8,
    "september": 9,
    "october": 10,
    "november": 11,
    "december": 12,
}
# Three-letter abbreviations ("dec", "sep") and "sept".
MONTHS.update({name[:3]: num for name, num in list(MONTHS.items())})
MONTHS["sept"] = 9

_NUMERIC_SPLIT = re.compile(r"[-/.]")
_ORDINAL = re.compile(r"^(\d{1,2})(?:st|nd|rd|th)?$", re.IGNORECASE)


def _invalid(text: str, reason: str) -> InvalidInputError:
    return InvalidInputError(
        f"{reason}: {text!r}. Please use DD-MM-YYYY or DD Month YYYY."
    )


def _build(text: str, year: int, month: int, day: int) -> date:
    if not 1 <= day <= 31:
        raise _invalid(text, "Day must be between 1 and 31")
    try:
        return date(year, month, day)
    except ValueError as exc:
        raise _invalid(text, "Not a real calendar date") from exc


def _to_int(text: str, field: str) -> int:
    if not field.isdigit():
        raise _invalid(text, "Unrecognized date format")
    return int(field)


def _parse_spelled(text: str, parts: list[str]) -> date:
    match = _ORDINAL.match(parts[0])
    if not match:
        raise _invalid(text, "Invalid day")
    day = int(match.group(1))

    month = MONTHS.get(parts[1].lower().rstrip(","))
    if month is None:
        raise _invalid(text, "Invalid month name")

    year_field = parts[2]
    year = _to_int(text, year_field)
    if len(year_field) == 2:
        year += 2000
    elif len(year_field) != 4:
        raise _invalid(text, "Invalid year")
    return _build(text, year, month, day)


def _parse_numeric(text: str, parts: list[str]) -> date:
    first, _, last = parts
    a, b, c = (_to_int(text, p) for p in parts)

    if len(first) == 4:
        return _build(text, a, b, c)

    if len(last) == 4:
        year = c
    elif len(last) == 2:
        year = 2000 + c
    else:
        raise _invalid(text, "Unrecognized date format")

    # Day-first wins; month-first only when day-first is not a real date.
    try:
        return _build(text, year, b, a)
    except InvalidInputError:
        if 1 <= a <= 12 and b > 12:
            return _build(text, year, a, b)
        raise


def parse_date(text: str) -> date:
    """Parse a human-written date.

    Accepts ``yyyy-mm-dd``, ``dd-mm-yyyy``, ``mm-dd-yyyy`` (separators
    ``-``, ``/`` or ``.``, two- or four-digit years) and spelled dates such as
    ``"1 December 2024"``.

    Raises:
        InvalidInputError: wrong number of fields, unknown month name, day
            outside 1-31, or a date that does not exist.
    """
    cleaned = text.strip()
    words = cleaned.split()
    if len(words) == 3:
        return _parse_spelled(cleaned, words)
    if len(words) != 1:
        raise _invalid(cleaned, "Unrecognized date format")

    parts = _NUMERIC_SPLIT.split(cleaned)
    if len(parts) != 3:
        raise _invalid(cleaned, "Expected three date fields")
    return _parse_numeric(cleaned, parts)


def format_api_date(value: date) -> str:
    return f"{value.day:02d}-{value.month:02d}-{value.year}"


def normalize_date(text: str) -> str:
    """Normalize *text* to ``dd-mm-yyyy``. Idempotent on its own output."""
    return format_api_date(parse_date(text))


def days_ago(days: int, today: date | None = None) -> str:
    """The ``dd-mm-yyyy`` date *days* before *today* (defaults to the current day)."""
    return format_api_date((today or date.today()) - timedelta(days=days))
