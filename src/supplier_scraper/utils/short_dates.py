"""Conversions for the upstream ``DDMONYY`` short-date form (e.g. ``10JAN26``)."""
from __future__ import annotations

import re
from datetime import date

MONTHS = {
    "JAN": 1,
    "FEB": 2,
    "MAR": 3,
    "APR": 4,
    "MAY": 5,
    "JUN": 6,
    "JUL": 7,
    "AUG": 8,
    "SEP": 9,
    "OCT": 10,
    "NOV": 11,
    "DEC": 12,
}
_MONTH_NAMES = {number: name for name, number in MONTHS.items()}
_SHORT_DATE = re.compile(r"^(\d{2})([A-Za-z]{3})(\d{2})$")


def parse_short_date(value: str) -> date:
    """Parse ``DDMONYY``; the year is always read as ``2000 + YY``."""
    match = _SHORT_DATE.match(value.strip())
    if not match:
        raise ValueError(f"Not a short date: {value!r}")
    day, month_name, year = match.groups()
    month = MONTHS.get(month_name.upper())
    if month is None:
        raise ValueError(f"Unknown month abbreviation in {value!r}")
    return date(2000 + int(year), month, int(day))


def format_short_date(value: date) -> str:
    return f"{value.day:02d}{_MONTH_NAMES[value.month]}{value.year % 100:02d}"
