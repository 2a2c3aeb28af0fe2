"""
Date utilities: parsing the heterogeneous date labels used by indicator
feeds into comparable ``datetime.date`` values, and formatting them back.

Accepted input formats:
  - ``MM/YY``       → first day of that month, year ``20YY``
  - ``MM/YYYY``     → first day of that month
  - ``YYYY-MM-DD``  → that day (a trailing ``THH:MM:SS`` part is ignored)

Two-digit years always map to 2000-2099. There is no 19xx windowing, so
a label like ``"06/98"`` means June 2098, not June 1998.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional


def parse_date_string(text: Optional[str]) -> Optional[date]:
    """Parse a date label into a canonical ``date``, or ``None``.

    Args:
        text: ``"3/24"``, ``"03/2024"``, ``"2024-03-15"`` and similar.

    Returns:
        The parsed date, or ``None`` if the label is empty or unusable.

    Examples::

        parse_date_string("3/24")        # date(2024, 3, 1)
        parse_date_string("03/2024")     # date(2024, 3, 1)
        parse_date_string("2024-03-15")  # date(2024, 3, 15)
        parse_date_string("not-a-date")  # None
    """
    if not text:
        return None
    text = text.strip()

    if "/" in text:
        parts = text.split("/")
        if len(parts) != 2:
            return None
        month_str, year_str = parts[0].strip(), parts[1].strip()
        if not month_str.isdigit() or not year_str.isdigit():
            return None
        month = int(month_str)
        if len(year_str) == 2:
            year = 2000 + int(year_str)
        elif len(year_str) == 4:
            year = int(year_str)
        else:
            return None
        if not 1 <= month <= 12 or year < 1:
            return None
        return date(year, month, 1)

    if "-" in text and len(text) >= 10:
        head, tail = text[:10], text[10:]
        if tail and tail[0] not in ("T", " "):
            return None
        try:
            return date.fromisoformat(head)
        except ValueError:
            return None

    return None


def format_date(d: date) -> str:
    """Format a date as zero-padded ``YYYY-MM-DD``."""
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


def normalize_date_string(text: str) -> str:
    """Return the canonical ``YYYY-MM-DD`` form of ``text``.

    Labels that cannot be parsed are returned unchanged.
    """
    parsed = parse_date_string(text)
    if parsed is None:
        return text
    return format_date(parsed)


def format_month_label(d: date) -> str:
    """Format a date as the ``MM/YYYY`` label used by the indicator feeds.

    Four-digit years keep pre-2000 observations (FRED history starts in the
    1940s) from being read back as 20xx.
    """
    return f"{d.month:02d}/{d.year:04d}"


def month_labels(months: int, today: Optional[date] = None) -> list[str]:
    """Return the last ``months`` month labels (``M/YYYY``), oldest first.

    The final label is the month containing ``today``.

    Raises:
        ValueError: If ``months < 1``.
    """
    if months < 1:
        raise ValueError(f"months must be >= 1, got {months}.")
    today = today or utcnow().date()
    labels: list[str] = []
    for offset in range(months - 1, -1, -1):
        total = today.year * 12 + (today.month - 1) - offset
        year, month_index = divmod(total, 12)
        labels.append(f"{month_index + 1}/{year}")
    return labels


def utcnow() -> datetime:
    """Return the current UTC datetime with timezone info.

    Prefer this over ``datetime.utcnow()`` (which returns naive datetimes).
    """
    return datetime.now(tz=timezone.utc)
