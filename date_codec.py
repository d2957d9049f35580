"""
Visionary Date Codec (`date_codec.py`)

Every date the pipeline stores (createdDate, reviewDate, editDate, compDate,
launchDate) is a plain DD/MM/YYYY string, e.g. "10/05/2024" is 10 May 2024.
An empty string means "not stamped".

This module is the ONLY place that knows about that format. The workflow
engine stamps dates with `format_date(...)` and the queue filters compare
them through `DateRange`. Nothing else should call `strptime` on a stored
date.

The "today" used for stamping can be emulated (the sidebar date picker lets a
user act as if it were another day), so every stamping function takes the
date explicitly instead of reading the clock.
"""

from datetime import date, datetime
from typing import NamedTuple, Optional, Union

DATE_FORMAT = "%d/%m/%Y"

DateLike = Union[date, datetime, str, None]


def parse_date(value: DateLike) -> Optional[date]:
    """
    Turns a stored DD/MM/YYYY string into a `date`.
    Returns None for empty or malformed values (they never match a filter).
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    if not text:
        return None

    parts = text.split("/")
    if len(parts) != 3:
        return None
    try:
        day, month, year = (int(p) for p in parts)
        return date(year, month, day)
    except ValueError:
        return None


def format_date(value: DateLike) -> str:
    """Formats a date as DD/MM/YYYY. Empty input gives an empty string."""
    parsed = parse_date(value)
    if parsed is None:
        return ""
    return parsed.strftime(DATE_FORMAT)


def today(emulated: DateLike = None) -> str:
    """Returns the stamping date: the emulated date if one is set, else the real one."""
    if emulated:
        stamped = format_date(emulated)
        if stamped:
            return stamped
    return date.today().strftime(DATE_FORMAT)


def sort_key(value: DateLike) -> int:
    """
    Ordinal used for sorting by a stored date.
    Unstamped dates sort as 0 (i.e. before every real date).
    """
    parsed = parse_date(value)
    return parsed.toordinal() if parsed else 0


def days_since(value: DateLike, reference: DateLike = None) -> str:
    """
    Display helper for the Live Ads page: "1 day", "12 days" or "-".
    `reference` defaults to the real today.
    """
    launched = parse_date(value)
    if launched is None:
        return "-"
    ref = parse_date(reference) or date.today()
    diff = abs((ref - launched).days)
    return f"{diff} day{'' if diff == 1 else 's'}"


def parse_filter_bound(value: DateLike) -> Optional[date]:
    """
    Filter bounds come from `st.date_input` (a `date`) or from ISO text
    ("2024-05-10"). Stored-format text is accepted too.
    """
    if value is None or value == "":
        return None
    if isinstance(value, (date, datetime)):
        return parse_date(value)
    text = str(value).strip()
    try:
        return datetime.strptime(text, "%Y-%m-%d").date()
    except ValueError:
        return parse_date(text)


class DateRange(NamedTuple):
    """
    An inclusive [start, end] calendar range.
    An unset start means "from the beginning"; an unset end means "no upper limit".
    """
    start: Optional[date] = None
    end: Optional[date] = None

    @classmethod
    def from_bounds(cls, start: DateLike = None, end: DateLike = None) -> "DateRange":
        return cls(parse_filter_bound(start), parse_filter_bound(end))

    @property
    def active(self) -> bool:
        return self.start is not None or self.end is not None

    def contains(self, value: DateLike, keep_missing: bool = False) -> bool:
        """
        True when the stored date falls inside the range.
        An inactive range matches everything. While the range is active, a
        missing/malformed date matches only if `keep_missing` is set.
        """
        if not self.active:
            return True
        stamped = parse_date(value)
        if stamped is None:
            return keep_missing
        lower = self.start or date.min
        if stamped < lower:
            return False
        if self.end is not None and stamped > self.end:
            return False
        return True


NO_RANGE = DateRange()
