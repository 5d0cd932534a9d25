from __future__ import annotations

import calendar
import datetime as dt
from typing import Optional, Sequence, Tuple

from chainlookup.core.dto import Transaction


def filter_by_time_window(
    transactions: Sequence[Transaction],
    start: Optional[int] = None,
    end: Optional[int] = None,
) -> Sequence[Transaction]:
    """
    Keep transactions with start <= timestamp <= end, in input order.
    A None bound is open on that side; with both None the input is returned as is.
    """
    if start is None and end is None:
        return transactions
    return [
        t for t in transactions
        if (start is None or t.timestamp >= start)
        and (end is None or t.timestamp <= end)
    ]


def _day_start(d: dt.date) -> int:
    return calendar.timegm(d.timetuple())


def day_window(
    start_date: Optional[dt.date],
    end_date: Optional[dt.date],
) -> Tuple[Optional[int], Optional[int]]:
    """
    Inclusive unix bounds covering whole UTC days: 00:00:00 of `start_date`
    through 23:59:59 of `end_date`.
    """
    start = _day_start(start_date) if start_date is not None else None
    end = _day_start(end_date) + 24 * 3600 - 1 if end_date is not None else None
    return start, end


def parse_day(value: Optional[str]) -> Optional[dt.date]:
    if not value:
        return None
    return dt.date.fromisoformat(value)
