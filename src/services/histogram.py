from __future__ import annotations

import datetime
from collections.abc import Mapping
from dataclasses import dataclass


@dataclass(frozen=True)
class MonthCount:
    month: str  # "YYYY-MM"
    count: int


def trailing_months(today: datetime.date, months_back: int) -> list[str]:
    """Return ``YYYY-MM`` labels for the *months_back* months ending with *today*'s month, oldest first."""
    if months_back < 1:
        return []
    labels: list[str] = []
    year, month = today.year, today.month
    for _ in range(months_back):
        labels.append(f"{year:04d}-{month:02d}")
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    labels.reverse()
    return labels


def window_start(today: datetime.date, months_back: int) -> datetime.date:
    """First day of the oldest month in the trailing window."""
    months = trailing_months(today, max(months_back, 1))
    year, month = (int(part) for part in months[0].split("-"))
    return datetime.date(year, month, 1)


def fill_monthly_histogram(
    counts: Mapping[str, int], months_back: int, today: datetime.date
) -> list[MonthCount]:
    """Left-join raw per-month *counts* onto the full trailing month range.

    Months with no rows appear with a count of 0; months in *counts* that fall
    outside the window are ignored.
    """
    return [MonthCount(month, int(counts.get(month, 0))) for month in trailing_months(today, months_back)]
