# evstrack/aggregation/windows.py

import calendar
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class Window:
    """Half-open time window [start, end). Either bound may be open."""
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    def contains(self, moment: datetime) -> bool:
        if self.start is not None and moment < self.start:
            return False
        if self.end is not None and moment >= self.end:
            return False
        return True

    @property
    def is_calendar_month(self) -> bool:
        if self.start is None or self.end is None:
            return False
        return (
            self.start == _month_start(self.start.year, self.start.month)
            and self.end == _next_month_start(self.start)
        )

    @classmethod
    def calendar_month(cls, year: int, month: int) -> "Window":
        start = _month_start(year, month)
        return cls(start=start, end=_next_month_start(start))

    @classmethod
    def current_month(cls, now: datetime) -> "Window":
        return cls.calendar_month(now.year, now.month)

    def previous(self) -> "Window":
        """
        The immediately preceding window: the prior calendar month for a
        month window, otherwise an equal-length window ending at start.
        """
        if self.start is None or self.end is None:
            raise ValueError("An open-ended window has no previous period")

        if self.is_calendar_month:
            year, month = _shift_month(self.start.year, self.start.month, -1)
            return Window.calendar_month(year, month)

        length = self.end - self.start
        return Window(start=self.start - length, end=self.start)


class Period(str, Enum):
    TODAY = "Today"
    LAST_7_DAYS = "Last 7 Days"
    LAST_MONTH = "Last Month"
    LAST_3_MONTHS = "Last 3 Months"
    ALL_TIME = "All Time"


def trailing_window(period: Period, now: datetime) -> Window:
    """Window from the period's start up to (and not bounded after) now."""
    if period == Period.TODAY:
        return Window(start=now.replace(hour=0, minute=0, second=0, microsecond=0))
    if period == Period.LAST_7_DAYS:
        return Window(start=now - timedelta(days=7))
    if period == Period.LAST_MONTH:
        return Window(start=_shift_same_day(now, -1))
    if period == Period.LAST_3_MONTHS:
        return Window(start=_shift_same_day(now, -3))
    return Window()


def _month_start(year: int, month: int) -> datetime:
    return datetime(year, month, 1)


def _next_month_start(start: datetime) -> datetime:
    year, month = _shift_month(start.year, start.month, 1)
    return _month_start(year, month)


def _shift_month(year: int, month: int, delta: int):
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def _shift_same_day(moment: datetime, months: int) -> datetime:
    year, month = _shift_month(moment.year, moment.month, months)
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)
