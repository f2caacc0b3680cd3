from datetime import datetime, timedelta

import pytest

from evstrack.aggregation.windows import Period, Window, trailing_window


def test_calendar_month_is_half_open():
    march = Window.calendar_month(2025, 3)

    assert march.contains(datetime(2025, 3, 1))
    assert march.contains(datetime(2025, 3, 31, 23, 59))
    assert not march.contains(datetime(2025, 4, 1))
    assert not march.contains(datetime(2025, 2, 28, 23, 59))


def test_previous_of_january_is_december_of_prior_year():
    january = Window.calendar_month(2025, 1)
    assert january.previous() == Window.calendar_month(2024, 12)


def test_previous_of_arbitrary_window_has_equal_length():
    start = datetime(2025, 3, 10)
    window = Window(start=start, end=start + timedelta(days=7))

    previous = window.previous()

    assert previous.end == start
    assert previous.start == start - timedelta(days=7)


def test_open_window_has_no_previous_period():
    with pytest.raises(ValueError):
        Window().previous()


def test_trailing_last_month_clamps_to_short_month():
    window = trailing_window(Period.LAST_MONTH, datetime(2025, 3, 31, 15, 0))
    assert window.start == datetime(2025, 2, 28, 15, 0)
    assert window.end is None


def test_trailing_today_starts_at_midnight():
    window = trailing_window(Period.TODAY, datetime(2025, 3, 20, 15, 30))
    assert window.start == datetime(2025, 3, 20)


def test_all_time_contains_everything():
    window = trailing_window(Period.ALL_TIME, datetime(2025, 3, 20))
    assert window.contains(datetime(1999, 1, 1))
