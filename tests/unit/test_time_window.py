from datetime import datetime

import pytest

from marcfix.schemas import BatchProgress, TimeWindow
from marcfix.services.validation import ConfigError
from marcfix.services.workflows.batch import is_within_time_window


def test_parse_wrapping_window():
    window = TimeWindow.from_string("17-06")
    assert (window.start_hour, window.end_hour) == (17, 6)
    assert str(window) == "17-06"


@pytest.mark.parametrize(
    ("hour", "expected"),
    [(17, True), (20, True), (23, True), (0, True), (5, True), (6, False), (10, False), (16, False)],
)
def test_wrapping_window_hours(hour, expected):
    assert TimeWindow.from_string("17-06").contains_hour(hour) is expected


@pytest.mark.parametrize(("hour", "expected"), [(7, False), (8, True), (15, True), (16, False)])
def test_same_day_window_hours(hour, expected):
    assert TimeWindow.from_string("08-16").contains_hour(hour) is expected


def test_equal_bounds_mean_whole_day():
    window = TimeWindow.from_string("06-06")
    assert all(window.contains_hour(hour) for hour in range(24))


@pytest.mark.parametrize("value", ["", "17", "17-", "a-b", "25-06", "17-24", "17-06-01"])
def test_invalid_window_strings(value):
    with pytest.raises(ConfigError):
        TimeWindow.from_string(value)


def test_gate_uses_local_clock_hour():
    window = TimeWindow.from_string("17-06")
    assert is_within_time_window(window, datetime(2026, 10, 19, 20, 0))
    assert not is_within_time_window(window, datetime(2026, 10, 19, 10, 0))


def test_no_window_always_open():
    assert is_within_time_window(None, datetime(2026, 10, 19, 10, 0))


def test_progress_percentage():
    assert BatchProgress(processed=5, total=12).percent == 42
    assert str(BatchProgress(processed=12, total=12)) == "12/12 (100 %) records processed."
    assert BatchProgress(processed=0, total=0).percent == 100
