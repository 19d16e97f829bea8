# test/test_timeaxis.py
from datetime import datetime, timedelta, timezone

import numpy as np
import pytest

from dssncdf.core import (
    TimeAxis,
    InvalidTimeAxis,
    TIMESTAMP_NCHAR,
    check_tz_label,
    format_timestamp,
    parse_timestamp,
)


def test_init_ok_basic(days):
    ax = TimeAxis(time=days(3))

    assert ax.n == 3
    assert len(ax) == 3
    assert ax.start == np.datetime64("2000-01-01T00:00:00")
    assert ax.end == np.datetime64("2000-01-03T00:00:00")
    assert ax.time.dtype == np.dtype("datetime64[s]")


def test_accepts_strings_and_datetimes():
    a = TimeAxis(time=["2000-01-01", "2000-01-02"])
    b = TimeAxis(time=[datetime(2000, 1, 1), datetime(2000, 1, 2)])
    assert np.array_equal(a.time, b.time)


def test_aware_datetimes_are_converted_to_utc():
    tz = timezone(timedelta(hours=-8))
    ax = TimeAxis(time=[datetime(2000, 1, 1, 0, 0, tzinfo=tz)])
    assert ax.start == np.datetime64("2000-01-01T08:00:00")


def test_time_is_read_only(days):
    ax = TimeAxis(time=days(2))
    with pytest.raises(ValueError):
        ax.time[0] = np.datetime64("1999-01-01")


def test_rejects_duplicates():
    with pytest.raises(InvalidTimeAxis):
        TimeAxis(time=["2000-01-01", "2000-01-01"])


def test_rejects_descending():
    with pytest.raises(InvalidTimeAxis):
        TimeAxis(time=["2000-01-02", "2000-01-01"])


def test_rejects_nat_and_non_1d():
    with pytest.raises(InvalidTimeAxis):
        TimeAxis(time=np.array(["2000-01-01", "NaT"], dtype="datetime64[s]"))
    with pytest.raises(InvalidTimeAxis):
        TimeAxis(time=np.array([["2000-01-01", "2000-01-02"]], dtype="datetime64[s]"))


def test_rejects_garbage():
    with pytest.raises(InvalidTimeAxis):
        TimeAxis(time=["not a date"])


def test_positions_of(days):
    ax = TimeAxis(time=days(5))
    assert ax.positions_of(np.datetime64("2000-01-03")).tolist() == [2]
    assert ax.positions_of(np.datetime64("2001-01-01")).size == 0


def test_empty_axis_bounds():
    ax = TimeAxis(time=[])
    assert ax.n == 0
    assert ax.start is None
    assert ax.end is None


class TestCanonicalLabels:
    """Timestamp labels stored in the destination file."""

    def test_format(self):
        assert format_timestamp(np.datetime64("2000-01-02T03:04:05")) == "2000-01-02 03:04:05 UTC"
        assert format_timestamp(np.datetime64("2000-01-02"), "PST") == "2000-01-02 00:00:00 PST"

    def test_label_width_matches_declared_length(self):
        assert TIMESTAMP_NCHAR == 23
        assert len(format_timestamp(np.datetime64("1999-12-31T23:59:59"))) == TIMESTAMP_NCHAR

    def test_parse(self):
        assert parse_timestamp("2000-01-02 03:04:05 UTC") == np.datetime64("2000-01-02T03:04:05")
        assert parse_timestamp("2000-01-02 03:04:05") == np.datetime64("2000-01-02T03:04:05")
        assert parse_timestamp("  2000-01-02 03:04:05 UTC ") == np.datetime64("2000-01-02T03:04:05")

    def test_parse_rejects_unknown_layout(self):
        with pytest.raises(InvalidTimeAxis):
            parse_timestamp("2000-01-02")
        with pytest.raises(InvalidTimeAxis):
            parse_timestamp("yesterday at noon")

    def test_labels_round_trip_through_axis(self, days):
        ax = TimeAxis(time=days(4))
        labels = ax.to_labels()
        assert labels[0] == "2000-01-01 00:00:00 UTC"
        assert np.array_equal(TimeAxis.from_labels(labels).time, ax.time)


def test_check_tz_label():
    assert check_tz_label(" PST ") == "PST"
    assert check_tz_label("America/Los_Angeles") == "America/Los_Angeles"
    for bad in ["", "   ", "US Pacific"]:
        with pytest.raises(InvalidTimeAxis):
            check_tz_label(bad)
