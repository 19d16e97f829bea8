# test/conftest.py
from __future__ import annotations

import numpy as np
import pytest

from dssncdf.io.dss_reader import DssRecord


class FakeDssReader:
    """In-memory DssRecordReader: pathname -> DssRecord."""

    def __init__(self, records: dict[str, DssRecord], broken: set[str] | None = None):
        self.records = dict(records)
        self.broken = set(broken or ())
        self.reads: list[str] = []

    def pathnames(self) -> list[str]:
        return list(self.records)

    def read_ts(self, pathname: str) -> DssRecord:
        self.reads.append(pathname)
        if pathname in self.broken:
            raise OSError(f"corrupt record {pathname}")
        return self.records[pathname]


def _record(times, values, units="CFS", data_type="PER-AVER") -> DssRecord:
    return DssRecord(
        times=np.array(times, dtype="datetime64[s]"),
        values=np.array(values, dtype=float),
        units=units,
        data_type=data_type,
    )


@pytest.fixture
def record():
    return _record


@pytest.fixture
def fake_reader():
    return FakeDssReader


@pytest.fixture
def days():
    """days(n, start="2000-01-01") -> n consecutive daily timestamps."""

    def _days(n: int, start: str = "2000-01-01") -> np.ndarray:
        return np.datetime64(start, "s") + np.arange(n) * np.timedelta64(1, "D")

    return _days
