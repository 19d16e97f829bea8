# dssncdf/core/timeaxis.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable

import numpy as np

from .exceptions import InvalidTimeAxis


TIME_UNIT = "s"
DEFAULT_TZ_LABEL = "UTC"
# Width of the canonical label "0000-00-00 00:00:00 UTC"
TIMESTAMP_NCHAR = len("0000-00-00 00:00:00 UTC")


def as_datetime64(values: Iterable | np.ndarray) -> np.ndarray:
    """Coerce datetimes, ISO strings or datetime64 values to ``datetime64[s]``.

    Timezone-aware datetimes are converted to UTC and made naive first,
    numpy has no notion of zones.
    """
    if isinstance(values, np.ndarray) and np.issubdtype(values.dtype, np.datetime64):
        return values.astype(f"datetime64[{TIME_UNIT}]")

    items = list(values)
    naive = [
        v.astimezone(timezone.utc).replace(tzinfo=None)
        if isinstance(v, datetime) and v.tzinfo is not None
        else v
        for v in items
    ]
    return np.array(naive, dtype=f"datetime64[{TIME_UNIT}]")


def check_tz_label(label: str) -> str:
    """A zone label is one whitespace-free token, so labels parse back as written."""
    label = str(label).strip()
    if not label or len(label.split()) != 1:
        raise InvalidTimeAxis(f"Zone label must be a single token such as 'UTC' or 'PST', got {label!r}")
    return label


def format_timestamp(ts, tz_label: str = DEFAULT_TZ_LABEL) -> str:
    """Render one timestamp as ``YYYY-MM-DD HH:MM:SS <TZ-label>``."""
    iso = np.datetime_as_string(np.datetime64(ts, TIME_UNIT), unit=TIME_UNIT)
    return f"{iso.replace('T', ' ')} {tz_label}"


def parse_timestamp(label: str) -> np.datetime64:
    """Parse a canonical label back into ``datetime64[s]``.

    The trailing zone label is dropped, stored instants are read as written.
    """
    parts = str(label).strip().split()
    if len(parts) not in (2, 3):
        raise InvalidTimeAxis(f"Unrecognized timestamp label: {label!r}")
    try:
        return np.datetime64(f"{parts[0]}T{parts[1]}", TIME_UNIT)
    except ValueError as e:
        raise InvalidTimeAxis(f"Unrecognized timestamp label: {label!r}") from e


@dataclass(frozen=True, slots=True)
class TimeAxis:
    """Fixed, strictly ascending sequence of destination timestamps."""

    time: np.ndarray = field(repr=False)

    def __post_init__(self) -> None:
        try:
            t = as_datetime64(self.time)
        except (TypeError, ValueError) as e:
            raise InvalidTimeAxis(f"`time` cannot be read as timestamps: {e}") from e

        if t.ndim != 1:
            raise InvalidTimeAxis(f"`time` must be 1D, got shape {t.shape}")
        if t.size > 0:
            if np.isnat(t).any():
                raise InvalidTimeAxis("`time` contains NaT values.")
            if np.any(np.diff(t) <= np.timedelta64(0, TIME_UNIT)):
                raise InvalidTimeAxis("`time` must be strictly ascending (no duplicates).")

        t.setflags(write=False)
        object.__setattr__(self, "time", t)

    @classmethod
    def from_labels(cls, labels: Iterable[str]) -> "TimeAxis":
        return cls(time=np.array([parse_timestamp(s) for s in labels], dtype=f"datetime64[{TIME_UNIT}]"))

    def __len__(self) -> int:
        return int(self.time.size)

    @property
    def n(self) -> int:
        return len(self)

    @property
    def start(self) -> np.datetime64 | None:
        return None if self.n == 0 else self.time[0]

    @property
    def end(self) -> np.datetime64 | None:
        return None if self.n == 0 else self.time[-1]

    def positions_of(self, ts) -> np.ndarray:
        """All axis positions equal to `ts` (at most one for a valid axis)."""
        return np.flatnonzero(self.time == np.datetime64(ts, TIME_UNIT))

    def to_labels(self, tz_label: str = DEFAULT_TZ_LABEL) -> list[str]:
        return [format_timestamp(t, tz_label) for t in self.time]
