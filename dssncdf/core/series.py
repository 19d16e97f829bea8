# dssncdf/core/series.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

import numpy as np

from .exceptions import InvalidSeries
from .metadata import coerce_metadata
from .timeaxis import TIME_UNIT, as_datetime64


@dataclass(frozen=True, slots=True)
class SourceSeries:
    """Immutable source series: strictly ascending timestamps + float values + string metadata."""

    name: str
    time: np.ndarray = field(repr=False)
    values: np.ndarray = field(repr=False)
    metadata: Mapping[str, str] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise InvalidSeries("SourceSeries.name must be a non-empty string.")

        try:
            t = as_datetime64(self.time)
        except (TypeError, ValueError) as e:
            raise InvalidSeries(f"`time` cannot be read as timestamps: {e}") from e
        try:
            v = np.asarray(self.values, dtype=np.float64)
        except (TypeError, ValueError) as e:
            raise InvalidSeries(f"`values` must be numeric: {e}") from e

        if t.ndim != 1:
            raise InvalidSeries(f"`time` must be 1D, got shape {t.shape}")
        if v.ndim != 1:
            raise InvalidSeries(f"`values` must be 1D, got shape {v.shape}")
        if t.size != v.size:
            raise InvalidSeries(
                f"`time` and `values` must have same length, got {t.size} vs {v.size}"
            )

        if t.size > 0:
            if np.isnat(t).any():
                raise InvalidSeries("`time` contains NaT values.")
            if np.any(np.diff(t) <= np.timedelta64(0, TIME_UNIT)):
                raise InvalidSeries("`time` must be strictly ascending (no duplicates).")

        object.__setattr__(self, "time", t)
        object.__setattr__(self, "values", v)
        object.__setattr__(self, "metadata", coerce_metadata(self.metadata))

    def __len__(self) -> int:
        return int(self.time.size)

    @property
    def n(self) -> int:
        return len(self)

    @property
    def t_start(self) -> np.datetime64 | None:
        return None if self.n == 0 else self.time[0]

    @property
    def t_end(self) -> np.datetime64 | None:
        return None if self.n == 0 else self.time[-1]
