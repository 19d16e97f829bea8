# dssncdf/core/alignment.py
"""
Placement of a source series on a fixed destination time axis.

Matching is by exact timestamp equality only. The axis cannot be amended
at its front or in the middle, so a series is either a contiguous
sub-sequence of the axis or it is not written at all.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Union

import numpy as np

from .exceptions import (
    AlignmentError,
    AxisIntegrityError,
    AxisOverrun,
    ElementwiseMismatch,
    NoTemporalOverlap,
)
from .report import SkipReason
from .series import SourceSeries
from .timeaxis import TimeAxis, format_timestamp


@dataclass(frozen=True, slots=True)
class ExactMatch:
    """Series head equals axis head; the write starts at position 0."""

    matched: ClassVar[bool] = True

    @property
    def start_index(self) -> int:
        return 0


@dataclass(frozen=True, slots=True)
class OffsetMatch:
    """Series equals axis[start_index : start_index + len(series)], start_index > 0."""

    start_index: int
    matched: ClassVar[bool] = True

    def __post_init__(self) -> None:
        if self.start_index <= 0:
            raise ValueError("OffsetMatch.start_index must be > 0.")


@dataclass(frozen=True, slots=True)
class NoMatch:
    reason: SkipReason
    detail: str = ""
    matched: ClassVar[bool] = False

    @property
    def start_index(self) -> None:
        return None


AlignmentDecision = Union[ExactMatch, OffsetMatch, NoMatch]


_ERRORS: dict[SkipReason, type[AlignmentError]] = {
    SkipReason.NO_OVERLAP: NoTemporalOverlap,
    SkipReason.RUNS_PAST_AXIS_END: AxisOverrun,
    SkipReason.ELEMENTWISE_MISMATCH: ElementwiseMismatch,
}


def _first_mismatch(a: np.ndarray, b: np.ndarray) -> int:
    return int(np.flatnonzero(a != b)[0])


def decide(axis: TimeAxis, series: SourceSeries) -> AlignmentDecision:
    """Decide whether and where `series` maps onto `axis`. Pure, no I/O."""
    m, n = len(series), len(axis)
    if m == 0:
        return NoMatch(SkipReason.NO_OVERLAP, "series is empty")

    s, a = series.time, axis.time
    overlap = min(m, n)

    if np.array_equal(s[:overlap], a[:overlap]):
        if m > n:
            # Excess values past the axis end are never dropped silently
            return NoMatch(
                SkipReason.RUNS_PAST_AXIS_END,
                f"series has {m} steps but the axis only {n}",
            )
        return ExactMatch()

    first = format_timestamp(s[0])
    positions = axis.positions_of(s[0])
    if positions.size == 0:
        return NoMatch(SkipReason.NO_OVERLAP, f"series start {first} is not on the axis")
    if positions.size > 1:
        raise AxisIntegrityError(
            f"series start {first} matches axis positions {positions.tolist()}"
        )

    start_index = int(positions[0])
    if start_index == 0:
        k = _first_mismatch(s[:overlap], a[:overlap])
        return NoMatch(
            SkipReason.ELEMENTWISE_MISMATCH,
            f"series step {k} ({format_timestamp(s[k])}) differs from axis ({format_timestamp(a[k])})",
        )

    remaining = n - start_index
    if m > remaining:
        return NoMatch(
            SkipReason.RUNS_PAST_AXIS_END,
            f"series of {m} steps starting at position {start_index} overruns axis of {n}",
        )

    window = a[start_index:start_index + m]
    if not np.array_equal(s, window):
        k = _first_mismatch(s, window)
        return NoMatch(
            SkipReason.ELEMENTWISE_MISMATCH,
            f"series step {k} ({format_timestamp(s[k])}) differs from axis position "
            f"{start_index + k} ({format_timestamp(window[k])})",
        )

    return OffsetMatch(start_index)


def check(axis: TimeAxis, series: SourceSeries) -> ExactMatch | OffsetMatch:
    """Like `decide`, but raises the matching AlignmentError instead of returning NoMatch."""
    decision = decide(axis, series)
    if isinstance(decision, NoMatch):
        raise _ERRORS[decision.reason](f"{series.name}: {decision.detail}")
    return decision
