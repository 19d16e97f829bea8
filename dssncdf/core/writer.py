# dssncdf/core/writer.py
from __future__ import annotations

import logging
from typing import Protocol

import numpy as np

from .alignment import AlignmentDecision, NoMatch
from .exceptions import VariableNameCollision
from .report import SkipReason, WriteOutcome
from .series import SourceSeries


logger = logging.getLogger(__name__)


class ArrayStore(Protocol):
    """Protocol for destination stores.

    Variables share the single time dimension and are declared at its full
    length. Implementations raise StoreIOError on storage failures.
    """

    def declare_variable(self, name: str, length: int, fill_value: float | None = None) -> None:
        """Raises VariableNameCollision when `name` already exists."""
        ...

    def write_at(self, name: str, start_index: int, values: np.ndarray) -> None:
        ...

    def set_attribute(self, name: str, key: str, value: str) -> None:
        ...


def write_aligned(
    store: ArrayStore,
    axis_length: int,
    decision: AlignmentDecision,
    series: SourceSeries,
    *,
    fill_value: float | None = None,
) -> WriteOutcome:
    """Execute an alignment decision against `store`.

    Order matters: declare, then the offset write, then attributes. Some
    backends only finalize attributes when the handle is released, so the
    caller must keep the handle open until this returns.
    """
    name = series.name

    if isinstance(decision, NoMatch):
        logger.warning("Skipping %s (%s): %s", name, decision.reason.value, decision.detail)
        return WriteOutcome.skipped(name, decision.reason, decision.detail)

    start = decision.start_index
    count = len(series)
    if start + count > axis_length:
        detail = f"{count} values from position {start} exceed axis length {axis_length}"
        logger.warning("Skipping %s (%s): %s", name, SkipReason.RUNS_PAST_AXIS_END.value, detail)
        return WriteOutcome.skipped(name, SkipReason.RUNS_PAST_AXIS_END, detail)

    try:
        store.declare_variable(name, axis_length, fill_value)
    except VariableNameCollision as e:
        logger.warning("Skipping %s (%s): %s", name, e.reason, e)
        return WriteOutcome.skipped(name, e.reason, str(e))

    store.write_at(name, start, series.values)
    for key, value in series.metadata.items():
        store.set_attribute(name, key, str(value))

    logger.info("Wrote %s: %d values at position %d", name, count, start)
    return WriteOutcome.written(name, start_index=start, count=count)
