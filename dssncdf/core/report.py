# dssncdf/core/report.py
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator, Mapping

from .exceptions import InvalidReport, OutcomeNotFound


class SkipReason(str, Enum):
    """Reason codes reported for a variable that was not written."""

    NO_OVERLAP = "no_overlap"
    RUNS_PAST_AXIS_END = "runs_past_axis_end"
    ELEMENTWISE_MISMATCH = "elementwise_mismatch"
    NAME_COLLISION = "name_collision"
    SOURCE_READ_ERROR = "source_read_error"


WRITTEN = "written"
SKIPPED = "skipped"


@dataclass(frozen=True, slots=True)
class WriteOutcome:
    name: str
    status: str
    reason: SkipReason | None = None
    start_index: int | None = None
    count: int = 0
    detail: str = ""

    @classmethod
    def written(cls, name: str, start_index: int, count: int) -> "WriteOutcome":
        return cls(name=name, status=WRITTEN, start_index=start_index, count=count)

    @classmethod
    def skipped(cls, name: str, reason: SkipReason | str, detail: str = "") -> "WriteOutcome":
        return cls(name=name, status=SKIPPED, reason=SkipReason(reason), detail=detail)

    @property
    def ok(self) -> bool:
        return self.status == WRITTEN


@dataclass(frozen=True, slots=True)
class ConversionReport:
    """
    Per-variable outcomes of one batch run, in processing order.

    dict-like access by variable name: report["FLOW"]
    """
    outcomes: Mapping[str, WriteOutcome] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        normalized: dict[str, WriteOutcome] = {}
        for key, outcome in self.outcomes.items():
            if outcome.name != key:
                raise InvalidReport(
                    f"Outcome name mismatch: key '{key}' but WriteOutcome.name is '{outcome.name}'."
                )
            normalized[key] = outcome
        object.__setattr__(self, "outcomes", normalized)

    # ---- dict-like API ----
    def __len__(self) -> int:
        return len(self.outcomes)

    def __iter__(self) -> Iterator[str]:
        return iter(self.outcomes)

    def __contains__(self, name: object) -> bool:
        return name in self.outcomes

    def __getitem__(self, name: str) -> WriteOutcome:
        try:
            return self.outcomes[name]
        except KeyError as e:
            raise OutcomeNotFound(name) from e

    def items(self) -> Iterable[tuple[str, WriteOutcome]]:
        return self.outcomes.items()

    def values(self) -> Iterable[WriteOutcome]:
        return self.outcomes.values()

    # ---- summaries ----
    @property
    def written(self) -> list[WriteOutcome]:
        return [o for o in self.outcomes.values() if o.ok]

    @property
    def skipped(self) -> list[WriteOutcome]:
        return [o for o in self.outcomes.values() if not o.ok]

    @property
    def n_written(self) -> int:
        return len(self.written)

    @property
    def n_skipped(self) -> int:
        return len(self.skipped)

    def reasons(self) -> dict[SkipReason, int]:
        return dict(Counter(o.reason for o in self.skipped))

    def add(self, outcome: WriteOutcome) -> "ConversionReport":
        """Return a new report with `outcome` appended. Names must be unique."""
        if outcome.name in self.outcomes:
            raise InvalidReport(f"Outcome for '{outcome.name}' already recorded.")
        return ConversionReport(outcomes={**self.outcomes, outcome.name: outcome})

    @classmethod
    def from_outcomes(cls, outcomes: Iterable[WriteOutcome]) -> "ConversionReport":
        """Build a report from outcomes in processing order. Names must be unique."""
        by_name: dict[str, WriteOutcome] = {}
        for outcome in outcomes:
            if outcome.name in by_name:
                raise InvalidReport(f"Outcome for '{outcome.name}' already recorded.")
            by_name[outcome.name] = outcome
        return cls(outcomes=by_name)
