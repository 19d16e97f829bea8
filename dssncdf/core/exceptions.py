# dssncdf/core/exceptions.py
from __future__ import annotations


class CoreError(Exception):
    """Base error for all dssncdf exceptions."""


# ---- Validation / construction errors ----
class InvalidTimeAxis(CoreError):
    """Raised when a TimeAxis is constructed with invalid timestamps."""


class InvalidSeries(CoreError):
    """Raised when a SourceSeries is constructed with invalid inputs."""


class InvalidPathname(CoreError):
    """Raised when a DSS pathname cannot be parsed."""


class InvalidReport(CoreError):
    """Raised when a ConversionReport is built with inconsistent outcomes."""


class AxisIntegrityError(CoreError):
    """Raised when a timestamp matches more than one axis position."""


# ---- Per-variable failures (reported, the batch continues) ----
class AlignmentError(CoreError):
    """Base error for a series that cannot be placed on the axis."""

    reason: str = ""


class NoTemporalOverlap(AlignmentError):
    """The series start timestamp is absent from the axis."""

    reason = "no_overlap"


class AxisOverrun(AlignmentError):
    """The series would run past the end of the fixed-length axis."""

    reason = "runs_past_axis_end"


class ElementwiseMismatch(AlignmentError):
    """The overlapping timestamps are not elementwise equal."""

    reason = "elementwise_mismatch"


class VariableNameCollision(AlignmentError):
    """The destination store already holds a variable of that name."""

    reason = "name_collision"


class SourceReadError(CoreError):
    """The source store failed to materialize a series."""

    reason = "source_read_error"


# ---- Fatal for the whole run ----
class StoreIOError(CoreError):
    """Underlying array-store failure (disk, quota, corrupt file)."""


# ---- Lookup errors (also behave like KeyError for dict-like APIs) ----
class VariableNotFound(CoreError, KeyError):
    """Raised when a requested variable is not present."""


class OutcomeNotFound(CoreError, KeyError):
    """Raised when a report has no outcome for the requested variable."""
