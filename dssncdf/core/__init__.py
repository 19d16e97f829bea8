# dssncdf/core/__init__.py
"""
Core domain objects for dssncdf.

This module defines the format-agnostic model and the alignment core:
- TimeAxis: fixed, strictly ascending destination timestamps
- SourceSeries: one named series to be placed on the axis
- decide / check: exact-equality placement of a series on the axis
- write_aligned: executes a decision against an ArrayStore
- WriteOutcome / ConversionReport: per-variable results

The core layer is independent from DSS and netCDF.
"""

from .timeaxis import (
    TimeAxis,
    TIMESTAMP_NCHAR,
    DEFAULT_TZ_LABEL,
    as_datetime64,
    check_tz_label,
    format_timestamp,
    parse_timestamp,
)
from .series import SourceSeries
from .metadata import StoreMeta, coerce_metadata
from .alignment import AlignmentDecision, ExactMatch, OffsetMatch, NoMatch, decide, check
from .writer import ArrayStore, write_aligned
from .report import SkipReason, WriteOutcome, ConversionReport, WRITTEN, SKIPPED
from .exceptions import (
    CoreError,
    InvalidTimeAxis,
    InvalidSeries,
    InvalidPathname,
    InvalidReport,
    AxisIntegrityError,
    AlignmentError,
    NoTemporalOverlap,
    AxisOverrun,
    ElementwiseMismatch,
    VariableNameCollision,
    SourceReadError,
    StoreIOError,
    VariableNotFound,
    OutcomeNotFound,
)


__all__ = [
    # time axis
    "TimeAxis",
    "TIMESTAMP_NCHAR",
    "DEFAULT_TZ_LABEL",
    "as_datetime64",
    "check_tz_label",
    "format_timestamp",
    "parse_timestamp",

    # series + metadata
    "SourceSeries",
    "StoreMeta",
    "coerce_metadata",

    # alignment
    "AlignmentDecision",
    "ExactMatch",
    "OffsetMatch",
    "NoMatch",
    "decide",
    "check",

    # writing
    "ArrayStore",
    "write_aligned",
    "SkipReason",
    "WriteOutcome",
    "ConversionReport",
    "WRITTEN",
    "SKIPPED",

    # exceptions
    "CoreError",
    "InvalidTimeAxis",
    "InvalidSeries",
    "InvalidPathname",
    "InvalidReport",
    "AxisIntegrityError",
    "AlignmentError",
    "NoTemporalOverlap",
    "AxisOverrun",
    "ElementwiseMismatch",
    "VariableNameCollision",
    "SourceReadError",
    "StoreIOError",
    "VariableNotFound",
    "OutcomeNotFound",
]
