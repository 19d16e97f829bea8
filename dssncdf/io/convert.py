# dssncdf/io/convert.py
from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Iterable, Protocol
import logging
import os

import numpy as np

from dssncdf.core import (
    ConversionReport,
    DEFAULT_TZ_LABEL,
    InvalidTimeAxis,
    SkipReason,
    SourceReadError,
    SourceSeries,
    StoreMeta,
    TimeAxis,
    VariableNotFound,
    WriteOutcome,
    check_tz_label,
    decide,
    write_aligned,
)
from dssncdf.io.netcdf_store import NetCDFStore, store_lock


logger = logging.getLogger(__name__)


class SourceStore(Protocol):
    def list_variables(self) -> list[str]:
        ...

    def read_series(self, variable_id: str) -> SourceSeries:
        ...


def init_netcdf(
    nc_file: str | os.PathLike,
    datetimes: Iterable,
    *,
    source_name: str | None = None,
    overwrite: bool = False,
    tz_label: str = DEFAULT_TZ_LABEL,
) -> Path:
    """Create a netCDF file with the exact timestamps data will be written against.

    The time axis is fixed from here on. netCDF behaves like one large
    array, so times missing at the front or in the middle can never be
    added later; initialization of the timestamps is left to the caller.

    Timezone-aware datetimes are stored as UTC, so they are only accepted
    with the default "UTC" label.
    """
    tz_label = check_tz_label(tz_label)
    if not isinstance(datetimes, np.ndarray):
        datetimes = list(datetimes)
        if tz_label != DEFAULT_TZ_LABEL and any(
            isinstance(d, datetime) and d.tzinfo is not None for d in datetimes
        ):
            raise InvalidTimeAxis(
                f"Timezone-aware datetimes are stored as UTC and cannot be labelled {tz_label!r}."
            )
    axis = TimeAxis(time=datetimes)
    return NetCDFStore.create(
        nc_file,
        axis,
        meta=StoreMeta.for_source(source_name),
        tz_label=tz_label,
        overwrite=overwrite,
    )


def read_axis(nc_file: str | os.PathLike) -> TimeAxis:
    with NetCDFStore.open(nc_file, "r") as store:
        return store.read_axis()


def write_variable(
    series: SourceSeries,
    nc_file: str | os.PathLike,
    axis: TimeAxis | None = None,
    *,
    fill_value: float | None = None,
) -> WriteOutcome:
    """Write one series into an existing netCDF file.

    `axis` is for efficiency, so the timestamps are not read and parsed
    again for every variable; it is read from the file when omitted.
    """
    with store_lock(nc_file):
        with NetCDFStore.open(nc_file, "a") as store:
            if axis is None:
                axis = store.read_axis()
            decision = decide(axis, series)
            return write_aligned(store, store.axis_length, decision, series, fill_value=fill_value)


def convert(
    source: SourceStore,
    nc_file: str | os.PathLike,
    *,
    variables: Iterable[str] | None = None,
    fill_value: float | None = None,
) -> ConversionReport:
    """Write every source variable (or the given subset) into `nc_file`.

    The file must have been set up by `init_netcdf`. Variables that cannot
    be read or aligned are reported as skipped and the batch continues;
    storage failures (StoreIOError) abort the run.
    """
    axis = read_axis(nc_file)
    ids = list(dict.fromkeys(source.list_variables() if variables is None else variables))
    logger.info("Converting %d variables into %s (%d timestamps)", len(ids), nc_file, axis.n)

    outcomes: list[WriteOutcome] = []
    for vid in ids:
        logger.info("%s", vid)
        try:
            series = source.read_series(vid)
        except (SourceReadError, VariableNotFound) as e:
            logger.warning("Skipping %s (%s): %s", vid, SkipReason.SOURCE_READ_ERROR.value, e)
            outcome = WriteOutcome.skipped(vid, SkipReason.SOURCE_READ_ERROR, str(e))
        else:
            outcome = write_variable(series, nc_file, axis, fill_value=fill_value)
            # Reports are keyed by source id; the netCDF name is in the outcome detail
            outcome = _rekey(outcome, vid, series.name)
        outcomes.append(outcome)

    report = ConversionReport.from_outcomes(outcomes)
    logger.info("Done: %d written, %d skipped", report.n_written, report.n_skipped)
    return report


def _rekey(outcome: WriteOutcome, vid: str, nc_name: str) -> WriteOutcome:
    if outcome.name == vid:
        return outcome
    detail = f"as '{nc_name}'" if not outcome.detail else f"as '{nc_name}': {outcome.detail}"
    return replace(outcome, name=vid, detail=detail)
