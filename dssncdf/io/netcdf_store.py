from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator
import logging
import os
import threading

import netCDF4
import numpy as np

from dssncdf.core import (
    TIMESTAMP_NCHAR,
    DEFAULT_TZ_LABEL,
    InvalidTimeAxis,
    check_tz_label,
    StoreIOError,
    StoreMeta,
    TimeAxis,
    VariableNameCollision,
    VariableNotFound,
)


logger = logging.getLogger(__name__)

# Layout shared with files produced by the legacy converter
TIME_DIM = "time_index"
NCHAR_DIM = "max_string_length"
TIME_VAR = "time_stamp"
DATA_DTYPE = "f8"
FILE_FORMAT = "NETCDF4"  # NETCDF3 caps the number of variables far too low

_locks: dict[str, threading.Lock] = {}
_locks_guard = threading.Lock()


def store_lock(path: str | os.PathLike) -> threading.Lock:
    """One exclusive writer lock per destination file (by resolved path)."""
    key = str(Path(path).resolve())
    with _locks_guard:
        return _locks.setdefault(key, threading.Lock())


@contextmanager
def _io(action: str) -> Iterator[None]:
    try:
        yield
    except (OSError, RuntimeError) as e:
        raise StoreIOError(f"{action}: {e}") from e


class NetCDFStore:
    """ArrayStore over a netCDF-4 file.

    The file carries one fixed-length time dimension and a char variable
    holding the canonical timestamp labels. Every data variable is a 1D
    float variable over that dimension, declared at its full length.

    Use `NetCDFStore.open(path, mode)` to get a scoped handle; the file is
    closed on every exit path.
    """

    def __init__(self, ds: "netCDF4.Dataset", path: Path):
        self._ds = ds
        self.path = path

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    @classmethod
    @contextmanager
    def open(cls, path: str | os.PathLike, mode: str = "r") -> Iterator["NetCDFStore"]:
        path = Path(path)
        # netCDF4 "a" creates a missing file; a store must already exist to be opened
        if mode != "w" and not path.exists():
            raise StoreIOError(f"Cannot open {path} (mode={mode!r}): no such file")
        with _io(f"Cannot open {path} (mode={mode!r})"):
            ds = netCDF4.Dataset(os.fspath(path), mode)
        try:
            yield cls(ds, path)
        finally:
            with _io(f"Cannot close {path}"):
                ds.close()

    @classmethod
    def create(
        cls,
        path: str | os.PathLike,
        axis: TimeAxis,
        *,
        meta: StoreMeta | None = None,
        tz_label: str = DEFAULT_TZ_LABEL,
        overwrite: bool = False,
    ) -> Path:
        """Create a new store holding `axis` and return its path.

        All timestamps must be known here: the time dimension can only be
        extended at its end later, never in front or in the middle.
        """
        path = Path(path)
        tz_label = check_tz_label(tz_label)
        if axis.n == 0:
            raise InvalidTimeAxis("Cannot create a store with an empty time axis.")

        if path.exists():
            if not overwrite:
                raise FileExistsError(
                    f"File {path} already exists, set overwrite=True to clobber it."
                )
            logger.info("Removing existing %s", path)
            path.unlink()

        labels = axis.to_labels(tz_label)
        nchar = max(TIMESTAMP_NCHAR, max(len(s) for s in labels))

        with _io(f"Cannot create {path}"):
            ds = netCDF4.Dataset(os.fspath(path), "w", format=FILE_FORMAT)
            try:
                ds.createDimension(NCHAR_DIM, nchar)
                ds.createDimension(TIME_DIM, axis.n)

                var = ds.createVariable(TIME_VAR, "S1", (TIME_DIM, NCHAR_DIM))
                chars = np.array(labels, dtype=f"S{nchar}").view("S1").reshape(len(labels), nchar)
                var[:] = chars

                for key, value in (meta or StoreMeta()).as_attributes().items():
                    ds.setncattr(key, value)
            finally:
                ds.close()

        logger.info("Created %s with %d timestamps (%s .. %s)", path, axis.n, labels[0], labels[-1])
        return path

    # ------------------------------------------------------------------
    # Time axis
    # ------------------------------------------------------------------
    @property
    def axis_length(self) -> int:
        if TIME_DIM not in self._ds.dimensions:
            raise StoreIOError(f"{self.path} has no '{TIME_DIM}' dimension; not an initialized store.")
        return len(self._ds.dimensions[TIME_DIM])

    def read_axis(self) -> TimeAxis:
        if TIME_VAR not in self._ds.variables:
            raise StoreIOError(f"{self.path} has no '{TIME_VAR}' variable; not an initialized store.")
        var = self._ds.variables[TIME_VAR]
        var.set_auto_chartostring(False)
        with _io(f"Cannot read {TIME_VAR} from {self.path}"):
            raw = np.ma.getdata(var[:])
        return TimeAxis.from_labels(netCDF4.chartostring(raw))

    # ------------------------------------------------------------------
    # ArrayStore protocol implementation
    # ------------------------------------------------------------------
    def has_variable(self, name: str) -> bool:
        return name in self._ds.variables

    def declare_variable(self, name: str, length: int, fill_value: float | None = None) -> None:
        if self.has_variable(name):
            raise VariableNameCollision(f"variable '{name}' already exists in {self.path.name}")
        if length != self.axis_length:
            raise ValueError(
                f"variables must span the full axis ({self.axis_length}), got length {length}"
            )
        with _io(f"Cannot declare variable '{name}' in {self.path}"):
            self._ds.createVariable(name, DATA_DTYPE, (TIME_DIM,), fill_value=fill_value)

    def write_at(self, name: str, start_index: int, values: np.ndarray) -> None:
        # NaN is stored as the missing-value sentinel, like unwritten positions
        values = np.ma.masked_invalid(np.asarray(values, dtype=np.float64))
        var = self._variable(name)
        with _io(f"Cannot write '{name}' in {self.path}"):
            var[start_index:start_index + values.size] = values

    def set_attribute(self, name: str, key: str, value: str) -> None:
        var = self._variable(name)
        with _io(f"Cannot set attribute '{key}' on '{name}' in {self.path}"):
            var.setncattr(key, value)

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------
    def variables(self) -> list[str]:
        """Data variable names, excluding the timestamp variable."""
        return [n for n in self._ds.variables if n != TIME_VAR]

    def read_variable(self, name: str) -> np.ma.MaskedArray:
        var = self._variable(name)
        with _io(f"Cannot read '{name}' from {self.path}"):
            return np.ma.asarray(var[:])

    def attributes(self, name: str) -> dict[str, object]:
        var = self._variable(name)
        return {k: var.getncattr(k) for k in var.ncattrs()}

    def global_attributes(self) -> dict[str, object]:
        return {k: self._ds.getncattr(k) for k in self._ds.ncattrs()}

    def _variable(self, name: str) -> "netCDF4.Variable":
        try:
            return self._ds.variables[name]
        except KeyError as e:
            raise VariableNotFound(name) from e
