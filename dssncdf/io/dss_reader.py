from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Protocol, Sequence

from collections import defaultdict
import logging
import os
import re

import numpy as np

from dssncdf.core import (
    CoreError,
    InvalidPathname,
    SourceReadError,
    SourceSeries,
    VariableNotFound,
    as_datetime64,
)


logger = logging.getLogger(__name__)

PART_NAMES = ("A", "B", "C", "D", "E", "F")
# D (block start date) is left out so the blocks of one record set form one variable
DEFAULT_VARIABLE_PARTS = ("A", "B", "C", "E", "F")

_PATH_RE = re.compile(r"^/(?P<A>[^/]*)/(?P<B>[^/]*)/(?P<C>[^/]*)/(?P<D>[^/]*)/(?P<E>[^/]*)/(?P<F>[^/]*)/$")
_UNSAFE_NAME_RE = re.compile(r"[^A-Za-z0-9_.+\-]")


@dataclass(frozen=True)
class DssPath:
    """
    One parsed DSS pathname.

    Examples of pathnames:
    - "/RUSSIAN/HOPLAND/FLOW/01JAN2000/1DAY/OBS/"
    - "//GAGE7/STAGE/01OCT1999/15MIN/RAW/"
    """

    pathname: str
    A: str          # project / basin
    B: str          # location
    C: str          # parameter
    D: str          # block start date, e.g. "01JAN2000"
    E: str          # interval, e.g. "1DAY", "IR-YEAR"
    F: str          # version / source

    def part(self, letter: str) -> str:
        return getattr(self, letter)

    @property
    def block_date(self) -> datetime | None:
        return _parse_block_date(self.D)


@dataclass
class DssRecord:
    times: "np.ndarray"
    values: "np.ndarray"
    units: str | None = None
    data_type: str | None = None


@dataclass
class DssVariableInfo:
    """
    Logical variable view spanning one or more date blocks.

    A variable is identified by the selected pathname parts, e.g. with
    parts A, B, C, E, F all blocks of "/R/HOPLAND/FLOW/*/1DAY/OBS/"
    form the variable "/R/HOPLAND/FLOW/1DAY/OBS/".
    """

    variable_id: str                 # "/R/HOPLAND/FLOW/1DAY/OBS/"
    name: str                        # netCDF-safe name, "R_HOPLAND_FLOW_1DAY_OBS"
    blocks: list[DssPath] = field(default_factory=list)

    @property
    def pathnames(self) -> list[str]:
        return [b.pathname for b in self.blocks]


class DssRecordReader(Protocol):
    """Protocol for low-level DSS file access."""

    def pathnames(self) -> List[str]:
        ...

    def read_ts(self, pathname: str) -> DssRecord:
        ...


def parse_pathname(pathname: str) -> DssPath:
    """Parse "/A/B/C/D/E/F/" into a DssPath.

    Examples
    --------
    "/RUSSIAN/HOPLAND/FLOW/01JAN2000/1DAY/OBS/" -> B="HOPLAND", C="FLOW", ...
    "/A/B/C/"                                   -> InvalidPathname
    """
    m = _PATH_RE.match(pathname.strip())
    if not m:
        raise InvalidPathname(f"Not a DSS pathname: {pathname!r}")
    return DssPath(pathname=pathname.strip(), **{k: m.group(k) for k in PART_NAMES})


def _parse_block_date(d_part: str) -> datetime | None:
    try:
        return datetime.strptime(d_part.strip(), "%d%b%Y")
    except ValueError:
        return None


def _validate_parts(parts: Sequence[str]) -> tuple[str, ...]:
    parts = tuple(p.upper() for p in parts)
    if not parts:
        raise ValueError("variable_parts must not be empty")
    bad = [p for p in parts if p not in PART_NAMES]
    if bad:
        raise ValueError(f"variable_parts must be drawn from {PART_NAMES}, got {bad}")
    if len(set(parts)) != len(parts):
        raise ValueError(f"variable_parts contains duplicates: {parts}")
    return parts


def variable_id(path: DssPath, parts: Sequence[str]) -> str:
    return "/" + "/".join(path.part(p) for p in parts) + "/"


def variable_name(path: DssPath, parts: Sequence[str]) -> str:
    """netCDF-safe name: non-empty selected parts joined by '_'."""
    raw = "_".join(path.part(p).strip() for p in parts if path.part(p).strip())
    return _UNSAFE_NAME_RE.sub("_", raw) or "unnamed"


class DssCatalog:
    """Groups record pathnames into logical variables.

    Blocks of a variable are ordered by their D-part date; blocks whose
    date cannot be parsed go last, in pathname order.
    """

    def __init__(self, variables: dict[str, DssVariableInfo], variable_parts: tuple[str, ...]):
        self._variables = variables
        self.variable_parts = variable_parts

    @classmethod
    def from_pathnames(
        cls,
        pathnames: Iterable[str],
        variable_parts: Sequence[str] = DEFAULT_VARIABLE_PARTS,
    ) -> "DssCatalog":
        parts = _validate_parts(variable_parts)

        grouped: dict[str, list[DssPath]] = defaultdict(list)
        names: dict[str, str] = {}
        for pathname in pathnames:
            path = parse_pathname(pathname)
            vid = variable_id(path, parts)
            grouped[vid].append(path)
            names.setdefault(vid, variable_name(path, parts))

        variables: dict[str, DssVariableInfo] = {}
        for vid, blocks in grouped.items():
            ordered = sorted(
                blocks,
                key=lambda b: (b.block_date is None, b.block_date or datetime.min, b.pathname),
            )
            variables[vid] = DssVariableInfo(variable_id=vid, name=names[vid], blocks=ordered)

        return cls(variables, parts)

    def __len__(self) -> int:
        return len(self._variables)

    def __contains__(self, variable_id: object) -> bool:
        return variable_id in self._variables

    def __getitem__(self, variable_id: str) -> DssVariableInfo:
        try:
            return self._variables[variable_id]
        except KeyError as e:
            raise VariableNotFound(variable_id) from e

    def ids(self) -> list[str]:
        return list(self._variables)


class DssSourceStore:
    """Source store: lists DSS variables and materializes them as SourceSeries."""

    def __init__(
        self,
        reader: DssRecordReader,
        variable_parts: Sequence[str] = DEFAULT_VARIABLE_PARTS,
        source_file: str | None = None,
    ):
        self._reader = reader
        self.source_file = source_file
        self.catalog = DssCatalog.from_pathnames(reader.pathnames(), variable_parts)

    def list_variables(self) -> list[str]:
        return self.catalog.ids()

    def read_series(self, variable_id: str) -> SourceSeries:
        info = self.catalog[variable_id]
        try:
            return self._load(info)
        except (CoreError, OSError, RuntimeError, ValueError, TypeError, KeyError) as e:
            raise SourceReadError(f"Cannot read {variable_id}: {e}") from e

    def _load(self, info: DssVariableInfo) -> SourceSeries:
        times: list[np.ndarray] = []
        values: list[np.ndarray] = []
        units: list[str] = []
        types: list[str] = []

        for block in info.blocks:
            rec = self._reader.read_ts(block.pathname)
            times.append(as_datetime64(rec.times))
            values.append(np.asarray(rec.values, dtype=np.float64))
            if rec.units:
                units.append(str(rec.units))
            if rec.data_type:
                types.append(str(rec.data_type))

        t = np.concatenate(times) if times else np.array([], dtype="datetime64[s]")
        v = np.concatenate(values) if values else np.array([], dtype=np.float64)
        if t.size != v.size:
            raise ValueError(f"{t.size} timestamps but {v.size} values")

        order = np.argsort(t, kind="stable")
        t, v = t[order], v[order]
        # Adjacent blocks may repeat a boundary timestamp; the earlier block wins
        keep = np.ones(t.size, dtype=bool)
        keep[1:] = t[1:] != t[:-1]
        if not keep.all():
            logger.debug("%s: dropped %d duplicate timestamps", info.variable_id, int((~keep).sum()))

        return SourceSeries(
            name=info.name,
            time=t[keep],
            values=v[keep],
            metadata=self._metadata(info, units, types),
        )

    def _metadata(self, info: DssVariableInfo, units: list[str], types: list[str]) -> dict[str, str]:
        md: dict[str, str | None] = {
            "units": ",".join(dict.fromkeys(units)) or None,
            "type": ",".join(dict.fromkeys(types)) or None,
        }
        for letter in PART_NAMES:
            values = {b.part(letter) for b in info.blocks}
            if len(values) == 1:
                md[letter] = values.pop()
        md["dss_path"] = info.blocks[0].pathname if info.blocks else None
        md["dss_file"] = None if self.source_file is None else Path(self.source_file).name
        return {k: v for k, v in md.items() if v is not None}


class PydsstoolsReader:
    """Concrete DssRecordReader over pydsstools (optional `dss` extra)."""

    def __init__(self, path: str | os.PathLike):
        try:
            from pydsstools.heclib.dss import HecDss
        except ImportError as e:
            raise ImportError(
                "Reading DSS files requires the 'pydsstools' package:\n"
                "  python -m pip install 'dssncdf[dss]'"
            ) from e

        self.path = Path(path)
        if not self.path.exists():
            raise FileNotFoundError(f"DSS file not found: {self.path}")
        self._fid = HecDss.Open(os.fspath(self.path))

    def pathnames(self) -> List[str]:
        return list(self._fid.getPathnameList("/*/*/*/*/*/*/", sort=1))

    def read_ts(self, pathname: str) -> DssRecord:
        ts = self._fid.read_ts(pathname)
        values = np.array(ts.values, dtype=np.float64)
        nodata = getattr(ts, "nodata", None)
        if nodata is not None:
            values[np.asarray(nodata, dtype=bool)] = np.nan
        return DssRecord(
            times=as_datetime64(ts.pytimes),
            values=values,
            units=getattr(ts, "units", None),
            data_type=getattr(ts, "type", None),
        )

    def close(self) -> None:
        self._fid.close()

    def __enter__(self) -> "PydsstoolsReader":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
