# dssncdf/cli.py
from __future__ import annotations

from pathlib import Path
import re

import numpy as np
import typer
from pydantic import ValidationError
from rich import print
from rich.table import Table

from dssncdf.config import ConversionConfig
from dssncdf.core import InvalidTimeAxis, format_timestamp
from dssncdf.io import DssSourceStore, NetCDFStore, PydsstoolsReader, convert as convert_store, init_netcdf
from dssncdf.log import configure

app = typer.Typer(help="HEC-DSS to netCDF conversion CLI")

_FREQ_RE = re.compile(r"^(?P<n>\d+)(?P<unit>[mhD])$")


def _parse_freq(freq: str) -> np.timedelta64:
    m = _FREQ_RE.match(freq.strip())
    if not m or int(m.group("n")) == 0:
        raise typer.BadParameter(f"frequency must look like 15m, 1h or 1D, got {freq!r}")
    return np.timedelta64(int(m.group("n")), m.group("unit"))


def build_datetimes(start: str, end: str, freq: str) -> np.ndarray:
    """Evenly spaced timestamps from `start` to `end` inclusive."""
    step = _parse_freq(freq).astype("timedelta64[s]")
    t0 = np.datetime64(start, "s")
    t1 = np.datetime64(end, "s")
    if t1 < t0:
        raise typer.BadParameter("end must not be before start")
    times = np.arange(t0, t1 + step, step)
    return times[times <= t1]


def _load_config(config: Path | None, **fields) -> ConversionConfig:
    """Config file values, overridden by any command-line value that was given."""
    cfg = ConversionConfig.load(config) if config else ConversionConfig()
    given = {k: v for k, v in fields.items() if v is not None}
    if not given:
        return cfg
    try:
        return ConversionConfig(**{**cfg.model_dump(), **given})
    except ValidationError as e:
        raise typer.BadParameter(str(e)) from e


@app.command()
def init(
    nc_file: Path = typer.Argument(None, help="netCDF file to create (default: nc_file from config)"),
    start: str = typer.Option(..., help="First timestamp, e.g. 2000-01-01"),
    end: str = typer.Option(..., help="Last timestamp (inclusive)"),
    freq: str = typer.Option("1D", help="Step: <n>m, <n>h or <n>D"),
    source_name: str = typer.Option(None, help="Source file recorded in the title attribute"),
    tz_label: str = typer.Option(None, help="Zone label written after each timestamp (default UTC)"),
    overwrite: bool = typer.Option(False, help="Clobber an existing file"),
    config: Path = typer.Option(None, help="YAML file of conversion settings"),
):
    """
    Create a netCDF file with a fixed time axis
    """
    cfg = _load_config(
        config,
        nc_file=None if nc_file is None else str(nc_file),
        tz_label=tz_label,
        overwrite=True if overwrite else None,
    )
    configure(cfg.log_level)
    nc_file = Path(cfg.nc_file)

    times = build_datetimes(start, end, freq)
    try:
        init_netcdf(
            nc_file,
            times,
            source_name=source_name,
            overwrite=cfg.overwrite,
            tz_label=cfg.tz_label,
        )
    except (FileExistsError, InvalidTimeAxis) as e:
        print(f"[red]{e}[/red]")
        raise typer.Exit(code=1)
    print(f"[green]Created {nc_file} with {times.size} timestamps[/green]")


@app.command()
def convert(
    dss_file: Path,
    nc_file: Path = typer.Argument(None, help="netCDF file to write into (default: nc_file from config)"),
    config: Path = typer.Option(None, help="YAML file of conversion settings"),
    parts: str = typer.Option(None, help="Pathname parts identifying a variable, e.g. A,B,C,E,F"),
):
    """
    Write every DSS variable onto the time axis of NC_FILE
    """
    cfg = _load_config(
        config,
        nc_file=None if nc_file is None else str(nc_file),
        variable_parts=parts.split(",") if parts else None,
    )
    configure(cfg.log_level)
    nc_file = Path(cfg.nc_file)

    with PydsstoolsReader(dss_file) as reader:
        source = DssSourceStore(reader, cfg.variable_parts, source_file=str(dss_file))
        report = convert_store(source, nc_file, fill_value=cfg.fill_value)

    table = Table(title=f"{dss_file.name} -> {nc_file.name}")
    table.add_column("variable")
    table.add_column("status")
    table.add_column("reason")
    table.add_column("detail")
    for name, outcome in report.items():
        reason = "" if outcome.reason is None else outcome.reason.value
        table.add_row(name, outcome.status, reason, outcome.detail)
    print(table)
    print(f"[blue]{report.n_written} written, {report.n_skipped} skipped[/blue]")

    if report.n_skipped:
        raise typer.Exit(code=1)


@app.command()
def axis(nc_file: Path):
    """
    Show the time axis of NC_FILE
    """
    with NetCDFStore.open(nc_file) as store:
        ax = store.read_axis()
        attrs = store.global_attributes()
    for key in ("title", "history"):
        if key in attrs:
            print(f"{key}: {attrs[key]}")
    print(f"length: {ax.n}")
    if ax.n:
        print(f"start:  {format_timestamp(ax.start)}")
        print(f"end:    {format_timestamp(ax.end)}")


if __name__ == "__main__":
    app()
