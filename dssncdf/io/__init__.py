# dssncdf/io/__init__.py
"""
I/O adapters: the HEC-DSS source store, the netCDF-4 array store and the
conversion operations tying them to the alignment core.
"""

from .netcdf_store import NetCDFStore, store_lock
from .dss_reader import (
    DssCatalog,
    DssPath,
    DssRecord,
    DssRecordReader,
    DssSourceStore,
    DssVariableInfo,
    PydsstoolsReader,
    parse_pathname,
)
from .convert import SourceStore, convert, init_netcdf, read_axis, write_variable


__all__ = [
    "NetCDFStore",
    "store_lock",
    "DssCatalog",
    "DssPath",
    "DssRecord",
    "DssRecordReader",
    "DssSourceStore",
    "DssVariableInfo",
    "PydsstoolsReader",
    "parse_pathname",
    "SourceStore",
    "convert",
    "init_netcdf",
    "read_axis",
    "write_variable",
]
