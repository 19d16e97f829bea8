# dssncdf/__init__.py
"""Convert HEC-DSS time series onto a fixed netCDF time axis."""

__version__ = "0.1.0"
