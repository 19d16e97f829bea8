# dssncdf/config.py
from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, field_validator

from dssncdf.core import DEFAULT_TZ_LABEL, InvalidTimeAxis, check_tz_label
from dssncdf.io.dss_reader import DEFAULT_VARIABLE_PARTS, PART_NAMES


class ConversionConfig(BaseModel):
    nc_file: str = "convertdss.nc"
    overwrite: bool = False
    variable_parts: list[str] = list(DEFAULT_VARIABLE_PARTS)
    tz_label: str = DEFAULT_TZ_LABEL
    fill_value: float | None = None
    log_level: str = "INFO"

    @field_validator("variable_parts")
    @classmethod
    def _check_parts(cls, parts: list[str]) -> list[str]:
        parts = [p.upper() for p in parts]
        if not parts:
            raise ValueError("variable_parts must not be empty")
        bad = [p for p in parts if p not in PART_NAMES]
        if bad:
            raise ValueError(f"variable_parts must be drawn from {PART_NAMES}, got {bad}")
        if len(set(parts)) != len(parts):
            raise ValueError("variable_parts must not repeat a part")
        return parts

    @field_validator("tz_label")
    @classmethod
    def _check_tz_label(cls, label: str) -> str:
        try:
            return check_tz_label(label)
        except InvalidTimeAxis as e:
            raise ValueError(str(e)) from e

    @field_validator("log_level")
    @classmethod
    def _check_level(cls, level: str) -> str:
        level = level.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {level}")
        return level

    @classmethod
    def load(cls, path: str | Path) -> "ConversionConfig":
        """Read a YAML file of ConversionConfig fields."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
        return cls(**raw)
