# dssncdf/core/metadata.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping

from .exceptions import InvalidSeries


def coerce_metadata(meta: Mapping[Any, Any] | None) -> dict[str, str]:
    """
    Normalize a loosely typed metadata mapping to ``dict[str, str]``.

    - keys and values are ``str()``-coerced
    - entries whose value is None are dropped
    - empty keys are rejected
    """
    if meta is None:
        return {}
    if not isinstance(meta, Mapping):
        raise InvalidSeries("metadata must be a mapping (e.g., dict).")

    out: dict[str, str] = {}
    for key, value in meta.items():
        if value is None:
            continue
        k = str(key).strip()
        if not k:
            raise InvalidSeries("metadata keys must be non-empty strings.")
        out[k] = str(value)
    return out


@dataclass(frozen=True, slots=True)
class StoreMeta:
    """
    Global attributes written when a destination store is created.

    - title: "Data from <source basename>"
    - history: creation stamp
    - attrs: additional global attributes
    """
    title: str | None = None
    history: str | None = None
    attrs: dict[str, str] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "attrs", coerce_metadata(self.attrs))

    @classmethod
    def for_source(cls, source_name: str | None, **attrs: Any) -> "StoreMeta":
        title = None if not source_name else f"Data from {Path(source_name).name}"
        return cls(title=title, history=f"Created: {datetime.now()}", attrs=attrs)

    def as_attributes(self) -> dict[str, str]:
        out = {"title": self.title, "history": self.history, **self.attrs}
        return coerce_metadata(out)
