"""Utilities
---------

Cross-cutting helpers shared by the grouping, scaling and plotting layers.
The module groups:

- file-reading helpers (`read_json`, `read_yaml`)
- config dict merging (`deep_merge`)
- the column accessor used everywhere a table column has to become a plain
  Python list (`column_to_str`, `column_to_float`, `unique_stable`)

If you need a generic helper, check this file before adding another bespoke
version elsewhere.
"""

from __future__ import annotations

__all__ = [
    "read_json",
    "read_yaml",
    "deep_merge",
    "get_column",
    "unique_stable",
    "column_to_str",
    "column_to_float",
    "collect_if_lazy",
    "dict_without_none",
]

import json
from typing import Any, Dict, List, MutableMapping, Mapping, TypeAlias

import polars as pl
import yaml

JSONValue: TypeAlias = Any
Table: TypeAlias = pl.DataFrame | pl.LazyFrame


def read_json(fname: str) -> JSONValue:
    """Load JSON file with extension sanity checks."""

    if not fname.endswith(".json"):
        raise FileNotFoundError(f"Expecting {fname} to have a .json extension")
    with open(fname, "r") as jf:
        return json.load(jf)


def read_yaml(fname: str) -> JSONValue:
    """Load YAML file with extension sanity checks."""

    if not fname.endswith((".yaml", ".yml")):
        raise FileNotFoundError(f"Expecting {fname} to have a .yaml extension")
    with open(fname) as stream:
        return yaml.safe_load(stream)


def deep_merge(target: MutableMapping[str, Any], source: Mapping[str, Any]) -> MutableMapping[str, Any]:
    """Recursively merge ``source`` into ``target`` (in place) and return ``target``.

    Nested dicts are merged key by key, everything else in ``source`` overwrites.
    """
    for k, v in source.items():
        if isinstance(v, Mapping) and k in target and isinstance(target[k], MutableMapping):
            deep_merge(target[k], v)
        else:
            target[k] = v
    return target


# --------------------------------------------------------
#          COLUMN ACCESSOR
# --------------------------------------------------------


def collect_if_lazy(df: Table) -> pl.DataFrame:
    """Materialise a lazy frame, pass eager frames through untouched."""

    return df.collect() if isinstance(df, pl.LazyFrame) else df


def get_column(df: pl.DataFrame, name: str) -> pl.Series:
    """Look up a column by name, failing with a readable error when it is absent."""

    if name not in df.columns:
        raise ValueError(f"Column `{name}` not found. Available columns: {', '.join(df.columns)}")
    return df.get_column(name)


def _as_str_series(s: pl.Series) -> pl.Series:
    """Return ``s`` as a string series, raising if it is not string-like."""

    if s.dtype == pl.Categorical or s.dtype == pl.Enum:
        s = s.cast(pl.Utf8)
    if s.dtype != pl.Utf8:
        raise TypeError(f"Column `{s.name}` must hold strings, got {s.dtype}")
    return s


def unique_stable(s: pl.Series) -> List[str]:
    """Distinct string values of ``s`` in first-occurrence order.

    Raises:
        TypeError: If the column is not a string/categorical column.
        ValueError: If the column has missing values.
    """
    s = _as_str_series(s)
    if s.null_count() > 0:
        raise ValueError(f"No string in group: column `{s.name}` has {s.null_count()} missing value(s)")
    return s.unique(maintain_order=True).to_list()


def column_to_str(df: pl.DataFrame, name: str) -> List[str]:
    """Return column ``name`` as a list of strings.

    Every cell must be present; a null cell is an error rather than a silent ``"None"``.
    """
    s = _as_str_series(get_column(df, name))
    if s.null_count() > 0:
        raise ValueError(f"One string in column `{name}` does not exist")
    return s.to_list()


def column_to_float(df: pl.DataFrame, name: str) -> List[float]:
    """Return column ``name`` as a list of floats.

    Raises:
        ValueError: If the column is missing or has missing cells.
        TypeError: If the column is not numeric.
    """
    s = get_column(df, name)
    if not s.dtype.is_numeric():
        raise TypeError(f"Column `{name}` must be numeric, got {s.dtype}")
    if s.null_count() > 0:
        raise ValueError(f"One number in column `{name}` does not exist")
    return s.cast(pl.Float64).to_list()


def dict_without_none(d: Mapping[str, Any]) -> Dict[str, Any]:
    """Drop keys whose value is ``None`` (handy when layering optional overrides)."""

    return {k: v for k, v in d.items() if v is not None}
