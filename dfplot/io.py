"""Table and Chart I/O
--------------------

Thin wrappers around polars readers and Altair output:

- `read_table` picks a polars reader from the file extension and returns a
  lazy frame (CSV with header row, JSON array of records, NDJSON/JSONL)
- `output_chart` either opens the chart interactively or writes a standalone
  HTML file
"""

from __future__ import annotations

__all__ = [
    "known_extensions",
    "read_table",
    "output_chart",
]

import logging
import os
from typing import Optional

import altair as alt
import polars as pl

logger = logging.getLogger(__name__)

known_extensions = ["csv", "json", "ndjson", "jsonl"]


def read_table(path: str | os.PathLike[str], infer_schema_length: Optional[int] = 100) -> pl.LazyFrame:
    """Read a tabular file into a polars LazyFrame based on its extension.

    Args:
        path: Path to a .csv, .json, .ndjson or .jsonl file.
        infer_schema_length: Number of rows polars looks at to infer column types (None = all rows).

    Returns:
        Lazy frame over the file contents.

    Raises:
        ValueError: If the file has no extension or an unknown one.
        FileNotFoundError: If the file does not exist.
    """
    fname = os.fspath(path)
    extension = os.path.splitext(fname)[1][1:].lower()
    if not extension:
        raise ValueError(f"No extension at the name of the file `{fname}`")
    if extension not in known_extensions:
        raise ValueError(f"Unknown extension `{extension}` at the name of the file `{fname}`")
    if not os.path.exists(fname):
        raise FileNotFoundError(f"File `{fname}` does not exist")

    logger.debug(f"Reading {fname} as {extension}")
    if extension == "csv":
        return pl.scan_csv(fname, has_header=True, infer_schema_length=infer_schema_length)
    elif extension == "json":
        return pl.read_json(fname, infer_schema_length=infer_schema_length).lazy()
    else:  # ndjson, jsonl
        return pl.scan_ndjson(fname, infer_schema_length=infer_schema_length)


def output_chart(chart: alt.TopLevelMixin, output: str | os.PathLike[str] | None = None) -> None:
    """Show ``chart`` interactively, or save it as a standalone HTML file when ``output`` is given."""

    if output is None:
        # Outside a notebook only the browser renderer can display a chart
        with alt.renderers.enable("browser"):
            chart.show()
        return

    fname = os.fspath(output)
    if os.path.splitext(fname)[1].lower() != ".html":
        raise ValueError(f"Output file `{fname}` must have a .html extension")
    chart.save(fname)
    logger.info(f"Chart written to {fname}")
