"""
Tests for table reading and chart output in dfplot.io.
"""

import json

import altair as alt
import pandas as pd
import polars as pl
import pytest

from dfplot.io import output_chart, read_table

ROWS = [
    {"x": "A", "y": 1.0},
    {"x": "B", "y": 2.5},
]


@pytest.fixture
def csv_file(temp_dir):
    path = temp_dir / "data.csv"
    path.write_text("x,y\nA,1.0\nB,2.5\n")
    return path


def test_read_csv(csv_file):
    ldf = read_table(csv_file)
    assert isinstance(ldf, pl.LazyFrame)
    df = ldf.collect()
    assert df["x"].to_list() == ["A", "B"]
    assert df["y"].to_list() == [1.0, 2.5]


def test_read_json(temp_dir):
    path = temp_dir / "data.json"
    path.write_text(json.dumps(ROWS))
    df = read_table(str(path)).collect()
    assert df.columns == ["x", "y"]
    assert df["y"].to_list() == [1.0, 2.5]


@pytest.mark.parametrize("ext", ["ndjson", "jsonl"])
def test_read_ndjson(temp_dir, ext):
    path = temp_dir / f"data.{ext}"
    path.write_text("\n".join(json.dumps(r) for r in ROWS) + "\n")
    df = read_table(path).collect()
    assert df["x"].to_list() == ["A", "B"]


def test_extension_is_case_insensitive(temp_dir):
    path = temp_dir / "DATA.CSV"
    path.write_text("a\n1\n")
    assert read_table(path).collect()["a"].to_list() == [1]


def test_unknown_extension(temp_dir):
    path = temp_dir / "data.parquet"
    path.write_text("")
    with pytest.raises(ValueError, match="Unknown extension `parquet`"):
        read_table(path)


def test_no_extension(temp_dir):
    with pytest.raises(ValueError, match="No extension"):
        read_table(temp_dir / "data")


def test_missing_file(temp_dir):
    with pytest.raises(FileNotFoundError):
        read_table(temp_dir / "missing.csv")


def _chart():
    return alt.Chart(pd.DataFrame({"a": [1, 2]})).mark_point().encode(x="a:Q")


def test_output_html(temp_dir):
    out = temp_dir / "chart.html"
    output_chart(_chart(), out)
    text = out.read_text()
    assert "vega" in text.lower()


def test_output_requires_html(temp_dir):
    with pytest.raises(ValueError, match=".html"):
        output_chart(_chart(), temp_dir / "chart.png")


def test_output_show_uses_browser_renderer(monkeypatch):
    shown = []
    monkeypatch.setattr(alt.Chart, "show", lambda self: shown.append((self, alt.renderers.active)))
    before = alt.renderers.active
    chart = _chart()
    output_chart(chart)
    assert shown == [(chart, "browser")]
    # The previous renderer is restored afterwards
    assert alt.renderers.active == before
