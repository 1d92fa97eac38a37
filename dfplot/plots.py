"""Plot Implementations
----------------------

Registry-backed builders for every chart type.  Each chart type registers two
functions:

- a trace builder (`@dfplot_plot(...)`) turning one partition and one y column
  into a `Trace`, pulling values through the column accessor and, for
  proportion bar charts, through the fitted proportion scalers
- a chart builder (`@dfplot_chart(...)`) turning the long-form trace frame
  into Altair marks and encodings

Section comments group the chart families (numeric x, categorical x,
distributions).
"""

__all__ = [
    "scatter",
    "scatter_chart",
    "bar",
    "bar_chart",
    "box",
    "box_chart",
    "histogram",
    "histogram_chart",
]

from typing import Any, Dict, List

import altair as alt
import polars as pl

from dfplot.pp import AltairChart, ChartInput, Trace, TraceInput, dfplot_chart, dfplot_plot
from dfplot.scaler import scale_values
from dfplot.utils import column_to_float, column_to_str, get_column


def _index_x(n: int) -> List[float]:
    """1-based row positions, used when no x column is given."""
    return [float(i + 1) for i in range(n)]


def _color(p: ChartInput) -> alt.Color:
    """Legend keyed by trace name, ordered by trace emission order.

    The explicit domain keeps traces without rows (empty partitions) in the legend.
    """
    return alt.Color("trace:N", sort=p.order, scale=alt.Scale(domain=p.order), title=None)


# --------------------------------------------------------
#          NUMERIC X
# --------------------------------------------------------


@dfplot_plot("scatter", uses_x=True, single_y_axis="y", modes=True)
def scatter(p: TraceInput) -> Trace:
    """Numeric x against numeric y."""

    y = column_to_float(p.data, p.y)
    x = column_to_float(p.data, p.x) if p.x is not None else _index_x(len(y))
    return Trace(kind="scatter", name=p.name, x=x, y=y)


@dfplot_chart("scatter")
def scatter_chart(p: ChartInput) -> AltairChart:
    base = alt.Chart(p.data)
    if p.mode == "markers":
        marks = base.mark_point(filled=True)
    elif p.mode == "lines":
        marks = base.mark_line()
    else:  # lines+markers
        marks = base.mark_line(point=True)

    return marks.encode(
        x=alt.X("x:Q", title=p.x_title),
        y=alt.Y("y:Q", title=p.y_title),
        color=_color(p),
        order=alt.Order("row:Q"),  # Line segments follow row order, not x order
        tooltip=[
            alt.Tooltip("trace:N", title="trace"),
            alt.Tooltip("x:Q", title=p.x_title or "x"),
            alt.Tooltip("y:Q", title=p.y_title or "y"),
        ],
    )


# --------------------------------------------------------
#          CATEGORICAL X
# --------------------------------------------------------


@dfplot_plot("bar", uses_x=True, single_y_axis="y", barmodes=True)
def bar(p: TraceInput) -> Trace:
    """String categories on x, numeric y, optionally scaled to proportions of the x-category total."""

    y = column_to_float(p.data, p.y)
    x = column_to_str(p.data, p.x) if p.x is not None else [str(i + 1) for i in range(len(y))]
    if p.scalers is not None:
        y = scale_values(p.scalers, x, y)
    return Trace(kind="bar", name=p.name, x=x, y=y)


@dfplot_chart("bar")
def bar_chart(p: ChartInput) -> AltairChart:
    # proportion is rendered as stack, with values already scaled to shares
    stack: Any = None if p.barmode in ("group", "overlay") else "zero"
    y_axis = alt.Axis(format="%") if p.barmode == "proportion" else alt.Axis()

    enc: Dict[str, Any] = {
        "x": alt.X("x:N", sort=None, title=p.x_title),
        "y": alt.Y("y:Q", title=p.y_title, stack=stack, axis=y_axis),
        "color": _color(p),
        "order": alt.Order("trace_ind:Q"),
        "tooltip": [
            alt.Tooltip("trace:N", title="trace"),
            alt.Tooltip("x:N", title=p.x_title or "x"),
            alt.Tooltip("y:Q", title=p.y_title or "y", format=".1%" if p.barmode == "proportion" else alt.Undefined),
        ],
    }
    if p.barmode == "group":
        enc["xOffset"] = alt.XOffset("trace:N", sort=p.order)

    opacity = 0.6 if p.barmode == "overlay" else 1.0
    return alt.Chart(p.data).mark_bar(opacity=opacity).encode(**enc)


# --------------------------------------------------------
#          DISTRIBUTIONS
# --------------------------------------------------------


@dfplot_plot("box", single_y_axis="x")
def box(p: TraceInput) -> Trace:
    """Distribution of one numeric column, one box per trace."""

    return Trace(kind="box", name=p.name, y=column_to_float(p.data, p.y))


@dfplot_chart("box")
def box_chart(p: ChartInput) -> AltairChart:
    return (
        alt.Chart(p.data)
        .mark_boxplot(extent=1.5)
        .encode(
            x=alt.X("trace:N", sort=p.order, title=p.x_title),
            y=alt.Y("y:Q", title=p.y_title),
            color=_color(p),
        )
    )


@dfplot_plot("histogram", single_y_axis="x", count_axis="y")
def histogram(p: TraceInput) -> Trace:
    """Numeric columns are binned, string columns are counted per category."""

    dtype = get_column(p.data, p.y).dtype
    if dtype == pl.Utf8 or dtype == pl.Categorical or dtype == pl.Enum:
        values: List[Any] = column_to_str(p.data, p.y)
    else:
        values = column_to_float(p.data, p.y)
    return Trace(kind="histogram", name=p.name, y=values)


@dfplot_chart("histogram")
def histogram_chart(p: ChartInput) -> AltairChart:
    if p.categorical:
        x = alt.X("y:N", sort=None, title=p.x_title)
    else:
        x = alt.X("y:Q", bin=alt.Bin(maxbins=40), title=p.x_title)

    return (
        alt.Chart(p.data)
        .mark_bar(opacity=0.6)
        .encode(
            x=x,
            y=alt.Y("count()", title=p.y_title, stack=None),
            color=_color(p),
            tooltip=[alt.Tooltip("trace:N", title="trace"), alt.Tooltip("count()", title="count")],
        )
    )
