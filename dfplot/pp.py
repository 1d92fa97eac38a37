"""Plot Pipeline
----------------

This is the end-to-end plotting stack.  It maps a tabular file to an Altair
chart by:

- discovering the trace builders and chart builders registered in
  `dfplot.plots` via `@dfplot_plot` / `@dfplot_chart`
- materialising the table once with polars, fitting proportion scalers for
  100%-stacked bars and splitting the rows into group combinations
- building one `Trace` per y column (and per group combination) in a
  deterministic order that also fixes the legend order
- rendering the traces as a long-form pandas frame with Altair, layering the
  Vega-Lite config as base -> plot -> user custom config
"""

from __future__ import annotations

# These are the only functions that should be exposed to the public
__all__ = [
    "Trace",
    "TraceInput",
    "ChartInput",
    "e2e_plot",
    "build_traces",
    "create_chart",
    "plot_to_output",
    "get_plot_meta",
    "load_custom_config",
    "trace_name",
]

import logging
from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Literal, Mapping, Optional, Sequence, TypeAlias, cast

import altair as alt
import pandas as pd
import polars as pl

from dfplot import utils as utils
from dfplot.group import Combination, Groups, combination_label
from dfplot.io import output_chart, read_table
from dfplot.scaler import ProportionScalers, fit_proportion_scalers
from dfplot.validation import DF, BarModeOption, PBase, PlotDescriptor, ScatterModeOption, ensure_validated

logger = logging.getLogger(__name__)

AltairChart: TypeAlias = alt.Chart | alt.LayerChart


@dataclass(frozen=True)
class Trace:
    """One named, renderable series handed to the chart builder.

    ``kind`` closes the variant: scatter/bar traces carry ``x`` and ``y``,
    box/histogram traces only carry values in ``y``.
    """

    kind: Literal["scatter", "bar", "box", "histogram"]
    name: str
    y: List[Any]  # floats, or strings for categorical histograms
    x: Optional[List[Any]] = None  # floats (scatter) or strings (bar)


@dataclass
class TraceInput:
    """Structured container passed to individual trace builders."""

    data: pl.DataFrame  # Materialised partition (whole table when not grouping)
    y: str  # Value column for this trace
    name: str  # Trace name, already prefixed with the combination label when grouping
    x: Optional[str] = None
    scalers: Optional[ProportionScalers] = None  # Set only for proportion bar charts
    plot_args: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ChartInput:
    """Structured container passed to chart builders."""

    data: pd.DataFrame  # Long form: trace, trace_ind, row, x, y
    order: List[str]  # Trace names in emission order (legend order)
    x_title: Optional[str] = None
    y_title: Optional[str] = None
    barmode: BarModeOption = "group"
    mode: ScatterModeOption = "markers"
    categorical: bool = False  # Values are strings (categorical histograms)


# --------------------------------------------------------
#          REGISTRY
# --------------------------------------------------------


class PlotMeta(PBase):
    """Metadata registered for each trace builder via ``@dfplot_plot``."""

    name: str
    uses_x: bool = False  # Whether the plot takes an x column
    single_y_axis: Literal["x", "y"] = "y"  # Axis titled with the y column when exactly one is given
    count_axis: Optional[Literal["x", "y"]] = None  # Axis titled `count` (histograms)
    barmodes: bool = False  # Whether the bar mode setting applies
    modes: bool = False  # Whether the scatter mode setting applies
    config: Dict[str, Any] = DF(dict)  # Plot-specific Vega-Lite config


registry: Dict[str, Callable[[TraceInput], Trace]] = {}
registry_meta: Dict[str, PlotMeta] = {}
chart_registry: Dict[str, Callable[[ChartInput], AltairChart]] = {}
_registry_bootstrapped = False


def _ensure_plot_registry_loaded() -> None:
    """Import the plots module lazily to populate the registry."""
    global _registry_bootstrapped
    if _registry_bootstrapped:
        return
    import dfplot.plots  # noqa: F401

    _registry_bootstrapped = True


def dfplot_plot(plot_name: str, **r_kwargs: object) -> Callable[[Callable[[TraceInput], Trace]], Callable[[TraceInput], Trace]]:
    """Register a trace builder inside the global plot registry."""

    def _decorator(gfunc: Callable[[TraceInput], Trace]) -> Callable[[TraceInput], Trace]:
        registry[plot_name] = gfunc
        registry_meta[plot_name] = PlotMeta.model_validate({"name": plot_name, **r_kwargs})
        return gfunc

    return _decorator


def dfplot_chart(plot_name: str) -> Callable[[Callable[[ChartInput], AltairChart]], Callable[[ChartInput], AltairChart]]:
    """Register the Altair chart builder for traces of ``plot_name``."""

    def _decorator(gfunc: Callable[[ChartInput], AltairChart]) -> Callable[[ChartInput], AltairChart]:
        chart_registry[plot_name] = gfunc
        return gfunc

    return _decorator


def _dfplot_deregister(plot_name: str) -> None:
    """Remove a plot from the registry (used in tests)."""

    registry.pop(plot_name, None)
    registry_meta.pop(plot_name, None)
    chart_registry.pop(plot_name, None)


def _get_plot_fn(plot_name: str) -> Callable[[TraceInput], Trace]:
    """Retrieve a registered trace builder by name."""

    _ensure_plot_registry_loaded()
    if plot_name not in registry:
        raise ValueError(f"Plot not registered: {plot_name}")
    return registry[plot_name]


def _get_chart_fn(plot_name: str) -> Callable[[ChartInput], AltairChart]:
    _ensure_plot_registry_loaded()
    if plot_name not in chart_registry:
        raise ValueError(f"No chart builder registered for plot: {plot_name}")
    return chart_registry[plot_name]


def get_plot_meta(plot_name: str) -> PlotMeta:
    """Return the registry metadata entry for ``plot_name``."""

    _ensure_plot_registry_loaded()
    if plot_name not in registry_meta:
        raise ValueError(f"Plot not registered: {plot_name}")
    return registry_meta[plot_name].model_copy(deep=True)


# --------------------------------------------------------
#          CONFIG
# --------------------------------------------------------

# Applied first; plot config goes on top and the user custom config last so it always wins
_altair_base_config: Dict[str, Any] = {
    "legend": {
        "orient": "right",
        "labelFontSize": 12,
        "titleFontSize": 12,
    },
    "axis": {
        "labelFontSize": 12,
        "titleFontSize": 13,
    },
    "view": {"stroke": None},
}


def load_custom_config(path: Optional[str]) -> Dict[str, Any]:
    """Load a user Vega-Lite config override from a JSON or YAML file."""

    if path is None:
        return {}
    if path.endswith(".json"):
        cfg = utils.read_json(path)
    else:
        cfg = utils.read_yaml(path)
    if cfg is None:
        return {}
    if not isinstance(cfg, dict):
        raise ValueError(f"Config file {path} must contain a mapping, got {type(cfg).__name__}")
    return cfg


def _full_config(plot_meta: PlotMeta, custom_config: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Base config, then plot config, then the user custom config."""

    cfg = deepcopy(_altair_base_config)
    utils.deep_merge(cfg, deepcopy(plot_meta.config))
    if custom_config:
        utils.deep_merge(cfg, deepcopy(dict(custom_config)))
    return cfg


# --------------------------------------------------------
#          TRACES
# --------------------------------------------------------


def trace_name(y: str, combination: Optional[Combination] = None) -> str:
    """Trace name: the y column, prefixed with ``[cat_a, cat_b]:`` when grouping."""

    if not combination:
        return y
    return f"{combination_label(combination)}:{y}"


def build_traces(df: pl.DataFrame | pl.LazyFrame, pp_desc: Dict[str, Any] | PlotDescriptor) -> List[Trace]:
    """Build every trace of a chart request, in emission order.

    Traces come out combination by combination (odometer order over the group
    columns) and, within a combination, in the order of the y columns.
    """

    pp_desc = ensure_validated(pp_desc, PlotDescriptor)
    plot_meta = get_plot_meta(pp_desc.plot)
    trace_fn = _get_plot_fn(pp_desc.plot)

    df = utils.collect_if_lazy(df)

    scalers = None
    if plot_meta.barmodes and pp_desc.barmode == "proportion":
        scalers = fit_proportion_scalers(df, cast(str, pp_desc.x), pp_desc.y)

    plot_args: Dict[str, Any] = {}
    if plot_meta.modes:
        plot_args["mode"] = pp_desc.mode

    traces: List[Trace] = []

    def _add_traces(part: pl.DataFrame, combination: Optional[Combination]) -> None:
        for y in pp_desc.y:
            ti = TraceInput(
                data=part,
                y=y,
                name=trace_name(y, combination),
                x=pp_desc.x,
                scalers=scalers,
                plot_args=plot_args,
            )
            traces.append(trace_fn(ti))

    if pp_desc.group:
        groups = Groups.from_df(df, pp_desc.group)

        def _visit(ldf: pl.LazyFrame, combination: Combination) -> None:
            part = ldf.collect()
            if part.height == 0:
                logger.debug(f"Combination {combination_label(combination)} has no rows, emitting empty traces")
            _add_traces(part, combination)

        groups.for_each_combination(df, _visit)
    else:
        _add_traces(df, None)

    logger.debug(f"Built {len(traces)} {pp_desc.plot} traces")
    return traces


def _traces_to_longform(traces: Sequence[Trace]) -> pd.DataFrame:
    """Flatten traces into the long-form frame Altair wants."""

    rows = []
    for ti, t in enumerate(traces):
        xs = t.x if t.x is not None else [None] * len(t.y)
        for ri, (x, y) in enumerate(zip(xs, t.y)):
            rows.append({"trace": t.name, "trace_ind": ti, "row": ri, "x": x, "y": y})
    return pd.DataFrame(rows, columns=["trace", "trace_ind", "row", "x", "y"])


# --------------------------------------------------------
#          CHART
# --------------------------------------------------------


def create_chart(
    traces: Sequence[Trace],
    pp_desc: Dict[str, Any] | PlotDescriptor,
    custom_config: Optional[Mapping[str, Any]] = None,
) -> AltairChart:
    """Render ``traces`` as an Altair chart with axis titles, bar mode and config applied."""

    pp_desc = ensure_validated(pp_desc, PlotDescriptor)
    plot_meta = get_plot_meta(pp_desc.plot)
    chart_fn = _get_chart_fn(pp_desc.plot)

    titles: Dict[str, Optional[str]] = {"x": pp_desc.x if plot_meta.uses_x else None, "y": None}
    if len(pp_desc.y) == 1:
        titles[plot_meta.single_y_axis] = pp_desc.y[0]
    if plot_meta.count_axis is not None:
        titles[plot_meta.count_axis] = "count"

    ci = ChartInput(
        data=_traces_to_longform(traces),
        order=[t.name for t in traces],
        x_title=titles["x"],
        y_title=titles["y"],
        barmode=pp_desc.barmode,
        mode=pp_desc.mode,
        categorical=any(isinstance(v, str) for t in traces for v in t.y),
    )
    chart = chart_fn(ci)

    props: Dict[str, Any] = {"width": pp_desc.width}
    if pp_desc.height is not None:
        props["height"] = pp_desc.height
    if pp_desc.title is not None:
        props["title"] = pp_desc.title
    chart = chart.properties(**props)

    return chart.configure(**_full_config(plot_meta, custom_config))


def e2e_plot(
    pp_desc: Dict[str, Any] | PlotDescriptor,
    full_df: pl.DataFrame | pl.LazyFrame | None = None,
    custom_config: Optional[Mapping[str, Any]] = None,
) -> AltairChart:
    """A convenience function to draw a chart straight from a file (or a given frame)."""

    pp_desc = ensure_validated(pp_desc, PlotDescriptor)
    if full_df is None:
        if pp_desc.input is None:
            raise ValueError("Data must be provided either as an input file or full_df")
        full_df = read_table(pp_desc.input, infer_schema_length=pp_desc.infer_schema_length)

    traces = build_traces(full_df, pp_desc)
    return create_chart(traces, pp_desc, custom_config=custom_config)


def plot_to_output(
    pp_desc: Dict[str, Any] | PlotDescriptor,
    custom_config: Optional[Mapping[str, Any]] = None,
) -> AltairChart:
    """Build the chart for ``pp_desc`` and show it or write it to ``pp_desc.output``."""

    pp_desc = ensure_validated(pp_desc, PlotDescriptor)
    chart = e2e_plot(pp_desc, custom_config=custom_config)
    output_chart(chart, pp_desc.output)
    return chart
