"""Proportion Scaling
-------------------

Turns stacked bar charts into 100%-stacked proportion charts.

For every x-category the estimator sees one observation per y-series (the
per-category sum of that series) and fits a factor ``1 / total``.  Applying the
fitted scaler to a single value gives its share of the category total.

- `ProportionScalingEstimator.fit` / `ProportionScaler.transform` are the
  estimator/transform pair and are strict about their inputs: negative,
  non-finite and zero-sum inputs fail instead of producing a wrong ratio
- `fit_proportion_scalers` builds the estimator input from a table
  (group by x, sum every y) and returns the label -> scaler mapping
- `scale_values` applies that mapping to a series, failing on unknown labels
"""

from __future__ import annotations

__all__ = [
    "ProportionScalingError",
    "CategoryNotFoundError",
    "ProportionScaler",
    "ProportionScalingEstimator",
    "ProportionScalers",
    "fit_proportion_scalers",
    "scale_values",
]

import logging
import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence, TypeAlias

import numpy as np
import polars as pl

from dfplot.utils import Table, column_to_str, get_column

logger = logging.getLogger(__name__)


class ProportionScalingError(ValueError):
    """Invalid input to the proportion scaler (negative, non-finite or zero-sum)."""


class CategoryNotFoundError(KeyError):
    """An x-label has no fitted proportion scaler."""

    def __init__(self, label: str):
        super().__init__(label)
        self.label = label

    def __str__(self) -> str:
        return f"No proportion scaler fitted for category `{self.label}`"


def _check_value(value: float) -> float:
    """Return ``value`` as float, raising if it is negative or not finite."""

    value = float(value)
    if not math.isfinite(value):
        raise ProportionScalingError(f"Value {value} is not finite")
    if value < 0:
        raise ProportionScalingError(f"Value {value} is negative")
    return value


@dataclass(frozen=True)
class ProportionScaler:
    """Fitted scaler for one category: multiplies values by ``factor = 1 / total``."""

    total: float
    factor: float

    def transform(self, value: float) -> float:
        """Share of the category total contributed by ``value``."""

        value = _check_value(value)
        # Not an error: exceeding the total is a caller data problem
        if value > self.total:
            logger.debug(f"Value {value} exceeds the fitted category total {self.total}")
        return value * self.factor


class ProportionScalingEstimator:
    """Fits a `ProportionScaler` from one category's observations."""

    def fit(self, observations: Iterable[float]) -> ProportionScaler:
        obs = np.asarray(list(observations), dtype=float)
        if obs.size == 0:
            raise ProportionScalingError("Cannot fit a proportion scaler on zero observations")
        if not np.isfinite(obs).all():
            raise ProportionScalingError(f"Observations {obs.tolist()} contain non-finite values")
        if (obs < 0).any():
            raise ProportionScalingError(f"Observations {obs.tolist()} contain negative values")

        total = float(obs.sum())
        if total == 0:
            raise ProportionScalingError("Observations sum to zero, proportions are undefined")
        return ProportionScaler(total=total, factor=1.0 / total)


ProportionScalers: TypeAlias = Dict[str, ProportionScaler]


def fit_proportion_scalers(df: Table, x: str, y_columns: Sequence[str]) -> ProportionScalers:
    """Fit one scaler per distinct value of ``x`` over the per-category sums of ``y_columns``.

    Args:
        df: Source table (eager or lazy).
        x: String column holding the categories.
        y_columns: Numeric columns that will be stacked.

    Returns:
        Mapping from category label to its fitted scaler.

    Raises:
        ValueError: For an empty or duplicated y list and missing columns.
        TypeError: If ``x`` is not a string column or a y column is not numeric.
    """
    if not y_columns:
        raise ValueError("At least one y column is needed to fit proportion scalers")
    if len(set(y_columns)) != len(y_columns):
        raise ValueError(f"Y columns must be distinct, got {list(y_columns)}")

    ldf = df.lazy()
    schema = ldf.collect_schema()
    available = schema.names()
    for c in [x, *y_columns]:
        if c not in available:
            raise ValueError(f"Column `{c}` not found. Available columns: {', '.join(available)}")

    # Checked up front, the aggregation below would otherwise cast strings to floats
    x_dtype = schema[x]
    if not (x_dtype == pl.Utf8 or x_dtype == pl.Categorical or x_dtype == pl.Enum):
        raise TypeError(f"Column `{x}` must hold strings, got {x_dtype}")
    for y in y_columns:
        if not schema[y].is_numeric():
            raise TypeError(f"Column `{y}` must be numeric, got {schema[y]}")

    sums = (
        ldf.group_by(x, maintain_order=True)
        .agg([pl.col(y).cast(pl.Float64).sum().alias(y) for y in y_columns])
        .collect()
    )

    labels = column_to_str(sums, x)
    est = ProportionScalingEstimator()
    rows = zip(*[get_column(sums, y).to_list() for y in y_columns])

    scalers: ProportionScalers = {}
    for label, row in zip(labels, rows):
        try:
            scalers[label] = est.fit(row)
        except ProportionScalingError as e:
            raise ProportionScalingError(f"Category `{label}` of column `{x}`: {e}") from e

    logger.debug(f"Fitted {len(scalers)} proportion scalers over {list(y_columns)} by `{x}`")
    return scalers


def scale_values(scalers: ProportionScalers, labels: Sequence[str], values: Sequence[float]) -> List[float]:
    """Scale ``values`` by the scaler of the matching label in ``labels``."""

    if len(labels) != len(values):
        raise ValueError(f"Got {len(labels)} labels for {len(values)} values")

    res = []
    for label, value in zip(labels, values):
        if label not in scalers:
            raise CategoryNotFoundError(label)
        res.append(scalers[label].transform(value))
    return res
