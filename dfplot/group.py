"""Categorical Grouping
---------------------

Splits a table into every combination of the categories of the requested
group columns.

- `Groups.from_df` discovers each column's categories once, in
  first-occurrence order
- `Groups.for_each_combination` walks the cartesian product in odometer order
  (first group outermost, last group varies fastest) and hands each lazily
  filtered partition to a visitor
"""

from __future__ import annotations

__all__ = [
    "Group",
    "Groups",
    "SelectedGroupCategoryPair",
    "Combination",
    "build_groups",
    "for_each_combination",
    "combination_label",
]

import logging
from dataclasses import dataclass
from functools import reduce
from typing import Callable, Iterator, Sequence, Tuple, TypeAlias

import polars as pl

from dfplot.utils import Table, get_column, unique_stable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SelectedGroupCategoryPair:
    """One axis of a combination: ``column_name == category``."""

    column_name: str
    category: str


Combination: TypeAlias = Tuple[SelectedGroupCategoryPair, ...]
Visitor: TypeAlias = Callable[[pl.LazyFrame, Combination], None]


@dataclass(frozen=True)
class Group:
    """A group column with its distinct categories."""

    column_name: str
    categories: Tuple[str, ...]


@dataclass(frozen=True)
class Groups:
    """Ordered group columns; the order defines enumeration nesting and label order."""

    groups: Tuple[Group, ...]

    @classmethod
    def from_df(cls, df: Table, group_column_names: Sequence[str]) -> "Groups":
        """Discover the categories of each group column in ``df``.

        Args:
            df: Table to read categories from. Lazy frames are collected once,
                selecting only the group columns.
            group_column_names: Non-empty list of distinct column names.

        Raises:
            ValueError: For an empty/duplicated name list, a missing column or missing values.
            TypeError: If a group column is not a string column.
        """
        names = list(group_column_names)
        if not names:
            raise ValueError("At least one group column is required")
        if len(set(names)) != len(names):
            raise ValueError(f"Group columns must be distinct, got {names}")

        if isinstance(df, pl.LazyFrame):
            available = df.collect_schema().names()
            missing = [n for n in names if n not in available]
            if missing:
                raise ValueError(f"Column `{missing[0]}` not found. Available columns: {', '.join(available)}")
            df = df.select(names).collect()

        groups = tuple(Group(column_name=n, categories=tuple(unique_stable(get_column(df, n)))) for n in names)
        return cls(groups=groups)

    def __len__(self) -> int:
        return len(self.groups)

    def __iter__(self) -> Iterator[Group]:
        return iter(self.groups)

    @property
    def n_combinations(self) -> int:
        n = 1
        for g in self.groups:
            n *= len(g.categories)
        return n

    def combinations(self) -> Iterator[Combination]:
        """Yield every combination in odometer order.

        Uses a mixed-radix counter over category indices: the last digit is
        incremented first and carries into the digits before it.
        """
        radices = [len(g.categories) for g in self.groups]
        if not radices or 0 in radices:
            return

        idx = [0] * len(radices)
        while True:
            yield tuple(
                SelectedGroupCategoryPair(column_name=g.column_name, category=g.categories[i])
                for g, i in zip(self.groups, idx)
            )

            pos = len(idx) - 1
            while pos >= 0:
                idx[pos] += 1
                if idx[pos] < radices[pos]:
                    break
                idx[pos] = 0
                pos -= 1
            if pos < 0:  # Counter wrapped around
                return

    def for_each_combination(self, df: Table, visit: Visitor) -> None:
        """Call ``visit(partition, combination)`` for every combination.

        ``partition`` is a lazy view of ``df`` filtered to the combination.
        Empty partitions are visited too. Exceptions raised by ``visit``
        propagate immediately and stop the enumeration.
        """
        ldf = df.lazy()
        logger.debug(f"Enumerating {self.n_combinations} combinations over {[g.column_name for g in self.groups]}")
        for comb in self.combinations():
            pred = reduce(
                lambda acc, e: acc & e,
                [pl.col(p.column_name).cast(pl.Utf8) == pl.lit(p.category) for p in comb],
            )
            logger.debug(f"Visiting combination {combination_label(comb)}")
            visit(ldf.filter(pred), comb)


def build_groups(df: Table, group_column_names: Sequence[str]) -> Groups:
    """Functional alias for `Groups.from_df`."""

    return Groups.from_df(df, group_column_names)


def for_each_combination(groups: Groups, df: Table, visit: Visitor) -> None:
    """Functional alias for `Groups.for_each_combination`."""

    groups.for_each_combination(df, visit)


def combination_label(combination: Combination) -> str:
    """Render a combination as ``[cat_a, cat_b]`` (used in trace names)."""

    return "[" + ", ".join(p.category for p in combination) + "]"
