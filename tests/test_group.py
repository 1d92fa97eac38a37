"""Tests for the categorical grouping engine in `dfplot.group`."""

import itertools as it

import polars as pl
import pytest

from dfplot.group import (
    Group,
    Groups,
    SelectedGroupCategoryPair,
    build_groups,
    combination_label,
    for_each_combination,
)


def _collect(groups, df):
    """Run the enumeration and return (labels, partition) per visit."""
    seen = []

    def _visit(ldf, comb):
        assert isinstance(ldf, pl.LazyFrame)
        seen.append((tuple(p.category for p in comb), ldf.collect()))

    groups.for_each_combination(df, _visit)
    return seen


class TestBuildGroups:
    def test_first_occurrence_order(self, sales_df):
        groups = Groups.from_df(sales_df, ["tier", "region"])
        assert groups.groups == (
            Group(column_name="tier", categories=("gold", "silver")),
            Group(column_name="region", categories=("EU", "US")),
        )

    def test_not_sorted(self):
        df = pl.DataFrame({"g": ["z", "a", "z", "m"]})
        assert build_groups(df, ["g"]).groups[0].categories == ("z", "a", "m")

    def test_lazy_frame(self, sales_df):
        groups = Groups.from_df(sales_df.lazy(), ["month"])
        assert groups.groups[0].categories == ("jan", "feb", "mar")

    def test_overlapping_labels_stay_scoped(self):
        df = pl.DataFrame({"a": ["x", "y"], "b": ["y", "x"]})
        groups = Groups.from_df(df, ["a", "b"])
        assert [g.column_name for g in groups] == ["a", "b"]
        assert groups.groups[1].categories == ("y", "x")

    def test_categorical_column(self):
        df = pl.DataFrame({"g": ["b", "a", "b"]}).with_columns(pl.col("g").cast(pl.Categorical))
        assert Groups.from_df(df, ["g"]).groups[0].categories == ("b", "a")

    def test_errors(self, sales_df):
        with pytest.raises(ValueError, match="At least one group column"):
            Groups.from_df(sales_df, [])
        with pytest.raises(ValueError, match="distinct"):
            Groups.from_df(sales_df, ["tier", "tier"])
        with pytest.raises(ValueError, match="not found"):
            Groups.from_df(sales_df, ["nope"])
        with pytest.raises(ValueError, match="not found"):
            Groups.from_df(sales_df.lazy(), ["nope"])
        with pytest.raises(TypeError, match="must hold strings"):
            Groups.from_df(sales_df, ["sales"])

    def test_missing_value(self):
        df = pl.DataFrame({"g": ["a", None, "b"]})
        with pytest.raises(ValueError, match="missing"):
            Groups.from_df(df, ["g"])


class TestForEachCombination:
    def test_odometer_order(self):
        df = pl.DataFrame({"region": ["EU", "US", "EU"], "tier": ["gold", "silver", "silver"]})
        groups = Groups.from_df(df, ["region", "tier"])
        labels = [labels for labels, _ in _collect(groups, df)]
        assert labels == [("EU", "gold"), ("EU", "silver"), ("US", "gold"), ("US", "silver")]

    def test_callback_count_is_product(self):
        df = pl.DataFrame(
            {
                "a": ["a1", "a2", "a3", "a1"],
                "b": ["b1", "b2", "b1", "b1"],
                "c": ["c1", "c1", "c2", "c3"],
            }
        )
        groups = Groups.from_df(df, ["a", "b", "c"])
        labels = [labels for labels, _ in _collect(groups, df)]
        assert groups.n_combinations == 3 * 2 * 3
        assert len(labels) == 18
        assert len(set(labels)) == 18
        assert labels == list(it.product(["a1", "a2", "a3"], ["b1", "b2"], ["c1", "c2", "c3"]))

    def test_partitions_filtered(self, sales_df):
        groups = Groups.from_df(sales_df, ["region", "tier"])
        parts = dict(_collect(groups, sales_df))
        assert parts[("EU", "gold")]["sales"].to_list() == [10.0, 50.0]
        assert parts[("US", "silver")]["sales"].to_list() == [40.0]

    def test_empty_combination_is_visited(self):
        df = pl.DataFrame({"a": ["x", "y"], "b": ["p", "q"]})
        groups = Groups.from_df(df, ["a", "b"])
        parts = dict(_collect(groups, df))
        assert len(parts) == 4
        assert parts[("x", "q")].height == 0
        assert parts[("x", "q")].columns == ["a", "b"]

    def test_pairs_carry_column_names(self, sales_df):
        groups = Groups.from_df(sales_df, ["region", "tier"])
        combs = list(groups.combinations())
        assert combs[0] == (
            SelectedGroupCategoryPair(column_name="region", category="EU"),
            SelectedGroupCategoryPair(column_name="tier", category="gold"),
        )

    def test_visitor_error_aborts(self, sales_df):
        groups = Groups.from_df(sales_df, ["region"])
        calls = []

        def _visit(ldf, comb):
            calls.append(comb)
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            for_each_combination(groups, sales_df, _visit)
        assert len(calls) == 1

    def test_single_group(self, sales_df):
        groups = Groups.from_df(sales_df, ["month"])
        labels = [labels for labels, _ in _collect(groups, sales_df.lazy())]
        assert labels == [("jan",), ("feb",), ("mar",)]


def test_combination_label():
    comb = (
        SelectedGroupCategoryPair(column_name="region", category="EU"),
        SelectedGroupCategoryPair(column_name="tier", category="gold"),
    )
    assert combination_label(comb) == "[EU, gold]"
