"""Tests for flag_duplicates / remove_duplicates on pandas frames."""
import numpy as np
import pandas as pd
import pytest

from wqp_harmonize.duplicates import flag_duplicates, remove_duplicates
from wqp_harmonize.schema import SchemaError


def records_df():
    return pd.DataFrame({
        "site": ["B", "A", "A", "C", "A", "B"],
        "date": ["2020-01-02", "2020-01-01", "2020-01-01", "2020-01-05", "2020-01-03", "2020-01-02"],
        "value": [5.0, 2.0, 1.0, 7.0, 3.0, 5.0],
    })


KEY = ["site", "date"]


# ============================================================================
# flag_duplicates
# ============================================================================

class TestFlagDuplicates:
    def test_group_sizes_and_flags(self):
        out = flag_duplicates(records_df(), KEY)

        assert out[["site", "date", "value", "group_size", "is_duplicate"]].values.tolist() == [
            ["A", "2020-01-01", 1.0, 2, True],
            ["A", "2020-01-01", 2.0, 2, True],
            ["A", "2020-01-03", 3.0, 1, False],
            ["B", "2020-01-02", 5.0, 2, True],
            ["B", "2020-01-02", 5.0, 2, True],
            ["C", "2020-01-05", 7.0, 1, False],
        ]

    def test_row_count_and_completeness(self):
        df = records_df()
        out = flag_duplicates(df, KEY)

        assert len(out) == len(df)
        per_group = out.groupby(KEY)["group_size"].first()
        assert per_group.sum() == len(df)

    def test_sorted_order_with_fresh_index(self):
        out = flag_duplicates(records_df(), "value")

        assert out["value"].tolist() == [1.0, 2.0, 3.0, 5.0, 5.0, 7.0]
        assert out.index.tolist() == list(range(6))

    def test_permuted_input_same_output(self):
        df = records_df()
        shuffled = df.sample(frac=1, random_state=7)

        pd.testing.assert_frame_equal(flag_duplicates(df, KEY), flag_duplicates(shuffled, KEY))

    def test_null_keys_form_a_group(self):
        df = pd.DataFrame({"site": ["A", None, None], "value": [1, 2, 3]})
        out = flag_duplicates(df, "site")

        assert out["site"].tolist()[0] == "A"
        assert out["group_size"].tolist() == [1, 2, 2]
        assert out["is_duplicate"].tolist() == [False, True, True]

    def test_all_unique(self):
        out = flag_duplicates(records_df(), ["site", "date", "value"])
        assert out["is_duplicate"].sum() == 2  # the exact B rows
        out = flag_duplicates(records_df().drop_duplicates(), ["site", "date", "value"])
        assert not out["is_duplicate"].any()

    def test_empty(self):
        df = records_df().iloc[0:0]
        out = flag_duplicates(df, KEY)

        assert len(out) == 0
        assert {"group_size", "is_duplicate"} <= set(out.columns)

    def test_input_not_mutated(self):
        df = records_df()
        flag_duplicates(df, KEY)
        pd.testing.assert_frame_equal(df, records_df())

    def test_rejects_existing_flag_column(self):
        with pytest.raises(ValueError, match="group_size"):
            flag_duplicates(records_df().assign(group_size=1), KEY)


# ============================================================================
# remove_duplicates
# ============================================================================

class TestRemoveDuplicates:
    def test_keeps_first_after_sort(self):
        out = remove_duplicates(records_df(), KEY)

        assert out.values.tolist() == [
            ["A", "2020-01-01", 1.0],
            ["A", "2020-01-03", 3.0],
            ["B", "2020-01-02", 5.0],
            ["C", "2020-01-05", 7.0],
        ]
        assert out.index.tolist() == [0, 1, 2, 3]
        assert list(out.columns) == ["site", "date", "value"]

    def test_one_survivor_per_group(self):
        df = records_df()
        out = remove_duplicates(df, KEY)

        assert len(out) == df.groupby(KEY).ngroups
        assert not out.duplicated(subset=KEY).any()

    def test_idempotent(self):
        once = remove_duplicates(records_df(), KEY)
        twice = remove_duplicates(once, KEY)
        pd.testing.assert_frame_equal(once, twice)

    def test_no_duplicates_keeps_every_row(self):
        df = records_df().drop_duplicates()
        out = remove_duplicates(df, ["site", "date", "value"])
        assert len(out) == len(df)

    def test_exact_duplicates_all_columns(self):
        df = records_df()
        out = remove_duplicates(df, list(df.columns))

        assert len(out) == 5
        assert (out["site"] == "B").sum() == 1

    def test_permuted_input_same_output(self):
        df = records_df()
        for seed in range(5):
            shuffled = df.sample(frac=1, random_state=seed)
            pd.testing.assert_frame_equal(remove_duplicates(df, "site"), remove_duplicates(shuffled, "site"))

    def test_null_keys_deduplicated_together(self):
        df = pd.DataFrame({"site": [None, "A", None], "value": [2.0, 1.0, np.nan]})
        out = remove_duplicates(df, "site")

        assert len(out) == 2
        assert out["site"].tolist()[0] == "A"
        # nulls sort last, so 2.0 beats NaN within the null-site group
        assert out["value"].tolist()[1] == 2.0

    def test_empty(self):
        df = records_df().iloc[0:0]
        out = remove_duplicates(df, KEY)
        assert len(out) == 0
        assert list(out.columns) == ["site", "date", "value"]


# ============================================================================
# duplicate_definition validation
# ============================================================================

def test_empty_definition_rejected():
    with pytest.raises(ValueError, match="at least one column"):
        remove_duplicates(records_df(), [])


def test_unknown_column_rejected():
    with pytest.raises(SchemaError) as exc_info:
        flag_duplicates(records_df(), ["site", "depth"])
    assert exc_info.value.missing == ["depth"]


def test_sentinel_column_rejected():
    with pytest.raises(ValueError, match="__wqp_dup_number"):
        remove_duplicates(records_df().assign(__wqp_dup_number=1), "site")
