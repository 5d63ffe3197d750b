"""Duplicate flagging and removal for pandas frames.

Rows are always arranged by the duplicate definition and then by every
other column before groups are numbered, so the same records produce the
same output on any machine and in any input order. Both functions return
rows in that sorted order with a fresh index.
"""
from typing import Sequence, Union

import pandas as pd

from wqp_harmonize.schema import (
    DUP_NUMBER_COL, GROUP_SIZE_COL, IS_DUPLICATE_COL,
    normalize_definition, sort_order)


def _arrange(df: pd.DataFrame, key_columns: Sequence[str]) -> pd.DataFrame:
    # multi-column sort_values goes through lexsort, which is stable;
    # kind only applies to the single column case
    return df.sort_values(
        sort_order(df.columns, key_columns),
        kind="mergesort", na_position="last",
    ).reset_index(drop=True)


def _group_ids(df: pd.DataFrame, key_columns: Sequence[str]) -> pd.Series:
    # dropna=False so null key values form a group of their own
    return df.groupby(list(key_columns), dropna=False, sort=False).ngroup()


def _group_sizes(df: pd.DataFrame, key_columns: Sequence[str]) -> pd.Series:
    group_ids = _group_ids(df, key_columns)
    return group_ids.map(group_ids.value_counts()).astype("int64")


def flag_duplicates(df: pd.DataFrame, duplicate_definition: Union[str, Sequence[str]]) -> pd.DataFrame:
    """Flag rows that share values across ``duplicate_definition``.

    Parameters
    ----------
    df : pd.DataFrame
        Records to check. Nothing is removed.
    duplicate_definition : str or list[str]
        Column(s) whose combined values identify a duplicate record.

    Returns
    -------
    pd.DataFrame
        Sorted copy of ``df`` with ``group_size`` (records sharing the key)
        and ``is_duplicate`` (``group_size > 1``) appended.
    """
    key_columns = normalize_definition(df, duplicate_definition)
    for col in (GROUP_SIZE_COL, IS_DUPLICATE_COL):
        if col in df.columns:
            raise ValueError(f"{col} is added by flag_duplicates and can't already be present")

    out = _arrange(df, key_columns)
    out[GROUP_SIZE_COL] = _group_sizes(out, key_columns)
    out[IS_DUPLICATE_COL] = (out[GROUP_SIZE_COL] > 1).astype(bool)
    return out


def remove_duplicates(df: pd.DataFrame, duplicate_definition: Union[str, Sequence[str]]) -> pd.DataFrame:
    """Keep the first record of every duplicate set and drop the rest.

    "First" is the first row after arranging by ``duplicate_definition`` and
    then by all remaining columns, so which record survives is arbitrary but
    reproducible. When ``duplicate_definition`` names every column this is
    exact-row de-duplication.
    """
    key_columns = normalize_definition(df, duplicate_definition)
    out = _arrange(df, key_columns)
    if not len(out):
        return out

    group_ids = _group_ids(out, key_columns)
    out[DUP_NUMBER_COL] = group_ids.groupby(group_ids).cumcount() + 1
    out = out[out[DUP_NUMBER_COL] == 1]
    return out.drop(columns=[DUP_NUMBER_COL]).reset_index(drop=True)
