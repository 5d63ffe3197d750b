from functools import reduce
from typing import Iterable

import pandas as pd

from wqp_harmonize.config import DEFAULT_COMMENTTEXT_MISSING, NOT_REPORTED
from wqp_harmonize.schema import (
    CHAR_NAME_COL, COMMENT_COL, CROSSWALK_KEY_COL, DETECTION_CONDITION_COL,
    DETECTION_LIMIT_COL, FLAG_MISSING_COL, PARAMETER_COL, RESULT_VALUE_COL,
    check_crosswalk, check_required_columns, check_unique_columns)


def harmonize_char_names(df: pd.DataFrame, char_names_crosswalk: pd.DataFrame) -> pd.DataFrame:
    """Attach a harmonized ``parameter`` to each record via the crosswalk.

    Parameters
    ----------
    df : pd.DataFrame
        WQP records, must contain ``CharacteristicName``.
    char_names_crosswalk : pd.DataFrame
        Table with columns ``char_name`` and ``parameter``.

    Returns
    -------
    pd.DataFrame
        ``df`` left-joined with the crosswalk. Records whose characteristic
        name is not in the crosswalk are kept with a null ``parameter``.
        A crosswalk with repeated ``char_name`` values fans rows out; that is
        not checked here, ``clean_wqp_data`` rejects it.
    """
    check_unique_columns(df)
    check_required_columns(df, [CHAR_NAME_COL])
    check_crosswalk(char_names_crosswalk)
    if PARAMETER_COL in df.columns:
        raise ValueError(
            f"{PARAMETER_COL} is the column added by harmonization, "
            f"and can't already be present in the dataframe passed in"
        )

    xwalk = char_names_crosswalk[[CROSSWALK_KEY_COL, PARAMETER_COL]].rename(
        columns={CROSSWALK_KEY_COL: CHAR_NAME_COL})
    if xwalk[CHAR_NAME_COL].dtype != df[CHAR_NAME_COL].dtype:
        if pd.api.types.is_string_dtype(df[CHAR_NAME_COL].dtype):
            xwalk[CHAR_NAME_COL] = xwalk[CHAR_NAME_COL].astype(df[CHAR_NAME_COL].dtype)
        else:
            # merge refuses to join object keys against an all-null float column
            xwalk[CHAR_NAME_COL] = xwalk[CHAR_NAME_COL].astype(object)
            df = df.astype({CHAR_NAME_COL: object})
    return df.merge(xwalk, on=CHAR_NAME_COL, how="left")


def _contains_ci(ser: pd.Series, term: str) -> pd.Series:
    """Case-insensitive literal substring test, False where ``ser`` is null."""
    text = ser.astype("string").str.lower()
    return text.str.contains(term.lower(), regex=False).fillna(False).astype(bool)


def flag_missing_results(df: pd.DataFrame,
                         commenttext_missing: Iterable[str] = DEFAULT_COMMENTTEXT_MISSING
                         ) -> pd.DataFrame:
    """Add ``flag_missing_result``, True for records with no usable result.

    A record is flagged when both the result value and the detection limit
    value are null, when ``ResultDetectionConditionText`` contains
    "not reported", or when ``ResultCommentText`` contains any of
    ``commenttext_missing``. All text matching ignores case.
    """
    check_required_columns(df, [RESULT_VALUE_COL, DETECTION_LIMIT_COL,
                                DETECTION_CONDITION_COL, COMMENT_COL])
    if isinstance(commenttext_missing, str):
        commenttext_missing = [commenttext_missing]

    both_na = df[RESULT_VALUE_COL].isna() & df[DETECTION_LIMIT_COL].isna()
    not_reported = _contains_ci(df[DETECTION_CONDITION_COL], NOT_REPORTED)
    comment_missing = reduce(
        lambda acc, term: acc | _contains_ci(df[COMMENT_COL], term),
        commenttext_missing,
        pd.Series(False, index=df.index))

    df = df.copy()
    df[FLAG_MISSING_COL] = (both_na | not_reported | comment_missing).astype(bool)
    return df
