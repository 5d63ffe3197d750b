"""Polars implementation of the WQP cleaning step.

Same functions and semantics as the pandas modules (``harmonize``,
``duplicates``, ``clean``), operating on ``pl.DataFrame``.
"""
import logging
from typing import Iterable, Optional, Sequence, Union

import polars as pl

from wqp_harmonize.clean import report_removed
from wqp_harmonize.config import DEFAULT_COMMENTTEXT_MISSING, NOT_REPORTED, CleaningConf
from wqp_harmonize.schema import (
    CHAR_NAME_COL, COMMENT_COL, CROSSWALK_KEY_COL, DETECTION_CONDITION_COL,
    DETECTION_LIMIT_COL, DUP_NUMBER_COL, FLAG_MISSING_COL, GROUP_SIZE_COL,
    IS_DUPLICATE_COL, PARAMETER_COL, RESULT_VALUE_COL, ROW_NR_COL,
    CrosswalkFanoutError, check_crosswalk, check_required_columns,
    check_sentinels, check_unique_columns, normalize_definition, sort_order)

log = logging.getLogger("wqp_harmonize.polars_clean")


def harmonize_char_names(df: pl.DataFrame, char_names_crosswalk: pl.DataFrame) -> pl.DataFrame:
    """Left join ``df`` with the crosswalk, adding ``parameter``."""
    check_unique_columns(df)
    check_required_columns(df, [CHAR_NAME_COL])
    check_crosswalk(char_names_crosswalk)
    check_sentinels(df)
    if PARAMETER_COL in df.columns:
        raise ValueError(
            f"{PARAMETER_COL} is the column added by harmonization, "
            f"and can't already be present in the dataframe passed in"
        )

    key_dtype = df.schema[CHAR_NAME_COL]
    xwalk = char_names_crosswalk.select(
        pl.col(CROSSWALK_KEY_COL).cast(key_dtype).alias(CHAR_NAME_COL),
        pl.col(PARAMETER_COL),
    )
    # carry the input position through the join so left order is restored
    # regardless of how the join engine emits rows
    return (
        df.with_row_index(ROW_NR_COL)
        .join(xwalk, on=CHAR_NAME_COL, how="left")
        .sort(ROW_NR_COL, maintain_order=True)
        .drop(ROW_NR_COL)
    )


def _contains_ci(col: str, term: str) -> pl.Expr:
    return (
        pl.col(col).cast(pl.String).str.to_lowercase()
        .str.contains(term.lower(), literal=True)
        .fill_null(False)
    )


def _is_missing(df: pl.DataFrame, col: str) -> pl.Expr:
    # NaN counts as missing, as it does for pandas isna()
    if df.schema[col] in (pl.Float32, pl.Float64):
        return pl.col(col).is_null() | pl.col(col).is_nan()
    return pl.col(col).is_null()


def flag_missing_results(df: pl.DataFrame,
                         commenttext_missing: Iterable[str] = DEFAULT_COMMENTTEXT_MISSING
                         ) -> pl.DataFrame:
    """Add ``flag_missing_result``; see ``wqp_harmonize.harmonize.flag_missing_results``."""
    check_required_columns(df, [RESULT_VALUE_COL, DETECTION_LIMIT_COL,
                                DETECTION_CONDITION_COL, COMMENT_COL])
    if isinstance(commenttext_missing, str):
        commenttext_missing = [commenttext_missing]

    flag = (
        (_is_missing(df, RESULT_VALUE_COL) & _is_missing(df, DETECTION_LIMIT_COL))
        | _contains_ci(DETECTION_CONDITION_COL, NOT_REPORTED)
    )
    for term in commenttext_missing:
        flag = flag | _contains_ci(COMMENT_COL, term)
    return df.with_columns(flag.fill_null(False).alias(FLAG_MISSING_COL))


def _arrange(df: pl.DataFrame, key_columns: Sequence[str]) -> pl.DataFrame:
    # nulls_last matches pandas na_position="last"
    return df.sort(sort_order(df.columns, key_columns), nulls_last=True, maintain_order=True)


def flag_duplicates(df: pl.DataFrame, duplicate_definition: Union[str, Sequence[str]]) -> pl.DataFrame:
    """Sorted copy of ``df`` with ``group_size`` and ``is_duplicate``."""
    key_columns = normalize_definition(df, duplicate_definition)
    for col in (GROUP_SIZE_COL, IS_DUPLICATE_COL):
        if col in df.columns:
            raise ValueError(f"{col} is added by flag_duplicates and can't already be present")

    return _arrange(df, key_columns).with_columns(
        pl.len().over(key_columns).cast(pl.Int64).alias(GROUP_SIZE_COL)
    ).with_columns(
        (pl.col(GROUP_SIZE_COL) > 1).alias(IS_DUPLICATE_COL)
    )


def remove_duplicates(df: pl.DataFrame, duplicate_definition: Union[str, Sequence[str]]) -> pl.DataFrame:
    """Keep the first record of each duplicate set after the deterministic sort."""
    key_columns = normalize_definition(df, duplicate_definition)
    return (
        _arrange(df, key_columns)
        .with_columns((pl.int_range(pl.len()).over(key_columns) + 1).alias(DUP_NUMBER_COL))
        .filter(pl.col(DUP_NUMBER_COL) == 1)
        .drop(DUP_NUMBER_COL)
    )


def duplicated_char_names(char_names_crosswalk: pl.DataFrame) -> list:
    keys = char_names_crosswalk.get_column(CROSSWALK_KEY_COL)
    return sorted(keys.filter(keys.is_duplicated()).drop_nulls().cast(pl.String).unique().to_list())


def clean_wqp_data(df: pl.DataFrame,
                   char_names_crosswalk: pl.DataFrame,
                   commenttext_missing: Iterable[str] = DEFAULT_COMMENTTEXT_MISSING,
                   remove_duplicated_records: bool = True,
                   conf: Optional[CleaningConf] = None) -> pl.DataFrame:
    """Polars counterpart of ``wqp_harmonize.clean.clean_wqp_data``."""
    if conf is not None:
        commenttext_missing = conf.commenttext_missing
        remove_duplicated_records = conf.remove_duplicated_records

    check_unique_columns(df)
    check_required_columns(df)
    check_crosswalk(char_names_crosswalk)

    n_in = df.height
    cleaned = flag_missing_results(harmonize_char_names(df, char_names_crosswalk), commenttext_missing)
    log.debug("harmonized %d records into %d rows", n_in, cleaned.height)

    if cleaned.height > n_in:
        dupes = duplicated_char_names(char_names_crosswalk)
        log.error("crosswalk fan-out on %s: %d records became %d", CHAR_NAME_COL, n_in, cleaned.height)
        raise CrosswalkFanoutError(n_in, cleaned.height, dupes)

    if remove_duplicated_records:
        cleaned = remove_duplicates(cleaned, cleaned.columns)
        report_removed(n_in, cleaned.height)

    return cleaned
