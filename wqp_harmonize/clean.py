import logging
from typing import Iterable, Optional

import pandas as pd

from wqp_harmonize.config import DEFAULT_COMMENTTEXT_MISSING, CleaningConf
from wqp_harmonize.duplicates import remove_duplicates
from wqp_harmonize.harmonize import flag_missing_results, harmonize_char_names
from wqp_harmonize.schema import (
    CHAR_NAME_COL, CROSSWALK_KEY_COL, CrosswalkFanoutError,
    check_crosswalk, check_required_columns, check_unique_columns)

log = logging.getLogger("wqp_harmonize.clean")


def duplicated_char_names(char_names_crosswalk) -> list:
    """Crosswalk ``char_name`` values that appear on more than one row."""
    keys = char_names_crosswalk[CROSSWALK_KEY_COL]
    return sorted(keys[keys.duplicated()].dropna().astype(str).unique().tolist())


def report_removed(n_before: int, n_after: int) -> str:
    removed = n_before - n_after
    frac = (removed / n_before * 100) if n_before else 0.0
    msg = ("Removed %d of %d records (%.1f%%) that were exactly "
           "duplicated across all columns" % (removed, n_before, frac))
    log.info(msg)
    return msg


def clean_wqp_data(df: pd.DataFrame,
                   char_names_crosswalk: pd.DataFrame,
                   commenttext_missing: Iterable[str] = DEFAULT_COMMENTTEXT_MISSING,
                   remove_duplicated_records: bool = True,
                   conf: Optional[CleaningConf] = None) -> pd.DataFrame:
    """Harmonize a frame of WQP records for analysis.

    Steps
    -----
    1. assign a common ``parameter`` to each characteristic name via the
       crosswalk (left join)
    2. add ``flag_missing_result``
    3. fail with ``CrosswalkFanoutError`` if steps 1-2 added records
    4. optionally drop records that are exactly duplicated across all
       columns, logging how many were removed

    ``conf`` overrides ``commenttext_missing`` and
    ``remove_duplicated_records`` when given.
    """
    if conf is not None:
        commenttext_missing = conf.commenttext_missing
        remove_duplicated_records = conf.remove_duplicated_records

    check_unique_columns(df)
    check_required_columns(df)
    check_crosswalk(char_names_crosswalk)

    n_in = len(df)
    cleaned = harmonize_char_names(df, char_names_crosswalk)
    cleaned = flag_missing_results(cleaned, commenttext_missing)
    log.debug("harmonized %d records into %d rows", n_in, len(cleaned))

    if len(cleaned) > n_in:
        dupes = duplicated_char_names(char_names_crosswalk)
        log.error("crosswalk fan-out on %s: %d records became %d", CHAR_NAME_COL, n_in, len(cleaned))
        raise CrosswalkFanoutError(n_in, len(cleaned), dupes)

    if remove_duplicated_records:
        cleaned = remove_duplicates(cleaned, list(cleaned.columns))
        report_removed(n_in, len(cleaned))

    return cleaned
