"""Harmonize Water Quality Portal downloads into analysis-ready tables.

The pandas implementation is exported here; the polars implementation of the
same functions lives in ``wqp_harmonize.polars_clean``.
"""
from wqp_harmonize.clean import clean_wqp_data
from wqp_harmonize.config import DEFAULT_COMMENTTEXT_MISSING, CleaningConf
from wqp_harmonize.duplicates import flag_duplicates, remove_duplicates
from wqp_harmonize.harmonize import flag_missing_results, harmonize_char_names
from wqp_harmonize.schema import (
    CrosswalkFanoutError, SchemaError, check_crosswalk, check_required_columns)

__version__ = "0.1.0"

__all__ = [
    "clean_wqp_data",
    "harmonize_char_names",
    "flag_missing_results",
    "flag_duplicates",
    "remove_duplicates",
    "CleaningConf",
    "DEFAULT_COMMENTTEXT_MISSING",
    "CrosswalkFanoutError",
    "SchemaError",
    "check_crosswalk",
    "check_required_columns",
]
