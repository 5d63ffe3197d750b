"""Column vocabulary and validation for Water Quality Portal frames.

Both the pandas and polars backends validate through these helpers, so
anything that exposes ``.columns`` works here.
"""
from typing import Iterable, List, Sequence, Union

# WQP columns the cleaning step reads
CHAR_NAME_COL = "CharacteristicName"
RESULT_VALUE_COL = "ResultMeasureValue"
DETECTION_LIMIT_COL = "DetectionQuantitationLimitMeasure.MeasureValue"
DETECTION_CONDITION_COL = "ResultDetectionConditionText"
COMMENT_COL = "ResultCommentText"

REQUIRED_WQP_COLUMNS = (
    CHAR_NAME_COL,
    RESULT_VALUE_COL,
    DETECTION_LIMIT_COL,
    DETECTION_CONDITION_COL,
    COMMENT_COL,
)

# crosswalk columns
CROSSWALK_KEY_COL = "char_name"
PARAMETER_COL = "parameter"
REQUIRED_CROSSWALK_COLUMNS = (CROSSWALK_KEY_COL, PARAMETER_COL)

# derived columns
FLAG_MISSING_COL = "flag_missing_result"
GROUP_SIZE_COL = "group_size"
IS_DUPLICATE_COL = "is_duplicate"

# sentinel columns used internally, never present in output
DUP_NUMBER_COL = "__wqp_dup_number"
ROW_NR_COL = "__wqp_row_nr"
SENTINEL_COLUMNS = (DUP_NUMBER_COL, ROW_NR_COL)


class SchemaError(ValueError):
    """A frame is missing columns the cleaning step depends on."""

    def __init__(self, message: str, missing: Sequence[str] = (), frame_name: str = "dataset"):
        self.missing = list(missing)
        self.frame_name = frame_name
        super().__init__(message)


class CrosswalkFanoutError(ValueError):
    """Harmonizing characteristic names added rows to the dataset."""

    def __init__(self, n_before: int, n_after: int, duplicated_char_names: Sequence[str] = ()):
        self.n_before = n_before
        self.n_after = n_after
        self.duplicated_char_names = list(duplicated_char_names)
        msg = (
            f"Records were unintentionally duplicated during the data flagging step "
            f"({n_before} records in, {n_after} records out). In the `char_names_crosswalk` "
            f"table, check that each '{CROSSWALK_KEY_COL}' corresponds with one unique "
            f"'{PARAMETER_COL}' value."
        )
        if self.duplicated_char_names:
            msg += f" Duplicated '{CROSSWALK_KEY_COL}' values: {self.duplicated_char_names}"
        super().__init__(msg)


def check_unique_columns(df, frame_name: str = "dataset") -> None:
    cols = list(df.columns)
    if len(set(cols)) != len(cols):
        dupes = sorted({str(c) for c in cols if cols.count(c) > 1})
        raise SchemaError(
            f"{frame_name} has duplicate columns {dupes}. Column names must be distinct",
            frame_name=frame_name,
        )


def check_required_columns(df, required: Iterable[str] = REQUIRED_WQP_COLUMNS,
                           frame_name: str = "dataset") -> None:
    """Raise SchemaError naming every column of ``required`` absent from ``df``."""
    present = set(df.columns)
    missing = [col for col in required if col not in present]
    if missing:
        raise SchemaError(
            f"{frame_name} is missing required column(s): {missing}",
            missing=missing, frame_name=frame_name,
        )


def check_crosswalk(crosswalk) -> None:
    check_unique_columns(crosswalk, "char_names_crosswalk")
    check_required_columns(crosswalk, REQUIRED_CROSSWALK_COLUMNS, "char_names_crosswalk")


def check_sentinels(df) -> None:
    for col in df.columns:
        if col in SENTINEL_COLUMNS:
            raise ValueError(
                f"{col} is a sentinel column name used internally, "
                f"and can't be used in a dataframe passed in"
            )


def normalize_definition(df, duplicate_definition: Union[str, Sequence[str]]) -> List[str]:
    """Turn a duplicate definition into a validated list of column names."""
    if isinstance(duplicate_definition, str):
        duplicate_definition = [duplicate_definition]
    key_columns = list(duplicate_definition)
    if not key_columns:
        raise ValueError("duplicate_definition must name at least one column")
    check_required_columns(df, key_columns)
    check_unique_columns(df)
    check_sentinels(df)
    return key_columns


def sort_order(columns: Sequence[str], key_columns: Sequence[str]) -> List[str]:
    """Key columns first, then every remaining column in schema order."""
    return list(key_columns) + [c for c in columns if c not in key_columns]
