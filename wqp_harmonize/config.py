from dataclasses import dataclass
from typing import Tuple

# ResultCommentText values that mean the result was never measured
DEFAULT_COMMENTTEXT_MISSING: Tuple[str, ...] = (
    "analysis lost",
    "not analyzed",
    "not recorded",
    "not collected",
    "no measurement taken",
)

# ResultDetectionConditionText value that means the result is missing
NOT_REPORTED = "not reported"


@dataclass(frozen=True)
class CleaningConf:
    """Settings for ``clean_wqp_data``.

    Pass ``commenttext_missing`` with every term that should be treated as a
    missing result, the defaults are replaced rather than extended.
    """
    commenttext_missing: Tuple[str, ...] = DEFAULT_COMMENTTEXT_MISSING
    remove_duplicated_records: bool = True

    def __post_init__(self):
        # accept any iterable of strings, store a tuple so the conf stays hashable
        if isinstance(self.commenttext_missing, str):
            object.__setattr__(self, "commenttext_missing", (self.commenttext_missing,))
        else:
            object.__setattr__(self, "commenttext_missing", tuple(self.commenttext_missing))
