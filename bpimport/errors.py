"""Error taxonomy for blueprint imports.

Only ``FormatError`` is ever raised. Everything else that can go wrong with
the data inside a well-framed file is a ``DataAnomaly``: it is counted,
logged and skipped.
"""

from collections import Counter
from enum import Enum


class FormatError(ValueError):
    """The input is not a blueprint we can read. Aborts the whole import."""


class DataAnomaly(Enum):
    """Locally recovered problems, counted per import."""

    MISSING_REGIONS = "missing_regions"
    MISSING_ORIGIN = "missing_origin"
    MISSING_PALETTE = "missing_palette"
    MISSING_DATA = "missing_data"
    BAD_PALETTE_INDEX = "bad_palette_index"
    BAD_BLOCK_NAME = "bad_block_name"
    UNRESOLVED_NAME = "unresolved_name"
    BAD_COORDINATE = "bad_coordinate"
    BAD_BLOCK_ID = "bad_block_id"
    BAD_PREVIEW = "bad_preview"


class AnomalyCounter(Counter):
    """Counter of DataAnomaly occurrences."""

    def summary(self) -> str:
        if not self:
            return "none"
        return ", ".join(f"{kind.value}={count}" for kind, count in sorted(
            self.items(), key=lambda item: item[0].value))
