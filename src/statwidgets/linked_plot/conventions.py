"""Shared constants for the linked plot engine.

Single source of truth for numeric constants and sentinel keys so the
transform, sort, coordinate and filter modules stay consistent.
"""

# Additive offset applied before log10 so that zero-valued summaries stay finite.
LOG_OFFSET = 0.05

# Fraction of the value spread added above and below the domain before nicing.
DOMAIN_PADDING_FRACTION = 0.1

# Default fractional spacing between ordinal bands (d3 rangeBands padding).
DEFAULT_BAND_SPACING = 0.1

# Minimum pixel gap kept between adjacent minor boxes inside one major band.
MIN_BAND_GAP_PX = 2.0

# Approximate number of ticks used when nicing the value axis.
NICE_TICK_COUNT = 10

# Minor-box keys used by two-cohort (sex) differentiation; male is always drawn first.
MALE_KEY = "male"
FEMALE_KEY = "female"
COHORT_ORDER = (MALE_KEY, FEMALE_KEY)

# Shown when the filter panel is submitted with nothing checked.
EMPTY_SELECTION_MESSAGE = "At least one cohort selection is required to filter."

# Fallback colors when the record source does not provide one.
DEFAULT_BOX_COLOR = "grey"
MALE_COLOR = "#4a90d9"
FEMALE_COLOR = "#e0719e"


def cohort_rank(key: str) -> int:
    """Rank of a minor key in the fixed male/female order; unknown keys sort after."""
    try:
        return COHORT_ORDER.index(key)
    except ValueError:
        return len(COHORT_ORDER)
