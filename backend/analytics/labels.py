"""
Percentile Labels
Fixed 10-bucket mapping from a percentile in [0, 1] to a qualitative label.
"""

import math
from typing import Tuple


DEFAULT_LABEL = "Around average"

# (inclusive upper bound, label)
LABEL_BUCKETS: Tuple[Tuple[float, str], ...] = (
    (0.1, "Extreme dip"),
    (0.2, "Very big dip"),
    (0.3, "Big dip"),
    (0.4, "Dip"),
    (0.5, "Small dip"),
    (0.6, "Around average"),
    (0.7, "Small pump"),
    (0.8, "Pump"),
    (0.9, "Big pump"),
)
TOP_LABEL = "Extreme pump"

LABELS: Tuple[str, ...] = tuple(label for _, label in LABEL_BUCKETS) + (TOP_LABEL,)


def label_from_percentile(percentile: float) -> str:
    if percentile is None or math.isnan(percentile):
        return DEFAULT_LABEL
    for upper, label in LABEL_BUCKETS:
        if percentile <= upper:
            return label
    return TOP_LABEL
