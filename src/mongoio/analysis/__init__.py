"""
Split analysis.

Turns splitVector boundaries into independent, non-overlapping range filters
for parallel reads.
"""

from mongoio.analysis.ranges import (
    range_bounds,
    split_keys_to_filters,
)

__all__ = [
    "range_bounds",
    "split_keys_to_filters",
]
