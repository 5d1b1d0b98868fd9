"""
Split planning for mongoio.

================================================================================
CHUNK SIZE MODEL
================================================================================

splitVector needs a target chunk size. It comes from one of two places:

1. EXPLICIT SPLIT COUNT (num_splits > 0)
   The user asked for N partitions. We ask the store for the collection size
   and divide:

       bundle_size_bytes = collStats.size // num_splits

2. RUNNER-PROVIDED BUNDLE SIZE (num_splits == 0)
   The caller's desired_bundle_size_bytes is used as-is.

Either way the result is clamped to a 1 MB floor, since splitVector takes
maxChunkSize in whole megabytes and a sub-MB target would over-split:

       bundle_size_bytes = max(bundle_size_bytes, 1 MB)
       max_chunk_size_mb = bundle_size_bytes // 1 MB

Example: 300 MB collection, num_splits=3
       bundle_size_bytes = 100 MB, max_chunk_size_mb = 100

The number of partitions is whatever splitVector reports for that chunk size
(plus one for the open-ended tail), so N is a target, not a guarantee.

================================================================================
"""

import logging
from dataclasses import dataclass
from typing import Optional

from mongoio.constants import BYTES_PER_MB, MIN_BUNDLE_SIZE_BYTES

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SplitPlan:
    """Chunk size chosen for one split() call."""

    # Target partition size after clamping
    bundle_size_bytes: int

    # Value passed to splitVector's maxChunkSize
    max_chunk_size_mb: int


def plan_split(
    desired_bundle_size_bytes: int,
    num_splits: int = 0,
    total_size_bytes: Optional[int] = None,
) -> SplitPlan:
    """
    Decide the splitVector chunk size.

    Args:
        desired_bundle_size_bytes: Bundle size requested by the caller
        num_splits: Explicit split count from the ReadSpec (0 = auto)
        total_size_bytes: Collection size; required when num_splits > 0

    Returns:
        SplitPlan with the clamped bundle size and its size in MB

    Example:
        >>> plan_split(0, num_splits=3, total_size_bytes=300 * 1024 * 1024)
        SplitPlan(bundle_size_bytes=104857600, max_chunk_size_mb=100)
    """
    if num_splits < 0:
        raise ValueError(f"num_splits must be >= 0, but was {num_splits}")

    bundle_size_bytes = desired_bundle_size_bytes
    if num_splits > 0:
        if total_size_bytes is None:
            raise ValueError("total_size_bytes is required when num_splits > 0")
        bundle_size_bytes = total_size_bytes // num_splits

    # the desired bundle size is small, use the 1 MB default chunk size
    if bundle_size_bytes < MIN_BUNDLE_SIZE_BYTES:
        logger.debug(
            "Bundle size %d bytes below floor, using %d bytes",
            bundle_size_bytes,
            MIN_BUNDLE_SIZE_BYTES,
        )
        bundle_size_bytes = MIN_BUNDLE_SIZE_BYTES

    return SplitPlan(
        bundle_size_bytes=bundle_size_bytes,
        max_chunk_size_mb=bundle_size_bytes // BYTES_PER_MB,
    )
