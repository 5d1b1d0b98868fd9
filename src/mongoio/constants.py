"""
Shared defaults for mongoio.

Connection, split and batching defaults used when a ReadSpec or WriteSpec
leaves an option unset.
"""

# =============================================================================
# CONNECTION
# =============================================================================

DEFAULT_KEEP_ALIVE = True

# Max idle time for a pooled connection, in milliseconds
DEFAULT_MAX_CONNECTION_IDLE_TIME_MS = 60_000

# =============================================================================
# READ / SPLIT
# =============================================================================

# 0 = let the runner's desired bundle size drive splitting
DEFAULT_NUM_SPLITS = 0

# splitVector works in whole MB; below this we would over-split
MIN_BUNDLE_SIZE_BYTES = 1024 * 1024

BYTES_PER_MB = 1024 * 1024

# Natural identifier ordering used for partition boundaries
SPLIT_KEY_FIELD = "_id"

# Desired bundle size handed to split() by the local drivers
DEFAULT_DESIRED_BUNDLE_SIZE_BYTES = 64 * 1024 * 1024

DEFAULT_MAX_WORKERS = 4

# =============================================================================
# WRITE
# =============================================================================

DEFAULT_BATCH_SIZE = 1024

DEFAULT_ORDERED = True
