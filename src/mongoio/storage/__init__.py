"""
Storage helpers for mongoio.

- Frames: pandas / polars DataFrames from read results
- Fingerprint: deterministic partition hashing
"""

from .fingerprint import hash_partition
from .frames import (
    flatten_document,
    iter_dataframe_batches,
    read_dataframe,
    to_dataframe,
)

__all__ = [
    "hash_partition",
    "flatten_document",
    "iter_dataframe_batches",
    "read_dataframe",
    "to_dataframe",
]
