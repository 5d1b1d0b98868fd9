"""
Split planning and local execution drivers for mongoio.
"""

from mongoio.execution.bundles import write_documents
from mongoio.execution.callback import (
    PartitionWorkItem,
    read_documents,
    stream_to_callback,
)
from mongoio.execution.planner import SplitPlan, plan_split

__all__ = [
    "SplitPlan",
    "plan_split",
    # callback.py exports
    "PartitionWorkItem",
    "stream_to_callback",
    "read_documents",
    # bundles.py exports
    "write_documents",
]
