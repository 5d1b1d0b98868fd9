"""
Write side: batched bulk inserts.
"""

from mongoio.sink.writer import MongoBatchWriter

__all__ = [
    "MongoBatchWriter",
]
