"""
Read side: bounded, splittable source and its per-partition reader.
"""

from mongoio.source.bounded import BoundedMongoSource
from mongoio.source.reader import BoundedMongoReader

__all__ = [
    "BoundedMongoSource",
    "BoundedMongoReader",
]
