"""
mongoio - bounded MongoDB reads and batched writes for parallel pipelines.

Read a collection as independent _id-range partitions, and write documents
back with batched, optionally ordered bulk inserts.

Usage:
    from mongoio import BoundedMongoSource, MongoBatchWriter, read, write

    spec = (
        read()
        .with_uri("mongodb://localhost:27017")
        .with_database("shop")
        .with_collection("orders")
        .with_num_splits(8)
    )
    for partition in BoundedMongoSource(spec).split(64 * 1024 * 1024):
        for doc in partition.create_reader().iter_documents():
            ...
"""

from mongoio.analysis import split_keys_to_filters
from mongoio.execution import (
    PartitionWorkItem,
    read_documents,
    stream_to_callback,
    write_documents,
)
from mongoio.options import ConnectionConfig, ReadSpec, WriteSpec, read, write
from mongoio.sink import MongoBatchWriter
from mongoio.source import BoundedMongoReader, BoundedMongoSource
from mongoio.storage import read_dataframe, to_dataframe

__version__ = "0.1.0"

__all__ = [
    "ConnectionConfig",
    "ReadSpec",
    "WriteSpec",
    "read",
    "write",
    "split_keys_to_filters",
    "BoundedMongoSource",
    "BoundedMongoReader",
    "MongoBatchWriter",
    "PartitionWorkItem",
    "stream_to_callback",
    "read_documents",
    "write_documents",
    "read_dataframe",
    "to_dataframe",
]
