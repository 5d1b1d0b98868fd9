"""
Read and write specifications.

Both specs are frozen dataclasses. Every with_*() method validates its
argument and returns a new spec, so a half-configured spec can be shared
freely and partitions produced by a split never share mutable state.

Configuration errors are raised here, synchronously, never at execution
time:

    >>> read().with_num_splits(-1)
    Traceback (most recent call last):
    ...
    ValueError: invalid num_splits: must be >= 0, but was -1

Required fields (uri, database, collection) are checked by validate(), which
sources and writers call before touching the store.
"""

from dataclasses import dataclass, replace
from typing import Any, Dict, Optional, Tuple

from bson import json_util

from mongoio.constants import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_NUM_SPLITS,
    DEFAULT_ORDERED,
)
from mongoio.options.connection import ConnectionConfig


def parse_filter(filter_json: str) -> Dict[str, Any]:
    """
    Parse a filter written in MongoDB Extended JSON.

    Raises:
        TypeError: If filter_json is not a string
        ValueError: If it is not valid JSON or not a JSON object
    """
    if not isinstance(filter_json, str):
        raise TypeError(f"filter must be a str, got {type(filter_json).__name__}")
    parsed = json_util.loads(filter_json)
    if not isinstance(parsed, dict):
        raise ValueError(f"filter must be a JSON object, got: {filter_json!r}")
    return parsed


@dataclass(frozen=True)
class CollectionSpec:
    """Fields common to both sides: where the collection lives."""

    connection: Optional[ConnectionConfig] = None
    database: Optional[str] = None
    collection: Optional[str] = None

    def with_connection(self, connection: ConnectionConfig):
        if connection is None:
            raise ValueError("connection can not be None")
        return replace(self, connection=connection)

    def with_uri(self, uri: str):
        if uri is None:
            raise ValueError("uri can not be None")
        if self.connection is None:
            return replace(self, connection=ConnectionConfig(uri=uri))
        return replace(self, connection=replace(self.connection, uri=uri))

    def with_connection_options(self, **changes):
        """
        Change connection options (keep_alive, ssl_enabled, ...).

        Example:
            >>> spec = read().with_uri(uri).with_connection_options(ssl_enabled=True)
        """
        if self.connection is None:
            raise ValueError("with_uri() must be called before setting connection options")
        return replace(self, connection=replace(self.connection, **changes))

    def with_database(self, database: str):
        if database is None:
            raise ValueError("database can not be None")
        return replace(self, database=database)

    def with_collection(self, collection: str):
        if collection is None:
            raise ValueError("collection can not be None")
        return replace(self, collection=collection)

    def validate(self) -> None:
        """Raise ValueError if a required field is missing."""
        if self.connection is None:
            raise ValueError("with_uri() is required")
        if self.database is None:
            raise ValueError("with_database() is required")
        if self.collection is None:
            raise ValueError("with_collection() is required")

    @property
    def namespace(self) -> str:
        """Fully qualified collection name: '<database>.<collection>'."""
        return f"{self.database}.{self.collection}"

    def display_data(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.connection is not None:
            data.update(self.connection.display_data())
        data["database"] = self.database
        data["collection"] = self.collection
        return data


@dataclass(frozen=True)
class ReadSpec(CollectionSpec):
    """
    What to read.

    filter is an Extended JSON string (e.g. '{"status": "active"}'); projection
    is the ordered tuple of field names to include. Both None means a full
    scan returning whole documents.
    """

    filter: Optional[str] = None
    projection: Optional[Tuple[str, ...]] = None
    num_splits: int = DEFAULT_NUM_SPLITS

    def __post_init__(self):
        if self.num_splits < 0:
            raise ValueError(
                f"invalid num_splits: must be >= 0, but was {self.num_splits}"
            )
        if self.filter is not None:
            parse_filter(self.filter)
        if self.projection is not None:
            object.__setattr__(self, "projection", tuple(self.projection))

    def with_filter(self, filter_json: str) -> "ReadSpec":
        if filter_json is None:
            raise ValueError("filter can not be None")
        parse_filter(filter_json)
        return replace(self, filter=filter_json)

    def with_projection(self, *field_names: str) -> "ReadSpec":
        if not field_names:
            raise ValueError("projection can not be empty")
        for name in field_names:
            if not isinstance(name, str) or not name:
                raise ValueError(f"invalid projection field name: {name!r}")
        return replace(self, projection=tuple(field_names))

    def with_num_splits(self, num_splits: int) -> "ReadSpec":
        return replace(self, num_splits=num_splits)

    def parsed_filter(self) -> Optional[Dict[str, Any]]:
        return None if self.filter is None else parse_filter(self.filter)

    def display_data(self) -> Dict[str, Any]:
        data = super().display_data()
        if self.filter is not None:
            data["filter"] = self.filter
        if self.projection is not None:
            data["projection"] = list(self.projection)
        data["numSplit"] = self.num_splits
        return data


@dataclass(frozen=True)
class WriteSpec(CollectionSpec):
    """Where and how to write: batch size and bulk-write ordering."""

    batch_size: int = DEFAULT_BATCH_SIZE
    ordered: bool = DEFAULT_ORDERED

    def __post_init__(self):
        if self.batch_size < 0:
            raise ValueError(f"Batch size must be >= 0, but was {self.batch_size}")

    def with_batch_size(self, batch_size: int) -> "WriteSpec":
        return replace(self, batch_size=batch_size)

    def with_ordered(self, ordered: bool) -> "WriteSpec":
        return replace(self, ordered=ordered)

    def display_data(self) -> Dict[str, Any]:
        data = super().display_data()
        data["ordered"] = self.ordered
        data["batchSize"] = self.batch_size
        return data


def read() -> ReadSpec:
    """Start a read specification with default options."""
    return ReadSpec()


def write() -> WriteSpec:
    """Start a write specification with default options."""
    return WriteSpec()
