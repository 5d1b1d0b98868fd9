"""
DataFrame conversion for read results.

Documents read from a source are plain dicts. This module turns them into
pandas or polars DataFrames.

ENGINES
=======

pandas: pd.DataFrame.from_records; BSON values (ObjectId, Decimal128, ...)
        are kept as Python objects in object columns.

polars: pl.from_dicts; polars has no object dtype for ObjectId, so ObjectIds
        are converted to their hex strings first (nested values included).

FLATTENING
==========

With flatten=True nested documents become dotted columns:

    Before: {"metadata": {"device_id": "123...", "sensor_id": "456..."}}
    After:  {"metadata.device_id": "123...", "metadata.sensor_id": "456..."}

Arrays are left as list values.
"""

import logging
from itertools import islice
from typing import TYPE_CHECKING, Any, Dict, Iterable, Iterator, List, Literal, Union

import pandas as pd
import polars as pl
from bson import ObjectId

from mongoio.constants import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_DESIRED_BUNDLE_SIZE_BYTES,
    DEFAULT_MAX_WORKERS,
)
from mongoio.execution.callback import read_documents

if TYPE_CHECKING:
    from mongoio.source.bounded import BoundedMongoSource

logger = logging.getLogger(__name__)

Engine = Literal["pandas", "polars"]


def flatten_document(document: Dict[str, Any], prefix: str = "") -> Dict[str, Any]:
    """
    Flatten nested documents into dotted keys.

    Example:
        >>> flatten_document({"a": {"b": 1, "c": {"d": 2}}, "e": [1, 2]})
        {'a.b': 1, 'a.c.d': 2, 'e': [1, 2]}
    """
    flat: Dict[str, Any] = {}
    for key, value in document.items():
        name = f"{prefix}{key}"
        if isinstance(value, dict) and value:
            flat.update(flatten_document(value, prefix=f"{name}."))
        else:
            flat[name] = value
    return flat


def _stringify_objectids(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return {k: _stringify_objectids(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_stringify_objectids(v) for v in value]
    return value


def to_dataframe(
    documents: Iterable[Dict[str, Any]],
    engine: Engine = "pandas",
    flatten: bool = False,
) -> Union[pd.DataFrame, pl.DataFrame]:
    """
    Build a DataFrame from documents.

    Args:
        documents: Documents, e.g. from BoundedMongoReader.iter_documents()
        engine: "pandas" or "polars"
        flatten: Turn nested documents into dotted columns

    Returns:
        pandas.DataFrame or polars.DataFrame

    Raises:
        ValueError: For an unknown engine
    """
    if engine not in ("pandas", "polars"):
        raise ValueError(f"engine must be 'pandas' or 'polars', got {engine!r}")

    records: List[Dict[str, Any]] = [
        flatten_document(doc) if flatten else doc for doc in documents
    ]

    if engine == "pandas":
        return pd.DataFrame.from_records(records)

    if not records:
        return pl.DataFrame()
    records = [_stringify_objectids(doc) for doc in records]
    return pl.from_dicts(records, infer_schema_length=None)


def iter_dataframe_batches(
    documents: Iterable[Dict[str, Any]],
    batch_size: int = DEFAULT_BATCH_SIZE,
    engine: Engine = "pandas",
    flatten: bool = False,
) -> Iterator[Union[pd.DataFrame, pl.DataFrame]]:
    """
    Stream documents as DataFrames of at most batch_size rows.

    Example:
        >>> for df in iter_dataframe_batches(reader.iter_documents(), 5000):
        ...     process(df)
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, but was {batch_size}")

    iterator = iter(documents)
    while True:
        batch = list(islice(iterator, batch_size))
        if not batch:
            return
        yield to_dataframe(batch, engine=engine, flatten=flatten)


def read_dataframe(
    source: "BoundedMongoSource",
    engine: Engine = "pandas",
    flatten: bool = False,
    desired_bundle_size_bytes: int = DEFAULT_DESIRED_BUNDLE_SIZE_BYTES,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> Union[pd.DataFrame, pl.DataFrame]:
    """Split a source, read all partitions in parallel and return one DataFrame."""
    documents = read_documents(
        source,
        desired_bundle_size_bytes=desired_bundle_size_bytes,
        max_workers=max_workers,
    )
    logger.debug("Building %s DataFrame from %d documents", engine, len(documents))
    return to_dataframe(documents, engine=engine, flatten=flatten)
