"""
Partition-based callback streaming.

================================================================================
ARCHITECTURE - SPLIT, THEN ONE READER PER PARTITION
================================================================================

This module runs a bounded source locally, standing in for a pipeline
runner:

PHASE 1: Split
────────────────────────────────────────────────────────────────────────────────
    source.split(desired_bundle_size_bytes) -> [partition_0, ..., partition_n]

    One client, opened and closed inside split().

PHASE 2: Parallel callbacks (ThreadPoolExecutor)
────────────────────────────────────────────────────────────────────────────────
    Each worker: partition.create_reader() -> iter_documents() -> callback()

    - Every reader owns its own client; nothing is shared between workers
    - The callback consumes the document iterator inside the worker thread,
      so a partition is streamed, not materialised
    - The reader is closed on every exit path (exhausted, callback error,
      callback returning early)

EDGE CASES HANDLED:
────────────────────────────────────────────────────────────────────────────────
    - No split keys -> one work item for the whole collection
    - Empty partitions -> callback receives an empty iterator
    - Worker failure -> the first error is re-raised after all submitted
      work items finish

================================================================================
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterator, List

from mongoio.constants import DEFAULT_DESIRED_BUNDLE_SIZE_BYTES, DEFAULT_MAX_WORKERS

if TYPE_CHECKING:
    from mongoio.source.bounded import BoundedMongoSource

logger = logging.getLogger(__name__)

DocumentCallback = Callable[[Iterator[Dict[str, Any]], "PartitionWorkItem"], None]


@dataclass(frozen=True)
class PartitionWorkItem:
    """A single partition to process."""

    index: int
    total: int
    source: "BoundedMongoSource"

    @property
    def partition_id(self) -> str:
        return self.source.partition_id


def _run_partition(item: PartitionWorkItem, callback: DocumentCallback) -> PartitionWorkItem:
    reader = item.source.create_reader()
    documents = reader.iter_documents()
    try:
        callback(documents, item)
    finally:
        # closes the reader even if the callback stopped iterating early
        documents.close()
        reader.close()
    logger.debug("Partition %d/%d done (%s)", item.index + 1, item.total, item.partition_id)
    return item


def stream_to_callback(
    source: "BoundedMongoSource",
    callback: DocumentCallback,
    desired_bundle_size_bytes: int = DEFAULT_DESIRED_BUNDLE_SIZE_BYTES,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> List[PartitionWorkItem]:
    """
    Split a source and stream each partition to a callback in parallel.

    Args:
        source: Source to read
        callback: Called as callback(documents, work_item) once per partition,
            inside a worker thread
        desired_bundle_size_bytes: Passed to source.split()
        max_workers: Thread pool size

    Returns:
        Work items in partition order

    Raises:
        Exception: The first error raised by a worker
    """
    if max_workers < 1:
        raise ValueError(f"max_workers must be >= 1, but was {max_workers}")

    partitions = source.split(desired_bundle_size_bytes)
    items = [
        PartitionWorkItem(index=i, total=len(partitions), source=partition)
        for i, partition in enumerate(partitions)
    ]
    logger.info(
        "Streaming %d partitions of %s with %d workers",
        len(items),
        source.spec.namespace,
        max_workers,
    )

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = [executor.submit(_run_partition, item, callback) for item in items]
        # result() re-raises the first worker error in partition order
        return [future.result() for future in futures]


def read_documents(
    source: "BoundedMongoSource",
    desired_bundle_size_bytes: int = DEFAULT_DESIRED_BUNDLE_SIZE_BYTES,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> List[Dict[str, Any]]:
    """
    Read every document of a source, partition by partition.

    Documents keep cursor order within a partition and partition order
    across partitions.
    """
    collected: Dict[int, List[Dict[str, Any]]] = {}

    def collect(documents: Iterator[Dict[str, Any]], item: PartitionWorkItem) -> None:
        collected[item.index] = list(documents)

    items = stream_to_callback(
        source,
        collect,
        desired_bundle_size_bytes=desired_bundle_size_bytes,
        max_workers=max_workers,
    )
    return [doc for item in items for doc in collected[item.index]]
