"""
Bounded MongoDB source.

A BoundedMongoSource wraps one ReadSpec: either a whole collection or, after
split(), one _id range of it. Sources are immutable values; splitting never
mutates the original, it returns siblings whose specs differ only in filter.

SPLIT FLOW
==========

    split(desired_bundle_size_bytes)
        |
        |-- num_splits > 0 ?  collStats -> size // num_splits
        |-- clamp to 1 MB                       (execution.planner)
        |-- splitVector(ns, {_id: 1}, maxChunkSize=MB)
        |
        |-- no split keys  -> [self]
        '-- n split keys   -> n + 1 sources, one range filter each
                                               (analysis.ranges)

Every administrative call (collStats, splitVector) runs on its own client,
opened and closed within the call.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List

from mongoio.analysis.ranges import split_keys_to_filters
from mongoio.constants import SPLIT_KEY_FIELD
from mongoio.execution.planner import plan_split
from mongoio.options.specs import ReadSpec
from mongoio.source.reader import BoundedMongoReader
from mongoio.storage.fingerprint import hash_partition

logger = logging.getLogger(__name__)


def _collection_size(database, collection: str) -> int:
    """Size in bytes reported by collStats for the whole collection."""
    stats = database.command("collStats", collection)
    return int(stats["size"])


@dataclass(frozen=True)
class BoundedMongoSource:
    """
    One readable, splittable slice of a collection.

    Example:
        >>> spec = read().with_uri(uri).with_database("shop").with_collection("orders")
        >>> source = BoundedMongoSource(spec)
        >>> partitions = source.split(64 * 1024 * 1024)
        >>> reader = partitions[0].create_reader()
    """

    spec: ReadSpec

    def __post_init__(self):
        self.spec.validate()

    @property
    def partition_id(self) -> str:
        return hash_partition(
            self.spec.database,
            self.spec.collection,
            self.spec.filter,
            self.spec.projection,
        )

    def estimated_size_bytes(self) -> int:
        """
        Collection size from collStats.

        Raises:
            pymongo.errors.PyMongoError: On connection or command failure
        """
        with self.spec.connection.connect() as client:
            return _collection_size(client[self.spec.database], self.spec.collection)

    def split(self, desired_bundle_size_bytes: int) -> List["BoundedMongoSource"]:
        """
        Split into independent sources over disjoint _id ranges.

        Args:
            desired_bundle_size_bytes: Target partition size; ignored when the
                spec sets num_splits

        Returns:
            Sources covering the collection exactly once. A single-element
            list containing this source if the store reports no split keys.
        """
        spec = self.spec
        with spec.connection.connect() as client:
            database = client[spec.database]

            total_size_bytes = None
            if spec.num_splits > 0:
                # the user defines the desired number of splits
                total_size_bytes = _collection_size(database, spec.collection)

            plan = plan_split(
                desired_bundle_size_bytes,
                num_splits=spec.num_splits,
                total_size_bytes=total_size_bytes,
            )

            logger.debug("Splitting in chunks of %d MB", plan.max_chunk_size_mb)
            result = database.command(
                "splitVector",
                spec.namespace,
                keyPattern={SPLIT_KEY_FIELD: 1},
                force=False,
                maxChunkSize=plan.max_chunk_size_mb,
            )

        split_keys = result.get("splitKeys") or []
        if not split_keys:
            logger.debug("No split keys for %s, using a single source", spec.namespace)
            return [self]

        logger.debug("Number of split keys is %d", len(split_keys))
        sources = [
            BoundedMongoSource(spec.with_filter(range_filter))
            for range_filter in split_keys_to_filters(split_keys, spec.filter)
        ]
        logger.info("Split %s into %d partitions", spec.namespace, len(sources))
        return sources

    def create_reader(self) -> BoundedMongoReader:
        return BoundedMongoReader(self)

    def display_data(self) -> Dict[str, Any]:
        return self.spec.display_data()
