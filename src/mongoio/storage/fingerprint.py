"""
Deterministic partition fingerprints.

A partition is fully described by its namespace, filter and projection.
hash_partition() turns those into a stable MD5 hex digest used to name
partitions in logs and work items:

    - Filters are parsed and re-serialised as canonical Extended JSON with
      sorted keys, so whitespace and key order do not change the hash
    - BSON types keep their tags: an ObjectId never hashes like its hex string
    - Projection order is kept

Usage:
    partition_id = hash_partition("shop", "orders", '{"status": "open"}')
"""

import hashlib
import json
from typing import Optional, Sequence

from bson import json_util
from bson.json_util import CANONICAL_JSON_OPTIONS

from mongoio.options.specs import parse_filter


def _canonical_filter(filter_json: str) -> str:
    """Re-serialise an Extended JSON filter in one fixed form.

    Canonical mode writes every number and date with its type wrapper, so
    equal filters spelled differently (relaxed vs canonical dates, key
    order, spacing) produce the same string.
    """
    return json_util.dumps(
        parse_filter(filter_json),
        json_options=CANONICAL_JSON_OPTIONS,
        sort_keys=True,
        separators=(",", ":"),
    )


def hash_partition(
    database: Optional[str],
    collection: Optional[str],
    filter_json: Optional[str] = None,
    projection: Optional[Sequence[str]] = None,
) -> str:
    """
    Create a deterministic hash of a partition's query parameters.

    Args:
        database: Database name
        collection: Collection name
        filter_json: Extended JSON filter, or None for a full scan
        projection: Included field names

    Returns:
        Hex string hash (32 characters)
    """
    partition_repr = {
        "namespace": f"{database}.{collection}",
    }

    if filter_json:
        partition_repr["filter"] = _canonical_filter(filter_json)

    if projection:
        partition_repr["projection"] = list(projection)

    json_str = json.dumps(partition_repr, sort_keys=True, separators=(",", ":"))

    return hashlib.md5(json_str.encode("utf-8")).hexdigest()
