"""Range filter compilation for mongoio.

================================================================================
DATA FLOW - SPLIT KEYS TO RANGE FILTERS
================================================================================

The splitVector command returns an ordered list of split keys, one document
per boundary:

    [{"_id": k0}, {"_id": k1}, {"_id": k2}]

This module turns n keys into n + 1 filters over _id. Together they cover the
whole key space, and no two of them match the same document:

    Partition 0:  _id <= k0                  {"_id": {"$lte": k0}}
    Partition 1:  k0 < _id <= k1             {"_id": {"$gt": k0, "$lte": k1}}
    Partition 2:  k1 < _id <= k2             {"_id": {"$gt": k1, "$lte": k2}}
    Partition 3:  k2 < _id                   {"_id": {"$gt": k2}}

Each range is wrapped in an $and so that a user filter can be appended as a
further conjunct without touching the bounds:

    {"$and": [{"_id": {"$gt": k0, "$lte": k1}}, {"status": "active"}]}

Filters are returned as MongoDB Extended JSON strings (bson.json_util), so
ObjectId, datetime and other BSON keys survive the trip to the reader:

    {"$and": [{"_id": {"$lte": {"$oid": "5f1b..."}}}]}

================================================================================
"""

from typing import Any, List, Mapping, Optional, Sequence, Tuple

from bson import json_util

from mongoio.constants import SPLIT_KEY_FIELD
from mongoio.options.specs import parse_filter


def _key_value(split_key: Any) -> Any:
    """Extract the boundary value from a splitVector key document."""
    if isinstance(split_key, Mapping):
        if SPLIT_KEY_FIELD not in split_key:
            raise ValueError(f"split key has no {SPLIT_KEY_FIELD!r} field: {split_key!r}")
        split_key = split_key[SPLIT_KEY_FIELD]
    # None is the open-end marker in range_bounds
    if split_key is None:
        raise ValueError("split key can not be None")
    return split_key


def range_bounds(split_keys: Sequence[Any]) -> List[Tuple[Optional[Any], Optional[Any]]]:
    """
    Compute (lower, upper) bounds for each partition.

    lower is exclusive, upper is inclusive; None marks an open end.

    Examples:
        >>> range_bounds([10])
        [(None, 10), (10, None)]
        >>> range_bounds([{"_id": 10}, {"_id": 20}])
        [(None, 10), (10, 20), (20, None)]
    """
    if not split_keys:
        raise ValueError("at least one split key is required")

    bounds: List[Tuple[Optional[Any], Optional[Any]]] = []
    lower = None
    for split_key in split_keys:
        upper = _key_value(split_key)
        bounds.append((lower, upper))
        lower = upper
    # Open-ended tail after the last key
    bounds.append((lower, None))
    return bounds


def _range_condition(lower: Optional[Any], upper: Optional[Any]) -> dict:
    condition = {}
    if lower is not None:
        condition["$gt"] = lower
    if upper is not None:
        condition["$lte"] = upper
    return {SPLIT_KEY_FIELD: condition}


def split_keys_to_filters(
    split_keys: Sequence[Any],
    additional_filter: Optional[str] = None,
) -> List[str]:
    """
    Compile split keys into mutually exclusive range filters.

    Args:
        split_keys: Ordered split keys, as splitVector key documents
            ({"_id": key}) or bare key values
        additional_filter: Optional user filter (Extended JSON) appended to
            every range as a further $and conjunct

    Returns:
        len(split_keys) + 1 Extended JSON filter strings, in key order

    Raises:
        ValueError: If split_keys is empty or holds a None key, or
            additional_filter is invalid

    Example:
        >>> split_keys_to_filters([{"_id": 5}], '{"x": 1}')
        ['{"$and": [{"_id": {"$lte": 5}}, {"x": 1}]}',
         '{"$and": [{"_id": {"$gt": 5}}, {"x": 1}]}']
    """
    extra = parse_filter(additional_filter) if additional_filter else None

    filters = []
    for lower, upper in range_bounds(split_keys):
        conjuncts = [_range_condition(lower, upper)]
        if extra:
            conjuncts.append(extra)
        filters.append(json_util.dumps({"$and": conjuncts}))
    return filters
