"""
Configuration values for mongoio.

- ConnectionConfig: how to reach the deployment (URI, idle time, TLS)
- ReadSpec / WriteSpec: immutable, validated read and write settings
"""

from mongoio.options.connection import ConnectionConfig
from mongoio.options.specs import (
    CollectionSpec,
    ReadSpec,
    WriteSpec,
    parse_filter,
    read,
    write,
)

__all__ = [
    "ConnectionConfig",
    "CollectionSpec",
    "ReadSpec",
    "WriteSpec",
    "parse_filter",
    "read",
    "write",
]
