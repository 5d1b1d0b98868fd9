"""
Connection settings shared by the read and write sides.

A ConnectionConfig is an immutable, validated description of how to reach a
MongoDB deployment. It never holds a live client: every component that needs
the store calls connect() and owns the returned client for exactly as long as
it needs it.

OPTION MAPPING
==============

    ConnectionConfig field          pymongo.MongoClient keyword
    ----------------------------    -----------------------------------
    uri                             host
    max_connection_idle_time (ms)   maxIdleTimeMS (0 = no limit, omitted)
    ssl_enabled                     tls
    ssl_invalid_hostname_allowed    tlsAllowInvalidHostnames (TLS only)
    ignore_ssl_certificate          tlsAllowInvalidCertificates (TLS only)
    keep_alive                      (none - the driver always sets SO_KEEPALIVE)
"""

import logging
from dataclasses import dataclass, replace
from typing import Any, Dict

from pymongo import MongoClient

from mongoio.constants import (
    DEFAULT_KEEP_ALIVE,
    DEFAULT_MAX_CONNECTION_IDLE_TIME_MS,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConnectionConfig:
    """
    How to connect to MongoDB.

    Example:
        >>> config = ConnectionConfig(uri="mongodb://localhost:27017")
        >>> with config.connect() as client:
        ...     client.admin.command("ping")
    """

    uri: str
    keep_alive: bool = DEFAULT_KEEP_ALIVE
    max_connection_idle_time: int = DEFAULT_MAX_CONNECTION_IDLE_TIME_MS
    ssl_enabled: bool = False
    ssl_invalid_hostname_allowed: bool = False
    ignore_ssl_certificate: bool = False

    def __post_init__(self):
        if self.uri is None:
            raise ValueError("uri can not be None")
        if not isinstance(self.uri, str) or not self.uri:
            raise ValueError(f"uri must be a non-empty string, got {self.uri!r}")
        if self.max_connection_idle_time < 0:
            raise ValueError(
                "max_connection_idle_time must be >= 0, "
                f"but was {self.max_connection_idle_time}"
            )

    def with_keep_alive(self, keep_alive: bool) -> "ConnectionConfig":
        return replace(self, keep_alive=keep_alive)

    def with_max_connection_idle_time(self, millis: int) -> "ConnectionConfig":
        return replace(self, max_connection_idle_time=millis)

    def with_ssl_enabled(self, enabled: bool) -> "ConnectionConfig":
        return replace(self, ssl_enabled=enabled)

    def with_ssl_invalid_hostname_allowed(self, allowed: bool) -> "ConnectionConfig":
        return replace(self, ssl_invalid_hostname_allowed=allowed)

    def with_ignore_ssl_certificate(self, ignore: bool) -> "ConnectionConfig":
        return replace(self, ignore_ssl_certificate=ignore)

    def client_options(self) -> Dict[str, Any]:
        """Keyword arguments passed to pymongo.MongoClient."""
        options: Dict[str, Any] = {}
        if self.max_connection_idle_time > 0:
            options["maxIdleTimeMS"] = self.max_connection_idle_time
        if self.ssl_enabled:
            options["tls"] = True
            options["tlsAllowInvalidHostnames"] = self.ssl_invalid_hostname_allowed
            options["tlsAllowInvalidCertificates"] = self.ignore_ssl_certificate
        return options

    def connect(self) -> MongoClient:
        """
        Open a new client.

        The caller owns the client and must close it (MongoClient is a
        context manager).
        """
        if not self.keep_alive:
            logger.debug("keep_alive=False ignored: pymongo always enables TCP keep-alive")
        return MongoClient(self.uri, **self.client_options())

    def display_data(self) -> Dict[str, Any]:
        return {
            "uri": self.uri,
            "keepAlive": self.keep_alive,
            "maxConnectionIdleTime": self.max_connection_idle_time,
            "sslEnabled": self.ssl_enabled,
            "sslInvalidHostNameAllowed": self.ssl_invalid_hostname_allowed,
            "ignoreSSLCertificate": self.ignore_ssl_certificate,
        }
