"""
Shared fixtures: an in-memory stand-in for pymongo.MongoClient.

Every test that touches the store patches
mongoio.options.connection.MongoClient, so no server is needed.
"""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from mongoio.options import read, write

URI = "mongodb://localhost:27017"


class FakeCursor:
    """Minimal pymongo cursor: iteration plus close()."""

    def __init__(self, documents, close_error=None):
        self._documents = iter(documents)
        self._close_error = close_error
        self.close_calls = 0
        self.next_calls = 0

    def __iter__(self):
        return self

    def __next__(self):
        self.next_calls += 1
        return next(self._documents)

    def close(self):
        self.close_calls += 1
        if self._close_error is not None:
            raise self._close_error


def store_commands(size=0, split_keys=()):
    """side_effect for Database.command answering collStats and splitVector."""

    def command(name, value=None, **kwargs):
        if name == "collStats":
            return {"ns": value, "size": size}
        if name == "splitVector":
            return {"ok": 1.0, "splitKeys": list(split_keys)}
        raise AssertionError(f"unexpected command {name!r}")

    return command


@pytest.fixture
def mongo(monkeypatch):
    """Patched MongoClient; every connect() returns the same mock client."""
    client = MagicMock(name="client")
    client.__enter__.return_value = client
    client.__exit__.return_value = False
    database = MagicMock(name="database")
    collection = MagicMock(name="collection")
    client.__getitem__.return_value = database
    database.__getitem__.return_value = collection

    factory = MagicMock(name="MongoClient", return_value=client)
    monkeypatch.setattr("mongoio.options.connection.MongoClient", factory)

    return SimpleNamespace(
        factory=factory,
        client=client,
        database=database,
        collection=collection,
    )


@pytest.fixture
def read_spec():
    return read().with_uri(URI).with_database("shop").with_collection("orders")


@pytest.fixture
def write_spec():
    return write().with_uri(URI).with_database("shop").with_collection("orders")


@pytest.fixture
def commands():
    """Factory for Database.command side effects (see store_commands)."""
    return store_commands


@pytest.fixture
def cursor_factory():
    return FakeCursor
