"""
Sequential reader for one partition.

STATE MACHINE
=============

    not-started --start()--> started --advance() == False--> exhausted
         |                      |                               |
         +------- close() ------+----------- close() -----------+--> closed

- start() opens exactly one client and one cursor, then fetches the first
  document. The constructor never touches the network, so building one
  reader per partition is cheap.
- advance() returns False forever once the cursor is exhausted.
- close() releases the cursor and the client independently. Failures are
  logged, never raised: close() runs on abort paths, including after a
  failed start().

Example:
    >>> reader = source.create_reader()
    >>> for doc in reader.iter_documents():
    ...     process(doc)
"""

import logging
from typing import TYPE_CHECKING, Any, Dict, Iterator, Optional

if TYPE_CHECKING:
    from mongoio.source.bounded import BoundedMongoSource

logger = logging.getLogger(__name__)


class BoundedMongoReader:
    """Pull-based cursor over one BoundedMongoSource."""

    def __init__(self, source: "BoundedMongoSource"):
        self._source = source
        self._client = None
        self._cursor = None
        self._current: Optional[Dict[str, Any]] = None
        self._started = False
        self._exhausted = False

    @property
    def current_source(self) -> "BoundedMongoSource":
        return self._source

    def start(self) -> bool:
        """
        Open the client and cursor and fetch the first document.

        Returns:
            True if a first document is available

        Raises:
            RuntimeError: If the reader was already started
            pymongo.errors.PyMongoError: If the store cannot be reached
        """
        if self._started:
            raise RuntimeError("reader already started")
        self._started = True

        spec = self._source.spec
        self._client = spec.connection.connect()
        collection = self._client[spec.database][spec.collection]

        projection = list(spec.projection) if spec.projection is not None else None
        self._cursor = collection.find(spec.parsed_filter(), projection)
        logger.debug(
            "Opened cursor on %s (filter=%s, projection=%s)",
            spec.namespace,
            spec.filter,
            projection,
        )

        return self.advance()

    def advance(self) -> bool:
        """Fetch the next document. Returns False once the cursor is exhausted."""
        if not self._started:
            raise RuntimeError("advance() called before start()")
        if self._exhausted or self._cursor is None:
            return False

        try:
            self._current = next(self._cursor)
        except StopIteration:
            self._exhausted = True
            return False
        return True

    @property
    def current(self) -> Dict[str, Any]:
        """The most recently fetched document."""
        if self._current is None:
            raise RuntimeError("no current document: start() has not produced one")
        return self._current

    def get_current(self) -> Dict[str, Any]:
        return self.current

    def close(self) -> None:
        """Release cursor and client. Never raises; safe to call repeatedly."""
        cursor, self._cursor = self._cursor, None
        client, self._client = self._client, None

        if cursor is not None:
            try:
                cursor.close()
            except Exception:
                logger.warning("Error closing MongoDB cursor", exc_info=True)

        if client is not None:
            try:
                client.close()
            except Exception:
                logger.warning("Error closing MongoDB client", exc_info=True)

    def iter_documents(self) -> Iterator[Dict[str, Any]]:
        """
        Start the reader and yield every document of the partition.

        The reader is closed when the generator finishes, fails, or is
        discarded early.
        """
        try:
            available = self.start()
            while available:
                yield self.current
                available = self.advance()
        finally:
            self.close()

    def __enter__(self) -> "BoundedMongoReader":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
