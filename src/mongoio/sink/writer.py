"""
Batched bulk-insert writer.

LIFECYCLE
=========

The caller (a pipeline framework, or execution.write_documents) drives the
writer through a fixed call order:

    setup()                     once per worker: opens the client
      start_bundle()            resets the batch
        process(doc) * N        buffers a copy; flushes at batch_size
      finish_bundle()           flushes whatever is left
      ... more bundles ...
    teardown()                  once per worker: closes the client

FLUSH SEMANTICS
===============

One insert_many() per flush, with the configured ordering. The batch is
cleared whatever the outcome.

    ordered=True    BulkWriteError propagates; the bundle fails and the
                    caller decides whether to retry.
    ordered=False   BulkWriteError is logged and suppressed; the documents
                    the server accepted stay written.

The writer never retries or reorders on its own.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

from pymongo.errors import BulkWriteError

from mongoio.options.specs import WriteSpec

logger = logging.getLogger(__name__)


class MongoBatchWriter:
    """
    Buffers documents and bulk-inserts them into one collection.

    Example:
        >>> spec = write().with_uri(uri).with_database("shop").with_collection("orders")
        >>> with MongoBatchWriter(spec) as writer:
        ...     writer.start_bundle()
        ...     for doc in docs:
        ...         writer.process(doc)
        ...     writer.finish_bundle()
    """

    def __init__(self, spec: WriteSpec):
        spec.validate()
        self.spec = spec
        self._client = None
        self._batch: Optional[List[Dict[str, Any]]] = None

    @property
    def pending(self) -> int:
        """Number of buffered documents not yet flushed."""
        return len(self._batch) if self._batch is not None else 0

    def setup(self) -> None:
        """Open the client used for the writer's lifetime."""
        if self._client is not None:
            raise RuntimeError("writer already set up")
        self._client = self.spec.connection.connect()

    def start_bundle(self) -> None:
        if self._client is None:
            raise RuntimeError("start_bundle() called before setup()")
        self._batch = []

    def process(self, document: Mapping[str, Any]) -> None:
        """
        Buffer one document, flushing once the batch reaches batch_size.

        insert_many() assigns _id to the documents it is given, so a copy is
        buffered and the caller's document is left untouched.
        """
        if self._batch is None:
            raise RuntimeError("process() called outside a bundle")
        self._batch.append(dict(document))
        if len(self._batch) >= self.spec.batch_size:
            self.flush()

    def flush(self) -> int:
        """
        Bulk-insert the buffered documents.

        Returns:
            Number of documents submitted (0 if the batch was empty)

        Raises:
            BulkWriteError: On write failure when the spec is ordered
        """
        if not self._batch:
            return 0
        if self._client is None:
            raise RuntimeError("flush() called without a client")

        batch = self._batch
        collection = self._client[self.spec.database][self.spec.collection]
        try:
            collection.insert_many(batch, ordered=self.spec.ordered)
        except BulkWriteError as e:
            if self.spec.ordered:
                raise
            details = e.details or {}
            logger.warning(
                "Unordered bulk write to %s partially failed: %s inserted, %d errors",
                self.spec.namespace,
                details.get("nInserted", "?"),
                len(details.get("writeErrors", [])),
            )
        finally:
            self._batch = []
        return len(batch)

    def finish_bundle(self) -> None:
        """Flush the remaining documents and end the bundle."""
        if self._batch is None:
            raise RuntimeError("finish_bundle() called outside a bundle")
        try:
            self.flush()
        finally:
            self._batch = None

    def teardown(self) -> None:
        """Close the client. Never raises; further calls are no-ops."""
        client, self._client = self._client, None
        self._batch = None
        if client is not None:
            try:
                client.close()
            except Exception:
                logger.warning("Error closing MongoDB client", exc_info=True)

    def __enter__(self) -> "MongoBatchWriter":
        self.setup()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.teardown()
