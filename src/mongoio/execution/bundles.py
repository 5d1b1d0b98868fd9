"""
Local driver for the write side.

write_documents() plays the runner's part for MongoBatchWriter: one setup,
a start/process/finish cycle per bundle, and a teardown that runs on every
exit path.
"""

import logging
from typing import Any, Iterable, Mapping, Optional

from mongoio.options.specs import WriteSpec
from mongoio.sink.writer import MongoBatchWriter

logger = logging.getLogger(__name__)


def write_documents(
    spec: WriteSpec,
    documents: Iterable[Mapping[str, Any]],
    bundle_size: Optional[int] = None,
) -> int:
    """
    Write documents through a single MongoBatchWriter.

    Args:
        spec: Write specification
        documents: Documents to insert; not mutated
        bundle_size: Documents per bundle. None means one bundle for
            everything.

    Returns:
        Number of documents processed

    Raises:
        BulkWriteError: On failure of an ordered bulk write
    """
    if bundle_size is not None and bundle_size < 1:
        raise ValueError(f"bundle_size must be >= 1, but was {bundle_size}")

    processed = 0
    writer = MongoBatchWriter(spec)
    writer.setup()
    try:
        writer.start_bundle()
        in_bundle = 0
        for document in documents:
            if bundle_size is not None and in_bundle >= bundle_size:
                writer.finish_bundle()
                writer.start_bundle()
                in_bundle = 0
            writer.process(document)
            in_bundle += 1
            processed += 1
        writer.finish_bundle()
    finally:
        writer.teardown()

    logger.info("Wrote %d documents to %s", processed, spec.namespace)
    return processed
