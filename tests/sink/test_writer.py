"""
Tests for mongoio.sink.writer.

Covers:
- Lifecycle: setup / start_bundle / process / finish_bundle / teardown
- Automatic flush at batch_size
- Input documents are never mutated
- Ordered writes propagate BulkWriteError, unordered writes suppress it
- The batch is cleared whatever the flush outcome
- Teardown closes the client exactly once
"""

import logging

import pytest
from pymongo.errors import BulkWriteError

from mongoio.sink import MongoBatchWriter


def _bulk_error(n_inserted=1, n_errors=1):
    return BulkWriteError(
        {
            "nInserted": n_inserted,
            "writeErrors": [
                {"index": i, "code": 11000, "errmsg": "E11000 duplicate key"}
                for i in range(n_errors)
            ],
        }
    )


def _inserted_batches(mongo):
    return [list(c.args[0]) for c in mongo.collection.insert_many.call_args_list]


@pytest.fixture
def writer(mongo, write_spec):
    writer = MongoBatchWriter(write_spec.with_batch_size(2))
    writer.setup()
    writer.start_bundle()
    yield writer
    writer.teardown()


class TestLifecycle:
    def test_setup_opens_one_client(self, mongo, write_spec):
        """setup() connects; construction does not."""
        writer = MongoBatchWriter(write_spec)
        mongo.factory.assert_not_called()

        writer.setup()

        mongo.factory.assert_called_once()

    def test_setup_twice_rejected(self, mongo, write_spec):
        writer = MongoBatchWriter(write_spec)
        writer.setup()

        with pytest.raises(RuntimeError, match="already set up"):
            writer.setup()

    def test_incomplete_spec_rejected(self):
        """Missing uri/database/collection fails at construction."""
        from mongoio.options import write

        with pytest.raises(ValueError, match="with_uri"):
            MongoBatchWriter(write())

    def test_process_outside_bundle_rejected(self, mongo, write_spec):
        writer = MongoBatchWriter(write_spec)
        writer.setup()

        with pytest.raises(RuntimeError, match="outside a bundle"):
            writer.process({"a": 1})

    def test_start_bundle_requires_setup(self, write_spec):
        with pytest.raises(RuntimeError, match="before setup"):
            MongoBatchWriter(write_spec).start_bundle()

    def test_teardown_closes_once(self, mongo, write_spec):
        """Teardown closes the client once; later calls are no-ops."""
        writer = MongoBatchWriter(write_spec)
        writer.setup()

        writer.teardown()
        writer.teardown()

        mongo.client.close.assert_called_once()

    def test_teardown_logs_close_failure(self, mongo, write_spec, caplog):
        """A failing close() is logged, not raised, and the client is dropped."""
        mongo.client.close.side_effect = RuntimeError("close failed")
        writer = MongoBatchWriter(write_spec)
        writer.setup()

        with caplog.at_level(logging.WARNING, logger="mongoio.sink.writer"):
            writer.teardown()
        writer.teardown()

        mongo.client.close.assert_called_once()
        assert "Error closing MongoDB client" in caplog.text

    def test_close_failure_does_not_mask_body_error(self, mongo, write_spec):
        """An error inside the with-block survives a failing close()."""
        mongo.client.close.side_effect = RuntimeError("close failed")

        with pytest.raises(KeyError, match="boom"):
            with MongoBatchWriter(write_spec):
                raise KeyError("boom")

        mongo.client.close.assert_called_once()

    def test_context_manager(self, mongo, write_spec):
        """with-block does setup and teardown."""
        with MongoBatchWriter(write_spec) as writer:
            writer.start_bundle()
            writer.process({"a": 1})
            writer.finish_bundle()

        mongo.factory.assert_called_once()
        mongo.client.close.assert_called_once()


class TestBatching:
    def test_two_bulk_inserts_for_three_documents(self, mongo, writer):
        """batch_size=2, [A, B, C]: [A, B] flushed on B, [C] on finish_bundle."""
        a, b, c = {"name": "A"}, {"name": "B"}, {"name": "C"}

        writer.process(a)
        assert mongo.collection.insert_many.call_count == 0
        writer.process(b)
        assert _inserted_batches(mongo) == [[a, b]]
        writer.process(c)
        assert writer.pending == 1
        writer.finish_bundle()

        assert _inserted_batches(mongo) == [[a, b], [c]]
        assert mongo.collection.insert_many.call_count == 2

    def test_batch_never_exceeds_threshold(self, mongo, writer):
        """No more than batch_size documents accumulate between flushes."""
        for i in range(7):
            writer.process({"i": i})
            assert writer.pending < 2
        writer.finish_bundle()

        assert [len(b) for b in _inserted_batches(mongo)] == [2, 2, 2, 1]

    def test_ordered_flag_passed(self, mongo, writer):
        writer.process({"i": 1})
        writer.process({"i": 2})

        assert mongo.collection.insert_many.call_args.kwargs == {"ordered": True}

    def test_empty_flush_is_noop(self, mongo, writer):
        """Flushing an empty batch sends nothing."""
        assert writer.flush() == 0
        writer.finish_bundle()

        mongo.collection.insert_many.assert_not_called()

    def test_flush_returns_submitted_count(self, mongo, writer):
        writer.process({"i": 1})

        assert writer.flush() == 1
        assert writer.pending == 0

    def test_zero_batch_size_flushes_every_document(self, mongo, write_spec):
        """batch_size=0: each document is its own bulk insert."""
        with MongoBatchWriter(write_spec.with_batch_size(0)) as writer:
            writer.start_bundle()
            writer.process({"i": 1})
            writer.process({"i": 2})
            writer.finish_bundle()

        assert _inserted_batches(mongo) == [[{"i": 1}], [{"i": 2}]]

    def test_input_documents_not_mutated(self, mongo, writer):
        """The driver assigns _id to what it inserts; the caller's dict is untouched."""

        def assign_ids(documents, ordered):
            for i, doc in enumerate(documents):
                doc["_id"] = i

        mongo.collection.insert_many.side_effect = assign_ids
        original = {"name": "A"}

        writer.process(original)
        writer.finish_bundle()

        assert original == {"name": "A"}

    def test_target_collection(self, mongo, writer):
        writer.process({"i": 1})
        writer.flush()

        mongo.client.__getitem__.assert_called_with("shop")
        mongo.database.__getitem__.assert_called_with("orders")


class TestBulkWriteErrors:
    def test_ordered_error_propagates(self, mongo, writer):
        """Ordered mode: BulkWriteError fails the bundle."""
        mongo.collection.insert_many.side_effect = _bulk_error()

        writer.process({"i": 1})
        with pytest.raises(BulkWriteError):
            writer.process({"i": 2})

    def test_ordered_error_still_clears_batch(self, mongo, writer):
        """The failed batch is not resubmitted."""
        mongo.collection.insert_many.side_effect = _bulk_error()
        writer.process({"i": 1})
        with pytest.raises(BulkWriteError):
            writer.flush()

        assert writer.pending == 0

    def test_ordered_error_at_finish_bundle(self, mongo, writer):
        """The final flush propagates too."""
        mongo.collection.insert_many.side_effect = _bulk_error()
        writer.process({"i": 1})

        with pytest.raises(BulkWriteError):
            writer.finish_bundle()

    def test_unordered_error_suppressed(self, mongo, write_spec, caplog):
        """Unordered mode: partial success is accepted and logged."""
        mongo.collection.insert_many.side_effect = [_bulk_error(n_inserted=1, n_errors=1), None]

        with MongoBatchWriter(write_spec.with_batch_size(2).with_ordered(False)) as writer:
            writer.start_bundle()
            with caplog.at_level(logging.WARNING, logger="mongoio.sink.writer"):
                writer.process({"i": 1})
                writer.process({"i": 2})
            assert writer.pending == 0
            writer.process({"i": 3})
            writer.finish_bundle()

        assert mongo.collection.insert_many.call_count == 2
        assert mongo.collection.insert_many.call_args.kwargs == {"ordered": False}
        assert "partially failed" in caplog.text
        assert "1 inserted" in caplog.text

    def test_unordered_does_not_suppress_other_errors(self, mongo, write_spec):
        """Only bulk-write failures are policy-dependent."""
        from pymongo.errors import AutoReconnect

        mongo.collection.insert_many.side_effect = AutoReconnect("lost")

        with MongoBatchWriter(write_spec.with_ordered(False)) as writer:
            writer.start_bundle()
            writer.process({"i": 1})
            with pytest.raises(AutoReconnect):
                writer.finish_bundle()
