"""
Tests for the bounded-parallelism bulk stream.
"""

import threading
import time

import pytest

from catalog_search.exceptions import BulkPartialFailure, IndexUnavailableError
from catalog_search.schemas.bulk import BatchStatus
from catalog_search.schemas.catalog import IndexDocument
from catalog_search.search.bulk_stream import BulkStream, BulkStreamStopped, partition
from catalog_search.search.completion_signal import BatchCompletionSignal

from tests.fakes import INDEX_NAME, FakeIndexClient, make_records


def documents(count):
    return [IndexDocument.from_record(r) for r in make_records(count)]


def run_stream(stream, timeout=10):
    """Subscribe and collect events until the stream finishes."""
    outcomes = []
    signal = BatchCompletionSignal()
    stream.subscribe(
        on_next=outcomes.append,
        on_error=signal.fail,
        on_completed=lambda: signal.complete(len(outcomes)),
    )
    return signal.wait(timeout=timeout), outcomes


@pytest.fixture
def client():
    client = FakeIndexClient()
    client.indices[INDEX_NAME] = {}
    return client


class TestPartition:
    """Tests for batch partitioning"""
    
    def test_even_split(self):
        batches = partition(documents(30), 10)
        
        assert [b.size for b in batches] == [10, 10, 10]
        assert [b.sequence for b in batches] == [0, 1, 2]
    
    def test_remainder_batch(self):
        batches = partition(documents(25), 10)
        
        assert [b.size for b in batches] == [10, 10, 5]
    
    def test_preserves_order(self):
        docs = documents(7)
        batches = partition(docs, 3)
        
        flattened = [d for b in batches for d in b.documents]
        assert flattened == docs
    
    def test_empty(self):
        assert partition([], 10) == []
    
    def test_invalid_size(self):
        with pytest.raises(ValueError):
            partition(documents(3), 0)


class TestBulkStream:
    """Tests for BulkStream"""
    
    def test_all_batches_indexed(self, client):
        stream = BulkStream(client, INDEX_NAME, documents(35), batch_size=10, max_workers=3, backoff_seconds=0)
        
        batches, outcomes = run_stream(stream)
        
        assert batches == 4
        assert sum(o.indexed for o in outcomes) == 35
        assert all(o.status == BatchStatus.INDEXED for o in outcomes)
        assert sorted(o.sequence for o in outcomes) == [0, 1, 2, 3]
        assert client.count(INDEX_NAME) == 35
    
    def test_refresh_on_completed(self, client):
        stream = BulkStream(client, INDEX_NAME, documents(5), backoff_seconds=0)
        run_stream(stream)
        
        assert client.refreshed == [INDEX_NAME]
    
    def test_no_refresh_when_disabled(self, client):
        stream = BulkStream(client, INDEX_NAME, documents(5), backoff_seconds=0, refresh_on_completed=False)
        run_stream(stream)
        
        assert client.refreshed == []
    
    def test_only_rejected_documents_resent(self, client):
        """Test retry attempts carry only the 429-rejected documents"""
        client.reject = lambda doc, attempt: 429 if doc.product_id in ("2", "3") and attempt == 1 else None
        sizes = []
        original_bulk = client.bulk
        
        def recording_bulk(name, docs):
            sizes.append(len(docs))
            return original_bulk(name, docs)
        
        client.bulk = recording_bulk
        stream = BulkStream(client, INDEX_NAME, documents(10), batch_size=10, backoff_seconds=0)
        
        _, outcomes = run_stream(stream)
        
        assert sizes == [10, 2]
        assert outcomes[0].status == BatchStatus.INDEXED
        assert outcomes[0].attempts == 2
    
    def test_permanent_rejection_not_retried(self, client):
        client.reject = lambda doc, attempt: 400 if doc.product_id == "1" else None
        stream = BulkStream(client, INDEX_NAME, documents(5), batch_size=5, backoff_seconds=0)
        
        _, outcomes = run_stream(stream)
        
        assert outcomes[0].status == BatchStatus.PARTIALLY_DROPPED
        assert outcomes[0].attempts == 1
        assert outcomes[0].dropped == 1
        assert client.bulk_calls == 1
    
    def test_retry_limit(self, client):
        """Test a batch is attempted max_retries + 1 times"""
        client.reject = lambda doc, attempt: 429
        stream = BulkStream(client, INDEX_NAME, documents(4), batch_size=4, backoff_seconds=0, max_retries=2)
        
        _, outcomes = run_stream(stream)
        
        assert outcomes[0].status == BatchStatus.FAILED
        assert outcomes[0].attempts == 3
        assert outcomes[0].indexed == 0
        assert client.bulk_calls == 3
    
    def test_transport_errors_retried(self):
        calls = []
        
        class FlakyClient(FakeIndexClient):
            def bulk(self, name, docs):
                calls.append(len(docs))
                if len(calls) == 1:
                    raise IndexUnavailableError("connection reset")
                return super().bulk(name, docs)
        
        client = FlakyClient()
        client.indices[INDEX_NAME] = {}
        stream = BulkStream(client, INDEX_NAME, documents(3), batch_size=3, backoff_seconds=0)
        
        _, outcomes = run_stream(stream)
        
        assert calls == [3, 3]
        assert outcomes[0].status == BatchStatus.INDEXED
    
    def test_continue_after_dropped_batch(self, client):
        client.reject = lambda doc, attempt: 400 if int(doc.product_id) <= 5 else None
        stream = BulkStream(client, INDEX_NAME, documents(20), batch_size=5, backoff_seconds=0)
        
        batches, outcomes = run_stream(stream)
        
        assert batches == 4
        assert sum(o.indexed for o in outcomes) == 15
    
    def test_stop_on_drop_reports_error(self, client):
        client.reject = lambda doc, attempt: 400
        stream = BulkStream(
            client, INDEX_NAME, documents(20), batch_size=5,
            max_workers=1, backoff_seconds=0, continue_on_drop=False,
        )
        
        with pytest.raises(BulkPartialFailure) as exc_info:
            run_stream(stream)
        
        assert exc_info.value.dropped == 5
    
    def test_callbacks_delivered_from_one_thread(self, client):
        threads = set()
        signal = BatchCompletionSignal()
        stream = BulkStream(client, INDEX_NAME, documents(50), batch_size=5, max_workers=4, backoff_seconds=0)
        
        stream.subscribe(
            on_next=lambda outcome: threads.add(threading.get_ident()),
            on_error=signal.fail,
            on_completed=lambda: signal.complete(0),
        )
        signal.wait(timeout=10)
        
        assert len(threads) == 1
    
    def test_single_subscription(self, client):
        stream = BulkStream(client, INDEX_NAME, documents(1), backoff_seconds=0)
        run_stream(stream)
        
        with pytest.raises(RuntimeError):
            stream.subscribe()
    
    def test_client_bulk_stream_factory(self, client):
        stream = client.bulk_stream(INDEX_NAME, documents(12), batch_size=5, max_workers=2, backoff_seconds=0)
        
        assert isinstance(stream, BulkStream)
        assert stream.batch_count == 3
        assert stream.max_workers == 2
    
    def test_invalid_workers(self, client):
        with pytest.raises(ValueError):
            BulkStream(client, INDEX_NAME, documents(1), max_workers=0)
    
    def test_stop_cancels_pending_batches(self, client):
        """Test batches not yet started are never sent after stop()"""
        entered = threading.Event()
        release = threading.Event()
        
        class GatedClient(FakeIndexClient):
            def bulk(self, name, docs):
                entered.set()
                release.wait(5)
                return super().bulk(name, docs)
        
        gated = GatedClient()
        gated.indices[INDEX_NAME] = {}
        stream = BulkStream(gated, INDEX_NAME, documents(20), batch_size=5, max_workers=1, backoff_seconds=0)
        errors = []
        stream.subscribe(on_error=errors.append)
        assert entered.wait(5)
        
        stream.stop()
        release.set()
        
        assert stream.join(5)
        assert stream.stopped
        assert gated.bulk_calls == 1
        assert isinstance(errors[0], BulkStreamStopped)
        assert gated.refreshed == []
    
    def test_stop_interrupts_backoff(self, client):
        """Test a stopped stream does not sit out the retry back-off"""
        client.reject = lambda doc, attempt: 429
        stream = BulkStream(client, INDEX_NAME, documents(3), batch_size=3, backoff_seconds=30, max_retries=2)
        stream.subscribe()
        
        deadline = time.monotonic() + 5
        while client.bulk_calls == 0 and time.monotonic() < deadline:
            time.sleep(0.01)
        stream.stop()
        
        assert stream.join(5)
        assert client.bulk_calls == 1
        assert stream.outcomes[0].status == BatchStatus.FAILED
