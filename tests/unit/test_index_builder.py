"""
Unit tests for the full index rebuild.
"""

import threading
import time

import pytest

from catalog_search.schemas.catalog import CatalogRecord
from catalog_search.schemas.index_schema import catalog_schema
from catalog_search.schemas.reindex import ReindexStatus
from catalog_search.search.index_builder import IndexBuilder
from catalog_search.sources.base import InMemoryCatalogRepository

from tests.fakes import INDEX_NAME, FakeIndexClient, make_records


def build(client, records, config):
    return IndexBuilder(
        client,
        InMemoryCatalogRepository(records),
        catalog_schema(config.schema),
        INDEX_NAME,
        config=config.bulk,
    )


class TestRebuildSuccess:
    """Rebuilds with no per-batch failures"""
    
    @pytest.mark.parametrize("count", [1, 15, 999, 1000, 2500])
    def test_all_records_indexed(self, count, fake_client, test_config):
        """Test that every record ends up in the index"""
        report = build(fake_client, make_records(count), test_config).run()
        
        assert report.status == ReindexStatus.COMPLETED
        assert report.indexed_count == count
        assert report.expected_count == count
        assert fake_client.count(INDEX_NAME) == count
    
    def test_empty_source_completes(self, fake_client, test_config):
        """Test that an empty catalog is a successful zero-document rebuild"""
        report = build(fake_client, [], test_config).run()
        
        assert report.status == ReindexStatus.COMPLETED
        assert report.indexed_count == 0
        assert "No catalog records" in report.message
        assert fake_client.index_exists(INDEX_NAME)
        assert fake_client.bulk_calls == 0
    
    def test_ten_thousand_records_in_ten_batches(self, fake_client, test_config):
        """Test 10,000 records with batch size 1000 dispatch 10 batches"""
        test_config.bulk.batch_size = 1000
        report = build(fake_client, make_records(10000), test_config).run()
        
        assert report.status == ReindexStatus.COMPLETED
        assert report.indexed_count == 10000
        assert report.batch_count == 10
        assert fake_client.bulk_calls == 10
    
    def test_rebuild_is_idempotent(self, fake_client, test_config):
        """Test two rebuilds of an unchanged catalog give the same count"""
        builder = build(fake_client, make_records(42), test_config)
        
        first = builder.run()
        second = builder.run()
        
        assert first.indexed_count == second.indexed_count == 42
        assert fake_client.count(INDEX_NAME) == 42
    
    def test_existing_index_is_replaced(self, fake_client, test_config):
        """Test that stale documents do not survive a rebuild"""
        build(fake_client, make_records(20), test_config).run()
        report = build(fake_client, make_records(5), test_config).run()
        
        assert report.status == ReindexStatus.COMPLETED
        assert fake_client.count(INDEX_NAME) == 5
    
    def test_index_created_with_schema(self, fake_client, test_config):
        """Test the index is created from the explicit schema"""
        test_config.schema.max_result_window = 50000
        build(fake_client, make_records(3), test_config).run()
        
        schema = fake_client.schemas[INDEX_NAME]
        assert schema.max_result_window == 50000
        assert schema.mappings()["dynamic"] == "strict"
    
    def test_index_refreshed_after_stream(self, fake_client, test_config):
        """Test refresh-on-completed"""
        build(fake_client, make_records(3), test_config).run()
        
        assert fake_client.refreshed == [INDEX_NAME]
    
    def test_out_of_range_rows_do_not_fail_rebuild(self, fake_client, test_config):
        """Test a row with a long name and negative stock is still indexed"""
        odd = CatalogRecord(
            product_id=99, product_name="Oversized " * 6, unit_price=0.0, units_in_stock=-1, category_id=1
        )
        
        report = build(fake_client, make_records(4) + [odd], test_config).run()
        
        assert report.status == ReindexStatus.COMPLETED
        assert report.indexed_count == 5


class TestRebuildPartialFailure:
    """Rebuilds where documents are dropped"""
    
    def test_dropped_batch_reports_mismatch(self, test_config):
        """Test permanently rejected documents give CompletedWithMismatch, not Failed"""
        client = FakeIndexClient(
            reject=lambda doc, attempt: 400 if int(doc.product_id) <= 10 else None
        )
        test_config.bulk.batch_size = 10
        
        report = build(client, make_records(50), test_config).run()
        
        assert report.status == ReindexStatus.COMPLETED_WITH_MISMATCH
        assert report.indexed_count == 40
        assert report.indexed_count < 50
        assert report.dropped_count == 10
        assert "Only 40 of 50" in report.message
        assert report.verification.actual == 40
    
    def test_retryable_rejections_recover(self, test_config):
        """Test 429 rejections are retried and eventually indexed"""
        client = FakeIndexClient(
            reject=lambda doc, attempt: 429 if attempt == 1 else None
        )
        
        report = build(client, make_records(30), test_config).run()
        
        assert report.status == ReindexStatus.COMPLETED
        assert report.indexed_count == 30
    
    def test_retries_exhausted_drop_documents(self, test_config):
        """Test documents still rejected after max_retries are dropped"""
        client = FakeIndexClient(
            reject=lambda doc, attempt: 429 if doc.product_id == "7" else None
        )
        test_config.bulk.max_retries = 2
        
        report = build(client, make_records(10), test_config).run()
        
        assert report.status == ReindexStatus.COMPLETED_WITH_MISMATCH
        assert report.indexed_count == 9
    
    def test_stop_on_drop_still_verifies(self, test_config):
        """Test a stream error is recorded and the count still verified"""
        client = FakeIndexClient(
            reject=lambda doc, attempt: 400 if doc.product_id == "1" else None
        )
        test_config.bulk.continue_on_drop = False
        test_config.bulk.batch_size = 5
        test_config.bulk.max_workers = 1
        
        report = build(client, make_records(20), test_config).run()
        
        assert report.status == ReindexStatus.COMPLETED_WITH_MISMATCH
        assert "bulk stream error" in report.message
        assert report.indexed_count < 20


class TestRebuildFatalFailures:
    """Teardown, creation and unexpected failures"""
    
    def test_teardown_not_acknowledged(self, fake_client, test_config):
        """Test failed deletion aborts with the teardown message"""
        build(fake_client, make_records(3), test_config).run()
        fake_client.delete_acknowledged = False
        
        report = build(fake_client, make_records(3), test_config).run()
        
        assert report.status == ReindexStatus.FAILED
        assert "Failed to delete old index" in report.message
    
    def test_creation_not_acknowledged(self, fake_client, test_config):
        """Test failed creation aborts with the creation message"""
        fake_client.create_acknowledged = False
        
        report = build(fake_client, make_records(3), test_config).run()
        
        assert report.status == ReindexStatus.FAILED
        assert "Failed to create index" in report.message
        assert fake_client.bulk_calls == 0
    
    def test_unreachable_index(self, fake_client, test_config):
        """Test transport errors during teardown map to Failed"""
        fake_client.unreachable = True
        
        report = build(fake_client, make_records(3), test_config).run()
        
        assert report.status == ReindexStatus.FAILED
        assert "Connection refused" in report.message
    
    def test_source_error_is_reported(self, fake_client, test_config):
        """Test unexpected exceptions never escape run()"""
        builder = build(fake_client, make_records(3), test_config)
        
        def broken():
            raise RuntimeError("database is locked")
        
        builder.source.fetch_all = broken
        report = builder.run()
        
        assert report.status == ReindexStatus.FAILED
        assert report.message == "Error during indexing: database is locked"
    
    def test_cancelled_before_start(self, fake_client, test_config):
        """Test a set cancel event prevents the rebuild"""
        cancel = threading.Event()
        cancel.set()
        
        report = build(fake_client, make_records(3), test_config).run(cancel)
        
        assert report.status == ReindexStatus.FAILED
        assert "cancelled" in report.message
        assert not fake_client.index_exists(INDEX_NAME)
    
    def test_completion_timeout(self, test_config):
        """Test the completion wait has a deadline"""
        client = SlowClient(delay=0.3)
        test_config.bulk.completion_timeout_seconds = 0.1
        
        report = build(client, make_records(3), test_config).run()
        
        assert report.status == ReindexStatus.FAILED
        assert "not released" in report.message
    
    def test_timeout_stops_stream_before_returning(self, test_config):
        """Test no batch reaches the index after a timed-out rebuild returns"""
        client = SlowClient(delay=0.3)
        test_config.bulk.batch_size = 5
        test_config.bulk.max_workers = 1
        test_config.bulk.completion_timeout_seconds = 0.2
        
        report = build(client, make_records(20), test_config).run()
        calls_at_return = client.bulk_calls
        time.sleep(0.8)
        
        assert report.status == ReindexStatus.FAILED
        # Only the batch in flight at the deadline was sent
        assert calls_at_return == 1
        assert client.bulk_calls == calls_at_return
        assert client.count(INDEX_NAME) == 5


class SlowClient(FakeIndexClient):
    """Fake client whose bulk requests take `delay` seconds"""
    
    def __init__(self, delay: float):
        super().__init__()
        self.delay = delay
    
    def bulk(self, name, documents):
        time.sleep(self.delay)
        return super().bulk(name, documents)
