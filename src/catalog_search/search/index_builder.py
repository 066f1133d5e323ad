"""
Full rebuild of the catalog search index.

Drops and recreates the index, streams every catalog record through the
bulk stream, waits for completion, and verifies the document count.
"""

import threading
import time
from typing import TYPE_CHECKING, Optional

from loguru import logger

from catalog_search.config.index_config import BulkConfig
from catalog_search.exceptions import (
    IndexTeardownFailed,
    IndexUnavailableError,
    SchemaCreationFailed,
)
from catalog_search.schemas.bulk import BatchOutcome
from catalog_search.schemas.catalog import IndexDocument
from catalog_search.schemas.index_schema import IndexSchema
from catalog_search.schemas.reindex import (
    ReindexJob,
    ReindexReport,
    ReindexState,
)
from catalog_search.search.completion_signal import BatchCompletionSignal, SignalTimeout
from catalog_search.search.consistency import ConsistencyVerifier

if TYPE_CHECKING:
    from catalog_search.clients.base import IndexClient
    from catalog_search.sources.base import SourceRepository


class _StreamProgress:
    """
    Subscriber for one bulk stream.
    
    The stream delivers callbacks from its dispatcher thread only, so the
    totals here are written by one thread and handed to the orchestrator
    through the completion signal.
    """
    
    def __init__(self, signal: BatchCompletionSignal):
        self.signal = signal
        self.indexed = 0
        self.dropped = 0
        self.batches = 0
        self.error: Optional[BaseException] = None
    
    def on_next(self, outcome: BatchOutcome) -> None:
        self.indexed += outcome.item_count
        self.dropped += outcome.dropped
        self.batches += 1
        logger.debug(f"Batch {outcome.sequence} acknowledged: {outcome.item_count} documents")
    
    def on_error(self, error: BaseException) -> None:
        self.signal.fail(error)
    
    def on_completed(self) -> None:
        self.signal.complete(self.indexed)


class IndexBuilder:
    """
    Orchestrates a full index rebuild.
    
    Steps:
    1. Delete the existing index (fatal on failure)
    2. Create the index from the schema (fatal on failure)
    3. Fetch all catalog records
    4-6. Stream them in batches and wait for the completion signal
    7. Wait the refresh grace period
    8. Verify the document count
    
    run() never raises; every outcome is a ReindexReport.
    """
    
    def __init__(
        self,
        index_client: "IndexClient",
        source: "SourceRepository",
        schema: IndexSchema,
        index_name: str,
        config: Optional[BulkConfig] = None
    ):
        """
        Initialize index builder.
        
        Args:
            index_client: Client for the search index
            source: Authoritative catalog
            schema: Mapping and settings for the new index
            index_name: Target index name
            config: Bulk streaming configuration
        """
        self.index_client = index_client
        self.source = source
        self.schema = schema
        self.index_name = index_name
        self.config = config or BulkConfig()
        self.verifier = ConsistencyVerifier(index_client)
    
    def run(self, cancel_event: Optional[threading.Event] = None) -> ReindexReport:
        """
        Rebuild the index.
        
        Args:
            cancel_event: Checked once before the rebuild starts
            
        Returns:
            ReindexReport with a terminal status
        """
        job = ReindexJob(self.index_name)
        
        if cancel_event is not None and cancel_event.is_set():
            job.fail("Reindex cancelled before start")
            logger.warning(job.error)
            return job.report(job.error)
        
        logger.info(f"Starting reindex of '{self.index_name}'")
        
        try:
            return self._run(job)
        except (IndexTeardownFailed, SchemaCreationFailed) as e:
            message = str(e)
            logger.error(message)
        except Exception as e:
            message = f"Error during indexing: {e}"
            logger.exception(message)
        
        if not job.is_terminal:
            job.fail(message)
        return job.report(message)
    
    def _run(self, job: ReindexJob) -> ReindexReport:
        job.transition(ReindexState.DROPPING_OLD_INDEX)
        self._drop_index()
        
        job.transition(ReindexState.CREATING_INDEX)
        self._create_index()
        
        records = self.source.fetch_all()
        job.expected_count = len(records)
        if not records:
            job.transition(ReindexState.COMPLETED)
            message = "No catalog records found to index"
            logger.info(message)
            return job.report(message)
        
        documents = [IndexDocument.from_record(record) for record in records]
        
        job.transition(ReindexState.STREAMING)
        progress = self._stream(documents)
        job.indexed_count = progress.indexed
        job.dropped_count = progress.dropped
        job.batch_count = progress.batches
        if progress.error is not None:
            job.error = str(progress.error)
        
        job.transition(ReindexState.AWAITING_REFRESH)
        if self.config.refresh_grace_seconds > 0:
            time.sleep(self.config.refresh_grace_seconds)
        
        job.transition(ReindexState.VERIFYING)
        verification = self.verifier.verify(self.index_name, job.expected_count)
        
        if verification.is_consistent:
            job.transition(ReindexState.COMPLETED)
            message = f"Catalog indexed successfully: {job.indexed_count} documents"
        else:
            job.transition(ReindexState.COMPLETED_WITH_MISMATCH)
            message = verification.warning
        
        if job.error:
            message = f"{message} (bulk stream error: {job.error})"
        
        report = job.report(message, verification)
        logger.info(
            f"Reindex of '{self.index_name}' finished: {report.status.value} "
            f"({report.indexed_count}/{report.expected_count} in {report.duration_seconds:.1f}s)"
        )
        return report
    
    def _drop_index(self) -> None:
        try:
            if not self.index_client.index_exists(self.index_name):
                logger.info(f"Index '{self.index_name}' does not exist, nothing to drop")
                return
            acknowledged = self.index_client.delete_index(self.index_name)
        except IndexUnavailableError as e:
            raise IndexTeardownFailed(f"Failed to delete old index: {e}") from e
        
        if not acknowledged:
            raise IndexTeardownFailed(
                f"Failed to delete old index '{self.index_name}': not acknowledged"
            )
        logger.info(f"Deleted index '{self.index_name}'")
    
    def _create_index(self) -> None:
        try:
            acknowledged = self.index_client.create_index(self.index_name, self.schema)
        except IndexUnavailableError as e:
            raise SchemaCreationFailed(f"Failed to create index: {e}") from e
        
        if not acknowledged:
            raise SchemaCreationFailed(
                f"Failed to create index '{self.index_name}': not acknowledged"
            )
        logger.info(
            f"Created index '{self.index_name}' "
            f"({len(self.schema.fields)} fields, max_result_window={self.schema.max_result_window})"
        )
    
    def _stream(self, documents) -> _StreamProgress:
        """Stream documents and block until the stream reports a terminal event."""
        signal = BatchCompletionSignal(name=f"reindex-{self.index_name}")
        progress = _StreamProgress(signal)
        
        stream = self.index_client.bulk_stream(
            self.index_name,
            documents,
            batch_size=self.config.batch_size,
            max_workers=self.config.max_workers,
            backoff_seconds=self.config.backoff_seconds,
            max_retries=self.config.max_retries,
            continue_on_drop=self.config.continue_on_drop,
            refresh_on_completed=self.config.refresh_on_completed,
        )
        logger.info(
            f"Dispatching {len(documents)} documents in {stream.batch_count} batches "
            f"of up to {self.config.batch_size}"
        )
        stream.subscribe(
            on_next=progress.on_next,
            on_error=progress.on_error,
            on_completed=progress.on_completed,
        )
        
        try:
            progress.indexed = signal.wait(timeout=self.config.completion_timeout_seconds)
        except SignalTimeout:
            # The rebuild must not return while batches can still reach the index
            stream.stop()
            stream.join()
            logger.error(
                f"Bulk stream to '{self.index_name}' stopped after the completion deadline "
                f"({len(stream.outcomes)} of {stream.batch_count} batches finished)"
            )
            raise
        except Exception as e:
            # Recorded, not fatal: dropped documents show up in verification
            logger.error(f"Bulk stream reported an error: {e}")
            progress.error = e
        
        return progress
