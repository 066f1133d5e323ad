"""
Bounded-parallelism bulk stream with fixed back-off retries.

Partitions documents into batches, submits them on a worker pool, retries
rejected documents, and reports each batch's terminal outcome to a
subscriber through on_next / on_error / on_completed callbacks.
"""

import threading
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import TYPE_CHECKING, Callable, List, Optional, Sequence

import tenacity
from loguru import logger

from catalog_search.exceptions import BulkPartialFailure, IndexUnavailableError
from catalog_search.schemas.bulk import BatchOutcome, BatchStatus, BulkBatch
from catalog_search.schemas.catalog import IndexDocument

if TYPE_CHECKING:
    from catalog_search.clients.base import IndexClient


class RetryableBatchError(Exception):
    """Some documents in a batch were rejected with a retryable status."""
    
    def __init__(self, pending: int):
        self.pending = pending
        super().__init__(f"{pending} documents rejected with retryable status")


class BulkStreamStopped(Exception):
    """The stream was stopped before every batch was sent."""
    pass


def log_retry_attempt(retry_state: tenacity.RetryCallState) -> None:
    """Log retry attempts with context."""
    attempt = retry_state.attempt_number
    if retry_state.outcome and retry_state.outcome.failed:
        exception = retry_state.outcome.exception()
        logger.warning(
            f"Bulk retry after attempt {attempt}: {type(exception).__name__}: {exception}"
        )
    else:
        logger.info(f"Bulk retry after attempt {attempt}")


def partition(documents: Sequence[IndexDocument], batch_size: int) -> List[BulkBatch]:
    """Split documents into ordered batches of at most batch_size."""
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")
    
    return [
        BulkBatch(sequence=seq, documents=list(documents[start:start + batch_size]))
        for seq, start in enumerate(range(0, len(documents), batch_size))
    ]


class BulkStreamObserver:
    """Callback bundle for a bulk stream subscription."""
    
    def __init__(
        self,
        on_next: Optional[Callable[[BatchOutcome], None]] = None,
        on_error: Optional[Callable[[BaseException], None]] = None,
        on_completed: Optional[Callable[[], None]] = None
    ):
        self.on_next = on_next or (lambda outcome: None)
        self.on_error = on_error or (lambda error: None)
        self.on_completed = on_completed or (lambda: None)


class BulkStream:
    """
    Asynchronous bulk indexing of a document set.
    
    Features:
    - Worker pool bounded by max_workers
    - Fixed back-off between attempts, max_retries retries per batch
    - Only retryable (429) rejections and transport errors are retried,
      and only the rejected documents are resent
    - continue_on_drop keeps the stream going after a batch loses documents
    - Optional index refresh once every batch has finished
    - stop() cancels batches not yet started and aborts pending retries
    
    Callbacks are delivered serially from a single dispatcher thread.
    """
    
    def __init__(
        self,
        client: "IndexClient",
        index_name: str,
        documents: Sequence[IndexDocument],
        batch_size: int = 1000,
        max_workers: int = 1,
        backoff_seconds: float = 15.0,
        max_retries: int = 2,
        continue_on_drop: bool = True,
        refresh_on_completed: bool = True
    ):
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")
        if max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {max_retries}")
        
        self.client = client
        self.index_name = index_name
        self.batches = partition(documents, batch_size)
        self.max_workers = max_workers
        self.backoff_seconds = backoff_seconds
        self.max_retries = max_retries
        self.continue_on_drop = continue_on_drop
        self.refresh_on_completed = refresh_on_completed
        
        self.outcomes: List[BatchOutcome] = []
        self._thread: Optional[threading.Thread] = None
        self._stop = threading.Event()
        self._futures: List[Future] = []
    
    @property
    def batch_count(self) -> int:
        return len(self.batches)
    
    def subscribe(
        self,
        on_next: Optional[Callable[[BatchOutcome], None]] = None,
        on_error: Optional[Callable[[BaseException], None]] = None,
        on_completed: Optional[Callable[[], None]] = None
    ) -> threading.Thread:
        """
        Start streaming and deliver events to the given callbacks.
        
        Returns immediately; the stream runs on a background thread.
        
        Raises:
            RuntimeError: If the stream was already subscribed
        """
        if self._thread is not None:
            raise RuntimeError("Bulk stream supports a single subscription")
        
        observer = BulkStreamObserver(on_next, on_error, on_completed)
        self._thread = threading.Thread(
            target=self._run,
            args=(observer,),
            name=f"bulk-stream-{self.index_name}",
            daemon=True,
        )
        self._thread.start()
        return self._thread
    
    def stop(self) -> None:
        """
        Stop dispatching.
        
        Batches not yet started are cancelled and no further retries are
        made; requests already in flight finish. Use join() to wait for them.
        """
        if self._stop.is_set():
            return
        logger.warning(f"Stopping bulk stream to '{self.index_name}'")
        self._stop.set()
        for future in list(self._futures):
            future.cancel()
    
    @property
    def stopped(self) -> bool:
        return self._stop.is_set()
    
    def join(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the dispatcher thread to finish.
        
        Returns:
            True if the stream is no longer running
        """
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()
    
    def _run(self, observer: BulkStreamObserver) -> None:
        logger.info(
            f"Streaming {self.batch_count} batches to '{self.index_name}' "
            f"({self.max_workers} workers, {self.max_retries} retries, "
            f"{self.backoff_seconds}s back-off)"
        )
        
        try:
            self._dispatch(observer)
            if self.refresh_on_completed:
                self.client.refresh(self.index_name)
        except Exception as e:
            logger.error(f"Bulk stream to '{self.index_name}' failed: {e}")
            observer.on_error(e)
            return
        
        observer.on_completed()
    
    def _dispatch(self, observer: BulkStreamObserver) -> None:
        with ThreadPoolExecutor(
            max_workers=self.max_workers,
            thread_name_prefix="bulk-worker"
        ) as executor:
            future_to_batch = {}
            for batch in self.batches:
                if self._stop.is_set():
                    break
                future = executor.submit(self._send_batch, batch)
                future_to_batch[future] = batch
                self._futures.append(future)
            
            stop_error: Optional[BulkPartialFailure] = None
            
            for future in as_completed(future_to_batch):
                if future.cancelled():
                    continue
                
                outcome = future.result()
                self.outcomes.append(outcome)
                observer.on_next(outcome)
                
                if outcome.dropped and not self.continue_on_drop and stop_error is None:
                    # Batches already running still report their outcome
                    for pending in future_to_batch:
                        pending.cancel()
                    stop_error = BulkPartialFailure(
                        outcome.dropped,
                        f"Batch {outcome.sequence} dropped {outcome.dropped} documents"
                    )
        
        if self._stop.is_set():
            raise BulkStreamStopped(
                f"Bulk stream to '{self.index_name}' stopped after "
                f"{len(self.outcomes)} of {self.batch_count} batches"
            )
        if stop_error is not None:
            raise stop_error
    
    def _send_batch(self, batch: BulkBatch) -> BatchOutcome:
        """Submit one batch, retrying rejected documents."""
        pending = list(batch.documents)
        indexed = 0
        attempts = 0
        error: Optional[str] = None
        
        retrying = tenacity.Retrying(
            wait=tenacity.wait_fixed(self.backoff_seconds),
            stop=tenacity.stop_after_attempt(self.max_retries + 1),
            retry=tenacity.retry_if_exception_type((
                RetryableBatchError,
                IndexUnavailableError,
            )),
            before_sleep=log_retry_attempt,
            sleep=self._stop.wait,
            reraise=True
        )
        
        try:
            for attempt in retrying:
                with attempt:
                    attempts = attempt.retry_state.attempt_number
                    if self._stop.is_set():
                        raise BulkStreamStopped(f"Batch {batch.sequence} not sent: stream stopped")
                    response = self.client.bulk(self.index_name, pending)
                    indexed += response.indexed
                    
                    for failure in response.permanent_failures:
                        logger.warning(
                            f"Batch {batch.sequence}: document {failure.doc_id} "
                            f"rejected ({failure.status}): {failure.reason}"
                        )
                    
                    retry_ids = {f.doc_id for f in response.retryable_failures}
                    pending = [doc for doc in pending if doc.doc_id in retry_ids]
                    if pending:
                        raise RetryableBatchError(len(pending))
        except (RetryableBatchError, IndexUnavailableError) as e:
            error = str(e)
            logger.error(
                f"Batch {batch.sequence} gave up after {attempts} attempts: {e}"
            )
        except BulkStreamStopped as e:
            error = str(e)
            logger.warning(error)
        
        dropped = batch.size - indexed
        if dropped and error is None:
            error = f"{dropped} documents rejected"
        if dropped == 0:
            status = BatchStatus.INDEXED
        elif indexed == 0:
            status = BatchStatus.FAILED
        else:
            status = BatchStatus.PARTIALLY_DROPPED
        
        logger.debug(
            f"Batch {batch.sequence}: {status.value} "
            f"({indexed}/{batch.size} indexed, {attempts} attempts)"
        )
        
        return BatchOutcome(
            sequence=batch.sequence,
            status=status,
            submitted=batch.size,
            indexed=indexed,
            dropped=dropped,
            attempts=attempts,
            error=error,
        )
