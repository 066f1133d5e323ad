"""
Single-use completion signal between the bulk stream and the orchestrator.

The orchestrator blocks on wait() while the stream runs on its own
threads; exactly one of complete() or fail() releases it.
"""

import threading
from concurrent.futures import Future, TimeoutError as FutureTimeoutError
from typing import Optional

from loguru import logger


class SignalTimeout(Exception):
    """The signal was not released before the deadline."""
    pass


class BatchCompletionSignal:
    """
    Future-backed single-slot completion channel.
    
    The first release wins; later releases are ignored and logged. The
    value carried by complete() is the final indexed-document total, so the
    orchestrator never reads a counter another thread is writing.
    """
    
    def __init__(self, name: str = "bulk"):
        self.name = name
        self._future: Future = Future()
        self._lock = threading.Lock()
    
    def complete(self, indexed_count: int) -> bool:
        """
        Release waiters with the final indexed count.
        
        Returns:
            True if this call released the signal
        """
        with self._lock:
            if self._future.done():
                logger.debug(f"{self.name}: completion ignored, signal already released")
                return False
            self._future.set_result(indexed_count)
        return True
    
    def fail(self, error: BaseException) -> bool:
        """
        Release waiters with an error.
        
        Returns:
            True if this call released the signal
        """
        with self._lock:
            if self._future.done():
                logger.debug(f"{self.name}: error ignored, signal already released: {error}")
                return False
            self._future.set_exception(error)
        return True
    
    @property
    def is_released(self) -> bool:
        return self._future.done()
    
    def wait(self, timeout: Optional[float] = None) -> int:
        """
        Block until released.
        
        Args:
            timeout: Seconds to wait (None waits forever)
            
        Returns:
            Indexed count passed to complete()
            
        Raises:
            SignalTimeout: If the deadline passes first
            Exception: Whatever was passed to fail()
        """
        try:
            return self._future.result(timeout=timeout)
        except FutureTimeoutError:
            raise SignalTimeout(
                f"{self.name}: not released within {timeout}s"
            ) from None
