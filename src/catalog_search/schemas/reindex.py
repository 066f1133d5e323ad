"""
Reindex job state machine and report schemas.

A ReindexJob tracks one full rebuild from Pending to a terminal state;
its ReindexReport is what callers receive.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple

from loguru import logger
from pydantic import BaseModel

from catalog_search.exceptions import ConsistencyMismatch, InvalidStateTransition


class ReindexState(str, Enum):
    """States of a full rebuild."""
    
    PENDING = "Pending"
    DROPPING_OLD_INDEX = "DroppingOldIndex"
    CREATING_INDEX = "CreatingIndex"
    STREAMING = "Streaming"
    AWAITING_REFRESH = "AwaitingRefresh"
    VERIFYING = "Verifying"
    COMPLETED = "Completed"
    COMPLETED_WITH_MISMATCH = "CompletedWithMismatch"
    FAILED = "Failed"
    
    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES


class ReindexStatus(str, Enum):
    """Terminal status reported to callers."""
    
    COMPLETED = "Completed"
    COMPLETED_WITH_MISMATCH = "CompletedWithMismatch"
    FAILED = "Failed"


TERMINAL_STATES: FrozenSet[ReindexState] = frozenset({
    ReindexState.COMPLETED,
    ReindexState.COMPLETED_WITH_MISMATCH,
    ReindexState.FAILED,
})

# Forward transitions; FAILED is reachable from every non-terminal state.
# CREATING_INDEX -> COMPLETED covers an empty source.
_TRANSITIONS: Dict[ReindexState, FrozenSet[ReindexState]] = {
    ReindexState.PENDING: frozenset({ReindexState.DROPPING_OLD_INDEX}),
    ReindexState.DROPPING_OLD_INDEX: frozenset({ReindexState.CREATING_INDEX}),
    ReindexState.CREATING_INDEX: frozenset({
        ReindexState.STREAMING,
        ReindexState.COMPLETED,
    }),
    ReindexState.STREAMING: frozenset({ReindexState.AWAITING_REFRESH}),
    ReindexState.AWAITING_REFRESH: frozenset({ReindexState.VERIFYING}),
    ReindexState.VERIFYING: frozenset({
        ReindexState.COMPLETED,
        ReindexState.COMPLETED_WITH_MISMATCH,
    }),
}


class VerificationResult(BaseModel):
    """Outcome of comparing index count with source count."""
    
    expected: int
    actual: int
    
    @property
    def is_consistent(self) -> bool:
        return self.expected == self.actual
    
    @property
    def warning(self) -> Optional[str]:
        if self.is_consistent:
            return None
        return f"Warning: Only {self.actual} of {self.expected} records were indexed"
    
    def raise_for_mismatch(self) -> None:
        """Raise ConsistencyMismatch when the counts differ."""
        if not self.is_consistent:
            raise ConsistencyMismatch(self.expected, self.actual)


class ReindexReport(BaseModel):
    """User-visible result of a rebuild."""
    
    status: ReindexStatus
    message: str
    indexed_count: int = 0
    expected_count: Optional[int] = None
    dropped_count: int = 0
    batch_count: int = 0
    duration_seconds: float = 0.0
    verification: Optional[VerificationResult] = None
    
    @property
    def succeeded(self) -> bool:
        return self.status != ReindexStatus.FAILED


class ReindexJob:
    """
    Transient state machine for one full rebuild.
    
    Keeps a history of (state, timestamp) pairs for diagnostics. Not
    thread-safe; only the orchestrating thread moves it.
    """
    
    def __init__(self, index_name: str):
        self.index_name = index_name
        self.state = ReindexState.PENDING
        self.started_at = datetime.now()
        self.history: List[Tuple[ReindexState, datetime]] = [(self.state, self.started_at)]
        self.expected_count: Optional[int] = None
        self.indexed_count = 0
        self.dropped_count = 0
        self.batch_count = 0
        self.error: Optional[str] = None
    
    def transition(self, new_state: ReindexState) -> None:
        """
        Move to a new state.
        
        Raises:
            InvalidStateTransition: If new_state is not reachable
        """
        allowed = _TRANSITIONS.get(self.state, frozenset())
        if new_state == ReindexState.FAILED and not self.state.is_terminal:
            allowed = allowed | {ReindexState.FAILED}
        
        if new_state not in allowed:
            raise InvalidStateTransition(
                f"Cannot move reindex job from {self.state.value} to {new_state.value}"
            )
        
        logger.debug(f"Reindex job [{self.index_name}]: {self.state.value} -> {new_state.value}")
        self.state = new_state
        self.history.append((new_state, datetime.now()))
    
    def fail(self, message: str) -> None:
        self.error = message
        self.transition(ReindexState.FAILED)
    
    @property
    def is_terminal(self) -> bool:
        return self.state.is_terminal
    
    @property
    def elapsed_seconds(self) -> float:
        return (datetime.now() - self.started_at).total_seconds()
    
    def report(
        self,
        message: str,
        verification: Optional[VerificationResult] = None
    ) -> ReindexReport:
        """
        Build the report for a job in a terminal state.
        
        Raises:
            InvalidStateTransition: If the job has not finished
        """
        if not self.is_terminal:
            raise InvalidStateTransition(
                f"Reindex job still running (state: {self.state.value})"
            )
        
        return ReindexReport(
            status=ReindexStatus(self.state.value),
            message=message,
            indexed_count=self.indexed_count,
            expected_count=self.expected_count,
            dropped_count=self.dropped_count,
            batch_count=self.batch_count,
            duration_seconds=self.elapsed_seconds,
            verification=verification,
        )
