"""
Benchmark schemas comparing the authoritative store with the index.
"""

from typing import Optional

from pydantic import BaseModel


class TimingStats(BaseModel):
    """Summary statistics of a timing sample, in milliseconds."""
    
    average_ms: float = 0.0
    median_ms: float = 0.0
    min_ms: float = 0.0
    max_ms: float = 0.0
    standard_deviation: float = 0.0
    samples: int = 0


class BenchmarkResult(BaseModel):
    """Source vs index timings for one query type."""
    
    query_type: str = "Basic"
    dataset_size: int
    source_stats: TimingStats
    index_stats: TimingStats
    
    @property
    def speedup(self) -> Optional[float]:
        """How many times faster the index answered on average."""
        if self.index_stats.average_ms <= 0:
            return None
        return self.source_stats.average_ms / self.index_stats.average_ms


class RecordSummary(BaseModel):
    """Aggregates over a sample of records from one store."""
    
    total_count: int = 0
    average_price: float = 0.0
    min_price: float = 0.0
    max_price: float = 0.0
    total_stock: int = 0
    average_stock: float = 0.0


class RecordAnalysis(BaseModel):
    """Side-by-side sample aggregates with consistency flags."""
    
    source: RecordSummary
    index: RecordSummary
    data_consistency: bool
    price_consistency: bool
    stock_consistency: bool


class BenchmarkReport(BaseModel):
    """Full benchmark output."""
    
    basic: BenchmarkResult
    complex: BenchmarkResult
    record_analysis: RecordAnalysis
    summary: str
