"""
Source vs index query benchmark.

Times the authoritative catalog against the search index for a basic
listing and a filtered search, and compares a sample of records from both.
"""

from typing import List, Sequence

from loguru import logger

from catalog_search.schemas.benchmark import (
    BenchmarkReport,
    BenchmarkResult,
    RecordAnalysis,
    RecordSummary,
)
from catalog_search.search.query_engine import SearchQueryEngine
from catalog_search.sources.base import SourceRepository
from catalog_search.utils.timing import Stopwatch, compute_timing_stats

COMPLEX_NAME = "Test"
COMPLEX_MIN_PRICE = 10.0
COMPLEX_MAX_PRICE = 100.0
SAMPLE_SIZE = 100


def summarize(prices: Sequence[float], stocks: Sequence[int]) -> RecordSummary:
    """Aggregate prices and stock levels of a record sample."""
    if not prices:
        return RecordSummary()
    return RecordSummary(
        total_count=len(prices),
        average_price=sum(prices) / len(prices),
        min_price=min(prices),
        max_price=max(prices),
        total_stock=sum(stocks),
        average_stock=sum(stocks) / len(stocks),
    )


class SearchBenchmark:
    """Compares catalog source and index query latency."""
    
    def __init__(self, source: SourceRepository, engine: SearchQueryEngine):
        self.source = source
        self.engine = engine
    
    def _time(self, fn, iterations: int) -> List[float]:
        times = []
        for _ in range(iterations):
            with Stopwatch() as sw:
                fn()
            times.append(sw.elapsed_ms)
        return times
    
    def _source_complex(self) -> list:
        return sorted(
            (
                r for r in self.source.fetch_all()
                if COMPLEX_MIN_PRICE <= r.unit_price <= COMPLEX_MAX_PRICE
                and COMPLEX_NAME.lower() in r.product_name.lower()
            ),
            key=lambda r: r.unit_price,
        )
    
    def run_basic(self, iterations: int) -> BenchmarkResult:
        source_times = self._time(self.source.fetch_all, iterations)
        index_times = self._time(lambda: self.engine.search(), iterations)
        return BenchmarkResult(
            query_type="Basic",
            dataset_size=self.source.count(),
            source_stats=compute_timing_stats(source_times),
            index_stats=compute_timing_stats(index_times),
        )
    
    def run_complex(self, iterations: int) -> BenchmarkResult:
        source_times = self._time(self._source_complex, iterations)
        index_times = self._time(
            lambda: self.engine.search(COMPLEX_NAME, COMPLEX_MIN_PRICE, COMPLEX_MAX_PRICE),
            iterations,
        )
        return BenchmarkResult(
            query_type="Complex Search",
            dataset_size=self.source.count(),
            source_stats=compute_timing_stats(source_times),
            index_stats=compute_timing_stats(index_times),
        )
    
    def analyze_records(self, sample_size: int = SAMPLE_SIZE) -> RecordAnalysis:
        """Compare the first `sample_size` catalog records with their index documents."""
        source_records = self.source.fetch_page(0, sample_size)
        index_docs = self.engine.fetch_documents([r.product_id for r in source_records])
        
        source = summarize(
            [r.unit_price for r in source_records],
            [r.units_in_stock for r in source_records],
        )
        index = summarize(
            [d.unit_price for d in index_docs],
            [d.units_in_stock for d in index_docs],
        )
        
        return RecordAnalysis(
            source=source,
            index=index,
            data_consistency=source.total_count == index.total_count,
            price_consistency=abs(source.average_price - index.average_price) < 0.01,
            stock_consistency=abs(source.average_stock - index.average_stock) < 0.01,
        )
    
    def compare(self, iterations: int = 10) -> BenchmarkReport:
        """
        Run the full benchmark.
        
        Args:
            iterations: Timed runs per query type
            
        Returns:
            BenchmarkReport with timings, record analysis and summary text
        """
        if iterations < 1:
            raise ValueError(f"iterations must be >= 1, got {iterations}")
        
        # Warm up both paths once
        self.source.fetch_all()
        self.engine.search()
        
        logger.info(f"Running benchmark ({iterations} iterations)")
        basic = self.run_basic(iterations)
        complex_result = self.run_complex(iterations)
        analysis = self.analyze_records()
        
        return BenchmarkReport(
            basic=basic,
            complex=complex_result,
            record_analysis=analysis,
            summary=format_summary(basic, complex_result),
        )


def format_summary(basic: BenchmarkResult, complex_result: BenchmarkResult) -> str:
    """Human-readable benchmark summary."""
    lines = [
        f"Performance Analysis for {basic.dataset_size} Records",
        "=" * 46,
    ]
    
    for label, result in (("Basic Query", basic), ("Complex Query", complex_result)):
        speedup = result.speedup
        lines.append(f"\n{label} Performance:")
        lines.append(f"Source Avg: {result.source_stats.average_ms:.2f}ms")
        lines.append(f"Index Avg: {result.index_stats.average_ms:.2f}ms")
        lines.append(
            f"{label} Speedup: {speedup:.2f}x" if speedup is not None
            else f"{label} Speedup: n/a"
        )
    
    lines.append("\nPerformance Consistency:")
    lines.append(f"Source Variation: {basic.source_stats.standard_deviation:.2f}ms")
    lines.append(f"Index Variation: {basic.index_stats.standard_deviation:.2f}ms")
    
    return "\n".join(lines)
