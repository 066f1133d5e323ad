"""Wall-clock timing helpers for benchmarks."""

import math
import time
from typing import List

from catalog_search.schemas.benchmark import TimingStats


class Stopwatch:
    """Context manager measuring elapsed milliseconds."""

    def __init__(self):
        self._start = 0.0
        self.elapsed_ms = 0.0

    def __enter__(self):
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.elapsed_ms = (time.perf_counter() - self._start) * 1000.0


def median(values: List[float]) -> float:
    """Median of a non-empty list (mean of the two middle values when even)."""
    ordered = sorted(values)
    middle = len(ordered) // 2
    if len(ordered) % 2 == 0:
        return (ordered[middle - 1] + ordered[middle]) / 2.0
    return ordered[middle]


def compute_timing_stats(times_ms: List[float]) -> TimingStats:
    """
    Summarize a list of timings.
    
    Standard deviation is the population deviation.
    
    Args:
        times_ms: Elapsed times in milliseconds
        
    Returns:
        TimingStats (all zeros for an empty list)
    """
    if not times_ms:
        return TimingStats()
    
    average = sum(times_ms) / len(times_ms)
    variance = sum((t - average) ** 2 for t in times_ms) / len(times_ms)
    
    return TimingStats(
        average_ms=average,
        median_ms=median(times_ms),
        min_ms=min(times_ms),
        max_ms=max(times_ms),
        standard_deviation=math.sqrt(variance),
        samples=len(times_ms),
    )
