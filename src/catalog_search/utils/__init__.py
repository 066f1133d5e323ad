"""Utility helpers."""

from catalog_search.utils.logger import setup_logger
from catalog_search.utils.timing import Stopwatch, compute_timing_stats

__all__ = ["setup_logger", "Stopwatch", "compute_timing_stats"]
