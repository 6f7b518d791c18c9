"""
Timing utilities for stage duration tracking.
"""
import time
from typing import Dict
from autoshorts.core.logging import get_logger

logger = get_logger("timing")


class TimingTracker:
    """Track timing for multiple operations."""

    def __init__(self):
        self.timings: Dict[str, float] = {}
        self._starts: Dict[str, float] = {}

    def start(self, operation_name: str):
        """Start timing an operation."""
        self._starts[operation_name] = time.monotonic()

    def end(self, operation_name: str):
        """End timing an operation."""
        if operation_name in self._starts:
            duration = time.monotonic() - self._starts.pop(operation_name)
            self.timings[operation_name] = duration
            logger.debug(f"{operation_name} took {duration:.2f}s")

    def get_summary(self) -> Dict[str, float]:
        """Durations in seconds, rounded."""
        return {k: round(v, 3) for k, v in self.timings.items()}
