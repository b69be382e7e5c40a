"""
Utility functions for domain-agnostic operations.

All utilities are pure functions with no dependencies on other project modules.
"""

import logging
import time
from contextlib import contextmanager
from typing import Generator

logger = logging.getLogger(__name__)


@contextmanager
def timer() -> Generator[dict, None, None]:
    """
    Context manager to measure execution time.

    Usage:
        with timer() as t:
            # ... code to time ...
            pass
        print(f"Took {t['ms']}ms")

    Yields:
        Dictionary with 'ms' key containing processing time in milliseconds
    """
    result = {"ms": 0}
    start_time = time.perf_counter()
    try:
        yield result
    finally:
        result["ms"] = int((time.perf_counter() - start_time) * 1000)
