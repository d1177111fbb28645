"""
Utility decorators and context managers.
"""

import time
from contextlib import contextmanager
from typing import Dict, Iterator


@contextmanager
def timer() -> Iterator[Dict[str, int]]:
    """
    Measure wall time of a block in milliseconds.

    The elapsed time is written to the yielded dict when the block exits,
    including when it exits with an exception.

    Example:
        >>> with timer() as t:
        ...     do_work()
        >>> t["ms"]
    """
    result = {"ms": 0}
    start = time.perf_counter()
    try:
        yield result
    finally:
        result["ms"] = int(round((time.perf_counter() - start) * 1000))
