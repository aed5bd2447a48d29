"""Write large record lists into a table in fixed-size batches.

Each batch is one ``bulk_add`` call (atomic at the store level). Between
batches the writer calls a yield point so the host can get work done; the
default yield point sleeps for a configurable delay.
"""

import logging
import time
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence

from .. import config
from ..store import TableStore

logger = logging.getLogger(__name__)

YieldPoint = Callable[[], None]

DEFAULT_CHUNK_SIZE = 50

# Progress is logged on the first chunk, the last one and every Nth in between
PROGRESS_LOG_INTERVAL = 5


def no_yield() -> None:
    """Yield point that returns immediately."""
    return None


def sleep_yield(delay_seconds: float) -> YieldPoint:
    """Build a yield point that pauses for ``delay_seconds`` after every chunk."""
    if delay_seconds <= 0:
        return no_yield

    def _pause() -> None:
        time.sleep(delay_seconds)

    return _pause


def default_yield_point() -> YieldPoint:
    """Yield point configured by IMPORT_YIELD_DELAY_MS."""
    return sleep_yield(config.IMPORT_YIELD_DELAY_MS / 1000.0)


def chunk_records(records: Sequence[Dict[str, Any]], chunk_size: int) -> Iterator[List[Dict[str, Any]]]:
    """Split ``records`` into consecutive slices of at most ``chunk_size``."""
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be at least 1, got {chunk_size}")
    for i in range(0, len(records), chunk_size):
        yield list(records[i:i + chunk_size])


def write_chunked(
    table: TableStore,
    records: Sequence[Dict[str, Any]],
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    yield_point: Optional[YieldPoint] = None,
) -> int:
    """Insert ``records`` into ``table`` one chunk at a time, in input order.

    Args:
        table: Target table
        records: Records to insert
        chunk_size: Maximum records per bulk insert
        yield_point: Called after every chunk; defaults to no_yield

    Returns:
        Number of records written

    Raises:
        ValueError: When chunk_size is less than 1
        StorageError: When a bulk insert fails; earlier chunks stay written
    """
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be at least 1, got {chunk_size}")
    if yield_point is None:
        yield_point = no_yield

    total_chunks = (len(records) + chunk_size - 1) // chunk_size
    written = 0
    for index, chunk in enumerate(chunk_records(records, chunk_size)):
        if index % PROGRESS_LOG_INTERVAL == 0 or index == total_chunks - 1:
            logger.info(f"Importing {table.name} chunk {index + 1}/{total_chunks}")
        table.bulk_add(chunk)
        written += len(chunk)
        yield_point()

    return written
