"""JSON import/export entry points for the planner data.

This module exposes the three operations callers use: export the whole store
to JSON, import a JSON bundle (replacing all data) and reset every table.
"""

import logging
from typing import Optional

from ..store import TABLE_NAMES, DataStore
from .chunked_writer import YieldPoint
from .exporter import Exporter
from .importer import Importer

logger = logging.getLogger(__name__)


def export_bundle(store: DataStore) -> str:
    """Export every table to a JSON string.

    Args:
        store: Source store

    Returns:
        JSON string of the canonical bundle

    Raises:
        Exception: Re-raises any storage or serialization errors after logging
    """
    return Exporter(store).export_bundle()


def import_bundle(
    store: DataStore,
    json_text: str,
    chunk_size: Optional[int] = None,
    yield_point: Optional[YieldPoint] = None,
) -> bool:
    """Replace all data in ``store`` with the contents of ``json_text``.

    Args:
        store: Target store
        json_text: Canonical bundle or a supported foreign document
        chunk_size: Records per bulk insert (IMPORT_CHUNK_SIZE if None)
        yield_point: Called between chunks (sleep of IMPORT_YIELD_DELAY_MS if None)

    Returns:
        True if the import completed, False otherwise. Never raises.
    """
    return Importer(store, chunk_size=chunk_size, yield_point=yield_point).import_bundle(json_text)


def reset_all(store: DataStore) -> None:
    """Clear every table without importing replacement data.

    Tables are cleared one at a time, each in its own transaction.

    Raises:
        StorageError: When a table cannot be cleared; earlier tables stay cleared
    """
    logger.info("Starting database reset")
    try:
        for name in TABLE_NAMES:
            logger.info(f"Clearing {name}...")
            store.table(name).clear()
    except Exception as e:
        logger.error(f"Error during data reset: {e}", exc_info=True)
        raise
    logger.info("Database reset complete")
