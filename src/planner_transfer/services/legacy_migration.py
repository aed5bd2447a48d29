"""Migrate data from the legacy key-value store into the planner tables.

Early versions of the planner kept four lists in a browser-style key-value
store, each value a JSON-encoded list. A snapshot of that store is a JSON
object mapping the legacy keys to those values; this module moves its
contents into the table store, one atomic table save per list.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

from ..schemas.entities import SECTION_SCHEMAS, coerce_record
from ..store import DataStore
from .format_converter import repair_subtask_links

logger = logging.getLogger(__name__)

# Table -> legacy key, in migration order
LEGACY_KEYS = {
    "tasks": "taskManager_tasks",
    "projects": "taskManager_projects",
    "categories": "taskManager_categories",
    "dailyPlans": "taskManager_dailyPlans",
}


def load_legacy_snapshot(path: Union[str, Path]) -> Dict[str, Any]:
    """Read a key-value snapshot file.

    Raises:
        ValueError: When the file is not a JSON object
    """
    with open(path, encoding="utf-8") as f:
        snapshot = json.load(f)
    if not isinstance(snapshot, dict):
        raise ValueError("Legacy snapshot must be a JSON object mapping keys to values")
    return snapshot


def read_legacy_list(snapshot: Dict[str, Any], table: str) -> List[Any]:
    """Decode the list stored for ``table``; a missing key is an empty list.

    Raises:
        ValueError: When the stored value is not a JSON list
    """
    value = snapshot.get(LEGACY_KEYS[table])
    if value is None:
        return []
    if isinstance(value, str):
        value = json.loads(value)
    if not isinstance(value, list):
        raise ValueError(f"Legacy value for '{LEGACY_KEYS[table]}' is not a list")
    return value


def has_legacy_data(snapshot: Dict[str, Any]) -> bool:
    """Whether the snapshot holds any tasks, projects or categories."""
    try:
        return any(read_legacy_list(snapshot, table) for table in ("tasks", "projects", "categories"))
    except ValueError as e:
        logger.error(f"Error checking for legacy data: {e}")
        return False


def migrate_legacy_snapshot(store: DataStore, snapshot: Dict[str, Any]) -> bool:
    """Copy every legacy list into its table.

    Each non-empty list replaces its table's contents in one transaction. Empty
    lists leave their table untouched.

    Returns:
        True on success (including when there is nothing to migrate), False on
        any failure.
    """
    logger.info("Starting data migration from the legacy key-value store")
    try:
        lists = {table: read_legacy_list(snapshot, table) for table in LEGACY_KEYS}
        if not any(lists.values()):
            logger.info("No legacy data to migrate")
            return True

        for table, raw_records in lists.items():
            logger.info(f"Migrating {len(raw_records)} {table}...")
            if not raw_records:
                continue
            schema = SECTION_SCHEMAS[table]
            records = [r for r in (coerce_record(schema, raw) for raw in raw_records) if r is not None]
            if table == "tasks":
                repair_subtask_links(records)
            store.save_table(table, records)

        logger.info("Legacy data migration completed successfully")
        return True
    except Exception as e:
        logger.error(f"Error during legacy data migration: {e}", exc_info=True)
        return False
