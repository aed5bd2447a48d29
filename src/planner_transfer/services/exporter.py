"""Export the whole table store as one serialized planner bundle."""

import json
import logging
from typing import Any, Dict, Optional

from .. import config
from ..schemas.entities import now_iso
from ..store import DataStore

logger = logging.getLogger(__name__)

# Tables exported under their own name, before and after the work schedule
EXPORT_SECTIONS = ("tasks", "projects", "categories", "dailyPlans")
TRAILING_EXPORT_SECTIONS = ("journalEntries",)


class Exporter:
    """Reads every table and assembles the export bundle.

    Args:
        store: Source store
        version: Value of the bundle's informational ``version`` key
    """

    def __init__(self, store: DataStore, version: Optional[str] = None):
        self.store = store
        self.version = version if version is not None else config.EXPORT_VERSION

    def build_bundle(self) -> Dict[str, Any]:
        """Read the tables one at a time into a bundle dict.

        The work schedule table is exported under the singular ``workSchedule``
        key as its only row, or None when empty.

        Raises:
            StorageError: When any table read fails
        """
        bundle: Dict[str, Any] = {}

        for key in EXPORT_SECTIONS:
            bundle[key] = self.store.table(key).to_array()
            logger.info(f"Exporting {len(bundle[key])} {key}")

        schedules = self.store.table("workSchedules").to_array()
        logger.info(f"Exporting {len(schedules)} work schedules")
        if len(schedules) > 1:
            logger.warning(f"Found {len(schedules)} work schedules; exporting only the first")
        bundle["workSchedule"] = schedules[0] if schedules else None

        for key in TRAILING_EXPORT_SECTIONS:
            bundle[key] = self.store.table(key).to_array()
            logger.info(f"Exporting {len(bundle[key])} {key}")

        bundle["exportDate"] = now_iso()
        bundle["version"] = self.version
        return bundle

    def export_bundle(self) -> str:
        """Serialize the whole store to JSON text.

        Raises:
            Exception: Re-raises any storage or serialization error after logging;
                a partial export is never returned
        """
        logger.info("Starting data export")
        try:
            json_string = json.dumps(self.build_bundle(), ensure_ascii=False)
            logger.info("Data export completed")
            return json_string
        except Exception as e:
            logger.error(f"Error during data export: {e}", exc_info=True)
            raise
