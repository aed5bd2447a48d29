"""Import a serialized planner bundle into the table store.

The import replaces every table wholesale. Tables are cleared before any new
data is read so the old and new datasets never sit in memory together; each
section is then extracted on its own from the raw text and written in chunks.
An import that fails partway leaves the tables cleared and a prefix of the
new data written. There is no rollback across tables.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from .. import config
from ..schemas.entities import SECTION_SCHEMAS, WorkScheduleData, coerce_record
from ..store import TABLE_NAMES, DataStore
from .chunked_writer import YieldPoint, default_yield_point, write_chunked
from .format_converter import FormatTag, convert, detect_format_from_text, repair_subtask_links
from .section_extractor import extract_object, extract_section

logger = logging.getLogger(__name__)

# Array sections and their tables, in import order; the work schedule is
# handled separately between dailyPlans and journalEntries
ARRAY_SECTIONS = ("tasks", "projects", "categories", "dailyPlans")
TRAILING_ARRAY_SECTIONS = ("journalEntries",)

WORK_SCHEDULE_KEY = "workSchedule"
LEGACY_WORK_SCHEDULE_KEY = "workSchedules"
WORK_SCHEDULE_TABLE = "workSchedules"

# Used as the task section when a document has no "tasks" array
TASKS_FALLBACK_SECTION = "data"


class InvalidEnvelopeError(ValueError):
    """Raised when import text is not shaped like a JSON object."""
    pass


def check_envelope(json_text: str) -> str:
    """Cheap structural check that ``json_text`` looks like a JSON object.

    Returns:
        The stripped text

    Raises:
        InvalidEnvelopeError: When the text does not start with ``{`` and end with ``}``
    """
    if not isinstance(json_text, str):
        raise InvalidEnvelopeError(f"Import data must be text, got {type(json_text).__name__}")
    stripped = json_text.strip()
    if not stripped.startswith('{') or not stripped.endswith('}'):
        raise InvalidEnvelopeError("Import data is not a JSON object: it must start with { and end with }")
    return stripped


def is_valid_work_schedule(candidate: Any) -> bool:
    """A work schedule needs an id and a list of shifts."""
    return (
        isinstance(candidate, dict)
        and bool(candidate.get("id"))
        and isinstance(candidate.get("shifts"), list)
    )


class Importer:
    """Replaces the store's contents with the data of a serialized bundle.

    Args:
        store: Target store
        chunk_size: Records per bulk insert; defaults to IMPORT_CHUNK_SIZE
        yield_point: Called after every chunk; defaults to a sleep of IMPORT_YIELD_DELAY_MS
    """

    def __init__(
        self,
        store: DataStore,
        chunk_size: Optional[int] = None,
        yield_point: Optional[YieldPoint] = None,
    ):
        self.store = store
        self.chunk_size = chunk_size if chunk_size is not None else config.IMPORT_CHUNK_SIZE
        self.yield_point = yield_point if yield_point is not None else default_yield_point()
        if self.chunk_size < 1:
            raise ValueError(f"chunk_size must be at least 1, got {self.chunk_size}")

    def import_bundle(self, json_text: str) -> bool:
        """Import ``json_text``, replacing all existing data.

        Returns:
            True when the import completed, False when the text was rejected or
            a storage error stopped it. Never raises.
        """
        logger.info("Starting section-by-section data import")

        try:
            source = check_envelope(json_text)
        except InvalidEnvelopeError as e:
            logger.error(f"Rejected import before touching the store: {e}")
            return False

        try:
            source = self._canonicalize(source)
            self._clear_tables()

            for section in ARRAY_SECTIONS:
                self._import_array_section(section, source)
            self._import_work_schedule(source)
            for section in TRAILING_ARRAY_SECTIONS:
                self._import_array_section(section, source)

            logger.info("Import completed successfully")
            return True

        except Exception as e:
            logger.error(
                f"Error during data import ({type(e).__name__}): {e}. "
                f"Tables cleared before the failure stay cleared.",
                exc_info=True
            )
            return False

    def _canonicalize(self, source: str) -> str:
        """Convert a foreign document to canonical JSON text; canonical text passes through."""
        tag = detect_format_from_text(source)
        if tag is FormatTag.CANONICAL:
            return source

        logger.info(f"Detected foreign format '{tag.value}', converting before import")
        try:
            parsed = json.loads(source)
        except json.JSONDecodeError as e:
            logger.warning(f"Foreign document does not parse as a whole ({e}); extracting sections from raw text")
            return source
        return json.dumps(convert(parsed, tag))

    def _clear_tables(self) -> None:
        for name in TABLE_NAMES:
            logger.info(f"Clearing {name}...")
            self.store.table(name).clear()

    def _extract_records(self, section: str, source: str) -> Optional[List[Any]]:
        records = extract_section(section, source)
        if section == "tasks" and not records:
            fallback = extract_section(TASKS_FALLBACK_SECTION, source)
            if fallback:
                logger.info(f"No tasks found, using '{TASKS_FALLBACK_SECTION}' array as tasks")
                records = fallback
        return records

    def _import_array_section(self, section: str, source: str) -> int:
        raw_records = self._extract_records(section, source)
        if not raw_records:
            return 0

        schema = SECTION_SCHEMAS[section]
        records: List[Dict[str, Any]] = []
        for raw in raw_records:
            record = coerce_record(schema, raw)
            if record is not None:
                records.append(record)

        if section == "tasks":
            repair_subtask_links(records)

        logger.info(f"Adding {len(records)} {section} in chunks of {self.chunk_size}")
        return write_chunked(self.store.table(section), records, self.chunk_size, self.yield_point)

    def _import_work_schedule(self, source: str) -> bool:
        """Insert the single work schedule, preferring ``workSchedule`` over the legacy alias."""
        for key in (WORK_SCHEDULE_KEY, LEGACY_WORK_SCHEDULE_KEY):
            candidate = extract_object(key, source)
            if candidate is None:
                continue
            if not is_valid_work_schedule(candidate):
                logger.warning(f"Skipping '{key}': expected an object with an id and a shifts list")
                continue
            record = coerce_record(WorkScheduleData, candidate)
            logger.info(f"Adding work schedule from '{key}' with {len(record['shifts'])} shifts")
            self.store.table(WORK_SCHEDULE_TABLE).bulk_add([record])
            return True
        return False
