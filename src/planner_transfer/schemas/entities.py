"""Pydantic schemas for the canonical planner entities.

These models define the serialized (camelCase) shape of every record in an
export bundle. Every field carries a default so that a damaged record can be
salvaged field by field instead of rejected: see ``coerce_record``.
"""

import logging
import uuid
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel

from ..models.task import EnergyLevel, Priority, TaskSize

logger = logging.getLogger(__name__)

DEFAULT_COLOR = "#3B82F6"
DEFAULT_SHIFT_START = "07:00"
DEFAULT_SHIFT_END = "19:00"


def generate_id() -> str:
    """Return a fresh identifier for a record that arrived without one."""
    return str(uuid.uuid4())


def now_iso() -> str:
    """Current UTC time as ISO text with millisecond precision and a ``Z`` suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _coerce_identifier(v: Any) -> Any:
    # Foreign exports often use integer ids
    if isinstance(v, int) and not isinstance(v, bool):
        return str(v)
    return v


def _coerce_enum(enum_cls, v: Any) -> Any:
    if v is None or isinstance(v, enum_cls):
        return v
    if isinstance(v, str):
        normalized = v.strip().lower()
        if not normalized:
            return None
        valid_values = [member.value for member in enum_cls]
        return normalized if normalized in valid_values else None
    return None


class PlannerRecord(BaseModel):
    """Base for all canonical records: camelCase aliases, unknown keys ignored."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_record(self) -> Dict[str, Any]:
        """Serialize to the JSON-compatible camelCase dict stored and exported."""
        return self.model_dump(mode="json", by_alias=True)


class TaskData(PlannerRecord):
    """Schema for a task record."""
    id: str = Field(default_factory=generate_id, description="Task identifier")
    title: str = Field("Untitled Task", description="Task title")
    description: str = Field("", description="Task description")
    completed: bool = Field(False, description="Completion flag")
    archived: bool = Field(False, description="Archived flag")
    due_date: Optional[date] = Field(None, description="Due date (no time component)")
    project_id: Optional[str] = Field(None, description="Owning project id")
    category_ids: List[str] = Field(default_factory=list, description="Category ids")
    parent_task_id: Optional[str] = Field(None, description="Parent task id")
    subtasks: List[str] = Field(default_factory=list, description="Ordered subtask ids")
    priority: Optional[Priority] = Field(None, description="Priority level")
    energy_level: Optional[EnergyLevel] = Field(None, description="Energy level required")
    size: Optional[TaskSize] = Field(None, description="Rough task size")
    estimated_minutes: Optional[int] = Field(None, ge=0, description="Estimated minutes")
    created_at: str = Field(default_factory=now_iso, description="Creation timestamp (ISO text)")
    updated_at: str = Field(default_factory=now_iso, description="Last update timestamp (ISO text)")

    @field_validator('id', 'project_id', 'parent_task_id', mode='before')
    @classmethod
    def validate_identifiers(cls, v: Any) -> Any:
        """Accept integer identifiers by converting them to strings."""
        return _coerce_identifier(v)

    @field_validator('category_ids', 'subtasks', mode='before')
    @classmethod
    def validate_id_lists(cls, v: Any) -> Any:
        """Convert integer entries to strings and drop null entries."""
        if not isinstance(v, list):
            return v
        return [_coerce_identifier(item) for item in v if item is not None]

    @field_validator('due_date', mode='before')
    @classmethod
    def validate_due_date(cls, v: Any) -> Any:
        """Reduce ISO datetimes to their date part; empty strings mean no due date."""
        if isinstance(v, str):
            stripped = v.strip()
            if not stripped:
                return None
            if len(stripped) > 10 and stripped[10] in ('T', ' '):
                return stripped[:10]
            return stripped
        return v

    @field_validator('priority', mode='before')
    @classmethod
    def validate_priority(cls, v: Any) -> Any:
        return _coerce_enum(Priority, v)

    @field_validator('energy_level', mode='before')
    @classmethod
    def validate_energy_level(cls, v: Any) -> Any:
        return _coerce_enum(EnergyLevel, v)

    @field_validator('size', mode='before')
    @classmethod
    def validate_size(cls, v: Any) -> Any:
        return _coerce_enum(TaskSize, v)


class ProjectData(PlannerRecord):
    """Schema for a project record."""
    id: str = Field(default_factory=generate_id)
    name: str = Field("Untitled Project")
    description: str = Field("")
    color: str = Field(DEFAULT_COLOR)
    created_at: str = Field(default_factory=now_iso)
    updated_at: str = Field(default_factory=now_iso)

    @field_validator('id', mode='before')
    @classmethod
    def validate_id(cls, v: Any) -> Any:
        return _coerce_identifier(v)


class CategoryData(PlannerRecord):
    """Schema for a category record."""
    id: str = Field(default_factory=generate_id)
    name: str = Field("Untitled Category")
    color: str = Field(DEFAULT_COLOR)
    created_at: str = Field(default_factory=now_iso)
    updated_at: str = Field(default_factory=now_iso)

    @field_validator('id', mode='before')
    @classmethod
    def validate_id(cls, v: Any) -> Any:
        return _coerce_identifier(v)


class TimeBlockData(PlannerRecord):
    """Schema for a time block inside a daily plan.

    ``task_id`` is the legacy single-task reference; ``task_ids`` is always
    present, empty when the block holds no tasks.
    """
    id: str = Field(default_factory=generate_id)
    start_time: str = Field("")
    end_time: str = Field("")
    task_id: Optional[str] = Field(None)
    task_ids: List[str] = Field(default_factory=list)
    title: str = Field("")
    description: str = Field("")

    @field_validator('id', 'task_id', mode='before')
    @classmethod
    def validate_identifiers(cls, v: Any) -> Any:
        return _coerce_identifier(v)

    @field_validator('task_ids', mode='before')
    @classmethod
    def validate_task_ids(cls, v: Any) -> Any:
        if v is None:
            return []
        if not isinstance(v, list):
            return v
        return [_coerce_identifier(item) for item in v if item is not None]


class DailyPlanData(PlannerRecord):
    """Schema for a daily plan. The id defaults to the plan's date."""
    id: str = Field(default_factory=generate_id)
    date: str = Field("")
    time_blocks: List[TimeBlockData] = Field(default_factory=list)

    @model_validator(mode='before')
    @classmethod
    def default_id_to_date(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get('id') and isinstance(data.get('date'), str) and data['date']:
            return {**data, 'id': data['date']}
        return data

    @field_validator('time_blocks', mode='before')
    @classmethod
    def validate_time_blocks(cls, v: Any) -> Any:
        """Salvage each block independently, dropping entries that are not objects."""
        if not isinstance(v, list):
            return v
        return [block for block in (coerce_record(TimeBlockData, item) for item in v) if block is not None]


class WorkShiftData(PlannerRecord):
    """Schema for a single shift of a work schedule."""
    id: str = Field(default_factory=generate_id)
    date: str = Field("")
    start_time: str = Field(DEFAULT_SHIFT_START)
    end_time: str = Field(DEFAULT_SHIFT_END)
    color: Optional[str] = Field(None)
    notes: Optional[str] = Field(None)

    @field_validator('id', mode='before')
    @classmethod
    def validate_id(cls, v: Any) -> Any:
        return _coerce_identifier(v)


class WorkScheduleData(PlannerRecord):
    """Schema for the (single) work schedule."""
    id: str = Field(default_factory=generate_id)
    name: str = Field("Work Schedule")
    shifts: List[WorkShiftData] = Field(default_factory=list)
    created_at: str = Field(default_factory=now_iso)
    updated_at: str = Field(default_factory=now_iso)

    @field_validator('id', mode='before')
    @classmethod
    def validate_id(cls, v: Any) -> Any:
        return _coerce_identifier(v)

    @field_validator('shifts', mode='before')
    @classmethod
    def validate_shifts(cls, v: Any) -> Any:
        if not isinstance(v, list):
            return v
        return [shift for shift in (coerce_record(WorkShiftData, item) for item in v) if shift is not None]


class JournalEntryData(PlannerRecord):
    """Schema for a weekly-review journal entry."""
    id: str = Field(default_factory=generate_id)
    date: str = Field("")
    content: str = Field("")
    review_section_id: Optional[str] = Field(None, description="Weekly review section tag")
    week_number: Optional[int] = Field(None, ge=1, le=53, description="ISO week number")
    week_year: Optional[int] = Field(None, description="ISO week-based year")
    is_completed: bool = Field(False)
    created_at: str = Field(default_factory=now_iso)
    updated_at: str = Field(default_factory=now_iso)

    @field_validator('id', mode='before')
    @classmethod
    def validate_id(cls, v: Any) -> Any:
        return _coerce_identifier(v)


# Section name -> schema, in the fixed import/export order
SECTION_SCHEMAS: Dict[str, Type[PlannerRecord]] = {
    "tasks": TaskData,
    "projects": ProjectData,
    "categories": CategoryData,
    "dailyPlans": DailyPlanData,
    "workSchedule": WorkScheduleData,
    "journalEntries": JournalEntryData,
}


def coerce_record(model: Type[PlannerRecord], raw: Any) -> Optional[Dict[str, Any]]:
    """Validate ``raw`` against ``model``, dropping invalid fields until it passes.

    Args:
        model: PlannerRecord subclass to validate against
        raw: Candidate record, normally a dict parsed from JSON

    Returns:
        The serialized record, or None when ``raw`` is not an object at all.
    """
    if not isinstance(raw, dict):
        logger.warning(f"Skipping non-object {model.__name__} record of type {type(raw).__name__}")
        return None

    data = dict(raw)
    # Each pass removes at least one key, so this terminates
    for _ in range(len(data) + 1):
        try:
            return model.model_validate(data).to_record()
        except ValidationError as e:
            bad_keys = _offending_keys(model, e, data)
            if not bad_keys:
                logger.error(f"Unrecoverable {model.__name__} record {data.get('id')!r}: {e}")
                return None
            logger.warning(
                f"Replacing invalid fields {sorted(bad_keys)} with defaults in "
                f"{model.__name__} record {data.get('id')!r}"
            )
            for key in bad_keys:
                data.pop(key, None)
    return None


def _offending_keys(model: Type[PlannerRecord], error: ValidationError, data: Dict[str, Any]) -> set:
    """Map validation error locations back to the keys present in ``data``."""
    keys = set()
    for err in error.errors():
        if not err.get('loc'):
            continue
        loc = err['loc'][0]
        field = model.model_fields.get(loc)
        candidates = {loc}
        if field is not None and field.alias:
            candidates.add(field.alias)
        for name, info in model.model_fields.items():
            if info.alias == loc:
                candidates.add(name)
        keys.update(key for key in candidates if key in data)
    return keys
