"""Detect and convert foreign JSON schemas into the canonical planner bundle.

Detection is shape-based and only looks at root keys. Conversion maps each
foreign record through ordered fallback chains of field names and never fails
on a single record: missing or unusable values fall back to defaults.
After conversion, parent/subtask links are repaired so both directions agree.
"""

import json
import logging
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from .. import config
from ..schemas.entities import DEFAULT_COLOR, generate_id, now_iso
from ..schemas.import_export_schemas import ImportAnalysis
from .section_extractor import scan_top_level_keys

logger = logging.getLogger(__name__)


class FormatTag(str, Enum):
    """Known source shapes."""
    CANONICAL = "canonical"
    TODO_APP = "todo-app"
    PROJECT_MANAGER = "project-manager"
    CALENDAR_APP = "calendar-app"
    GENERIC = "generic"


CANONICAL_KEYS = ("tasks", "projects", "categories", "dailyPlans", "workSchedule", "journalEntries")

# Keys that may accompany canonical sections without making a document foreign
_ENVELOPE_KEYS = {"exportdate", "version", "workschedules"}

_CANONICAL_MATCH_THRESHOLD = 3

# Fields a generic array's first element must carry to be read as tasks
_TITLE_LIKE_FIELDS = ("title", "name", "text", "description")

# Root keys that may hold an id -> task mapping instead of a list
_TASK_MAP_KEYS = ("tasks", "todos", "items", "events")


def detect_format_from_keys(keys: Iterable[str]) -> FormatTag:
    """Classify a document by its root keys.

    Rules are evaluated in priority order: canonical (three or more canonical
    keys, case-insensitive), todo-app, project-manager, calendar-app, a
    canonical subset, and finally generic.
    """
    keys = list(keys)
    lowered = {key.lower() for key in keys}
    canonical = {key.lower() for key in CANONICAL_KEYS}
    matches = lowered & canonical

    if len(matches) >= _CANONICAL_MATCH_THRESHOLD:
        return FormatTag.CANONICAL
    if "items" in keys or "lists" in keys:
        return FormatTag.TODO_APP
    if "tasks" in keys and "projects" in keys and "lists" not in keys:
        return FormatTag.PROJECT_MANAGER
    if "events" in keys or "calendar" in keys:
        return FormatTag.CALENDAR_APP
    # A partial canonical export such as {"tasks": [...]}
    if matches and lowered <= canonical | _ENVELOPE_KEYS:
        return FormatTag.CANONICAL
    return FormatTag.GENERIC


def detect_format(parsed: Any) -> FormatTag:
    """Classify a parsed JSON document."""
    if not isinstance(parsed, dict):
        return FormatTag.GENERIC
    return detect_format_from_keys(parsed.keys())


def _as_mapping(item: Any) -> Mapping[str, Any]:
    return item if isinstance(item, dict) else {}


def _first(item: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first truthy value among ``keys``, else ``default``."""
    for key in keys:
        value = item.get(key)
        if value:
            return value
    return default


def _as_id(value: Any) -> Optional[str]:
    """Normalize an identifier to text; anything other than a string or integer is no id."""
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    if isinstance(value, str):
        return value
    return None


def _id_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [item_id for item_id in (_as_id(item) for item in value) if item_id]


def _task_record(
    item: Mapping[str, Any],
    timestamp: str,
    *,
    title: Any,
    description: Any,
    completed: bool,
    due_date: Any,
    project_id: Any,
    category_ids: Any,
    parent_task_id: Any,
    subtasks: Any,
) -> Dict[str, Any]:
    return {
        "id": _as_id(item.get("id")) or generate_id(),
        "title": title,
        "description": description,
        "completed": bool(completed),
        "archived": bool(item.get("archived", False)),
        "dueDate": due_date,
        "projectId": _as_id(project_id) or None,
        "categoryIds": _id_list(category_ids),
        "parentTaskId": _as_id(parent_task_id) or None,
        "subtasks": _id_list(subtasks),
        "priority": item.get("priority"),
        "energyLevel": item.get("energyLevel"),
        "size": item.get("size"),
        "estimatedMinutes": item.get("estimatedMinutes"),
        "createdAt": item.get("createdAt") or timestamp,
        "updatedAt": item.get("updatedAt") or timestamp,
    }


def _todo_task(raw: Any, timestamp: str) -> Dict[str, Any]:
    item = _as_mapping(raw)
    return _task_record(
        item, timestamp,
        title=_first(item, "title", "name", "text", default="Untitled Task"),
        description=_first(item, "description", "notes", default=""),
        completed=item.get("completed") or item.get("done") or item.get("status") == "completed",
        due_date=_first(item, "dueDate", "due"),
        project_id=_first(item, "listId", "projectId"),
        category_ids=_first(item, "labels", "tags", "categoryIds", default=[]),
        parent_task_id=_first(item, "parentId", "parentTaskId"),
        subtasks=_first(item, "childIds", "subtaskIds", default=[]),
    )


def _project_manager_task(raw: Any, timestamp: str) -> Dict[str, Any]:
    item = _as_mapping(raw)
    subtasks = item.get("subtasks") if isinstance(item.get("subtasks"), list) else []
    return _task_record(
        item, timestamp,
        title=_first(item, "title", "name", default="Untitled Task"),
        description=_first(item, "description", "content", default=""),
        completed=item.get("completed") or item.get("status") == "done",
        due_date=_first(item, "dueDate", "deadline"),
        project_id=item.get("projectId"),
        category_ids=_first(item, "categoryIds", "categories", "tags", default=[]),
        parent_task_id=_first(item, "parentId", "parentTaskId"),
        # Embedded subtask objects are reduced to their ids; those without one are dropped
        subtasks=[sub.get("id") if isinstance(sub, dict) else sub for sub in subtasks],
    )


def _calendar_task(raw: Any, timestamp: str) -> Dict[str, Any]:
    item = _as_mapping(raw)
    start = _as_mapping(item.get("start"))
    record = _task_record(
        item, timestamp,
        title=_first(item, "title", "summary", default="Untitled Event"),
        description=item.get("description") or "",
        completed=item.get("completed") or False,
        due_date=item.get("date") or start.get("date") or start.get("dateTime"),
        project_id=None,
        category_ids=[],
        parent_task_id=None,
        subtasks=[],
    )
    record["createdAt"] = item.get("created") or item.get("createdAt") or timestamp
    record["updatedAt"] = item.get("updated") or item.get("updatedAt") or timestamp
    return record


def _generic_task(raw: Any, timestamp: str) -> Dict[str, Any]:
    item = _as_mapping(raw)
    return _task_record(
        item, timestamp,
        title=_first(item, "title", "name", "text", default="Untitled Task"),
        description=_first(item, "description", "notes", "content", default=""),
        completed=item.get("completed") or item.get("done") or item.get("status") == "completed",
        due_date=_first(item, "dueDate", "due"),
        project_id=_first(item, "projectId", "listId"),
        category_ids=_first(item, "categories", "tags", "labels", default=[]),
        parent_task_id=_first(item, "parentId", "parentTaskId"),
        subtasks=[],
    )


def _project(raw: Any, timestamp: str) -> Dict[str, Any]:
    item = _as_mapping(raw)
    return {
        "id": _as_id(item.get("id")) or generate_id(),
        "name": _first(item, "name", "title", default="Untitled Project"),
        "description": item.get("description") or "",
        "color": item.get("color") or DEFAULT_COLOR,
        "createdAt": item.get("createdAt") or timestamp,
        "updatedAt": item.get("updatedAt") or timestamp,
    }


def _category(raw: Any, timestamp: str) -> Dict[str, Any]:
    # Tag lists are sometimes plain strings
    item = {"name": raw} if isinstance(raw, str) else _as_mapping(raw)
    return {
        "id": _as_id(item.get("id")) or generate_id(),
        "name": _first(item, "name", "title", default="Untitled Category"),
        "color": item.get("color") or DEFAULT_COLOR,
        "createdAt": item.get("createdAt") or timestamp,
        "updatedAt": item.get("updatedAt") or timestamp,
    }


def _map_list(value: Any, mapper: Callable[[Any, str], Dict[str, Any]], timestamp: str) -> List[Dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [mapper(item, timestamp) for item in value]


def empty_bundle(timestamp: Optional[str] = None) -> Dict[str, Any]:
    """A canonical bundle with every section empty."""
    return {
        "tasks": [],
        "projects": [],
        "categories": [],
        "dailyPlans": [],
        "workSchedule": None,
        "journalEntries": [],
        "exportDate": timestamp or now_iso(),
        "version": config.EXPORT_VERSION,
    }


def _convert_todo_app(parsed: Dict[str, Any], bundle: Dict[str, Any], timestamp: str) -> None:
    bundle["tasks"] = _map_list(parsed.get("items"), _todo_task, timestamp)
    bundle["projects"] = _map_list(parsed.get("lists"), _project, timestamp)
    bundle["categories"] = _map_list(parsed.get("tags"), _category, timestamp)


def _convert_project_manager(parsed: Dict[str, Any], bundle: Dict[str, Any], timestamp: str) -> None:
    bundle["tasks"] = _map_list(parsed.get("tasks"), _project_manager_task, timestamp)
    bundle["projects"] = _map_list(parsed.get("projects"), _project, timestamp)


def _convert_calendar_app(parsed: Dict[str, Any], bundle: Dict[str, Any], timestamp: str) -> None:
    calendar = _as_mapping(parsed.get("calendar"))
    events = parsed.get("events")
    if not isinstance(events, list):
        events = calendar.get("events")
    bundle["tasks"] = _map_list(events, _calendar_task, timestamp)
    calendars = parsed.get("calendars")
    if isinstance(calendars, list):
        # Calendars carry no timestamps of their own
        bundle["categories"] = [
            {**_category(cal, timestamp), "createdAt": timestamp, "updatedAt": timestamp}
            for cal in calendars
        ]


def _convert_generic(parsed: Dict[str, Any], bundle: Dict[str, Any], timestamp: str) -> None:
    for key, items in parsed.items():
        if not isinstance(items, list) or not items:
            continue
        first_item = _as_mapping(items[0])
        if any(isinstance(first_item.get(field), str) for field in _TITLE_LIKE_FIELDS):
            logger.info(f"Treating array '{key}' as tasks")
            bundle["tasks"] = _map_list(items, _generic_task, timestamp)
        if isinstance(first_item.get("name"), str) and not bundle["projects"]:
            logger.info(f"Treating array '{key}' as projects")
            bundle["projects"] = _map_list(items, _project, timestamp)

    if bundle["tasks"]:
        return

    # Collections keyed by task id instead of lists
    for key in _TASK_MAP_KEYS:
        collection = parsed.get(key)
        if not isinstance(collection, dict):
            continue
        logger.info(f"Treating object '{key}' as a task map")
        for task_id, raw in collection.items():
            record = _generic_task(raw, timestamp)
            record["id"] = task_id
            bundle["tasks"].append(record)


_CONVERTERS = {
    FormatTag.TODO_APP: _convert_todo_app,
    FormatTag.PROJECT_MANAGER: _convert_project_manager,
    FormatTag.CALENDAR_APP: _convert_calendar_app,
    FormatTag.GENERIC: _convert_generic,
}


def convert(parsed: Any, tag: FormatTag) -> Dict[str, Any]:
    """Convert a parsed foreign document into a canonical bundle dict.

    Args:
        parsed: Parsed JSON document
        tag: Format detected for ``parsed``

    Returns:
        Canonical bundle with tasks, projects, categories, dailyPlans,
        workSchedule, journalEntries, exportDate and version keys. A canonical
        document is returned unchanged.
    """
    tag = FormatTag(tag)
    if tag is FormatTag.CANONICAL and isinstance(parsed, dict):
        return parsed

    timestamp = now_iso()
    bundle = empty_bundle(timestamp)
    if not isinstance(parsed, dict):
        logger.warning(f"Cannot convert {type(parsed).__name__} document; producing an empty bundle")
        return bundle

    _CONVERTERS.get(tag, _convert_generic)(parsed, bundle, timestamp)
    repair_subtask_links(bundle["tasks"])

    logger.info(
        f"Converted '{tag.value}' document: {len(bundle['tasks'])} tasks, "
        f"{len(bundle['projects'])} projects, {len(bundle['categories'])} categories"
    )
    return bundle


def repair_subtask_links(tasks: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Make parent references and subtask lists agree, in place.

    Tasks are indexed by id and linked only through ids. A child whose parent
    exists is appended to the parent's subtask list if missing; a task listed as
    a subtask with no parent of its own gets that parent. Duplicate subtask ids
    are collapsed, keeping the first occurrence.

    Returns:
        The same list, for chaining.
    """
    index: Dict[Any, Dict[str, Any]] = {}
    for task in tasks:
        if isinstance(task.get("id"), str):
            index.setdefault(task["id"], task)
        subtasks = task.get("subtasks")
        if not isinstance(subtasks, list):
            subtasks = []
        task["subtasks"] = list(dict.fromkeys(s for s in subtasks if isinstance(s, str)))

    appended = 0
    for task in tasks:
        parent_id = task.get("parentTaskId")
        parent = index.get(parent_id) if isinstance(parent_id, str) else None
        if parent is None or parent is task or not isinstance(task.get("id"), str):
            continue
        if task["id"] not in parent["subtasks"]:
            parent["subtasks"].append(task["id"])
            appended += 1

    adopted = 0
    for task in tasks:
        if not isinstance(task.get("id"), str):
            continue
        for child_id in task["subtasks"]:
            child = index.get(child_id)
            if child is not None and child is not task and not child.get("parentTaskId"):
                child["parentTaskId"] = task["id"]
                adopted += 1

    if appended or adopted:
        logger.info(f"Repaired task links: {appended} subtask entries added, {adopted} parent references set")
    return tasks


def analyze_import(json_text: str) -> ImportAnalysis:
    """Describe the structure of a candidate import document without importing it.

    Args:
        json_text: Raw document text

    Returns:
        ImportAnalysis with the detected format and human-readable hints.
    """
    analysis = ImportAnalysis()
    stripped = json_text.strip()
    if not stripped.startswith('{') or not stripped.endswith('}'):
        analysis.conversion_hints.append(
            'File is not a valid JSON object. It should start with { and end with }'
        )
        return analysis

    try:
        data = json.loads(stripped)
    except json.JSONDecodeError as e:
        analysis.conversion_hints.append(f"JSON parsing error: {e}")
        return analysis

    analysis.valid = True
    analysis.top_level_keys = list(data.keys())
    analysis.has_tasks_data = any(
        marker in key.lower()
        for key in analysis.top_level_keys
        for marker in ("task", "todo", "item")
    )

    tag = detect_format(data)
    analysis.format = tag.value
    analysis.needs_conversion = tag is not FormatTag.CANONICAL

    if analysis.needs_conversion:
        analysis.conversion_hints.append(f'File appears to be in "{tag.value}" format instead of the planner format')
        analysis.conversion_hints.append("It will be converted to the planner format during import")
        if analysis.has_tasks_data:
            analysis.conversion_hints.append("Found task-like data that needs conversion to our format")
            for key, value in data.items():
                if isinstance(value, list) and value:
                    analysis.conversion_hints.append(
                        f'Found array of {len(value)} items in "{key}" that could be converted'
                    )
        else:
            analysis.conversion_hints.append("No obvious task data found in this file")

    return analysis


def detect_format_from_text(json_text: str) -> FormatTag:
    """Classify a raw document by scanning its root keys, without parsing it."""
    return detect_format_from_keys(scan_top_level_keys(json_text))
