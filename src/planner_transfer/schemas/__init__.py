"""Pydantic schemas for the planner_transfer package.

This package contains the canonical entity schemas and the request/response
models of the import/export endpoints.
"""

from .entities import (
    TaskData,
    ProjectData,
    CategoryData,
    TimeBlockData,
    DailyPlanData,
    WorkShiftData,
    WorkScheduleData,
    JournalEntryData,
    SECTION_SCHEMAS,
    coerce_record,
)
from .import_export_schemas import ImportAnalysis, ImportResponse, ResetResponse

__all__ = [
    "TaskData",
    "ProjectData",
    "CategoryData",
    "TimeBlockData",
    "DailyPlanData",
    "WorkShiftData",
    "WorkScheduleData",
    "JournalEntryData",
    "SECTION_SCHEMAS",
    "coerce_record",
    "ImportAnalysis",
    "ImportResponse",
    "ResetResponse",
]
