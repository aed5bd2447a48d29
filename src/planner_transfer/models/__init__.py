"""SQLAlchemy ORM models for the planner table store.

This package contains one model per planner table and the base declarative class.
"""

from .base import Base
from .task import Task, Priority, EnergyLevel, TaskSize
from .planning import Project, Category, DailyPlan, WorkSchedule, JournalEntry

__all__ = [
    "Base",
    "Task",
    "Priority",
    "EnergyLevel",
    "TaskSize",
    "Project",
    "Category",
    "DailyPlan",
    "WorkSchedule",
    "JournalEntry",
]
