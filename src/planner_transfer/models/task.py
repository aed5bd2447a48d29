"""Task SQLAlchemy ORM model for the planner table store.

This module defines the Task model with its Priority, EnergyLevel and TaskSize
enums, a reusable TypeDecorator that validates enum values on the way in and
out of the database, and conversion to and from serialized task records.
"""

from datetime import date
from enum import Enum
from typing import Any, Dict, Optional, Type

from sqlalchemy import Boolean, Column, Date, Index, Integer, JSON, String, Text
from sqlalchemy.types import TypeDecorator, String as SQLString

from .base import Base, OrderedRecordMixin


class Priority(Enum):
    """Enum for task priority levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class EnergyLevel(Enum):
    """Enum for the energy a task demands."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TaskSize(Enum):
    """Enum for rough task size."""
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class EnumValueType(TypeDecorator):
    """Custom SQLAlchemy TypeDecorator storing an Enum by its string value."""
    impl = SQLString
    cache_ok = True

    def __init__(self, enum_cls: Type[Enum], *args, **kwargs):
        self.enum_cls = enum_cls
        super().__init__(*args, **kwargs)

    def process_bind_param(self, value, dialect):
        """Convert the enum member to its string value for storage."""
        if value is None:
            return None
        if isinstance(value, self.enum_cls):
            return value.value
        if isinstance(value, str):
            try:
                return self.enum_cls(value).value
            except ValueError:
                raise ValueError(
                    f"Invalid {self.enum_cls.__name__} value: {value}. "
                    f"Must be one of {[m.value for m in self.enum_cls]}"
                )
        raise ValueError(f"Invalid {self.enum_cls.__name__} type: {type(value)}. Must be enum or string.")

    def process_result_value(self, value, dialect):
        """Convert the stored string back into the enum member."""
        if value is None:
            return None
        try:
            return self.enum_cls(value)
        except ValueError:
            raise ValueError(f"Invalid {self.enum_cls.__name__.lower()} value in database: {value}")


def _enum_value(member: Optional[Enum]) -> Optional[str]:
    return member.value if member is not None else None


class Task(OrderedRecordMixin, Base):
    """Task ORM model.

    Subtask links are plain id lists; parent and children are never joined
    through ORM relationships.
    """
    __tablename__ = 'tasks'

    __table_args__ = (
        Index('idx_task_completed', 'completed'),
        Index('idx_task_project_id', 'project_id'),
        Index('idx_task_parent_task_id', 'parent_task_id'),
    )

    id = Column(String, unique=True, nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    completed = Column(Boolean, nullable=False, default=False)
    archived = Column(Boolean, nullable=False, default=False)
    due_date = Column(Date, nullable=True)
    project_id = Column(String, nullable=True)
    category_ids = Column(JSON, nullable=False, default=list)
    parent_task_id = Column(String, nullable=True)
    subtasks = Column(JSON, nullable=False, default=list)
    priority = Column(EnumValueType(Priority), nullable=True)
    energy_level = Column(EnumValueType(EnergyLevel), nullable=True)
    size = Column(EnumValueType(TaskSize), nullable=True)
    estimated_minutes = Column(Integer, nullable=True)
    created_at = Column(String, nullable=False)
    updated_at = Column(String, nullable=False)

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Task":
        """Build a Task row from a normalized, camelCase task record."""
        due_date = record.get('dueDate')
        return cls(
            id=record['id'],
            title=record['title'],
            description=record.get('description', ""),
            completed=record.get('completed', False),
            archived=record.get('archived', False),
            due_date=date.fromisoformat(due_date) if due_date else None,
            project_id=record.get('projectId'),
            category_ids=list(record.get('categoryIds') or []),
            parent_task_id=record.get('parentTaskId'),
            subtasks=list(record.get('subtasks') or []),
            priority=record.get('priority'),
            energy_level=record.get('energyLevel'),
            size=record.get('size'),
            estimated_minutes=record.get('estimatedMinutes'),
            created_at=record['createdAt'],
            updated_at=record['updatedAt'],
        )

    def to_record(self) -> Dict[str, Any]:
        """Convert the row to its serialized camelCase record.

        Returns:
            Dict with enum members as their string values and the due date
            as an ISO ``YYYY-MM-DD`` string.
        """
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'completed': self.completed,
            'archived': self.archived,
            'dueDate': self.due_date.isoformat() if self.due_date else None,
            'projectId': self.project_id,
            'categoryIds': list(self.category_ids or []),
            'parentTaskId': self.parent_task_id,
            'subtasks': list(self.subtasks or []),
            'priority': _enum_value(self.priority),
            'energyLevel': _enum_value(self.energy_level),
            'size': _enum_value(self.size),
            'estimatedMinutes': self.estimated_minutes,
            'createdAt': self.created_at,
            'updatedAt': self.updated_at,
        }

    def __repr__(self):
        """String representation of the Task object."""
        return f"<Task(id={self.id}, title='{self.title}', completed={self.completed})>"
