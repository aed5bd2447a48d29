"""ORM models for the non-task planner tables.

Projects, categories, daily plans, the work schedule and journal entries.
Nested collections (time blocks, shifts) are stored as JSON columns.
"""

from typing import Any, Dict

from sqlalchemy import Boolean, Column, Index, Integer, JSON, String, Text

from .base import Base, OrderedRecordMixin


class Project(OrderedRecordMixin, Base):
    """Project ORM model."""
    __tablename__ = 'projects'

    id = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    color = Column(String, nullable=False)
    created_at = Column(String, nullable=False)
    updated_at = Column(String, nullable=False)

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Project":
        return cls(
            id=record['id'],
            name=record['name'],
            description=record.get('description', ""),
            color=record['color'],
            created_at=record['createdAt'],
            updated_at=record['updatedAt'],
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'color': self.color,
            'createdAt': self.created_at,
            'updatedAt': self.updated_at,
        }


class Category(OrderedRecordMixin, Base):
    """Category ORM model."""
    __tablename__ = 'categories'

    id = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=False)
    color = Column(String, nullable=False)
    created_at = Column(String, nullable=False)
    updated_at = Column(String, nullable=False)

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Category":
        return cls(
            id=record['id'],
            name=record['name'],
            color=record['color'],
            created_at=record['createdAt'],
            updated_at=record['updatedAt'],
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'color': self.color,
            'createdAt': self.created_at,
            'updatedAt': self.updated_at,
        }


class DailyPlan(OrderedRecordMixin, Base):
    """Daily plan ORM model.

    The ``id`` is conventionally the plan's date string. Time blocks are kept
    as a JSON list of serialized time block records.
    """
    __tablename__ = 'daily_plans'

    __table_args__ = (
        Index('idx_daily_plan_date', 'date'),
    )

    id = Column(String, unique=True, nullable=False)
    date = Column(String, nullable=False)
    time_blocks = Column(JSON, nullable=False, default=list)

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "DailyPlan":
        return cls(
            id=record['id'],
            date=record['date'],
            time_blocks=list(record.get('timeBlocks') or []),
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'date': self.date,
            'timeBlocks': list(self.time_blocks or []),
        }


class WorkSchedule(OrderedRecordMixin, Base):
    """Work schedule ORM model. The table holds zero or one row."""
    __tablename__ = 'work_schedules'

    id = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=False)
    shifts = Column(JSON, nullable=False, default=list)
    created_at = Column(String, nullable=False)
    updated_at = Column(String, nullable=False)

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "WorkSchedule":
        return cls(
            id=record['id'],
            name=record['name'],
            shifts=list(record.get('shifts') or []),
            created_at=record['createdAt'],
            updated_at=record['updatedAt'],
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'shifts': list(self.shifts or []),
            'createdAt': self.created_at,
            'updatedAt': self.updated_at,
        }


class JournalEntry(OrderedRecordMixin, Base):
    """Weekly review journal entry ORM model."""
    __tablename__ = 'journal_entries'

    __table_args__ = (
        Index('idx_journal_entry_date', 'date'),
        Index('idx_journal_entry_week', 'week_number', 'week_year'),
    )

    id = Column(String, unique=True, nullable=False)
    date = Column(String, nullable=False)
    content = Column(Text, nullable=False, default="")
    review_section_id = Column(String, nullable=True)
    week_number = Column(Integer, nullable=True)
    week_year = Column(Integer, nullable=True)
    is_completed = Column(Boolean, nullable=False, default=False)
    created_at = Column(String, nullable=False)
    updated_at = Column(String, nullable=False)

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "JournalEntry":
        return cls(
            id=record['id'],
            date=record['date'],
            content=record.get('content', ""),
            review_section_id=record.get('reviewSectionId'),
            week_number=record.get('weekNumber'),
            week_year=record.get('weekYear'),
            is_completed=record.get('isCompleted', False),
            created_at=record['createdAt'],
            updated_at=record['updatedAt'],
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'date': self.date,
            'content': self.content,
            'reviewSectionId': self.review_section_id,
            'weekNumber': self.week_number,
            'weekYear': self.week_year,
            'isCompleted': self.is_completed,
            'createdAt': self.created_at,
            'updatedAt': self.updated_at,
        }
