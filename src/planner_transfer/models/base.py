"""Base SQLAlchemy model for the planner table store.

This module defines the DeclarativeBase every planner table inherits from and
the surrogate row key that preserves insertion order.
"""

from sqlalchemy import Column, Integer
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models.

    All planner tables inherit from this class so a single
    ``Base.metadata.create_all`` builds the whole store.
    """
    pass


class OrderedRecordMixin:
    """Adds an autoincrement surrogate key used to read rows back in insertion order.

    The canonical string ``id`` of each entity is stored in its own unique column.
    """
    row_id = Column(Integer, primary_key=True, autoincrement=True)
