"""API routes for the planner_transfer application.

This package contains all FastAPI route definitions organized by domain.
"""

from .transfer_routes import transfer_router

__all__ = ["transfer_router"]
