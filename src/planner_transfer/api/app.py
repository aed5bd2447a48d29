"""FastAPI application for the planner data transfer API.

This module creates and configures the FastAPI application instance
with the import/export routes.
"""

from fastapi import FastAPI

from ..database import check_db_connection
from ..routes.transfer_routes import transfer_router

app = FastAPI(
    title="Planner Data Transfer API",
    description="Export, import, migrate and reset planner data",
    version="1.0.0"
)

app.include_router(transfer_router, prefix="/api")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/health/db")
def database_health_check():
    """Report whether the configured database answers a trivial query."""
    return {"database": "ok" if check_db_connection() else "unavailable"}
