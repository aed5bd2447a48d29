"""FastAPI routes for planner data import, export and reset.

Import bodies are read as raw text so the importer can extract sections
without the framework parsing the whole document first.
"""

import json
import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from starlette.concurrency import run_in_threadpool

from ..schemas.import_export_schemas import ImportAnalysis, ImportResponse, ResetResponse
from ..services.format_converter import analyze_import
from ..services.json_import_export_service import export_bundle, import_bundle, reset_all
from ..services.legacy_migration import migrate_legacy_snapshot
from ..store import SqlAlchemyStore, get_store

logger = logging.getLogger(__name__)

transfer_router = APIRouter()


async def _read_text_body(request: Request) -> str:
    body = await request.body()
    try:
        return body.decode("utf-8")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="Request body must be UTF-8 encoded JSON text")


@transfer_router.get("/export")
def export_endpoint(store: SqlAlchemyStore = Depends(get_store)) -> Response:
    """Download every table as one JSON bundle.

    Raises:
        HTTPException: 500 if any table cannot be read
    """
    logger.info("GET /export request")
    try:
        content = export_bundle(store)
    except Exception as e:
        logger.error(e, exc_info=True)
        raise HTTPException(status_code=500, detail="Export failed")

    filename = f"planner-export-{date.today().isoformat()}.json"
    return Response(
        content=content,
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@transfer_router.post("/import", response_model=ImportResponse)
async def import_endpoint(request: Request, store: SqlAlchemyStore = Depends(get_store)) -> ImportResponse:
    """Replace all data with the JSON bundle in the request body.

    Raises:
        HTTPException: 400 if the body was rejected or the import stopped early
    """
    json_text = await _read_text_body(request)
    logger.info(f"POST /import request with {len(json_text)} characters")

    success = await run_in_threadpool(import_bundle, store, json_text)
    if not success:
        raise HTTPException(
            status_code=400,
            detail="Failed to import data. Make sure the file is a valid planner export."
        )
    return ImportResponse(success=True)


@transfer_router.post("/import/analyze", response_model=ImportAnalysis, response_model_by_alias=True)
async def analyze_import_endpoint(request: Request) -> ImportAnalysis:
    """Report the detected format of a document without importing it."""
    json_text = await _read_text_body(request)
    return analyze_import(json_text)


@transfer_router.post("/migrate-legacy", response_model=ImportResponse)
async def migrate_legacy_endpoint(request: Request, store: SqlAlchemyStore = Depends(get_store)) -> ImportResponse:
    """Move a legacy key-value store snapshot into the planner tables.

    Raises:
        HTTPException: 400 if the snapshot is not a JSON object or migration fails
    """
    try:
        snapshot = json.loads(await _read_text_body(request))
    except json.JSONDecodeError as e:
        raise HTTPException(status_code=400, detail=f"Invalid JSON: {e}")
    if not isinstance(snapshot, dict):
        raise HTTPException(status_code=400, detail="Legacy snapshot must be a JSON object")

    success = await run_in_threadpool(migrate_legacy_snapshot, store, snapshot)
    if not success:
        raise HTTPException(status_code=400, detail="Legacy data migration failed")
    return ImportResponse(success=True)


@transfer_router.delete("/data", response_model=ResetResponse)
def reset_endpoint(store: SqlAlchemyStore = Depends(get_store)) -> ResetResponse:
    """Delete all planner data.

    Raises:
        HTTPException: 500 if a table cannot be cleared
    """
    logger.info("DELETE /data request")
    try:
        reset_all(store)
    except Exception as e:
        logger.error(e, exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")
    return ResetResponse(message="All data cleared")
