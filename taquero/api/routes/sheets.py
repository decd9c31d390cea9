"""Compliance module sheet API routes.

Each registered module gets the same two verbs the spreadsheet web
endpoints always had: GET reads the live rows, POST upserts one record.
"""

import csv
import io
import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Request
from fastapi.responses import JSONResponse, Response

from taquero.core.rate_limit import limiter
from taquero.core.responses import error_response, read_response, write_response
from taquero.db.session import DbSession
from taquero.schemas.registry import get_module, list_modules
from taquero.services.sheet_service import SheetService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
@limiter.limit("60/minute")
def get_modules(request: Request):
    """List the registered compliance modules."""
    modules = list_modules()
    return {"success": True, "data": modules, "count": len(modules)}


@router.get("/{module}")
@limiter.limit("60/minute")
def get_records(request: Request, module: str, db: DbSession):
    """Read all non-deleted rows of a module sheet."""
    schema = get_module(module)
    try:
        records = SheetService(db).list_records(schema)
    except Exception as e:
        logger.exception(f"Failed to read {schema.sheet_name}")
        return JSONResponse(status_code=500, content=error_response(str(e)))
    return read_response(records)


@router.post("/{module}")
@limiter.limit("30/minute")
def save_record(request: Request, module: str, db: DbSession, payload: Dict[str, Any] = Body(...)):
    """Save, update, soft delete or (with action=delete) remove one record."""
    schema = get_module(module)
    service = SheetService(db)

    if payload.get("action") == "delete":
        service.delete_record(schema, payload.get("id"))
        return write_response("Record deleted successfully")

    outcome = service.save_record(schema, payload)
    if outcome == "updated":
        return write_response("Record updated successfully")
    return write_response("Record saved successfully")


@router.get("/{module}/export")
@limiter.limit("10/minute")
def export_sheet(request: Request, module: str, db: DbSession):
    """Download the module sheet as CSV, header row first."""
    schema = get_module(module)
    rows = SheetService(db).export_rows(schema)

    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerows(rows)

    return Response(
        content=output.getvalue(),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={schema.sheet_name}.csv"},
    )
