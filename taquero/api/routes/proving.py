"""Proving method API routes (cooking, cooling, reheating)."""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Request
from fastapi.responses import JSONResponse

from taquero.core.rate_limit import limiter
from taquero.core.responses import error_response, read_response, write_response
from taquero.db.session import DbSession
from taquero.schemas.proving import get_proving_kind
from taquero.services.proving_service import ProvingService

logger = logging.getLogger(__name__)

router = APIRouter()

SUBMIT_MESSAGES = {
    "created": "Method saved successfully",
    "updated": "Method updated successfully",
    "unchanged": "Method unchanged",
}


@router.get("/{kind}")
@limiter.limit("60/minute")
def get_methods(request: Request, kind: str, db: DbSession):
    """Get all methods of a kind with their batches."""
    proving_kind = get_proving_kind(kind)
    try:
        methods = ProvingService(db).list_methods(proving_kind)
    except Exception as e:
        logger.exception(f"Failed to read {proving_kind.sheet_name}")
        return JSONResponse(status_code=500, content=error_response(str(e)))
    return read_response(methods)


@router.get("/{kind}/{method_id}")
@limiter.limit("60/minute")
def get_method(request: Request, kind: str, method_id: str, db: DbSession):
    """Get one method by id."""
    method = ProvingService(db).get_method(get_proving_kind(kind), method_id)
    return {"success": True, "data": method}


@router.post("/{kind}")
@limiter.limit("30/minute")
def submit_batch(request: Request, kind: str, db: DbSession, payload: Dict[str, Any] = Body(...)):
    """Create a method and/or add a validation batch to it."""
    result = ProvingService(db).submit(get_proving_kind(kind), payload)
    if result["batchNumber"] is not None:
        message = "Batch added successfully"
    else:
        message = SUBMIT_MESSAGES[result["outcome"]]
    return write_response(message, **result)


@router.post("/{kind}/{method_id}/reset")
@limiter.limit("30/minute")
def reset_method(request: Request, kind: str, method_id: str, db: DbSession):
    """Reset a method back to zero batches after a failed validation."""
    result = ProvingService(db).reset_method(get_proving_kind(kind), method_id)
    return write_response("Method reset successfully", **result)


@router.post("/{kind}/{method_id}/delete")
@limiter.limit("30/minute")
def delete_method(request: Request, kind: str, method_id: str, db: DbSession):
    """Delete an in-progress method."""
    ProvingService(db).delete_method(get_proving_kind(kind), method_id)
    return write_response("Method deleted successfully")
