"""Staff training register API routes."""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Request
from fastapi.responses import JSONResponse

from taquero.core.rate_limit import limiter
from taquero.core.responses import error_response, read_response, write_response
from taquero.db.session import DbSession
from taquero.services.staff_training_service import StaffTrainingService

logger = logging.getLogger(__name__)

router = APIRouter()

ACTION_MESSAGES = {
    "addStaff": "Staff member saved successfully",
    "updateStaff": "Staff member updated successfully",
    "deleteStaff": "Staff member deleted successfully",
    "addTraining": "Training record saved successfully",
    "updateTraining": "Training record updated successfully",
    "deleteTraining": "Training record deleted successfully",
}


@router.get("")
@limiter.limit("60/minute")
def get_staff_members(request: Request, db: DbSession):
    """Get every staff member with their training records."""
    try:
        members = StaffTrainingService(db).list_staff()
    except Exception as e:
        logger.exception("Failed to read staff training register")
        return JSONResponse(status_code=500, content=error_response(str(e)))
    return read_response(members)


@router.get("/{staff_id}")
@limiter.limit("60/minute")
def get_staff_member(request: Request, staff_id: str, db: DbSession):
    """Get one staff member by id."""
    member = StaffTrainingService(db).get_staff(staff_id)
    return {"success": True, "data": member}


@router.post("")
@limiter.limit("30/minute")
def apply_action(request: Request, db: DbSession, payload: Dict[str, Any] = Body(...)):
    """Add, update or delete a staff member or one of their training records."""
    result = StaffTrainingService(db).apply(payload.get("action"), payload.get("data"))
    return write_response(ACTION_MESSAGES[result["action"]], **result)
