"""API routes."""

from fastapi import APIRouter

from taquero.api.routes import proving, sheets, staff_training

api_router = APIRouter()

# One GET/POST pair per compliance module sheet
api_router.include_router(sheets.router, prefix="/sheets", tags=["sheets"])

# Three-batch proving of cooking, cooling and reheating methods
api_router.include_router(proving.router, prefix="/proving", tags=["proving"])

# Staff members and their nested training records
api_router.include_router(staff_training.router, prefix="/staff-training", tags=["staff-training"])
