"""SQLAlchemy models."""

from taquero.models.sheet import SheetRow
from taquero.models.proving import ProvingMethod, ProvingBatch
from taquero.models.staff_training import StaffMember, TrainingRecord

__all__ = [
    "SheetRow",
    "ProvingMethod",
    "ProvingBatch",
    "StaffMember",
    "TrainingRecord",
]
