# Services module

from taquero.services.sheet_service import SheetService
from taquero.services.proving_service import ProvingService
from taquero.services.staff_training_service import StaffTrainingService

__all__ = [
    "SheetService",
    "ProvingService",
    "StaffTrainingService",
]
