"""Staff training register: staff members with their nested training records."""

from enum import Enum
from typing import Any, Dict, List, Tuple

from taquero.schemas.sheets import is_blank

STAFF_TRAINING_BUCKET = "taquero-staff-training"

STAFF_FIELDS: Tuple[str, ...] = ("name", "initials", "position", "email", "phone")
STAFF_REQUIRED: Tuple[str, ...] = ("id", "name", "initials", "position")

TRAINING_FIELDS: Tuple[str, ...] = ("topic", "trainerInitials", "date", "notes")
TRAINING_REQUIRED: Tuple[str, ...] = ("id", "staffId", "topic", "trainerInitials", "date")


class StaffTrainingAction(str, Enum):
    ADD_STAFF = "addStaff"
    UPDATE_STAFF = "updateStaff"
    DELETE_STAFF = "deleteStaff"
    ADD_TRAINING = "addTraining"
    UPDATE_TRAINING = "updateTraining"
    DELETE_TRAINING = "deleteTraining"


def missing_fields(payload: Dict[str, Any], required: Tuple[str, ...]) -> List[str]:
    return [name for name in required if is_blank(payload.get(name))]
