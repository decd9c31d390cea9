"""
Staff Training Service
======================
The staff training register: who works in the kitchen and which
food-safety training each of them has completed. Writes arrive as one of
six named actions carrying a ``data`` object, the same shape the register's
spreadsheet endpoint accepted.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from taquero.core.exceptions import (
    DuplicateRecordError,
    InvalidFieldError,
    MissingRequiredFieldsError,
    RecordNotFoundError,
    UnknownActionError,
)
from taquero.core.metrics import metrics
from taquero.models.staff_training import StaffMember, TrainingRecord
from taquero.schemas.sheets import is_blank
from taquero.schemas.staff_training import (
    STAFF_REQUIRED,
    TRAINING_REQUIRED,
    StaffTrainingAction,
    missing_fields,
)
from taquero.services.proving_rules import utc_now_iso
from taquero.services.sheet_service import parse_version

logger = logging.getLogger(__name__)

MODULE = "staff-training"

# Model attribute for each submitted field
STAFF_COLUMNS = {
    "name": "name",
    "initials": "initials",
    "position": "position",
    "email": "email",
    "phone": "phone",
}
TRAINING_COLUMNS = {
    "topic": "topic",
    "trainerInitials": "trainer_initials",
    "date": "date",
    "notes": "notes",
}


def _apply_fields(target: Any, data: Dict[str, Any], columns: Dict[str, str], required) -> None:
    """Copy the submitted fields onto a model. Required fields may not be blanked."""
    blanked = [name for name in columns if name in required and name in data and is_blank(data[name])]
    if blanked:
        raise MissingRequiredFieldsError(blanked)

    for name, attr in columns.items():
        if name in data:
            setattr(target, attr, None if is_blank(data[name]) else data[name])


class StaffTrainingService:
    """Staff members and their training records for one database session."""

    def __init__(self, db_session: Session):
        self.db = db_session

    def _find_staff(self, staff_id: str) -> Optional[StaffMember]:
        return self.db.query(StaffMember).filter(StaffMember.staff_id == staff_id).first()

    def _staff_or_404(self, staff_id: str) -> StaffMember:
        staff = self._find_staff(staff_id)
        if staff is None:
            raise RecordNotFoundError(staff_id, "Staff member not found")
        return staff

    @staticmethod
    def _find_training(staff: StaffMember, record_id: str) -> Optional[TrainingRecord]:
        for record in staff.training_records:
            if record.record_id == record_id:
                return record
        return None

    @staticmethod
    def _training_to_dict(staff: StaffMember, record: TrainingRecord) -> Dict[str, Any]:
        return {
            "id": record.record_id,
            "staffId": staff.staff_id,
            "topic": record.topic,
            "trainerInitials": record.trainer_initials,
            "date": record.date,
            "notes": record.notes,
        }

    def _to_dict(self, staff: StaffMember) -> Dict[str, Any]:
        # Most recently added training first
        records = sorted(staff.training_records, key=lambda r: r.id, reverse=True)
        return {
            "id": staff.staff_id,
            "name": staff.name,
            "initials": staff.initials,
            "position": staff.position,
            "email": staff.email,
            "phone": staff.phone,
            "createdAt": staff.created_at,
            "trainingRecords": [self._training_to_dict(staff, r) for r in records],
            "version": staff.version,
        }

    def _commit(self, key: str) -> None:
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            metrics.record_write(MODULE, "rejected")
            raise DuplicateRecordError(key)

    @staticmethod
    def _require(data: Dict[str, Any], required) -> None:
        missing = missing_fields(data, tuple(required))
        if missing:
            metrics.record_write(MODULE, "rejected")
            raise MissingRequiredFieldsError(missing)

    # ==================== READS ====================

    def list_staff(self) -> List[Dict[str, Any]]:
        """Every staff member in the order they were added, training nested."""
        members = self.db.query(StaffMember).order_by(StaffMember.id).all()
        return [self._to_dict(m) for m in members]

    def get_staff(self, staff_id: str) -> Dict[str, Any]:
        return self._to_dict(self._staff_or_404(staff_id))

    # ==================== WRITES ====================

    def apply(self, action: Any, data: Any) -> Dict[str, Any]:
        """Run one named action. Returns the action, its outcome and the identifiers touched."""
        if is_blank(action):
            raise MissingRequiredFieldsError(["action"])
        try:
            action = StaffTrainingAction(action)
        except ValueError:
            raise UnknownActionError(str(action)) from None

        if isinstance(data, str):
            try:
                data = json.loads(data)
            except ValueError:
                raise InvalidFieldError("data", "Invalid data") from None
        if not isinstance(data, dict):
            raise InvalidFieldError("data", "Invalid data")

        handlers = {
            StaffTrainingAction.ADD_STAFF: self.add_staff,
            StaffTrainingAction.UPDATE_STAFF: self.update_staff,
            StaffTrainingAction.DELETE_STAFF: self.delete_staff,
            StaffTrainingAction.ADD_TRAINING: self.add_training,
            StaffTrainingAction.UPDATE_TRAINING: self.update_training,
            StaffTrainingAction.DELETE_TRAINING: self.delete_training,
        }
        result = handlers[action](data)
        metrics.record_write(MODULE, result["outcome"])
        logger.info(f"Staff training {action.value}: {result['outcome']} {result['id']}")
        return {"action": action.value, **result}

    def add_staff(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Add a staff member. Re-adding a known id overwrites their details."""
        self._require(data, STAFF_REQUIRED)
        staff_id = str(data["id"])

        staff = self._find_staff(staff_id)
        if staff is not None:
            _apply_fields(staff, data, STAFF_COLUMNS, STAFF_REQUIRED)
            staff.increment_version()
            self._commit(staff_id)
            return {"outcome": "updated", "id": staff_id}

        staff = StaffMember(staff_id=staff_id, created_at=data.get("createdAt") or utc_now_iso())
        _apply_fields(staff, data, STAFF_COLUMNS, STAFF_REQUIRED)
        self.db.add(staff)
        self._commit(staff_id)
        return {"outcome": "created", "id": staff_id}

    def update_staff(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Merge the submitted details into a staff member.

        A ``version`` makes the update conditional on the stored version.
        Training records in the payload are ignored; they have their own actions.
        """
        self._require(data, ("id",))
        staff_id = str(data["id"])
        expected_version = parse_version(data.get("version"))

        staff = self._staff_or_404(staff_id)
        staff.check_version(staff_id, expected_version)
        _apply_fields(staff, data, STAFF_COLUMNS, STAFF_REQUIRED)
        staff.increment_version()
        self._commit(staff_id)
        return {"outcome": "updated", "id": staff_id}

    def delete_staff(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Remove a staff member and every training record they hold."""
        self._require(data, ("id",))
        staff_id = str(data["id"])

        staff = self._staff_or_404(staff_id)
        self.db.delete(staff)
        self.db.commit()
        return {"outcome": "deleted", "id": staff_id}

    def add_training(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Record a completed training session against an existing staff member."""
        self._require(data, TRAINING_REQUIRED)
        record_id = str(data["id"])
        staff = self._staff_or_404(str(data["staffId"]))

        record = self._find_training(staff, record_id)
        if record is not None:
            _apply_fields(record, data, TRAINING_COLUMNS, TRAINING_REQUIRED)
            self._commit(record_id)
            return {"outcome": "updated", "id": record_id, "staffId": staff.staff_id}

        record = TrainingRecord(record_id=record_id)
        _apply_fields(record, data, TRAINING_COLUMNS, TRAINING_REQUIRED)
        staff.training_records.append(record)
        self._commit(record_id)
        return {"outcome": "created", "id": record_id, "staffId": staff.staff_id}

    def update_training(self, data: Dict[str, Any]) -> Dict[str, Any]:
        self._require(data, ("id", "staffId"))
        record_id = str(data["id"])
        staff = self._staff_or_404(str(data["staffId"]))

        record = self._find_training(staff, record_id)
        if record is None:
            raise RecordNotFoundError(record_id, "Training record not found")
        _apply_fields(record, data, TRAINING_COLUMNS, TRAINING_REQUIRED)
        self._commit(record_id)
        return {"outcome": "updated", "id": record_id, "staffId": staff.staff_id}

    def delete_training(self, data: Dict[str, Any]) -> Dict[str, Any]:
        self._require(data, ("id", "staffId"))
        record_id = str(data["id"])
        staff = self._staff_or_404(str(data["staffId"]))

        record = self._find_training(staff, record_id)
        if record is None:
            raise RecordNotFoundError(record_id, "Training record not found")
        staff.training_records.remove(record)
        self.db.commit()
        return {"outcome": "deleted", "id": record_id, "staffId": staff.staff_id}
