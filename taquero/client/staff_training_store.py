"""Client store for the staff training register."""

import logging
from typing import Any, Dict, List, Optional

from taquero.client.storage import BucketStorage
from taquero.client.store import BaseStore, new_record_id
from taquero.client.transport import SheetTransport, WriteResult, WriteStatus
from taquero.core.config import settings
from taquero.schemas.sheets import ID_FIELD
from taquero.schemas.staff_training import STAFF_TRAINING_BUCKET, StaffTrainingAction
from taquero.services.proving_rules import utc_now_iso

logger = logging.getLogger(__name__)

# Assigned by the store, never taken from caller updates
PROTECTED_STAFF_FIELDS = (ID_FIELD, "trainingRecords", "createdAt")
PROTECTED_TRAINING_FIELDS = (ID_FIELD, "staffId")


class StaffTrainingStore(BaseStore):
    """Local mirror of staff members, each holding their training records newest first."""

    state_key = "staffMembers"

    def __init__(
        self,
        transport: Optional[SheetTransport] = None,
        storage: Optional[BucketStorage] = None,
        url: Optional[str] = None,
    ):
        if url is None:
            url = settings.sheet_url("staff-training")
        super().__init__(STAFF_TRAINING_BUCKET, url, transport, storage)

    @property
    def staff_members(self) -> List[Dict[str, Any]]:
        return self.items

    async def _send(self, action: StaffTrainingAction, data: Dict[str, Any]) -> WriteResult:
        return await self._post(self.url, {"action": action.value, "data": dict(data)})

    # ==================== STAFF ====================

    async def add_staff_member(self, staff: Dict[str, Any]) -> WriteResult:
        """Add a staff member at the end of the list. A known id replaces that member's details."""
        member = {k: v for k, v in staff.items() if k not in PROTECTED_STAFF_FIELDS}
        member[ID_FIELD] = staff.get(ID_FIELD) or new_record_id()

        index = self._find_index(member[ID_FIELD])
        if index is None:
            member["createdAt"] = utc_now_iso()
            member["trainingRecords"] = []
            self.items.append(member)
        else:
            member = {**self.items[index], **member}
            self.items[index] = member
        self._persist()
        return await self._send(StaffTrainingAction.ADD_STAFF, member)

    async def update_staff_member(self, staff_id: str, updates: Dict[str, Any]) -> WriteResult:
        index = self._find_index(staff_id)
        if index is None:
            return WriteResult(WriteStatus.NOT_FOUND, "Staff member not found")

        changes = {k: v for k, v in updates.items() if k not in PROTECTED_STAFF_FIELDS}
        merged = {**self.items[index], **changes}
        self.items[index] = merged
        self._persist()

        result = await self._send(StaffTrainingAction.UPDATE_STAFF, merged)
        if result.ok and isinstance(merged.get("version"), int):
            merged["version"] += 1
            self._persist()
        return result

    async def delete_staff_member(self, staff_id: str) -> WriteResult:
        index = self._find_index(staff_id)
        if index is None:
            return WriteResult(WriteStatus.NOT_FOUND, "Staff member not found")
        self.items.pop(index)
        self._persist()
        return await self._send(StaffTrainingAction.DELETE_STAFF, {ID_FIELD: staff_id})

    def get_staff_members(self) -> List[Dict[str, Any]]:
        return list(self.items)

    def get_staff_member(self, staff_id: str) -> Optional[Dict[str, Any]]:
        index = self._find_index(staff_id)
        return self.items[index] if index is not None else None

    # ==================== TRAINING ====================

    @staticmethod
    def _find_training_index(member: Dict[str, Any], record_id: str) -> Optional[int]:
        for i, record in enumerate(member.get("trainingRecords") or []):
            if record.get(ID_FIELD) == record_id:
                return i
        return None

    async def add_training_record(self, staff_id: str, record: Dict[str, Any]) -> WriteResult:
        """Record a training session for a staff member, newest first."""
        index = self._find_index(staff_id)
        if index is None:
            return WriteResult(WriteStatus.NOT_FOUND, "Staff member not found")

        entry = {k: v for k, v in record.items() if k not in PROTECTED_TRAINING_FIELDS}
        entry[ID_FIELD] = record.get(ID_FIELD) or new_record_id()
        entry["staffId"] = staff_id

        member = dict(self.items[index])
        records = list(member.get("trainingRecords") or [])
        existing = self._find_training_index(member, entry[ID_FIELD])
        if existing is None:
            records.insert(0, entry)
        else:
            records[existing] = {**records[existing], **entry}
        member["trainingRecords"] = records
        self.items[index] = member
        self._persist()
        return await self._send(StaffTrainingAction.ADD_TRAINING, entry)

    async def update_training_record(
        self, staff_id: str, record_id: str, updates: Dict[str, Any]
    ) -> WriteResult:
        index = self._find_index(staff_id)
        if index is None:
            return WriteResult(WriteStatus.NOT_FOUND, "Staff member not found")
        member = dict(self.items[index])
        position = self._find_training_index(member, record_id)
        if position is None:
            return WriteResult(WriteStatus.NOT_FOUND, "Training record not found")

        records = list(member["trainingRecords"])
        changes = {k: v for k, v in updates.items() if k not in PROTECTED_TRAINING_FIELDS}
        records[position] = {**records[position], **changes}
        member["trainingRecords"] = records
        self.items[index] = member
        self._persist()
        return await self._send(StaffTrainingAction.UPDATE_TRAINING, records[position])

    async def delete_training_record(self, staff_id: str, record_id: str) -> WriteResult:
        index = self._find_index(staff_id)
        if index is None:
            return WriteResult(WriteStatus.NOT_FOUND, "Staff member not found")
        member = dict(self.items[index])
        position = self._find_training_index(member, record_id)
        if position is None:
            return WriteResult(WriteStatus.NOT_FOUND, "Training record not found")

        records = list(member["trainingRecords"])
        records.pop(position)
        member["trainingRecords"] = records
        self.items[index] = member
        self._persist()
        return await self._send(StaffTrainingAction.DELETE_TRAINING, {ID_FIELD: record_id, "staffId": staff_id})
