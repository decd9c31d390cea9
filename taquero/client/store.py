"""
Client Record Stores
====================
Local mirrors of one module sheet each. A store holds the last-fetched
records, persists them to a named bucket after every change, and reloads
them on construction. Reads that fail keep the last known good records.
Writes change the local copy first and then report the remote outcome as a
WriteResult; nothing reconciles the two afterwards.
"""

import logging
import time
import uuid
from typing import Any, Dict, List, Optional

from taquero.client.storage import BucketStorage, get_bucket_storage
from taquero.client.transport import (
    SHEET_URL_NOT_CONFIGURED,
    HttpxSheetTransport,
    SheetTransport,
    SheetTransportError,
    WriteResult,
    WriteStatus,
)
from taquero.core.config import settings
from taquero.schemas.registry import STAFF_SICKNESS
from taquero.schemas.sheets import (
    ID_FIELD,
    STATUS_ACTIVE,
    STATUS_DELETED,
    STATUS_FIELD,
    UNIX_TIMESTAMP_FIELD,
    DeleteMode,
    SheetSchema,
)
from taquero.services.proving_rules import utc_now_iso

logger = logging.getLogger(__name__)


def new_record_id() -> str:
    return str(uuid.uuid4())


class BaseStore:
    """Fetch, persistence and write plumbing shared by every store."""

    state_key = "records"

    def __init__(
        self,
        bucket: str,
        url: str,
        transport: Optional[SheetTransport] = None,
        storage: Optional[BucketStorage] = None,
    ):
        self.bucket = bucket
        self.url = url
        self.transport = transport or HttpxSheetTransport()
        self.storage = storage or get_bucket_storage()

        self.items: List[Dict[str, Any]] = []
        self.is_loading = False
        self.last_fetch_time: Optional[str] = None
        self.fetch_error: Optional[str] = None
        self._load()

    # ==================== PERSISTENCE ====================

    def _load(self) -> None:
        state = self.storage.load(self.bucket)
        if not state:
            return
        self.items = list(state.get(self.state_key) or [])
        self.last_fetch_time = state.get("last_fetch_time")
        self.fetch_error = state.get("fetch_error")

    def _persist(self) -> None:
        self.storage.save(
            self.bucket,
            {
                self.state_key: self.items,
                "last_fetch_time": self.last_fetch_time,
                "fetch_error": self.fetch_error,
            },
        )

    def _find_index(self, item_id: str) -> Optional[int]:
        for i, item in enumerate(self.items):
            if item.get(ID_FIELD) == item_id:
                return i
        return None

    # ==================== REMOTE ====================

    async def fetch(self) -> bool:
        """Replace the local records with the remote ones. Returns False and keeps the old ones on failure."""
        if not self.url:
            self.fetch_error = SHEET_URL_NOT_CONFIGURED
            self._persist()
            return False

        self.is_loading = True
        try:
            body = await self.transport.get(self.url)
            if body.get("success") is False:
                raise SheetTransportError(str(body.get("error") or "Read failed"))
            data = body.get("data")
            if not isinstance(data, list):
                raise SheetTransportError("Response carried no data array")
        except SheetTransportError as e:
            logger.warning(f"Fetch of {self.bucket} failed, keeping {len(self.items)} cached: {e.message}")
            self.fetch_error = e.message
            self._persist()
            return False
        finally:
            self.is_loading = False

        self.items = data
        self.last_fetch_time = utc_now_iso()
        self.fetch_error = None
        self._persist()
        logger.debug(f"Fetched {len(data)} entries into {self.bucket}")
        return True

    async def _post(self, url: str, payload: Dict[str, Any]) -> WriteResult:
        if not url:
            return WriteResult(WriteStatus.NOT_CONFIGURED, SHEET_URL_NOT_CONFIGURED)
        try:
            body = await self.transport.post(url, dict(payload))
        except SheetTransportError as e:
            result = WriteResult.from_error(e)
        else:
            result = WriteResult.from_body(body)
        if not result.ok:
            logger.warning(f"Write to {self.bucket} not applied ({result.status.value}): {result.message}")
        return result


class RecordStore(BaseStore):
    """Local mirror of one compliance module sheet."""

    default_status = STATUS_ACTIVE

    def __init__(
        self,
        schema: SheetSchema,
        transport: Optional[SheetTransport] = None,
        storage: Optional[BucketStorage] = None,
        url: Optional[str] = None,
    ):
        self.schema = schema
        if url is None:
            url = settings.sheet_url(f"sheets/{schema.key}")
        super().__init__(schema.bucket, url, transport, storage)

    @property
    def records(self) -> List[Dict[str, Any]]:
        return self.items

    async def add_record(self, record: Dict[str, Any]) -> WriteResult:
        """Add a record locally, then submit it.

        A record whose id is already held replaces the local copy in place,
        the same way the sheet upserts it.
        """
        now = utc_now_iso()
        new = dict(record)
        new.setdefault(ID_FIELD, new_record_id())
        new.setdefault("createdAt", now)
        new.setdefault(UNIX_TIMESTAMP_FIELD, int(time.time()))
        if self.schema.has_status_column:
            new.setdefault(STATUS_FIELD, self.default_status)

        index = self._find_index(new[ID_FIELD])
        if index is None:
            self.items.insert(0, new)
        else:
            self.items[index] = new
        self._persist()
        return await self._post(self.url, new)

    async def update_record(self, record_id: str, updates: Dict[str, Any]) -> WriteResult:
        """Merge updates into a record locally, then submit the whole record."""
        index = self._find_index(record_id)
        if index is None:
            return WriteResult(WriteStatus.NOT_FOUND, "Record not found")

        merged = {**self.items[index], **updates, ID_FIELD: record_id, "updatedAt": utc_now_iso()}
        self.items[index] = merged
        self._persist()

        result = await self._post(self.url, merged)
        if result.ok and isinstance(merged.get("version"), int):
            merged["version"] += 1
            self._persist()
        return result

    async def delete_record(self, record_id: str) -> WriteResult:
        """Soft modules mark the record deleted; hard modules drop it."""
        index = self._find_index(record_id)
        if index is None:
            return WriteResult(WriteStatus.NOT_FOUND, "Record not found")

        if self.schema.delete_mode == DeleteMode.HARD:
            self.items.pop(index)
        else:
            self.items[index] = {
                **self.items[index],
                STATUS_FIELD: STATUS_DELETED,
                "updatedAt": utc_now_iso(),
            }
        self._persist()
        return await self._post(self.url, {"action": "delete", ID_FIELD: record_id})

    def get_records(self) -> List[Dict[str, Any]]:
        live = [r for r in self.items if r.get(STATUS_FIELD) != STATUS_DELETED]
        return self.schema.sort_records(live)

    def get_record_by_id(self, record_id: str) -> Optional[Dict[str, Any]]:
        index = self._find_index(record_id)
        return self.items[index] if index is not None else None


class StaffSicknessStore(RecordStore):
    """Staff sickness records: status is ``sick`` until the person returns."""

    default_status = "sick"

    def __init__(
        self,
        transport: Optional[SheetTransport] = None,
        storage: Optional[BucketStorage] = None,
        url: Optional[str] = None,
    ):
        super().__init__(STAFF_SICKNESS, transport, storage, url)

    async def mark_recovered(self, record_id: str, date_returned: str) -> WriteResult:
        return await self.update_record(record_id, {"dateReturned": date_returned, STATUS_FIELD: "returned"})

    def get_sick_records(self) -> List[Dict[str, Any]]:
        return [r for r in self.get_records() if r.get(STATUS_FIELD) == "sick"]

    def get_returned_records(self) -> List[Dict[str, Any]]:
        return [r for r in self.get_records() if r.get(STATUS_FIELD) == "returned"]
