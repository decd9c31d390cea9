"""Client store for proving methods: three validation batches per method."""

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from taquero.client.storage import BucketStorage
from taquero.client.store import BaseStore, new_record_id
from taquero.client.transport import SheetTransport, WriteResult, WriteStatus
from taquero.core.config import settings
from taquero.schemas.proving import ProvingKind
from taquero.schemas.sheets import ID_FIELD, parse_timestamp
from taquero.services.proving_rules import MethodStatus, accumulate, reset, utc_now_iso

logger = logging.getLogger(__name__)


class ProvingStore(BaseStore):
    """Local mirror of one kind of proving method and its batches."""

    state_key = "methods"

    def __init__(
        self,
        kind: ProvingKind,
        transport: Optional[SheetTransport] = None,
        storage: Optional[BucketStorage] = None,
        url: Optional[str] = None,
    ):
        self.kind = kind
        if url is None:
            url = settings.sheet_url(f"proving/{kind.key}")
        super().__init__(kind.bucket, url, transport, storage)

    @property
    def methods(self) -> List[Dict[str, Any]]:
        return self.items

    def _method_url(self, method_id: str, action: str) -> str:
        if not self.url:
            return ""
        return f"{self.url}/{quote(method_id, safe='')}/{action}"

    def _method_payload(self, method: Dict[str, Any]) -> Dict[str, Any]:
        payload = {"methodId": method[ID_FIELD]}
        for name in self.kind.detail_fields:
            payload[name] = method.get(name)
        payload["createdBy"] = method.get("createdBy")
        payload["createdAt"] = method.get("createdAt")
        return payload

    async def create_method(self, details: Dict[str, Any], created_by: str) -> WriteResult:
        """Start a new in-progress method with no batches.

        An id that is already held updates that method's details and keeps its batches.
        """
        method_id = details.get("methodId") or new_record_id()
        index = self._find_index(method_id)
        if index is not None:
            existing = dict(self.items[index])
            for name in self.kind.detail_fields:
                if details.get(name) is not None:
                    existing[name] = details.get(name)
            self.items[index] = existing
            self._persist()
            return await self._post(self.url, self._method_payload(existing))

        method: Dict[str, Any] = {ID_FIELD: method_id}
        for name in self.kind.detail_fields:
            method[name] = details.get(name)
        method.update(
            {
                "status": MethodStatus.IN_PROGRESS.value,
                "batches": [],
                "createdBy": created_by,
                "createdAt": utc_now_iso(),
                "provenAt": None,
            }
        )
        self.items.insert(0, method)
        self._persist()
        return await self._post(self.url, self._method_payload(method))

    async def add_batch(self, method_id: str, batch: Dict[str, Any]) -> WriteResult:
        """Append one batch; the third one proves the method."""
        index = self._find_index(method_id)
        if index is None:
            return WriteResult(WriteStatus.NOT_FOUND, "Method not found")

        method = self.items[index]
        entry: Dict[str, Any] = {"batchNumber": batch.get("batchNumber") or len(method.get("batches") or []) + 1}
        for name in self.kind.reading_fields:
            entry[name] = batch.get(name)
        entry["completedBy"] = batch.get("completedBy")
        entry["timestamp"] = batch.get("timestamp") or utc_now_iso()

        updated = accumulate(method, entry)
        self.items[index] = updated
        self._persist()
        if updated["status"] != method.get("status"):
            logger.info(f"Proving {self.kind.key} method {method_id} {updated['status']} locally")

        return await self._post(self.url, {**self._method_payload(updated), **entry})

    async def reset_method(self, method_id: str) -> WriteResult:
        index = self._find_index(method_id)
        if index is None:
            return WriteResult(WriteStatus.NOT_FOUND, "Method not found")
        self.items[index] = reset(self.items[index])
        self._persist()
        return await self._post(self._method_url(method_id, "reset"), {})

    async def delete_method(self, method_id: str) -> WriteResult:
        """Delete an in-progress method. A proven method is refused without a remote call."""
        index = self._find_index(method_id)
        if index is None:
            return WriteResult(WriteStatus.NOT_FOUND, "Method not found")
        if self.items[index].get("status") == MethodStatus.PROVEN.value:
            return WriteResult(WriteStatus.CONFLICT, "Method is proven and cannot be deleted")
        self.items.pop(index)
        self._persist()
        return await self._post(self._method_url(method_id, "delete"), {})

    def get_methods(self) -> List[Dict[str, Any]]:
        return sorted(
            self.items,
            key=lambda m: parse_timestamp(m.get("createdAt")) or float("-inf"),
            reverse=True,
        )

    def get_in_progress_methods(self) -> List[Dict[str, Any]]:
        return [m for m in self.get_methods() if m.get("status") == MethodStatus.IN_PROGRESS.value]

    def get_proven_methods(self) -> List[Dict[str, Any]]:
        return [m for m in self.get_methods() if m.get("status") == MethodStatus.PROVEN.value]

    def get_method_by_id(self, method_id: str) -> Optional[Dict[str, Any]]:
        index = self._find_index(method_id)
        return self.items[index] if index is not None else None
