"""Proving method service: cooking, cooling and reheating method validation."""

import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from taquero.core.exceptions import (
    DuplicateRecordError,
    MissingRequiredFieldsError,
    ProvenMethodLockedError,
    RecordNotFoundError,
)
from taquero.core.metrics import metrics
from taquero.models.proving import ProvingBatch, ProvingMethod
from taquero.schemas.proving import ProvingKind
from taquero.schemas.sheets import is_blank, parse_timestamp
from taquero.services.proving_rules import MethodStatus, status_for, utc_now_iso

logger = logging.getLogger(__name__)


def _batch_number(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _iso_from_unix(unix_timestamp: int) -> str:
    return datetime.fromtimestamp(unix_timestamp, tz=timezone.utc).isoformat().replace("+00:00", "Z")


class ProvingService:
    """Batch accumulator for proving methods, persisted per kind."""

    def __init__(self, db_session: Session):
        self.db = db_session

    def _find(self, kind: ProvingKind, method_id: str) -> Optional[ProvingMethod]:
        return (
            self.db.query(ProvingMethod)
            .filter(ProvingMethod.kind == kind.key, ProvingMethod.method_id == method_id)
            .first()
        )

    def _get_or_404(self, kind: ProvingKind, method_id: str) -> ProvingMethod:
        method = self._find(kind, method_id)
        if method is None:
            raise RecordNotFoundError(method_id, "Method not found")
        return method

    @staticmethod
    def _batch_to_dict(kind: ProvingKind, batch: ProvingBatch) -> Dict[str, Any]:
        data: Dict[str, Any] = {"batchNumber": batch.batch_number}
        readings = batch.readings or {}
        for name in kind.reading_fields:
            data[name] = readings.get(name)
        data["completedBy"] = batch.completed_by
        data["timestamp"] = _iso_from_unix(batch.unix_timestamp)
        return data

    def _to_dict(self, kind: ProvingKind, method: ProvingMethod) -> Dict[str, Any]:
        ordered = sorted(
            method.batches,
            key=lambda b: (b.batch_number is None, b.batch_number or 0, b.id),
        )
        data: Dict[str, Any] = {"id": method.method_id}
        details = method.details or {}
        for name in kind.detail_fields:
            data[name] = details.get(name)
        data.update(
            {
                "status": method.status,
                "batches": [self._batch_to_dict(kind, b) for b in ordered],
                "createdBy": method.created_by,
                "createdAt": method.created_at,
                "provenAt": method.proven_at,
                "version": method.version,
            }
        )
        return data

    @staticmethod
    def _apply_details(kind: ProvingKind, method: ProvingMethod, payload: Dict[str, Any]) -> bool:
        """Overwrite descriptive fields that the submission carries. Returns True if any changed."""
        details = dict(method.details or {})
        changed = False
        for name in kind.detail_fields:
            value = payload.get(name)
            if not is_blank(value) and details.get(name) != value:
                details[name] = value
                changed = True
        if changed:
            method.details = details
        return changed

    # ==================== READS ====================

    def list_methods(self, kind: ProvingKind) -> List[Dict[str, Any]]:
        """All methods of a kind, newest first by createdAt."""
        methods = self.db.query(ProvingMethod).filter(ProvingMethod.kind == kind.key).all()
        shaped = [self._to_dict(kind, m) for m in methods]
        shaped.sort(key=lambda m: parse_timestamp(m.get("createdAt")) or float("-inf"), reverse=True)
        return shaped

    def get_method(self, kind: ProvingKind, method_id: str) -> Dict[str, Any]:
        return self._to_dict(kind, self._get_or_404(kind, method_id))

    # ==================== WRITES ====================

    def submit(self, kind: ProvingKind, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Record one flat submission: create the method if new, append the batch if present.

        Any ``status`` in the payload is ignored; the batch count decides.
        """
        method_id = payload.get("methodId")
        if is_blank(method_id):
            raise MissingRequiredFieldsError(["methodId"])
        method_id = str(method_id)

        has_batch = not is_blank(payload.get("batchNumber"))
        method = self._find(kind, method_id)

        required: List[str] = list(kind.method_required) if method is None else []
        if has_batch:
            required.append("completedBy")
        missing = [name for name in required if is_blank(payload.get(name))]
        if missing:
            metrics.record_write(f"proving-{kind.key}", "rejected")
            raise MissingRequiredFieldsError(missing)

        created = method is None
        if created:
            method = ProvingMethod(
                kind=kind.key,
                method_id=method_id,
                status=MethodStatus.IN_PROGRESS.value,
                details={name: payload.get(name) for name in kind.detail_fields},
                created_by=payload.get("createdBy"),
                created_at=payload.get("createdAt") or utc_now_iso(),
            )
            self.db.add(method)
            details_changed = False
        else:
            details_changed = self._apply_details(kind, method, payload)

        if has_batch:
            unix_timestamp = parse_timestamp(payload.get("timestamp"))
            if unix_timestamp is None:
                unix_timestamp = parse_timestamp(payload.get("unixTimestamp"))
            if unix_timestamp is None:
                unix_timestamp = time.time()

            method.batches.append(
                ProvingBatch(
                    batch_number=_batch_number(payload.get("batchNumber")),
                    completed_by=payload.get("completedBy"),
                    readings={name: payload.get(name) for name in kind.reading_fields},
                    unix_timestamp=int(unix_timestamp),
                )
            )
            was_proven = method.status == MethodStatus.PROVEN.value
            method.status = status_for(len(method.batches), method.status).value
            if method.status == MethodStatus.PROVEN.value and not method.proven_at:
                method.proven_at = utc_now_iso()
            if method.status == MethodStatus.PROVEN.value and not was_proven:
                logger.info(f"Proving {kind.key} method {method_id} proven after {len(method.batches)} batches")

        if created:
            outcome = "created"
        elif has_batch or details_changed:
            outcome = "updated"
            method.increment_version()
        else:
            outcome = "unchanged"

        if outcome != "unchanged":
            try:
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                metrics.record_write(f"proving-{kind.key}", "rejected")
                raise DuplicateRecordError(method_id)

        metrics.record_write(f"proving-{kind.key}", outcome)
        return {
            "methodId": method_id,
            "outcome": outcome,
            "batchNumber": _batch_number(payload.get("batchNumber")) if has_batch else None,
            "status": method.status,
            "batchCount": len(method.batches),
        }

    def reset_method(self, kind: ProvingKind, method_id: str) -> Dict[str, Any]:
        """Clear all batches and return the method to in-progress."""
        method = self._get_or_404(kind, method_id)
        method.batches.clear()
        method.status = MethodStatus.IN_PROGRESS.value
        method.proven_at = None
        method.increment_version()
        self.db.commit()

        metrics.record_write(f"proving-{kind.key}", "updated")
        logger.info(f"Proving {kind.key} method {method_id} reset")
        return {"methodId": method_id, "status": method.status, "batchCount": 0}

    def delete_method(self, kind: ProvingKind, method_id: str) -> None:
        """Delete an in-progress method. Proven methods cannot be deleted."""
        method = self._get_or_404(kind, method_id)
        if method.status == MethodStatus.PROVEN.value:
            raise ProvenMethodLockedError(method_id)
        self.db.delete(method)
        self.db.commit()

        metrics.record_write(f"proving-{kind.key}", "deleted")
        logger.info(f"Proving {kind.key} method {method_id} deleted")
