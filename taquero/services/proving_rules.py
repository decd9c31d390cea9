"""Three-batch proving rules shared by the proving service and the client store.

A method is proven once three batches have been recorded. Status is always
derived from the batch count; a status supplied alongside a batch is never
trusted. Only an explicit reset takes a proven method back to in-progress.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

PROVEN_BATCH_COUNT = 3


class MethodStatus(str, Enum):
    IN_PROGRESS = "in-progress"
    PROVEN = "proven"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def status_for(batch_count: int, current: Optional[str] = None) -> MethodStatus:
    """Status of a method holding ``batch_count`` batches.

    A method that is already proven stays proven regardless of count.
    """
    if current == MethodStatus.PROVEN.value:
        return MethodStatus.PROVEN
    if batch_count >= PROVEN_BATCH_COUNT:
        return MethodStatus.PROVEN
    return MethodStatus.IN_PROGRESS


def accumulate(method: Dict[str, Any], batch: Dict[str, Any], now: Optional[str] = None) -> Dict[str, Any]:
    """Return a copy of ``method`` with ``batch`` appended and status recomputed.

    ``provenAt`` is stamped the moment the method becomes proven and is left
    alone by any later batch.
    """
    batches = list(method.get("batches") or [])
    batches.append(batch)
    status = status_for(len(batches), method.get("status"))

    proven_at = method.get("provenAt")
    if status == MethodStatus.PROVEN and not proven_at:
        proven_at = now or utc_now_iso()

    updated = dict(method)
    updated["batches"] = batches
    updated["status"] = status.value
    updated["provenAt"] = proven_at
    return updated


def reset(method: Dict[str, Any]) -> Dict[str, Any]:
    """Explicit reset after a failed validation: clear batches, back to in-progress."""
    updated = dict(method)
    updated["batches"] = []
    updated["status"] = MethodStatus.IN_PROGRESS.value
    updated["provenAt"] = None
    return updated
