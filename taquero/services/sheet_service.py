"""
Sheet Record Service
====================
Row-oriented reads and writes for the compliance module sheets: read every
live row shaped to JSON, upsert a submitted record by identifier, soft or
hard delete.
"""

import logging
import time
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from taquero.core.exceptions import (
    DuplicateRecordError,
    InvalidFieldError,
    MissingRequiredFieldsError,
    RecordNotFoundError,
    VersionConflictError,
)
from taquero.core.metrics import metrics
from taquero.models.sheet import SheetRow
from taquero.schemas.sheets import (
    ID_FIELD,
    STATUS_ACTIVE,
    STATUS_DELETED,
    STATUS_FIELD,
    UNIX_TIMESTAMP_FIELD,
    DeleteMode,
    SheetSchema,
    is_blank,
    parse_timestamp,
)

logger = logging.getLogger(__name__)


def resolve_unix_timestamp(payload: Dict[str, Any]) -> int:
    """Sortable creation time: the submitted value, else derived from createdAt, else now."""
    for candidate in (payload.get(UNIX_TIMESTAMP_FIELD), payload.get("createdAt")):
        parsed = parse_timestamp(candidate)
        if parsed is not None:
            return int(parsed)
    return int(time.time())


def parse_version(value: Any) -> Optional[int]:
    """The version a writer read, as an int. Blank means no check."""
    if is_blank(value):
        return None
    if isinstance(value, bool):
        raise InvalidFieldError("version", "Invalid version")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidFieldError("version", "Invalid version") from None


class SheetService:
    """Spreadsheet-style record store for one database session."""

    def __init__(self, db_session: Session):
        self.db = db_session

    def _find(self, schema: SheetSchema, record_id: str) -> Optional[SheetRow]:
        return (
            self.db.query(SheetRow)
            .filter(SheetRow.sheet == schema.sheet_name, SheetRow.record_id == record_id)
            .first()
        )

    @staticmethod
    def _shape(schema: SheetSchema, row: SheetRow) -> Dict[str, Any]:
        shaped = schema.shape(row.record_id, row.status, row.unix_timestamp, row.cells or {})
        shaped["version"] = row.version
        return shaped

    # ==================== READS ====================

    def list_records(self, schema: SheetSchema) -> List[Dict[str, Any]]:
        """All rows whose status is not ``deleted``, newest first by the module sort key."""
        rows = (
            self.db.query(SheetRow)
            .filter(SheetRow.sheet == schema.sheet_name, SheetRow.status != STATUS_DELETED)
            .all()
        )
        return schema.sort_records([self._shape(schema, row) for row in rows])

    def get_record(self, schema: SheetSchema, record_id: str) -> Optional[Dict[str, Any]]:
        row = self._find(schema, record_id)
        if row is None or row.status == STATUS_DELETED:
            return None
        return self._shape(schema, row)

    def export_rows(self, schema: SheetSchema) -> List[List[Any]]:
        """The sheet as a header row plus every stored row, deleted ones included."""
        rows = self.db.query(SheetRow).filter(SheetRow.sheet == schema.sheet_name).all()
        shaped = schema.sort_records([self._shape(schema, row) for row in rows])
        return [schema.header] + [schema.to_sheet_row(record) for record in shaped]

    # ==================== WRITES ====================

    def save_record(self, schema: SheetSchema, payload: Dict[str, Any]) -> str:
        """Overwrite the row with the same identifier, or append a new one.

        Returns ``"created"`` or ``"updated"``. A ``version`` in the payload
        makes the overwrite conditional on the stored version.
        """
        missing = schema.missing_required(payload)
        if missing:
            metrics.record_write(schema.key, "rejected")
            logger.info(f"Rejected {schema.key} write: missing {', '.join(missing)}")
            raise MissingRequiredFieldsError(missing)

        record_id = str(payload[ID_FIELD])
        expected_version = parse_version(payload.get("version"))
        status = payload.get(STATUS_FIELD) or STATUS_ACTIVE
        unix_timestamp = resolve_unix_timestamp(payload)
        cells = schema.to_cells(payload)

        row = self._find(schema, record_id)
        if row is None:
            row = SheetRow(
                sheet=schema.sheet_name,
                record_id=record_id,
                status=status,
                unix_timestamp=unix_timestamp,
                cells=cells,
            )
            self.db.add(row)
            try:
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                metrics.record_write(schema.key, "rejected")
                raise DuplicateRecordError(record_id)
            outcome = "created"
        else:
            row.check_version(record_id, expected_version)
            read_version = row.version
            changed = (
                self.db.query(SheetRow)
                .filter(SheetRow.id == row.id, SheetRow.version == read_version)
                .update(
                    {
                        SheetRow.status: status,
                        SheetRow.unix_timestamp: unix_timestamp,
                        SheetRow.cells: cells,
                        SheetRow.version: read_version + 1,
                    },
                    synchronize_session=False,
                )
            )
            if not changed:
                self.db.rollback()
                metrics.record_write(schema.key, "rejected")
                current = self._find(schema, record_id)
                raise VersionConflictError(record_id, read_version, current.version if current else 0)
            self.db.commit()
            outcome = "deleted" if status == STATUS_DELETED else "updated"

        metrics.record_write(schema.key, outcome)
        logger.info(f"{schema.key} record {record_id} {outcome}")
        return "updated" if outcome == "deleted" else outcome

    def delete_record(self, schema: SheetSchema, record_id: Optional[str]) -> None:
        """Delete by identifier: physical removal for hard-delete modules, status flip otherwise."""
        if not record_id:
            raise MissingRequiredFieldsError([ID_FIELD])

        row = self._find(schema, str(record_id))
        if row is None or row.status == STATUS_DELETED:
            raise RecordNotFoundError(str(record_id))

        if schema.delete_mode == DeleteMode.HARD:
            self.db.delete(row)
        else:
            row.status = STATUS_DELETED
            row.increment_version()
        self.db.commit()

        metrics.record_write(schema.key, "deleted")
        logger.info(f"{schema.key} record {record_id} deleted ({schema.delete_mode.value})")
