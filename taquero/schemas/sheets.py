"""Sheet layouts: how a module's JSON records map onto spreadsheet columns."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

ID_FIELD = "id"
STATUS_FIELD = "status"
UNIX_TIMESTAMP_FIELD = "unixTimestamp"

STATUS_ACTIVE = "active"
STATUS_DELETED = "deleted"


class ColumnKind(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    BOOL = "bool"
    LIST = "list"  # comma-joined in the sheet, JSON array on the wire


class DeleteMode(str, Enum):
    SOFT = "soft"  # status = "deleted", row kept
    HARD = "hard"  # row physically removed


class SortKind(str, Enum):
    DATE = "date"
    NUMBER = "number"


@dataclass(frozen=True)
class ColumnSpec:
    header: str
    field: str
    kind: ColumnKind = ColumnKind.TEXT
    optional: bool = False


def col(header: str, field_name: str, kind: ColumnKind = ColumnKind.TEXT, optional: bool = False) -> ColumnSpec:
    return ColumnSpec(header=header, field=field_name, kind=kind, optional=optional)


def is_blank(value: Any) -> bool:
    """True for values a required-field check treats as missing. ``0`` and ``False`` are present."""
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    if isinstance(value, (list, tuple)) and not value:
        return True
    return False


def parse_timestamp(value: Any) -> Optional[float]:
    """Best-effort conversion of an ISO-8601 string, date string or epoch number to epoch seconds."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        try:
            return float(text)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


@dataclass(frozen=True)
class SheetSchema:
    """Declarative description of one module sheet.

    ``columns`` is the sheet's header row, left to right. The identifier,
    status and unix timestamp columns are ordinary entries here; the store
    keeps them in dedicated columns but they shape and export like any other.
    """

    key: str
    sheet_name: str
    title: str
    columns: Tuple[ColumnSpec, ...]
    required: Tuple[str, ...] = (ID_FIELD,)
    sort_field: str = "createdAt"
    sort_kind: SortKind = SortKind.DATE
    delete_mode: DeleteMode = DeleteMode.SOFT
    bucket: str = ""
    column_index: Dict[str, ColumnSpec] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "column_index", {c.field: c for c in self.columns})
        if not self.bucket:
            object.__setattr__(self, "bucket", f"taquero-{self.key}")

    @property
    def header(self) -> List[str]:
        return [c.header for c in self.columns]

    @property
    def has_status_column(self) -> bool:
        return STATUS_FIELD in self.column_index

    @property
    def domain_fields(self) -> List[str]:
        system = {ID_FIELD, STATUS_FIELD, UNIX_TIMESTAMP_FIELD}
        return [c.field for c in self.columns if c.field not in system]

    def missing_required(self, payload: Dict[str, Any]) -> List[str]:
        return [name for name in self.required if is_blank(payload.get(name))]

    def to_cells(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Pick the module's domain fields out of a submitted record."""
        cells: Dict[str, Any] = {}
        for name in self.domain_fields:
            value = payload.get(name)
            spec = self.column_index[name]
            if spec.kind == ColumnKind.LIST and isinstance(value, str):
                value = split_list(value)
            cells[name] = value
        return cells

    def shape(self, record_id: str, status: str, unix_timestamp: int, cells: Dict[str, Any]) -> Dict[str, Any]:
        """Build the flat JSON object a read endpoint returns for one row."""
        shaped: Dict[str, Any] = {}
        for spec in self.columns:
            if spec.field == ID_FIELD:
                shaped[ID_FIELD] = record_id
            elif spec.field == STATUS_FIELD:
                shaped[STATUS_FIELD] = status or STATUS_ACTIVE
            elif spec.field == UNIX_TIMESTAMP_FIELD:
                shaped[UNIX_TIMESTAMP_FIELD] = unix_timestamp
            else:
                value = cells.get(spec.field)
                if spec.kind == ColumnKind.LIST:
                    value = split_list(value) if isinstance(value, str) else list(value or [])
                elif spec.optional and is_blank(value):
                    value = None
                shaped[spec.field] = value
        if UNIX_TIMESTAMP_FIELD not in shaped:
            shaped[UNIX_TIMESTAMP_FIELD] = unix_timestamp
        return shaped

    def to_sheet_row(self, shaped: Dict[str, Any]) -> List[Any]:
        """Render a shaped record as a list of cell values in header order."""
        row = []
        for spec in self.columns:
            value = shaped.get(spec.field)
            if spec.kind == ColumnKind.LIST:
                value = ", ".join(str(v) for v in (value or []))
            elif value is None:
                value = ""
            row.append(value)
        return row

    def sort_value(self, record: Dict[str, Any]) -> float:
        """Numeric sort key; records with a missing or unparseable key sort last."""
        value = record.get(self.sort_field)
        if self.sort_kind == SortKind.NUMBER:
            try:
                return float(value)
            except (TypeError, ValueError):
                return float("-inf")
        parsed = parse_timestamp(value)
        return parsed if parsed is not None else float("-inf")

    def sort_records(self, records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return sorted(records, key=self.sort_value, reverse=True)


def split_list(value: Any) -> List[str]:
    if not value:
        return []
    return [part.strip() for part in str(value).split(",") if part.strip()]
