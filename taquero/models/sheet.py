"""Generic sheet row storage."""

from sqlalchemy import JSON, Column, Integer, String, UniqueConstraint

from taquero.db.base import Base, TimestampMixin, VersionMixin


class SheetRow(Base, TimestampMixin, VersionMixin):
    """One row of a module sheet.

    The caller-generated identifier is unique per sheet, so an upsert is a
    keyed lookup rather than a scan. Domain fields live in ``cells`` keyed by
    field name; the column layout comes from the module's SheetSchema.
    """
    __tablename__ = "sheet_rows"
    __table_args__ = (
        UniqueConstraint("sheet", "record_id", name="uq_sheet_rows_sheet_record"),
    )

    id = Column(Integer, primary_key=True, index=True)
    sheet = Column(String(100), nullable=False, index=True)
    record_id = Column(String(200), nullable=False)
    status = Column(String(20), nullable=False, default="active", index=True)  # active, deleted
    unix_timestamp = Column(Integer, nullable=False, default=0)
    cells = Column(JSON, nullable=False, default=dict)
