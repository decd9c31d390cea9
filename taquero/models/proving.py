"""Proving method and validation batch models."""

from sqlalchemy import JSON, Column, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from taquero.db.base import Base, TimestampMixin, VersionMixin


class ProvingMethod(Base, TimestampMixin, VersionMixin):
    """A cooking, cooling or reheating method undergoing three-batch validation."""
    __tablename__ = "proving_methods"
    __table_args__ = (
        UniqueConstraint("kind", "method_id", name="uq_proving_methods_kind_method"),
    )

    id = Column(Integer, primary_key=True, index=True)
    kind = Column(String(20), nullable=False, index=True)  # cooking, cooling, reheating
    method_id = Column(String(200), nullable=False)
    status = Column(String(20), nullable=False, default="in-progress")  # in-progress, proven
    details = Column(JSON, nullable=False, default=dict)
    created_by = Column(String(100), nullable=True)
    created_at = Column(String(40), nullable=True)  # ISO-8601 as submitted
    proven_at = Column(String(40), nullable=True)

    batches = relationship(
        "ProvingBatch",
        back_populates="method",
        cascade="all, delete-orphan",
        order_by="ProvingBatch.id",
    )


class ProvingBatch(Base, TimestampMixin):
    """One validation measurement submitted toward proving a method."""
    __tablename__ = "proving_batches"

    id = Column(Integer, primary_key=True, index=True)
    method_pk = Column(Integer, ForeignKey("proving_methods.id", ondelete="CASCADE"), nullable=False, index=True)
    batch_number = Column(Integer, nullable=True)
    completed_by = Column(String(100), nullable=True)
    readings = Column(JSON, nullable=False, default=dict)
    unix_timestamp = Column(Integer, nullable=False, default=0)

    method = relationship("ProvingMethod", back_populates="batches")
