"""Staff member and training record models."""

from sqlalchemy import Column, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from taquero.db.base import Base, TimestampMixin, VersionMixin


class StaffMember(Base, TimestampMixin, VersionMixin):
    """A member of kitchen staff whose food-safety training is tracked."""
    __tablename__ = "staff_members"

    id = Column(Integer, primary_key=True, index=True)
    staff_id = Column(String(200), nullable=False, unique=True, index=True)
    name = Column(String(200), nullable=False)
    initials = Column(String(20), nullable=False)
    position = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    created_at = Column(String(40), nullable=True)  # ISO-8601 as submitted

    training_records = relationship(
        "TrainingRecord",
        back_populates="staff_member",
        cascade="all, delete-orphan",
        order_by="TrainingRecord.id",
    )


class TrainingRecord(Base, TimestampMixin):
    """One training session a staff member completed."""
    __tablename__ = "training_records"
    __table_args__ = (
        UniqueConstraint("staff_pk", "record_id", name="uq_training_records_staff_record"),
    )

    id = Column(Integer, primary_key=True, index=True)
    staff_pk = Column(Integer, ForeignKey("staff_members.id", ondelete="CASCADE"), nullable=False, index=True)
    record_id = Column(String(200), nullable=False)
    topic = Column(String(200), nullable=False)
    trainer_initials = Column(String(20), nullable=False)
    date = Column(String(40), nullable=False)
    notes = Column(Text, nullable=True)

    staff_member = relationship("StaffMember", back_populates="training_records")
