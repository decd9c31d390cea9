"""SQLAlchemy declarative base and common utilities."""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Integer, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from taquero.core.exceptions import VersionConflictError


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class TimestampMixin:
    """Server-side stored_at / changed_at timestamps.

    These are bookkeeping for the store itself. The ``createdAt`` and
    ``updatedAt`` a client submits are domain fields kept with the row values.
    """

    stored_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    changed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class VersionMixin:
    """Optimistic locking via a version counter.

    Models using this mixin gain a ``version`` column that starts at 1
    and is incremented on every update.  Call ``check_version()``
    before writing to detect concurrent modifications.
    """

    version: Mapped[int] = mapped_column(Integer, default=1, server_default="1", nullable=False)

    def check_version(self, key: str, expected: Optional[int]) -> None:
        """Raise VersionConflictError if *expected* doesn't match current version."""
        if expected is not None and expected != self.version:
            raise VersionConflictError(key, expected, self.version)

    def increment_version(self) -> None:
        """Increment the version counter after a successful update."""
        self.version += 1
