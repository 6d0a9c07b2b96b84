"""Class model."""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import String, Text, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.db.base import Base
from backend.app.utils.dates import local_now

if TYPE_CHECKING:
    from backend.app.models.user import Student
    from backend.app.models.report import Report


class SchoolClass(Base):
    """A class (homeroom) whose room is inspected daily."""

    __tablename__ = "classes"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=local_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=local_now,
        onupdate=local_now,
    )

    # Relationships
    students: Mapped[list["Student"]] = relationship("Student", back_populates="school_class")
    reports: Mapped[list["Report"]] = relationship("Report", back_populates="school_class")

    def __repr__(self) -> str:
        return f"<SchoolClass(id={self.id}, name={self.name})>"
