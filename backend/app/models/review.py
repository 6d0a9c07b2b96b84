"""Administrative review model."""

import uuid
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import String, Text, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.db.base import Base
from backend.app.utils.dates import local_now

if TYPE_CHECKING:
    from backend.app.models.report import Report
    from backend.app.models.user import User


class ReviewStatus(str, Enum):
    """Administrative review decision."""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REVIEWED = "REVIEWED"


class ReportReview(Base):
    """Append-only audit of administrative decisions on a report."""

    __tablename__ = "report_reviews"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        index=True,
    )
    report_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("reports.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    admin_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=ReviewStatus.PENDING.value)
    comments: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=local_now)

    # Relationships
    report: Mapped["Report"] = relationship("Report", back_populates="reviews")
    admin: Mapped["User | None"] = relationship("User")

    def __repr__(self) -> str:
        return f"<ReportReview(id={self.id}, report_id={self.report_id}, status={self.status})>"
