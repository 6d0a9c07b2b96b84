"""Inspection report model."""

import uuid
from datetime import date, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

from sqlalchemy import String, Text, Date, DateTime, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.db.base import Base
from backend.app.utils.dates import local_now

if TYPE_CHECKING:
    from backend.app.models.user import User
    from backend.app.models.school_class import SchoolClass
    from backend.app.models.approval import ReportApproval
    from backend.app.models.review import ReportReview


class ReportStatus(str, Enum):
    """Report lifecycle status."""
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    UNDER_REVIEW = "UNDER_REVIEW"
    PARTIAL = "PARTIAL"
    APPROVED = "APPROVED"
    REVIEWED = "REVIEWED"
    REJECTED = "REJECTED"


class ItemStatus(str, Enum):
    """Outcome recorded for a single inspected item."""
    GOOD = "GOOD"
    BAD = "BAD"
    FLAGGED = "FLAGGED"


DEFAULT_CATEGORY = "ONTIME"


class Report(Base):
    """
    Daily classroom inspection report.

    Attributes:
        id: Unique report identifier (UUID)
        title: Report title
        class_id: Inspected class
        reporter_id: Submitting user
        item_evaluated: Ordered list of {itemId, name, status, comment}
        general_comment: Free-text summary
        category: Classification tag carried into approvals
        status: Lifecycle status (see ReportStatus)
        submission_date: Server-local calendar day of submission
        created_at: Creation timestamp (server-local wall clock)
        updated_at: Last modification timestamp
    """

    __tablename__ = "reports"
    __table_args__ = (
        UniqueConstraint("reporter_id", "class_id", "submission_date", name="uix_report_reporter_class_day"),
    )

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    class_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("classes.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    reporter_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    item_evaluated: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    general_comment: Mapped[str] = mapped_column(Text, nullable=False, default="")
    category: Mapped[str] = mapped_column(String(32), nullable=False, default=DEFAULT_CATEGORY)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ReportStatus.SUBMITTED.value,
        index=True,
    )
    submission_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=local_now,
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=local_now,
        onupdate=local_now,
    )

    # Relationships
    reporter: Mapped["User"] = relationship("User")
    school_class: Mapped["SchoolClass"] = relationship("SchoolClass", back_populates="reports")
    approval: Mapped["ReportApproval | None"] = relationship(
        "ReportApproval",
        back_populates="report",
        uselist=False,
        cascade="all, delete-orphan",
    )
    reviews: Mapped[list["ReportReview"]] = relationship(
        "ReportReview",
        back_populates="report",
        cascade="all, delete-orphan",
        order_by="ReportReview.created_at.desc()",
    )
    item_links: Mapped[list["ReportItem"]] = relationship(
        "ReportItem",
        back_populates="report",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Report(id={self.id}, class_id={self.class_id}, status={self.status})>"


class ReportItem(Base):
    """Reverse index from catalog items to the reports that evaluate them."""

    __tablename__ = "report_items"

    report_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("reports.id", ondelete="CASCADE"),
        primary_key=True,
    )
    item_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("items.id", ondelete="RESTRICT"),
        primary_key=True,
        index=True,
    )

    report: Mapped["Report"] = relationship("Report", back_populates="item_links")
