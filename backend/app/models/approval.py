"""Peer approval record model."""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import String, Text, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.db.base import Base

if TYPE_CHECKING:
    from backend.app.models.report import Report
    from backend.app.models.user import User


class ReportApproval(Base):
    """
    CS/CP decisions on a report, created on the first action.

    Each ``approved_by_*`` column is tri-state: None means the role has not
    acted yet, True approved, False denied. A role acts at most once.
    """

    __tablename__ = "report_approvals"

    report_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("reports.id", ondelete="CASCADE"),
        primary_key=True,
    )
    cs_student_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    cp_student_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    approved_by_cs: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    approved_by_cp: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    comments_cs: Mapped[str | None] = mapped_column(Text, nullable=True)
    comments_cp: Mapped[str | None] = mapped_column(Text, nullable=True)
    approved_at_cs: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    approved_at_cp: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    approval_cat_cs: Mapped[str | None] = mapped_column(String(32), nullable=True)
    approval_cat_cp: Mapped[str | None] = mapped_column(String(32), nullable=True)

    # Relationships
    report: Mapped["Report"] = relationship("Report", back_populates="approval")
    cs_student: Mapped["User | None"] = relationship("User", foreign_keys=[cs_student_id])
    cp_student: Mapped["User | None"] = relationship("User", foreign_keys=[cp_student_id])

    def decision_of(self, role: str) -> bool | None:
        """Return the tri-state decision recorded for ``role`` (CS or CP)."""
        return self.approved_by_cs if role == "CS" else self.approved_by_cp

    def __repr__(self) -> str:
        return (
            f"<ReportApproval(report_id={self.report_id}, "
            f"cs={self.approved_by_cs}, cp={self.approved_by_cp})>"
        )
