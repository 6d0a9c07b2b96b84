"""Report lifecycle engine: submission, CS/CP approval and administrative review.

Status transitions driven by the approval record::

    SUBMITTED    --(one of CS/CP approves)-->      PARTIAL
    SUBMITTED    --(CS and CP approve)-->          UNDER_REVIEW
    PARTIAL      --(remaining role approves)-->    UNDER_REVIEW
    *            --(either role denies)-->         REJECTED
    UNDER_REVIEW --(administrative review)-->      APPROVED | REVIEWED
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from backend.app.core.config import settings
from backend.app.core.exceptions import (
    AlreadyActedError,
    CommentsRequiredError,
    DuplicateSubmissionError,
    ForbiddenActionError,
    InputValidationError,
    InvalidTransitionError,
    PersistenceError,
    ReportNotFoundError,
    StudentNotFoundError,
)
from backend.app.db.gateway import ReportGateway
from backend.app.models.approval import ReportApproval
from backend.app.models.report import DEFAULT_CATEGORY, Report, ReportStatus
from backend.app.models.review import ReportReview, ReviewStatus
from backend.app.models.user import APPROVER_ROLES, Student, UserStatus
from backend.app.schemas.common import Pagination
from backend.app.schemas.report import Decision, ReportCreate, RoleAction
from backend.app.services.identity import Principal
from backend.app.services.notifications import NotificationDispatcher
from backend.app.services.pdf_generator import PDFGenerator, report_to_markdown
from backend.app.utils.dates import day_bounds, local_now

logger = logging.getLogger(__name__)

DEFAULT_APPROVAL_COMMENT = "Report approved successfully"

REPORT_FILTERS = ("daily", "weekly", "monthly", "all")


def derive_status(approval: ReportApproval) -> ReportStatus:
    """Recompute the report status from the freshest approval record."""
    if approval.approved_by_cs is False or approval.approved_by_cp is False:
        return ReportStatus.REJECTED
    if approval.approved_by_cs is True and approval.approved_by_cp is True:
        return ReportStatus.UNDER_REVIEW
    return ReportStatus.PARTIAL


def _role_patch(role: str, user_id: str, decision: Decision, comments: str, category: str | None, at: datetime) -> dict:
    suffix = role.lower()
    approved = decision is Decision.APPROVE
    return {
        f"{suffix}_student_id": user_id,
        f"approved_by_{suffix}": approved,
        f"approved_at_{suffix}": at,
        f"comments_{suffix}": comments,
        f"approval_cat_{suffix}": category if approved else None,
    }


def _role_action(approval: ReportApproval | None, role: str) -> RoleAction | None:
    if approval is None:
        return None
    decision = approval.decision_of(role)
    if decision is None:
        return None
    suffix = role.lower()
    student = getattr(approval, f"{suffix}_student")
    return RoleAction(
        role=role,
        approved=decision,
        comments=getattr(approval, f"comments_{suffix}"),
        acted_at=getattr(approval, f"approved_at_{suffix}"),
        category=getattr(approval, f"approval_cat_{suffix}"),
        student_name=student.name if student else None,
    )


def filter_window(filter_name: str | None, now: datetime) -> tuple[datetime, datetime] | None:
    """Date window for the class report list filters."""
    if filter_name == "daily":
        return day_bounds(now.date())[0], now
    if filter_name == "weekly":
        return now - timedelta(days=7), now
    if filter_name == "monthly":
        return now - timedelta(days=30), now
    return None


@dataclass
class ActionOutcome:
    approval: ReportApproval
    report_status: str
    action: str


@dataclass
class ApprovalViewResult:
    report: Report
    user_action: RoleAction | None
    other_role_action: RoleAction | None
    student_role: str


class ReportLifecycleService:
    """Owns report creation, CS/CP decisions and status derivation."""

    def __init__(self, gateway: ReportGateway, dispatcher: NotificationDispatcher | None = None):
        self.gateway = gateway
        self.dispatcher = dispatcher or NotificationDispatcher()

    async def _require_student(self, user_id: str) -> Student:
        student = await self.gateway.find_student(user_id)
        if student is None:
            raise StudentNotFoundError(user_id)
        return student

    async def submit_report(self, reporter_id: str, data: ReportCreate, now: datetime | None = None) -> Report:
        """
        Create today's report for the reporter's class.

        Raises:
            StudentNotFoundError: Reporter has no student profile
            ForbiddenActionError: Reporter account is not active
            InputValidationError: Reporter is not assigned to a class
            DuplicateSubmissionError: A report already exists for today
        """
        student = await self._require_student(reporter_id)
        if student.user.status != UserStatus.ACTIVE.value:
            raise ForbiddenActionError("Only active students can submit reports")
        if student.class_id is None:
            raise InputValidationError("User not assigned to any class")

        now = now or local_now()
        day_start, day_end = day_bounds(now.date())
        class_id = student.class_id

        try:
            async with self.gateway.transaction():
                existing = await self.gateway.find_report(
                    Report.reporter_id == reporter_id,
                    Report.class_id == class_id,
                    Report.created_at >= day_start,
                    Report.created_at < day_end,
                )
                if existing is not None:
                    raise DuplicateSubmissionError(reporter_id, class_id)

                report = await self.gateway.create_report(
                    title=data.title or f"Inspection Report {now.date().isoformat()}",
                    reporter_id=reporter_id,
                    class_id=class_id,
                    item_evaluated=[evaluation.to_record() for evaluation in data.item_evaluated],
                    general_comment=data.general_comment or "",
                    category=data.category or DEFAULT_CATEGORY,
                    status=ReportStatus.SUBMITTED.value,
                    submission_date=now.date(),
                    created_at=now,
                    updated_at=now,
                )
                await self.gateway.index_report_items(
                    report.id, {evaluation.item_id for evaluation in data.item_evaluated}
                )
                await self.gateway.add_review(
                    ReportReview(report_id=report.id, status=ReviewStatus.PENDING.value, created_at=now)
                )
        except DuplicateSubmissionError:
            logger.info(f"[REPORT] Duplicate submission by {reporter_id} for class {class_id}")
            raise
        except IntegrityError as e:
            logger.info(f"[REPORT] Concurrent duplicate submission by {reporter_id} for class {class_id}")
            raise DuplicateSubmissionError(reporter_id, class_id) from e
        except SQLAlchemyError as e:
            logger.exception("[REPORT] Failed to persist report")
            raise PersistenceError("submit_report", e) from e

        logger.info(f"[REPORT] Report {report.id} submitted by {reporter_id} for class {class_id}")

        await self.dispatcher.report_submitted(
            report_id=report.id,
            class_id=class_id,
            title=report.title,
            reporter_name=student.user.name,
        )
        return await self.get_report(report.id)

    async def act_on_report(
        self,
        report_id: str,
        acting_user_id: str,
        role: str,
        decision: Decision,
        comments: str | None = None,
        now: datetime | None = None,
    ) -> ActionOutcome:
        """
        Record a CS or CP decision and recompute the report status atomically.

        Raises:
            CommentsRequiredError: DENY without comments
            StudentNotFoundError: Acting user has no student profile
            ForbiddenActionError: Role mismatch or cross-class action
            ReportNotFoundError: Unknown report
            AlreadyActedError: The role has already decided on this report
        """
        if decision is Decision.DENY and not (comments or "").strip():
            raise CommentsRequiredError()

        student = await self._require_student(acting_user_id)
        if role not in APPROVER_ROLES:
            raise ForbiddenActionError("Only CS or CP representatives can act on reports")
        if student.student_role != role:
            raise ForbiddenActionError("You don't have permission to approve reports")

        now = now or local_now()
        if decision is Decision.APPROVE:
            text = (comments or "").strip() or DEFAULT_APPROVAL_COMMENT
        else:
            text = comments.strip()

        try:
            async with self.gateway.transaction():
                report = await self.gateway.get_report(report_id, for_update=True)
                if report is None:
                    raise ReportNotFoundError(report_id)
                if report.class_id != student.class_id:
                    raise ForbiddenActionError("You can only approve reports from your class")
                if report.approval is not None and report.approval.decision_of(role) is not None:
                    raise AlreadyActedError(report_id, role)

                approval = await self.gateway.upsert_approval(
                    report_id,
                    _role_patch(role, acting_user_id, decision, text, report.category, now),
                )
                new_status = derive_status(approval).value
                status_changed = new_status != report.status
                if status_changed:
                    await self.gateway.update_report_status(report, new_status)
        except SQLAlchemyError as e:
            logger.exception(f"[APPROVAL] Failed to record {role} decision on {report_id}")
            raise PersistenceError("act_on_report", e) from e

        action = "approved" if decision is Decision.APPROVE else "denied"
        logger.info(f"[APPROVAL] {role} {action} report {report_id}; status={new_status}")

        if status_changed:
            await self.dispatcher.report_status_changed(
                report_id=report.id,
                class_id=report.class_id,
                title=report.title,
                status=new_status,
                reporter_email=report.reporter.email if report.reporter else None,
                reporter_name=report.reporter.name if report.reporter else "",
                comments=text if decision is Decision.DENY else None,
            )

        return ActionOutcome(approval=approval, report_status=new_status, action=action)

    async def get_approval_view(self, user_id: str, now: datetime | None = None) -> ApprovalViewResult:
        """Today's report for the caller's class, with both roles' recorded decisions."""
        student = await self._require_student(user_id)
        if student.class_id is None:
            raise InputValidationError("Student is not assigned to any class")
        if student.student_role not in APPROVER_ROLES:
            raise ForbiddenActionError("You don't have permission to approve reports")

        now = now or local_now()
        day_start, day_end = day_bounds(now.date())
        report = await self.gateway.find_report(
            Report.class_id == student.class_id,
            Report.created_at >= day_start,
            Report.created_at < day_end,
            with_details=True,
        )
        if report is None:
            raise ReportNotFoundError()

        role = student.student_role
        other_role = "CP" if role == "CS" else "CS"
        return ApprovalViewResult(
            report=report,
            user_action=_role_action(report.approval, role),
            other_role_action=_role_action(report.approval, other_role),
            student_role=role,
        )

    async def review_report(
        self,
        report_id: str,
        admin_id: str,
        status: str,
        comments: str | None = None,
        now: datetime | None = None,
    ) -> Report:
        """
        Record the administrative decision and move the report to APPROVED or REVIEWED.

        Only reports both representatives approved (UNDER_REVIEW) can be reviewed.
        The PENDING placeholder created at submission is filled in.
        """
        if status not in (ReportStatus.APPROVED.value, ReportStatus.REVIEWED.value):
            raise InputValidationError(f"Unsupported review status: {status}")

        now = now or local_now()
        try:
            async with self.gateway.transaction():
                report = await self.gateway.get_report(report_id, for_update=True, with_details=True)
                if report is None:
                    raise ReportNotFoundError(report_id)
                if report.status != ReportStatus.UNDER_REVIEW.value:
                    raise InvalidTransitionError(report_id, report.status, status.lower())

                placeholder = next(
                    (r for r in report.reviews if r.status == ReviewStatus.PENDING.value and r.admin_id is None),
                    None,
                )
                if placeholder is None:
                    placeholder = await self.gateway.add_review(ReportReview(report_id=report_id, created_at=now))
                placeholder.admin_id = admin_id
                placeholder.status = status
                placeholder.comments = comments
                placeholder.reviewed_at = now
                await self.gateway.update_report_status(report, status)
        except SQLAlchemyError as e:
            logger.exception(f"[REVIEW] Failed to review report {report_id}")
            raise PersistenceError("review_report", e) from e

        logger.info(f"[REVIEW] Report {report_id} marked {status} by {admin_id}")

        await self.dispatcher.report_status_changed(
            report_id=report.id,
            class_id=report.class_id,
            title=report.title,
            status=status,
            reporter_email=report.reporter.email if report.reporter else None,
            reporter_name=report.reporter.name if report.reporter else "",
            comments=comments,
        )
        return await self.get_report(report_id)

    async def get_report(self, report_id: str, principal: Principal | None = None) -> Report:
        report = await self.gateway.get_report(report_id, with_details=True)
        if report is None:
            raise ReportNotFoundError(report_id)
        if principal is not None and not principal.is_admin and principal.class_id != report.class_id:
            raise ForbiddenActionError("You can only view reports from your class")
        return report

    async def list_class_reports(
        self,
        user_id: str,
        filter_name: str | None = None,
        search: str | None = None,
        page: int = 1,
        limit: int | None = None,
        now: datetime | None = None,
    ) -> tuple[list[Report], Pagination]:
        """Reports of the caller's class, newest first, with optional window and text search."""
        if filter_name and filter_name not in REPORT_FILTERS:
            raise InputValidationError(f"filter must be one of {list(REPORT_FILTERS)}")
        page = max(page, 1)
        limit = limit or settings.default_page_size

        student = await self._require_student(user_id)
        if student.class_id is None:
            raise InputValidationError("Student is not assigned to any class")

        conditions = [Report.class_id == student.class_id]
        window = filter_window(filter_name, now or local_now())
        if window is not None:
            conditions += [Report.created_at >= window[0], Report.created_at <= window[1]]
        if search:
            pattern = f"%{search}%"
            conditions.append(or_(Report.title.ilike(pattern), Report.general_comment.ilike(pattern)))

        total = await self.gateway.count_reports(*conditions)
        reports = await self.gateway.list_reports(*conditions, offset=(page - 1) * limit, limit=limit)
        total_pages = math.ceil(total / limit) if total else 0
        return reports, Pagination(
            current_page=page,
            total_pages=total_pages,
            total_reports=total,
            has_next=page < total_pages,
            has_prev=page > 1,
        )

    async def export_report_pdf(self, report_id: str, principal: Principal | None = None) -> tuple[str, bytes]:
        """Render a report as PDF; returns ``(filename, content)``."""
        report = await self.get_report(report_id, principal)
        pdf_bytes = PDFGenerator().markdown_to_pdf(report_to_markdown(report))
        filename = f"report_{report.submission_date:%Y%m%d}_{report.id[:8]}.pdf"
        logger.info(f"[REPORT] Exported PDF for report {report_id}")
        return filename, pdf_bytes
