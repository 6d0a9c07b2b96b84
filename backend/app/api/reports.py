"""Report submission, approval and review API endpoints."""

from urllib.parse import quote

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response

from backend.app.api.deps import get_current_principal, get_lifecycle_service, require_admin
from backend.app.core.responses import success_response
from backend.app.models.report import Report
from backend.app.schemas.common import ApiResponse
from backend.app.schemas.report import (
    ActionResult,
    ApprovalDecisionRequest,
    ApprovalResponse,
    ApprovalView,
    Decision,
    ReportCreate,
    ReportListResponse,
    ReportResponse,
    ReviewCreate,
    ReviewResponse,
)
from backend.app.services.identity import Principal
from backend.app.services.lifecycle import ReportLifecycleService

router = APIRouter(prefix="/reports", tags=["reports"])


def to_report_response(report: Report) -> ReportResponse:
    """Convert a fully loaded Report model to ReportResponse."""
    return ReportResponse(
        id=report.id,
        title=report.title,
        class_id=report.class_id,
        class_name=report.school_class.name if report.school_class else "",
        reporter_id=report.reporter_id,
        reporter_name=report.reporter.name if report.reporter else "",
        reporter_email=report.reporter.email if report.reporter else None,
        item_evaluated=report.item_evaluated or [],
        general_comment=report.general_comment or "",
        category=report.category,
        status=report.status,
        submission_date=report.submission_date,
        created_at=report.created_at,
        updated_at=report.updated_at,
        approval=ApprovalResponse.model_validate(report.approval) if report.approval else None,
        reviews=[
            ReviewResponse(
                id=review.id,
                status=review.status,
                comments=review.comments,
                admin=review.admin.name if review.admin else None,
                reviewed_at=review.reviewed_at,
                created_at=review.created_at,
            )
            for review in report.reviews
        ],
    )


@router.post("", response_model=ApiResponse[ReportResponse], status_code=status.HTTP_201_CREATED)
async def submit_report(
    report_data: ReportCreate,
    principal: Principal = Depends(get_current_principal),
    service: ReportLifecycleService = Depends(get_lifecycle_service),
):
    """Submit today's inspection report for the caller's class."""
    report = await service.submit_report(principal.user_id, report_data)
    return success_response(to_report_response(report), "Report submitted successfully")


@router.get("", response_model=ApiResponse[ReportListResponse])
async def list_class_reports(
    filter_name: str = Query(default="all", alias="filter", description="daily, weekly, monthly or all"),
    search: str | None = None,
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1, le=100),
    principal: Principal = Depends(get_current_principal),
    service: ReportLifecycleService = Depends(get_lifecycle_service),
):
    """List reports of the caller's class, newest first."""
    reports, pagination = await service.list_class_reports(
        principal.user_id, filter_name=filter_name, search=search, page=page, limit=limit
    )
    return success_response(
        ReportListResponse(reports=[to_report_response(r) for r in reports], pagination=pagination),
        "Reports retrieved successfully",
    )


@router.get("/approval/today", response_model=ApiResponse[ApprovalView])
async def get_approval_view(
    principal: Principal = Depends(get_current_principal),
    service: ReportLifecycleService = Depends(get_lifecycle_service),
):
    """Today's report of the caller's class with both CS and CP decisions."""
    view = await service.get_approval_view(principal.user_id)
    return success_response(
        ApprovalView(
            report=to_report_response(view.report),
            user_action=view.user_action,
            other_role_action=view.other_role_action,
            student_role=view.student_role,
        ),
        "Report retrieved successfully",
    )


@router.get("/{report_id}", response_model=ApiResponse[ReportResponse])
async def get_report(
    report_id: str,
    principal: Principal = Depends(get_current_principal),
    service: ReportLifecycleService = Depends(get_lifecycle_service),
):
    report = await service.get_report(report_id, principal)
    return success_response(to_report_response(report), "Report retrieved successfully")


@router.get("/{report_id}/pdf")
async def download_pdf_report(
    report_id: str,
    principal: Principal = Depends(get_current_principal),
    service: ReportLifecycleService = Depends(get_lifecycle_service),
) -> Response:
    """Download a report as PDF."""
    filename, pdf_bytes = await service.export_report_pdf(report_id, principal)
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(filename)}"},
    )


async def _act(
    report_id: str,
    decision: Decision,
    body: ApprovalDecisionRequest | None,
    principal: Principal,
    service: ReportLifecycleService,
) -> dict:
    outcome = await service.act_on_report(
        report_id,
        principal.user_id,
        principal.student_role or "",
        decision,
        body.comments if body else None,
    )
    message = "Report approved successfully" if decision is Decision.APPROVE else "Report denied successfully"
    return success_response(
        ActionResult(
            approval=ApprovalResponse.model_validate(outcome.approval),
            report_status=outcome.report_status,
            action=outcome.action,
        ),
        message,
    )


@router.post("/{report_id}/approve", response_model=ApiResponse[ActionResult])
async def approve_report(
    report_id: str,
    body: ApprovalDecisionRequest | None = None,
    principal: Principal = Depends(get_current_principal),
    service: ReportLifecycleService = Depends(get_lifecycle_service),
):
    """Record the caller's CS or CP approval."""
    return await _act(report_id, Decision.APPROVE, body, principal, service)


@router.post("/{report_id}/deny", response_model=ApiResponse[ActionResult])
async def deny_report(
    report_id: str,
    body: ApprovalDecisionRequest | None = None,
    principal: Principal = Depends(get_current_principal),
    service: ReportLifecycleService = Depends(get_lifecycle_service),
):
    """Record the caller's CS or CP denial; comments are mandatory."""
    return await _act(report_id, Decision.DENY, body, principal, service)


@router.post("/{report_id}/reviews", response_model=ApiResponse[ReportResponse])
async def review_report(
    report_id: str,
    review: ReviewCreate,
    admin: Principal = Depends(require_admin),
    service: ReportLifecycleService = Depends(get_lifecycle_service),
):
    """Administrative decision on a report both representatives approved."""
    report = await service.review_report(report_id, admin.user_id, review.status, review.comments)
    return success_response(to_report_response(report), f"Report marked {review.status.lower()}")
