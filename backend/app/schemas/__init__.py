"""Pydantic schemas for API request/response validation."""

from backend.app.schemas.common import ApiResponse, Pagination
from backend.app.schemas.report import (
    ActionResult,
    ApprovalDecisionRequest,
    ApprovalResponse,
    ApprovalView,
    Decision,
    ItemEvaluation,
    ReportCreate,
    ReportListResponse,
    ReportResponse,
    ReviewCreate,
    ReviewResponse,
    RoleAction,
)
from backend.app.schemas.catalog import (
    ClassCreate,
    ClassResponse,
    ClassUpdate,
    ItemCreate,
    ItemResponse,
    ItemUpdate,
)
from backend.app.schemas.dashboard import (
    AdminOverview,
    AdminReportList,
    DailyDigest,
    ItemDetails,
    ItemTrends,
    ItemUsageOverview,
    OrganizedWeeks,
    RepresentativeOverview,
    WeekReports,
    WeeklyDigest,
)

__all__ = [
    "ApiResponse",
    "Pagination",
    "ActionResult",
    "ApprovalDecisionRequest",
    "ApprovalResponse",
    "ApprovalView",
    "Decision",
    "ItemEvaluation",
    "ReportCreate",
    "ReportListResponse",
    "ReportResponse",
    "ReviewCreate",
    "ReviewResponse",
    "RoleAction",
    "ClassCreate",
    "ClassResponse",
    "ClassUpdate",
    "ItemCreate",
    "ItemResponse",
    "ItemUpdate",
    "AdminOverview",
    "AdminReportList",
    "DailyDigest",
    "ItemDetails",
    "ItemTrends",
    "ItemUsageOverview",
    "OrganizedWeeks",
    "RepresentativeOverview",
    "WeekReports",
    "WeeklyDigest",
]
