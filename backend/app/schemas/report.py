"""Report lifecycle schemas."""

from datetime import date, datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from backend.app.models.report import ItemStatus
from backend.app.schemas.common import Pagination


class ItemEvaluation(BaseModel):
    """One inspected item inside a report (stored with camelCase keys)."""

    model_config = ConfigDict(populate_by_name=True)

    item_id: str = Field(..., min_length=1, alias="itemId", description="Catalog item id")
    name: str = Field(default="", description="Item display name")
    status: ItemStatus | None = Field(default=None, description="GOOD, BAD or FLAGGED; empty when unchecked")
    comment: str = Field(default="", description="Optional note")

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v: Any) -> Any:
        """Accept statuses in any case; blank means unchecked."""
        if isinstance(v, str):
            v = v.strip().upper()
            return v or None
        return v

    def to_record(self) -> dict[str, Any]:
        return {
            "itemId": self.item_id,
            "name": self.name,
            "status": self.status.value if self.status else None,
            "comment": self.comment,
        }


class ReportCreate(BaseModel):
    """Schema for submitting a daily inspection report."""

    item_evaluated: list[ItemEvaluation] = Field(
        ...,
        min_length=1,
        description="Ordered per-item inspection outcomes"
    )
    general_comment: str = Field(default="", max_length=5000, description="General comment")
    title: str | None = Field(default=None, max_length=255, description="Optional title")
    category: str | None = Field(default=None, max_length=32, description="Optional category tag")


class Decision(str, Enum):
    APPROVE = "APPROVE"
    DENY = "DENY"


class ApprovalDecisionRequest(BaseModel):
    """Body for approve/deny actions."""

    comments: str | None = Field(default=None, max_length=2000, description="Reviewer comments")


class ReviewCreate(BaseModel):
    """Administrative review decision."""

    status: Literal["APPROVED", "REVIEWED"] = Field(..., description="Terminal administrative decision")
    comments: str | None = Field(default=None, max_length=2000, description="Review comments")


class ApprovalResponse(BaseModel):
    """Snapshot of the CS/CP approval record."""

    report_id: str
    cs_student_id: str | None = None
    cp_student_id: str | None = None
    approved_by_cs: bool | None = None
    approved_by_cp: bool | None = None
    comments_cs: str | None = None
    comments_cp: str | None = None
    approved_at_cs: datetime | None = None
    approved_at_cp: datetime | None = None
    approval_cat_cs: str | None = None
    approval_cat_cp: str | None = None

    model_config = {"from_attributes": True}


class ReviewResponse(BaseModel):
    """Administrative review row."""

    id: str
    status: str
    comments: str | None = None
    admin: str | None = Field(default=None, description="Reviewing admin name")
    reviewed_at: datetime | None = None
    created_at: datetime


class ReportResponse(BaseModel):
    """Full report representation."""

    id: str
    title: str
    class_id: str
    class_name: str
    reporter_id: str
    reporter_name: str
    reporter_email: str | None = None
    item_evaluated: list[dict[str, Any]]
    general_comment: str
    category: str
    status: str
    submission_date: date
    created_at: datetime
    updated_at: datetime
    approval: ApprovalResponse | None = None
    reviews: list[ReviewResponse] = Field(default_factory=list)


class ReportListResponse(BaseModel):
    reports: list[ReportResponse]
    pagination: Pagination


class ActionResult(BaseModel):
    """Outcome of a CS/CP approve or deny action."""

    approval: ApprovalResponse
    report_status: str
    action: Literal["approved", "denied"]


class RoleAction(BaseModel):
    """A recorded CS/CP decision as seen from the approval screen."""

    role: str
    approved: bool
    comments: str | None = None
    acted_at: datetime | None = None
    category: str | None = None
    student_name: str | None = None


class ApprovalView(BaseModel):
    """Today's report of the caller's class with both roles' decisions."""

    report: ReportResponse
    user_action: RoleAction | None = None
    other_role_action: RoleAction | None = None
    student_role: str
