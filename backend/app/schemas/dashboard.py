"""Dashboard and statistics schemas."""

from datetime import date, datetime

from pydantic import BaseModel, Field

from backend.app.schemas.common import Pagination


class DigestStats(BaseModel):
    """Counts for a set of reports; flagged overlaps with pending/approved."""

    total: int = 0
    pending: int = 0
    approved: int = 0
    flagged: int = 0


class DigestReport(BaseModel):
    """A report as listed on the daily digest."""

    id: str
    title: str
    representative: str
    class_name: str
    status: str = Field(..., description="approved, pending or flagged")
    created_at: datetime
    items_checked: int
    total_items: int
    flagged_items: int
    general_comment: str = ""


class DailyDigest(BaseModel):
    date: date
    display_date: str
    stats: DigestStats
    reports: list[DigestReport]


class DailyBreakdown(BaseModel):
    day: str
    date: date
    reports: int
    flagged: int
    approved: int


class TopPerformer(BaseModel):
    reporter_id: str
    name: str
    class_name: str
    reports: int
    completion: int = Field(..., description="Mean completion rate, rounded percent")


class WeeklyStats(BaseModel):
    total_reports: int
    total_representatives: int
    flagged_items: int
    resolved_issues: int
    trend: float = Field(..., description="Percent change against the previous 7 days")


class WeeklyDigest(BaseModel):
    week_start: date
    week_end: date
    date_range: str
    weekly_stats: WeeklyStats
    daily_breakdown: list[DailyBreakdown]
    top_performers: list[TopPerformer]


class WeekSummary(BaseModel):
    week_number: int
    start_date: str
    end_date: str
    raw_start_date: date
    raw_end_date: date
    total_reports: int
    approved: int
    pending: int
    flagged: int
    representatives: int


class OrganizedTotals(BaseModel):
    weeks: int
    total_reports: int
    avg_reports: int
    total_flagged: int


class OrganizedWeeks(BaseModel):
    weeks: list[WeekSummary]
    total_stats: OrganizedTotals
    total_weeks: int


class WeekReportItem(BaseModel):
    name: str
    status: str
    comment: str = ""


class WeekReport(BaseModel):
    id: str
    title: str
    representative: str
    class_name: str
    status: str = Field(..., description="approved, pending or rejected")
    created_at: datetime
    items: list[WeekReportItem]
    general_comment: str = ""


class WeekReportStats(BaseModel):
    total: int
    approved: int
    pending: int
    rejected: int


class WeekInfo(BaseModel):
    week_number: int
    start_date: str
    end_date: str
    total_reports: int


class WeekReports(BaseModel):
    reports: list[WeekReport]
    stats: WeekReportStats
    week_info: WeekInfo


class ItemUsage(BaseModel):
    id: str
    name: str
    description: str = ""
    usage_count: int = 0
    good_count: int = 0
    bad_count: int = 0
    flagged_count: int = 0
    good_rate: int = Field(default=0, description="Rounded percent of GOOD outcomes")


class ItemUsageTotals(BaseModel):
    total_items: int
    total_usage: int
    avg_good_rate: int


class ItemUsageOverview(BaseModel):
    items: list[ItemUsage]
    stats: ItemUsageTotals


class ItemEvaluationRecord(BaseModel):
    report_id: str
    report_title: str
    reporter: str
    class_name: str
    status: str | None
    comment: str = ""
    evaluated_at: datetime


class ItemDetails(BaseModel):
    item: ItemUsage
    recent_evaluations: list[ItemEvaluationRecord]
    total_reports: int


class ItemTrendPoint(BaseModel):
    date: date
    usage: int
    good: int
    bad: int
    flagged: int
    good_rate: int


class ItemTrends(BaseModel):
    item_id: str
    period_days: int
    trends: list[ItemTrendPoint]


class RepresentativeStat(BaseModel):
    user_id: str
    name: str
    email: str
    phone: str | None = None
    class_name: str
    department: str
    student_role: str
    reports_submitted: int
    avg_completion_rate: int
    status: str


class RepresentativeTotals(BaseModel):
    total: int
    active: int
    departments: int


class RepresentativeOverview(BaseModel):
    representatives: list[RepresentativeStat]
    stats: RepresentativeTotals
    departments: list[str]


class DayActivity(BaseModel):
    day: str
    count: int


class RecentReport(BaseModel):
    id: str
    title: str
    status: str
    date: date
    representative: str
    class_name: str


class AdminOverview(BaseModel):
    total_students: int
    total_representatives: int
    total_classes: int
    total_reports: int
    weekly_activity: list[DayActivity]
    recent_reports: list[RecentReport]


class AdminReport(BaseModel):
    id: str
    title: str
    representative: str
    class_name: str
    status: str = Field(..., description="approved, pending or rejected")
    created_at: datetime
    items_checked: int
    total_items: int
    flagged_items: int
    general_comment: str = ""


class AdminReportFilters(BaseModel):
    status: str
    search: str = ""


class AdminReportList(BaseModel):
    """One page of the cross-class report listing with store-wide status counts."""

    reports: list[AdminReport]
    pagination: Pagination
    stats: WeekReportStats
    filters: AdminReportFilters
