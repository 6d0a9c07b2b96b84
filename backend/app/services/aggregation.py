"""Aggregation engine: read-only digests and dashboards over reports.

Every operation computes its figures on demand for an "as of" instant and never
writes. Gateway failures surface as ``AggregationUnavailableError``.
"""

import functools
import logging
import math
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Any

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError

from backend.app.core.config import settings
from backend.app.core.exceptions import AggregationUnavailableError, InputValidationError, ItemNotFoundError
from backend.app.db.gateway import ReportGateway
from backend.app.models.item import Item
from backend.app.models.report import ItemStatus, Report, ReportStatus
from backend.app.models.school_class import SchoolClass
from backend.app.models.user import REPRESENTATIVE_ROLES, Student, User, UserStatus
from backend.app.schemas.common import Pagination
from backend.app.schemas.dashboard import (
    AdminOverview,
    AdminReport,
    AdminReportFilters,
    AdminReportList,
    DailyBreakdown,
    DailyDigest,
    DayActivity,
    DigestReport,
    DigestStats,
    ItemDetails,
    ItemEvaluationRecord,
    ItemTrendPoint,
    ItemTrends,
    ItemUsage,
    ItemUsageOverview,
    ItemUsageTotals,
    OrganizedTotals,
    OrganizedWeeks,
    RecentReport,
    RepresentativeOverview,
    RepresentativeStat,
    RepresentativeTotals,
    TopPerformer,
    WeekInfo,
    WeekReport,
    WeekReportItem,
    WeekReports,
    WeekReportStats,
    WeekSummary,
    WeeklyDigest,
    WeeklyStats,
)
from backend.app.utils.dates import (
    day_bounds,
    iso_week_number,
    local_now,
    short_date,
    short_date_with_year,
    start_of_week,
    week_bounds,
)

logger = logging.getLogger(__name__)

RESOLVED_STATUSES = (ReportStatus.APPROVED.value, ReportStatus.REVIEWED.value)
IN_PROGRESS_STATUSES = (
    ReportStatus.SUBMITTED.value,
    ReportStatus.UNDER_REVIEW.value,
    ReportStatus.PARTIAL.value,
)
PROBLEM_ITEM_STATUSES = (ItemStatus.BAD.value, ItemStatus.FLAGGED.value)
TERMINAL_ITEM_STATUSES = {status.value for status in ItemStatus}

RECENT_EVALUATION_LIMIT = 10
RECENT_REPORT_SCAN = 50
RECENT_REPORTS_LIMIT = 10
STATUS_GROUPS = {
    "pending": IN_PROGRESS_STATUSES,
    "approved": RESOLVED_STATUSES,
    "rejected": (ReportStatus.REJECTED.value,),
}


# Pure helpers


def _item_status(evaluation: dict[str, Any]) -> str:
    return str(evaluation.get("status") or "").upper()


def is_resolved(report: Report) -> bool:
    return report.status in RESOLVED_STATUSES


def is_pending(report: Report) -> bool:
    return report.status not in RESOLVED_STATUSES and report.status != ReportStatus.REJECTED.value


def flagged_item_count(report: Report) -> int:
    return sum(1 for e in report.item_evaluated or [] if _item_status(e) in PROBLEM_ITEM_STATUSES)


def is_flagged(report: Report) -> bool:
    """REJECTED reports and reports with any BAD or FLAGGED item."""
    return report.status == ReportStatus.REJECTED.value or flagged_item_count(report) > 0


def classify(report: Report) -> str:
    """Single display label: approved, flagged (REJECTED) or pending."""
    if is_resolved(report):
        return "approved"
    if report.status == ReportStatus.REJECTED.value:
        return "flagged"
    return "pending"


def review_label(report: Report) -> str:
    """Review outcome label: approved, rejected or pending."""
    if is_resolved(report):
        return "approved"
    if report.status == ReportStatus.REJECTED.value:
        return "rejected"
    return "pending"


def checked_item_count(report: Report) -> int:
    return sum(1 for e in report.item_evaluated or [] if _item_status(e) in TERMINAL_ITEM_STATUSES)


def completion_rate(report: Report) -> float:
    """Percent of items carrying a GOOD, BAD or FLAGGED outcome; 0 for an empty report."""
    total = len(report.item_evaluated or [])
    if not total:
        return 0.0
    return checked_item_count(report) / total * 100


def weekly_trend(current: int, previous: int) -> float:
    """Percent change against the previous window, 0 when it was empty."""
    if previous == 0:
        return 0
    return round((current - previous) / previous * 100, 1)


def digest_stats(reports: list[Report]) -> DigestStats:
    return DigestStats(
        total=len(reports),
        pending=sum(1 for r in reports if is_pending(r)),
        approved=sum(1 for r in reports if is_resolved(r)),
        flagged=sum(1 for r in reports if is_flagged(r)),
    )


def _evaluation_for(report: Report, item_id: str) -> dict[str, Any] | None:
    """First evaluation of ``item_id`` in the report; a report counts once per item."""
    for evaluation in report.item_evaluated or []:
        if evaluation.get("itemId") == item_id:
            return evaluation
    return None


def _good_rate(good: int, usage: int) -> int:
    return round(good / usage * 100) if usage else 0


def _tally(item: Item, reports: list[Report]) -> ItemUsage:
    usage = ItemUsage(id=item.id, name=item.name, description=item.description or "")
    for report in reports:
        evaluation = _evaluation_for(report, item.id)
        if evaluation is None:
            continue
        usage.usage_count += 1
        status = _item_status(evaluation)
        if status == ItemStatus.GOOD.value:
            usage.good_count += 1
        elif status == ItemStatus.BAD.value:
            usage.bad_count += 1
        elif status == ItemStatus.FLAGGED.value:
            usage.flagged_count += 1
    usage.good_rate = _good_rate(usage.good_count, usage.usage_count)
    return usage


def department_of(class_name: str | None) -> str:
    if not class_name or not class_name.split():
        return "General"
    return class_name.split()[0]


def _reporter_name(report: Report) -> str:
    return report.reporter.name if report.reporter else "Unknown"


def _class_name(report: Report) -> str:
    return report.school_class.name if report.school_class else "Unknown"


def _unavailable_on_db_error(func):
    """Surface gateway failures of a read operation as AggregationUnavailableError."""

    @functools.wraps(func)
    async def wrapper(self, *args, **kwargs):
        try:
            return await func(self, *args, **kwargs)
        except SQLAlchemyError as e:
            logger.exception(f"[DIGEST] {func.__name__} failed")
            raise AggregationUnavailableError(func.__name__, e) from e

    return wrapper


class AggregationService:
    """Digests, weekly views and catalog/representative statistics."""

    def __init__(self, gateway: ReportGateway):
        self.gateway = gateway

    async def _reports_between(self, start: datetime, end: datetime, newest_first: bool = True) -> list[Report]:
        return await self.gateway.list_reports(
            Report.created_at >= start,
            Report.created_at < end,
            newest_first=newest_first,
        )

    @_unavailable_on_db_error
    async def daily_digest(self, day: date | None = None) -> DailyDigest:
        day = day or local_now().date()
        reports = await self._reports_between(*day_bounds(day))

        logger.info(f"[DIGEST] Daily digest for {day}: {len(reports)} reports")

        return DailyDigest(
            date=day,
            display_date=f"{day:%A, %B} {day.day}, {day.year}",
            stats=digest_stats(reports),
            reports=[
                DigestReport(
                    id=r.id,
                    title=r.title,
                    representative=_reporter_name(r),
                    class_name=_class_name(r),
                    status=classify(r),
                    created_at=r.created_at,
                    items_checked=checked_item_count(r),
                    total_items=len(r.item_evaluated or []),
                    flagged_items=flagged_item_count(r),
                    general_comment=r.general_comment or "",
                )
                for r in reports
            ],
        )

    @_unavailable_on_db_error
    async def weekly_digest(self, reference_date: date | None = None) -> WeeklyDigest:
        """
        Summarize the Monday-anchored week containing ``reference_date``.

        Top performers are ranked by report count, then by mean completion rate
        maintained incrementally per reporter.
        """
        reference_date = reference_date or local_now().date()
        week_start, week_end = week_bounds(reference_date)
        reports = await self._reports_between(week_start, week_end, newest_first=False)
        previous_count = await self.gateway.count_reports(
            Report.created_at >= week_start - timedelta(days=7),
            Report.created_at < week_start,
        )

        by_day: dict[date, list[Report]] = defaultdict(list)
        for report in reports:
            by_day[report.created_at.date()].append(report)

        breakdown = []
        for offset in range(7):
            day = week_start.date() + timedelta(days=offset)
            day_reports = by_day.get(day, [])
            breakdown.append(
                DailyBreakdown(
                    day=f"{day:%a}",
                    date=day,
                    reports=len(day_reports),
                    flagged=sum(1 for r in day_reports if is_flagged(r)),
                    approved=sum(1 for r in day_reports if is_resolved(r)),
                )
            )

        performers: dict[str, dict[str, Any]] = {}
        for report in reports:
            entry = performers.setdefault(
                report.reporter_id,
                {"name": _reporter_name(report), "class_name": _class_name(report), "reports": 0, "completion": 0.0},
            )
            entry["reports"] += 1
            n = entry["reports"]
            entry["completion"] = (entry["completion"] * (n - 1) + completion_rate(report)) / n

        ranked = sorted(
            performers.items(),
            key=lambda kv: (kv[1]["reports"], kv[1]["completion"]),
            reverse=True,
        )[: settings.top_performers_limit]

        last_day = week_start.date() + timedelta(days=6)
        return WeeklyDigest(
            week_start=week_start.date(),
            week_end=last_day,
            date_range=f"{short_date(week_start.date())} - {short_date_with_year(last_day)}",
            weekly_stats=WeeklyStats(
                total_reports=len(reports),
                total_representatives=len(performers),
                flagged_items=sum(1 for r in reports if is_flagged(r)),
                resolved_issues=sum(1 for r in reports if is_resolved(r)),
                trend=weekly_trend(len(reports), previous_count),
            ),
            daily_breakdown=breakdown,
            top_performers=[
                TopPerformer(
                    reporter_id=reporter_id,
                    name=entry["name"],
                    class_name=entry["class_name"],
                    reports=entry["reports"],
                    completion=round(entry["completion"]),
                )
                for reporter_id, entry in ranked
            ],
        )

    @_unavailable_on_db_error
    async def organized_by_week(
        self,
        lookback_days: int | None = None,
        search: str | None = None,
        now: datetime | None = None,
    ) -> OrganizedWeeks:
        """Reports of the lookback window grouped into Monday-anchored weeks, newest week first."""
        now = now or local_now()
        if lookback_days is None:
            lookback_days = settings.organized_lookback_days
        reports = await self.gateway.list_reports(Report.created_at >= now - timedelta(days=lookback_days))

        buckets: dict[date, list[Report]] = defaultdict(list)
        for report in reports:
            buckets[start_of_week(report.created_at.date())].append(report)

        weeks = []
        for monday in sorted(buckets, reverse=True):
            bucket = buckets[monday]
            stats = digest_stats(bucket)
            sunday = monday + timedelta(days=6)
            weeks.append(
                WeekSummary(
                    week_number=iso_week_number(monday),
                    start_date=short_date(monday),
                    end_date=short_date_with_year(sunday),
                    raw_start_date=monday,
                    raw_end_date=sunday,
                    total_reports=stats.total,
                    approved=stats.approved,
                    pending=stats.pending,
                    flagged=stats.flagged,
                    representatives=len({r.reporter_id for r in bucket}),
                )
            )

        if search:
            term = search.strip().lower()
            weeks = [
                w for w in weeks
                if term in w.start_date.lower()
                or term in w.end_date.lower()
                or term in f"week {w.week_number}"
            ]

        total_reports = sum(w.total_reports for w in weeks)
        return OrganizedWeeks(
            weeks=weeks,
            total_stats=OrganizedTotals(
                weeks=len(weeks),
                total_reports=total_reports,
                avg_reports=round(total_reports / len(weeks)) if weeks else 0,
                total_flagged=sum(w.flagged for w in weeks),
            ),
            total_weeks=len(weeks),
        )

    @_unavailable_on_db_error
    async def week_reports(self, week_start: date) -> WeekReports:
        start, end = week_bounds(week_start)
        reports = await self._reports_between(start, end)

        return WeekReports(
            reports=[
                WeekReport(
                    id=r.id,
                    title=r.title,
                    representative=_reporter_name(r),
                    class_name=_class_name(r),
                    status=review_label(r),
                    created_at=r.created_at,
                    items=[
                        WeekReportItem(
                            name=e.get("name") or "",
                            status=_item_status(e),
                            comment=e.get("comment") or "",
                        )
                        for e in r.item_evaluated or []
                    ],
                    general_comment=r.general_comment or "",
                )
                for r in reports
            ],
            stats=WeekReportStats(
                total=len(reports),
                approved=sum(1 for r in reports if is_resolved(r)),
                pending=sum(1 for r in reports if r.status in IN_PROGRESS_STATUSES),
                rejected=sum(1 for r in reports if r.status == ReportStatus.REJECTED.value),
            ),
            week_info=WeekInfo(
                week_number=iso_week_number(start.date()),
                start_date=short_date(start.date()),
                end_date=short_date_with_year(start.date() + timedelta(days=6)),
                total_reports=len(reports),
            ),
        )

    @_unavailable_on_db_error
    async def all_reports(
        self,
        status: str = "all",
        search: str | None = None,
        page: int = 1,
        limit: int | None = None,
    ) -> AdminReportList:
        """Cross-class report listing, newest first, filtered by status group and free text."""
        if status != "all" and status not in STATUS_GROUPS:
            raise InputValidationError(f"status must be one of {['all', *STATUS_GROUPS]}")
        page = max(page, 1)
        limit = limit or settings.default_page_size

        conditions = []
        if status != "all":
            conditions.append(Report.status.in_(STATUS_GROUPS[status]))
        if search:
            pattern = f"%{search}%"
            conditions.append(
                or_(
                    Report.title.ilike(pattern),
                    Report.reporter.has(User.name.ilike(pattern)),
                    Report.school_class.has(SchoolClass.name.ilike(pattern)),
                )
            )

        total = await self.gateway.count_reports(*conditions)
        reports = await self.gateway.list_reports(*conditions, offset=(page - 1) * limit, limit=limit)
        total_pages = math.ceil(total / limit) if total else 0

        return AdminReportList(
            reports=[
                AdminReport(
                    id=r.id,
                    title=r.title,
                    representative=_reporter_name(r),
                    class_name=_class_name(r),
                    status=review_label(r),
                    created_at=r.created_at,
                    items_checked=checked_item_count(r),
                    total_items=len(r.item_evaluated or []),
                    flagged_items=flagged_item_count(r),
                    general_comment=r.general_comment or "",
                )
                for r in reports
            ],
            pagination=Pagination(
                current_page=page,
                total_pages=total_pages,
                total_reports=total,
                has_next=page < total_pages,
                has_prev=page > 1,
            ),
            stats=WeekReportStats(
                total=await self.gateway.count_reports(),
                pending=await self.gateway.count_reports(Report.status.in_(STATUS_GROUPS["pending"])),
                approved=await self.gateway.count_reports(Report.status.in_(STATUS_GROUPS["approved"])),
                rejected=await self.gateway.count_reports(Report.status.in_(STATUS_GROUPS["rejected"])),
            ),
            filters=AdminReportFilters(status=status, search=search or ""),
        )

    @_unavailable_on_db_error
    async def item_usage_stats(self) -> ItemUsageOverview:
        """Usage and outcome counts for every catalog item, including unused ones."""
        items = await self.gateway.list_items()
        reports = await self.gateway.list_reports(with_details=False)
        usages = [_tally(item, reports) for item in items]

        used = [u for u in usages if u.usage_count]
        return ItemUsageOverview(
            items=usages,
            stats=ItemUsageTotals(
                total_items=len(usages),
                total_usage=sum(u.usage_count for u in usages),
                avg_good_rate=round(sum(u.good_rate for u in used) / len(used)) if used else 0,
            ),
        )

    async def _require_item(self, item_id: str) -> Item:
        item = await self.gateway.get_item(item_id)
        if item is None:
            raise ItemNotFoundError(item_id)
        return item

    @_unavailable_on_db_error
    async def item_details(self, item_id: str) -> ItemDetails:
        item = await self._require_item(item_id)
        reports = await self.gateway.reports_with_item(item_id)

        recent = []
        for report in reports[:RECENT_REPORT_SCAN]:
            evaluation = _evaluation_for(report, item_id)
            if evaluation is None:
                continue
            recent.append(
                ItemEvaluationRecord(
                    report_id=report.id,
                    report_title=report.title,
                    reporter=_reporter_name(report),
                    class_name=_class_name(report),
                    status=_item_status(evaluation) or None,
                    comment=evaluation.get("comment") or "",
                    evaluated_at=report.created_at,
                )
            )
            if len(recent) == RECENT_EVALUATION_LIMIT:
                break

        return ItemDetails(item=_tally(item, reports), recent_evaluations=recent, total_reports=len(reports))

    @_unavailable_on_db_error
    async def item_trends(self, item_id: str, days: int = 7, now: datetime | None = None) -> ItemTrends:
        """Per-day usage of an item over the last ``days`` days, oldest day first."""
        item = await self._require_item(item_id)
        today = (now or local_now()).date()
        first_day = today - timedelta(days=days - 1)
        reports = await self.gateway.reports_with_item(item_id, Report.created_at >= day_bounds(first_day)[0])

        by_day: dict[date, list[Report]] = defaultdict(list)
        for report in reports:
            by_day[report.created_at.date()].append(report)

        trends = []
        for offset in range(days):
            day = first_day + timedelta(days=offset)
            usage = _tally(item, by_day.get(day, []))
            trends.append(
                ItemTrendPoint(
                    date=day,
                    usage=usage.usage_count,
                    good=usage.good_count,
                    bad=usage.bad_count,
                    flagged=usage.flagged_count,
                    good_rate=usage.good_rate,
                )
            )
        return ItemTrends(item_id=item_id, period_days=days, trends=trends)

    @_unavailable_on_db_error
    async def representative_stats(
        self,
        search: str | None = None,
        department: str | None = None,
    ) -> RepresentativeOverview:
        """Report counts and mean completion for active CS, CP, CC and WS students."""
        students = await self.gateway.list_students(
            Student.student_role.in_(REPRESENTATIVE_ROLES),
            User.status == UserStatus.ACTIVE.value,
        )
        user_ids = [s.user_id for s in students]
        reports = (
            await self.gateway.list_reports(Report.reporter_id.in_(user_ids), with_details=False)
            if user_ids else []
        )
        by_reporter: dict[str, list[Report]] = defaultdict(list)
        for report in reports:
            by_reporter[report.reporter_id].append(report)

        representatives = []
        for student in students:
            authored = by_reporter.get(student.user_id, [])
            class_name = student.school_class.name if student.school_class else None
            mean = sum(completion_rate(r) for r in authored) / len(authored) if authored else 0
            representatives.append(
                RepresentativeStat(
                    user_id=student.user_id,
                    name=student.user.name,
                    email=student.user.email,
                    phone=student.user.phone,
                    class_name=class_name or "Unassigned",
                    department=department_of(class_name),
                    student_role=student.student_role,
                    reports_submitted=len(authored),
                    avg_completion_rate=round(mean),
                    status=student.user.status,
                )
            )

        departments = sorted({r.department for r in representatives})

        if search:
            term = search.strip().lower()
            representatives = [
                r for r in representatives
                if term in r.name.lower() or term in r.email.lower() or term in r.class_name.lower()
            ]
        if department and department.lower() != "all":
            representatives = [r for r in representatives if r.department.lower() == department.lower()]

        return RepresentativeOverview(
            representatives=representatives,
            stats=RepresentativeTotals(
                total=len(representatives),
                active=sum(1 for r in representatives if r.status == UserStatus.ACTIVE.value),
                departments=len(departments),
            ),
            departments=departments,
        )

    @_unavailable_on_db_error
    async def admin_overview(self, now: datetime | None = None) -> AdminOverview:
        today = (now or local_now()).date()
        first_day = today - timedelta(days=6)
        active = User.status == UserStatus.ACTIVE.value

        week = await self.gateway.list_reports(
            Report.created_at >= day_bounds(first_day)[0],
            Report.created_at < day_bounds(today)[1],
            with_details=False,
        )
        per_day: dict[date, int] = defaultdict(int)
        for report in week:
            per_day[report.created_at.date()] += 1

        recent = await self.gateway.list_reports(limit=RECENT_REPORTS_LIMIT)

        return AdminOverview(
            total_students=await self.gateway.count_students(active),
            total_representatives=await self.gateway.count_students(
                active, Student.student_role.in_(REPRESENTATIVE_ROLES)
            ),
            total_classes=await self.gateway.count_classes(),
            total_reports=await self.gateway.count_reports(),
            weekly_activity=[
                DayActivity(day=f"{d:%a}", count=per_day.get(d, 0))
                for d in (first_day + timedelta(days=i) for i in range(7))
            ],
            recent_reports=[
                RecentReport(
                    id=r.id,
                    title=r.title,
                    status=classify(r),
                    date=r.created_at.date(),
                    representative=_reporter_name(r),
                    class_name=_class_name(r),
                )
                for r in recent
            ],
        )
