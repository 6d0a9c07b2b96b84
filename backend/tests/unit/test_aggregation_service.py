"""Service-level tests for the aggregation engine."""

from datetime import date, datetime, timedelta
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from backend.app.core.exceptions import AggregationUnavailableError, InputValidationError, ItemNotFoundError
from backend.app.schemas.report import Decision, ItemEvaluation, ReportCreate
from backend.app.services.aggregation import AggregationService

MONDAY = datetime(2024, 1, 1, 9, 0)


def _payload(*pairs: tuple[str, str]) -> ReportCreate:
    return ReportCreate(
        item_evaluated=[ItemEvaluation(item_id=item_id, name=item_id, status=status) for item_id, status in pairs]
    )


async def _submit_week(lifecycle, reporter_id: str, first_day: datetime, days: int):
    """One report per day, each with a GOOD and a BAD item."""
    return [
        await lifecycle.submit_report(
            reporter_id, _payload(("i1", "GOOD"), ("i2", "BAD")), now=first_day + timedelta(days=offset)
        )
        for offset in range(days)
    ]


class TestDailyDigest:
    @pytest.mark.asyncio
    async def test_bad_item_counts_as_flagged_and_pending(self, lifecycle, aggregation, seed):
        await lifecycle.submit_report(seed.reporter_id, _payload(("i1", "GOOD"), ("i2", "BAD")), now=MONDAY)

        digest = await aggregation.daily_digest(MONDAY.date())

        assert digest.stats.total == 1
        assert digest.stats.flagged == 1
        assert digest.stats.pending == 1
        assert digest.stats.approved == 0
        assert digest.display_date == "Monday, January 1, 2024"
        entry = digest.reports[0]
        assert entry.status == "pending"
        assert entry.representative == "Carol WS"
        assert entry.items_checked == 2
        assert entry.flagged_items == 1

    @pytest.mark.asyncio
    async def test_other_days_excluded(self, lifecycle, aggregation, seed):
        await lifecycle.submit_report(seed.reporter_id, _payload(("i1", "GOOD")), now=MONDAY)

        digest = await aggregation.daily_digest(date(2024, 1, 2))

        assert digest.stats.total == 0
        assert digest.reports == []


class TestWeeklyDigest:
    @pytest.mark.asyncio
    async def test_trend_is_zero_without_previous_week(self, lifecycle, aggregation, seed):
        await _submit_week(lifecycle, seed.reporter_id, MONDAY, 5)

        digest = await aggregation.weekly_digest(date(2024, 1, 7))

        assert digest.week_start == date(2024, 1, 1)
        assert digest.week_end == date(2024, 1, 7)
        assert digest.date_range == "Jan 1 - Jan 7, 2024"
        assert digest.weekly_stats.total_reports == 5
        assert digest.weekly_stats.total_representatives == 1
        assert digest.weekly_stats.flagged_items == 5
        assert digest.weekly_stats.trend == 0
        assert [d.day for d in digest.daily_breakdown] == ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
        assert [d.reports for d in digest.daily_breakdown] == [1, 1, 1, 1, 1, 0, 0]

    @pytest.mark.asyncio
    async def test_trend_against_previous_week(self, lifecycle, aggregation, seed):
        await _submit_week(lifecycle, seed.reporter_id, MONDAY - timedelta(days=7), 2)
        await _submit_week(lifecycle, seed.reporter_id, MONDAY, 5)

        digest = await aggregation.weekly_digest(date(2024, 1, 3))

        assert digest.weekly_stats.trend == 150.0

    @pytest.mark.asyncio
    async def test_top_performers_ranked_by_reports(self, lifecycle, aggregation, seed):
        await _submit_week(lifecycle, seed.reporter_id, MONDAY, 3)
        await lifecycle.submit_report(seed.cs_id, _payload(("i1", "GOOD"), ("i2", "")), now=MONDAY)

        digest = await aggregation.weekly_digest(MONDAY.date())

        performers = digest.top_performers
        assert [p.name for p in performers] == ["Carol WS", "Alice CS"]
        assert performers[0].reports == 3
        assert performers[0].completion == 100
        assert performers[1].completion == 50

    @pytest.mark.asyncio
    async def test_resolved_counts_reviewed_reports(self, lifecycle, aggregation, seed):
        report = await lifecycle.submit_report(seed.reporter_id, _payload(("i1", "GOOD")), now=MONDAY)
        await lifecycle.act_on_report(report.id, seed.cs_id, "CS", Decision.APPROVE, now=MONDAY)
        await lifecycle.act_on_report(report.id, seed.cp_id, "CP", Decision.APPROVE, now=MONDAY)
        await lifecycle.review_report(report.id, seed.admin_id, "APPROVED", now=MONDAY)

        digest = await aggregation.weekly_digest(MONDAY.date())

        assert digest.weekly_stats.resolved_issues == 1
        assert digest.daily_breakdown[0].approved == 1


class TestOrganizedByWeek:
    @pytest.mark.asyncio
    async def test_groups_into_monday_weeks_newest_first(self, lifecycle, aggregation, seed):
        await _submit_week(lifecycle, seed.reporter_id, MONDAY - timedelta(days=7), 2)
        await _submit_week(lifecycle, seed.reporter_id, MONDAY, 3)

        organized = await aggregation.organized_by_week(now=datetime(2024, 1, 10, 12, 0))

        assert [w.week_number for w in organized.weeks] == [1, 52]
        first = organized.weeks[0]
        assert first.start_date == "Jan 1"
        assert first.end_date == "Jan 7, 2024"
        assert first.total_reports == 3
        assert first.representatives == 1
        assert organized.total_stats.weeks == 2
        assert organized.total_stats.total_reports == 5
        assert organized.total_stats.avg_reports == 2
        assert organized.total_stats.total_flagged == 5

    @pytest.mark.asyncio
    async def test_search_by_label(self, lifecycle, aggregation, seed):
        await _submit_week(lifecycle, seed.reporter_id, MONDAY - timedelta(days=7), 1)
        await _submit_week(lifecycle, seed.reporter_id, MONDAY, 1)
        now = datetime(2024, 1, 10, 12, 0)

        by_label = await aggregation.organized_by_week(search="week 52", now=now)
        by_date = await aggregation.organized_by_week(search="jan 7", now=now)
        nothing = await aggregation.organized_by_week(search="march", now=now)

        assert [w.week_number for w in by_label.weeks] == [52]
        assert [w.week_number for w in by_date.weeks] == [1]
        assert nothing.weeks == []
        assert nothing.total_stats.avg_reports == 0

    @pytest.mark.asyncio
    async def test_lookback_excludes_old_reports(self, lifecycle, aggregation, seed):
        await lifecycle.submit_report(seed.reporter_id, _payload(("i1", "GOOD")), now=MONDAY)

        organized = await aggregation.organized_by_week(lookback_days=5, now=datetime(2024, 3, 1))

        assert organized.total_weeks == 0

    @pytest.mark.asyncio
    async def test_zero_lookback_is_not_replaced_by_default(self, lifecycle, aggregation, seed):
        await lifecycle.submit_report(seed.reporter_id, _payload(("i1", "GOOD")), now=MONDAY)

        organized = await aggregation.organized_by_week(lookback_days=0, now=MONDAY + timedelta(hours=1))

        assert organized.total_weeks == 0


class TestWeekReports:
    @pytest.mark.asyncio
    async def test_week_reports_stats(self, lifecycle, aggregation, seed):
        report = await lifecycle.submit_report(seed.reporter_id, _payload(("i1", "GOOD")), now=MONDAY)
        await lifecycle.submit_report(seed.cs_id, _payload(("i1", "GOOD")), now=MONDAY)
        await lifecycle.act_on_report(report.id, seed.cp_id, "CP", Decision.DENY, "dirty", now=MONDAY)

        week = await aggregation.week_reports(date(2024, 1, 4))

        assert week.stats.total == 2
        assert week.stats.rejected == 1
        assert week.stats.pending == 1
        assert week.week_info.week_number == 1
        assert sorted(r.status for r in week.reports) == ["pending", "rejected"]


class TestItemStats:
    @pytest.mark.asyncio
    async def test_usage_counts_and_unused_items(self, lifecycle, aggregation, seed):
        await lifecycle.submit_report(seed.reporter_id, _payload(("i1", "good"), ("i2", "BAD")), now=MONDAY)
        await lifecycle.submit_report(seed.cs_id, _payload(("i1", "FLAGGED")), now=MONDAY)

        overview = await aggregation.item_usage_stats()
        usage = {u.id: u for u in overview.items}

        assert usage["i1"].usage_count == 2
        assert usage["i1"].good_count == 1
        assert usage["i1"].flagged_count == 1
        assert usage["i1"].good_rate == 50
        assert usage["i2"].bad_count == 1
        assert usage["i3"].usage_count == 0
        assert overview.stats.total_items == 3
        assert overview.stats.total_usage == 3
        assert overview.stats.avg_good_rate == 25

    @pytest.mark.asyncio
    async def test_item_counted_once_per_report(self, lifecycle, aggregation, seed):
        await lifecycle.submit_report(seed.reporter_id, _payload(("i1", "GOOD"), ("i1", "BAD")), now=MONDAY)

        overview = await aggregation.item_usage_stats()

        assert {u.id: u.usage_count for u in overview.items}["i1"] == 1

    @pytest.mark.asyncio
    async def test_item_details(self, lifecycle, aggregation, seed):
        await lifecycle.submit_report(seed.reporter_id, _payload(("i2", "BAD")), now=MONDAY)

        details = await aggregation.item_details("i2")

        assert details.total_reports == 1
        assert details.item.bad_count == 1
        assert details.recent_evaluations[0].reporter == "Carol WS"
        assert details.recent_evaluations[0].status == "BAD"

    @pytest.mark.asyncio
    async def test_item_details_unknown(self, aggregation, seed):
        with pytest.raises(ItemNotFoundError):
            await aggregation.item_details("nope")

    @pytest.mark.asyncio
    async def test_item_trends(self, lifecycle, aggregation, seed):
        await lifecycle.submit_report(seed.reporter_id, _payload(("i1", "GOOD")), now=MONDAY)

        trends = await aggregation.item_trends("i1", days=3, now=datetime(2024, 1, 2, 18, 0))

        assert [p.date for p in trends.trends] == [date(2023, 12, 31), date(2024, 1, 1), date(2024, 1, 2)]
        assert [p.usage for p in trends.trends] == [0, 1, 0]
        assert trends.trends[1].good_rate == 100


class TestRepresentativeStats:
    @pytest.mark.asyncio
    async def test_active_representatives_only(self, lifecycle, aggregation, seed):
        await lifecycle.submit_report(seed.cs_id, _payload(("i1", "GOOD"), ("i2", "")), now=MONDAY)

        overview = await aggregation.representative_stats()
        by_name = {r.name: r for r in overview.representatives}

        assert set(by_name) == {"Alice CS", "Bob CP", "Carol WS", "Dan CS"}
        assert by_name["Alice CS"].reports_submitted == 1
        assert by_name["Alice CS"].avg_completion_rate == 50
        assert by_name["Alice CS"].department == "Computer"
        assert overview.departments == ["Computer", "Mathematics"]

    @pytest.mark.asyncio
    async def test_filters(self, aggregation, seed):
        by_department = await aggregation.representative_stats(department="mathematics")
        by_search = await aggregation.representative_stats(search="bob")

        assert [r.name for r in by_department.representatives] == ["Dan CS"]
        assert [r.name for r in by_search.representatives] == ["Bob CP"]


class TestAdminOverview:
    @pytest.mark.asyncio
    async def test_totals_and_activity(self, lifecycle, aggregation, seed):
        await lifecycle.submit_report(seed.reporter_id, _payload(("i1", "GOOD")), now=MONDAY)

        overview = await aggregation.admin_overview(now=datetime(2024, 1, 3, 12, 0))

        assert overview.total_students == 4
        assert overview.total_representatives == 4
        assert overview.total_classes == 2
        assert overview.total_reports == 1
        assert len(overview.weekly_activity) == 7
        assert overview.weekly_activity[-3].count == 1
        assert overview.recent_reports[0].status == "pending"

    @pytest.mark.asyncio
    async def test_recent_reports_capped_at_ten_newest(self, lifecycle, aggregation, seed):
        reports = await _submit_week(lifecycle, seed.reporter_id, MONDAY, 12)

        overview = await aggregation.admin_overview(now=MONDAY + timedelta(days=12))

        assert overview.total_reports == 12
        assert len(overview.recent_reports) == 10
        assert overview.recent_reports[0].id == reports[-1].id


class TestAllReports:
    @pytest.fixture
    async def class_reports(self, lifecycle, seed):
        """Four reports across both classes, one of them denied."""
        submitted = [
            await lifecycle.submit_report(user_id, _payload(("i1", "GOOD")), now=MONDAY + timedelta(minutes=minute))
            for minute, user_id in enumerate([seed.reporter_id, seed.cs_id, seed.cp_id, seed.outsider_cs_id])
        ]
        await lifecycle.act_on_report(submitted[0].id, seed.cp_id, "CP", Decision.DENY, "dirty", now=MONDAY)
        return submitted

    @pytest.mark.asyncio
    async def test_pages_across_classes(self, aggregation, class_reports):
        listing = await aggregation.all_reports(page=2, limit=3)

        assert len(listing.reports) == 1
        assert listing.pagination.total_reports == 4
        assert listing.pagination.total_pages == 2
        assert listing.pagination.has_prev is True
        assert listing.pagination.has_next is False
        assert listing.stats.total == 4
        assert listing.stats.pending == 3
        assert listing.stats.rejected == 1

    @pytest.mark.asyncio
    async def test_status_group_filter(self, aggregation, class_reports):
        rejected = await aggregation.all_reports(status="rejected")
        pending = await aggregation.all_reports(status="pending")

        assert [r.id for r in rejected.reports] == [class_reports[0].id]
        assert rejected.reports[0].status == "rejected"
        assert rejected.stats.total == 4
        assert len(pending.reports) == 3
        assert (await aggregation.all_reports(status="approved")).reports == []

    @pytest.mark.asyncio
    async def test_search_matches_reporter_and_class(self, aggregation, class_reports, seed):
        by_class = await aggregation.all_reports(search="mathematics")
        by_reporter = await aggregation.all_reports(search="Bob")

        assert [r.class_name for r in by_class.reports] == ["Mathematics Year 2"]
        assert [r.representative for r in by_reporter.reports] == ["Bob CP"]
        assert by_reporter.filters.search == "Bob"

    @pytest.mark.asyncio
    async def test_unknown_status_rejected(self, aggregation):
        with pytest.raises(InputValidationError):
            await aggregation.all_reports(status="archived")


class TestFailures:
    @pytest.mark.asyncio
    async def test_gateway_failure_surfaces_as_unavailable(self):
        gateway = AsyncMock()
        gateway.list_reports.side_effect = OperationalError("SELECT", {}, Exception("db down"))

        with pytest.raises(AggregationUnavailableError):
            await AggregationService(gateway).daily_digest(date(2024, 1, 1))
