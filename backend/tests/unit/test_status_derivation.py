"""Unit tests for report status derivation and digest classification."""

from datetime import datetime

import pytest

from backend.app.models.approval import ReportApproval
from backend.app.models.report import Report, ReportStatus
from backend.app.services.aggregation import (
    classify,
    completion_rate,
    department_of,
    is_flagged,
    is_pending,
    weekly_trend,
)
from backend.app.services.lifecycle import derive_status, filter_window


def _approval(cs=None, cp=None) -> ReportApproval:
    return ReportApproval(report_id="r1", approved_by_cs=cs, approved_by_cp=cp)


def _report(status: str, *statuses: str | None) -> Report:
    return Report(
        id="r1",
        title="t",
        status=status,
        item_evaluated=[{"itemId": f"i{n}", "status": s} for n, s in enumerate(statuses)],
    )


class TestDeriveStatus:
    @pytest.mark.parametrize(
        "cs, cp, expected",
        [
            (True, True, ReportStatus.UNDER_REVIEW),
            (True, None, ReportStatus.PARTIAL),
            (None, True, ReportStatus.PARTIAL),
            (False, None, ReportStatus.REJECTED),
            (None, False, ReportStatus.REJECTED),
            (True, False, ReportStatus.REJECTED),
            (False, True, ReportStatus.REJECTED),
            (False, False, ReportStatus.REJECTED),
        ],
    )
    def test_truth_table(self, cs, cp, expected):
        assert derive_status(_approval(cs, cp)) is expected


class TestClassification:
    def test_bad_item_flags_a_pending_report(self):
        report = _report("SUBMITTED", "GOOD", "BAD")
        assert is_flagged(report)
        assert is_pending(report)
        assert classify(report) == "pending"

    def test_rejected_is_flagged_not_pending(self):
        report = _report("REJECTED", "GOOD")
        assert is_flagged(report)
        assert not is_pending(report)
        assert classify(report) == "flagged"

    @pytest.mark.parametrize("status", ["APPROVED", "REVIEWED"])
    def test_resolved_is_approved(self, status):
        assert classify(_report(status, "GOOD")) == "approved"

    def test_item_status_is_case_insensitive(self):
        assert is_flagged(_report("SUBMITTED", "flagged"))


class TestCompletionRate:
    def test_partial_completion(self):
        assert completion_rate(_report("SUBMITTED", "GOOD", None, "BAD", "")) == 50

    def test_empty_report(self):
        assert completion_rate(_report("SUBMITTED")) == 0


class TestWeeklyTrend:
    def test_empty_previous_window_gives_zero(self):
        assert weekly_trend(5, 0) == 0

    def test_growth_rounded_to_one_decimal(self):
        assert weekly_trend(5, 3) == 66.7

    def test_decline(self):
        assert weekly_trend(1, 4) == -75.0


class TestHelpers:
    def test_department_is_first_word(self):
        assert department_of("Computer Science Year 1") == "Computer"

    def test_department_defaults_to_general(self):
        assert department_of(None) == "General"
        assert department_of("  ") == "General"

    def test_filter_windows(self):
        now = datetime(2024, 3, 10, 15, 0)
        assert filter_window("daily", now) == (datetime(2024, 3, 10), now)
        assert filter_window("weekly", now) == (datetime(2024, 3, 3, 15, 0), now)
        assert filter_window("all", now) is None
