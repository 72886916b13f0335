"""
Tests for the reconciliation engine.

Covers:
- Threshold classification around 0.17h
- Break handling for gross vs. pre-netted attendance
- Missing attendance and unscheduled attendance days
- Multiple shifts on one date
- Month filtering, duplicate dates and ordering
- Summary totals
"""

from datetime import date, time
from decimal import Decimal

from hypothesis import given, settings
from hypothesis import strategies as st

from shiftpay_config.schema import ReconciliationPolicy
from shiftpay_engines.reconciliation import (
    classify_difference,
    net_worked_hours,
    reconcile,
    summarize_days,
)
from shiftpay_modules.worktime.models import (
    NO_DATA,
    NO_SCHEDULE,
    AttendanceRecord,
    DayStatus,
    ReviewKey,
    ScheduleEntry,
)

KEY = ReviewKey("emp-1", "branch-a", "2025-09")


def _schedule(day: int, start=time(9, 0), end=time(18, 0), break_hours="1") -> ScheduleEntry:
    return ScheduleEntry(
        employee_id="emp-1",
        branch_id="branch-a",
        work_date=date(2025, 9, day),
        start_time=start,
        end_time=end,
        break_hours=Decimal(break_hours),
        employee_name="Kim",
        branch_name="Gangnam",
    )


def _netted(day: int, hours: str, month: int = 9) -> AttendanceRecord:
    return AttendanceRecord(
        work_date=date(2025, month, day),
        start_time="09:00",
        end_time="18:00",
        total_hours=Decimal(hours),
        is_pre_netted=True,
    )


def _gross(day: int, hours: str) -> AttendanceRecord:
    return AttendanceRecord(
        work_date=date(2025, 9, day),
        start_time=f"2025-09-{day:02d} 09:00:00",
        end_time=f"2025-09-{day:02d} 18:00:00",
        total_hours=Decimal(hours),
        is_pre_netted=False,
    )


class TestThreshold:

    def test_within_threshold_is_match(self):
        days = reconcile(KEY, [_schedule(1)], [_netted(1, "8.15")])

        assert days[0].scheduled_hours == Decimal("8")
        assert days[0].difference == Decimal("0.15")
        assert days[0].status is DayStatus.TIME_MATCH

    def test_beyond_threshold_needs_review(self):
        days = reconcile(KEY, [_schedule(1)], [_netted(1, "8.2")])

        assert days[0].status is DayStatus.REVIEW_REQUIRED

    def test_threshold_itself_needs_review(self):
        assert classify_difference(Decimal("0.17"), ReconciliationPolicy()) is DayStatus.REVIEW_REQUIRED
        assert classify_difference(Decimal("-0.17"), ReconciliationPolicy()) is DayStatus.REVIEW_REQUIRED
        assert classify_difference(Decimal("0.1699"), ReconciliationPolicy()) is DayStatus.TIME_MATCH

    def test_short_day_needs_review(self):
        days = reconcile(KEY, [_schedule(1)], [_netted(1, "7.5")])

        assert days[0].difference == Decimal("-0.5")
        assert days[0].status is DayStatus.REVIEW_REQUIRED

    def test_custom_policy(self):
        policy = ReconciliationPolicy(review_threshold_hours=Decimal("1"))

        days = reconcile(KEY, [_schedule(1)], [_netted(1, "8.5")], policy)

        assert days[0].status is DayStatus.TIME_MATCH


class TestBreakHandling:

    def test_gross_attendance_has_break_subtracted(self):
        days = reconcile(KEY, [_schedule(1)], [_gross(1, "9")])

        assert days[0].raw_actual_hours == Decimal("9")
        assert days[0].actual_worked_hours == Decimal("8")
        assert days[0].status is DayStatus.TIME_MATCH

    def test_pre_netted_attendance_kept(self):
        days = reconcile(KEY, [_schedule(1)], [_netted(1, "8")])

        assert days[0].actual_worked_hours == Decimal("8")

    def test_break_never_drives_below_zero(self):
        assert net_worked_hours(_gross(1, "0.5"), Decimal("1")) == Decimal("0")


class TestMissingAndUnscheduled:

    def test_schedule_without_attendance(self):
        days = reconcile(KEY, [_schedule(1)], [])

        assert len(days) == 1
        assert days[0].actual_time_range == NO_DATA
        assert days[0].actual_worked_hours == Decimal("0")
        assert days[0].difference == Decimal("-8")
        assert days[0].status is DayStatus.REVIEW_REQUIRED

    def test_unscheduled_attendance_always_needs_review(self):
        days = reconcile(KEY, [], [_netted(3, "0.05")])

        assert days[0].scheduled_time_range == NO_SCHEDULE
        assert days[0].scheduled_hours == Decimal("0")
        assert days[0].actual_worked_hours == Decimal("0.05")
        assert days[0].status is DayStatus.REVIEW_REQUIRED

    @given(st.decimals(min_value=Decimal("0.01"), max_value=Decimal("24"), places=2))
    @settings(max_examples=50, deadline=None)
    def test_unscheduled_status_independent_of_hours(self, hours):
        days = reconcile(KEY, [], [_netted(3, str(hours))])

        assert days[0].status is DayStatus.REVIEW_REQUIRED

    def test_nothing_in(self):
        assert reconcile(KEY, [], []) == []


class TestDayAssembly:

    def test_output_sorted_by_date(self):
        days = reconcile(
            KEY,
            [_schedule(5), _schedule(2)],
            [_netted(9, "4"), _netted(2, "8"), _netted(5, "8")],
        )

        assert [d.work_date.day for d in days] == [2, 5, 9]

    def test_two_shifts_on_one_date_are_merged(self):
        schedules = [
            _schedule(1, start=time(15, 0), end=time(18, 0), break_hours="0"),
            _schedule(1, start=time(10, 0), end=time(14, 0), break_hours="0"),
        ]

        days = reconcile(KEY, schedules, [_netted(1, "7")])

        assert len(days) == 1
        assert days[0].scheduled_hours == Decimal("7")
        assert days[0].scheduled_time_range == "10:00-14:00, 15:00-18:00"
        assert days[0].status is DayStatus.TIME_MATCH

    def test_attendance_outside_month_ignored(self):
        days = reconcile(KEY, [], [_netted(1, "8", month=10)])

        assert days == []

    def test_first_record_for_a_date_wins(self):
        days = reconcile(KEY, [_schedule(1)], [_netted(1, "8"), _netted(1, "3")])

        assert days[0].actual_worked_hours == Decimal("8")

    def test_names_and_key_carried(self):
        day = reconcile(KEY, [_schedule(1)], [_netted(1, "8")])[0]

        assert day.key == KEY
        assert day.month == "2025-09"
        assert day.employee_name == "Kim"
        assert day.branch_name == "Gangnam"
        assert day.is_modified is False


class TestSummary:

    def test_counts_and_totals(self):
        days = reconcile(
            KEY,
            [_schedule(1), _schedule(2)],
            [_netted(1, "8"), _netted(3, "2")],
        )

        summary = summarize_days(days)

        assert summary.day_count == 3
        assert summary.time_match_count == 1
        assert summary.review_required_count == 2
        assert summary.review_completed_count == 0
        assert summary.total_scheduled_hours == Decimal("16")
        assert summary.total_actual_worked_hours == Decimal("10")
        assert summary.total_difference == Decimal("-6")

    def test_empty(self):
        summary = summarize_days([])

        assert summary.day_count == 0
        assert summary.total_difference == Decimal("0")
