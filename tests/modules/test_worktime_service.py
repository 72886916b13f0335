"""
Integration tests for WorkTimeReviewService.

Covers:
- reconcile_month against stored schedules and pasted attendance
- Re-run protection for manually edited days
- Day-level review actions and the derived coarse status
- Whole-key overrides (mark complete / reopen)
- Optimistic revision checks and listener notification
- Transaction rollback on failure
"""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from shiftpay_kernel.exceptions import (
    InvalidReviewTransitionError,
    ModifiedDaysOverwriteError,
    OptimisticLockError,
    ReconciliationDayNotFoundError,
)
from shiftpay_modules.worktime.models import (
    NO_DATA,
    DayStatus,
    ReviewKey,
    ReviewStatus,
    WritePath,
)
from shiftpay_modules.worktime.service import WorkTimeReviewService

SEP_1 = date(2025, 9, 1)
SEP_2 = date(2025, 9, 2)

LINE_SEP_1 = "2025-09-01\t월\t1\t10:00\t18:00\t\t7"
LINE_SEP_2_SHORT = "2025-09-02\t화\t2\t10:00\t16:00\t\t5"


@pytest.fixture
def two_days(review_key, record_schedule, review_service, test_actor_id):
    """Sep 1 matches the plan, Sep 2 is two hours short."""
    record_schedule(review_key, SEP_1)
    record_schedule(review_key, SEP_2)
    review_service.reconcile_month(
        review_key, "\n".join([LINE_SEP_1, LINE_SEP_2_SHORT]), test_actor_id
    )
    return review_key


class TestReconcileMonth:

    def test_matching_day(self, review_key, record_schedule, review_service, test_actor_id):
        record_schedule(review_key, SEP_1)

        days = review_service.reconcile_month(review_key, LINE_SEP_1, test_actor_id)

        assert len(days) == 1
        assert days[0].scheduled_hours == Decimal("7")
        assert days[0].actual_worked_hours == Decimal("7")
        assert days[0].difference == Decimal("0")
        assert days[0].status is DayStatus.TIME_MATCH
        assert review_service.get_review_status(review_key) is ReviewStatus.IN_REVIEW

    def test_days_persisted(self, two_days, review_service):
        stored = review_service.list_days(two_days)

        assert [d.work_date for d in stored] == [SEP_1, SEP_2]
        assert [d.status for d in stored] == [DayStatus.TIME_MATCH, DayStatus.REVIEW_REQUIRED]
        assert stored[0].branch_name == "Gangnam"

    def test_fractional_hours_reload_exactly(
        self, review_key, record_schedule, review_service, test_actor_id
    ):
        record_schedule(review_key, SEP_1, "10:00", "10:50", "0")
        line = "2025-09-01\t2025-09-01 10:00:00\t2025-09-01 10:50:00\tGangnam\t\t\t\t0:50"

        days = review_service.reconcile_month(review_key, line, test_actor_id)
        stored = review_service.list_days(review_key)

        fifty_minutes = Decimal(50) / Decimal(60)
        assert days[0].actual_worked_hours == fifty_minutes
        assert stored[0].actual_worked_hours == fifty_minutes
        assert stored[0].scheduled_hours == fifty_minutes
        assert stored[0].difference == Decimal("0")

    def test_missing_attendance_recorded(self, review_key, record_schedule, review_service, test_actor_id):
        record_schedule(review_key, SEP_1)

        days = review_service.reconcile_month(review_key, "", test_actor_id)

        assert days[0].actual_time_range == NO_DATA
        assert days[0].status is DayStatus.REVIEW_REQUIRED

    def test_nothing_to_reconcile_leaves_status(self, review_key, review_service, test_actor_id):
        days = review_service.reconcile_month(review_key, "", test_actor_id)

        assert days == []
        assert review_service.get_status_record(review_key) is None
        assert review_service.get_review_status(review_key) is ReviewStatus.NOT_STARTED

    def test_other_branch_schedules_excluded(
        self, review_key, record_schedule, review_service, test_actor_id
    ):
        record_schedule(ReviewKey("emp-1", "branch-b", "2025-09"), SEP_1)

        days = review_service.reconcile_month(review_key, LINE_SEP_1, test_actor_id)

        assert days[0].scheduled_hours == Decimal("0")
        assert days[0].status is DayStatus.REVIEW_REQUIRED

    def test_rerun_replaces_day_set(self, two_days, review_service, test_actor_id):
        days = review_service.reconcile_month(two_days, LINE_SEP_1, test_actor_id)

        assert len(days) == 2
        assert review_service.list_days(two_days)[1].actual_time_range == NO_DATA

    def test_rerun_refuses_to_discard_edits(self, two_days, review_service, test_actor_id):
        review_service.edit_actual_hours(two_days, SEP_2, "7", test_actor_id)

        with pytest.raises(ModifiedDaysOverwriteError) as exc_info:
            review_service.reconcile_month(two_days, LINE_SEP_1, test_actor_id)

        assert exc_info.value.modified_count == 1
        assert review_service.list_days(two_days)[1].actual_worked_hours == Decimal("7")

    def test_rerun_with_overwrite(self, two_days, review_service, test_actor_id):
        review_service.edit_actual_hours(two_days, SEP_2, "7", test_actor_id)

        days = review_service.reconcile_month(
            two_days, LINE_SEP_1, test_actor_id, overwrite_modified=True
        )

        assert not any(d.is_modified for d in days)
        assert days[1].actual_worked_hours == Decimal("0")

    def test_committed_log_carries_key(self, two_days, review_service, test_actor_id, captured_logs):
        review_service.reconcile_month(two_days, LINE_SEP_1, test_actor_id)

        committed = [r for r in captured_logs() if r["message"] == "reconcile_month_committed"]
        assert committed
        assert committed[-1]["employee_id"] == "emp-1"
        assert committed[-1]["month"] == "2025-09"
        assert committed[-1]["day_count"] == 2


class TestDayReview:

    def test_edit_keeps_day_open(self, two_days, review_service, test_actor_id):
        day = review_service.edit_actual_hours(two_days, SEP_2, Decimal("7"), test_actor_id)

        assert day.is_modified is True
        assert day.difference == Decimal("0")
        assert day.status is DayStatus.REVIEW_REQUIRED
        assert review_service.get_review_status(two_days) is ReviewStatus.IN_REVIEW

    def test_confirm_last_open_day_completes_review(self, two_days, review_service, test_actor_id):
        day = review_service.confirm_day(two_days, SEP_2, test_actor_id)

        assert day.status is DayStatus.REVIEW_COMPLETED
        record = review_service.get_status_record(two_days)
        assert record.status is ReviewStatus.REVIEW_COMPLETE
        assert record.write_path is WritePath.DERIVED

    def test_copy_scheduled(self, two_days, review_service, test_actor_id):
        day = review_service.copy_scheduled(two_days, SEP_2, test_actor_id)

        assert day.actual_worked_hours == Decimal("7")
        assert day.status is DayStatus.REVIEW_COMPLETED
        assert review_service.summary(two_days).total_difference == Decimal("0")

    def test_unconfirm_reopens_review(self, two_days, review_service, test_actor_id):
        review_service.confirm_day(two_days, SEP_2, test_actor_id)

        day = review_service.unconfirm_day(two_days, SEP_2, test_actor_id)

        assert day.status is DayStatus.REVIEW_REQUIRED
        assert review_service.get_review_status(two_days) is ReviewStatus.IN_REVIEW

    def test_confirm_twice_rejected(self, two_days, review_service, test_actor_id):
        review_service.confirm_day(two_days, SEP_2, test_actor_id)

        with pytest.raises(InvalidReviewTransitionError):
            review_service.confirm_day(two_days, SEP_2, test_actor_id)

    def test_unconfirm_of_open_day_rejected(self, two_days, review_service, test_actor_id):
        with pytest.raises(InvalidReviewTransitionError):
            review_service.unconfirm_day(two_days, SEP_2, test_actor_id)

    def test_unknown_day(self, two_days, review_service, test_actor_id):
        with pytest.raises(ReconciliationDayNotFoundError):
            review_service.confirm_day(two_days, date(2025, 9, 20), test_actor_id)

    def test_negative_hours_rolled_back(self, two_days, review_service, test_actor_id):
        with pytest.raises(ValueError):
            review_service.edit_actual_hours(two_days, SEP_2, "-1", test_actor_id)

        assert review_service.list_days(two_days)[1].actual_worked_hours == Decimal("5")

    def test_summary(self, two_days, review_service, test_actor_id):
        review_service.confirm_day(two_days, SEP_2, test_actor_id)

        summary = review_service.summary(two_days)

        assert summary.day_count == 2
        assert summary.time_match_count == 1
        assert summary.review_completed_count == 1
        assert summary.modified_count == 1


class TestOverrides:

    def test_mark_complete_with_open_days(self, two_days, review_service, test_actor_id):
        record = review_service.mark_complete(two_days, test_actor_id)

        assert record.status is ReviewStatus.REVIEW_COMPLETE
        assert record.write_path is WritePath.OVERRIDE

    def test_mark_complete_before_reconcile(self, review_key, review_service, test_actor_id):
        record = review_service.mark_complete(review_key, test_actor_id)

        assert record.status is ReviewStatus.REVIEW_COMPLETE
        assert record.revision == 1

    def test_reopen(self, two_days, review_service, test_actor_id):
        review_service.mark_complete(two_days, test_actor_id)

        record = review_service.reopen(two_days, test_actor_id)

        assert record.status is ReviewStatus.IN_REVIEW

    def test_reopen_requires_complete(self, two_days, review_service, test_actor_id):
        with pytest.raises(InvalidReviewTransitionError):
            review_service.reopen(two_days, test_actor_id)

    def test_rerun_keeps_completed_review(self, two_days, review_service, test_actor_id):
        review_service.mark_complete(two_days, test_actor_id)

        review_service.reconcile_month(two_days, LINE_SEP_1, test_actor_id)

        assert review_service.get_review_status(two_days) is ReviewStatus.REVIEW_COMPLETE


class TestRevisions:

    def test_each_write_bumps_revision(self, two_days, review_service, test_actor_id):
        first = review_service.get_status_record(two_days).revision

        review_service.confirm_day(two_days, SEP_2, test_actor_id)

        assert review_service.get_status_record(two_days).revision == first + 1

    def test_expected_revision_matches(self, two_days, review_service, test_actor_id):
        revision = review_service.get_status_record(two_days).revision

        review_service.confirm_day(two_days, SEP_2, test_actor_id, expected_revision=revision)

    def test_stale_revision_rejected(self, two_days, review_service, test_actor_id):
        revision = review_service.get_status_record(two_days).revision
        review_service.confirm_day(two_days, SEP_2, test_actor_id)

        with pytest.raises(OptimisticLockError):
            review_service.unconfirm_day(two_days, SEP_2, test_actor_id, expected_revision=revision)

        assert review_service.list_days(two_days)[1].status is DayStatus.REVIEW_COMPLETED


class TestListeners:

    def test_notified_after_commit(self, session, deterministic_clock, review_key, record_schedule, test_actor_id):
        changes = []
        service = WorkTimeReviewService(
            session, clock=deterministic_clock, listeners=[changes.append]
        )
        record_schedule(review_key, SEP_1)

        service.reconcile_month(review_key, LINE_SEP_1, test_actor_id)
        deterministic_clock.advance(60)
        service.confirm_day(review_key, SEP_1, test_actor_id)

        assert [c.action for c in changes] == ["reconcile", "confirm"]
        assert changes[1].occurred_at - changes[0].occurred_at == timedelta(seconds=60)
        assert changes[0].previous is ReviewStatus.NOT_STARTED
        assert changes[0].current is ReviewStatus.IN_REVIEW
        assert changes[1].current is ReviewStatus.REVIEW_COMPLETE
        assert changes[1].work_date == SEP_1

    def test_not_notified_on_failure(self, session, deterministic_clock, review_key, test_actor_id):
        changes = []
        service = WorkTimeReviewService(
            session, clock=deterministic_clock, listeners=[changes.append]
        )

        with pytest.raises(InvalidReviewTransitionError):
            service.reopen(review_key, test_actor_id)

        assert changes == []
