"""Schedule confidence thresholds and classification."""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from cadence.models.base import utc_now
from cadence.services.schedule_confidence import (
    GoalScheduleService,
    ScheduleStatus,
    ScheduleThresholds,
    classify_confidence,
    compute_thresholds,
    time_lapsed_percent,
)

START = date(2024, 1, 1)
TARGET = date(2024, 3, 31)  # 90 days after START
DAY_45 = date(2024, 2, 15)


def test_stretch_halfway_through_a_90_day_goal_expects_75():
    thresholds = compute_thresholds("stretch", None, None, TARGET, START, DAY_45)
    assert thresholds.on_schedule_if_confidence_above == pytest.approx(75.0)
    # missing bounds fall back to the most likely date
    assert thresholds.behind_schedule_if_confidence_below == pytest.approx(75.0)
    assert thresholds.ahead_of_schedule_if_confidence_above == pytest.approx(75.0)


@pytest.mark.parametrize(
    "posture, expected",
    [("commit", 90.0), ("stretch", 75.0), ("transform", 60.0), ("unknown", 75.0), (None, 75.0)],
)
def test_postures(posture, expected):
    thresholds = compute_thresholds(posture, None, None, TARGET, START, DAY_45)
    assert thresholds.on_schedule_if_confidence_above == pytest.approx(expected)


def test_three_dates_give_ordered_thresholds():
    thresholds = compute_thresholds(
        "stretch",
        date(2024, 3, 1),
        date(2024, 4, 30),
        TARGET,
        START,
        DAY_45,
    )
    assert thresholds.behind_schedule_if_confidence_below == pytest.approx(68.75)
    assert thresholds.on_schedule_if_confidence_above == pytest.approx(75.0)
    assert thresholds.ahead_of_schedule_if_confidence_above == pytest.approx(87.5)
    assert (
        thresholds.behind_schedule_if_confidence_below
        <= thresholds.on_schedule_if_confidence_above
        <= thresholds.ahead_of_schedule_if_confidence_above
    )


def test_thresholds_cap_at_100_after_the_target():
    thresholds = compute_thresholds("stretch", None, None, TARGET, START, date(2024, 12, 31))
    assert thresholds.on_schedule_if_confidence_above == 100.0


def test_no_time_window_uses_the_starting_confidence():
    assert time_lapsed_percent(TARGET, TARGET, DAY_45) == 0.0
    thresholds = compute_thresholds("commit", None, None, START, TARGET, DAY_45)
    assert thresholds.on_schedule_if_confidence_above == 80.0


def test_timestamps_are_reduced_to_dates():
    started = datetime(2024, 1, 1, 23, 59, tzinfo=timezone.utc)
    thresholds = compute_thresholds("stretch", None, None, TARGET, started, DAY_45)
    assert thresholds.on_schedule_if_confidence_above == pytest.approx(75.0)


@pytest.mark.parametrize(
    "missing",
    [
        dict(most_likely_target_date=None),
        dict(started_at=None),
        dict(progress_check_date=None),
    ],
)
def test_missing_inputs_return_none(missing):
    kwargs = dict(
        initial_confidence="stretch",
        earliest_target_date=None,
        latest_target_date=None,
        most_likely_target_date=TARGET,
        started_at=START,
        progress_check_date=DAY_45,
    )
    kwargs.update(missing)
    assert compute_thresholds(**kwargs) is None


@pytest.mark.parametrize(
    "confidence, expected",
    [
        (90, ScheduleStatus.AHEAD),
        (80, ScheduleStatus.ON_SCHEDULE),
        (75, ScheduleStatus.AT_RISK),
        (68.75, ScheduleStatus.AT_RISK),
        (60, ScheduleStatus.BEHIND),
        (None, ScheduleStatus.NOT_APPLICABLE),
    ],
)
def test_classify_confidence(confidence, expected):
    thresholds = ScheduleThresholds(68.75, 75.0, 87.5)
    assert classify_confidence(thresholds, confidence) is expected


def test_classify_without_thresholds():
    assert classify_confidence(None, 50) is ScheduleStatus.NOT_APPLICABLE


def test_rounded_thresholds():
    assert ScheduleThresholds(68.75, 75.0, 87.5).rounded() == {
        "behind_schedule_if_confidence_below": 69,
        "on_schedule_if_confidence_above": 75,
        "ahead_of_schedule_if_confidence_above": 88,
    }


@pytest.mark.asyncio
async def test_status_for_uses_latest_check_in(db_session, make_goal, make_check_in):
    goal = await make_goal(
        most_likely_target_date=TARGET,
        started_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )
    await make_check_in(goal, date(2024, 1, 8), 95)
    # week of 2024-02-12: 42 days elapsed, all three thresholds ~73.3
    await make_check_in(goal, date(2024, 2, 12), 70)

    service = GoalScheduleService(db_session)
    assert await service.status_for(goal) is ScheduleStatus.BEHIND
    assert await service.status_for(goal.id) is ScheduleStatus.BEHIND


@pytest.mark.asyncio
async def test_status_for_goal_without_check_ins(db_session, make_goal):
    goal = await make_goal(most_likely_target_date=TARGET, started_at=utc_now())
    assert await GoalScheduleService(db_session).status_for(goal) is ScheduleStatus.NOT_APPLICABLE
