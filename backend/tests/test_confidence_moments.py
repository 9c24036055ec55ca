"""Confidence moment publishing."""

from __future__ import annotations

import logging
from datetime import date

import pytest

from cadence.services.confidence_moments import (
    CollectingMomentPublisher,
    ConfidenceMoment,
    LoggingMomentPublisher,
    is_moment,
    publish_safely,
)


def _moment(previous=70, current=40):
    return ConfidenceMoment(
        goal_id="g",
        check_in_id="c",
        reporter_id="t",
        week_start=date(2024, 2, 12),
        previous_confidence=previous,
        confidence=current,
    )


def test_is_moment_threshold():
    assert is_moment(50, 70, 20)
    assert is_moment(70, 50, 20)
    assert not is_moment(50, 69, 20)
    assert not is_moment(None, 100, 20)


def test_moment_payload():
    payload = _moment().to_dict()
    assert payload["delta"] == -30
    assert payload["direction"] == "down"
    assert payload["week_start"] == "2024-02-12"


@pytest.mark.asyncio
async def test_logging_publisher(caplog):
    with caplog.at_level(logging.INFO, logger="cadence.services.confidence_moments"):
        assert await publish_safely(LoggingMomentPublisher(), _moment(40, 90)) is True
    assert "+50" in caplog.text


@pytest.mark.asyncio
async def test_publish_safely_without_publisher():
    assert await publish_safely(None, _moment()) is False


@pytest.mark.asyncio
async def test_collecting_publisher():
    publisher = CollectingMomentPublisher()
    await publish_safely(publisher, _moment())
    assert len(publisher.moments) == 1
