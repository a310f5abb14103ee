"""
Tests for the background job registry and manual triggering.
"""

from unittest.mock import AsyncMock

import pytest
from apscheduler.triggers.interval import IntervalTrigger

from skoolar.core import scheduler


@pytest.fixture(autouse=True)
def clean_registry():
    saved = dict(scheduler._job_registry)
    scheduler._job_registry.clear()
    yield
    scheduler._job_registry.clear()
    scheduler._job_registry.update(saved)


@pytest.mark.asyncio
async def test_trigger_registered_job():
    job = AsyncMock()
    scheduler.register_job("sample_job", job, IntervalTrigger(minutes=5))

    result = await scheduler.trigger_job_manually("sample_job")

    job.assert_awaited_once()
    assert result["status"] == "success"
    assert result["job_id"] == "sample_job"


@pytest.mark.asyncio
async def test_trigger_failing_job_reports_error():
    job = AsyncMock(side_effect=RuntimeError("boom"))
    scheduler.register_job("failing_job", job, IntervalTrigger(minutes=5))

    result = await scheduler.trigger_job_manually("failing_job")

    assert result["status"] == "error"
    assert result["error"] == "boom"


@pytest.mark.asyncio
async def test_trigger_unknown_job_raises():
    with pytest.raises(ValueError, match="not found"):
        await scheduler.trigger_job_manually("missing")


@pytest.mark.asyncio
async def test_jobs_registered_before_start_are_scheduled():
    scheduler.register_job("early_job", AsyncMock(), IntervalTrigger(minutes=5))

    running = await scheduler.start_scheduler()
    try:
        assert running.get_job("early_job") is not None
        listed = scheduler.list_registered_jobs()
        assert listed[0]["job_id"] == "early_job"
        assert listed[0]["next_run_time"] is not None
    finally:
        await scheduler.stop_scheduler()

    assert scheduler.get_scheduler() is None
