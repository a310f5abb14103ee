"""
Tests for admission control.

These tests verify:
- Fixed-window counting per client identity
- Window reset and idle eviction
- Redis backend and fallback to memory when Redis fails
"""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from skoolar.core.rate_limit import (
    JOB_ID_EVICT_IDLE_WINDOWS,
    Admission,
    AdmissionController,
    MemoryWindowStore,
    RedisWindowStore,
    register_admission_jobs,
)


@pytest.fixture
def controller():
    return AdmissionController(limit=10, window_seconds=60)


@pytest.fixture
def mock_redis():
    """Create a mock Redis client with a transactional pipeline."""
    redis = MagicMock()
    pipe = MagicMock()
    pipe.set = MagicMock()
    pipe.incr = MagicMock()
    pipe.ttl = MagicMock()
    pipe.execute = AsyncMock()
    pipe.__aenter__ = AsyncMock(return_value=pipe)
    pipe.__aexit__ = AsyncMock(return_value=None)
    redis.pipeline = MagicMock(return_value=pipe)
    return redis


# ============================================
# Memory backend
# ============================================


@pytest.mark.asyncio
async def test_ten_admitted_eleventh_throttled_then_reset(controller, now):
    for i in range(10):
        decision = await controller.admit("203.0.113.7", now + timedelta(seconds=i))
        assert decision.outcome is Admission.ADMITTED

    throttled = await controller.admit("203.0.113.7", now + timedelta(seconds=30))
    assert throttled.outcome is Admission.THROTTLED
    assert throttled.retry_after_seconds == 30

    after_reset = await controller.admit("203.0.113.7", now + timedelta(seconds=61))
    assert after_reset.admitted
    assert after_reset.count == 1


@pytest.mark.asyncio
async def test_throttled_requests_are_still_counted(controller, now):
    for _ in range(15):
        decision = await controller.admit("198.51.100.1", now)

    assert not decision.admitted
    assert decision.count == 15
    assert decision.remaining == 0
    assert controller.memory_store.get("198.51.100.1").count == 15


@pytest.mark.asyncio
async def test_window_resets_exactly_at_duration(controller, now):
    for _ in range(11):
        await controller.admit("x", now)

    decision = await controller.admit("x", now + timedelta(seconds=60))
    assert decision.admitted
    assert decision.count == 1


@pytest.mark.asyncio
async def test_identities_are_independent(controller, now):
    for _ in range(11):
        await controller.admit("a", now)

    decision = await controller.admit("b", now)
    assert decision.admitted
    assert decision.remaining == 9


@pytest.mark.asyncio
async def test_remaining_counts_down(controller, now):
    first = await controller.admit("c", now)
    second = await controller.admit("c", now)

    assert first.remaining == 9
    assert second.remaining == 8
    assert first.limit == 10


def test_invalid_configuration_rejected():
    with pytest.raises(ValueError):
        AdmissionController(limit=0)
    with pytest.raises(ValueError):
        AdmissionController(window_seconds=0)


def test_evict_idle_windows(now):
    store = MemoryWindowStore()
    store.hit("old", now - timedelta(minutes=20), 10, 60)
    store.hit("fresh", now - timedelta(seconds=5), 10, 60)

    evicted = store.evict_idle(now, idle_seconds=600)

    assert evicted == 1
    assert store.get("old") is None
    assert store.get("fresh") is not None
    assert len(store) == 1


def test_controller_evict_uses_idle_setting(now):
    controller = AdmissionController(limit=10, window_seconds=60, idle_seconds=120)
    controller.memory_store.hit("idle", now - timedelta(seconds=121), 10, 60)

    assert controller.evict_idle(now) == 1


# ============================================
# Redis backend
# ============================================


@pytest.mark.asyncio
async def test_redis_store_counts_in_one_transaction(mock_redis):
    pipe = mock_redis.pipeline.return_value
    pipe.execute.return_value = [True, 3, 42]

    decision = await RedisWindowStore(mock_redis).hit("203.0.113.7", 10, 60)

    mock_redis.pipeline.assert_called_once_with(transaction=True)
    pipe.set.assert_called_once_with("admission:203.0.113.7", 0, ex=60, nx=True)
    pipe.incr.assert_called_once_with("admission:203.0.113.7")
    assert decision.admitted
    assert decision.count == 3
    assert decision.retry_after_seconds == 42


@pytest.mark.asyncio
async def test_redis_store_throttles_over_limit(mock_redis):
    mock_redis.pipeline.return_value.execute.return_value = [None, 11, 30]

    decision = await RedisWindowStore(mock_redis).hit("x", 10, 60)

    assert decision.outcome is Admission.THROTTLED
    assert decision.retry_after_seconds == 30


@pytest.mark.asyncio
async def test_redis_missing_ttl_falls_back_to_window(mock_redis):
    mock_redis.pipeline.return_value.execute.return_value = [None, 1, -1]

    decision = await RedisWindowStore(mock_redis).hit("x", 10, 60)

    assert decision.retry_after_seconds == 60


@pytest.mark.asyncio
async def test_controller_prefers_redis(now):
    redis_store = MagicMock(spec=RedisWindowStore)
    redis_store.hit = AsyncMock(return_value=MagicMock(admitted=True))
    controller = AdmissionController(redis_store=redis_store)

    await controller.admit("x", now)

    redis_store.hit.assert_awaited_once_with("x", 10, 60)
    assert controller.memory_store.get("x") is None


@pytest.mark.asyncio
async def test_controller_falls_back_to_memory_on_redis_error(now):
    redis_store = MagicMock(spec=RedisWindowStore)
    redis_store.hit = AsyncMock(side_effect=RedisConnectionError("down"))
    controller = AdmissionController(redis_store=redis_store)

    decision = await controller.admit("x", now)

    assert decision.admitted
    assert controller.memory_store.get("x").count == 1


# ============================================
# Scheduled eviction job
# ============================================


def test_register_admission_jobs():
    with patch("skoolar.core.rate_limit.register_job") as mock_register:
        register_admission_jobs()

    mock_register.assert_called_once()
    assert mock_register.call_args.kwargs["job_id"] == JOB_ID_EVICT_IDLE_WINDOWS
