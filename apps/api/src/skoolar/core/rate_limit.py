"""
Admission Control

Fixed-window request-rate limiting keyed by client identity, applied to every
request before any handler (and before the authorization gate) runs.

Algorithm per call:
- look up or lazily create the client's window
- if now - window.start >= window_seconds: reset count to 0, start to now
- increment count (throttled calls are still counted)
- count > limit -> THROTTLED, else ADMITTED

Backends:
- MemoryWindowStore: per-process dict guarded by a lock per client identity
- RedisWindowStore: SET NX EX + INCR + TTL in one MULTI/EXEC transaction,
  shared across server instances

The controller prefers Redis when configured and falls back to memory when a
Redis call fails.
"""

import enum
import logging
import math
import threading
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime

from apscheduler.triggers.interval import IntervalTrigger
from redis.asyncio import Redis
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from skoolar.core.bridge import error_response
from skoolar.core.config import settings
from skoolar.core.errors import AdmissionThrottled
from skoolar.core.scheduler import register_job

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10
DEFAULT_WINDOW_SECONDS = 60
REDIS_KEY_PREFIX = "admission"

JOB_ID_EVICT_IDLE_WINDOWS = "admission_evict_idle_windows"


class Admission(str, enum.Enum):
    """Admission outcome for one request."""

    ADMITTED = "admitted"
    THROTTLED = "throttled"


@dataclass
class AdmissionWindow:
    """Per-client-identity counter for the active window."""

    count: int
    start: datetime
    last_seen: datetime


@dataclass(frozen=True)
class AdmissionDecision:
    """
    Admission result.

    Attributes:
        outcome: ADMITTED or THROTTLED
        count: Requests counted in the active window, this one included
        limit: Configured limit
        retry_after_seconds: Seconds until the active window resets
    """

    outcome: Admission
    count: int
    limit: int
    retry_after_seconds: int

    @property
    def admitted(self) -> bool:
        return self.outcome is Admission.ADMITTED

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.count)


def _decide(count: int, limit: int, retry_after_seconds: int) -> AdmissionDecision:
    outcome = Admission.THROTTLED if count > limit else Admission.ADMITTED
    return AdmissionDecision(
        outcome=outcome,
        count=count,
        limit=limit,
        retry_after_seconds=max(0, retry_after_seconds),
    )


class MemoryWindowStore:
    """
    In-process window store.

    Does not work across multiple server instances.
    """

    def __init__(self) -> None:
        self._windows: dict[str, AdmissionWindow] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _lock_for(self, key: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    def hit(self, key: str, now: datetime, limit: int, window_seconds: int) -> AdmissionDecision:
        with self._lock_for(key):
            window = self._windows.get(key)
            if window is None:
                window = self._windows[key] = AdmissionWindow(count=0, start=now, last_seen=now)
            elif (now - window.start).total_seconds() >= window_seconds:
                window.count = 0
                window.start = now

            window.count += 1
            window.last_seen = now

            elapsed = (now - window.start).total_seconds()
            retry_after = math.ceil(window_seconds - elapsed)
            return _decide(window.count, limit, retry_after)

    def get(self, key: str) -> AdmissionWindow | None:
        return self._windows.get(key)

    def evict_idle(self, now: datetime, idle_seconds: int) -> int:
        """
        Drop windows not seen for idle_seconds.

        Returns:
            Number of windows evicted
        """
        with self._registry_lock:
            stale = [
                key
                for key, window in self._windows.items()
                if (now - window.last_seen).total_seconds() >= idle_seconds
            ]
            for key in stale:
                del self._windows[key]
                self._locks.pop(key, None)
        return len(stale)

    def __len__(self) -> int:
        return len(self._windows)


class RedisWindowStore:
    """
    Redis-backed window store.

    The window starts at the first request (SET NX with the window as TTL) and
    Redis expiry performs the reset and the idle eviction. Redis' own clock
    defines the window boundaries.
    """

    def __init__(self, client: Redis, key_prefix: str = REDIS_KEY_PREFIX) -> None:
        self._client = client
        self._key_prefix = key_prefix

    def _key(self, client_identity: str) -> str:
        return f"{self._key_prefix}:{client_identity}"

    async def hit(self, client_identity: str, limit: int, window_seconds: int) -> AdmissionDecision:
        key = self._key(client_identity)
        async with self._client.pipeline(transaction=True) as pipe:
            pipe.set(key, 0, ex=window_seconds, nx=True)
            pipe.incr(key)
            pipe.ttl(key)
            _, count, ttl = await pipe.execute()

        retry_after = ttl if ttl and ttl > 0 else window_seconds
        return _decide(int(count), limit, int(retry_after))


class AdmissionController:
    """
    Fixed-window admission controller.

    Usage:
        controller = AdmissionController(limit=10, window_seconds=60)
        decision = await controller.admit("203.0.113.7", datetime.now(UTC))
        if not decision.admitted:
            ...
    """

    def __init__(
        self,
        limit: int = DEFAULT_LIMIT,
        window_seconds: int = DEFAULT_WINDOW_SECONDS,
        *,
        idle_seconds: int | None = None,
        redis_store: RedisWindowStore | None = None,
        memory_store: MemoryWindowStore | None = None,
    ) -> None:
        if limit < 1:
            raise ValueError("limit must be at least 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be at least 1")

        self.limit = limit
        self.window_seconds = window_seconds
        self.idle_seconds = idle_seconds if idle_seconds is not None else window_seconds * 10
        self.redis_store = redis_store
        self.memory_store = memory_store or MemoryWindowStore()

    async def admit(self, client_identity: str, now: datetime) -> AdmissionDecision:
        """
        Count one request for a client identity and decide admission.

        Args:
            client_identity: Key the window is tracked under (e.g. client IP)
            now: Current time (timezone-aware); used by the memory store

        Returns:
            AdmissionDecision
        """
        if self.redis_store is not None:
            try:
                decision = await self.redis_store.hit(
                    client_identity, self.limit, self.window_seconds
                )
            except RedisError as e:
                logger.warning(f"Redis admission check failed, using memory: {e}")
            else:
                self._log_throttled(client_identity, decision)
                return decision

        decision = self.memory_store.hit(client_identity, now, self.limit, self.window_seconds)
        self._log_throttled(client_identity, decision)
        return decision

    def _log_throttled(self, client_identity: str, decision: AdmissionDecision) -> None:
        if not decision.admitted:
            logger.warning(
                f"Admission throttled for {client_identity}: "
                f"{decision.count}/{self.limit} in {self.window_seconds}s window"
            )

    def evict_idle(self, now: datetime) -> int:
        """Evict idle in-memory windows; Redis keys expire on their own."""
        evicted = self.memory_store.evict_idle(now, self.idle_seconds)
        if evicted:
            logger.info(f"Evicted {evicted} idle admission windows")
        return evicted


def client_identity_for(request: Request, trust_forwarded_for: bool = False) -> str:
    """
    Client identity used as the admission key.

    Uses the first X-Forwarded-For hop only when the deployment trusts its
    proxy; otherwise the peer address.
    """
    if trust_forwarded_for:
        forwarded = request.headers.get("x-forwarded-for", "")
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    return request.client.host if request.client else "unknown"


class AdmissionMiddleware(BaseHTTPMiddleware):
    """
    Runs admission control ahead of routing, authentication and handlers.

    Throttled requests are answered with 429 and never reach the gate.
    """

    def __init__(
        self,
        app,
        controller: AdmissionController,
        *,
        trust_forwarded_for: bool = False,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        super().__init__(app)
        self.controller = controller
        self.trust_forwarded_for = trust_forwarded_for
        self.clock = clock or (lambda: datetime.now(UTC))

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        identity = client_identity_for(request, self.trust_forwarded_for)
        decision = await self.controller.admit(identity, self.clock())

        if not decision.admitted:
            return error_response(
                AdmissionThrottled(
                    self.controller.limit,
                    self.controller.window_seconds,
                    decision.retry_after_seconds,
                )
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(decision.limit)
        response.headers["X-RateLimit-Remaining"] = str(decision.remaining)
        return response


# Process-wide controller, configured from settings at startup
admission_controller = AdmissionController(
    limit=settings.rate_limit_requests,
    window_seconds=settings.rate_limit_window_seconds,
    idle_seconds=settings.rate_limit_idle_seconds,
)


async def evict_idle_admission_windows() -> None:
    """Scheduled job: drop in-memory windows of inactive clients."""
    admission_controller.evict_idle(datetime.now(UTC))


def register_admission_jobs() -> None:
    """Register admission control background jobs with the scheduler."""
    register_job(
        job_id=JOB_ID_EVICT_IDLE_WINDOWS,
        func=evict_idle_admission_windows,
        trigger=IntervalTrigger(minutes=5),
    )
    logger.info(f"Registered job: {JOB_ID_EVICT_IDLE_WINDOWS} (interval: 5 minutes)")


__all__ = [
    "Admission",
    "AdmissionWindow",
    "AdmissionDecision",
    "AdmissionController",
    "AdmissionMiddleware",
    "MemoryWindowStore",
    "RedisWindowStore",
    "admission_controller",
    "client_identity_for",
    "register_admission_jobs",
]
