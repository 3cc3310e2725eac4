"""Login brute-force guard: per-identifier attempt counter over a fixed window.

Windows expire lazily. Once a window is older than the window duration it
stops counting, and the next failure opens a fresh one instead of
incrementing the stale row.
"""
import logging
import uuid
from datetime import timedelta

from phishguard.core.clock import Clock, SystemClock, seconds_until, window_cutoff
from phishguard.core.config import Settings, get_settings
from phishguard.core.errors import RateLimited, StoreUnavailable
from phishguard.core.locks import KeyedLock
from phishguard.schemas.rate_limit import RateLimitStatusSchema
from phishguard.services.incidents import BRUTE_FORCE, SYSTEM_USER_ID, IncidentContext, IncidentRecorder
from phishguard.store.base import ATTEMPT_WINDOWS, Gte, Lt, RecordStore

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "auth"

_window_locks = KeyedLock()


class RateLimitGuard:
    MAX_RETRIES: int = 5

    def __init__(
        self,
        store: RecordStore,
        recorder: IncidentRecorder | None = None,
        clock: Clock | None = None,
        settings: Settings | None = None,
        locks: KeyedLock | None = None,
    ) -> None:
        settings = settings or get_settings()
        self.store = store
        self.clock = clock or SystemClock()
        self.recorder = recorder or IncidentRecorder(store, self.clock)
        self.limit = settings.rate_limit_attempts
        self.window = timedelta(minutes=settings.rate_limit_window_minutes)
        self._locks = locks or _window_locks

    async def _current_window(self, identifier: str, endpoint: str, now) -> dict | None:
        rows = await self.store.select_where(
            ATTEMPT_WINDOWS,
            {
                "identifier": identifier,
                "endpoint": endpoint,
                "first_attempt_at": Gte(window_cutoff(now, self.window)),
            },
            order_by="first_attempt_at",
            descending=True,
            limit=1,
        )
        return rows[0] if rows else None

    async def check(self, identifier: str, endpoint: str = DEFAULT_ENDPOINT) -> RateLimitStatusSchema:
        """Report whether another attempt is allowed. Raises StoreUnavailable; callers fail closed."""
        now = self.clock.now()
        window = await self._current_window(identifier, endpoint, now)
        count = window["attempt_count"] if window else 0
        if count >= self.limit:
            blocked_until = window["first_attempt_at"] + self.window
            # a window exactly at its boundary is still live
            retry_after = max(1, seconds_until(blocked_until, now))
            logger.info("Login blocked for %s (%d attempts, retry in %ds)", identifier, count, retry_after)
            return RateLimitStatusSchema(allowed=False, remaining_attempts=0, retry_after_seconds=retry_after)
        return RateLimitStatusSchema(allowed=True, remaining_attempts=self.limit - count, retry_after_seconds=0)

    async def enforce(self, identifier: str, endpoint: str = DEFAULT_ENDPOINT) -> RateLimitStatusSchema:
        """Like check, but raise RateLimited when blocked."""
        status = await self.check(identifier, endpoint)
        if not status.allowed:
            raise RateLimited(identifier, status.retry_after_seconds)
        return status

    async def record_failure(self, identifier: str, endpoint: str = DEFAULT_ENDPOINT) -> int:
        """Count one failed login; return the attempt count of the live window."""
        async with self._locks(f"{endpoint}:{identifier}"):
            for attempt in range(self.MAX_RETRIES):
                now = self.clock.now()
                window = await self._current_window(identifier, endpoint, now)
                if window is None:
                    first_attempt_at = now
                    count = 1
                    await self.store.insert(ATTEMPT_WINDOWS, {
                        "id": str(uuid.uuid4()),
                        "identifier": identifier,
                        "endpoint": endpoint,
                        "attempt_count": count,
                        "first_attempt_at": now,
                        "last_attempt_at": now,
                    })
                    logger.debug("Opened rate limit window for %s", identifier)
                    break

                # compare-and-set on the count we read
                first_attempt_at = window["first_attempt_at"]
                count = window["attempt_count"] + 1
                updated = await self.store.update(
                    ATTEMPT_WINDOWS,
                    {"id": window["id"], "attempt_count": window["attempt_count"]},
                    {"attempt_count": count, "last_attempt_at": now},
                )
                if updated:
                    logger.debug("Attempt count for %s: %d", identifier, count)
                    break
                logger.debug("Attempt count conflict for %s, retry %d", identifier, attempt + 1)
            else:
                raise StoreUnavailable(f"Could not record login failure for {identifier}")

        if count == self.limit:
            blocked_until = first_attempt_at + self.window
            logger.warning("Rate limit reached for %s, locked until %s", identifier, blocked_until.isoformat())
            await self.recorder.record(SYSTEM_USER_ID, BRUTE_FORCE, IncidentContext(
                ip_address=identifier,
                raw={
                    "identifier": identifier,
                    "endpoint": endpoint,
                    "attempt_count": count,
                    "blocked_until": blocked_until.isoformat(),
                },
            ))
        return count

    async def reset(self, identifier: str, endpoint: str = DEFAULT_ENDPOINT) -> None:
        """Forget all windows of identifier (successful login)."""
        async with self._locks(f"{endpoint}:{identifier}"):
            removed = await self.store.delete(ATTEMPT_WINDOWS, {"identifier": identifier, "endpoint": endpoint})
        logger.debug("Cleared %d rate limit window(s) for %s", removed, identifier)

    async def sweep_expired(self) -> int:
        """Delete windows that no longer count; safe to run any time."""
        cutoff = window_cutoff(self.clock.now(), self.window)
        removed = await self.store.delete(ATTEMPT_WINDOWS, {"first_attempt_at": Lt(cutoff)})
        if removed:
            logger.info("Swept %d expired rate limit window(s)", removed)
        return removed
