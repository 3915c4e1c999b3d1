"""Per-user transaction velocity and daily spend tracking.

State is held in-process by a VelocityTracker instance that is injected
into the fraud engine. Each user's rolling window and daily ledger are
updated under a per-user asyncio.Lock, so append-prune-count is atomic with
respect to concurrent checks for the same user while different users never
contend.
"""

import asyncio
from collections import deque
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Callable, Optional

import structlog

from payment_guard.models.fraud import TransactionRecord

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class VelocitySnapshot:
    """What the tracker saw while recording one transaction.

    Attributes:
        transaction_count: Transactions in the window, current one included
        prior_daily_spend: Spend recorded today before the current transaction
    """

    transaction_count: int
    prior_daily_spend: Decimal


class VelocityTracker:
    """Rolling velocity windows and daily spend ledgers keyed by user id."""

    def __init__(self, window_seconds: int = 600, idle_ttl_seconds: int = 86400) -> None:
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        if idle_ttl_seconds < window_seconds:
            raise ValueError("idle_ttl_seconds cannot be shorter than the velocity window")

        self.window = timedelta(seconds=window_seconds)
        self.idle_ttl = timedelta(seconds=idle_ttl_seconds)
        self._windows: dict[str, deque[TransactionRecord]] = {}
        self._daily: dict[str, tuple[date, Decimal]] = {}
        self._last_seen: dict[str, datetime] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock_for(self, user_id: str) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = self._locks[user_id] = asyncio.Lock()
        return lock

    def _prune(self, window: deque[TransactionRecord], now: datetime) -> None:
        cutoff = now - self.window
        while window and window[0].timestamp <= cutoff:
            window.popleft()

    async def record(self, user_id: str, amount: Decimal, now: datetime) -> VelocitySnapshot:
        """Append a transaction, drop expired entries and report the counts.

        Every fraud check calls this, blocked or not.

        Args:
            user_id: User the transaction belongs to
            amount: Transaction amount
            now: Local time of the check

        Returns:
            VelocitySnapshot taken atomically with the append
        """
        async with self._lock_for(user_id):
            window = self._windows.setdefault(user_id, deque())

            # Keep timestamps non-decreasing even if the clock steps back
            if window and now < window[-1].timestamp:
                now = window[-1].timestamp

            self._prune(window, now)
            window.append(TransactionRecord(amount=amount, timestamp=now))

            today = now.date()
            ledger_day, spent = self._daily.get(user_id, (today, Decimal(0)))
            prior = spent if ledger_day == today else Decimal(0)
            self._daily[user_id] = (today, prior + amount)
            self._last_seen[user_id] = now

            return VelocitySnapshot(transaction_count=len(window), prior_daily_spend=prior)

    def transaction_count(self, user_id: str, now: datetime) -> int:
        window = self._windows.get(user_id)
        if not window:
            return 0
        cutoff = now - self.window
        return sum(1 for record in window if record.timestamp > cutoff)

    def daily_spend(self, user_id: str, today: date) -> Decimal:
        ledger_day, spent = self._daily.get(user_id, (today, Decimal(0)))
        return spent if ledger_day == today else Decimal(0)

    def window_for(self, user_id: str) -> tuple[TransactionRecord, ...]:
        return tuple(self._windows.get(user_id, ()))

    @property
    def tracked_users(self) -> int:
        return len(self._windows)

    def evict_idle_users(self, now: datetime) -> int:
        """Forget users with no activity within idle_ttl.

        A user active today is kept until the day rolls over,
        so eviction never resets the daily spend total. Users whose lock is
        currently held are skipped and picked up on the next run.

        Returns:
            Number of users evicted
        """
        cutoff = now - self.idle_ttl
        today = now.date()
        stale = [
            user_id
            for user_id, last_seen in self._last_seen.items()
            if last_seen < cutoff
            and last_seen.date() < today
            and not self._lock_for(user_id).locked()
        ]

        for user_id in stale:
            self._windows.pop(user_id, None)
            self._daily.pop(user_id, None)
            self._last_seen.pop(user_id, None)
            self._locks.pop(user_id, None)

        if stale:
            logger.info("velocity_idle_users_evicted", count=len(stale), remaining=len(self._windows))

        return len(stale)

    async def run_eviction_task(
        self,
        interval_seconds: int = 300,
        stop_event: Optional[asyncio.Event] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        """Background task that periodically evicts idle users.

        Example:
            >>> stop_event = asyncio.Event()
            >>> task = asyncio.create_task(tracker.run_eviction_task(stop_event=stop_event))
            >>> # ... later when shutting down ...
            >>> stop_event.set()
            >>> await task
        """
        if stop_event is None:
            stop_event = asyncio.Event()

        logger.info("velocity_eviction_task_started", interval_seconds=interval_seconds)

        try:
            while not stop_event.is_set():
                try:
                    self.evict_idle_users(clock())
                except Exception as e:
                    logger.error("velocity_eviction_iteration_failed", error=str(e))

                try:
                    await asyncio.wait_for(stop_event.wait(), timeout=interval_seconds)
                    break
                except asyncio.TimeoutError:
                    continue
        finally:
            logger.info("velocity_eviction_task_stopped")
