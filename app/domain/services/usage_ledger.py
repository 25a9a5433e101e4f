"""
USAGE LEDGER
Daily credit counter gating portfolio analyses

RESPONSIBILITIES:
- One entry per calendar date, created lazily
- Increment analyses / credits, clamp remaining at zero
- History and monthly rollup

RULES:
✅ charge() re-checks the gate and debits under one lock
✅ Read-modify-write serialized per date key
✅ credits_remaining never increases, never negative
"""

import asyncio
import logging
from datetime import date
from typing import Awaitable, Callable, Dict, List, Optional, Protocol, Tuple, TypeVar

from app.domain.exceptions import QuotaExceededError
from app.domain.models import UsageLedgerEntry, UsageSummary
from app.utils.time import date_key, month_prefix, today_in

logger = logging.getLogger(__name__)

T = TypeVar("T")


class UsageRepository(Protocol):
    """Protocol for usage ledger storage - ASYNC"""

    async def get_for_date(self, key: str) -> Optional[UsageLedgerEntry]:
        """Entry stored under a YYYY-MM-DD key"""
        ...

    async def save(self, entry: UsageLedgerEntry) -> UsageLedgerEntry:
        """Insert or replace the entry for entry.date, durably"""
        ...

    async def get_history(self, limit: Optional[int] = None) -> List[UsageLedgerEntry]:
        """Entries ordered by date descending"""
        ...


class KeyedLocks:
    """
    One asyncio.Lock per date key, created on demand.
    Creating a lock for a new key drops idle locks for earlier dates.
    """

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}

    def __len__(self) -> int:
        return len(self._locks)

    def get(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            self._prune_before(key)
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def _prune_before(self, key: str) -> None:
        stale = [k for k, lock in self._locks.items() if k < key and not lock.locked()]
        for k in stale:
            del self._locks[k]


# Shared by every ledger in the process so per-request instances still serialize.
ledger_locks = KeyedLocks()


class UsageLedger:
    """
    Usage Ledger
    Tracks analyses performed and credits consumed per calendar day
    """

    def __init__(
        self,
        repository: UsageRepository,
        daily_credits: int = 10,
        timezone_name: Optional[str] = None,
        clock: Optional[Callable[[], date]] = None,
        locks: Optional[KeyedLocks] = None,
    ):
        if daily_credits < 0:
            raise ValueError("daily_credits cannot be negative")
        self.repository = repository
        self.daily_credits = daily_credits
        self._clock = clock or (lambda: today_in(timezone_name))
        self._locks = locks if locks is not None else ledger_locks

    def today_key(self) -> str:
        return date_key(self._clock())

    def _fresh_entry(self, key: str) -> UsageLedgerEntry:
        return UsageLedgerEntry(
            date=key,
            analyses_performed=0,
            credits_used=0,
            credits_remaining=self.daily_credits,
        )

    async def _get_or_create(self, key: str) -> UsageLedgerEntry:
        existing = await self.repository.get_for_date(key)
        if existing is not None:
            return existing
        logger.info(f"📒 Opening usage ledger for {key} with {self.daily_credits} credits")
        return await self.repository.save(self._fresh_entry(key))

    async def get_today_usage(self) -> UsageLedgerEntry:
        """
        Today's entry, created with full credits on first access.
        Idempotent within the same calendar day.
        """
        key = self.today_key()
        async with self._locks.get(key):
            return await self._get_or_create(key)

    async def increment_usage(self, credits_used: int = 1) -> UsageLedgerEntry:
        """
        Record one analysis consuming credits_used credits.

        Returns:
            The updated entry (already persisted)
        """
        if credits_used < 0:
            raise ValueError("credits_used cannot be negative")

        key = self.today_key()
        async with self._locks.get(key):
            current = await self._get_or_create(key)
            return await self._debit(current, credits_used)

    async def charge(
        self,
        action: Callable[[], Awaitable[T]],
        credits_used: int = 1,
    ) -> Tuple[T, UsageLedgerEntry]:
        """
        Run action and debit credits_used, holding today's lock throughout.
        The entry is re-read under the lock, so concurrent callers racing
        for the last credit cannot both pass.

        Raises:
            QuotaExceededError: today's credits are exhausted (action not run)
        """
        if credits_used < 0:
            raise ValueError("credits_used cannot be negative")

        key = self.today_key()
        async with self._locks.get(key):
            current = await self._get_or_create(key)
            if current.is_exhausted:
                raise QuotaExceededError(current)
            result = await action()
            return result, await self._debit(current, credits_used)

    async def _debit(self, current: UsageLedgerEntry, credits_used: int) -> UsageLedgerEntry:
        updated = UsageLedgerEntry(
            date=current.date,
            analyses_performed=current.analyses_performed + 1,
            credits_used=current.credits_used + credits_used,
            credits_remaining=max(0, current.credits_remaining - credits_used),
        )
        return await self.repository.save(updated)

    async def get_usage_history(self, limit: Optional[int] = None) -> List[UsageLedgerEntry]:
        """Entries newest first (YYYY-MM-DD sorts chronologically)"""
        history = await self.repository.get_history()
        history = sorted(history, key=lambda e: e.date, reverse=True)
        return history[:limit] if limit is not None else history

    async def get_monthly_analyses(self) -> int:
        """Sum of analyses over entries in the current calendar month"""
        prefix = month_prefix(self._clock())
        history = await self.repository.get_history()
        return sum(e.analyses_performed for e in history if e.date.startswith(prefix))

    async def get_usage_summary(self, history_days: int = 30) -> UsageSummary:
        today = await self.get_today_usage()
        history = await self.get_usage_history()
        prefix = month_prefix(self._clock())
        monthly = sum(e.analyses_performed for e in history if e.date.startswith(prefix))
        return UsageSummary(
            today=today,
            monthly_analyses=monthly,
            history=tuple(history[:history_days]),
        )
