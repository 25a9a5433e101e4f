"""
Unit Tests for UsageLedger
"""

import asyncio
from datetime import date
from typing import Dict, List, Optional

import pytest

from app.domain.exceptions import QuotaExceededError
from app.domain.models import UsageLedgerEntry
from app.domain.services.usage_ledger import KeyedLocks, UsageLedger


class MockUsageRepository:
    """Mock repository for testing"""

    def __init__(self):
        self.entries: Dict[str, UsageLedgerEntry] = {}
        self.saves = 0

    async def get_for_date(self, key: str) -> Optional[UsageLedgerEntry]:
        await asyncio.sleep(0)
        return self.entries.get(key)

    async def save(self, entry: UsageLedgerEntry) -> UsageLedgerEntry:
        await asyncio.sleep(0)
        self.entries[entry.date] = entry
        self.saves += 1
        return entry

    async def get_history(self, limit: Optional[int] = None) -> List[UsageLedgerEntry]:
        ordered = sorted(self.entries.values(), key=lambda e: e.date, reverse=True)
        return ordered[:limit] if limit is not None else ordered


class FakeClock:
    def __init__(self, today: date):
        self.today = today

    def __call__(self) -> date:
        return self.today


@pytest.fixture
def repo():
    return MockUsageRepository()


@pytest.fixture
def clock():
    return FakeClock(date(2026, 3, 15))


@pytest.fixture
def ledger(repo, clock):
    return UsageLedger(repo, daily_credits=10, clock=clock, locks=KeyedLocks())


@pytest.mark.asyncio
async def test_get_today_usage_creates_fresh_entry(ledger, repo):
    entry = await ledger.get_today_usage()

    assert entry == UsageLedgerEntry("2026-03-15", 0, 0, 10)
    assert repo.saves == 1


@pytest.mark.asyncio
async def test_get_today_usage_is_idempotent(ledger, repo):
    first = await ledger.get_today_usage()
    second = await ledger.get_today_usage()

    assert first == second
    assert repo.saves == 1


@pytest.mark.asyncio
async def test_increment_usage(ledger):
    updated = await ledger.increment_usage()

    assert updated.analyses_performed == 1
    assert updated.credits_used == 1
    assert updated.credits_remaining == 9


@pytest.mark.asyncio
async def test_credits_remaining_clamped_at_zero(ledger):
    await ledger.increment_usage(8)
    updated = await ledger.increment_usage(5)

    assert updated.credits_used == 13
    assert updated.credits_remaining == 0
    assert updated.is_exhausted


@pytest.mark.asyncio
async def test_negative_credits_rejected(ledger):
    with pytest.raises(ValueError):
        await ledger.increment_usage(-1)


@pytest.mark.asyncio
async def test_concurrent_increments_are_not_lost(ledger):
    await asyncio.gather(*(ledger.increment_usage() for _ in range(10)))

    entry = await ledger.get_today_usage()
    assert entry.analyses_performed == 10
    assert entry.credits_used == 10
    assert entry.credits_remaining == 0


@pytest.mark.asyncio
async def test_new_day_starts_with_full_credits(ledger, clock):
    for _ in range(10):
        await ledger.increment_usage()
    assert (await ledger.get_today_usage()).is_exhausted

    clock.today = date(2026, 3, 16)
    fresh = await ledger.get_today_usage()

    assert fresh.date == "2026-03-16"
    assert fresh.credits_remaining == 10


@pytest.mark.asyncio
async def test_history_and_monthly_rollup(ledger, repo, clock):
    repo.entries["2026-02-28"] = UsageLedgerEntry("2026-02-28", 7, 7, 3)
    repo.entries["2026-03-01"] = UsageLedgerEntry("2026-03-01", 4, 4, 6)
    await ledger.increment_usage()
    await ledger.increment_usage()

    history = await ledger.get_usage_history()
    assert [e.date for e in history] == ["2026-03-15", "2026-03-01", "2026-02-28"]
    assert len(await ledger.get_usage_history(limit=1)) == 1

    assert await ledger.get_monthly_analyses() == 6

    summary = await ledger.get_usage_summary(history_days=2)
    assert summary.today.analyses_performed == 2
    assert summary.monthly_analyses == 6
    assert len(summary.history) == 2


def test_negative_daily_credits_rejected(repo):
    with pytest.raises(ValueError):
        UsageLedger(repo, daily_credits=-1)


@pytest.mark.asyncio
async def test_charge_runs_action_then_debits(ledger):
    calls = []

    async def action():
        calls.append((await ledger.repository.get_for_date("2026-03-15")).credits_used)
        return "stored"

    result, entry = await ledger.charge(action)

    assert result == "stored"
    assert calls == [0]
    assert entry.credits_used == 1
    assert entry.credits_remaining == 9


@pytest.mark.asyncio
async def test_charge_rejects_exhausted_day_without_running_action(ledger, repo):
    repo.entries["2026-03-15"] = UsageLedgerEntry("2026-03-15", 10, 10, 0)
    calls = []

    async def action():
        calls.append(1)

    with pytest.raises(QuotaExceededError) as exc_info:
        await ledger.charge(action)

    assert calls == []
    assert exc_info.value.usage.analyses_performed == 10
    assert repo.entries["2026-03-15"].credits_used == 10


@pytest.mark.asyncio
async def test_failed_charge_action_does_not_debit(ledger, repo):
    async def action():
        raise RuntimeError("write failed")

    with pytest.raises(RuntimeError):
        await ledger.charge(action)

    assert repo.entries["2026-03-15"].credits_used == 0


@pytest.mark.asyncio
async def test_locks_for_earlier_days_are_dropped():
    locks = KeyedLocks()
    first = locks.get("2026-03-16")
    locks.get("2026-03-15")

    held = locks.get("2026-03-17")
    async with held:
        latest = locks.get("2026-03-18")

    assert len(locks) == 2
    assert locks.get("2026-03-17") is held
    assert locks.get("2026-03-18") is latest
    assert locks.get("2026-03-16") is not first


@pytest.mark.asyncio
async def test_held_lock_survives_pruning():
    locks = KeyedLocks()
    yesterday = locks.get("2026-03-15")

    async with yesterday:
        locks.get("2026-03-16")
        assert locks.get("2026-03-15") is yesterday
