import asyncio
from decimal import Decimal

import pytest

from personify_ledger.ledger import AccountLockRegistry, FailureReason


async def test_competing_debits_never_overdraw(make_accounts, transfer_engine, read_balances, read_log):
    await make_accounts({1: "500.00", 2: "300.00", 3: "150.00"})

    outcomes = await asyncio.gather(
        transfer_engine.transfer(1, 2, "400.00"),
        transfer_engine.transfer(1, 3, "400.00"),
    )

    committed = [o for o in outcomes if o.committed]
    failed = [o for o in outcomes if not o.committed]
    assert len(committed) == 1
    assert len(failed) == 1
    assert failed[0].reason is FailureReason.INSUFFICIENT_BALANCE

    balances = await read_balances()
    assert balances[1] == Decimal("100.00")
    assert sum(balances.values()) == Decimal("950.00")
    assert sorted(r.status for r in await read_log()) == ["FAILED", "SUCCESS"]


async def test_many_concurrent_transfers_conserve_funds(make_accounts, transfer_engine, read_balances, read_log):
    await make_accounts({1: "100.00", 2: "100.00", 3: "100.00", 4: "100.00"})
    pairs = [(1, 2), (2, 3), (3, 4), (4, 1), (1, 3), (2, 4), (3, 1), (4, 2)] * 3

    outcomes = await asyncio.gather(*(transfer_engine.transfer(a, b, "35.00") for a, b in pairs))

    balances = await read_balances()
    assert all(b >= 0 for b in balances.values())
    assert sum(balances.values()) == Decimal("400.00")

    records = await read_log()
    assert len(records) == len(pairs)
    by_id = {r.transfer_id: r.status for r in records}
    for outcome in outcomes:
        assert by_id[outcome.transfer_id] == ("SUCCESS" if outcome.committed else "FAILED")


async def test_lock_registry_serializes_overlapping_holders():
    locks = AccountLockRegistry()
    events = []

    async def worker(name, ids):
        async with locks.hold(ids):
            events.append(f"{name}-in")
            await asyncio.sleep(0.01)
            events.append(f"{name}-out")

    await asyncio.gather(worker("a", [2, 1]), worker("b", [1, 3]))

    assert events in (["a-in", "a-out", "b-in", "b-out"], ["b-in", "b-out", "a-in", "a-out"])


async def test_lock_registry_releases_on_error():
    locks = AccountLockRegistry()

    try:
        async with locks.hold([1, 2]):
            raise RuntimeError("boom")
    except RuntimeError:
        pass

    async with locks.hold([2, 1]):
        pass


async def test_lock_registry_timeout_leaves_nothing_held():
    locks = AccountLockRegistry()

    async with locks.hold([2]):
        with pytest.raises(asyncio.TimeoutError):
            async with locks.hold([1, 2], timeout=0.05):
                pass

    async with locks.hold([1, 2], timeout=0.05):
        pass
