import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Iterable, Optional


class AccountLockRegistry:
    """
    One asyncio.Lock per account id.

    Locks are always taken in ascending account order, so two transfers that
    share an account serialize instead of deadlocking.
    """

    def __init__(self) -> None:
        self._locks: Dict[int, asyncio.Lock] = {}

    def _lock_for(self, account_id: int) -> asyncio.Lock:
        lock = self._locks.get(account_id)
        if lock is None:
            lock = self._locks[account_id] = asyncio.Lock()
        return lock

    @asynccontextmanager
    async def hold(self, account_ids: Iterable[int], timeout: Optional[float] = None) -> AsyncIterator[None]:
        """
        Hold the locks for ``account_ids``.

        ``timeout`` bounds the wait for all of them together; asyncio.TimeoutError
        is raised with nothing held.
        """
        ordered = sorted(set(account_ids))
        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout
        acquired = []
        try:
            for account_id in ordered:
                lock = self._lock_for(account_id)
                if deadline is None:
                    await lock.acquire()
                else:
                    await asyncio.wait_for(lock.acquire(), timeout=max(deadline - loop.time(), 0))
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()
