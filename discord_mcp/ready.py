import asyncio
from typing import Optional


class ReadyGate:
    """One-shot readiness signal shared by every Discord operation.

    The gate resolves exactly once, either ready or failed. Waiters that
    arrive after resolution get the same outcome immediately; a failure is
    re-raised to every waiter. The underlying future is created lazily so the
    gate can be constructed outside a running event loop.
    """

    def __init__(self):
        self._future: Optional[asyncio.Future] = None

    def _get_future(self) -> asyncio.Future:
        if self._future is None:
            self._future = asyncio.get_running_loop().create_future()
        return self._future

    @property
    def resolved(self) -> bool:
        return self._future is not None and self._future.done()

    def set_ready(self) -> None:
        future = self._get_future()
        if future.done():
            raise RuntimeError("Ready gate already resolved")
        future.set_result(None)

    def set_failed(self, error: BaseException) -> None:
        future = self._get_future()
        if future.done():
            raise RuntimeError("Ready gate already resolved")
        future.set_exception(error)
        # Mark as retrieved; waiters still see the exception.
        future.exception()

    async def wait(self) -> None:
        # shield: a cancelled waiter must not cancel the shared future
        await asyncio.shield(self._get_future())
