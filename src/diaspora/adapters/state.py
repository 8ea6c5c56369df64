"""Adapter lifecycle state.

An adapter starts PREPARING (opening files, connecting, creating
tables...) and settles exactly once, to READY or to ERROR. The outcome is
broadcast to every waiter and fixed forever: waiters arriving after
settlement get the same result immediately.

::

    PREPARING ──mark_ready()──────▶ READY
        │
        └──────mark_error(exc)────▶ ERROR (holds exc)
"""

from __future__ import annotations

import asyncio
from enum import Enum

from diaspora.core.errors import AdapterStateError


class AdapterState(str, Enum):
    """Lifecycle state of an adapter."""

    PREPARING = "preparing"
    READY = "ready"
    ERROR = "error"


class ReadinessCell:
    """Single-assignment state cell with a list of waiting futures.

    Futures are created lazily inside :meth:`wait`, so the cell can be built
    outside of a running event loop (adapter constructors are synchronous).
    """

    def __init__(self) -> None:
        self._state = AdapterState.PREPARING
        self._error: BaseException | None = None
        self._waiters: list[asyncio.Future[None]] = []

    @property
    def state(self) -> AdapterState:
        return self._state

    @property
    def error(self) -> BaseException | None:
        return self._error

    @property
    def settled(self) -> bool:
        return self._state is not AdapterState.PREPARING

    def set_ready(self) -> None:
        self._settle(AdapterState.READY, None)

    def set_error(self, error: BaseException) -> None:
        if not isinstance(error, BaseException):
            raise AdapterStateError(f"Adapter error state needs an exception, got {error!r}")
        self._settle(AdapterState.ERROR, error)

    def _settle(self, state: AdapterState, error: BaseException | None) -> None:
        if self.settled:
            raise AdapterStateError(
                f"Adapter state already settled to {self._state.value!r}, cannot move to {state.value!r}"
            )
        self._state = state
        self._error = error

        waiters, self._waiters = self._waiters, []
        for waiter in waiters:
            if waiter.done():
                continue
            if error is None:
                waiter.set_result(None)
            else:
                waiter.set_exception(error)

    async def wait(self) -> None:
        """Return once READY; raise the stored error once ERROR."""
        if self._error is not None:
            raise self._error
        if self._state is AdapterState.READY:
            return

        waiter: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        await waiter

    def __repr__(self) -> str:
        return f"ReadinessCell(state={self._state.value!r}, waiters={len(self._waiters)})"


__all__ = ["AdapterState", "ReadinessCell"]
