"""Cooperative cancellation tokens that can be linked together."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

T = TypeVar("T")


class CancellationToken:
    """A one-shot cancellation signal.

    Once cancelled a token stays cancelled; the first reason wins. Tokens
    created with ``any_of`` fire as soon as any of their parents fire, and
    must be ``detach``ed when no longer needed so long-lived parents do not
    keep them alive.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: str | None = None
        self._callbacks: list[Callable[[str | None], None]] = []
        self._links: list[tuple["CancellationToken", Callable[[str | None], None]]] = []

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str | None = None) -> None:
        """Fire the token. Later calls are no-ops."""
        if self._event.is_set():
            return
        self._reason = reason
        self._event.set()
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback(reason)

    def add_callback(self, callback: Callable[[str | None], None]) -> None:
        """Run ``callback(reason)`` when the token fires, immediately if it already has."""
        if self._event.is_set():
            callback(self._reason)
            return
        self._callbacks.append(callback)

    def remove_callback(self, callback: Callable[[str | None], None]) -> None:
        """Unregister ``callback``; unknown callbacks are ignored."""
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def detach(self) -> None:
        """Stop following the parents this token was linked to with ``any_of``."""
        links, self._links = self._links, []
        for parent, callback in links:
            parent.remove_callback(callback)

    async def wait(self) -> str | None:
        await self._event.wait()
        return self._reason

    @classmethod
    def any_of(cls, *tokens: "CancellationToken | None") -> "CancellationToken":
        """Return a token that is cancelled when any of ``tokens`` is."""
        combined = cls()
        for token in tokens:
            if token is None:
                continue
            if token.cancelled:
                combined.cancel(token.reason)
                combined.detach()
                break
            callback = combined.cancel
            token.add_callback(callback)
            combined._links.append((token, callback))
        return combined


async def race(awaitable: Awaitable[T], signal: CancellationToken) -> tuple[bool, T | None]:
    """Await ``awaitable`` unless ``signal`` fires first.

    Returns ``(True, result)`` when the awaitable finished, ``(False, None)``
    when it was cancelled because the signal fired.
    """
    if signal.cancelled:
        if asyncio.iscoroutine(awaitable):
            awaitable.close()
        return False, None

    task = asyncio.ensure_future(awaitable)
    waiter = asyncio.ensure_future(signal.wait())
    try:
        await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        waiter.cancel()
        if not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

    if task.cancelled():
        return False, None
    return True, task.result()
