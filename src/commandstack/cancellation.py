"""
Cooperative cancellation tokens for command handlers.

A CancellationToken is the parameter a handler declares to opt in to
cancellation. Cancellation is advisory: the adapter forwards the token,
and the handler body decides when (and whether) to observe it.

Example:
    >>> from commandstack import CancellationToken, command_handler
    >>>
    >>> class ReportHandlers:
    ...     @command_handler
    ...     async def build(self, command: BuildReport, cancellation: CancellationToken) -> None:
    ...         for chunk in command.chunks:
    ...             cancellation.raise_if_cancelled()
    ...             await self._render(chunk)
"""

from __future__ import annotations

import asyncio
import contextlib


class CancellationToken:
    """
    Advisory cancellation signal shared between a caller and a handler.

    Observing a cancelled token raises asyncio.CancelledError, which is the
    cancellation outcome asyncio callers already know how to handle.

    The token is not bound to an event loop and can be cancelled before any
    loop is running.
    """

    __slots__ = ("_cancelled", "_waiters")

    def __init__(self) -> None:
        self._cancelled = False
        self._waiters: list[asyncio.Future[None]] = []

    @classmethod
    def cancelled(cls) -> CancellationToken:
        """Create a token that is already cancelled."""
        token = cls()
        token.cancel()
        return token

    @property
    def is_cancelled(self) -> bool:
        """True once cancel() has been called."""
        return self._cancelled

    def cancel(self) -> None:
        """Signal cancellation. Calling it more than once has no further effect."""
        if self._cancelled:
            return
        self._cancelled = True
        waiters, self._waiters = self._waiters, []
        for waiter in waiters:
            if not waiter.done():
                waiter.get_loop().call_soon_threadsafe(_resolve, waiter)

    def raise_if_cancelled(self) -> None:
        """
        Raise asyncio.CancelledError if cancellation was requested.

        Raises:
            asyncio.CancelledError: If the token is cancelled
        """
        if self._cancelled:
            raise asyncio.CancelledError("Operation was cancelled via CancellationToken")

    async def wait(self) -> None:
        """Wait until the token is cancelled."""
        if self._cancelled:
            return
        waiter = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        try:
            await waiter
        finally:
            with contextlib.suppress(ValueError):
                self._waiters.remove(waiter)

    async def sleep(self, delay: float) -> None:
        """
        Sleep for ``delay`` seconds unless the token is cancelled first.

        Args:
            delay: Seconds to sleep

        Raises:
            asyncio.CancelledError: If the token is (or becomes) cancelled
                before the delay elapses
        """
        self.raise_if_cancelled()
        try:
            await asyncio.wait_for(self.wait(), timeout=delay)
        except TimeoutError:
            return
        self.raise_if_cancelled()

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self._cancelled})"


def _resolve(waiter: asyncio.Future[None]) -> None:
    if not waiter.done():
        waiter.set_result(None)


__all__ = ["CancellationToken"]
