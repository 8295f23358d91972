"""
Cancellable handle for one asynchronous operation.

A CancellableCall wraps an ``asyncio.Task`` created on the running event loop.
The outcome reaches the caller in one of two ways, or both:

- the optional completion handler, invoked from the task's done-callback on
  that same event loop, with ``(content, None)`` or ``(None, error)``;
- ``await call``, which returns the content or raises the error.

Delivery contract:
    The handler runs at most once. ``cancel()`` records the cancellation
    synchronously before touching the task, and the done-callback checks that
    flag before delivering, so a response that completes concurrently with
    ``cancel()`` is dropped rather than delivered.
"""

import asyncio
import logging
from typing import Any, Coroutine, Generator, List, Optional

from .models import CompletionHandler, DispatchAttempt, JSONObject

logger = logging.getLogger(__name__)


class CancellableCall:
    """Handle returned by every search client operation.

    Example:
        >>> call = index.search(Query(query="shoes"), onComplete=handler)
        >>> call.cancel()  # handler will never be invoked

        >>> content = await index.search(Query(query="shoes"))
    """

    __slots__ = (
        "description",
        "attempts",
        "_onComplete",
        "_cancelled",
        "_delivered",
        "_task",
    )

    def __init__(
        self,
        coro: Coroutine[Any, Any, JSONObject],
        onComplete: Optional[CompletionHandler] = None,
        *,
        attempts: Optional[List[DispatchAttempt]] = None,
        description: str = "",
    ) -> None:
        """
        Args:
            coro: Coroutine producing the operation's content
            onComplete: Handler invoked once with the outcome unless cancelled
            attempts: List the coroutine records its host attempts into
            description: Human readable label used for logging and the task name

        Raises:
            RuntimeError: If there is no running event loop
        """
        loop = asyncio.get_running_loop()

        self.description = description
        self.attempts: List[DispatchAttempt] = attempts if attempts is not None else []
        self._onComplete = onComplete
        self._cancelled = False
        self._delivered = False
        self._task: asyncio.Task = loop.create_task(coro, name=description or None)
        self._task.add_done_callback(self._onTaskDone)

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else ("done" if self._task.done() else "pending")
        return f"<CancellableCall {self.description!r} {state}>"

    def cancel(self) -> bool:
        """Cancel the operation.

        Aborts the pending network attempt, prevents further attempts and
        guarantees the handler is never invoked afterwards.

        Returns:
            False if the outcome was already delivered or the call was already
            cancelled, True otherwise
        """
        if self._cancelled or self._delivered:
            return False

        self._cancelled = True
        self._task.cancel()
        logger.debug(f"Cancelled {self.description}")
        return True

    def cancelled(self) -> bool:
        return self._cancelled

    def done(self) -> bool:
        """True once the outcome was delivered or the call was cancelled."""
        return self._delivered or self._cancelled

    def _onTaskDone(self, task: asyncio.Task) -> None:
        if self._cancelled or task.cancelled():
            self._cancelled = True
            if not task.cancelled():
                # Mark the exception as retrieved, nobody is going to look at it
                task.exception()
            logger.debug(f"Discarding outcome of cancelled call {self.description}")
            return

        error = task.exception()
        content = task.result() if error is None else None
        self._delivered = True

        if self._onComplete is None:
            return

        try:
            self._onComplete(content, error)
        except Exception as e:
            logger.error(f"Completion handler for {self.description} raised {type(e).__name__}#{e}")
            logger.exception(e)

    async def _wait(self) -> JSONObject:
        # Awaiting the task directly propagates cancellation of the awaiting
        # coroutine into the operation
        try:
            result = await self._task
        except BaseException:
            # A failure that raced with cancel() is reported as the cancellation
            if self._cancelled:
                raise asyncio.CancelledError()
            raise
        if self._cancelled:
            raise asyncio.CancelledError()
        return result

    def __await__(self) -> Generator[Any, None, JSONObject]:
        return self._wait().__await__()
