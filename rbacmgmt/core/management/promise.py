"""Dual-mode (awaitable or callback) execution of management operations."""
from __future__ import annotations
import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Set

logger = logging.getLogger(__name__)

Callback = Callable[[Optional[BaseException], Any], Any]

_pending: Set[asyncio.Task] = set()


def wrap_async(fn: Callable[[], Awaitable[Any]], callback: Optional[Callback] = None):
    """Run ``fn`` now and deliver its outcome through exactly one channel.

    Without a callback the returned task resolves with the result of ``fn``
    or raises its exception. With a callback, ``callback(err, result)`` is
    invoked once and the returned task resolves to None without raising.

    When no event loop is running, a callback is required: ``fn`` is then
    driven to completion on a fresh loop before this function returns.

    Args:
        fn: Zero-argument coroutine function holding the operation body
        callback: Optional completion handler ``(err, result)``

    Returns:
        asyncio.Task wrapping the operation, or None when run without a loop

    Raises:
        RuntimeError: If called outside a running loop without a callback
    """

    async def _run():
        if callback is None:
            return await fn()
        try:
            result = await fn()
        except asyncio.CancelledError as err:
            _deliver(callback, err, None)
            raise
        except Exception as err:
            _deliver(callback, err, None)
            return None
        _deliver(callback, None, result)
        return None

    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        if callback is None:
            raise RuntimeError("awaitable style requires a running event loop; pass a callback instead")
        asyncio.run(_run())
        return None
    task = loop.create_task(_run())
    # The loop only holds weak references; keep fire-and-forget calls alive
    _pending.add(task)
    task.add_done_callback(_pending.discard)
    return task


def _deliver(callback: Callback, err: Optional[BaseException], result: Any) -> None:
    try:
        callback(err, result)
    except Exception:
        logger.error("Completion callback raised", exc_info=True)
