"""Cancel in-flight request work when the client goes away.

Neither uvicorn nor Starlette cancels a plain endpoint when its client
disconnects, so upstream calls would keep running with their spans open.
``run_until_disconnected`` runs the work as a task and cancels it on
``http.disconnect``; the cancellation unwinds through every open span.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from fastapi import Request

from cep_weather.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


async def _cancel_on_disconnect(request: Request, work: asyncio.Future[T]) -> None:
    while not work.done():
        message = await request.receive()
        if message["type"] == "http.disconnect":
            if not work.done():
                logger.info("Client disconnected, cancelling request", path=request.url.path)
                work.cancel()
            return


async def run_until_disconnected(request: Request, awaitable: Awaitable[T]) -> T:
    """Await *awaitable*, cancelling it if the client disconnects first.

    The request body must already have been read.

    Args:
        request: Incoming request.
        awaitable: Work to run on behalf of the request.

    Returns:
        The result of *awaitable*.

    Raises:
        asyncio.CancelledError: The client disconnected.
    """
    work = asyncio.ensure_future(awaitable)
    watcher = asyncio.ensure_future(_cancel_on_disconnect(request, work))
    try:
        return await work
    finally:
        watcher.cancel()
        (outcome,) = await asyncio.gather(watcher, return_exceptions=True)
        if isinstance(outcome, Exception):
            logger.warning(
                "Disconnect watcher failed", path=request.url.path, error=repr(outcome)
            )
