"""
Scoped history transactions.

A pipeline run must leave exactly one history entry behind, whether it
succeeds or fails. The host's suspension token is therefore acquired once
before the run and released exactly once on every exit path.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, TypeVar
import logging

from ..errors import TransactionFailed
from ..host.base import HistoryControl, HostError

logger = logging.getLogger(__name__)

T = TypeVar('T')
R = TypeVar('R')


@asynccontextmanager
async def scoped_resource(acquire: Callable[[], Awaitable[R]],
                          release: Callable[[R], Awaitable[None]]) -> AsyncIterator[R]:
    """
    Acquire a resource, yield it, and release it exactly once.

    If the body fails and the release fails too, the body's exception
    propagates and the release failure is logged.

    Args:
        acquire: Coroutine function returning the resource
        release: Coroutine function releasing the resource
    """
    resource = await acquire()
    try:
        yield resource
    except BaseException:
        try:
            await release(resource)
        except Exception as release_error:
            logger.error(f"Failed to release resource after an error: {release_error}")
        raise
    else:
        await release(resource)


def history_transaction(history: HistoryControl, document_id: int, name: str):
    """
    Suspend document history for the duration of a block.

    Usage:
        async with history_transaction(history, doc.id, "Knife Adjustments"):
            ...
    """
    async def acquire() -> Any:
        try:
            token = await history.suspend_history(document_id, name)
        except HostError as e:
            raise TransactionFailed(f"Could not suspend history for document {document_id}: {e}") from e
        logger.info(f"Opened history transaction '{name}' on document {document_id}")
        return token

    async def release(token: Any) -> None:
        try:
            await history.resume_history(token)
        except HostError as e:
            raise TransactionFailed(f"Could not resume history for document {document_id}: {e}") from e
        logger.info(f"Closed history transaction '{name}' on document {document_id}")

    return scoped_resource(acquire, release)


async def run_atomic(history: HistoryControl, document_id: int, name: str,
                     body: Callable[[], Awaitable[T]]) -> T:
    """
    Run body as a single unit of undo history.

    Errors from body are not caught; they propagate once history has been
    resumed.

    Returns:
        Whatever body returns
    """
    async with history_transaction(history, document_id, name):
        return await body()
