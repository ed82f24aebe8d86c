"""
Unit of work: one MongoDB client session and transaction per workflow action.
"""
import logging
from typing import Awaitable, Callable, List

from pymongo.errors import PyMongoError

from asset_guardian.core.exceptions import ConflictError
from asset_guardian.db.mongodb import get_client

logger = logging.getLogger(__name__)

MAX_COMMIT_ATTEMPTS = 3


class UnitOfWork:
    """
    Async context manager wrapping a Motor client session and a multi-document transaction.

    All repository calls made with `uow.session` commit together or not at all.
    Callbacks registered with `after_commit` run only once the transaction has committed.

    Usage:
        async with UnitOfWork() as uow:
            await repo.compare_and_set(..., session=uow.session)
            uow.after_commit(lambda: event_bus.publish(event))
    """

    def __init__(self, client=None):
        self._client = client
        self.session = None
        self._after_commit: List[Callable[[], Awaitable[None]]] = []

    async def __aenter__(self) -> "UnitOfWork":
        client = self._client or get_client()
        self.session = await client.start_session()
        self.session.start_transaction()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        try:
            if exc_type is not None:
                await self._abort()
                if isinstance(exc, PyMongoError) and exc.has_error_label("TransientTransactionError"):
                    logger.warning(f"Transaction aborted on write conflict: {exc}")
                    raise ConflictError("The record was modified concurrently, please refresh and retry") from exc
                return False

            await self._commit()
        finally:
            await self.session.end_session()

        for callback in self._after_commit:
            await callback()
        return False

    def after_commit(self, callback: Callable[[], Awaitable[None]]) -> None:
        """
        Register a coroutine function to run after a successful commit.

        Args:
            callback: Zero-argument coroutine function
        """
        self._after_commit.append(callback)

    async def _abort(self):
        if self.session.in_transaction:
            try:
                await self.session.abort_transaction()
            except PyMongoError as e:
                logger.error(f"Error aborting transaction: {e}")

    async def _commit(self):
        for attempt in range(1, MAX_COMMIT_ATTEMPTS + 1):
            try:
                await self.session.commit_transaction()
                return
            except PyMongoError as e:
                if e.has_error_label("UnknownTransactionCommitResult") and attempt < MAX_COMMIT_ATTEMPTS:
                    logger.warning(f"Retrying commit after unknown result (attempt {attempt}): {e}")
                    continue
                if e.has_error_label("TransientTransactionError"):
                    logger.warning(f"Commit rejected on write conflict: {e}")
                    raise ConflictError("The record was modified concurrently, please refresh and retry") from e
                raise
