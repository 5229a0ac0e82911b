"""Background task that deletes expired signs."""

from __future__ import annotations

import asyncio

import structlog
from sqlalchemy.exc import SQLAlchemyError

from goldticket.database import get_session_factory
from goldticket.signs.service import prune_expired_signs

logger = structlog.get_logger()


class SignPruner:
    """Periodically removes signs past their expiry. Reads already hide them."""

    def __init__(self, interval_seconds: float) -> None:
        self.interval_seconds = interval_seconds
        self._running = False

    async def prune_once(self) -> int:
        async with get_session_factory()() as db:
            deleted = await prune_expired_signs(db)
            await db.commit()
        if deleted:
            logger.info("signs_pruned", count=deleted)
        return deleted

    async def start(self) -> None:
        """Run until stop() is called or the task is cancelled."""
        self._running = True
        logger.info("sign_pruner_started", interval_seconds=self.interval_seconds)
        while self._running:
            try:
                await self.prune_once()
            except SQLAlchemyError:
                logger.exception("sign_prune_failed")
            await asyncio.sleep(self.interval_seconds)

    async def stop(self) -> None:
        self._running = False
