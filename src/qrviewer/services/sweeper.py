"""
Expiry Sweeper.

Periodically deletes viewer tokens whose expiry has passed.

Housekeeping only: TokenService.resolve checks liveness on every call, so a
late or skipped sweep never lets an expired token through, it only delays
storage reclamation.

Idempotent: the sweep is a DELETE by cutoff. Running it twice in a row
deletes nothing the second time.
"""

import asyncio

from src.qrviewer.core.logging import get_logger
from src.qrviewer.core.metrics import TOKENS_SWEPT
from src.qrviewer.models import utc_now
from src.qrviewer.services.token_service import TokenService
from src.qrviewer.storage.base import Clock

logger = get_logger(__name__)

DEFAULT_SWEEP_INTERVAL_SECONDS = 60 * 60


class ExpirySweeper:
    """Runs TokenService.sweep on a fixed interval inside the API process."""

    def __init__(
        self,
        service: TokenService,
        interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
        clock: Clock = utc_now,
    ) -> None:
        self.service = service
        self.interval_seconds = interval_seconds
        self.clock = clock
        self._task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> int:
        """Sweep once. The storage call runs in a worker thread.

        Returns:
            Number of tokens deleted
        """
        now = self.clock()
        deleted = await asyncio.to_thread(self.service.sweep, now)
        TOKENS_SWEPT.inc(deleted)
        if deleted > 0:
            logger.info("Cleaned up expired viewer tokens", deleted=deleted)
        else:
            logger.debug("No expired viewer tokens to clean up")
        return deleted

    async def _run(self) -> None:
        logger.info("Expiry sweeper started", interval_seconds=self.interval_seconds)
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                await self.run_once()
            except Exception:
                # Next tick retries; resolution enforces expiry regardless
                logger.exception("Expiry sweep failed")

    def start(self) -> None:
        """Start the background loop on the running event loop."""
        if self.is_running:
            return
        self._task = asyncio.create_task(self._run(), name="expiry-sweeper")

    async def stop(self) -> None:
        """Cancel the background loop and wait for it to finish."""
        if self._task is None:
            return
        task, self._task = self._task, None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.exception("Expiry sweeper exited with an error")
        logger.info("Expiry sweeper stopped")
