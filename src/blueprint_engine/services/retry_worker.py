"""Background poller that feeds due retry jobs to the processor."""

import asyncio
from collections.abc import Callable
from datetime import datetime

from blueprint_engine.adapters.store.base import BlueprintRepository
from blueprint_engine.config import settings
from blueprint_engine.domain.enums import ProcessStatus
from blueprint_engine.logging import get_logger
from blueprint_engine.services.retry_processor import ProcessResult, RetryProcessor, utc_now

logger = get_logger(__name__)


class RetryWorker:
    """Polls the job store on a fixed interval and processes due jobs.

    A tick fetches up to ``batch_size`` due jobs (oldest-due first) and runs
    them one after another. A tick that fires while the previous one is still
    running is skipped. The guard is a plain flag, so it only protects ticks
    within this process.
    """

    def __init__(
        self,
        processor: RetryProcessor,
        repository: BlueprintRepository | None = None,
        poll_interval_seconds: float | None = None,
        batch_size: int | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.processor = processor
        self.repository = repository or processor.repository
        self.poll_interval_seconds = (
            poll_interval_seconds
            if poll_interval_seconds is not None
            else settings.retry_poll_interval_seconds
        )
        self.batch_size = batch_size if batch_size is not None else settings.retry_batch_size
        self.clock = clock

        self._is_running = False
        self._timer: asyncio.Task[None] | None = None
        self._ticks: set[asyncio.Task[list[ProcessResult]]] = set()

    @property
    def is_started(self) -> bool:
        return self._timer is not None and not self._timer.done()

    @property
    def is_ticking(self) -> bool:
        return self._is_running

    async def tick(self) -> list[ProcessResult]:
        """Process one batch of due jobs.

        Returns:
            Results for the jobs that finished processing; empty when the tick
            was skipped, nothing was due, or the fetch failed
        """
        if self._is_running:
            logger.debug("retry_worker_tick_skipped")
            return []

        self._is_running = True
        try:
            try:
                jobs = await self.repository.fetch_due_jobs(self.clock(), self.batch_size)
            except Exception as e:
                logger.error("retry_worker_fetch_failed", error=str(e), exc_info=True)
                return []

            if not jobs:
                return []

            logger.info("retry_worker_processing", job_count=len(jobs))

            results: list[ProcessResult] = []
            for job in jobs:
                try:
                    results.append(await self.processor.process(job))
                except Exception as e:
                    logger.error(
                        "retry_worker_job_error",
                        job_id=str(job.id),
                        blueprint_id=str(job.blueprint_id),
                        error=str(e),
                        exc_info=True,
                    )

            logger.info(
                "retry_worker_batch_done",
                job_count=len(jobs),
                completed=sum(1 for r in results if r.status is ProcessStatus.SUCCESS),
                rescheduled=sum(1 for r in results if r.status is ProcessStatus.RETRY_SCHEDULED),
                failed=sum(1 for r in results if r.status is ProcessStatus.FAILED),
                errored=len(jobs) - len(results),
            )
            return results
        finally:
            self._is_running = False

    def _spawn_tick(self) -> None:
        task = asyncio.create_task(self.tick())
        self._ticks.add(task)
        task.add_done_callback(self._ticks.discard)

    async def _run_timer(self) -> None:
        while True:
            await asyncio.sleep(self.poll_interval_seconds)
            self._spawn_tick()

    def start(self) -> None:
        """Start polling on the running event loop."""
        if self.is_started:
            return
        self._timer = asyncio.create_task(self._run_timer())
        logger.info(
            "retry_worker_started",
            poll_interval_seconds=self.poll_interval_seconds,
            batch_size=self.batch_size,
        )

    async def stop(self) -> None:
        """Stop scheduling ticks and let any in-flight tick finish."""
        if self._timer is not None:
            self._timer.cancel()
            try:
                await self._timer
            except asyncio.CancelledError:
                pass
            self._timer = None

        if self._ticks:
            await asyncio.gather(*self._ticks, return_exceptions=True)

        logger.info("retry_worker_stopped")

    async def run_forever(self) -> None:
        """Poll until cancelled, starting with an immediate tick."""
        self._spawn_tick()
        self.start()
        try:
            await asyncio.Event().wait()
        finally:
            await self.stop()
