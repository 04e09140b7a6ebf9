"""ASGI lifespan middleware running the poll loop beside the HTTP app.

Falcon calls ``process_startup`` once the server is ready and
``process_shutdown`` when it is stopping. The poller runs as a task on the
server's event loop; on shutdown it is asked to stop, given
``shutdown_grace_s`` to finish the visit in progress, and cancelled only
if it overruns.

Usage
-----
Register the middleware when creating the Falcon app::

    lifecycle = SchedulerLifecycle(scheduler, shutdown_grace_s=5.0)
    app = falcon.asgi.App(middleware=[lifecycle])

"""

from __future__ import annotations

import asyncio
import typing as typ

from hookshim.logging import get_logger, log_exception, log_info, log_warning

if typ.TYPE_CHECKING:
    from hookshim.polling.scheduler import PollScheduler

__all__ = ["SchedulerLifecycle"]

logger = get_logger(__name__)


class SchedulerLifecycle:
    """Falcon middleware owning the poll loop task.

    Parameters
    ----------
    scheduler
        The poll loop to run for the lifetime of the server.
    shutdown_grace_s
        Seconds to wait for a clean stop before cancelling the task.
    closers
        Coroutine functions awaited after the loop has stopped, typically
        ``aclose`` of the HTTP clients.

    """

    def __init__(
        self,
        scheduler: PollScheduler,
        *,
        shutdown_grace_s: float = 5.0,
        closers: typ.Sequence[typ.Callable[[], typ.Awaitable[None]]] = (),
    ) -> None:
        """Initialise the middleware; the task starts on ASGI startup."""
        self._scheduler = scheduler
        self._grace_s = shutdown_grace_s
        self._closers = list(closers)
        self._task: asyncio.Task[None] | None = None

    def is_running(self) -> bool:
        """Return whether the poll loop task is alive."""
        return self._task is not None and not self._task.done()

    async def process_startup(
        self, _scope: dict[str, typ.Any], _event: dict[str, typ.Any]
    ) -> None:
        """Start the poll loop task."""
        self._task = asyncio.create_task(self._scheduler.run(), name="hookshim-poller")
        log_info(logger, "Poller task started")

    async def process_shutdown(
        self, _scope: dict[str, typ.Any], _event: dict[str, typ.Any]
    ) -> None:
        """Stop the poll loop, cancelling it after the grace period."""
        try:
            if self._task is not None:
                await self._stop_task(self._task)
        finally:
            self._task = None
            for close in self._closers:
                await close()

    async def _stop_task(self, task: asyncio.Task[None]) -> None:
        self._scheduler.stop()
        if not await self._scheduler.wait_stopped(self._grace_s):
            log_warning(
                logger,
                "Poller did not stop within %.1fs, cancelling",
                self._grace_s,
            )
            task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            log_info(logger, "Poller task cancelled")
        except Exception as exc:
            log_exception(logger, "Poller task failed before shutdown", exc)
