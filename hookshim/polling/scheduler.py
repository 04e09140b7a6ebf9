"""Round-robin poll loop over every configured repository.

The loop spreads one ``interval`` across all repositories: after each visit
it waits ``interval / repository_count`` seconds, so the whole set is covered
once per interval regardless of how many repositories there are. A stop
request interrupts the wait immediately, but an in-progress visit always
runs to completion so cursor writes are never torn.
"""

from __future__ import annotations

import asyncio
import datetime as dt
import typing as typ

from hookshim.common.slug import repo_slug
from hookshim.cursor import Cursor
from hookshim.github.errors import (
    GitHubAPIError,
    GitHubResponseShapeError,
    GitHubTransportError,
)
from hookshim.github.observability import PollEventLogger, PollRunContext
from hookshim.logging import get_logger, log_info, log_warning

if typ.TYPE_CHECKING:
    from hookshim.config.models import RelayConfig
    from hookshim.cursor import CursorStore
    from hookshim.github.models import ReconcileResult
    from hookshim.github.reconcile import EventReconciler

    from .notifier import RenameNotifier

logger = get_logger(__name__)

_POLL_ERRORS = (GitHubAPIError, GitHubTransportError, GitHubResponseShapeError)


class PollScheduler:
    """Drive reconciliation for every repository within a fixed time budget.

    Parameters
    ----------
    config
        Immutable relay configuration; its repositories are visited in order.
    reconcilers
        One reconciler per account user, bound to that account's credential.
    notifier
        Receives the rename events found by each pass.
    store
        Durable cursor storage.
    interval_s
        Seconds needed to visit every repository once.
    event_logger
        Structured poll logger; a default one is created when omitted.

    """

    def __init__(  # noqa: PLR0913 - collaborators are injected explicitly
        self,
        config: RelayConfig,
        reconcilers: typ.Mapping[str, EventReconciler],
        notifier: RenameNotifier,
        store: CursorStore,
        interval_s: float,
        *,
        event_logger: PollEventLogger | None = None,
    ) -> None:
        """Prepare the loop; no I/O happens until :meth:`run`."""
        self._repositories = config.repositories()
        self._reconcilers = reconcilers
        self._notifier = notifier
        self._store = store
        self._interval_s = interval_s
        self._event_logger = event_logger or PollEventLogger()
        self._cursors: dict[tuple[str, str], Cursor] = {}
        self._restored = False
        self._stop_requested = asyncio.Event()
        self.stopped = asyncio.Event()

    @property
    def repositories(self) -> list[tuple[str, str]]:
        """Return the ``(owner, repo)`` pairs visited by the loop."""
        return list(self._repositories)

    @property
    def visit_delay_s(self) -> float:
        """Return the wait between two repository visits."""
        if not self._repositories:
            return self._interval_s
        return self._interval_s / len(self._repositories)

    def cursor_for(self, owner: str, repo: str) -> Cursor:
        """Return the in-memory cursor for ``owner/repo``."""
        return self._cursors.get((owner, repo), Cursor())

    async def restore_cursors(self) -> None:
        """Load every repository's stored cursor once."""
        if self._restored:
            return
        for owner, repo in self._repositories:
            self._cursors[(owner, repo)] = await self._store.load(owner, repo)
        self._restored = True

    async def poll_repository(self, owner: str, repo: str) -> ReconcileResult | None:
        """Run one reconciliation pass and notify any renames it found.

        A failed pass is logged and leaves the cursor untouched. A failed
        cursor write is logged and the new cursor is kept in memory.
        """
        reconciler = self._reconcilers.get(owner)
        if reconciler is None:
            log_warning(
                logger, "No credential for %s, skipping", repo_slug(owner, repo)
            )
            return None

        key = (owner, repo)
        cursor = self._cursors.get(key, Cursor())
        started_at = dt.datetime.now(dt.UTC)
        context = PollRunContext(owner=owner, repo=repo, started_at=started_at)
        self._event_logger.log_cycle_started(context)

        try:
            result = await reconciler.reconcile(owner, repo, cursor)
        except _POLL_ERRORS as exc:
            self._event_logger.log_cycle_failed(
                context, exc, dt.datetime.now(dt.UTC) - started_at
            )
            return None

        self._event_logger.log_cycle_completed(
            context, result, dt.datetime.now(dt.UTC) - started_at
        )
        if result.cursor != cursor:
            self._cursors[key] = result.cursor
            if not await self._store.save(owner, repo, result.cursor):
                self._event_logger.log_cursor_not_persisted(
                    context, result.cursor.marker
                )

        await self._notifier.notify(owner, repo, result.events)
        return result

    async def run(self) -> None:
        """Visit repositories round-robin until :meth:`stop` is called."""
        try:
            await self.restore_cursors()
            if not self._repositories:
                log_warning(logger, "No repositories configured; poller is idle")
                await self._stop_requested.wait()
                return

            log_info(
                logger,
                "Polling %d repositories every %.1fs (%.3fs between visits)",
                len(self._repositories),
                self._interval_s,
                self.visit_delay_s,
            )
            while not self._stop_requested.is_set():
                for owner, repo in self._repositories:
                    if self._stop_requested.is_set():
                        break
                    await self.poll_repository(owner, repo)
                    if await self._wait_for_stop(self.visit_delay_s):
                        break
        finally:
            self.stopped.set()
            log_info(logger, "Poller stopped")

    def stop(self) -> None:
        """Ask the loop to exit after the current visit."""
        self._stop_requested.set()

    async def wait_stopped(self, timeout: float) -> bool:
        """Wait up to ``timeout`` seconds; return whether the loop exited."""
        try:
            await asyncio.wait_for(self.stopped.wait(), timeout)
        except TimeoutError:
            return False
        return True

    async def _wait_for_stop(self, delay: float) -> bool:
        try:
            await asyncio.wait_for(self._stop_requested.wait(), delay)
        except TimeoutError:
            return False
        return True
