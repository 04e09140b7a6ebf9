"""Turn detected renames into dispatched ``issues`` webhooks."""

from __future__ import annotations

import typing as typ

from hookshim.common.slug import repo_slug
from hookshim.github.errors import (
    GitHubAPIError,
    GitHubResponseShapeError,
    GitHubTransportError,
)
from hookshim.logging import get_logger, log_info, log_warning
from hookshim.webhook.payload import (
    EMPTY_REPOSITORY,
    ISSUES_EVENT,
    synthesize_rename_payload,
)

if typ.TYPE_CHECKING:
    import msgspec

    from hookshim.github.client import RepositorySource
    from hookshim.github.models import CandidateEvent
    from hookshim.webhook.dispatch import DeliveryResult, WebhookDispatcher

logger = get_logger(__name__)

_METADATA_ERRORS = (GitHubAPIError, GitHubTransportError, GitHubResponseShapeError)


class RenameNotifier:
    """Announce rename events to every hook subscribed to ``issues``.

    Parameters
    ----------
    dispatcher
        Shared outbound dispatcher.
    repository_sources
        Repository readers keyed by account user; the owner's credential is
        used to fetch repository metadata.

    """

    def __init__(
        self,
        dispatcher: WebhookDispatcher,
        repository_sources: typ.Mapping[str, RepositorySource],
    ) -> None:
        """Store the dispatcher and per-account repository readers."""
        self._dispatcher = dispatcher
        self._sources = repository_sources

    async def repository_metadata(self, owner: str, repo: str) -> msgspec.Raw:
        """Fetch filtered repository metadata, or ``{}`` if it is unavailable."""
        source = self._sources.get(owner)
        if source is None:
            return EMPTY_REPOSITORY
        try:
            return await source.fetch_repository(owner, repo)
        except _METADATA_ERRORS as exc:
            log_warning(
                logger,
                "Repository metadata for %s unavailable, sending {}: %s",
                repo_slug(owner, repo),
                exc,
            )
            return EMPTY_REPOSITORY

    async def notify(
        self, owner: str, repo: str, events: typ.Sequence[CandidateEvent]
    ) -> list[DeliveryResult]:
        """Dispatch one ``issues`` webhook per event, in the given order."""
        if not events:
            return []
        if not self._dispatcher.resolve_targets(owner, repo, ISSUES_EVENT):
            log_info(
                logger,
                "%d rename(s) on %s but no hook subscribes to %s",
                len(events),
                repo_slug(owner, repo),
                ISSUES_EVENT,
            )
            return []

        repository = await self.repository_metadata(owner, repo)
        results: list[DeliveryResult] = []
        for event in events:
            log_info(
                logger,
                "Issue renamed on %s (event id=%d)",
                repo_slug(owner, repo),
                event.event_id,
            )
            payload = synthesize_rename_payload(event, repository)
            results.extend(
                await self._dispatcher.deliver_event(
                    owner, repo, ISSUES_EVENT, payload
                )
            )
        return results
