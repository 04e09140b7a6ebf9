"""Incremental issue-event reconciliation.

GitHub does not send webhooks for issue renames, so the poller walks a
repository's issue-event history newest-first and picks out ``renamed``
events it has not seen. Each pass:

* sends the stored ``ETag`` as ``If-None-Match`` on page 1 and returns
  immediately on 304, so an idle repository costs no rate-limit quota;
* scans records in order, stopping the whole pass at the first event whose id
  is at or below the stored marker;
* follows ``?page=N`` up to the last page advertised by page 1's ``Link``
  header when the stop condition was not reached;
* returns the page-1 ``ETag`` and the highest id seen as the new cursor.

A repository with a zero marker has never been scanned; its pass never stops
early and collects every rename in the whole history.

Markers are event ids, which GitHub assigns in a strict total order. Event
timestamps are not usable as markers: several events can share a second, so
an ``<=`` stop condition on timestamps drops or repeats events at the
boundary.
"""

from __future__ import annotations

import dataclasses
import typing as typ

from hookshim.common.slug import repo_slug
from hookshim.logging import get_logger, log_debug

from .models import RENAMED_EVENT, CandidateEvent, ReconcileResult

if typ.TYPE_CHECKING:
    from hookshim.cursor import Cursor

    from .client import IssueEventSource
    from .models import IssueEventRecord

logger = get_logger(__name__)


@dataclasses.dataclass(slots=True)
class _HistoryScan:
    """Running state of one pass across however many pages it needs."""

    slug: str
    stored_marker: int
    cold: bool
    max_seen: int = 0
    events: list[CandidateEvent] = dataclasses.field(default_factory=list)

    def consume(self, records: list[IssueEventRecord]) -> bool:
        """Scan one page; return ``True`` once previously seen history starts."""
        for record in records:
            # Pages should arrive sorted, but the maximum is tracked anyway.
            self.max_seen = max(self.max_seen, record.id)
            if not self.cold and record.id <= self.stored_marker:
                return True

            log_debug(
                logger,
                "%s event id=%d stored=%d type=%s",
                self.slug,
                record.id,
                self.stored_marker,
                record.event,
            )
            if record.event == RENAMED_EVENT:
                self.events.append(CandidateEvent.from_record(record))
        return False


class EventReconciler:
    """Find rename events newer than a repository's cursor.

    Parameters
    ----------
    source
        Issue-event reader, normally the account's
        :class:`~hookshim.github.client.GitHubRestClient`.

    """

    def __init__(self, source: IssueEventSource) -> None:
        """Bind the reconciler to an issue-event source."""
        self._source = source

    async def reconcile(self, owner: str, repo: str, cursor: Cursor) -> ReconcileResult:
        """Run one pass for ``owner/repo`` starting from ``cursor``.

        Errors from the source propagate unchanged so the caller can abandon
        the pass without touching its stored cursor.
        """
        first = await self._source.fetch_issue_events(
            owner, repo, page=1, validator=cursor.validator or None
        )
        if first.not_modified:
            return ReconcileResult(cursor=cursor, pages_fetched=1, not_modified=True)

        scan = _HistoryScan(
            slug=repo_slug(owner, repo),
            stored_marker=cursor.marker,
            cold=cursor.is_cold,
        )
        page_number = 1
        reached_seen = scan.consume(first.records)
        while not reached_seen and page_number < first.last_page:
            page_number += 1
            page = await self._source.fetch_issue_events(owner, repo, page=page_number)
            reached_seen = scan.consume(page.records)

        return ReconcileResult(
            cursor=cursor.advance(first.etag, scan.max_seen),
            events=scan.events,
            pages_fetched=page_number,
        )
