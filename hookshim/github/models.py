"""Typed views over GitHub issue-event responses.

Issue and actor objects are kept as :class:`msgspec.Raw` so they can be
forwarded byte-for-byte in synthesized webhooks.
"""

from __future__ import annotations

import dataclasses
import typing as typ

import msgspec

if typ.TYPE_CHECKING:
    from hookshim.cursor import Cursor

RENAMED_EVENT = "renamed"

_NULL = b"null"


def _null_raw() -> msgspec.Raw:
    return msgspec.Raw(_NULL)


class IssueEventRecord(msgspec.Struct, kw_only=True):
    """One entry of ``/repos/{owner}/{repo}/issues/events``."""

    id: int
    event: str = ""
    created_at: str | None = None
    issue: msgspec.Raw = msgspec.field(default_factory=_null_raw)
    actor: msgspec.Raw = msgspec.field(default_factory=_null_raw)


@dataclasses.dataclass(frozen=True, slots=True)
class IssueEventsPage:
    """A decoded page of issue events plus the response metadata we use."""

    records: list[IssueEventRecord]
    etag: str = ""
    last_page: int = 0
    not_modified: bool = False


@dataclasses.dataclass(frozen=True, slots=True)
class CandidateEvent:
    """A rename event not yet turned into an outbound webhook."""

    event_id: int
    issue: msgspec.Raw
    actor: msgspec.Raw

    @classmethod
    def from_record(cls, record: IssueEventRecord) -> CandidateEvent:
        """Copy the issue and actor payloads of ``record`` verbatim."""
        return cls(event_id=record.id, issue=record.issue, actor=record.actor)


@dataclasses.dataclass(frozen=True, slots=True)
class ReconcileResult:
    """Outcome of one reconciliation pass over a repository."""

    cursor: Cursor
    events: list[CandidateEvent] = dataclasses.field(default_factory=list)
    pages_fetched: int = 0
    not_modified: bool = False
