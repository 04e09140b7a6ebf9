"""Build ``issues`` webhook bodies for detected renames.

The issue and sender objects are the exact bytes GitHub returned in the
issue-event history; only the envelope is generated here. The repository
object is fetched fresh at dispatch time because counts such as
``open_issues`` change independently of the rename.
"""

from __future__ import annotations

import typing as typ

import msgspec

if typ.TYPE_CHECKING:
    from hookshim.github.models import CandidateEvent

RENAMED_ISSUE_ACTION = "updated"
ISSUES_EVENT = "issues"
EMPTY_REPOSITORY = msgspec.Raw(b"{}")


class IssuesWebhookPayload(msgspec.Struct):
    """Envelope of a synthesized ``issues`` webhook, in wire field order."""

    action: str
    issue: msgspec.Raw
    repository: msgspec.Raw
    sender: msgspec.Raw


_ENCODER = msgspec.json.Encoder()


def synthesize_rename_payload(
    event: CandidateEvent,
    repository: msgspec.Raw = EMPTY_REPOSITORY,
) -> bytes:
    """Return the JSON body announcing ``event`` to downstream endpoints.

    Examples
    --------
    >>> from hookshim.github.models import CandidateEvent
    >>> event = CandidateEvent(1, msgspec.Raw(b'{"number":7}'), msgspec.Raw(b"{}"))
    >>> synthesize_rename_payload(event)
    b'{"action":"updated","issue":{"number":7},"repository":{},"sender":{}}'

    """
    return _ENCODER.encode(
        IssuesWebhookPayload(
            action=RENAMED_ISSUE_ACTION,
            issue=event.issue,
            repository=repository,
            sender=event.actor,
        )
    )
