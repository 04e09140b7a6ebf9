"""Forward webhooks received from GitHub to the subscribed endpoints.

The inbound body is forwarded byte-for-byte. Signature, event, and delivery
headers are copied from the inbound request rather than regenerated, so a
downstream endpoint sharing the repository secret with GitHub can verify the
original signature.
"""

from __future__ import annotations

import dataclasses
import typing as typ

import httpx
import msgspec

from hookshim.common.slug import parse_repo_slug, repo_slug
from hookshim.logging import get_logger, log_info, log_warning

from .dispatch import DELIVERY_HEADER, EVENT_HEADER, SIGNATURE_HEADER, DispatchTarget
from .errors import InboundPayloadError

if typ.TYPE_CHECKING:
    from .dispatch import DeliveryResult, WebhookDispatcher

logger = get_logger(__name__)

_FORWARDED_HEADERS: tuple[str, ...] = (
    "User-Agent",
    "Content-Type",
    "Accept",
    EVENT_HEADER,
    DELIVERY_HEADER,
    SIGNATURE_HEADER,
)


class _InboundRepository(msgspec.Struct):
    full_name: str


class _InboundPayload(msgspec.Struct):
    repository: _InboundRepository


_INBOUND_DECODER = msgspec.json.Decoder(_InboundPayload)


@dataclasses.dataclass(frozen=True, slots=True)
class RelayOutcome:
    """Routing decision and delivery results for one inbound webhook."""

    owner: str
    repo: str
    event_type: str
    deliveries: list[DeliveryResult] = dataclasses.field(default_factory=list)

    @property
    def slug(self) -> str:
        """Return ``owner/repo``."""
        return repo_slug(self.owner, self.repo)


def extract_repository(raw_body: bytes) -> tuple[str, str]:
    """Return ``(owner, repo)`` named by ``repository.full_name``.

    Raises
    ------
    InboundPayloadError
        If the body is not JSON, lacks ``repository.full_name``, or the name
        is not ``owner/repo``.

    """
    try:
        payload = _INBOUND_DECODER.decode(raw_body)
        return parse_repo_slug(payload.repository.full_name)
    except (msgspec.DecodeError, ValueError) as exc:
        raise InboundPayloadError.malformed(exc) from exc


def forwarded_headers(headers: typ.Mapping[str, str]) -> dict[str, str]:
    """Select the inbound headers passed through to downstream endpoints."""
    lookup = httpx.Headers(dict(headers))
    return {name: lookup[name] for name in _FORWARDED_HEADERS if name in lookup}


class InboundRelay:
    """Route inbound webhooks to the dispatcher without re-signing them."""

    def __init__(self, dispatcher: WebhookDispatcher) -> None:
        """Bind the relay to the shared dispatcher."""
        self._dispatcher = dispatcher

    async def handle(
        self, raw_body: bytes, headers: typ.Mapping[str, str]
    ) -> RelayOutcome:
        """Forward ``raw_body`` to every hook subscribed to its event.

        Header lookup is case-insensitive. Targets are dispatched without a
        secret so the inbound ``X-Hub-Signature`` is passed on unchanged.

        Raises
        ------
        InboundPayloadError
            If the repository cannot be identified or the event header is
            missing. Nothing is forwarded in that case.

        """
        owner, repo = extract_repository(raw_body)
        passthrough = forwarded_headers(headers)
        event_type = passthrough.get(EVENT_HEADER, "")
        if not event_type:
            log_warning(
                logger,
                "Inbound webhook for %s has no %s header; "
                "rejecting it, wildcard hooks are not notified",
                repo_slug(owner, repo),
                EVENT_HEADER,
            )
            raise InboundPayloadError.missing_header(EVENT_HEADER)

        targets = [
            DispatchTarget(url=target.url)
            for target in self._dispatcher.resolve_targets(owner, repo, event_type)
        ]
        if not targets:
            log_warning(
                logger,
                "Inbound %s webhook for %s matched no hook",
                event_type,
                repo_slug(owner, repo),
            )
            return RelayOutcome(owner=owner, repo=repo, event_type=event_type)

        log_info(
            logger,
            "Relaying %s webhook %s for %s to %d endpoint(s)",
            event_type,
            passthrough.get(DELIVERY_HEADER, "-"),
            repo_slug(owner, repo),
            len(targets),
        )
        deliveries = await self._dispatcher.dispatch_all(
            targets, raw_body, lambda: passthrough
        )
        return RelayOutcome(
            owner=owner, repo=repo, event_type=event_type, deliveries=deliveries
        )
