"""Resolve downstream endpoints and POST webhooks to them.

Delivery is best-effort: each POST is attempted once, failures are logged
and reported in the returned :class:`DeliveryResult`, and nothing is raised
to the caller. Concurrency is capped by a semaphore and every POST is
bounded by a hard timeout so an unreachable endpoint cannot eat the poll
loop's time budget.
"""

from __future__ import annotations

import asyncio
import dataclasses
import hashlib
import hmac
import typing as typ
import uuid

import httpx

from hookshim.common.slug import repo_slug
from hookshim.logging import get_logger, log_debug, log_info, log_warning

if typ.TYPE_CHECKING:
    from hookshim.config.models import RelayConfig

logger = get_logger(__name__)

EVENT_HEADER = "X-GitHub-Event"
DELIVERY_HEADER = "X-GitHub-Delivery"
SIGNATURE_HEADER = "X-Hub-Signature"

_HTTP_ERROR_STATUS_THRESHOLD = 400


def sign_payload(secret: str, payload: bytes) -> str:
    """Return the ``X-Hub-Signature`` value for ``payload``.

    Examples
    --------
    >>> sign_payload("s3cret", b'{"a":1}').startswith("sha1=")
    True

    """
    digest = hmac.new(secret.encode("utf-8"), payload, hashlib.sha1).hexdigest()
    return f"sha1={digest}"


@dataclasses.dataclass(frozen=True, slots=True)
class DispatchTarget:
    """One downstream endpoint and the secret used to sign for it."""

    url: str
    secret: str | None = None


@dataclasses.dataclass(frozen=True, slots=True)
class DeliveryResult:
    """What happened to one outbound POST."""

    url: str
    delivery_id: str
    status_code: int | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        """Return whether the endpoint answered with a non-error status."""
        return (
            self.status_code is not None
            and self.status_code < _HTTP_ERROR_STATUS_THRESHOLD
        )


@dataclasses.dataclass(frozen=True, slots=True)
class DispatcherConfig:
    """Outbound delivery limits."""

    timeout_s: float = 10.0
    max_concurrency: int = 4
    user_agent: str = "hookshim"


class WebhookDispatcher:
    """Fan webhooks out to the endpoints subscribed in :class:`RelayConfig`.

    Parameters
    ----------
    config
        Immutable account and hook configuration.
    settings
        Timeout and concurrency limits for outbound POSTs.
    http_client
        Optional client, mainly for tests; one is created otherwise.

    """

    def __init__(
        self,
        config: RelayConfig,
        *,
        settings: DispatcherConfig | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialise the dispatcher with configuration and limits."""
        self._config = config
        self._settings = settings or DispatcherConfig()
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=self._settings.timeout_s
        )
        self._slots = asyncio.Semaphore(self._settings.max_concurrency)

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    def resolve_targets(
        self, owner: str, repo: str, event_type: str
    ) -> list[DispatchTarget]:
        """Return every endpoint subscribed to ``event_type`` on ``owner/repo``.

        All accounts named ``owner`` are searched and every matching rule is
        returned in configuration order.
        """
        return [
            DispatchTarget(url=hook.url, secret=hook.secret)
            for account in self._config.accounts
            if account.user == owner
            for hook in account.hooks
            if hook.repo == repo and hook.matches(event_type)
        ]

    def event_headers(self, event_type: str) -> dict[str, str]:
        """Return headers for a newly generated delivery of ``event_type``."""
        return {
            "User-Agent": self._settings.user_agent,
            "Accept": "*/*",
            EVENT_HEADER: event_type,
            DELIVERY_HEADER: str(uuid.uuid4()),
        }

    async def dispatch(
        self,
        target: DispatchTarget,
        payload: bytes,
        headers: typ.Mapping[str, str],
    ) -> DeliveryResult:
        """POST ``payload`` to ``target`` once.

        ``Content-Type`` is always JSON. When the target has a secret, the
        HMAC-SHA1 of exactly ``payload`` is added as ``X-Hub-Signature``,
        replacing any signature present in ``headers``.
        Header values httpx cannot encode fail the delivery like any
        transport error.
        """
        request_headers = dict(headers)
        request_headers["Content-Type"] = "application/json"
        if target.secret:
            request_headers[SIGNATURE_HEADER] = sign_payload(target.secret, payload)
        delivery_id = request_headers.get(DELIVERY_HEADER, "")

        try:
            async with self._slots:
                async with (
                    asyncio.timeout(self._settings.timeout_s),
                    self._client.stream(
                        "POST", target.url, content=payload, headers=request_headers
                    ) as response,
                ):
                    status_code = response.status_code
        except (
            httpx.HTTPError,
            httpx.InvalidURL,
            TimeoutError,
            UnicodeEncodeError,
        ) as exc:
            log_warning(
                logger,
                "Webhook delivery %s to %s failed: %s: %s",
                delivery_id,
                target.url,
                type(exc).__name__,
                exc,
            )
            return DeliveryResult(
                url=target.url,
                delivery_id=delivery_id,
                error=f"{type(exc).__name__}: {exc}",
            )

        if status_code >= _HTTP_ERROR_STATUS_THRESHOLD:
            log_warning(
                logger,
                "Webhook delivery %s to %s answered HTTP %d",
                delivery_id,
                target.url,
                status_code,
            )
        else:
            log_debug(
                logger,
                "Webhook delivery %s to %s answered HTTP %d",
                delivery_id,
                target.url,
                status_code,
            )
        return DeliveryResult(
            url=target.url, delivery_id=delivery_id, status_code=status_code
        )

    async def dispatch_all(
        self,
        targets: typ.Sequence[DispatchTarget],
        payload: bytes,
        headers_for: typ.Callable[[], typ.Mapping[str, str]],
    ) -> list[DeliveryResult]:
        """Dispatch ``payload`` to every target concurrently.

        ``headers_for`` is called once per target so each delivery can carry
        its own delivery id.
        """
        return list(
            await asyncio.gather(
                *(self.dispatch(target, payload, headers_for()) for target in targets)
            )
        )

    async def deliver_event(
        self,
        owner: str,
        repo: str,
        event_type: str,
        payload: bytes,
    ) -> list[DeliveryResult]:
        """Sign and send a generated ``event_type`` webhook for ``owner/repo``."""
        targets = self.resolve_targets(owner, repo, event_type)
        if not targets:
            log_debug(
                logger,
                "No hook subscribed to %s on %s",
                event_type,
                repo_slug(owner, repo),
            )
            return []

        log_info(
            logger,
            "Sending %s webhook for %s to %d endpoint(s)",
            event_type,
            repo_slug(owner, repo),
            len(targets),
        )
        return await self.dispatch_all(
            targets, payload, lambda: self.event_headers(event_type)
        )
