"""Outbound webhook delivery, rename payloads and inbound relaying."""

from __future__ import annotations

from .dispatch import (
    DELIVERY_HEADER,
    EVENT_HEADER,
    SIGNATURE_HEADER,
    DeliveryResult,
    DispatcherConfig,
    DispatchTarget,
    WebhookDispatcher,
    sign_payload,
)
from .errors import InboundPayloadError
from .payload import (
    EMPTY_REPOSITORY,
    ISSUES_EVENT,
    RENAMED_ISSUE_ACTION,
    IssuesWebhookPayload,
    synthesize_rename_payload,
)
from .relay import InboundRelay, RelayOutcome, extract_repository, forwarded_headers

__all__ = [
    "DELIVERY_HEADER",
    "EMPTY_REPOSITORY",
    "EVENT_HEADER",
    "ISSUES_EVENT",
    "RENAMED_ISSUE_ACTION",
    "SIGNATURE_HEADER",
    "DeliveryResult",
    "DispatchTarget",
    "DispatcherConfig",
    "InboundPayloadError",
    "InboundRelay",
    "IssuesWebhookPayload",
    "RelayOutcome",
    "WebhookDispatcher",
    "extract_repository",
    "forwarded_headers",
    "sign_payload",
    "synthesize_rename_payload",
]
