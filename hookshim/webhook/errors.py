"""Errors raised while handling inbound webhooks."""

from __future__ import annotations


class InboundPayloadError(ValueError):
    """Raised when an inbound webhook cannot be routed.

    The relay logs these and answers 400; nothing is forwarded.
    """

    @classmethod
    def malformed(cls, reason: object) -> InboundPayloadError:
        """Return an error for a body without a usable ``repository.full_name``."""
        return cls(f"malformed webhook payload: {reason}")

    @classmethod
    def missing_header(cls, header: str) -> InboundPayloadError:
        """Return an error for a webhook without the event-type header."""
        return cls(f"missing {header} header")
