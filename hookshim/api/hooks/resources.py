"""Resources for ``POST /hook`` and ``POST /hookTester``.

Usage
-----
Register the resources on the Falcon app::

    app.add_route("/hook", RelayResource(relay))
    app.add_route("/hookTester", EchoResource())

"""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

from hookshim.logging import get_logger, log_info
from hookshim.webhook.dispatch import sign_payload

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from hookshim.webhook.relay import InboundRelay

__all__ = ["ECHO_SECRET", "EchoResource", "RelayResource"]

logger = get_logger(__name__)

ECHO_SECRET = "test1234"


class RelayResource:
    """Forward provider webhooks to the subscribed downstream endpoints.

    Responds 200 with a delivery summary once every forward has been
    attempted. Unroutable payloads raise
    :class:`~hookshim.webhook.errors.InboundPayloadError`, which the app
    maps to 400.
    """

    def __init__(self, relay: InboundRelay) -> None:
        """Bind the resource to the inbound relay."""
        self._relay = relay

    async def on_post(self, req: Request, resp: Response) -> None:
        """Handle POST /hook requests.

        Parameters
        ----------
        req
            Falcon request whose raw body and headers are forwarded.
        resp
            Falcon response populated with the delivery summary.

        """
        body = await req.stream.read()
        outcome = await self._relay.handle(body, req.headers)
        resp.media = {
            "repository": outcome.slug,
            "event": outcome.event_type,
            "deliveries": len(outcome.deliveries),
            "failed": sum(1 for result in outcome.deliveries if not result.ok),
        }
        resp.status = HTTPStatus.OK


class EchoResource:
    """Diagnostic endpoint that logs whatever is POSTed to it.

    Acts as a stand-in downstream endpoint: headers and body are logged
    together with the signature a receiver sharing the secret ``test1234``
    would compute.
    """

    async def on_post(self, req: Request, resp: Response) -> None:
        """Handle POST /hookTester requests."""
        body = await req.stream.read()
        signature = sign_payload(ECHO_SECRET, body)
        headers = "\n".join(
            f"\t{name}: {value}" for name, value in sorted(req.headers.items())
        )
        log_info(
            logger,
            "Received webhook call:\n[Header]\n%s\n[Body]\n%s\nchecksum: %s",
            headers,
            body.decode("utf-8", errors="replace"),
            signature,
        )
        resp.media = {"signature": signature}
        resp.status = HTTPStatus.OK
