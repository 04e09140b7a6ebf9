"""Falcon error handlers for the webhook endpoints.

Usage
-----
Register the handler on the Falcon app::

    from hookshim.api.errors import handle_inbound_payload
    from hookshim.webhook.errors import InboundPayloadError

    app.add_error_handler(InboundPayloadError, handle_inbound_payload)

"""

from __future__ import annotations

import typing as typ

import falcon

from hookshim.logging import get_logger, log_warning

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from hookshim.webhook.errors import InboundPayloadError

__all__ = ["handle_inbound_payload"]

logger = get_logger(__name__)


async def handle_inbound_payload(
    req: Request,
    resp: Response,
    ex: InboundPayloadError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``InboundPayloadError`` to an HTTP 400 JSON response.

    Parameters
    ----------
    req
        Falcon request, used for the log line.
    resp
        Falcon response whose status and media are set.
    ex
        The routing failure; nothing was forwarded.
    _params
        URI template parameters (unused).

    """
    log_warning(logger, "Rejected webhook on %s: %s", req.path, ex)
    resp.status = falcon.HTTP_400
    resp.media = {
        "title": "Invalid webhook",
        "description": str(ex),
    }
