"""Liveness and readiness probes.

Usage
-----
Register health endpoints on the Falcon app::

    from hookshim.api.health.resources import HealthResource, ReadyResource

    app.add_route("/health", HealthResource())
    app.add_route("/ready", ReadyResource(lifecycle.is_running))

"""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

__all__ = ["HealthResource", "ReadyResource"]


class HealthResource:
    """Liveness probe returning ``{"status": "ok"}``."""

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /health requests."""
        resp.media = {"status": "ok"}
        resp.status = HTTPStatus.OK


class ReadyResource:
    """Readiness probe reporting whether the poller is running.

    Parameters
    ----------
    probe
        Callable returning ``True`` while the poll loop is alive. Without a
        probe the service is always ready.

    """

    def __init__(self, probe: typ.Callable[[], bool] | None = None) -> None:
        """Store the readiness probe."""
        self._probe = probe

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /ready requests.

        Parameters
        ----------
        _req
            Falcon request (unused).
        resp
            Falcon response populated with readiness status; 503 while the
            poll loop is not running.

        """
        if self._probe is not None and not self._probe():
            resp.media = {"status": "starting"}
            resp.status = HTTPStatus.SERVICE_UNAVAILABLE
            return
        resp.media = {"status": "ready"}
        resp.status = HTTPStatus.OK
