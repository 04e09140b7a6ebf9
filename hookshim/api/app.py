"""Application factory for the hookshim Falcon ASGI application.

Usage
-----
Create a probe-and-echo app (no relay, no poller)::

    app = create_app()

Create the full service::

    from hookshim.api.factory import build_app_dependencies

    app = create_app(build_app_dependencies(config, settings))

"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import falcon.asgi

from hookshim.api.errors import handle_inbound_payload
from hookshim.api.health.resources import HealthResource, ReadyResource
from hookshim.api.hooks.resources import EchoResource, RelayResource
from hookshim.webhook.errors import InboundPayloadError

if typ.TYPE_CHECKING:
    from hookshim.api.lifespan import SchedulerLifecycle
    from hookshim.webhook.relay import InboundRelay

__all__ = ["AppDependencies", "create_app"]


@dc.dataclass(frozen=True, slots=True)
class AppDependencies:
    """Collaborators wired into the Falcon application.

    Attributes
    ----------
    relay
        Inbound relay; ``POST /hook`` is registered only when present.
    lifecycle
        Lifespan middleware running the poller; ``/ready`` follows its
        state when present.

    """

    relay: InboundRelay | None = None
    lifecycle: SchedulerLifecycle | None = None


def create_app(
    dependencies: AppDependencies | None = None,
) -> falcon.asgi.App:
    """Create and configure the Falcon ASGI application.

    ``/health``, ``/ready`` and ``/hookTester`` are always registered.

    Parameters
    ----------
    dependencies
        Optional relay and poller lifecycle.

    Returns
    -------
    falcon.asgi.App
        Configured Falcon ASGI application.

    """
    deps = dependencies or AppDependencies()
    middleware: list[object] = []
    if deps.lifecycle is not None:
        middleware.append(deps.lifecycle)

    app = falcon.asgi.App(middleware=middleware)  # type: ignore[no-matching-overload]  # Falcon stubs

    probe = deps.lifecycle.is_running if deps.lifecycle is not None else None
    app.add_route("/health", HealthResource())
    app.add_route("/ready", ReadyResource(probe))
    app.add_route("/hookTester", EchoResource())
    if deps.relay is not None:
        app.add_route("/hook", RelayResource(deps.relay))

    app.add_error_handler(InboundPayloadError, handle_inbound_payload)

    return app
