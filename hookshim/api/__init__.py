"""hookshim HTTP surface.

This package provides the Falcon Asynchronous Server Gateway Interface
(ASGI) application: the inbound relay endpoint, the diagnostic echo
endpoint, health probes, and the lifespan middleware running the poller.

Usage
-----
Create the application::

    from hookshim.api import create_app

    app = create_app()              # probes and echo only
    app = create_app(dependencies)  # relay and poller included

"""

from hookshim.api.app import AppDependencies, create_app

__all__ = ["AppDependencies", "create_app"]
