"""Assemble the poller and relay from configuration.

Usage
-----
Build the application dependencies at startup::

    from hookshim.api.factory import build_app_dependencies

    deps = build_app_dependencies(config, settings)

"""

from __future__ import annotations

import typing as typ

from hookshim.api.app import AppDependencies
from hookshim.api.lifespan import SchedulerLifecycle
from hookshim.cursor import FilesystemCursorStore
from hookshim.github import EventReconciler, GitHubRestClient, GitHubRestConfig
from hookshim.polling import PollScheduler, RenameNotifier
from hookshim.webhook import DispatcherConfig, InboundRelay, WebhookDispatcher

if typ.TYPE_CHECKING:
    from hookshim.config import RelayConfig, RelaySettings

__all__ = ["build_app_dependencies", "build_github_clients"]


def build_github_clients(config: RelayConfig) -> dict[str, GitHubRestClient]:
    """Return one REST client per account user.

    When a user appears in several accounts, the first account's
    credential is used.

    Raises
    ------
    GitHubConfigError
        If an account's token is blank.

    """
    clients: dict[str, GitHubRestClient] = {}
    for user in dict.fromkeys(account.user for account in config.accounts):
        account = config.account_for(user)
        if account is not None:
            clients[user] = GitHubRestClient(
                GitHubRestConfig(token=account.token, api_url=config.api_url)
            )
    return clients


def build_app_dependencies(
    config: RelayConfig,
    settings: RelaySettings,
) -> AppDependencies:
    """Wire clients, dispatcher, poller and relay for the running service.

    Parameters
    ----------
    config
        Immutable account configuration.
    settings
        Runtime settings (interval, data directory, delivery limits).

    Returns
    -------
    AppDependencies
        Relay and lifecycle ready to hand to :func:`create_app`.

    """
    clients = build_github_clients(config)
    dispatcher = WebhookDispatcher(
        config,
        settings=DispatcherConfig(
            timeout_s=settings.delivery_timeout_s,
            max_concurrency=settings.max_concurrent_deliveries,
        ),
    )
    scheduler = PollScheduler(
        config,
        {user: EventReconciler(client) for user, client in clients.items()},
        RenameNotifier(dispatcher, clients),
        FilesystemCursorStore(settings.data_dir),
        settings.poll_interval_s,
    )
    lifecycle = SchedulerLifecycle(
        scheduler,
        shutdown_grace_s=settings.shutdown_grace_s,
        closers=[dispatcher.aclose, *(client.aclose for client in clients.values())],
    )
    return AppDependencies(relay=InboundRelay(dispatcher), lifecycle=lifecycle)
