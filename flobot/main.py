"""flobot entry point: wires the backend, the store and the handlers, then runs the loop."""

from __future__ import annotations

import asyncio
import signal
import sys
from pathlib import Path

import click

from flobot.client.base import BackendError
from flobot.client.mattermost import MattermostClient, MattermostListener
from flobot.config import Settings, load_settings
from flobot.core.instance import Instance, InstanceError
from flobot.core.queue import EventQueue
from flobot.core.tempo import Tempo
from flobot.db.base import DatabaseError
from flobot.db.sqlite import SqliteTriggerStore
from flobot.handlers.base import LockedHandler
from flobot.handlers.trigger import TriggerHandler
from flobot.middleware.builtin import IgnoreSelf
from flobot.models import Shutdown
from flobot.utils.logging import get_logger, setup_logging

log = get_logger(__name__)


def build_instance(
    settings: Settings,
    client: MattermostClient,
    store: SqliteTriggerStore,
    tempo: Tempo[str],
) -> Instance:
    trigger = TriggerHandler(
        store,
        client,
        tempo.clone(),
        repeat_delay=settings.trigger.repeat_delay,
        channel_rate_limit=settings.trigger.channel_rate_limit,
    )
    instance = Instance(client, poll_timeout=settings.instance.poll_timeout)
    instance.add_middleware(IgnoreSelf(client.me))
    instance.add_post_handler(LockedHandler(trigger))
    return instance


async def run(settings: Settings) -> None:
    store = SqliteTriggerStore(Path(settings.database.path))
    client = MattermostClient(settings.mattermost)
    queue = EventQueue()

    def _signal_handler() -> None:
        log.info("shutdown_signal")
        if not queue.closed:
            queue.put(Shutdown())

    loop = asyncio.get_running_loop()
    if sys.platform != "win32":
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, _signal_handler)

    listen_task: asyncio.Task[None] | None = None
    try:
        await store.start()
        await client.start()

        listener = MattermostListener(settings.mattermost, queue)
        listen_task = asyncio.create_task(listener.listen(), name="mattermost-listener")

        instance = build_instance(settings, client, store, Tempo())
        await instance.run(queue)
    finally:
        if listen_task is not None:
            listen_task.cancel()
            await asyncio.gather(listen_task, return_exceptions=True)
        await client.stop()
        await store.stop()
        log.info("flobot_stopped")


@click.command()
@click.option("--config", "config_path", default=None, help="Path to config YAML file")
@click.option("--log-level", default=None, help="Log level (DEBUG, INFO, WARNING, ERROR)")
def cli(config_path: str | None, log_level: str | None) -> None:
    """Start flobot."""
    settings = load_settings(config_path)
    if log_level:
        settings.log_level = log_level
    setup_logging(settings)
    try:
        asyncio.run(run(settings))
    except InstanceError as e:
        log.error("instance_fatal_error", error=str(e), kind=type(e).__name__)
        sys.exit(1)
    except (BackendError, DatabaseError) as e:
        log.error("flobot_start_failed", error=str(e), kind=type(e).__name__)
        sys.exit(1)


if __name__ == "__main__":
    cli()
