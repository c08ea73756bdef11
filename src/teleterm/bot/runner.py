"""Polling loop feeding inbound requests to the dispatcher."""

from __future__ import annotations

import asyncio
import logging

from teleterm.bot.dispatcher import CommandDispatcher
from teleterm.transport.base import Transport, TransportError

logger = logging.getLogger(__name__)


class BotRunner:
    """Long-polls the transport and hands each request to the dispatcher.

    Each request runs as its own task; the dispatcher's lock keeps them in
    arrival order.
    """

    def __init__(
        self,
        transport: Transport,
        dispatcher: CommandDispatcher,
        retry_delay: float = 5.0,
    ) -> None:
        self._transport = transport
        self._dispatcher = dispatcher
        self._retry_delay = retry_delay
        self._tasks: set[asyncio.Task[None]] = set()
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    def stop(self) -> None:
        self._running = False

    def _on_task_done(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Request handling failed: %s", exc, exc_info=exc)

    async def poll_once(self) -> int:
        """Fetch one batch of requests and schedule them. Returns the count."""
        requests = await self._transport.poll()
        for request in requests:
            task = asyncio.create_task(self._dispatcher.handle(request))
            self._tasks.add(task)
            task.add_done_callback(self._on_task_done)
        return len(requests)

    async def run(self) -> None:
        """Poll until stopped, then wait for in-flight requests."""
        self._running = True
        logger.info("Bot is running")
        try:
            while self._running:
                try:
                    await self.poll_once()
                except TransportError as e:
                    logger.warning("Polling failed: %s; retrying in %.0fs", e, self._retry_delay)
                    await asyncio.sleep(self._retry_delay)
        finally:
            self._running = False
            if self._tasks:
                await asyncio.gather(*self._tasks, return_exceptions=True)
            logger.info("Bot stopped")
