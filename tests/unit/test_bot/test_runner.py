"""Tests for the BotRunner polling loop."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from teleterm.bot.runner import BotRunner
from teleterm.transport.base import TransportError


class TestBotRunner:
    """Scheduling of dispatcher tasks."""

    def test_init(self, mock_transport) -> None:
        runner = BotRunner(mock_transport, AsyncMock())
        assert runner.is_running is False

    @pytest.mark.asyncio
    async def test_poll_once_schedules_each_request(self, mock_transport, owner_text) -> None:
        dispatcher = AsyncMock()
        requests = [owner_text("a"), owner_text("b")]
        mock_transport.poll.return_value = requests
        runner = BotRunner(mock_transport, dispatcher)

        assert await runner.poll_once() == 2
        await asyncio.gather(*runner._tasks)
        assert [c.args[0] for c in dispatcher.handle.await_args_list] == requests

    @pytest.mark.asyncio
    async def test_failed_request_is_logged(self, mock_transport, owner_text, caplog) -> None:
        dispatcher = AsyncMock()
        dispatcher.handle.side_effect = TransportError("send failed")
        mock_transport.poll.return_value = [owner_text("a")]
        runner = BotRunner(mock_transport, dispatcher)

        await runner.poll_once()
        await asyncio.sleep(0.01)
        assert not runner._tasks
        assert "Request handling failed" in caplog.text

    @pytest.mark.asyncio
    async def test_run_retries_after_poll_error(self, mock_transport) -> None:
        runner = BotRunner(mock_transport, AsyncMock(), retry_delay=0)
        calls = 0

        async def poll():
            nonlocal calls
            calls += 1
            if calls == 1:
                raise TransportError("network down")
            runner.stop()
            return []

        mock_transport.poll.side_effect = poll
        await runner.run()
        assert calls == 2
        assert runner.is_running is False
