"""Tests for the shutdown handshake."""

import asyncio
import signal
from unittest.mock import MagicMock, call

from radiogaga.shutdown import ShutdownCoordinator


class TestShutdownCoordinator:
    """Test request and acknowledgement."""

    def test_request_fires_once(self):
        shutdown = ShutdownCoordinator()
        assert shutdown.request("SIGTERM")
        assert not shutdown.request("SIGINT")
        assert shutdown.requested
        assert not shutdown.completed

    def test_waiters_released(self):
        async def scenario():
            shutdown = ShutdownCoordinator()
            waiter = asyncio.create_task(shutdown.wait_requested())
            completion = asyncio.create_task(shutdown.wait_completed())
            await asyncio.sleep(0)
            assert not waiter.done()
            shutdown.request()
            await asyncio.wait_for(waiter, timeout=1)
            assert not completion.done()
            shutdown.acknowledge()
            await asyncio.wait_for(completion, timeout=1)
            return shutdown.completed

        assert asyncio.run(scenario())

    def test_signal_handlers_installed(self):
        shutdown = ShutdownCoordinator()
        loop = MagicMock()
        shutdown.install_signal_handlers(loop)
        assert loop.add_signal_handler.call_args_list == [
            call(signal.SIGTERM, shutdown.request, "SIGTERM"),
            call(signal.SIGINT, shutdown.request, "SIGINT"),
        ]
