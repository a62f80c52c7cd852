"""Tests for daemon wiring: display selection, address resolution, signal exit."""

import asyncio
import logging
import os
import signal
from unittest.mock import MagicMock, patch

from zeroconf import ServiceStateChange

from radiogaga import main as daemon
from radiogaga.config import Config
from radiogaga.discovery import MPD_SERVICE_TYPE, discover_mpd
from radiogaga.display import LogDisplay
from radiogaga.errors import ConnectError


class TestDiscovery:
    """Test mDNS lookup with a mocked browser."""

    def test_first_service_wins(self):
        info = MagicMock()
        info.parsed_addresses.return_value = ["192.168.1.20"]
        info.port = 6601
        zc = MagicMock()
        zc.get_service_info.return_value = info

        def browser(zeroconf, service_type, handlers):
            handlers[0](zeroconf, service_type, "radio._mpd._tcp.local.", ServiceStateChange.Added)
            return MagicMock()

        with patch("radiogaga.discovery.Zeroconf", return_value=zc), \
                patch("radiogaga.discovery.ServiceBrowser", side_effect=browser) as browse:
            assert discover_mpd(timeout=1) == ("192.168.1.20", 6601)
        assert browse.call_args.args[1] == MPD_SERVICE_TYPE
        zc.close.assert_called_once()

    def test_nothing_found(self):
        with patch("radiogaga.discovery.Zeroconf"), patch("radiogaga.discovery.ServiceBrowser"):
            assert discover_mpd(timeout=0) is None


class TestWiring:
    """Test the helpers used by run()."""

    def test_log_display_by_default(self):
        assert isinstance(daemon.create_display(Config()), LogDisplay)

    def test_missing_framebuffer_falls_back(self, caplog):
        config = Config(display_backend="framebuffer", fb_device="/nonexistent/fb9")
        assert isinstance(daemon.create_display(config), LogDisplay)
        assert "Cannot open framebuffer" in caplog.text

    def test_configured_address(self):
        assert daemon.resolve_mpd_address(Config(mpd_host="mpd.lan", mpd_port=6601)) == ("mpd.lan", 6601)

    def test_discovery_retried(self):
        with patch("radiogaga.discovery.discover_mpd", side_effect=[None, ("10.0.0.5", 6600)]), \
                patch("radiogaga.main.time.sleep") as sleep:
            assert daemon.resolve_mpd_address(Config()) == ("10.0.0.5", 6600)
        sleep.assert_called_once_with(10)


class TestMain:
    """Test that SIGTERM leads to the goodbye sequence and a clean return."""

    def test_sigterm_exits_after_goodbye(self, caplog):
        config = Config(reconnect_delay=0.05, goodbye_delay=0)

        async def scenario():
            loop = asyncio.get_running_loop()
            loop.call_later(0.2, os.kill, os.getpid(), signal.SIGTERM)
            await asyncio.wait_for(daemon.main(config, "127.0.0.1", 6600), timeout=10)

        with caplog.at_level(logging.INFO), \
                patch("radiogaga.mpd_client.connect", side_effect=ConnectError("refused")):
            asyncio.run(scenario())

        assert "Shutdown requested (SIGTERM)" in caplog.text
        assert "Display cleared" in caplog.text
