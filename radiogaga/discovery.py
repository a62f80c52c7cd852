"""Locate the MPD server through mDNS when no host is configured."""

import logging
import time

from zeroconf import ServiceBrowser, ServiceStateChange, Zeroconf

logger = logging.getLogger(__name__)

MPD_SERVICE_TYPE = "_mpd._tcp.local."


def discover_mpd(timeout: float = 10) -> tuple[str, int] | None:
    """Browse for an MPD server, returns (host, port) or None."""
    result: tuple[str, int] | None = None

    def on_service_state_change(zeroconf: Zeroconf, service_type: str,
                                name: str, state_change: ServiceStateChange) -> None:
        nonlocal result
        if state_change is ServiceStateChange.Added and result is None:
            info = zeroconf.get_service_info(service_type, name)
            if info and info.parsed_addresses():
                host = info.parsed_addresses()[0]
                port = info.port or 6600
                logger.info(f"Discovered MPD via mDNS: {name} at {host}:{port}")
                result = (host, port)

    zc = Zeroconf()
    browser = ServiceBrowser(zc, MPD_SERVICE_TYPE, handlers=[on_service_state_change])

    deadline = time.time() + timeout
    while result is None and time.time() < deadline:
        time.sleep(0.2)

    browser.cancel()
    zc.close()
    return result
