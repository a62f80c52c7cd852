"""Runtime settings read from environment variables."""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Config:
    mpd_host: str = ""  # empty: discover via mDNS
    mpd_port: int = 6600
    mpd_timeout: float = 10.0
    reconnect_delay: float = 2.0
    startup_playlists: tuple[str, ...] = field(default_factory=tuple)
    display_backend: str = "log"
    display_width: int = 16
    scroll_interval: float = 0.4
    goodbye_delay: float = 2.0
    fb_device: str = "/dev/fb0"
    log_level: str = "INFO"


def _number(env: Mapping[str, str], name: str, default, convert):
    raw = env.get(name, "")
    if not raw:
        return default
    try:
        return convert(raw)
    except ValueError:
        logger.warning(f"Invalid {name}={raw!r}, using {default}")
        return default


def load_config(env: Mapping[str, str] | None = None) -> Config:
    """Build the Config from ``env`` (defaults to os.environ)."""
    if env is None:
        env = os.environ
    playlists = tuple(p.strip() for p in env.get("STARTUP_PLAYLISTS", "").split(",") if p.strip())
    backend = env.get("DISPLAY_BACKEND", "log").strip().lower() or "log"
    if backend not in ("log", "framebuffer"):
        logger.warning(f"Unknown DISPLAY_BACKEND={backend!r}, using 'log'")
        backend = "log"
    return Config(
        mpd_host=env.get("MPD_HOST", "").strip(),
        mpd_port=_number(env, "MPD_PORT", 6600, int),
        mpd_timeout=_number(env, "MPD_TIMEOUT", 10.0, float),
        reconnect_delay=_number(env, "MPD_RECONNECT_DELAY", 2.0, float),
        startup_playlists=playlists,
        display_backend=backend,
        display_width=_number(env, "DISPLAY_WIDTH", 16, int),
        scroll_interval=min(max(_number(env, "SCROLL_INTERVAL", 0.4, float), 0.15), 0.4),
        goodbye_delay=_number(env, "GOODBYE_DELAY", 2.0, float),
        fb_device=env.get("FB_DEVICE", "/dev/fb0"),
        log_level=env.get("LOG_LEVEL", "INFO").upper(),
    )
