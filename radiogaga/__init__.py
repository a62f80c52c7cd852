"""radiogaga: network radio daemon for MPD driven character displays."""

__version__ = "1.0.0"
