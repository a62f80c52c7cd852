"""Exceptions raised while talking to MPD."""

import re

# ACK [50@0] {play} No such song
_ACK_RE = re.compile(r"^ACK \[(\d+)@(\d+)\] \{([^}]*)\}\s?(.*)$")


class MPDError(Exception):
    """Base class for every MPD related failure."""


class ConnectError(MPDError):
    """Connection could not be established or the greeting was invalid."""


class ConnectionLostError(MPDError):
    """Transport failure on an established connection.

    The connection is unusable afterwards and must be replaced.
    """


class FieldError(MPDError):
    """A response line is not a ``key: value`` pair."""

    def __init__(self, line: str):
        super().__init__(f"malformed response line: {line[:80]!r}")
        self.line = line


class ProtocolError(MPDError):
    """MPD answered a command with an ACK line."""

    def __init__(self, code: int, index: int, command: str, message: str):
        super().__init__(f"[{code}@{index}] {{{command}}} {message}")
        self.code = code
        self.index = index
        self.command = command
        self.message = message

    @classmethod
    def from_line(cls, line: str) -> "ProtocolError":
        """Build the error from a raw ``ACK`` line.

        Lines that do not follow the documented layout keep the whole text
        as message with code and index set to 0.
        """
        m = _ACK_RE.match(line)
        if not m:
            return cls(0, 0, "", line[3:].strip())
        return cls(int(m.group(1)), int(m.group(2)), m.group(3), m.group(4))
