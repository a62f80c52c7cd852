"""MPD protocol client.

Blocking client for the line based MPD protocol: greeting handshake,
request/response exchanges ending with ``OK`` or ``ACK``, and the
``idle``/``noidle`` pair used to wait for player changes without polling.

The client never retries. Any transport failure closes the socket and raises
ConnectionLostError; the caller decides when to reconnect.
"""

import logging
import re
import socket

from radiogaga import status as codec
from radiogaga.errors import ConnectError, ConnectionLostError, ProtocolError

logger = logging.getLogger(__name__)

DEFAULT_PORT = 6600
DEFAULT_TIMEOUT = 10.0

# OK MPD 0.23.5
_GREETING_RE = re.compile(r"^OK (\S+) (\S+)$")
_NEEDS_QUOTING = set(' \t"\'\\{}')


def quote_arg(arg) -> str:
    """Quote a command argument when MPD would otherwise split it.

    Raises ValueError for arguments carrying control characters, which could
    smuggle a second command onto the wire.
    """
    text = str(arg)
    if any(c in text for c in "\n\r\x00"):
        raise ValueError(f"control character in MPD argument: {text!r}")
    if text and not _NEEDS_QUOTING.intersection(text):
        return text
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def build_command(command: str, *args) -> bytes:
    """Encode one CRLF terminated command line."""
    parts = [command] + [quote_arg(a) for a in args]
    return (" ".join(parts) + "\r\n").encode("utf-8")


class MPDClient:
    """One connection to an MPD server.

    Not thread safe, except for close() and noidle() which may be called from
    another thread to interrupt a pending idle().
    """

    def __init__(self, sock: socket.socket, host: str = "", port: int = DEFAULT_PORT,
                 timeout: float = DEFAULT_TIMEOUT):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.version = ""
        self._sock: socket.socket | None = sock
        self._buffer = b""

    def __repr__(self) -> str:
        return f"<MPDClient {self.host}:{self.port} version={self.version or '?'}>"

    @property
    def connected(self) -> bool:
        return self._sock is not None

    # -- transport ---------------------------------------------------------

    def handshake(self) -> str:
        """Read and validate the greeting line, return the protocol version."""
        try:
            line = self._read_line()
        except ConnectionLostError as e:
            raise ConnectError(f"no greeting from {self.host}:{self.port}: {e}") from e
        m = _GREETING_RE.match(line)
        if not m:
            self.close()
            raise ConnectError(f"unexpected greeting from {self.host}:{self.port}: {line[:80]!r}")
        self.version = m.group(2)
        return self.version

    def _lost(self, reason: str) -> ConnectionLostError:
        self.close()
        return ConnectionLostError(f"{self.host}:{self.port}: {reason}")

    def _send(self, data: bytes) -> None:
        sock = self._sock
        if sock is None:
            raise ConnectionLostError(f"{self.host}:{self.port}: not connected")
        try:
            sock.sendall(data)
        except (socket.timeout, OSError) as e:
            raise self._lost(f"send failed: {e}") from e

    def _read_line(self) -> str:
        """Return the next line without its terminator."""
        while b"\n" not in self._buffer:
            sock = self._sock
            if sock is None:
                raise ConnectionLostError(f"{self.host}:{self.port}: not connected")
            try:
                chunk = sock.recv(4096)
            except socket.timeout as e:
                raise self._lost("read timed out") from e
            except OSError as e:
                raise self._lost(f"read failed: {e}") from e
            if not chunk:
                raise self._lost("connection closed by server")
            self._buffer += chunk
        line, self._buffer = self._buffer.split(b"\n", 1)
        return line.rstrip(b"\r").decode("utf-8", errors="replace")

    def _read_response(self) -> list[str]:
        lines: list[str] = []
        while True:
            line = self._read_line()
            if line == "OK":
                return lines
            if line.startswith("ACK"):
                raise ProtocolError.from_line(line)
            lines.append(line)

    def execute(self, command: str, *args) -> list[str]:
        """Send a command and return the lines of a successful response.

        Raises ProtocolError on ACK (the connection stays usable) and
        ConnectionLostError on transport failure (the connection is closed).
        """
        self._send(build_command(command, *args))
        return self._read_response()

    def close(self) -> None:
        """Close the socket. Safe to call from another thread or twice."""
        sock, self._sock = self._sock, None
        self._buffer = b""
        self.version = ""
        if sock is None:
            return
        try:
            # shutdown wakes up a thread blocked in recv(), close alone does not
            sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        sock.close()

    # -- idle --------------------------------------------------------------

    def idle(self, *subsystems: str) -> list[str]:
        """Block until one of the subsystems changes, return what changed.

        MPD disables its client timeout while idling, so the socket timeout is
        lifted too: this call may wait forever. Interrupt it with noidle() or
        close() from another thread.
        """
        sock = self._sock
        if sock is None:
            raise ConnectionLostError(f"{self.host}:{self.port}: not connected")
        sock.settimeout(None)
        try:
            lines = self.execute("idle", *subsystems)
        finally:
            try:
                sock.settimeout(self.timeout)
            except OSError:
                # closed by another thread meanwhile, the next command reports it
                pass
        return codec.parse_changed(lines)

    def noidle(self) -> None:
        """Cancel a pending idle; its caller receives the (possibly empty) answer."""
        self._send(build_command("noidle"))

    # -- querying status ---------------------------------------------------

    def status(self) -> codec.PlaybackStatus:
        return codec.parse_status(self.execute("status"))

    def current_song(self) -> codec.CurrentSong:
        return codec.parse_current_song(self.execute("currentsong"))

    def stats(self) -> codec.ServerStats:
        return codec.parse_stats(self.execute("stats"))

    def clear_error(self) -> None:
        self.execute("clearerror")

    def ping(self) -> None:
        self.execute("ping")

    # -- playback ----------------------------------------------------------

    def next(self) -> None:
        self.execute("next")

    def previous(self) -> None:
        self.execute("previous")

    def stop(self) -> None:
        self.execute("stop")

    def pause(self, pause: bool) -> None:
        self.execute("pause", 1 if pause else 0)

    def play(self, position: int = -1) -> None:
        """Start playing at queue position; -1 resumes at the current song."""
        self.execute("play", position)

    def play_id(self, song_id: int) -> None:
        self.execute("playid", song_id)

    def load(self, playlist: str) -> None:
        """Append a stored playlist to the queue."""
        self.execute("load", playlist)


def connect(host: str, port: int = DEFAULT_PORT, timeout: float = DEFAULT_TIMEOUT) -> MPDClient:
    """Open a connection and perform the greeting handshake.

    Raises ConnectError when the server is unreachable or does not greet
    like an MPD server.
    """
    try:
        sock = socket.create_connection((host, port), timeout=timeout)
    except (socket.timeout, OSError) as e:
        raise ConnectError(f"failed to connect to {host}:{port}: {e}") from e

    client = MPDClient(sock, host, port, timeout)
    try:
        client.handshake()
    except ConnectError:
        client.close()
        raise
    logger.debug(f"Connected to MPD {host}:{port} (protocol {client.version})")
    return client
