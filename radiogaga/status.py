"""Decoding of MPD ``key: value`` responses into typed records.

Unknown keys are ignored so newer daemons keep working. Numeric fields that
do not parse are set to 0 instead of failing the whole record: a status with
a garbled bitrate is still worth displaying.
"""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from radiogaga.errors import FieldError


@dataclass(frozen=True)
class PlaybackStatus:
    """Player status returned by ``status``.

    Attributes:
        state: Player state - "play", "pause" or "stop".
        song_index: Position of the current song in the queue.
        song_id: Queue id of the current song.
        playlist: Queue version, bumped on every queue change.
        playlist_length: Number of songs in the queue.
        elapsed: Elapsed time of the current song in seconds.
        duration: Duration of the current song in whole seconds.
        bitrate: Instantaneous bitrate in kbps.
        audio_format: Output format, e.g. "44100:16:2".
        error: Last player error, if any.
    """

    state: str = "stop"
    song_index: int = 0
    song_id: int = 0
    playlist: int = 0
    playlist_length: int = 0
    elapsed: float = 0.0
    duration: int = 0
    bitrate: int = 0
    audio_format: str = ""
    error: str | None = None


@dataclass(frozen=True)
class CurrentSong:
    """Song info returned by ``currentsong``.

    ``name`` is only set for radio streams, it carries the station name.
    """

    file: str = ""
    name: str | None = None
    artist: str | None = None
    album: str | None = None
    title: str | None = None
    id: int = 0
    position: int = 0
    time: int = 0

    @property
    def is_stream(self) -> bool:
        return self.file.startswith("http")


@dataclass(frozen=True)
class ServerStats:
    """Database and uptime counters returned by ``stats``."""

    artists: int = 0
    albums: int = 0
    songs: int = 0
    uptime: int = 0
    playtime: int = 0
    db_playtime: int = 0
    db_update: int = 0


def _to_int(value: str) -> int:
    # MPD sends some durations with decimals ("240.123")
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return int(float(value))
    except (ValueError, OverflowError):
        return 0


def _to_float(value: str) -> float:
    try:
        return float(value)
    except ValueError:
        return 0.0


def iter_fields(lines: Iterable[str]) -> Iterator[tuple[str, str]]:
    """Split each line on the first ``": "``.

    Raises FieldError on the first line without separator.
    """
    for line in lines:
        key, sep, value = line.partition(": ")
        if not sep:
            raise FieldError(line)
        yield key, value


_STATUS_INT_FIELDS = {
    "bitrate": "bitrate",
    "duration": "duration",
    "playlist": "playlist",
    "playlistlength": "playlist_length",
    "song": "song_index",
    "songid": "song_id",
}


def parse_status(lines: Iterable[str]) -> PlaybackStatus:
    """Build a PlaybackStatus from the lines of a ``status`` response."""
    values: dict = {}
    for key, value in iter_fields(lines):
        if key in _STATUS_INT_FIELDS:
            values[_STATUS_INT_FIELDS[key]] = _to_int(value)
        elif key == "elapsed":
            values["elapsed"] = _to_float(value)
        elif key == "state":
            values["state"] = value
        elif key == "audio":
            values["audio_format"] = value
        elif key == "error":
            values["error"] = value
    return PlaybackStatus(**values)


_SONG_STR_FIELDS = {
    "file": "file",
    "Name": "name",
    "Artist": "artist",
    "Album": "album",
    "Title": "title",
}
_SONG_INT_FIELDS = {"Id": "id", "Pos": "position", "Time": "time"}


def parse_current_song(lines: Iterable[str]) -> CurrentSong:
    """Build a CurrentSong from the lines of a ``currentsong`` response.

    An empty response (nothing queued) gives an empty CurrentSong.
    """
    values: dict = {}
    for key, value in iter_fields(lines):
        if key in _SONG_STR_FIELDS:
            values[_SONG_STR_FIELDS[key]] = value
        elif key in _SONG_INT_FIELDS:
            values[_SONG_INT_FIELDS[key]] = _to_int(value)
    return CurrentSong(**values)


_STATS_FIELDS = {
    "artists": "artists",
    "albums": "albums",
    "songs": "songs",
    "uptime": "uptime",
    "playtime": "playtime",
    "db_playtime": "db_playtime",
    "db_update": "db_update",
}


def parse_stats(lines: Iterable[str]) -> ServerStats:
    """Build ServerStats from the lines of a ``stats`` response."""
    values = {
        _STATS_FIELDS[key]: _to_int(value)
        for key, value in iter_fields(lines)
        if key in _STATS_FIELDS
    }
    return ServerStats(**values)


def parse_changed(lines: Iterable[str]) -> list[str]:
    """Return the subsystems listed by an ``idle`` response."""
    return [value for key, value in iter_fields(lines) if key == "changed"]
