"""Renderer facing playback events and the rule deciding when to emit them."""

from dataclasses import dataclass

from radiogaga.status import CurrentSong, PlaybackStatus


@dataclass(frozen=True)
class Playing:
    """Something is playing.

    For radio streams line1 is the station name, otherwise the artist.
    line2 is always the title.
    """

    is_stream: bool
    line1: str
    line2: str


@dataclass(frozen=True)
class Paused:
    pass


@dataclass(frozen=True)
class Stopped:
    pass


StateEvent = Playing | Paused | Stopped


@dataclass(frozen=True)
class PlayerSnapshot:
    """The part of the player state that decides whether an event is due."""

    state: str
    name: str | None = None
    title: str | None = None

    @classmethod
    def capture(cls, status: PlaybackStatus, song: CurrentSong) -> "PlayerSnapshot":
        return cls(status.state, song.name, song.title)


def has_changed(previous: PlayerSnapshot | None, current: PlayerSnapshot) -> bool:
    """Return True when current deserves a new event after previous.

    A state change always counts. While playing, a new station name or title
    counts too; anything else (elapsed time, bitrate) does not.
    """
    if previous is None:
        return True
    if current.state != previous.state:
        return True
    if current.state != "play":
        return False
    return current.name != previous.name or current.title != previous.title


def event_from(status: PlaybackStatus, song: CurrentSong) -> StateEvent:
    """Map a status/song pair to the event shown on the display."""
    if status.state == "play":
        if song.is_stream:
            return Playing(True, song.name or "", song.title or "")
        return Playing(False, song.artist or "", song.title or "")
    if status.state == "pause":
        return Paused()
    return Stopped()


def describe(status: PlaybackStatus, song: CurrentSong) -> str:
    """Human readable one-liner for the log."""
    if status.state == "play":
        if song.is_stream:
            return f"Playing radio='{song.name or ''}', title='{song.title or ''}'"
        return (f"Playing artist='{song.artist or ''}', album='{song.album or ''}', "
                f"title='{song.title or ''}', {status.song_index + 1}/{status.playlist_length}")
    if status.state == "pause":
        return "Player paused"
    return "Player stopped"
