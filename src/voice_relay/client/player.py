"""Local WAV playback through the platform's command-line audio player."""

from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
import sys
import tempfile
from pathlib import Path
from typing import Optional, Sequence

logger = logging.getLogger(__name__)

# Tried in order on Linux; the first one found on PATH wins
LINUX_PLAYERS: tuple[tuple[str, ...], ...] = (
    ("aplay", "-q"),
    ("paplay",),
    ("ffplay", "-nodisp", "-autoexit", "-loglevel", "quiet"),
)


class PlaybackError(Exception):
    """Raised when the prepared clip cannot be played."""


def default_player_command() -> Optional[list[str]]:
    if sys.platform == "darwin":
        return ["afplay"] if shutil.which("afplay") else None
    for candidate in LINUX_PLAYERS:
        if shutil.which(candidate[0]):
            return list(candidate)
    return None


class AudioPlayer:
    """Hold one prepared clip and play it with an external command.

    Each ``load`` writes a fresh temporary WAV file and removes the previous
    one, so a session never accumulates more than one file. ``stop`` ends
    playback but keeps the clip for another ``play``.
    """

    def __init__(self, command: Optional[Sequence[str] | str] = None):
        if isinstance(command, str):
            command = shlex.split(command)
        self._command = list(command) if command else None
        self._clip: Optional[Path] = None
        self._process: Optional[subprocess.Popen] = None

    @property
    def clip_path(self) -> Optional[Path]:
        return self._clip

    @property
    def has_clip(self) -> bool:
        return self._clip is not None

    @property
    def is_playing(self) -> bool:
        return self._process is not None and self._process.poll() is None

    def load(self, audio: bytes) -> Path:
        """Replace the prepared clip with ``audio``."""

        fd, name = tempfile.mkstemp(prefix="voice-relay-", suffix=".wav")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(audio)
        except OSError:
            os.unlink(name)
            raise
        self.stop()
        self._release_clip()
        self._clip = Path(name)
        return self._clip

    def play(self) -> None:
        if self._clip is None:
            raise PlaybackError("No audio prepared")
        command = self._command or default_player_command()
        if not command:
            raise PlaybackError("No audio player found; pass --player")
        self.stop()
        try:
            self._process = subprocess.Popen(
                [*command, str(self._clip)],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as exc:
            raise PlaybackError(f"Cannot start {command[0]}: {exc}") from exc

    def stop(self) -> None:
        process, self._process = self._process, None
        if process is None or process.poll() is not None:
            return
        process.terminate()
        try:
            process.wait(timeout=2)
        except subprocess.TimeoutExpired:
            process.kill()
            process.wait()

    def close(self) -> None:
        self.stop()
        self._release_clip()

    def _release_clip(self) -> None:
        clip, self._clip = self._clip, None
        if clip is None:
            return
        try:
            clip.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.warning("Could not remove %s: %s", clip, exc)


__all__ = ["AudioPlayer", "PlaybackError", "default_player_command"]
