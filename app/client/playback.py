"""Playable copies of synthesized replies and local playback."""

import os
import tempfile
from pathlib import Path
from typing import Optional, Union

import numpy as np
import soundfile as sf
from loguru import logger


class PlaybackStore:
    """
    Keeps at most one playable audio file alive.

    Creating a new resource releases the previous one, and close()
    releases whatever is left.
    """

    def __init__(self, directory: Optional[Union[str, Path]] = None):
        self.directory = Path(directory) if directory else None
        self._current: Optional[Path] = None

    @property
    def current(self) -> Optional[Path]:
        return self._current

    def create(self, data: bytes, suffix: str = ".mp3") -> Path:
        """Write audio to a new temporary file and make it current."""
        fd, name = tempfile.mkstemp(
            prefix="genie-reply-",
            suffix=suffix,
            dir=str(self.directory) if self.directory else None,
        )
        with os.fdopen(fd, "wb") as f:
            f.write(data)

        self.release()
        self._current = Path(name)
        return self._current

    def release(self) -> None:
        """Delete the current resource, if any."""
        if self._current is None:
            return
        try:
            self._current.unlink()
        except FileNotFoundError:
            pass
        self._current = None

    def close(self) -> None:
        self.release()

    def __enter__(self) -> "PlaybackStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def play_file(path: Union[str, Path]) -> bool:
    """
    Play an audio file on the default output device.

    Returns False when the file cannot be decoded or played; the reply
    text is already on screen, so playback failure is not an error.
    """
    try:
        import sounddevice as sd
    except OSError as e:
        logger.warning(f"Audio output unavailable: {e}")
        return False

    try:
        data, samplerate = sf.read(str(path), dtype="float32")
        if data.ndim == 1:
            data = data[:, np.newaxis]
        sd.play(data, samplerate)
        sd.wait()
    except (sd.PortAudioError, RuntimeError) as e:
        logger.warning(f"Could not play {path}: {e}")
        return False
    return True
