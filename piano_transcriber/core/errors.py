"""
Error taxonomy for the transcription core.

Validation errors are raised before anything is applied. Runtime errors
from the audio sink or decoder are converted into these types at the seam
where they are caught.
"""

from __future__ import annotations

from typing import Optional


class PianoTranscriberError(Exception):
    """Base class for all domain errors."""


class InvalidTimelineError(PianoTranscriberError, ValueError):
    """Malformed input events (non-positive duration, bad pitch letter)."""


class OutOfRangeError(PianoTranscriberError, ValueError):
    """A value fell outside its permitted range."""


class SinkNotReadyError(PianoTranscriberError, RuntimeError):
    """Playback was requested before the audio sink had a buffer."""


class PlaybackError(PianoTranscriberError, RuntimeError):
    """The audio sink failed while a session was running."""


class DecodeError(PianoTranscriberError):
    """Raw audio bytes could not be decoded into a playable buffer."""

    def __init__(self, message: str, generation: Optional[int] = None):
        super().__init__(message)
        self.generation = generation
