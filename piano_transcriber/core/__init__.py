"""
Core module for Piano Transcriber.

Contains the timeline model, notation encoder and playback clock.
"""

from piano_transcriber.core.errors import (
    PianoTranscriberError,
    InvalidTimelineError,
    OutOfRangeError,
    SinkNotReadyError,
    PlaybackError,
    DecodeError,
)
from piano_transcriber.core.pitch import Pitch, PitchClass, to_solfege
from piano_transcriber.core.timeline import (
    NoteEvent,
    LyricEvent,
    NoteTimeline,
    LyricTimeline,
)
from piano_transcriber.core.projector import active_at, active_pitch_names
from piano_transcriber.core.gain import to_gain_db, db_to_linear
from piano_transcriber.core.notation import AbcNotation, NotationEncoder, encode_notation
from piano_transcriber.core.playback import (
    AudioSink,
    PlaybackClock,
    PlaybackPosition,
    PlaybackState,
)
from piano_transcriber.core.transcription import (
    MockTranscriber,
    TranscriptionResult,
    load_transcription,
    save_transcription,
)

__all__ = [
    "PianoTranscriberError",
    "InvalidTimelineError",
    "OutOfRangeError",
    "SinkNotReadyError",
    "PlaybackError",
    "DecodeError",
    "Pitch",
    "PitchClass",
    "to_solfege",
    "NoteEvent",
    "LyricEvent",
    "NoteTimeline",
    "LyricTimeline",
    "active_at",
    "active_pitch_names",
    "to_gain_db",
    "db_to_linear",
    "AbcNotation",
    "NotationEncoder",
    "encode_notation",
    "AudioSink",
    "PlaybackClock",
    "PlaybackPosition",
    "PlaybackState",
    "MockTranscriber",
    "TranscriptionResult",
    "load_transcription",
    "save_transcription",
]
