"""
Shared fixtures for Piano Transcriber tests.
"""

import pytest

from piano_transcriber.core.pitch import Pitch
from piano_transcriber.core.playback import AudioSink
from piano_transcriber.core.timeline import NoteEvent, NoteTimeline


class FakeTimeSource:
    """Virtual monotonic clock advanced by hand."""
    
    def __init__(self, start: float = 0.0):
        self.now = start
    
    def __call__(self) -> float:
        return self.now
    
    def advance(self, seconds: float) -> None:
        self.now += seconds
    
    def set(self, value: float) -> None:
        self.now = value


class RecordingSink(AudioSink):
    """Audio sink that records every command it receives."""
    
    def __init__(self, ready: bool = True):
        self.ready = ready
        self.buffer = None
        self.starts = []
        self.stops = 0
        self.note_ons = []
        self.gains = []
        self.fail_on = set()
        self.cleaned_up = False
    
    def _check(self, operation: str) -> None:
        if operation in self.fail_on:
            raise RuntimeError(f"{operation} failed")
    
    @property
    def is_ready(self) -> bool:
        return self.ready
    
    def load(self, buffer) -> None:
        self.buffer = buffer
        self.ready = True
    
    def start(self, offset: float) -> None:
        self._check("start")
        self.starts.append(offset)
    
    def stop(self) -> None:
        self._check("stop")
        self.stops += 1
    
    def note_on(self, pitch: Pitch, duration: float) -> None:
        self._check("note_on")
        self.note_ons.append((str(pitch), duration))
    
    def set_gain_db(self, gain_db: float) -> None:
        self._check("gain")
        self.gains.append(gain_db)
    
    def cleanup(self) -> None:
        self.cleaned_up = True


def make_notes(*specs) -> NoteTimeline:
    """Build a timeline from (name, start, duration) tuples."""
    return NoteTimeline.from_events(
        NoteEvent(Pitch.parse(name), start, duration) for name, start, duration in specs
    )


@pytest.fixture
def clock_time():
    return FakeTimeSource()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def five_notes():
    """Notes every two seconds across a ten-second piece."""
    return make_notes(
        ("C4", 0.0, 1.0),
        ("D4", 2.0, 1.0),
        ("E4", 4.0, 1.0),
        ("F4", 6.0, 1.0),
        ("G4", 8.0, 1.0),
    )
