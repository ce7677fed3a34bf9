"""
Transcription results and the mock transcriber.

The transcription algorithm itself lives outside this package. This module
defines the result it hands over, JSON persistence for it, and a mock
transcriber producing a fixed demonstration melody.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from piano_transcriber.core.errors import InvalidTimelineError
from piano_transcriber.core.timeline import (
    LyricEvent,
    LyricTimeline,
    NoteTimeline,
)

logger = logging.getLogger(__name__)


DEFAULT_TITLE = "Untitled Song"

MOCK_MELODY = [
    ("C4", 0.0, 0.5), ("E4", 0.5, 0.5), ("G4", 1.0, 0.5), ("C5", 1.5, 1.0),
    ("A4", 2.5, 0.5), ("G4", 3.0, 1.0), ("F4", 4.0, 0.5), ("E4", 4.5, 0.5),
    ("D4", 5.0, 0.5), ("C4", 5.5, 1.0), ("D4", 6.5, 0.5), ("E4", 7.0, 0.5),
    ("F4", 7.5, 0.5), ("G4", 8.0, 1.0), ("A4", 9.0, 0.5), ("B4", 9.5, 0.5),
    ("C5", 10.0, 1.0), ("B4", 11.0, 0.5), ("A4", 11.5, 0.5), ("G4", 12.0, 1.0),
    ("F4", 13.0, 0.5), ("E4", 13.5, 0.5), ("D4", 14.0, 0.5), ("C4", 14.5, 1.5),
]

MOCK_SYLLABLES = ["La", "Do", "Re", "Mi", "Fa", "Sol", "Oh", "Ah", "Hey", "Na"]
MOCK_WORDS = ["Music", "Melody", "Rhythm", "Song", "Voice", "Sound", "Harmony", "Tempo"]


@dataclass
class TranscriptionResult:
    """Notes, lyrics and metadata for one song."""
    
    title: str
    notes: NoteTimeline
    lyrics: LyricTimeline = field(default_factory=LyricTimeline.empty)
    duration: Optional[float] = None  # seconds; None = end of last note
    
    def __post_init__(self):
        if self.duration is None:
            self.duration = max(self.notes.end_time, self.lyrics.end_time)
        elif not (math.isfinite(self.duration) and self.duration >= 0):
            raise InvalidTimelineError(f"Duration must be finite and >= 0, got {self.duration}")
    
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TranscriptionResult":
        """
        Build from the JSON shape.
        
        Args:
            data: {"title": ..., "duration": ..., "notes": [...], "lyrics": [...]}
            
        Raises:
            InvalidTimelineError: If any event is malformed
        """
        duration = data.get("duration")
        return cls(
            title=data.get("title") or DEFAULT_TITLE,
            notes=NoteTimeline.from_dicts(data.get("notes", [])),
            lyrics=LyricTimeline.from_dicts(data.get("lyrics", [])),
            duration=float(duration) if duration is not None else None,
        )
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "duration": self.duration,
            "notes": self.notes.to_dicts(),
            "lyrics": self.lyrics.to_dicts(),
        }


def load_transcription(filepath: Union[str, Path]) -> TranscriptionResult:
    """
    Load a transcription from a JSON file.
    
    Args:
        filepath: Path to JSON file
        
    Returns:
        TranscriptionResult
    """
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"File not found: {filepath}")
    
    with open(filepath, "r", encoding="utf-8") as f:
        data = json.load(f)
    
    result = TranscriptionResult.from_dict(data)
    logger.info(f"Loaded transcription '{result.title}' from {filepath}")
    return result


def save_transcription(result: TranscriptionResult, filepath: Union[str, Path]) -> Path:
    """Write a transcription as JSON."""
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    with open(filepath, "w", encoding="utf-8") as f:
        json.dump(result.to_dict(), f, indent=2, ensure_ascii=False)
    return filepath


def title_from_filename(filename: Union[str, Path]) -> str:
    """Song title from an uploaded file name, without its extension."""
    return Path(str(filename)).stem or DEFAULT_TITLE


def generate_mock_lyrics(notes: NoteTimeline) -> LyricTimeline:
    """
    Attach a demonstration lyric to every third note.
    
    Every fourth lyric is a word, the rest are syllables.
    """
    lyrics: List[LyricEvent] = []
    for index, note in enumerate(list(notes)[::3]):
        if index % 4 == 0:
            text = MOCK_WORDS[index % len(MOCK_WORDS)]
        else:
            text = MOCK_SYLLABLES[index % len(MOCK_SYLLABLES)]
        lyrics.append(LyricEvent(
            text=text,
            pitch=note.pitch,
            start_time=note.start_time,
            duration=note.duration,
        ))
    return LyricTimeline.from_events(lyrics)


class MockTranscriber:
    """
    Stand-in for a real transcription backend.
    
    Always returns the same demonstration melody, titled after the file.
    """
    
    def __init__(self, with_lyrics: bool = True):
        self.with_lyrics = with_lyrics
    
    def transcribe(
        self,
        filename: Union[str, Path],
        duration: Optional[float] = None,
    ) -> TranscriptionResult:
        """
        Produce the demonstration transcription.
        
        Args:
            filename: Uploaded file name, used for the title
            duration: Decoded audio length, or None for the melody's end
        """
        notes = NoteTimeline.from_dicts(
            {"note": name, "time": start, "duration": length}
            for name, start, length in MOCK_MELODY
        )
        lyrics = generate_mock_lyrics(notes) if self.with_lyrics else LyricTimeline.empty()
        return TranscriptionResult(
            title=title_from_filename(filename),
            notes=notes,
            lyrics=lyrics,
            duration=duration,
        )
