"""
Notation encoder - timelines to ABC notation.

Produces the token stream a rendering collaborator lays out as a staff.
Meter and unit length are fixed (4/4, eighth-note units) and the key is
always the configured default.

Token conventions:
    C, C,, c c'     pitch, octave encoded by case and markers
    "La"C2          lyric annotation preceding the pitch, then length
    |               bar separator
    |]              end of piece
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple, Union

from piano_transcriber.config import NotationConfig
from piano_transcriber.core.errors import InvalidTimelineError
from piano_transcriber.core.pitch import Pitch, REFERENCE_OCTAVE
from piano_transcriber.core.timeline import LyricEvent, LyricTimeline, NoteTimeline

logger = logging.getLogger(__name__)


BAR_TOKEN = "|"
END_TOKEN = "|]"
LOW_OCTAVE_MARK = ","
HIGH_OCTAVE_MARK = "'"


@dataclass(frozen=True)
class AbcNotation:
    """Encoded notation plus the metadata the renderer needs."""
    
    title: str
    meter: str
    unit: str
    key: str
    tokens: Tuple[str, ...]
    warnings: Tuple[str, ...] = field(default=())
    
    @property
    def header(self) -> str:
        return (
            f"X:1\n"
            f"T:{self.title}\n"
            f"M:{self.meter}\n"
            f"L:{self.unit}\n"
            f"K:{self.key}\n"
        )
    
    @property
    def body(self) -> str:
        parts = []
        for token in self.tokens:
            if token == BAR_TOKEN:
                parts.append("| \n")
            elif token == END_TOKEN:
                parts.append(END_TOKEN)
            else:
                parts.append(f"{token} ")
        return "".join(parts)
    
    @property
    def text(self) -> str:
        """Complete ABC document."""
        return self.header + self.body
    
    @property
    def bar_count(self) -> int:
        return self.tokens.count(BAR_TOKEN)
    
    def __str__(self) -> str:
        return self.text


def encode_pitch(pitch: Pitch) -> str:
    """
    Encode a pitch as an ABC note name.
    
    Octave 4 is the bare letter. Lower octaves add one ',' per octave,
    higher octaves use the lowercase letter plus one "'" per octave
    above 5.
    
    Args:
        pitch: Pitch to encode
        
    Returns:
        Token like "C", "C,,", "c", "c'"
    """
    token = pitch.name
    if pitch.octave < REFERENCE_OCTAVE:
        token += LOW_OCTAVE_MARK * (REFERENCE_OCTAVE - pitch.octave)
    elif pitch.octave > REFERENCE_OCTAVE:
        token = token.lower()
        if pitch.octave > REFERENCE_OCTAVE + 1:
            token += HIGH_OCTAVE_MARK * (pitch.octave - REFERENCE_OCTAVE - 1)
    return token


def encode_pitch_name(
    name: str,
    fallback: str = "C",
    warnings: Optional[List[str]] = None,
) -> str:
    """
    Encode a scientific pitch name, substituting a fallback on parse failure.
    
    Args:
        name: Pitch name like "F#5"
        fallback: Token used when the name cannot be parsed
        warnings: Optional list that collects a message for each fallback
        
    Returns:
        ABC note name
    """
    try:
        return encode_pitch(Pitch.parse(name))
    except InvalidTimelineError:
        message = f"Unparsable pitch {name!r}, using {fallback!r}"
        logger.warning(message)
        if warnings is not None:
            warnings.append(message)
        return fallback


def quantize_units(duration: float, units_per_second: int = 8) -> int:
    """Duration in note-length units, rounded half up, never below one."""
    return max(1, int(math.floor(duration * units_per_second + 0.5)))


def matching_lyric(
    lyric_events: Iterable[LyricEvent],
    start_time: float,
    tolerance: float = 0.1,
) -> Optional[LyricEvent]:
    """First lyric in stored order whose start is within tolerance of start_time."""
    for lyric in lyric_events:
        if abs(lyric.start_time - start_time) < tolerance:
            return lyric
    return None


def _annotation(text: str) -> str:
    # ABC annotations are delimited by double quotes
    return '"' + text.replace('"', "'") + '"'


class NotationEncoder:
    """
    Convert note and lyric timelines to ABC notation.
    
    The output is a pure function of (notes, lyrics, title): encoding the
    same input twice yields identical text.
    """
    
    def __init__(self, config: Optional[NotationConfig] = None):
        """
        Initialize encoder.
        
        Args:
            config: Notation settings, or None for defaults
        """
        self.config = config or NotationConfig()
    
    @property
    def measure_units(self) -> int:
        return self.config.beats_per_measure * self.config.unit_denominator
    
    def encode(
        self,
        notes: NoteTimeline,
        lyrics: Optional[LyricTimeline] = None,
        title: Optional[str] = None,
    ) -> AbcNotation:
        """
        Encode a song.
        
        Args:
            notes: Time-sorted notes
            lyrics: Optional lyrics to attach as annotations
            title: Song title, or None for the configured default
            
        Returns:
            AbcNotation with tokens and metadata
        """
        warnings: List[str] = []
        tokens: List[str] = []
        lyric_events = list(lyrics) if lyrics is not None else []
        events = list(notes)
        position = 0
        
        for index, event in enumerate(events):
            pitch_token = self._pitch_token(event.pitch, warnings)
            units = quantize_units(event.duration, self.config.unit_denominator)
            
            lyric = matching_lyric(lyric_events, event.start_time, self.config.lyric_tolerance)
            prefix = _annotation(lyric.text) if lyric is not None else ""
            tokens.append(f"{prefix}{pitch_token}{units}")
            
            position += units
            if position >= self.measure_units and index < len(events) - 1:
                tokens.append(BAR_TOKEN)
                position = 0
        
        tokens.append(END_TOKEN)
        
        return AbcNotation(
            title=self._clean_title(title),
            meter=f"{self.config.beats_per_measure}/4",
            unit=f"1/{self.config.unit_denominator}",
            key=self.config.key,
            tokens=tuple(tokens),
            warnings=tuple(warnings),
        )
    
    def _pitch_token(self, pitch: Union[Pitch, str], warnings: List[str]) -> str:
        if isinstance(pitch, Pitch):
            return encode_pitch(pitch)
        # Events built outside NoteTimeline validation may carry raw names
        return encode_pitch_name(str(pitch), self.config.fallback_pitch, warnings)
    
    def _clean_title(self, title: Optional[str]) -> str:
        title = " ".join((title or "").split())
        return title or self.config.default_title


def encode_notation(
    notes: NoteTimeline,
    lyrics: Optional[LyricTimeline] = None,
    title: Optional[str] = None,
) -> AbcNotation:
    """Encode with default notation settings."""
    return NotationEncoder().encode(notes, lyrics, title)
