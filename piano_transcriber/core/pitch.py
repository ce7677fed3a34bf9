"""
Pitch model - letter classes, octaves and conversions.

Pitches use scientific pitch notation ("C4" is middle C). MIDI numbers and
frequencies are delegated to music21 so the audio sink and the score
builder agree on tuning.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Union

from music21 import pitch as m21_pitch

from piano_transcriber.core.errors import InvalidTimelineError


REFERENCE_OCTAVE = 4

PITCH_PATTERN = re.compile(r"^([A-G])([#b]?)(-?\d+)$")

SOLFEGE_MAP = {
    "C": "DO",
    "C#": "DO#",
    "Db": "RE♭",
    "D": "RE",
    "D#": "RE#",
    "Eb": "MI♭",
    "E": "MI",
    "F": "FA",
    "F#": "FA#",
    "Gb": "SOL♭",
    "G": "SOL",
    "G#": "SOL#",
    "Ab": "LA♭",
    "A": "LA",
    "A#": "LA#",
    "Bb": "SI♭",
    "B": "SI",
}


@dataclass(frozen=True)
class PitchClass:
    """A letter A-G with an optional sharp (#) or flat (b)."""

    letter: str
    accidental: str = ""

    def __post_init__(self):
        if self.letter not in "ABCDEFG" or len(self.letter) != 1:
            raise InvalidTimelineError(f"Invalid pitch letter: {self.letter!r}")
        if self.accidental not in ("", "#", "b"):
            raise InvalidTimelineError(f"Invalid accidental: {self.accidental!r}")

    @property
    def name(self) -> str:
        """Letter plus accidental, e.g. 'F#'."""
        return f"{self.letter}{self.accidental}"

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Pitch:
    """A pitch class at a given octave."""

    pitch_class: PitchClass
    octave: int = REFERENCE_OCTAVE

    @classmethod
    def parse(cls, text: str) -> "Pitch":
        """
        Parse a scientific pitch name.

        Args:
            text: Pitch like "C4", "F#5", "Bb2"

        Returns:
            Pitch object

        Raises:
            InvalidTimelineError: If the text is not a valid pitch name
        """
        match = PITCH_PATTERN.match(str(text).strip())
        if not match:
            raise InvalidTimelineError(f"Invalid pitch: {text!r}")
        letter, accidental, octave = match.groups()
        return cls(PitchClass(letter, accidental), int(octave))

    @classmethod
    def coerce(cls, value: Union["Pitch", str]) -> "Pitch":
        """Return value unchanged if it is a Pitch, otherwise parse it."""
        if isinstance(value, Pitch):
            return value
        return cls.parse(value)

    @property
    def letter(self) -> str:
        return self.pitch_class.letter

    @property
    def accidental(self) -> str:
        return self.pitch_class.accidental

    @property
    def name(self) -> str:
        """Pitch class name without octave."""
        return self.pitch_class.name

    @property
    def name_with_octave(self) -> str:
        return f"{self.pitch_class.name}{self.octave}"

    def to_music21(self) -> m21_pitch.Pitch:
        """Convert to a music21 Pitch (music21 spells flats as '-')."""
        accidental = "-" if self.accidental == "b" else self.accidental
        return m21_pitch.Pitch(f"{self.letter}{accidental}{self.octave}")

    @property
    def midi(self) -> int:
        """MIDI note number (C4 = 60)."""
        return self.to_music21().midi

    @property
    def frequency(self) -> float:
        """Frequency in Hz at A4 = 440."""
        return float(self.to_music21().frequency)

    def __str__(self) -> str:
        return self.name_with_octave


def to_solfege(value: Union[Pitch, str]) -> str:
    """
    Convert a pitch to fixed-do solfège.

    Octave digits are ignored; names without a mapping pass through.

    Args:
        value: Pitch or name like "C#4" / "Bb"

    Returns:
        Solfège syllable like "DO#" or "SI♭"
    """
    if isinstance(value, Pitch):
        name = value.name
    else:
        name = re.sub(r"-?\d", "", str(value))
    return SOLFEGE_MAP.get(name, name)
