"""
Tests for pitches and timelines.
"""

import math

import pytest

from piano_transcriber.core.errors import InvalidTimelineError
from piano_transcriber.core.pitch import Pitch, PitchClass, to_solfege
from piano_transcriber.core.timeline import (
    LyricEvent,
    LyricTimeline,
    NoteEvent,
    NoteTimeline,
)

from conftest import make_notes


class TestPitch:
    """Tests for pitch parsing and conversion."""
    
    def test_parse_natural(self):
        """Test parsing a natural pitch."""
        pitch = Pitch.parse("C4")
        assert pitch.letter == "C"
        assert pitch.accidental == ""
        assert pitch.octave == 4
        assert str(pitch) == "C4"
    
    def test_parse_accidentals(self):
        """Test parsing sharps and flats."""
        assert Pitch.parse("F#5").name == "F#"
        assert Pitch.parse("Bb2").name == "Bb"
        assert Pitch.parse("Bb2").octave == 2
    
    @pytest.mark.parametrize("text", ["H4", "C", "c4", "C#", "Cx4", ""])
    def test_parse_invalid(self, text):
        """Test that malformed names are rejected."""
        with pytest.raises(InvalidTimelineError):
            Pitch.parse(text)
    
    def test_pitch_class_validation(self):
        """Test PitchClass rejects bad letters and accidentals."""
        with pytest.raises(InvalidTimelineError):
            PitchClass("H")
        with pytest.raises(InvalidTimelineError):
            PitchClass("C", "x")
    
    def test_midi_and_frequency(self):
        """Test MIDI number and tuning come from music21."""
        assert Pitch.parse("C4").midi == 60
        assert Pitch.parse("A4").frequency == pytest.approx(440.0)
        assert Pitch.parse("Bb3").midi == 58
    
    def test_coerce(self):
        """Test coerce passes pitches through and parses strings."""
        pitch = Pitch.parse("E4")
        assert Pitch.coerce(pitch) is pitch
        assert Pitch.coerce("E4") == pitch
    
    def test_solfege(self):
        """Test fixed-do solfège names."""
        assert to_solfege("C4") == "DO"
        assert to_solfege("C#5") == "DO#"
        assert to_solfege(Pitch.parse("Bb3")) == "SI♭"
        assert to_solfege("X9") == "X"


class TestNoteTimeline:
    """Tests for NoteTimeline construction and queries."""
    
    def test_sorted_by_start(self):
        """Test events are sorted regardless of input order."""
        timeline = make_notes(("E4", 2.0, 0.5), ("C4", 0.0, 0.5), ("D4", 1.0, 0.5))
        assert [e.start_time for e in timeline] == [0.0, 1.0, 2.0]
    
    def test_stable_ties(self):
        """Test events with equal start keep their input order."""
        timeline = make_notes(("E4", 1.0, 0.5), ("C4", 1.0, 0.5), ("G4", 0.0, 0.5))
        assert [str(e.pitch) for e in timeline] == ["G4", "E4", "C4"]
    
    def test_empty(self):
        """Test the empty timeline."""
        timeline = NoteTimeline.empty()
        assert len(timeline) == 0
        assert not timeline
        assert timeline.end_time == 0.0
    
    @pytest.mark.parametrize("duration", [0.0, -1.0, math.nan])
    def test_rejects_bad_duration(self, duration):
        """Test non-positive durations are rejected."""
        with pytest.raises(InvalidTimelineError):
            make_notes(("C4", 0.0, duration))
    
    @pytest.mark.parametrize("start,duration", [(math.inf, 1.0), (math.nan, 1.0), (0.0, math.inf)])
    def test_rejects_non_finite(self, start, duration):
        """Test infinite or NaN times never reach a timeline."""
        with pytest.raises(InvalidTimelineError):
            make_notes(("C4", start, duration))
    
    def test_rejects_negative_start(self):
        """Test negative start times are rejected."""
        with pytest.raises(InvalidTimelineError):
            make_notes(("C4", -0.5, 1.0))
    
    def test_rejects_raw_pitch(self):
        """Test events must carry a parsed Pitch."""
        with pytest.raises(InvalidTimelineError):
            NoteTimeline.from_events([NoteEvent("C4", 0.0, 1.0)])
    
    def test_end_time(self):
        """Test end time is the latest note end."""
        timeline = make_notes(("C4", 0.0, 5.0), ("D4", 1.0, 0.5))
        assert timeline.end_time == 5.0
    
    def test_slice_half_open(self):
        """Test slice includes the lower bound and excludes the upper."""
        timeline = make_notes(("C4", 0.0, 0.5), ("D4", 1.0, 0.5), ("E4", 2.0, 0.5))
        sliced = timeline.slice(1.0, 2.0)
        assert isinstance(sliced, NoteTimeline)
        assert [str(e.pitch) for e in sliced] == ["D4"]
    
    def test_slice_empty_range(self):
        """Test an inverted range gives an empty timeline."""
        timeline = make_notes(("C4", 0.0, 0.5))
        assert len(timeline.slice(2.0, 1.0)) == 0
        assert len(timeline.slice(0.0, 0.0)) == 0
    
    def test_from_dicts(self):
        """Test building from the transcription wire shape."""
        timeline = NoteTimeline.from_dicts([
            {"note": "G4", "time": 1.0, "duration": 0.5},
            {"note": "C4", "time": 0.0, "duration": 0.5},
        ])
        assert [str(e.pitch) for e in timeline] == ["C4", "G4"]
        assert timeline.to_dicts()[0] == {"note": "C4", "time": 0.0, "duration": 0.5}
    
    def test_from_dicts_malformed(self):
        """Test missing keys and bad pitches raise InvalidTimelineError."""
        with pytest.raises(InvalidTimelineError):
            NoteTimeline.from_dicts([{"note": "C4", "time": 0.0}])
        with pytest.raises(InvalidTimelineError):
            NoteTimeline.from_dicts([{"note": "Q4", "time": 0.0, "duration": 1.0}])
        with pytest.raises(InvalidTimelineError):
            NoteTimeline.from_dicts([{"note": "C4", "time": "soon", "duration": 1.0}])
    
    def test_equality(self):
        """Test timelines with the same events compare equal."""
        a = make_notes(("C4", 0.0, 0.5))
        b = make_notes(("C4", 0.0, 0.5))
        assert a == b
        assert hash(a) == hash(b)


class TestLyricTimeline:
    """Tests for LyricTimeline."""
    
    def test_from_dicts(self):
        """Test lyrics keep text, pitch and timing."""
        lyrics = LyricTimeline.from_dicts([
            {"text": "Sol", "note": "G4", "time": 1.0, "duration": 0.5},
            {"text": "La", "note": "A4", "time": 0.0, "duration": 0.5},
        ])
        assert [e.text for e in lyrics] == ["La", "Sol"]
        assert lyrics[0].to_dict()["text"] == "La"
    
    def test_rejects_bad_duration(self):
        """Test lyric durations must be positive."""
        with pytest.raises(InvalidTimelineError):
            LyricTimeline.from_events([LyricEvent("La", Pitch.parse("A4"), 0.0, 0.0)])
