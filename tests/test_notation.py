"""
Tests for the ABC notation encoder.
"""

import pytest

from piano_transcriber.config import NotationConfig
from piano_transcriber.core.notation import (
    BAR_TOKEN,
    END_TOKEN,
    NotationEncoder,
    encode_notation,
    encode_pitch,
    encode_pitch_name,
    matching_lyric,
    quantize_units,
)
from piano_transcriber.core.pitch import Pitch
from piano_transcriber.core.timeline import LyricEvent, LyricTimeline, NoteEvent, NoteTimeline

from conftest import make_notes


class TestEncodePitch:
    """Tests for single pitch encoding."""
    
    @pytest.mark.parametrize("name,expected", [
        ("C4", "C"),
        ("C3", "C,"),
        ("C2", "C,,"),
        ("C5", "c"),
        ("C6", "c'"),
        ("C7", "c''"),
        ("F#4", "F#"),
        ("Bb5", "bb"),
    ])
    def test_octaves(self, name, expected):
        """Test octave markers and case."""
        assert encode_pitch(Pitch.parse(name)) == expected
    
    def test_fallback(self):
        """Test unparsable names fall back and record a warning."""
        warnings = []
        assert encode_pitch_name("??", "C", warnings) == "C"
        assert len(warnings) == 1
        assert encode_pitch_name("G5", "C", warnings) == "g"
        assert len(warnings) == 1


class TestQuantize:
    """Tests for duration quantization."""
    
    def test_units(self):
        """Test eighth-note units at eight per second."""
        assert quantize_units(0.5) == 4
        assert quantize_units(1.0) == 8
        assert quantize_units(0.125) == 1
    
    def test_minimum_one_unit(self):
        """Test very short notes still take one unit."""
        assert quantize_units(0.01) == 1
    
    def test_rounds_half_up(self):
        """Test halfway values round up."""
        assert quantize_units(0.1875) == 2
        assert quantize_units(0.3125) == 3


class TestNotationEncoder:
    """Tests for full notation encoding."""
    
    def test_header(self):
        """Test the header fields."""
        notation = encode_notation(make_notes(("C4", 0.0, 0.5)), title="My Song")
        assert notation.header == "X:1\nT:My Song\nM:4/4\nL:1/8\nK:C\n"
        assert notation.text.startswith("X:1\n")
    
    def test_default_title(self):
        """Test a blank title uses the default."""
        notation = encode_notation(make_notes(("C4", 0.0, 0.5)), title="   ")
        assert notation.title == "Untitled Song"
    
    def test_tokens(self):
        """Test note tokens carry pitch and length."""
        notation = encode_notation(make_notes(("C4", 0.0, 0.5), ("G5", 0.5, 1.0)))
        assert notation.tokens == ("C4", "g8", END_TOKEN)
        assert notation.body == "C4 g8 |]"
    
    def test_empty(self):
        """Test an empty timeline encodes only the end marker."""
        notation = encode_notation(NoteTimeline.empty())
        assert notation.tokens == (END_TOKEN,)
        assert notation.bar_count == 0
    
    def test_bar_after_full_measure(self):
        """Test a bar separator after 32 units, never after the last note."""
        notes = make_notes(*[("C4", i * 0.5, 0.5) for i in range(10)])
        notation = encode_notation(notes)
        
        # Eight half-second notes fill one 4/4 measure of eighths
        assert notation.tokens[8] == BAR_TOKEN
        assert notation.bar_count == 1
        assert notation.tokens[-1] == END_TOKEN
        assert "| \n" in notation.body
    
    def test_no_bar_after_last_note(self):
        """Test a full final measure ends with the end marker only."""
        notes = make_notes(*[("C4", i * 0.5, 0.5) for i in range(8)])
        notation = encode_notation(notes)
        assert notation.bar_count == 0
        assert notation.tokens[-2:] == ("C4", END_TOKEN)
    
    def test_forty_short_notes(self):
        """Test bar placement with one-unit notes."""
        notes = make_notes(*[("D4", i * 0.125, 0.125) for i in range(40)])
        notation = encode_notation(notes)
        assert notation.tokens[32] == BAR_TOKEN
        assert notation.bar_count == 1
        assert notation.tokens[-1] == END_TOKEN
        assert len(notation.tokens) == 42
    
    def test_lyric_annotation(self):
        """Test lyrics within tolerance annotate the note."""
        notes = make_notes(("C4", 0.0, 0.5), ("E4", 0.5, 0.5))
        lyrics = LyricTimeline.from_events([
            LyricEvent("La", Pitch.parse("C4"), 0.05, 0.5),
        ])
        notation = encode_notation(notes, lyrics)
        assert notation.tokens[0] == '"La"C4'
        assert notation.tokens[1] == "E4"
    
    def test_lyric_outside_tolerance(self):
        """Test lyrics 0.1s or more away are not attached."""
        notes = make_notes(("C4", 0.0, 0.5))
        lyrics = LyricTimeline.from_events([
            LyricEvent("La", Pitch.parse("C4"), 0.1, 0.5),
        ])
        assert encode_notation(notes, lyrics).tokens[0] == "C4"
    
    def test_lyric_quotes_escaped(self):
        """Test double quotes in lyrics do not break the annotation."""
        notes = make_notes(("C4", 0.0, 0.5))
        lyrics = LyricTimeline.from_events([
            LyricEvent('say "hi"', Pitch.parse("C4"), 0.0, 0.5),
        ])
        assert encode_notation(notes, lyrics).tokens[0] == "\"say 'hi'\"C4"
    
    def test_first_lyric_wins(self):
        """Test the first matching lyric in stored order is used."""
        lyrics = LyricTimeline.from_events([
            LyricEvent("One", Pitch.parse("C4"), 0.0, 0.5),
            LyricEvent("Two", Pitch.parse("C4"), 0.05, 0.5),
        ])
        assert matching_lyric(lyrics, 0.02).text == "One"
        assert matching_lyric(lyrics, 5.0) is None
    
    def test_deterministic(self):
        """Test encoding the same input twice gives identical text."""
        notes = make_notes(("C4", 0.0, 0.5), ("E4", 0.5, 0.25), ("G3", 1.0, 2.0))
        assert encode_notation(notes, title="A").text == encode_notation(notes, title="A").text
    
    def test_raw_pitch_fallback(self):
        """Test events carrying unparsable pitch names fall back with a warning."""
        notes = NoteTimeline((NoteEvent("nonsense", 0.0, 0.5),))
        notation = NotationEncoder().encode(notes)
        assert notation.tokens[0] == "C4"
        assert len(notation.warnings) == 1
    
    def test_config_meter(self):
        """Test meter and measure length follow the configuration."""
        encoder = NotationEncoder(NotationConfig(beats_per_measure=3))
        notes = make_notes(*[("C4", i * 0.5, 0.5) for i in range(8)])
        notation = encoder.encode(notes)
        assert notation.meter == "3/4"
        assert notation.tokens[6] == BAR_TOKEN
