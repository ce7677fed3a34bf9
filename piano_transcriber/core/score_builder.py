"""
Score builder - timelines to a music21 Score.

Gives notation collaborators (MusicXML, MIDI) the same quantized pitches,
unit lengths and lyrics the ABC encoder uses: 4/4, C major, eighth-note
units. Bar lines differ: music21 splits a note that crosses a bar into
tied notes, while the ABC stream lets the measure overflow and starts
counting again after the bar.
"""

from __future__ import annotations

from typing import Optional

from music21 import key, meter, metadata, note, stream, tempo

from piano_transcriber.config import NotationConfig
from piano_transcriber.core.notation import matching_lyric, quantize_units
from piano_transcriber.core.timeline import LyricTimeline, NoteTimeline


def build_score(
    notes: NoteTimeline,
    lyrics: Optional[LyricTimeline] = None,
    title: Optional[str] = None,
    config: Optional[NotationConfig] = None,
) -> stream.Score:
    """
    Build a single-part music21 Score.
    
    One unit lasts 1/unit_denominator of a second, so the tempo mark is
    chosen to keep the MIDI timing in seconds.
    
    Args:
        notes: Time-sorted notes
        lyrics: Optional lyrics
        title: Score title, or None for the default
        config: Notation settings
        
    Returns:
        music21 Score with measures
    """
    config = config or NotationConfig()
    lyric_events = list(lyrics) if lyrics is not None else []
    quarter_per_unit = 4.0 / config.unit_denominator
    
    score = stream.Score()
    score.metadata = metadata.Metadata()
    score.metadata.title = title or config.default_title
    
    part = stream.Part()
    part.partName = "Piano"
    part.append(meter.TimeSignature(f"{config.beats_per_measure}/4"))
    part.append(key.Key(config.key))
    # quarters per second = unit_denominator / 4
    part.append(tempo.MetronomeMark(number=60 * config.unit_denominator / 4))
    
    for event in notes:
        units = quantize_units(event.duration, config.unit_denominator)
        n = note.Note(event.pitch.to_music21(), quarterLength=units * quarter_per_unit)
        lyric = matching_lyric(lyric_events, event.start_time, config.lyric_tolerance)
        if lyric is not None:
            n.lyric = lyric.text
        part.append(n)
    
    if len(notes):
        part = part.makeMeasures()
        part.makeTies(inPlace=True)
    score.insert(0, part)
    return score
