"""
Export module for Piano Transcriber.

Provides:
- Layout requests for the document export collaborator
- MusicXML
- MIDI
"""

from piano_transcriber.export.layout import (
    ExportKind,
    ExportRequest,
    build_lyrics_request,
    build_sheet_request,
)
from piano_transcriber.export.midi_exporter import MidiExporter
from piano_transcriber.export.musicxml_exporter import MusicXMLExporter

__all__ = [
    "ExportKind",
    "ExportRequest",
    "build_lyrics_request",
    "build_sheet_request",
    "MidiExporter",
    "MusicXMLExporter",
]
