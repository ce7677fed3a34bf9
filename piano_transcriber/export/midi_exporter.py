"""
MIDI Exporter - Export transcriptions to MIDI format.
"""

from __future__ import annotations

from pathlib import Path
from typing import Union, Optional
from dataclasses import dataclass
import logging

from music21 import tempo

from piano_transcriber.config import NotationConfig
from piano_transcriber.core.score_builder import build_score
from piano_transcriber.core.transcription import TranscriptionResult

logger = logging.getLogger(__name__)


@dataclass
class MidiExportOptions:
    """Options for MIDI export."""
    
    velocity: int = 80  # Note velocity (0-127)
    tempo: Optional[int] = None  # Override tempo (BPM), None = real-time tempo
    
    def __post_init__(self):
        self.velocity = max(0, min(127, self.velocity))


class MidiExporter:
    """
    Export transcriptions to MIDI format.
    
    Uses music21's MIDI writer on the score built from the timelines.
    """
    
    def __init__(
        self,
        options: Optional[MidiExportOptions] = None,
        notation: Optional[NotationConfig] = None,
    ):
        """
        Initialize MIDI exporter.
        
        Args:
            options: Export options, or None for defaults
            notation: Notation settings used to build the score
        """
        self.options = options or MidiExportOptions()
        self.notation = notation or NotationConfig()
    
    def build(self, song: TranscriptionResult):
        """Score with export options applied."""
        m21_score = build_score(song.notes, song.lyrics, song.title, self.notation)
        
        if self.options.tempo:
            for mark in m21_score.recurse().getElementsByClass(tempo.MetronomeMark):
                mark.number = self.options.tempo
        
        for n in m21_score.recurse().notes:
            n.volume.velocity = self.options.velocity
        
        return m21_score
    
    def export(
        self,
        song: TranscriptionResult,
        output_path: Union[str, Path]
    ) -> Path:
        """
        Export a transcription to MIDI format.
        
        Args:
            song: Transcription to export
            output_path: Output file path (.mid or .midi)
            
        Returns:
            Path to created MIDI file
        """
        output_path = Path(output_path)
        
        if output_path.suffix.lower() not in ['.mid', '.midi']:
            output_path = output_path.with_suffix('.mid')
        
        output_path.parent.mkdir(parents=True, exist_ok=True)
        
        self.build(song).write('midi', fp=str(output_path))
        
        logger.info(f"Exported MIDI to: {output_path}")
        return output_path
    
    @staticmethod
    def get_supported_extensions() -> list:
        """Get list of supported file extensions."""
        return [".mid", ".midi"]
