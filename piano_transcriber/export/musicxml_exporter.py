"""
MusicXML Exporter - write transcriptions for notation software.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Tuple, Union
from dataclasses import dataclass
import logging

from music21.musicxml import m21ToXml

from piano_transcriber.config import NotationConfig
from piano_transcriber.core.score_builder import build_score
from piano_transcriber.core.transcription import TranscriptionResult

logger = logging.getLogger(__name__)


@dataclass
class MusicXMLExportOptions:
    """Options for MusicXML export."""
    
    compressed: bool = False  # .mxl archive instead of plain .musicxml
    include_lyrics: bool = True


class MusicXMLExporter:
    """
    Export a transcription's notes and lyrics as MusicXML.
    
    The score comes from build_score: pitches, lengths and lyrics follow
    the ABC notation, but notes crossing a bar are split into ties.
    """
    
    def __init__(
        self,
        options: Optional[MusicXMLExportOptions] = None,
        notation: Optional[NotationConfig] = None,
    ):
        """
        Args:
            options: Export options, or None for defaults
            notation: Notation settings used to build the score
        """
        self.options = options or MusicXMLExportOptions()
        self.notation = notation or NotationConfig()
    
    def _build(self, song: TranscriptionResult):
        lyrics = song.lyrics if self.options.include_lyrics else None
        return build_score(song.notes, lyrics, song.title, self.notation)
    
    def _target(self, output_path: Union[str, Path]) -> Tuple[Path, str]:
        """Output path with a suffix matching the written format."""
        path = Path(output_path)
        suffix = path.suffix.lower()
        if self.options.compressed or suffix == ".mxl":
            return path.with_suffix(".mxl"), "mxl"
        if suffix in (".musicxml", ".xml"):
            return path, "musicxml"
        return path.with_suffix(".musicxml"), "musicxml"
    
    def export(self, song: TranscriptionResult, output_path: Union[str, Path]) -> Path:
        """
        Write a transcription to a MusicXML file.
        
        Args:
            song: Transcription to export
            output_path: Destination; the suffix is corrected to .musicxml,
                .xml or .mxl
            
        Returns:
            Path actually written
        """
        path, fmt = self._target(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self._build(song).write(fmt, fp=str(path))
        logger.info(f"Wrote {fmt} for '{song.title}' to {path}")
        return path
    
    def export_to_string(self, song: TranscriptionResult) -> str:
        """MusicXML document for a transcription, as text."""
        exporter = m21ToXml.GeneralObjectExporter(self._build(song))
        return exporter.parse().decode("utf-8")
    
    @staticmethod
    def get_supported_extensions() -> list:
        return [".musicxml", ".xml", ".mxl"]
