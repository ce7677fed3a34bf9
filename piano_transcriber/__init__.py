"""
Piano Transcriber - Song Playback & Notation

Renders transcribed piano songs as ABC notation, lays out sheet music
and lyric exports, and plays the audio while triggering note events.
"""

__version__ = "1.0.0"

from piano_transcriber.config import Config
from piano_transcriber.core.session import SongSession

__all__ = ["SongSession", "Config", "__version__"]
