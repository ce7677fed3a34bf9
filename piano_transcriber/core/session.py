"""
Song session - ties one uploaded song to the clock, sink and encoder.

Loading is the only suspending operation. Each request gets a new load
generation; the audio is decoded on a worker and the result is handed
back through a dispatch callable (the GUI driver posts it to the main
thread). Only the result of the latest generation is applied, and a
failed decode leaves the previous song in place.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, List, Optional

from piano_transcriber.config import Config
from piano_transcriber.core.errors import DecodeError
from piano_transcriber.core.notation import AbcNotation, NotationEncoder
from piano_transcriber.core.playback import AudioSink, PlaybackClock, TimeSource
from piano_transcriber.core.projector import active_at
from piano_transcriber.core.timeline import LyricEvent, LyricTimeline, NoteEvent, NoteTimeline
from piano_transcriber.core.transcription import TranscriptionResult
from piano_transcriber.export.layout import (
    ExportKind,
    ExportRequest,
    build_lyrics_request,
    build_sheet_request,
)

logger = logging.getLogger(__name__)


Task = Callable[[], None]
Executor = Callable[[Task], None]
Dispatch = Callable[[Task], None]
Decoder = Callable[[bytes], object]


def thread_executor(task: Task) -> None:
    """Run a task on a daemon thread."""
    threading.Thread(target=task, daemon=True).start()


def inline_executor(task: Task) -> None:
    """Run a task immediately in the calling thread."""
    task()


def direct_dispatch(task: Task) -> None:
    """Run a completion task in the calling thread."""
    task()


def _default_decoder(data: bytes):
    from piano_transcriber.audio.decoder import decode_audio
    return decode_audio(data)


class SongSession:
    """
    Owner of the currently loaded song.
    
    Features:
    - Load generations that discard stale decode results
    - Notation and active-state queries for display surfaces
    - Export layout requests
    """
    
    def __init__(
        self,
        sink: AudioSink,
        config: Optional[Config] = None,
        decoder: Decoder = _default_decoder,
        executor: Optional[Executor] = None,
        dispatch: Optional[Dispatch] = None,
        time_source: TimeSource = time.monotonic,
    ):
        """
        Initialize session.
        
        Args:
            sink: Audio sink shared with the clock
            config: Settings, or None for defaults
            decoder: Turns raw bytes into a buffer; raises DecodeError
            executor: Runs the decode. Defaults to a daemon thread when a
                dispatch is given, otherwise to the calling thread
            dispatch: Delivers completions to the clock's thread
            time_source: Passed to the PlaybackClock
            
        Raises:
            ValueError: If thread_executor is given without a dispatch
        """
        self.config = config
        notation_config = config.notation if config else None
        volume = config.playback.default_volume if config else 100
        
        self._sink = sink
        self._decoder = decoder
        if executor is None:
            # Completions must reach the clock's thread
            executor = thread_executor if dispatch is not None else inline_executor
        elif executor is thread_executor and dispatch is None:
            raise ValueError("thread_executor needs a dispatch back to the clock's thread")
        self._executor = executor
        self._dispatch = dispatch or direct_dispatch
        self.clock = PlaybackClock(sink, time_source=time_source, volume=volume)
        self.encoder = NotationEncoder(notation_config)
        
        self._generation = 0
        self._applied_generation = 0
        self._song: Optional[TranscriptionResult] = None
        self._buffer = None
        
        self._loaded_callback: Optional[Callable[[TranscriptionResult], None]] = None
        self._load_error_callback: Optional[Callable[[DecodeError], None]] = None
    
    def set_loaded_callback(self, callback: Callable[[TranscriptionResult], None]) -> None:
        self._loaded_callback = callback
    
    def set_load_error_callback(self, callback: Callable[[DecodeError], None]) -> None:
        self._load_error_callback = callback
    
    @property
    def generation(self) -> int:
        """Generation of the most recent load request."""
        return self._generation
    
    @property
    def is_loading(self) -> bool:
        return self._applied_generation < self._generation
    
    @property
    def song(self) -> Optional[TranscriptionResult]:
        return self._song
    
    @property
    def title(self) -> Optional[str]:
        return self._song.title if self._song else None
    
    @property
    def notes(self) -> NoteTimeline:
        return self._song.notes if self._song else NoteTimeline.empty()
    
    @property
    def lyrics(self) -> LyricTimeline:
        return self._song.lyrics if self._song else LyricTimeline.empty()
    
    @property
    def buffer(self):
        return self._buffer
    
    # ------------------------------------------------------------------
    # Loading
    
    def request_load(self, audio_data: bytes, transcription: TranscriptionResult) -> int:
        """
        Start loading a new song.
        
        Args:
            audio_data: Raw uploaded audio bytes
            transcription: Notes, lyrics and metadata for the song
            
        Returns:
            The generation number of this request
        """
        self._generation += 1
        generation = self._generation
        logger.info(f"Loading '{transcription.title}' (generation {generation})")
        self._executor(lambda: self._decode(generation, audio_data, transcription))
        return generation
    
    def _decode(self, generation: int, audio_data: bytes, transcription: TranscriptionResult) -> None:
        """Worker side: decode, then hand the outcome back."""
        try:
            buffer = self._decoder(audio_data)
        except DecodeError as e:
            e.generation = generation
            failure = e
            self._dispatch(lambda: self._apply_failure(generation, failure))
            return
        except Exception as e:
            error = DecodeError(f"Could not decode audio: {e}", generation)
            self._dispatch(lambda: self._apply_failure(generation, error))
            return
        self._dispatch(lambda: self._apply(generation, buffer, transcription))
    
    def _apply(self, generation: int, buffer, transcription: TranscriptionResult) -> bool:
        if generation != self._generation:
            logger.debug(f"Discarding stale load (generation {generation}, latest {self._generation})")
            return False
        
        self.clock.load(transcription.notes, transcription.duration)
        self._sink.load(buffer)
        self._song = transcription
        self._buffer = buffer
        self._applied_generation = generation
        logger.info(f"Loaded '{transcription.title}' ({len(transcription.notes)} notes)")
        
        if self._loaded_callback:
            self._loaded_callback(transcription)
        return True
    
    def _apply_failure(self, generation: int, error: DecodeError) -> bool:
        if generation != self._generation:
            logger.debug(f"Discarding stale decode failure (generation {generation})")
            return False
        
        self._applied_generation = generation
        logger.error(f"Decode failed for generation {generation}: {error}")
        if self._load_error_callback:
            self._load_error_callback(error)
        return False
    
    # ------------------------------------------------------------------
    # Queries
    
    def notation(self) -> AbcNotation:
        """ABC notation of the current song."""
        return self.encoder.encode(self.notes, self.lyrics, self.title)
    
    def _time(self, t: Optional[float]) -> float:
        return self.clock.elapsed if t is None else t
    
    def active_notes(self, t: Optional[float] = None) -> List[NoteEvent]:
        """Notes sounding at t (default: the clock's position)."""
        return active_at(self.notes, self._time(t))
    
    def active_lyrics(self, t: Optional[float] = None) -> List[LyricEvent]:
        """Lyrics sounding at t (default: the clock's position)."""
        return active_at(self.lyrics, self._time(t))
    
    def active_pitch_names(self, t: Optional[float] = None) -> List[str]:
        """Pitch names for the keyboard highlight."""
        return [str(event.pitch) for event in self.active_notes(t)]
    
    def export_request(self, kind: str = "sheet") -> ExportRequest:
        """
        Layout request for the export collaborator.
        
        Args:
            kind: "sheet" or "lyrics"
        """
        export_config = self.config.export if self.config else None
        if ExportKind(kind) == ExportKind.LYRICS:
            return build_lyrics_request(
                self.title or self.encoder.config.default_title, self.lyrics, export_config
            )
        return build_sheet_request(self.notation(), self.lyrics, export_config)
