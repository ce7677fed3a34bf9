"""
Playback Module - Wall-clock-synchronized playback and note triggering.

PlaybackClock is the single owner of session state (status, elapsed time,
triggered notes). It never schedules itself: a driver calls tick() on a
fixed short interval while playing, and each tick completes before the
next one starts. The time source is injectable so tests can advance a
virtual clock.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Set
import logging

from piano_transcriber.core.errors import (
    OutOfRangeError,
    PlaybackError,
    SinkNotReadyError,
)
from piano_transcriber.core.gain import to_gain_db
from piano_transcriber.core.pitch import Pitch
from piano_transcriber.core.timeline import NoteEvent, NoteTimeline

logger = logging.getLogger(__name__)


TimeSource = Callable[[], float]


class PlaybackState(Enum):
    """Playback state enumeration."""
    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"


def format_time(seconds: float) -> str:
    """Format seconds as M:SS."""
    seconds = max(0.0, seconds)
    mins = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{mins}:{secs:02d}"


@dataclass
class PlaybackPosition:
    """Current playback position."""
    current_time: float  # seconds
    total_time: float  # seconds
    state: PlaybackState
    
    @property
    def progress(self) -> float:
        """Progress as 0.0-1.0."""
        if self.total_time <= 0:
            return 0.0
        return min(1.0, self.current_time / self.total_time)
    
    @property
    def time_str(self) -> str:
        """Format as M:SS / M:SS."""
        return f"{format_time(self.current_time)} / {format_time(self.total_time)}"


class AudioSink:
    """Abstract audio output: plays the decoded buffer and note tones."""
    
    @property
    def is_ready(self) -> bool:
        """True once a decoded buffer has been loaded."""
        raise NotImplementedError
    
    def load(self, buffer) -> None:
        """Replace the playable buffer."""
        raise NotImplementedError
    
    def start(self, offset: float) -> None:
        """Start buffer playback from offset seconds."""
        raise NotImplementedError
    
    def stop(self) -> None:
        """Stop buffer playback."""
        raise NotImplementedError
    
    def note_on(self, pitch: Pitch, duration: float) -> None:
        """Sound a note for duration seconds."""
        raise NotImplementedError
    
    def set_gain_db(self, gain_db: float) -> None:
        """Apply output gain; -inf means mute."""
        raise NotImplementedError
    
    def cleanup(self) -> None:
        """Release resources."""
        pass


class PlaybackClock:
    """
    State machine driving synchronized playback.
    
    States: IDLE (initial, and after the piece ends), PLAYING, PAUSED.
    
    Each tick triggers every untriggered note whose start time lies in
    (previous tick, elapsed]. Right after play() from IDLE or a seek()
    the window is closed on the left, so a note starting exactly at the
    new position fires once. Notes therefore trigger exactly once per
    session regardless of tick granularity.
    """
    
    def __init__(
        self,
        sink: AudioSink,
        time_source: TimeSource = time.monotonic,
        volume: float = 100,
    ):
        """
        Initialize clock.
        
        Args:
            sink: Audio sink receiving buffer and note commands
            time_source: Monotonic seconds; injectable for tests
            volume: Initial volume percentage
        """
        self._sink = sink
        self._now = time_source
        self._timeline = NoteTimeline.empty()
        self._duration = 0.0
        self._state = PlaybackState.IDLE
        self._gain_db = to_gain_db(volume)
        self._volume = volume
        
        # Session state
        self._offset = 0.0  # elapsed seconds at the reference point
        self._reference = 0.0  # time source reading at the reference point
        self._previous_tick = 0.0
        self._window_closed = True  # include notes starting exactly at _previous_tick
        self._triggered: Set[int] = set()
        
        # Notifications
        self._note_callback: Optional[Callable[[NoteEvent], None]] = None
        self._ended_callback: Optional[Callable[[], None]] = None
        self._error_callback: Optional[Callable[[PlaybackError], None]] = None
        self._position_callback: Optional[Callable[[PlaybackPosition], None]] = None
        self._state_callback: Optional[Callable[[PlaybackState], None]] = None
    
    # ------------------------------------------------------------------
    # Callbacks
    
    def set_note_callback(self, callback: Callable[[NoteEvent], None]) -> None:
        """Called for every NoteOn sent to the sink."""
        self._note_callback = callback
    
    def set_ended_callback(self, callback: Callable[[], None]) -> None:
        """Called once when playback reaches the end of the piece."""
        self._ended_callback = callback
    
    def set_error_callback(self, callback: Callable[[PlaybackError], None]) -> None:
        """Called when the sink fails mid-session."""
        self._error_callback = callback
    
    def set_position_callback(self, callback: Callable[[PlaybackPosition], None]) -> None:
        """Called after every tick and seek."""
        self._position_callback = callback
    
    def set_state_callback(self, callback: Callable[[PlaybackState], None]) -> None:
        """Called on every state transition."""
        self._state_callback = callback
    
    # ------------------------------------------------------------------
    # Properties
    
    @property
    def state(self) -> PlaybackState:
        return self._state
    
    @property
    def is_playing(self) -> bool:
        return self._state == PlaybackState.PLAYING
    
    @property
    def is_paused(self) -> bool:
        return self._state == PlaybackState.PAUSED
    
    @property
    def timeline(self) -> NoteTimeline:
        return self._timeline
    
    @property
    def duration(self) -> float:
        return self._duration
    
    @property
    def volume(self) -> float:
        return self._volume
    
    @property
    def gain_db(self) -> float:
        return self._gain_db
    
    @property
    def elapsed(self) -> float:
        """Current position in seconds, clamped to the piece duration."""
        return min(self._raw_elapsed(), self._duration)
    
    @property
    def triggered_count(self) -> int:
        return len(self._triggered)
    
    def get_position(self) -> PlaybackPosition:
        return PlaybackPosition(
            current_time=self.elapsed,
            total_time=self._duration,
            state=self._state,
        )
    
    def _raw_elapsed(self) -> float:
        if self._state == PlaybackState.PLAYING:
            return self._offset + (self._now() - self._reference)
        return self._offset
    
    # ------------------------------------------------------------------
    # Loading
    
    def load(self, timeline: NoteTimeline, duration: Optional[float] = None) -> None:
        """
        Replace the timeline, stopping any running session.
        
        Args:
            timeline: Notes to trigger
            duration: Total piece length in seconds, or None for the
                timeline's end time
        """
        if duration is None:
            duration = timeline.end_time
        if not duration >= 0 or math.isinf(duration):
            raise OutOfRangeError(f"Duration must be a finite value >= 0, got {duration}")
        
        self.stop()
        self._timeline = timeline
        self._duration = float(duration)
        logger.info(f"Loaded {len(timeline)} notes, duration {duration:.2f}s")
    
    # ------------------------------------------------------------------
    # Transport
    
    def play(self) -> None:
        """
        Start or resume playback.
        
        Raises:
            SinkNotReadyError: If the sink has no decoded buffer
            PlaybackError: If the sink fails to start
        """
        if self._state == PlaybackState.PLAYING:
            return
        if not self._sink.is_ready:
            raise SinkNotReadyError("Audio is not ready for playback")
        
        if self._state == PlaybackState.IDLE:
            self._reset_session(self._offset)
        
        try:
            self._sink.set_gain_db(self._gain_db)
            self._sink.start(self._offset)
        except Exception as e:
            error = self._fail(e)
            raise error from e
        
        self._reference = self._now()
        self._set_state(PlaybackState.PLAYING)
    
    def pause(self) -> None:
        """Pause playback, freezing elapsed time."""
        if self._state != PlaybackState.PLAYING:
            return
        
        self._offset = self.elapsed
        self._set_state(PlaybackState.PAUSED)
        self._stop_sink()
    
    def stop(self) -> None:
        """Stop playback and reset to the beginning."""
        self._reset_session(0.0)
        self._stop_sink()
        self._set_state(PlaybackState.IDLE)
    
    def toggle_play_pause(self) -> None:
        """Toggle between play and pause."""
        if self._state == PlaybackState.PLAYING:
            self.pause()
        else:
            self.play()
    
    def seek(self, position: float) -> None:
        """
        Move to a position, clamped to [0, duration].
        
        The play/pause/idle status is unchanged. While playing, the sink
        restarts from the new position.
        
        Args:
            position: Target time in seconds
        """
        target = max(0.0, min(float(position), self._duration))
        self._reset_session(target)
        
        if self._state == PlaybackState.PLAYING:
            self._reference = self._now()
            try:
                self._sink.stop()
                self._sink.start(target)
            except Exception as e:
                self._fail(e)
                return
        
        self._notify_position()
    
    def set_volume(self, volume_percent: float) -> float:
        """
        Set output volume.
        
        Args:
            volume_percent: Volume in [0, 100]
            
        Returns:
            Gain applied at the sink in dB
            
        Raises:
            OutOfRangeError: If volume is outside [0, 100]
        """
        gain_db = to_gain_db(volume_percent)
        try:
            self._sink.set_gain_db(gain_db)
        except Exception as e:
            raise PlaybackError(f"Failed to set gain: {e}") from e
        self._volume = volume_percent
        self._gain_db = gain_db
        return gain_db
    
    # ------------------------------------------------------------------
    # Tick
    
    def tick(self) -> List[NoteEvent]:
        """
        Advance the session to the current time.
        
        Returns:
            Notes triggered by this tick, in time order
        """
        if self._state != PlaybackState.PLAYING:
            return []
        
        raw_elapsed = self._raw_elapsed()
        upper = min(raw_elapsed, self._duration)
        fired: List[NoteEvent] = []
        
        for index, event in enumerate(self._timeline):
            if event.start_time > upper:
                break
            if index in self._triggered or not self._in_window(event.start_time):
                continue
            try:
                self._sink.note_on(event.pitch, event.duration)
            except Exception as e:
                self._fail(e)
                return fired
            self._triggered.add(index)
            fired.append(event)
            logger.debug(f"NoteOn {event.pitch} at {event.start_time:.2f}s")
            if self._note_callback:
                self._note_callback(event)
        
        self._previous_tick = upper
        self._window_closed = False
        
        if raw_elapsed >= self._duration:
            self._finish()
        else:
            self._notify_position()
        
        return fired
    
    def _in_window(self, start_time: float) -> bool:
        if self._window_closed:
            return start_time >= self._previous_tick
        return start_time > self._previous_tick
    
    # ------------------------------------------------------------------
    # Internals
    
    def _reset_session(self, offset: float) -> None:
        self._offset = offset
        self._previous_tick = offset
        self._window_closed = True
        self._triggered.clear()
    
    def _finish(self) -> None:
        """Natural end of piece."""
        self._reset_session(0.0)
        self._set_state(PlaybackState.IDLE)
        self._stop_sink()
        logger.info("Playback ended")
        if self._ended_callback:
            self._ended_callback()
    
    def _fail(self, exc: Exception) -> PlaybackError:
        """Force IDLE after a sink failure and report it."""
        error = PlaybackError(f"Audio sink failed: {exc}")
        logger.error(str(error))
        
        self._offset = min(self._raw_elapsed(), self._duration)
        self._reset_session(self._offset)
        self._set_state(PlaybackState.IDLE)
        self._stop_sink()
        
        if self._error_callback:
            self._error_callback(error)
        return error
    
    def _stop_sink(self) -> None:
        try:
            self._sink.stop()
        except Exception as e:
            logger.warning(f"Failed to stop audio sink: {e}")
    
    def _set_state(self, state: PlaybackState) -> None:
        if state == self._state:
            return
        self._state = state
        if self._state_callback:
            self._state_callback(state)
    
    def _notify_position(self) -> None:
        if self._position_callback:
            self._position_callback(self.get_position())
    
    def cleanup(self) -> None:
        """Release resources."""
        self.stop()
        self._sink.cleanup()
