"""
Qt playback driver - runs the clock's tick from a QTimer.

The timer fires on the GUI thread, so ticks never overlap and the clock
keeps a single writer. Clock notifications are re-emitted as Qt signals.
"""

from __future__ import annotations

from typing import Callable

from PySide6.QtCore import QObject, QTimer, Signal, Slot

from piano_transcriber.core.errors import PlaybackError
from piano_transcriber.core.playback import PlaybackClock, PlaybackPosition, PlaybackState


class QtDispatcher(QObject):
    """
    Posts completion tasks to the thread this object lives in.
    
    Emitting from a worker thread queues the call; emitting from the
    owning thread runs it immediately.
    """
    
    _task_posted = Signal(object)
    
    def __init__(self, parent=None):
        super().__init__(parent)
        self._task_posted.connect(self._run_task)
    
    def dispatch(self, task: Callable[[], None]) -> None:
        self._task_posted.emit(task)
    
    @Slot(object)
    def _run_task(self, task):
        task()


class QtPlaybackDriver(QObject):
    """
    Ticks a PlaybackClock while it is playing.
    
    Signals mirror the clock's callbacks so widgets can connect to them.
    """
    
    # Signals
    note_triggered = Signal(object)  # NoteEvent
    position_changed = Signal(object)  # PlaybackPosition
    state_changed = Signal(str)  # PlaybackState value
    playback_ended = Signal()
    playback_error = Signal(str)
    
    def __init__(self, clock: PlaybackClock, interval_ms: int = 100, parent=None):
        super().__init__(parent)
        self._clock = clock
        
        self._timer = QTimer(self)
        self._timer.setInterval(interval_ms)
        self._timer.timeout.connect(self._on_timeout)
        
        clock.set_note_callback(self.note_triggered.emit)
        clock.set_position_callback(self._on_position)
        clock.set_state_callback(self._on_state)
        clock.set_ended_callback(self.playback_ended.emit)
        clock.set_error_callback(self._on_error)
    
    @property
    def clock(self) -> PlaybackClock:
        return self._clock
    
    @property
    def interval_ms(self) -> int:
        return self._timer.interval()
    
    @property
    def is_running(self) -> bool:
        return self._timer.isActive()
    
    def _on_timeout(self):
        self._clock.tick()
    
    def _on_position(self, position: PlaybackPosition):
        self.position_changed.emit(position)
    
    def _on_state(self, state: PlaybackState):
        if state == PlaybackState.PLAYING:
            self._timer.start()
        else:
            self._timer.stop()
        self.state_changed.emit(state.value)
    
    def _on_error(self, error: PlaybackError):
        self.playback_error.emit(str(error))
    
    def shutdown(self):
        """Stop ticking and release the clock's sink."""
        self._timer.stop()
        self._clock.cleanup()
