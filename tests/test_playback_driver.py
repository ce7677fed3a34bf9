"""
Tests for the Qt playback driver.
"""

import pytest

from PySide6.QtCore import QCoreApplication

from piano_transcriber.core.playback import PlaybackClock
from piano_transcriber.gui.playback_driver import QtDispatcher, QtPlaybackDriver

from conftest import RecordingSink, make_notes


@pytest.fixture(scope="module")
def qapp():
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest.fixture
def driver(qapp, clock_time):
    clock = PlaybackClock(RecordingSink(), clock_time)
    clock.load(make_notes(("C4", 0.0, 1.0), ("E4", 1.0, 1.0)), 2.0)
    driver = QtPlaybackDriver(clock, interval_ms=50)
    yield driver
    driver.shutdown()


class TestQtPlaybackDriver:
    """Tests for timer control and signal forwarding."""
    
    def test_interval(self, driver):
        """Test the timer interval."""
        assert driver.interval_ms == 50
        assert not driver.is_running
    
    def test_timer_follows_state(self, driver):
        """Test the timer runs only while playing."""
        states = []
        driver.state_changed.connect(states.append)
        
        driver.clock.play()
        assert driver.is_running
        driver.clock.pause()
        assert not driver.is_running
        assert states == ["playing", "paused"]
    
    def test_signals(self, driver, clock_time):
        """Test note, position and end signals."""
        notes = []
        positions = []
        ended = []
        driver.note_triggered.connect(notes.append)
        driver.position_changed.connect(positions.append)
        driver.playback_ended.connect(lambda: ended.append(True))
        
        driver.clock.play()
        clock_time.set(0.5)
        driver._on_timeout()
        clock_time.set(2.0)
        driver._on_timeout()
        
        assert [str(e.pitch) for e in notes] == ["C4", "E4"]
        assert positions[0].current_time == pytest.approx(0.5)
        assert ended == [True]
        assert not driver.is_running
    
    def test_error_signal(self, driver, clock_time):
        """Test sink failures are re-emitted as text."""
        errors = []
        driver.playback_error.connect(errors.append)
        driver.clock._sink.fail_on.add("note_on")
        
        driver.clock.play()
        clock_time.set(0.1)
        driver._on_timeout()
        
        assert len(errors) == 1
        assert "note_on failed" in errors[0]
        assert not driver.is_running


class TestQtDispatcher:
    """Tests for QtDispatcher."""
    
    def test_same_thread_runs_immediately(self, qapp):
        """Test tasks posted from the owning thread run directly."""
        dispatcher = QtDispatcher()
        calls = []
        dispatcher.dispatch(lambda: calls.append(1))
        assert calls == [1]
